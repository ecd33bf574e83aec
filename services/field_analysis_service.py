"""
Header analysis for tabular imports.

Optionally asks Claude to classify column headers before falling back to the
rule-based mapper. Whatever the model returns goes through the same collision
resolution as the rules, so callers always get one header per field.
"""

import json
import re
from typing import Any, Optional

import anthropic
import structlog

from config import settings
from exceptions import FieldAnalysisError
from models.prompt_import import FieldMapping, MappingAnalysis, SemanticField
from parsers import field_mapper

logger = structlog.get_logger(__name__)

SAMPLE_ROW_LIMIT = 5
SAMPLE_VALUE_LIMIT = 300


class FieldAnalysisService:
    """
    Map source headers to semantic prompt fields.

    Uses Claude when enabled and an API key is set; the rule-based mapper
    otherwise, and whenever the model call fails.
    """

    MAX_TOKENS = 2048

    SYSTEM_PROMPT = """You are a data structure analyst for a prompt management system.
Map spreadsheet column headers to the system's prompt fields.

IMPORTANT: Return ONLY valid JSON, no markdown, no explanation, no code blocks.

Target fields:
- promptContent (REQUIRED): The main prompt text/instructions
- name (REQUIRED): Title or identifier for the prompt
- description: Brief description of what the prompt does
- category: Category or type classification
- tags: Keywords or labels
- styleKeywords: Style-related keywords
- status: Publication status (draft/published)
- isPublic: Boolean for visibility
- isNsfw: Boolean for adult content
- intendedRecipient: Who the prompt is for
- specificService: Target service/platform
- sourceUrl: Reference URL
- authorReference: Creator attribution
- exampleImages: Example image references
- difficultyLevel: Complexity rating
- useCase: Usage scenario

CRITICAL RULES:
1. The column holding the actual prompt text (like "Full_Prompt", "prompt", "content") maps to "promptContent", NOT to "description"
2. "Description" columns map to "description" unless they hold the main prompt text
3. Look at the sample values, not just the header: long instructional text is likely the prompt
4. Use null for columns that match no field

Response format:
{
  "fieldMappings": [
    {"sourceField": "header as given", "targetField": "field name or null", "confidence": 0.0-1.0}
  ]
}"""

    def __init__(self):
        """Initialize the Anthropic client if analysis is configured."""
        if settings.field_analysis_configured:
            self.client = anthropic.Anthropic(api_key=settings.anthropic_api_key)
        else:
            self.client = None

    @property
    def ai_available(self) -> bool:
        return self.client is not None

    def analyze_fields(
        self,
        headers: list[str],
        sample_rows: Optional[list[dict[str, Any]]] = None,
    ) -> MappingAnalysis:
        """
        Analyze headers, preferring the model when available.

        Args:
            headers: Column headers in source order
            sample_rows: First data rows (the first one feeds the rule-based heuristics)

        Returns:
            MappingAnalysis
        """
        sample_rows = sample_rows or []

        if self.ai_available:
            try:
                return self.analyze_with_model(headers, sample_rows)
            except FieldAnalysisError as e:
                logger.warning("field_analysis_fallback_to_rules", error=e.message)

        return field_mapper.analyze(headers, sample_rows[0] if sample_rows else None)

    def analyze_with_model(
        self,
        headers: list[str],
        sample_rows: list[dict[str, Any]],
    ) -> MappingAnalysis:
        """
        Ask Claude for header mappings.

        Raises:
            FieldAnalysisError: If the call fails or the answer is unusable
        """
        if not self.ai_available:
            raise FieldAnalysisError("Field analysis model is not configured")

        samples = [
            {k: str(v)[:SAMPLE_VALUE_LIMIT] for k, v in row.items()}
            for row in sample_rows[:SAMPLE_ROW_LIMIT]
        ]
        prompt = (
            f"Headers: {json.dumps(headers)}\n"
            f"Sample rows: {json.dumps(samples, indent=2)}"
        )

        try:
            response = self.client.messages.create(
                model=settings.field_analysis_model,
                max_tokens=self.MAX_TOKENS,
                system=self.SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("field_analysis_api_error", error=str(e))
            raise FieldAnalysisError(f"Claude API error: {str(e)}")

        try:
            response_text = response.content[0].text
        except (IndexError, AttributeError):
            logger.error("field_analysis_no_text", stop_reason=getattr(response, "stop_reason", None))
            raise FieldAnalysisError("Claude returned no text content")

        logger.debug("field_analysis_response_received", response_length=len(response_text))

        candidates = self._parse_response(response_text, headers)
        analysis = field_mapper.resolve_collisions(headers, candidates)

        if not analysis.mappings:
            raise FieldAnalysisError("Claude returned no usable field mappings")

        logger.info(
            "field_analysis_completed",
            mapped=len(analysis.mappings),
            unmapped=len(analysis.unmapped),
            confidence=round(analysis.overall_confidence, 3),
        )
        return analysis

    def _parse_response(self, response_text: str, headers: list[str]) -> list[FieldMapping]:
        """
        Turn the model's JSON into candidate mappings.

        Unknown headers, unknown fields and null targets are dropped;
        confidences are clamped to 0-1.
        """
        cleaned = response_text.strip()
        if cleaned.startswith("```"):
            cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
            cleaned = re.sub(r'\s*```$', '', cleaned)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error("field_analysis_json_invalid", response_preview=response_text[:500], error=str(e))
            raise FieldAnalysisError("Claude returned invalid JSON")

        items = data.get("fieldMappings") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise FieldAnalysisError("Claude response has no fieldMappings list")

        known_headers = set(headers)
        known_fields = {f.value for f in SemanticField}
        candidates = []

        for item in items:
            if not isinstance(item, dict):
                continue
            source = item.get("sourceField")
            target = item.get("targetField")
            if (
                source not in known_headers
                or target not in known_fields
                or field_mapper.is_unlabeled(source)
            ):
                continue
            # One candidate per header
            known_headers.discard(source)
            try:
                confidence = float(item.get("confidence", 0.5))
            except (TypeError, ValueError):
                confidence = 0.5
            candidates.append(FieldMapping(
                source_field=source,
                target_field=SemanticField(target),
                confidence=min(max(confidence, 0.0), 1.0),
                detected=True,
            ))

        return candidates


# Singleton instance
_field_analysis_service: Optional[FieldAnalysisService] = None


def get_field_analysis_service() -> FieldAnalysisService:
    """Get or create FieldAnalysisService instance."""
    global _field_analysis_service
    if _field_analysis_service is None:
        _field_analysis_service = FieldAnalysisService()
    return _field_analysis_service
