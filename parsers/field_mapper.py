"""
Header-to-field mapping for tabular imports.

Assigns each CSV/TSV/Sheets column a semantic prompt field with a
confidence score. Rules, in order, first match wins per header:

1. Full-prompt headers (Full_Prompt, Main Prompt, promptContent) → promptContent, 1.0
2. Header dictionary: exact match 1.0, substring match 0.8
3. Content heuristic: prompt-like header words (0.95 / 0.8, these also win
   over a substring match), or a sample value longer than 100 characters (0.7)

Then each target keeps only its highest-confidence header; ties go to the
header seen first. The same input always yields the same mapping.
"""

import re
from typing import Any, Iterable, Optional

import structlog

from models.prompt_import import FieldMapping, MappingAnalysis, SemanticField

logger = structlog.get_logger(__name__)


FULL_PROMPT_KEYS = ("fullprompt", "mainprompt", "promptcontent")

# Normalized header → semantic field. Order matters for substring matches.
HEADER_DICTIONARY: dict[str, SemanticField] = {
    "name": SemanticField.NAME,
    "title": SemanticField.NAME,
    "promptname": SemanticField.NAME,
    "heading": SemanticField.NAME,
    "label": SemanticField.NAME,
    "category": SemanticField.CATEGORY,
    "categories": SemanticField.CATEGORY,
    "type": SemanticField.CATEGORY,
    "description": SemanticField.DESCRIPTION,
    "desc": SemanticField.DESCRIPTION,
    "details": SemanticField.DESCRIPTION,
    "tags": SemanticField.TAGS,
    "keywords": SemanticField.TAGS,
    "stylekeywords": SemanticField.STYLE_KEYWORDS,
    "style": SemanticField.STYLE_KEYWORDS,
    "status": SemanticField.STATUS,
    "state": SemanticField.STATUS,
    "public": SemanticField.IS_PUBLIC,
    "ispublic": SemanticField.IS_PUBLIC,
    "visibility": SemanticField.IS_PUBLIC,
    "nsfw": SemanticField.IS_NSFW,
    "isnsfw": SemanticField.IS_NSFW,
    "adult": SemanticField.IS_NSFW,
    "intendedrecipient": SemanticField.INTENDED_RECIPIENT,
    "recipient": SemanticField.INTENDED_RECIPIENT,
    "target": SemanticField.INTENDED_RECIPIENT,
    "specificservice": SemanticField.SPECIFIC_SERVICE,
    "service": SemanticField.SPECIFIC_SERVICE,
    "platform": SemanticField.SPECIFIC_SERVICE,
    "sourceurl": SemanticField.SOURCE_URL,
    "source": SemanticField.SOURCE_URL,
    "url": SemanticField.SOURCE_URL,
    "link": SemanticField.SOURCE_URL,
    "authorreference": SemanticField.AUTHOR_REFERENCE,
    "author": SemanticField.AUTHOR_REFERENCE,
    "creator": SemanticField.AUTHOR_REFERENCE,
    "by": SemanticField.AUTHOR_REFERENCE,
    "exampleimages": SemanticField.EXAMPLE_IMAGES,
    "examples": SemanticField.EXAMPLE_IMAGES,
    "images": SemanticField.EXAMPLE_IMAGES,
    "difficultylevel": SemanticField.DIFFICULTY_LEVEL,
    "difficulty": SemanticField.DIFFICULTY_LEVEL,
    "level": SemanticField.DIFFICULTY_LEVEL,
    "usecase": SemanticField.USE_CASE,
    "usage": SemanticField.USE_CASE,
    "purpose": SemanticField.USE_CASE,
}

PROMPT_HINTS = ("prompt", "content", "text", "instruction", "message")

EXACT_CONFIDENCE = 1.0
PARTIAL_CONFIDENCE = 0.8
PROMPT_HEADER_CONFIDENCE = 0.95
TEXT_HEADER_CONFIDENCE = 0.8
LONG_SAMPLE_CONFIDENCE = 0.7
LONG_SAMPLE_LENGTH = 100

_SEPARATORS = re.compile(r"[_\s-]")
# pandas names a blank CSV header "Unnamed: N"
_UNLABELED_HEADER = re.compile(r"^Unnamed: \d+(\.\d+)?$")


def is_unlabeled(header: str) -> bool:
    """True for a blank header or the placeholder pandas gives one."""
    return not normalize_field_name(header) or bool(_UNLABELED_HEADER.match(str(header).strip()))


def normalize_field_name(field: str) -> str:
    """Lowercase and drop underscores, hyphens and whitespace."""
    return _SEPARATORS.sub("", str(field).lower())


def detect_field_mapping(header: str) -> tuple[Optional[SemanticField], float]:
    """
    Match a header against the full-prompt keys and the header dictionary.

    Returns:
        (target field, confidence), or (None, 0.0) if nothing matches
    """
    if is_unlabeled(header):
        return None, 0.0

    normalized = normalize_field_name(header)
    if any(key in normalized for key in FULL_PROMPT_KEYS):
        return SemanticField.PROMPT_CONTENT, EXACT_CONFIDENCE

    target = HEADER_DICTIONARY.get(normalized)
    if target is not None:
        return target, EXACT_CONFIDENCE

    for pattern, target in HEADER_DICTIONARY.items():
        if pattern in normalized or normalized in pattern:
            return target, PARTIAL_CONFIDENCE

    return None, 0.0


def detect_prompt_field(header: str, sample_value: Any) -> tuple[bool, float]:
    """
    Decide whether an otherwise unrecognized column holds the prompt text.

    Header words win over the sample: "prompt" anywhere (or a bare
    "content" header) scores 0.95, other text-like words 0.8. Without a
    telling header, a sample longer than 100 characters scores 0.7.
    """
    normalized = normalize_field_name(header)

    if normalized and any(hint in normalized for hint in PROMPT_HINTS):
        if "prompt" in normalized or normalized == "content":
            return True, PROMPT_HEADER_CONFIDENCE
        return True, TEXT_HEADER_CONFIDENCE

    sample = "" if sample_value is None else str(sample_value)
    if len(sample) > LONG_SAMPLE_LENGTH:
        return True, LONG_SAMPLE_CONFIDENCE

    return False, 0.0


def classify_header(header: str, sample_value: Any = None) -> Optional[FieldMapping]:
    """
    Best candidate mapping for one header, before collision resolution.

    Prompt-like header words beat a substring dictionary match ("prompt"
    would otherwise hit "promptname"); the long-sample rule only applies
    when the dictionary has nothing at all. Unlabeled columns are never
    mapped and end up in the extra bag.
    """
    if is_unlabeled(header):
        return None

    target, confidence = detect_field_mapping(header)

    if target is None or confidence < EXACT_CONFIDENCE:
        sample = sample_value if target is None else None
        is_prompt, prompt_confidence = detect_prompt_field(header, sample)
        if is_prompt:
            target, confidence = SemanticField.PROMPT_CONTENT, prompt_confidence

    if target is None:
        return None

    return FieldMapping(
        source_field=header,
        target_field=target,
        confidence=confidence,
        detected=True,
    )


def resolve_collisions(
    headers: list[str],
    candidates: Iterable[Optional[FieldMapping]],
) -> MappingAnalysis:
    """
    Keep one mapping per target field.

    A candidate replaces the current holder of its target only with strictly
    higher confidence; the displaced header becomes unmapped. Mappings come
    back in header order.

    Args:
        headers: All source headers, in source order
        candidates: Candidate mappings (None entries are skipped)

    Returns:
        MappingAnalysis with final mappings, unmapped headers and mean confidence
    """
    winners: dict[SemanticField, FieldMapping] = {}

    for candidate in candidates:
        if candidate is None or candidate.target_field is None:
            continue
        holder = winners.get(candidate.target_field)
        if holder is None or candidate.confidence > holder.confidence:
            winners[candidate.target_field] = candidate

    by_source = {m.source_field: m for m in winners.values()}
    mappings = [by_source[h] for h in headers if h in by_source]
    unmapped = [h for h in headers if h not in by_source]

    overall = (
        sum(m.confidence for m in mappings) / len(mappings)
        if mappings else 0.0
    )

    return MappingAnalysis(
        mappings=mappings,
        unmapped=unmapped,
        overall_confidence=overall,
    )


def analyze(headers: list[str], sample_row: Optional[dict[str, Any]] = None) -> MappingAnalysis:
    """
    Map tabular headers to semantic prompt fields.

    Args:
        headers: Column headers in source order
        sample_row: First data row, used for the long-content heuristic

    Returns:
        MappingAnalysis (mappings, unmapped headers, overall confidence)
    """
    sample_row = sample_row or {}
    candidates = [classify_header(h, sample_row.get(h)) for h in headers]
    analysis = resolve_collisions(headers, candidates)

    logger.debug(
        "headers_analyzed",
        header_count=len(headers),
        mapped=len(analysis.mappings),
        unmapped=len(analysis.unmapped),
        confidence=round(analysis.overall_confidence, 3),
    )

    return analysis
