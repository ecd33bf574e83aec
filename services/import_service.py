"""
Bulk prompt import service.

Drives an import session: parse an upload or Google document into a
preview, optionally correct the field mappings, then merge the user's
defaults and submit the batch to the prompt library. Sessions live in the
preview cache and are removed once the batch is submitted.
"""

from typing import Any, Optional, Union

import structlog

from config import settings
from exceptions import (
    EmptyImportError,
    FileParseError,
    MappingNotApplicableError,
    PreviewNotFoundError,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from integrations.prompt_library import fetch_google_content, submit_batch
from models.prompt_import import (
    AnalyzeFieldsRequest,
    DefaultsOverlay,
    FieldMapping,
    GoogleImportRequest,
    ImportBatch,
    ImportPreview,
    ImportResult,
    ImportStatistics,
    MappingAnalysis,
    ParsedPromptRecord,
    ParseStrategy,
    SegmentDefaults,
    TxtParseMode,
)
from parsers import (
    delimiter_for,
    materialize,
    merge,
    read_json_objects,
    read_table,
    record_from_json,
    resolve_collisions,
    segment_with_strategy,
    sniff,
    split_text,
)
from services import preview_cache_service
from services.field_analysis_service import get_field_analysis_service

logger = structlog.get_logger(__name__)

GOOGLE_SOURCE = "google"
ANALYSIS_SAMPLE_ROWS = 5
USER_MAPPING_CONFIDENCE = 1.0


class ImportService:
    """
    Import session orchestration.

    Parsing is delegated to the pure stages in `parsers`; this class only
    picks the stages, keeps the session and talks to the prompt library.
    """

    def __init__(self):
        self.field_analysis = get_field_analysis_service()

    # ===================
    # PREVIEW
    # ===================

    def preview_upload(
        self,
        filename: str,
        content: Union[bytes, str],
        txt_mode: TxtParseMode = TxtParseMode.AUTO,
        delimiter: Optional[str] = None,
        defaults: Optional[SegmentDefaults] = None,
    ) -> ImportPreview:
        """
        Parse an uploaded file into a preview.

        Args:
            filename: Original filename (picks the parser)
            content: Raw file content
            txt_mode: Split mode for TXT uploads
            delimiter: Custom delimiter for TxtParseMode.DELIMITER
            defaults: Category/visibility stamped on JSON and TXT records

        Returns:
            ImportPreview with a preview_id for the next steps

        Raises:
            UnsupportedFormatError: Unknown extension
            UploadTooLargeError: Content over the configured limit
            FileParseError: Nothing could be parsed
        """
        defaults = defaults or SegmentDefaults()
        strategy = sniff(filename)

        if strategy == ParseStrategy.UNKNOWN:
            raise UnsupportedFormatError(filename)

        size = len(content)
        if size > settings.max_upload_bytes:
            raise UploadTooLargeError(size, settings.max_upload_bytes)

        text = self._decode(content)
        if not text.strip():
            raise FileParseError(message="Empty file uploaded", details={"filename": filename})

        logger.info(
            "import_preview_started",
            filename=filename,
            strategy=strategy.value,
            size=size,
        )

        if strategy == ParseStrategy.CSV:
            session = self._parse_tabular(strategy.value, text, delimiter_for(filename))
        elif strategy in (ParseStrategy.JSON, ParseStrategy.JSONL):
            session = self._parse_json(text, strategy, defaults)
        else:
            session = self._parse_text(text, txt_mode, delimiter, defaults)

        return self._store(session)

    def preview_google(self, request: GoogleImportRequest) -> ImportPreview:
        """
        Fetch a public Google Doc/Sheet and parse it into a preview.

        Sheets content goes through header mapping; Docs content is split
        like a TXT upload, with the request's TXT mode and delimiter.

        Raises:
            GoogleFetchError: Document could not be fetched
            FileParseError: Nothing could be parsed
        """
        content_type, content = fetch_google_content(request.url, request.type)

        if content_type == "csv":
            session = self._parse_tabular(GOOGLE_SOURCE, content, ",")
        else:
            defaults = SegmentDefaults(category=request.category, is_public=request.is_public)
            session = self._parse_text(content, request.txt_mode, request.delimiter, defaults)
            session["source"] = GOOGLE_SOURCE

        return self._store(session)

    def get_preview(self, preview_id: str) -> ImportPreview:
        """Current state of an open import session."""
        return self._to_preview(preview_id, self._get_session(preview_id))

    # ===================
    # MAPPING
    # ===================

    def analyze_fields(self, request: AnalyzeFieldsRequest) -> MappingAnalysis:
        """Map headers to prompt fields without opening a session."""
        sample_rows = [request.sample_row] if request.sample_row else []
        return self.field_analysis.analyze_fields(request.headers, sample_rows)

    def update_mappings(self, preview_id: str, mappings: list[FieldMapping]) -> ImportPreview:
        """
        Re-materialize a tabular preview with user-corrected mappings.

        Mappings for unknown headers are ignored and each field still keeps a
        single header (the first one listed wins).

        Raises:
            PreviewNotFoundError: Unknown or expired preview
            MappingNotApplicableError: Preview did not come from tabular data
        """
        session = self._get_session(preview_id)
        if session.get("rows") is None:
            raise MappingNotApplicableError(preview_id)

        headers = session["headers"]
        user_mappings = [
            m.model_copy(update={"detected": False, "confidence": USER_MAPPING_CONFIDENCE})
            for m in mappings
            if m.source_field in headers
        ]
        analysis = resolve_collisions(headers, user_mappings)

        session["analysis"] = analysis
        session["records"] = materialize(session["rows"], analysis.mappings)
        preview_cache_service.replace_preview(preview_id, session)

        logger.info(
            "import_mappings_updated",
            preview_id=preview_id,
            mapped=len(analysis.mappings),
            valid_rows=len(session["records"]),
        )
        return self._to_preview(preview_id, session)

    # ===================
    # CONFIRM / CANCEL
    # ===================

    def confirm(self, preview_id: str, overlay: Optional[DefaultsOverlay] = None) -> ImportResult:
        """
        Merge defaults into the previewed records and submit them.

        The session is closed whether or not the submission succeeds.

        Raises:
            PreviewNotFoundError: Unknown or expired preview
            EmptyImportError: No record has content
            BulkImportSubmitError: The prompt library rejected the batch
        """
        overlay = overlay or DefaultsOverlay()
        session = self._get_session(preview_id)

        records = [r for r in merge(session["records"], overlay) if r.has_content]
        # Session stays open so the mappings can still be fixed
        if not records:
            raise EmptyImportError()

        batch = ImportBatch(records=records, defaults=overlay)

        try:
            result = submit_batch(batch)
        finally:
            preview_cache_service.delete_preview(preview_id)

        logger.info(
            "import_confirmed",
            preview_id=preview_id,
            source=session["source"],
            total=result.total,
            success=result.success,
            failed=result.failed,
        )
        return result

    def cancel(self, preview_id: str) -> None:
        """Drop an import session."""
        self._get_session(preview_id)
        preview_cache_service.delete_preview(preview_id)
        logger.info("import_cancelled", preview_id=preview_id)

    # ===================
    # PARSING
    # ===================

    def _decode(self, content: Union[bytes, str]) -> str:
        if isinstance(content, str):
            return content
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise FileParseError(details={"reason": "File is not UTF-8 text"})

    def _parse_tabular(self, source: str, text: str, delimiter: str) -> dict[str, Any]:
        table = read_table(text, delimiter)
        if not table.headers or not table.rows:
            raise FileParseError(details={"reason": "No data rows found"})

        analysis = self.field_analysis.analyze_fields(
            table.headers, table.rows[:ANALYSIS_SAMPLE_ROWS]
        )
        records = materialize(table.rows, analysis.mappings)

        return {
            "source": source,
            "headers": table.headers,
            "rows": table.rows,
            "analysis": analysis,
            "records": records,
            "segmentation_strategy": None,
        }

    def _parse_json(
        self,
        text: str,
        strategy: ParseStrategy,
        defaults: SegmentDefaults,
    ) -> dict[str, Any]:
        objects = read_json_objects(text, jsonl=strategy == ParseStrategy.JSONL)
        records = [
            r for r in (
                record_from_json(obj, position, defaults)
                for position, obj in enumerate(objects, start=1)
            )
            if r.has_content
        ]
        segmentation_strategy = None

        if not records:
            logger.info("json_fell_back_to_segmenter", object_count=len(objects))
            result = segment_with_strategy(text, defaults)
            records, segmentation_strategy = result.records, result.strategy

        if not records:
            raise FileParseError()

        return {
            "source": strategy.value,
            "headers": None,
            "rows": None,
            "analysis": None,
            "records": records,
            "segmentation_strategy": segmentation_strategy,
        }

    def _parse_text(
        self,
        text: str,
        mode: TxtParseMode,
        delimiter: Optional[str],
        defaults: SegmentDefaults,
    ) -> dict[str, Any]:
        if mode == TxtParseMode.AUTO:
            result = segment_with_strategy(text, defaults)
            records, segmentation_strategy = result.records, result.strategy
        else:
            records = split_text(text, mode, defaults, delimiter)
            segmentation_strategy = mode.value

        if not records:
            raise FileParseError(message="No prompts found in the text")

        return {
            "source": ParseStrategy.TXT.value,
            "headers": None,
            "rows": None,
            "analysis": None,
            "records": records,
            "segmentation_strategy": segmentation_strategy,
        }

    # ===================
    # SESSION
    # ===================

    def _store(self, session: dict[str, Any]) -> ImportPreview:
        preview_id = preview_cache_service.store_preview(session)
        preview = self._to_preview(preview_id, session)

        logger.info(
            "import_preview_created",
            preview_id=preview_id,
            source=preview.source,
            valid_rows=preview.statistics.valid_rows,
            strategy=preview.segmentation_strategy,
            needs_mapping_review=preview.needs_mapping_review,
        )
        return preview

    def _get_session(self, preview_id: str) -> dict[str, Any]:
        session = preview_cache_service.retrieve_preview(preview_id)
        if session is None:
            raise PreviewNotFoundError(preview_id)
        return session

    def _to_preview(self, preview_id: str, session: dict[str, Any]) -> ImportPreview:
        records: list[ParsedPromptRecord] = session["records"]
        analysis: Optional[MappingAnalysis] = session["analysis"]

        if analysis is not None:
            statistics = ImportStatistics(
                total_rows=len(session["rows"]),
                valid_rows=len(records),
                fields_detected=len(analysis.mappings),
                confidence=analysis.overall_confidence,
            )
            needs_review = (
                analysis.overall_confidence < settings.mapping_review_threshold
                or bool(analysis.unmapped)
            )
            mappings, unmapped = analysis.mappings, analysis.unmapped
        else:
            statistics = ImportStatistics(
                total_rows=len(records),
                valid_rows=len(records),
            )
            needs_review = False
            mappings, unmapped = [], []

        return ImportPreview(
            preview_id=preview_id,
            source=session["source"],
            records=records,
            field_mappings=mappings,
            unmapped_fields=unmapped,
            statistics=statistics,
            segmentation_strategy=session["segmentation_strategy"],
            needs_mapping_review=needs_review,
        )


# Singleton instance
_import_service: Optional[ImportService] = None


def get_import_service() -> ImportService:
    """Get or create ImportService instance."""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service
