"""
Unit tests for the import session service.

The prompt library is mocked through the mock_submit and mock_google_fetch
fixtures; field analysis runs on the rule-based mapper.
"""

import pytest

from exceptions import (
    BulkImportSubmitError,
    EmptyImportError,
    FileParseError,
    GoogleFetchError,
    MappingNotApplicableError,
    PreviewNotFoundError,
    UnsupportedFormatError,
    UploadTooLargeError,
)
from models.prompt_import import (
    AnalyzeFieldsRequest,
    DefaultsOverlay,
    FieldMapping,
    GoogleImportRequest,
    PromptStatus,
    SegmentDefaults,
    SemanticField,
    TxtParseMode,
)
from services import preview_cache_service
from services.import_service import ImportService


@pytest.fixture
def service() -> ImportService:
    svc = ImportService()
    svc.field_analysis.client = None
    return svc


# ===================
# PREVIEW
# ===================

class TestPreviewUpload:
    """Tests for parsing uploads into previews."""

    def test_csv_preview(self, service, sample_csv):
        """CSV uploads are mapped and materialized."""
        preview = service.preview_upload("prompts.csv", sample_csv.encode())

        assert preview.source == "csv"
        assert [r.name for r in preview.records] == ["Sunset", "City"]
        assert preview.records[0].tags == ["nature", "photo"]
        assert preview.records[0].is_public is True
        assert preview.records[1].is_public is False
        assert preview.records[0].extra == {"extra_notes": "keep me"}
        assert preview.unmapped_fields == ["extra_notes"]
        assert preview.statistics.total_rows == 3
        assert preview.statistics.valid_rows == 2
        assert preview.statistics.fields_detected == 4
        assert preview.needs_mapping_review is True
        assert preview.preview_id is not None

    def test_confident_mapping_needs_no_review(self, service):
        """Fully mapped, confident headers skip the mapping step."""
        preview = service.preview_upload("p.csv", b"title,Full_Prompt\nA,do a\n")
        assert preview.needs_mapping_review is False

    def test_low_confidence_needs_review(self, service):
        """Overall confidence under the threshold asks for review."""
        preview = service.preview_upload("p.csv", b"body text\n" + b"z" * 150 + b"\n")

        assert preview.field_mappings[0].confidence == 0.8
        assert preview.needs_mapping_review is False

        preview = service.preview_upload("p.csv", b"col\n" + b"z" * 150 + b"\n")
        assert preview.field_mappings[0].confidence == 0.7
        assert preview.needs_mapping_review is True

    def test_tsv_preview(self, service):
        """TSV uploads split on tabs."""
        preview = service.preview_upload("p.tsv", b"name\tprompt\nA\tdo, this\n")
        assert preview.records[0].prompt_content == "do, this"

    def test_utf8_bom_stripped(self, service):
        """A byte order mark does not end up in the first header."""
        preview = service.preview_upload("p.csv", "\ufefftitle,content\nA,b\n".encode("utf-8"))
        assert preview.field_mappings[0].source_field == "title"

    def test_json_preview(self, service, sample_json):
        """JSON objects become records with the upload defaults."""
        preview = service.preview_upload(
            "p.json",
            sample_json.encode(),
            defaults=SegmentDefaults(category="Imported"),
        )

        assert preview.source == "json"
        assert [r.name for r in preview.records] == ["Alpha", "Beta"]
        assert preview.records[0].status == PromptStatus.PUBLISHED
        assert preview.records[0].category == "Imported"
        assert preview.records[1].extra == {"model": "x1"}
        assert preview.segmentation_strategy is None
        assert preview.needs_mapping_review is False

    def test_json_falls_back_to_segmenter(self, service):
        """Unparseable JSON goes through the free-text cascade."""
        content = b"1. First idea\nExplain the first idea.\n2. Second idea\nExplain the second."
        preview = service.preview_upload("p.json", content)

        assert preview.segmentation_strategy == "numbered_list"
        assert [r.name for r in preview.records] == ["First idea", "Second idea"]

    def test_json_nothing_found(self, service):
        """JSON with nothing recoverable fails to parse."""
        with pytest.raises(FileParseError) as exc_info:
            service.preview_upload("p.json", b"{}")
        assert exc_info.value.message.startswith("Failed to parse the uploaded file")

    def test_txt_auto(self, service, sample_numbered_text):
        """TXT auto mode uses the cascade."""
        preview = service.preview_upload(
            "p.txt",
            sample_numbered_text.encode(),
            defaults=SegmentDefaults(category="Writing", is_public=True),
        )

        assert preview.segmentation_strategy == "numbered_list"
        assert preview.records[0].category == "Writing"
        assert preview.records[0].is_public is True

    def test_txt_explicit_mode(self, service):
        """Explicit TXT modes bypass the cascade."""
        preview = service.preview_upload(
            "p.txt", b"one\n---\ntwo", txt_mode=TxtParseMode.DELIMITER
        )

        assert preview.segmentation_strategy == "delimiter"
        assert [r.prompt_content for r in preview.records] == ["one", "two"]

    def test_unsupported_format(self, service):
        """Unknown extensions are rejected before parsing."""
        with pytest.raises(UnsupportedFormatError):
            service.preview_upload("p.xlsx", b"anything")

    def test_too_large(self, service):
        """Oversized uploads are rejected."""
        from config import settings
        with pytest.raises(UploadTooLargeError):
            service.preview_upload("p.txt", b"x" * (settings.max_upload_bytes + 1))

    def test_empty_file(self, service):
        """Blank uploads fail to parse."""
        with pytest.raises(FileParseError):
            service.preview_upload("p.csv", b"   \n")

    def test_not_utf8(self, service):
        """Binary content fails to parse."""
        with pytest.raises(FileParseError):
            service.preview_upload("p.txt", b"\xff\xfe\xfa")

    def test_preview_is_stored(self, service, sample_numbered_text):
        """The preview can be fetched again by id."""
        preview = service.preview_upload("p.txt", sample_numbered_text.encode())
        assert service.get_preview(preview.preview_id) == preview


class TestPreviewGoogle:
    """Tests for Google Docs/Sheets previews."""

    def test_sheets(self, service, mock_google_fetch):
        """Sheets content goes through header mapping."""
        mock_google_fetch.return_value = ("csv", "title,content\nA,do a\n")

        preview = service.preview_google(GoogleImportRequest(url="https://docs.google.com/s"))

        assert preview.source == "google"
        assert preview.records[0].name == "A"
        assert len(preview.field_mappings) == 2

    def test_docs(self, service, mock_google_fetch, sample_numbered_text):
        """Docs content goes through the segmenter with the request defaults."""
        mock_google_fetch.return_value = ("text", sample_numbered_text)

        preview = service.preview_google(
            GoogleImportRequest(url="https://docs.google.com/d", category="Poems", is_public=True)
        )

        assert preview.source == "google"
        assert preview.segmentation_strategy == "numbered_list"
        assert preview.records[0].category == "Poems"

    def test_docs_with_txt_mode(self, service, mock_google_fetch):
        """Docs content honours the requested TXT mode and delimiter."""
        mock_google_fetch.return_value = ("text", "one\n===\ntwo")

        preview = service.preview_google(GoogleImportRequest(
            url="https://docs.google.com/d",
            txt_mode=TxtParseMode.DELIMITER,
            delimiter="===",
        ))

        assert preview.segmentation_strategy == "delimiter"
        assert [r.prompt_content for r in preview.records] == ["one", "two"]

    def test_fetch_failure_propagates(self, service, mock_google_fetch):
        """Fetch errors reach the caller."""
        mock_google_fetch.side_effect = GoogleFetchError("https://docs.google.com/d")

        with pytest.raises(GoogleFetchError):
            service.preview_google(GoogleImportRequest(url="https://docs.google.com/d"))


# ===================
# MAPPING
# ===================

class TestMappings:
    """Tests for field analysis and mapping correction."""

    def test_analyze_fields(self, service):
        """Headers are analyzed without a session."""
        analysis = service.analyze_fields(AnalyzeFieldsRequest(headers=["title", "content", "tags"]))
        assert analysis.overall_confidence == pytest.approx((1.0 + 0.95 + 1.0) / 3)

    def test_update_mappings_rematerializes(self, service):
        """Corrected mappings re-parse the stored rows."""
        preview = service.preview_upload("p.csv", b"col_a,col_b\nHello there,Greeting\n")
        assert preview.records == []

        updated = service.update_mappings(preview.preview_id, [
            FieldMapping(source_field="col_a", target_field=SemanticField.PROMPT_CONTENT),
            FieldMapping(source_field="col_b", target_field=SemanticField.NAME),
            FieldMapping(source_field="ghost", target_field=SemanticField.TAGS),
        ])

        assert [(r.name, r.prompt_content) for r in updated.records] == [("Greeting", "Hello there")]
        assert all(m.detected is False for m in updated.field_mappings)
        assert updated.unmapped_fields == []

    def test_update_mappings_one_header_per_field(self, service):
        """The first header listed for a field wins."""
        preview = service.preview_upload("p.csv", b"a,b\nx,y\n")

        updated = service.update_mappings(preview.preview_id, [
            FieldMapping(source_field="a", target_field=SemanticField.PROMPT_CONTENT),
            FieldMapping(source_field="b", target_field=SemanticField.PROMPT_CONTENT),
        ])

        assert [m.source_field for m in updated.field_mappings] == ["a"]
        assert updated.records[0].extra == {"b": "y"}

    def test_update_mappings_requires_tabular(self, service, sample_numbered_text):
        """Free-text previews have no mappings to change."""
        preview = service.preview_upload("p.txt", sample_numbered_text.encode())

        with pytest.raises(MappingNotApplicableError):
            service.update_mappings(preview.preview_id, [])

    def test_update_mappings_unknown_preview(self, service):
        """Unknown preview ids are not found."""
        with pytest.raises(PreviewNotFoundError):
            service.update_mappings("missing", [])


# ===================
# CONFIRM / CANCEL
# ===================

class TestConfirm:
    """Tests for merging and submitting."""

    def test_confirm_merges_and_submits(self, service, mock_submit, sample_numbered_text):
        """Defaults are merged before the batch is sent."""
        preview = service.preview_upload("p.txt", sample_numbered_text.encode())

        result = service.confirm(
            preview.preview_id,
            DefaultsOverlay(category="Poems", tags="a, b", author="Sam"),
        )

        batch = mock_submit.call_args.args[0]
        assert result.success == 2
        assert [r.category for r in batch.records] == ["Poems", "Poems"]
        assert batch.records[0].tags == ["a", "b"]
        assert batch.records[0].author == "Sam"
        assert batch.defaults.author == "Sam"

    def test_session_closed_after_submit(self, service, mock_submit, sample_numbered_text):
        """A confirmed preview cannot be confirmed again."""
        preview = service.preview_upload("p.txt", sample_numbered_text.encode())
        service.confirm(preview.preview_id)

        with pytest.raises(PreviewNotFoundError):
            service.confirm(preview.preview_id)

    def test_session_closed_after_failure(self, service, mock_submit, sample_numbered_text):
        """A failed submission also closes the session."""
        mock_submit.side_effect = BulkImportSubmitError("down")
        preview = service.preview_upload("p.txt", sample_numbered_text.encode())

        with pytest.raises(BulkImportSubmitError):
            service.confirm(preview.preview_id)

        assert preview_cache_service.retrieve_preview(preview.preview_id) is None

    def test_nothing_to_import(self, service, mock_submit):
        """A tabular preview without content is rejected."""
        preview = service.preview_upload("p.csv", b"a,b\nx,y\n")

        with pytest.raises(EmptyImportError):
            service.confirm(preview.preview_id)
        mock_submit.assert_not_called()
        assert service.get_preview(preview.preview_id).preview_id == preview.preview_id

    def test_unknown_preview(self, service, mock_submit):
        """Unknown preview ids are not found."""
        with pytest.raises(PreviewNotFoundError):
            service.confirm("missing")


class TestCancel:
    """Tests for cancelling a session."""

    def test_cancel_removes_preview(self, service, sample_numbered_text):
        """Cancelled previews are gone."""
        preview = service.preview_upload("p.txt", sample_numbered_text.encode())
        service.cancel(preview.preview_id)

        with pytest.raises(PreviewNotFoundError):
            service.get_preview(preview.preview_id)

    def test_cancel_unknown(self, service):
        """Cancelling an unknown preview is not found."""
        with pytest.raises(PreviewNotFoundError):
            service.cancel("missing")
