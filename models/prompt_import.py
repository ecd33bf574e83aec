"""
Prompt import schemas.

Data structures for the bulk-import pipeline: field mappings produced by
header analysis, the normalized prompt record, the defaults overlay applied
at confirm time, and the preview/result envelopes returned to callers.
"""

from typing import Any, Optional
from enum import Enum

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_snake

from models.base import BaseSchema, WireSchema


# ===================
# ENUMS
# ===================

class SemanticField(str, Enum):
    """Normalized target slots a prompt record can populate."""
    NAME = "name"
    PROMPT_CONTENT = "promptContent"
    DESCRIPTION = "description"
    CATEGORY = "category"
    TAGS = "tags"
    STATUS = "status"
    IS_PUBLIC = "isPublic"
    IS_NSFW = "isNsfw"
    INTENDED_RECIPIENT = "intendedRecipient"
    SPECIFIC_SERVICE = "specificService"
    SOURCE_URL = "sourceUrl"
    AUTHOR_REFERENCE = "authorReference"
    EXAMPLE_IMAGES = "exampleImages"
    STYLE_KEYWORDS = "styleKeywords"
    DIFFICULTY_LEVEL = "difficultyLevel"
    USE_CASE = "useCase"

    @property
    def attribute(self) -> str:
        """ParsedPromptRecord attribute name for this field."""
        return to_snake(self.value)


class ParseStrategy(str, Enum):
    """Parser selected from the upload's extension."""
    CSV = "csv"
    JSON = "json"
    JSONL = "jsonl"
    TXT = "txt"
    UNKNOWN = "unknown"


class TxtParseMode(str, Enum):
    """How a TXT upload is split into prompts."""
    AUTO = "auto"              # segmenter cascade
    LINES = "lines"            # each line = one prompt
    PARAGRAPHS = "paragraphs"  # each paragraph = one prompt
    DELIMITER = "delimiter"    # custom delimiter


class GoogleDocType(str, Enum):
    """Google source type sent to the fetch endpoint."""
    AUTO = "auto"
    DOCS = "docs"
    SHEETS = "sheets"


class PromptStatus(str, Enum):
    """Publication status of an imported prompt."""
    DRAFT = "draft"
    PUBLISHED = "published"


class License(str, Enum):
    """Licenses offered for imported prompts."""
    CC0 = "CC0"
    CC_BY = "CC-BY"
    CC_BY_SA = "CC-BY-SA"
    ALL_RIGHTS_RESERVED = "All Rights Reserved"


# ===================
# FIELD MAPPING
# ===================

class FieldMapping(WireSchema):
    """One source column assigned to a semantic field."""

    source_field: str = Field(description="Header as it appears in the source")
    target_field: Optional[SemanticField] = Field(None, description="Semantic field, None when unmapped")
    confidence: float = Field(default=1.0, ge=0.0, le=1.0, description="Heuristic confidence 0-1")
    detected: bool = Field(default=True, description="False when supplied by the user")


class MappingAnalysis(WireSchema):
    """Result of analyzing tabular headers."""

    mappings: list[FieldMapping] = Field(default_factory=list)
    unmapped: list[str] = Field(default_factory=list)
    overall_confidence: float = Field(ge=0.0, le=1.0, default=0.0)


# ===================
# PROMPT RECORD
# ===================

class ParsedPromptRecord(WireSchema):
    """
    Normalized prompt ready for the bulk-import endpoint.

    Known semantic fields are typed attributes. Source columns with no
    semantic counterpart live in `extra` under their original names and are
    flattened into the payload on submission.
    """

    name: str = ""
    prompt_content: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    status: PromptStatus = PromptStatus.DRAFT
    is_public: Optional[bool] = None
    is_nsfw: Optional[bool] = None
    intended_recipient: Optional[str] = None
    specific_service: Optional[str] = None
    source_url: Optional[str] = None
    author_reference: Optional[str] = None
    example_images: Optional[str] = None
    style_keywords: Optional[str] = None
    difficulty_level: Optional[str] = None
    use_case: Optional[str] = None

    # Filled from the defaults overlay
    collection_id: Optional[str] = None
    prompt_type: Optional[str] = None
    prompt_style: Optional[str] = None
    author: Optional[str] = None
    license: Optional[License] = None
    intended_generator: Optional[str] = None
    recommended_models: Optional[list[str]] = None

    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_content(self) -> bool:
        """True if prompt_content is non-empty after trimming."""
        return bool(self.prompt_content and self.prompt_content.strip())

    def to_payload(self) -> dict:
        """
        Build the JSON object sent to the bulk-import endpoint.

        Unset optional fields are omitted. Extra columns never override a
        known field.
        """
        payload = self.model_dump(
            by_alias=True,
            mode="json",
            exclude_none=True,
            exclude={"extra"},
        )
        for key, value in self.extra.items():
            payload.setdefault(key, value)
        return payload


# ===================
# DEFAULTS
# ===================

def _split_comma_text(value: Any) -> Any:
    """Accept "a, b" as well as ["a", "b"]."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _blank_to_none(value: Any) -> Any:
    """Treat "" and the UI's "none" choice as not set."""
    if isinstance(value, str) and value.strip().lower() in ("", "none"):
        return None
    return value


class SegmentDefaults(WireSchema):
    """Defaults every free-text strategy stamps on its records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True
    )

    category: Optional[str] = None
    is_public: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def blank_category(cls, v: Any) -> Any:
        return _blank_to_none(v)


class DefaultsOverlay(WireSchema):
    """
    User-chosen defaults applied to every record at confirm time.

    Immutable once built. Scalar fields fill only records that lack them;
    tags and recommended models are unioned with the record's own.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True
    )

    collection_id: Optional[str] = None
    category: Optional[str] = None
    prompt_type: Optional[str] = None
    prompt_style: Optional[str] = None
    author: Optional[str] = None
    license: Optional[License] = License.CC0
    tags: list[str] = Field(default_factory=list)
    source_url: Optional[str] = None
    intended_generator: Optional[str] = None
    recommended_models: list[str] = Field(default_factory=list)
    is_public: bool = False

    @field_validator(
        "collection_id",
        "category",
        "prompt_type",
        "prompt_style",
        "author",
        "source_url",
        "intended_generator",
        mode="before",
    )
    @classmethod
    def blank_scalars(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("license", mode="before")
    @classmethod
    def blank_license(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("tags", "recommended_models", mode="before")
    @classmethod
    def comma_lists(cls, v: Any) -> Any:
        return _split_comma_text(v)

    def segment_defaults(self) -> SegmentDefaults:
        """Subset used by the free-text segmenter."""
        return SegmentDefaults(category=self.category, is_public=self.is_public)


# ===================
# PREVIEW / BATCH / RESULT
# ===================

class ImportStatistics(WireSchema):
    """Counts shown next to an import preview."""

    total_rows: int = 0
    valid_rows: int = 0
    fields_detected: int = 0
    confidence: float = 0.0


class ImportPreview(WireSchema):
    """Parsed records awaiting confirmation."""

    preview_id: Optional[str] = None
    source: str = Field(description="csv, json, jsonl, txt or google")
    records: list[ParsedPromptRecord] = Field(default_factory=list)
    field_mappings: list[FieldMapping] = Field(default_factory=list)
    unmapped_fields: list[str] = Field(default_factory=list)
    statistics: ImportStatistics = Field(default_factory=ImportStatistics)
    segmentation_strategy: Optional[str] = Field(
        None,
        description="Free-text strategy that produced the records, if any"
    )
    needs_mapping_review: bool = False


class ImportBatch(WireSchema):
    """Merged records handed to the bulk-import endpoint."""

    records: list[ParsedPromptRecord] = Field(default_factory=list)
    defaults: DefaultsOverlay = Field(default_factory=DefaultsOverlay)

    def to_payload(self) -> dict:
        """Request body for the bulk-import endpoint."""
        return {"prompts": [record.to_payload() for record in self.records]}


class ImportRowError(WireSchema):
    """Per-row failure reported by the bulk-import endpoint."""

    row: int
    error: str
    data: Any = None


class ImportResult(WireSchema):
    """Aggregated outcome of a bulk import."""

    total: int = 0
    success: int = 0
    failed: int = 0
    errors: list[ImportRowError] = Field(default_factory=list)


# ===================
# REQUESTS
# ===================

class AnalyzeFieldsRequest(BaseSchema):
    """Headers and a sample row to analyze."""

    headers: list[str] = Field(..., min_length=1)
    sample_row: dict[str, Any] = Field(default_factory=dict)


class GoogleImportRequest(BaseSchema):
    """Fetch a public Google Doc or Sheet and preview its prompts."""

    url: str = Field(..., min_length=1)
    type: GoogleDocType = GoogleDocType.AUTO
    txt_mode: TxtParseMode = TxtParseMode.AUTO
    delimiter: Optional[str] = None
    category: Optional[str] = None
    is_public: bool = False


class UpdateMappingsRequest(BaseSchema):
    """Field mappings corrected during the mapping step."""

    mappings: list[FieldMapping] = Field(default_factory=list)
