"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    WireSchema,
)
from models.prompt_import import (
    SemanticField,
    ParseStrategy,
    TxtParseMode,
    GoogleDocType,
    PromptStatus,
    License,
    FieldMapping,
    MappingAnalysis,
    ParsedPromptRecord,
    SegmentDefaults,
    DefaultsOverlay,
    ImportStatistics,
    ImportPreview,
    ImportBatch,
    ImportRowError,
    ImportResult,
    AnalyzeFieldsRequest,
    GoogleImportRequest,
    UpdateMappingsRequest,
)

__all__ = [
    # Base
    "BaseSchema",
    "WireSchema",

    # Enums
    "SemanticField",
    "ParseStrategy",
    "TxtParseMode",
    "GoogleDocType",
    "PromptStatus",
    "License",

    # Mapping
    "FieldMapping",
    "MappingAnalysis",

    # Records
    "ParsedPromptRecord",
    "SegmentDefaults",
    "DefaultsOverlay",

    # Preview / batch / result
    "ImportStatistics",
    "ImportPreview",
    "ImportBatch",
    "ImportRowError",
    "ImportResult",

    # Requests
    "AnalyzeFieldsRequest",
    "GoogleImportRequest",
    "UpdateMappingsRequest",
]
