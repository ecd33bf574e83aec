"""
Apply the user's defaults overlay to parsed records.

Scalars only fill fields a record left empty; tags and recommended models
are unioned, record values first. Input records are never modified.
"""

from typing import Any, Optional

import structlog

from models.prompt_import import DefaultsOverlay, ParsedPromptRecord

logger = structlog.get_logger(__name__)

FILL_IF_ABSENT = (
    "category",
    "author",
    "license",
    "source_url",
    "intended_generator",
    "collection_id",
    "prompt_type",
    "prompt_style",
)
UNION_FIELDS = ("tags", "recommended_models")


def _union(own: Optional[list[str]], extra: list[str]) -> list[str]:
    merged = list(own or [])
    for item in extra:
        if item not in merged:
            merged.append(item)
    return merged


def merge_record(record: ParsedPromptRecord, overlay: DefaultsOverlay) -> ParsedPromptRecord:
    """Return a copy of the record with the overlay applied."""
    update: dict[str, Any] = {}

    for name in FILL_IF_ABSENT:
        value = getattr(overlay, name)
        if value is not None and getattr(record, name) in (None, ""):
            update[name] = value

    for name in UNION_FIELDS:
        own = getattr(record, name)
        extra = getattr(overlay, name)
        if own or extra:
            update[name] = _union(own, extra)

    if record.is_public is None:
        update["is_public"] = overlay.is_public

    return record.model_copy(update=update, deep=True)


def merge(records: list[ParsedPromptRecord], overlay: DefaultsOverlay) -> list[ParsedPromptRecord]:
    """
    Overlay defaults onto every record.

    Args:
        records: Parsed records (left unchanged)
        overlay: User defaults

    Returns:
        New records in the same order
    """
    merged = [merge_record(record, overlay) for record in records]
    logger.debug("defaults_merged", record_count=len(merged))
    return merged
