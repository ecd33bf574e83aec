"""
Apply field mappings to tabular rows.

Turns each source row into a ParsedPromptRecord: mapped columns are coerced
to their field's type, every other column is kept verbatim in the record's
extra bag, and rows without prompt content are dropped.
"""

from typing import Any, Optional

import structlog

from models.prompt_import import (
    FieldMapping,
    ParsedPromptRecord,
    PromptStatus,
    SemanticField,
)
from utils.text_utils import first_line, split_comma_list, truncate_name

logger = structlog.get_logger(__name__)

TRUE_VALUES = ("true", "1", "yes")
PUBLISHED_VALUES = ("published", "live")
BOOLEAN_FIELDS = (SemanticField.IS_PUBLIC, SemanticField.IS_NSFW)


def coerce_bool(value: Any) -> bool:
    """True for boolean True or exactly "true", "1", "yes"."""
    return value is True or (isinstance(value, str) and value in TRUE_VALUES)


def coerce_status(value: Any) -> PromptStatus:
    """"published" or "live" publish; everything else is a draft."""
    if isinstance(value, str) and value in PUBLISHED_VALUES:
        return PromptStatus.PUBLISHED
    return PromptStatus.DRAFT


def coerce_value(target: SemanticField, value: Any) -> Any:
    """Convert a raw cell to the type its target field expects."""
    if target == SemanticField.TAGS:
        return split_comma_list(value)
    if target in BOOLEAN_FIELDS:
        return coerce_bool(value)
    if target == SemanticField.STATUS:
        return coerce_status(value)
    return str(value)


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def fallback_name(prompt_content: Optional[str], position: int) -> str:
    """First line of the content (max 50 chars + "..."), else "Prompt N"."""
    name = truncate_name(first_line(prompt_content))
    return name or f"Prompt {position}"


def materialize_row(
    row: dict[str, Any],
    mappings: list[FieldMapping],
    position: int,
) -> ParsedPromptRecord:
    """
    Build one record from a source row.

    Args:
        row: Column name → raw value
        mappings: Final field mappings
        position: 1-based row position, used for "Prompt N" names

    Returns:
        ParsedPromptRecord (may lack content; filtering is the caller's job)
    """
    active = [m for m in mappings if m.target_field is not None]
    consumed = {m.source_field for m in active}

    fields: dict[str, Any] = {}
    for mapping in active:
        value = row.get(mapping.source_field)
        if not _is_present(value):
            continue
        fields[mapping.target_field.attribute] = coerce_value(mapping.target_field, value)

    fields["extra"] = {key: value for key, value in row.items() if key not in consumed}

    if not fields.get("name"):
        fields["name"] = fallback_name(fields.get("prompt_content"), position)

    return ParsedPromptRecord(**fields)


def materialize(
    rows: list[dict[str, Any]],
    mappings: list[FieldMapping],
) -> list[ParsedPromptRecord]:
    """
    Apply mappings to every row and drop rows without prompt content.

    Args:
        rows: Source rows in file order
        mappings: Final field mappings

    Returns:
        Records whose prompt_content is non-empty after trimming
    """
    records = [
        materialize_row(row, mappings, position)
        for position, row in enumerate(rows, start=1)
    ]
    valid = [r for r in records if r.has_content]

    logger.debug(
        "rows_materialized",
        row_count=len(rows),
        valid_count=len(valid),
        dropped=len(records) - len(valid),
    )

    return valid
