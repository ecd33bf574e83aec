"""
Explicit TXT split modes.

Used when the caller picks a mode instead of letting the segmenter cascade
decide. Each chunk becomes one draft prompt: the first line is the name and
the rest is the content (the first line doubles as content when alone).
"""

from typing import Optional

import structlog

from models.prompt_import import ParsedPromptRecord, PromptStatus, SegmentDefaults, TxtParseMode
from utils.text_utils import normalize_newlines, truncate_name

logger = structlog.get_logger(__name__)

DEFAULT_DELIMITER = "---"


def split_chunks(text: str, mode: TxtParseMode, delimiter: Optional[str] = None) -> list[str]:
    """
    Split normalized text into non-empty chunks.

    Args:
        text: Raw text
        mode: LINES, PARAGRAPHS or DELIMITER
        delimiter: Separator for DELIMITER mode (defaults to "---")

    Raises:
        ValueError: For AUTO, which belongs to the segmenter
    """
    text = normalize_newlines(text or "")

    if mode == TxtParseMode.LINES:
        chunks = text.split("\n")
    elif mode == TxtParseMode.PARAGRAPHS:
        chunks = text.split("\n\n")
    elif mode == TxtParseMode.DELIMITER:
        chunks = text.split(delimiter or DEFAULT_DELIMITER)
    else:
        raise ValueError(f"No explicit split for mode {mode.value}")

    return [chunk.strip() for chunk in chunks if chunk.strip()]


def record_from_chunk(chunk: str, defaults: SegmentDefaults) -> ParsedPromptRecord:
    """First line → name (truncated), remainder → content."""
    lines = chunk.split("\n")
    head = lines[0].strip()
    rest = "\n".join(lines[1:]).strip()

    return ParsedPromptRecord(
        name=truncate_name(head),
        prompt_content=rest or head,
        category=defaults.category,
        status=PromptStatus.DRAFT,
        is_public=defaults.is_public,
        is_nsfw=False,
    )


def split_text(
    text: str,
    mode: TxtParseMode,
    defaults: Optional[SegmentDefaults] = None,
    delimiter: Optional[str] = None,
) -> list[ParsedPromptRecord]:
    """Split a TXT upload with an explicit mode, one record per chunk."""
    defaults = defaults or SegmentDefaults()
    records = [record_from_chunk(c, defaults) for c in split_chunks(text, mode, delimiter)]
    logger.debug("txt_split", mode=mode.value, record_count=len(records))
    return records
