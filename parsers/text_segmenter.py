"""
Free-text prompt segmentation.

Carves unstructured text (TXT uploads, Google Docs, JSON that could not be
parsed) into name/content records. Strategies run in order from most to
least specific; the first one that yields at least one record wins and the
rest never run:

1. embedded_json   - JSON objects with name + content/prompt inside the text
2. emoji_blocks    - "🧿 Prompt Name: ... / Code: ... / body" blocks
3. numbered_list   - "1. Title" / "2) Title" items with their following lines
4. paragraphs      - blank-line separated blocks, optional title line
5. lines           - title lines start records, blank lines close them

Every record is a draft carrying the shared category/visibility defaults.
"""

import json
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import structlog

from models.prompt_import import ParsedPromptRecord, PromptStatus, SegmentDefaults
from parsers.json_reader import record_from_json, strip_trailing_commas
from utils.text_utils import auto_title, looks_like_title, normalize_newlines, starts_uppercase

logger = structlog.get_logger(__name__)


# One level of nested braces is enough for prompt objects with a metadata dict
JSON_OBJECT_PATTERN = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")

EMOJI_BLOCK_PATTERN = re.compile(
    r"🧿\s*Prompt Name:\s*([^\n]+?)\s*\nCode:\s*([^\n]+?)\s*\n+(.*?)(?=🧿\s*Prompt Name:|\Z)",
    re.DOTALL,
)

NUMBERED_ITEM_PATTERN = re.compile(r"^[ \t]*\d+[.)][ \t]+(.*)$", re.MULTILINE)
PARAGRAPH_SPLIT_PATTERN = re.compile(r"\n\s*\n")

DEDUPE_PREFIX_LENGTH = 50
MIN_PARAGRAPH_LENGTH = 20
MIN_SINGLE_LINE_LENGTH = 50
MIN_LINE_RECORD_LENGTH = 50


Attempt = Callable[[str, SegmentDefaults], list[ParsedPromptRecord]]


@dataclass(frozen=True)
class SegmentationStrategy:
    """A named extraction attempt in the cascade."""
    name: str
    attempt: Attempt


@dataclass
class SegmentationResult:
    """Records plus the strategy that produced them (None if nothing matched)."""
    records: list[ParsedPromptRecord]
    strategy: Optional[str] = None


def _draft(
    name: str,
    content: str,
    defaults: SegmentDefaults,
    extra: Optional[dict] = None,
) -> ParsedPromptRecord:
    return ParsedPromptRecord(
        name=name,
        prompt_content=content,
        category=defaults.category,
        status=PromptStatus.DRAFT,
        is_public=defaults.is_public,
        is_nsfw=False,
        extra=extra or {},
    )


def _dedupe_key(name: str, content: str) -> str:
    return f"{name}_{content[:DEDUPE_PREFIX_LENGTH]}"


# ===================
# STRATEGIES
# ===================

def extract_json_objects(text: str, defaults: SegmentDefaults) -> list[ParsedPromptRecord]:
    """JSON objects embedded in the text that carry a name and content/prompt."""
    records = []
    seen: set[str] = set()

    for match in JSON_OBJECT_PATTERN.finditer(text):
        try:
            obj = json.loads(strip_trailing_commas(match.group(0)))
        except json.JSONDecodeError:
            continue
        if not isinstance(obj, dict):
            continue

        content = obj.get("content") or obj.get("prompt")
        if not obj.get("name") or not isinstance(content, str):
            continue

        key = _dedupe_key(str(obj["name"]), content)
        if key in seen:
            continue
        seen.add(key)

        records.append(record_from_json(
            obj,
            position=len(records) + 1,
            defaults=defaults,
            content_keys=("content", "prompt"),
            draft_only=True,
        ))

    return records


def extract_emoji_blocks(text: str, defaults: SegmentDefaults) -> list[ParsedPromptRecord]:
    """"🧿 Prompt Name:" blocks; the Code line is kept in extra["code"]."""
    records = []
    seen: set[str] = set()

    for match in EMOJI_BLOCK_PATTERN.finditer(text):
        name = match.group(1).strip()
        code = match.group(2).strip()
        body = match.group(3).strip()
        if not name or not body:
            continue

        key = _dedupe_key(name, body)
        if key in seen:
            continue
        seen.add(key)

        records.append(_draft(name, body, defaults, extra={"code": code}))

    return records


def split_numbered_list(text: str, defaults: SegmentDefaults) -> list[ParsedPromptRecord]:
    """
    Numbered items: the rest of the numbered line is the name, the lines up
    to the next item are the content. Items without content are skipped.
    """
    items = list(NUMBERED_ITEM_PATTERN.finditer(text))
    records = []

    for index, item in enumerate(items):
        end = items[index + 1].start() if index + 1 < len(items) else len(text)
        title = item.group(1).strip()
        body = text[item.end():end].strip()
        if title and body:
            records.append(_draft(title, body, defaults))

    return records


def split_paragraphs(text: str, defaults: SegmentDefaults) -> list[ParsedPromptRecord]:
    """Blank-line separated paragraphs, each one prompt."""
    records = []
    paragraphs = [
        p.strip() for p in PARAGRAPH_SPLIT_PATTERN.split(text)
        if len(p.strip()) > MIN_PARAGRAPH_LENGTH
    ]

    for paragraph in paragraphs:
        lines = paragraph.split("\n")

        if len(lines) >= 2:
            title = lines[0].strip()
            rest = "\n".join(lines[1:]).strip()
            if looks_like_title(title) and rest:
                records.append(_draft(title, rest, defaults))
            else:
                records.append(_draft(auto_title(paragraph), paragraph, defaults))
        elif len(paragraph) > MIN_SINGLE_LINE_LENGTH:
            records.append(_draft(auto_title(paragraph), paragraph, defaults))

    return records


def split_lines(text: str, defaults: SegmentDefaults) -> list[ParsedPromptRecord]:
    """
    Last resort: walk the lines.

    A short capitalized line without a period starts a record; other lines
    accumulate into it; a blank line closes it. Records whose content is
    50 characters or shorter are dropped.
    """
    records = []
    title: Optional[str] = None
    content: list[str] = []
    open_record = False

    def flush() -> None:
        body = "\n".join(content).strip()
        if len(body) > MIN_LINE_RECORD_LENGTH:
            records.append(_draft(title or auto_title(body), body, defaults))

    for line in text.split("\n"):
        stripped = line.strip()

        if not stripped:
            if open_record and content:
                flush()
                title, content, open_record = None, [], False
        elif len(stripped) < 100 and starts_uppercase(stripped) and "." not in stripped:
            if open_record and content:
                flush()
            title, content, open_record = stripped, [], True
        else:
            if not open_record:
                title, content, open_record = None, [], True
            content.append(stripped)

    if open_record and content:
        flush()

    return records


DEFAULT_STRATEGIES: tuple[SegmentationStrategy, ...] = (
    SegmentationStrategy("embedded_json", extract_json_objects),
    SegmentationStrategy("emoji_blocks", extract_emoji_blocks),
    SegmentationStrategy("numbered_list", split_numbered_list),
    SegmentationStrategy("paragraphs", split_paragraphs),
    SegmentationStrategy("lines", split_lines),
)


# ===================
# CASCADE
# ===================

def segment_with_strategy(
    raw_text: str,
    defaults: Optional[SegmentDefaults] = None,
    strategies: Optional[Sequence[SegmentationStrategy]] = None,
) -> SegmentationResult:
    """
    Run the cascade and report which strategy produced the records.

    Args:
        raw_text: Text to segment
        defaults: Category and visibility stamped on every record
        strategies: Cascade to use (DEFAULT_STRATEGIES if None)

    Returns:
        SegmentationResult; empty records and strategy None if nothing matched
    """
    defaults = defaults or SegmentDefaults()
    strategies = DEFAULT_STRATEGIES if strategies is None else strategies
    text = normalize_newlines(raw_text or "")

    if not text:
        return SegmentationResult(records=[])

    for strategy in strategies:
        records = [r for r in strategy.attempt(text, defaults) if r.has_content]
        if records:
            logger.info(
                "segmentation_strategy_matched",
                strategy=strategy.name,
                record_count=len(records),
                text_length=len(text),
            )
            return SegmentationResult(records=records, strategy=strategy.name)
        logger.debug("segmentation_strategy_empty", strategy=strategy.name)

    logger.info("segmentation_found_nothing", text_length=len(text))
    return SegmentationResult(records=[])


def segment(
    raw_text: str,
    defaults: Optional[SegmentDefaults] = None,
    strategies: Optional[Sequence[SegmentationStrategy]] = None,
) -> list[ParsedPromptRecord]:
    """Split free text into draft prompt records (first successful strategy wins)."""
    return segment_with_strategy(raw_text, defaults, strategies).records
