"""
JSON and JSONL readers for prompt uploads.

Standard JSON is tried first (array, single object, or an object holding an
array). Files that fail to parse go through line-by-line JSONL parsing and
then brace-balance recovery, which rebuilds multi-line objects separated
by trailing commas. Callers fall back to the free-text segmenter when
nothing is recovered.
"""

import json
import re
from typing import Any, Optional

import structlog

from models.prompt_import import (
    ParsedPromptRecord,
    PromptStatus,
    SegmentDefaults,
    SemanticField,
)
from parsers.row_materializer import coerce_value
from utils.text_utils import split_comma_list

logger = structlog.get_logger(__name__)

CONTENT_KEYS = ("prompt", "content", "promptContent", "positive_prompt", "negative_prompt")

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_TRAILING_SEPARATOR = re.compile(r",\s*$")

# Keys read explicitly by record_from_json; never copied to extra.
_HANDLED_KEYS = {
    "name", "title", "description", "category", "tags", "status",
    "isPublic", "public", "isNsfw", "nsfw",
}
_SEMANTIC_KEYS = {field.value: field for field in SemanticField}


def strip_trailing_commas(text: str) -> str:
    """Remove commas directly before a closing brace/bracket and at the end."""
    text = _TRAILING_COMMA.sub(r"\1", text.strip())
    return _TRAILING_SEPARATOR.sub("", text)


def parse_json_document(content: str) -> list[dict]:
    """
    Parse a well-formed JSON document into prompt objects.

    - [ {...}, {...} ] → the list
    - { "prompts": [ ... ] } → the first array-valued property
    - { ... } → [ {...} ]

    Raises:
        json.JSONDecodeError: If the content is not valid JSON
    """
    data = json.loads(content)

    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]

    if isinstance(data, dict):
        for value in data.values():
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
        return [data]

    return []


def parse_json_lines(content: str) -> list[dict]:
    """Parse one JSON object per line; bad lines are skipped."""
    objects = []
    for line_number, line in enumerate(content.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(strip_trailing_commas(line))
        except json.JSONDecodeError:
            logger.debug("jsonl_line_skipped", line=line_number, preview=line[:80])
            continue
        if isinstance(obj, dict):
            objects.append(obj)
    return objects


def recover_objects(content: str) -> list[dict]:
    """
    Rebuild objects from malformed multi-line JSON by counting braces.

    Lines are joined until braces balance, then the accumulated text is
    parsed with trailing commas removed. Only objects with both a name and
    content are kept.
    """
    objects = []
    buffer = ""
    depth = 0

    for line in content.splitlines():
        stripped = line.strip()
        if not buffer:
            # Noise between objects: blank lines, "[", "]"
            if "{" not in stripped:
                continue
            stripped = stripped[stripped.index("{"):]

        depth += stripped.count("{") - stripped.count("}")
        buffer = f"{buffer} {stripped}" if buffer else stripped

        if depth <= 0:
            obj = _loads_or_none(buffer)
            if _is_prompt_object(obj):
                objects.append(obj)
            buffer = ""
            depth = 0

    if buffer:
        obj = _loads_or_none(buffer)
        if _is_prompt_object(obj):
            objects.append(obj)

    logger.debug("json_objects_recovered", count=len(objects))
    return objects


def _loads_or_none(text: str) -> Optional[dict]:
    # The closing "]" of a surrounding array can trail the last object
    text = strip_trailing_commas(strip_trailing_commas(text).rstrip("]"))
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return None
    return obj if isinstance(obj, dict) else None


def _is_prompt_object(obj: Optional[dict]) -> bool:
    return bool(obj and obj.get("name") and obj.get("content"))


def read_json_objects(content: str, jsonl: bool = False) -> list[dict]:
    """
    Best-effort extraction of prompt objects from a JSON/JSONL upload.

    Args:
        content: Decoded file content
        jsonl: True for .jsonl uploads (line parsing is tried first)

    Returns:
        Objects found, possibly empty
    """
    if jsonl:
        objects = parse_json_lines(content)
        if objects:
            return objects

    try:
        return parse_json_document(content)
    except json.JSONDecodeError as e:
        logger.info("json_parse_failed_trying_recovery", error=str(e))

    if not jsonl:
        objects = parse_json_lines(content)
        if objects:
            return objects

    return recover_objects(content)


def record_from_json(
    item: dict[str, Any],
    position: int,
    defaults: Optional[SegmentDefaults] = None,
    content_keys: tuple[str, ...] = CONTENT_KEYS,
    draft_only: bool = False,
) -> ParsedPromptRecord:
    """
    Convert one JSON object to a prompt record.

    Args:
        item: Source object
        position: 1-based position, used for "Prompt N" names
        defaults: Category / visibility applied when the object has none
        content_keys: Keys searched, in order, for the prompt text
        draft_only: Ignore the object's status (free-text imports)

    Returns:
        ParsedPromptRecord (may lack content; callers filter)
    """
    defaults = defaults or SegmentDefaults()

    content_key = next((k for k in content_keys if item.get(k)), None)
    content = item[content_key] if content_key else ""

    name = item.get("name") or item.get("title") or f"Prompt {position}"
    tags = item.get("tags")
    status = PromptStatus.PUBLISHED if item.get("status") == "published" and not draft_only else PromptStatus.DRAFT

    fields: dict[str, Any] = {
        "name": str(name),
        "prompt_content": str(content),
        "description": str(item["description"]) if item.get("description") else None,
        "category": str(item["category"]) if item.get("category") else defaults.category,
        "tags": split_comma_list(tags) if tags else [],
        "status": status,
        "is_public": bool(item.get("isPublic") or item.get("public") or defaults.is_public),
        "is_nsfw": bool(item.get("isNsfw") or item.get("nsfw")),
    }

    extra = {}
    for key, value in item.items():
        if key in _HANDLED_KEYS or key == content_key:
            continue
        field = _SEMANTIC_KEYS.get(key)
        if field is not None and field != SemanticField.PROMPT_CONTENT and value not in (None, ""):
            fields[field.attribute] = coerce_value(field, value)
        else:
            extra[key] = value
    fields["extra"] = extra

    return ParsedPromptRecord(**fields)
