"""
Text utilities shared by the import parsers.

Title synthesis, title detection and comma-list splitting.
"""

import re
from typing import Any, Optional

NAME_MAX_LENGTH = 50
AUTO_TITLE_WORDS = 5
TITLE_MAX_LENGTH = 100

_WHITESPACE = re.compile(r"\s+")
_LINE_ENDINGS = re.compile(r"\r\n?")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


def truncate_name(text: Optional[str], max_length: int = NAME_MAX_LENGTH) -> str:
    """
    Shorten a line for use as a prompt name.

    - "A short title" → "A short title"
    - 60 characters → first 50 characters + "..."

    Args:
        text: Candidate name (usually the first line of the content)
        max_length: Characters kept before the ellipsis

    Returns:
        Name, or empty string if input is empty
    """
    if not text:
        return ""

    if len(text) > max_length:
        return f"{text[:max_length]}..."

    return text


def first_line(text: Optional[str]) -> str:
    """First line of text, untrimmed."""
    if not text:
        return ""
    return text.split("\n", 1)[0]


def auto_title(text: str, word_count: int = AUTO_TITLE_WORDS) -> str:
    """
    Build a title from the first words of a text block.

    Adds "..." when the text has more words than kept.
    """
    words = _WHITESPACE.split(text.strip())
    title = " ".join(words[:word_count])
    if len(words) > word_count:
        title += "..."
    return title


def starts_uppercase(line: str) -> bool:
    """True when the first character is an ASCII capital letter."""
    return bool(line) and line[0].isascii() and line[0].isupper()


def looks_like_title(line: str) -> bool:
    """
    Heuristic for a heading line inside free text.

    Short, starts with an uppercase letter, no terminal punctuation.
    Ordinary prose that opens with a short sentence fragment matches too.
    """
    line = line.strip()
    return (
        0 < len(line) < TITLE_MAX_LENGTH
        and not line.endswith((".", "!", "?"))
        and starts_uppercase(line)
    )


def normalize_newlines(text: str) -> str:
    """CRLF/CR → LF, 3+ newlines → 2, outer whitespace trimmed."""
    text = _LINE_ENDINGS.sub("\n", text)
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    return text.strip()


def split_comma_list(value: Any) -> list[str]:
    """
    Split a comma-separated cell into trimmed, non-empty items.

    Lists pass through with non-string items dropped; anything else
    yields an empty list.
    """
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []
