"""
Upload format detection.

The parse strategy comes from the filename extension only. A wrong
extension is reported to the user, never auto-corrected.
"""

from pathlib import PurePath

from models.prompt_import import ParseStrategy

EXTENSION_STRATEGIES = {
    ".csv": ParseStrategy.CSV,
    ".tsv": ParseStrategy.CSV,
    ".json": ParseStrategy.JSON,
    ".jsonl": ParseStrategy.JSONL,
    ".txt": ParseStrategy.TXT,
}


def sniff(filename: str) -> ParseStrategy:
    """
    Pick a parse strategy from the file extension (case-insensitive).

    Args:
        filename: Name of the uploaded file

    Returns:
        ParseStrategy, UNKNOWN for unrecognized or missing extensions
    """
    suffix = PurePath(filename or "").suffix.lower()
    return EXTENSION_STRATEGIES.get(suffix, ParseStrategy.UNKNOWN)


def delimiter_for(filename: str) -> str:
    """Column delimiter for a tabular upload: tab for .tsv, comma otherwise."""
    return "\t" if PurePath(filename or "").suffix.lower() == ".tsv" else ","
