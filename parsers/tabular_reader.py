"""
CSV/TSV reader for tabular prompt uploads.

Reads every cell as text so the row materializer sees the values exactly as
written ("1" stays "1", "yes" stays "yes"). A header row is required.
"""

from dataclasses import dataclass, field
from io import StringIO

import pandas as pd
import structlog

from exceptions import FileParseError

logger = structlog.get_logger(__name__)


@dataclass
class TabularData:
    """Headers and rows of a parsed CSV/TSV file."""
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)

    @property
    def sample_row(self) -> dict[str, str]:
        """First data row, used for content heuristics."""
        return self.rows[0] if self.rows else {}


def read_table(content: str, delimiter: str = ",") -> TabularData:
    """
    Parse delimited text into headers and rows.

    Rows where every cell is empty are dropped; malformed lines are skipped.

    Args:
        content: Decoded file content
        delimiter: "," for CSV, "\\t" for TSV

    Returns:
        TabularData

    Raises:
        FileParseError: If the content has no header row or cannot be parsed
    """
    try:
        df = pd.read_csv(
            StringIO(content),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        raise FileParseError(details={"reason": "File has no header row"})
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        logger.warning("tabular_parse_failed", error=str(e))
        raise FileParseError(details={"reason": str(e)})

    headers = [str(h).strip() for h in df.columns]
    df.columns = headers

    # Whitespace-only rows are blank too
    if len(df):
        df = df[df.apply(lambda row: any(str(v).strip() for v in row), axis=1)]

    rows = df.to_dict(orient="records")

    logger.info(
        "tabular_file_read",
        columns=len(headers),
        rows=len(rows),
        delimiter="tab" if delimiter == "\t" else delimiter,
    )

    return TabularData(headers=headers, rows=rows)
