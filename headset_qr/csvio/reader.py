from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from ..errors import CsvParseError

"""Roster tokenizer (pandas).

Reads a roster into ``list[list[str]]`` with no header inference:
- every cell is read as text (group codes like "0004" keep leading zeros)
- no NA conversion ("NA" / "null" stay literal strings)
- blank lines and all-blank rows are dropped (greedy)
- trailing blank cells are trimmed; rows may have different widths

``.xlsx`` rosters are read from their first sheet the same way.
"""

__all__ = [
    "CsvParseError",
    "SUPPORTED_SUFFIXES",
    "read_table_rows",
    "frame_to_rows",
]

SUPPORTED_SUFFIXES = (".csv", ".txt", ".xlsx")


def _max_field_count(path: Path, encoding: str, delimiter: str) -> int:
    # 区切り文字数から列数の上限を見積もる (クォート内の区切りは過大評価になるだけ)
    with path.open("r", encoding=encoding, newline="") as f:
        return max((line.count(delimiter) + 1 for line in f), default=1)


def _cell_text(value: Any) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value)


def frame_to_rows(df: pd.DataFrame) -> list[list[str]]:
    """Convert a header-less DataFrame into trimmed rows of text cells."""
    rows: list[list[str]] = []
    for raw in df.itertuples(index=False, name=None):
        cells = [_cell_text(v) for v in raw]
        while cells and not cells[-1].strip():
            cells.pop()
        if not cells:
            continue
        rows.append(cells)
    return rows


def read_table_rows(path: Path, *, encoding: str = "utf-8-sig", delimiter: str = ",") -> list[list[str]]:
    """Read a roster file into rows of cells.

    Raises:
        CsvParseError: file missing, unsupported, undecodable or malformed
    """
    if not path.exists():
        raise CsvParseError(f"roster file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise CsvParseError(f"unsupported roster type '{suffix}' (expected one of {SUPPORTED_SUFFIXES})")

    try:
        if suffix == ".xlsx":
            df = pd.read_excel(path, sheet_name=0, header=None, dtype=str, keep_default_na=False)
        else:
            width = _max_field_count(path, encoding, delimiter)
            df = pd.read_csv(
                path,
                header=None,
                names=list(range(width)),
                sep=delimiter,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                encoding=encoding,
            )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        raise CsvParseError(f"failed to parse {path.name}: {e}") from e
    return frame_to_rows(df)
