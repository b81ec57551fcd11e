from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.identity import MasterUsernameEntry
from .headers import normalize_key

"""Master matrix extractor ("Usernames Master" sheet).

Expected structure (column A holds the row label):

    Teacher       | Smith |       | Jones
    Group code    | 0001  |       | 0002
    Class periods | 1     | 2     | 3
    Usernames     |       |       |
                  | alice | bob   | carol
                  | ...

Usernames may start on the "Usernames" label row itself or below it.
Blank label-row cells inherit the value to their left (merged cells in
the spreadsheet export). Every non-empty username from the "Usernames" row down
becomes one entry keyed by its column's group code / teacher / period.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "LABEL_TEACHER",
    "LABEL_GROUP_CODE",
    "LABEL_CLASS_PERIODS",
    "LABEL_USERNAMES",
    "carry_forward",
    "is_row_label",
    "find_label_rows",
    "extract_master_usernames",
]

LABEL_TEACHER = "teacher"
LABEL_GROUP_CODE = "group_code"
LABEL_CLASS_PERIODS = "class_periods"
LABEL_USERNAMES = "usernames"
_LABELS = (LABEL_TEACHER, LABEL_GROUP_CODE, LABEL_CLASS_PERIODS, LABEL_USERNAMES)


def _cell(value: Any) -> str:
    return "" if value is None else str(value).strip()


def carry_forward(values: Sequence[Any]) -> list[str]:
    """Fill blank cells with the nearest preceding non-blank value.

    Leading blanks stay blank. Idempotent.
    """
    out: list[str] = []
    last = ""
    for value in values:
        text = _cell(value)
        if text:
            last = text
        out.append(last)
    return out


def is_row_label(row: Sequence[Any] | None, label: str) -> bool:
    if not row:
        return False
    return normalize_key(row[0]) == normalize_key(label)


def find_label_rows(rows: Sequence[Sequence[Any]]) -> dict[str, int]:
    """Single top-to-bottom scan recording the first row index per label."""
    found: dict[str, int] = {}
    for idx, row in enumerate(rows):
        if not row:
            continue
        key = normalize_key(row[0])
        if key in _LABELS and key not in found:
            found[key] = idx
            if len(found) == len(_LABELS):
                break
    return found


def _label_values(rows: Sequence[Sequence[Any]], found: dict[str, int], label: str, width: int) -> list[str]:
    idx = found.get(label)
    if idx is None:
        return []
    values = list(rows[idx])[1:]
    # 末尾の結合セルは空欄として読まれるため、グリッド幅まで伸ばしてから carry-forward
    values += [""] * (width - len(values))
    return carry_forward(values)


def extract_master_usernames(rows: Sequence[Sequence[Any]]) -> list[MasterUsernameEntry]:
    """Flatten a master matrix grid into username entries.

    Returns an empty list when the grid lacks a "Group code" or "Usernames"
    label row; falling back to the row-per-user path is the caller's job.
    """
    if not rows:
        return []

    found = find_label_rows(rows)
    if LABEL_GROUP_CODE not in found or LABEL_USERNAMES not in found:
        return []

    width = max(len(row) for row in rows) - 1
    group_codes = _label_values(rows, found, LABEL_GROUP_CODE, width)
    teachers = _label_values(rows, found, LABEL_TEACHER, width)
    periods = _label_values(rows, found, LABEL_CLASS_PERIODS, width)

    out: list[MasterUsernameEntry] = []
    skipped = 0
    # ラベル行自体の B 列以降もユーザー名として扱う
    for row in rows[found[LABEL_USERNAMES]:]:
        cells = list(row)[1:]
        for col, raw in enumerate(cells[: len(group_codes)]):
            username = _cell(raw)
            if not username:
                continue
            group_code = group_codes[col]
            if not group_code:
                skipped += 1
                continue
            out.append(
                MasterUsernameEntry(
                    group_code=group_code,
                    username=username,
                    teacher=teachers[col] if col < len(teachers) else "",
                    period=periods[col] if col < len(periods) else "",
                )
            )
    if skipped:
        logger.debug(f"master matrix: skipped {skipped} username cell(s) without group code")
    return out
