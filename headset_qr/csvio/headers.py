from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""Roster shape detection.

A roster either starts with a header row (>= 2 recognizable column labels)
or is strictly positional: group, period, headset, prefix, pad.
Detection is a pure function over the first row; no second parse pass.
"""

__all__ = [
    "HEADER_VOCABULARY",
    "MIN_HEADER_HITS",
    "HeaderDetected",
    "Positional",
    "normalize_key",
    "count_header_hits",
    "detect_shape",
    "is_probably_header_row",
    "objectify_rows",
]

HEADER_VOCABULARY: frozenset[str] = frozenset({
    "group", "group_code", "groupcode",
    "period", "per",
    "headset", "headset_number", "headsetnumber", "headset_no", "headset_num",
    "prefix", "class_prefix", "teacher_prefix",
    "pad", "padding", "headset_pad", "headset_digits",
})
MIN_HEADER_HITS = 2

_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


@dataclass(frozen=True)
class HeaderDetected:
    """Row 0 is a header; ``columns`` are its normalized keys."""
    columns: list[str]
    hits: int


@dataclass(frozen=True)
class Positional:
    """Row 0 is data; rows are read by column index."""
    hits: int


def normalize_key(key: Any) -> str:
    """trim -> lowercase -> whitespace/hyphen runs to '_'.

    >>> normalize_key("  Headset-Number ")
    'headset_number'
    """
    text = "" if key is None else str(key)
    text = text.strip().lower()
    text = _WHITESPACE.sub("_", text)
    return _HYPHENS.sub("_", text)


def count_header_hits(row: Sequence[Any], vocabulary: Iterable[str] = HEADER_VOCABULARY) -> int:
    vocab = set(vocabulary)
    return sum(1 for cell in row if normalize_key(cell) in vocab)


def detect_shape(
    row: Sequence[Any] | None,
    vocabulary: Iterable[str] = HEADER_VOCABULARY,
    min_hits: int = MIN_HEADER_HITS,
) -> HeaderDetected | Positional:
    """Classify the first row of a roster."""
    if not row:
        return Positional(hits=0)
    hits = count_header_hits(row, vocabulary)
    if hits >= min_hits:
        return HeaderDetected(columns=[normalize_key(c) for c in row], hits=hits)
    return Positional(hits=hits)


def is_probably_header_row(row: Sequence[Any] | None) -> bool:
    return isinstance(detect_shape(row), HeaderDetected)


def objectify_rows(rows: Iterable[Sequence[Any]], columns: Sequence[str]) -> list[dict[str, Any]]:
    """Turn data rows into ``{normalized_key: cell}`` mappings.

    Cells beyond the header width are dropped; short rows simply lack keys.
    Duplicate header keys keep the first column's value.
    """
    out: list[dict[str, Any]] = []
    for row in rows:
        mapping: dict[str, Any] = {}
        for key, value in zip(columns, row, strict=False):
            if key and key not in mapping:
                mapping[key] = value
        out.append(mapping)
    return out
