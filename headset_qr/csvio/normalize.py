from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..models.identity import CanonicalRow

"""Row normalizer: locate and rename roster fields into CanonicalRow.

Header rows resolve each canonical field through an ordered synonym list
("pick first present": the earlier synonym wins when a sheet has two
matching columns). Positional rows are read by index.
No validation is performed here.
"""

__all__ = [
    "FIELD_SYNONYMS",
    "POSITIONAL_FIELDS",
    "pick_first",
    "normalize_csv_row",
    "is_usable_row",
]

FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "group": ("group", "group_code", "groupcode"),
    "period": ("period", "per"),
    "headset": ("headset", "headset_number", "headsetnumber", "headset_no", "headset_num"),
    "prefix": ("prefix", "class_prefix", "teacher_prefix"),
    "pad": ("pad", "padding", "headset_pad", "headset_digits"),
}

POSITIONAL_FIELDS: tuple[str, ...] = ("group", "period", "headset", "prefix", "pad")


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def pick_first(row: Mapping[str, Any], keys: Sequence[str]) -> str | None:
    """Return the first present, non-empty value among ``keys``."""
    for key in keys:
        value = _clean(row.get(key))
        if value is not None:
            return value
    return None


def normalize_csv_row(
    row: Mapping[str, Any] | Sequence[Any],
    has_header: bool = True,
    synonyms: Mapping[str, Sequence[str]] = FIELD_SYNONYMS,
) -> CanonicalRow:
    """Convert one roster row into a CanonicalRow.

    Args:
        row: mapping of normalized header keys (header mode) or list of cells
        has_header: selects the header-object or positional path
        synonyms: ordered synonym keys per canonical field
    """
    if not has_header:
        cells = list(row)  # type: ignore[arg-type]
        values = {
            name: _clean(cells[idx]) if idx < len(cells) else None
            for idx, name in enumerate(POSITIONAL_FIELDS)
        }
        return CanonicalRow(**values)

    mapping: Mapping[str, Any] = row  # type: ignore[assignment]
    return CanonicalRow(**{name: pick_first(mapping, keys) for name, keys in synonyms.items()})


def is_usable_row(row: CanonicalRow) -> bool:
    """A row is usable when group, period or headset is non-empty."""
    return any(v for v in (row.group, row.period, row.headset))
