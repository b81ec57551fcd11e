from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from ..csvio.headers import HeaderDetected, detect_shape, objectify_rows
from ..csvio.master import extract_master_usernames
from ..csvio.normalize import is_usable_row, normalize_csv_row
from ..errors import EmptyInputError, ValidationError
from ..models.identity import ExportItem, MasterUsernameEntry
from ..models.processing_result import MODE_HEADER, MODE_MASTER, MODE_POSITIONAL, BulkResult, RowError
from .identity import DEFAULT_HEADSET_PAD, build_payload, validate_identity

"""Bulk roster pipeline: raw rows -> export items.

1. Try the master matrix shape first (label rows in column A).
2. Otherwise detect whether row 0 is a header and normalize row by row.
3. Drop blank rows (skipped), validate the rest. Validation failures are
   recorded per row and never stop the batch.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PROGRESS_EVERY_ROWS",
    "process_rows",
    "master_entry_to_item",
]

PROGRESS_EVERY_ROWS = 200

RowsCallback = Callable[[int, int], None]


def master_entry_to_item(entry: MasterUsernameEntry) -> ExportItem:
    return ExportItem(
        payload=build_payload(entry.username, entry.group_code),
        group_code=entry.group_code,
        username=entry.username,
        teacher=entry.teacher or None,
        period=entry.period or None,
    )


def _process_master(entries: list[MasterUsernameEntry], started: float) -> BulkResult:
    items = [master_entry_to_item(e) for e in entries]
    logger.info(f"master matrix detected: {len(items)} username(s)")
    return BulkResult(
        items=items,
        ok=len(items),
        failed=0,
        skipped=0,
        mode=MODE_MASTER,
        elapsed_seconds=time.perf_counter() - started,
    )


def process_rows(
    rows: Sequence[Sequence[Any]],
    *,
    default_prefix: str | None = None,
    default_pad: int = DEFAULT_HEADSET_PAD,
    detect_header: bool = True,
    on_rows: RowsCallback | None = None,
    progress_every: int = PROGRESS_EVERY_ROWS,
) -> BulkResult:
    """Turn tokenized roster rows into export items.

    Args:
        rows: raw rows of cells (blank lines already removed)
        default_prefix: prefix used when a row has none
        default_pad: headset digit padding used when a row has none
        detect_header: when False, every row is treated as positional data
        on_rows: called with (processed, total) every ``progress_every`` rows
            and once at the end
        progress_every: row interval for ``on_rows``

    Raises:
        EmptyInputError: no rows, or no usable rows after normalization
    """
    started = time.perf_counter()
    if not rows:
        raise EmptyInputError("No rows found in roster.")

    entries = extract_master_usernames(rows)
    if entries:
        return _process_master(entries, started)

    shape = detect_shape(rows[0]) if detect_header else None
    if isinstance(shape, HeaderDetected):
        mode = MODE_HEADER
        records: list[Any] = objectify_rows(rows[1:], shape.columns)
        first_row_no = 2
        logger.debug(f"header row detected ({shape.hits} recognized labels): {shape.columns}")
    else:
        mode = MODE_POSITIONAL
        records = list(rows)
        first_row_no = 1
        logger.debug("no header row detected; reading columns by position")

    items: list[ExportItem] = []
    errors: list[RowError] = []
    ok = failed = skipped = 0
    total = len(records)

    for offset, record in enumerate(records):
        row_no = first_row_no + offset
        canonical = normalize_csv_row(record, has_header=mode == MODE_HEADER)
        if not is_usable_row(canonical):
            skipped += 1
            logger.debug(f"row {row_no}: no group/period/headset -> skipped")
        else:
            try:
                identity = validate_identity(
                    canonical.group,
                    canonical.period,
                    canonical.headset,
                    canonical.prefix,
                    canonical.pad,
                    default_prefix=default_prefix,
                    default_pad=default_pad,
                )
            except ValidationError as e:
                failed += 1
                errors.append(RowError(row=row_no, error_type=f"INVALID_{e.field.upper()}", message=e.message))
                logger.warning(f"row {row_no}: {e.message}")
            else:
                ok += 1
                items.append(ExportItem.from_identity(identity))

        processed = offset + 1
        if on_rows is not None and processed % progress_every == 0 and processed < total:
            on_rows(processed, total)

    if on_rows is not None:
        on_rows(total, total)

    if ok + failed == 0:
        raise EmptyInputError("No usable rows found in roster.")

    return BulkResult(
        items=items,
        ok=ok,
        failed=failed,
        skipped=skipped,
        mode=mode,
        errors=errors,
        elapsed_seconds=time.perf_counter() - started,
    )
