from __future__ import annotations

from ..models.export_job import ExportResult
from ..models.processing_result import BulkResult

"""Summary line rendering.

SUMMARY line format:
    SUMMARY mode={mode} rows={total} generated={ok} failed={failed}
    skipped={skipped} parts={parts} cancelled={yes|no} elapsed_sec={elapsed}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}".rstrip("0").rstrip(".")


def render_status_message(result: BulkResult) -> str:
    """Human readable status, e.g. "Done. 12 generated, 1 failed."."""
    message = f"Done. {result.ok} generated, {result.failed} failed."
    if result.skipped:
        message += f" ({result.skipped} blank row(s) skipped)"
    return message


def render_summary_line(result: BulkResult, export: ExportResult | None = None, elapsed_seconds: float | None = None) -> str:
    """Render the SUMMARY line for a bulk run.

    >>> r = BulkResult(items=[], ok=3, failed=1, skipped=0, mode="header", elapsed_seconds=2.0)
    >>> render_summary_line(r)
    'SUMMARY mode=header rows=4 generated=3 failed=1 skipped=0 parts=0 cancelled=no elapsed_sec=2'
    """
    elapsed = result.elapsed_seconds if elapsed_seconds is None else elapsed_seconds
    parts = export.total_parts if export is not None else 0
    cancelled = "yes" if export is not None and export.cancelled else "no"
    return (
        f"SUMMARY mode={result.mode} "
        f"rows={result.total_rows} "
        f"generated={result.ok} "
        f"failed={result.failed} "
        f"skipped={result.skipped} "
        f"parts={parts} "
        f"cancelled={cancelled} "
        f"elapsed_sec={_format_seconds(elapsed)}"
    )
