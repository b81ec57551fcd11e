from __future__ import annotations

import re

from headset_qr.models.export_job import ExportResult
from headset_qr.models.processing_result import BulkResult
from headset_qr.services.summary import render_status_message, render_summary_line

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+mode=(master|header|positional)\s+rows=([0-9]+)\s+generated=([0-9]+)\s+"
    r"failed=([0-9]+)\s+skipped=([0-9]+)\s+parts=([0-9]+)\s+cancelled=(yes|no)\s+"
    r"elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def _result(ok=10, failed=0, skipped=0, elapsed=2.0) -> BulkResult:
    return BulkResult(items=[], ok=ok, failed=failed, skipped=skipped, mode="header", elapsed_seconds=elapsed)


def test_render_summary_line_all_success():
    line = render_summary_line(_result(), ExportResult(cancelled=False, total_parts=1, done=10))
    match = SUMMARY_PATTERN.match(line)
    assert match, line
    assert match.group(2) == "10"
    assert match.group(3) == "10"
    assert match.group(6) == "1"
    assert match.group(7) == "no"
    assert match.group(8) == "2"


def test_render_summary_line_partial_and_cancelled():
    line = render_summary_line(_result(ok=7, failed=2, skipped=1, elapsed=1.234),
                               ExportResult(cancelled=True, total_parts=3, done=4))
    assert line == (
        "SUMMARY mode=header rows=10 generated=7 failed=2 skipped=1 parts=3 cancelled=yes elapsed_sec=1.23"
    )


def test_render_summary_line_without_export():
    line = render_summary_line(_result(elapsed=0))
    assert "parts=0 cancelled=no elapsed_sec=0" in line


def test_render_summary_line_tiny_elapsed_not_scientific():
    line = render_summary_line(_result(elapsed=0.000123))
    assert line.endswith("elapsed_sec=0.000123")


def test_render_status_message():
    assert render_status_message(_result(ok=12, failed=1)) == "Done. 12 generated, 1 failed."
    assert render_status_message(_result(ok=3, failed=0, skipped=2)) == (
        "Done. 3 generated, 0 failed. (2 blank row(s) skipped)"
    )
