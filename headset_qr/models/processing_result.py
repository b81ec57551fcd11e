from __future__ import annotations

from dataclasses import dataclass, field

from .identity import ExportItem

"""Bulk processing result models.

BulkResult aggregates the outcome of turning a roster into export items:
how many rows produced a QR (ok), how many failed validation (failed) and
how many were dropped as blank before validation (skipped).
"""

__all__ = [
    "RowError",
    "BulkResult",
]

MODE_MASTER = "master"
MODE_HEADER = "header"
MODE_POSITIONAL = "positional"


@dataclass(frozen=True)
class RowError:
    """Per-row validation failure (row is 1-based in the source file)."""
    row: int
    error_type: str  # UPPER_SNAKE
    message: str


@dataclass(frozen=True)
class BulkResult:
    """Aggregated results of a bulk roster run."""
    items: list[ExportItem]
    ok: int
    failed: int
    skipped: int
    mode: str  # master / header / positional
    errors: list[RowError] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total_rows(self) -> int:
        return self.ok + self.failed + self.skipped
