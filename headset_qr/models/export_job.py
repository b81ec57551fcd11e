from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import ExportInProgressError

"""Export job state, progress events and results.

ExportJob lifecycle: idle -> running -> idle. The job is owned by the caller
(CLI) and passed by reference into the export service; cancellation is a
cooperative flag polled between parts.
"""

__all__ = [
    "ExportPhase",
    "ProgressEvent",
    "ExportResult",
    "ExportJob",
]


class ExportPhase(Enum):
    """Phase of a progress event emitted by the export orchestrator.

    batching -> (building -> opened)* -> done
    building/opened may be interrupted by cancelled at a part boundary.
    """
    BATCHING = "batching"
    BUILDING = "building"
    CANCELLED = "cancelled"
    OPENED = "opened"
    DONE = "done"


@dataclass(frozen=True)
class ProgressEvent:
    """Single status update; the only channel between orchestrator and UI."""
    phase: ExportPhase
    part: int  # 1-based (0 for batching)
    total_parts: int
    done: int
    total: int
    remaining: int
    message: str


@dataclass(frozen=True)
class ExportResult:
    cancelled: bool
    total_parts: int
    done: int = 0


@dataclass
class ExportJob:
    """Process-wide export flag pair guarding against overlapping exports."""
    running: bool = False
    cancel_requested: bool = False

    def start(self) -> None:
        """Mark the job running.

        Raises:
            ExportInProgressError: another export is already running (never queued)
        """
        if self.running:
            raise ExportInProgressError("an export is already running")
        self.running = True
        self.cancel_requested = False

    def request_cancel(self) -> None:
        # 実行中のみ有効。idle 時の要求は無視
        if self.running:
            self.cancel_requested = True

    def is_cancelled(self) -> bool:
        return self.cancel_requested

    def reset(self) -> None:
        self.running = False
        self.cancel_requested = False
