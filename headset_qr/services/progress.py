from __future__ import annotations

import logging
import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.export_job import ExportPhase, ProgressEvent

"""Progress display service with tqdm (TTY only).

- a single tqdm instance per tracker; disabled in non-TTY environments (CI)
- in non-TTY mode export status messages go to the log instead
- ProgressTracker consumes both bulk row ticks and export ProgressEvents
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and progress bars should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over a known total (rows or QRs)."""

    def __init__(self, total: int, *, description: str = "Processing", unit: str = "row") -> None:
        self.total = total
        self.description = description
        self.position = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit=unit,
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def update_to(self, position: int) -> None:
        """Move the bar to an absolute position (never backwards)."""
        step = position - self.position
        if step <= 0:
            return
        self.position = position
        if self.enabled and self.pbar is not None:
            self.pbar.update(step)

    def on_rows(self, processed: int, total: int) -> None:
        """Callback for the bulk pipeline row ticks."""
        self.update_to(processed)

    def on_export_event(self, event: ProgressEvent) -> None:
        """Callback for export orchestrator events."""
        self.update_to(event.done)
        if self.enabled and self.pbar is not None:
            if event.phase in (ExportPhase.BUILDING, ExportPhase.OPENED):
                self.pbar.set_description(f"{self.description} ({event.part}/{event.total_parts})")
            self.pbar.set_postfix(remaining=event.remaining)
            if event.phase in (ExportPhase.BATCHING, ExportPhase.CANCELLED, ExportPhase.DONE):
                self.pbar.write(event.message)
        else:
            logger.info(event.message)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
