from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from ..errors import EmptyInputError
from ..models.export_job import ExportJob, ExportPhase, ExportResult, ProgressEvent
from ..models.identity import ExportItem

"""Batched export orchestrator.

Splits a (possibly very large) item list into parts of
``per_page * max_pages_per_pdf`` items and drives the document builder once
per part, in order:

    [batching] -> for each part: building -> (opened | cancelled) -> done

Cancellation is cooperative and polled only at part boundaries (before a
part starts and after its document is built); an in-flight build is never
interrupted. Builder exceptions propagate to the caller unchanged and no
terminal event is emitted for the failed part.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_TITLE",
    "DEFAULT_PER_PAGE",
    "DEFAULT_MAX_PAGES_PER_PDF",
    "DocumentHandle",
    "export_batched",
    "run_export_job",
    "part_title",
]

DEFAULT_TITLE = "Starborn Academy - QR Codes"
DEFAULT_PER_PAGE = 12
DEFAULT_MAX_PAGES_PER_PDF = 10


class DocumentHandle(Protocol):
    def save(self, path: Any) -> Any: ...

    def output(self) -> bytes: ...


BuildDocument = Callable[[Sequence[ExportItem], str], DocumentHandle]
Present = Callable[[DocumentHandle, int, int], Any]
ProgressSink = Callable[[ProgressEvent], None]


def _noop(*_args: Any) -> None:
    return None


def _never_cancelled() -> bool:
    return False


def part_title(title: str, part: int, total_parts: int) -> str:
    if total_parts > 1:
        return f"{title} (Part {part} of {total_parts})"
    return title


def export_batched(
    items: Sequence[ExportItem],
    *,
    build_document: BuildDocument,
    present: Present,
    per_page: int = DEFAULT_PER_PAGE,
    max_pages_per_pdf: int = DEFAULT_MAX_PAGES_PER_PDF,
    title: str = DEFAULT_TITLE,
    is_cancelled: Callable[[], bool] | None = None,
    on_progress: ProgressSink | None = None,
    yield_control: Callable[[], None] | None = None,
) -> ExportResult:
    """Build and present one document per part with progress + cancel support.

    Args:
        items: export items in layout order
        build_document: ``(slice, part_title) -> document``
        present: ``(document, part, total_parts)``; hands a built part to the user
        per_page: items per page
        max_pages_per_pdf: pages per document
        title: base title; suffixed with "(Part i of N)" when N > 1
        is_cancelled: polled before each part and after each build
        on_progress: receives every ProgressEvent
        yield_control: voluntary yield point between phases

    Raises:
        EmptyInputError: no items
        ValueError: per_page or max_pages_per_pdf < 1
    """
    if not items:
        raise EmptyInputError("No items to export.")
    if per_page < 1 or max_pages_per_pdf < 1:
        raise ValueError(f"per_page and max_pages_per_pdf must be >= 1 (got {per_page}, {max_pages_per_pdf})")

    emit = on_progress or _noop
    cancelled = is_cancelled or _never_cancelled
    pause = yield_control or _noop

    total = len(items)
    items_per_pdf = per_page * max_pages_per_pdf
    total_parts = math.ceil(total / items_per_pdf)

    def event(phase: ExportPhase, part: int, done: int, message: str, remaining: int | None = None) -> None:
        emit(
            ProgressEvent(
                phase=phase,
                part=part,
                total_parts=total_parts,
                done=done,
                total=total,
                remaining=total - done if remaining is None else remaining,
                message=message,
            )
        )

    if total_parts > 1:
        event(
            ExportPhase.BATCHING,
            0,
            0,
            f"Large export detected ({total} QRs). Creating {total_parts} PDFs "
            f"in batches of {max_pages_per_pdf} pages.",
        )
        pause()

    done = 0
    for index in range(total_parts):
        part = index + 1
        if cancelled():
            event(ExportPhase.CANCELLED, part, done, f"Cancelled. {done}/{total} completed.")
            logger.info(f"export cancelled before part {part}/{total_parts} ({done}/{total} done)")
            return ExportResult(cancelled=True, total_parts=total_parts, done=done)

        start = index * items_per_pdf
        chunk = items[start:start + items_per_pdf]

        event(ExportPhase.BUILDING, part, done, f"Building PDF {part}/{total_parts} ({len(chunk)} QRs)...")
        pause()

        document = build_document(chunk, part_title(title, part, total_parts))

        if cancelled():
            event(ExportPhase.CANCELLED, part, done, f"Cancelled after building PDF {part}.")
            logger.info(f"export cancelled after building part {part}/{total_parts}")
            return ExportResult(cancelled=True, total_parts=total_parts, done=done)

        present(document, part, total_parts)
        done += len(chunk)

        event(
            ExportPhase.OPENED,
            part,
            done,
            f"Finished PDF {part}/{total_parts}. ({done}/{total} done, {total - done} remaining)",
        )
        pause()

    event(ExportPhase.DONE, total_parts, done, f"All PDFs generated. ({done}/{total})", remaining=0)
    return ExportResult(cancelled=False, total_parts=total_parts, done=done)


def run_export_job(job: ExportJob, items: Sequence[ExportItem], **kwargs: Any) -> ExportResult:
    """Run ``export_batched`` under the job guard.

    The job is marked running first (a concurrent request raises
    ExportInProgressError and is not queued) and is always reset afterwards,
    whether the export succeeded, failed or was cancelled.
    """
    job.start()
    try:
        kwargs.setdefault("is_cancelled", job.is_cancelled)
        return export_batched(items, **kwargs)
    finally:
        job.reset()
