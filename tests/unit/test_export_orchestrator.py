from __future__ import annotations

from unittest.mock import Mock

import pytest

from headset_qr.errors import EmptyInputError, ExportFailure, ExportInProgressError
from headset_qr.models.export_job import ExportJob, ExportPhase
from headset_qr.services.export import export_batched, part_title, run_export_job


class FakeDocument:
    def __init__(self, items, title):
        self.items = list(items)
        self.title = title

    def save(self, path):
        return path

    def output(self):
        return b"%PDF-fake"


def _builder(calls):
    def build(chunk, title):
        calls.append((len(chunk), title))
        return FakeDocument(chunk, title)
    return build


def test_single_part_no_batching_event(make_items):
    calls, events, presented = [], [], []
    result = export_batched(
        make_items(5),
        build_document=_builder(calls),
        present=lambda doc, part, total: presented.append((doc.title, part, total)),
        per_page=12,
        max_pages_per_pdf=10,
        title="QR",
        on_progress=events.append,
    )
    assert result.cancelled is False
    assert result.total_parts == 1
    assert result.done == 5
    assert calls == [(5, "QR")]
    assert presented == [("QR", 1, 1)]
    assert [e.phase for e in events] == [ExportPhase.BUILDING, ExportPhase.OPENED, ExportPhase.DONE]
    assert events[-1].remaining == 0
    assert events[-1].message == "All PDFs generated. (5/5)"


@pytest.mark.parametrize("n, expected_parts", [(1, 1), (4, 1), (5, 2), (8, 2), (9, 3)])
def test_part_count(make_items, n, expected_parts):
    calls = []
    result = export_batched(
        make_items(n), build_document=_builder(calls), present=Mock(), per_page=2, max_pages_per_pdf=2
    )
    assert result.total_parts == expected_parts
    assert len(calls) == expected_parts
    assert sum(size for size, _ in calls) == n


def test_multi_part_events_and_titles(make_items):
    calls, events = [], []
    yields = Mock()
    items = make_items(9)
    export_batched(
        items,
        build_document=_builder(calls),
        present=Mock(),
        per_page=2,
        max_pages_per_pdf=2,
        title="QR",
        on_progress=events.append,
        yield_control=yields,
    )
    assert calls == [(4, "QR (Part 1 of 3)"), (4, "QR (Part 2 of 3)"), (1, "QR (Part 3 of 3)")]
    assert [e.phase for e in events] == [
        ExportPhase.BATCHING,
        ExportPhase.BUILDING, ExportPhase.OPENED,
        ExportPhase.BUILDING, ExportPhase.OPENED,
        ExportPhase.BUILDING, ExportPhase.OPENED,
        ExportPhase.DONE,
    ]
    batching = events[0]
    assert (batching.part, batching.total_parts, batching.done, batching.total, batching.remaining) == (0, 3, 0, 9, 9)
    assert batching.message == "Large export detected (9 QRs). Creating 3 PDFs in batches of 2 pages."
    opened = [e for e in events if e.phase is ExportPhase.OPENED]
    assert [(e.done, e.remaining) for e in opened] == [(4, 5), (8, 1), (9, 0)]
    assert opened[0].message == "Finished PDF 1/3. (4/9 done, 5 remaining)"
    # batching + (building + opened) per part
    assert yields.call_count == 1 + 2 * 3


def test_items_keep_input_order(make_items):
    seen = []
    items = make_items(5)
    export_batched(
        items,
        build_document=lambda chunk, title: seen.extend(i.username for i in chunk) or FakeDocument(chunk, title),
        present=Mock(),
        per_page=1,
        max_pages_per_pdf=2,
    )
    assert seen == [i.username for i in items]


def test_cancel_before_part_k(make_items):
    calls, events, presented = [], [], []

    def is_cancelled():
        return len(presented) >= 2

    result = export_batched(
        make_items(10),
        build_document=_builder(calls),
        present=lambda doc, part, total: presented.append(part),
        per_page=2,
        max_pages_per_pdf=1,
        is_cancelled=is_cancelled,
        on_progress=events.append,
    )
    assert result.cancelled is True
    assert result.total_parts == 5
    assert result.done == 4
    assert presented == [1, 2]
    assert len(calls) == 2
    last = events[-1]
    assert last.phase is ExportPhase.CANCELLED
    assert (last.part, last.done, last.remaining) == (3, 4, 6)
    assert last.message == "Cancelled. 4/10 completed."


def test_cancel_after_build_does_not_present(make_items):
    presented = []
    flags = iter([False, True])
    result = export_batched(
        make_items(3),
        build_document=_builder([]),
        present=lambda doc, part, total: presented.append(part),
        is_cancelled=lambda: next(flags),
    )
    assert result.cancelled is True
    assert result.done == 0
    assert presented == []


def test_empty_items_raise_before_any_event():
    events = []
    build = Mock()
    with pytest.raises(EmptyInputError):
        export_batched([], build_document=build, present=Mock(), on_progress=events.append)
    assert events == []
    build.assert_not_called()


def test_invalid_batch_sizes(make_items):
    with pytest.raises(ValueError):
        export_batched(make_items(1), build_document=Mock(), present=Mock(), per_page=0)


def test_builder_failure_propagates(make_items):
    events = []
    presented = []
    calls = []

    def build(chunk, title):
        calls.append(title)
        if len(calls) == 2:
            raise ExportFailure("boom")
        return FakeDocument(chunk, title)

    with pytest.raises(ExportFailure):
        export_batched(
            make_items(4),
            build_document=build,
            present=lambda doc, part, total: presented.append(part),
            per_page=1,
            max_pages_per_pdf=2,
            on_progress=events.append,
        )
    assert presented == [1]
    assert events[-1].phase is ExportPhase.BUILDING
    assert all(e.phase not in (ExportPhase.DONE, ExportPhase.CANCELLED) for e in events)


def test_part_title():
    assert part_title("QR", 1, 1) == "QR"
    assert part_title("QR", 2, 3) == "QR (Part 2 of 3)"


def test_run_export_job_resets_after_success(make_items):
    job = ExportJob()
    result = run_export_job(job, make_items(2), build_document=_builder([]), present=Mock())
    assert result.cancelled is False
    assert job.running is False


def test_run_export_job_resets_after_failure(make_items):
    job = ExportJob()

    def build(chunk, title):
        assert job.running is True
        raise ExportFailure("boom")

    with pytest.raises(ExportFailure):
        run_export_job(job, make_items(2), build_document=build, present=Mock())
    assert job.running is False
    assert job.cancel_requested is False


def test_run_export_job_uses_job_cancel_flag(make_items):
    job = ExportJob()

    def present(doc, part, total):
        job.request_cancel()

    result = run_export_job(
        job, make_items(6), build_document=_builder([]), present=present, per_page=1, max_pages_per_pdf=2
    )
    assert result.cancelled is True
    assert result.done == 2
    assert job.running is False


def test_run_export_job_rejects_overlap(make_items):
    job = ExportJob()
    nested = []

    def build(chunk, title):
        with pytest.raises(ExportInProgressError):
            run_export_job(job, make_items(1), build_document=Mock(), present=Mock())
        nested.append(True)
        return FakeDocument(chunk, title)

    run_export_job(job, make_items(1), build_document=build, present=Mock())
    assert nested == [True]
    assert job.running is False
