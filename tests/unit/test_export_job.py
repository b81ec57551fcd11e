from __future__ import annotations

import pytest

from headset_qr.errors import ExportInProgressError
from headset_qr.models.export_job import ExportJob


def test_job_lifecycle():
    job = ExportJob()
    assert (job.running, job.cancel_requested) == (False, False)
    job.start()
    assert job.running is True
    job.request_cancel()
    assert job.is_cancelled() is True
    job.reset()
    assert (job.running, job.cancel_requested) == (False, False)


def test_second_start_rejected():
    job = ExportJob()
    job.start()
    with pytest.raises(ExportInProgressError):
        job.start()
    assert job.running is True


def test_cancel_ignored_when_idle():
    job = ExportJob()
    job.request_cancel()
    assert job.cancel_requested is False


def test_start_clears_stale_cancel():
    job = ExportJob(cancel_requested=True)
    job.start()
    assert job.cancel_requested is False
