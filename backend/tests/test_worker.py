"""
Conversion worker tests.

Runs ConversionWorker.process synchronously against a FakeEngine, so each
test sees the final job state without waiting on threads.
"""

from unittest.mock import MagicMock

import pytest

from conftest import FakeEngine
from mp4convert.execution.worker import ConversionWorker, ProgressTracker
from mp4convert.jobs.models import JobCreate, JobStatus
from mp4convert.jobs.store import InMemoryJobStore


@pytest.fixture
def upload(tmp_path):
    path = tmp_path / "uploads" / "1700000000000-42-clip.flv"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"x" * 1000)
    return path


def _pending_job(store, name="clip.flv"):
    return store.create(JobCreate(original_name=name, mime_type="video/x-flv", size=1000))


# =============================================================================
# Worker lifecycle
# =============================================================================

class TestProcess:

    def test_success_completes_job(self, tmp_path, upload):
        store = InMemoryJobStore()
        engine = FakeEngine(progress=(25.0, 50.0, 75.0))
        worker = ConversionWorker(store, engine, tmp_path / "converted")
        job = _pending_job(store)

        assert worker.process(job.id, upload) is True

        done = store.get(job.id)
        assert done.status == JobStatus.COMPLETED
        assert done.progress == 100
        assert done.output_url == "/converted/converted_1700000000000-42-clip.mp4"
        assert done.error is None
        assert (tmp_path / "converted" / "converted_1700000000000-42-clip.mp4").is_file()

    def test_engine_failure_marks_failed(self, tmp_path, upload):
        store = InMemoryJobStore()
        worker = ConversionWorker(store, FakeEngine(error="unsupported codec"), tmp_path / "out")
        job = _pending_job(store)

        assert worker.process(job.id, upload) is False

        failed = store.get(job.id)
        assert failed.status == JobStatus.FAILED
        assert failed.error == "unsupported codec"
        assert failed.output_url is None

    def test_progress_kept_on_failure(self, tmp_path, upload):
        store = InMemoryJobStore()
        engine = FakeEngine(progress=(30.0,), error="boom")
        worker = ConversionWorker(store, engine, tmp_path / "out")
        job = _pending_job(store)

        worker.process(job.id, upload)

        assert store.get(job.id).progress == 30

    def test_missing_job_is_skipped(self, tmp_path, upload):
        store = InMemoryJobStore()
        engine = FakeEngine()
        worker = ConversionWorker(store, engine, tmp_path / "out")

        assert worker.process(999, upload) is False
        assert engine.calls == []

    def test_unexpected_error_marks_failed(self, tmp_path, upload):
        store = InMemoryJobStore()
        output_dir = tmp_path / "not-a-dir"
        output_dir.write_text("occupied")
        worker = ConversionWorker(store, FakeEngine(), output_dir)
        job = _pending_job(store)

        assert worker.process(job.id, upload) is False

        failed = store.get(job.id)
        assert failed.status == JobStatus.FAILED
        assert failed.error

    def test_custom_public_prefix(self, tmp_path, upload):
        store = InMemoryJobStore()
        worker = ConversionWorker(store, FakeEngine(), tmp_path / "out", public_prefix="/media/")
        job = _pending_job(store)

        worker.process(job.id, upload)

        assert store.get(job.id).output_url.startswith("/media/converted_")

    def test_submit_runs_in_background(self, tmp_path, upload):
        store = InMemoryJobStore()
        worker = ConversionWorker(store, FakeEngine(), tmp_path / "out")
        job = _pending_job(store)

        thread = worker.submit(job.id, upload)
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert thread.daemon
        assert store.get(job.id).status == JobStatus.COMPLETED


# =============================================================================
# Progress filtering
# =============================================================================

class TestProgressTracker:

    def test_only_increasing_values_in_range_are_stored(self):
        store = MagicMock()
        tracker = ProgressTracker(store, job_id=7)

        for percent in [0, -5, 50, 40, 50.4, 80, 150, 100]:
            tracker(percent)

        stored = [c.args for c in store.update_progress.call_args_list]
        assert stored == [(7, 50), (7, 80), (7, 100)]
        assert tracker.last_percent == 100

    def test_rounds_half_up(self):
        store = MagicMock()
        tracker = ProgressTracker(store, job_id=1)

        tracker(12.5)
        tracker(12.6)
        tracker(13.4)

        stored = [c.args[1] for c in store.update_progress.call_args_list]
        assert stored == [13]

    def test_non_finite_values_ignored(self):
        store = MagicMock()
        tracker = ProgressTracker(store, job_id=1)

        tracker(float("nan"))
        tracker(float("inf"))

        store.update_progress.assert_not_called()

    def test_store_error_does_not_raise(self):
        store = MagicMock()
        store.update_progress.side_effect = RuntimeError("database is locked")
        tracker = ProgressTracker(store, job_id=1)

        tracker(10)

        assert tracker.last_percent == 0
