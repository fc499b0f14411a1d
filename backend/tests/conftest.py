"""
Shared fixtures for the mp4convert test suite.

No test invokes a real FFmpeg. FakeEngine stands in for the transcoder and
replays a scripted sequence of progress events and a terminal outcome.
"""

import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from mp4convert.config import Settings
from mp4convert.execution.base import TranscodeEngine
from mp4convert.execution.errors import TranscodeError
from mp4convert.jobs.models import JobStatus
from mp4convert.jobs.store import InMemoryJobStore
from mp4convert.main import create_app


class FakeEngine(TranscodeEngine):
    """
    Scripted transcoder.

    Emits each value in `progress`, then either raises TranscodeError(error)
    or writes a small output file.
    """

    def __init__(self, progress: Sequence[float] = (50.0,), error: Optional[str] = None):
        self.progress = list(progress)
        self.error = error
        self.calls: List[Tuple[Path, Path]] = []

    @property
    def name(self) -> str:
        return "Fake"

    @property
    def available(self) -> bool:
        return True

    def transcode(self, input_path, output_path, on_progress) -> None:
        self.calls.append((Path(input_path), Path(output_path)))
        for percent in self.progress:
            on_progress(percent)
        if self.error:
            raise TranscodeError(self.error)
        Path(output_path).write_bytes(b"mp4:" + Path(input_path).read_bytes())


@pytest.fixture
def settings(tmp_path):
    """Settings with every directory under a temporary data dir."""
    return Settings.for_data_dir(tmp_path / "data")


@pytest.fixture
def store():
    return InMemoryJobStore()


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def app(settings, store, engine):
    return create_app(settings=settings, store=store, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def wait_for_terminal(client: TestClient, job_id: int, timeout: float = 5.0) -> dict:
    """Poll GET /api/jobs/{id} until the job is COMPLETED or FAILED."""
    deadline = time.monotonic() + timeout
    while True:
        body = client.get(f"/api/jobs/{job_id}").json()
        if body["status"] in (JobStatus.COMPLETED.value, JobStatus.FAILED.value):
            return body
        if time.monotonic() > deadline:
            raise AssertionError(f"Job {job_id} still {body['status']} after {timeout}s")
        time.sleep(0.02)
