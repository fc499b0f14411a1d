"""
Conversion worker: drives one job from PENDING to a terminal state.

Each submitted job runs on its own daemon thread. The request that
created the job never waits for it. There is no concurrency cap and
no retry: a failed job stays FAILED.

Per job:
1. Job missing? Abort silently (the client already has its response)
2. PENDING → PROCESSING
3. Create the output directory
4. Run the engine, forwarding progress into the store
5. PROCESSING → COMPLETED (output_url) or FAILED (error)

Exceptions never leave the worker thread. Every failure ends up on the
job record and in the log.
"""

import logging
import math
import threading
from pathlib import Path
from typing import Optional

from ..jobs.models import JobStatus
from ..jobs.store import JobStore
from .base import TranscodeEngine, PathLike
from .errors import TranscodeError
from .paths import output_filename_for, public_url_for

logger = logging.getLogger(__name__)


class ProgressTracker:
    """
    Progress callback handed to the engine for one job.

    FFmpeg percentages are noisy at the edges. Only whole percents in
    (0, 100] that are strictly higher than the last stored value are
    written, so stored progress never moves backwards.
    """

    def __init__(self, store: JobStore, job_id: int):
        self._store = store
        self._job_id = job_id
        self.last_percent = 0

    def __call__(self, percent: float) -> None:
        if percent is None or not math.isfinite(percent):
            return

        value = math.floor(percent + 0.5)
        if value <= 0 or value > 100 or value <= self.last_percent:
            return

        try:
            self._store.update_progress(self._job_id, value)
        except Exception:
            # A lost progress write must not abort the conversion
            logger.exception(f"[Worker] Failed to store progress {value}% for job {self._job_id}")
            return

        self.last_percent = value


class ConversionWorker:
    """
    Runs conversions in the background and records their outcome.

    The worker is the only writer of status and progress once a job
    has been created.
    """

    def __init__(
        self,
        store: JobStore,
        engine: TranscodeEngine,
        output_dir: PathLike,
        public_prefix: str = "/converted",
    ):
        """
        Args:
            store: Job store to read and update
            engine: Transcoder used for every job
            output_dir: Directory receiving converted files
            public_prefix: URL prefix under which output_dir is served
        """
        self._store = store
        self._engine = engine
        self.output_dir = Path(output_dir)
        self.public_prefix = public_prefix

    def submit(self, job_id: int, input_path: PathLike) -> threading.Thread:
        """
        Start converting a job in the background and return immediately.

        Returns:
            The started thread (callers normally ignore it)
        """
        thread = threading.Thread(
            target=self.process,
            args=(job_id, input_path),
            name=f"convert-job-{job_id}",
            daemon=True,
        )
        thread.start()
        logger.info(f"[Worker] Queued job {job_id} on thread {thread.name}")
        return thread

    def process(self, job_id: int, input_path: PathLike) -> bool:
        """
        Convert one job synchronously.

        Args:
            job_id: Job to convert
            input_path: Stored upload for this job

        Returns:
            True if the job reached COMPLETED, False otherwise
        """
        try:
            job = self._store.get(job_id)
            if job is None:
                logger.warning(f"[Worker] Job {job_id} no longer exists, skipping conversion")
                return False

            self._store.update_status(job_id, JobStatus.PROCESSING)

            self.output_dir.mkdir(parents=True, exist_ok=True)

            output_filename = output_filename_for(input_path)
            output_path = self.output_dir / output_filename
            output_url = public_url_for(output_filename, self.public_prefix)

            logger.info(
                f"[Worker] Starting conversion for job {job_id} with {self._engine.name}: "
                f"{input_path} -> {output_path}"
            )

            try:
                self._engine.transcode(
                    input_path, output_path, ProgressTracker(self._store, job_id)
                )
            except TranscodeError as e:
                logger.error(f"[Worker] Job {job_id} failed: {e}")
                self._mark_failed(job_id, str(e))
                return False

            self._store.update_status(job_id, JobStatus.COMPLETED, output_url=output_url)
            logger.info(f"[Worker] Job {job_id} completed: {output_url}")
            return True

        except Exception as e:
            logger.exception(f"[Worker] Unexpected error converting job {job_id}: {e}")
            self._mark_failed(job_id, str(e) or "Unknown error")
            return False

    def _mark_failed(self, job_id: int, message: Optional[str]) -> None:
        """Record a failure. Errors here are logged, never raised."""
        try:
            self._store.update_status(job_id, JobStatus.FAILED, error=message or "Unknown error")
        except Exception:
            logger.exception(f"[Worker] Could not mark job {job_id} as failed")
