"""
Job store interface and in-memory implementation.

The store is the single source of truth for job status and progress.
The API holds a store instance; the conversion worker writes through it.

Writes against an unknown job id are silent no-ops. The worker may race
a deletion from the API, and an orphaned write to a vanished job is
expected and harmless.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import ConversionJob, JobCreate, JobStatus, utc_now
from .state import validate_job_transition


def apply_status(
    job: ConversionJob,
    status: JobStatus,
    output_url: Optional[str] = None,
    error: Optional[str] = None,
) -> ConversionJob:
    """
    Return a copy of job moved to status, with terminal fields set.

    COMPLETED forces progress to 100 and clears error.
    FAILED clears output_url.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
        ValueError: If a terminal status is missing its outcome field
    """
    validate_job_transition(job.status, status)

    if status == JobStatus.COMPLETED:
        if not output_url:
            raise ValueError("A completed job requires an output_url")
        return job.model_copy(update={
            "status": status,
            "output_url": output_url,
            "error": None,
            "progress": 100,
        })

    if status == JobStatus.FAILED:
        return job.model_copy(update={
            "status": status,
            "output_url": None,
            "error": error or "Unknown error",
        })

    return job.model_copy(update={"status": status})


class JobStore(ABC):
    """
    Abstract store for conversion jobs.

    All implementations must:
    - Assign ids and created_at on create
    - List newest first
    - Treat writes to unknown ids as no-ops
    """

    @abstractmethod
    def create(self, fields: JobCreate) -> ConversionJob:
        """Persist a new PENDING job with progress 0 and return it."""
        pass

    @abstractmethod
    def get(self, job_id: int) -> Optional[ConversionJob]:
        """Return the job, or None if it does not exist."""
        pass

    @abstractmethod
    def list(self) -> List[ConversionJob]:
        """Return all jobs ordered by created_at, newest first."""
        pass

    @abstractmethod
    def update_status(
        self,
        job_id: int,
        status: JobStatus,
        output_url: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Optional[ConversionJob]:
        """
        Move a job to a new status.

        Returns:
            The updated job, or None if the job does not exist

        Raises:
            InvalidStateTransitionError: If the transition is not allowed
        """
        pass

    @abstractmethod
    def update_progress(self, job_id: int, progress: int) -> Optional[ConversionJob]:
        """Set progress only. Returns None if the job does not exist."""
        pass

    @abstractmethod
    def delete(self, job_id: int) -> None:
        """Delete a job. Unknown ids are ignored."""
        pass

    @abstractmethod
    def delete_all(self) -> None:
        """Delete every job."""
        pass


class InMemoryJobStore(JobStore):
    """
    Thread-safe in-memory job store.

    Used by tests and for throwaway runs. Nothing survives a restart.
    """

    def __init__(self):
        # job_id -> ConversionJob
        self._jobs: Dict[int, ConversionJob] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, fields: JobCreate) -> ConversionJob:
        with self._lock:
            job = ConversionJob(
                id=self._next_id,
                original_name=fields.original_name,
                mime_type=fields.mime_type,
                size=fields.size,
                status=JobStatus.PENDING,
                progress=0,
                created_at=utc_now(),
            )
            self._jobs[job.id] = job
            self._next_id += 1
            return job

    def get(self, job_id: int) -> Optional[ConversionJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def list(self) -> List[ConversionJob]:
        with self._lock:
            jobs = list(self._jobs.values())
        jobs.sort(key=lambda j: (j.created_at, j.id), reverse=True)
        return jobs

    def update_status(
        self,
        job_id: int,
        status: JobStatus,
        output_url: Optional[str] = None,
        error: Optional[str] = None,
    ) -> Optional[ConversionJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            updated = apply_status(job, status, output_url=output_url, error=error)
            self._jobs[job_id] = updated
            return updated

    def update_progress(self, job_id: int, progress: int) -> Optional[ConversionJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            updated = job.model_copy(update={"progress": progress})
            self._jobs[job_id] = updated
            return updated

    def delete(self, job_id: int) -> None:
        with self._lock:
            self._jobs.pop(job_id, None)

    def delete_all(self) -> None:
        with self._lock:
            self._jobs.clear()

    def count(self) -> int:
        """Number of jobs currently stored."""
        with self._lock:
            return len(self._jobs)
