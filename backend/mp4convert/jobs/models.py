"""
Conversion job data models.

A ConversionJob tracks one uploaded video through conversion to MP4.
One job per uploaded file. Jobs never share state.

All models use Pydantic for validation.
State transitions are validated externally (see state.py).

JSON field names are camelCase on the wire (originalName, outputUrl, ...).
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime. All job timestamps use this."""
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """
    Job-level status.

    A job moves through these states exactly once, in order.
    """

    PENDING = "pending"  # Created, conversion not yet started
    PROCESSING = "processing"  # Transcoder is running
    COMPLETED = "completed"  # Output written, outputUrl set
    FAILED = "failed"  # Transcoder or filesystem error, error set


class JobCreate(BaseModel):
    """Fields supplied by the API when a job is created."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    original_name: str = Field(min_length=1)
    mime_type: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)


class ConversionJob(BaseModel):
    """
    A single video conversion job.

    Invariants:
    - COMPLETED: output_url set, error None, progress 100
    - FAILED: error set, output_url None
    - id, original_name and created_at never change after creation
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    # Identity
    id: int
    original_name: str

    # Upload metadata (informational only)
    mime_type: Optional[str] = None
    size: Optional[int] = None

    # State
    status: JobStatus = JobStatus.PENDING
    progress: Optional[int] = 0

    # Outcome
    output_url: Optional[str] = None
    error: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        """True while the job is waiting for or undergoing conversion."""
        return self.status in (JobStatus.PENDING, JobStatus.PROCESSING)
