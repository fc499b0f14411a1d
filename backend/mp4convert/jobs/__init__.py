"""
Conversion jobs: models, lifecycle rules and the store interface.

Job lifecycle: PENDING → PROCESSING → COMPLETED | FAILED

This package does NOT run transcoding. See mp4convert.execution.
"""

from .errors import (
    JobError,
    InvalidStateTransitionError,
)
from .models import (
    JobStatus,
    JobCreate,
    ConversionJob,
)
from .state import (
    TERMINAL_JOB_STATES,
    is_job_terminal,
    can_transition_job,
    validate_job_transition,
)
from .store import JobStore, InMemoryJobStore

__all__ = [
    # Errors
    "JobError",
    "InvalidStateTransitionError",
    # Models
    "JobStatus",
    "JobCreate",
    "ConversionJob",
    # State validation
    "TERMINAL_JOB_STATES",
    "is_job_terminal",
    "can_transition_job",
    "validate_job_transition",
    # Store
    "JobStore",
    "InMemoryJobStore",
]
