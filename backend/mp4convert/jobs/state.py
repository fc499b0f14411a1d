"""
State transition validation for conversion jobs.

Job lifecycle: PENDING → PROCESSING → COMPLETED | FAILED

INVARIANT: Terminal job states (COMPLETED, FAILED) are immutable.
Once a job enters a terminal state, no state transition is allowed.
Polling or a late worker write must never regress a terminal state.
"""

from typing import FrozenSet, Set, Tuple
from .models import JobStatus
from .errors import InvalidStateTransitionError


TERMINAL_JOB_STATES: FrozenSet[JobStatus] = frozenset({
    JobStatus.COMPLETED,
    JobStatus.FAILED,
})


def is_job_terminal(status: JobStatus) -> bool:
    """
    Check if a job status is terminal (immutable).

    Args:
        status: The job status to check

    Returns:
        True if the status is terminal, False otherwise
    """
    return status in TERMINAL_JOB_STATES


# No retry, no requeue. Failed? Upload the file again.
_JOB_TRANSITIONS: Set[Tuple[JobStatus, JobStatus]] = {
    (JobStatus.PENDING, JobStatus.PROCESSING),
    (JobStatus.PROCESSING, JobStatus.COMPLETED),
    (JobStatus.PROCESSING, JobStatus.FAILED),
}


def can_transition_job(from_status: JobStatus, to_status: JobStatus) -> bool:
    """
    Check if a job state transition is legal.

    Re-entering PROCESSING is treated as idempotent. Terminal states
    cannot be re-entered, even with the same value, since that would
    overwrite output_url or error.

    Args:
        from_status: Current job status
        to_status: Target job status

    Returns:
        True if the transition is allowed, False otherwise
    """
    if is_job_terminal(from_status):
        return False

    if from_status == to_status:
        return to_status == JobStatus.PROCESSING

    return (from_status, to_status) in _JOB_TRANSITIONS


def validate_job_transition(from_status: JobStatus, to_status: JobStatus) -> None:
    """
    Validate a job state transition, raising an exception if illegal.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    if not can_transition_job(from_status, to_status):
        raise InvalidStateTransitionError("job", from_status.value, to_status.value)
