"""Ingestion job lifecycle rules."""

from docingest.errors import InvalidStateError
from docingest.schemas.job import JobStatus

TERMINAL_STATES: frozenset[JobStatus] = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

CANCELLABLE_STATES: frozenset[JobStatus] = frozenset({JobStatus.PENDING, JobStatus.PROCESSING})

_FORWARD_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

CANCELLED_OUTPUT = "Job was cancelled by user"


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATES


def can_transition(old_status: JobStatus, new_status: JobStatus) -> bool:
    """Return whether an automatic transition moves the job forward."""
    return new_status in _FORWARD_TRANSITIONS.get(old_status, frozenset())


def ensure_cancellable(status: JobStatus) -> None:
    """Reject cancellation of jobs that already reached a terminal state."""
    if status in CANCELLABLE_STATES:
        return
    raise InvalidStateError(
        f"Cannot cancel job with status {status.value}",
        details={
            "current_status": status,
            "allowed_statuses": sorted(CANCELLABLE_STATES, key=lambda s: s.value),
        },
    )
