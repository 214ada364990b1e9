"""Transition tables for job and domain statuses.

Every status write in the stores goes through :func:`check_job_transition` or
:func:`check_domain_transition` first. The conditional update is then guarded
on the status that was checked, so a row changed in between is left alone.
"""

from __future__ import annotations

from typing import Dict, FrozenSet

from .models import DomainStatus, JobStatus

JOB_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PENDING}),
    JobStatus.PENDING: frozenset({JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset({JobStatus.PENDING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}

DOMAIN_TRANSITIONS: Dict[DomainStatus, FrozenSet[DomainStatus]] = {
    DomainStatus.PENDING: frozenset({DomainStatus.PROCESSING}),
    DomainStatus.PROCESSING: frozenset({DomainStatus.COMPLETED, DomainStatus.FAILED, DomainStatus.PENDING}),
    DomainStatus.COMPLETED: frozenset(),
    DomainStatus.FAILED: frozenset(),
}


class InvalidTransition(ValueError):
    """Raised when a status change is not allowed by the transition table."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"Invalid {entity} transition {current} -> {target}")


def check_job_transition(current: JobStatus, target: JobStatus) -> None:
    if target not in JOB_TRANSITIONS[JobStatus(current)]:
        raise InvalidTransition("job", JobStatus(current).value, JobStatus(target).value)


def check_domain_transition(current: DomainStatus, target: DomainStatus) -> None:
    if target not in DOMAIN_TRANSITIONS[DomainStatus(current)]:
        raise InvalidTransition("domain", DomainStatus(current).value, DomainStatus(target).value)


__all__ = [
    "DOMAIN_TRANSITIONS",
    "JOB_TRANSITIONS",
    "InvalidTransition",
    "check_domain_transition",
    "check_job_transition",
]
