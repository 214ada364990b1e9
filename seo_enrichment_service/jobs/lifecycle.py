"""Job lifecycle bookkeeping driven by domain completion."""

from __future__ import annotations

import logging
from typing import Iterable, List

from ..monitoring.metrics import JOBS_COMPLETED_TOTAL, JOBS_PROMOTED_TOTAL
from .models import DomainStatus, JobStatus
from .repository import DomainStore, JobStore

logger = logging.getLogger(__name__)

COMPLETION_POLICIES = ("completed", "failed_when_all_failed")


class JobLifecycle:
    """Moves jobs through queued -> pending -> running -> completed."""

    def __init__(
        self,
        job_store: JobStore,
        domain_store: DomainStore,
        *,
        max_concurrent_jobs: int,
        completion_policy: str = "completed",
    ) -> None:
        if completion_policy not in COMPLETION_POLICIES:
            raise ValueError(f"Unknown completion policy: {completion_policy}")
        self.job_store = job_store
        self.domain_store = domain_store
        self.max_concurrent_jobs = max_concurrent_jobs
        self.completion_policy = completion_policy

    async def initial_status(self) -> JobStatus:
        """Status for a newly submitted job: pending if a slot is free."""

        active = await self.job_store.count_active()
        return JobStatus.PENDING if active < self.max_concurrent_jobs else JobStatus.QUEUED

    async def mark_running(self, job_ids: Iterable[str]) -> None:
        for job_id in job_ids:
            if await self.job_store.set_status(job_id, JobStatus.RUNNING):
                logger.info("Job running", extra={"job_id": job_id})

    async def sweep_completed(self, job_ids: Iterable[str]) -> List[str]:
        """Close every job whose domains all reached a terminal status.

        Jobs already closed are left alone, so repeated sweeps are no-ops.
        """

        closed: List[str] = []
        for job_id in job_ids:
            job = await self.job_store.get(job_id)
            if job is None or job.status not in (JobStatus.PENDING, JobStatus.RUNNING):
                continue
            if not await self.domain_store.all_terminal(job_id):
                continue

            target = JobStatus.COMPLETED
            if self.completion_policy == "failed_when_all_failed":
                counts = await self.domain_store.status_counts(job_id)
                if counts[DomainStatus.FAILED.value] > 0 and counts[DomainStatus.COMPLETED.value] == 0:
                    target = JobStatus.FAILED

            if await self.job_store.set_status(job_id, target):
                JOBS_COMPLETED_TOTAL.labels(status=target.value).inc()
                logger.info("Job finished", extra={"job_id": job_id, "status": target.value})
                closed.append(job_id)
        return closed

    async def promote_queued(self) -> List[str]:
        """Fill free active slots with the oldest queued jobs."""

        active = await self.job_store.count_active()
        slots = self.max_concurrent_jobs - active
        if slots <= 0:
            return []

        promoted: List[str] = []
        for job in await self.job_store.list_queued(slots):
            if await self.job_store.set_status(job.id, JobStatus.PENDING):
                JOBS_PROMOTED_TOTAL.inc()
                logger.info("Promoted queued job", extra={"job_id": job.id, "job_name": job.name})
                promoted.append(job.id)
        return promoted


__all__ = ["COMPLETION_POLICIES", "JobLifecycle"]
