"""Job submission and status queries."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, get_settings
from .domains import normalize_domains
from .lifecycle import JobLifecycle
from .models import EnrichmentKind, JobRecord, JobSubmission
from .repository import DomainStore, JobStore, MetricsStore
from .scheduler import calculate_end_date, schedule_domains

logger = logging.getLogger(__name__)


class JobManager:
    """Creates jobs at upload time and reports their progress."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.job_store = JobStore(sessionmaker)
        self.domain_store = DomainStore(sessionmaker)
        self.metrics_store = MetricsStore(sessionmaker)
        self.lifecycle = JobLifecycle(
            self.job_store,
            self.domain_store,
            max_concurrent_jobs=self.settings.max_concurrent_jobs,
            completion_policy=self.settings.job_completion_policy,
        )

    async def enqueue_job(
        self,
        name: str,
        domains: Iterable[str],
        enrichment_kind: EnrichmentKind = EnrichmentKind.WEBSHOP,
        start_date: Optional[date] = None,
    ) -> JobSubmission:
        """Schedule ``domains`` over the coming days and store the job.

        Scheduling starts tomorrow (UTC) unless ``start_date`` is given. The
        job is queued when every active slot is already taken.
        """

        valid, rejected = normalize_domains(domains)
        if not valid:
            raise ValueError("No valid domains provided")

        start = start_date or datetime.now(timezone.utc).date() + timedelta(days=1)
        scheduled = schedule_domains(
            valid, start, self.settings.scheduling_days, self.settings.max_domains_per_day
        )
        end = calculate_end_date(
            len(valid), start, self.settings.scheduling_days, self.settings.max_domains_per_day
        )
        status = await self.lifecycle.initial_status()
        job = await self.job_store.create_with_domains(
            name=name,
            enrichment_kind=EnrichmentKind(enrichment_kind),
            scheduled=scheduled,
            start_date=start,
            end_date=end,
            status=status,
        )
        logger.info(
            "Created scan job",
            extra={"job_id": job.id, "domain_count": len(valid), "rejected": len(rejected), "status": status.value},
        )
        return JobSubmission(job=job, rejected=rejected)

    async def get_job(self, job_id: str) -> Optional[JobRecord]:
        return await self.job_store.get(job_id)

    async def job_stats(self, job: JobRecord) -> Dict[str, int]:
        stats = await self.domain_store.status_counts(job.id)
        stats["total"] = job.total_domains
        return stats

    async def list_jobs(self) -> List[Dict[str, Any]]:
        jobs = []
        for job in await self.job_store.list_all():
            payload = job.to_dict()
            payload["stats"] = await self.job_stats(job)
            jobs.append(payload)
        return jobs

    async def get_job_detail(self, job_id: str) -> Optional[Dict[str, Any]]:
        job = await self.job_store.get(job_id)
        if job is None:
            return None
        metrics = await self.metrics_store.list_for_job(job_id)
        domains = []
        by_date: Dict[str, List[str]] = {}
        for record in await self.domain_store.list_for_job(job_id):
            payload = record.to_dict()
            payload["metrics"] = metrics.get(record.id, [])
            domains.append(payload)
            by_date.setdefault(record.scheduled_date.isoformat(), []).append(record.domain)
        return {"job": job.to_dict(), "stats": await self.job_stats(job), "domains": domains, "by_date": by_date}

    async def delete_job(self, job_id: str) -> bool:
        deleted = await self.job_store.delete(job_id)
        if deleted:
            logger.info("Deleted scan job", extra={"job_id": job_id})
        return deleted


_global_manager: Optional[JobManager] = None


def get_job_manager() -> JobManager:
    global _global_manager
    if _global_manager is None:
        _global_manager = JobManager()
    return _global_manager


__all__ = ["JobManager", "get_job_manager"]
