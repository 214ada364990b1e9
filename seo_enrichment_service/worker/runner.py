"""Daily batch runner: one invocation processes one bounded batch of domains."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import asdict, dataclass, field
from datetime import datetime, time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, get_settings
from ..db.models import utcnow
from ..enrichment import MetricsClient, build_metrics_client
from ..jobs.lifecycle import JobLifecycle
from ..jobs.models import DomainRecord, DomainStatus, EnrichmentKind, JobRecord
from ..jobs.quota import allocate_quotas
from ..jobs.repository import DomainStore, JobStore, MetricsStore
from ..monitoring.metrics import (
    ACTIVE_JOBS,
    BATCH_RUNS_TOTAL,
    DAILY_BUDGET_REMAINING,
    DOMAINS_COMPLETED_TOTAL,
    DOMAINS_FAILED_TOTAL,
    DOMAINS_RECOVERED_TOTAL,
    DOMAINS_RETRIED_TOTAL,
    FETCH_ERRORS_TOTAL,
)
from .lease import InvocationLease
from .workdays import is_working_day

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 1000


@dataclass
class BatchResult:
    status: str
    message: str
    date: Optional[str] = None
    processed: int = 0
    failed: int = 0
    retried: int = 0
    total: int = 0
    scraped_today: Optional[int] = None
    daily_limit: Optional[int] = None
    recovered: int = 0
    quotas: Dict[str, int] = field(default_factory=dict)
    completed_jobs: List[str] = field(default_factory=list)
    promoted: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "error"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BatchRunner:
    """Runs the daily scan sequence against the job, domain and metrics stores.

    Each invocation checks the working-day gate, takes the single-flight lease
    (renewed before every domain, so a long batch never outlives it),
    works out what is left of today's scrape budget, recovers domains left in
    ``processing``, splits the batch between the active jobs and processes the
    selected domains one at a time with a randomized pause in between. Job
    completion and queue promotion run at the end.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None,
        job_store: Optional[JobStore] = None,
        domain_store: Optional[DomainStore] = None,
        metrics_store: Optional[MetricsStore] = None,
        metrics_client: Optional[MetricsClient] = None,
        lease: Optional[InvocationLease] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.job_store = job_store or JobStore(sessionmaker)
        self.domain_store = domain_store or DomainStore(sessionmaker)
        self.metrics_store = metrics_store or MetricsStore(sessionmaker)
        self._owns_client = metrics_client is None
        self.metrics_client = metrics_client or build_metrics_client(self.settings)
        self.lease = lease or InvocationLease(ttl_seconds=self.settings.lease_ttl_seconds, sessionmaker=sessionmaker)
        self.lifecycle = JobLifecycle(
            self.job_store,
            self.domain_store,
            max_concurrent_jobs=self.settings.max_concurrent_jobs,
            completion_policy=self.settings.job_completion_policy,
        )
        self._sleep = sleep
        self._clock = clock
        self._rng = rng or random.Random()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.metrics_client.aclose()

    async def run(self) -> BatchResult:
        """Execute one invocation. Never raises; failures come back as ``status="error"``."""

        try:
            now = self._clock()
            if self.settings.working_days_only and not is_working_day(now, self.settings.business_timezone):
                logger.info("Skipping scan: not a working day", extra={"timezone": self.settings.business_timezone})
                BATCH_RUNS_TOTAL.labels(outcome="not_working_day").inc()
                return BatchResult(status="skipped", message="Skipped: not a working day")

            if not await self.lease.acquire():
                BATCH_RUNS_TOTAL.labels(outcome="lease_held").inc()
                return BatchResult(status="skipped", message="Skipped: another scan is in progress")
            try:
                result = await self._run(now)
            finally:
                await self.lease.release()
        except Exception as exc:
            logger.exception("Batch scan failed")
            BATCH_RUNS_TOTAL.labels(outcome="error").inc()
            return BatchResult(status="error", message="Batch scan failed", error=str(exc))

        BATCH_RUNS_TOTAL.labels(outcome=result.status).inc()
        return result

    async def _run(self, now: datetime) -> BatchResult:
        settings = self.settings
        today = now.date()
        midnight = datetime.combine(today, time.min)
        logger.info("Starting batch scan", extra={"date": today.isoformat()})

        scraped_today = await self.metrics_store.count_created_since(midnight)
        remaining_budget = settings.daily_scrape_limit - scraped_today
        DAILY_BUDGET_REMAINING.set(max(remaining_budget, 0))
        logger.info(
            "Scraped today: %s/%s, remaining budget: %s",
            scraped_today,
            settings.daily_scrape_limit,
            remaining_budget,
        )
        result = BatchResult(
            status="ok",
            message="Daily scan complete",
            date=today.isoformat(),
            scraped_today=scraped_today,
            daily_limit=settings.daily_scrape_limit,
        )
        if remaining_budget <= 0:
            result.status = "skipped"
            result.message = "Daily limit reached"
            return result

        batch_size = min(settings.per_invocation_batch_cap, remaining_budget)

        recovered = await self.domain_store.reset_stuck()
        if recovered:
            DOMAINS_RECOVERED_TOTAL.inc(len(recovered))
            logger.warning("Reset %s stuck processing domains back to pending", len(recovered))
        result.recovered = len(recovered)

        active_jobs = await self.job_store.list_active(limit=settings.max_concurrent_jobs)
        ACTIVE_JOBS.set(len(active_jobs))
        if not active_jobs:
            logger.info("No active jobs found")
            result.promoted = await self.lifecycle.promote_queued()
            result.message = "No active jobs"
            return result

        job_ids = [job.id for job in active_jobs]
        remaining = {job_id: await self.domain_store.count_due(job_id, today) for job_id in job_ids}
        result.quotas = allocate_quotas(job_ids, remaining, batch_size)
        logger.info("Batch quota allocation", extra={"remaining": remaining, "quotas": result.quotas})

        batch = await self._select_domains(active_jobs, result.quotas, today)
        result.total = len(batch)
        if not batch:
            logger.info("No domains to process in this batch")
            result.completed_jobs = await self.lifecycle.sweep_completed(job_ids)
            result.promoted = await self.lifecycle.promote_queued()
            result.message = "No domains to process"
            return result

        logger.info("Processing batch of %s domains across %s jobs", len(batch), len(job_ids))
        await self.lifecycle.mark_running(dict.fromkeys(job.id for job, _ in batch))

        for index, (job, record) in enumerate(batch):
            if not await self.lease.renew():
                logger.warning(
                    "Lease lost, stopping batch", extra={"lease": self.lease.name, "unprocessed": len(batch) - index}
                )
                result.status = "lease_lost"
                result.message = "Stopped: lease taken over by another invocation"
                return result

            outcome = await self._process_domain(record, job.enrichment_kind)
            if outcome is DomainStatus.COMPLETED:
                result.processed += 1
            elif outcome is DomainStatus.FAILED:
                result.failed += 1
            elif outcome is DomainStatus.PENDING:
                result.retried += 1

            if index < len(batch) - 1:
                delay = self._rng.uniform(
                    settings.inter_call_delay_min_seconds, settings.inter_call_delay_max_seconds
                )
                logger.info("Waiting %.0fs before next domain", delay)
                await self._sleep(delay)

        result.completed_jobs = await self.lifecycle.sweep_completed(job_ids)
        result.promoted = await self.lifecycle.promote_queued()
        logger.info(
            "Batch scan complete",
            extra={"processed": result.processed, "failed": result.failed, "retried": result.retried},
        )
        return result

    async def _select_domains(
        self, jobs: List[JobRecord], quotas: Dict[str, int], today
    ) -> List[Tuple[JobRecord, DomainRecord]]:
        batch: List[Tuple[JobRecord, DomainRecord]] = []
        for job in jobs:
            quota = quotas.get(job.id, 0)
            if quota <= 0:
                continue
            for record in await self.domain_store.list_due(job.id, today, limit=quota):
                batch.append((job, record))
        return batch

    async def _process_domain(self, record: DomainRecord, kind: EnrichmentKind) -> Optional[DomainStatus]:
        """Enrich one domain; returns the status it ended in, or ``None`` if skipped."""

        if not await self.domain_store.set_status(record.id, DomainStatus.PROCESSING):
            logger.warning("Domain no longer pending, skipping", extra={"domain": record.domain})
            return None

        logger.info("Processing domain", extra={"domain": record.domain, "kind": kind.value})
        try:
            payload = await self.metrics_client.fetch(record.domain, kind)
            await self.domain_store.complete(record.id, kind, payload)
        except Exception as exc:
            return await self._record_failure(record, exc)

        DOMAINS_COMPLETED_TOTAL.inc()
        logger.info("Completed domain", extra={"domain": record.domain})
        return DomainStatus.COMPLETED

    async def _record_failure(self, record: DomainRecord, exc: Exception) -> DomainStatus:
        FETCH_ERRORS_TOTAL.labels(error=type(exc).__name__).inc()
        retry_count = record.retry_count + 1
        message = (str(exc) or type(exc).__name__)[:MAX_ERROR_LENGTH]
        status = DomainStatus.FAILED if retry_count >= self.settings.max_retries else DomainStatus.PENDING
        logger.warning(
            "Error processing domain",
            extra={"domain": record.domain, "retry_count": retry_count, "status": status.value, "error": message},
        )
        await self.domain_store.set_status(record.id, status, retry_count=retry_count, error_message=message)
        if status is DomainStatus.FAILED:
            DOMAINS_FAILED_TOTAL.inc()
        else:
            DOMAINS_RETRIED_TOTAL.inc()
        return status


async def run_worker(runner: BatchRunner, interval_seconds: float, once: bool = False) -> None:
    """Invoke the runner repeatedly, for deployments without an external cron."""

    try:
        while True:
            result = await runner.run()
            logger.info("Scan finished", extra={"status": result.status, "result_message": result.message})
            if once:
                break
            await asyncio.sleep(interval_seconds)
    finally:
        await runner.aclose()


__all__ = ["BatchResult", "BatchRunner", "MAX_ERROR_LENGTH", "run_worker"]
