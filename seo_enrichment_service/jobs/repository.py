"""Persistence for jobs, domains and metrics records.

Status writes are single-row conditional updates scoped by id and guarded by
the current status, validated against the transition tables first.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db.models import BouwbedrijfMetrics as BouwbedrijfMetricsModel
from ..db.models import Domain as DomainModel
from ..db.models import ScanJob as ScanJobModel
from ..db.models import WebshopMetrics as WebshopMetricsModel
from ..db.models import utcnow
from ..db.session import session_scope
from .models import (
    ACTIVE_JOB_STATUSES,
    TERMINAL_DOMAIN_STATUSES,
    DomainRecord,
    DomainStatus,
    EnrichmentKind,
    JobRecord,
    JobStatus,
    ScheduledDomain,
)
from .state_machine import InvalidTransition, check_domain_transition, check_job_transition


Sessionmaker = Optional[async_sessionmaker[AsyncSession]]


def _job_record(row: ScanJobModel) -> JobRecord:
    return JobRecord(
        id=row.id,
        name=row.name,
        total_domains=row.total_domains,
        status=JobStatus(row.status),
        enrichment_kind=EnrichmentKind(row.enrichment_kind),
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _domain_record(row: DomainModel) -> DomainRecord:
    return DomainRecord(
        id=row.id,
        job_id=row.job_id,
        domain=row.domain,
        scheduled_date=row.scheduled_date,
        status=DomainStatus(row.status),
        retry_count=row.retry_count,
        error_message=row.error_message,
        created_at=row.created_at,
    )


def _metrics_row(domain_id: str, kind: EnrichmentKind, payload: Dict[str, Any], checked_at: datetime) -> Any:
    if EnrichmentKind(kind) is EnrichmentKind.WEBSHOP:
        return WebshopMetricsModel(
            domain_id=domain_id,
            traffic_history=payload.get("traffic_history", []),
            checked_at=checked_at,
        )
    return BouwbedrijfMetricsModel(
        domain_id=domain_id,
        keywords=payload.get("keywords", []),
        total_keywords=int(payload.get("total_keywords", 0)),
        total_traffic=int(payload.get("total_traffic", 0)),
        checked_at=checked_at,
    )


class JobStore:
    def __init__(self, sessionmaker: Sessionmaker = None) -> None:
        self._sessionmaker = sessionmaker

    async def create_with_domains(
        self,
        *,
        name: str,
        enrichment_kind: EnrichmentKind,
        scheduled: Sequence[ScheduledDomain],
        start_date: date,
        end_date: date,
        status: JobStatus = JobStatus.PENDING,
    ) -> JobRecord:
        """Insert a job and all of its domains in one transaction."""

        now = utcnow()
        async with session_scope(self._sessionmaker) as session:
            job = ScanJobModel(
                name=name,
                total_domains=len(scheduled),
                status=status.value,
                enrichment_kind=EnrichmentKind(enrichment_kind).value,
                start_date=start_date,
                end_date=end_date,
                created_at=now,
                updated_at=now,
            )
            session.add(job)
            await session.flush()
            session.add_all(
                [
                    DomainModel(
                        job_id=job.id,
                        domain=item.domain,
                        position=index,
                        scheduled_date=item.scheduled_date,
                        status=DomainStatus.PENDING.value,
                        retry_count=0,
                        created_at=now,
                    )
                    for index, item in enumerate(scheduled)
                ]
            )
            await session.flush()
            return _job_record(job)

    async def get(self, job_id: str) -> Optional[JobRecord]:
        async with session_scope(self._sessionmaker) as session:
            row = await session.get(ScanJobModel, job_id)
            return _job_record(row) if row else None

    async def list_all(self) -> List[JobRecord]:
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(select(ScanJobModel).order_by(ScanJobModel.created_at.desc()))
            return [_job_record(row) for row in result.scalars()]

    async def list_active(self, limit: Optional[int] = None) -> List[JobRecord]:
        """Pending or running jobs, oldest first."""

        stmt = (
            select(ScanJobModel)
            .where(ScanJobModel.status.in_([status.value for status in ACTIVE_JOB_STATUSES]))
            .order_by(ScanJobModel.created_at)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(stmt)
            return [_job_record(row) for row in result.scalars()]

    async def count_active(self) -> int:
        async with session_scope(self._sessionmaker) as session:
            count = await session.scalar(
                select(func.count(ScanJobModel.id)).where(
                    ScanJobModel.status.in_([status.value for status in ACTIVE_JOB_STATUSES])
                )
            )
            return int(count or 0)

    async def list_queued(self, limit: int) -> List[JobRecord]:
        if limit <= 0:
            return []
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(
                select(ScanJobModel)
                .where(ScanJobModel.status == JobStatus.QUEUED.value)
                .order_by(ScanJobModel.created_at)
                .limit(limit)
            )
            return [_job_record(row) for row in result.scalars()]

    async def set_status(self, job_id: str, status: JobStatus) -> bool:
        """Move a job to ``status``.

        Returns ``False`` when the job is missing, already in ``status`` or was
        changed concurrently. Raises ``InvalidTransition`` for disallowed moves.
        """

        async with session_scope(self._sessionmaker) as session:
            current = await session.scalar(select(ScanJobModel.status).where(ScanJobModel.id == job_id))
            if current is None or current == status.value:
                return False
            check_job_transition(JobStatus(current), status)
            result = await session.execute(
                update(ScanJobModel)
                .where(ScanJobModel.id == job_id, ScanJobModel.status == current)
                .values(status=status.value, updated_at=utcnow())
            )
            return result.rowcount == 1

    async def delete(self, job_id: str) -> bool:
        async with session_scope(self._sessionmaker) as session:
            domain_ids = select(DomainModel.id).where(DomainModel.job_id == job_id)
            await session.execute(delete(WebshopMetricsModel).where(WebshopMetricsModel.domain_id.in_(domain_ids)))
            await session.execute(
                delete(BouwbedrijfMetricsModel).where(BouwbedrijfMetricsModel.domain_id.in_(domain_ids))
            )
            await session.execute(delete(DomainModel).where(DomainModel.job_id == job_id))
            result = await session.execute(delete(ScanJobModel).where(ScanJobModel.id == job_id))
            return result.rowcount == 1


class DomainStore:
    def __init__(self, sessionmaker: Sessionmaker = None) -> None:
        self._sessionmaker = sessionmaker

    def _due(self, job_id: str, today: date):
        return (
            DomainModel.job_id == job_id,
            DomainModel.status == DomainStatus.PENDING.value,
            DomainModel.scheduled_date <= today,
        )

    async def list_due(self, job_id: str, today: date, limit: Optional[int] = None) -> List[DomainRecord]:
        """Pending domains due by ``today``, oldest scheduled first then insertion order."""

        stmt = (
            select(DomainModel)
            .where(*self._due(job_id, today))
            .order_by(DomainModel.scheduled_date, DomainModel.created_at, DomainModel.position)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(stmt)
            return [_domain_record(row) for row in result.scalars()]

    async def count_due(self, job_id: str, today: date) -> int:
        async with session_scope(self._sessionmaker) as session:
            count = await session.scalar(select(func.count(DomainModel.id)).where(*self._due(job_id, today)))
            return int(count or 0)

    async def list_by_status(self, status: DomainStatus) -> List[DomainRecord]:
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(select(DomainModel).where(DomainModel.status == status.value))
            return [_domain_record(row) for row in result.scalars()]

    async def list_for_job(self, job_id: str) -> List[DomainRecord]:
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(
                select(DomainModel)
                .where(DomainModel.job_id == job_id)
                .order_by(DomainModel.scheduled_date, DomainModel.position)
            )
            return [_domain_record(row) for row in result.scalars()]

    async def get(self, domain_id: str) -> Optional[DomainRecord]:
        async with session_scope(self._sessionmaker) as session:
            row = await session.get(DomainModel, domain_id)
            return _domain_record(row) if row else None

    async def set_status(self, domain_id: str, status: DomainStatus, **fields: Any) -> bool:
        """Move a domain to ``status``, writing ``fields`` in the same update."""

        async with session_scope(self._sessionmaker) as session:
            current = await session.scalar(select(DomainModel.status).where(DomainModel.id == domain_id))
            if current is None or current == status.value:
                return False
            check_domain_transition(DomainStatus(current), status)
            result = await session.execute(
                update(DomainModel)
                .where(DomainModel.id == domain_id, DomainModel.status == current)
                .values(status=status.value, **fields)
            )
            return result.rowcount == 1

    async def complete(
        self,
        domain_id: str,
        kind: EnrichmentKind,
        payload: Dict[str, Any],
        checked_at: Optional[datetime] = None,
    ) -> str:
        """Store the metrics record and mark the domain completed in one transaction.

        Raises ``InvalidTransition`` and stores nothing unless the domain is
        ``processing``.
        """

        row = _metrics_row(domain_id, kind, payload, checked_at or utcnow())
        async with session_scope(self._sessionmaker) as session:
            session.add(row)
            await session.flush()
            result = await session.execute(
                update(DomainModel)
                .where(DomainModel.id == domain_id, DomainModel.status == DomainStatus.PROCESSING.value)
                .values(status=DomainStatus.COMPLETED.value, error_message=None)
            )
            if result.rowcount != 1:
                current = await session.scalar(select(DomainModel.status).where(DomainModel.id == domain_id))
                raise InvalidTransition("domain", current or "missing", DomainStatus.COMPLETED.value)
            return row.id

    async def reset_stuck(self) -> List[DomainRecord]:
        """Return every ``processing`` domain to ``pending``."""

        stuck = await self.list_by_status(DomainStatus.PROCESSING)
        recovered = []
        for record in stuck:
            if await self.set_status(record.id, DomainStatus.PENDING):
                recovered.append(record)
        return recovered

    async def status_counts(self, job_id: str) -> Dict[str, int]:
        counts = {status.value: 0 for status in DomainStatus}
        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(
                select(DomainModel.status, func.count(DomainModel.id))
                .where(DomainModel.job_id == job_id)
                .group_by(DomainModel.status)
            )
            for status, count in result.all():
                counts[status] = int(count)
        return counts

    async def all_terminal(self, job_id: str) -> bool:
        async with session_scope(self._sessionmaker) as session:
            open_count = await session.scalar(
                select(func.count(DomainModel.id)).where(
                    DomainModel.job_id == job_id,
                    DomainModel.status.not_in([status.value for status in TERMINAL_DOMAIN_STATUSES]),
                )
            )
            return not open_count


class MetricsStore:
    """Append-only storage for metrics records, one table per enrichment kind."""

    def __init__(self, sessionmaker: Sessionmaker = None) -> None:
        self._sessionmaker = sessionmaker

    async def insert(
        self,
        domain_id: str,
        kind: EnrichmentKind,
        payload: Dict[str, Any],
        checked_at: Optional[datetime] = None,
    ) -> str:
        row = _metrics_row(domain_id, kind, payload, checked_at or utcnow())
        async with session_scope(self._sessionmaker) as session:
            session.add(row)
            await session.flush()
            return row.id

    async def count_created_since(self, since: datetime) -> int:
        """Records created at or after ``since`` across every enrichment kind."""

        async with session_scope(self._sessionmaker) as session:
            webshop = await session.scalar(
                select(func.count(WebshopMetricsModel.id)).where(WebshopMetricsModel.checked_at >= since)
            )
            bouwbedrijf = await session.scalar(
                select(func.count(BouwbedrijfMetricsModel.id)).where(BouwbedrijfMetricsModel.checked_at >= since)
            )
            return int(webshop or 0) + int(bouwbedrijf or 0)

    async def list_for_job(self, job_id: str) -> Dict[str, List[Dict[str, Any]]]:
        """Metrics rows keyed by domain id."""

        domain_ids = select(DomainModel.id).where(DomainModel.job_id == job_id)
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        async with session_scope(self._sessionmaker) as session:
            webshop = await session.execute(
                select(WebshopMetricsModel).where(WebshopMetricsModel.domain_id.in_(domain_ids))
            )
            for row in webshop.scalars():
                grouped.setdefault(row.domain_id, []).append(
                    {"traffic_history": row.traffic_history, "checked_at": row.checked_at}
                )
            bouwbedrijf = await session.execute(
                select(BouwbedrijfMetricsModel).where(BouwbedrijfMetricsModel.domain_id.in_(domain_ids))
            )
            for row in bouwbedrijf.scalars():
                grouped.setdefault(row.domain_id, []).append(
                    {
                        "keywords": row.keywords,
                        "total_keywords": row.total_keywords,
                        "total_traffic": row.total_traffic,
                        "checked_at": row.checked_at,
                    }
                )
        return grouped


__all__ = ["DomainStore", "JobStore", "MetricsStore"]
