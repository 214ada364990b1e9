"""Domain models for scan jobs and their domains."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class JobStatus(str, Enum):
    QUEUED = "queued"
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class DomainStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class EnrichmentKind(str, Enum):
    """Which metrics schema and fetch path applies to a job's domains."""

    WEBSHOP = "webshop"
    BOUWBEDRIJF = "bouwbedrijf"


ACTIVE_JOB_STATUSES = (JobStatus.PENDING, JobStatus.RUNNING)
TERMINAL_DOMAIN_STATUSES = (DomainStatus.COMPLETED, DomainStatus.FAILED)


@dataclass
class ScheduledDomain:
    domain: str
    scheduled_date: date


@dataclass
class JobRecord:
    id: str
    name: str
    total_domains: int
    status: JobStatus
    enrichment_kind: EnrichmentKind
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "total_domains": self.total_domains,
            "status": self.status.value,
            "enrichment_kind": self.enrichment_kind.value,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class DomainRecord:
    id: str
    job_id: str
    domain: str
    scheduled_date: date
    status: DomainStatus = DomainStatus.PENDING
    retry_count: int = 0
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "job_id": self.job_id,
            "domain": self.domain,
            "scheduled_date": self.scheduled_date,
            "status": self.status.value,
            "retry_count": self.retry_count,
            "error_message": self.error_message,
        }


@dataclass
class JobSubmission:
    """Result of creating a job from a list of domain names."""

    job: JobRecord
    rejected: List[str] = field(default_factory=list)


__all__ = [
    "ACTIVE_JOB_STATUSES",
    "TERMINAL_DOMAIN_STATUSES",
    "DomainRecord",
    "DomainStatus",
    "EnrichmentKind",
    "JobRecord",
    "JobStatus",
    "JobSubmission",
    "ScheduledDomain",
]
