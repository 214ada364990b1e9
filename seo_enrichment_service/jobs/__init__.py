"""Job scheduling, quota allocation and lifecycle."""

from .manager import JobManager, get_job_manager
from .models import DomainRecord, DomainStatus, EnrichmentKind, JobRecord, JobStatus, ScheduledDomain
from .quota import allocate_quotas
from .scheduler import calculate_end_date, domains_per_day, schedule_domains

__all__ = [
    "DomainRecord",
    "DomainStatus",
    "EnrichmentKind",
    "JobManager",
    "JobRecord",
    "JobStatus",
    "ScheduledDomain",
    "allocate_quotas",
    "calculate_end_date",
    "domains_per_day",
    "get_job_manager",
    "schedule_domains",
]
