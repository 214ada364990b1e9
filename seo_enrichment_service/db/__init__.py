"""Database package."""

from .models import Base, BouwbedrijfMetrics, Domain, ScanJob, SchedulerLease, WebshopMetrics, utcnow
from .session import dispose_engine, get_engine, get_sessionmaker, session_scope

__all__ = [
    "Base",
    "BouwbedrijfMetrics",
    "Domain",
    "ScanJob",
    "SchedulerLease",
    "WebshopMetrics",
    "dispose_engine",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
    "utcnow",
]
