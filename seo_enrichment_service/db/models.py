"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime`` columns."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class ScanJob(Base):
    __tablename__ = "scan_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    total_domains: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False, index=True)
    enrichment_kind: Mapped[str] = mapped_column(String(32), default="webshop", nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    domains: Mapped[list["Domain"]] = relationship(back_populates="job")

    __table_args__ = (CheckConstraint("end_date >= start_date", name="ck_scan_jobs_date_window"),)


class Domain(Base):
    __tablename__ = "domains"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    job_id: Mapped[str] = mapped_column(ForeignKey("scan_jobs.id", ondelete="CASCADE"), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    job: Mapped[ScanJob] = relationship(back_populates="domains")
    webshop_metrics: Mapped[list["WebshopMetrics"]] = relationship(back_populates="domain")
    bouwbedrijf_metrics: Mapped[list["BouwbedrijfMetrics"]] = relationship(back_populates="domain")

    __table_args__ = (
        Index("idx_domains_job_status_date", "job_id", "status", "scheduled_date"),
        Index("idx_domains_status", "status"),
    )


class WebshopMetrics(Base):
    __tablename__ = "webshop_metrics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    domain_id: Mapped[str] = mapped_column(ForeignKey("domains.id", ondelete="CASCADE"), nullable=False)
    traffic_history: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    checked_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    domain: Mapped[Domain] = relationship(back_populates="webshop_metrics")


class BouwbedrijfMetrics(Base):
    __tablename__ = "bouwbedrijf_metrics"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    domain_id: Mapped[str] = mapped_column(ForeignKey("domains.id", ondelete="CASCADE"), nullable=False)
    keywords: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    total_keywords: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_traffic: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    checked_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    domain: Mapped[Domain] = relationship(back_populates="bouwbedrijf_metrics")


class SchedulerLease(Base):
    __tablename__ = "scheduler_leases"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    holder: Mapped[str] = mapped_column(String(64), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


__all__ = [
    "Base",
    "BouwbedrijfMetrics",
    "Domain",
    "ScanJob",
    "SchedulerLease",
    "WebshopMetrics",
    "utcnow",
]
