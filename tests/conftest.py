"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from seo_enrichment_service.config import Settings
from seo_enrichment_service.db.models import Base
from seo_enrichment_service.jobs.manager import JobManager
from seo_enrichment_service.jobs.models import EnrichmentKind
from seo_enrichment_service.worker.runner import BatchRunner


class FakeMetricsClient:
    """Records calls and raises the configured exception for a domain."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, EnrichmentKind]] = []
        self.failures: Dict[str, Exception] = {}

    async def fetch(self, domain: str, kind: EnrichmentKind) -> Dict[str, Any]:
        self.calls.append((domain, kind))
        if domain in self.failures:
            raise self.failures[domain]
        if kind is EnrichmentKind.WEBSHOP:
            return {"traffic_history": [{"date": "2026-09", "organic_traffic": 120.0, "paid_traffic": 4.0}]}
        return {
            "keywords": [{"keyword": "dakkapel", "volume": 90, "traffic": 12, "position": 3, "difficulty": 8}],
            "total_keywords": 1,
            "total_traffic": 12,
        }

    async def aclose(self) -> None:
        return None

    @property
    def domains(self) -> List[str]:
        return [domain for domain, _ in self.calls]


def utc_today():
    return datetime.now(timezone.utc).date()


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite database so every session sees the same data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        metrics_provider="mock",
        working_days_only=False,
        inter_call_delay_min_seconds=45,
        inter_call_delay_max_seconds=120,
    )


@pytest.fixture
def metrics_client() -> FakeMetricsClient:
    return FakeMetricsClient()


@pytest.fixture
def manager(settings, sessionmaker) -> JobManager:
    return JobManager(settings, sessionmaker)


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def make_runner(settings, sessionmaker, metrics_client, sleeps):
    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    def _make(clock=None, **overrides) -> BatchRunner:
        runner_settings = settings.model_copy(update=overrides)
        kwargs: Dict[str, Any] = {}
        if clock is not None:
            kwargs["clock"] = clock
        return BatchRunner(
            runner_settings,
            sessionmaker=sessionmaker,
            metrics_client=metrics_client,
            sleep=fake_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
def submit_job(manager):
    """Create a job whose domains are all due today."""

    async def _submit(
        domains: List[str],
        name: str = "job",
        kind: EnrichmentKind = EnrichmentKind.WEBSHOP,
        days_ago: Optional[int] = None,
    ):
        start = utc_today() - timedelta(days=days_ago if days_ago is not None else len(domains) + 1)
        submission = await manager.enqueue_job(name, domains, kind, start_date=start)
        return submission.job

    return _submit
