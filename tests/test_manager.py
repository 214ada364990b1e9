from datetime import date, datetime, timedelta

import pytest

from seo_enrichment_service.db.models import utcnow
from seo_enrichment_service.jobs.models import DomainStatus, EnrichmentKind, JobStatus
from seo_enrichment_service.jobs.repository import DomainStore, JobStore, MetricsStore
from seo_enrichment_service.jobs.state_machine import InvalidTransition


async def test_enqueue_normalizes_and_reports_rejected(manager):
    submission = await manager.enqueue_job(
        "shops", ["https://www.Shop-One.nl/", "shop-two.nl", "shop-one.nl", "nonsense"], start_date=date(2026, 11, 2)
    )

    job = submission.job
    assert submission.rejected == ["nonsense"]
    assert job.total_domains == 2
    assert job.status is JobStatus.PENDING
    assert job.start_date == date(2026, 11, 2)
    assert job.end_date == date(2026, 11, 3)


async def test_start_date_defaults_to_tomorrow(manager):
    submission = await manager.enqueue_job("shops", ["a.nl"])
    assert submission.job.start_date == utcnow().date() + timedelta(days=1)


async def test_enqueue_rejects_lists_without_valid_domains(manager):
    with pytest.raises(ValueError, match="No valid domains provided"):
        await manager.enqueue_job("empty", ["", "not a domain"])


async def test_third_job_is_queued(manager):
    await manager.enqueue_job("one", ["a.nl"])
    await manager.enqueue_job("two", ["b.nl"])
    third = await manager.enqueue_job("three", ["c.nl"], EnrichmentKind.BOUWBEDRIJF)

    assert third.job.status is JobStatus.QUEUED
    assert third.job.enrichment_kind is EnrichmentKind.BOUWBEDRIJF


async def test_detail_groups_domains_by_date(manager):
    domains = [f"d{i}.nl" for i in range(30)]
    submission = await manager.enqueue_job("big", domains, start_date=date(2026, 11, 2))

    detail = await manager.get_job_detail(submission.job.id)

    assert detail["job"]["name"] == "big"
    assert detail["stats"]["total"] == 30
    assert detail["stats"]["pending"] == 30
    assert detail["by_date"]["2026-11-02"] == ["d0.nl", "d1.nl", "d2.nl"]
    assert len(detail["by_date"]) == 10
    assert detail["domains"][0]["metrics"] == []


async def test_list_jobs_newest_first(manager):
    await manager.enqueue_job("older", ["a.nl"])
    await manager.enqueue_job("newer", ["b.nl"])

    jobs = await manager.list_jobs()

    assert [job["name"] for job in jobs] == ["newer", "older"]
    assert jobs[0]["stats"]["total"] == 1


async def test_delete_removes_job_and_domains(manager, sessionmaker):
    submission = await manager.enqueue_job("gone", ["a.nl", "b.nl"])

    assert await manager.delete_job(submission.job.id)
    assert await manager.get_job(submission.job.id) is None
    assert await DomainStore(sessionmaker).list_for_job(submission.job.id) == []
    assert not await manager.delete_job(submission.job.id)
    assert await manager.get_job_detail(submission.job.id) is None


async def test_stores_reject_invalid_transitions(manager, sessionmaker):
    submission = await manager.enqueue_job("fsm", ["a.nl"])
    job_store = JobStore(sessionmaker)
    domain_store = DomainStore(sessionmaker)
    record = (await domain_store.list_for_job(submission.job.id))[0]

    with pytest.raises(InvalidTransition):
        await domain_store.set_status(record.id, DomainStatus.COMPLETED)
    with pytest.raises(InvalidTransition):
        await job_store.set_status(submission.job.id, JobStatus.QUEUED)

    assert await job_store.set_status(submission.job.id, JobStatus.COMPLETED)
    with pytest.raises(InvalidTransition):
        await job_store.set_status(submission.job.id, JobStatus.RUNNING)
    assert not await job_store.set_status("missing", JobStatus.RUNNING)


async def test_complete_stores_metrics_and_status_together(manager, sessionmaker):
    submission = await manager.enqueue_job("atomic", ["a.nl", "b.nl"])
    store = DomainStore(sessionmaker)
    metrics = MetricsStore(sessionmaker)
    first, second = await store.list_for_job(submission.job.id)
    midnight = datetime.combine(utcnow().date(), datetime.min.time())

    # not processing: nothing is written
    with pytest.raises(InvalidTransition):
        await store.complete(first.id, EnrichmentKind.WEBSHOP, {"traffic_history": []})
    assert await metrics.count_created_since(midnight) == 0
    assert (await store.get(first.id)).status is DomainStatus.PENDING

    assert await store.set_status(second.id, DomainStatus.PROCESSING, error_message="old error")
    await store.complete(second.id, EnrichmentKind.WEBSHOP, {"traffic_history": []})
    completed = await store.get(second.id)
    assert completed.status is DomainStatus.COMPLETED
    assert completed.error_message is None
    assert await metrics.count_created_since(midnight) == 1
