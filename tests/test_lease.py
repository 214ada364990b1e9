from datetime import timedelta

from seo_enrichment_service.db.models import utcnow
from seo_enrichment_service.worker.lease import InvocationLease


async def test_second_holder_is_refused_until_release(sessionmaker):
    first = InvocationLease(holder="first", sessionmaker=sessionmaker)
    second = InvocationLease(holder="second", sessionmaker=sessionmaker)

    assert await first.acquire()
    assert first.held
    assert not await second.acquire()

    await first.release()
    assert not first.held
    assert await second.acquire()


async def test_expired_lease_is_taken_over(sessionmaker):
    start = utcnow()
    stale = InvocationLease(holder="crashed", ttl_seconds=60, sessionmaker=sessionmaker, clock=lambda: start)
    assert await stale.acquire()

    later = start + timedelta(seconds=61)
    fresh = InvocationLease(holder="fresh", ttl_seconds=60, sessionmaker=sessionmaker, clock=lambda: later)
    assert await fresh.acquire()

    # the crashed holder releasing late must not drop the new lease
    await stale.release()
    third = InvocationLease(holder="third", sessionmaker=sessionmaker, clock=lambda: later)
    assert not await third.acquire()


async def test_holder_can_renew(sessionmaker):
    lease = InvocationLease(holder="same", sessionmaker=sessionmaker)
    assert await lease.acquire()
    assert await lease.acquire()


async def test_release_without_acquire_is_a_noop(sessionmaker):
    lease = InvocationLease(holder="idle", sessionmaker=sessionmaker)
    await lease.release()
    assert not lease.held


async def test_renew_extends_expiry_and_reports_takeover(sessionmaker):
    now = [utcnow()]
    lease = InvocationLease(holder="runner", ttl_seconds=60, sessionmaker=sessionmaker, clock=lambda: now[0])
    rival = InvocationLease(holder="rival", ttl_seconds=60, sessionmaker=sessionmaker, clock=lambda: now[0])
    assert not await lease.renew()
    assert await lease.acquire()

    now[0] += timedelta(seconds=50)
    assert await lease.renew()
    now[0] += timedelta(seconds=50)
    assert not await rival.acquire()

    now[0] += timedelta(seconds=61)
    assert await rival.acquire()
    assert not await lease.renew()
    assert not lease.held
