"""RQ helpers for running scan invocations in the background."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from redis import Redis
from rq import Queue

from ..config import get_settings
from ..db.session import dispose_engine
from .runner import BatchRunner

logger = logging.getLogger(__name__)


async def _run_once() -> Dict[str, Any]:
    runner = BatchRunner(get_settings())
    try:
        result = await runner.run()
    finally:
        await runner.aclose()
        await dispose_engine()
    return result.to_dict()


def process_scan_invocation() -> Dict[str, Any]:
    """RQ job entry point: run one batch invocation."""

    return asyncio.run(_run_once())


def enqueue_scan_with_rq() -> str:
    settings = get_settings()
    redis = Redis.from_url(settings.redis_url)
    queue = Queue(settings.rq_queue_name, connection=redis)
    # an invocation sleeps up to two minutes between domains
    job = queue.enqueue(process_scan_invocation, job_timeout=settings.lease_ttl_seconds)
    logger.info("Enqueued scan invocation", extra={"rq_job_id": job.id})
    return job.id


__all__ = ["enqueue_scan_with_rq", "process_scan_invocation"]
