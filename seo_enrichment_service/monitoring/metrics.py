"""Prometheus metrics and monitoring utilities."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

BATCH_RUNS_TOTAL = Counter("seo_enrichment_batch_runs_total", "Batch invocations by outcome", ["outcome"])
DOMAINS_COMPLETED_TOTAL = Counter("seo_enrichment_domains_completed_total", "Domains enriched successfully")
DOMAINS_RETRIED_TOTAL = Counter("seo_enrichment_domains_retried_total", "Domain failures returned to pending")
DOMAINS_FAILED_TOTAL = Counter("seo_enrichment_domains_failed_total", "Domains that exhausted their retries")
DOMAINS_RECOVERED_TOTAL = Counter("seo_enrichment_domains_recovered_total", "Stuck domains reset to pending")
JOBS_PROMOTED_TOTAL = Counter("seo_enrichment_jobs_promoted_total", "Queued jobs promoted to pending")
JOBS_COMPLETED_TOTAL = Counter("seo_enrichment_jobs_finished_total", "Jobs reaching a terminal status", ["status"])
FETCH_ERRORS_TOTAL = Counter("seo_enrichment_fetch_errors_total", "Metrics fetch failures", ["error"])
ACTIVE_JOBS = Gauge("seo_enrichment_active_jobs", "Jobs selected by the last invocation")
DAILY_BUDGET_REMAINING = Gauge("seo_enrichment_daily_budget_remaining", "Metrics records left for today")
FETCH_LATENCY = Histogram("seo_enrichment_fetch_latency_seconds", "Latency of metrics fetches", ["kind"])

metrics_router = APIRouter()


@metrics_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "ACTIVE_JOBS",
    "BATCH_RUNS_TOTAL",
    "DAILY_BUDGET_REMAINING",
    "DOMAINS_COMPLETED_TOTAL",
    "DOMAINS_FAILED_TOTAL",
    "DOMAINS_RECOVERED_TOTAL",
    "DOMAINS_RETRIED_TOTAL",
    "FETCH_ERRORS_TOTAL",
    "FETCH_LATENCY",
    "JOBS_COMPLETED_TOTAL",
    "JOBS_PROMOTED_TOTAL",
    "metrics_router",
]
