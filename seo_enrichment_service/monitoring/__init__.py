"""Monitoring helpers."""

from .metrics import (
    ACTIVE_JOBS,
    BATCH_RUNS_TOTAL,
    DAILY_BUDGET_REMAINING,
    DOMAINS_COMPLETED_TOTAL,
    DOMAINS_FAILED_TOTAL,
    DOMAINS_RECOVERED_TOTAL,
    DOMAINS_RETRIED_TOTAL,
    FETCH_ERRORS_TOTAL,
    FETCH_LATENCY,
    JOBS_COMPLETED_TOTAL,
    JOBS_PROMOTED_TOTAL,
    metrics_router,
)

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
