"""Metrics clients used by the batch runner."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from ..config import Settings, get_settings
from ..jobs.models import EnrichmentKind
from .ahrefs import AhrefsClient
from .errors import AuthError, Forbidden, MetricsFetchError, RateLimited, UpstreamError
from .mock import MockMetricsClient


class MetricsClient(Protocol):
    async def fetch(self, domain: str, kind: EnrichmentKind) -> Dict[str, Any]: ...

    async def aclose(self) -> None: ...


def build_metrics_client(settings: Optional[Settings] = None) -> MetricsClient:
    settings = settings or get_settings()
    if settings.metrics_provider == "mock":
        return MockMetricsClient()
    return AhrefsClient(
        settings.ahrefs_api_key,
        base_url=settings.ahrefs_base_url,
        country=settings.ahrefs_country,
        keyword_limit=settings.ahrefs_keyword_limit,
        timeout=settings.request_timeout_seconds,
        transport_retries=settings.ahrefs_transport_retries,
    )


__all__ = [
    "AhrefsClient",
    "AuthError",
    "Forbidden",
    "MetricsClient",
    "MetricsFetchError",
    "MockMetricsClient",
    "RateLimited",
    "UpstreamError",
    "build_metrics_client",
]
