"""Errors raised by metrics clients."""

from __future__ import annotations

from typing import Optional


class MetricsFetchError(Exception):
    """Base class for failures fetching metrics for a domain."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RateLimited(MetricsFetchError):
    """The upstream API answered 429."""


class AuthError(MetricsFetchError):
    """Missing or rejected API credentials."""


class Forbidden(MetricsFetchError):
    """The plan or key does not allow the requested endpoint."""


class UpstreamError(MetricsFetchError):
    """Any other upstream failure, including malformed responses."""


__all__ = ["AuthError", "Forbidden", "MetricsFetchError", "RateLimited", "UpstreamError"]
