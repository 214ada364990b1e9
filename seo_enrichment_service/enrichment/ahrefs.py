"""Async client for the Ahrefs v3 site explorer API."""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..jobs.models import EnrichmentKind
from ..monitoring.metrics import FETCH_LATENCY
from .errors import AuthError, Forbidden, RateLimited, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.ahrefs.com/v3"


def _one_year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        # 29 February
        return day.replace(year=day.year - 1, day=28)


def _extract_rows(data: Any, key: str, endpoint: str) -> List[Dict[str, Any]]:
    """Accept a bare list, ``{key: [...]}`` or ``{"rows": [...]}``."""

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for candidate in (key, "rows"):
            if isinstance(data.get(candidate), list):
                return data[candidate]
        keys = ", ".join(data.keys())
        logger.error("Unexpected %s response: %s", endpoint, str(data)[:500])
        raise UpstreamError(f"Unexpected {endpoint} response format. Keys: {keys}")
    raise UpstreamError(f"Unexpected {endpoint} response type: {type(data).__name__}")


def _number(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _integer(value: Any) -> int:
    return int(_number(value))


class AhrefsClient:
    """Fetches traffic history or organic keywords for a domain."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        country: str = "nl",
        keyword_limit: int = 1000,
        timeout: float = 30.0,
        transport_retries: int = 2,
        retry_wait: Any = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.country = country
        self.keyword_limit = keyword_limit
        self.transport_retries = transport_retries
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=4)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AhrefsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _get(self, path: str, params: Dict[str, str]) -> Any:
        if not self.api_key:
            raise AuthError("AHREFS_API_KEY is not set")

        url = f"{self.base_url}/{path}"
        headers = {"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"}
        logger.info("Ahrefs API call", extra={"path": path, "target": params.get("target")})

        try:
            async for attempt in AsyncRetrying(
                reraise=True,
                stop=stop_after_attempt(self.transport_retries),
                wait=self.retry_wait,
                retry=retry_if_exception_type(httpx.TransportError),
            ):
                with attempt:
                    response = await self._client.get(url, params=params, headers=headers)
        except httpx.TransportError as exc:
            raise UpstreamError(f"Ahrefs request failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimited("Ahrefs rate limited (429). Try again later.", status_code=429)
        if response.status_code == 401:
            raise AuthError("Ahrefs authentication failed (401). Check your API key.", status_code=401)
        if response.status_code == 403:
            raise Forbidden(
                "Ahrefs access denied (403). Your plan may not support this endpoint.", status_code=403
            )
        if response.status_code >= 400:
            logger.error("Ahrefs API error %s: %s", response.status_code, response.text[:500])
            raise UpstreamError(
                f"Ahrefs API error: {response.status_code} - {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Ahrefs returned invalid JSON for {path}") from exc

    async def traffic_history(self, domain: str, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Monthly organic and paid traffic over the last twelve months."""

        today = today or datetime.now(timezone.utc).date()
        data = await self._get(
            "site-explorer/metrics-history",
            {
                "target": domain,
                "mode": "domain",
                "date_from": _one_year_before(today).isoformat(),
                "date_to": today.isoformat(),
                "history_grouping": "monthly",
                "output": "json",
            },
        )
        rows = _extract_rows(data, "metrics", "metrics-history")
        return [
            {
                "date": str(row.get("date") or row.get("month") or "")[:7],
                "organic_traffic": _number(row.get("org_traffic", row.get("organic_traffic"))),
                "paid_traffic": _number(row.get("paid_traffic")),
            }
            for row in rows
        ]

    async def organic_keywords(self, domain: str) -> Dict[str, Any]:
        """Keywords the domain ranks for, ordered by traffic."""

        data = await self._get(
            "site-explorer/organic-keywords",
            {
                "target": domain,
                "mode": "domain",
                "country": self.country,
                "select": "keyword,volume,traffic,position,difficulty",
                "limit": str(self.keyword_limit),
                "order_by": "traffic:desc",
                "output": "json",
            },
        )
        rows = _extract_rows(data, "keywords", "organic-keywords")
        keywords = [
            {
                "keyword": str(row.get("keyword") or ""),
                "volume": _integer(row.get("volume")),
                "traffic": _integer(row.get("traffic")),
                "position": _integer(row.get("position")),
                "difficulty": _integer(row.get("difficulty")),
            }
            for row in rows
        ]
        return {
            "keywords": keywords,
            "total_keywords": len(keywords),
            "total_traffic": sum(keyword["traffic"] for keyword in keywords),
        }

    async def fetch(self, domain: str, kind: EnrichmentKind) -> Dict[str, Any]:
        kind = EnrichmentKind(kind)
        start = time.perf_counter()
        try:
            if kind is EnrichmentKind.WEBSHOP:
                return {"traffic_history": await self.traffic_history(domain)}
            return await self.organic_keywords(domain)
        finally:
            FETCH_LATENCY.labels(kind=kind.value).observe(time.perf_counter() - start)


__all__ = ["AhrefsClient", "DEFAULT_BASE_URL"]
