"""Offline metrics provider producing stable data per domain."""

from __future__ import annotations

import asyncio
import random
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from ..jobs.models import EnrichmentKind

_WORDS = ("aannemer", "verbouwing", "dakkapel", "badkamer", "keuken", "renovatie", "uitbouw", "schilder")


class MockMetricsClient:
    """Seeds a random generator with the domain name so reruns agree."""

    def __init__(self, latency: float = 0.1, today: Optional[date] = None) -> None:
        self.latency = latency
        self.today = today

    async def aclose(self) -> None:
        return None

    async def fetch(self, domain: str, kind: EnrichmentKind) -> Dict[str, Any]:
        if self.latency:
            await asyncio.sleep(self.latency)
        rng = random.Random(domain)
        if EnrichmentKind(kind) is EnrichmentKind.WEBSHOP:
            return {"traffic_history": self._traffic_history(rng)}
        return self._keywords(rng, domain)

    def _traffic_history(self, rng: random.Random):
        today = self.today or datetime.now(timezone.utc).date()
        base = rng.randint(100, 50_000)
        history = []
        for offset in range(12, -1, -1):
            month_index = today.year * 12 + today.month - 1 - offset
            year, month = divmod(month_index, 12)
            history.append(
                {
                    "date": f"{year:04d}-{month + 1:02d}",
                    "organic_traffic": float(int(base * rng.uniform(0.6, 1.4))),
                    "paid_traffic": float(int(base * rng.uniform(0.0, 0.2))),
                }
            )
        return history

    def _keywords(self, rng: random.Random, domain: str) -> Dict[str, Any]:
        stem = domain.split(".")[0]
        keywords = []
        for _ in range(rng.randint(0, 25)):
            keywords.append(
                {
                    "keyword": f"{rng.choice(_WORDS)} {stem}",
                    "volume": rng.randint(10, 5_000),
                    "traffic": rng.randint(0, 800),
                    "position": rng.randint(1, 100),
                    "difficulty": rng.randint(0, 100),
                }
            )
        keywords.sort(key=lambda item: item["traffic"], reverse=True)
        return {
            "keywords": keywords,
            "total_keywords": len(keywords),
            "total_traffic": sum(item["traffic"] for item in keywords),
        }


__all__ = ["MockMetricsClient"]
