"""Working-day gate for batch invocations."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

WEEKEND = (5, 6)


def is_working_day(now_utc: datetime, tz_name: str) -> bool:
    """True Monday to Friday in ``tz_name``; naive datetimes are taken as UTC."""

    if now_utc.tzinfo is None:
        now_utc = now_utc.replace(tzinfo=timezone.utc)
    return now_utc.astimezone(ZoneInfo(tz_name)).weekday() not in WEEKEND


__all__ = ["is_working_day"]
