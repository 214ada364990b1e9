"""Spread a job's domains over calendar days."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import List, Sequence, Union

from .models import ScheduledDomain

DEFAULT_SCHEDULING_DAYS = 14
DEFAULT_MAX_PER_DAY = 100


def domains_per_day(
    count: int,
    scheduling_days: int = DEFAULT_SCHEDULING_DAYS,
    max_per_day: int = DEFAULT_MAX_PER_DAY,
) -> int:
    """Daily slice size: ``min(ceil(count / scheduling_days), max_per_day)``."""

    if count <= 0:
        return 0
    return min(math.ceil(count / scheduling_days), max_per_day)


def schedule_domains(
    domains: Sequence[str],
    start_date: date,
    scheduling_days: int = DEFAULT_SCHEDULING_DAYS,
    max_per_day: int = DEFAULT_MAX_PER_DAY,
) -> List[ScheduledDomain]:
    """Assign each domain a day, in input order, starting at ``start_date``."""

    per_day = domains_per_day(len(domains), scheduling_days, max_per_day)
    if per_day == 0:
        return []
    return [
        ScheduledDomain(domain=domain, scheduled_date=start_date + timedelta(days=index // per_day))
        for index, domain in enumerate(domains)
    ]


def calculate_end_date(
    domains: Union[int, Sequence[str]],
    start_date: date,
    scheduling_days: int = DEFAULT_SCHEDULING_DAYS,
    max_per_day: int = DEFAULT_MAX_PER_DAY,
) -> date:
    """Last scheduled day for ``domains`` (a list or a count), inclusive."""

    count = domains if isinstance(domains, int) else len(domains)
    per_day = domains_per_day(count, scheduling_days, max_per_day)
    if per_day == 0:
        return start_date
    total_days = math.ceil(count / per_day)
    return start_date + timedelta(days=total_days - 1)


__all__ = [
    "DEFAULT_MAX_PER_DAY",
    "DEFAULT_SCHEDULING_DAYS",
    "calculate_end_date",
    "domains_per_day",
    "schedule_domains",
]
