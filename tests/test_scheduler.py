from collections import Counter
from datetime import date, timedelta

from seo_enrichment_service.jobs.scheduler import calculate_end_date, domains_per_day, schedule_domains

START = date(2026, 10, 20)


def _domains(count):
    return [f"site{i}.nl" for i in range(count)]


def test_250_domains_spread_over_14_days():
    domains = _domains(250)
    assert domains_per_day(250) == 18

    scheduled = schedule_domains(domains, START)

    assert calculate_end_date(domains, START) == START + timedelta(days=13)
    assert max(item.scheduled_date for item in scheduled) == START + timedelta(days=13)
    per_day = Counter(item.scheduled_date for item in scheduled)
    assert len(per_day) == 14
    assert max(per_day.values()) == 18
    assert per_day[START + timedelta(days=13)] == 250 - 13 * 18


def test_empty_list_schedules_nothing():
    assert schedule_domains([], START) == []
    assert calculate_end_date([], START) == START
    assert calculate_end_date(0, START) == START


def test_daily_cap_stretches_schedule_past_target_days():
    scheduled = schedule_domains(_domains(2001), START)

    per_day = Counter(item.scheduled_date for item in scheduled)
    assert max(per_day.values()) == 100
    assert len(per_day) == 21
    assert calculate_end_date(2001, START) == START + timedelta(days=20)


def test_order_is_preserved_and_days_are_monotonic():
    domains = _domains(40)
    scheduled = schedule_domains(domains, START)

    assert [item.domain for item in scheduled] == domains
    dates = [item.scheduled_date for item in scheduled]
    assert dates == sorted(dates)
    # ceil(40 / 14) == 3 per day
    assert dates[:4] == [START, START, START, START + timedelta(days=1)]


def test_end_date_matches_assignment_for_many_sizes():
    for count in (1, 2, 13, 14, 15, 99, 140, 1399, 1400, 1401, 3000):
        scheduled = schedule_domains(_domains(count), START, scheduling_days=14, max_per_day=100)
        assert calculate_end_date(count, START) == scheduled[-1].scheduled_date
        per_day = Counter(item.scheduled_date for item in scheduled)
        assert max(per_day.values()) <= 100
        if count <= 1400:
            assert len(per_day) <= 14


def test_custom_limits():
    scheduled = schedule_domains(_domains(10), START, scheduling_days=2, max_per_day=3)
    assert domains_per_day(10, scheduling_days=2, max_per_day=3) == 3
    assert scheduled[-1].scheduled_date == START + timedelta(days=3)
    assert calculate_end_date(10, START, scheduling_days=2, max_per_day=3) == START + timedelta(days=3)
