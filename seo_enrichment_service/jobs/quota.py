"""Split one invocation's processing budget between active jobs."""

from __future__ import annotations

from typing import Dict, Mapping, Sequence


def allocate_quotas(job_ids: Sequence[str], remaining: Mapping[str, int], budget: int) -> Dict[str, int]:
    """Return how many domains each job may process this invocation.

    Jobs get an equal share of ``budget``; a job with fewer eligible domains
    than its share takes what it has. The shortfall, plus whatever the integer
    split left over, is handed in the order of ``job_ids`` to jobs that can
    still absorb more. The redistribution is a single pass, so the total never
    exceeds ``budget`` and no quota exceeds the job's remaining count. When
    the jobs together have at least ``budget`` domains, all of it is used.
    """

    quotas: Dict[str, int] = {}
    budget = max(budget, 0)
    if not job_ids:
        return quotas

    if len(job_ids) == 1:
        job_id = job_ids[0]
        quotas[job_id] = min(max(remaining.get(job_id, 0), 0), budget)
        return quotas

    equal_share = budget // len(job_ids)
    # the remainder of the integer split is handed out with the shortfalls
    surplus = budget - equal_share * len(job_ids)
    for job_id in job_ids:
        available = max(remaining.get(job_id, 0), 0)
        if available < equal_share:
            quotas[job_id] = available
            surplus += equal_share - available
        else:
            quotas[job_id] = equal_share

    for job_id in job_ids:
        if surplus <= 0:
            break
        headroom = max(remaining.get(job_id, 0), 0) - quotas[job_id]
        if headroom > 0:
            extra = min(headroom, surplus)
            quotas[job_id] += extra
            surplus -= extra

    return quotas


__all__ = ["allocate_quotas"]
