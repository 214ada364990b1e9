import pytest
from pydantic import ValidationError

from seo_enrichment_service.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.daily_scrape_limit == 50
    assert settings.per_invocation_batch_cap == 4
    assert settings.max_concurrent_jobs == 2
    assert settings.max_retries == 3
    assert settings.business_timezone == "Europe/Amsterdam"
    assert settings.job_completion_policy == "completed"


def test_api_keys_from_comma_separated_env(monkeypatch):
    monkeypatch.setenv("ADMIN_API_KEYS", "admin-1, admin-2")
    monkeypatch.setenv("SUBMITTER_API_KEYS", "sub-1")

    settings = Settings(_env_file=None)

    assert settings.admin_api_keys == ["admin-1", "admin-2"]
    assert settings.submitter_api_keys == ["sub-1"]


def test_delay_range_must_be_ordered():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, inter_call_delay_min_seconds=10, inter_call_delay_max_seconds=5)


def test_unknown_completion_policy_is_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, job_completion_policy="sometimes")
