import json

from typer.testing import CliRunner

from seo_enrichment_service import cli
from seo_enrichment_service.config import Settings
from seo_enrichment_service.worker.runner import BatchResult

runner = CliRunner()


def _settings(**overrides):
    return Settings(_env_file=None, metrics_provider="mock", ahrefs_api_key="hidden-key", **overrides)


def test_plan_prints_daily_spread(tmp_path, monkeypatch):
    domains_file = tmp_path / "domains.txt"
    domains_file.write_text("\n".join([f"shop{i}.nl" for i in range(30)] + ["not a domain", ""]))
    monkeypatch.setattr(cli, "get_settings", _settings)

    result = runner.invoke(cli.app, ["plan", str(domains_file), "--start-date", "2026-11-02"])

    assert result.exit_code == 0, result.output
    assert "30 domains, 3 per day, 2026-11-02 -> 2026-11-11" in result.output
    assert "  2026-11-02: 3" in result.output
    assert "Skipped invalid domain 'not a domain'" in result.output


def test_show_config_hides_secrets(monkeypatch):
    monkeypatch.setattr(cli, "get_settings", _settings)

    result = runner.invoke(cli.app, ["show-config"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["daily_scrape_limit"] == 50
    assert "ahrefs_api_key" not in payload
    assert "hidden-key" not in result.output


def test_submit_without_valid_domains_exits_nonzero(tmp_path, monkeypatch):
    domains_file = tmp_path / "domains.txt"
    domains_file.write_text("nonsense\n")

    class _Manager:
        async def enqueue_job(self, *args, **kwargs):
            raise ValueError("No valid domains provided")

    monkeypatch.setattr(cli, "get_job_manager", _Manager)

    result = runner.invoke(cli.app, ["submit", "bad", str(domains_file)])

    assert result.exit_code == 1
    assert "No valid domains provided" in result.output


def test_scan_reports_failure(monkeypatch):
    async def _failed_scan(settings):
        return BatchResult(status="error", message="Batch scan failed", error="database unavailable")

    monkeypatch.setattr(cli, "get_settings", _settings)
    monkeypatch.setattr(cli, "configure_logging", lambda *_, **__: None)
    monkeypatch.setattr(cli, "_scan_once", _failed_scan)

    result = runner.invoke(cli.app, ["scan"])

    assert result.exit_code == 1
    assert json.loads(result.output)["error"] == "database unavailable"
