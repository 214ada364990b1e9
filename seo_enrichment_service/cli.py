"""CLI entrypoint for the SEO enrichment service."""

from __future__ import annotations

import asyncio
import json
import subprocess
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import typer

from .config import Settings, get_settings
from .db.session import dispose_engine
from .jobs.domains import normalize_domains
from .jobs.manager import get_job_manager
from .jobs.models import EnrichmentKind
from .jobs.scheduler import calculate_end_date, domains_per_day, schedule_domains
from .logging_utils import configure_logging
from .worker.runner import BatchRunner, run_worker

app = typer.Typer(help="SEO Enrichment Service command line interface")


def _read_domains(path: Path) -> List[str]:
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def _tomorrow():
    return datetime.now(timezone.utc).date() + timedelta(days=1)


@app.command()
def show_config() -> None:
    """Print the active configuration."""

    settings = get_settings()
    typer.echo(settings.model_dump_json(indent=2, exclude={"ahrefs_api_key", "admin_api_keys", "submitter_api_keys"}))


@app.command()
def plan(
    domains_file: Path = typer.Argument(..., exists=True, readable=True),
    start_date: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="First day, defaults to tomorrow"),
) -> None:
    """Show how a domain list would be spread over days, without storing anything."""

    settings = get_settings()
    domains, rejected = normalize_domains(_read_domains(domains_file))
    start = start_date.date() if start_date else _tomorrow()
    per_day = domains_per_day(len(domains), settings.scheduling_days, settings.max_domains_per_day)
    end = calculate_end_date(len(domains), start, settings.scheduling_days, settings.max_domains_per_day)

    typer.echo(f"{len(domains)} domains, {per_day} per day, {start.isoformat()} -> {end.isoformat()}")
    scheduled = schedule_domains(domains, start, settings.scheduling_days, settings.max_domains_per_day)
    days = Counter(item.scheduled_date for item in scheduled)
    for day, count in sorted(days.items()):
        typer.echo(f"  {day.isoformat()}: {count}")
    for value in rejected:
        typer.echo(f"Skipped invalid domain {value!r}", err=True)


@app.command()
def submit(
    name: str,
    domains_file: Path = typer.Argument(..., exists=True, readable=True),
    kind: EnrichmentKind = typer.Option(EnrichmentKind.WEBSHOP, help="Enrichment kind"),
    start_date: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="First day, defaults to tomorrow"),
) -> None:
    """Create a scan job from a newline separated file of domains."""

    try:
        submission = asyncio.run(
            _submit(name, _read_domains(domains_file), kind, start_date.date() if start_date else None)
        )
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    job = submission.job
    typer.echo(
        f"Submitted job {job.id} ({job.status.value}) with {job.total_domains} domains, "
        f"{job.start_date.isoformat()} -> {job.end_date.isoformat()}"
    )
    for value in submission.rejected:
        typer.echo(f"Skipped invalid domain {value!r}", err=True)


async def _scan_once(settings: Settings):
    runner = BatchRunner(settings)
    try:
        return await runner.run()
    finally:
        await runner.aclose()
        await dispose_engine()


async def _submit(name, domains, kind, start_date):
    try:
        return await get_job_manager().enqueue_job(name, domains, kind, start_date=start_date)
    finally:
        await dispose_engine()


async def _work(settings: Settings, interval: int, once: bool) -> None:
    try:
        await run_worker(BatchRunner(settings), interval, once=once)
    finally:
        await dispose_engine()


@app.command()
def scan(log_level: str = typer.Option("INFO", help="Logging level")) -> None:
    """Run one batch invocation and print its result."""

    settings = get_settings()
    configure_logging(settings.log_file, log_level)
    result = asyncio.run(_scan_once(settings))
    typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def worker(
    interval: Optional[int] = typer.Option(None, help="Seconds between invocations"),
    log_level: str = typer.Option("INFO", help="Logging level"),
    once: bool = typer.Option(False, help="Run a single invocation and exit"),
) -> None:
    """Invoke the batch runner on a fixed interval."""

    settings = get_settings()
    configure_logging(settings.log_file, log_level)
    asyncio.run(_work(settings, interval or settings.worker_interval_seconds, once))


@app.command()
def migrate(direction: str = typer.Argument("upgrade"), revision: str = typer.Argument("head")) -> None:
    """Run Alembic migrations."""

    settings = get_settings()
    subprocess.run(["alembic", "-c", str(settings.alembic_ini_path), direction, revision], check=True)


if __name__ == "__main__":
    app()
