"""FastAPI routes for the SEO enrichment service."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..jobs.manager import JobManager, get_job_manager
from ..jobs.models import EnrichmentKind
from ..security.api_keys import Role, require_roles
from ..worker.rq_worker import enqueue_scan_with_rq
from ..worker.runner import BatchRunner

router = APIRouter()


async def get_batch_runner() -> AsyncIterator[BatchRunner]:
    runner = BatchRunner()
    try:
        yield runner
    finally:
        await runner.aclose()


class JobCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Friendly name for the job")
    domains: List[str] = Field(..., min_length=1, description="Domains to enrich")
    enrichment_kind: EnrichmentKind = Field(EnrichmentKind.WEBSHOP, description="Which metrics to collect")
    start_date: Optional[date] = Field(None, description="First scheduled day, defaults to tomorrow")


class JobCreateResponse(BaseModel):
    job_id: str
    status: str
    total_domains: int
    start_date: date
    end_date: date
    warnings: List[str] = Field(default_factory=list)


@router.post("/jobs", response_model=JobCreateResponse)
async def submit_job(
    payload: JobCreateRequest,
    manager: JobManager = Depends(get_job_manager),
    _: Role = Depends(require_roles(Role.ADMIN, Role.SUBMITTER)),
) -> JobCreateResponse:
    try:
        submission = await manager.enqueue_job(
            payload.name, payload.domains, payload.enrichment_kind, start_date=payload.start_date
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    job = submission.job
    return JobCreateResponse(
        job_id=job.id,
        status=job.status.value,
        total_domains=job.total_domains,
        start_date=job.start_date,
        end_date=job.end_date,
        warnings=[f"Invalid domain {value!r}" for value in submission.rejected],
    )


@router.get("/jobs")
async def list_jobs(
    manager: JobManager = Depends(get_job_manager),
    _: Role = Depends(require_roles(Role.ADMIN, Role.SUBMITTER)),
) -> List[Dict[str, Any]]:
    return await manager.list_jobs()


@router.get("/jobs/{job_id}")
async def get_job(
    job_id: str,
    manager: JobManager = Depends(get_job_manager),
    _: Role = Depends(require_roles(Role.ADMIN, Role.SUBMITTER)),
) -> Dict[str, Any]:
    detail = await manager.get_job_detail(job_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Job not found")
    return detail


@router.delete("/jobs/{job_id}")
async def delete_job(
    job_id: str,
    manager: JobManager = Depends(get_job_manager),
    _: Role = Depends(require_roles(Role.ADMIN)),
) -> Dict[str, bool]:
    if not await manager.delete_job(job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return {"success": True}


@router.post("/scan")
async def trigger_scan(
    background: bool = Query(False, description="Enqueue on RQ instead of running inline"),
    runner: BatchRunner = Depends(get_batch_runner),
    _: Role = Depends(require_roles(Role.ADMIN)),
):
    if background:
        return {"enqueued": True, "rq_job_id": enqueue_scan_with_rq()}
    result = await runner.run()
    if not result.ok:
        return JSONResponse(status_code=500, content={"error": result.error, "message": result.message})
    return result.to_dict()


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime


@router.get("/health", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
    return HealthResponse(timestamp=datetime.now(timezone.utc))
