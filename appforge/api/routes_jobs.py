import uuid
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from appforge.core.status import job_status, request_cancellation, status_view
from appforge.core.workflow import BASE_ESTIMATES, JobStatus, JobType
from appforge.db.store import JobStore
from appforge.schemas.jobs import (
    AnalyzeJobRequest,
    GenerateJobRequest,
    JobCreatedResponse,
    JobListResponse,
    JobStatusResponse,
    ModernizeJobRequest,
)
from appforge.tasks.jobs import run_job_pipeline

router = APIRouter(prefix="/jobs")

_store: JobStore | None = None


def get_store() -> JobStore:
    global _store
    if _store is None:
        _store = JobStore()
    return _store


def _start(store: JobStore, job_type: JobType, fields: dict) -> JobCreatedResponse:
    job_id = str(uuid.uuid4())
    store.create(job_id, {"type": job_type, **fields})
    run_job_pipeline.delay(job_id)
    return JobCreatedResponse(
        job_id=job_id,
        status="started",
        message=f"Job {job_type.value} started. Poll the status URL for progress.",
        estimated_time=BASE_ESTIMATES[job_type],
        status_url=f"/v1/jobs/{job_id}",
    )


@router.post("/generate", response_model=JobCreatedResponse)
def create_generate_job(req: GenerateJobRequest, store: JobStore = Depends(get_store)):
    return _start(store, JobType.GENERATE, {
        "description": req.description,
        "platforms": list(req.platforms),
        "preferences": req.preferences.model_dump(exclude_none=True),
    })


@router.post("/analyze", response_model=JobCreatedResponse)
def create_analyze_job(req: AnalyzeJobRequest, store: JobStore = Depends(get_store)):
    if not Path(req.codebase_path).is_file():
        raise HTTPException(status_code=400, detail="No codebase file provided")
    return _start(store, JobType.ANALYZE, req.model_dump())


@router.post("/modernize", response_model=JobCreatedResponse)
def create_modernize_job(req: ModernizeJobRequest, store: JobStore = Depends(get_store)):
    if not Path(req.codebase_path).is_file():
        raise HTTPException(status_code=400, detail="No codebase file provided")
    return _start(store, JobType.MODERNIZE, req.model_dump())


@router.get("", response_model=JobListResponse)
def list_jobs(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    store: JobStore = Depends(get_store),
):
    jobs = store.list(limit=limit, offset=offset)
    return JobListResponse(jobs=[status_view(j) for j in jobs], total=store.count(), limit=limit, offset=offset)


@router.get("/{job_id}", response_model=JobStatusResponse)
def get_job(job_id: str, store: JobStore = Depends(get_store)):
    return job_status(store, job_id)


@router.delete("/{job_id}", response_model=JobStatusResponse)
def cancel_job(job_id: str, store: JobStore = Depends(get_store)):
    return status_view(request_cancellation(store, job_id))


@router.get("/{job_id}/download")
def download_job(job_id: str, store: JobStore = Depends(get_store)):
    job = store.get(job_id)
    if job.status != JobStatus.COMPLETED:
        raise HTTPException(status_code=400, detail=f"Job not completed yet (status={job.status.value})")
    archive = Path((job.result or {}).get("archive_path", ""))
    if not archive.is_file():
        raise HTTPException(status_code=404, detail="Generated files not found")
    return FileResponse(archive, media_type="application/zip", filename=f"{job.type.value}_{job_id}.zip")
