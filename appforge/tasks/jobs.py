from __future__ import annotations
import asyncio
import logging
from datetime import timedelta
from typing import List
from appforge.tasks.celery_app import celery_app
from appforge.core.config import settings
from appforge.core.engine import PipelineRunner
from appforge.core.errors import JobNotFoundError
from appforge.core.workflow import JobStatus
from appforge.db.store import JobStore
from appforge.llm.client import build_model_client
from appforge.workspace.manager import WorkspaceManager

log = logging.getLogger(__name__)

@celery_app.task(name="run_job_pipeline")
def run_job_pipeline(job_id: str) -> str | None:
    store = JobStore()
    runner = PipelineRunner(store=store, model=build_model_client(settings))
    log.info("Starting pipeline", extra={"job_id": job_id, "stage": "-"})
    try:
        job = asyncio.run(runner.run(job_id))
    except JobNotFoundError:
        log.error("Job not found", extra={"job_id": job_id, "stage": "-"})
        return None
    log.info("Pipeline finished with status %s", job.status.value, extra={"job_id": job_id, "stage": job.status.value})
    return job.status.value

@celery_app.task(name="purge_expired_jobs")
def purge_expired_jobs() -> List[str]:
    store = JobStore()
    purged = store.purge_older_than(
        timedelta(days=settings.job_retention_days),
        statuses=(JobStatus.COMPLETED, JobStatus.FAILED),
    )
    for job_id in purged:
        WorkspaceManager(job_id).remove()
    return purged
