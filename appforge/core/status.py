"""Outward job status view and cancellation requests."""
from datetime import datetime, timezone

from appforge.core.errors import InvalidTransitionError, StaleJobError
from appforge.core.workflow import JobStatus, can_transition, estimate_time_remaining
from appforge.db.store import JobStore
from appforge.schemas.jobs import JobRecord, JobStatusResponse


def status_view(job: JobRecord) -> JobStatusResponse:
    return JobStatusResponse(
        job_id=job.id,
        type=job.type,
        status=job.status,
        progress=job.progress,
        created_at=job.created_at,
        updated_at=job.updated_at,
        result=job.result if job.status == JobStatus.COMPLETED else None,
        error=job.error if job.status == JobStatus.FAILED else None,
        estimated_time_remaining=estimate_time_remaining(job.type, job.status, job.progress),
    )


def job_status(store: JobStore, job_id: str) -> JobStatusResponse:
    """Last persisted state of a job; raises JobNotFoundError for unknown ids."""
    return status_view(store.get(job_id))


def request_cancellation(store: JobStore, job_id: str, attempts: int = 3) -> JobRecord:
    """
    Mark a job cancelled. The runner notices at its next stage boundary;
    a stage already in flight runs to completion.
    """
    for attempt in range(attempts):
        job = store.get(job_id)
        if not can_transition(job.status, JobStatus.CANCELLED):
            raise InvalidTransitionError(job.status.value, JobStatus.CANCELLED.value)
        try:
            return store.update(
                job_id,
                {"status": JobStatus.CANCELLED, "cancelled_at": datetime.now(timezone.utc).isoformat()},
                expected_status=job.status,
            )
        except StaleJobError:
            # The runner moved the job on between our read and write.
            if attempt == attempts - 1:
                raise
    raise StaleJobError(job_id, JobStatus.CANCELLED.value, "unknown")
