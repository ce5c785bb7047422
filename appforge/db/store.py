"""Durable job records.

Every ``update`` is a read-merge-write inside one database transaction that
holds the row for its whole duration: ``SELECT ... FOR UPDATE`` on server
databases, ``BEGIN IMMEDIATE`` on SQLite (see ``appforge.db.session``). The
atomicity therefore holds across processes, not just threads. No
application-level lock is held, so writers on different jobs only ever wait
on the database itself.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from appforge.core.errors import DuplicateJobError, InvalidTransitionError, JobNotFoundError, StaleJobError
from appforge.core.workflow import JobStatus, JobType, is_forward
from appforge.db.models import Job, utcnow
from appforge.schemas.jobs import JobRecord

log = logging.getLogger(__name__)

COLUMN_FIELDS = ("status", "progress", "result", "error")
IMMUTABLE_FIELDS = ("id", "type", "created_at")


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


class JobStore:
    def __init__(self, session_factory: Optional[sessionmaker] = None):
        if session_factory is None:
            from appforge.db.session import SessionLocal
            session_factory = SessionLocal
        self._session_factory = session_factory

    @staticmethod
    def _to_record(job: Job) -> JobRecord:
        return JobRecord(
            id=job.id,
            type=JobType(job.type),
            status=JobStatus(job.status),
            progress=job.progress,
            created_at=job.created_at,
            updated_at=job.updated_at,
            result=job.result,
            error=job.error,
            payload=dict(job.payload or {}),
        )

    @staticmethod
    def _apply(job: Job, fields: Dict[str, Any]) -> None:
        """Merge ``fields`` into ``job``; status only moves forward and progress never drops."""
        extra = {}
        for key, value in fields.items():
            if key in IMMUTABLE_FIELDS:
                if key == "type" and value is not None and _enum_value(value) == job.type:
                    continue
                if key == "id" and value == job.id:
                    continue
                raise ValueError(f"Job field '{key}' cannot be changed")
            if key == "updated_at":
                continue
            if key == "status":
                target = JobStatus(_enum_value(value))
                if not is_forward(job.status, target):
                    raise InvalidTransitionError(job.status, target.value)
                job.status = target.value
            elif key == "progress":
                progress = int(value)
                if not 0 <= progress <= 100:
                    raise ValueError(f"progress must be within 0..100, got {progress}")
                if progress < (job.progress or 0):
                    raise ValueError(f"progress cannot go back from {job.progress} to {progress}")
                job.progress = progress
            elif key in COLUMN_FIELDS:
                setattr(job, key, value)
            else:
                extra[key] = value
        if extra:
            # Reassign so the JSON column is flagged dirty.
            job.payload = {**(job.payload or {}), **extra}
        job.updated_at = utcnow()

    def create(self, job_id: str, fields: Dict[str, Any]) -> JobRecord:
        if "type" not in fields:
            raise ValueError("A job needs a type")
        fields = dict(fields)
        job_type = JobType(_enum_value(fields.pop("type")))
        fields.pop("id", None)
        created_at = fields.pop("created_at", None) or utcnow()
        job = Job(
            id=job_id,
            type=job_type.value,
            status=JobStatus.CREATED.value,
            progress=0,
            created_at=created_at,
            updated_at=created_at,
            payload={},
        )
        try:
            with self._session_factory() as db, db.begin():
                if db.get(Job, job_id) is not None:
                    raise DuplicateJobError(job_id)
                self._apply(job, fields)
                db.add(job)
                db.flush()
                record = self._to_record(job)
        except IntegrityError as e:
            raise DuplicateJobError(job_id) from e
        log.info("Job created", extra={"job_id": job_id, "stage": record.status.value})
        return record

    def read(self, job_id: str) -> Optional[JobRecord]:
        with self._session_factory() as db:
            job = db.get(Job, job_id)
            return self._to_record(job) if job is not None else None

    def get(self, job_id: str) -> JobRecord:
        record = self.read(job_id)
        if record is None:
            raise JobNotFoundError(job_id)
        return record

    def update(
        self,
        job_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[JobStatus] = None,
    ) -> JobRecord:
        with self._session_factory() as db, db.begin():
            job = db.execute(
                select(Job).where(Job.id == job_id).with_for_update()
            ).scalar_one_or_none()
            if job is None:
                raise JobNotFoundError(job_id)
            if expected_status is not None and job.status != JobStatus(expected_status).value:
                raise StaleJobError(job_id, JobStatus(expected_status).value, job.status)
            self._apply(job, fields)
            db.flush()
            record = self._to_record(job)
        log.info("Job updated status=%s progress=%s", record.status.value, record.progress,
                 extra={"job_id": job_id, "stage": record.status.value})
        return record

    def delete(self, job_id: str) -> bool:
        with self._session_factory() as db, db.begin():
            job = db.get(Job, job_id)
            if job is None:
                return False
            db.delete(job)
        log.info("Job deleted", extra={"job_id": job_id, "stage": "-"})
        return True

    def list(self, limit: int = 50, offset: int = 0) -> List[JobRecord]:
        with self._session_factory() as db:
            jobs = db.execute(
                select(Job)
                .order_by(Job.created_at.desc(), Job.id.desc())
                .offset(max(offset, 0))
                .limit(max(limit, 0))
            ).scalars().all()
            return [self._to_record(job) for job in jobs]

    def count(self) -> int:
        with self._session_factory() as db:
            return db.execute(select(func.count()).select_from(Job)).scalar_one()

    def purge_older_than(
        self,
        age: timedelta,
        statuses: Iterable[JobStatus] = (JobStatus.COMPLETED, JobStatus.FAILED),
        now: Optional[datetime] = None,
    ) -> List[str]:
        """Delete jobs created more than ``age`` ago whose status is in ``statuses``."""
        cutoff = (now or utcnow()) - age
        wanted = [JobStatus(_enum_value(s)).value for s in statuses]
        with self._session_factory() as db, db.begin():
            jobs = db.execute(
                select(Job).where(Job.created_at < cutoff, Job.status.in_(wanted)).with_for_update()
            ).scalars().all()
            purged = [job.id for job in jobs]
            for job in jobs:
                db.delete(job)

        log.info("Job cleanup completed, purged %d", len(purged), extra={"job_id": "-", "stage": "-"})
        return purged
