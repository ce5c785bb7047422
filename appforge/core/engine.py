from __future__ import annotations
import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from appforge.core.config import settings
from appforge.core.errors import InvalidTransitionError, StaleJobError
from appforge.core.workflow import (
    COMPLETED_PROGRESS,
    PIPELINES,
    JobStatus,
    StageStep,
    can_transition,
    is_terminal,
)
from appforge.db.store import JobStore
from appforge.generators.coordinator import GenerationCoordinator
from appforge.generators.registry import PlatformRegistry
from appforge.llm.client import ModelClient
from appforge.schemas.jobs import JobRecord
from appforge.stages.base import StageContext
from appforge.stages.registry import StageRegistry
from appforge.workspace.manager import WorkspaceManager

log = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PipelineRunner:
    """
    Drives one job through the stages of its type.

    Before a stage starts the runner re-reads the job: a cancelled (or
    otherwise terminal) job stops there. The stage's status and progress
    checkpoint are persisted before its work begins. The first error raised
    by a stage marks the job failed with that error's message.
    """

    def __init__(
        self,
        store: JobStore,
        model: ModelClient,
        registry: Optional[StageRegistry] = None,
        coordinator: Optional[GenerationCoordinator] = None,
        workspace_factory: Callable[[str], WorkspaceManager] = WorkspaceManager,
        max_file_chars: int = settings.max_file_chars,
    ):
        self.store = store
        self.model = model
        self.registry = registry or StageRegistry.default()
        self.coordinator = coordinator or GenerationCoordinator(PlatformRegistry.default(model))
        self.workspace_factory = workspace_factory
        self.max_file_chars = max_file_chars

    async def _read(self, job_id: str) -> JobRecord:
        return await asyncio.to_thread(self.store.get, job_id)

    async def _update(self, job_id: str, fields: dict, expected_status: Optional[JobStatus] = None) -> JobRecord:
        return await asyncio.to_thread(self.store.update, job_id, fields, expected_status)

    async def _enter_stage(self, job: JobRecord, step: StageStep) -> JobRecord:
        if not can_transition(job.status, step.status):
            raise InvalidTransitionError(job.status.value, step.status.value)
        return await self._update(
            job.id,
            {"status": step.status, "progress": max(step.progress, job.progress)},
            expected_status=job.status,
        )

    async def _fail(self, job_id: str, stage: JobStatus, error: Exception) -> JobRecord:
        message = str(error) or type(error).__name__
        log.error("Stage failed: %s", message, extra={"job_id": job_id, "stage": stage.value})
        try:
            return await self._update(
                job_id,
                {"status": JobStatus.FAILED, "error": message, "result": None, "failed_at": _now_iso()},
                expected_status=stage,
            )
        except StaleJobError:
            # Cancelled while the stage was running; leave the terminal state alone.
            return await self._read(job_id)

    async def run(self, job_id: str) -> JobRecord:
        job = await self._read(job_id)
        if is_terminal(job.status):
            log.info("Job already %s, nothing to run", job.status.value, extra={"job_id": job_id, "stage": job.status.value})
            return job

        ws = self.workspace_factory(job_id)
        ctx = StageContext(
            job=job,
            workspace=ws,
            model=self.model,
            coordinator=self.coordinator,
            max_file_chars=self.max_file_chars,
        )
        final_result = None
        last_stage = job.status

        for step in PIPELINES[job.type]:
            job = await self._read(job_id)
            if is_terminal(job.status):
                log.info("Job is %s, not starting %s", job.status.value, step.status.value,
                         extra={"job_id": job_id, "stage": job.status.value})
                return job

            try:
                job = await self._enter_stage(job, step)
            except StaleJobError:
                return await self._read(job_id)
            except Exception as e:
                log.exception("Could not enter stage", extra={"job_id": job_id, "stage": step.status.value})
                return await self._fail(job_id, job.status, e)

            last_stage = step.status
            ctx.job = job
            log.info("Running stage", extra={"job_id": job_id, "stage": step.status.value})

            try:
                await asyncio.to_thread(ws.ensure)
                stage = self.registry.get(job.type, step.status)
                result = await stage.run(ctx)
                log.info("Stage finished: %s", result.message, extra={"job_id": job_id, "stage": step.status.value})
                if result.updates:
                    ctx.job = await self._update(job_id, result.updates)
                if result.result is not None:
                    final_result = result.result
            except Exception as e:
                log.exception("Stage raised", extra={"job_id": job_id, "stage": step.status.value})
                return await self._fail(job_id, step.status, e)

        try:
            job = await self._update(
                job_id,
                {
                    "status": JobStatus.COMPLETED,
                    "progress": COMPLETED_PROGRESS,
                    "result": final_result or {},
                    "error": None,
                    "completed_at": _now_iso(),
                },
                expected_status=last_stage,
            )
        except StaleJobError:
            return await self._read(job_id)

        log.info("Job completed", extra={"job_id": job_id, "stage": JobStatus.COMPLETED.value})
        return job
