import asyncio
import logging
from pathlib import Path
from typing import List
from appforge.core.workflow import JobStatus, JobType
from appforge.stages.base import BaseStage, StageContext, StageResult
from appforge.workspace.uploads import CodeFile, extract_code_files

log = logging.getLogger(__name__)

ALL_PLATFORMS = ["ios", "android", "web", "backend"]


def code_files_from(ctx: StageContext) -> List[CodeFile]:
    files = ctx.state.get("code_files")
    if not files:
        raise RuntimeError("No extracted source files available for this job")
    return files


class ExtractStage(BaseStage):
    stage = JobStatus.EXTRACTING

    async def run(self, ctx):
        payload = ctx.job.payload
        if ctx.job.type == JobType.GENERATE:
            description = (payload.get("description") or "").strip()
            if not description:
                raise ValueError("App description is empty")
            brief = {
                "description": description,
                "platforms": list(dict.fromkeys(payload.get("platforms") or ALL_PLATFORMS)),
                "preferences": {k: v for k, v in (payload.get("preferences") or {}).items() if v},
            }
            return StageResult(self.stage, "Normalized app brief", {"brief": brief})

        codebase_path = payload.get("codebase_path")
        if not codebase_path:
            raise FileNotFoundError("No codebase file provided")

        files = await asyncio.to_thread(
            extract_code_files, Path(codebase_path), ctx.workspace.extract_dir, ctx.max_file_chars
        )
        if not files:
            raise ValueError("No supported source files found in the uploaded codebase")

        ctx.state["code_files"] = files
        log.info("Extracted %d files", len(files), extra={"job_id": ctx.job.id, "stage": self.stage.value})
        return StageResult(self.stage, f"Extracted {len(files)} files", {
            "files_extracted": len(files),
            "extracted_files": [f.name for f in files],
        })
