import asyncio
import logging
from appforge.core.errors import AppForgeError
from appforge.core.extraction import extract_mapping
from appforge.core.workflow import JobStatus
from appforge.generators.platforms import to_generated_files
from appforge.generators.writer import write_files
from appforge.llm.client import ModelOptions
from appforge.stages.base import BaseStage, StageResult
from appforge.stages.impl_extract import code_files_from
from appforge.stages.prompts import (
    MODERNIZATION_SYSTEM_PROMPT,
    RECOMMENDATION_SYSTEM_PROMPT,
    build_modernization_prompt,
    build_recommendation_prompt,
)

log = logging.getLogger(__name__)


class PlatformGenerationStage(BaseStage):
    stage = JobStatus.GENERATING

    async def run(self, ctx):
        planning_data = ctx.job.payload["planning_data"]
        platforms = planning_data.get("platforms") or ctx.job.payload["brief"]["platforms"]

        results = await ctx.coordinator.generate_all(
            planning_data, platforms, ctx.workspace.output_dir, job_id=ctx.job.id
        )

        succeeded = [name for name, r in results.items() if r.success]
        if not succeeded:
            failures = "; ".join(f"{name}: {r.error}" for name, r in results.items())
            raise AppForgeError(f"Code generation failed for every platform ({failures})")

        return StageResult(
            self.stage,
            f"Generated {len(succeeded)}/{len(results)} platforms",
            {"generation": {name: r.to_dict() for name, r in results.items()}},
        )


class RecommendationStage(BaseStage):
    stage = JobStatus.GENERATING

    async def run(self, ctx):
        payload = ctx.job.payload
        raw = await ctx.model.invoke(
            build_recommendation_prompt(
                payload["analysis"],
                payload.get("instruction") or "",
                payload.get("target_platform"),
                payload.get("modernization_type"),
            ),
            ModelOptions(system_prompt=RECOMMENDATION_SYSTEM_PROMPT, temperature=0.2, max_tokens=3000),
        )
        recommendations = extract_mapping(raw)
        return StageResult(self.stage, "Generated recommendations", {"recommendations": recommendations})


class ModernizationStage(BaseStage):
    stage = JobStatus.MODERNIZING

    async def run(self, ctx):
        payload = ctx.job.payload
        files = code_files_from(ctx)
        log.info("Starting code modernization %s -> %s", payload["from_framework"], payload["to_framework"],
                 extra={"job_id": ctx.job.id, "stage": self.stage.value})

        raw = await ctx.model.invoke(
            build_modernization_prompt(
                files, payload["from_framework"], payload["to_framework"], payload.get("additional_instructions")
            ),
            ModelOptions(system_prompt=MODERNIZATION_SYSTEM_PROMPT, temperature=0.2, max_tokens=8000),
        )
        modernized = extract_mapping(raw, required_keys=("files",))
        generated = to_generated_files(modernized["files"])
        written = await asyncio.to_thread(write_files, generated, ctx.workspace.output_dir)

        summary = modernized.get("migration_summary")
        return StageResult(self.stage, f"Modernized into {len(written)} files", {
            "modernization": {
                "files": written,
                "migration_summary": summary if isinstance(summary, dict) else {},
            },
        })
