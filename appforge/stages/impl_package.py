import asyncio
import json
from appforge.core.workflow import JobStatus, JobType
from appforge.stages.base import BaseStage, StageResult
from appforge.workspace.packaging import package_directory

ANALYSIS_REPORT = "analysis-report.json"


def download_url(job_id: str) -> str:
    return f"/v1/jobs/{job_id}/download"


class PackageStage(BaseStage):
    stage = JobStatus.PACKAGING

    def _build_result(self, ctx) -> dict:
        payload = ctx.job.payload
        if ctx.job.type == JobType.GENERATE:
            generation = payload.get("generation") or {}
            succeeded = {name: r for name, r in generation.items() if r.get("success")}
            return {
                "output_dir": str(ctx.workspace.output_dir),
                "results": generation,
                "files_generated": sum(len(r.get("files") or []) for r in succeeded.values()),
                "platforms_succeeded": sorted(succeeded),
                "platforms_failed": sorted(set(generation) - set(succeeded)),
            }
        if ctx.job.type == JobType.ANALYZE:
            return {
                "analysis": payload.get("analysis"),
                "recommendations": payload.get("recommendations"),
                "files_analyzed": payload.get("files_extracted", 0),
            }
        modernization = payload.get("modernization") or {}
        return {
            "files": modernization.get("files", []),
            "migration_summary": modernization.get("migration_summary", {}),
        }

    async def run(self, ctx):
        ws = ctx.workspace
        result = self._build_result(ctx)

        if ctx.job.type == JobType.ANALYZE:
            report = json.dumps(result, indent=2)
            await asyncio.to_thread(ws.write_file, ANALYSIS_REPORT, report)

        archive = await asyncio.to_thread(package_directory, ws.output_dir, ws.archive_path)
        size = await asyncio.to_thread(lambda: archive.stat().st_size)
        result.update({
            "archive_path": str(archive),
            "archive_size": size,
            "download_url": download_url(ctx.job.id),
        })
        return StageResult(self.stage, "Packaged outputs", result=result)
