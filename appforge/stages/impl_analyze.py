import copy
import logging
import re
from typing import Any, Dict, List
from appforge.core.extraction import extract_mapping
from appforge.core.workflow import JobStatus
from appforge.llm.client import ModelOptions
from appforge.stages.base import BaseStage, StageResult
from appforge.stages.impl_extract import code_files_from
from appforge.stages.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    PLANNING_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_planning_prompt,
)

log = logging.getLogger(__name__)

KNOWN_DATABASES = re.compile(r"MongoDB|PostgreSQL|MySQL|Firebase", re.IGNORECASE)


def apply_preferences(planning: Dict[str, Any], preferences: Dict[str, Any], platforms: List[str]) -> Dict[str, Any]:
    """Return a copy of ``planning`` with the user's preferences and platform choice applied."""
    planned = copy.deepcopy(planning)
    database = preferences.get("database")
    tech_stack = planned.get("tech_stack")
    if database and isinstance(tech_stack, dict) and isinstance(tech_stack.get("backend"), str):
        backend = tech_stack["backend"]
        if KNOWN_DATABASES.search(backend):
            tech_stack["backend"] = KNOWN_DATABASES.sub(lambda _: database, backend)
        else:
            tech_stack["backend"] = f"{backend} + {database}"
    if preferences:
        planned["preferences"] = dict(preferences)
    planned["platforms"] = list(platforms)
    return planned


class PlanningStage(BaseStage):
    stage = JobStatus.ANALYZING

    async def run(self, ctx):
        brief = ctx.job.payload["brief"]
        raw = await ctx.model.invoke(
            build_planning_prompt(brief["description"]),
            ModelOptions(system_prompt=PLANNING_SYSTEM_PROMPT, temperature=0.3, max_tokens=4000),
        )
        planning = extract_mapping(raw)
        planning_data = apply_preferences(planning, brief["preferences"], brief["platforms"])

        log.info("Planning analysis completed with %d features", len(planning_data.get("features") or []),
                 extra={"job_id": ctx.job.id, "stage": self.stage.value})
        return StageResult(self.stage, "Planning completed", {"planning_data": planning_data})


class CodeAnalysisStage(BaseStage):
    stage = JobStatus.ANALYZING

    async def run(self, ctx):
        files = code_files_from(ctx)
        raw = await ctx.model.invoke(
            build_analysis_prompt(files),
            ModelOptions(system_prompt=ANALYSIS_SYSTEM_PROMPT, temperature=0.1, max_tokens=4000),
        )
        analysis = extract_mapping(raw)
        return StageResult(self.stage, f"Analyzed {len(files)} files", {"analysis": analysis})
