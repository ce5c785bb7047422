from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from appforge.core.workflow import JobStatus
from appforge.generators.coordinator import GenerationCoordinator
from appforge.llm.client import ModelClient
from appforge.schemas.jobs import JobRecord
from appforge.workspace.manager import WorkspaceManager

@dataclass
class StageContext:
    """Everything a stage may touch while one job runs."""
    job: JobRecord
    workspace: WorkspaceManager
    model: ModelClient
    coordinator: GenerationCoordinator
    max_file_chars: int = 10000
    state: Dict[str, Any] = field(default_factory=dict)  # In-memory hand-off between stages

@dataclass
class StageResult:
    stage: JobStatus
    message: str
    updates: Dict[str, Any] = field(default_factory=dict)  # Merged into the job record
    result: Optional[Dict[str, Any]] = None  # Final job result, packaging only

class BaseStage:
    stage: JobStatus
    async def run(self, ctx: StageContext) -> StageResult:
        raise NotImplementedError
