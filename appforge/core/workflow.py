import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List

class JobType(str, Enum):
    GENERATE = "generate"
    ANALYZE = "analyze"
    MODERNIZE = "modernize"

class JobStatus(str, Enum):
    CREATED = "created"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    MODERNIZING = "modernizing"
    PACKAGING = "packaging"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset({
    JobStatus.COMPLETED,
    JobStatus.FAILED,
    JobStatus.CANCELLED,
})

# Forward edges only; FAILED and CANCELLED are added for every non-terminal state below.
_FORWARD: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.CREATED: frozenset({JobStatus.EXTRACTING}),
    JobStatus.EXTRACTING: frozenset({JobStatus.ANALYZING}),
    JobStatus.ANALYZING: frozenset({JobStatus.GENERATING, JobStatus.MODERNIZING}),
    JobStatus.GENERATING: frozenset({JobStatus.PACKAGING}),
    JobStatus.MODERNIZING: frozenset({JobStatus.PACKAGING}),
    JobStatus.PACKAGING: frozenset({JobStatus.COMPLETED}),
}

def is_terminal(status: JobStatus) -> bool:
    return JobStatus(status) in TERMINAL_STATUSES

def can_transition(current: JobStatus, target: JobStatus) -> bool:
    current, target = JobStatus(current), JobStatus(target)
    if current in TERMINAL_STATUSES:
        return False
    if target in (JobStatus.FAILED, JobStatus.CANCELLED):
        return True
    return target in _FORWARD.get(current, frozenset())

_RANK: Dict[JobStatus, int] = {
    JobStatus.CREATED: 0,
    JobStatus.EXTRACTING: 1,
    JobStatus.ANALYZING: 2,
    JobStatus.GENERATING: 3,
    JobStatus.MODERNIZING: 3,
    JobStatus.PACKAGING: 4,
}

def is_forward(current: JobStatus, target: JobStatus) -> bool:
    """
    Whether persisting ``target`` over ``current`` keeps status forward-only.

    Looser than can_transition: skipping ahead is allowed. Terminal states
    never change and a job never moves back to an earlier stage.
    """
    current, target = JobStatus(current), JobStatus(target)
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target in TERMINAL_STATUSES:
        return True
    return _RANK[target] > _RANK[current]

@dataclass(frozen=True)
class StageStep:
    status: JobStatus
    progress: int

# Progress is the value persisted when the stage begins.
PIPELINES: Dict[JobType, List[StageStep]] = {
    JobType.GENERATE: [
        StageStep(JobStatus.EXTRACTING, 10),
        StageStep(JobStatus.ANALYZING, 30),
        StageStep(JobStatus.GENERATING, 70),
        StageStep(JobStatus.PACKAGING, 85),
    ],
    JobType.ANALYZE: [
        StageStep(JobStatus.EXTRACTING, 10),
        StageStep(JobStatus.ANALYZING, 30),
        StageStep(JobStatus.GENERATING, 70),
        StageStep(JobStatus.PACKAGING, 85),
    ],
    JobType.MODERNIZE: [
        StageStep(JobStatus.EXTRACTING, 10),
        StageStep(JobStatus.ANALYZING, 25),
        StageStep(JobStatus.MODERNIZING, 50),
        StageStep(JobStatus.PACKAGING, 85),
    ],
}

COMPLETED_PROGRESS = 100

# Seconds for a job of each type starting from zero progress.
BASE_ESTIMATES: Dict[JobType, int] = {
    JobType.GENERATE: 8 * 60,
    JobType.ANALYZE: 5 * 60,
    JobType.MODERNIZE: 10 * 60,
}

def estimate_time_remaining(job_type: JobType, status: JobStatus, progress: int) -> int:
    if is_terminal(status):
        return 0
    base = BASE_ESTIMATES.get(JobType(job_type), 5 * 60)
    remaining = 100 - max(0, min(100, progress or 0))
    return math.ceil(base * remaining / 100)
