from dataclasses import dataclass
from typing import Dict, Tuple
from appforge.core.workflow import JobStatus, JobType
from appforge.stages.base import BaseStage
from appforge.stages.impl_extract import ExtractStage
from appforge.stages.impl_analyze import CodeAnalysisStage, PlanningStage
from appforge.stages.impl_build import ModernizationStage, PlatformGenerationStage, RecommendationStage
from appforge.stages.impl_package import PackageStage

@dataclass
class StageRegistry:
    mapping: Dict[Tuple[JobType, JobStatus], BaseStage]

    def get(self, job_type: JobType, status: JobStatus) -> BaseStage:
        return self.mapping[(JobType(job_type), JobStatus(status))]

    @staticmethod
    def default() -> "StageRegistry":
        extract, package = ExtractStage(), PackageStage()
        return StageRegistry(mapping={
            (JobType.GENERATE, JobStatus.EXTRACTING): extract,
            (JobType.GENERATE, JobStatus.ANALYZING): PlanningStage(),
            (JobType.GENERATE, JobStatus.GENERATING): PlatformGenerationStage(),
            (JobType.GENERATE, JobStatus.PACKAGING): package,
            (JobType.ANALYZE, JobStatus.EXTRACTING): extract,
            (JobType.ANALYZE, JobStatus.ANALYZING): CodeAnalysisStage(),
            (JobType.ANALYZE, JobStatus.GENERATING): RecommendationStage(),
            (JobType.ANALYZE, JobStatus.PACKAGING): package,
            (JobType.MODERNIZE, JobStatus.EXTRACTING): extract,
            (JobType.MODERNIZE, JobStatus.ANALYZING): CodeAnalysisStage(),
            (JobType.MODERNIZE, JobStatus.MODERNIZING): ModernizationStage(),
            (JobType.MODERNIZE, JobStatus.PACKAGING): package,
        })
