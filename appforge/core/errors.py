"""Exception taxonomy shared by the pipeline, the job store and the collaborators."""
from __future__ import annotations

from typing import Optional


class AppForgeError(Exception):
    """Base class for every error raised by appforge itself."""


class ExtractionError(AppForgeError):
    """A model response could not be turned into structured data."""

    def __init__(self, message: str, sample: str = ""):
        super().__init__(message)
        self.sample = sample[:500]


class GenerationError(AppForgeError):
    """A single platform generator failed."""

    def __init__(self, platform: str, message: str):
        super().__init__(message)
        self.platform = platform


class JobNotFoundError(AppForgeError, LookupError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class DuplicateJobError(AppForgeError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} already exists")
        self.job_id = job_id


class StaleJobError(AppForgeError):
    """A guarded update found the job in a different status than expected."""

    def __init__(self, job_id: str, expected: str, actual: str):
        super().__init__(f"Job {job_id} is {actual}, expected {expected}")
        self.job_id = job_id
        self.expected = expected
        self.actual = actual


class InvalidTransitionError(AppForgeError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move job from {current} to {target}")
        self.current = current
        self.target = target


class PackagingError(AppForgeError):
    pass


class ModelError(AppForgeError):
    """Failure reported by the model-invocation collaborator."""


class ModelUnavailable(ModelError):
    pass


class RateLimited(ModelError):
    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class InvalidResponse(ModelError):
    pass
