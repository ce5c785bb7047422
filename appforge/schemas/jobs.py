from pydantic import BaseModel, Field
from typing import Literal, Optional, Dict, Any, List
from datetime import datetime
from appforge.core.workflow import JobStatus, JobType

Platform = Literal["ios", "android", "web", "backend"]


class Preferences(BaseModel):
    ui_framework: Optional[Literal["swiftui", "uikit", "compose", "react", "vue", "angular"]] = None
    database: Optional[Literal["mongodb", "postgresql", "mysql", "firebase"]] = None
    deployment: Optional[Literal["aws", "gcp", "azure", "vercel", "netlify"]] = None
    authentication: Optional[Literal["firebase", "auth0", "custom", "supabase"]] = None


class GenerateJobRequest(BaseModel):
    description: str = Field(..., min_length=10, max_length=2000,
                             examples=["A recipe sharing app with social feeds and meal planning"])
    platforms: List[Platform] = Field(default_factory=lambda: ["ios", "android", "web", "backend"], min_length=1)
    preferences: Preferences = Field(default_factory=Preferences)


class AnalyzeJobRequest(BaseModel):
    codebase_path: str
    instruction: str = Field(..., min_length=5, max_length=1000)
    target_platform: Optional[Platform] = None
    modernization_type: Optional[Literal["framework", "language", "architecture", "ui"]] = None


class ModernizeJobRequest(BaseModel):
    codebase_path: str
    from_framework: str = Field(..., min_length=1)
    to_framework: str = Field(..., min_length=1)
    additional_instructions: Optional[str] = Field(None, max_length=500)


class JobRecord(BaseModel):
    """Detached snapshot of a persisted job."""
    id: str
    type: JobType
    status: JobStatus
    progress: int = 0
    created_at: datetime
    updated_at: datetime
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    payload: Dict[str, Any] = {}


class JobCreatedResponse(BaseModel):
    job_id: str
    status: str
    message: str
    estimated_time: int
    status_url: str


class JobStatusResponse(BaseModel):
    job_id: str
    type: JobType
    status: JobStatus
    progress: int
    created_at: datetime
    updated_at: datetime
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    estimated_time_remaining: int


class JobListResponse(BaseModel):
    jobs: List[JobStatusResponse]
    total: int
    limit: int
    offset: int
