from datetime import datetime, timezone
from fastapi import APIRouter
from appforge.core.config import settings

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "healthy", "app": settings.app_name, "timestamp": datetime.now(timezone.utc).isoformat()}
