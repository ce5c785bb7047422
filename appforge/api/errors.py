import logging
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from appforge.core.config import settings
from appforge.core.errors import AppForgeError, DuplicateJobError, InvalidTransitionError, JobNotFoundError

log = logging.getLogger(__name__)

STATUS_CODES = {
    JobNotFoundError: 404,
    DuplicateJobError: 409,
    InvalidTransitionError: 409,
}


def _body(message: str, details: str | None = None) -> dict:
    body = {"error": message, "timestamp": datetime.now(timezone.utc).isoformat()}
    if details and settings.app_env != "production":
        body["details"] = details
    return body


async def appforge_error_handler(request: Request, exc: AppForgeError) -> JSONResponse:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return JSONResponse(status_code=status_code, content=_body(str(exc)))
    log.error("Unhandled application error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content=_body("Internal Server Error", str(exc)))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppForgeError, appforge_error_handler)
