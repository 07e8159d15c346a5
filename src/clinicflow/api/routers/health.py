"""
Health check endpoints.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ... import __version__
from ...core.config import get_settings
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger("clinicflow")


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


@router.get("", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request):
    """
    Health check endpoint.

    Returns the current status of the service.
    """
    settings = get_settings()
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        version=__version__,
        service=settings.app_name,
    ), message="OK")


@router.get("/ready", response_model=ApiResponse[dict])
async def readiness_check(request: Request):
    """
    Readiness check endpoint.

    Returns whether the service is ready to handle requests.
    """
    settings = get_settings()
    checks = {"backend": settings.database.backend}
    all_ok = True

    if settings.database.backend == "memory":
        checks["database"] = "ok"
    else:
        client = getattr(request.app.state, "mongo_client", None)
        if client is None:
            checks["database"] = "not_initialized"
            all_ok = False
        else:
            try:
                await client.admin.command("ping")
                checks["database"] = "ok"
            except Exception as e:
                logger.warning(f"Database ping failed: {e}")
                checks["database"] = f"error: {str(e)[:50]}"
                all_ok = False

    body = ok(request, data={"ready": all_ok, "checks": checks}, message="OK" if all_ok else "Not ready")
    if not all_ok:
        return JSONResponse(status_code=503, content=body.model_dump(mode="json"))
    return body
