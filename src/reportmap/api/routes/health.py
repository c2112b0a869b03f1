"""Health check endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
def ready(request: Request) -> JSONResponse:
    """Report configured backends; 503 when the Redis cache does not answer."""
    settings = request.app.state.settings
    body: dict[str, Any] = {
        "status": "ready",
        "environment": settings.environment,
        "mapping_provider": settings.mapping_provider,
        "report_store": settings.report_store,
        "cache": "disabled",
    }
    cache = getattr(request.app.state, "cache", None)
    if cache is not None:
        if cache.ping():
            body["cache"] = "ok"
        else:
            body["cache"] = "unreachable"
            body["status"] = "not_ready"
            return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return JSONResponse(content=body)
