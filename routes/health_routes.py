"""
Health check endpoint.

GET /health - checks CouchDB connectivity.
Rules:
- CouchDB failure → "unhealthy" (503) - the app cannot function without it.
- Otherwise "healthy" (200), with the server version in the checks.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from errors import AppError
from schemas.dto.responses.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}
    overall = "healthy"

    try:
        info = await request.app.state.couch.info()
        checks["couchdb"] = "ok"
        checks["couchdb_version"] = str(info.get("version", "unknown"))
    except AppError:
        checks["couchdb"] = "error"
        overall = "unhealthy"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content={"status": overall, "checks": checks},
    )
