"""Health check endpoint with database and cache connectivity checks.

Accessible without authentication for container orchestration health checks.
"""

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from app.core import (
    KeyValueStore,
    check_cache_connection,
    check_db_connection,
    get_kv_store,
    settings,
)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    cache: str


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy or degraded"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_check(
    response: Response,
    store: KeyValueStore = Depends(get_kv_store),
) -> HealthResponse:
    """
    Health check endpoint.

    Returns 503 if the database is unavailable. An unavailable cache only
    degrades the service: catalog reads fall through to the database, but
    authenticated requests are rejected until it is back.
    """
    db_healthy = await check_db_connection()
    cache_healthy = await check_cache_connection(store)

    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        overall = "unhealthy"
    elif not cache_healthy:
        overall = "degraded"
    else:
        overall = "healthy"

    return HealthResponse(
        status=overall,
        version=settings.app_version,
        database="connected" if db_healthy else "disconnected",
        cache="connected" if cache_healthy else "disconnected",
    )
