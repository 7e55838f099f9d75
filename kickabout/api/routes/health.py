"""Health check endpoints."""

import time

from fastapi import APIRouter, Response, status

from kickabout.api.dependencies import Store
from kickabout.api.schemas import HealthResponse, ReadinessResponse
from kickabout.core.config import settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check."""
    return HealthResponse(status="healthy", version=settings.app_version)


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check(store: Store, response: Response) -> ReadinessResponse:
    """Readiness check including the data store.

    Answers 503 with status "unavailable" when the store cannot be reached.
    """
    start = time.monotonic()
    connected = await store.ping()
    latency_ms = round((time.monotonic() - start) * 1000, 1)

    if not connected:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="ready" if connected else "unavailable",
        datastore={
            "backend": store.backend,
            "connected": connected,
            "latency_ms": latency_ms if connected else None,
        },
    )
