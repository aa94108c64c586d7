"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(
        status="healthy",
        service="marketplace-api",
        version=request.app.version,
    )


@router.get("/ready")
async def readiness_check(request: Request, response: Response) -> dict[str, str]:
    """Report whether the service container is wired up.

    Returns:
        ``ready``, or ``starting`` with a 503 before startup finishes.
    """
    if getattr(request.app.state, "container", None) is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "starting"}
    return {"status": "ready"}
