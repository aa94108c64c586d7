"""Admin API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from marketplace.api.dependencies import AdminUser
from marketplace.api.schemas import AdminStatsResponse, ErrorResponse
from marketplace.application import AdminService

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_service(request: Request) -> AdminService:
    """Get admin service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.admin_service(request_id=request_id)


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Admin only"},
    },
    summary="Platform statistics",
)
async def get_stats(
    _admin: AdminUser,
    service: Annotated[AdminService, Depends(get_service)],
) -> AdminStatsResponse:
    """Count users by role and activation, and products."""
    stats = await service.get_stats()
    return AdminStatsResponse(
        total_users=stats.total_users,
        sellers=stats.sellers,
        buyers=stats.buyers,
        active_users=stats.active_users,
        pending_users=stats.pending_users,
        total_products=stats.total_products,
        timestamp=stats.timestamp,
    )
