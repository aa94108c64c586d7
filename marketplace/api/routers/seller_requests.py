"""Seller request API endpoints.

Provides endpoints for seller onboarding:
- POST /seller-requests - submit a request for the caller
- GET /seller-requests/me - the caller's latest request
- GET /seller-requests - list requests (admin)
- GET /seller-requests/{id} - request details (admin)
- PATCH /seller-requests/{id}/status - approve or reject (admin)
- DELETE /seller-requests/{id} - delete a request (admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from marketplace.api.dependencies import AdminUser, CurrentUser
from marketplace.api.schemas import (
    ErrorResponse,
    SellerRequestCreateRequest,
    SellerRequestDeletedResponse,
    SellerRequestMissingResponse,
    SellerRequestResponse,
    SellerRequestStatusRequest,
)
from marketplace.application import SellerRequestService
from marketplace.domain.entities import SellerRequest
from marketplace.domain.state_machines import SellerRequestStatus

router = APIRouter(prefix="/seller-requests", tags=["Seller Requests"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> SellerRequestService:
    """Get seller request service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.seller_request_service(request_id=request_id)


Service = Annotated[SellerRequestService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def seller_request_to_response(seller_request: SellerRequest) -> SellerRequestResponse:
    """Convert SellerRequest to SellerRequestResponse."""
    return SellerRequestResponse(
        id=seller_request.id,
        user_id=seller_request.user_id,
        status=seller_request.status.value,
        message=seller_request.message,
        admin_comment=seller_request.admin_comment,
        created_at=seller_request.created_at,
        updated_at=seller_request.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=SellerRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Already a seller or request pending"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
    },
    summary="Request seller access",
    description="Submit a seller request for the authenticated user.",
)
async def create_seller_request(
    body: SellerRequestCreateRequest,
    user: CurrentUser,
    service: Service,
) -> SellerRequestResponse:
    """Submit a seller request."""
    created = await service.create(user.id, body.to_input())
    return seller_request_to_response(created)


@router.get(
    "/me",
    response_model=SellerRequestResponse | SellerRequestMissingResponse,
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
    summary="Get my seller request",
    description="Get the latest seller request of the authenticated user.",
)
async def get_my_seller_request(
    user: CurrentUser,
    service: Service,
) -> SellerRequestResponse | SellerRequestMissingResponse:
    """Get the caller's latest request, or a not_found marker."""
    seller_request = await service.get_by_user_id(user.id)
    if seller_request is None:
        return SellerRequestMissingResponse()
    return seller_request_to_response(seller_request)


@router.get(
    "",
    response_model=list[SellerRequestResponse],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Admin only"},
    },
    summary="List seller requests",
    description="List seller requests newest first, optionally filtered by status.",
)
async def list_seller_requests(
    _admin: AdminUser,
    service: Service,
    status_filter: Annotated[
        SellerRequestStatus | None, Query(alias="status", description="Filter by status")
    ] = None,
) -> list[SellerRequestResponse]:
    """List seller requests."""
    requests = await service.list(status=status_filter)
    return [seller_request_to_response(r) for r in requests]


@router.get(
    "/{request_id}",
    response_model=SellerRequestResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Seller request not found"},
    },
    summary="Get seller request",
)
async def get_seller_request(
    request_id: str,
    _admin: AdminUser,
    service: Service,
) -> SellerRequestResponse:
    """Get a seller request by ID."""
    return seller_request_to_response(await service.get_by_id(request_id))


@router.patch(
    "/{request_id}/status",
    response_model=SellerRequestResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid status or request not pending"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Seller request not found"},
        500: {"model": ErrorResponse, "description": "User promotion failed"},
    },
    summary="Approve or reject seller request",
    description=(
        "Move a pending request to approved or rejected. Approval promotes the user "
        "to seller; if that fails the request is returned to pending."
    ),
)
async def update_seller_request_status(
    request_id: str,
    body: SellerRequestStatusRequest,
    _admin: AdminUser,
    service: Service,
) -> SellerRequestResponse:
    """Decide a pending seller request."""
    updated = await service.update_status(request_id, body.to_input())
    return seller_request_to_response(updated)


@router.delete(
    "/{request_id}",
    response_model=SellerRequestDeletedResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Admin only"},
        404: {"model": ErrorResponse, "description": "Seller request not found"},
    },
    summary="Delete seller request",
)
async def delete_seller_request(
    request_id: str,
    _admin: AdminUser,
    service: Service,
) -> SellerRequestDeletedResponse:
    """Delete a seller request."""
    deleted = await service.delete(request_id)
    return SellerRequestDeletedResponse(data=seller_request_to_response(deleted))
