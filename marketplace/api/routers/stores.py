"""Store API endpoints.

Provides endpoints for storefronts:
- GET /stores - approved stores
- GET /stores/me - the caller's stores (seller)
- GET /stores/{id} - store details
- POST /stores - open a store (seller)
- PUT /stores/{id} - update a store (owner or admin)
- DELETE /stores/{id} - delete a store (owner or admin)
- GET /stores/admin/pending - stores awaiting moderation (admin)
- GET /stores/admin/status/{status} - stores by status (admin)
- PATCH /stores/admin/{id}/status - moderate a store (admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from marketplace.api.dependencies import AdminUser, SellerOrAdminUser, SellerUser
from marketplace.api.schemas import (
    ErrorResponse,
    StoreCreateRequest,
    StoreResponse,
    StoreStatusRequest,
    StoreUpdateRequest,
)
from marketplace.application import StoreService
from marketplace.domain.entities import Store

router = APIRouter(prefix="/stores", tags=["Stores"])

ADMIN_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    403: {"model": ErrorResponse, "description": "Admin only"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> StoreService:
    """Get store service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.store_service(request_id=request_id)


Service = Annotated[StoreService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def store_to_response(store: Store) -> StoreResponse:
    """Convert Store to StoreResponse."""
    return StoreResponse(
        id=store.id,
        user_id=store.user_id,
        store_name=store.store_name,
        description=store.description,
        logo=store.logo,
        status=store.status.value,
        reason=store.reason,
        created_at=store.created_at,
        updated_at=store.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=list[StoreResponse],
    summary="List stores",
    description="List approved stores, newest first.",
)
async def list_stores(service: Service) -> list[StoreResponse]:
    """List approved stores."""
    return [store_to_response(s) for s in await service.get_all()]


@router.get(
    "/me",
    response_model=list[StoreResponse],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Sellers only"},
    },
    summary="List my stores",
)
async def list_my_stores(user: SellerUser, service: Service) -> list[StoreResponse]:
    """List every store of the caller regardless of status."""
    return [store_to_response(s) for s in await service.get_my_stores(user.id)]


@router.get("/admin/pending", response_model=list[StoreResponse], responses=ADMIN_RESPONSES)
async def list_pending_stores(_admin: AdminUser, service: Service) -> list[StoreResponse]:
    """List stores awaiting moderation."""
    return [store_to_response(s) for s in await service.get_pending()]


@router.get(
    "/admin/status/{store_status}",
    response_model=list[StoreResponse],
    responses={400: {"model": ErrorResponse, "description": "Unknown status"}, **ADMIN_RESPONSES},
)
async def list_stores_by_status(
    store_status: str, _admin: AdminUser, service: Service
) -> list[StoreResponse]:
    """List stores with the given moderation status."""
    return [store_to_response(s) for s in await service.get_by_status(store_status)]


@router.patch(
    "/admin/{store_id}/status",
    response_model=StoreResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown status"},
        404: {"model": ErrorResponse, "description": "Store not found"},
        **ADMIN_RESPONSES,
    },
    summary="Moderate store",
)
async def update_store_status(
    store_id: str,
    body: StoreStatusRequest,
    _admin: AdminUser,
    service: Service,
) -> StoreResponse:
    """Set the moderation status of a store."""
    return store_to_response(await service.update_status(store_id, body.to_input()))


@router.get(
    "/{store_id}",
    response_model=StoreResponse,
    responses={404: {"model": ErrorResponse, "description": "Store not found"}},
    summary="Get store",
)
async def get_store(store_id: str, service: Service) -> StoreResponse:
    """Get a store by ID."""
    return store_to_response(await service.get_by_id(store_id))


@router.post(
    "",
    response_model=StoreResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or store limit reached"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Sellers only"},
    },
    summary="Create store",
    description="Open a store owned by the caller. New stores await moderation.",
)
async def create_store(
    body: StoreCreateRequest,
    user: SellerUser,
    service: Service,
) -> StoreResponse:
    """Create a store for the caller."""
    data = {**body.to_input(), "userId": user.id}
    return store_to_response(await service.create(data))


@router.put(
    "/{store_id}",
    response_model=StoreResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No updatable field"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Store not found"},
    },
    summary="Update store",
)
async def update_store(
    store_id: str,
    body: StoreUpdateRequest,
    user: SellerOrAdminUser,
    service: Service,
) -> StoreResponse:
    """Update a store owned by the caller."""
    return store_to_response(await service.update(store_id, body.to_input(), user))


@router.delete(
    "/{store_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Store not found"},
    },
    summary="Delete store",
)
async def delete_store(store_id: str, user: SellerOrAdminUser, service: Service) -> Response:
    """Delete a store owned by the caller."""
    await service.delete(store_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
