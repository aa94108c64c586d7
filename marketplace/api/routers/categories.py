"""Category API endpoints.

Public reads of the two-level category tree; writes are admin only.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from marketplace.api.dependencies import AdminUser
from marketplace.api.schemas import (
    CategoryCreateRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    ErrorResponse,
)
from marketplace.application import CategoryDetails, CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

ADMIN_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Unauthorized"},
    403: {"model": ErrorResponse, "description": "Admin only"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> CategoryService:
    """Get category service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.category_service(request_id=request_id)


Service = Annotated[CategoryService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def category_to_response(details: CategoryDetails) -> CategoryResponse:
    """Convert CategoryDetails to CategoryResponse."""
    category = details.category
    return CategoryResponse(
        id=category.id,
        name=category.name,
        slug=category.slug,
        description=category.description,
        parent=category.parent,
        parent_name=details.parent_name,
        level=category.level,
        is_active=category.is_active,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("", response_model=list[CategoryResponse], summary="List categories")
async def list_categories(service: Service) -> list[CategoryResponse]:
    """List every category with its parent name."""
    return [category_to_response(c) for c in await service.get_all()]


@router.get("/main", response_model=list[CategoryResponse], summary="List main categories")
async def list_main_categories(service: Service) -> list[CategoryResponse]:
    """List active main categories sorted by name."""
    return [category_to_response(c) for c in await service.get_main_categories()]


@router.get(
    "/{category_id}/subcategories",
    response_model=list[CategoryResponse],
    responses={404: {"model": ErrorResponse, "description": "Category not found"}},
    summary="List subcategories",
)
async def list_subcategories(category_id: str, service: Service) -> list[CategoryResponse]:
    """List active subcategories of a main category."""
    return [category_to_response(c) for c in await service.get_subcategories(category_id)]


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse, "description": "Category not found"}},
    summary="Get category",
)
async def get_category(category_id: str, service: Service) -> CategoryResponse:
    """Get a category by ID."""
    return category_to_response(await service.get_by_id(category_id))


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or duplicate slug"},
        **ADMIN_RESPONSES,
    },
    summary="Create category",
    description="Create a main category, or a subcategory when parent is given.",
)
async def create_category(
    body: CategoryCreateRequest, _admin: AdminUser, service: Service
) -> CategoryResponse:
    """Create a category."""
    return category_to_response(await service.create(body.to_input()))


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or duplicate slug"},
        404: {"model": ErrorResponse, "description": "Category not found"},
        **ADMIN_RESPONSES,
    },
    summary="Update category",
)
async def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    _admin: AdminUser,
    service: Service,
) -> CategoryResponse:
    """Update a category."""
    return category_to_response(await service.update(category_id, body.to_input()))


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"model": ErrorResponse, "description": "Category has subcategories"},
        404: {"model": ErrorResponse, "description": "Category not found"},
        **ADMIN_RESPONSES,
    },
    summary="Delete category",
)
async def delete_category(category_id: str, _admin: AdminUser, service: Service) -> Response:
    """Delete a category without subcategories."""
    await service.delete(category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
