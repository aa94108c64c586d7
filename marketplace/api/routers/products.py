"""Product API endpoints.

Provides endpoints for product listings:
- GET /products - browse products (paginated)
- GET /products/store/{storeId} - products of a store (paginated)
- GET /products/{id} - product details
- POST /products - publish a product (seller)
- PUT /products/{id} - update a product (owner or admin)
- DELETE /products/{id} - delete a product (owner or admin)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic.alias_generators import to_snake

from marketplace.api.dependencies import SellerOrAdminUser, SellerUser
from marketplace.api.schemas import (
    ErrorResponse,
    PaginatedResponse,
    ProductCreateRequest,
    ProductResponse,
    ProductUpdateRequest,
)
from marketplace.application import ProductService
from marketplace.domain.entities import Product
from marketplace.domain.value_objects import Page, PageRequest, SortOrder

router = APIRouter(prefix="/products", tags=["Products"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> ProductService:
    """Get product service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.product_service(request_id=request_id)


def get_page_request(
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 10,
    sort_by: Annotated[str | None, Query(alias="sortBy", description="Field to sort by")] = None,
    order: Annotated[SortOrder, Query(description="Sort order")] = SortOrder.ASC,
) -> PageRequest:
    """Build pagination parameters from the query string.

    Without ``sortBy`` products come newest first.
    """
    if not sort_by:
        return PageRequest(page=page, limit=limit)
    return PageRequest(page=page, limit=limit, sort_by=to_snake(sort_by), sort_order=order)


Service = Annotated[ProductService, Depends(get_service)]
Pagination = Annotated[PageRequest, Depends(get_page_request)]


# ============================================================================
# Converters
# ============================================================================


def product_to_response(product: Product) -> ProductResponse:
    """Convert Product to ProductResponse."""
    return ProductResponse(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        stock=product.stock,
        category_id=product.category_id,
        category_name=product.category_name,
        sub_category_id=product.sub_category_id,
        sub_category_name=product.sub_category_name,
        seller_id=product.seller_id,
        store_id=product.store_id,
        main_image_url=product.main_image_url,
        image_urls=list(product.image_urls),
        status=product.status.value,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def page_to_response(page: Page[Product]) -> PaginatedResponse[ProductResponse]:
    """Convert a page of products to a paginated response."""
    return PaginatedResponse[ProductResponse](
        data=[product_to_response(p) for p in page.items],
        total_items=page.total_items,
        total_pages=page.total_pages,
        current_page=page.current_page,
        has_next_page=page.has_next_page,
        has_prev_page=page.has_prev_page,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=PaginatedResponse[ProductResponse],
    responses={400: {"model": ErrorResponse, "description": "Unknown status filter"}},
    summary="Browse products",
    description="List products, active ones unless a status filter is given.",
)
async def list_products(
    service: Service,
    pagination: Pagination,
    store_id: Annotated[str | None, Query(alias="storeId")] = None,
    category_id: Annotated[str | None, Query(alias="categoryId")] = None,
    sub_category_id: Annotated[str | None, Query(alias="subCategoryId")] = None,
    product_status: Annotated[str | None, Query(alias="status")] = None,
) -> PaginatedResponse[ProductResponse]:
    """Browse products with filters and pagination."""
    filters = {
        "store_id": store_id,
        "category_id": category_id,
        "sub_category_id": sub_category_id,
        "status": product_status,
    }
    return page_to_response(await service.get_all(filters, pagination))


@router.get(
    "/store/{store_id}",
    response_model=PaginatedResponse[ProductResponse],
    responses={404: {"model": ErrorResponse, "description": "Store not found"}},
    summary="List store products",
)
async def list_store_products(
    store_id: str, service: Service, pagination: Pagination
) -> PaginatedResponse[ProductResponse]:
    """List the products of a store."""
    return page_to_response(await service.get_store_products(store_id, pagination))


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse, "description": "Product not found"}},
    summary="Get product",
)
async def get_product(product_id: str, service: Service) -> ProductResponse:
    """Get a product by ID."""
    return product_to_response(await service.get_by_id(product_id))


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or store not approved"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not a seller or not the store owner"},
        404: {"model": ErrorResponse, "description": "Store not found"},
    },
    summary="Create product",
    description="Publish a product in one of the caller's approved stores.",
)
async def create_product(
    body: ProductCreateRequest, user: SellerUser, service: Service
) -> ProductResponse:
    """Create a product."""
    return product_to_response(await service.create(user, body.to_input()))


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
    summary="Update product",
)
async def update_product(
    product_id: str,
    body: ProductUpdateRequest,
    user: SellerOrAdminUser,
    service: Service,
) -> ProductResponse:
    """Update a product."""
    return product_to_response(await service.update(product_id, body.to_input(), user))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Product not found"},
    },
    summary="Delete product",
)
async def delete_product(product_id: str, user: SellerOrAdminUser, service: Service) -> Response:
    """Delete a product."""
    await service.delete(product_id, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
