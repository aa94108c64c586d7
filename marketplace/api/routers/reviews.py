"""Review API endpoints.

Reads are public; writes are limited to the review author.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from marketplace.api.dependencies import CurrentUser
from marketplace.api.schemas import (
    ErrorResponse,
    MessageResponse,
    ReviewCreateRequest,
    ReviewEnvelope,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdateRequest,
)
from marketplace.application import ReviewService
from marketplace.domain.entities import Review
from marketplace.domain.exceptions import ForbiddenError

router = APIRouter(prefix="/reviews", tags=["Reviews"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> ReviewService:
    """Get review service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.review_service(request_id=request_id)


Service = Annotated[ReviewService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def review_to_response(review: Review) -> ReviewResponse:
    """Convert Review to ReviewResponse."""
    return ReviewResponse(
        id=review.id,
        user_id=review.user_id,
        commentary=review.commentary,
        score=review.score,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=ReviewEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid review"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Review on behalf of another user"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    summary="Create review",
)
async def create_review(
    body: ReviewCreateRequest, user: CurrentUser, service: Service
) -> ReviewEnvelope:
    """Create a review authored by the caller."""
    data = body.to_input()
    author_id = data["userId"] = data.get("userId") or user.id
    if author_id != user.id:
        raise ForbiddenError("Not authorized to create review for this user")
    review = await service.create(data)
    return ReviewEnvelope(message="Review created successfully", review=review_to_response(review))


@router.get("", response_model=ReviewListResponse, summary="List reviews")
async def list_reviews(
    service: Service,
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    score: Annotated[int | None, Query(ge=1, le=5)] = None,
) -> ReviewListResponse:
    """List reviews, optionally filtered by author or score."""
    reviews = await service.get_all({"user_id": user_id, "score": score})
    return ReviewListResponse(
        reviews=[review_to_response(r) for r in reviews],
        count=len(reviews),
    )


@router.get(
    "/{review_id}",
    response_model=ReviewEnvelope,
    responses={404: {"model": ErrorResponse, "description": "Review not found"}},
    summary="Get review",
)
async def get_review(review_id: str, service: Service) -> ReviewEnvelope:
    """Get a review by ID."""
    review = await service.get_by_id(review_id)
    return ReviewEnvelope(
        message="Review retrieved successfully", review=review_to_response(review)
    )


@router.put(
    "/{review_id}",
    response_model=ReviewEnvelope,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid value"},
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Review not found"},
    },
    summary="Update review",
)
async def update_review(
    review_id: str,
    body: ReviewUpdateRequest,
    user: CurrentUser,
    service: Service,
) -> ReviewEnvelope:
    """Update the caller's own review."""
    review = await service.update(review_id, user.id, body.to_input())
    return ReviewEnvelope(message="Review updated successfully", review=review_to_response(review))


@router.delete(
    "/{review_id}",
    response_model=MessageResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        404: {"model": ErrorResponse, "description": "Review not found or not the author"},
    },
    summary="Delete review",
)
async def delete_review(review_id: str, user: CurrentUser, service: Service) -> MessageResponse:
    """Delete the caller's own review."""
    await service.delete(review_id, user.id)
    return MessageResponse(message="Review deleted successfully")
