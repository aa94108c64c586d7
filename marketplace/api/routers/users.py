"""User profile API endpoints.

All endpoints require authentication.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from marketplace.api.dependencies import CurrentUser, Token
from marketplace.api.schemas import (
    ErrorResponse,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from marketplace.application import UserService
from marketplace.domain.entities import User

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
)


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> UserService:
    """Get user service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.user_service(request_id=request_id)


Service = Annotated[UserService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


def user_to_response(user: User) -> UserResponse:
    """Convert User to UserResponse."""
    return UserResponse(
        id=user.id,
        name=user.name,
        last_name=user.last_name,
        phone_number=user.phone_number,
        address=user.address,
        profile_pic_url=user.profile_pic_url,
        is_approved_seller=user.is_approved_seller,
        email=user.email,
        role=user.role.value,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid input or duplicate id"}},
    summary="Create user profile",
)
async def create_user(body: UserCreateRequest, _user: CurrentUser, service: Service) -> UserResponse:
    """Create a user profile."""
    return user_to_response(await service.create(body.to_input()))


@router.get("", response_model=list[UserResponse], summary="List users")
async def list_users(_user: CurrentUser, service: Service) -> list[UserResponse]:
    """List every user profile."""
    return [user_to_response(u) for u in await service.get_all()]


@router.get(
    "/profile",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "Profile not found"}},
    summary="Get my profile",
    description="Get the caller's profile with the email held by the identity provider.",
)
async def get_profile(user: CurrentUser, token: Token, service: Service) -> UserResponse:
    """Get the caller's profile."""
    return user_to_response(await service.get_current_profile(user.id, token))


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Get user",
)
async def get_user(user_id: str, _user: CurrentUser, service: Service) -> UserResponse:
    """Get a user profile by ID."""
    return user_to_response(await service.get_by_id(user_id))


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No allowed field"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
    summary="Update user",
)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    _user: CurrentUser,
    service: Service,
) -> UserResponse:
    """Update allowed profile fields."""
    return user_to_response(await service.update(user_id, body.to_input()))


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Delete user",
)
async def delete_user(user_id: str, _user: CurrentUser, service: Service) -> Response:
    """Delete a user profile."""
    await service.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
