"""Authentication API endpoints.

Thin wrappers over the identity provider:
- POST /auth/register - create an account and its profile
- POST /auth/login - sign in
- POST /auth/logout - revoke the caller's session
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from marketplace.api.dependencies import Token
from marketplace.api.routers.users import user_to_response
from marketplace.api.schemas import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    TokenSchema,
)
from marketplace.application import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


# ============================================================================
# Dependencies
# ============================================================================


def get_service(request: Request) -> AuthService:
    """Get auth service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.auth_service(request_id=request_id)


Service = Annotated[AuthService, Depends(get_service)]


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Registration rejected"}},
    summary="Register",
)
async def register(body: RegisterRequest, service: Service) -> RegisterResponse:
    """Register an account with the buyer role unless another is given."""
    result = await service.register(body.email, body.password, body.role)
    return RegisterResponse(message=result.message, user=user_to_response(result.user))


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid credentials"}},
    summary="Log in",
)
async def login(body: LoginRequest, service: Service) -> LoginResponse:
    """Sign in with email and password."""
    session = await service.login(body.email, body.password)
    return LoginResponse(
        token=TokenSchema(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
        )
    )


@router.post(
    "/logout",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
    summary="Log out",
)
async def logout(token: Token, service: Service) -> MessageResponse:
    """Revoke the session behind the bearer token."""
    await service.logout(token)
    return MessageResponse(message="Logged out successfully")
