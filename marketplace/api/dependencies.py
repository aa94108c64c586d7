"""Shared FastAPI dependencies.

Resolves the container, the bearer token and the authenticated caller,
and gates routes on identity roles.
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request

from marketplace.domain.entities import AuthenticatedUser
from marketplace.domain.exceptions import ForbiddenError, UnauthorizedError
from marketplace.domain.value_objects import IdentityRole
from marketplace.infrastructure.container import Container


def get_container(request: Request) -> Container:
    """Get the composition root attached to the application."""
    return request.app.state.container


def get_token(request: Request) -> str:
    """Extract the bearer token.

    Raises:
        UnauthorizedError: If no token is present.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Token missing")
    return token.strip()


async def get_current_user(
    token: Annotated[str, Depends(get_token)],
    container: Annotated[Container, Depends(get_container)],
) -> AuthenticatedUser:
    """Resolve the caller through the identity provider.

    Raises:
        UnauthorizedError: If the token is unknown or expired.
    """
    user = await container.auth.get_user(token)
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


def require_roles(
    *roles: IdentityRole, message: str = "Insufficient permissions."
) -> Callable[..., Awaitable[AuthenticatedUser]]:
    """Build a dependency admitting only callers holding one of ``roles``.

    Args:
        *roles: Allowed identity roles.
        message: Message of the ForbiddenError raised otherwise.

    Returns:
        Dependency returning the authenticated caller.
    """

    async def dependency(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if not user.has_role(*roles):
            raise ForbiddenError(message)
        return user

    return dependency


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
AdminUser = Annotated[
    AuthenticatedUser, Depends(require_roles(IdentityRole.ADMIN, message="Admin access only."))
]
SellerUser = Annotated[AuthenticatedUser, Depends(require_roles(IdentityRole.SELLER))]
SellerOrAdminUser = Annotated[
    AuthenticatedUser, Depends(require_roles(IdentityRole.SELLER, IdentityRole.ADMIN))
]
Token = Annotated[str, Depends(get_token)]
