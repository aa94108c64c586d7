"""User profile application service."""

from typing import Any

import structlog

from marketplace.domain.entities import User
from marketplace.domain.exceptions import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
)
from marketplace.domain.repositories import AuthRepository, UserRepository
from marketplace.application.dtos import CreateUserDTO, UpdateUserDTO

logger = structlog.get_logger()


class UserService:
    """Application service for user profiles."""

    def __init__(
        self,
        user_repo: UserRepository,
        auth_repo: AuthRepository,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            user_repo: User profile repository.
            auth_repo: Identity provider adapter.
            request_id: Request ID for correlation.
        """
        self.user_repo = user_repo
        self.auth_repo = auth_repo
        self.request_id = request_id

    async def create(self, data: dict[str, Any]) -> User:
        """Create a user profile.

        Raises:
            BadRequestError: If the id or role is invalid.
            ConflictError: If a profile with the id already exists.
        """
        user = CreateUserDTO.from_input(data).to_entity()
        try:
            created = await self.user_repo.create(user)
        except ConflictError:
            raise ConflictError(
                f"User with ID '{user.id}' already exists", details={"id": user.id}
            ) from None

        logger.info("User created", user_id=created.id, request_id=self.request_id)
        return created

    async def get_by_id(self, user_id: str) -> User:
        """Get a user profile.

        Raises:
            NotFoundError: If the profile does not exist.
        """
        if not user_id or not user_id.strip():
            raise BadRequestError("User ID is required")
        user = await self.user_repo.find_by_id(user_id.strip())
        if user is None:
            raise NotFoundError("User not found", details={"id": user_id})
        return user

    async def get_all(self) -> list[User]:
        """List every user profile."""
        return await self.user_repo.find_all()

    async def update(self, user_id: str, data: dict[str, Any]) -> User:
        """Update allowed profile fields.

        Raises:
            BadRequestError: If no allowed field is present.
            NotFoundError: If the profile does not exist.
        """
        dto = UpdateUserDTO.from_input(data)
        updated = await self.user_repo.update_by_id(user_id, dto.changes)
        if updated is None:
            raise NotFoundError("User not found", details={"id": user_id})

        logger.info(
            "User updated",
            user_id=user_id,
            fields=sorted(dto.changes),
            request_id=self.request_id,
        )
        return updated

    async def delete(self, user_id: str) -> User:
        """Delete a user profile.

        Raises:
            NotFoundError: If the profile does not exist.
        """
        deleted = await self.user_repo.delete_by_id(user_id)
        if deleted is None:
            raise NotFoundError("User not found", details={"id": user_id})

        logger.info("User deleted", user_id=user_id, request_id=self.request_id)
        return deleted

    async def get_current_profile(self, user_id: str, token: str) -> User:
        """Get the caller's profile with the email held by the identity provider.

        Raises:
            NotFoundError: If the profile does not exist.
            InternalError: If the identity provider cannot resolve the token.
        """
        user = await self.get_by_id(user_id)
        identity = await self.auth_repo.get_user(token)
        if identity is None:
            raise InternalError("Failed to fetch user from auth service")
        return user.with_changes(email=identity.email, updated_at=user.updated_at)
