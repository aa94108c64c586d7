"""Store application service.

Handles storefront lifecycle:
- Sellers create up to a configured number of stores
- Owners (or administrators) edit and delete their stores
- Administrators moderate store status
"""

from typing import Any

import structlog

from marketplace.domain.entities import AuthenticatedUser, Store
from marketplace.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError
from marketplace.domain.repositories import StoreRepository
from marketplace.domain.value_objects import StoreStatus
from marketplace.application.dtos import CreateStoreDTO, UpdateStoreDTO, UpdateStoreStatusDTO

logger = structlog.get_logger()

DEFAULT_MAX_STORES_PER_USER = 2


class StoreService:
    """Application service for stores."""

    def __init__(
        self,
        store_repo: StoreRepository,
        max_stores_per_user: int = DEFAULT_MAX_STORES_PER_USER,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            store_repo: Store repository.
            max_stores_per_user: How many stores one user may own.
            request_id: Request ID for correlation.
        """
        self.store_repo = store_repo
        self.max_stores_per_user = max_stores_per_user
        self.request_id = request_id

    async def create(self, data: dict[str, Any]) -> Store:
        """Create a store for ``data["userId"]``.

        Raises:
            BadRequestError: If the owner reached the store limit or input
                is incomplete.
        """
        dto = CreateStoreDTO.from_input(data)
        count = await self.store_repo.count_by_user_id(dto.user_id)
        if count >= self.max_stores_per_user:
            raise BadRequestError(
                f"User has reached the maximum limit of {self.max_stores_per_user} stores.",
                details={"user_id": dto.user_id, "store_count": count},
            )

        store = await self.store_repo.create(dto.to_entity())
        logger.info(
            "Store created",
            store_id=store.id,
            user_id=store.user_id,
            request_id=self.request_id,
        )
        return store

    async def get_all(self) -> list[Store]:
        """List approved stores newest first."""
        return await self.store_repo.find_all_approved()

    async def get_my_stores(self, user_id: str) -> list[Store]:
        """List every store owned by a user."""
        if not user_id:
            raise BadRequestError("User ID is required.")
        return await self.store_repo.find_all_by_user_id(user_id)

    async def get_by_id(self, store_id: str) -> Store:
        """Get a store.

        Raises:
            NotFoundError: If the store does not exist.
        """
        store = await self.store_repo.find_by_id(store_id)
        if store is None:
            raise NotFoundError("Store not found.", details={"id": store_id})
        return store

    async def get_by_user_id(self, user_id: str) -> Store | None:
        """Get the first store owned by a user."""
        if not user_id:
            raise BadRequestError("User ID is required.")
        return await self.store_repo.find_by_user_id(user_id)

    async def get_pending(self) -> list[Store]:
        """List stores awaiting moderation."""
        return await self.store_repo.find_all_by_status(StoreStatus.PENDING)

    async def get_by_status(self, status: str) -> list[Store]:
        """List stores with a given status.

        Raises:
            BadRequestError: If the status is unknown.
        """
        try:
            store_status = StoreStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in StoreStatus)
            raise BadRequestError(f"Status must be one of: {valid}") from None
        return await self.store_repo.find_all_by_status(store_status)

    async def update(
        self, store_id: str, data: dict[str, Any], actor: AuthenticatedUser
    ) -> Store:
        """Update name, description or logo of a store.

        Raises:
            NotFoundError: If the store does not exist.
            ForbiddenError: If the actor neither owns the store nor is admin.
            BadRequestError: If no updatable field is present or storeName is empty.
        """
        store = await self._get_modifiable(store_id, actor)
        dto = UpdateStoreDTO.from_input(data)
        updated = await self.store_repo.update_by_id(store.id, dto.changes)
        if updated is None:
            raise NotFoundError("Store not found.", details={"id": store_id})

        logger.info(
            "Store updated",
            store_id=store_id,
            fields=sorted(dto.changes),
            request_id=self.request_id,
        )
        return updated

    async def delete(self, store_id: str, actor: AuthenticatedUser) -> Store:
        """Delete a store.

        Raises:
            NotFoundError: If the store does not exist.
            ForbiddenError: If the actor neither owns the store nor is admin.
        """
        store = await self._get_modifiable(store_id, actor)
        deleted = await self.store_repo.delete_by_id(store.id)
        if deleted is None:
            raise NotFoundError("Store not found.", details={"id": store_id})

        logger.info("Store deleted", store_id=store_id, request_id=self.request_id)
        return deleted

    async def update_status(self, store_id: str, data: dict[str, Any]) -> Store:
        """Moderate a store.

        Raises:
            NotFoundError: If the store does not exist.
            BadRequestError: If the status is unknown.
        """
        await self.get_by_id(store_id)
        dto = UpdateStoreStatusDTO.from_input(data)
        updated = await self.store_repo.update_status(store_id, dto.status, dto.reason)
        if updated is None:
            raise NotFoundError("Store not found.", details={"id": store_id})

        logger.info(
            "Store status updated",
            store_id=store_id,
            status=dto.status.value,
            request_id=self.request_id,
        )
        return updated

    async def _get_modifiable(self, store_id: str, actor: AuthenticatedUser) -> Store:
        store = await self.get_by_id(store_id)
        if not actor.is_admin and store.user_id != actor.id:
            raise ForbiddenError(
                "You are not allowed to modify this store.",
                details={"store_id": store_id},
            )
        return store
