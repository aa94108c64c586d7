"""Seller request application service.

Orchestrates the seller onboarding lifecycle:
- Users submit a request to become a seller
- Administrators approve or reject pending requests
- Approval promotes the user in the profile store and in the identity
  provider, compensating the request when either promotion fails
"""

from enum import Enum
from typing import Any

import structlog

from marketplace.domain.entities import SellerRequest
from marketplace.domain.exceptions import (
    CompensationFailedError,
    ConflictError,
    InternalError,
    NotFoundError,
)
from marketplace.domain.repositories import (
    AuthRepository,
    SellerRequestRepository,
    UserRepository,
)
from marketplace.domain.state_machines import (
    SellerRequestStatus,
    validate_seller_request_transition,
)
from marketplace.domain.value_objects import IdentityRole, UserRole
from marketplace.application.dtos import CreateSellerRequestDTO, UpdateSellerRequestStatusDTO

logger = structlog.get_logger()

ROLE_UPDATE_ROLLBACK_COMMENT = "Error updating user role. Please try again."


class CompensationFailurePolicy(str, Enum):
    """What to do when the rollback write of a failed approval also fails.

    LOG keeps the role-update error as the raised error and logs the
    rollback failure. RAISE replaces it with CompensationFailedError
    carrying both failures.
    """

    LOG = "log"
    RAISE = "raise"


class SellerRequestService:
    """Application service for seller requests."""

    def __init__(
        self,
        seller_request_repo: SellerRequestRepository,
        user_repo: UserRepository,
        auth_repo: AuthRepository,
        compensation_policy: CompensationFailurePolicy | str = CompensationFailurePolicy.LOG,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            seller_request_repo: Seller request repository.
            user_repo: User profile repository.
            auth_repo: Identity provider adapter.
            compensation_policy: Behavior when a rollback write fails.
            request_id: Request ID for correlation.
        """
        self.seller_request_repo = seller_request_repo
        self.user_repo = user_repo
        self.auth_repo = auth_repo
        self.compensation_policy = CompensationFailurePolicy(compensation_policy)
        self.request_id = request_id

    # ------------------------------------------------------------------------
    # Creation and queries
    # ------------------------------------------------------------------------

    async def create(self, user_id: str, data: dict[str, Any]) -> SellerRequest:
        """Submit a seller request for a user.

        A new request is allowed when the user has none or the latest one
        was rejected.

        Args:
            user_id: ID of the requesting user.
            data: Raw request body.

        Returns:
            The created pending request.

        Raises:
            ConflictError: If the user is already a seller or already has
                a pending request.
        """
        existing = await self.seller_request_repo.find_by_user_id(user_id)
        if existing is not None:
            if existing.status == SellerRequestStatus.APPROVED:
                raise ConflictError("User is already a seller", details={"user_id": user_id})
            if existing.status == SellerRequestStatus.PENDING:
                raise ConflictError(
                    "User already has a pending request",
                    details={"user_id": user_id, "request_id": existing.id},
                )

        dto = CreateSellerRequestDTO.from_input(data)
        created = await self.seller_request_repo.create(dto.to_entity(user_id))

        logger.info(
            "Seller request created",
            seller_request_id=created.id,
            user_id=user_id,
            request_id=self.request_id,
        )
        return created

    async def get_by_id(self, request_id: str) -> SellerRequest:
        """Get a seller request.

        Raises:
            NotFoundError: If the request does not exist.
        """
        request = await self.seller_request_repo.find_by_id(request_id)
        if request is None:
            raise NotFoundError("Seller request not found", details={"id": request_id})
        return request

    async def get_by_user_id(self, user_id: str) -> SellerRequest | None:
        """Get the latest seller request of a user, None when there is none."""
        return await self.seller_request_repo.find_by_user_id(user_id)

    async def list(self, status: SellerRequestStatus | None = None) -> list[SellerRequest]:
        """List seller requests newest first, optionally filtered by status."""
        return await self.seller_request_repo.find_all(status=status)

    async def delete(self, request_id: str) -> SellerRequest:
        """Delete a seller request.

        Raises:
            NotFoundError: If the request does not exist.
        """
        await self.get_by_id(request_id)
        deleted = await self.seller_request_repo.delete_by_id(request_id)
        if deleted is None:
            raise NotFoundError("Seller request not found", details={"id": request_id})

        logger.info(
            "Seller request deleted",
            seller_request_id=request_id,
            request_id=self.request_id,
        )
        return deleted

    # ------------------------------------------------------------------------
    # Approval flow
    # ------------------------------------------------------------------------

    async def update_status(self, request_id: str, data: dict[str, Any]) -> SellerRequest:
        """Approve or reject a pending seller request.

        On approval the user is promoted in the profile store and then in
        the identity provider. If either promotion fails the request is
        written back to pending with a rollback comment and the failure is
        raised as InternalError.

        Args:
            request_id: Seller request ID.
            data: Raw body with ``status`` and optional ``adminComment``.

        Returns:
            The updated request.

        Raises:
            BadRequestError: If the target status is not approved or rejected.
            NotFoundError: If the request does not exist.
            InvalidStateTransitionError: If the request is not pending.
            InternalError: If promoting the user fails.
            CompensationFailedError: If promoting the user and the rollback
                both fail and the policy is RAISE.
        """
        dto = UpdateSellerRequestStatusDTO.from_input(data)
        request = await self.get_by_id(request_id)
        validate_seller_request_transition(request.id, request.status, dto.status)

        updated = await self.seller_request_repo.update_by_id(
            request_id,
            {"status": dto.status, "admin_comment": dto.admin_comment},
        )
        if updated is None:
            raise NotFoundError("Seller request not found", details={"id": request_id})

        logger.info(
            "Seller request status updated",
            seller_request_id=request_id,
            user_id=request.user_id,
            from_status=request.status.value,
            to_status=dto.status.value,
            request_id=self.request_id,
        )

        if dto.status == SellerRequestStatus.APPROVED:
            await self._promote_user(updated)

        return updated

    async def _promote_user(self, request: SellerRequest) -> None:
        """Grant the seller role in both systems or compensate the request."""
        try:
            promoted = await self.user_repo.update_by_id(
                request.user_id,
                {"role": UserRole.SELLER, "is_approved_seller": True},
            )
            if promoted is None:
                raise NotFoundError("User not found", details={"user_id": request.user_id})
            await self.auth_repo.update_user_metadata(
                request.user_id,
                {"role": IdentityRole.SELLER.value},
            )
        except Exception as e:
            logger.error(
                "Failed to promote user, rolling back seller request",
                seller_request_id=request.id,
                user_id=request.user_id,
                error=str(e),
                request_id=self.request_id,
            )
            await self._rollback(request, e)
            raise InternalError(
                f"Error updating user role: {e}",
                details={"seller_request_id": request.id, "user_id": request.user_id},
            ) from e

        logger.info(
            "User promoted to seller",
            seller_request_id=request.id,
            user_id=request.user_id,
            request_id=self.request_id,
        )

    async def _rollback(self, request: SellerRequest, cause: Exception) -> None:
        """Write a failed approval back to pending."""
        try:
            await self.seller_request_repo.update_by_id(
                request.id,
                {
                    "status": SellerRequestStatus.PENDING,
                    "admin_comment": ROLE_UPDATE_ROLLBACK_COMMENT,
                },
            )
        except Exception as rollback_error:
            logger.error(
                "Seller request rollback failed",
                seller_request_id=request.id,
                user_id=request.user_id,
                error=str(cause),
                rollback_error=str(rollback_error),
                policy=self.compensation_policy.value,
                request_id=self.request_id,
            )
            if self.compensation_policy == CompensationFailurePolicy.RAISE:
                raise CompensationFailedError(
                    entity_type="SellerRequest",
                    entity_id=request.id,
                    original_error=cause,
                    compensation_error=rollback_error,
                ) from rollback_error
