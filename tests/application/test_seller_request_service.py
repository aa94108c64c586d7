"""Tests for the seller request service.

Covers the approval flow across the profile store and the identity
provider, including the rollback of failed approvals.
"""

from unittest.mock import AsyncMock

import pytest

from marketplace.application import CompensationFailurePolicy, SellerRequestService
from marketplace.application.seller_request_service import ROLE_UPDATE_ROLLBACK_COMMENT
from marketplace.domain import (
    BadRequestError,
    CompensationFailedError,
    ConflictError,
    InternalError,
    InvalidStateTransitionError,
    NotFoundError,
    SellerRequest,
    SellerRequestStatus,
    User,
    UserRole,
)
from marketplace.domain.repositories import (
    AuthRepository,
    SellerRequestRepository,
    UserRepository,
)
from marketplace.infrastructure.memory import InMemorySellerRequestRepository


@pytest.fixture
def request_repo() -> InMemorySellerRequestRepository:
    """Seller request repository with real pending-uniqueness behavior."""
    return InMemorySellerRequestRepository()


@pytest.fixture
def user_repo() -> AsyncMock:
    """User repository mock that promotes successfully."""
    repo = AsyncMock(spec=UserRepository)
    repo.update_by_id.side_effect = lambda user_id, changes: User.create(
        id=user_id, role=changes["role"], is_approved_seller=changes["is_approved_seller"]
    )
    return repo


@pytest.fixture
def auth_repo() -> AsyncMock:
    """Identity provider mock."""
    return AsyncMock(spec=AuthRepository)


@pytest.fixture
def service(request_repo, user_repo, auth_repo) -> SellerRequestService:
    """Service with the default log policy."""
    return SellerRequestService(request_repo, user_repo, auth_repo)


async def _seed(repo: InMemorySellerRequestRepository, **changes) -> SellerRequest:
    request = await repo.create(SellerRequest.create(user_id="user-1", message="I sell lamps"))
    if changes:
        request = await repo.update_by_id(request.id, changes)
    return request


class TestUpdateStatusGuards:
    """Tests for rejected status updates."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "current", [SellerRequestStatus.APPROVED, SellerRequestStatus.REJECTED]
    )
    async def test_decided_request_is_conflict_without_side_effects(
        self, service, request_repo, user_repo, auth_repo, current
    ) -> None:
        """Non-pending requests fail and never touch the user or identity provider."""
        request = await _seed(request_repo, status=current)

        with pytest.raises(InvalidStateTransitionError, match="Only pending requests"):
            await service.update_status(request.id, {"status": "approved"})

        assert (await request_repo.find_by_id(request.id)).status == current
        user_repo.update_by_id.assert_not_awaited()
        auth_repo.update_user_metadata.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_request_is_not_found(self, service, user_repo, auth_repo) -> None:
        """Unknown ids fail with NotFoundError and no writes."""
        with pytest.raises(NotFoundError, match="Seller request not found"):
            await service.update_status("missing", {"status": "approved"})

        user_repo.update_by_id.assert_not_awaited()
        auth_repo.update_user_metadata.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [None, "pending", "APPROVED", "maybe"])
    async def test_invalid_target_status(self, service, request_repo, status) -> None:
        """Only approved or rejected are accepted."""
        request = await _seed(request_repo)

        with pytest.raises(BadRequestError, match="either 'approved' or 'rejected'"):
            await service.update_status(request.id, {"status": status})

        assert (await request_repo.find_by_id(request.id)).is_pending


class TestApproval:
    """Tests for approving a pending request."""

    @pytest.mark.asyncio
    async def test_approve_promotes_user_in_both_systems(
        self, service, request_repo, user_repo, auth_repo
    ) -> None:
        """Approval persists the decision and promotes the user."""
        request = await _seed(request_repo)

        updated = await service.update_status(
            request.id, {"status": "approved", "adminComment": "Welcome"}
        )

        assert updated.status == SellerRequestStatus.APPROVED
        assert updated.admin_comment == "Welcome"
        stored = await request_repo.find_by_id(request.id)
        assert stored.status == SellerRequestStatus.APPROVED

        user_repo.update_by_id.assert_awaited_once_with(
            "user-1", {"role": UserRole.SELLER, "is_approved_seller": True}
        )
        auth_repo.update_user_metadata.assert_awaited_once_with("user-1", {"role": "Seller"})

    @pytest.mark.asyncio
    async def test_reject_never_touches_user(
        self, service, request_repo, user_repo, auth_repo
    ) -> None:
        """Rejection only writes the request."""
        request = await _seed(request_repo)

        updated = await service.update_status(
            request.id, {"status": "rejected", "adminComment": "Incomplete"}
        )

        assert updated.status == SellerRequestStatus.REJECTED
        assert (await request_repo.find_by_id(request.id)).status == SellerRequestStatus.REJECTED
        user_repo.update_by_id.assert_not_awaited()
        auth_repo.update_user_metadata.assert_not_awaited()


class TestApprovalRollback:
    """Tests for compensating failed approvals."""

    @pytest.mark.asyncio
    async def test_user_repository_failure_rolls_back(
        self, service, request_repo, user_repo, auth_repo
    ) -> None:
        """A failed profile update returns the request to pending."""
        request = await _seed(request_repo)
        user_repo.update_by_id.side_effect = RuntimeError("database down")

        with pytest.raises(InternalError, match="Error updating user role: database down"):
            await service.update_status(request.id, {"status": "approved"})

        stored = await request_repo.find_by_id(request.id)
        assert stored.status == SellerRequestStatus.PENDING
        assert stored.admin_comment == ROLE_UPDATE_ROLLBACK_COMMENT
        auth_repo.update_user_metadata.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_user_rolls_back(
        self, service, request_repo, user_repo, auth_repo
    ) -> None:
        """A profile that does not exist counts as a failed promotion."""
        request = await _seed(request_repo)
        user_repo.update_by_id.side_effect = None
        user_repo.update_by_id.return_value = None

        with pytest.raises(InternalError):
            await service.update_status(request.id, {"status": "approved"})

        assert (await request_repo.find_by_id(request.id)).is_pending
        auth_repo.update_user_metadata.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_identity_provider_failure_rolls_back(
        self, service, request_repo, user_repo, auth_repo
    ) -> None:
        """A failed identity update returns the request to pending."""
        request = await _seed(request_repo)
        auth_repo.update_user_metadata.side_effect = RuntimeError("provider unavailable")

        with pytest.raises(InternalError, match="provider unavailable"):
            await service.update_status(request.id, {"status": "approved"})

        stored = await request_repo.find_by_id(request.id)
        assert stored.status == SellerRequestStatus.PENDING
        assert stored.admin_comment == ROLE_UPDATE_ROLLBACK_COMMENT
        assert user_repo.update_by_id.await_count == 1

    @pytest.mark.asyncio
    async def test_rollback_failure_is_logged_by_default(self, user_repo, auth_repo) -> None:
        """With the log policy the promotion error is raised, not the rollback error."""
        request_repo = AsyncMock(spec=SellerRequestRepository)
        request = SellerRequest.create(user_id="user-1", id="req-1")
        request_repo.find_by_id.return_value = request
        request_repo.update_by_id.side_effect = [
            request.with_changes(status=SellerRequestStatus.APPROVED),
            RuntimeError("rollback lost"),
        ]
        user_repo.update_by_id.side_effect = RuntimeError("database down")
        service = SellerRequestService(request_repo, user_repo, auth_repo)

        with pytest.raises(InternalError) as exc_info:
            await service.update_status("req-1", {"status": "approved"})

        assert not isinstance(exc_info.value, CompensationFailedError)
        assert "database down" in exc_info.value.message
        assert request_repo.update_by_id.await_count == 2

    @pytest.mark.asyncio
    async def test_rollback_failure_raises_with_raise_policy(self, user_repo, auth_repo) -> None:
        """With the raise policy both failures surface together."""
        request_repo = AsyncMock(spec=SellerRequestRepository)
        request = SellerRequest.create(user_id="user-1", id="req-1")
        request_repo.find_by_id.return_value = request
        request_repo.update_by_id.side_effect = [
            request.with_changes(status=SellerRequestStatus.APPROVED),
            RuntimeError("rollback lost"),
        ]
        user_repo.update_by_id.side_effect = RuntimeError("database down")
        service = SellerRequestService(
            request_repo, user_repo, auth_repo, compensation_policy=CompensationFailurePolicy.RAISE
        )

        with pytest.raises(CompensationFailedError) as exc_info:
            await service.update_status("req-1", {"status": "approved"})

        error = exc_info.value
        assert str(error.original_error) == "database down"
        assert str(error.compensation_error) == "rollback lost"
        assert error.details["entity_id"] == "req-1"

    @pytest.mark.asyncio
    async def test_request_can_be_approved_after_rollback(
        self, service, request_repo, user_repo, auth_repo
    ) -> None:
        """A rolled back request is pending again and can be retried."""
        request = await _seed(request_repo)
        auth_repo.update_user_metadata.side_effect = [RuntimeError("timeout"), None]

        with pytest.raises(InternalError):
            await service.update_status(request.id, {"status": "approved"})
        updated = await service.update_status(request.id, {"status": "approved"})

        assert updated.status == SellerRequestStatus.APPROVED


class TestCreate:
    """Tests for submitting seller requests."""

    @pytest.mark.asyncio
    async def test_pending_request_blocks_create(self, user_repo, auth_repo) -> None:
        """A pending request prevents another one without calling create."""
        request_repo = AsyncMock(spec=SellerRequestRepository)
        request_repo.find_by_user_id.return_value = SellerRequest.create(user_id="user-1")
        service = SellerRequestService(request_repo, user_repo, auth_repo)

        with pytest.raises(ConflictError, match="User already has a pending request"):
            await service.create("user-1", {"message": "again"})

        request_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approved_request_blocks_create(self, user_repo, auth_repo) -> None:
        """An approved user cannot ask again."""
        request_repo = AsyncMock(spec=SellerRequestRepository)
        request_repo.find_by_user_id.return_value = SellerRequest.create(
            user_id="user-1"
        ).with_changes(status=SellerRequestStatus.APPROVED)
        service = SellerRequestService(request_repo, user_repo, auth_repo)

        with pytest.raises(ConflictError, match="User is already a seller"):
            await service.create("user-1", {})

        request_repo.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_request_allows_create(self, user_repo, auth_repo) -> None:
        """A rejected user may ask again; create is called once."""
        request_repo = AsyncMock(spec=SellerRequestRepository)
        request_repo.find_by_user_id.return_value = SellerRequest.create(
            user_id="user-1"
        ).with_changes(status=SellerRequestStatus.REJECTED)
        request_repo.create.side_effect = lambda request: request
        service = SellerRequestService(request_repo, user_repo, auth_repo)

        created = await service.create("user-1", {"message": "Second try"})

        request_repo.create.assert_awaited_once()
        entity = request_repo.create.await_args.args[0]
        assert entity.user_id == "user-1"
        assert entity.message == "Second try"
        assert created.is_pending

    @pytest.mark.asyncio
    async def test_first_request_defaults_message(self, service, request_repo) -> None:
        """A first request without message stores an empty one."""
        created = await service.create("user-1", {})

        assert created.message == ""
        assert (await request_repo.find_by_user_id("user-1")).id == created.id

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_hits_storage_rule(self, request_repo) -> None:
        """The storage layer rejects a second pending request that slipped past the read."""
        await request_repo.create(SellerRequest.create(user_id="user-1"))

        with pytest.raises(ConflictError, match="User already has a pending request"):
            await request_repo.create(SellerRequest.create(user_id="user-1"))


class TestQueries:
    """Tests for seller request queries and deletion."""

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, service) -> None:
        """Unknown ids raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await service.get_by_id("missing")

    @pytest.mark.asyncio
    async def test_get_by_user_id_without_request(self, service) -> None:
        """Users without requests get None."""
        assert await service.get_by_user_id("nobody") is None

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, service, request_repo) -> None:
        """list filters by status."""
        await _seed(request_repo, status=SellerRequestStatus.REJECTED)
        await request_repo.create(SellerRequest.create(user_id="user-2"))

        pending = await service.list(status=SellerRequestStatus.PENDING)
        everything = await service.list()

        assert [r.user_id for r in pending] == ["user-2"]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_delete(self, service, request_repo) -> None:
        """delete removes the request and returns it."""
        request = await _seed(request_repo)

        deleted = await service.delete(request.id)

        assert deleted.id == request.id
        assert await request_repo.find_by_id(request.id) is None

    @pytest.mark.asyncio
    async def test_delete_unknown(self, user_repo, auth_repo) -> None:
        """Deleting an unknown request fails without calling delete."""
        request_repo = AsyncMock(spec=SellerRequestRepository)
        request_repo.find_by_id.return_value = None
        service = SellerRequestService(request_repo, user_repo, auth_repo)

        with pytest.raises(NotFoundError):
            await service.delete("missing")

        request_repo.delete_by_id.assert_not_awaited()
