"""Tests for the Supabase identity adapter with a stubbed SDK client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from marketplace.domain import IdentityRole, InternalError, UnauthorizedError
from marketplace.infrastructure.supabase_auth import SupabaseAuthRepository


def _user(role: str | None = "Seller") -> SimpleNamespace:
    return SimpleNamespace(
        id="user-1",
        email="ada@example.com",
        app_metadata={},
        user_metadata={"role": role} if role else {},
        email_confirmed_at=None,
    )


def _session() -> SimpleNamespace:
    return SimpleNamespace(access_token="access", refresh_token="refresh", expires_in=3600)


class TestSupabaseAuthRepository:
    """Tests for SupabaseAuthRepository."""

    @pytest.mark.asyncio
    async def test_sign_up_uses_session_client(self) -> None:
        """Registration runs on a fresh client and passes metadata through."""
        shared = MagicMock()
        session_client = MagicMock()
        session_client.auth.sign_up.return_value = SimpleNamespace(
            user=_user(), session=_session()
        )
        repo = SupabaseAuthRepository(shared, session_client_factory=lambda: session_client)

        result = await repo.sign_up("ada@example.com", "pw", {"role": "buyer"})

        session_client.auth.sign_up.assert_called_once_with(
            {"email": "ada@example.com", "password": "pw", "options": {"data": {"role": "buyer"}}}
        )
        shared.auth.sign_up.assert_not_called()
        assert result.user_id == "user-1"
        assert result.access_token == "access"

    @pytest.mark.asyncio
    async def test_sign_up_without_user(self) -> None:
        """A response without a user is an internal error."""
        client = MagicMock()
        client.auth.sign_up.return_value = SimpleNamespace(user=None, session=None)
        repo = SupabaseAuthRepository(client)

        with pytest.raises(InternalError):
            await repo.sign_up("ada@example.com", "pw", {})

    @pytest.mark.asyncio
    async def test_sign_in_without_session(self) -> None:
        """Sign-in without a session is unauthorized."""
        client = MagicMock()
        client.auth.sign_in_with_password.return_value = SimpleNamespace(
            user=_user(), session=None
        )
        repo = SupabaseAuthRepository(client)

        with pytest.raises(UnauthorizedError):
            await repo.sign_in("ada@example.com", "pw")

    @pytest.mark.asyncio
    async def test_get_user_maps_role(self) -> None:
        """Identity roles are read from user metadata."""
        client = MagicMock()
        client.auth.get_user.return_value = SimpleNamespace(user=_user("Seller"))
        repo = SupabaseAuthRepository(client)

        identity = await repo.get_user("token")

        client.auth.get_user.assert_called_once_with("token")
        assert identity.id == "user-1"
        assert identity.role == IdentityRole.SELLER

    @pytest.mark.asyncio
    async def test_get_user_unknown(self) -> None:
        """A missing user resolves to None."""
        client = MagicMock()
        client.auth.get_user.return_value = None
        repo = SupabaseAuthRepository(client)

        assert await repo.get_user("token") is None

    @pytest.mark.asyncio
    async def test_update_metadata(self) -> None:
        """Metadata updates go through the admin API."""
        client = MagicMock()
        repo = SupabaseAuthRepository(client)

        await repo.update_user_metadata("user-1", {"role": "Seller"})

        client.auth.admin.update_user_by_id.assert_called_once_with(
            "user-1", {"user_metadata": {"role": "Seller"}}
        )
