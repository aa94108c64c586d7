"""Supabase identity-provider adapter.

The Supabase SDK is synchronous; calls run in Starlette's threadpool so
they do not block the event loop.
"""

from collections.abc import Callable
from typing import Any

import structlog
from starlette.concurrency import run_in_threadpool
from supabase import AuthApiError, Client, create_client

from marketplace.domain.entities import AuthenticatedUser, AuthSession
from marketplace.domain.exceptions import BadRequestError, InternalError, UnauthorizedError
from marketplace.domain.repositories import AuthRepository
from marketplace.domain.value_objects import IdentityRole
from marketplace.infrastructure.config import Settings

logger = structlog.get_logger()


def create_supabase_client(settings: Settings) -> Client:
    """Create a Supabase client authenticated with the service key."""
    return create_client(settings.supabase_url, settings.supabase_service_key)


def _identity_from(user: Any) -> AuthenticatedUser:
    app_metadata = user.app_metadata or {}
    user_metadata = user.user_metadata or {}
    return AuthenticatedUser(
        id=user.id,
        email=user.email,
        role=IdentityRole.parse(app_metadata.get("role") or user_metadata.get("role")),
        email_confirmed_at=user.email_confirmed_at,
    )


def _session_from(response: Any, email: str) -> AuthSession:
    session = response.session
    return AuthSession(
        user_id=response.user.id,
        access_token=session.access_token if session else None,
        refresh_token=session.refresh_token if session else None,
        expires_in=session.expires_in if session else None,
        email=response.user.email or email,
    )


class SupabaseAuthRepository(AuthRepository):
    """AuthRepository backed by Supabase Auth.

    Sign-up and sign-in run on a short-lived client so the session they
    open never replaces the service-key session of the shared client.
    """

    def __init__(
        self,
        client: Client,
        session_client_factory: Callable[[], Client] | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            client: Shared service-key client for admin calls.
            session_client_factory: Builds a fresh client for user sessions.
        """
        self.client = client
        self.session_client_factory = session_client_factory or (lambda: client)

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> AuthSession:
        """Create an identity with initial user metadata.

        Raises:
            BadRequestError: If Supabase rejects the registration.
            InternalError: If Supabase returns no user.
        """
        payload = {"email": email, "password": password, "options": {"data": metadata}}
        try:
            response = await run_in_threadpool(self.session_client_factory().auth.sign_up, payload)
        except AuthApiError as e:
            logger.warning("Supabase sign-up rejected", email=email, error=str(e))
            raise BadRequestError(str(e)) from e

        if response.user is None:
            raise InternalError("Registration failed: no user returned")

        logger.info("Supabase user registered", user_id=response.user.id)
        return _session_from(response, email)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password.

        Raises:
            UnauthorizedError: If the credentials are rejected.
        """
        try:
            response = await run_in_threadpool(
                self.session_client_factory().auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        except AuthApiError as e:
            logger.warning("Supabase sign-in rejected", email=email, error=str(e))
            raise UnauthorizedError(str(e)) from e

        if response.user is None or response.session is None:
            raise UnauthorizedError("Invalid login credentials")
        return _session_from(response, email)

    async def sign_out(self, token: str) -> None:
        """Revoke the sessions of the token's user.

        Raises:
            InternalError: If Supabase rejects the call.
        """
        try:
            await run_in_threadpool(self.client.auth.admin.sign_out, token)
        except AuthApiError as e:
            logger.error("Supabase sign-out failed", error=str(e))
            raise InternalError("Failed to sign out") from e

    async def get_user(self, token: str) -> AuthenticatedUser | None:
        try:
            response = await run_in_threadpool(self.client.auth.get_user, token)
        except AuthApiError as e:
            logger.debug("Supabase token rejected", error=str(e))
            return None
        if response is None or response.user is None:
            return None
        return _identity_from(response.user)

    async def update_user_metadata(self, user_id: str, metadata: dict[str, Any]) -> None:
        """Merge metadata into the user's identity record.

        Raises:
            InternalError: If Supabase rejects the update.
        """
        try:
            await run_in_threadpool(
                self.client.auth.admin.update_user_by_id,
                user_id,
                {"user_metadata": metadata},
            )
        except AuthApiError as e:
            logger.error("Supabase metadata update failed", user_id=user_id, error=str(e))
            raise InternalError(f"Failed to update identity metadata: {e}") from e
