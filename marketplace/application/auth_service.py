"""Authentication application service.

Registration creates the account in the identity provider first and then
the matching business profile, keyed by the provider's user id.
"""

from dataclasses import dataclass

import structlog

from marketplace.domain.entities import AuthSession, User
from marketplace.domain.exceptions import BadRequestError
from marketplace.domain.repositories import AuthRepository, UserRepository
from marketplace.domain.value_objects import UserRole

logger = structlog.get_logger()


@dataclass(frozen=True)
class RegistrationResult:
    """Result of registering an account."""

    user: User
    session: AuthSession
    message: str = "User registered successfully"


class AuthService:
    """Application service for sign-up, sign-in and sign-out."""

    def __init__(
        self,
        auth_repo: AuthRepository,
        user_repo: UserRepository,
        request_id: str | None = None,
    ) -> None:
        self.auth_repo = auth_repo
        self.user_repo = user_repo
        self.request_id = request_id

    async def register(
        self, email: str, password: str, role: UserRole | str = UserRole.BUYER
    ) -> RegistrationResult:
        """Register an account and its profile.

        Args:
            email: Account email.
            password: Account password.
            role: Requested profile role.

        Returns:
            The created profile and the provider session.

        Raises:
            BadRequestError: If the role is unknown.
        """
        try:
            role = UserRole(role or UserRole.BUYER)
        except ValueError:
            raise BadRequestError("Role must be one of: buyer, seller, admin") from None

        session = await self.auth_repo.sign_up(email, password, {"role": role.value})
        user = await self.user_repo.create(
            User.create(id=session.user_id, email=email, role=role, name=None)
        )

        logger.info(
            "User registered",
            user_id=user.id,
            role=role.value,
            request_id=self.request_id,
        )
        return RegistrationResult(user=user, session=session)

    async def login(self, email: str, password: str) -> AuthSession:
        """Sign in and return the provider session."""
        session = await self.auth_repo.sign_in(email, password)
        logger.info("User logged in", user_id=session.user_id, request_id=self.request_id)
        return session

    async def logout(self, token: str) -> None:
        """Revoke the session behind a token."""
        await self.auth_repo.sign_out(token)
        logger.info("User logged out", request_id=self.request_id)
