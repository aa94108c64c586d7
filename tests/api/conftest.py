"""Shared fixtures for API tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from marketplace.domain import User, UserRole
from marketplace.infrastructure.container import Container, build_memory_container
from marketplace.main import create_app


def seed_account(container: Container, user_id: str, role: UserRole | None) -> dict[str, str]:
    """Create an identity, a profile and a session; return auth headers.

    Args:
        container: In-memory container to seed.
        user_id: Identity subject and profile id.
        role: Profile role, mirrored as the identity claim. None seeds an
            identity without a role claim.
    """
    identity_role = role.to_identity_role() if role else None
    container.auth.register_account(user_id, email=f"{user_id}@example.com", role=identity_role)
    asyncio.run(container.users.create(User.create(id=user_id, role=role or UserRole.BUYER)))
    return {"Authorization": f"Bearer {container.auth.issue_token(user_id)}"}


@pytest.fixture
def container() -> Container:
    """Container with in-memory adapters."""
    return build_memory_container()


@pytest.fixture
def client(container: Container) -> TestClient:
    """Create test client bound to the in-memory container."""
    return TestClient(create_app(container=container))


@pytest.fixture
def admin_headers(container: Container) -> dict[str, str]:
    """Headers of an administrator."""
    return seed_account(container, "admin-1", UserRole.ADMIN)


@pytest.fixture
def seller_headers(container: Container) -> dict[str, str]:
    """Headers of a seller."""
    return seed_account(container, "seller-1", UserRole.SELLER)


@pytest.fixture
def buyer_headers(container: Container) -> dict[str, str]:
    """Headers of a buyer."""
    return seed_account(container, "buyer-1", UserRole.BUYER)


@pytest.fixture
def roleless_headers(container: Container) -> dict[str, str]:
    """Headers of a caller whose identity carries no role claim."""
    return seed_account(container, "new-1", None)



@pytest.fixture
def make_account(container: Container):
    """Factory seeding further accounts: ``make_account(user_id, role)``."""
    return lambda user_id, role=UserRole.BUYER: seed_account(container, user_id, role)
