"""Tests for the liveness and readiness probes."""

import pytest
from fastapi.testclient import TestClient

from marketplace.infrastructure.container import build_memory_container
from marketplace.main import create_app


@pytest.fixture
def client() -> TestClient:
    """Client over an app with in-memory storage."""
    return TestClient(create_app(container=build_memory_container()))


class TestProbes:
    """Tests for /health and /ready."""

    def test_liveness(self, client: TestClient) -> None:
        """Liveness reports the service name and version."""
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["service"] == "marketplace-api"
        assert "version" in body

    def test_readiness(self, client: TestClient) -> None:
        """Readiness succeeds once the container is attached."""
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_probes_need_no_token(self, client: TestClient) -> None:
        """Probes are public."""
        assert client.get("/health", headers={"Authorization": "Bearer nope"}).status_code == 200
