"""Integration tests for health check endpoints and the response envelope."""

from collections.abc import Generator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from kickabout.api.main import app
from kickabout.db.store import MemoryDataStore, get_datastore


class TestHealthEndpoints:
    """Test suite for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Basic health check returns 200 with status and version."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert set(data.keys()) == {"status", "version"}
        assert data["status"] == "healthy"

    def test_readiness_check_memory_store(self, client: TestClient):
        """Readiness reports the injected in-memory store as connected."""
        response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["datastore"]["backend"] == "memory"
        assert data["datastore"]["connected"] is True

    def test_readiness_check_store_down(self, client: TestClient, store):
        """Readiness answers 503 when the store ping fails."""
        with patch.object(store, "ping", AsyncMock(return_value=False)):
            response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unavailable"
        assert data["datastore"]["latency_ms"] is None

    def test_root_endpoint(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Kickabout API"
        assert data["docs"] == "/docs"


class TestSecurityHeaders:
    """Test suite for security headers and request id middleware."""

    def test_security_headers_present(self, client: TestClient):
        response = client.get("/health")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert "Referrer-Policy" in response.headers
        assert "Permissions-Policy" in response.headers
        # HSTS only in production
        assert "Strict-Transport-Security" not in response.headers

    def test_request_id_echoed(self, client: TestClient):
        response = client.get("/health", headers={"X-Request-ID": "abc123"})

        assert response.headers.get("X-Request-ID") == "abc123"

    def test_request_id_generated(self, client: TestClient):
        response = client.get("/health")

        assert len(response.headers.get("X-Request-ID", "")) == 12


class TestEnvelope:
    """Test suite for the uniform error envelope."""

    def test_unknown_route_uses_envelope(self, client: TestClient):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["message"] == "HTTP_ERROR"
        assert "timestamp" in body["metadata"]

    def test_error_carries_request_id(self, client: TestClient):
        response = client.get("/api/auth/me", headers={"X-Request-ID": "req-42"})

        assert response.status_code == 401
        assert response.json()["metadata"]["requestId"] == "req-42"

    def test_body_validation_enumerates_fields(self, client: TestClient):
        """Missing body fields are all listed in one 422."""
        response = client.post("/api/auth/login", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "VALIDATION_ERROR"
        assert body["error"].startswith("Validation failed:")
        errors = body["details"]["errors"]
        assert any(e.startswith("email") for e in errors)
        assert any(e.startswith("password") for e in errors)


@pytest.fixture
def slow_client() -> Generator[TestClient, None, None]:
    """Client backed by a store that always overruns its own timeout."""
    slow_store = MemoryDataStore(timeout=0.001, latency=0.01)
    app.dependency_overrides[get_datastore] = lambda: slow_store

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestStoreTimeout:
    """Test suite for data store timeouts surfacing through the API."""

    def test_store_timeout_is_504_envelope(self, slow_client: TestClient):
        """Should answer 504 with the TIMEOUT code when the store overruns."""
        response = slow_client.post(
            "/api/auth/login",
            json={"email": "ann@example.com", "password": "secret123"},
            headers={"X-Request-ID": "slow-1"},
        )

        assert response.status_code == 504
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["message"] == "TIMEOUT"
        assert body["details"]["table"] == "users"
        assert body["metadata"]["requestId"] == "slow-1"
