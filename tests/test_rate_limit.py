"""Tests for rate limiting configuration."""

import base64
import json

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from kickabout.auth import create_session_token
from kickabout.core.rate_limit import (
    RATE_LIMITS,
    _extract_jwt_payload,
    get_rate_limit_key,
    limiter,
)


def make_request(authorization: str | None = None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/api/matches",
            "headers": headers,
            "client": ("203.0.113.7", 5000),
        }
    )


def unsigned_token(claims: dict) -> str:
    body = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
    return f"header.{body}.signature"


class TestExtractJwtPayload:
    """Tests for _extract_jwt_payload function."""

    def test_reads_claims(self):
        """Should decode the payload segment without verifying it."""
        assert _extract_jwt_payload(unsigned_token({"sub": "u1"})) == {"sub": "u1"}

    def test_wrong_segment_count(self):
        """Should return None for tokens without three segments."""
        assert _extract_jwt_payload("not-a-token") is None

    def test_garbage_payload(self):
        """Should return None when the payload is not base64 JSON."""
        assert _extract_jwt_payload("a.%%%.c") is None


class TestGetRateLimitKey:
    """Tests for get_rate_limit_key function."""

    def test_anonymous_uses_ip(self):
        """Should key anonymous requests by client address."""
        assert get_rate_limit_key(make_request()) == "203.0.113.7"

    def test_session_token_uses_user(self):
        """Should key authenticated requests by user id."""
        token = create_session_token("user-123", "ann@example.com", None)

        assert get_rate_limit_key(make_request(f"Bearer {token}")) == "user:user-123"

    def test_malformed_token_falls_back_to_ip(self):
        """Should fall back to the address for unreadable tokens."""
        assert get_rate_limit_key(make_request("Bearer nonsense")) == "203.0.113.7"

    def test_token_without_subject_falls_back_to_ip(self):
        """Should ignore tokens that carry no subject."""
        request = make_request(f"Bearer {unsigned_token({'role': 'admin'})}")

        assert get_rate_limit_key(request) == "203.0.113.7"

    def test_non_bearer_scheme_ignored(self):
        """Should only read bearer credentials."""
        assert get_rate_limit_key(make_request("Basic dXNlcjpwYXNz")) == "203.0.113.7"


class TestRateLimits:
    """Tests for the named limit table."""

    def test_named_limits(self):
        """Should expose a limit for every route group."""
        assert set(RATE_LIMITS) == {"default", "auth", "writes", "admin"}
        assert RATE_LIMITS["auth"] == "10/minute"


@pytest.fixture
def enabled_limiter():
    """Turn the limiter on with empty counters for one test."""
    limiter.reset()
    limiter.enabled = True
    yield limiter
    limiter.enabled = False
    limiter.reset()


class TestRateLimitResponse:
    """Tests for the 429 response."""

    def test_exceeded_limit_uses_envelope(self, client: TestClient, enabled_limiter):
        """Should reject the eleventh login in a minute with the standard envelope."""
        credentials = {"email": "ghost@example.com", "password": "secret123"}
        statuses = [
            client.post("/api/auth/login", json=credentials).status_code for _ in range(10)
        ]

        response = client.post(
            "/api/auth/login", json=credentials, headers={"X-Request-ID": "burst-1"}
        )

        assert statuses == [401] * 10
        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["message"] == "RATE_LIMITED"
        assert body["error"].startswith("Rate limit exceeded")
        assert body["metadata"]["requestId"] == "burst-1"
