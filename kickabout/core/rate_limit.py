"""Rate limiting configuration for API protection.

Authenticated requests are bucketed per user (the session token's ``sub``
claim); everything else falls back to the client IP.
"""

import base64
import json
import logging
from typing import Any

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from kickabout.core.config import settings

logger = logging.getLogger(__name__)


def _extract_jwt_payload(token: str) -> dict[str, Any] | None:
    """Read a session token's claims without verifying the signature.

    Only used to pick a rate limit bucket; the auth dependency verifies the
    token separately.
    """
    try:
        parts = token.split(".")
        if len(parts) != 3:
            return None

        payload_b64 = parts[1]
        padding = 4 - len(payload_b64) % 4
        if padding != 4:
            payload_b64 += "=" * padding

        payload: dict[str, Any] = json.loads(base64.urlsafe_b64decode(payload_b64))
        return payload
    except (ValueError, TypeError):
        return None


def get_rate_limit_key(request: Request) -> str:
    """Extract rate limit key from request.

    Uses ``user:{user_id}`` when a bearer token with a subject is present,
    otherwise the remote address.
    """
    auth_header = request.headers.get("authorization", "")

    if auth_header.startswith("Bearer "):
        payload = _extract_jwt_payload(auth_header[7:])
        if payload and payload.get("sub"):
            return f"user:{payload['sub']}"

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["100/minute"],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)

# Used with @limiter.limit(RATE_LIMITS["..."]) in route files
RATE_LIMITS = {
    "default": "100/minute",
    "auth": "10/minute",  # register/login (credential stuffing)
    "writes": "30/minute",  # match, club and rating mutations
    "admin": "20/minute",
}
