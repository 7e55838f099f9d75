"""Common error response models for OpenAPI documentation.

Every failure is returned in the standard envelope with ``success: false``.
"""

from typing import Any

from pydantic import BaseModel


class ErrorEnvelope(BaseModel):
    """Standard error envelope."""

    success: bool = False
    error: str
    message: str | None = None
    details: dict[str, Any] | None = None
    metadata: dict[str, Any]


# Common response definitions for route decorators
AUTH_RESPONSES: dict[int | str, dict[str, Any]] = {
    401: {
        "model": ErrorEnvelope,
        "description": "Authentication required - token missing, invalid or expired",
    },
}

ORGANIZER_RESPONSES: dict[int | str, dict[str, Any]] = {
    **AUTH_RESPONSES,
    403: {
        "model": ErrorEnvelope,
        "description": "Access denied - organizer or admin role required",
    },
}

ADMIN_RESPONSES: dict[int | str, dict[str, Any]] = {
    **AUTH_RESPONSES,
    403: {
        "model": ErrorEnvelope,
        "description": "Access denied - admin role required",
    },
}
