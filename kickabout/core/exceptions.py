"""Custom exceptions for the application.

Every error carries the HTTP status it maps to, so the transport layer
never has to guess the kind of a failure from its message.
"""

from typing import Any


class KickaboutError(Exception):
    """Base exception for the application."""

    status_code: int = 500
    error_code: str = "INTERNAL"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(KickaboutError):
    """Malformed or out-of-range input."""

    status_code = 422
    error_code = "VALIDATION_ERROR"

    @classmethod
    def from_violations(cls, violations: list[str]) -> "ValidationError":
        """Build a single error enumerating every violated rule."""
        return cls(f"Validation failed: {', '.join(violations)}", {"errors": violations})


class UnauthenticatedError(KickaboutError):
    """Missing, invalid or expired session."""

    status_code = 401
    error_code = "UNAUTHENTICATED"


class ForbiddenError(KickaboutError):
    """Authenticated but lacking the required role or ownership."""

    status_code = 403
    error_code = "FORBIDDEN"


class NotFoundError(KickaboutError):
    """Referenced entity does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(KickaboutError):
    """Uniqueness or state precondition violated."""

    status_code = 409
    error_code = "CONFLICT"


class DuplicateRatingError(ConflictError):
    """The rater already rated this player for this match."""

    error_code = "DUPLICATE_RATING"


class MatchNotCompletedError(ConflictError):
    """Ratings are only accepted once the match is completed."""

    error_code = "MATCH_NOT_COMPLETED"


class CapacityError(KickaboutError):
    """Match roster is full."""

    status_code = 400
    error_code = "CAPACITY"


class EmptyRosterError(KickaboutError):
    """Nobody has joined the match yet."""

    status_code = 400
    error_code = "EMPTY_ROSTER"


class SelfRatingError(KickaboutError):
    """A player tried to rate themselves."""

    status_code = 400
    error_code = "SELF_RATING"


class NotParticipantError(KickaboutError):
    """Rater or rated player did not play in the match."""

    status_code = 400
    error_code = "NOT_PARTICIPANT"


class DataStoreError(KickaboutError):
    """Data store operation error."""

    pass


class DataStoreTimeoutError(DataStoreError):
    """Data store call did not complete in time."""

    status_code = 504
    error_code = "TIMEOUT"


class DataStoreUnavailableError(DataStoreError):
    """Data store could not be reached."""

    status_code = 503
    error_code = "UNAVAILABLE"
