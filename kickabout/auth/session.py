"""Session tokens.

Sessions are HS256 JWTs signed with ``JWT_SECRET`` carrying the user id
(``sub``), email and player id, valid for ``SESSION_TTL_DAYS``. Nothing is
stored server-side, so logging out only asks the client to drop the token.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from kickabout.core.config import settings
from kickabout.core.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """The authenticated principal attached to a request."""

    user_id: str
    email: str
    player_id: str | None
    role: str = "player"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_session_token(
    user_id: str, email: str, player_id: str | None, *, now: datetime | None = None
) -> str:
    """Issue a signed session token."""
    issued_at = now or datetime.now(UTC)
    claims: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "player_id": player_id,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(days=settings.session_ttl_days)).timestamp()),
    }
    return jwt.encode(claims, settings.session_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry and return the claims.

    Raises:
        UnauthenticatedError: token malformed, expired or signed with another key.
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token, settings.session_secret, algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError as e:
        raise UnauthenticatedError("Session expired") from e
    except JWTError as e:
        logger.debug(f"Session token rejected: {e}")
        raise UnauthenticatedError("Invalid session token") from e

    if not claims.get("sub") or not claims.get("email"):
        raise UnauthenticatedError("Invalid session token")
    return claims
