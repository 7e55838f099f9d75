"""Bearer-token authentication for FastAPI.

Verifies the session token on every protected route and resolves the
caller's current role from the users table, so a role change applies to
existing sessions immediately.
"""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kickabout.auth.session import CallerIdentity, decode_session_token
from kickabout.core.constants import ORGANIZER_ROLES
from kickabout.core.exceptions import ForbiddenError, UnauthenticatedError
from kickabout.db.store import DataStore, get_datastore

logger = logging.getLogger(__name__)

# Security scheme - auto_error=False so a missing header becomes our own 401 envelope
security = HTTPBearer(auto_error=False)


async def _resolve_identity(token: str, store: DataStore) -> CallerIdentity:
    claims = decode_session_token(token)
    user = await store.select_one("users", {"id": claims["sub"]})
    if user is None:
        logger.warning(f"Session for unknown user {claims['sub']}")
        raise UnauthenticatedError("Invalid session token")
    return CallerIdentity(
        user_id=user["id"],
        email=user["email"],
        player_id=claims.get("player_id"),
        role=user.get("role") or "player",
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store: DataStore = Depends(get_datastore),
) -> CallerIdentity:
    """
    Resolve the caller from the bearer token.

    Raises UnauthenticatedError (401) if the token is missing or invalid.
    """
    if not credentials:
        raise UnauthenticatedError("Authentication required")
    return await _resolve_identity(credentials.credentials, store)


def require_auth(user: CallerIdentity = Depends(get_current_user)) -> CallerIdentity:
    """
    Dependency that requires authentication.

    Use as: user = Depends(require_auth)
    """
    return user


def require_organizer(user: CallerIdentity = Depends(get_current_user)) -> CallerIdentity:
    """
    Dependency that requires an organizer-class role (organizer or admin).

    Raises 401 if not authenticated, 403 otherwise.
    """
    if user.role not in ORGANIZER_ROLES:
        raise ForbiddenError("Organizer role required")
    return user


def require_admin(user: CallerIdentity = Depends(get_current_user)) -> CallerIdentity:
    """
    Dependency that requires admin role.

    Raises 401 if not authenticated, 403 if not admin.
    """
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user
