"""Authentication module: password hashing, session tokens and route guards."""

from kickabout.auth.dependencies import (
    AdminUser,
    AuthenticatedUser,
    OrganizerUser,
)
from kickabout.auth.jwt_auth import (
    get_current_user,
    require_admin,
    require_auth,
    require_organizer,
)
from kickabout.auth.passwords import hash_password, verify_password
from kickabout.auth.responses import (
    ADMIN_RESPONSES,
    AUTH_RESPONSES,
    ORGANIZER_RESPONSES,
    ErrorEnvelope,
)
from kickabout.auth.session import CallerIdentity, create_session_token, decode_session_token

__all__ = [
    "get_current_user",
    "require_auth",
    "require_organizer",
    "require_admin",
    "AuthenticatedUser",
    "OrganizerUser",
    "AdminUser",
    "CallerIdentity",
    "create_session_token",
    "decode_session_token",
    "hash_password",
    "verify_password",
    "ErrorEnvelope",
    "AUTH_RESPONSES",
    "ORGANIZER_RESPONSES",
    "ADMIN_RESPONSES",
]
