"""FastAPI dependencies for authentication.

Provides typed dependencies for route protection:
- AuthenticatedUser: Any logged-in user
- OrganizerUser: Organizer or admin users (may create matches)
- AdminUser: Admin users only
"""

from typing import Annotated

from fastapi import Depends

from kickabout.auth.jwt_auth import (
    require_admin,
    require_auth,
    require_organizer,
)
from kickabout.auth.session import CallerIdentity

# Type aliases for cleaner route signatures
AuthenticatedUser = Annotated[CallerIdentity, Depends(require_auth)]
OrganizerUser = Annotated[CallerIdentity, Depends(require_organizer)]
AdminUser = Annotated[CallerIdentity, Depends(require_admin)]
