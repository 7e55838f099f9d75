"""Admin endpoints."""

import logging

from fastapi import APIRouter, Request

from kickabout.api.dependencies import Auth
from kickabout.api.envelope import success
from kickabout.api.schemas import ApiResponse, RoleUpdateRequest, UserResponse
from kickabout.auth import ADMIN_RESPONSES, AdminUser
from kickabout.core.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.patch(
    "/users/{user_id}/role",
    response_model=ApiResponse[UserResponse],
    responses=ADMIN_RESPONSES,
    operation_id="setUserRole",
)
@limiter.limit(RATE_LIMITS["admin"])
async def set_user_role(
    request: Request, user_id: str, body: RoleUpdateRequest, admin: AdminUser, auth: Auth
) -> dict:
    """Grant or revoke the organizer or admin role."""
    updated = await auth.set_role(user_id, body.role)
    logger.info(f"Admin {admin.user_id} set role of {user_id} to {body.role}")
    return success(updated, message="Role updated")
