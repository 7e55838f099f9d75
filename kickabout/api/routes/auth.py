"""Registration, login and session endpoints."""

import logging

from fastapi import APIRouter, Request, status

from kickabout.api.dependencies import Auth
from kickabout.api.envelope import success
from kickabout.api.schemas import (
    ApiResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    SessionResponse,
)
from kickabout.auth import AUTH_RESPONSES, AuthenticatedUser, ErrorEnvelope
from kickabout.core.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[SessionResponse],
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorEnvelope, "description": "Email or nickname already taken"},
        422: {"model": ErrorEnvelope, "description": "Invalid registration data"},
    },
    operation_id="register",
)
@limiter.limit(RATE_LIMITS["auth"])
async def register(request: Request, body: RegisterRequest, auth: Auth) -> dict:
    """
    Create an account and its player profile.

    Returns a session token valid for seven days.
    """
    session = await auth.register(body.email, body.password, body.nickname, body.position)
    return success(session, message="Registration successful")


@router.post(
    "/login",
    response_model=ApiResponse[SessionResponse],
    responses={401: {"model": ErrorEnvelope, "description": "Invalid email or password"}},
    operation_id="login",
)
@limiter.limit(RATE_LIMITS["auth"])
async def login(request: Request, body: LoginRequest, auth: Auth) -> dict:
    """Exchange credentials for a fresh session token."""
    return success(await auth.login(body.email, body.password), message="Login successful")


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    responses=AUTH_RESPONSES,
    operation_id="logout",
)
async def logout(user: AuthenticatedUser) -> dict:
    """
    End the session.

    Tokens are not stored server-side; the client discards its token.
    """
    logger.info(f"User {user.user_id} logged out")
    return success(message="Logged out")


@router.get(
    "/me",
    response_model=ApiResponse[MeResponse],
    responses=AUTH_RESPONSES,
    operation_id="getMe",
)
async def me(user: AuthenticatedUser, auth: Auth) -> dict:
    """Current user and player profile."""
    return success(await auth.me(user))
