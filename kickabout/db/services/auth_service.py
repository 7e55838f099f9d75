"""Identity and session service: registration, login and roles."""

import asyncio
import logging
from typing import Any
from urllib.parse import quote

from kickabout.auth.passwords import hash_password, verify_password
from kickabout.auth.session import CallerIdentity, create_session_token
from kickabout.core.constants import (
    AVATAR_URL_TEMPLATE,
    DEFAULT_OVERALL_RATING,
    DEFAULT_POSITION,
    USER_ROLES,
)
from kickabout.core.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from kickabout.core.validation import ensure_valid, registration_violations
from kickabout.db.repositories import UnitOfWork
from kickabout.db.services.common import public_user
from kickabout.db.store import DataStore, Row

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


def default_photo_url(nickname: str) -> str:
    return AVATAR_URL_TEMPLATE.format(nickname=quote(nickname))


def new_player_fields(user_id: str, nickname: str, position: str | None) -> dict[str, Any]:
    """Columns of a freshly created player profile."""
    return {
        "user_id": user_id,
        "nickname": nickname,
        "photo_url": default_photo_url(nickname),
        "overall_rating": DEFAULT_OVERALL_RATING,
        "matches_played": 0,
        "wins": 0,
        "goals_scored": 0,
        "position_preference": position or DEFAULT_POSITION,
    }


class AuthService:
    """Service for identity and session operations."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def register(
        self,
        email: str,
        password: str,
        nickname: str,
        position: str | None = None,
    ) -> dict[str, Any]:
        """Create a user and its player profile, then open a session.

        The user row is deleted again if the player profile cannot be created.
        """
        email = (email or "").strip().lower()
        nickname = (nickname or "").strip()
        ensure_valid(registration_violations(email, password, nickname, position))

        async with UnitOfWork(self.store) as uow:
            if await uow.users.get_by_email(email):
                raise ConflictError("Email already registered")
            if await uow.players.get_by_nickname(nickname):
                raise ConflictError("Nickname already taken")

            # bcrypt is deliberately slow; keep it off the event loop
            password_hash = await asyncio.to_thread(hash_password, password)

            try:
                user = await uow.users.create(email=email, password_hash=password_hash)
            except ConflictError as e:
                raise ConflictError("Email already registered") from e
            uow.add_compensation(
                f"delete user {user['id']}", lambda: uow.users.delete(user["id"])
            )

            try:
                player = await uow.players.create(
                    **new_player_fields(user["id"], nickname, position)
                )
            except ConflictError as e:
                raise ConflictError("Nickname already taken") from e
            await uow.commit()

        logger.info(f"Registered user {user['id']} with player {player['id']}")
        return self._session(user, player)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Verify credentials and open a fresh session.

        Unknown email and wrong password fail identically.
        """
        email = (email or "").strip().lower()
        async with UnitOfWork(self.store) as uow:
            user = await uow.users.get_by_email(email)
            if user is None:
                raise UnauthenticatedError(INVALID_CREDENTIALS)
            valid = await asyncio.to_thread(verify_password, password or "", user["password_hash"])
            if not valid:
                logger.info(f"Failed login for user {user['id']}")
                raise UnauthenticatedError(INVALID_CREDENTIALS)
            player = await uow.players.get_by_user_id(user["id"])

        return self._session(user, player)

    async def me(self, caller: CallerIdentity) -> dict[str, Any]:
        """The caller's user and player rows."""
        async with UnitOfWork(self.store) as uow:
            user = await uow.users.get_by_id(caller.user_id)
            if user is None:
                raise UnauthenticatedError("Invalid session token")
            player = await uow.players.get_by_user_id(caller.user_id)
        return {"user": public_user(user), "player": player}

    async def set_role(self, user_id: str, role: str) -> dict[str, Any]:
        """Change a user's role (admin operation)."""
        if role not in USER_ROLES:
            raise ValidationError.from_violations([f"role must be one of: {', '.join(USER_ROLES)}"])
        async with UnitOfWork(self.store) as uow:
            user = await uow.users.update(user_id, role=role)
        if user is None:
            raise NotFoundError("User not found")
        logger.info(f"Role of user {user_id} set to {role}")
        return public_user(user)

    @staticmethod
    def _session(user: Row, player: Row | None) -> dict[str, Any]:
        token = create_session_token(user["id"], user["email"], player["id"] if player else None)
        return {"token": token, "user": public_user(user), "player": player}
