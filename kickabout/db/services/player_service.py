"""Player directory service."""

import logging
from typing import Any

from kickabout.auth.session import CallerIdentity
from kickabout.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from kickabout.core.validation import ensure_valid, nickname_violations, position_violations
from kickabout.db.repositories import UnitOfWork
from kickabout.db.services.auth_service import new_player_fields
from kickabout.db.services.common import Page, page_window
from kickabout.db.store import DataStore, Row

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("nickname", "photo_url", "position_preference")


class PlayerService:
    """Service for player profile operations."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def list_players(self, page: int = 1, limit: int = 20) -> Page:
        """Players by overall rating, best first."""
        page, limit = page_window(page, limit)
        async with UnitOfWork(self.store) as uow:
            total = await uow.players.count()
            items = await uow.players.list_ranked(limit=limit, offset=(page - 1) * limit)
        return Page(items=items, page=page, limit=limit, total=total)

    async def get_player(self, player_id: str) -> Row:
        async with UnitOfWork(self.store) as uow:
            player = await uow.players.get_by_id(player_id)
        if player is None:
            raise NotFoundError("Player not found")
        return player

    async def get_by_email(self, email: str) -> Row:
        """Player profile of the user registered with ``email``."""
        async with UnitOfWork(self.store) as uow:
            user = await uow.users.get_by_email(email.strip().lower())
            player = await uow.players.get_by_user_id(user["id"]) if user else None
        if player is None:
            raise NotFoundError("Player not found")
        return player

    async def create_profile(
        self,
        caller: CallerIdentity,
        nickname: str,
        position_preference: str | None = None,
        photo_url: str | None = None,
    ) -> Row:
        """Create the caller's profile when registration left the user without one."""
        nickname = (nickname or "").strip()
        ensure_valid(nickname_violations(nickname) + position_violations(position_preference))

        async with UnitOfWork(self.store) as uow:
            if await uow.players.get_by_user_id(caller.user_id):
                raise ConflictError("Player profile already exists")
            if await uow.players.get_by_nickname(nickname):
                raise ConflictError("Nickname already taken")

            fields = new_player_fields(caller.user_id, nickname, position_preference)
            if photo_url:
                fields["photo_url"] = photo_url
            try:
                player = await uow.players.create(**fields)
            except ConflictError as e:
                raise ConflictError("Player profile or nickname already exists") from e

        logger.info(f"Created player profile {player['id']} for user {caller.user_id}")
        return player

    async def update_player(
        self, caller: CallerIdentity, player_id: str, changes: dict[str, Any]
    ) -> Row:
        """Edit the caller's own profile."""
        changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if "nickname" in changes:
            changes["nickname"] = changes["nickname"].strip()
        ensure_valid(
            (nickname_violations(changes["nickname"]) if "nickname" in changes else [])
            + position_violations(changes.get("position_preference"))
        )

        async with UnitOfWork(self.store) as uow:
            player = await uow.players.get_by_id(player_id)
            if player is None:
                raise NotFoundError("Player not found")
            if player["user_id"] != caller.user_id:
                raise ForbiddenError("You can only edit your own profile")
            if not changes:
                return player

            nickname = changes.get("nickname")
            if nickname and nickname != player["nickname"]:
                if await uow.players.get_by_nickname(nickname):
                    raise ConflictError("Nickname already taken")
            try:
                updated = await uow.players.update(player_id, **changes)
            except ConflictError as e:
                raise ConflictError("Nickname already taken") from e

        if updated is None:
            raise NotFoundError("Player not found")
        return updated
