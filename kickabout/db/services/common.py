"""Helpers shared by the service classes."""

from dataclasses import dataclass
from typing import Any

from kickabout.auth.session import CallerIdentity
from kickabout.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from kickabout.core.exceptions import ForbiddenError
from kickabout.db.repositories import UnitOfWork
from kickabout.db.store import Row


@dataclass(frozen=True)
class Page:
    """One page of a listing plus the total it was cut from."""

    items: list[dict[str, Any]]
    page: int
    limit: int
    total: int


def page_window(page: int, limit: int) -> tuple[int, int]:
    """Clamp pagination input and return (page, limit)."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE) if limit else DEFAULT_PAGE_SIZE
    return page, limit


def public_user(user: Row) -> dict[str, Any]:
    """User row without the password hash."""
    return {key: value for key, value in user.items() if key != "password_hash"}


def player_summary(player: Row | None) -> dict[str, Any] | None:
    if player is None:
        return None
    return {
        "id": player["id"],
        "nickname": player["nickname"],
        "photo_url": player.get("photo_url"),
        "overall_rating": player.get("overall_rating"),
        "position_preference": player.get("position_preference"),
    }


def is_organizer_or_admin(match: Row, caller: CallerIdentity) -> bool:
    return caller.is_admin or match.get("organizer_id") == caller.user_id


async def caller_player_id(uow: UnitOfWork, caller: CallerIdentity) -> str:
    """The caller's player profile id.

    Falls back to a lookup for sessions issued before the profile existed.
    """
    if caller.player_id:
        return caller.player_id
    player = await uow.players.get_by_user_id(caller.user_id)
    if player is None:
        raise ForbiddenError("A player profile is required for this action")
    return str(player["id"])
