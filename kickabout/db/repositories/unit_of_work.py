"""Unit of Work with compensating actions.

The data store has no cross-call transactions, so multi-step writes are
modelled as a saga: every step that must be undone if a later step fails
registers a compensation. Leaving the context with an exception runs the
compensations in reverse order; ``commit()`` discards them.

The partial-failure window is the time between a failed step and the end
of the compensations. A compensation that itself fails is logged with
enough context to repair the data by hand, and the original error is
still raised.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Self

from kickabout.db.repositories.club_repository import (
    ClubInvitationRepository,
    ClubPlayerRepository,
    ClubRepository,
)
from kickabout.db.repositories.match_repository import (
    MatchPlayerRepository,
    MatchRepository,
    MatchResultRepository,
)
from kickabout.db.repositories.rating_repository import PlayerRatingRepository
from kickabout.db.repositories.user_repository import PlayerRepository, UserRepository
from kickabout.db.store import DataStore

logger = logging.getLogger(__name__)

Compensation = Callable[[], Awaitable[Any]]


class UnitOfWork:
    """Single entry point for all repositories of one logical operation.

    Usage:
        async with UnitOfWork(store) as uow:
            user = await uow.users.create(email=email, password_hash=hashed)
            uow.add_compensation("delete user", lambda: uow.users.delete(user["id"]))
            player = await uow.players.create(user_id=user["id"], nickname=nickname)
            await uow.commit()
    """

    def __init__(self, store: DataStore) -> None:
        self._store = store
        self._compensations: list[tuple[str, Compensation]] = []
        self._users: UserRepository | None = None
        self._players: PlayerRepository | None = None
        self._clubs: ClubRepository | None = None
        self._club_players: ClubPlayerRepository | None = None
        self._club_invitations: ClubInvitationRepository | None = None
        self._matches: MatchRepository | None = None
        self._match_players: MatchPlayerRepository | None = None
        self._match_results: MatchResultRepository | None = None
        self._player_ratings: PlayerRatingRepository | None = None

    @property
    def store(self) -> DataStore:
        """Direct access to the data store for custom queries."""
        return self._store

    @property
    def users(self) -> UserRepository:
        if self._users is None:
            self._users = UserRepository(self._store)
        return self._users

    @property
    def players(self) -> PlayerRepository:
        if self._players is None:
            self._players = PlayerRepository(self._store)
        return self._players

    @property
    def clubs(self) -> ClubRepository:
        if self._clubs is None:
            self._clubs = ClubRepository(self._store)
        return self._clubs

    @property
    def club_players(self) -> ClubPlayerRepository:
        if self._club_players is None:
            self._club_players = ClubPlayerRepository(self._store)
        return self._club_players

    @property
    def club_invitations(self) -> ClubInvitationRepository:
        if self._club_invitations is None:
            self._club_invitations = ClubInvitationRepository(self._store)
        return self._club_invitations

    @property
    def matches(self) -> MatchRepository:
        if self._matches is None:
            self._matches = MatchRepository(self._store)
        return self._matches

    @property
    def match_players(self) -> MatchPlayerRepository:
        if self._match_players is None:
            self._match_players = MatchPlayerRepository(self._store)
        return self._match_players

    @property
    def match_results(self) -> MatchResultRepository:
        if self._match_results is None:
            self._match_results = MatchResultRepository(self._store)
        return self._match_results

    @property
    def player_ratings(self) -> PlayerRatingRepository:
        if self._player_ratings is None:
            self._player_ratings = PlayerRatingRepository(self._store)
        return self._player_ratings

    def add_compensation(self, description: str, action: Compensation) -> None:
        """Register an undo step for the write that just succeeded."""
        self._compensations.append((description, action))

    async def commit(self) -> None:
        """Keep every write made so far."""
        self._compensations.clear()

    async def rollback(self) -> None:
        """Undo registered writes, newest first."""
        while self._compensations:
            description, action = self._compensations.pop()
            try:
                await action()
                logger.info(f"[UnitOfWork] Compensated: {description}")
            except Exception as e:
                logger.error(f"[UnitOfWork] Compensation failed ({description}): {e}")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the context manager, rolling back on exception."""
        if exc_type is not None:
            await self.rollback()
