"""Repository layer for data store operations.

This module implements the Repository Pattern with a compensating Unit of
Work, separating data access from business rules.

Usage:
    from kickabout.db.repositories import UnitOfWork

    async with UnitOfWork(store) as uow:
        match = await uow.matches.get_by_id(match_id)
        roster = await uow.match_players.get_roster(match_id)
        await uow.commit()
"""

from kickabout.db.repositories.base import BaseRepository
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
from kickabout.db.repositories.unit_of_work import UnitOfWork
from kickabout.db.repositories.user_repository import PlayerRepository, UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PlayerRepository",
    "ClubRepository",
    "ClubPlayerRepository",
    "ClubInvitationRepository",
    "MatchRepository",
    "MatchPlayerRepository",
    "MatchResultRepository",
    "PlayerRatingRepository",
    "UnitOfWork",
]
