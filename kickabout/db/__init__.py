"""Persistence layer.

This module provides:
- Models: SQLAlchemy table metadata shared by every backend
- Store: the DataStore gateway with memory, SQL and Supabase implementations
- Repositories: typed table access and the compensating Unit of Work

Usage:
    from kickabout.db import UnitOfWork, create_datastore

    store = create_datastore(settings)
    async with UnitOfWork(store) as uow:
        players = await uow.players.list_ranked(limit=10)
"""

from kickabout.db.models import (
    Base,
    Club,
    ClubInvitation,
    ClubPlayer,
    Match,
    MatchPlayer,
    MatchResult,
    Player,
    PlayerRating,
    User,
)
from kickabout.db.repositories import UnitOfWork
from kickabout.db.store import (
    DataStore,
    MemoryDataStore,
    SqlDataStore,
    SupabaseDataStore,
    create_datastore,
    get_datastore,
)

__all__ = [
    # Models
    "Base",
    "User",
    "Player",
    "Club",
    "ClubPlayer",
    "ClubInvitation",
    "Match",
    "MatchPlayer",
    "MatchResult",
    "PlayerRating",
    # Store
    "DataStore",
    "MemoryDataStore",
    "SqlDataStore",
    "SupabaseDataStore",
    "create_datastore",
    "get_datastore",
    # Repositories
    "UnitOfWork",
]
