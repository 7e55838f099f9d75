"""Tests for the SQL data store against a throwaway SQLite database."""

import asyncio
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest

from kickabout.core.exceptions import CapacityError, ConflictError, DataStoreError
from kickabout.db.database import get_async_database_url
from kickabout.db.repositories import PlayerRepository
from kickabout.db.services import MatchService
from kickabout.db.store import SqlDataStore
from tests.helpers import seed_player


@pytest.fixture
async def sql_store(tmp_path) -> AsyncGenerator[SqlDataStore, None]:
    store = SqlDataStore.from_url(f"sqlite:///{tmp_path / 'kickabout.db'}")
    await store.create_schema()
    yield store
    await store.close()


class TestDatabaseUrl:
    """Test suite for get_async_database_url."""

    def test_postgres_urls_use_asyncpg(self):
        assert get_async_database_url("postgres://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"
        assert get_async_database_url("postgresql://u:p@h/db") == "postgresql+asyncpg://u:p@h/db"

    def test_sqlite_uses_aiosqlite(self):
        assert get_async_database_url("sqlite:///x.db") == "sqlite+aiosqlite:///x.db"

    def test_async_url_unchanged(self):
        url = "postgresql+asyncpg://u:p@h/db"
        assert get_async_database_url(url) == url


class TestSqlDataStore:
    """Test suite for SqlDataStore."""

    async def test_insert_and_select(self, sql_store: SqlDataStore):
        user = await sql_store.insert("users", {"email": "ann@example.com", "password_hash": "x"})

        assert user["role"] == "player"
        fetched = await sql_store.select_one("users", {"email": "ann@example.com"})
        assert fetched["id"] == user["id"]

    async def test_in_filter_order_and_count(self, sql_store: SqlDataStore):
        for letter in "cab":
            await sql_store.insert(
                "users", {"email": f"{letter}@example.com", "password_hash": "x"}
            )

        rows = await sql_store.select(
            "users", {"email": ["a@example.com", "c@example.com"]}, order_by="email"
        )

        assert [r["email"] for r in rows] == ["a@example.com", "c@example.com"]
        assert await sql_store.count("users") == 3

    async def test_unique_violation_is_conflict(self, sql_store: SqlDataStore):
        await sql_store.insert("users", {"email": "ann@example.com", "password_hash": "x"})

        with pytest.raises(ConflictError):
            await sql_store.insert("users", {"email": "ann@example.com", "password_hash": "y"})

    async def test_partial_unique_index(self, sql_store: SqlDataStore):
        invitation = {"club_id": "c1", "player_id": "p1", "invited_by": "u1"}
        first = await sql_store.insert("club_invitations", invitation)

        with pytest.raises(ConflictError):
            await sql_store.insert("club_invitations", invitation)

        await sql_store.update("club_invitations", {"id": first["id"]}, {"status": "accepted"})
        await sql_store.insert("club_invitations", invitation)
        assert await sql_store.count("club_invitations") == 2

    async def test_update_returns_rows(self, sql_store: SqlDataStore):
        user = await sql_store.insert("users", {"email": "ann@example.com", "password_hash": "x"})

        rows = await sql_store.update("users", {"id": user["id"]}, {"role": "admin"})

        assert [r["role"] for r in rows] == ["admin"]

    async def test_delete_returns_count(self, sql_store: SqlDataStore):
        await sql_store.insert("users", {"email": "ann@example.com", "password_hash": "x"})

        assert await sql_store.delete("users", {"email": "ann@example.com"}) == 1
        assert await sql_store.delete("users", {"email": "ann@example.com"}) == 0

    async def test_insert_bounded(self, sql_store: SqlDataStore):
        scope = {"match_id": "m1"}
        await sql_store.insert_bounded(
            "match_players", {"match_id": "m1", "player_id": "p1"}, scope=scope, limit=1
        )

        with pytest.raises(CapacityError):
            await sql_store.insert_bounded(
                "match_players", {"match_id": "m1", "player_id": "p2"}, scope=scope, limit=1
            )

    async def test_unknown_column_rejected(self, sql_store: SqlDataStore):
        with pytest.raises(DataStoreError):
            await sql_store.select("users", {"nickname": "x"})
        with pytest.raises(DataStoreError):
            await sql_store.insert("users", {"email": "a@example.com", "nickname": "x"})

    async def test_ping(self, sql_store: SqlDataStore):
        assert await sql_store.ping() is True

    async def test_services_run_unchanged(self, sql_store: SqlDataStore):
        """Business logic written against DataStore works on the SQL backend."""
        organizer = await seed_player(sql_store, "OrgOscar", role="organizer")
        ann = await seed_player(sql_store, "AnnA")
        service = MatchService(sql_store)
        match = await service.create_match(
            organizer,
            title="Kickabout",
            location="Park",
            match_date=datetime.now(UTC) + timedelta(days=1),
            max_players=2,
        )

        await service.join_match(match["id"], caller=ann)
        balanced = await service.balance_teams(match["id"], organizer)

        assert [p["player_id"] for p in balanced["team_a"]] == [ann.player_id]
        assert balanced["team_b"] == []


class TestSqlConcurrentJoins:
    """Capacity holds on SQLite when bounded inserts race."""

    async def test_concurrent_bounded_inserts_hold_limit(self, sql_store: SqlDataStore):
        outcomes = await asyncio.gather(
            *(
                sql_store.insert_bounded(
                    "match_players",
                    {"match_id": "m1", "player_id": f"p{i}"},
                    scope={"match_id": "m1"},
                    limit=2,
                )
                for i in range(8)
            ),
            return_exceptions=True,
        )

        assert sum(isinstance(o, dict) for o in outcomes) == 2
        assert all(isinstance(o, CapacityError) for o in outcomes if not isinstance(o, dict))
        assert await sql_store.count("match_players", {"match_id": "m1"}) == 2

    async def test_concurrent_joins_never_exceed_capacity(self, sql_store: SqlDataStore):
        organizer = await seed_player(sql_store, "OrgOscar", role="organizer")
        service = MatchService(sql_store)
        match = await service.create_match(
            organizer,
            title="Rush hour",
            location="Park",
            match_date=datetime.now(UTC) + timedelta(days=1),
            max_players=3,
        )
        callers = [await seed_player(sql_store, f"Racer{i}") for i in range(8)]

        outcomes = await asyncio.gather(
            *(service.join_match(match["id"], caller=c) for c in callers),
            return_exceptions=True,
        )

        assert sum(isinstance(o, dict) for o in outcomes) == 3
        assert sum(isinstance(o, CapacityError) for o in outcomes) == 5
        assert await sql_store.count("match_players", {"match_id": match["id"]}) == 3


class TestSqlIncrement:
    """Counter increments run as a single UPDATE."""

    async def test_increment_adds_to_stored_value(self, sql_store: SqlDataStore):
        ann = await seed_player(sql_store, "AnnA")
        await sql_store.update("players", {"id": ann.player_id}, {"wins": 4})

        rows = await sql_store.increment(
            "players",
            {"id": ann.player_id},
            {"wins": 1, "matches_played": 1},
            values={"position_preference": "defender"},
        )

        assert len(rows) == 1
        assert rows[0]["wins"] == 5
        assert rows[0]["matches_played"] == 1
        assert rows[0]["position_preference"] == "defender"

    async def test_concurrent_match_stats_are_not_lost(self, sql_store: SqlDataStore):
        """Should keep every increment when fan-outs for one player overlap."""
        ann = await seed_player(sql_store, "AnnA")
        players = PlayerRepository(sql_store)

        await asyncio.gather(
            *(players.add_match_stats(ann.player_id, played=1, goals=2) for _ in range(6))
        )

        player = await sql_store.select_one("players", {"id": ann.player_id})
        assert player["matches_played"] == 6
        assert player["goals_scored"] == 12

    async def test_increment_missing_row(self, sql_store: SqlDataStore):
        assert await sql_store.increment("players", {"id": "missing"}, {"wins": 1}) == []
