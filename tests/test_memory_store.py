"""Tests for the in-memory data store."""

import asyncio

import pytest

from kickabout.core.exceptions import (
    CapacityError,
    ConflictError,
    DataStoreError,
    DataStoreTimeoutError,
)
from kickabout.db.repositories import PlayerRepository
from kickabout.db.store import MemoryDataStore
from tests.helpers import seed_player


async def _user(store: MemoryDataStore, email: str = "ann@example.com") -> dict:
    return await store.insert("users", {"email": email, "password_hash": "x"})


class TestMemoryDataStore:
    """Test suite for MemoryDataStore."""

    async def test_insert_fills_defaults(self):
        store = MemoryDataStore()

        user = await _user(store)

        assert len(user["id"]) == 36
        assert user["role"] == "player"
        assert user["created_at"] is not None

    async def test_created_at_strictly_increasing(self):
        store = MemoryDataStore()

        first = await _user(store, "a@example.com")
        second = await _user(store, "b@example.com")

        assert second["created_at"] > first["created_at"]

    async def test_filters_with_in_and_equality(self):
        store = MemoryDataStore()
        a = await _user(store, "a@example.com")
        b = await _user(store, "b@example.com")
        await _user(store, "c@example.com")

        rows = await store.select("users", {"id": [a["id"], b["id"]]}, order_by="email")

        assert [r["email"] for r in rows] == ["a@example.com", "b@example.com"]
        assert await store.count("users", {"email": "c@example.com"}) == 1
        assert await store.select("users", {"id": []}) == []

    async def test_order_limit_offset(self):
        store = MemoryDataStore()
        for letter in "abcd":
            await _user(store, f"{letter}@example.com")

        rows = await store.select("users", order_by="email", descending=True, limit=2, offset=1)

        assert [r["email"][0] for r in rows] == ["c", "b"]

    async def test_returned_rows_are_copies(self):
        store = MemoryDataStore()
        user = await _user(store)

        user["email"] = "mutated@example.com"

        assert store.rows("users")[0]["email"] == "ann@example.com"

    async def test_unique_violation_is_conflict(self):
        store = MemoryDataStore()
        await _user(store)

        with pytest.raises(ConflictError):
            await _user(store)

    async def test_insert_many_is_all_or_nothing(self):
        store = MemoryDataStore()

        with pytest.raises(ConflictError):
            await store.insert_many(
                "users",
                [
                    {"email": "same@example.com", "password_hash": "x"},
                    {"email": "same@example.com", "password_hash": "y"},
                ],
            )

        assert store.rows("users") == []

    async def test_update_respects_uniqueness(self):
        store = MemoryDataStore()
        await _user(store, "a@example.com")
        b = await _user(store, "b@example.com")

        with pytest.raises(ConflictError):
            await store.update("users", {"id": b["id"]}, {"email": "a@example.com"})

        assert (await store.select_one("users", {"id": b["id"]}))["email"] == "b@example.com"

    async def test_partial_unique_index_only_covers_pending(self):
        store = MemoryDataStore()
        invitation = {"club_id": "c1", "player_id": "p1", "invited_by": "u1"}
        first = await store.insert("club_invitations", invitation)

        with pytest.raises(ConflictError):
            await store.insert("club_invitations", invitation)

        await store.update("club_invitations", {"id": first["id"]}, {"status": "rejected"})
        second = await store.insert("club_invitations", invitation)
        assert second["status"] == "pending"

    async def test_not_null_enforced(self):
        store = MemoryDataStore()

        with pytest.raises(DataStoreError):
            await store.insert("users", {"email": "a@example.com"})

    async def test_unknown_table_and_column_rejected(self):
        store = MemoryDataStore()

        with pytest.raises(DataStoreError):
            await store.select("teams")
        with pytest.raises(DataStoreError):
            await store.select("users", {"nickname": "x"})

    async def test_unfiltered_writes_refused(self):
        store = MemoryDataStore()

        with pytest.raises(DataStoreError):
            await store.update("users", {}, {"role": "admin"})
        with pytest.raises(DataStoreError):
            await store.delete("users", {})

    async def test_delete_returns_count(self):
        store = MemoryDataStore()
        await _user(store, "a@example.com")
        await _user(store, "b@example.com")

        assert await store.delete("users", {"email": ["a@example.com", "b@example.com"]}) == 2
        assert store.rows("users") == []

    async def test_insert_bounded_refuses_when_full(self):
        store = MemoryDataStore()
        row = {"match_id": "m1", "player_id": "p1"}
        await store.insert_bounded("match_players", row, scope={"match_id": "m1"}, limit=1)

        with pytest.raises(CapacityError):
            await store.insert_bounded(
                "match_players",
                {"match_id": "m1", "player_id": "p2"},
                scope={"match_id": "m1"},
                limit=1,
            )

    async def test_concurrent_bounded_inserts_hold_limit(self):
        store = MemoryDataStore(latency=0.005)

        outcomes = await asyncio.gather(
            *(
                store.insert_bounded(
                    "match_players",
                    {"match_id": "m1", "player_id": f"p{i}"},
                    scope={"match_id": "m1"},
                    limit=4,
                )
                for i in range(10)
            ),
            return_exceptions=True,
        )

        assert sum(isinstance(o, dict) for o in outcomes) == 4
        assert await store.count("match_players", {"match_id": "m1"}) == 4

    async def test_timeout_raises_timeout_error(self):
        store = MemoryDataStore(timeout=0.01, latency=0.5)

        with pytest.raises(DataStoreTimeoutError):
            await store.count("users")

    async def test_ping(self):
        assert await MemoryDataStore().ping() is True

    async def test_reset_empties_tables(self):
        store = MemoryDataStore()
        await _user(store)

        store.reset()

        assert store.rows("users") == []


class TestMemoryIncrement:
    """Tests for atomic counter increments."""

    async def test_increment_adds_and_sets(self):
        store = MemoryDataStore()
        ann = await seed_player(store, "AnnA")
        await store.update("players", {"id": ann.player_id}, {"matches_played": 2})

        rows = await store.increment(
            "players",
            {"id": ann.player_id},
            {"matches_played": 3, "goals_scored": 1},
            values={"position_preference": "defender"},
        )

        assert rows[0]["matches_played"] == 5
        assert rows[0]["goals_scored"] == 1
        assert rows[0]["position_preference"] == "defender"

    async def test_unfiltered_increment_rejected(self):
        store = MemoryDataStore()

        with pytest.raises(DataStoreError, match="unfiltered"):
            await store.increment("players", {}, {"wins": 1})

    async def test_concurrent_match_stats_are_not_lost(self):
        """Should keep every increment when fan-outs for one player overlap."""
        store = MemoryDataStore(latency=0.005)
        ann = await seed_player(store, "AnnA")
        players = PlayerRepository(store)

        await asyncio.gather(
            *(players.add_match_stats(ann.player_id, played=1, goals=2) for _ in range(5))
        )

        player = await store.select_one("players", {"id": ann.player_id})
        assert player["matches_played"] == 5
        assert player["goals_scored"] == 10

    async def test_match_stats_for_missing_player(self):
        store = MemoryDataStore()

        assert await PlayerRepository(store).add_match_stats("missing", played=1) is None
