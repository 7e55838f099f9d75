"""Integration tests for the player directory and leaderboards."""

import asyncio

from fastapi.testclient import TestClient

from kickabout.auth.session import create_session_token
from tests.helpers import auth_header, register, set_rating


class TestPlayerDirectory:
    """Test suite for /api/players."""

    def test_list_players_requires_auth(self, client: TestClient):
        assert client.get("/api/players").status_code == 401

    def test_list_players_ranked_and_paginated(self, client: TestClient, store):
        accounts = [register(client, name) for name in ("Ann", "Bob", "Cid")]
        for account, rating in zip(accounts, (6.0, 9.0, 7.5)):
            set_rating(store, account, rating)

        response = client.get("/api/players?page=1&limit=2", headers=accounts[0].headers)

        assert response.status_code == 200
        body = response.json()
        assert [p["nickname"] for p in body["data"]] == ["Bob", "Cid"]
        pagination = body["metadata"]["pagination"]
        assert pagination == {
            "page": 1,
            "limit": 2,
            "total": 3,
            "totalPages": 2,
            "hasNext": True,
            "hasPrev": False,
        }

        second = client.get("/api/players?page=2&limit=2", headers=accounts[0].headers).json()
        assert [p["nickname"] for p in second["data"]] == ["Ann"]
        assert second["metadata"]["pagination"]["hasPrev"] is True

    def test_limit_above_maximum_rejected(self, client: TestClient):
        account = register(client, "Ann")

        response = client.get("/api/players?limit=500", headers=account.headers)

        assert response.status_code == 422

    def test_get_player_by_id_and_email(self, client: TestClient):
        account = register(client, "Ann")

        by_id = client.get(f"/api/players/{account.player_id}", headers=account.headers)
        by_email = client.get(f"/api/players/email/{account.email}", headers=account.headers)

        assert by_id.json()["data"]["nickname"] == "Ann"
        assert by_email.json()["data"]["id"] == account.player_id

    def test_unknown_player_is_404(self, client: TestClient):
        account = register(client, "Ann")

        assert client.get("/api/players/nope", headers=account.headers).status_code == 404
        missing = client.get("/api/players/email/nobody@example.com", headers=account.headers)
        assert missing.status_code == 404


class TestPlayerProfile:
    """Test suite for profile creation and edits."""

    def test_update_own_profile(self, client: TestClient):
        account = register(client, "Ann")

        response = client.put(
            f"/api/players/{account.player_id}",
            json={"nickname": "Annie", "position_preference": "defender"},
            headers=account.headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["nickname"] == "Annie"
        assert data["position_preference"] == "defender"

    def test_cannot_edit_someone_else(self, client: TestClient):
        ann = register(client, "Ann")
        bob = register(client, "Bob")

        response = client.put(
            f"/api/players/{bob.player_id}", json={"nickname": "Hacked"}, headers=ann.headers
        )

        assert response.status_code == 403

    def test_nickname_stays_unique(self, client: TestClient):
        ann = register(client, "Ann")
        register(client, "Bob")

        response = client.put(
            f"/api/players/{ann.player_id}", json={"nickname": "Bob"}, headers=ann.headers
        )

        assert response.status_code == 409

    def test_invalid_position_rejected(self, client: TestClient):
        ann = register(client, "Ann")

        response = client.put(
            f"/api/players/{ann.player_id}",
            json={"position_preference": "winger"},
            headers=ann.headers,
        )

        assert response.status_code == 422

    def test_create_profile_for_user_without_one(self, client: TestClient, store):
        user = asyncio.run(
            store.insert("users", {"email": "solo@example.com", "password_hash": "x"})
        )
        token = create_session_token(user["id"], user["email"], None)

        response = client.post(
            "/api/players",
            json={"nickname": "Solo", "position_preference": "midfielder"},
            headers=auth_header(token),
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["user_id"] == user["id"]
        assert data["overall_rating"] == 5.0

    def test_second_profile_conflicts(self, client: TestClient):
        ann = register(client, "Ann")

        response = client.post("/api/players", json={"nickname": "Ann2"}, headers=ann.headers)

        assert response.status_code == 409


class TestLeaderboards:
    """Test suite for /api/statistics."""

    def test_leaderboard_ranks_by_rating(self, client: TestClient, store):
        accounts = [register(client, name) for name in ("Ann", "Bob", "Cid")]
        for account, rating in zip(accounts, (6.0, 9.0, 7.5)):
            set_rating(store, account, rating)

        response = client.get("/api/statistics/leaderboard?limit=2", headers=accounts[0].headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [(p["rank"], p["nickname"]) for p in data] == [(1, "Bob"), (2, "Cid")]

    def test_top_scorers_ranks_by_goals(self, client: TestClient, store):
        accounts = [register(client, name) for name in ("Ann", "Bob")]
        asyncio.run(store.update("players", {"id": accounts[0].player_id}, {"goals_scored": 4}))
        asyncio.run(store.update("players", {"id": accounts[1].player_id}, {"goals_scored": 11}))

        response = client.get("/api/statistics/top-scorers", headers=accounts[0].headers)

        data = response.json()["data"]
        assert [p["nickname"] for p in data] == ["Bob", "Ann"]
        assert data[0]["goals_scored"] == 11
