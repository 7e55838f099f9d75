"""Shared helpers for the API tests."""

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi.testclient import TestClient

from kickabout.auth.session import CallerIdentity
from kickabout.db.services.auth_service import new_player_fields
from kickabout.db.store import DataStore, MemoryDataStore

PASSWORD = "secret123"


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def future_date(days: int = 7) -> str:
    return (datetime.now(UTC) + timedelta(days=days)).isoformat()


class Account:
    """A registered user as seen by the tests."""

    def __init__(self, session: dict[str, Any]):
        self.token: str = session["token"]
        self.user_id: str = session["user"]["id"]
        self.email: str = session["user"]["email"]
        self.player_id: str = session["player"]["id"]
        self.nickname: str = session["player"]["nickname"]

    @property
    def headers(self) -> dict[str, str]:
        return auth_header(self.token)

    def identity(self, role: str = "player") -> CallerIdentity:
        return CallerIdentity(
            user_id=self.user_id, email=self.email, player_id=self.player_id, role=role
        )


def register(client: TestClient, nickname: str, email: str | None = None, **extra: Any) -> Account:
    """Register through the API and return the new account."""
    payload = {
        "email": email or f"{nickname.lower()}@example.com",
        "password": PASSWORD,
        "nickname": nickname,
        **extra,
    }
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return Account(response.json()["data"])


def set_role(store: MemoryDataStore, account: Account, role: str) -> None:
    """Promote or demote an account directly in the store."""
    asyncio.run(store.update("users", {"id": account.user_id}, {"role": role}))


def set_rating(store: MemoryDataStore, account: Account, rating: float) -> None:
    asyncio.run(store.update("players", {"id": account.player_id}, {"overall_rating": rating}))


async def seed_player(store: DataStore, nickname: str, role: str = "player") -> CallerIdentity:
    """Insert a user and player directly, for service-level tests."""
    user = await store.insert(
        "users",
        {"email": f"{nickname.lower()}@example.com", "password_hash": "x", "role": role},
    )
    player = await store.insert("players", new_player_fields(user["id"], nickname, None))
    return CallerIdentity(
        user_id=user["id"], email=user["email"], player_id=player["id"], role=role
    )
