"""Pytest configuration and fixtures for API integration tests."""

import os
from collections.abc import Generator

# Settings are read once at import time, so the test environment must be in
# place before anything from kickabout is imported.
os.environ["APP_ENV"] = "test"
os.environ["DATASTORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SENTRY_DSN"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from kickabout.api.main import app  # noqa: E402
from kickabout.db.store import MemoryDataStore, get_datastore  # noqa: E402
from tests.helpers import Account, register, set_role  # noqa: E402


@pytest.fixture
def store() -> MemoryDataStore:
    """A fresh, empty in-memory data store."""
    return MemoryDataStore()


@pytest.fixture
def client(store: MemoryDataStore) -> Generator[TestClient, None, None]:
    """Test client whose requests all hit the ``store`` fixture.

    The client is not entered as a context manager, so the application
    lifespan (logging setup, store creation) does not run.
    """
    app.dependency_overrides[get_datastore] = lambda: store

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def register_account(client: TestClient, store: MemoryDataStore):
    """Factory registering accounts through the API, optionally with a role."""

    def _register(nickname: str, role: str | None = None, **extra) -> Account:
        account = register(client, nickname, **extra)
        if role:
            set_role(store, account, role)
        return account

    return _register


@pytest.fixture
def admin(register_account) -> Account:
    return register_account("AdminAnna", role="admin")


@pytest.fixture
def organizer(register_account) -> Account:
    return register_account("OrgOscar", role="organizer")
