"""Data store gateway.

Usage:
    from kickabout.db.store import create_datastore

    store = create_datastore(settings)
    player = await store.select_one("players", {"nickname": "AliceP"})
"""

import logging

from starlette.requests import Request

from kickabout.core.config import Settings
from kickabout.db.store.base import DataStore, Filters, Row
from kickabout.db.store.memory import MemoryDataStore
from kickabout.db.store.sql import SqlDataStore
from kickabout.db.store.supabase import SupabaseDataStore

logger = logging.getLogger(__name__)


def create_datastore(config: Settings) -> DataStore:
    """Build the data store selected by configuration."""
    backend = config.resolved_datastore_backend
    if backend == "supabase":
        logger.info("[DataStore] Using Supabase REST backend")
        return SupabaseDataStore(
            config.supabase_url,
            config.supabase_service_role_key,
            timeout=config.datastore_timeout,
        )
    if backend == "sql":
        logger.info("[DataStore] Using SQL backend")
        return SqlDataStore.from_url(
            config.database_url, timeout=config.datastore_timeout, echo=config.debug
        )
    logger.warning("[DataStore] Using in-memory backend - data is lost on restart")
    return MemoryDataStore(timeout=config.datastore_timeout)


def get_datastore(request: Request) -> DataStore:
    """FastAPI dependency returning the store built by the application lifespan.

    Tests override it through ``app.dependency_overrides`` to inject a fresh
    ``MemoryDataStore``.
    """
    return request.app.state.datastore  # type: ignore[no-any-return]


__all__ = [
    "DataStore",
    "Filters",
    "Row",
    "MemoryDataStore",
    "SqlDataStore",
    "SupabaseDataStore",
    "create_datastore",
    "get_datastore",
]
