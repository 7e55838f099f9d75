"""Database engine construction for the SQL data store.

Uses SQLAlchemy 2.0 async engines. Engines are built on demand by the
data store factory (never at import time) so tests can point a fresh
store at a throwaway SQLite file.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from kickabout.db.models import Base


def get_async_database_url(url: str) -> str:
    """Convert sync database URL to async format.

    - postgres:// and postgresql:// -> postgresql+asyncpg://
    - sqlite:// -> sqlite+aiosqlite://
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def create_engine_from_url(url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the dialect."""
    database_url = get_async_database_url(url)
    is_sqlite = database_url.startswith("sqlite")

    engine_kwargs: dict[str, Any] = {"echo": echo}
    if is_sqlite:
        # SQLite doesn't support pool_size/max_overflow
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs.update(
            {
                "pool_pre_ping": True,  # Verify connections before use
                "pool_size": 5,
                "max_overflow": 10,
                "pool_recycle": 3600,  # Recycle connections after 1 hour
            }
        )

    return create_async_engine(database_url, **engine_kwargs)


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables that don't exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    """Close database connections."""
    await engine.dispose()
