"""SQL data store over SQLAlchemy Core (asyncpg in production, aiosqlite in tests)."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from kickabout.core.exceptions import (
    CapacityError,
    ConflictError,
    DataStoreError,
    DataStoreUnavailableError,
)
from kickabout.db.database import close_db, create_engine_from_url, init_db
from kickabout.db.models import Base
from kickabout.db.store.base import DEFAULT_TIMEOUT, DataStore, Row, is_multi_value

logger = logging.getLogger(__name__)

# SQLSTATE codes (Postgres) and extended result codes (SQLite)
_UNIQUE_SQLSTATES = frozenset({"23505"})
_UNIQUE_SQLITE_ERRORS = frozenset({"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"})
_CAPACITY_MARKER = "roster capacity"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) in _UNIQUE_SQLSTATES:
        return True
    if getattr(orig, "sqlite_errorname", None) in _UNIQUE_SQLITE_ERRORS:
        return True
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


@contextmanager
def _translate_errors(table: str) -> Iterator[None]:
    """Map driver failures onto the application's error kinds."""
    try:
        yield
    except IntegrityError as e:
        if _is_unique_violation(e):
            raise ConflictError(
                f"Duplicate value violates a unique constraint on {table}", {"table": table}
            ) from e
        if _CAPACITY_MARKER in str(e.orig).lower():
            raise CapacityError(f"{table} is full", {"table": table}) from e
        logger.warning(f"[SqlDataStore] Integrity error on {table}: {e.orig}")
        raise DataStoreError(f"Constraint violated on {table}", {"table": table}) from e
    except DBAPIError as e:
        if e.connection_invalidated or isinstance(e.orig, OSError):
            raise DataStoreUnavailableError("Database connection lost", {"table": table}) from e
        if _CAPACITY_MARKER in str(e.orig).lower():
            raise CapacityError(f"{table} is full", {"table": table}) from e
        logger.error(f"[SqlDataStore] Database error on {table}: {e}")
        raise DataStoreError(f"Database error on {table}", {"table": table}) from e
    except (OSError, ConnectionError) as e:
        raise DataStoreUnavailableError("Database unreachable", {"table": table}) from e
    except SQLAlchemyError as e:
        logger.error(f"[SqlDataStore] Error on {table}: {e}")
        raise DataStoreError(f"Database error on {table}", {"table": table}) from e


class SqlDataStore(DataStore):
    """Data store over a relational database reached through SQLAlchemy."""

    backend = "sql"

    def __init__(self, engine: AsyncEngine, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__(timeout)
        self.engine = engine
        self._is_postgres = engine.dialect.name == "postgresql"
        self._is_sqlite = engine.dialect.name == "sqlite"

    @classmethod
    def from_url(
        cls, url: str, *, timeout: float = DEFAULT_TIMEOUT, echo: bool = False
    ) -> "SqlDataStore":
        return cls(create_engine_from_url(url, echo=echo), timeout=timeout)

    async def create_schema(self) -> None:
        """Create missing tables (SQLite and local development)."""
        await init_db(self.engine)

    async def close(self) -> None:
        await close_db(self.engine)

    # =========================================================================
    # Primitives
    # =========================================================================

    async def _select(
        self,
        table: str,
        filters: dict[str, Any],
        *,
        order_by: str | None,
        descending: bool,
        limit: int | None,
        offset: int,
    ) -> list[Row]:
        sa_table = self._table(table)
        stmt = select(sa_table).where(*self._where(sa_table, filters))
        if order_by:
            column = self._column(sa_table, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        with _translate_errors(table):
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [dict(row) for row in result.mappings().all()]

    async def _insert_many(self, table: str, rows: list[Row]) -> list[Row]:
        sa_table = self._table(table)
        with _translate_errors(table):
            async with self.engine.begin() as conn:
                return [await self._insert_row(conn, sa_table, row) for row in rows]

    async def _insert_bounded(
        self, table: str, row: Row, scope: dict[str, Any], limit: int
    ) -> Row:
        sa_table = self._table(table)
        with _translate_errors(table):
            if self._is_sqlite:
                # pysqlite only begins at the first write; take the write lock before counting
                async with self.engine.connect() as conn:
                    await conn.exec_driver_sql("BEGIN IMMEDIATE")
                    inserted = await self._count_and_insert(conn, sa_table, row, scope, limit)
                    await conn.commit()
                    return inserted
            async with self.engine.begin() as conn:
                if self._is_postgres:
                    # Serialize bounded inserts on the same scope until commit
                    lock_key = f"{table}:" + ",".join(f"{k}={scope[k]}" for k in sorted(scope))
                    await conn.execute(select(func.pg_advisory_xact_lock(func.hashtext(lock_key))))
                return await self._count_and_insert(conn, sa_table, row, scope, limit)

    async def _update(self, table: str, filters: dict[str, Any], values: Row) -> list[Row]:
        sa_table = self._table(table)
        for name in values:
            self._column(sa_table, name)
        stmt = (
            update(sa_table)
            .where(*self._where(sa_table, filters))
            .values(**values)
            .returning(*sa_table.c)
        )
        with _translate_errors(table):
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return [dict(row) for row in result.mappings().all()]

    async def _increment(
        self, table: str, filters: dict[str, Any], deltas: dict[str, int], values: Row
    ) -> list[Row]:
        sa_table = self._table(table)
        for name in values:
            self._column(sa_table, name)
        sums = {
            name: func.coalesce(self._column(sa_table, name), 0) + delta
            for name, delta in deltas.items()
        }
        stmt = (
            update(sa_table)
            .where(*self._where(sa_table, filters))
            .values(**values, **sums)
            .returning(*sa_table.c)
        )
        with _translate_errors(table):
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return [dict(row) for row in result.mappings().all()]

    async def _delete(self, table: str, filters: dict[str, Any]) -> int:
        sa_table = self._table(table)
        stmt = delete(sa_table).where(*self._where(sa_table, filters))
        with _translate_errors(table):
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return int(result.rowcount or 0)

    async def _count(self, table: str, filters: dict[str, Any]) -> int:
        sa_table = self._table(table)
        stmt = select(func.count()).select_from(sa_table).where(*self._where(sa_table, filters))
        with _translate_errors(table):
            async with self.engine.connect() as conn:
                return int((await conn.execute(stmt)).scalar_one())

    async def _ping(self) -> bool:
        with _translate_errors("ping"):
            async with self.engine.connect() as conn:
                await conn.execute(select(1))
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _table(name: str) -> Table:
        return Base.metadata.tables[name]

    @staticmethod
    def _column(sa_table: Table, name: str):
        column = sa_table.c.get(name)
        if column is None:
            raise DataStoreError(f"Unknown column on {sa_table.name}: {name}")
        return column

    def _where(self, sa_table: Table, filters: dict[str, Any]) -> list[Any]:
        clauses = []
        for name, value in filters.items():
            column = self._column(sa_table, name)
            clauses.append(column.in_(list(value)) if is_multi_value(value) else column == value)
        return clauses

    @staticmethod
    async def _insert_row(conn: AsyncConnection, sa_table: Table, row: Row) -> Row:
        unknown = [name for name in row if name not in sa_table.c]
        if unknown:
            raise DataStoreError(f"Unknown column(s) on {sa_table.name}: {', '.join(unknown)}")
        result = await conn.execute(insert(sa_table).values(**row).returning(*sa_table.c))
        return dict(result.mappings().one())

    async def _count_and_insert(
        self, conn: AsyncConnection, sa_table: Table, row: Row, scope: dict[str, Any], limit: int
    ) -> Row:
        count_stmt = (
            select(func.count()).select_from(sa_table).where(*self._where(sa_table, scope))
        )
        current = (await conn.execute(count_stmt)).scalar_one()
        if current >= limit:
            raise CapacityError(
                f"{sa_table.name} is full ({current}/{limit})",
                {"table": sa_table.name, "limit": limit, "current": current},
            )
        return await self._insert_row(conn, sa_table, row)
