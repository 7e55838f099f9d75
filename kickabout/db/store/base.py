"""Data store gateway interface.

Business logic talks to one ``DataStore`` API whatever the backend is.
The public coroutines validate the table name, bound every call with the
configured timeout and translate backend failures into the application's
error kinds; subclasses only implement the underscored primitives.

Filters are plain mappings of column name to value. A list, tuple, set or
frozenset value means "column IN values"; anything else is an equality.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Mapping, Sequence
from typing import Any, TypeVar

from kickabout.core.exceptions import DataStoreError, DataStoreTimeoutError
from kickabout.db.models import TABLES

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filters = Mapping[str, Any]

T = TypeVar("T")

DEFAULT_TIMEOUT = 15.0
MULTI_VALUE_TYPES = (list, tuple, set, frozenset)


def is_multi_value(value: Any) -> bool:
    return isinstance(value, MULTI_VALUE_TYPES)


class DataStore(ABC):
    """Typed CRUD and filtered queries over the application tables.

    Every implementation must enforce the unique constraints declared on
    the models and the roster capacity bound of ``insert_bounded``; a
    violated uniqueness surfaces as ``ConflictError`` and a full scope as
    ``CapacityError``.
    """

    backend: str = "abstract"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    # =========================================================================
    # Public API
    # =========================================================================

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Row]:
        """Fetch rows matching all filters."""
        self._check_table(table)
        return await self._run(
            "select",
            table,
            self._select(
                table,
                dict(filters or {}),
                order_by=order_by,
                descending=descending,
                limit=limit,
                offset=offset,
            ),
        )

    async def select_one(self, table: str, filters: Filters) -> Row | None:
        """Fetch the first row matching all filters, or None."""
        rows = await self.select(table, filters, limit=1)
        return rows[0] if rows else None

    async def insert(self, table: str, row: Row) -> Row:
        """Insert one row and return it with generated columns filled."""
        rows = await self.insert_many(table, [row])
        return rows[0]

    async def insert_many(self, table: str, rows: Sequence[Row]) -> list[Row]:
        """Insert rows all-or-nothing."""
        self._check_table(table)
        if not rows:
            return []
        prepared = [self._prepare(row) for row in rows]
        return await self._run("insert", table, self._insert_many(table, prepared))

    async def insert_bounded(
        self, table: str, row: Row, *, scope: Filters, limit: int
    ) -> Row:
        """Insert a row only while fewer than ``limit`` rows match ``scope``.

        The count and the insert happen atomically with respect to other
        bounded inserts on the same scope. Raises ``CapacityError`` when the
        scope is already full.
        """
        self._check_table(table)
        return await self._run(
            "insert_bounded",
            table,
            self._insert_bounded(table, self._prepare(row), dict(scope), limit),
        )

    async def update(self, table: str, filters: Filters, values: Row) -> list[Row]:
        """Update rows matching filters and return them after the update."""
        self._check_table(table)
        if not filters:
            raise DataStoreError(f"Refusing unfiltered update on {table}")
        return await self._run("update", table, self._update(table, dict(filters), dict(values)))

    async def increment(
        self,
        table: str,
        filters: Filters,
        deltas: Mapping[str, int],
        values: Row | None = None,
    ) -> list[Row]:
        """Add ``deltas`` to numeric columns of matching rows without a lost update.

        ``values`` are set alongside the increments. Returns the rows after
        the change.
        """
        self._check_table(table)
        if not filters:
            raise DataStoreError(f"Refusing unfiltered increment on {table}")
        return await self._run(
            "increment",
            table,
            self._increment(table, dict(filters), dict(deltas), dict(values or {})),
        )

    async def delete(self, table: str, filters: Filters) -> int:
        """Delete rows matching filters and return how many were removed."""
        self._check_table(table)
        if not filters:
            raise DataStoreError(f"Refusing unfiltered delete on {table}")
        return await self._run("delete", table, self._delete(table, dict(filters)))

    async def count(self, table: str, filters: Filters | None = None) -> int:
        """Count rows matching filters."""
        self._check_table(table)
        return await self._run("count", table, self._count(table, dict(filters or {})))

    async def ping(self) -> bool:
        """Check the backend is reachable."""
        try:
            return await asyncio.wait_for(self._ping(), timeout=self.timeout)
        except Exception as e:
            logger.warning(f"[DataStore] {self.backend} ping failed: {e}")
            return False

    async def close(self) -> None:
        """Release backend resources."""
        return None

    # =========================================================================
    # Backend primitives
    # =========================================================================

    @abstractmethod
    async def _select(
        self,
        table: str,
        filters: dict[str, Any],
        *,
        order_by: str | None,
        descending: bool,
        limit: int | None,
        offset: int,
    ) -> list[Row]: ...

    @abstractmethod
    async def _insert_many(self, table: str, rows: list[Row]) -> list[Row]: ...

    @abstractmethod
    async def _insert_bounded(
        self, table: str, row: Row, scope: dict[str, Any], limit: int
    ) -> Row: ...

    @abstractmethod
    async def _update(self, table: str, filters: dict[str, Any], values: Row) -> list[Row]: ...

    @abstractmethod
    async def _increment(
        self, table: str, filters: dict[str, Any], deltas: dict[str, int], values: Row
    ) -> list[Row]: ...

    @abstractmethod
    async def _delete(self, table: str, filters: dict[str, Any]) -> int: ...

    @abstractmethod
    async def _count(self, table: str, filters: dict[str, Any]) -> int: ...

    @abstractmethod
    async def _ping(self) -> bool: ...

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _run(self, operation: str, table: str, coro: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except TimeoutError as e:
            logger.warning(
                f"[DataStore] {self.backend} {operation} on {table} "
                f"timed out after {self.timeout}s"
            )
            raise DataStoreTimeoutError(
                f"Data store {operation} on {table} timed out",
                {"table": table, "operation": operation, "timeout": self.timeout},
            ) from e

    @staticmethod
    def _check_table(table: str) -> None:
        if table not in TABLES:
            raise DataStoreError(f"Unknown table: {table}")

    @staticmethod
    def _prepare(row: Row) -> Row:
        prepared = dict(row)
        if not prepared.get("id"):
            prepared["id"] = str(uuid.uuid4())
        return prepared
