"""In-memory data store.

A constructed, injectable store for tests and local development. Column
defaults, NOT NULL columns and unique constraints (including partial unique
indexes) come from the SQLAlchemy metadata, so it rejects the same writes
the real databases reject.

Each primitive suspends once to simulate the network round trip and then
runs to completion without awaiting, which makes every check-then-write
inside a single primitive atomic on the event loop.
"""

import asyncio
import copy
from datetime import UTC, datetime, timedelta
from functools import cache
from typing import Any

from sqlalchemy import DateTime, UniqueConstraint

from kickabout.core.exceptions import CapacityError, ConflictError, DataStoreError
from kickabout.db.models import TABLES, Base
from kickabout.db.store.base import DEFAULT_TIMEOUT, DataStore, Row, is_multi_value

# (columns, partial-index predicate or None)
UniqueKey = tuple[tuple[str, ...], dict[str, Any] | None]


@cache
def unique_keys(table: str) -> tuple[UniqueKey, ...]:
    """Every uniqueness rule declared on a table."""
    sa_table = Base.metadata.tables[table]
    keys: list[UniqueKey] = [(tuple(c.name for c in sa_table.primary_key.columns), None)]
    for constraint in sa_table.constraints:
        if isinstance(constraint, UniqueConstraint):
            keys.append((tuple(c.name for c in constraint.columns), None))
    for column in sa_table.columns:
        if column.unique:
            keys.append(((column.name,), None))
    for index in sa_table.indexes:
        if index.unique:
            keys.append((tuple(c.name for c in index.columns), index.info.get("partial")))

    deduped: list[UniqueKey] = []
    for key in keys:
        if key not in deduped:
            deduped.append(key)
    return tuple(deduped)


def _matches(row: Row, filters: dict[str, Any]) -> bool:
    for column, value in filters.items():
        if is_multi_value(value):
            if row.get(column) not in value:
                return False
        elif row.get(column) != value:
            return False
    return True


def _sort_key(column: str):
    def key(row: Row) -> tuple[bool, Any]:
        value = row.get(column)
        return (value is None, value)

    return key


class MemoryDataStore(DataStore):
    """Data store backed by per-table lists of dicts."""

    backend = "memory"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, latency: float = 0.0) -> None:
        super().__init__(timeout)
        # Simulated round-trip delay in seconds
        self.latency = latency
        self._tables: dict[str, list[Row]] = {name: [] for name in TABLES}
        self._clock: datetime | None = None

    def rows(self, table: str) -> list[Row]:
        """Snapshot of a table, in insertion order."""
        return copy.deepcopy(self._tables[table])

    def reset(self) -> None:
        for rows in self._tables.values():
            rows.clear()

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
        await self._round_trip()
        self._check_columns(table, filters)
        rows = [row for row in self._tables[table] if _matches(row, filters)]
        if order_by:
            self._check_columns(table, {order_by: None})
            rows = sorted(rows, key=_sort_key(order_by), reverse=descending)
        end = None if limit is None else offset + limit
        return copy.deepcopy(rows[offset:end])

    async def _insert_many(self, table: str, rows: list[Row]) -> list[Row]:
        await self._round_trip()
        return self._insert_now(table, rows)

    async def _insert_bounded(
        self, table: str, row: Row, scope: dict[str, Any], limit: int
    ) -> Row:
        await self._round_trip()
        self._check_columns(table, scope)
        current = sum(1 for existing in self._tables[table] if _matches(existing, scope))
        if current >= limit:
            raise CapacityError(
                f"{table} is full ({current}/{limit})",
                {"table": table, "limit": limit, "current": current},
            )
        return self._insert_now(table, [row])[0]

    async def _update(self, table: str, filters: dict[str, Any], values: Row) -> list[Row]:
        await self._round_trip()
        self._check_columns(table, filters)
        self._check_columns(table, values)
        stored = self._tables[table]
        targets = [i for i, row in enumerate(stored) if _matches(row, filters)]
        updated = {i: {**stored[i], **copy.deepcopy(values)} for i in targets}
        self._check_not_null(table, list(updated.values()))

        candidate = [updated.get(i, row) for i, row in enumerate(stored)]
        for i in targets:
            others = candidate[:i] + candidate[i + 1 :]
            self._check_unique(table, updated[i], others)

        for i, row in updated.items():
            stored[i] = row
        return copy.deepcopy([updated[i] for i in targets])

    async def _increment(
        self, table: str, filters: dict[str, Any], deltas: dict[str, int], values: Row
    ) -> list[Row]:
        await self._round_trip()
        self._check_columns(table, filters)
        self._check_columns(table, {**deltas, **values})
        # No await below, so the read and the write cannot interleave with another call
        stored = self._tables[table]
        changed: list[Row] = []
        for i, row in enumerate(stored):
            if not _matches(row, filters):
                continue
            sums = {name: (row.get(name) or 0) + delta for name, delta in deltas.items()}
            stored[i] = {**row, **copy.deepcopy(values), **sums}
            changed.append(stored[i])
        return copy.deepcopy(changed)

    async def _delete(self, table: str, filters: dict[str, Any]) -> int:
        await self._round_trip()
        self._check_columns(table, filters)
        stored = self._tables[table]
        kept = [row for row in stored if not _matches(row, filters)]
        removed = len(stored) - len(kept)
        self._tables[table] = kept
        return removed

    async def _count(self, table: str, filters: dict[str, Any]) -> int:
        await self._round_trip()
        self._check_columns(table, filters)
        return sum(1 for row in self._tables[table] if _matches(row, filters))

    async def _ping(self) -> bool:
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _round_trip(self) -> None:
        await asyncio.sleep(self.latency)

    def _insert_now(self, table: str, rows: list[Row]) -> list[Row]:
        complete = [self._with_defaults(table, row) for row in rows]
        self._check_not_null(table, complete)
        pending: list[Row] = []
        for row in complete:
            self._check_unique(table, row, self._tables[table] + pending)
            pending.append(row)
        self._tables[table].extend(pending)
        return copy.deepcopy(pending)

    def _with_defaults(self, table: str, row: Row) -> Row:
        self._check_columns(table, row)
        complete: Row = {}
        for column in Base.metadata.tables[table].columns:
            if column.name in row:
                complete[column.name] = copy.deepcopy(row[column.name])
            elif column.default is None:
                complete[column.name] = None
            elif isinstance(column.type, DateTime):
                complete[column.name] = self._now()
            elif column.default.is_callable:
                complete[column.name] = column.default.arg(None)
            else:
                complete[column.name] = column.default.arg
        return complete

    def _now(self) -> datetime:
        # Strictly increasing, so newest-first ordering is never ambiguous
        now = datetime.now(UTC)
        if self._clock is not None and now <= self._clock:
            now = self._clock + timedelta(microseconds=1)
        self._clock = now
        return now

    @staticmethod
    def _check_columns(table: str, values: dict[str, Any]) -> None:
        known = Base.metadata.tables[table].columns
        unknown = [name for name in values if name not in known]
        if unknown:
            raise DataStoreError(f"Unknown column(s) on {table}: {', '.join(unknown)}")

    @staticmethod
    def _check_not_null(table: str, rows: list[Row]) -> None:
        for column in Base.metadata.tables[table].columns:
            if column.nullable:
                continue
            for row in rows:
                if row.get(column.name) is None:
                    raise DataStoreError(f"Null value in column {table}.{column.name}")

    @staticmethod
    def _check_unique(table: str, row: Row, others: list[Row]) -> None:
        for columns, predicate in unique_keys(table):
            if predicate and not _matches(row, predicate):
                continue
            values = tuple(row.get(c) for c in columns)
            if any(v is None for v in values):
                continue
            for other in others:
                if predicate and not _matches(other, predicate):
                    continue
                if tuple(other.get(c) for c in columns) == values:
                    raise ConflictError(
                        f"Duplicate value for {table}({', '.join(columns)})",
                        {"table": table, "columns": list(columns)},
                    )
