"""Base repository with generic CRUD operations over the data store gateway.

Rows are plain dicts keyed by column name, whichever backend served them.
"""

from collections.abc import Iterable, Sequence
from typing import Any

from kickabout.db.models import utcnow
from kickabout.db.store import DataStore, Filters, Row


class BaseRepository:
    """Generic repository providing common CRUD operations for one table.

    Usage:
        class ClubRepository(BaseRepository):
            table = "clubs"
            touch_on_update = True
    """

    table: str = ""
    # Tables with an updated_at column get it refreshed on every update
    touch_on_update: bool = False

    def __init__(self, store: DataStore) -> None:
        self.store = store

    async def get_by_id(self, id: str) -> Row | None:
        """Get a single record by primary key."""
        return await self.store.select_one(self.table, {"id": id})

    async def get_all(
        self,
        *,
        offset: int = 0,
        limit: int | None = 100,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Get all records with optional pagination."""
        return await self.store.select(
            self.table, order_by=order_by, descending=descending, limit=limit, offset=offset
        )

    async def get_by_field(self, field_name: str, value: Any) -> Row | None:
        """Get a single record by field value."""
        return await self.store.select_one(self.table, {field_name: value})

    async def get_many_by_field(
        self,
        field_name: str,
        value: Any,
        *,
        offset: int = 0,
        limit: int | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Get multiple records by field value."""
        return await self.find(
            {field_name: value},
            offset=offset,
            limit=limit,
            order_by=order_by,
            descending=descending,
        )

    async def get_many_by_ids(self, ids: Iterable[str]) -> dict[str, Row]:
        """Batch-load records by id, keyed by id."""
        unique_ids = sorted(set(ids))
        if not unique_ids:
            return {}
        rows = await self.store.select(self.table, {"id": unique_ids})
        return {row["id"]: row for row in rows}

    async def find(
        self,
        filters: Filters,
        *,
        offset: int = 0,
        limit: int | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        """Get records matching every filter."""
        return await self.store.select(
            self.table,
            filters,
            order_by=order_by,
            descending=descending,
            limit=limit,
            offset=offset,
        )

    async def find_one(self, filters: Filters) -> Row | None:
        return await self.store.select_one(self.table, filters)

    async def create(self, **kwargs: Any) -> Row:
        """Create a new record."""
        return await self.store.insert(self.table, kwargs)

    async def create_many(self, items: Sequence[Row]) -> list[Row]:
        """Create multiple records all-or-nothing."""
        return await self.store.insert_many(self.table, items)

    async def update(self, id: str, **kwargs: Any) -> Row | None:
        """Update a record by ID."""
        rows = await self.update_many({"id": id}, **kwargs)
        return rows[0] if rows else None

    async def update_many(self, filters: Filters, **kwargs: Any) -> list[Row]:
        """Update multiple records matching a filter."""
        if self.touch_on_update:
            kwargs.setdefault("updated_at", utcnow())
        return await self.store.update(self.table, filters, kwargs)

    async def delete(self, id: str) -> bool:
        """Delete a record by ID."""
        return await self.store.delete(self.table, {"id": id}) > 0

    async def delete_many(self, filters: Filters) -> int:
        """Delete multiple records matching a filter."""
        return await self.store.delete(self.table, filters)

    async def count(self, filters: Filters | None = None) -> int:
        """Count records matching a filter."""
        return await self.store.count(self.table, filters)

    async def exists(self, filters: Filters) -> bool:
        """Check if a record matching the filter exists."""
        return await self.store.select_one(self.table, filters) is not None
