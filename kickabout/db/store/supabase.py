"""Hosted data store reached through Supabase's PostgREST API.

Requests authenticate with the service-role key, so row level security is
bypassed and authorization stays in the service layer. Uniqueness is
enforced by the database's unique indexes; roster capacity is enforced by
the ``enforce_match_capacity`` trigger created in the initial migration,
with a count pre-check here as a fast path.
"""

import logging
from datetime import date, datetime
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from kickabout.core.exceptions import (
    CapacityError,
    ConflictError,
    DataStoreError,
    DataStoreTimeoutError,
    DataStoreUnavailableError,
)
from kickabout.core.http_client import get_http_client
from kickabout.db.store.base import DEFAULT_TIMEOUT, DataStore, Row, is_multi_value

logger = logging.getLogger(__name__)

_CAPACITY_MARKER = "roster capacity"
_UNAVAILABLE_STATUSES = frozenset({502, 503, 504})
_INCREMENT_ATTEMPTS = 5


def _encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _to_json(row: Row) -> Row:
    return {
        key: value.isoformat() if isinstance(value, (datetime, date)) else value
        for key, value in row.items()
    }


def filter_params(filters: dict[str, Any]) -> list[tuple[str, str]]:
    """Translate filters into PostgREST query parameters."""
    params: list[tuple[str, str]] = []
    for column, value in filters.items():
        if is_multi_value(value):
            quoted = ",".join(
                '"' + _encode_value(item).replace('"', '\\"') + '"' for item in value
            )
            params.append((column, f"in.({quoted})"))
        elif value is None:
            params.append((column, "is.null"))
        else:
            params.append((column, f"eq.{_encode_value(value)}"))
    return params


def _has_empty_in(filters: dict[str, Any]) -> bool:
    return any(is_multi_value(value) and not value for value in filters.values())


def _parse_content_range(header: str | None) -> int:
    """Total from a ``Content-Range: 0-9/42`` (or ``*/0``) header."""
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1]
    return int(total) if total.isdigit() else 0


class SupabaseDataStore(DataStore):
    """Data store over Supabase REST (PostgREST)."""

    backend = "supabase"

    def __init__(
        self,
        url: str,
        service_role_key: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout)
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self._service_role_key = service_role_key
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or get_http_client(timeout=self.timeout)

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
        if _has_empty_in(filters):
            return []
        params = [("select", "*"), *filter_params(filters)]
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        if offset:
            params.append(("offset", str(offset)))
        response = await self._read(table, params)
        rows: list[Row] = response.json()
        return rows

    async def _insert_many(self, table: str, rows: list[Row]) -> list[Row]:
        response = await self._request(
            "POST",
            table,
            json_body=[_to_json(row) for row in rows],
            prefer="return=representation",
        )
        inserted: list[Row] = response.json()
        return inserted

    async def _insert_bounded(
        self, table: str, row: Row, scope: dict[str, Any], limit: int
    ) -> Row:
        current = await self._count(table, scope)
        if current >= limit:
            raise CapacityError(
                f"{table} is full ({current}/{limit})",
                {"table": table, "limit": limit, "current": current},
            )
        rows = await self._insert_many(table, [row])
        return rows[0]

    async def _update(self, table: str, filters: dict[str, Any], values: Row) -> list[Row]:
        if _has_empty_in(filters):
            return []
        response = await self._request(
            "PATCH",
            table,
            params=filter_params(filters),
            json_body=_to_json(values),
            prefer="return=representation",
        )
        rows: list[Row] = response.json()
        return rows

    async def _increment(
        self, table: str, filters: dict[str, Any], deltas: dict[str, int], values: Row
    ) -> list[Row]:
        rows = await self._select(
            table, filters, order_by=None, descending=False, limit=None, offset=0
        )
        changed: list[Row] = []
        for row in rows:
            updated = await self._increment_row(table, row, deltas, values)
            if updated is not None:
                changed.append(updated)
        return changed

    async def _delete(self, table: str, filters: dict[str, Any]) -> int:
        if _has_empty_in(filters):
            return 0
        response = await self._request(
            "DELETE", table, params=filter_params(filters), prefer="return=representation"
        )
        return len(response.json())

    async def _count(self, table: str, filters: dict[str, Any]) -> int:
        if _has_empty_in(filters):
            return 0
        params = [("select", "id"), *filter_params(filters), ("limit", "1")]
        response = await self._read(table, params, prefer="count=exact")
        return _parse_content_range(response.headers.get("content-range"))

    async def _ping(self) -> bool:
        await self._read("users", [("select", "id"), ("limit", "1")])
        return True

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _increment_row(
        self, table: str, row: Row, deltas: dict[str, int], values: Row
    ) -> Row | None:
        """Compare-and-set one row: the PATCH only applies while the counters are unchanged."""
        for _ in range(_INCREMENT_ATTEMPTS):
            guard = {"id": row["id"], **{name: row.get(name) for name in deltas}}
            sums = {name: (row.get(name) or 0) + delta for name, delta in deltas.items()}
            updated = await self._update(table, guard, {**values, **sums})
            if updated:
                return updated[0]
            fresh = await self._select(
                table, {"id": row["id"]}, order_by=None, descending=False, limit=1, offset=0
            )
            if not fresh:
                return None
            row = fresh[0]
        raise ConflictError(
            f"{table} row {row['id']} kept changing during increment", {"table": table}
        )

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._service_role_key}",
            "apikey": self._service_role_key,
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, max=2),
        retry=retry_if_exception_type(DataStoreUnavailableError),
        reraise=True,
    )
    async def _read(
        self, table: str, params: list[tuple[str, str]], prefer: str | None = None
    ) -> httpx.Response:
        """GET with retries; reads are idempotent so transient failures are retried."""
        return await self._request("GET", table, params=params, prefer=prefer)

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json_body: Any = None,
        prefer: str | None = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=json_body,
                headers=self._headers(prefer),
            )
        except httpx.TimeoutException as e:
            logger.warning(f"[Supabase] {method} {table} timed out: {e}")
            raise DataStoreTimeoutError(
                f"Data store {method} on {table} timed out", {"table": table}
            ) from e
        except httpx.TransportError as e:
            logger.warning(f"[Supabase] {method} {table} transport error: {e}")
            raise DataStoreUnavailableError("Data store unreachable", {"table": table}) from e

        if response.status_code >= 400:
            self._raise_for_error(method, table, response)
        return response

    @staticmethod
    def _raise_for_error(method: str, table: str, response: httpx.Response) -> None:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        code = str(body.get("code") or "")
        message = str(body.get("message") or response.text)
        details = {"table": table, "status": response.status_code, "code": code}

        if code == "23505":
            raise ConflictError(
                f"Duplicate value violates a unique constraint on {table}", details
            )
        if _CAPACITY_MARKER in message.lower():
            raise CapacityError(f"{table} is full", details)
        if response.status_code in _UNAVAILABLE_STATUSES:
            raise DataStoreUnavailableError(
                f"Data store unavailable ({response.status_code})", details
            )
        logger.error(
            f"[Supabase] {method} {table} failed: {response.status_code} {code} {message}"
        )
        raise DataStoreError(f"Data store rejected {method} on {table}", details)
