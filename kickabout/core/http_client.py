"""Pooled httpx client used by the Supabase data store.

Every PostgREST call of a worker shares one ``httpx.AsyncClient`` so TCP
and TLS sessions to the Supabase host are reused. The lifespan closes it
on shutdown.
"""

import logging

import httpx

from kickabout.core.config import settings

logger = logging.getLogger(__name__)

POOL_LIMITS = httpx.Limits(max_connections=50, max_keepalive_connections=20, keepalive_expiry=30)
CONNECT_TIMEOUT = 5.0

_client: httpx.AsyncClient | None = None


async def _log_failed_response(response: httpx.Response) -> None:
    if response.status_code >= 500:
        logger.warning(
            f"[HTTP] {response.request.method} {response.request.url.path} "
            f"returned {response.status_code}"
        )


def get_http_client(timeout: float = 15.0) -> httpx.AsyncClient:
    """Return the worker's shared client, opening a new one if none is usable.

    ``timeout`` only applies when the client is (re)created.
    """
    global _client
    if _client is not None and not _client.is_closed:
        return _client

    _client = httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=CONNECT_TIMEOUT),
        limits=POOL_LIMITS,
        headers={"User-Agent": f"{settings.app_name}/{settings.app_version}"},
        event_hooks={"response": [_log_failed_response]},
    )
    logger.info(f"[HTTP] Opened shared client (timeout {timeout}s)")
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        logger.info("[HTTP] Closed shared client")
    _client = None
