"""Response envelope helpers.

Routes return ``success(...)`` or ``paginated(...)`` and let their
``ApiResponse[...]`` response model serialize it; exception handlers build
the failure variant with ``error_response``.
"""

import math
from datetime import UTC, datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from kickabout.core.logging_config import current_request_id
from kickabout.db.services import Page


def metadata(
    pagination: dict[str, Any] | None = None, request_id: str | None = None
) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "requestId": request_id or current_request_id(),
    }
    if pagination is not None:
        meta["pagination"] = pagination
    return meta


def success(data: Any = None, *, message: str | None = None) -> dict[str, Any]:
    """Successful envelope around ``data``."""
    return {
        "success": True,
        "data": data,
        "error": None,
        "message": message,
        "metadata": metadata(),
    }


def paginated(page: Page) -> dict[str, Any]:
    """Successful envelope for one page of a listing."""
    total_pages = math.ceil(page.total / page.limit) if page.limit else 0
    pagination = {
        "page": page.page,
        "limit": page.limit,
        "total": page.total,
        "totalPages": total_pages,
        "hasNext": page.page < total_pages,
        "hasPrev": page.page > 1,
    }
    return {
        "success": True,
        "data": page.items,
        "error": None,
        "message": None,
        "metadata": metadata(pagination),
    }


def error_response(
    status_code: int,
    error: str,
    *,
    code: str,
    details: dict[str, Any] | None = None,
    request_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Failure envelope. ``error`` is the human-readable text, ``message`` the error code."""
    content: dict[str, Any] = {
        "success": False,
        "data": None,
        "error": error,
        "message": code,
        "metadata": metadata(request_id=request_id),
    }
    if details:
        content["details"] = details
    return JSONResponse(
        status_code=status_code, content=jsonable_encoder(content), headers=headers
    )
