"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from kickabout.api.envelope import error_response
from kickabout.api.routes import (
    admin,
    auth,
    clubs,
    health,
    matches,
    players,
    ratings,
    statistics,
)
from kickabout.core.config import settings
from kickabout.core.exceptions import KickaboutError, UnauthenticatedError
from kickabout.core.http_client import close_http_client
from kickabout.core.logging_config import (
    bind_request_context,
    clear_request_context,
    generate_request_id,
    setup_logging,
)
from kickabout.core.rate_limit import limiter
from kickabout.core.sentry import init_sentry
from kickabout.db.store import SqlDataStore, create_datastore

# Initialize Sentry for error monitoring
init_sentry(settings)

logger = logging.getLogger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware that binds a unique request_id to structlog context vars."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        request.state.request_id = request_id
        bind_request_context(request_id, request.method, request.url.path)
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        clear_request_context()
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response: Response = await call_next(request)

        # Security headers
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"

        # HSTS - only in production
        if settings.is_production:
            hsts_value = "max-age=63072000; includeSubDomains; preload"
            response.headers["Strict-Transport-Security"] = hsts_value

        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Configure structured logging BEFORE anything else
    setup_logging(
        json_output=settings.is_production,
        log_level=settings.log_level,
    )

    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.app_env}")

    store = create_datastore(settings)
    if isinstance(store, SqlDataStore):
        try:
            await store.create_schema()
            logger.info("[Database] Tables initialized")
        except Exception as e:
            logger.error(f"[Database] Could not initialize tables: {e}")
            if settings.is_production:
                raise
    app.state.datastore = store

    yield

    # Shutdown
    await store.close()
    await close_http_client()
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="API for organizing amateur football matches, clubs and player ratings",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter

# Request ID Middleware (binds request_id to structured logs)
app.add_middleware(RequestIdMiddleware)

# Security Headers Middleware
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


# Exception handlers
@app.exception_handler(KickaboutError)
async def kickabout_exception_handler(request: Request, exc: KickaboutError) -> JSONResponse:
    """Map application errors onto the envelope with their own status code."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    if exc.status_code >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    return error_response(
        exc.status_code,
        exc.message,
        code=exc.error_code,
        details=exc.details,
        request_id=_request_id(request),
        headers=headers,
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """429 in the standard envelope, keeping the limiter's Retry-After headers."""
    logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
    response = error_response(
        429,
        f"Rate limit exceeded: {exc.detail}",
        code="RATE_LIMITED",
        request_id=_request_id(request),
    )
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    injected: Response = request.app.state.limiter._inject_headers(response, view_rate_limit)
    return injected


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Enumerate every invalid request field in one 422 envelope."""
    violations = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        violations.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return error_response(
        422,
        f"Validation failed: {', '.join(violations)}",
        code="VALIDATION_ERROR",
        details={"errors": violations},
        request_id=_request_id(request),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework errors (unknown route, wrong method) in the same envelope."""
    return error_response(
        exc.status_code,
        str(exc.detail),
        code="HTTP_ERROR",
        request_id=_request_id(request),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; the detail stays in the logs."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(
        500,
        "Internal server error",
        code="INTERNAL",
        request_id=_request_id(request),
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(
    auth.router,
    prefix=f"{settings.api_prefix}/auth",
    tags=["Auth"],
)
app.include_router(
    admin.router,
    prefix=f"{settings.api_prefix}/admin",
    tags=["Admin"],
)
app.include_router(
    players.router,
    prefix=f"{settings.api_prefix}/players",
    tags=["Players"],
)
app.include_router(
    clubs.router,
    prefix=f"{settings.api_prefix}/clubs",
    tags=["Clubs"],
)
app.include_router(
    matches.router,
    prefix=f"{settings.api_prefix}/matches",
    tags=["Matches"],
)
app.include_router(
    ratings.router,
    prefix=f"{settings.api_prefix}/ratings",
    tags=["Ratings"],
)
app.include_router(
    statistics.router,
    prefix=f"{settings.api_prefix}/statistics",
    tags=["Statistics"],
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
