"""Structured logging configuration using structlog.

structlog wraps the stdlib ``logging`` module, so every module keeps using
``logging.getLogger(__name__)`` and still gets JSON lines in production and
a readable console in development. Request-scoped values (request id,
method, path) travel through structlog context vars.
"""

import logging
import uuid

import structlog

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")


def setup_logging(json_output: bool = True, log_level: str = "INFO") -> None:
    """Configure structured logging for the entire application.

    Args:
        json_output: If True, output JSON (production). If False, pretty console (dev).
        log_level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    # filter_by_level needs a real structlog logger, and foreign_pre_chain
    # hands stdlib records over with None, so it stays out of this list.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def generate_request_id() -> str:
    """Generate a short unique request ID."""
    return uuid.uuid4().hex[:12]


def bind_request_context(request_id: str, method: str, path: str) -> None:
    """Start a fresh logging context for one inbound request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def current_request_id() -> str | None:
    """Request id bound for the current context, if any."""
    value = structlog.contextvars.get_contextvars().get("request_id")
    return str(value) if value else None
