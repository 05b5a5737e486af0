"""Structured logging configuration for the failover proxy.

This module provides structured logging using structlog to emit
JSON-formatted logs with contextual information. Events are dotted names
(`upstream.failed`, `dispatch.completed`, `idempotency.duplicate`) and
carry fields such as:
- Origin URLs and attempt counts
- Idempotency keys (never request bodies or tokens)
- Upstream status codes and latencies

Examples:
    Configure logging::

        from failover_proxy.observability.logging import configure_logging

        configure_logging(level="INFO", json_output=True)

    Use the logger::

        from failover_proxy.observability.logging import get_logger

        logger = get_logger(__name__)
        logger.info(
            "upstream.failed",
            origin="https://a.internal",
            status_code=503,
        )

    Output (JSON)::

        {
            "event": "upstream.failed",
            "origin": "https://a.internal",
            "status_code": 503,
            "timestamp": "2024-01-01T00:00:00.000000Z",
            "level": "info"
        }
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Configure structured logging for the proxy process.

    Call once at startup, before the ASGI app starts serving. Uvicorn run
    with ``log_config=None`` (as demo_app.py does) logs through the same
    root handler on stdout.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, emit JSON logs; if False, use console format

    Examples:
        >>> configure_logging(level="DEBUG", json_output=False)
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors: list[object] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        # exc_info must be rendered to a string before JSON serialization
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)

    Returns:
        A structlog logger instance
    """
    return structlog.get_logger(name)
