"""Structured logging configuration for the idempotency gate.

This module provides structured logging using structlog to emit
JSON-formatted logs with contextual information.

Idempotency tokens are caller-supplied and may embed identifiers, so they
are never logged raw. Use scrub_token() to log a short, stable digest that
still lets operators correlate repeated submissions.

Examples:
    Configure logging::

        from idempotency_gate.observability.logging import configure_logging

        configure_logging(level="INFO", json_output=True)

    Use the logger::

        from idempotency_gate.observability.logging import get_logger, scrub_token

        logger = get_logger(__name__)
        logger.warning(
            "gate.store_failed",
            token=scrub_token("abc"),
            policy="fail-open",
        )

    Output (JSON)::

        {
            "event": "gate.store_failed",
            "token": "ba7816bf8f01",
            "policy": "fail-open",
            "timestamp": "2024-01-01T00:00:00.000000Z",
            "level": "warning"
        }
"""

import hashlib
import logging
import sys
from typing import Any

import structlog

TOKEN_DIGEST_LENGTH = 12


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """Configure structured logging for the application.

    This should be called once at application startup.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, emit JSON logs; if False, use console format
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )

    processors: list[object] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,  # type: ignore[arg-type]
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
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


def scrub_token(token: str) -> str:
    """Return a short SHA-256 digest of a token, safe to log.

    The same token always maps to the same digest.

    Examples:
        >>> scrub_token("abc")
        'ba7816bf8f01'
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:TOKEN_DIGEST_LENGTH]
