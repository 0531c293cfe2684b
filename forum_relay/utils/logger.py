"""Structured logging setup using structlog.

Events are rendered by structlog and written either straight to stdout or,
when ``capture`` is set, handed to the standard library ``logging`` tree so
the hosting process can attach its own handlers (a log shipper keyed by
``logging.logentries_token``, for instance). The relay never ships logs
itself.
"""

import logging
import sys
from typing import Optional

import structlog


def setup_logging(
    level: str = "DEBUG",
    json_output: bool = False,
    app: Optional[str] = None,
    capture: bool = False,
):
    """Configure structured logging for the relay.

    Args:
        level: Log level name, case-insensitive. Unknown names mean DEBUG.
        json_output: Render JSON lines instead of colored console output.
        app: Name bound to every event, e.g. ``forum-relay-dev``.
        capture: Route rendered events through stdlib logging handlers.
    """
    log_level = getattr(logging, level.upper(), logging.DEBUG)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=not capture))

    if capture:
        logger_factory = structlog.stdlib.LoggerFactory()
    else:
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )

    if app:
        structlog.contextvars.bind_contextvars(app=app)


def get_logger(name: str = None):
    """Get a structured logger instance."""
    return structlog.get_logger(name)
