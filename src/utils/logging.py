"""Structured logging setup using structlog.

One shared processor chain (context vars, log level, stack info, ISO
timestamps) feeds either a coloured ConsoleRenderer for local development
or a JSONRenderer in production.  JSON is chosen when ``json_output`` is
set or ``APP_ENV`` is ``"production"``.

Standard-library ``logging`` goes through the same formatter, so uvicorn
access lines and connector transport libraries render like our own
events.  The transport libraries are held at WARNING unless the service
itself runs at DEBUG: httpx logs every Linear request otherwise.

Per-submission context (the correlation id) is carried through
``structlog.contextvars``: anything bound with :func:`bind_correlation_id`
appears on every log line emitted by the handler and by the connectors it
calls, including from concurrently running connector tasks.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import AbstractContextManager

import structlog

_TRANSPORT_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "aiosqlite")


def _shared_processors() -> list[structlog.types.Processor]:
    # merge_contextvars must run first so the correlation id is on every event.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Force JSON rendering regardless of ``APP_ENV``.

    Returns:
        A configured structlog BoundLogger.
    """
    level_name = log_level.upper()
    level = logging.getLevelName(level_name)
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"

    renderer: structlog.types.Processor
    if use_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    stdlib_handler = logging.StreamHandler(sys.stdout)
    stdlib_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(stdlib_handler)
    root_logger.setLevel(level_name)

    transport_level = logging.DEBUG if level_name == "DEBUG" else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger tagged with *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


def bind_correlation_id(correlation_id: str) -> AbstractContextManager[None]:
    """Bind *correlation_id* to every log line emitted inside the ``with`` block.

    asyncio tasks copy the current context when they are created, so
    connector calls dispatched inside the block inherit the binding.
    """
    return structlog.contextvars.bound_contextvars(correlation_id=correlation_id)
