"""Structured logging for client instances."""

import logging
from typing import Any, List

import structlog

# winston-style level names accepted by the client
LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "http": logging.DEBUG,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "silly": logging.DEBUG,
}


def _processors(json_output: bool) -> List[Any]:
    processors: List[Any] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def create_logger(
    *, level: str = "error", silent: bool = False, json_output: bool = False, **context: Any
) -> structlog.BoundLogger:
    """Create a logger private to one client instance.

    Signers and caches built outside a client get one with the default
    level, so only errors reach the output.

    Args:
        level: One of :data:`LOG_LEVELS`.
        silent: Drop every event regardless of level.
        json_output: True for JSON lines, False for console output.
        **context: Key/values bound to every event.
    """
    if silent:
        min_level, sink = logging.CRITICAL, structlog.ReturnLogger()
    else:
        min_level, sink = LOG_LEVELS[level], structlog.PrintLogger()
    logger = structlog.wrap_logger(
        sink,
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
    )
    return logger.bind(**context)  # type: ignore[no-any-return]
