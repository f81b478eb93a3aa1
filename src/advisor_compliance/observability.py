"""Structured logging for the advisor compliance engine.

Modules obtain a logger with get_logger(__name__) and log with keyword
context, e.g. ``logger.info("Case status updated", case_id=..., status=...)``.
configure_logging() is called once from the application lifespan.
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...).
        json_logs: Render JSON lines when True, human-readable console output otherwise.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer: Any = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to the given module name.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        A bound structlog logger accepting keyword context.
    """
    return structlog.get_logger(name)
