"""
Structured logging configuration using structlog.

Provides JSON output in production, pretty console output in development.
Follows 12-factor app pattern: logs to stdout, process manager handles persistence.
"""

import logging
import sys

import structlog

from relay.config import Settings, settings


def setup_logging(app_settings: Settings | None = None) -> None:
    """
    Configure structlog and stdlib logging integration.

    Call this once at process startup.
    """
    app_settings = app_settings or settings
    level = getattr(logging, app_settings.log_level.upper())

    if app_settings.log_format == "json":
        # Production: JSON lines for log aggregation
        renderer = structlog.processors.JSONRenderer()
    else:
        # Development: Pretty console output
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and aiomcache log through stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Access lines would carry secret ids in the path
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    """
    Get a structlog logger instance.

    Args:
        name: Optional logger name for context

    Returns:
        Configured structlog logger
    """
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
