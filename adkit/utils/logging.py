"""Structured Logging Configuration.

This module configures structlog once per process and hands out bound
loggers. Outputs JSON for production log aggregation, or a readable console
format for local development.

Configuration:
- LOG_FORMAT: "json" (default) or "console"
- LOG_LEVEL: DEBUG, INFO (default), WARNING, ERROR, CRITICAL
- Context binding support (campaign IDs, provider IDs, etc.)
"""

import logging
import os
import sys

import structlog

_configured = False


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; later calls replace the configuration.

    Args:
        level: Log level name (defaults to LOG_LEVEL env var, then INFO)
        fmt: "json" or "console" (defaults to LOG_FORMAT env var, then json)
    """
    global _configured

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    output = (fmt or os.getenv("LOG_FORMAT", "json")).lower()

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    renderer: structlog.typing.Processor
    if output == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """Get a structured logger instance for the given module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Bound structlog logger with the module name attached
    """
    if not _configured:
        configure_logging()
    # "logger" is a positional parameter of wrap_logger, so it cannot be an initial value
    return structlog.get_logger().bind(logger=name)
