"""
Logging configuration module for structured logging.

This module configures the application's logging system using structlog:
JSON output for deployed environments and human-readable console output for
development. Modules obtain their own logger with
``structlog.get_logger(__name__)`` and pass context as key/value pairs.
"""

import logging
import sys

import structlog

from src.core.config.settings import settings


def configure_logging(log_level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configures the application's logging system.

    Args:
        log_level: Minimum level to emit. Defaults to ``settings.LOG_LEVEL``.
        json_logs: Render JSON when true. Defaults to ``settings.LOG_JSON``.
    """
    level_name = (log_level or settings.LOG_LEVEL).upper()
    use_json = settings.LOG_JSON if json_logs is None else json_logs

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level_name)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_log_level,
        structlog.processors.JSONRenderer() if use_json else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Shared logger for modules that do not need their own name
logger = structlog.get_logger()
