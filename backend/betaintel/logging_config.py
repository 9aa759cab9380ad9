"""structlog configuration."""

import logging

import structlog

from betaintel.config import Settings, get_settings


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog from settings.

    Development gets the console renderer, every other environment emits
    one JSON object per line.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
