"""
Structured Logging

structlog is configured once, on first import, from LoggingSettings.
The core only emits debug-level trace events plus one info event for the
lenient config-token path. Errors are raised to the caller, never logged
and swallowed.
"""

import logging

import structlog

from billqr.config import get_settings


def configure_logging() -> None:
    """Configure structlog and the stdlib root level from settings."""
    log_settings = get_settings().logging

    renderer = (
        structlog.processors.JSONRenderer()
        if log_settings.json_output
        else structlog.dev.ConsoleRenderer()
    )

    logging.getLogger("billqr").setLevel(log_settings.level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to a stdlib logger of the given name."""
    return structlog.get_logger(name)
