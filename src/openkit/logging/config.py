"""
Logging configuration.

Provides a single entry point for configuring structured logging.

Values not passed explicitly come from :class:`openkit.settings.OpenKitSettings`:
- OPENKIT_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- OPENKIT_LOG_FORMAT: json | console (default: console)

Usage:
    from openkit.logging import configure_logging
    configure_logging()

    # Or with explicit settings
    configure_logging(level="DEBUG", format="json")
"""

import logging
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from openkit.logging.context import add_context_processor
from openkit.settings import get_settings

_configured = False

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at startup (CLI entry, service boot).
    Subsequent calls are no-ops unless force=True.

    Args:
        level: Log level (overrides OPENKIT_LOG_LEVEL)
        format: Output format (overrides OPENKIT_LOG_FORMAT)
        force: Reconfigure even if already configured

    Raises:
        ValueError: If the level is not one of DEBUG, INFO, WARNING, ERROR
    """
    global _configured

    if _configured and not force:
        return

    settings = get_settings()
    log_level = (level or settings.log_level).upper()
    log_format = (format or settings.log_format).lower()
    if log_level not in _LEVELS:
        raise ValueError(f"Unknown log level: {log_level!r} (expected one of {', '.join(_LEVELS)})")

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_processor,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(default=str))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    # Loggers are not cached so structlog.testing.capture_logs keeps working
    # after configuration.
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=_LEVELS[log_level],
        force=True,
    )
    logging.getLogger("openkit").setLevel(_LEVELS[log_level])

    _configured = True


def is_debug_enabled() -> bool:
    """Check if DEBUG level logging is enabled."""
    return logging.getLogger("openkit").isEnabledFor(logging.DEBUG)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
