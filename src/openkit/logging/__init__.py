"""
openkit logging - structured, invocation-aware logging.

This package provides:
- Structured logging with structlog
- Invocation context propagation via contextvars
- Timing utilities for span tracking
- Settings-based configuration

Usage:
    from openkit.logging import configure_logging, get_logger, timed_block

    configure_logging()
    log = get_logger(__name__)

    with timed_block("tool_call") as timer:
        ...
    log.info("tool_call.complete", **timer.to_log_dict())
"""

from openkit.logging.config import configure_logging, is_configured, is_debug_enabled
from openkit.logging.context import (
    LogContext,
    add_context_processor,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_invocation_id,
    push_context,
    set_context,
)
from openkit.logging.timing import TimingResult, timed_block

__all__ = [
    # Configuration
    "configure_logging",
    "is_configured",
    "is_debug_enabled",
    # Context
    "LogContext",
    "get_logger",
    "set_context",
    "bind_context",
    "clear_context",
    "get_context",
    "push_context",
    "new_invocation_id",
    "add_context_processor",
    # Timing
    "TimingResult",
    "timed_block",
]
