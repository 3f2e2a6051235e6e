"""
Logging context management using contextvars.

Every log entry emitted while an operation runs carries the identity of the
invocation (which container, which operation, which tool call) without that
identity being passed through user middleware or handlers.

Design choice: contextvars
- asyncio-compatible: concurrent tool calls in one batch keep separate context
- No need to pass context through every function
- Clean integration with structlog processors
"""

import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def _generate_invocation_id() -> str:
    """Generate an invocation ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass
class LogContext:
    """
    Invocation context attached to all log entries.

    Core identifiers:
        invocation_id: Unique ID of one operation invocation
        container: Container name
        operation: Operation name

    Protocol context:
        function_name: Protocol function name of the tool call
        tool_call_id: Identifier of the tool call

    Tracing (for nested timing blocks):
        span_id: Current span identifier
        parent_span_id: Parent span for nested operations
    """

    invocation_id: str | None = None
    container: str | None = None
    operation: str | None = None

    function_name: str | None = None
    tool_call_id: str | None = None

    span_id: str | None = None
    parent_span_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None and k in current})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("openkit_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(
    invocation_id: str | None = None,
    container: str | None = None,
    operation: str | None = None,
    function_name: str | None = None,
    tool_call_id: str | None = None,
    span_id: str | None = None,
    parent_span_id: str | None = None,
) -> LogContext:
    """
    Set the current log context.

    This replaces the current context. Use bind_context() to add to existing.
    """
    ctx = LogContext(
        invocation_id=invocation_id,
        container=container,
        operation=operation,
        function_name=function_name,
        tool_call_id=tool_call_id,
        span_id=span_id,
        parent_span_id=parent_span_id,
    )
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


class _ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token):
        self._token = token

    def restore(self):
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs) -> _ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(operation="Echo")
        try:
            await do_work()
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    token = _log_context.set(updated)
    return _ContextToken(token)


def new_invocation_id() -> str:
    return _generate_invocation_id()


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds invocation context to every log entry.

    Keys already present on the event win over context values.
    """
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)
    """
    return structlog.get_logger(name)
