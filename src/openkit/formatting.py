"""Response formatters: turn an operation's outcome into the value callers see.

A formatter pairs a ``success(output, input, context)`` function with an
``error(error, input, context)`` function.  Either may be missing.  When an
error function exists it absorbs failures: the call resolves to its return
value instead of raising.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass
from typing import Any

from openkit.context import Context
from openkit.protocols import ErrorFormatter, SuccessFormatter


@dataclass(frozen=True)
class ResponseFormatter:
    """Success/error formatting pair attached to an operation."""

    success: SuccessFormatter | None = None
    error: ErrorFormatter | None = None


def passthrough(output: Any, input: Any, context: Context) -> Any:
    return output


def error_details(error: BaseException) -> str | None:
    """Formatted traceback of ``error``, or None if it was never raised."""
    if error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(error))


def error_payload(error: Exception, input: Any, context: Context) -> dict[str, Any]:
    """Default error body: ``{"error": message, "details": traceback}``."""
    return {"error": str(error), "details": error_details(error)}


def default_formatter() -> ResponseFormatter:
    """Formatter installed by ``Operation.handler()`` when none was set."""
    return ResponseFormatter(success=passthrough, error=error_payload)
