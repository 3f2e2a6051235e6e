"""
Structured error types for openkit.

Every failure the dispatch core can raise is an ``OpenKitError`` carrying a
category, a structured context (container, operation, function name, tool
call id) and an optional chained cause.  User handlers and middleware may
raise anything; those exceptions pass through untouched unless a response
formatter absorbs them.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind the caller can act on
    - **Rich Context:** Errors know which container/operation they came from
    - **Error Chaining:** The underlying pydantic or JSON error is kept as cause
    - **Never Retried:** Nothing in the core retries; errors surface once

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                        OpenKitError                           │
        │               (category, context, cause)                      │
        ├──────────────────────────────────────────────────────────────┤
        │  ValidationError      SchemaError       HandlerNotDefinedError│
        │  (VALIDATION)         (SCHEMA)          (CONFIG)              │
        │                                                               │
        │  OperationNotFoundError   ToolCallError      ChainError       │
        │  (LOOKUP)                 (PROTOCOL)         (EXECUTION)      │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = OperationNotFoundError("Ping", available=["Echo"])
    >>> error.category.value
    'LOOKUP'
    >>> error.with_context(container="Tools").context.container
    'Tools'

Tags:
    error-handling, exception-hierarchy, error-context, openkit

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    VALIDATION = "VALIDATION"  # input/output shape mismatch
    SCHEMA = "SCHEMA"  # schema cannot be exported
    CONFIG = "CONFIG"  # definition incomplete (no handler)
    LOOKUP = "LOOKUP"  # operation name did not resolve
    PROTOCOL = "PROTOCOL"  # malformed tool call
    EXECUTION = "EXECUTION"  # middleware misuse
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        container: Name of the container the operation belongs to
        operation: Name of the operation being invoked
        function_name: Protocol function name of a tool call
        tool_call_id: Identifier of the tool call being dispatched
        metadata: Additional key-value pairs
    """

    container: str | None = None
    operation: str | None = None
    function_name: str | None = None
    tool_call_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["container", "operation", "function_name", "tool_call_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class OpenKitError(Exception):
    """
    Base exception for all openkit errors.

    Subclasses set ``default_category``; callers may override it per instance.
    ``cause`` is chained as ``__cause__`` so tracebacks show the root error.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> OpenKitError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ToolCallError("Bad arguments").with_context(
                function_name="echo-message",
                tool_call_id="call_1",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DEFINITION / SCHEMA ERRORS
# =============================================================================


class ValidationError(OpenKitError):
    """
    A value did not conform to an operation's input or output schema.

    ``issues`` holds the structured error list reported by the validation
    library (one entry per offending field, each with a ``loc`` path).
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        direction: str = "input",
        issues: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.direction = direction
        self.issues = issues or []
        if operation is not None and self.context.operation is None:
            self.context.operation = operation

    @property
    def fields(self) -> list[str]:
        """Dotted paths of every offending field."""
        return [".".join(str(part) for part in issue.get("loc", ())) for issue in self.issues]

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["direction"] = self.direction
        if self.issues:
            result["fields"] = self.fields
        return result


class SchemaError(OpenKitError):
    """A schema cannot be turned into a protocol parameter document."""

    default_category = ErrorCategory.SCHEMA


class HandlerNotDefinedError(OpenKitError):
    """An operation was invoked before ``.handler()`` was called."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, operation: str, **kwargs: Any):
        super().__init__(f'No handler defined for operation "{operation}"', **kwargs)
        self.operation = operation
        self.context.operation = operation


# =============================================================================
# DISPATCH ERRORS
# =============================================================================


class OperationNotFoundError(OpenKitError):
    """A name or path did not resolve to any registered operation."""

    default_category = ErrorCategory.LOOKUP

    def __init__(
        self,
        name: str,
        *,
        available: list[str] | None = None,
        message: str | None = None,
        **kwargs: Any,
    ):
        self.name = name
        self.available = available or []
        if message is None:
            message = f'Operation "{name}" not found'
            if self.available:
                message += f". Available: {', '.join(self.available)}"
        super().__init__(message, **kwargs)


class ToolCallError(OpenKitError):
    """A protocol tool call was malformed (shape or JSON arguments)."""

    default_category = ErrorCategory.PROTOCOL


class ChainError(OpenKitError):
    """A middleware misused its continuation."""

    default_category = ErrorCategory.EXECUTION


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "OpenKitError",
    "ValidationError",
    "SchemaError",
    "HandlerNotDefinedError",
    "OperationNotFoundError",
    "ToolCallError",
    "ChainError",
]
