"""Operation builder: one named, validated, invocable unit.

Manifesto:
    An operation is declared once with a fluent chain (schemas, middleware,
    handler, formatter) and is then immutable in shape.  Each invocation
    allocates its own context and chain, so operations are safe to share
    across concurrent calls.

Example:
    >>> from pydantic import BaseModel
    >>> class Message(BaseModel):
    ...     message: str
    >>> echo = (
    ...     Operation("Echo", "Echo a message")
    ...     .input(Message)
    ...     .handler(lambda input, context: {"echo": input.message})
    ... )
    >>> await echo.run().handler(input={"message": "hi"})
    {'echo': 'hi'}

Tags:
    openkit, operation, builder, fluent-api, routing

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from openkit.chain import MiddlewareChain
from openkit.context import Context, is_from_tool_call, merge_context
from openkit.errors import ErrorContext, HandlerNotDefinedError
from openkit.formatting import ResponseFormatter, default_formatter
from openkit.logging import new_invocation_id, push_context
from openkit.protocols import ErrorFormatter, Handler, Middleware, SuccessFormatter
from openkit.schema import Schema
from openkit.settings import get_settings
from openkit.tracing import OperationTracer

if TYPE_CHECKING:
    from openkit.container import Container

_WHITESPACE = re.compile(r"\s+")


class DefinitionKind(str, Enum):
    """Discriminant carried by every definition the adapter accepts."""

    OPERATION = "operation"
    CONTAINER = "container"


def slugify(name: str) -> str:
    """Lowercase ``name`` and replace whitespace runs with underscores."""
    return _WHITESPACE.sub("_", name.lower())


class Operation:
    """
    A single named operation (a "route" or "capability").

    Builder methods return the operation itself so declarations chain.

    .. code-block:: text

        Operation
        ├── .input(schema) / .output(schema)   → validation
        ├── .use(middleware)                   → append to chain
        ├── .handler(fn)                       → terminal function
        ├── .llm(success=, error=)             → response formatter
        ├── .debug()                           → structured tracing
        └── .run(root_context) → BoundOperation
    """

    kind = DefinitionKind.OPERATION

    def __init__(
        self,
        name: str,
        description: str = "",
        path: str | None = None,
        *,
        container: Container | None = None,
        debug: bool | None = None,
    ):
        if not name or not name.strip():
            raise ValueError("Operation name must be a non-empty string")
        self.name = name
        self.description = description or ""
        self.path = path
        self.container = container
        self.input_schema: Schema | None = None
        self.output_schema: Schema | None = None
        self.middleware: list[Middleware] = []
        self.formatter: ResponseFormatter | None = None
        self.debug_enabled = get_settings().debug if debug is None else debug
        self._handler: Handler | None = None

    @property
    def slug(self) -> str:
        """Routing key: the explicit path without slashes, else the slugified name."""
        if self.path:
            return self.path.replace("/", "")
        return slugify(self.name)

    @property
    def handler_function(self) -> Handler | None:
        return self._handler

    def matches(self, name_or_path: str) -> bool:
        """Case-insensitive name, underscore-normalized name, or exact path."""
        return (
            self.name.lower() == name_or_path.lower()
            or slugify(self.name) == slugify(name_or_path)
            or name_or_path == self.path
            or name_or_path == self.slug
        )

    # ── Builder API ──────────────────────────────────────────────

    def input(self, schema: Any) -> Operation:
        """Set the input schema (any pydantic-supported type)."""
        self.input_schema = Schema.coerce(schema)
        return self

    def output(self, schema: Any) -> Operation:
        """Set the output schema (any pydantic-supported type)."""
        self.output_schema = Schema.coerce(schema)
        return self

    def use(self, middleware: Middleware) -> Operation:
        """Append a middleware; registration order is invocation order."""
        if not callable(middleware):
            raise TypeError(f"Middleware must be callable, got {type(middleware).__name__}")
        self.middleware.append(middleware)
        return self

    def handler(self, fn: Handler) -> Operation:
        """
        Set the terminal function, called as ``fn(input, context)``.

        Installs the default formatter (pass-through success,
        ``{"error", "details"}`` on failure) unless one is already set.
        """
        if not callable(fn):
            raise TypeError(f"Handler must be callable, got {type(fn).__name__}")
        self._handler = fn
        if self.formatter is None:
            self.formatter = default_formatter()
        return self

    def llm(
        self,
        success: SuccessFormatter | None = None,
        error: ErrorFormatter | None = None,
    ) -> Operation:
        """
        Install a custom response formatter.

        ``success(output, input, context)`` shapes results;
        ``error(error, input, context)`` turns failures into values.
        Leaving ``error`` unset lets failures propagate.
        """
        self.formatter = ResponseFormatter(success=success, error=error)
        return self

    def debug(self) -> Operation:
        """Enable structured tracing for this operation."""
        self.debug_enabled = True
        return self

    def run(self, root_context: Mapping[str, Any] | None = None) -> BoundOperation:
        """Bind ``root_context`` and return an invocable for this operation."""
        return BoundOperation(self, dict(root_context or {}))

    def create_handler(self, fn: Handler) -> BoundOperation:
        """Set the handler and return ``run()`` in one step."""
        return self.handler(fn).run()

    def __repr__(self) -> str:
        return f"Operation(name={self.name!r}, slug={self.slug!r})"


@dataclass
class BoundOperation:
    """An operation with its root context bound, ready to invoke."""

    operation: Operation
    root_context: Context = field(default_factory=dict)

    async def handler(self, input: Any = None, context: Mapping[str, Any] | None = None) -> Any:
        """
        Run the operation's full chain.

        Args:
            input: Raw input, validated against the input schema (default ``{}``)
            context: Invocation context, merged over the root context

        Raises:
            HandlerNotDefinedError: If ``.handler()`` was never called
            ValidationError: If ``input`` does not match the input schema
        """
        operation = self.operation
        invocation_context = merge_context(self.root_context, context)
        container = operation.container
        tracer = OperationTracer(
            operation,
            enabled=operation.debug_enabled,
            boundary=not is_from_tool_call(invocation_context),
        )
        token = push_context(
            invocation_id=new_invocation_id(),
            container=container.name if container is not None else None,
            operation=operation.name,
        )
        try:
            tracer.start(input, invocation_context)
            if operation.handler_function is None:
                tracer.handler_missing()
                raise HandlerNotDefinedError(
                    operation.name,
                    context=ErrorContext(container=container.name if container is not None else None),
                )
            chain = MiddlewareChain(operation, invocation_context, tracer=tracer)
            return await chain.execute({} if input is None else input)
        finally:
            token.restore()

    async def __call__(self, input: Any = None, context: Mapping[str, Any] | None = None) -> Any:
        return await self.handler(input=input, context=context)
