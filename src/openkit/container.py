"""Container builder: a named group of operations sharing a root context.

Manifesto:
    A container ("app" or "tool") is the unit exposed to a function-calling
    protocol.  It owns the dependencies its operations need (database
    clients, API keys, configuration) as a root context, resolves operations
    by name or path, and answers tool calls addressed to
    ``"{container_slug}-{operation_slug}"``.

Architecture:

    .. code-block:: text

        Container("Echo")
        ├── root_context {"db": ...}
        ├── Operation("Message")   → function "echo-message"
        └── Operation("Reverse")   → function "echo-reverse"

        handle_tool_call("echo-message", {...})
          ├─ strip "echo-" prefix
          ├─ match operation slug "message"
          └─ run(root_context + _from_tool_call).handler(input=args)

Tags:
    openkit, container, registry, routing, tool-calling

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from openkit.context import FROM_TOOL_CALL, Context
from openkit.errors import ErrorContext, OperationNotFoundError, SchemaError
from openkit.logging import get_logger
from openkit.operation import BoundOperation, DefinitionKind, Operation, slugify
from openkit.schema import to_parameter_schema
from openkit.settings import get_settings
from openkit.tracing import ContainerTracer

log = get_logger(__name__)


class _Unhandled:
    """Marker returned by ``handle_tool_call`` when no operation matches."""

    _instance: _Unhandled | None = None

    def __new__(cls) -> _Unhandled:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNHANDLED"


UNHANDLED = _Unhandled()


class Container:
    """
    Named collection of operations with a shared root context.

    Example:
        >>> tools = Container("Echo", "Echo tools")
        >>> tools.route("Message").input(Message).handler(echo)
        >>> [f["function"]["name"] for f in tools.get_openai_functions()]
        ['echo-message']
    """

    kind = DefinitionKind.CONTAINER

    def __init__(self, name: str, description: str = "", *, debug: bool | None = None):
        if not name or not name.strip():
            raise ValueError("Container name must be a non-empty string")
        self.name = name
        self.description = description or ""
        self.root_context: Context = {}
        self.operations: list[Operation] = []
        self.debug_enabled = get_settings().debug if debug is None else debug

    @classmethod
    def wrap(cls, operation: Operation) -> Container:
        """
        Implicit single-operation container for a standalone operation.

        The operation is not re-parented: its own ``container`` stays as it
        was, so direct invocation is unaffected.
        """
        container = cls(operation.name, operation.description, debug=operation.debug_enabled)
        container.operations.append(operation)
        return container

    @property
    def slug(self) -> str:
        return slugify(self.name)

    # ── Builder API ──────────────────────────────────────────────

    def context(self, mapping: Mapping[str, Any] | None = None, /, **values: Any) -> Container:
        """Shallow-merge ``mapping`` and ``values`` into the root context."""
        self.root_context = {**self.root_context, **(mapping or {}), **values}
        return self

    def route(self, name: str, description: str = "", path: str | None = None) -> Operation:
        """Register a new operation and return it for further building."""
        operation = Operation(name, description, path, container=self, debug=self.debug_enabled)
        if any(existing.slug == operation.slug for existing in self.operations):
            log.warning(
                "container.duplicate_slug",
                container=self.name,
                operation=name,
                slug=operation.slug,
            )
        self.operations.append(operation)
        return operation

    capability = route

    def debug(self) -> Container:
        """Enable tracing for this container and every operation, now and later."""
        self.debug_enabled = True
        for operation in self.operations:
            operation.debug()
        return self

    # ── Lookup & invocation ──────────────────────────────────────

    def get_operation(self, name_or_path: str) -> Operation | None:
        """First operation matching ``name_or_path``, or None."""
        for operation in self.operations:
            if operation.matches(name_or_path):
                return operation
        return None

    def run(self, name_or_path: str) -> BoundOperation:
        """
        Bind an operation to this container's root context.

        Raises:
            OperationNotFoundError: If nothing matches ``name_or_path``
        """
        tracer = ContainerTracer(self, enabled=self.debug_enabled)
        tracer.run(name_or_path, self.root_context)

        operation = self.get_operation(name_or_path)
        if operation is None:
            tracer.not_found(name_or_path)
            raise OperationNotFoundError(
                name_or_path,
                available=[op.name for op in self.operations],
                context=ErrorContext(container=self.name),
            )

        if self.debug_enabled:
            operation.debug()
        return operation.run(self.root_context)

    def function_name(self, operation: Operation) -> str:
        """Protocol function name of ``operation`` inside this container."""
        return f"{self.slug}-{operation.slug}"

    def get_openai_functions(self) -> list[dict[str, Any]]:
        """
        Function definitions for every operation, in registration order.

        Raises:
            SchemaError: If an operation's input schema is not an object
        """
        if not self.operations:
            log.warning("container.no_operations", container=self.name)
            return []

        functions = []
        for operation in self.operations:
            name = self.function_name(operation)
            try:
                parameters = to_parameter_schema(operation.input_schema)
            except SchemaError as e:
                raise e.with_context(container=self.name, operation=operation.name, function_name=name)
            functions.append(
                {
                    "type": "function",
                    "function": {
                        "name": name,
                        "description": operation.description,
                        "parameters": parameters,
                    },
                }
            )
        return functions

    async def handle_tool_call(self, function_name: str, args: Any) -> Any:
        """
        Run the operation addressed by ``function_name`` with ``args`` as input.

        Returns ``UNHANDLED`` when the name does not belong to this container.
        Errors raised by the operation propagate.
        """
        tracer = ContainerTracer(self, enabled=self.debug_enabled)
        tracer.tool_call_start(function_name, args)

        prefix = f"{self.slug}-"
        if function_name.startswith(prefix):
            slug = function_name[len(prefix) :]
            operation = next((op for op in self.operations if op.slug == slug), None)
            if operation is not None:
                runner = operation.run({**self.root_context, FROM_TOOL_CALL: True})
                try:
                    result = await runner.handler(input=args, context={})
                except Exception as e:
                    tracer.tool_call_failed(function_name, slug, args, e)
                    raise
                tracer.tool_call_complete(function_name, slug, args, result)
                return result

        tracer.tool_call_unhandled(function_name, args)
        return UNHANDLED

    def __repr__(self) -> str:
        return f"Container(name={self.name!r}, operations={len(self.operations)})"
