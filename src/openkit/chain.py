"""Middleware chain executor.

Manifesto:
    One invocation of an operation is one walk through its middleware, in
    registration order, ending at the handler.  Each middleware decides
    whether to continue (``await call_next()``), what to add to the shared
    context on the way (``call_next(context={...})``), and what to do with
    the result on the way back.  Failures meet exactly one catch boundary.

Architecture:

    .. code-block:: text

        PENDING ──► RUNNING ──► HANDLING ──► FORMATTING ──► DONE
                       │            │             │
                       │            └─────────────┴──► FAILED
                       └──► DONE   (middleware returned without call_next)

        execute(input)
          └─ middleware[0](ctx, call_next)
               └─ middleware[1](ctx', call_next)
                    └─ handle()
                         ├─ validate input        (errors propagate as-is)
                         ├─ handler(input, ctx'')
                         ├─ validate output
                         └─ formatter.success / formatter.error

Errors from the handler, output validation or the success formatter are
absorbed by ``formatter.error`` when the operation has one; middleware
errors reach the same boundary at the outermost level.  Input validation
errors always propagate to the caller.  Without an error formatter the
original exception object propagates unchanged.

Tags:
    openkit, middleware, chain, continuation, state-machine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from openkit.context import Context, merge_context
from openkit.errors import ChainError, ValidationError
from openkit.formatting import passthrough
from openkit.protocols import resolve
from openkit.schema import validate
from openkit.tracing import OperationTracer

if TYPE_CHECKING:
    from openkit.operation import Operation


class ChainState(str, Enum):
    """Lifecycle of one chain execution."""

    PENDING = "pending"
    RUNNING = "running"
    HANDLING = "handling"
    FORMATTING = "formatting"
    DONE = "done"
    FAILED = "failed"


class MiddlewareChain:
    """
    Drives one invocation of an operation.

    A chain is single-use: build one per call with the merged execution
    context, then ``await chain.execute(input)``.

    Example:
        >>> chain = MiddlewareChain(operation, {"user": "ada"})
        >>> result = await chain.execute({"message": "hi"})
        >>> chain.state
        <ChainState.DONE: 'done'>
    """

    def __init__(
        self,
        operation: Operation,
        context: Context,
        *,
        tracer: OperationTracer | None = None,
    ):
        self.operation = operation
        self.context: Context = context
        self.tracer = tracer or OperationTracer(operation, enabled=False)
        self.state = ChainState.PENDING
        self.index = -1
        self.handled = False
        self.input: Any = None
        self.error: BaseException | None = None
        self._raw_input: Any = None
        self._passthrough: BaseException | None = None

    @property
    def short_circuited(self) -> bool:
        """True once a middleware ended the chain without reaching the handler."""
        return self.state is ChainState.DONE and not self.handled

    async def execute(self, input: Any) -> Any:
        if self.state is not ChainState.PENDING:
            raise ChainError(f'Chain for operation "{self.operation.name}" has already run')

        self._raw_input = input
        self.input = input
        self.state = ChainState.RUNNING

        try:
            result = await self._dispatch(0)
        except Exception as e:
            if e is self._passthrough:
                raise
            return await self._fail(e)

        if self.state is ChainState.FAILED and self._passthrough is not None:
            # a middleware recovered from an error that was re-raised unformatted
            self.state = ChainState.DONE
        if not self.handled:
            self.state = ChainState.DONE
            self.tracer.short_circuited(result, self.context)
        return result

    async def _dispatch(self, index: int) -> Any:
        self.index = index
        middleware = self.operation.middleware
        if index >= len(middleware):
            return await self._handle()

        called = False

        async def call_next(*, context: Mapping[str, Any] | None = None) -> Any:
            nonlocal called
            if called:
                raise ChainError(
                    f'call_next() called more than once by middleware {index} of operation "{self.operation.name}"'
                )
            called = True
            if context:
                self.context = merge_context(self.context, context)
            return await self._dispatch(index + 1)

        return await resolve(middleware[index](self.context, call_next))

    async def _handle(self) -> Any:
        operation = self.operation
        self.handled = True
        self.state = ChainState.HANDLING

        try:
            self.input = validate(operation.input_schema, self._raw_input, operation=operation.name)
        except ValidationError as e:
            self.state = ChainState.FAILED
            self.error = e
            self._passthrough = e
            self.tracer.error(self._raw_input, e, self.context)
            raise

        formatter = operation.formatter
        try:
            output = await resolve(operation.handler_function(self.input, self.context))
            output = validate(operation.output_schema, output, operation=operation.name, direction="output")

            self.state = ChainState.FORMATTING
            if formatter is not None and formatter.success is not None and formatter.success is not passthrough:
                result = await resolve(formatter.success(output, self.input, self.context))
                formatted = True
            else:
                result = output
                formatted = False
        except Exception as e:
            return await self._fail(e)

        self.state = ChainState.DONE
        self.tracer.success(self.input, result, self.context, formatted=formatted)
        return result

    async def _fail(self, error: Exception) -> Any:
        self.state = ChainState.FAILED
        self.error = error

        formatter = self.operation.formatter
        if formatter is None or formatter.error is None:
            self._passthrough = error
            self.tracer.error(self.input, error, self.context)
            raise error

        try:
            result = await resolve(formatter.error(error, self.input, self.context))
        except Exception as formatter_error:
            self._passthrough = formatter_error
            self.tracer.error(self.input, formatter_error, self.context)
            raise

        self.tracer.formatted_error(self.input, error, result, self.context)
        return result
