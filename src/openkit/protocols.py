"""Callable protocols for middleware, handlers and response formatters.

Any of these may be a plain function or a coroutine function; the chain
awaits results that are awaitable and uses other results as-is.

Manifesto:
    Middleware are continuation-passing: each receives the running context
    and a ``call_next`` continuation.  Calling it (optionally with a context
    patch) runs the rest of the chain and returns its result; not calling it
    short-circuits the chain.

Tags:
    openkit, protocols, middleware, handler, typing

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

from openkit.context import Context

T = TypeVar("T")


class NextFunction(Protocol):
    """Continuation handed to a middleware."""

    def __call__(self, *, context: Mapping[str, Any] | None = None) -> Awaitable[Any]: ...


@runtime_checkable
class Middleware(Protocol):
    """
    Per-operation middleware.

    Example:
        >>> async def auth(context, call_next):
        ...     user = await lookup(context["token"])
        ...     return await call_next(context={"user": user})
    """

    def __call__(self, context: Context, call_next: NextFunction) -> Any: ...


@runtime_checkable
class Handler(Protocol):
    """Terminal function of an operation: ``handler(input, context)``."""

    def __call__(self, input: Any, context: Context) -> Any: ...


class SuccessFormatter(Protocol):
    def __call__(self, output: Any, input: Any, context: Context) -> Any: ...


class ErrorFormatter(Protocol):
    def __call__(self, error: Exception, input: Any, context: Context) -> Any: ...


async def resolve(value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
