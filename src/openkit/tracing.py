"""Debug tracing for operation and container invocations.

When an operation (or its container) has debug enabled, every invocation
emits structured events around its lifecycle:

    operation.start ─┬─ operation.success
                     ├─ operation.formatted_output
                     ├─ operation.formatted_error
                     ├─ operation.error
                     ├─ operation.short_circuited
                     └─ operation.handler_missing

Containers add ``container.run``, ``container.operation_not_found`` and
``tool_call.start`` followed by one of ``tool_call.complete``,
``tool_call.error`` or ``tool_call.unhandled``.

A boundary line is logged at DEBUG before and after a traced invocation so
one call reads as one block.  An operation run by ``handle_tool_call`` skips
its own boundaries; the container's tool-call trace already frames it.

Tracers are created per invocation and do nothing when disabled.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from openkit.logging import TimingResult, get_logger

if TYPE_CHECKING:
    from openkit.container import Container
    from openkit.operation import Operation

log = get_logger("openkit.trace")

BOUNDARY = "========================== openkit debug =========================="


def _context_keys(context: Mapping[str, Any]) -> list[str]:
    return sorted(str(key) for key in context)


class OperationTracer:
    """Lifecycle events of one operation invocation."""

    def __init__(self, operation: Operation, *, enabled: bool, boundary: bool = True):
        self.enabled = enabled
        self.boundary = boundary
        self.timer = TimingResult(step=f"operation:{operation.name}")
        container = operation.container
        self.fields: dict[str, Any] = {
            "container": container.name if container is not None else None,
            "operation": operation.name,
            "operation_path": operation.slug,
            "operation_description": operation.description,
        }

    def start(self, input: Any, context: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        if self.boundary:
            log.debug(BOUNDARY)
        log.info(
            "operation.start",
            **self.fields,
            input=input,
            context_keys=_context_keys(context),
        )

    def handler_missing(self) -> None:
        if not self.enabled:
            return
        log.error(
            "operation.handler_missing",
            **self.fields,
            error="No handler defined",
            **self._duration(),
        )
        self._close()

    def success(self, input: Any, output: Any, context: Mapping[str, Any], *, formatted: bool) -> None:
        if not self.enabled:
            return
        log.info(
            "operation.formatted_output" if formatted else "operation.success",
            **self.fields,
            input=input,
            output=output,
            context_keys=_context_keys(context),
            **self._duration(),
        )
        self._close()

    def short_circuited(self, output: Any, context: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        log.info(
            "operation.short_circuited",
            **self.fields,
            output=output,
            context_keys=_context_keys(context),
            **self._duration(),
        )
        self._close()

    def formatted_error(self, input: Any, error: BaseException, output: Any, context: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        log.error(
            "operation.formatted_error",
            **self.fields,
            input=input,
            error=str(error),
            error_type=type(error).__name__,
            formatted_output=output,
            context_keys=_context_keys(context),
            **self._duration(),
        )
        self._close()

    def error(self, input: Any, error: BaseException, context: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        self.timer.set_error(error)
        log.error(
            "operation.error",
            **self.fields,
            input=input,
            error=str(error),
            error_type=type(error).__name__,
            stack=self.timer.error_info["error_stack"] if self.timer.error_info else None,
            context_keys=_context_keys(context),
            **self._duration(),
        )
        self._close()

    def _duration(self) -> dict[str, Any]:
        self.timer.stop()
        return {"duration_ms": round(self.timer.duration_ms, 2)}

    def _close(self) -> None:
        if self.boundary:
            log.debug(BOUNDARY)


class ContainerTracer:
    """Events emitted by a container while resolving and dispatching."""

    def __init__(self, container: Container, *, enabled: bool):
        self.enabled = enabled
        self.timer = TimingResult(step=f"container:{container.name}")
        self.fields: dict[str, Any] = {
            "container": container.name,
            "container_description": container.description,
        }

    def run(self, name: str, root_context: Mapping[str, Any]) -> None:
        if not self.enabled:
            return
        log.info(
            "container.run",
            **self.fields,
            route=name,
            context_keys=_context_keys(root_context),
        )

    def not_found(self, name: str) -> None:
        if not self.enabled:
            return
        log.error("container.operation_not_found", **self.fields, route=name, **self._duration())

    def tool_call_start(self, function_name: str, args: Any) -> None:
        if not self.enabled:
            return
        log.debug(BOUNDARY)
        log.info("tool_call.start", **self.fields, function=function_name, input=args)

    def tool_call_complete(self, function_name: str, slug: str, args: Any, output: Any) -> None:
        if not self.enabled:
            return
        log.info(
            "tool_call.complete",
            **self.fields,
            function=function_name,
            route=slug,
            input=args,
            output=output,
            **self._duration(),
        )
        log.debug(BOUNDARY)

    def tool_call_failed(self, function_name: str, slug: str, args: Any, error: BaseException) -> None:
        if not self.enabled:
            return
        log.error(
            "tool_call.error",
            **self.fields,
            function=function_name,
            route=slug,
            input=args,
            error=str(error),
            error_type=type(error).__name__,
            **self._duration(),
        )
        log.debug(BOUNDARY)

    def tool_call_unhandled(self, function_name: str, args: Any) -> None:
        if not self.enabled:
            return
        log.warning(
            "tool_call.unhandled",
            **self.fields,
            function=function_name,
            input=args,
            **self._duration(),
        )
        log.debug(BOUNDARY)

    def _duration(self) -> dict[str, Any]:
        self.timer.stop()
        return {"duration_ms": round(self.timer.duration_ms, 2)}
