"""OpenAI tool-calling adapter.

Manifesto:
    The adapter is the only place openkit speaks a wire protocol.  It
    publishes every registered operation as a function definition and turns
    an assistant message's ``tool_calls`` into ``role="tool"`` responses,
    one per call, in call order.  A failing call becomes an error response;
    it never aborts its siblings.

Architecture:

    .. code-block:: text

        OpenAIAdapter([Container("Echo"), Operation("Ping")])
          │
          ├─ tools()            → [{"type": "function", "function": {...}}, ...]
          │
          └─ handler(message=…) → for each tool call
               ├─ decode arguments (JSON string → dict)
               ├─ containers[i].handle_tool_call(name, args)  until handled
               └─ {"role": "tool", "tool_call_id": id, "content": json}

Example:
    >>> adapter = OpenAIAdapter([echo_tools])
    >>> completion = client.chat.completions.create(..., tools=adapter.tools())
    >>> messages.extend(await adapter.handler(chat_completion=completion))

Tags:
    openkit, openai, tool-calling, adapter, protocol

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_jsonable_python

from openkit.adapters.models import ChatCompletion, ToolCall, ToolMessage
from openkit.container import UNHANDLED, Container
from openkit.errors import ErrorContext, OperationNotFoundError, ToolCallError
from openkit.logging import get_logger, push_context, timed_block
from openkit.operation import DefinitionKind, Operation
from openkit.settings import BatchMode, OpenKitSettings, get_settings

log = get_logger(__name__)


def decode_arguments(arguments: str | Mapping[str, Any] | None) -> dict[str, Any]:
    """
    Decode a tool call's argument string into a dict.

    An empty string means no arguments.  Clients that already decoded the
    arguments may pass the mapping itself.

    Raises:
        ToolCallError: If the string is not JSON or does not encode an object
    """
    if arguments is None:
        return {}
    if isinstance(arguments, Mapping):
        return dict(arguments)
    if not arguments.strip():
        return {}
    try:
        decoded = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise ToolCallError(f"Invalid JSON in tool call arguments: {e}", cause=e) from e
    if not isinstance(decoded, dict):
        raise ToolCallError(f"Tool call arguments must be a JSON object, got {type(decoded).__name__}")
    return decoded


def _as_mapping(value: Any) -> Any:
    """Plain data for dicts and for SDK objects exposing ``model_dump()``."""
    if value is None or isinstance(value, Mapping):
        return value
    model_dump = getattr(value, "model_dump", None)
    if callable(model_dump):
        return model_dump()
    return value


def _best_effort_id(raw_call: Any) -> str:
    if isinstance(raw_call, Mapping):
        call_id = raw_call.get("id")
        if call_id is not None:
            return str(call_id)
    return ""


class OpenAIAdapter:
    """
    Bridges openkit containers to OpenAI-style tool calling.

    Args:
        entries: Containers and/or standalone operations; a standalone
            operation is exposed through an implicit single-operation
            container named after it
        batch_mode: Sequential (default) or concurrent dispatch of the calls
            in one assistant message; responses keep call order either way
        settings: Overrides the cached ``OpenKitSettings``
    """

    def __init__(
        self,
        entries: Iterable[Container | Operation] = (),
        *,
        batch_mode: BatchMode | str | None = None,
        settings: OpenKitSettings | None = None,
    ):
        self.settings = settings or get_settings()
        self.batch_mode = BatchMode(batch_mode) if batch_mode is not None else self.settings.batch_mode
        self._containers: list[Container] = []
        for entry in entries:
            kind = getattr(entry, "kind", None)
            if kind is DefinitionKind.CONTAINER:
                self._containers.append(entry)
            elif kind is DefinitionKind.OPERATION:
                self._containers.append(Container.wrap(entry))
            else:
                raise TypeError(f"Expected a Container or Operation, got {type(entry).__name__}")

    @property
    def containers(self) -> list[Container]:
        return list(self._containers)

    def tools(self) -> list[dict[str, Any]]:
        """Function definitions of every operation, container order then operation order."""
        definitions: list[dict[str, Any]] = []
        for container in self._containers:
            definitions.extend(container.get_openai_functions())
        return definitions

    async def call(self, function_name: str, args: Any) -> Any:
        """
        Dispatch one decoded call to the first container that handles it.

        Raises:
            OperationNotFoundError: If no container handles ``function_name``
        """
        for container in self._containers:
            result = await container.handle_tool_call(function_name, args)
            if result is not UNHANDLED:
                return result
        raise OperationNotFoundError(
            function_name,
            available=[f["function"]["name"] for f in self.tools()],
            message=f'No operation registered for function "{function_name}"',
            context=ErrorContext(function_name=function_name),
        )

    async def handler(
        self,
        message: Any = None,
        chat_completion: Any = None,
    ) -> list[dict[str, Any]]:
        """
        Answer every tool call in an assistant message.

        Pass either ``message`` (the assistant message) or ``chat_completion``
        (its first choice's message is used).  Dicts and SDK objects with
        ``model_dump()`` are both accepted.

        Returns:
            ``[{"role": "tool", "tool_call_id": ..., "content": ...}, ...]``,
            empty when the message carries no tool calls
        """
        if message is None and chat_completion is not None:
            try:
                completion = ChatCompletion.model_validate(_as_mapping(chat_completion))
            except PydanticValidationError as e:
                log.warning("chat_completion.malformed", error=str(e))
                return []
            if not completion.choices or completion.choices[0].message is None:
                return []
            message = completion.choices[0].message.model_dump()

        message = _as_mapping(message)
        if not message:
            return []
        tool_calls = message.get("tool_calls") if isinstance(message, Mapping) else None
        if not tool_calls:
            return []

        raw_calls = [_as_mapping(call) for call in tool_calls]
        if self.batch_mode is BatchMode.CONCURRENT:
            responses = await asyncio.gather(*(self._dispatch(call) for call in raw_calls))
        else:
            responses = [await self._dispatch(call) for call in raw_calls]
        return [response.model_dump() for response in responses]

    async def _dispatch(self, raw_call: Any) -> ToolMessage:
        try:
            tool_call = ToolCall.model_validate(raw_call)
        except PydanticValidationError as e:
            error = ToolCallError(f"Malformed tool call: {e}", cause=e)
            log.warning("tool_call.malformed", error=str(error))
            return self._error_response(_best_effort_id(raw_call), error)

        token = push_context(function_name=tool_call.function.name, tool_call_id=tool_call.id)
        timer = None
        try:
            with timed_block("tool_call") as timer:
                args = decode_arguments(tool_call.function.arguments)
                result = await self.call(tool_call.function.name, args)
                content = json.dumps(to_jsonable_python(result))
        except Exception as e:
            log.warning(
                "tool_call.failed",
                error=str(e),
                error_type=type(e).__name__,
                **(timer.to_log_dict() if timer else {}),
            )
            return self._error_response(tool_call.id, e)
        finally:
            token.restore()

        log.debug("tool_call.dispatched", **timer.to_log_dict())
        return ToolMessage(tool_call_id=tool_call.id, content=content)

    def _error_response(self, tool_call_id: str, error: Exception) -> ToolMessage:
        return ToolMessage(tool_call_id=tool_call_id, content=f"{self.settings.error_prefix}{error}")

    def __repr__(self) -> str:
        names = ", ".join(container.name for container in self._containers)
        return f"OpenAIAdapter([{names}], batch_mode={self.batch_mode.value})"
