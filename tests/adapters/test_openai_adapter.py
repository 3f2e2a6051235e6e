"""
Tests for the OpenAI tool-calling adapter.

Tests verify:
- tools() concatenates definitions in container order
- handler() answers every tool call, in call order
- per-call failures become "Error: ..." content without aborting siblings
"""

import asyncio
import json

import pytest

from openkit import BatchMode, Container, OpenAIAdapter, Operation, ToolCallError
from openkit.adapters import decode_arguments
from openkit.settings import OpenKitSettings


def tool_call(call_id: str, name: str, arguments="{}") -> dict:
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": arguments}}


def assistant(*calls) -> dict:
    return {"role": "assistant", "content": None, "tool_calls": list(calls)}


class _SdkObject:
    """Stand-in for an SDK response object exposing model_dump()."""

    def __init__(self, data):
        self._data = data

    def model_dump(self):
        return self._data


class TestDecodeArguments:
    """Test tool call argument decoding."""

    def test_json_object(self):
        assert decode_arguments('{"a": 1}') == {"a": 1}

    @pytest.mark.parametrize("empty", ["", "   ", None])
    def test_empty_means_no_arguments(self, empty):
        assert decode_arguments(empty) == {}

    def test_already_decoded_mapping(self):
        assert decode_arguments({"a": 1}) == {"a": 1}

    def test_invalid_json(self):
        with pytest.raises(ToolCallError, match="Invalid JSON"):
            decode_arguments("{not json")

    def test_non_object(self):
        with pytest.raises(ToolCallError, match="must be a JSON object"):
            decode_arguments("[1, 2]")


class TestTools:
    """Test function definition aggregation."""

    def test_container_order_then_operation_order(self, echo_container, calculator_container):
        adapter = OpenAIAdapter([calculator_container, echo_container])

        names = [t["function"]["name"] for t in adapter.tools()]

        assert names == ["calculator-add", "calculator-multiply", "echo-message"]

    def test_standalone_operation_wrapped(self, ping_operation):
        adapter = OpenAIAdapter([ping_operation])

        assert [t["function"]["name"] for t in adapter.tools()] == ["ping-ping"]
        assert adapter.containers[0].name == "Ping"

    def test_rejects_unknown_entries(self):
        with pytest.raises(TypeError):
            OpenAIAdapter([object()])

    def test_batch_mode_default_from_settings(self):
        adapter = OpenAIAdapter([], settings=OpenKitSettings(batch_mode="concurrent"))
        assert adapter.batch_mode is BatchMode.CONCURRENT

    def test_batch_mode_argument_wins(self):
        adapter = OpenAIAdapter([], batch_mode="sequential", settings=OpenKitSettings(batch_mode="concurrent"))
        assert adapter.batch_mode is BatchMode.SEQUENTIAL


class TestHandler:
    """Test tool call dispatch and response construction."""

    @pytest.mark.asyncio
    async def test_echo_round_trip(self, echo_container):
        adapter = OpenAIAdapter([echo_container])

        responses = await adapter.handler(
            message=assistant(tool_call("call_1", "echo-message", '{"message": "hi"}'))
        )

        assert responses == [
            {"role": "tool", "tool_call_id": "call_1", "content": json.dumps({"echo": "hi"})},
        ]

    @pytest.mark.asyncio
    async def test_chat_completion_first_choice(self, echo_container):
        adapter = OpenAIAdapter([echo_container])
        completion = {
            "id": "chatcmpl-1",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "tool_calls",
                    "message": assistant(tool_call("call_1", "echo-message", '{"message": "yo"}')),
                }
            ],
        }

        [response] = await adapter.handler(chat_completion=completion)

        assert json.loads(response["content"]) == {"echo": "yo"}

    @pytest.mark.asyncio
    async def test_sdk_objects_accepted(self, echo_container):
        adapter = OpenAIAdapter([echo_container])
        message = _SdkObject(assistant(tool_call("call_1", "echo-message", '{"message": "sdk"}')))

        [response] = await adapter.handler(message=message)

        assert json.loads(response["content"]) == {"echo": "sdk"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message",
        [None, {"role": "assistant", "content": "hello"}, {"role": "assistant", "tool_calls": []}],
    )
    async def test_no_tool_calls(self, echo_container, message):
        assert await OpenAIAdapter([echo_container]).handler(message=message) == []

    @pytest.mark.asyncio
    async def test_empty_chat_completion(self, echo_container):
        assert await OpenAIAdapter([echo_container]).handler(chat_completion={"choices": []}) == []

    @pytest.mark.asyncio
    async def test_choice_without_message(self, echo_container):
        completion = {"choices": [{"index": 0, "finish_reason": "stop"}]}

        assert await OpenAIAdapter([echo_container]).handler(chat_completion=completion) == []

    @pytest.mark.asyncio
    async def test_malformed_chat_completion(self, echo_container):
        completion = {"choices": "not a list"}

        assert await OpenAIAdapter([echo_container]).handler(chat_completion=completion) == []

    @pytest.mark.asyncio
    async def test_integer_call_id_echoed(self, echo_container):
        adapter = OpenAIAdapter([echo_container])
        call = {"id": 7, "type": "function", "function": {"name": "echo-message", "arguments": '{"message": "n"}'}}

        [response] = await adapter.handler(message=assistant(call))

        assert response["tool_call_id"] == "7"
        assert json.loads(response["content"]) == {"echo": "n"}

    @pytest.mark.asyncio
    async def test_unknown_function_error_entry(self, echo_container):
        adapter = OpenAIAdapter([echo_container])

        [response] = await adapter.handler(message=assistant(tool_call("call_9", "nope-nothing")))

        assert response["tool_call_id"] == "call_9"
        assert response["content"].startswith("Error: ")
        assert "nope-nothing" in response["content"]

    @pytest.mark.asyncio
    async def test_failures_do_not_abort_siblings(self, echo_container, calculator_container):
        adapter = OpenAIAdapter([echo_container, calculator_container])

        responses = await adapter.handler(
            message=assistant(
                tool_call("call_1", "echo-message", "{broken"),
                tool_call("call_2", "calculator-add", '{"a": 2, "b": 3}'),
                tool_call("call_3", "echo-message", '{"wrong": 1}'),
                {"id": "call_4", "type": "function"},
            )
        )

        assert [r["tool_call_id"] for r in responses] == ["call_1", "call_2", "call_3", "call_4"]
        assert responses[0]["content"].startswith("Error: Invalid JSON")
        assert json.loads(responses[1]["content"]) == {"result": 5.0}
        assert 'Invalid input for operation "Message"' in responses[2]["content"]
        assert responses[3]["content"].startswith("Error: Malformed tool call")

    @pytest.mark.asyncio
    async def test_formatted_handler_error_is_content(self):
        container = Container("Tools")

        def boom(input, context):
            raise RuntimeError("kaput")

        container.route("Boom").handler(boom)
        adapter = OpenAIAdapter([container])

        [response] = await adapter.handler(message=assistant(tool_call("call_1", "tools-boom")))

        content = json.loads(response["content"])
        assert content["error"] == "kaput"
        assert "RuntimeError" in content["details"]

    @pytest.mark.asyncio
    async def test_pydantic_results_serialized(self, calculator_container):
        adapter = OpenAIAdapter([calculator_container])

        [response] = await adapter.handler(
            message=assistant(tool_call("call_1", "calculator-multiply", '{"a": 2, "b": 4}'))
        )

        assert json.loads(response["content"]) == {"result": 8.0}

    @pytest.mark.asyncio
    async def test_custom_error_prefix(self, echo_container):
        adapter = OpenAIAdapter([echo_container], settings=OpenKitSettings(error_prefix="ERR "))

        [response] = await adapter.handler(message=assistant(tool_call("call_1", "missing-fn")))

        assert response["content"].startswith("ERR ")

    @pytest.mark.asyncio
    async def test_first_container_wins(self):
        first, second = Container("Tools"), Container("Tools")
        first.route("Who").handler(lambda i, c: "first")
        second.route("Who").handler(lambda i, c: "second")

        [response] = await OpenAIAdapter([first, second]).handler(
            message=assistant(tool_call("call_1", "tools-who"))
        )

        assert json.loads(response["content"]) == "first"

    @pytest.mark.asyncio
    async def test_call_unknown_raises(self, echo_container):
        from openkit import OperationNotFoundError

        with pytest.raises(OperationNotFoundError, match='No operation registered for function "x-y"'):
            await OpenAIAdapter([echo_container]).call("x-y", {})


class TestBatchMode:
    """Test sequential and concurrent dispatch of one batch."""

    @staticmethod
    def _slow_container(log: list[str]) -> Container:
        container = Container("Slow")

        async def work(input, context):
            log.append(f"start-{input['n']}")
            await asyncio.sleep(0.01 * (3 - input["n"]))
            log.append(f"end-{input['n']}")
            return input["n"]

        container.route("Work").handler(work)
        return container

    def _batch(self):
        return assistant(*(tool_call(f"call_{n}", "slow-work", json.dumps({"n": n})) for n in (1, 2)))

    @pytest.mark.asyncio
    async def test_sequential_runs_one_at_a_time(self):
        log: list[str] = []
        adapter = OpenAIAdapter([self._slow_container(log)], batch_mode=BatchMode.SEQUENTIAL)

        responses = await adapter.handler(message=self._batch())

        assert log == ["start-1", "end-1", "start-2", "end-2"]
        assert [r["content"] for r in responses] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_concurrent_keeps_call_order(self):
        log: list[str] = []
        adapter = OpenAIAdapter([self._slow_container(log)], batch_mode=BatchMode.CONCURRENT)

        responses = await adapter.handler(message=self._batch())

        assert log[:2] == ["start-1", "start-2"]
        assert [r["tool_call_id"] for r in responses] == ["call_1", "call_2"]
        assert [r["content"] for r in responses] == ["1", "2"]
