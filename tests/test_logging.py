"""
Tests for the logging module.

Tests verify:
- Log context carries invocation identity and restores on exit
- Timing blocks open child spans and record errors
- configure_logging respects settings and is idempotent
"""

import asyncio
import json
import logging

import pytest
import structlog

from openkit.logging import (
    LogContext,
    TimingResult,
    add_context_processor,
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    is_configured,
    is_debug_enabled,
    new_invocation_id,
    push_context,
    set_context,
    timed_block,
)


class TestLogContext:
    """Test LogContext dataclass."""

    def test_to_dict_excludes_none(self):
        ctx = LogContext(invocation_id="abc", container=None)
        assert ctx.to_dict() == {"invocation_id": "abc"}

    def test_merge_creates_new_context(self):
        ctx1 = LogContext(invocation_id="abc")
        ctx2 = ctx1.merge(operation="Echo", unknown="ignored")

        assert ctx1.operation is None
        assert ctx2.invocation_id == "abc"
        assert ctx2.operation == "Echo"


class TestContextManagement:
    """Test context set/get/clear operations."""

    def test_set_replaces(self):
        set_context(invocation_id="one", container="Tools")
        set_context(operation="Echo")

        assert get_context().container is None
        assert get_context().operation == "Echo"

    def test_bind_merges(self):
        set_context(invocation_id="one")
        bind_context(tool_call_id="call_1")

        assert get_context().to_dict() == {"invocation_id": "one", "tool_call_id": "call_1"}

    def test_clear_resets(self):
        set_context(invocation_id="one")
        clear_context()
        assert get_context().invocation_id is None

    def test_push_and_restore(self):
        set_context(container="Tools")
        token = push_context(operation="Echo")
        assert get_context().to_dict() == {"container": "Tools", "operation": "Echo"}

        token.restore()
        assert get_context().to_dict() == {"container": "Tools"}

    def test_new_invocation_id_is_unique(self):
        assert new_invocation_id() != new_invocation_id()

    def test_context_processor_keeps_explicit_keys(self):
        set_context(operation="Echo", tool_call_id="call_1")

        event = add_context_processor(None, "info", {"event": "x", "operation": "Override"})

        assert event == {"event": "x", "operation": "Override", "tool_call_id": "call_1"}

    @pytest.mark.asyncio
    async def test_concurrent_tasks_isolated(self):
        async def worker(name):
            token = push_context(tool_call_id=name)
            try:
                await asyncio.sleep(0)
                return get_context().tool_call_id
            finally:
                token.restore()

        assert await asyncio.gather(worker("a"), worker("b")) == ["a", "b"]


class TestTiming:
    """Test TimingResult and timed_block."""

    def test_timing_result_log_dict(self):
        timer = TimingResult(step="x", parent_span_id="parent").add_metric("rows", 3).stop()
        data = timer.to_log_dict()

        assert data["rows"] == 3
        assert data["parent_span_id"] == "parent"
        assert data["duration_ms"] >= 0

    def test_timed_block_pushes_span(self):
        with timed_block("outer") as outer:
            assert get_context().span_id == outer.span_id
            with timed_block("inner") as inner:
                assert inner.parent_span_id == outer.span_id
                assert get_context().parent_span_id == outer.span_id

        assert get_context().span_id is None
        assert outer.ended_at is not None

    def test_timed_block_records_error(self):
        with pytest.raises(KeyError), timed_block("failing") as timer:
            raise KeyError("missing")

        data = timer.to_error_dict()
        assert data["status"] == "error"
        assert data["error_type"] == "KeyError"


class TestConfigureLogging:
    """Test configure_logging()."""

    def test_idempotent_unless_forced(self):
        configure_logging(level="WARNING")
        assert is_configured()
        assert not is_debug_enabled()

        configure_logging(level="DEBUG")
        assert not is_debug_enabled()

        configure_logging(level="DEBUG", force=True)
        assert is_debug_enabled()

    def test_level_from_settings(self, monkeypatch):
        monkeypatch.setenv("OPENKIT_LOG_LEVEL", "error")
        configure_logging()

        assert logging.getLogger("openkit").level == logging.ERROR

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging(level="LOUD", force=True)

        assert not is_configured()

    def test_json_output_includes_context(self, capsys):
        configure_logging(level="INFO", format="json", force=True)
        set_context(operation="Echo")

        structlog.get_logger("openkit.test").info("operation.start", input={"a": 1})

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "operation.start"
        assert record["operation"] == "Echo"
        assert record["level"] == "info"
