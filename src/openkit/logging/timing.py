"""
Timing utilities for invocation tracing.

- Context manager: with timed_block("step") as timer; timer.duration_ms
- Lightweight tracing with span_id/parent_span_id

Timer overhead is ~1μs (time.perf_counter); nothing is logged here, callers
decide what to emit with the collected numbers.
"""

import time
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from openkit.logging.context import get_context, push_context


def _generate_span_id() -> str:
    """Generate a short span ID (8 hex chars)."""
    return uuid.uuid4().hex[:8]


@dataclass
class TimingResult:
    """Result of a timed step with tracing support."""

    step: str
    span_id: str = field(default_factory=_generate_span_id)
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    status: str = "ok"  # ok, error
    error_info: dict[str, Any] | None = None

    def stop(self) -> "TimingResult":
        """Record end time."""
        self.ended_at = time.perf_counter()
        return self

    @property
    def duration_seconds(self) -> float:
        if self.ended_at is None:
            return time.perf_counter() - self.started_at
        return self.ended_at - self.started_at

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        """Add a metric to include in the log output."""
        self.metrics[key] = value
        return self

    def set_error(self, e: BaseException) -> "TimingResult":
        """Record error information."""
        self.status = "error"
        self.error_info = {
            "error_type": type(e).__name__,
            "error_message": str(e),
            "error_stack": "".join(traceback.format_exception(e)),
        }
        return self

    def to_log_dict(self) -> dict[str, Any]:
        """Convert to dict for logging."""
        result = {
            "duration_ms": round(self.duration_ms, 2),
            "span_id": self.span_id,
        }
        if self.parent_span_id:
            result["parent_span_id"] = self.parent_span_id
        result.update(self.metrics)
        return result

    def to_error_dict(self) -> dict[str, Any]:
        """Convert to dict for error logging."""
        result = self.to_log_dict()
        result["status"] = "error"
        if self.error_info:
            result.update(self.error_info)
        return result


@contextmanager
def timed_block(step: str = "unnamed") -> Iterator[TimingResult]:
    """
    Timing context manager that opens a child span.

    The span is pushed onto the log context for the duration of the block,
    so log entries emitted inside carry ``span_id``/``parent_span_id``.

    Usage:
        with timed_block("operation.run") as timer:
            result = await chain.execute(input)
            timer.add_metric("formatted", True)
        print(f"Took {timer.duration_ms}ms")
    """
    parent = get_context().span_id
    timer = TimingResult(step=step, parent_span_id=parent)
    token = push_context(span_id=timer.span_id, parent_span_id=parent)
    try:
        yield timer
    except BaseException as e:
        timer.set_error(e)
        raise
    finally:
        timer.stop()
        token.restore()
