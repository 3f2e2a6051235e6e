"""
Wire models for OpenAI-style tool calling.

Only the fields openkit reads or writes are modelled.  Unknown keys sent by
a client (``index``, ``refusal``, ``logprobs``, ...) are ignored so any chat
completion payload can be fed to the adapter as-is.

Doc-Types: API_REFERENCE
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# ── Function definitions (openkit → model) ──────────────────────────────


class FunctionDefinition(_WireModel):
    """One callable function advertised to the model."""

    name: str = Field(description="Protocol function name, '{container_slug}-{operation_slug}'")
    description: str = Field(default="")
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        description="JSON Schema object describing the arguments",
    )


class ToolDefinition(_WireModel):
    type: Literal["function"] = "function"
    function: FunctionDefinition


# ── Tool calls (model → openkit) ────────────────────────────────────────


class FunctionCall(_WireModel):
    name: str
    arguments: str | dict[str, Any] = Field(
        default="",
        description="JSON-encoded argument object; some clients send it decoded",
    )


class ToolCall(_WireModel):
    id: str
    type: str = "function"
    function: FunctionCall

    @field_validator("id", mode="before")
    @classmethod
    def _numeric_id(cls, value: Any) -> Any:
        # some clients number their calls; the id is echoed back as a string
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class AssistantMessage(_WireModel):
    """Assistant turn; ``tool_calls`` stay raw so one bad call cannot hide the rest."""

    role: str = "assistant"
    content: Any = None
    tool_calls: list[Any] | None = None


class Choice(_WireModel):
    index: int = 0
    message: AssistantMessage | None = None


class ChatCompletion(_WireModel):
    id: str | None = None
    choices: list[Choice] = Field(default_factory=list)


# ── Tool responses (openkit → model) ────────────────────────────────────


class ToolMessage(_WireModel):
    """Answer to one tool call, in call order."""

    role: Literal["tool"] = "tool"
    tool_call_id: str
    content: str
