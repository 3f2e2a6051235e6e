"""Protocol adapters that expose openkit operations to function-calling clients."""

from openkit.adapters.models import (
    AssistantMessage,
    ChatCompletion,
    FunctionCall,
    FunctionDefinition,
    ToolCall,
    ToolDefinition,
    ToolMessage,
)
from openkit.adapters.openai import OpenAIAdapter, decode_arguments

__all__ = [
    "OpenAIAdapter",
    "decode_arguments",
    "AssistantMessage",
    "ChatCompletion",
    "FunctionCall",
    "FunctionDefinition",
    "ToolCall",
    "ToolDefinition",
    "ToolMessage",
]
