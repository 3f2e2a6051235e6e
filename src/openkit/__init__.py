"""
openkit - declarative operations exposed as OpenAI tools.

Build containers of named operations, each with its own input/output
schemas, middleware chain, handler and response formatter, then hand them
to a protocol adapter that answers a model's tool calls.

    from pydantic import BaseModel
    from openkit import openkit

    class Message(BaseModel):
        message: str

    echo = openkit.app("Echo", "Echo tools")
    echo.route("Message", "Echo a message").input(Message).handler(
        lambda input, context: {"echo": input.message}
    )

    adapter = openkit.openai([echo])
    adapter.tools()                      # function definitions
    await adapter.handler(message=msg)   # tool responses
"""

__version__ = "0.1.0"

from openkit.adapters import OpenAIAdapter, decode_arguments
from openkit.chain import ChainState, MiddlewareChain
from openkit.container import UNHANDLED, Container
from openkit.context import FROM_TOOL_CALL, Context, merge_context
from openkit.errors import (
    ChainError,
    ErrorCategory,
    ErrorContext,
    HandlerNotDefinedError,
    OpenKitError,
    OperationNotFoundError,
    SchemaError,
    ToolCallError,
    ValidationError,
)
from openkit.formatting import ResponseFormatter, default_formatter
from openkit.kit import OpenKit, openkit
from openkit.operation import BoundOperation, DefinitionKind, Operation, slugify
from openkit.schema import Schema, to_parameter_schema, validate
from openkit.settings import BatchMode, OpenKitSettings, get_settings

__all__ = [
    "__version__",
    # Factory
    "OpenKit",
    "openkit",
    # Definitions
    "Operation",
    "BoundOperation",
    "Container",
    "DefinitionKind",
    "UNHANDLED",
    "slugify",
    # Execution
    "Context",
    "FROM_TOOL_CALL",
    "merge_context",
    "MiddlewareChain",
    "ChainState",
    "ResponseFormatter",
    "default_formatter",
    # Schemas
    "Schema",
    "validate",
    "to_parameter_schema",
    # Protocol
    "OpenAIAdapter",
    "decode_arguments",
    # Settings
    "BatchMode",
    "OpenKitSettings",
    "get_settings",
    # Errors
    "OpenKitError",
    "ErrorCategory",
    "ErrorContext",
    "ValidationError",
    "SchemaError",
    "HandlerNotDefinedError",
    "OperationNotFoundError",
    "ToolCallError",
    "ChainError",
]
