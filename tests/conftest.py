"""
Shared pytest fixtures and configuration for openkit tests.

This module provides:
- Global state reset (structlog, settings cache, log context) for test isolation
- Sample schemas and operations used across test modules

Usage:
    Fixtures are auto-discovered by pytest.  Use them as function arguments:

    async def test_something(echo_container):
        ...
"""

import logging
import sys
from pathlib import Path

import pytest
import structlog
from pydantic import BaseModel, EmailStr, Field

# Ensure openkit package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import openkit.logging.config as logging_config
from openkit import Container, Operation
from openkit.logging import clear_context
from openkit.settings import clear_settings_cache


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_global_state(monkeypatch):
    """Reset structlog, settings and log context around every test."""
    for key in ("OPENKIT_DEBUG", "OPENKIT_LOG_LEVEL", "OPENKIT_LOG_FORMAT", "OPENKIT_BATCH_MODE", "OPENKIT_ERROR_PREFIX"):
        monkeypatch.delenv(key, raising=False)
    root_handlers = list(logging.getLogger().handlers)
    root_level = logging.getLogger().level

    structlog.reset_defaults()
    clear_settings_cache()
    clear_context()
    logging_config._configured = False

    yield

    structlog.reset_defaults()
    clear_settings_cache()
    clear_context()
    logging_config._configured = False
    logging.getLogger().handlers[:] = root_handlers
    logging.getLogger().setLevel(root_level)


# =============================================================================
# Schemas
# =============================================================================


class Message(BaseModel):
    message: str = Field(description="Text to echo back")


class Numbers(BaseModel):
    a: float = Field(description="First operand")
    b: float = Field(description="Second operand")


class Sum(BaseModel):
    result: float


class Signup(BaseModel):
    email: EmailStr
    name: str


@pytest.fixture
def message_schema():
    return Message


@pytest.fixture
def signup_schema():
    return Signup


# =============================================================================
# Definitions
# =============================================================================


@pytest.fixture
def echo_container() -> Container:
    """Container "Echo" with one operation "Message" → function "echo-message"."""
    container = Container("Echo", "Echo tools")
    container.route("Message", "Echo a message").input(Message).handler(
        lambda input, context: {"echo": input.message}
    )
    return container


@pytest.fixture
def calculator_container() -> Container:
    """Container "Calculator" with async "Add" and sync "Multiply"."""
    container = Container("Calculator", "Arithmetic")

    async def add(input, context):
        return {"result": input.a + input.b}

    container.route("Add", "Add two numbers").input(Numbers).output(Sum).handler(add)
    container.route("Multiply", "Multiply two numbers").input(Numbers).output(Sum).handler(
        lambda input, context: {"result": input.a * input.b}
    )
    return container


@pytest.fixture
def ping_operation() -> Operation:
    """Standalone operation with no input schema."""
    return Operation("Ping", "Health check").handler(lambda input, context: "pong")
