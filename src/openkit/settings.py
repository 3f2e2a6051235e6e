"""Runtime settings for openkit.

Configuration is optional: every value has a working default and the builder
API accepts explicit arguments that win over settings.  Settings exist so a
deployment can flip debug tracing, log rendering or the tool-call batch policy
from the environment without touching code.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked when loaded
    - **Environment-driven:** ``OPENKIT_*`` variables and ``.env`` files
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from openkit.settings import OpenKitSettings
    >>> OpenKitSettings(batch_mode="concurrent").batch_mode
    <BatchMode.CONCURRENT: 'concurrent'>

Tags:
    settings, configuration, pydantic, environment, openkit

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BatchMode(str, Enum):
    """How the adapter walks the tool calls of one assistant message."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class OpenKitSettings(BaseSettings):
    """openkit configuration.

    Fields
    ──────
    debug        : Trace every container and operation created while it is on
    log_level    : Structlog log level
    log_format   : ``console`` for development, ``json`` for aggregation
    batch_mode   : Tool-call batch policy for the protocol adapter
    error_prefix : Prefix of tool-response content for failed calls
    """

    model_config = SettingsConfigDict(
        env_prefix="OPENKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")

    # ── Protocol adapter ─────────────────────────────────────────
    batch_mode: BatchMode = Field(
        default=BatchMode.SEQUENTIAL,
        description="Sequential keeps side effects of one batch in call order",
    )
    error_prefix: str = Field(default="Error: ")

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, OpenKitSettings] = {}


def get_settings(*, _force_reload: bool = False) -> OpenKitSettings:
    """Load, validate, and cache an :class:`OpenKitSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = OpenKitSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Drop the cached settings (for testing)."""
    _settings_cache.clear()
