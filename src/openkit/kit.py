"""Composition root for openkit definitions.

``OpenKit`` is a plain factory object: build one per application (or use
the module-level ``openkit`` instance) and create containers, standalone
operations and adapters from it.  It holds settings, nothing else, so two
kits never share state.

Example:
    >>> from openkit import openkit
    >>> tools = openkit.app("Echo", "Echo tools")
    >>> tools.route("Message").input(Message).handler(echo)
    >>> adapter = openkit.openai([tools])
"""

from __future__ import annotations

from collections.abc import Iterable

from openkit.adapters.openai import OpenAIAdapter
from openkit.container import Container
from openkit.operation import Operation
from openkit.settings import BatchMode, OpenKitSettings, get_settings


class OpenKit:
    """Factory for containers, operations and protocol adapters."""

    def __init__(self, settings: OpenKitSettings | None = None):
        self._settings = settings

    @property
    def settings(self) -> OpenKitSettings:
        return self._settings or get_settings()

    def app(self, name: str, description: str = "") -> Container:
        """New container; traced when ``settings.debug`` is on."""
        return Container(name, description, debug=self.settings.debug)

    tool = app

    def operation(self, name: str, description: str = "", path: str | None = None) -> Operation:
        """New standalone operation, invocable without any container."""
        return Operation(name, description, path, debug=self.settings.debug)

    def openai(
        self,
        entries: Iterable[Container | Operation],
        *,
        batch_mode: BatchMode | str | None = None,
    ) -> OpenAIAdapter:
        return OpenAIAdapter(entries, batch_mode=batch_mode, settings=self.settings)


openkit = OpenKit()
