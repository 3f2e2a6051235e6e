"""
CLI utility helpers: target loading and output formatting.
"""

from __future__ import annotations

import importlib
import importlib.util
import sys
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from openkit.adapters.models import ToolDefinition
from openkit.adapters.openai import OpenAIAdapter
from openkit.settings import OpenKitSettings

console = Console()
err_console = Console(stderr=True)


# ── Target loading ───────────────────────────────────────────────────────


def load_target(target: str) -> Any:
    """
    Import the object named by ``module:attr`` or ``path/to/file.py:attr``.

    The attribute may be dotted (``module:kit.tools``).
    """
    location, sep, attr = target.rpartition(":")
    if not sep or not location or not attr:
        raise typer.BadParameter(f"Expected 'module:attr' or 'file.py:attr', got {target!r}")

    if location.endswith(".py"):
        path = Path(location).resolve()
        if not path.is_file():
            raise typer.BadParameter(f"File not found: {location}")
        module_name = f"_openkit_target_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise typer.BadParameter(f"Cannot import {location}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
    else:
        module = importlib.import_module(location)

    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise typer.BadParameter(f"{location} has no attribute {attr!r}") from e
    return obj


def as_adapter(obj: Any, settings: OpenKitSettings | None = None) -> OpenAIAdapter:
    """Wrap a container, operation or list of them in an adapter."""
    if isinstance(obj, OpenAIAdapter):
        return obj
    if isinstance(obj, list | tuple):
        return OpenAIAdapter(obj, settings=settings)
    if getattr(obj, "kind", None) is not None:
        return OpenAIAdapter([obj], settings=settings)
    raise typer.BadParameter(
        f"Target must be an adapter, container, operation or a list of them, got {type(obj).__name__}"
    )


# ── Output helpers ───────────────────────────────────────────────────────


def print_tools(tools: list[dict[str, Any]], *, title: str = "") -> None:
    """Render function definitions as a Rich table."""
    if not tools:
        console.print("[dim]No functions.[/dim]")
        return

    table = Table(title=title or None, show_lines=False, pad_edge=False)
    table.add_column("Function", style="cyan", overflow="fold")
    table.add_column("Description", overflow="fold")
    table.add_column("Parameters", overflow="fold")
    for entry in tools:
        definition = ToolDefinition.model_validate(entry).function
        properties = definition.parameters.get("properties", {})
        required = set(definition.parameters.get("required", []))
        params = ", ".join(f"{name}*" if name in required else name for name in properties)
        table.add_row(definition.name, definition.description, params or "-")
    console.print(table)


def fail(message: str) -> NoReturn:
    """Print an error to stderr and exit with code 1."""
    err_console.print(f"[bold red]Error[/bold red]: {escape(message)}")
    raise typer.Exit(code=1)
