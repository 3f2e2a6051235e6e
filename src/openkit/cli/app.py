"""
Root Typer application for the openkit CLI.

Inspect what a module exposes to function-calling models and dispatch
single tool calls against it, without a model in the loop.

    openkit tools examples/echo.py:tools
    openkit call examples/echo.py:tools echo-message --args '{"message": "hi"}'
"""

from __future__ import annotations

import asyncio
import json
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

from openkit.cli.config import app as config_app
from openkit.cli.utils import as_adapter, fail, load_target, print_tools
from openkit.errors import OpenKitError
from openkit.logging import configure_logging
from openkit.settings import get_settings

app = Typer(
    name="openkit",
    help="openkit: declarative operations exposed as OpenAI tools.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("openkit")
        except PackageNotFoundError:
            from openkit import __version__ as v
        typer.echo(f"openkit {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Log level (overrides OPENKIT_LOG_LEVEL).",
    ),
) -> None:
    """openkit CLI: list and call the functions a module exposes."""
    try:
        configure_logging(level=log_level.upper() if log_level else None, force=True)
    except ValueError as e:
        fail(f"Configuration error: {e}")


# ── Commands ─────────────────────────────────────────────────────────────


def _load_adapter(target: str):
    try:
        return as_adapter(load_target(target), get_settings())
    except typer.BadParameter as e:
        fail(str(e))
    except (ImportError, TypeError) as e:
        fail(f"Cannot load {target}: {e}")


@app.command("tools")
def list_tools(
    target: str = typer.Argument(..., help="module:attr or path/to/file.py:attr"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the function definitions a target exposes."""
    adapter = _load_adapter(target)
    try:
        tools = adapter.tools()
    except OpenKitError as e:
        fail(str(e))

    if as_json:
        typer.echo(json.dumps(tools, indent=2))
        return
    print_tools(tools, title=target)


@app.command("call")
def call_tool(
    target: str = typer.Argument(..., help="module:attr or path/to/file.py:attr"),
    function: str = typer.Argument(..., help="Function name, e.g. echo-message"),
    args: str = typer.Option("{}", "--args", "-a", help="JSON-encoded arguments"),
    call_id: str = typer.Option("call_cli", "--id", help="Tool call id"),
) -> None:
    """Dispatch one tool call and print the tool response."""
    adapter = _load_adapter(target)
    message = {
        "role": "assistant",
        "tool_calls": [
            {"id": call_id, "type": "function", "function": {"name": function, "arguments": args}},
        ],
    }
    [response] = asyncio.run(adapter.handler(message=message))

    try:
        json.loads(response["content"])
    except json.JSONDecodeError:
        fail(response["content"])

    typer.echo(json.dumps(response, indent=2))


# ── Sub-command registration ─────────────────────────────────────────────

app.add_typer(config_app, name="config", help="Settings inspection.")
