"""
CLI: ``openkit config``: settings inspection.
"""

from __future__ import annotations

import json

import typer
from rich.table import Table

from openkit.cli.utils import console, fail
from openkit.settings import get_settings

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show effective settings (defaults, .env and OPENKIT_* variables)."""
    settings = get_settings()

    if as_json:
        typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))
        return

    table = Table(title="openkit settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Env var")
    table.add_column("Value")
    for key, value in settings.model_dump(mode="json").items():
        table.add_row(key, f"OPENKIT_{key.upper()}", repr(value))
    console.print(table)


@app.command("validate")
def validate_config() -> None:
    """Reload settings from the environment and report errors."""
    try:
        settings = get_settings(_force_reload=True)
    except ValueError as e:
        fail(f"Configuration error: {e}")

    console.print(f"[green]✓[/green] Settings valid (batch_mode={settings.batch_mode.value})")
