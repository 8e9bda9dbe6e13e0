"""``tfvc-bridge config`` commands for the project tool settings."""

from __future__ import annotations

import os

import typer
from rich.table import Table

from tfvc_bridge.cli.helpers import console, run_or_exit
from tfvc_bridge.config import (
    PASSWORD_ENV_VAR,
    TOOL_ENV_VAR,
    find_project_root,
    load_config,
    save_config,
)

app = typer.Typer(help="Show or change the project tool settings")


@app.command("show")
def show_command() -> None:
    """Display the resolved tool settings for this project."""

    def _run() -> None:
        root = find_project_root()
        config = load_config(root)

        table = Table(title=f"Tool settings ({root})")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="bold")
        table.add_column("Source", style="magenta")

        for key, value in config.to_dict().items():
            table.add_row(key, "" if value is None else str(value), "config")

        if os.getenv(TOOL_ENV_VAR):
            table.add_row("executable", config.resolved_executable(), TOOL_ENV_VAR)
        password = "********" if os.getenv(PASSWORD_ENV_VAR) else "[dim]not set[/dim]"
        table.add_row("password", password, PASSWORD_ENV_VAR)
        console.print(table)

    run_or_exit(_run)


@app.command("set")
def set_command(
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="New value ('none' clears optional settings)"),
) -> None:
    """Change one tool setting and save it."""

    def _run() -> None:
        root = find_project_root()
        updated = load_config(root).with_value(key, value)
        save_config(root, updated)
        console.print(f"[green]Set[/green] {key} = {updated.to_dict()[key]}")

    run_or_exit(_run)
