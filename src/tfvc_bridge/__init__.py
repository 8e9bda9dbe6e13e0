"""
tfvc-bridge
===========

Drive a Team Foundation Version Control client from Python: workspaces,
history, pending changes and interactive conflict resolution.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from tfvc_bridge.cli.commands import register_commands

__version__ = "0.1.0"

console = Console()

app = typer.Typer(
    name="tfvc-bridge",
    help="Command-line bridge to the TFVC tool",
    add_completion=False,
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"tfvc-bridge {__version__}")
        raise typer.Exit()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log tool invocations and orchestration steps"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """Configure logging before any command runs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
            force=True,
        )


register_commands(app)


def main():
    app()


if __name__ == "__main__":
    main()
