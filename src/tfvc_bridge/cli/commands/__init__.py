"""CLI command modules for tfvc-bridge."""

from __future__ import annotations

import typer

from . import config_cmd, conflicts, files, workspace


def register_commands(app: typer.Typer) -> None:
    """Attach every command and sub-app to the root application."""
    app.add_typer(workspace.app, name="workspace")
    app.add_typer(conflicts.app, name="conflicts")
    app.add_typer(config_cmd.app, name="config")

    app.command("sync")(workspace.sync_command)
    app.command("status")(workspace.status_command)
    app.command("history")(files.history_command)
    app.command("download")(files.download_command)
    app.command("rename")(files.rename_command)
    app.command("undo")(files.undo_command)
    app.command("add")(files.add_command)
    app.command("label")(files.label_command)


__all__ = ["register_commands"]
