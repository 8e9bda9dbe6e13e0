"""Workspace commands: inspect, edit mappings, sync and pending status."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import typer
from rich.live import Live
from rich.table import Table

from tfvc_bridge.cli.helpers import Session, console, open_session, run_or_exit
from tfvc_bridge.cli.ui import StepTracker
from tfvc_bridge.core.types import Workspace, WorkspaceMapping

app = typer.Typer(help="Workspace inspection and mapping commands")

_STEP_LABELS = {
    "remove": "Remove mappings",
    "change": "Map folders",
    "properties": "Update workspace properties",
}


def _current_workspace(session: Session) -> Workspace:
    name = session.orchestrator.get_workspace_name(session.context, session.root)
    if not name:
        typer.secho(f"No workspace maps {session.root}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    return session.orchestrator.get_workspace_by_name(session.context, name)


def _split_mapping(value: str) -> WorkspaceMapping:
    server, sep, local = value.partition("=")
    if not sep or not server.strip() or not local.strip():
        raise typer.BadParameter(f"Expected SERVER=LOCAL, got '{value}'")
    return WorkspaceMapping(server_path=server.strip(), local_path=local.strip())


@app.command("show")
def show_command(
    path: Optional[Path] = typer.Argument(None, help="Local path inside the workspace (default: cwd)"),
) -> None:
    """Show the workspace mapping PATH and its working folders."""

    def _run() -> None:
        session = open_session(path)
        workspace = _current_workspace(session)

        console.print(f"[bold]Workspace:[/bold] {workspace.name}")
        console.print(f"[bold]Owner:[/bold] {workspace.owner}")
        console.print(f"[bold]Computer:[/bold] {workspace.computer}")
        console.print(f"[bold]Collection:[/bold] {workspace.server}")
        if workspace.comment:
            console.print(f"[bold]Comment:[/bold] {workspace.comment}")

        table = Table(title="Working folders")
        table.add_column("Server path", style="cyan")
        table.add_column("Local path")
        for mapping in workspace.mappings:
            local = "[dim](cloaked)[/dim]" if mapping.cloaked else mapping.local_path
            table.add_row(mapping.server_path, local)
        console.print(table)

    run_or_exit(_run)


@app.command("edit")
def edit_command(
    path: Optional[Path] = typer.Argument(None, help="Local path inside the workspace (default: cwd)"),
    name: Optional[str] = typer.Option(None, "--name", help="New workspace name"),
    comment: Optional[str] = typer.Option(None, "--comment", help="New workspace comment"),
    map_: List[str] = typer.Option([], "--map", help="Add or change a mapping, SERVER=LOCAL (repeatable)"),
    unmap: List[str] = typer.Option([], "--unmap", help="Server path to unmap (repeatable)"),
    cloak: List[str] = typer.Option([], "--cloak", help="Server path to cloak (repeatable)"),
) -> None:
    """Change workspace mappings, name or comment. Does not sync."""
    added = [_split_mapping(value) for value in map_]

    def _run() -> None:
        session = open_session(path)
        old = _current_workspace(session)

        dropped = {server.lower() for server in [*unmap, *cloak, *(m.server_path for m in added)]}
        mappings = [m for m in old.mappings if m.server_path.lower() not in dropped]
        mappings.extend(added)
        mappings.extend(WorkspaceMapping(server_path=server, cloaked=True) for server in cloak)
        new = replace(
            old,
            name=name or old.name,
            comment=old.comment if comment is None else comment,
            mappings=tuple(mappings),
        )

        tracker = StepTracker(f"Updating workspace {old.name}")
        for key, label in _STEP_LABELS.items():
            tracker.add(key, label)

        with Live(tracker.render(), console=console, transient=False, auto_refresh=False) as live:
            current: list[str] = []

            def progress(key: str, detail: str) -> None:
                if current and current[0] != key:
                    tracker.complete(current[0])
                current[:] = [key]
                tracker.start(key, detail)
                live.update(tracker.render(), refresh=True)

            try:
                session.orchestrator.update_workspace(session.context, old, new, progress=progress)
            except Exception:
                if current:
                    tracker.error(current[0])
                live.update(tracker.render(), refresh=True)
                raise
            for key in _STEP_LABELS:
                tracker.complete(key)
            live.update(tracker.render(), refresh=True)

    run_or_exit(_run)


def sync_command(
    path: Optional[Path] = typer.Argument(None, help="Local root to sync (default: project root)"),
) -> None:
    """Get the latest version of everything under PATH."""

    def _run() -> None:
        session = open_session(path)
        target = path.resolve() if path is not None else session.root
        results = session.orchestrator.sync_workspace(session.context, target)
        if results.up_to_date:
            console.print("[green]All files are up to date.[/green]")
            return
        for label, style, files in (
            ("New", "green", results.new_files),
            ("Updated", "cyan", results.updated_files),
            ("Deleted", "red", results.deleted_files),
        ):
            for file in files:
                console.print(f"[{style}]{label}[/{style}] {file}")

    run_or_exit(_run)


def status_command(
    path: Optional[Path] = typer.Argument(None, help="Local path to report on (default: project root)"),
) -> None:
    """List pending changes under PATH."""

    def _run() -> None:
        session = open_session(path)
        target = path.resolve() if path is not None else session.root
        changes = session.orchestrator.get_status(session.context, target)
        if not changes:
            console.print("[dim]No pending changes.[/dim]")
            return

        table = Table(title="Pending changes")
        table.add_column("Change", style="cyan")
        table.add_column("Local item", style="bold")
        table.add_column("Server item")
        table.add_column("Version", justify="right")
        for change in changes:
            kinds = ", ".join(sorted(str(kind) for kind in change.change_types))
            table.add_row(kinds, change.local_item, change.server_item, str(change.version))
        console.print(table)

    run_or_exit(_run)
