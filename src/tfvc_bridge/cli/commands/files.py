"""History and local file commands."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from tfvc_bridge.cli.helpers import console, open_session, print_json, run_or_exit
from tfvc_bridge.core.commands import UNBOUNDED


def history_command(
    item: str = typer.Argument(..., help="Local path or $/server item"),
    limit: int = typer.Option(0, "--limit", "-n", min=0, help="Show at most N changesets (0 = all)"),
    user: str = typer.Option("", "--user", help="Only changesets by this user"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Include changes below a folder"),
    as_json: bool = typer.Option(False, "--json", help="Render changesets as JSON"),
) -> None:
    """Show changesets for ITEM, newest first."""

    def _run() -> None:
        session = open_session()
        changesets = session.orchestrator.get_history(
            session.context,
            item,
            stop_after=limit or UNBOUNDED,
            recursive=recursive,
            user=user,
        )
        if as_json:
            print_json(
                [
                    {
                        "id": cs.id,
                        "owner": cs.owner,
                        "committer": cs.committer,
                        "date": cs.date,
                        "comment": cs.comment,
                        "changes": [
                            {"item": c.server_item, "types": sorted(str(t) for t in c.change_types)}
                            for c in cs.changes
                        ],
                    }
                    for cs in changesets
                ]
            )
            return

        table = Table(title=f"History of {item}")
        table.add_column("Changeset", style="cyan", justify="right")
        table.add_column("User")
        table.add_column("Date", style="dim")
        table.add_column("Comment")
        for changeset in changesets:
            table.add_row(str(changeset.id), changeset.owner, changeset.date, changeset.comment)
        console.print(table)

    run_or_exit(_run)


def download_command(
    item: str = typer.Argument(..., help="Local path or $/server item to download"),
    destination: Path = typer.Argument(..., help="File to write the content to"),
    version: int = typer.Option(0, "--version", min=0, help="Changeset version (0 = workspace version)"),
) -> None:
    """Write the content of ITEM at a version to DESTINATION."""

    def _run() -> None:
        session = open_session()
        written = session.orchestrator.download_file(session.context, item, version, destination)
        console.print(f"[green]Downloaded[/green] {item} to {written}")

    run_or_exit(_run)


def rename_command(
    old_name: str = typer.Argument(..., help="Current local path"),
    new_name: str = typer.Argument(..., help="New local path"),
) -> None:
    """Pend a rename of OLD_NAME to NEW_NAME."""

    def _run() -> None:
        session = open_session()
        output = session.orchestrator.rename_file(session.context, old_name, new_name)
        console.print(output.strip() or f"Renamed {old_name} to {new_name}")

    run_or_exit(_run)


def undo_command(files: List[str] = typer.Argument(..., help="Files whose pending changes to undo")) -> None:
    """Undo pending changes for FILES."""

    def _run() -> None:
        session = open_session()
        undone = session.orchestrator.undo_local_files(session.context, files)
        for path in undone:
            console.print(f"[yellow]Undone[/yellow] {path}")
        if not undone:
            console.print("[dim]Nothing to undo.[/dim]")

    run_or_exit(_run)


def add_command(files: List[str] = typer.Argument(..., help="Files to pend for addition")) -> None:
    """Pend FILES for addition."""

    def _run() -> None:
        session = open_session()
        added = session.orchestrator.add_files(session.context, files)
        for path in added:
            console.print(f"[green]Added[/green] {path}")

    run_or_exit(_run)


def label_command(
    name: str = typer.Argument(..., help="Label name"),
    item: str = typer.Argument(..., help="Item to label"),
    comment: str = typer.Option("", "--comment", help="Label comment"),
    version: Optional[str] = typer.Option(None, "--version", help="Version, e.g. C123 or T"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Label everything below a folder"),
) -> None:
    """Apply label NAME to ITEM."""

    def _run() -> None:
        session = open_session()
        created = session.orchestrator.apply_label(
            session.context, name, item, comment=comment, version=version, recursive=recursive
        )
        console.print(f"{'Created' if created else 'Updated'} label [bold]{name}[/bold]")

    run_or_exit(_run)
