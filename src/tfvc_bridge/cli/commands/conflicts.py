"""Conflict listing and resolution commands."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from tfvc_bridge.cli.helpers import console, open_session, print_json, run_or_exit
from tfvc_bridge.cli.ui import multi_select_with_arrows, render_conflict_table, select_with_arrows
from tfvc_bridge.resolve import ConflictResolutionEngine

app = typer.Typer(help="Conflict discovery and resolution commands")


class AcceptMode(StrEnum):
    THEIRS = "theirs"
    YOURS = "yours"
    MERGE = "merge"


_ACTIONS = {
    AcceptMode.THEIRS.value: "take the server version",
    AcceptMode.YOURS.value: "keep the local version",
    AcceptMode.MERGE.value: "merge automatically",
    "done": "skip whatever is left and finish",
}


def _apply(engine: ConflictResolutionEngine, mode: AcceptMode, selection: list[int]) -> None:
    if mode is AcceptMode.THEIRS:
        engine.accept_theirs(selection)
    elif mode is AcceptMode.YOURS:
        engine.accept_yours(selection)
    else:
        engine.merge(selection)


def _interactive(engine: ConflictResolutionEngine) -> None:
    while engine.pending:
        entries = engine.entries
        console.print(render_conflict_table(entries))

        action = select_with_arrows(_ACTIONS, "Resolve conflicts", console=console)
        if action == "done":
            return

        choices = {
            str(index): entry.conflict.local_path
            for index, entry in enumerate(entries)
            if not entry.is_terminal
        }
        picked = multi_select_with_arrows(choices, f"Conflicts to resolve ({action})", console=console)
        _apply(engine, AcceptMode(action), [int(key) for key in picked])


@app.command("list")
def list_command(
    path: Optional[Path] = typer.Argument(None, help="Root to search (default: project root)"),
    as_json: bool = typer.Option(False, "--json", help="Render conflicts as JSON"),
) -> None:
    """List conflicts under PATH."""

    def _run() -> None:
        session = open_session(path)
        root = path.resolve() if path is not None else session.root
        conflicts = session.orchestrator.get_conflicts(session.context, root)

        if as_json:
            print_json(
                [
                    {
                        "local_path": c.local_path,
                        "type": c.conflict_type.value,
                        "server_path": c.server_path,
                        "old_server_name": getattr(c, "old_server_name", ""),
                    }
                    for c in conflicts
                ]
            )
            return

        if not conflicts:
            console.print("[green]No conflicts.[/green]")
            return

        table = Table(title=f"Conflicts under {root}")
        table.add_column("Local path", style="bold")
        table.add_column("Type", style="cyan")
        table.add_column("Renamed from", style="magenta")
        for conflict in conflicts:
            table.add_row(conflict.local_path, conflict.conflict_type.value, getattr(conflict, "old_server_name", ""))
        console.print(table)

    run_or_exit(_run)


@app.command("resolve")
def resolve_command(
    path: Optional[Path] = typer.Argument(None, help="Root to search (default: project root)"),
    accept: Optional[AcceptMode] = typer.Option(
        None,
        "--accept",
        case_sensitive=False,
        help="Resolve every conflict this way instead of prompting",
    ),
) -> None:
    """Resolve conflicts under PATH, interactively unless --accept is given."""

    def _run() -> ConflictResolutionEngine:
        session = open_session(path)
        root = path.resolve() if path is not None else session.root
        engine = ConflictResolutionEngine(session.orchestrator, session.context, root)

        entries = engine.load_conflicts()
        if not entries:
            console.print("[green]No conflicts.[/green]")
            return engine

        if accept is not None:
            _apply(engine, accept, list(range(len(entries))))
        else:
            _interactive(engine)

        console.print(render_conflict_table(engine.process_skipped_conflicts(), title="Resolution summary"))
        return engine

    engine = run_or_exit(_run)
    if engine.has_errors:
        typer.secho(
            f"{len(engine.errors)} conflict(s) could not be resolved: {engine.first_error_message()}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(1)
