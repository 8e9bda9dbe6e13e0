"""Reusable terminal UI helpers: step tracking, conflict tables and key-driven pickers."""

from __future__ import annotations

from typing import Dict, List, Optional

import readchar
import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from tfvc_bridge.resolve import ConflictResolutionEntry, ResolutionState

_STEP_SYMBOLS = {
    "pending": "[green dim]○[/green dim]",
    "running": "[cyan]○[/cyan]",
    "done": "[green]●[/green]",
    "error": "[red]●[/red]",
}

_STATE_STYLES = {
    ResolutionState.PENDING: "yellow",
    ResolutionState.ACCEPTED_THEIRS: "green",
    ResolutionState.ACCEPTED_YOURS: "green",
    ResolutionState.MERGED: "green",
    ResolutionState.SKIPPED: "bright_black",
    ResolutionState.ERRORED: "red",
}


class StepTracker:
    """Track the steps of a multi-command operation and render them as a tree."""

    def __init__(self, title: str):
        self.title = title
        self.steps: list[dict[str, str]] = []

    def _find(self, key: str) -> dict[str, str] | None:
        return next((s for s in self.steps if s["key"] == key), None)

    def add(self, key: str, label: str) -> None:
        if self._find(key) is None:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})

    def start(self, key: str, detail: str = "") -> None:
        self._update(key, "running", detail)

    def complete(self, key: str, detail: str = "") -> None:
        self._update(key, "done", detail)

    def error(self, key: str, detail: str = "") -> None:
        self._update(key, "error", detail)

    def _update(self, key: str, status: str, detail: str) -> None:
        step = self._find(key)
        if step is None:
            step = {"key": key, "label": key, "status": status, "detail": ""}
            self.steps.append(step)
        step["status"] = status
        if detail:
            step["detail"] = detail

    def render(self) -> Tree:
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            symbol = _STEP_SYMBOLS.get(step["status"], " ")
            detail = f" [bright_black]({step['detail']})[/bright_black]" if step["detail"] else ""
            label_style = "bright_black" if step["status"] == "pending" else "white"
            tree.add(f"{symbol} [{label_style}]{step['label']}[/{label_style}]{detail}")
        return tree


def render_conflict_table(entries: List[ConflictResolutionEntry], title: str = "Conflicts") -> Table:
    """Render the resolution table: row, path, type, old name and state."""
    table = Table(title=title, show_lines=False)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Local path", style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Renamed from", style="magenta")
    table.add_column("State")

    for index, entry in enumerate(entries):
        conflict = entry.conflict
        style = _STATE_STYLES.get(entry.state, "white")
        state = f"[{style}]{entry.state.value}[/{style}]"
        if entry.error is not None:
            state += f" [dim]{entry.error.validation_message}[/dim]"
        table.add_row(
            str(index),
            conflict.local_path,
            conflict.conflict_type.value,
            getattr(conflict, "old_server_name", "") or "",
            state,
        )
    return table


def get_key() -> str:
    """Read one keypress and map navigation keys to names."""
    key = readchar.readkey()

    if key in (readchar.key.UP, readchar.key.CTRL_P):
        return "up"
    if key in (readchar.key.DOWN, readchar.key.CTRL_N):
        return "down"
    if key == readchar.key.ENTER:
        return "enter"
    if key in (readchar.key.ESC, "\x1b"):
        return "escape"
    if key == readchar.key.CTRL_C:
        raise KeyboardInterrupt
    return key


def _cancel(console: Console) -> None:
    console.print("\n[yellow]Selection cancelled[/yellow]")
    raise typer.Exit(1)


def _options_panel(
    options: Dict[str, str],
    cursor: int,
    title: str,
    hint: str,
    checked: Optional[set[int]] = None,
) -> Panel:
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="left", width=3)
    table.add_column(style="white", justify="left")

    for i, (key, description) in enumerate(options.items()):
        pointer = "▶" if i == cursor else " "
        box = ""
        if checked is not None:
            box = "[cyan]☑ " if i in checked else "[bright_black]☐ "
        table.add_row(pointer, f"{box}[cyan]{key}[/cyan] [dim]({description})[/dim]")

    table.add_row("", "")
    table.add_row("", f"[dim]{hint}[/dim]")
    return Panel(table, title=f"[bold]{title}[/bold]", border_style="cyan", padding=(1, 2))


def select_with_arrows(
    options: Dict[str, str],
    prompt_text: str = "Select an option",
    default_key: str | None = None,
    console: Console | None = None,
) -> str:
    """Pick one option with the arrow keys; Esc cancels the command."""
    console = console or Console()
    keys = list(options)
    cursor = keys.index(default_key) if default_key in keys else 0
    hint = "Use ↑/↓ to navigate, Enter to select, Esc to cancel"

    console.print()
    with Live(_options_panel(options, cursor, prompt_text, hint), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                _cancel(console)
            if key == "up":
                cursor = (cursor - 1) % len(keys)
            elif key == "down":
                cursor = (cursor + 1) % len(keys)
            elif key == "enter":
                return keys[cursor]
            elif key == "escape":
                _cancel(console)
            live.update(_options_panel(options, cursor, prompt_text, hint), refresh=True)


def multi_select_with_arrows(
    options: Dict[str, str],
    prompt_text: str = "Select options",
    console: Console | None = None,
) -> List[str]:
    """Toggle any number of options with Space and confirm with Enter."""
    console = console or Console()
    keys = list(options)
    checked: set[int] = set()
    cursor = 0
    hint = "Use ↑/↓ to move, Space to toggle, a for all, Enter to confirm, Esc to cancel"

    def panel() -> Panel:
        return _options_panel(options, cursor, prompt_text, hint, checked)

    console.print()
    with Live(panel(), console=console, transient=True, auto_refresh=False) as live:
        while True:
            try:
                key = get_key()
            except KeyboardInterrupt:
                _cancel(console)
            if key == "up":
                cursor = (cursor - 1) % len(keys)
            elif key == "down":
                cursor = (cursor + 1) % len(keys)
            elif key in (" ", readchar.key.SPACE):
                checked ^= {cursor}
            elif key == "a":
                checked = set() if len(checked) == len(keys) else set(range(len(keys)))
            elif key == "enter":
                if checked:
                    return [keys[i] for i in sorted(checked)]
            elif key == "escape":
                _cancel(console)
            live.update(panel(), refresh=True)


__all__ = [
    "StepTracker",
    "render_conflict_table",
    "get_key",
    "select_with_arrows",
    "multi_select_with_arrows",
]
