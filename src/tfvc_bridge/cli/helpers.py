"""Shared plumbing for the command modules."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar

import typer
from rich.console import Console

from tfvc_bridge.config import BridgeConfig, BridgeConfigError, build_orchestrator, find_project_root, load_config
from tfvc_bridge.core.exceptions import ToolError
from tfvc_bridge.core.operations import CommandOrchestrator
from tfvc_bridge.core.types import ServerContext

logger = logging.getLogger(__name__)

console = Console()

T = TypeVar("T")


@dataclass
class Session:
    """Everything a command needs to talk to the tool for one project."""

    root: Path
    config: BridgeConfig
    orchestrator: CommandOrchestrator
    context: ServerContext


def open_session(path: Path | None = None) -> Session:
    start = path.resolve() if path is not None else None
    root = find_project_root(start)
    config = load_config(root)
    logger.debug("Using project root %s", root)
    return Session(
        root=root,
        config=config,
        orchestrator=build_orchestrator(config, working_directory=root),
        context=config.server_context(),
    )


def run_or_exit(fn: Callable[[], T]) -> T:
    try:
        return fn()
    except (ToolError, BridgeConfigError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc


def print_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))
