"""
Tool Command Variants
=====================

One frozen dataclass per client operation. Every variant implements the same
contract: ``get_argument_builder()`` for the argument vector and
``parse_output()`` for the typed result, with ``run_synchronously()`` from the
shared base tying them to a ToolRunner.
"""

from __future__ import annotations

from .base import Command
from .conflicts import FindConflictsCommand, ResolveConflictsCommand
from .files import (
    AddCommand,
    DownloadCommand,
    LabelCommand,
    RenameCommand,
    SyncCommand,
    UndoCommand,
)
from .history import UNBOUNDED, HistoryCommand, StatusCommand
from .workspace import (
    FindWorkspaceCommand,
    GetLocalPathCommand,
    GetWorkspaceCommand,
    UpdateWorkspaceCommand,
    UpdateWorkspaceMappingCommand,
)

# The closed set of operations understood by this package
COMMAND_TYPES: tuple[type[Command], ...] = (
    FindWorkspaceCommand,
    GetWorkspaceCommand,
    UpdateWorkspaceCommand,
    UpdateWorkspaceMappingCommand,
    GetLocalPathCommand,
    HistoryCommand,
    StatusCommand,
    FindConflictsCommand,
    ResolveConflictsCommand,
    SyncCommand,
    RenameCommand,
    UndoCommand,
    AddCommand,
    DownloadCommand,
    LabelCommand,
)

__all__ = [
    "Command",
    "COMMAND_TYPES",
    "UNBOUNDED",
    "FindWorkspaceCommand",
    "GetWorkspaceCommand",
    "UpdateWorkspaceCommand",
    "UpdateWorkspaceMappingCommand",
    "GetLocalPathCommand",
    "HistoryCommand",
    "StatusCommand",
    "FindConflictsCommand",
    "ResolveConflictsCommand",
    "SyncCommand",
    "RenameCommand",
    "UndoCommand",
    "AddCommand",
    "DownloadCommand",
    "LabelCommand",
]
