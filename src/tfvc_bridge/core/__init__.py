"""
TFVC Command Layer
==================

Drives the external ``tf`` command-line client: argument building, process
execution, output parsing and the multi-command operations built on top.

Usage:
    from tfvc_bridge.core import CommandOrchestrator, ServerContext, ToolRunner

    orchestrator = CommandOrchestrator(ToolRunner("tf"))
    conflicts = orchestrator.get_conflicts(ServerContext(), "/path/to/workspace")
"""

from __future__ import annotations

# Exceptions
from .exceptions import (
    ConflictSessionError,
    InvalidArgumentError,
    ToolError,
    ToolInvocationError,
    ToolParseFailure,
    UnresolvedConflictError,
)

# Types
from .types import (
    AutoResolveType,
    Change,
    ChangeSet,
    ChangeType,
    Conflict,
    ConflictResults,
    ConflictType,
    PendingChange,
    RenameConflict,
    ServerContext,
    SyncResults,
    Workspace,
    WorkspaceMapping,
)

# Runner and operations
from .runner import ArgumentBuilder, ToolResult, ToolRunner
from .operations import CommandOrchestrator
from .rename_history import RenameHistoryResolver
from .workspace_diff import MappingDiff, diff_workspace_mappings

__all__ = [
    # Exceptions
    "ToolError",
    "InvalidArgumentError",
    "ToolInvocationError",
    "ToolParseFailure",
    "UnresolvedConflictError",
    "ConflictSessionError",
    # Types
    "AutoResolveType",
    "Change",
    "ChangeSet",
    "ChangeType",
    "Conflict",
    "ConflictResults",
    "ConflictType",
    "PendingChange",
    "RenameConflict",
    "ServerContext",
    "SyncResults",
    "Workspace",
    "WorkspaceMapping",
    # Runner and operations
    "ArgumentBuilder",
    "ToolResult",
    "ToolRunner",
    "CommandOrchestrator",
    "RenameHistoryResolver",
    "MappingDiff",
    "diff_workspace_mappings",
]
