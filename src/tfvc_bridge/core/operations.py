"""High-level operations composed from individual tool commands.

Every method is synchronous and blocks while the client runs; commands are
issued strictly one at a time because the client keeps exclusive state over
the local workspace metadata.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, TypeVar

from .commands import (
    UNBOUNDED,
    AddCommand,
    Command,
    DownloadCommand,
    FindConflictsCommand,
    FindWorkspaceCommand,
    GetLocalPathCommand,
    GetWorkspaceCommand,
    HistoryCommand,
    LabelCommand,
    RenameCommand,
    ResolveConflictsCommand,
    StatusCommand,
    SyncCommand,
    UndoCommand,
    UpdateWorkspaceCommand,
    UpdateWorkspaceMappingCommand,
)
from .commands.base import check_not_none
from .rename_history import DEFAULT_HISTORY_WINDOW, RenameHistoryResolver
from .runner import ToolRunner
from .types import (
    AutoResolveType,
    ChangeSet,
    Conflict,
    ConflictType,
    PendingChange,
    ServerContext,
    SyncResults,
    Workspace,
)
from .workspace_diff import MappingDiff, diff_workspace_mappings

__all__ = ["CommandOrchestrator", "ProgressCallback"]

logger = logging.getLogger(__name__)

R = TypeVar("R")

# Receives (step_key, detail) while a multi-step operation advances
ProgressCallback = Callable[[str, str], None]


class CommandOrchestrator:
    """Sequences commands into the operations the application needs."""

    def __init__(
        self,
        runner: ToolRunner,
        *,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        max_history_depth: int | None = None,
        encoding: str = "utf-8",
        mapping_diff: Callable[[Workspace, Workspace], MappingDiff] = diff_workspace_mappings,
    ) -> None:
        self.runner = runner
        self.encoding = encoding
        self.mapping_diff = mapping_diff
        self.rename_resolver = RenameHistoryResolver(
            self,
            history_window=history_window,
            max_history_depth=max_history_depth,
        )

    def run(self, command: Command[R]) -> R:
        return command.run_synchronously(self.runner)

    # Workspaces

    def get_workspace_name(self, context: ServerContext | None, project_path: str | Path) -> str:
        """Return the workspace name mapping ``project_path``, or "" (never None)."""
        check_not_none(project_path, "project_path")
        workspace = self.run(FindWorkspaceCommand(context, str(project_path)))
        return workspace.name if workspace is not None else ""

    def get_workspace(self, context: ServerContext | None, project_path: str | Path) -> Workspace:
        """Locate the workspace for a local root and return its full details."""
        workspace_name = self.get_workspace_name(context, project_path)
        return self.get_workspace_by_name(context, workspace_name)

    def get_workspace_by_name(self, context: ServerContext | None, workspace_name: str) -> Workspace:
        return self.run(GetWorkspaceCommand(context, workspace_name))

    def get_local_path(self, context: ServerContext | None, server_path: str, workspace_name: str) -> str:
        return self.run(GetLocalPathCommand(context, server_path, workspace_name))

    def update_workspace(
        self,
        context: ServerContext | None,
        old_workspace: Workspace,
        new_workspace: Workspace,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Update workspace mappings and properties. Does NOT sync.

        Mappings are removed first, then changed, then the name and comment are
        updated. Each command is issued on its own; the first failure stops
        the operation and leaves the earlier steps applied.
        """
        notify = progress or (lambda key, detail: None)
        diff = self.mapping_diff(old_workspace, new_workspace)

        if diff.are_different:
            for mapping in diff.to_remove:
                notify("remove", mapping.server_path)
                logger.info("Removing mapping %s from %s", mapping.server_path, old_workspace.name)
                self.run(UpdateWorkspaceMappingCommand(context, old_workspace.name, mapping, True))

            for mapping in diff.to_change:
                notify("change", mapping.server_path)
                logger.info("Mapping %s -> %s in %s", mapping.server_path, mapping.local_path, old_workspace.name)
                self.run(UpdateWorkspaceMappingCommand(context, old_workspace.name, mapping, False))

        notify("properties", new_workspace.name)
        self.run(
            UpdateWorkspaceCommand(
                context,
                old_workspace.name,
                new_name=new_workspace.name,
                comment=new_workspace.comment,
            )
        )

    def sync_workspace(self, context: ServerContext | None, root_path: str | Path) -> SyncResults:
        """Sync everything under ``root_path`` recursively."""
        return self.run(SyncCommand(context, (str(root_path),), recursive=True))

    # History and status

    def get_history(
        self,
        context: ServerContext | None,
        item_spec: str,
        version: str | None = None,
        stop_after: int = UNBOUNDED,
        recursive: bool = False,
        user: str = "",
        item_mode: bool = False,
    ) -> list[ChangeSet]:
        return self.run(
            HistoryCommand(
                context,
                item_spec,
                version=version,
                stop_after=stop_after,
                recursive=recursive,
                user=user,
                item_mode=item_mode,
            )
        )

    def get_last_history_entry_for_any_user(
        self, context: ServerContext | None, local_path: str
    ) -> ChangeSet | None:
        results = self.get_history(context, local_path, stop_after=1)
        return results[0] if results else None

    def get_status(self, context: ServerContext | None, local_path: str | Path) -> list[PendingChange]:
        return self.run(StatusCommand(context, str(local_path)))

    def get_status_for_file(self, context: ServerContext | None, file: str | Path) -> PendingChange | None:
        results = self.get_status(context, file)
        return results[0] if results else None

    # Local file operations

    def undo_local_files(self, context: ServerContext | None, files: Iterable[str]) -> list[str]:
        return self.run(UndoCommand(context, tuple(files)))

    def rename_file(self, context: ServerContext | None, old_name: str, new_name: str) -> str:
        return self.run(RenameCommand(context, old_name, new_name))

    def add_files(self, context: ServerContext | None, files: Iterable[str]) -> list[str]:
        return self.run(AddCommand(context, tuple(files)))

    def download_file(
        self, context: ServerContext | None, local_path: str, version: int, destination: str | Path
    ) -> str:
        return self.run(
            DownloadCommand(context, local_path, version, str(destination), encoding=self.encoding)
        )

    def apply_label(
        self,
        context: ServerContext | None,
        label_name: str,
        item_spec: str,
        comment: str = "",
        version: str | None = None,
        recursive: bool = False,
    ) -> bool:
        """Apply a label; True when it was created, False when an existing label was updated."""
        return self.run(LabelCommand(context, label_name, item_spec, comment, version, recursive))

    # Conflicts

    def resolve_conflicts_by_path(
        self, context: ServerContext | None, paths: Iterable[str], resolve_type: AutoResolveType
    ) -> list[Conflict]:
        return self.run(ResolveConflictsCommand(context, tuple(paths), resolve_type))

    def resolve_conflicts_by_conflict(
        self, context: ServerContext | None, conflicts: Iterable[Conflict], resolve_type: AutoResolveType
    ) -> list[Conflict]:
        return self.resolve_conflicts_by_path(context, [c.local_path for c in conflicts], resolve_type)

    def get_conflicts(self, context: ServerContext | None, root: str | Path) -> list[Conflict]:
        """Find the conflicts under ``root``.

        Rename and rename-plus-content conflicts whose history cannot be
        reconstructed are left out of the result rather than reported.
        """
        root = str(root)
        results = self.run(FindConflictsCommand(context, root))

        conflicts: list[Conflict] = [
            Conflict(local_path=path, conflict_type=ConflictType.CONTENT) for path in results.content_conflicts
        ]
        for conflict_type, server_names in (
            (ConflictType.RENAME, results.rename_conflicts),
            (ConflictType.BOTH, results.both_conflicts),
        ):
            for server_name in server_names:
                rename = self.rename_resolver.find_local_rename(context, server_name, root, conflict_type)
                if rename is None:
                    logger.warning("Dropping %s conflict for %s: rename history not found", conflict_type, server_name)
                    continue
                conflicts.append(rename)

        logger.info("Found %d conflict(s) under %s", len(conflicts), root)
        return conflicts
