"""Rename provenance reconstruction for rename and rename-plus-content conflicts.

The conflict finder only reports the current server name of an item in a
rename conflict. The pre-rename name is recovered from history: the newest
changeset whose first change is a rename is located, and the changeset just
older than it names the item as it was before the rename. The pending change
whose source item is that old name gives the local path.

The search first looks at a bounded window of recent history, since the
rename usually just happened, and only then falls back to the full history.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .commands.history import UNBOUNDED
from .exceptions import ToolError
from .paths import are_file_paths_same
from .types import ChangeSet, ChangeType, ConflictType, PendingChange, RenameConflict, ServerContext

if TYPE_CHECKING:
    from .operations import CommandOrchestrator

__all__ = ["RenameHistoryResolver", "DEFAULT_HISTORY_WINDOW"]

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = 50


def _has_changes(change_sets: list[ChangeSet], index: int) -> bool:
    return 0 <= index < len(change_sets) and bool(change_sets[index].changes)


class RenameHistoryResolver:
    """Recover the old server name and local path of a renamed item."""

    def __init__(
        self,
        orchestrator: "CommandOrchestrator",
        history_window: int = DEFAULT_HISTORY_WINDOW,
        max_history_depth: int | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.history_window = history_window
        self.max_history_depth = max_history_depth

    @property
    def fallback_stop_after(self) -> int:
        """stop_after for the second pass: the configured cap, else unbounded."""
        if self.max_history_depth is not None and self.max_history_depth > 0:
            return self.max_history_depth
        return UNBOUNDED

    def find_local_rename(
        self,
        context: ServerContext | None,
        server_name: str,
        root: str,
        conflict_type: ConflictType,
    ) -> RenameConflict | None:
        """Return the reconstructed conflict, or None when it cannot be recovered.

        Never raises for a missing match; tool failures during the search are
        logged and treated as "not found".
        """
        try:
            conflict = self.search_change_sets(context, server_name, root, conflict_type, self.history_window)
            if conflict is not None:
                return conflict
            logger.debug(
                "No rename found for %s in the last %d changesets, searching full history",
                server_name,
                self.history_window,
            )
            return self.search_change_sets(context, server_name, root, conflict_type, self.fallback_stop_after)
        except ToolError as exc:
            logger.warning("Rename history search for %s failed: %s", server_name, exc)
            return None

    def search_change_sets(
        self,
        context: ServerContext | None,
        server_name: str,
        root: str,
        conflict_type: ConflictType,
        stop_after: int,
    ) -> RenameConflict | None:
        """One pass over history limited by ``stop_after`` (-1 for no limit)."""
        change_sets = self.orchestrator.get_history(
            context,
            server_name,
            version="",
            stop_after=stop_after,
            recursive=False,
            user="",
            item_mode=True,
        )

        pending: list[PendingChange] | None = None
        for index, change_set in enumerate(change_sets):
            if not _has_changes(change_sets, index):
                continue
            if not change_set.changes[0].has_type(ChangeType.RENAME):
                continue
            # The entry after the rename holds the old name of the item
            if not _has_changes(change_sets, index + 1):
                continue
            old_name = change_sets[index + 1].changes[0].server_item

            if pending is None:
                pending = self.orchestrator.get_status(context, root)
            for change in pending:
                if are_file_paths_same(change.source_item, old_name):
                    return RenameConflict(
                        local_path=change.local_item,
                        conflict_type=conflict_type,
                        server_path=server_name,
                        old_server_name=old_name,
                    )
        return None
