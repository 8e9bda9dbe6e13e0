"""Conflict resolution session state.

Each discovered conflict starts PENDING and reaches exactly one terminal
state: ACCEPTED_THEIRS, ACCEPTED_YOURS, MERGED or SKIPPED on success, ERRORED
when the tool failed for it. Terminal entries are never resolved twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from pathlib import Path
from typing import Iterable

from tfvc_bridge.core.exceptions import ConflictSessionError, ToolError, UnresolvedConflictError
from tfvc_bridge.core.operations import CommandOrchestrator
from tfvc_bridge.core.paths import are_file_paths_same
from tfvc_bridge.core.types import AutoResolveType, Conflict, ServerContext

__all__ = [
    "ResolutionState",
    "ConflictResolutionEntry",
    "ConflictResolutionEngine",
    "TERMINAL_STATES",
]

logger = logging.getLogger(__name__)


class ResolutionState(StrEnum):
    """Per-conflict resolution state."""

    PENDING = "pending"
    ACCEPTED_THEIRS = "accepted_theirs"
    ACCEPTED_YOURS = "accepted_yours"
    MERGED = "merged"
    SKIPPED = "skipped"
    ERRORED = "errored"


TERMINAL_STATES: frozenset[ResolutionState] = frozenset(
    {
        ResolutionState.ACCEPTED_THEIRS,
        ResolutionState.ACCEPTED_YOURS,
        ResolutionState.MERGED,
        ResolutionState.SKIPPED,
        ResolutionState.ERRORED,
    }
)

_RESOLUTIONS: dict[ResolutionState, AutoResolveType] = {
    ResolutionState.ACCEPTED_THEIRS: AutoResolveType.TAKE_THEIRS,
    ResolutionState.ACCEPTED_YOURS: AutoResolveType.KEEP_YOURS,
    ResolutionState.MERGED: AutoResolveType.AUTO_MERGE,
}


@dataclass
class ConflictResolutionEntry:
    """A conflict with its resolution state and optional error."""

    conflict: Conflict
    state: ResolutionState = ResolutionState.PENDING
    error: UnresolvedConflictError | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


Selection = Iterable[Conflict | int]


class ConflictResolutionEngine:
    """Holds the conflict table for one resolution session and drives the tool.

    Resolution calls are plain synchronous methods returning the updated
    table so any presentation layer can render it however it likes.
    """

    def __init__(
        self,
        orchestrator: CommandOrchestrator,
        context: ServerContext | None,
        root: str | Path,
    ) -> None:
        self.orchestrator = orchestrator
        self.context = context
        self.root = str(root)
        self._entries: list[ConflictResolutionEntry] = []
        self._errors: list[UnresolvedConflictError] = []
        self._loaded = False
        self._closed = False

    # Session lifecycle

    def load_conflicts(self) -> list[ConflictResolutionEntry]:
        """Discover conflicts and start the session. Only one session per engine."""
        if self._loaded:
            raise ConflictSessionError("Conflicts already loaded for this resolution session")
        conflicts = self.orchestrator.get_conflicts(self.context, self.root)
        self._entries = [ConflictResolutionEntry(conflict=c) for c in conflicts]
        self._loaded = True
        return self.entries

    def process_skipped_conflicts(self) -> list[ConflictResolutionEntry]:
        """Finalize the session: every conflict still PENDING becomes SKIPPED."""
        for entry in self._entries:
            if entry.state is ResolutionState.PENDING:
                entry.state = ResolutionState.SKIPPED
                logger.info("Skipped conflict %s", entry.conflict.local_path)
        self._closed = True
        return self.entries

    # Batch resolutions

    def accept_theirs(self, selection: Selection) -> list[ConflictResolutionEntry]:
        return self._resolve(selection, ResolutionState.ACCEPTED_THEIRS)

    def accept_yours(self, selection: Selection) -> list[ConflictResolutionEntry]:
        return self._resolve(selection, ResolutionState.ACCEPTED_YOURS)

    def merge(self, selection: Selection) -> list[ConflictResolutionEntry]:
        return self._resolve(selection, ResolutionState.MERGED)

    def _resolve(self, selection: Selection, target: ResolutionState) -> list[ConflictResolutionEntry]:
        self._require_loaded()
        resolve_type = _RESOLUTIONS[target]

        for entry in self._select(selection):
            if entry.is_terminal:
                logger.debug("Conflict %s already %s, not resolving again", entry.conflict.local_path, entry.state)
                continue
            try:
                resolved = self.orchestrator.resolve_conflicts_by_conflict(
                    self.context, [entry.conflict], resolve_type
                )
            except ToolError as exc:
                error = UnresolvedConflictError(entry.conflict, str(exc))
                entry.state = ResolutionState.ERRORED
                entry.error = error
                self._errors.append(error)
                logger.warning("Failed to resolve %s: %s", entry.conflict.local_path, exc)
                continue

            if any(are_file_paths_same(r.local_path, entry.conflict.local_path) for r in resolved):
                entry.state = target
            else:
                logger.warning(
                    "%s was not reported resolved as %s, leaving it pending",
                    entry.conflict.local_path,
                    resolve_type,
                )
        return self.entries

    def _select(self, selection: Selection) -> list[ConflictResolutionEntry]:
        selected: list[ConflictResolutionEntry] = []
        for item in selection:
            if isinstance(item, int):
                if not 0 <= item < len(self._entries):
                    raise IndexError(f"No conflict at row {item}")
                entry = self._entries[item]
            else:
                entry = next((e for e in self._entries if e.conflict == item), None)
                if entry is None:
                    raise ConflictSessionError(f"Conflict {item.local_path} is not part of this session")
            if not any(existing is entry for existing in selected):
                selected.append(entry)
        return selected

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise ConflictSessionError("Load conflicts before resolving them")

    # Snapshots and errors

    @property
    def entries(self) -> list[ConflictResolutionEntry]:
        """Ordered copy of the conflict table."""
        return [replace(entry) for entry in self._entries]

    @property
    def pending(self) -> list[ConflictResolutionEntry]:
        return [replace(e) for e in self._entries if e.state is ResolutionState.PENDING]

    @property
    def is_complete(self) -> bool:
        return self._loaded and all(entry.is_terminal for entry in self._entries)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def errors(self) -> list[UnresolvedConflictError]:
        return list(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    def first_error_message(self) -> str | None:
        return self._errors[0].validation_message if self._errors else None

    def clear_errors(self) -> None:
        """Forget reported errors; ERRORED entries keep their state."""
        self._errors.clear()

    def raise_if_errors(self) -> None:
        if self._errors:
            raise self._errors[0]
