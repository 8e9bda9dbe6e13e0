"""Working folder mapping diff between two workspace snapshots. Pure, no I/O."""

from __future__ import annotations

from dataclasses import dataclass

from .types import Workspace, WorkspaceMapping

__all__ = ["MappingDiff", "diff_workspace_mappings"]


def _server_key(mapping: WorkspaceMapping) -> str:
    # Server paths are case-insensitive
    return mapping.server_path.rstrip("/").lower()


def _mapping_key(mapping: WorkspaceMapping) -> tuple[str, str, bool]:
    return _server_key(mapping), mapping.local_path, mapping.cloaked


@dataclass(frozen=True)
class MappingDiff:
    """Mappings to remove and to add/change to turn one workspace into another."""

    to_remove: tuple[WorkspaceMapping, ...] = ()
    to_change: tuple[WorkspaceMapping, ...] = ()

    @property
    def are_different(self) -> bool:
        return bool(self.to_remove or self.to_change)


def diff_workspace_mappings(old: Workspace, new: Workspace) -> MappingDiff:
    """Compute the mapping changes between ``old`` and ``new``.

    Mappings whose server path no longer appears are removed; mappings that are
    new or whose local path or cloak flag changed are (re)mapped. Order follows
    the source workspace.
    """
    new_servers = {_server_key(m) for m in new.mappings}
    old_keys = {_mapping_key(m) for m in old.mappings}

    to_remove = tuple(m for m in old.mappings if _server_key(m) not in new_servers)
    to_change = tuple(m for m in new.mappings if _mapping_key(m) not in old_keys)
    return MappingDiff(to_remove=to_remove, to_change=to_change)
