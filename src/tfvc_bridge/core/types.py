"""
Core types for the TFVC command layer.

Defines the enums and dataclasses produced by parsing the external client's
output, plus the opaque server context handed to every command.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


# =============================================================================
# Enums
# =============================================================================


class ChangeType(StrEnum):
    """Kind of change recorded against a server item."""

    ADD = "add"
    EDIT = "edit"
    RENAME = "rename"
    DELETE = "delete"
    UNDELETE = "undelete"
    BRANCH = "branch"
    MERGE = "merge"
    LOCK = "lock"
    ENCODING = "encoding"
    PROPERTY = "property"
    SOURCE_RENAME = "source rename"
    ROLLBACK = "rollback"
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str) -> "ChangeType":
        """Map a tool token (case-insensitive) to a ChangeType, UNKNOWN if unrecognized."""
        normalized = " ".join(token.strip().lower().split())
        try:
            return cls(normalized)
        except ValueError:
            return cls.UNKNOWN

    @classmethod
    def parse_list(cls, text: str) -> frozenset["ChangeType"]:
        """Parse a comma separated list such as ``"rename, edit"``."""
        return frozenset(cls.from_token(part) for part in text.split(",") if part.strip())


class ConflictType(StrEnum):
    """Conflict classification reported by the conflict finder."""

    CONTENT = "content"
    RENAME = "rename"
    BOTH = "both"
    RESOLVED = "resolved"


class AutoResolveType(StrEnum):
    """Resolution tokens accepted by ``resolve /auto:``."""

    AUTO_MERGE = "AutoMerge"
    TAKE_THEIRS = "TakeTheirs"
    KEEP_YOURS = "KeepYours"
    OVERWRITE_LOCAL = "OverwriteLocal"
    DELETE_CONFLICT = "DeleteConflict"
    KEEP_YOURS_RENAME_THEIRS = "KeepYoursRenameTheirs"


# =============================================================================
# Connection
# =============================================================================


@dataclass(frozen=True)
class ServerContext:
    """Connection handle passed through, unmodified, to every command."""

    collection_url: str = ""
    username: str = ""
    password: str = field(default="", repr=False)

    @property
    def has_credentials(self) -> bool:
        return bool(self.username)

    @property
    def login(self) -> str:
        """``/login:`` value: ``user,password``, or just ``user`` when no password is set."""
        if self.password:
            return f"{self.username},{self.password}"
        return self.username


# =============================================================================
# History and status
# =============================================================================


@dataclass(frozen=True)
class Change:
    """A single item change within a changeset."""

    server_item: str
    change_types: frozenset[ChangeType] = frozenset()
    source_item: str | None = None

    def has_type(self, change_type: ChangeType) -> bool:
        return change_type in self.change_types


@dataclass(frozen=True)
class ChangeSet:
    """One historical checkin."""

    id: int
    owner: str
    committer: str = ""
    date: str = ""
    comment: str = ""
    changes: tuple[Change, ...] = ()

    @property
    def first_change(self) -> Change | None:
        return self.changes[0] if self.changes else None


@dataclass(frozen=True)
class PendingChange:
    """An uncommitted local modification reported by ``status``."""

    server_item: str
    local_item: str
    version: int = 0
    owner: str = ""
    date: str = ""
    lock: str = ""
    change_types: frozenset[ChangeType] = frozenset()
    workspace: str = ""
    computer: str = ""
    source_item: str = ""


# =============================================================================
# Conflicts
# =============================================================================


@dataclass(frozen=True)
class Conflict:
    """A conflict between the local workspace and the server."""

    local_path: str
    conflict_type: ConflictType
    server_path: str = ""


@dataclass(frozen=True)
class RenameConflict(Conflict):
    """Rename (or rename plus content) conflict with its reconstructed old name."""

    old_server_name: str = ""


@dataclass(frozen=True)
class ConflictResults:
    """Raw path lists reported by the conflict finder."""

    content_conflicts: tuple[str, ...] = ()
    rename_conflicts: tuple[str, ...] = ()
    both_conflicts: tuple[str, ...] = ()

    @property
    def total(self) -> int:
        return len(self.content_conflicts) + len(self.rename_conflicts) + len(self.both_conflicts)


# =============================================================================
# Workspaces
# =============================================================================


@dataclass(frozen=True)
class WorkspaceMapping:
    """Working folder mapping between a server path and a local path."""

    server_path: str
    local_path: str = ""
    cloaked: bool = False


@dataclass(frozen=True)
class Workspace:
    """Workspace properties and its ordered working folder mappings."""

    name: str
    owner: str = ""
    computer: str = ""
    comment: str = ""
    server: str = ""
    mappings: tuple[WorkspaceMapping, ...] = ()


@dataclass(frozen=True)
class SyncResults:
    """Outcome of a ``get`` run."""

    up_to_date: bool = False
    new_files: tuple[str, ...] = ()
    updated_files: tuple[str, ...] = ()
    deleted_files: tuple[str, ...] = ()


__all__ = [
    "ChangeType",
    "ConflictType",
    "AutoResolveType",
    "ServerContext",
    "Change",
    "ChangeSet",
    "PendingChange",
    "Conflict",
    "RenameConflict",
    "ConflictResults",
    "WorkspaceMapping",
    "Workspace",
    "SyncResults",
]
