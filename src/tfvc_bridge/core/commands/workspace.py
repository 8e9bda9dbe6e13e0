"""Workspace and working folder commands (``workfold``, ``workspaces``, ``workspace``)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ..runner import ArgumentBuilder
from ..types import Workspace, WorkspaceMapping
from .base import Command, check_not_empty, check_not_none, split_lines

__all__ = [
    "FindWorkspaceCommand",
    "GetWorkspaceCommand",
    "UpdateWorkspaceCommand",
    "UpdateWorkspaceMappingCommand",
    "GetLocalPathCommand",
    "parse_mapping_line",
    "parse_workfold_output",
]

_CLOAKED_PREFIX = "(cloaked)"


def parse_mapping_line(line: str) -> WorkspaceMapping | None:
    """Parse ``$/server: /local`` or ``(cloaked) $/server:``; None if not a mapping."""
    text = line.strip()
    cloaked = text.startswith(_CLOAKED_PREFIX)
    if cloaked:
        text = text[len(_CLOAKED_PREFIX):].strip()
    if not text.startswith("$/"):
        return None

    if text.endswith(":"):
        server_path, local_path = text[:-1], ""
    else:
        server_path, sep, local_path = text.partition(": ")
        if not sep:
            return None
    return WorkspaceMapping(
        server_path=server_path.strip(),
        local_path=local_path.strip(),
        cloaked=cloaked,
    )


def _split_field(line: str) -> tuple[str, str] | None:
    key, sep, value = line.partition(":")
    if not sep or not key.strip():
        return None
    return key.strip().lower(), value.strip()


def parse_workfold_output(stdout: str) -> Workspace | None:
    """Parse ``workfold`` output into a Workspace, None when no workspace is named."""
    name = ""
    owner = ""
    server = ""
    mappings: list[WorkspaceMapping] = []

    for line in split_lines(stdout):
        mapping = parse_mapping_line(line)
        if mapping is not None:
            mappings.append(mapping)
            continue
        field = _split_field(line)
        if field is None:
            continue
        key, value = field
        if key == "workspace":
            # "MyWorkspace (owner)"
            name, _, rest = value.partition(" (")
            owner = rest.rstrip(")").strip()
            name = name.strip()
        elif key == "collection":
            server = value

    if not name:
        return None
    return Workspace(name=name, owner=owner, server=server, mappings=tuple(mappings))


@dataclass(frozen=True)
class FindWorkspaceCommand(Command[Workspace | None]):
    """Find the workspace that maps a local path.

    workfold <localPath>
    """

    name = "workfold"

    local_path: str = ""

    def validate(self) -> None:
        check_not_empty(self.local_path, "local_path")

    def get_argument_builder(self) -> ArgumentBuilder:
        return super().get_argument_builder().add(self.local_path)

    def parse_output(self, stdout: str, stderr: str) -> Workspace | None:
        self.throw_if_error(stderr)
        return parse_workfold_output(stdout)


@dataclass(frozen=True)
class GetWorkspaceCommand(Command[Workspace]):
    """Fetch full workspace details.

    workspaces <name> /format:detailed
    """

    name = "workspaces"

    workspace_name: str = ""

    def validate(self) -> None:
        check_not_empty(self.workspace_name, "workspace_name")

    def get_argument_builder(self) -> ArgumentBuilder:
        return (
            super()
            .get_argument_builder()
            .add(self.workspace_name)
            .add_switch("format", "detailed")
        )

    def parse_output(self, stdout: str, stderr: str) -> Workspace:
        self.throw_if_error(stderr)

        fields: dict[str, str] = {}
        mappings: list[WorkspaceMapping] = []
        in_folders = False
        for line in split_lines(stdout):
            if not line.strip() or set(line.strip()) == {"="}:
                continue
            if line.strip().lower() == "working folders:":
                in_folders = True
                continue
            if in_folders:
                mapping = parse_mapping_line(line)
                if mapping is None:
                    raise self.parse_failure(f"bad working folder line {line!r}", stdout)
                mappings.append(mapping)
                continue
            field = _split_field(line)
            if field is not None:
                fields.setdefault(field[0], field[1])

        if not fields.get("workspace"):
            raise self.parse_failure("no workspace name found", stdout)

        return Workspace(
            name=fields["workspace"],
            owner=fields.get("owner", ""),
            computer=fields.get("computer", ""),
            comment=fields.get("comment", ""),
            server=fields.get("collection", ""),
            mappings=tuple(mappings),
        )


@dataclass(frozen=True)
class UpdateWorkspaceCommand(Command[str]):
    """Update workspace properties.

    workspace <name> /edit [/newname:] [/comment:] [/filetime:] [/permission:]
    """

    name = "workspace"

    workspace_name: str = ""
    new_name: str | None = None
    comment: str | None = None
    file_time: str | None = None
    permission: str | None = None

    def validate(self) -> None:
        check_not_empty(self.workspace_name, "workspace_name")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder().add(self.workspace_name).add_switch("edit")
        if self.new_name:
            builder.add_switch("newname", self.new_name)
        if self.comment is not None:
            builder.add_switch("comment", self.comment)
        if self.file_time:
            builder.add_switch("filetime", self.file_time)
        if self.permission:
            builder.add_switch("permission", self.permission)
        return builder

    def parse_output(self, stdout: str, stderr: str) -> str:
        self.throw_if_error(stderr)
        return stdout.strip()


@dataclass(frozen=True)
class UpdateWorkspaceMappingCommand(Command[str]):
    """Add, remove or cloak one working folder mapping.

    workfold <server> <local> /map /workspace:<name>
    workfold <server> /unmap /workspace:<name>
    workfold <server> /cloak /workspace:<name>
    """

    name = "workfold"

    workspace_name: str = ""
    mapping: WorkspaceMapping | None = None
    remove: bool = False

    def validate(self) -> None:
        check_not_empty(self.workspace_name, "workspace_name")
        check_not_none(self.mapping, "mapping")
        check_not_empty(self.mapping.server_path, "mapping.server_path")
        if not self.remove and not self.mapping.cloaked:
            check_not_empty(self.mapping.local_path, "mapping.local_path")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder().add(self.mapping.server_path)
        if self.remove:
            builder.add_switch("unmap")
        elif self.mapping.cloaked:
            builder.add_switch("cloak")
        else:
            builder.add(self.mapping.local_path).add_switch("map")
        return builder.add_switch("workspace", self.workspace_name)

    def parse_output(self, stdout: str, stderr: str) -> str:
        self.throw_if_error(stderr)
        return stdout.strip()


@dataclass(frozen=True)
class GetLocalPathCommand(Command[str]):
    """Translate a server path into its local path inside a workspace.

    workfold <serverPath> /workspace:<name>
    """

    name = "workfold"

    server_path: str = ""
    workspace_name: str = ""

    def validate(self) -> None:
        check_not_empty(self.server_path, "server_path")
        check_not_empty(self.workspace_name, "workspace_name")

    def get_argument_builder(self) -> ArgumentBuilder:
        return (
            super()
            .get_argument_builder()
            .add(self.server_path)
            .add_switch("workspace", self.workspace_name)
        )

    def parse_output(self, stdout: str, stderr: str) -> str:
        self.throw_if_error(stderr)
        workspace = parse_workfold_output(stdout)
        mappings = workspace.mappings if workspace else ()
        if not mappings:
            mappings = tuple(
                m for m in (parse_mapping_line(line) for line in split_lines(stdout)) if m is not None
            )

        # Longest mapped server folder that contains the requested path wins
        target = self.server_path.rstrip("/")
        best: WorkspaceMapping | None = None
        for mapping in mappings:
            root = mapping.server_path.rstrip("/")
            if target.lower() == root.lower() or target.lower().startswith(root.lower() + "/"):
                if best is None or len(root) > len(best.server_path.rstrip("/")):
                    best = mapping

        if best is None or best.cloaked or not best.local_path:
            return ""
        remainder = target[len(best.server_path.rstrip("/")):].lstrip("/")
        if not remainder:
            return best.local_path
        return os.path.join(best.local_path, *Path(remainder).parts)
