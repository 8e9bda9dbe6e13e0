"""Conflict discovery and resolution commands (``resolve``)."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..exceptions import InvalidArgumentError
from ..runner import ArgumentBuilder
from ..types import AutoResolveType, Conflict, ConflictResults, ConflictType
from .base import Command, check_not_empty, check_not_empty_list, freeze_sequence, split_lines

__all__ = ["FindConflictsCommand", "ResolveConflictsCommand"]

BOTH_CONFLICTS_REASON = "The item name and content have changed"
RENAME_CONFLICTS_REASON = "The item name has changed"

_RESOLVED_PREFIX = "Resolved "
_RESOLVED_SEPARATOR = " as "


@dataclass(frozen=True)
class FindConflictsCommand(Command[ConflictResults]):
    """Preview the conflicts under a root without resolving them.

    resolve <root> /recursive /preview
    """

    name = "resolve"

    root: str = ""

    def validate(self) -> None:
        check_not_empty(self.root, "root")

    def get_argument_builder(self) -> ArgumentBuilder:
        return (
            super()
            .get_argument_builder()
            .add(self.root)
            .add_switch("recursive")
            .add_switch("preview")
        )

    def parse_output(self, stdout: str, stderr: str) -> ConflictResults:
        self.throw_if_error(stderr)

        content: list[str] = []
        renames: list[str] = []
        both: list[str] = []
        for line in split_lines(stdout):
            path, sep, reason = line.rpartition(": ")
            if not sep or not path.strip():
                # Informational lines, e.g. "There are no conflicts to resolve."
                continue
            reason = reason.strip().rstrip(".")
            if reason == BOTH_CONFLICTS_REASON:
                both.append(path.strip())
            elif reason == RENAME_CONFLICTS_REASON:
                renames.append(path.strip())
            else:
                content.append(path.strip())

        return ConflictResults(
            content_conflicts=tuple(content),
            rename_conflicts=tuple(renames),
            both_conflicts=tuple(both),
        )


@dataclass(frozen=True)
class ResolveConflictsCommand(Command[list[Conflict]]):
    """Resolve conflicts automatically with the given resolution type.

    resolve <path>... /auto:<type>
    """

    name = "resolve"

    paths: tuple[str, ...] = field(default_factory=tuple)
    resolve_type: AutoResolveType | None = None

    def __post_init__(self) -> None:
        freeze_sequence(self, "paths")
        super().__post_init__()

    def validate(self) -> None:
        check_not_empty_list(self.paths, "paths")
        if not isinstance(self.resolve_type, AutoResolveType):
            raise InvalidArgumentError("resolve_type must be an AutoResolveType")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder()
        for path in self.paths:
            builder.add(path)
        return builder.add_switch("auto", self.resolve_type.value)

    def parse_output(self, stdout: str, stderr: str) -> list[Conflict]:
        self.throw_if_error(stderr)

        resolved: list[Conflict] = []
        for line in split_lines(stdout):
            if not line.startswith(_RESOLVED_PREFIX):
                continue
            body = line[len(_RESOLVED_PREFIX):]
            path, sep, _ = body.rpartition(_RESOLVED_SEPARATOR)
            if not sep or not path.strip():
                raise self.parse_failure(f"bad resolve line {line!r}", stdout)
            resolved.append(Conflict(local_path=path.strip(), conflict_type=ConflictType.RESOLVED))
        return resolved
