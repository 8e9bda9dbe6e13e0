"""Commands that act on local files: get, rename, undo, add, print and label."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..exceptions import ToolParseFailure
from ..runner import ArgumentBuilder
from ..types import SyncResults
from .base import (
    Command,
    check_not_empty,
    check_not_empty_list,
    freeze_sequence,
    join_folder,
    split_lines,
)

__all__ = [
    "SyncCommand",
    "RenameCommand",
    "UndoCommand",
    "AddCommand",
    "DownloadCommand",
    "LabelCommand",
]

logger = logging.getLogger(__name__)

UP_TO_DATE_MESSAGE = "All files are up to date."

_SYNC_ACTIONS = ("Getting ", "Replacing ", "Deleting ")
_UNDO_PREFIX = "Undoing "


def _folder_header(line: str) -> str | None:
    """Return the folder for a ``<folder>:`` header line, None otherwise."""
    stripped = line.strip()
    if stripped.endswith(":") and len(stripped) > 1:
        return stripped[:-1]
    return None


@dataclass(frozen=True)
class SyncCommand(Command[SyncResults]):
    """Bring local files up to date with the server.

    get <path>... [/recursive] [/force]
    """

    name = "get"

    paths: tuple[str, ...] = field(default_factory=tuple)
    recursive: bool = True
    force: bool = False

    def __post_init__(self) -> None:
        freeze_sequence(self, "paths")
        super().__post_init__()

    def validate(self) -> None:
        check_not_empty_list(self.paths, "paths")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder()
        for path in self.paths:
            builder.add(path)
        if self.recursive:
            builder.add_switch("recursive")
        if self.force:
            builder.add_switch("force")
        return builder

    def parse_output(self, stdout: str, stderr: str) -> SyncResults:
        self.throw_if_error(stderr)

        buckets: dict[str, list[str]] = {action: [] for action in _SYNC_ACTIONS}
        up_to_date = False
        folder: str | None = None
        for line in split_lines(stdout):
            text = line.strip()
            if not text:
                continue
            if text == UP_TO_DATE_MESSAGE:
                up_to_date = True
                continue
            action = next((a for a in _SYNC_ACTIONS if text.startswith(a)), None)
            if action is not None:
                buckets[action].append(join_folder(folder, text[len(action):].strip()))
                continue
            header = _folder_header(text)
            if header is not None:
                folder = header
            else:
                logger.debug("Ignoring get output line: %s", text)

        return SyncResults(
            up_to_date=up_to_date,
            new_files=tuple(buckets["Getting "]),
            updated_files=tuple(buckets["Replacing "]),
            deleted_files=tuple(buckets["Deleting "]),
        )


@dataclass(frozen=True)
class RenameCommand(Command[str]):
    """Pend a rename of a versioned item.

    rename <old> <new>
    """

    name = "rename"

    old_name: str = ""
    new_name: str = ""

    def validate(self) -> None:
        check_not_empty(self.old_name, "old_name")
        check_not_empty(self.new_name, "new_name")

    def get_argument_builder(self) -> ArgumentBuilder:
        return super().get_argument_builder().add(self.old_name).add(self.new_name)

    def parse_output(self, stdout: str, stderr: str) -> str:
        self.throw_if_error(stderr)
        return stdout.strip()


@dataclass(frozen=True)
class UndoCommand(Command[list[str]]):
    """Undo pending changes on local files.

    undo <file>...
    """

    name = "undo"

    files: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        freeze_sequence(self, "files")
        super().__post_init__()

    def validate(self) -> None:
        check_not_empty_list(self.files, "files")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder()
        for path in self.files:
            builder.add(path)
        return builder

    def parse_output(self, stdout: str, stderr: str) -> list[str]:
        self.throw_if_error(stderr)

        undone: list[str] = []
        folder: str | None = None
        for line in split_lines(stdout):
            text = line.strip()
            if not text:
                continue
            if text.startswith(_UNDO_PREFIX):
                # "Undoing edit: file.txt"
                _, sep, name = text.partition(": ")
                if not sep or not name.strip():
                    raise self.parse_failure(f"bad undo line {text!r}", stdout)
                undone.append(join_folder(folder, name.strip()))
                continue
            header = _folder_header(text)
            if header is None:
                raise self.parse_failure(f"bad undo line {text!r}", stdout)
            folder = header
        return undone


@dataclass(frozen=True)
class AddCommand(Command[list[str]]):
    """Pend adds for unversioned local files.

    add <file>...
    """

    name = "add"

    files: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        freeze_sequence(self, "files")
        super().__post_init__()

    def validate(self) -> None:
        check_not_empty_list(self.files, "files")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder()
        for path in self.files:
            builder.add(path)
        return builder

    def parse_output(self, stdout: str, stderr: str) -> list[str]:
        self.throw_if_error(stderr)

        added: list[str] = []
        folder: str | None = None
        for line in split_lines(stdout):
            text = line.strip()
            if not text:
                continue
            header = _folder_header(text)
            if header is not None:
                folder = header
            else:
                added.append(join_folder(folder, text))
        return added


@dataclass(frozen=True)
class DownloadCommand(Command[str]):
    """Write the contents of an item at a version to a destination file.

    print <itemSpec> [/version:<value>]
    """

    name = "print"

    local_path: str = ""
    version: int = 0
    destination: str = ""
    encoding: str = "utf-8"

    def validate(self) -> None:
        check_not_empty(self.local_path, "local_path")
        check_not_empty(self.destination, "destination")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder().add(self.local_path)
        if self.version > 0:
            builder.add_switch("version", self.version)
        return builder

    def parse_output(self, stdout: str, stderr: str) -> str:
        """Return the destination path after writing stdout to it."""
        self.throw_if_error(stderr)

        target = Path(self.destination)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("w", encoding=self.encoding, newline="") as handle:
                handle.write(stdout)
        except OSError as exc:
            raise ToolParseFailure(f"Unable to write {target}: {exc}", output=stdout) from exc
        return self.destination


@dataclass(frozen=True)
class LabelCommand(Command[bool]):
    """Apply (or update) a label on an item.

    label <name> <itemSpec> [/comment:] [/version:] [/recursive]
    """

    name = "label"

    label_name: str = ""
    item_spec: str = ""
    comment: str = ""
    version: str | None = None
    recursive: bool = False

    def validate(self) -> None:
        check_not_empty(self.label_name, "label_name")
        check_not_empty(self.item_spec, "item_spec")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder().add(self.label_name).add(self.item_spec)
        if self.comment:
            builder.add_switch("comment", self.comment)
        if self.version:
            builder.add_switch("version", self.version)
        if self.recursive:
            builder.add_switch("recursive")
        return builder

    def parse_output(self, stdout: str, stderr: str) -> bool:
        """Return True when the label was created, False when an existing label was updated."""
        self.throw_if_error(stderr)
        for line in split_lines(stdout):
            text = line.strip()
            if text.startswith("Created label"):
                return True
            if text.startswith("Updated label"):
                return False
        raise self.parse_failure("no label confirmation found", stdout)
