"""History and status commands.

Both use the client's ``/format:detailed`` listing, which is a sequence of
blocks made of ``Key: value`` lines with indented continuation sections.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..runner import ArgumentBuilder
from ..types import Change, ChangeSet, ChangeType, PendingChange
from .base import Command, check_not_empty, split_lines

__all__ = ["HistoryCommand", "StatusCommand", "UNBOUNDED"]

# stop_after value meaning "send no /stopafter switch"
UNBOUNDED = -1

_RULE_PATTERN = re.compile(r"^-{3,}$")
_STATUS_HEADER_PATTERN = re.compile(r"^(?P<item>\$/.*?)(?:;X\d+)?(?:;C(?P<version>\d+))?$")
# Deleted items carry a ";X<deletionId>" suffix
_DELETION_SUFFIX_PATTERN = re.compile(r";X\d+$")
_COMPUTER_PREFIX_PATTERN = re.compile(r"^\[(?P<computer>[^\]]*)\]\s*(?P<path>.*)$")


@dataclass(frozen=True)
class HistoryCommand(Command[list[ChangeSet]]):
    """Changeset history for an item, newest first.

    history <itemSpec> /format:detailed [/version:] [/stopafter:N] [/recursive] [/user:] [/itemmode]
    """

    name = "history"

    item_spec: str = ""
    version: str | None = None
    stop_after: int = UNBOUNDED
    recursive: bool = False
    user: str = ""
    item_mode: bool = False

    def validate(self) -> None:
        check_not_empty(self.item_spec, "item_spec")

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = super().get_argument_builder().add(self.item_spec).add_switch("format", "detailed")
        if self.version:
            builder.add_switch("version", self.version)
        if self.stop_after > 0:
            builder.add_switch("stopafter", self.stop_after)
        if self.recursive:
            builder.add_switch("recursive")
        if self.user:
            builder.add_switch("user", self.user)
        if self.item_mode:
            builder.add_switch("itemmode")
        return builder

    def parse_output(self, stdout: str, stderr: str) -> list[ChangeSet]:
        self.throw_if_error(stderr)

        blocks: list[list[str]] = []
        current: list[str] | None = None
        for line in split_lines(stdout):
            if _RULE_PATTERN.match(line.strip()):
                current = []
                blocks.append(current)
            elif current is not None:
                current.append(line)
            elif line.strip().lower().startswith("changeset:"):
                # Output without a leading rule
                current = [line]
                blocks.append(current)

        return [self._parse_block(block, stdout) for block in blocks if any(l.strip() for l in block)]

    def _parse_block(self, block: list[str], stdout: str) -> ChangeSet:
        fields: dict[str, str] = {}
        comment_lines: list[str] = []
        changes: list[Change] = []
        section: str | None = None

        for line in block:
            indented = line[:1].isspace()
            if indented and section == "comment":
                comment_lines.append(line.strip())
                continue
            if indented and section == "items":
                if line.strip():
                    changes.append(self._parse_item(line.strip(), stdout))
                continue
            if not line.strip():
                continue

            key, sep, value = line.partition(":")
            if not sep:
                raise self.parse_failure(f"bad history line {line!r}", stdout)
            key = key.strip().lower()
            section = None
            if key == "comment":
                section = "comment"
                if value.strip():
                    comment_lines.append(value.strip())
            elif key == "items":
                section = "items"
            else:
                fields[key] = value.strip()

        raw_id = fields.get("changeset", "")
        try:
            changeset_id = int(raw_id)
        except ValueError as exc:
            raise self.parse_failure(f"invalid changeset id {raw_id!r}", stdout) from exc

        owner = fields.get("user", "")
        return ChangeSet(
            id=changeset_id,
            owner=owner,
            committer=fields.get("checked in by", owner),
            date=fields.get("date", ""),
            comment="\n".join(comment_lines).strip(),
            changes=tuple(changes),
        )

    def _parse_item(self, text: str, stdout: str) -> Change:
        types, sep, server_item = text.partition("$/")
        if not sep:
            raise self.parse_failure(f"item without server path {text!r}", stdout)
        return Change(
            server_item=_DELETION_SUFFIX_PATTERN.sub("", f"$/{server_item}".strip()),
            change_types=ChangeType.parse_list(types),
        )


@dataclass(frozen=True)
class StatusCommand(Command[list[PendingChange]]):
    """Pending changes under a local path.

    status <path> /recursive /format:detailed
    """

    name = "status"

    local_path: str = ""

    def validate(self) -> None:
        check_not_empty(self.local_path, "local_path")

    def get_argument_builder(self) -> ArgumentBuilder:
        return (
            super()
            .get_argument_builder()
            .add(self.local_path)
            .add_switch("recursive")
            .add_switch("format", "detailed")
        )

    def parse_output(self, stdout: str, stderr: str) -> list[PendingChange]:
        self.throw_if_error(stderr)

        changes: list[PendingChange] = []
        header: re.Match[str] | None = None
        fields: dict[str, str] = {}

        def flush() -> None:
            if header is not None:
                changes.append(self._build(header, fields, stdout))

        for line in split_lines(stdout):
            if not line.strip():
                continue
            if not line[:1].isspace():
                match = _STATUS_HEADER_PATTERN.match(line.strip())
                if match is None:
                    # Summary lines such as "1 change(s)"
                    continue
                flush()
                header = match
                fields = {}
                continue
            if header is None:
                continue
            key, sep, value = line.partition(":")
            if not sep:
                raise self.parse_failure(f"bad status line {line!r}", stdout)
            fields[key.strip().lower()] = value.strip()
        flush()
        return changes

    def _build(self, header: re.Match[str], fields: dict[str, str], stdout: str) -> PendingChange:
        local_item = fields.get("local item", "")
        computer = ""
        prefixed = _COMPUTER_PREFIX_PATTERN.match(local_item)
        if prefixed:
            computer = prefixed.group("computer")
            local_item = prefixed.group("path")
        if not local_item:
            raise self.parse_failure(f"no local item for {header.group('item')!r}", stdout)
        return PendingChange(
            server_item=header.group("item"),
            local_item=local_item,
            version=int(header.group("version") or 0),
            owner=fields.get("user", ""),
            date=fields.get("date", ""),
            lock=fields.get("lock", ""),
            change_types=ChangeType.parse_list(fields.get("change", "")),
            workspace=fields.get("workspace", ""),
            computer=computer,
            source_item=fields.get("source item", ""),
        )
