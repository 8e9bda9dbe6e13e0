"""Base contract shared by every tool command variant."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Iterable, TypeVar

from ..exceptions import InvalidArgumentError, ToolInvocationError, ToolParseFailure
from ..runner import ArgumentBuilder, ToolRunner
from ..types import ServerContext

__all__ = [
    "Command",
    "check_not_none",
    "check_not_empty",
    "check_not_empty_list",
    "freeze_sequence",
    "split_lines",
    "join_folder",
]

logger = logging.getLogger(__name__)

R = TypeVar("R")


def check_not_none(value: Any, name: str) -> None:
    if value is None:
        raise InvalidArgumentError(f"{name} must not be None")


def check_not_empty(value: str | None, name: str) -> None:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{name} must be a non-empty string")


def check_not_empty_list(values: Iterable[str] | None, name: str) -> None:
    if values is None:
        raise InvalidArgumentError(f"{name} must not be None")
    items = list(values)
    if not items:
        raise InvalidArgumentError(f"{name} must not be empty")
    for item in items:
        check_not_empty(item, f"{name} entry")


def freeze_sequence(instance: object, attribute: str) -> None:
    """Store a list-like dataclass field as a tuple so frozen commands stay hashable."""
    value = getattr(instance, attribute)
    if isinstance(value, str):
        object.__setattr__(instance, attribute, (value,))
    elif value is not None and not isinstance(value, tuple):
        object.__setattr__(instance, attribute, tuple(value))


def split_lines(text: str) -> list[str]:
    """Split output into lines without trailing whitespace."""
    return [line.rstrip() for line in text.splitlines()]


def join_folder(folder: str | None, name: str) -> str:
    """Join a folder header printed by the client with an item name."""
    if not folder or os.path.isabs(name):
        return name
    return os.path.join(folder, name)


@dataclass(frozen=True)
class Command(Generic[R]):
    """One operation of the external client.

    Variants carry their typed parameters as dataclass fields, validate them
    in ``validate()`` (called on construction), append their tokens in
    ``get_argument_builder()`` and turn stdout into a typed result in
    ``parse_output()``.
    """

    name: ClassVar[str] = ""

    context: ServerContext | None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check constructor parameters, raising InvalidArgumentError."""

    def get_argument_builder(self) -> ArgumentBuilder:
        builder = ArgumentBuilder(self.name).add_switch("noprompt")
        if self.context is not None:
            if self.context.collection_url:
                builder.add_switch("collection", self.context.collection_url)
            if self.context.has_credentials:
                builder.add_switch("login", self.context.login)
        return builder

    def parse_output(self, stdout: str, stderr: str) -> R:
        raise NotImplementedError

    def run_synchronously(self, runner: ToolRunner | None = None) -> R:
        """Run the client and parse its output. Blocks until the process exits."""
        if runner is None:
            from tfvc_bridge.config import build_runner

            runner = build_runner()
        result = runner.run(self.get_argument_builder())
        if result.stderr:
            self.throw_if_error(result.stderr, exit_code=result.exit_code)
        if result.exit_code != 0:
            raise ToolInvocationError(
                f"{self.name} failed with exit code {result.exit_code}: {result.stdout.strip()}",
                stderr=result.stderr,
                exit_code=result.exit_code,
            )
        return self.parse_output(result.stdout, result.stderr)

    def throw_if_error(self, stderr: str, exit_code: int | None = None) -> None:
        """Raise ToolInvocationError for any non-empty stderr, whitespace included."""
        if stderr:
            message = stderr.strip() or f"{self.name} wrote only whitespace to stderr"
            logger.debug("%s reported an error: %s", self.name, message)
            raise ToolInvocationError(message, stderr=stderr, exit_code=exit_code)

    def parse_failure(self, message: str, stdout: str) -> ToolParseFailure:
        return ToolParseFailure(f"Unexpected output from {self.name}: {message}", output=stdout)
