"""Exception hierarchy for driving the external TFVC client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Conflict


class ToolError(Exception):
    """Base exception for tool command errors."""

    pass


class InvalidArgumentError(ToolError, ValueError):
    """A command was constructed with missing or malformed input.

    Raised before any process is spawned; always a caller error.
    """

    pass


class ToolInvocationError(ToolError):
    """The external tool reported a failure (stderr, exit status or cancel)."""

    def __init__(
        self,
        message: str,
        stderr: str = "",
        exit_code: int | None = None,
    ):
        self.stderr = stderr
        self.exit_code = exit_code
        super().__init__(message)


class ToolParseFailure(ToolError):
    """Tool output did not match the expected grammar.

    Also raised when the effect of a command (such as writing a downloaded
    file) could not be applied.
    """

    def __init__(self, message: str, output: str = ""):
        self.output = output
        super().__init__(message)


class UnresolvedConflictError(ToolError):
    """A conflict could not be resolved during a batch resolution."""

    def __init__(self, conflict: "Conflict", validation_message: str):
        self.conflict = conflict
        self.validation_message = validation_message
        super().__init__(f"{conflict.local_path}: {validation_message}")


class ConflictSessionError(ToolError):
    """The conflict resolution session was used out of order."""

    pass


__all__ = [
    "ToolError",
    "InvalidArgumentError",
    "ToolInvocationError",
    "ToolParseFailure",
    "UnresolvedConflictError",
    "ConflictSessionError",
]
