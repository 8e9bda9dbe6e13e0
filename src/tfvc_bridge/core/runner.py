"""Process runner and argument vector builder for the external ``tf`` client."""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ToolInvocationError

__all__ = ["ArgumentBuilder", "ToolResult", "ToolRunner"]

logger = logging.getLogger(__name__)

# Seconds to wait after terminate() before escalating to kill()
_TERMINATE_GRACE = 5

_MASKED_SWITCHES = frozenset({"login"})


class ArgumentBuilder:
    """Ordered argument vector for one tool invocation.

    Positional tokens and ``/switch[:value]`` tokens are kept in insertion
    order within their own group; ``build()`` always emits positional tokens
    before switches because the client is order sensitive for positionals.
    """

    def __init__(self, subcommand: str):
        self.subcommand = subcommand
        self._positional: list[str] = []
        self._switches: list[tuple[str, str | None]] = []

    def add(self, value: str | Path) -> "ArgumentBuilder":
        self._positional.append(str(value))
        return self

    def add_switch(self, name: str, value: str | int | None = None) -> "ArgumentBuilder":
        self._switches.append((name, None if value is None else str(value)))
        return self

    @property
    def positional(self) -> list[str]:
        return list(self._positional)

    @property
    def switches(self) -> list[str]:
        return [self._render_switch(name, value) for name, value in self._switches]

    def has_switch(self, name: str) -> bool:
        return any(existing == name for existing, _ in self._switches)

    def build(self) -> list[str]:
        return [self.subcommand, *self._positional, *self.switches]

    @staticmethod
    def _render_switch(name: str, value: str | None) -> str:
        return f"/{name}" if value is None else f"/{name}:{value}"

    def __str__(self) -> str:
        rendered = [self.subcommand, *self._positional]
        for name, value in self._switches:
            if name in _MASKED_SWITCHES and value is not None and "," in value:
                user = value.split(",", 1)[0]
                rendered.append(f"/{name}:{user},********")
            else:
                rendered.append(self._render_switch(name, value))
        return " ".join(rendered)


@dataclass(frozen=True)
class ToolResult:
    """Captured output of a finished tool process."""

    stdout: str
    stderr: str
    exit_code: int


class ToolRunner:
    """Spawn the client process and capture its output.

    ``run()`` blocks the calling thread until the process exits, so callers
    must invoke it from a worker thread. ``cancel()`` may be called from any
    other thread and terminates the running process.
    """

    def __init__(
        self,
        executable: str = "tf",
        working_directory: Path | str | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self.executable = executable
        self.working_directory = Path(working_directory) if working_directory else None
        self.encoding = encoding
        self._lock = threading.Lock()
        self._process: subprocess.Popen[str] | None = None
        self._cancelled = False

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._process is not None and self._process.poll() is None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def run(self, arguments: ArgumentBuilder) -> ToolResult:
        """Run the client with the given arguments and return its output."""
        argv = [self.executable, *arguments.build()]
        logger.debug("Running %s %s", self.executable, arguments)

        with self._lock:
            self._cancelled = False
            try:
                process = subprocess.Popen(
                    argv,
                    cwd=str(self.working_directory) if self.working_directory else None,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                    encoding=self.encoding,
                    errors="replace",
                )
            except OSError as exc:
                raise ToolInvocationError(
                    f"Unable to start {self.executable}: {exc}",
                    stderr=str(exc),
                ) from exc
            self._process = process

        try:
            stdout, stderr = process.communicate()
        finally:
            with self._lock:
                self._process = None

        if self._cancelled:
            raise ToolInvocationError(
                f"{self.executable} {arguments.subcommand} was cancelled",
                stderr=stderr or "",
                exit_code=process.returncode,
            )

        logger.debug("%s %s exited with %s", self.executable, arguments.subcommand, process.returncode)
        return ToolResult(stdout=stdout or "", stderr=stderr or "", exit_code=process.returncode)

    def cancel(self) -> bool:
        """Terminate the running process. Returns False when nothing is running."""
        with self._lock:
            process = self._process
            if process is None or process.poll() is not None:
                return False
            self._cancelled = True
            process.terminate()

        try:
            process.wait(timeout=_TERMINATE_GRACE)
        except subprocess.TimeoutExpired:
            logger.warning("%s did not terminate, killing it", self.executable)
            process.kill()
        return True
