from __future__ import annotations

from collections import defaultdict, deque

import pytest

from tfvc_bridge.core.operations import CommandOrchestrator
from tfvc_bridge.core.runner import ArgumentBuilder, ToolResult
from tfvc_bridge.core.types import ServerContext


class FakeToolRunner:
    """Stands in for ToolRunner: records builders and replays queued results per subcommand."""

    def __init__(self) -> None:
        self.calls: list[ArgumentBuilder] = []
        self._results: dict[str, deque[ToolResult | Exception]] = defaultdict(deque)

    def queue(self, subcommand: str, stdout: str = "", stderr: str = "", exit_code: int = 0) -> "FakeToolRunner":
        self._results[subcommand].append(ToolResult(stdout=stdout, stderr=stderr, exit_code=exit_code))
        return self

    def queue_error(self, subcommand: str, error: Exception) -> "FakeToolRunner":
        self._results[subcommand].append(error)
        return self

    def run(self, arguments: ArgumentBuilder) -> ToolResult:
        self.calls.append(arguments)
        pending = self._results[arguments.subcommand]
        if not pending:
            raise AssertionError(f"Unexpected tool call: {arguments}")
        result = pending.popleft()
        if isinstance(result, Exception):
            raise result
        return result

    def argv(self, index: int = -1) -> list[str]:
        return self.calls[index].build()

    def subcommands(self) -> list[str]:
        return [call.subcommand for call in self.calls]


@pytest.fixture()
def fake_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture()
def orchestrator(fake_runner: FakeToolRunner) -> CommandOrchestrator:
    return CommandOrchestrator(fake_runner)


@pytest.fixture()
def context() -> ServerContext:
    return ServerContext(
        collection_url="http://tfs.example.com:8080/tfs/DefaultCollection",
        username="alice",
        password="s3cret",
    )


@pytest.fixture(autouse=True)
def clean_tool_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TFVC_BRIDGE_TF", raising=False)
    monkeypatch.delenv("TFVC_BRIDGE_PASSWORD", raising=False)
