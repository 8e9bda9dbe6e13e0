"""Project-scoped bridge configuration in .tfvc-bridge/config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ruamel.yaml import YAML

from tfvc_bridge.core.paths import locate_project_root
from tfvc_bridge.core.rename_history import DEFAULT_HISTORY_WINDOW
from tfvc_bridge.core.runner import ToolRunner
from tfvc_bridge.core.types import ServerContext

TOOL_ENV_VAR = "TFVC_BRIDGE_TF"
PASSWORD_ENV_VAR = "TFVC_BRIDGE_PASSWORD"

CONFIG_SECTION = "tool"

EDITABLE_KEYS: tuple[str, ...] = (
    "executable",
    "collection_url",
    "username",
    "history_window",
    "max_history_depth",
    "encoding",
)


class BridgeConfigError(RuntimeError):
    """Raised when bridge configuration is invalid."""


def _optional_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _positive_int(value: object, key: str) -> int | None:
    if value is None or (isinstance(value, str) and value.strip().lower() in {"", "none", "null"}):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise BridgeConfigError(f"'{key}' must be an integer, got {value!r}") from exc
    if number <= 0:
        raise BridgeConfigError(f"'{key}' must be positive, got {number}")
    return number


@dataclass(slots=True)
class BridgeConfig:
    """Tool configuration stored inside .tfvc-bridge/config.yaml."""

    executable: str = "tf"
    collection_url: str | None = None
    username: str | None = None
    history_window: int = DEFAULT_HISTORY_WINDOW
    max_history_depth: int | None = None
    encoding: str = "utf-8"

    def to_dict(self) -> dict[str, object]:
        return {
            "executable": self.executable,
            "collection_url": self.collection_url,
            "username": self.username,
            "history_window": self.history_window,
            "max_history_depth": self.max_history_depth,
            "encoding": self.encoding,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object] | None) -> "BridgeConfig":
        if not isinstance(data, dict):
            return cls()

        return cls(
            executable=_optional_str(data.get("executable")) or "tf",
            collection_url=_optional_str(data.get("collection_url")),
            username=_optional_str(data.get("username")),
            history_window=_positive_int(data.get("history_window"), "history_window") or DEFAULT_HISTORY_WINDOW,
            max_history_depth=_positive_int(data.get("max_history_depth"), "max_history_depth"),
            encoding=_optional_str(data.get("encoding")) or "utf-8",
        )

    def with_value(self, key: str, value: str) -> "BridgeConfig":
        """Return a copy with one key set from a CLI string value."""
        if key not in EDITABLE_KEYS:
            raise BridgeConfigError(f"Unknown setting '{key}'. Expected one of: {', '.join(EDITABLE_KEYS)}")
        data = self.to_dict()
        data[key] = value
        return BridgeConfig.from_dict(data)

    def resolved_executable(self) -> str:
        """Executable with the environment override applied."""
        return _optional_str(os.getenv(TOOL_ENV_VAR)) or self.executable

    def server_context(self) -> ServerContext:
        return ServerContext(
            collection_url=self.collection_url or "",
            username=self.username or "",
            password=os.getenv(PASSWORD_ENV_VAR, "") if self.username else "",
        )


def find_project_root(start: Path | None = None) -> Path:
    """Resolve the project root from ``start`` (default: cwd), falling back to ``start``."""
    origin = (start or Path.cwd()).resolve()
    return locate_project_root(origin) or origin


def _config_path(project_root: Path) -> Path:
    return project_root / ".tfvc-bridge" / "config.yaml"


def load_config(project_root: Path) -> BridgeConfig:
    """Load tool config from .tfvc-bridge/config.yaml."""
    config_path = _config_path(project_root)
    if not config_path.exists():
        return BridgeConfig()

    yaml = YAML()
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    except Exception as exc:
        raise BridgeConfigError(f"Failed to parse {config_path}: {exc}") from exc

    tool_data = payload.get(CONFIG_SECTION) if isinstance(payload, dict) else None
    return BridgeConfig.from_dict(tool_data if isinstance(tool_data, dict) else None)


def save_config(project_root: Path, config: BridgeConfig) -> None:
    """Persist tool config into .tfvc-bridge/config.yaml, preserving other sections."""
    config_path = _config_path(project_root)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.preserve_quotes = True

    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    else:
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    payload[CONFIG_SECTION] = config.to_dict()

    with config_path.open("w", encoding="utf-8") as handle:
        yaml.dump(payload, handle)


def build_runner(config: BridgeConfig | None = None, working_directory: Path | None = None) -> ToolRunner:
    """Create a ToolRunner from configuration (defaults when none is given)."""
    config = config or BridgeConfig()
    return ToolRunner(
        executable=config.resolved_executable(),
        working_directory=working_directory,
        encoding=config.encoding,
    )


def build_orchestrator(config: BridgeConfig, working_directory: Path | None = None):
    """Create a CommandOrchestrator wired to the configured runner and search limits."""
    from tfvc_bridge.core.operations import CommandOrchestrator

    return CommandOrchestrator(
        build_runner(config, working_directory),
        history_window=config.history_window,
        max_history_depth=config.max_history_depth,
        encoding=config.encoding,
    )
