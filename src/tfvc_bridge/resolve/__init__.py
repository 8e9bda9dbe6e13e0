"""Conflict resolution subpackage.

Modules:
    engine: Per-conflict resolution state machine driven through the tool
"""

from __future__ import annotations

from .engine import (
    TERMINAL_STATES,
    ConflictResolutionEngine,
    ConflictResolutionEntry,
    ResolutionState,
)

__all__ = [
    "ConflictResolutionEngine",
    "ConflictResolutionEntry",
    "ResolutionState",
    "TERMINAL_STATES",
]
