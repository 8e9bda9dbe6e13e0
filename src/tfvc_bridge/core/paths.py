"""Path comparison and project root discovery helpers."""

from __future__ import annotations

import ntpath
import os
from pathlib import Path

__all__ = ["normalize_path", "are_file_paths_same", "locate_project_root", "PROJECT_MARKERS"]

# Directories that mark the root of a mapped project
PROJECT_MARKERS: tuple[str, ...] = (".tfvc-bridge", "$tf", ".tf")


def normalize_path(path: str) -> str:
    """Normalize separators, redundant segments and (on Windows) case."""
    if not path:
        return ""
    normalized = os.path.normcase(os.path.normpath(path))
    if len(normalized) > 1:
        normalized = normalized.rstrip("\\/") or normalized
    return normalized


def are_file_paths_same(first: str | None, second: str | None) -> bool:
    """Compare two paths the way the local platform's file system would."""
    if first is None or second is None:
        return first is None and second is None
    if normalize_path(first) == normalize_path(second):
        return True
    # Windows style local paths compared from any platform
    if ntpath.isabs(first) and ntpath.isabs(second) and ":" in first[:3]:
        return ntpath.normcase(ntpath.normpath(first)) == ntpath.normcase(ntpath.normpath(second))
    return False


def locate_project_root(start: Path) -> Path | None:
    """Walk up from ``start`` to the first directory containing a project marker."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        for marker in PROJECT_MARKERS:
            if (candidate / marker).is_dir():
                return candidate
    return None
