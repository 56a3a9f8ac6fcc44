"""
Workspace context — path resolution and the read/write access check.
"""

from __future__ import annotations

import os
from typing import Iterable, Literal

AccessIntent = Literal["read", "write"]


def resolve_path(target_dir: str, path: str) -> str:
    """Return *path* as an absolute, normalised path under *target_dir*."""
    expanded = os.path.expanduser(path)
    if not os.path.isabs(expanded):
        expanded = os.path.join(target_dir, expanded)
    return os.path.normpath(os.path.abspath(expanded))


def make_relative(path: str, root: str) -> str:
    """Relative form of *path* from *root*, or *path* if they share no root."""
    try:
        rel = os.path.relpath(path, root)
    except ValueError:
        return path
    return rel


def shorten_path(path: str, max_len: int = 35) -> str:
    """Shorten *path* for display by eliding middle segments."""
    if len(path) <= max_len:
        return path

    sep = os.sep
    parts = path.split(sep)
    if len(parts) <= 2:
        keep = max_len - 3
        head = keep // 2
        return path[:head] + "..." + path[len(path) - (keep - head):]

    first, last = parts[0], parts[-1]
    tail = [last]
    # add trailing segments while they fit next to "first/.../"
    for segment in reversed(parts[1:-1]):
        candidate = sep.join([first, "..."] + [segment] + tail)
        if len(candidate) > max_len:
            break
        tail.insert(0, segment)
    shortened = sep.join([first, "..."] + tail)
    if len(shortened) > max_len:
        return "..." + shortened[-(max_len - 3):]
    return shortened


class WorkspaceContext:
    """The set of directories the engine may read from and write to."""

    def __init__(self, directories: Iterable[str]) -> None:
        self._directories = [
            os.path.realpath(os.path.abspath(d)) for d in directories
        ]
        if not self._directories:
            raise ValueError("WorkspaceContext needs at least one directory")

    @property
    def directories(self) -> list[str]:
        return list(self._directories)

    def is_path_within_workspace(self, path: str) -> bool:
        real = os.path.realpath(os.path.abspath(path))
        for root in self._directories:
            if real == root or real.startswith(root.rstrip(os.sep) + os.sep):
                return True
        return False

    def check_access(self, path: str, intent: AccessIntent) -> str | None:
        """Return ``None`` when approved, otherwise a denial message."""
        if self.is_path_within_workspace(path):
            return None
        dirs = ", ".join(self._directories)
        return (
            f"Path not in workspace: attempted to {intent} '{path}', "
            f"which resolves outside the allowed workspace directories: {dirs}"
        )
