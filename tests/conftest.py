"""Shared fixtures: an in-memory text store and a sandboxed config."""

import pytest

from linepatch.config import Config
from linepatch.file_system import StoreNotFoundError, StoreReadError, StoreWriteError


class MemoryFileSystem:
    """Dict-backed store that records every write."""

    def __init__(self, files=None):
        self.files = dict(files or {})
        self.writes = []
        self.unreadable = set()
        self.fail_writes = False

    def read_text_file(self, path):
        if path in self.unreadable:
            raise StoreReadError(path, f"Permission denied: {path}")
        if path not in self.files:
            raise StoreNotFoundError(path, f"File not found: {path}")
        return self.files[path]

    def write_text_file(self, path, text):
        if self.fail_writes:
            raise StoreWriteError(path, f"Disk full: {path}")
        self.writes.append((path, text))
        self.files[path] = text


@pytest.fixture
def memory_fs():
    return MemoryFileSystem()


@pytest.fixture
def config(tmp_path, monkeypatch):
    for key in ("LINEPATCH_APPROVAL_MODE", "LINEPATCH_METRICS",
                "LINEPATCH_TARGET_DIR", "LINEPATCH_WORKSPACE_DIRS",
                "LINEPATCH_REVIEWER"):
        monkeypatch.delenv(key, raising=False)
    return Config({"target_dir": str(tmp_path), "metrics_enabled": False})
