"""
File system service — the text store the edit engine reads and writes.

Store failures are raised as explicit :class:`StoreError` subclasses so the
engine never has to inspect errno values itself.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Protocol

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for text store failures."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class StoreNotFoundError(StoreError):
    """The requested file does not exist."""


class StoreReadError(StoreError):
    """The file exists but could not be read as text."""


class StoreWriteError(StoreError):
    """The file could not be written."""


class FileSystemService(Protocol):
    def read_text_file(self, path: str) -> str: ...
    def write_text_file(self, path: str, text: str) -> None: ...


class StandardFileSystemService:
    """UTF-8 text store on the local disk with all-or-nothing writes."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def read_text_file(self, path: str) -> str:
        # newline="" keeps \r\n intact so callers can detect line endings
        try:
            with open(path, "r", encoding=self._encoding, newline="") as f:
                return f.read()
        except FileNotFoundError as exc:
            raise StoreNotFoundError(path, f"File not found: {path}") from exc
        except IsADirectoryError as exc:
            raise StoreReadError(path, f"Path is a directory: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreReadError(path, f"Failed to read {path}: {exc}") from exc

    def write_text_file(self, path: str, text: str) -> None:
        """Write *text* atomically via a temp file in the same directory."""
        abs_path = os.path.abspath(path)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=os.path.dirname(abs_path),
                prefix=".linepatch_",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding=self._encoding, newline="") as f:
                f.write(text)
            if os.path.exists(abs_path):
                try:
                    os.chmod(tmp_path, os.stat(abs_path).st_mode & 0o7777)
                except OSError:
                    logger.debug("[Store] Could not copy mode bits to %s", abs_path)
            os.replace(tmp_path, abs_path)
        except OSError as exc:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
            raise StoreWriteError(path, f"Failed to write {path}: {exc}") from exc
