"""
Commit writer — restores the original line endings and persists the final
content through the store.
"""

from __future__ import annotations

import logging
import os
import re

from ..errors import EditToolError, ToolErrorType
from ..file_system import FileSystemService, StoreError
from .resolver import LineEnding

logger = logging.getLogger(__name__)

_NEWLINE_RE = re.compile(r"\r?\n")


def restore_line_endings(content: str, line_ending: LineEnding) -> str:
    """Re-expand ``\\n`` to ``\\r\\n`` for CRLF files; LF content is untouched."""
    if line_ending is LineEnding.CRLF:
        return _NEWLINE_RE.sub("\r\n", content)
    return content


class CommitWriter:
    """Writes resolved content back to the store.

    The store provides all-or-nothing writes; this class adds no retries.
    """

    def __init__(self, file_system: FileSystemService, workspace=None) -> None:
        self._fs = file_system
        self._workspace = workspace

    def commit(self, path: str, final_content: str,
               line_ending: LineEnding = LineEnding.LF) -> str:
        """Persist *final_content* to *path* and return the bytes written.

        Raises
        ------
        EditToolError
            ``PATH_NOT_IN_WORKSPACE`` on an access denial, or
            ``FILE_WRITE_FAILURE`` when the directory or file cannot be
            written.
        """
        if self._workspace is not None:
            denial = self._workspace.check_access(path, "write")
            if denial:
                raise EditToolError(
                    ToolErrorType.PATH_NOT_IN_WORKSPACE, denial,
                    display="Workspace access denied.",
                )

        text = restore_line_endings(final_content, line_ending)
        try:
            self._ensure_parent_directories(path)
            self._fs.write_text_file(path, text)
        except (StoreError, OSError) as exc:
            logger.error("[Edit] Write failed for %s: %s", path, exc)
            raise EditToolError(
                ToolErrorType.FILE_WRITE_FAILURE, str(exc),
                display=f"Error writing file: {exc}",
            ) from exc

        logger.info("[Edit] Wrote %s (%d chars, %s)",
                    path, len(text), line_ending.name)
        return text

    @staticmethod
    def _ensure_parent_directories(path: str) -> None:
        parent = os.path.dirname(os.path.abspath(path))
        os.makedirs(parent, exist_ok=True)
