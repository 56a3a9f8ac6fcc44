"""
Edit resolver — loads the target file, normalises line endings and computes
the candidate content without writing anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import ToolErrorType, raise_if_cancelled
from ..file_system import FileSystemService, StoreError, StoreNotFoundError
from .line_edits import EditRequest, apply_line_edits

logger = logging.getLogger(__name__)

READ_FILE_TOOL_NAME = "read_file"


class LineEnding(str, Enum):
    LF = "\n"
    CRLF = "\r\n"


def detect_line_ending(content: str) -> LineEnding:
    """CRLF if any ``\\r\\n`` occurs in *content*, otherwise LF."""
    return LineEnding.CRLF if "\r\n" in content else LineEnding.LF


@dataclass(frozen=True)
class EditFailure:
    """Why an edit could not be resolved."""
    kind: ToolErrorType
    display: str
    raw: str


@dataclass
class ResolvedEdit:
    """Outcome of one resolution pass.

    When ``failure`` is set, ``new_content`` is the unmodified original (or
    the empty string if nothing could be read).
    """
    original_content: Optional[str]
    new_content: str
    is_new_file: bool = False
    line_ending: LineEnding = LineEnding.LF
    failure: Optional[EditFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class EditResolver:
    """Read-normalise-apply for a single :class:`EditRequest`."""

    def __init__(self, file_system: FileSystemService, workspace=None) -> None:
        self._fs = file_system
        self._workspace = workspace

    def resolve(self, request: EditRequest, cancel_event=None) -> ResolvedEdit:
        path = request.file_path
        raise_if_cancelled(cancel_event, "read")

        if self._workspace is not None:
            denial = self._workspace.check_access(path, "read")
            if denial:
                logger.info("[Edit] Read access denied for %s", path)
                return ResolvedEdit(
                    original_content=None,
                    new_content="",
                    failure=EditFailure(
                        kind=ToolErrorType.PATH_NOT_IN_WORKSPACE,
                        display="Workspace access denied.",
                        raw=denial,
                    ),
                )

        try:
            raw_content = self._fs.read_text_file(path)
        except StoreNotFoundError:
            logger.info("[Edit] Target file not found: %s", path)
            return ResolvedEdit(
                original_content=None,
                new_content="",
                failure=EditFailure(
                    kind=ToolErrorType.FILE_NOT_FOUND,
                    display="File not found. Cannot apply edit.",
                    raw=(
                        f"File not found: {path}. Use {READ_FILE_TOOL_NAME} "
                        f"to verify the file path."
                    ),
                ),
            )
        except StoreError as exc:
            logger.warning("[Edit] Failed to read %s: %s", path, exc)
            return ResolvedEdit(
                original_content=None,
                new_content="",
                failure=EditFailure(
                    kind=ToolErrorType.READ_CONTENT_FAILURE,
                    display="Failed to read content of file.",
                    raw=f"Failed to read content of existing file: {path} ({exc})",
                ),
            )

        line_ending = detect_line_ending(raw_content)
        current = raw_content.replace("\r\n", "\n")

        raise_if_cancelled(cancel_event, "apply")
        try:
            new_content = apply_line_edits(current, request.edits)
        except Exception as exc:
            logger.warning("[Edit] Could not apply %d edits to %s: %s",
                           len(request.edits), path, exc)
            return ResolvedEdit(
                original_content=current,
                new_content=current,
                line_ending=line_ending,
                failure=EditFailure(
                    kind=ToolErrorType.EDIT_PREPARATION_FAILURE,
                    display=f"Error applying edits: {exc}",
                    raw=f"Error applying edits to {path}: {exc}",
                ),
            )

        logger.debug("[Edit] Resolved %d edits for %s (%s line endings)",
                     len(request.edits), path, line_ending.name)
        return ResolvedEdit(
            original_content=current,
            new_content=new_content,
            line_ending=line_ending,
        )
