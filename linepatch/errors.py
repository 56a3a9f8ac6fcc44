"""
Error taxonomy shared by the edit engine and the tool layer.
"""

from __future__ import annotations

from enum import Enum


class ToolErrorType(str, Enum):
    """Kinds of failure a tool invocation can report."""
    FILE_NOT_FOUND = "file_not_found"
    READ_CONTENT_FAILURE = "read_content_failure"
    EDIT_PREPARATION_FAILURE = "edit_preparation_failure"
    PATH_NOT_IN_WORKSPACE = "path_not_in_workspace"
    FILE_WRITE_FAILURE = "file_write_failure"
    INVALID_TOOL_PARAMS = "invalid_tool_params"


class EditToolError(Exception):
    """Raised at a collaborator seam with an explicit error kind.

    ``message`` is the full machine-readable detail; ``display`` is the
    short human summary (defaults to the message).
    """

    def __init__(self, kind: ToolErrorType, message: str,
                 display: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.display = display or message


class OperationCancelled(Exception):
    """Raised when the shared cancellation event fires mid-invocation."""


def raise_if_cancelled(cancel_event, stage: str = "") -> None:
    """Raise :class:`OperationCancelled` if *cancel_event* is set."""
    if cancel_event is not None and cancel_event.is_set():
        where = f" during {stage}" if stage else ""
        raise OperationCancelled(f"Operation cancelled{where}")
