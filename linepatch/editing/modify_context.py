"""
Modify context — turns reviewer-substituted content back into an edit
request, and gives external editors the current/proposed content of a
request.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..file_system import FileSystemService, StoreNotFoundError
from .line_edits import EditRequest, EditSpec, apply_line_edits, count_lines

logger = logging.getLogger(__name__)


def reconcile(original_content: str, modified_content: str,
              request: EditRequest) -> EditRequest:
    """Collapse *request* into one full-file replacement with *modified_content*.

    The per-edit structure is dropped; the new request reproduces exactly
    what the reviewer approved and is flagged ``modified_by_user``.
    """
    full_file = EditSpec(
        start_line=1,
        end_line=count_lines(original_content),
        content=modified_content,
    )
    return replace(request, edits=(full_file,), modified_by_user=True)


class EditModifyContext:
    """Content accessors for modifying an edit in an external editor."""

    def __init__(self, file_system: FileSystemService) -> None:
        self._fs = file_system

    @staticmethod
    def get_file_path(request: EditRequest) -> str:
        return request.file_path

    def _read_normalised(self, path: str) -> str | None:
        try:
            return self._fs.read_text_file(path).replace("\r\n", "\n")
        except StoreNotFoundError:
            return None

    def get_current_content(self, request: EditRequest) -> str:
        """Current file text, or ``""`` when the file does not exist."""
        return self._read_normalised(request.file_path) or ""

    def get_proposed_content(self, request: EditRequest) -> str:
        """The request's edits applied to the current text (``""`` if missing)."""
        current = self._read_normalised(request.file_path)
        if current is None:
            return ""
        return apply_line_edits(current, request.edits)

    @staticmethod
    def create_updated_request(old_content: str, modified_content: str,
                               request: EditRequest) -> EditRequest:
        logger.info("[Edit] %s modified by user; replacing %d edits with a "
                    "full-file edit", request.file_path, len(request.edits))
        return reconcile(old_content, modified_content, request)
