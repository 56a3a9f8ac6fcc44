"""
Read file tool — returns a file (or a line range of it), optionally with
line numbers, so edits can target exact lines.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import Config
from ..errors import ToolErrorType
from ..file_system import (
    FileSystemService, StandardFileSystemService, StoreError, StoreNotFoundError,
)
from ..workspace import WorkspaceContext, make_relative, resolve_path
from .base import ToolResult, ToolSpec

logger = logging.getLogger(__name__)

READ_FILE_TOOL_NAME = "read_file"

READ_FILE_SPEC = ToolSpec(
    name=READ_FILE_TOOL_NAME,
    display_name="ReadFile",
    description="Reads a text file, optionally limited to a 1-based line range.",
    parameters={
        "type": "object",
        "properties": {
            "file_path": {"type": "string", "description": "The file to read."},
            "start_line": {"type": "integer", "minimum": 1},
            "end_line": {"type": "integer", "minimum": 1},
            "include_line_numbers": {"type": "boolean"},
        },
        "required": ["file_path"],
    },
)


def format_lines(lines: list[str], first_line: int, numbered: bool) -> str:
    if not numbered:
        return "\n".join(lines)
    width = len(str(first_line + len(lines) - 1))
    return "\n".join(
        f"{n:>{width}}| {line}" for n, line in enumerate(lines, first_line)
    )


class ReadFileTool:
    name = READ_FILE_TOOL_NAME
    spec = READ_FILE_SPEC

    def __init__(
        self,
        config: Optional[Config] = None,
        file_system: Optional[FileSystemService] = None,
        workspace: Optional[WorkspaceContext] = None,
    ) -> None:
        self.config = config or Config()
        self.file_system = file_system or StandardFileSystemService()
        self.workspace = workspace or WorkspaceContext(self.config.WORKSPACE_DIRS)

    def execute(self, params: dict[str, Any]) -> ToolResult:
        given = params.get("file_path")
        if not given:
            return ToolResult.failure(
                ToolErrorType.INVALID_TOOL_PARAMS,
                "The 'file_path' parameter must be non-empty.",
                "Invalid parameters.",
            )
        path = resolve_path(self.config.TARGET_DIR, given)

        denial = self.workspace.check_access(path, "read")
        if denial:
            return ToolResult.failure(
                ToolErrorType.PATH_NOT_IN_WORKSPACE, denial,
                "Workspace access denied.",
            )

        try:
            content = self.file_system.read_text_file(path)
        except StoreNotFoundError:
            return ToolResult.failure(
                ToolErrorType.FILE_NOT_FOUND,
                f"File not found: {path}",
                "File not found.",
            )
        except StoreError as exc:
            logger.warning("[Read] %s", exc)
            return ToolResult.failure(
                ToolErrorType.READ_CONTENT_FAILURE, str(exc),
                "Failed to read content of file.",
            )

        lines = content.replace("\r\n", "\n").split("\n")
        total = len(lines)
        start = max(1, int(params.get("start_line") or 1))
        end = min(total, int(params.get("end_line") or total))
        if start > total or end < start:
            return ToolResult.failure(
                ToolErrorType.INVALID_TOOL_PARAMS,
                f"Line range {start}-{end} is outside the file ({total} lines).",
                "Invalid line range.",
            )

        shown = lines[start - 1:end]
        body = format_lines(shown, start, bool(params.get("include_line_numbers")))
        if start > 1 or end < total:
            body = (f"[Showing lines {start}-{end} of {total}. Use start_line/"
                    f"end_line to read more.]\n\n{body}")

        relative = make_relative(path, self.config.TARGET_DIR)
        return ToolResult(
            llm_content=body,
            return_display=f"Read lines {start}-{end} of {relative}",
            metadata={"total_lines": total, "start_line": start, "end_line": end},
        )
