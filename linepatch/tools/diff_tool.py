"""
Diff tool — unified diff between two files on disk.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

from ..config import Config
from ..editing.diff_preview import DiffPreviewBuilder
from ..errors import ToolErrorType
from ..file_system import FileSystemService, StandardFileSystemService, StoreError
from ..workspace import WorkspaceContext, resolve_path
from .base import ToolResult, ToolSpec

logger = logging.getLogger(__name__)

DIFF_TOOL_NAME = "diff_files"

DIFF_SPEC = ToolSpec(
    name=DIFF_TOOL_NAME,
    display_name="Diff",
    description="Shows the differences between two files. Returns a unified diff.",
    parameters={
        "type": "object",
        "properties": {
            "file_path_1": {
                "type": "string",
                "description": "The path to the first file to compare.",
            },
            "file_path_2": {
                "type": "string",
                "description": "The path to the second file to compare.",
            },
        },
        "required": ["file_path_1", "file_path_2"],
    },
)


class DiffTool:
    name = DIFF_TOOL_NAME
    spec = DIFF_SPEC

    def __init__(
        self,
        config: Optional[Config] = None,
        file_system: Optional[FileSystemService] = None,
        workspace: Optional[WorkspaceContext] = None,
    ) -> None:
        self.config = config or Config()
        self.file_system = file_system or StandardFileSystemService()
        self.workspace = workspace or WorkspaceContext(self.config.WORKSPACE_DIRS)
        self.diff_builder = DiffPreviewBuilder(self.config.DIFF_CONTEXT_LINES)

    def get_description(self, params: dict[str, Any]) -> str:
        return f"Comparing {params.get('file_path_1')} and {params.get('file_path_2')}"

    def execute(self, params: dict[str, Any]) -> ToolResult:
        first = params.get("file_path_1")
        second = params.get("file_path_2")
        if not first or not second:
            return ToolResult.failure(
                ToolErrorType.INVALID_TOOL_PARAMS,
                "Both 'file_path_1' and 'file_path_2' are required.",
                "Invalid parameters.",
            )

        resolved = []
        for given in (first, second):
            path = resolve_path(self.config.TARGET_DIR, given)
            denial = self.workspace.check_access(path, "read")
            if denial:
                return ToolResult.failure(
                    ToolErrorType.PATH_NOT_IN_WORKSPACE,
                    f"Access denied to {given}: {denial}",
                    "Workspace access denied.",
                )
            resolved.append(path)

        try:
            content_1 = self.file_system.read_text_file(resolved[0])
            content_2 = self.file_system.read_text_file(resolved[1])
        except StoreError as exc:
            logger.warning("[Diff] %s", exc)
            return ToolResult.failure(
                ToolErrorType.READ_CONTENT_FAILURE,
                f"Error calculating diff: {exc}",
                f"Error calculating diff: {exc}",
            )

        patch = self.diff_builder.compare(
            os.path.basename(resolved[0]), content_1, content_2,
            from_label="file1", to_label="file2",
        )
        return ToolResult(
            llm_content=patch,
            return_display=f"Diff between {first} and {second}",
        )
