"""Tool surface — edit, diff and read-file tools built on the edit engine."""

from .base import ToolSpec, ToolResult, ToolError, ToolLocation, FileDiffDisplay
from .edit_tool import EditTool, EditInvocation, run_edit, EDIT_TOOL_NAME
from .diff_tool import DiffTool, DIFF_TOOL_NAME
from .read_file import ReadFileTool, READ_FILE_TOOL_NAME

__all__ = [
    "ToolSpec", "ToolResult", "ToolError", "ToolLocation", "FileDiffDisplay",
    "EditTool", "EditInvocation", "run_edit", "EDIT_TOOL_NAME",
    "DiffTool", "DIFF_TOOL_NAME",
    "ReadFileTool", "READ_FILE_TOOL_NAME",
]
