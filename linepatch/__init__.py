"""
linepatch — preview and apply line-range edits to text files.

Public API for library usage::

    from linepatch import EditTool, run_edit

    result = run_edit(EditTool(), {
        "file_path": "src/app.py",
        "edits": [{"start_line": 3, "end_line": 4, "content": "x = 1"}],
        "instruction": "Set x",
    })
    print(result.llm_content)
"""

from .config import Config
from .editing import EditRequest, EditSpec, apply_line_edits
from .errors import EditToolError, OperationCancelled, ToolErrorType
from .tools import DiffTool, EditTool, ReadFileTool, ToolResult, run_edit

__all__ = [
    "Config",
    "EditRequest", "EditSpec", "apply_line_edits",
    "EditToolError", "OperationCancelled", "ToolErrorType",
    "DiffTool", "EditTool", "ReadFileTool", "ToolResult", "run_edit",
]
