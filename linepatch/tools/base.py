from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ..editing.diff_preview import DiffStat
from ..errors import EditToolError, ToolErrorType


@dataclass(frozen=True)
class ToolSpec:
    name: str
    display_name: str
    description: str
    parameters: dict[str, Any]   # JSONSchema


@dataclass(frozen=True)
class ToolLocation:
    path: str
    line: Optional[int] = None


@dataclass
class ToolError:
    message: str
    type: ToolErrorType


@dataclass
class FileDiffDisplay:
    """Structured display for a committed file edit."""
    file_diff: str
    file_name: str
    file_path: str
    original_content: Optional[str]
    new_content: str
    diff_stat: Optional[DiffStat] = None
    is_new_file: bool = False


@dataclass
class ToolResult:
    llm_content: str
    return_display: Union[str, FileDiffDisplay] = ""
    error: Optional[ToolError] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(cls, kind: ToolErrorType, raw: str, display: str) -> "ToolResult":
        return cls(llm_content=raw, return_display=display,
                   error=ToolError(message=raw, type=kind))

    @classmethod
    def from_error(cls, exc: EditToolError) -> "ToolResult":
        return cls.failure(exc.kind, exc.message, exc.display)
