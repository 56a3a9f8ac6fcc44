"""
Line edits — the edit data model and the pure line-range applier.

Edits are authored against the *original* line numbering and applied as if
simultaneous: the applier sorts a copy by ``start_line`` descending and
splices bottom-up so earlier line numbers stay valid.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable


@dataclass(frozen=True)
class EditSpec:
    """Replace the inclusive 1-based range ``[start_line, end_line]``.

    When ``start_line > end_line`` nothing is removed and ``content`` is
    inserted immediately before ``start_line``.
    """
    start_line: int
    end_line: int
    content: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditSpec":
        return cls(
            start_line=int(data["start_line"]),
            end_line=int(data["end_line"]),
            content=data["content"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "content": self.content,
        }


@dataclass(frozen=True)
class EditRequest:
    """One edit-tool invocation: a target file plus its line edits.

    The order of ``edits`` carries no meaning; see :func:`apply_line_edits`.
    """
    file_path: str
    edits: tuple[EditSpec, ...] = field(default_factory=tuple)
    instruction: str = ""
    modified_by_user: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditRequest":
        raw_edits = data.get("edits") or []
        return cls(
            file_path=str(data.get("file_path", "")),
            edits=tuple(
                e if isinstance(e, EditSpec) else EditSpec.from_dict(e)
                for e in raw_edits
            ),
            instruction=str(data.get("instruction", "")),
            modified_by_user=bool(data.get("modified_by_user", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "file_path": self.file_path,
            "edits": [e.to_dict() for e in self.edits],
            "instruction": self.instruction,
        }
        if self.modified_by_user:
            data["modified_by_user"] = True
        return data

    def with_file_path(self, file_path: str) -> "EditRequest":
        return replace(self, file_path=file_path)


def count_lines(content: str) -> int:
    """Number of ``\\n``-separated lines, counting a trailing empty line."""
    return len(content.split("\n"))


def apply_line_edits(content: str, edits: Iterable[EditSpec]) -> str:
    """Apply line-range edits to *content* and return the new text.

    Parameters
    ----------
    content:
        Text using ``\\n`` as the only line separator.
    edits:
        Edits whose line numbers all refer to *content* as given.

    Returns
    -------
    str
        The edited text, rejoined with ``\\n``.

    Line numbers are not validated: ``start_line`` 0 clamps to the first
    line, a range past the end removes through the end, and a start past the
    end appends. Overlapping ranges are the caller's responsibility; the
    result then depends on the descending ``start_line`` application order.
    """
    lines = content.split("\n")
    # sorted() is stable, so equal start lines keep their caller order
    ordered = sorted(edits, key=lambda e: e.start_line, reverse=True)

    for edit in ordered:
        start_index = max(0, edit.start_line - 1)
        remove_count = max(0, edit.end_line - edit.start_line + 1)
        if not isinstance(edit.content, str):
            raise TypeError(
                f"Edit content for lines {edit.start_line}-{edit.end_line} "
                f"must be a string, got {type(edit.content).__name__}"
            )
        replacement = [] if edit.content == "" else edit.content.split("\n")
        lines[start_index:start_index + remove_count] = replacement

    return "\n".join(lines)
