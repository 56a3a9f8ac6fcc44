"""
Diff preview — unified diffs, line statistics and short context snippets for
(old, new) content pairs.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass

DEFAULT_CONTEXT_LINES = 3
DEFAULT_SNIPPET_CONTEXT = 5

_NO_NEWLINE_MARKER = "\\ No newline at end of file"


@dataclass(frozen=True)
class DiffStat:
    added_lines: int = 0
    removed_lines: int = 0
    added_chars: int = 0
    removed_chars: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "added_lines": self.added_lines,
            "removed_lines": self.removed_lines,
            "added_chars": self.added_chars,
            "removed_chars": self.removed_chars,
        }


@dataclass(frozen=True)
class DiffPreview:
    unified_diff: str
    stat: DiffStat


def _split_lines(text: str) -> list[str]:
    # only "\n" separates lines; form feeds and lone "\r" stay inside a line
    if not text:
        return []
    pieces = text.split("\n")
    lines = [piece + "\n" for piece in pieces[:-1]]
    if pieces[-1]:
        lines.append(pieces[-1])
    return lines


def _terminate(lines: list[str]) -> list[str]:
    """Give every diff line a newline, flagging ones that had none."""
    out: list[str] = []
    for line in lines:
        if line.endswith("\n"):
            out.append(line)
        else:
            out.append(line + "\n")
            if line[:1] in ("+", "-", " "):
                out.append(_NO_NEWLINE_MARKER + "\n")
    return out


class DiffPreviewBuilder:
    """Builds previews with a fixed number of context lines."""

    def __init__(self, context_lines: int = DEFAULT_CONTEXT_LINES) -> None:
        self.context_lines = context_lines

    def compare(
        self,
        file_label: str,
        old: str,
        new: str,
        from_label: str = "Current",
        to_label: str = "Proposed",
    ) -> str:
        """Return a patch for *old* → *new* with an ``Index:`` header."""
        body = difflib.unified_diff(
            _split_lines(old),
            _split_lines(new),
            fromfile=file_label,
            tofile=file_label,
            fromfiledate=from_label,
            tofiledate=to_label,
            n=self.context_lines,
        )
        header = [f"Index: {file_label}\n", "=" * 67 + "\n"]
        lines = header + _terminate(list(body))
        if len(lines) == len(header):
            # no hunks; still emit the file headers like a normal patch
            lines += [
                f"--- {file_label}\t{from_label}\n",
                f"+++ {file_label}\t{to_label}\n",
            ]
        return "".join(lines)

    def preview(self, old: str, new: str, file_label: str) -> DiffPreview:
        return DiffPreview(
            unified_diff=self.compare(file_label, old, new),
            stat=self.stat(old, new),
        )

    @staticmethod
    def stat(old: str, new: str) -> DiffStat:
        """Count added/removed lines and characters from a line comparison."""
        old_lines = old.split("\n") if old else []
        new_lines = new.split("\n") if new else []
        matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

        added = removed = added_chars = removed_chars = 0
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                continue
            if tag in ("replace", "delete"):
                removed += i2 - i1
                removed_chars += sum(len(l) for l in old_lines[i1:i2])
            if tag in ("replace", "insert"):
                added += j2 - j1
                added_chars += sum(len(l) for l in new_lines[j1:j2])
        return DiffStat(added, removed, added_chars, removed_chars)

    @staticmethod
    def snippet(old: str, new: str,
                context_lines: int = DEFAULT_SNIPPET_CONTEXT) -> str:
        """Lines of *new* around the first changed region.

        ``...`` marks lines cut off above or below the window. Returns *new*
        unchanged when *old* is empty or nothing changed.
        """
        if not old:
            return new

        old_lines = old.split("\n")
        new_lines = new.split("\n")
        matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
        first_change = next(
            (op for op in matcher.get_opcodes() if op[0] != "equal"), None,
        )
        if first_change is None:
            return new

        _, _, _, j1, j2 = first_change
        start = max(0, j1 - context_lines)
        end = min(len(new_lines), j2 + context_lines)

        window = new_lines[start:end]
        if start > 0:
            window.insert(0, "...")
        if end < len(new_lines):
            window.append("...")
        return "\n".join(window)


# ── Rendering helpers ──

def format_colored_diff(diff_text: str) -> str:
    """Add ANSI colors to a unified diff string.

    Green for additions (+), red for deletions (-), cyan for @@ hunks.
    """
    colored: list[str] = []
    for line in diff_text.splitlines():
        if line.startswith("+++") or line.startswith("---"):
            colored.append(f"\033[1m{line}\033[0m")
        elif line.startswith("@@"):
            colored.append(f"\033[36m{line}\033[0m")
        elif line.startswith("+"):
            colored.append(f"\033[32m{line}\033[0m")
        elif line.startswith("-"):
            colored.append(f"\033[31m{line}\033[0m")
        else:
            colored.append(line)
    return "\n".join(colored)


def format_rich_diff(diff_text: str) -> str:
    """Convert unified diff text to Rich markup for Textual display."""
    markup_lines: list[str] = []
    for line in diff_text.splitlines():
        escaped = line.replace("[", "\\[")
        if line.startswith("+++") or line.startswith("---"):
            markup_lines.append(f"[bold white]{escaped}[/bold white]")
        elif line.startswith("@@"):
            markup_lines.append(f"[cyan]{escaped}[/cyan]")
        elif line.startswith("+"):
            markup_lines.append(f"[green]{escaped}[/green]")
        elif line.startswith("-"):
            markup_lines.append(f"[red]{escaped}[/red]")
        else:
            markup_lines.append(escaped)
    return "\n".join(markup_lines)
