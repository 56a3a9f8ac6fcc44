"""
Edit tool — applies a batch of line-range edits to one file.

Flow per invocation::

    EditResolver -> DiffPreviewBuilder -> ConfirmationCoordinator
        -> [reviewer rewrote it: reconcile()] -> CommitWriter

Every failure is returned as a :class:`ToolResult` with an error kind and
leaves the target file untouched. Cancellation propagates as
:class:`OperationCancelled`.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional

from ..config import Config
from ..editing.commit_writer import CommitWriter
from ..editing.confirmation import (
    ConfirmationCoordinator, ConfirmationDetails, ConfirmationOutcome,
    ConfirmationState, InvalidTransitionError, Reviewer,
)
from ..editing.diff_preview import DiffPreviewBuilder
from ..editing.line_edits import EditRequest
from ..editing.metrics import log_edit_metric
from ..editing.modify_context import EditModifyContext, reconcile
from ..editing.resolver import EditResolver, ResolvedEdit
from ..errors import EditToolError, ToolErrorType, raise_if_cancelled
from ..file_system import FileSystemService, StandardFileSystemService
from ..workspace import WorkspaceContext, make_relative, resolve_path, shorten_path
from .base import FileDiffDisplay, ToolLocation, ToolResult, ToolSpec

logger = logging.getLogger(__name__)

EDIT_TOOL_NAME = "edit_file"
EDIT_DISPLAY_NAME = "Edit"

EDIT_SPEC = ToolSpec(
    name=EDIT_TOOL_NAME,
    display_name=EDIT_DISPLAY_NAME,
    description=(
        "Replaces line ranges in a file. Each edit replaces the 1-based, "
        "inclusive range [start_line, end_line] with 'content'; when "
        "start_line > end_line the content is inserted before start_line. "
        "All line numbers refer to the file as it is before any of the edits "
        "are applied. Ranges must not overlap. Read the file first to get "
        "accurate line numbers."
    ),
    parameters={
        "type": "object",
        "properties": {
            "file_path": {
                "type": "string",
                "description": "The path to the file to modify.",
            },
            "edits": {
                "type": "array",
                "description": "A list of edits to apply.",
                "items": {
                    "type": "object",
                    "properties": {
                        "start_line": {
                            "type": "integer", "minimum": 0,
                            "description": "1-based first line to replace (inclusive).",
                        },
                        "end_line": {
                            "type": "integer", "minimum": 0,
                            "description": "1-based last line to replace (inclusive).",
                        },
                        "content": {
                            "type": "string",
                            "description": "The literal text to put in place of the range.",
                        },
                    },
                    "required": ["start_line", "end_line", "content"],
                },
            },
            "instruction": {
                "type": "string",
                "description": "What the edit is meant to achieve.",
            },
        },
        "required": ["file_path", "edits", "instruction"],
    },
)


class EditInvocation:
    """One validated call of the edit tool."""

    def __init__(self, tool: "EditTool", request: EditRequest) -> None:
        self._tool = tool
        self.request = request
        self._coordinator: Optional[ConfirmationCoordinator] = None
        self._confirmed_original: Optional[str] = None

    # ------------------------------------------------------------------
    # Describe
    # ------------------------------------------------------------------

    def get_description(self) -> str:
        relative = make_relative(self.request.file_path, self._tool.config.TARGET_DIR)
        return (f"{EDIT_DISPLAY_NAME}: {shorten_path(relative)} "
                f"({len(self.request.edits)} edits)")

    def tool_locations(self) -> list[ToolLocation]:
        return [ToolLocation(path=self.request.file_path)]

    @property
    def confirmation_state(self) -> Optional[ConfirmationState]:
        return self._coordinator.state if self._coordinator else None

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------

    def get_confirmation_details(self, cancel_event=None
                                 ) -> Optional[ConfirmationDetails]:
        """Preview the edit for approval.

        Returns ``None`` when no confirmation is needed (auto-edit) or when
        the edit cannot be prepared; :meth:`execute` then reports the error.
        """
        if self._tool.skip_confirmation:
            return None

        resolved = self._tool.resolver.resolve(self.request, cancel_event)
        if resolved.failure is not None:
            logger.info("[Edit] Not confirming %s: %s",
                        self.request.file_path, resolved.failure.display)
            return None

        file_name = os.path.basename(self.request.file_path)
        preview = self._tool.diff_builder.preview(
            resolved.original_content or "", resolved.new_content, file_name,
        )
        self._coordinator = ConfirmationCoordinator(reviewer=self._tool.reviewer)
        self._confirmed_original = resolved.original_content
        relative = make_relative(self.request.file_path, self._tool.config.TARGET_DIR)
        details = self._coordinator.begin(
            self.request.file_path, resolved, preview,
            title=f"{EDIT_DISPLAY_NAME}: {shorten_path(relative)}",
            cancel_event=cancel_event,
        )
        if details is not None:
            details.on_confirm = self._on_confirm
        return details

    def _on_confirm(self, outcome: ConfirmationOutcome,
                    cancel_event=None) -> ConfirmationState:
        if self._coordinator is None:
            raise InvalidTransitionError("No edit preview is awaiting confirmation")
        state = self._coordinator.respond(outcome, cancel_event)
        if outcome is ConfirmationOutcome.PROCEED_ALWAYS:
            self._tool.approve_always()
        if state is ConfirmationState.EXTERNALLY_MODIFIED:
            self.request = reconcile(
                self._confirmed_original or "",
                self._coordinator.final_content or "",
                self.request,
            )
        return state

    # ------------------------------------------------------------------
    # Execute
    # ------------------------------------------------------------------

    def execute(self, cancel_event=None) -> ToolResult:
        path = self.request.file_path

        if self._coordinator is not None:
            if not self._coordinator.is_terminal:
                self._coordinator.abandon()
            if self._coordinator.state is ConfirmationState.REJECTED:
                logger.info("[Edit] Edit to %s rejected; nothing written", path)
                return ToolResult(
                    llm_content=f"The user rejected the edit to {path}.",
                    return_display="Edit rejected.",
                    metadata={"rejected": True},
                )

        denial = self._tool.workspace.check_access(path, "write")
        if denial:
            return self._fail(ToolResult.failure(
                ToolErrorType.PATH_NOT_IN_WORKSPACE, denial,
                "Workspace access denied.",
            ))

        resolved = self._tool.resolver.resolve(self.request, cancel_event)
        if resolved.failure is not None:
            failure = resolved.failure
            return self._fail(ToolResult.failure(
                failure.kind, failure.raw, f"Error: {failure.display}",
            ))

        raise_if_cancelled(cancel_event, "commit")
        try:
            self._tool.writer.commit(path, resolved.new_content, resolved.line_ending)
        except EditToolError as exc:
            return self._fail(ToolResult.failure(
                exc.kind, f"Error executing edit: {exc.message}", exc.display,
            ))

        return self._success(resolved)

    def _success(self, resolved: ResolvedEdit) -> ToolResult:
        path = self.request.file_path
        original = resolved.original_content or ""
        file_name = os.path.basename(path)
        preview = self._tool.diff_builder.preview(original, resolved.new_content, file_name)

        display = FileDiffDisplay(
            file_diff=preview.unified_diff,
            file_name=file_name,
            file_path=path,
            original_content=resolved.original_content,
            new_content=resolved.new_content,
            diff_stat=preview.stat,
            is_new_file=resolved.is_new_file,
        )

        snippet = self._tool.diff_builder.snippet(
            original, resolved.new_content,
            self._tool.config.SNIPPET_CONTEXT_LINES,
        )
        parts = [
            f"Successfully modified file: {path} with "
            f"{len(self.request.edits)} edits.",
            f"Here is the updated code:\n{snippet}",
        ]
        if self.request.modified_by_user:
            parts.append("User modified the edit content manually.")

        self._record({
            "added_lines": preview.stat.added_lines,
            "removed_lines": preview.stat.removed_lines,
        })
        return ToolResult(llm_content=" ".join(parts), return_display=display)

    def _fail(self, result: ToolResult) -> ToolResult:
        logger.warning("[Edit] %s failed (%s): %s", self.request.file_path,
                       result.error.type.value, result.error.message)
        self._record({"error_type": result.error.type.value})
        return result

    def _record(self, data: dict) -> None:
        if not self._tool.config.METRICS_ENABLED:
            return
        entry = {
            "file": make_relative(self.request.file_path, self._tool.config.TARGET_DIR),
            "edit_count": len(self.request.edits),
            "modified_by_user": self.request.modified_by_user,
        }
        entry.update(data)
        log_edit_metric(entry, project_root=self._tool.config.TARGET_DIR)


class EditTool:
    """Factory for :class:`EditInvocation` plus the shared collaborators."""

    name = EDIT_TOOL_NAME
    spec = EDIT_SPEC

    def __init__(
        self,
        config: Optional[Config] = None,
        file_system: Optional[FileSystemService] = None,
        workspace: Optional[WorkspaceContext] = None,
        reviewer: Optional[Reviewer] = None,
    ) -> None:
        self.config = config or Config()
        self.file_system = file_system or StandardFileSystemService()
        self.workspace = workspace or WorkspaceContext(self.config.WORKSPACE_DIRS)
        self.reviewer = reviewer
        self.resolver = EditResolver(self.file_system, self.workspace)
        self.writer = CommitWriter(self.file_system, self.workspace)
        self.diff_builder = DiffPreviewBuilder(self.config.DIFF_CONTEXT_LINES)
        self._always_approve = False

    @property
    def skip_confirmation(self) -> bool:
        return self.config.auto_edit or self._always_approve

    def schema(self) -> dict[str, Any]:
        """Function-calling declaration for this tool."""
        return {
            "name": self.spec.name,
            "description": self.spec.description,
            "parameters": self.spec.parameters,
        }

    def approve_always(self) -> None:
        """Skip confirmation for the rest of this tool's lifetime."""
        self._always_approve = True

    def validate_params(self, params: dict[str, Any]) -> Optional[str]:
        """Return an error message, or ``None`` if *params* are usable."""
        file_path = params.get("file_path")
        if not file_path or not isinstance(file_path, str):
            return "The 'file_path' parameter must be non-empty."

        edits = params.get("edits")
        if not isinstance(edits, list):
            return "The 'edits' parameter must be a list."
        for edit in edits:
            if not isinstance(edit, dict):
                return "Each edit must be an object."
            for key in ("start_line", "end_line"):
                value = edit.get(key)
                if isinstance(value, bool) or not isinstance(value, int):
                    return f"Edit '{key}' must be an integer."
                if value < 0:
                    return f"Edit '{key}' must be at least 0."
            if not isinstance(edit.get("content"), str):
                return "Edit 'content' must be a string."
        return None

    def build(self, params: dict[str, Any]) -> EditInvocation:
        """Validate *params* and create an invocation.

        Raises
        ------
        EditToolError
            ``INVALID_TOOL_PARAMS`` when validation fails.
        """
        error = self.validate_params(params)
        if error:
            raise EditToolError(ToolErrorType.INVALID_TOOL_PARAMS, error)
        request = EditRequest.from_dict(params)
        request = request.with_file_path(
            resolve_path(self.config.TARGET_DIR, request.file_path)
        )
        return EditInvocation(self, request)

    def get_modify_context(self) -> EditModifyContext:
        return EditModifyContext(self.file_system)


def run_edit(
    tool: EditTool,
    params: dict[str, Any],
    prompt: Optional[Callable[[ConfirmationDetails], ConfirmationOutcome]] = None,
    cancel_event=None,
) -> ToolResult:
    """Validate, confirm and execute one edit.

    *prompt* is asked to approve the preview; without one the caller is
    taken to have approved it (an attached reviewer still gets its say).
    """
    try:
        invocation = tool.build(params)
    except EditToolError as exc:
        return ToolResult.from_error(exc)

    logger.info("[Edit] %s", invocation.get_description())
    details = invocation.get_confirmation_details(cancel_event)
    if details is not None:
        outcome = prompt(details) if prompt is not None else ConfirmationOutcome.PROCEED_ONCE
        details.on_confirm(outcome, cancel_event)
    return invocation.execute(cancel_event)
