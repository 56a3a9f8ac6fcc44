"""End-to-end tests for the edit tool."""

import concurrent.futures
import threading

import pytest

from linepatch.config import Config
from linepatch.editing.confirmation import (
    ConfirmationOutcome, ConfirmationState, InvalidTransitionError, Reviewer,
    ReviewOutcome,
)
from linepatch.editing.metrics import read_edit_stats
from linepatch.errors import EditToolError, OperationCancelled, ToolErrorType
from linepatch.file_system import StandardFileSystemService
from linepatch.tools.base import FileDiffDisplay
from linepatch.tools.edit_tool import EditTool, run_edit


class ScriptedReviewer(Reviewer):
    def __init__(self, outcome):
        self.outcome = outcome
        self.seen = []

    def open_diff(self, file_path, proposed_content):
        self.seen.append(proposed_content)
        future = concurrent.futures.Future()
        future.set_result(self.outcome)
        return future


def _params(path, edits, instruction="change numbers"):
    return {"file_path": str(path), "edits": edits, "instruction": instruction}


@pytest.fixture
def numbers(tmp_path):
    path = tmp_path / "numbers.txt"
    path.write_text("1\n2\n3\n4\n5")
    return path


@pytest.fixture
def tool(config):
    return EditTool(config, file_system=StandardFileSystemService())


class TestSuccessfulEdit:
    def test_replace_range(self, tool, numbers):
        result = run_edit(tool, _params(
            numbers, [{"start_line": 2, "end_line": 3, "content": "two\nthree"}]))

        assert not result.is_error
        assert numbers.read_text() == "1\ntwo\nthree\n4\n5"

        display = result.return_display
        assert isinstance(display, FileDiffDisplay)
        assert display.file_name == "numbers.txt"
        assert display.diff_stat.added_lines == 2
        assert display.diff_stat.removed_lines == 2
        assert display.original_content == "1\n2\n3\n4\n5"
        assert display.is_new_file is False

        assert result.llm_content.startswith(
            f"Successfully modified file: {numbers} with 1 edits.")
        assert "Here is the updated code:\n" in result.llm_content
        assert "two\nthree" in result.llm_content
        assert "User modified" not in result.llm_content

    def test_relative_path_resolves_against_target_dir(self, tool, numbers):
        result = run_edit(tool, _params(
            "numbers.txt", [{"start_line": 1, "end_line": 1, "content": "one"}]))
        assert not result.is_error
        assert numbers.read_text() == "one\n2\n3\n4\n5"

    def test_crlf_file_keeps_crlf(self, tool, tmp_path):
        path = tmp_path / "win.txt"
        path.write_bytes(b"a\r\nb\r\nc\r\n")
        run_edit(tool, _params(path, [{"start_line": 2, "end_line": 2, "content": "B"}]))
        assert path.read_bytes() == b"a\r\nB\r\nc\r\n"

    def test_prompt_sees_preview(self, tool, numbers):
        seen = []

        def prompt(details):
            seen.append(details)
            return ConfirmationOutcome.PROCEED_ONCE

        run_edit(tool, _params(
            numbers, [{"start_line": 5, "end_line": 5, "content": "five"}]), prompt)

        assert len(seen) == 1
        assert seen[0].title == "Edit: numbers.txt"
        assert "+five" in seen[0].file_diff
        assert seen[0].new_content == "1\n2\n3\n4\nfive"


class TestFailures:
    def test_missing_file(self, tool, tmp_path):
        path = tmp_path / "absent.txt"
        result = run_edit(tool, _params(
            path, [{"start_line": 1, "end_line": 1, "content": "x"}]))

        assert result.error.type is ToolErrorType.FILE_NOT_FOUND
        assert result.return_display == "Error: File not found. Cannot apply edit."
        assert "read_file" in result.llm_content
        assert not path.exists()

    def test_write_failure(self, config, memory_fs, tmp_path):
        target = str(tmp_path / "f.txt")
        memory_fs.files[target] = "a"
        memory_fs.fail_writes = True
        tool = EditTool(config, file_system=memory_fs)

        result = run_edit(tool, _params(
            target, [{"start_line": 1, "end_line": 1, "content": "b"}]))

        assert result.error.type is ToolErrorType.FILE_WRITE_FAILURE
        assert result.llm_content.startswith("Error executing edit:")
        assert memory_fs.files[target] == "a"

    def test_outside_workspace(self, tool, tmp_path):
        outside = tmp_path.parent / "not-in-workspace.txt"
        result = run_edit(tool, _params(
            outside, [{"start_line": 1, "end_line": 1, "content": "x"}]))

        assert result.error.type is ToolErrorType.PATH_NOT_IN_WORKSPACE
        assert "Path not in workspace" in result.llm_content

    @pytest.mark.parametrize("params, message", [
        ({"file_path": "", "edits": []}, "'file_path'"),
        ({"file_path": "a.txt", "edits": "nope"}, "'edits'"),
        ({"file_path": "a.txt", "edits": ["x"]}, "object"),
        ({"file_path": "a.txt",
          "edits": [{"start_line": "1", "end_line": 1, "content": ""}]},
         "'start_line' must be an integer"),
        ({"file_path": "a.txt",
          "edits": [{"start_line": 1, "end_line": True, "content": ""}]},
         "'end_line' must be an integer"),
        ({"file_path": "a.txt",
          "edits": [{"start_line": -1, "end_line": 1, "content": ""}]},
         "at least 0"),
        ({"file_path": "a.txt", "edits": [{"start_line": 2, "end_line": 4}]},
         "'content' must be a string"),
        ({"file_path": "a.txt",
          "edits": [{"start_line": 2, "end_line": 4, "content": None}]},
         "'content' must be a string"),
    ])
    def test_invalid_params(self, tool, params, message):
        with pytest.raises(EditToolError) as info:
            tool.build(params)
        assert info.value.kind is ToolErrorType.INVALID_TOOL_PARAMS
        assert message in info.value.message

        result = run_edit(tool, params)
        assert result.error.type is ToolErrorType.INVALID_TOOL_PARAMS

    def test_edit_without_content_leaves_file_alone(self, tool, numbers):
        result = run_edit(tool, _params(numbers, [{"start_line": 2, "end_line": 4}]))

        assert result.error.type is ToolErrorType.INVALID_TOOL_PARAMS
        assert numbers.read_text() == "1\n2\n3\n4\n5"

    def test_confirm_without_preview_is_rejected(self, tool, numbers):
        invocation = tool.build(_params(
            numbers, [{"start_line": 1, "end_line": 1, "content": "x"}]))

        with pytest.raises(InvalidTransitionError):
            invocation._on_confirm(ConfirmationOutcome.PROCEED_ONCE)
        assert numbers.read_text() == "1\n2\n3\n4\n5"


class TestConfirmation:
    def test_rejection_writes_nothing(self, tool, numbers):
        result = run_edit(tool, _params(
            numbers, [{"start_line": 1, "end_line": 5, "content": ""}]),
            prompt=lambda details: ConfirmationOutcome.CANCEL)

        assert not result.is_error
        assert result.metadata == {"rejected": True}
        assert result.return_display == "Edit rejected."
        assert numbers.read_text() == "1\n2\n3\n4\n5"

    def test_proceed_always_skips_later_prompts(self, tool, numbers):
        calls = []

        def prompt(details):
            calls.append(details)
            return ConfirmationOutcome.PROCEED_ALWAYS

        run_edit(tool, _params(
            numbers, [{"start_line": 1, "end_line": 1, "content": "one"}]), prompt)
        run_edit(tool, _params(
            numbers, [{"start_line": 2, "end_line": 2, "content": "two"}]), prompt)

        assert len(calls) == 1
        assert numbers.read_text() == "one\ntwo\n3\n4\n5"

    def test_auto_edit_mode_needs_no_prompt(self, tmp_path, numbers):
        config = Config({"target_dir": str(tmp_path), "approval_mode": "auto_edit",
                         "metrics_enabled": False})
        tool = EditTool(config)

        def prompt(details):
            raise AssertionError("should not prompt")

        result = run_edit(tool, _params(
            numbers, [{"start_line": 3, "end_line": 3, "content": "three"}]), prompt)
        assert not result.is_error
        assert numbers.read_text() == "1\n2\nthree\n4\n5"

    def test_reviewer_modified_content_is_committed(self, config, numbers):
        reviewer = ScriptedReviewer(ReviewOutcome.accepted("reviewed\ncontent\n"))
        tool = EditTool(config, reviewer=reviewer)

        result = run_edit(tool, _params(
            numbers, [{"start_line": 2, "end_line": 3, "content": "two\nthree"}]))

        assert reviewer.seen == ["1\ntwo\nthree\n4\n5"]
        assert numbers.read_text() == "reviewed\ncontent\n"
        assert result.llm_content.endswith("User modified the edit content manually.")
        assert "with 1 edits." in result.llm_content

    def test_reviewer_modified_content_keeps_crlf(self, config, tmp_path):
        path = tmp_path / "win.txt"
        path.write_bytes(b"a\r\nb\r\n")
        tool = EditTool(config, reviewer=ScriptedReviewer(
            ReviewOutcome.accepted("x\ny\n")))

        run_edit(tool, _params(path, [{"start_line": 1, "end_line": 1, "content": "A"}]))
        assert path.read_bytes() == b"x\r\ny\r\n"

    def test_reviewer_rejection(self, config, numbers):
        tool = EditTool(config, reviewer=ScriptedReviewer(ReviewOutcome.rejected()))
        result = run_edit(tool, _params(
            numbers, [{"start_line": 1, "end_line": 1, "content": "x"}]))

        assert result.metadata.get("rejected") is True
        assert numbers.read_text() == "1\n2\n3\n4\n5"

    def test_execute_without_answer_rejects(self, tool, numbers):
        invocation = tool.build(_params(
            numbers, [{"start_line": 1, "end_line": 1, "content": "x"}]))
        details = invocation.get_confirmation_details()
        assert details is not None
        assert invocation.confirmation_state is ConfirmationState.PREVIEWING

        result = invocation.execute()
        assert result.metadata.get("rejected") is True
        assert invocation.confirmation_state is ConfirmationState.REJECTED
        assert numbers.read_text() == "1\n2\n3\n4\n5"

    def test_missing_file_has_no_confirmation(self, tool, tmp_path):
        invocation = tool.build(_params(
            tmp_path / "nope.txt", [{"start_line": 1, "end_line": 1, "content": "x"}]))
        assert invocation.get_confirmation_details() is None
        assert invocation.execute().error.type is ToolErrorType.FILE_NOT_FOUND


class TestCancellation:
    def test_cancelled_before_commit(self, tool, numbers):
        event = threading.Event()
        event.set()
        with pytest.raises(OperationCancelled):
            run_edit(tool, _params(
                numbers, [{"start_line": 1, "end_line": 1, "content": "x"}]),
                cancel_event=event)
        assert numbers.read_text() == "1\n2\n3\n4\n5"


class TestDescription:
    def test_description_and_locations(self, tool, numbers):
        invocation = tool.build(_params(numbers, [
            {"start_line": 1, "end_line": 1, "content": "a"},
            {"start_line": 3, "end_line": 3, "content": "c"},
        ]))
        assert invocation.get_description() == "Edit: numbers.txt (2 edits)"
        assert invocation.tool_locations()[0].path == str(numbers)

    def test_schema(self, tool):
        schema = tool.schema()
        assert schema["name"] == "edit_file"
        assert schema["parameters"]["required"] == ["file_path", "edits", "instruction"]

    def test_modify_context(self, tool, numbers):
        invocation = tool.build(_params(
            numbers, [{"start_line": 1, "end_line": 1, "content": "one"}]))
        context = tool.get_modify_context()
        assert context.get_current_content(invocation.request) == "1\n2\n3\n4\n5"
        assert context.get_proposed_content(invocation.request) == "one\n2\n3\n4\n5"


class TestMetrics:
    def test_success_and_failure_recorded(self, tmp_path, numbers):
        config = Config({"target_dir": str(tmp_path), "approval_mode": "auto_edit",
                         "metrics_enabled": True})
        tool = EditTool(config)
        run_edit(tool, _params(
            numbers, [{"start_line": 1, "end_line": 1, "content": "one"}]))
        run_edit(tool, _params(
            tmp_path / "gone.txt", [{"start_line": 1, "end_line": 1, "content": "x"}]))

        stats = read_edit_stats(project_root=str(tmp_path))
        assert stats["total_edits"] == 2
        assert stats["success_rate"] == pytest.approx(50.0)
        assert "file_not_found" in stats["error_types"]
