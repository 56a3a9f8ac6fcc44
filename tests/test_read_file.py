"""Tests for the read_file tool."""

import pytest

from linepatch.errors import ToolErrorType
from linepatch.tools.read_file import ReadFileTool, format_lines


@pytest.fixture
def letters(tmp_path):
    path = tmp_path / "letters.txt"
    path.write_text("a\nb\nc\nd\ne")
    return path


def test_whole_file(config, letters):
    result = ReadFileTool(config).execute({"file_path": str(letters)})
    assert result.llm_content == "a\nb\nc\nd\ne"
    assert result.metadata == {"total_lines": 5, "start_line": 1, "end_line": 5}


def test_range_with_line_numbers(config, letters):
    result = ReadFileTool(config).execute({
        "file_path": "letters.txt",
        "start_line": 2,
        "end_line": 3,
        "include_line_numbers": True,
    })
    header, body = result.llm_content.split("\n\n", 1)
    assert header.startswith("[Showing lines 2-3 of 5.")
    assert body == "2| b\n3| c"
    assert result.return_display == "Read lines 2-3 of letters.txt"


def test_end_past_file_is_clamped(config, letters):
    result = ReadFileTool(config).execute(
        {"file_path": str(letters), "start_line": 4, "end_line": 100})
    assert result.llm_content.endswith("d\ne")
    assert result.metadata["end_line"] == 5


def test_start_past_end_is_invalid(config, letters):
    result = ReadFileTool(config).execute(
        {"file_path": str(letters), "start_line": 9})
    assert result.error.type is ToolErrorType.INVALID_TOOL_PARAMS
    assert "outside the file" in result.llm_content


def test_crlf_is_normalised(config, tmp_path):
    path = tmp_path / "win.txt"
    path.write_bytes(b"x\r\ny")
    result = ReadFileTool(config).execute({"file_path": str(path)})
    assert result.llm_content == "x\ny"


def test_missing_file(config, tmp_path):
    result = ReadFileTool(config).execute({"file_path": str(tmp_path / "nope")})
    assert result.error.type is ToolErrorType.FILE_NOT_FOUND


def test_directory_is_unreadable(config, tmp_path):
    (tmp_path / "sub").mkdir()
    result = ReadFileTool(config).execute({"file_path": str(tmp_path / "sub")})
    assert result.error.type is ToolErrorType.READ_CONTENT_FAILURE


def test_outside_workspace(config, tmp_path):
    result = ReadFileTool(config).execute(
        {"file_path": str(tmp_path.parent / "x.txt")})
    assert result.error.type is ToolErrorType.PATH_NOT_IN_WORKSPACE


def test_empty_path(config):
    result = ReadFileTool(config).execute({"file_path": ""})
    assert result.error.type is ToolErrorType.INVALID_TOOL_PARAMS


def test_format_lines_pads_numbers():
    lines = [f"l{i}" for i in range(9, 12)]
    assert format_lines(lines, 9, True).splitlines() == [" 9| l9", "10| l10", "11| l11"]
    assert format_lines(lines, 9, False) == "l9\nl10\nl11"
