"""Tests for the diff tool."""

from linepatch.errors import ToolErrorType
from linepatch.tools.diff_tool import DiffTool


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_diff_between_two_files(config, tmp_path):
    a = _write(tmp_path, "a.txt", "same\nold\n")
    b = _write(tmp_path, "b.txt", "same\nnew\n")

    result = DiffTool(config).execute({"file_path_1": a, "file_path_2": b})

    assert not result.is_error
    assert "--- a.txt\tfile1" in result.llm_content
    assert "+++ a.txt\tfile2" in result.llm_content
    assert "-old" in result.llm_content
    assert "+new" in result.llm_content
    assert result.return_display == f"Diff between {a} and {b}"


def test_relative_paths(config, tmp_path):
    _write(tmp_path, "a.txt", "x\n")
    _write(tmp_path, "b.txt", "x\n")
    result = DiffTool(config).execute({"file_path_1": "a.txt", "file_path_2": "b.txt"})
    assert not result.is_error
    assert "@@" not in result.llm_content


def test_missing_parameter(config):
    result = DiffTool(config).execute({"file_path_1": "a.txt"})
    assert result.error.type is ToolErrorType.INVALID_TOOL_PARAMS


def test_missing_file(config, tmp_path):
    a = _write(tmp_path, "a.txt", "x\n")
    result = DiffTool(config).execute(
        {"file_path_1": a, "file_path_2": str(tmp_path / "gone.txt")})
    assert result.error.type is ToolErrorType.READ_CONTENT_FAILURE
    assert result.llm_content.startswith("Error calculating diff:")


def test_outside_workspace(config, tmp_path):
    a = _write(tmp_path, "a.txt", "x\n")
    result = DiffTool(config).execute(
        {"file_path_1": a, "file_path_2": str(tmp_path.parent / "elsewhere.txt")})
    assert result.error.type is ToolErrorType.PATH_NOT_IN_WORKSPACE
    assert result.llm_content.startswith("Access denied to ")


def test_description(config):
    tool = DiffTool(config)
    assert tool.get_description({"file_path_1": "a", "file_path_2": "b"}) == \
        "Comparing a and b"
