"""Tests for configuration loading."""

import os

import pytest

from linepatch.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("LINEPATCH_"):
            monkeypatch.delenv(key)


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = Config()

    assert config.TARGET_DIR == os.getcwd()
    assert config.WORKSPACE_DIRS == [os.getcwd()]
    assert config.APPROVAL_MODE == "default"
    assert config.auto_edit is False
    assert config.DIFF_CONTEXT_LINES == 3
    assert config.SNIPPET_CONTEXT_LINES == 5
    assert config.REVIEWER == "console"
    assert config.METRICS_ENABLED is True


def test_yaml_values(tmp_path):
    config = Config({
        "target_dir": str(tmp_path),
        "workspace_dirs": ["src", "docs"],
        "approval_mode": "auto_edit",
        "diff_context_lines": 1,
        "reviewer": "ide",
        "ide": {"server_url": "http://localhost:9000", "timeout": 2},
    })

    assert config.WORKSPACE_DIRS == [str(tmp_path / "src"), str(tmp_path / "docs")]
    assert config.auto_edit is True
    assert config.DIFF_CONTEXT_LINES == 1
    assert config.REVIEWER == "ide"
    assert config.IDE_SERVER_URL == "http://localhost:9000"
    assert config.IDE_TIMEOUT == 2.0


def test_env_overrides_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("LINEPATCH_APPROVAL_MODE", "auto_edit")
    monkeypatch.setenv("LINEPATCH_METRICS", "false")
    monkeypatch.setenv("LINEPATCH_WORKSPACE_DIRS",
                       os.pathsep.join([str(tmp_path / "a"), str(tmp_path / "b")]))
    config = Config({"target_dir": str(tmp_path), "approval_mode": "default",
                     "metrics_enabled": True})

    assert config.APPROVAL_MODE == "auto_edit"
    assert config.METRICS_ENABLED is False
    assert config.WORKSPACE_DIRS == [str(tmp_path / "a"), str(tmp_path / "b")]


def test_unknown_choices_fall_back(tmp_path):
    config = Config({"target_dir": str(tmp_path), "approval_mode": "yolo",
                     "reviewer": "carrier-pigeon"})
    assert config.APPROVAL_MODE == "default"
    assert config.REVIEWER == "console"


def test_load_from_file(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(f"target_dir: {tmp_path}\nsnippet_context_lines: 2\n")
    config = Config.load(str(path))
    assert config.TARGET_DIR == str(tmp_path)
    assert config.SNIPPET_CONTEXT_LINES == 2


def test_load_ignores_bad_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "broken.yaml"
    path.write_text("target_dir: [unclosed\n")
    config = Config.load(str(path))
    assert config.TARGET_DIR == os.getcwd()


def test_load_missing_explicit_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    config = Config.load(str(tmp_path / "nope.yaml"))
    assert config.APPROVAL_MODE == "default"
