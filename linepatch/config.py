"""
Configuration — loads settings from .linepatch.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml


_DEFAULTS = {
    "target_dir": "",
    "workspace_dirs": [],
    "approval_mode": "default",
    "diff_context_lines": 3,
    "snippet_context_lines": 5,
    "reviewer": "console",
    "ide_server_url": "http://127.0.0.1:7413",
    "ide_timeout": 5.0,
    "metrics_enabled": True,
    "log_dir": ".linepatch/logs",
}

APPROVAL_MODES = ("default", "auto_edit")
REVIEWERS = ("console", "textual", "ide", "none")

# Config file search locations
_CONFIG_FILENAMES = [".linepatch.yaml", ".linepatch.yml"]


def _find_config_file(explicit_path: str | None = None) -> str | None:
    """Find the config file. Checks explicit path, CWD, then user home."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables (``LINEPATCH_*``)
    3. .linepatch.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return env_val.lower() == "true"
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return bool(yaml_val)
            return default

        self.TARGET_DIR = os.path.abspath(
            _get("LINEPATCH_TARGET_DIR", "target_dir", _DEFAULTS["target_dir"])
            or os.getcwd()
        )

        workspace_dirs = yd.get("workspace_dirs", _DEFAULTS["workspace_dirs"])
        env_dirs = os.getenv("LINEPATCH_WORKSPACE_DIRS")
        if env_dirs is not None:
            workspace_dirs = [d for d in env_dirs.split(os.pathsep) if d]
        if not isinstance(workspace_dirs, list):
            workspace_dirs = []
        self.WORKSPACE_DIRS: list[str] = [
            os.path.abspath(os.path.join(self.TARGET_DIR, str(d)))
            for d in workspace_dirs
        ] or [self.TARGET_DIR]

        self.APPROVAL_MODE = _get("LINEPATCH_APPROVAL_MODE", "approval_mode",
                                  _DEFAULTS["approval_mode"])
        if self.APPROVAL_MODE not in APPROVAL_MODES:
            self.APPROVAL_MODE = _DEFAULTS["approval_mode"]

        self.DIFF_CONTEXT_LINES = _get("LINEPATCH_DIFF_CONTEXT_LINES",
                                       "diff_context_lines",
                                       _DEFAULTS["diff_context_lines"], cast=int)
        self.SNIPPET_CONTEXT_LINES = _get("LINEPATCH_SNIPPET_CONTEXT_LINES",
                                          "snippet_context_lines",
                                          _DEFAULTS["snippet_context_lines"],
                                          cast=int)

        self.REVIEWER = _get("LINEPATCH_REVIEWER", "reviewer",
                             _DEFAULTS["reviewer"])
        if self.REVIEWER not in REVIEWERS:
            self.REVIEWER = _DEFAULTS["reviewer"]

        # IDE companion server
        ide_section = yd.get("ide", {}) if isinstance(yd.get("ide"), dict) else {}
        self.IDE_SERVER_URL = os.getenv("LINEPATCH_IDE_URL") or ide_section.get(
            "server_url", _DEFAULTS["ide_server_url"])
        self.IDE_TIMEOUT = float(os.getenv("LINEPATCH_IDE_TIMEOUT") or ide_section.get(
            "timeout", _DEFAULTS["ide_timeout"]))

        self.METRICS_ENABLED = _get_bool("LINEPATCH_METRICS", "metrics_enabled",
                                         _DEFAULTS["metrics_enabled"])
        self.LOG_DIR = _get("LINEPATCH_LOG_DIR", "log_dir", _DEFAULTS["log_dir"])

    @property
    def auto_edit(self) -> bool:
        """True when edits are approved without a confirmation prompt."""
        return self.APPROVAL_MODE == "auto_edit"

    @classmethod
    def load(cls, config_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults."""
        path = _find_config_file(config_path)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
