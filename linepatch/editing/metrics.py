"""
Edit metrics — records edit outcomes in a JSONL log file.
"""

from __future__ import annotations

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_METRICS_DIR = ".linepatch/metrics"
_METRICS_FILE = "edit_metrics.jsonl"


def _metrics_path(project_root: str | None = None) -> str:
    """Return the absolute path to the metrics file."""
    base = project_root or os.getcwd()
    return os.path.join(base, _METRICS_DIR, _METRICS_FILE)


def log_edit_metric(data: dict, project_root: str | None = None) -> None:
    """Append a single edit metric entry to the JSONL log.

    Parameters
    ----------
    data:
        Metric fields to log (file, edit_count, added_lines, error_type, ...).
    project_root:
        Optional project root directory. Defaults to CWD.
    """
    path = _metrics_path(project_root)

    entry = {"timestamp": datetime.now(timezone.utc).isoformat()}
    entry.update(data)

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[Edit] Failed to write metrics: %s", exc)


def read_edit_stats(
    last_n: int = 50,
    project_root: str | None = None,
) -> dict:
    """Compute rolling statistics from the metrics log.

    Parameters
    ----------
    last_n:
        Number of most-recent entries to include.
    project_root:
        Optional project root directory.

    Returns
    -------
    dict
        ``total_edits``, ``success_rate``, ``modified_by_user_rate``,
        ``avg_lines_changed`` and ``error_types`` (percent per kind).
    """
    path = _metrics_path(project_root)

    entries: list[dict] = []
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        try:
                            entries.append(json.loads(line))
                        except json.JSONDecodeError:
                            continue
        except OSError as exc:
            logger.warning("[Edit] Failed to read metrics: %s", exc)

    entries = entries[-last_n:] if last_n > 0 else []

    if not entries:
        return {
            "total_edits": 0,
            "success_rate": 0.0,
            "modified_by_user_rate": 0.0,
            "avg_lines_changed": 0.0,
            "error_types": {},
        }

    total = len(entries)
    successes = sum(1 for e in entries if not e.get("error_type"))
    modified = sum(1 for e in entries if e.get("modified_by_user", False))
    changed = [
        e.get("added_lines", 0) + e.get("removed_lines", 0)
        for e in entries
        if not e.get("error_type")
    ]
    errors = Counter(e["error_type"] for e in entries if e.get("error_type"))

    return {
        "total_edits": total,
        "success_rate": successes / total * 100,
        "modified_by_user_rate": modified / total * 100,
        "avg_lines_changed": sum(changed) / len(changed) if changed else 0.0,
        "error_types": {
            kind: count / total * 100
            for kind, count in errors.most_common()
        },
    }
