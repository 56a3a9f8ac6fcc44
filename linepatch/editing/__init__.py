"""Line-range edit engine — resolve, preview, confirm and commit edits."""

from .line_edits import EditSpec, EditRequest, apply_line_edits, count_lines
from .resolver import (
    EditResolver, ResolvedEdit, EditFailure, LineEnding, detect_line_ending,
)
from .diff_preview import DiffPreviewBuilder, DiffPreview, DiffStat
from .confirmation import (
    ConfirmationCoordinator, ConfirmationDetails, ConfirmationOutcome,
    ConfirmationState, Reviewer, ReviewOutcome, ReviewStatus,
)
from .commit_writer import CommitWriter, restore_line_endings
from .modify_context import EditModifyContext, reconcile
from .metrics import log_edit_metric, read_edit_stats

__all__ = [
    "EditSpec", "EditRequest", "apply_line_edits", "count_lines",
    "EditResolver", "ResolvedEdit", "EditFailure", "LineEnding",
    "detect_line_ending",
    "DiffPreviewBuilder", "DiffPreview", "DiffStat",
    "ConfirmationCoordinator", "ConfirmationDetails", "ConfirmationOutcome",
    "ConfirmationState", "Reviewer", "ReviewOutcome", "ReviewStatus",
    "CommitWriter", "restore_line_endings",
    "EditModifyContext", "reconcile",
    "log_edit_metric", "read_edit_stats",
]
