"""
Confirmation coordinator — the approval state machine for one edit.

    IDLE -> PREVIEWING -> {APPROVED, REJECTED, EXTERNALLY_MODIFIED}

An optional external reviewer (IDE diff view, TUI, console) is offered the
proposed content as soon as the preview starts and answers through a
``concurrent.futures.Future``. Waits on that future poll the shared
cancellation event so the coordinator never blocks indefinitely.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..errors import OperationCancelled
from .diff_preview import DiffPreview
from .resolver import ResolvedEdit

logger = logging.getLogger(__name__)


class ConfirmationState(str, Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXTERNALLY_MODIFIED = "externally_modified"


TERMINAL_STATES = frozenset({
    ConfirmationState.APPROVED,
    ConfirmationState.REJECTED,
    ConfirmationState.EXTERNALLY_MODIFIED,
})

_TRANSITIONS: dict[ConfirmationState, frozenset[ConfirmationState]] = {
    ConfirmationState.IDLE: frozenset({
        ConfirmationState.PREVIEWING,
        ConfirmationState.REJECTED,
    }),
    ConfirmationState.PREVIEWING: TERMINAL_STATES,
    ConfirmationState.APPROVED: frozenset(),
    ConfirmationState.REJECTED: frozenset(),
    ConfirmationState.EXTERNALLY_MODIFIED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised on a state change the state machine does not allow."""


class ConfirmationOutcome(str, Enum):
    """The caller's answer to a preview."""
    PROCEED_ONCE = "proceed_once"
    PROCEED_ALWAYS = "proceed_always"
    CANCEL = "cancel"


class ReviewStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ReviewOutcome:
    """A reviewer's verdict; ``content`` is set when it edited the proposal."""
    status: ReviewStatus
    content: Optional[str] = None

    @classmethod
    def accepted(cls, content: Optional[str] = None) -> "ReviewOutcome":
        return cls(ReviewStatus.ACCEPTED, content)

    @classmethod
    def rejected(cls) -> "ReviewOutcome":
        return cls(ReviewStatus.REJECTED)


class Reviewer(ABC):
    """External interactive reviewer with an explicit session lifecycle."""

    def connect(self) -> None:
        """Open the session. Default: nothing to do."""

    def disconnect(self) -> None:
        """Close the session. Default: nothing to do."""

    def is_available(self) -> bool:
        return True

    @abstractmethod
    def open_diff(self, file_path: str, proposed_content: str
                  ) -> "concurrent.futures.Future[ReviewOutcome]":
        """Offer *proposed_content* for review; resolve when answered."""

    def close_diff(self, file_path: str) -> None:
        """Withdraw an open review. Default: nothing to do."""

    def __enter__(self) -> "Reviewer":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()


@dataclass
class ConfirmationDetails:
    """What the caller shows the user before approving an edit."""
    title: str
    file_name: str
    file_path: str
    file_diff: str
    original_content: Optional[str]
    new_content: str
    on_confirm: Callable[..., ConfirmationState] = field(repr=False)
    has_reviewer: bool = False


class ConfirmationCoordinator:
    """Owns the approval state and the final-content slot for one edit."""

    def __init__(
        self,
        reviewer: Optional[Reviewer] = None,
        skip_confirmation: bool = False,
        poll_interval: float = 0.05,
    ) -> None:
        self._reviewer = reviewer
        self._skip = skip_confirmation
        self._poll_interval = poll_interval
        self._state = ConfirmationState.IDLE
        self._file_path: Optional[str] = None
        self._proposed: Optional[str] = None
        self._final_content: Optional[str] = None
        self._review: Optional[concurrent.futures.Future] = None

    @property
    def state(self) -> ConfirmationState:
        return self._state

    @property
    def final_content(self) -> Optional[str]:
        """Content to commit; ``None`` unless approved or modified."""
        return self._final_content

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def _transition(self, new_state: ConfirmationState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"Cannot move from {self._state.value} to {new_state.value}"
            )
        logger.debug("[Confirm] %s: %s -> %s",
                     self._file_path, self._state.value, new_state.value)
        self._state = new_state

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def begin(
        self,
        file_path: str,
        resolved: ResolvedEdit,
        preview: DiffPreview,
        title: Optional[str] = None,
        cancel_event=None,
    ) -> Optional[ConfirmationDetails]:
        """Start previewing *resolved*.

        Returns ``None`` when confirmation is skipped (the edit is approved
        immediately), otherwise the details to present. Raises
        :class:`OperationCancelled` if *cancel_event* fired while the
        reviewer was being opened.
        """
        self._file_path = file_path
        self._proposed = resolved.new_content
        self._transition(ConfirmationState.PREVIEWING)

        if self._skip:
            self._final_content = resolved.new_content
            self._transition(ConfirmationState.APPROVED)
            return None

        if self._reviewer is not None:
            try:
                available = self._reviewer.is_available()
            except Exception as exc:
                logger.warning("[Confirm] Reviewer availability check failed: %s", exc)
                available = False
            if available:
                self._review = self._reviewer.open_diff(file_path, resolved.new_content)

        if cancel_event is not None and cancel_event.is_set():
            self._withdraw_review()
            self._transition(ConfirmationState.REJECTED)
            raise OperationCancelled("Edit review cancelled")

        file_name = os.path.basename(file_path)
        return ConfirmationDetails(
            title=title or f"Confirm Edit: {file_name}",
            file_name=file_name,
            file_path=file_path,
            file_diff=preview.unified_diff,
            original_content=resolved.original_content,
            new_content=resolved.new_content,
            on_confirm=self.respond,
            has_reviewer=self._review is not None,
        )

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def respond(self, outcome: ConfirmationOutcome,
                cancel_event=None) -> ConfirmationState:
        """Record the caller's answer and, if needed, the reviewer's."""
        if self._state is not ConfirmationState.PREVIEWING:
            raise InvalidTransitionError(
                f"respond() called in state {self._state.value}"
            )

        if outcome is ConfirmationOutcome.CANCEL:
            self._withdraw_review()
            self._transition(ConfirmationState.REJECTED)
            return self._state

        if self._review is None:
            self._final_content = self._proposed
            self._transition(ConfirmationState.APPROVED)
            return self._state

        review = self._wait_for_review(cancel_event)
        if review is None or review.status is ReviewStatus.REJECTED:
            self._transition(ConfirmationState.REJECTED)
        elif review.content is not None and review.content != self._proposed:
            self._final_content = review.content
            self._transition(ConfirmationState.EXTERNALLY_MODIFIED)
        else:
            self._final_content = self._proposed
            self._transition(ConfirmationState.APPROVED)
        return self._state

    def abandon(self) -> None:
        """Reject from any non-terminal state (caller gave up)."""
        if self.is_terminal:
            return
        self._withdraw_review()
        self._transition(ConfirmationState.REJECTED)

    def _wait_for_review(self, cancel_event) -> Optional[ReviewOutcome]:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                self._withdraw_review()
                self._transition(ConfirmationState.REJECTED)
                raise OperationCancelled("Edit review cancelled")
            try:
                return self._review.result(timeout=self._poll_interval)
            except concurrent.futures.TimeoutError:
                continue
            except concurrent.futures.CancelledError:
                logger.info("[Confirm] Review of %s was withdrawn", self._file_path)
                return None
            except Exception as exc:
                logger.warning("[Confirm] Reviewer failed for %s: %s",
                               self._file_path, exc)
                return None

    def _withdraw_review(self) -> None:
        if self._review is None:
            return
        self._review.cancel()
        if self._reviewer is not None and self._file_path is not None:
            try:
                self._reviewer.close_diff(self._file_path)
            except Exception as exc:
                logger.debug("[Confirm] close_diff failed: %s", exc)
