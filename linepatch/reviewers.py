"""
Reviewers — interactive parties that can accept, reject or rewrite a
proposed edit before it is written.

* :class:`ConsoleReviewer` — colored diff on stdout, A/E/R prompt, optional
  ``$EDITOR`` round trip.
* :class:`TextualReviewer` — Textual app showing the diff next to an
  editable copy of the proposal.
* :class:`HttpReviewer` — an IDE companion server reached over HTTP.

The console and HTTP reviewers answer on a worker thread, so the caller can
keep polling its cancellation event while the user decides. Textual has to
own the main thread; its app polls the cancellation event itself and hands
back an already-resolved future.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
import subprocess
import tempfile
import threading
from typing import Callable, Optional

import requests

from .cli_display import print_banner, print_rule
from .editing.confirmation import Reviewer, ReviewOutcome, ReviewStatus
from .editing.diff_preview import (
    DiffPreviewBuilder, format_colored_diff, format_rich_diff,
)

logger = logging.getLogger(__name__)


def _resolved_future(outcome: ReviewOutcome
                     ) -> "concurrent.futures.Future[ReviewOutcome]":
    future: concurrent.futures.Future = concurrent.futures.Future()
    future.set_result(outcome)
    return future


def _run_in_thread(fn: Callable[[], ReviewOutcome], name: str = "linepatch-review"
                   ) -> "concurrent.futures.Future[ReviewOutcome]":
    """Run *fn* on a daemon thread; the future resolves with its result.

    A daemon thread is used because a console prompt cannot be interrupted:
    a withdrawn review must not keep the interpreter alive.
    """
    future: concurrent.futures.Future = concurrent.futures.Future()

    def _worker() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn())
        except Exception as exc:
            future.set_exception(exc)

    threading.Thread(target=_worker, name=name, daemon=True).start()
    return future


class _LocalReviewer(Reviewer):
    """Shared plumbing for reviewers that read the original from disk."""

    def __init__(self, read_current: Optional[Callable[[str], str]] = None,
                 context_lines: int = 3) -> None:
        self._read_current = read_current or _read_or_empty
        self._builder = DiffPreviewBuilder(context_lines)

    def _diff(self, file_path: str, proposed: str) -> str:
        current = self._read_current(file_path).replace("\r\n", "\n")
        return self._builder.compare(os.path.basename(file_path), current, proposed)


def _read_or_empty(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
            return f.read()
    except OSError:
        return ""


# ══════════════════════════════════════════════════════════════════
#  Console reviewer
# ══════════════════════════════════════════════════════════════════

def edit_in_external_editor(content: str, suffix: str = ".txt") -> str | None:
    """Open *content* in the system editor and return the saved text.

    Uses ``notepad`` on Windows and ``$EDITOR`` (default ``vi``) elsewhere.
    Returns ``None`` if the editor could not be launched.
    """
    tmp = tempfile.NamedTemporaryFile(
        mode="w", suffix=suffix, prefix="linepatch_", delete=False,
        encoding="utf-8", newline="",
    )
    try:
        tmp.write(content)
        tmp.close()

        if os.name == "nt":
            editor = "notepad"
        else:
            editor = os.environ.get("EDITOR", "vi")

        try:
            subprocess.call([editor, tmp.name])
        except OSError as exc:
            logger.warning("[Review] Could not launch editor %s: %s", editor, exc)
            return None

        with open(tmp.name, "r", encoding="utf-8", newline="") as f:
            return f.read()
    finally:
        try:
            os.unlink(tmp.name)
        except OSError:
            pass


class ConsoleReviewer(_LocalReviewer):
    """Prompt on the console: [A]ccept, [E]dit in $EDITOR, or [R]eject."""

    def __init__(
        self,
        input_fn: Optional[Callable[[str], str]] = None,
        editor_fn: Callable[[str, str], Optional[str]] = edit_in_external_editor,
        read_current: Optional[Callable[[str], str]] = None,
        context_lines: int = 3,
    ) -> None:
        super().__init__(read_current, context_lines)
        self._input = input_fn or input
        self._editor = editor_fn

    def open_diff(self, file_path, proposed_content):
        return _run_in_thread(lambda: self._review(file_path, proposed_content))

    def close_diff(self, file_path: str) -> None:
        logger.info("[Review] Review of %s withdrawn", file_path)

    def _review(self, file_path: str, proposed: str) -> ReviewOutcome:
        print_banner(f"REVIEW EDIT: {file_path}")
        print_rule()
        print(format_colored_diff(self._diff(file_path, proposed)))
        print("\n  [A]ccept  |  [E]dit  |  [R]eject\n")

        while True:
            try:
                choice = self._input("  Your choice: ").strip().lower()
            except EOFError:
                return ReviewOutcome.rejected()
            if choice in ("a", "accept"):
                return ReviewOutcome.accepted()
            if choice in ("r", "reject"):
                return ReviewOutcome.rejected()
            if choice in ("e", "edit"):
                suffix = os.path.splitext(file_path)[1] or ".txt"
                edited = self._editor(proposed, suffix)
                if edited is None:
                    print("  Editor unavailable. Use A or R.")
                    continue
                return ReviewOutcome.accepted(edited)
            print("  Invalid choice. Use A, E, or R.")


# ══════════════════════════════════════════════════════════════════
#  Textual reviewer
# ══════════════════════════════════════════════════════════════════

class TextualReviewer(_LocalReviewer):
    """Full-screen diff review with an editable proposal.

    Textual installs signal handlers, so the app runs on the caller's thread;
    setting *cancel_event* closes it as a rejection. Falls back to
    :class:`ConsoleReviewer` if the Textual app cannot start.
    """

    def __init__(self, read_current: Optional[Callable[[str], str]] = None,
                 context_lines: int = 3,
                 cancel_event: Optional[threading.Event] = None) -> None:
        super().__init__(read_current, context_lines)
        self._cancel_event = cancel_event

    def open_diff(self, file_path, proposed_content):
        diff_text = self._diff(file_path, proposed_content)
        try:
            outcome = _textual_review(file_path, diff_text, proposed_content,
                                      cancel_event=self._cancel_event)
        except Exception as exc:
            logger.warning("[Review] Textual viewer failed: %s", exc)
            fallback = ConsoleReviewer(read_current=self._read_current)
            return fallback.open_diff(file_path, proposed_content)
        if self._cancel_event is not None and self._cancel_event.is_set():
            outcome = ReviewOutcome.rejected()
        return _resolved_future(outcome)


def _textual_review(file_path: str, diff_text: str, proposed: str,
                    cancel_event: Optional[threading.Event] = None) -> ReviewOutcome:
    """Launch a Textual app to display the diff and collect a verdict."""
    from textual.app import App, ComposeResult
    from textual.binding import Binding
    from textual.containers import Horizontal, VerticalScroll
    from textual.widgets import Button, Footer, Static, TextArea

    class EditReviewApp(App):
        """Diff on the left, editable proposal on the right."""

        CSS = """
        Screen {
            background: $surface;
        }
        #title-bar {
            dock: top;
            height: 3;
            background: #1a1a2e;
            color: #e94560;
            text-align: center;
            padding: 1;
            text-style: bold;
        }
        #panes {
            height: 1fr;
        }
        #diff-scroll {
            width: 1fr;
            margin: 1 1 1 2;
            border: round #444;
            padding: 1;
        }
        #proposal {
            width: 1fr;
            margin: 1 2 1 1;
            border: round #444;
        }
        #action-buttons {
            dock: bottom;
            height: 3;
            align: center middle;
            padding: 0 2;
        }
        #action-buttons Button {
            margin: 0 2;
            min-width: 20;
        }
        """

        BINDINGS = [
            Binding("ctrl+s", "accept", "Accept"),
            Binding("escape", "reject", "Reject"),
        ]

        def __init__(self) -> None:
            super().__init__()
            self.outcome = ReviewOutcome.rejected()

        def compose(self) -> ComposeResult:
            yield Static(f" ━━  Review Edit — {file_path}  ━━ ", id="title-bar")
            with Horizontal(id="panes"):
                with VerticalScroll(id="diff-scroll"):
                    yield Static(format_rich_diff(diff_text))
                yield TextArea(proposed, id="proposal")
            with Horizontal(id="action-buttons"):
                yield Button("✔ Accept", id="accept-btn", variant="success")
                yield Button("✕ Reject", id="reject-btn", variant="error")
            yield Footer()

        def on_mount(self) -> None:
            if cancel_event is not None:
                self.set_interval(0.1, self._check_cancelled)

        def _check_cancelled(self) -> None:
            if cancel_event.is_set():
                self.action_reject()

        def on_button_pressed(self, event: Button.Pressed) -> None:
            if event.button.id == "accept-btn":
                self.action_accept()
            elif event.button.id == "reject-btn":
                self.action_reject()

        def action_accept(self) -> None:
            edited = self.query_one("#proposal", TextArea).text
            self.outcome = ReviewOutcome.accepted(
                edited if edited != proposed else None
            )
            self.exit()

        def action_reject(self) -> None:
            self.outcome = ReviewOutcome.rejected()
            self.exit()

    app = EditReviewApp()
    app.run()
    return app.outcome


# ══════════════════════════════════════════════════════════════════
#  IDE reviewer (HTTP)
# ══════════════════════════════════════════════════════════════════

class HttpReviewer(Reviewer):
    """Reviewer backed by an IDE companion server.

    Endpoints, relative to *base_url*:

    * ``GET  /health``      — 200 when diffing is available
    * ``POST /diff/open``   — ``{"filePath", "newContent"}``; blocks until the
      user answers and returns ``{"status": "accepted"|"rejected",
      "content"?: str}``
    * ``POST /diff/close``  — ``{"filePath"}``; withdraws an open diff
    """

    def __init__(self, base_url: str, timeout: float = 5.0,
                 session: Optional[requests.Session] = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None

    def connect(self) -> None:
        if self._session is None:
            self._session = requests.Session()
        if self._executor is None:
            self._executor = concurrent.futures.ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="linepatch-review",
            )

    def disconnect(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def is_available(self) -> bool:
        if self._session is None:
            return False
        try:
            response = self._session.get(f"{self._base_url}/health",
                                         timeout=self._timeout)
            return response.status_code == 200
        except requests.exceptions.RequestException as exc:
            logger.info("[Review] IDE companion unreachable: %s", exc)
            return False

    def open_diff(self, file_path, proposed_content):
        if self._executor is None or self._session is None:
            self.connect()
        return self._executor.submit(self._open_diff, file_path, proposed_content)

    def _open_diff(self, file_path: str, proposed: str) -> ReviewOutcome:
        # no read timeout: the server answers when the user does
        response = self._session.post(
            f"{self._base_url}/diff/open",
            json={"filePath": file_path, "newContent": proposed},
            timeout=(self._timeout, None),
        )
        response.raise_for_status()
        data = response.json()
        status = data.get("status")
        if status == ReviewStatus.ACCEPTED.value:
            content = data.get("content")
            return ReviewOutcome.accepted(content if isinstance(content, str) else None)
        if status != ReviewStatus.REJECTED.value:
            logger.warning("[Review] Unknown review status %r for %s", status, file_path)
        return ReviewOutcome.rejected()

    def close_diff(self, file_path: str) -> None:
        if self._session is None:
            return
        try:
            self._session.post(f"{self._base_url}/diff/close",
                               json={"filePath": file_path},
                               timeout=self._timeout)
        except requests.exceptions.RequestException as exc:
            logger.debug("[Review] close_diff failed for %s: %s", file_path, exc)


def make_reviewer(kind: str, config=None,
                  cancel_event: Optional[threading.Event] = None) -> Optional[Reviewer]:
    """Build the reviewer named by *kind* (``console``/``textual``/``ide``/``none``)."""
    context = config.DIFF_CONTEXT_LINES if config is not None else 3
    if kind == "console":
        return ConsoleReviewer(context_lines=context)
    if kind == "textual":
        return TextualReviewer(context_lines=context, cancel_event=cancel_event)
    if kind == "ide":
        url = config.IDE_SERVER_URL if config is not None else "http://127.0.0.1:7413"
        timeout = config.IDE_TIMEOUT if config is not None else 5.0
        return HttpReviewer(url, timeout=timeout)
    return None
