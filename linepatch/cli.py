"""
CLI entry point — argument parsing and command dispatch.
"""

import argparse
import json
import logging
import signal
import sys
import threading

from .cli_display import print_banner, print_rule, setup_logger
from .config import Config, REVIEWERS
from .editing.confirmation import ConfirmationOutcome
from .editing.diff_preview import format_colored_diff
from .editing.metrics import read_edit_stats
from .errors import EditToolError, OperationCancelled
from .reviewers import make_reviewer
from .tools.base import FileDiffDisplay
from .tools.diff_tool import DiffTool
from .tools.edit_tool import EditTool, run_edit
from .tools.read_file import ReadFileTool

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_REJECTED = 2
EXIT_CANCELLED = 130


def _parse_inline_edit(text: str) -> dict:
    """Parse ``START:END:CONTENT``; ``\\n`` in CONTENT becomes a newline."""
    parts = text.split(":", 2)
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(
            f"Edit must look like START:END:CONTENT, got {text!r}")
    try:
        start, end = int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"START and END must be integers in {text!r}") from None
    return {"start_line": start, "end_line": end,
            "content": parts[2].replace("\\n", "\n")}


def _load_edits(path: str) -> list:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("edits", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of edits")
    return data


def _console_prompt(details) -> ConfirmationOutcome:
    """Ask y/N/always on the console for an edit preview."""
    if details.has_reviewer:
        # the reviewer is the approval surface
        return ConfirmationOutcome.PROCEED_ONCE

    print_banner(details.title)
    print_rule()
    print(format_colored_diff(details.file_diff))
    print("\n  [Y]es  |  [A]lways  |  [N]o\n")
    while True:
        try:
            choice = input("  Apply this edit? ").strip().lower()
        except EOFError:
            return ConfirmationOutcome.CANCEL
        if choice in ("y", "yes"):
            return ConfirmationOutcome.PROCEED_ONCE
        if choice in ("a", "always"):
            return ConfirmationOutcome.PROCEED_ALWAYS
        if choice in ("n", "no", ""):
            return ConfirmationOutcome.CANCEL
        print("  Invalid choice. Use Y, A, or N.")


def _print_result(result) -> int:
    if result.is_error:
        print(f"Error [{result.error.type.value}]: {result.return_display}",
              file=sys.stderr)
        print(result.llm_content, file=sys.stderr)
        return EXIT_ERROR
    if result.metadata.get("rejected"):
        print(result.return_display)
        return EXIT_REJECTED
    display = result.return_display
    if isinstance(display, FileDiffDisplay):
        stat = display.diff_stat
        print(f"Edited {display.file_path}: +{stat.added_lines} -{stat.removed_lines}")
    else:
        print(result.llm_content)
    return EXIT_OK


def _cmd_edit(args, config: Config, cancel_event: threading.Event) -> int:
    edits = []
    if args.edits:
        edits.extend(_load_edits(args.edits))
    edits.extend(args.edit or [])
    params = {
        "file_path": args.file,
        "edits": edits,
        "instruction": args.instruction or "",
    }

    if args.dry_run:
        tool = EditTool(config)
        invocation = tool.build(params)
        resolved = tool.resolver.resolve(invocation.request, cancel_event)
        if resolved.failure is not None:
            print(f"Error [{resolved.failure.kind.value}]: {resolved.failure.raw}",
                  file=sys.stderr)
            return EXIT_ERROR
        preview = tool.diff_builder.preview(
            resolved.original_content or "", resolved.new_content, args.file,
        )
        print(format_colored_diff(preview.unified_diff))
        return EXIT_OK

    reviewer_kind = args.reviewer or config.REVIEWER
    reviewer = None if args.auto else make_reviewer(reviewer_kind, config, cancel_event)
    if reviewer is not None:
        reviewer.connect()
    try:
        tool = EditTool(config, reviewer=reviewer)
        if args.auto:
            tool.approve_always()
        result = run_edit(tool, params, prompt=_console_prompt,
                          cancel_event=cancel_event)
    finally:
        if reviewer is not None:
            reviewer.disconnect()
    return _print_result(result)


def _cmd_diff(args, config: Config, cancel_event: threading.Event) -> int:
    result = DiffTool(config).execute(
        {"file_path_1": args.file1, "file_path_2": args.file2})
    if result.is_error:
        return _print_result(result)
    print(format_colored_diff(result.llm_content))
    return EXIT_OK


def _cmd_read(args, config: Config, cancel_event: threading.Event) -> int:
    result = ReadFileTool(config).execute({
        "file_path": args.file,
        "start_line": args.start,
        "end_line": args.end,
        "include_line_numbers": args.line_numbers,
    })
    if result.is_error:
        return _print_result(result)
    print(result.llm_content)
    return EXIT_OK


def _cmd_stats(args, config: Config, cancel_event: threading.Event) -> int:
    stats = read_edit_stats(last_n=args.last, project_root=config.TARGET_DIR)
    print(json.dumps(stats, indent=2))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linepatch",
        description="linepatch — preview and apply line-range edits to text files")
    parser.add_argument("--config", default=None,
                        help="Path to a .linepatch.yaml config file")
    parser.add_argument("--log-dir", default=None,
                        help="Directory for the debug log (default: from config)")
    sub = parser.add_subparsers(dest="command", required=True)

    edit = sub.add_parser("edit", help="Apply line-range edits to a file")
    edit.add_argument("file", help="File to edit")
    edit.add_argument("--edits", default=None,
                      help="JSON file with a list of {start_line, end_line, content}")
    edit.add_argument("--edit", action="append", type=_parse_inline_edit,
                      metavar="START:END:CONTENT",
                      help="Inline edit; may be repeated")
    edit.add_argument("--instruction", default="",
                      help="What the edit is meant to achieve")
    edit.add_argument("--auto", action="store_true",
                      help="Apply without confirmation")
    edit.add_argument("--reviewer", choices=REVIEWERS, default=None,
                      help="Interactive reviewer (default: from config)")
    edit.add_argument("--dry-run", action="store_true",
                      help="Only print the diff; write nothing")
    edit.set_defaults(handler=_cmd_edit)

    diff = sub.add_parser("diff", help="Show the diff between two files")
    diff.add_argument("file1")
    diff.add_argument("file2")
    diff.set_defaults(handler=_cmd_diff)

    read = sub.add_parser("read", help="Print a file or a line range of it")
    read.add_argument("file")
    read.add_argument("--start", type=int, default=None)
    read.add_argument("--end", type=int, default=None)
    read.add_argument("--line-numbers", action="store_true")
    read.set_defaults(handler=_cmd_read)

    stats = sub.add_parser("stats", help="Summarise recent edits")
    stats.add_argument("--last", type=int, default=50)
    stats.set_defaults(handler=_cmd_stats)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    cancel_event = threading.Event()

    def _on_sigint(signum, frame):
        cancel_event.set()
        raise KeyboardInterrupt

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        config = Config.load(args.config)
        setup_logger(args.log_dir or config.LOG_DIR)
        return args.handler(args, config, cancel_event)
    except (OperationCancelled, KeyboardInterrupt):
        print("\nCancelled.", file=sys.stderr)
        return EXIT_CANCELLED
    except EditToolError as exc:
        print(f"Error [{exc.kind.value}]: {exc.message}", file=sys.stderr)
        return EXIT_ERROR
    except (OSError, ValueError) as exc:
        logger.error("[CLI] %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        signal.signal(signal.SIGINT, previous)


if __name__ == "__main__":
    sys.exit(main())
