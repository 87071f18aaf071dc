"""segmentsync: CLI entry point.

Renders segment documents, shows changes against a baseline and reconciles
an edited preview back into segments and variables.

Usage:
    segmentsync doc.json                              # print the preview
    segmentsync doc.json --format json                # preview + line maps
    segmentsync doc.json --diff baseline.json         # change markers
    segmentsync doc.json --reconcile edited.txt       # new document JSON
    cat edited.txt | segmentsync doc.json --stdin -o doc.json
    segmentsync doc.json --ui                         # interactive editor
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from segmentsync.config import SyncEnvConfig, load_config, print_env
from segmentsync.core.diff import compute_change_status
from segmentsync.core.models import RenderResult, TokenKind
from segmentsync.core.reconcile import Reconciler
from segmentsync.core.renderer import render
from segmentsync.core.usage import add_missing_variables
from segmentsync.document import Document, DocumentError

SYNC_THEME = Theme({
    "new": "bold bright_green",
    "edited": "bold bright_yellow",
    "deleted": "bold red",
    "info": "dim",
    "error": "bold red",
})

_MARKERS = {"new": "+", "edited": "~", None: " "}


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------

def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="segmentsync",
        description="Render and reconcile segment templates with {{variables}}.",
    )

    # Input
    parser.add_argument(
        "document",
        nargs="?",
        help="Path to the segment document (.json, .yaml or .yml)",
    )
    parser.add_argument(
        "--reconcile",
        type=Path,
        metavar="EDITED",
        help="Reconcile an edited preview text file against the document",
    )
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read the edited preview from stdin (implies --reconcile)",
    )
    parser.add_argument(
        "--cursor-line",
        type=int,
        metavar="N",
        help="Zero-based caret line in the edited preview, used to resolve ambiguous merges",
    )

    # Diff
    parser.add_argument(
        "--diff",
        nargs="?",
        const="",
        metavar="BASELINE",
        help="Show per-line change status against a baseline document "
             "(defaults to the configured baseline)",
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Write the resulting document to a file instead of stdout",
    )
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        dest="format",
        help="Output format: text (default) or json",
    )

    # Config
    parser.add_argument(
        "--debounce-ms",
        type=int,
        help="Reconciliation debounce for the editor (default: 300)",
    )
    parser.add_argument(
        "--baseline",
        type=Path,
        help="Baseline document for change markers",
    )
    parser.add_argument(
        "--no-auto-register",
        action="store_true",
        help="Do not create variables for undefined {{placeholders}}",
    )
    parser.add_argument(
        "--env",
        action="store_true",
        help="Print resolved configuration and environment, then exit",
    )

    # Mode
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch the interactive editor (requires segmentsync[ui])",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log sync decisions to stderr",
    )

    return parser


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "debounce_ms": args.debounce_ms,
        "baseline": str(args.baseline) if args.baseline else None,
        "auto_register_variables": False if args.no_auto_register else None,
    }


def _render_to_dict(doc: Document, result: RenderResult) -> Dict[str, Any]:
    lines = []
    for seg, lm in zip(doc.segments, result.line_maps):
        lines.append({
            "segment_id": seg.id,
            "text": lm.expanded,
            "template": seg.content,
            "variables": [t.name for t in lm.tokens if t.kind is TokenKind.VARIABLE],
        })
    return {"preview": result.preview_text, "lines": lines}


def _write_document(console: Console, doc: Document, output: Optional[Path]) -> None:
    if output:
        doc.save(output)
        console.print(f"[info]Wrote {output}[/info]")
    else:
        print(doc.to_json())


# ------------------------------------------------------------------
# Modes
# ------------------------------------------------------------------

def run_render(doc: Document, args: argparse.Namespace) -> int:
    result = render(doc.segments, doc.variables)
    if args.format == "json":
        print(json.dumps(_render_to_dict(doc, result), indent=2, ensure_ascii=False))
    else:
        print(result.preview_text)
    return 0


def run_diff(console: Console, doc: Document, baseline_path: Path, config: SyncEnvConfig, args: argparse.Namespace) -> int:
    baseline = Document.load(baseline_path)
    base_lines = render(baseline.segments, baseline.variables).lines
    curr_lines = render(doc.segments, doc.variables).lines
    report = compute_change_status(base_lines, curr_lines, config.min_common_substring)

    if args.format == "json":
        print(json.dumps({
            "statuses": report.statuses,
            "deletions": report.deletions,
            "has_unsaved_changes": report.has_unsaved_changes,
        }, indent=2))
        return 0

    out = Console(theme=SYNC_THEME, highlight=False)
    deletions = set(report.deletions)
    for j in range(len(curr_lines) + 1):
        if j in deletions:
            out.print("    [deleted]-[/deleted] [info](removed line)[/info]")
        if j < len(curr_lines):
            status = report.statuses[j]
            marker = _MARKERS[status]
            style = status or "info"
            out.print(f"{j + 1:>3} [{style}]{marker}[/{style}] ", end="")
            out.out(curr_lines[j], highlight=False)
    if not report.has_unsaved_changes:
        console.print("[info]No changes against baseline.[/info]")
    return 0


def run_reconcile(console: Console, doc: Document, edited: str, config: SyncEnvConfig, args: argparse.Namespace) -> int:
    # Editors usually add a trailing newline the preview never has
    if edited.endswith("\n"):
        edited = edited[:-1]
    result = Reconciler().sync(edited, doc.segments, doc.variables, args.cursor_line)
    variables = result.variables
    if config.auto_register_variables:
        variables = add_missing_variables([s.content for s in result.segments], variables)
    logging.getLogger(__name__).debug("Sync path: %s", result.kind.value)
    _write_document(console, Document(result.segments, variables), args.output)
    return 0


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------

def cli(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the segmentsync command."""
    parser = create_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    console = Console(theme=SYNC_THEME, stderr=True)
    config = load_config(project_dir=Path.cwd(), overrides=_config_overrides(args))

    # --env: print environment and exit
    if args.env:
        Console(theme=SYNC_THEME, highlight=False).print(print_env(config))
        sys.exit(0)

    if not args.document:
        parser.print_help()
        sys.exit(1)

    doc_path = Path(args.document)

    # TUI mode
    if args.ui:
        try:
            from segmentsync.tui.app import launch_tui
        except ImportError:
            console.print(
                "[error]Textual is required for --ui mode.[/error] "
                "Install with: [bright_cyan]pip install segmentsync\\[ui][/]"
            )
            sys.exit(1)
        launch_tui(doc_path=doc_path, config=config)
        sys.exit(0)

    try:
        doc = Document.load(doc_path)
        if args.stdin or args.reconcile:
            if args.stdin:
                edited = sys.stdin.read()
            else:
                edited = args.reconcile.read_text(encoding="utf-8")
            exit_code = run_reconcile(console, doc, edited, config, args)
        elif args.diff is not None:
            baseline = Path(args.diff) if args.diff else config.baseline
            if baseline is None:
                console.print("[error]--diff needs a BASELINE path or a configured baseline.[/error]")
                sys.exit(1)
            exit_code = run_diff(console, doc, baseline, config, args)
        else:
            exit_code = run_render(doc, args)
    except (DocumentError, OSError) as e:
        console.print(f"[error]Error:[/error] {e}", highlight=False)
        exit_code = 1
    except KeyboardInterrupt:
        console.print("\n[info]Interrupted.[/info]")
        exit_code = 130

    sys.exit(exit_code)


if __name__ == "__main__":
    cli()
