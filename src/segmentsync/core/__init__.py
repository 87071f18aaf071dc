"""segmentsync sync engine.

Pure functions over segments and variables: tokenize, render, align,
extract, reconcile.  The orchestrator adds debouncing on top.
"""

from .diff import align, compute_change_status, lines_are_similar, longest_common_substring_length
from .extractor import extract_line, extract_multiple_values, extract_single_value, split_proportionally
from .ids import generate_id
from .models import (
    ChangeReport,
    DiffAlignment,
    LineExtraction,
    LineMap,
    Provenance,
    RenderResult,
    Segment,
    SyncKind,
    SyncResult,
    Token,
    TokenKind,
    Variable,
)
from .orchestrator import CaretAccessor, PreviewSyncOrchestrator, SyncState
from .reconcile import Reconciler, reconcile
from .renderer import (
    apply_backspace_at_line_start,
    apply_delete_at_line_end,
    apply_enter_at,
    compute_template_split_offset,
    render,
    render_line,
)
from .structural import EditKind, KeystrokeEdit, detect_keystroke_edit, resolve_structural_edit
from .tokenizer import extract_variable_names, tokenize
from .usage import add_missing_variables, analyze_deletion_impact, analyze_variable_usage, guess_variable_type

__all__ = [
    "CaretAccessor",
    "ChangeReport",
    "DiffAlignment",
    "EditKind",
    "KeystrokeEdit",
    "LineExtraction",
    "LineMap",
    "PreviewSyncOrchestrator",
    "Provenance",
    "Reconciler",
    "RenderResult",
    "Segment",
    "SyncKind",
    "SyncResult",
    "SyncState",
    "Token",
    "TokenKind",
    "Variable",
    "add_missing_variables",
    "align",
    "analyze_deletion_impact",
    "analyze_variable_usage",
    "apply_backspace_at_line_start",
    "apply_delete_at_line_end",
    "apply_enter_at",
    "compute_change_status",
    "compute_template_split_offset",
    "detect_keystroke_edit",
    "extract_line",
    "extract_multiple_values",
    "extract_single_value",
    "extract_variable_names",
    "generate_id",
    "guess_variable_type",
    "lines_are_similar",
    "longest_common_substring_length",
    "reconcile",
    "render",
    "render_line",
    "resolve_structural_edit",
    "split_proportionally",
    "tokenize",
]
