"""Structural edits: newline inserts and deletes in the preview.

Pressing Enter, Backspace at a line start or Delete at a line end changes
the line count by exactly one and nothing else.  Running those through value
extraction would shift every following line against the wrong template, so
they are recognised here and applied as a plain split or merge of segments.
A whole line added or removed between otherwise untouched lines is handled
the same way: one segment is inserted or dropped and the rest keep their
templates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from segmentsync.core.ids import generate_id
from segmentsync.core.models import RenderResult, Segment, Variable
from segmentsync.core.renderer import (
    apply_backspace_at_line_start,
    apply_delete_at_line_end,
    apply_enter_at,
    compute_template_split_offset,
    render,
)
from segmentsync.core.tokenizer import tokenize

logger = logging.getLogger(__name__)


class EditKind(str, Enum):
    ENTER = "enter"
    DELETE_AT_LINE_END = "delete_at_line_end"
    BACKSPACE_AT_LINE_START = "backspace_at_line_start"


@dataclass(frozen=True)
class KeystrokeEdit:
    """A single newline typed or removed, located in the old preview."""

    kind: EditKind
    line_index: int
    column: int = 0


# ═══════════════════════════════════════════════════════════════════
# Keystroke level
# ═══════════════════════════════════════════════════════════════════

def detect_keystroke_edit(old_preview: str, new_preview: str, caret: int) -> Optional[KeystrokeEdit]:
    """Classify a one-character newline insert or removal.

    *caret* is the caret offset in *new_preview* after the keystroke.
    Returns ``None`` for anything that is not exactly one ``\\n`` added or
    removed at the caret.
    """
    old = str(old_preview or "")
    new = str(new_preview or "")
    caret = max(0, min(int(caret), len(new)))
    diff = len(new) - len(old)

    if diff == 1 and caret >= 1 and new[caret - 1] == "\n":
        split = caret - 1
        if old[:split] == new[:split] and old[split:] == new[caret:]:
            line = old.count("\n", 0, split)
            column = split - (old.rfind("\n", 0, split) + 1)
            return KeystrokeEdit(EditKind.ENTER, line, column)

    if diff == -1:
        # Delete at line end and Backspace at the next line's start leave the
        # same text and caret; both merge the caret line with the one below.
        if caret < len(old) and old[caret] == "\n" and old[:caret] == new[:caret] and old[caret + 1:] == new[caret:]:
            return KeystrokeEdit(EditKind.DELETE_AT_LINE_END, old.count("\n", 0, caret))
        # Caret reported before the removal took effect
        idx = caret - 1
        if idx >= 0 and old[idx] == "\n" and old[:idx] == new[:idx] and old[idx + 1:] == new[idx:]:
            return KeystrokeEdit(EditKind.BACKSPACE_AT_LINE_START, old.count("\n", 0, idx) + 1)

    return None


def apply_keystroke_edit(
    segments: Sequence[Segment],
    variables: Sequence[Variable],
    edit: KeystrokeEdit,
    id_factory: Callable[[], str] = generate_id,
) -> List[Segment]:
    """Apply a detected keystroke edit to the segment list."""
    if edit.kind is EditKind.ENTER:
        line_maps = render(segments, variables).line_maps
        return apply_enter_at(segments, edit.line_index, edit.column, line_maps, id_factory)
    if edit.kind is EditKind.DELETE_AT_LINE_END:
        return apply_delete_at_line_end(segments, edit.line_index)
    return apply_backspace_at_line_start(segments, edit.line_index)


# ═══════════════════════════════════════════════════════════════════
# Line-array level
# ═══════════════════════════════════════════════════════════════════

def resolve_structural_edit(
    edited_lines: Sequence[str],
    segments: Sequence[Segment],
    rendered: RenderResult,
    cursor_line_index: Optional[int] = None,
    id_factory: Callable[[], str] = generate_id,
) -> Optional[List[Segment]]:
    """Resolve a one-line split, merge, or whole-line insert or delete.

    *rendered* is the render of *segments* before the edit.  ``None`` means
    the edit is none of those and needs full reconciliation.
    """
    previous = rendered.lines
    edited = list(edited_lines)
    if len(edited) == len(previous) + 1:
        return (
            _resolve_insert(edited, previous, segments, rendered, cursor_line_index, id_factory)
            or _resolve_whole_line(edited, previous, segments, id_factory)
        )
    if len(edited) == len(previous) - 1:
        return (
            _resolve_delete(edited, previous, segments, cursor_line_index)
            or _resolve_whole_line(edited, previous, segments, id_factory)
        )
    return None


def _front_aligned(previous: Sequence[str], edited: Sequence[str]) -> int:
    pref = 0
    while pref < len(previous) and pref < len(edited) and previous[pref] == edited[pref]:
        pref += 1
    return pref


def _back_aligned(previous: Sequence[str], edited: Sequence[str], pref: int) -> int:
    """Matching lines at the end, never reaching into the first *pref*."""
    limit = min(len(previous), len(edited)) - pref
    suf = 0
    while suf < limit and previous[-1 - suf] == edited[-1 - suf]:
        suf += 1
    return suf


def _candidates(pref: int, cursor: Optional[int], upper: int) -> List[int]:
    order: List[int] = []
    for k in (cursor, pref, pref - 1):
        if k is not None and 0 <= k < upper and k not in order:
            order.append(k)
    return order


def _resolve_insert(
    edited: List[str],
    previous: List[str],
    segments: Sequence[Segment],
    rendered: RenderResult,
    cursor_line_index: Optional[int],
    id_factory: Callable[[], str],
) -> Optional[List[Segment]]:
    pref = _front_aligned(previous, edited)
    # After Enter the caret sits on the second half, one line below the split
    cursor = cursor_line_index - 1 if cursor_line_index is not None else None

    for k in _candidates(pref, cursor, len(previous)):
        left, right = edited[k], edited[k + 1]
        if left + right != previous[k]:
            continue
        if previous[:k] != edited[:k] or previous[k + 1:] != edited[k + 2:]:
            continue

        seg = segments[k]
        template = str(seg.content or "")
        if any(t.is_variable for t in tokenize(template)):
            offset = compute_template_split_offset(rendered.line_maps[k], len(left))
            left_t, right_t = template[:offset], template[offset:]
        else:
            left_t, right_t = left, right

        result = list(segments)
        result[k] = seg.with_content(left_t)
        result.insert(k + 1, Segment(id=id_factory(), content=right_t))
        logger.debug("Structural split of line %d at column %d", k, len(left))
        return result
    return None


def _resolve_delete(
    edited: List[str],
    previous: List[str],
    segments: Sequence[Segment],
    cursor_line_index: Optional[int],
) -> Optional[List[Segment]]:
    pref = _front_aligned(previous, edited)
    cursor = None
    if cursor_line_index is not None:
        cursor = max(0, min(cursor_line_index, len(previous) - 2))

    for k in _candidates(pref, cursor, len(previous) - 1):
        if edited[k] != previous[k] + previous[k + 1]:
            continue
        if previous[:k] != edited[:k] or previous[k + 2:] != edited[k + 1:]:
            continue

        upper, lower = segments[k], segments[k + 1]
        merged = str(upper.content or "") + str(lower.content or "")
        # Removing an empty line above keeps the line that still has text
        survivor = lower if previous[k] == "" and previous[k + 1] != "" else upper

        result = list(segments)
        result[k] = survivor.with_content(merged)
        del result[k + 1]
        logger.debug("Structural merge of lines %d and %d", k, k + 1)
        return result
    return None


def _resolve_whole_line(
    edited: List[str],
    previous: List[str],
    segments: Sequence[Segment],
    id_factory: Callable[[], str],
) -> Optional[List[Segment]]:
    """A whole line added or removed between untouched lines.

    Front and back alignment must cover every line but one on the longer
    side.  That line's segment is removed, or a new plain segment holding the
    typed text is inserted at its index.  Every other segment is kept as is.
    """
    pref = _front_aligned(previous, edited)
    suf = _back_aligned(previous, edited, pref)
    if len(edited) > len(previous):
        if pref + suf != len(previous):
            return None
        result = list(segments)
        result.insert(pref, Segment(id=id_factory(), content=edited[pref]))
        logger.debug("Structural insert of line %d", pref)
        return result

    if pref + suf != len(edited):
        return None
    result = list(segments)
    del result[pref]
    logger.debug("Structural removal of line %d", pref)
    return result
