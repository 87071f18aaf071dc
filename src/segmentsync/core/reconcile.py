"""Reconciliation of an edited preview back into segments and variables.

Structural edits (a single line split or merge, or one whole line added or
removed) are tried first.  Anything else goes line by line through the
extractor, with segments appended or truncated to match the new line count.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

from segmentsync.core.extractor import extract_line
from segmentsync.core.ids import generate_id
from segmentsync.core.models import (
    LineExtraction,
    RenderResult,
    Segment,
    SyncKind,
    SyncResult,
    Token,
    Variable,
)
from segmentsync.core.renderer import render
from segmentsync.core.structural import resolve_structural_edit
from segmentsync.core.tokenizer import tokenize

logger = logging.getLogger(__name__)


class Reconciler:
    """Turns an edited preview into a new document state.

    Collaborators are passed in explicitly; the defaults are the module
    functions of :mod:`segmentsync.core`.  ``render_fn`` produces the
    previous lines and line maps, and ``tokenize_fn`` decides which variables
    sit on a line.  ``extract_fn`` replaces the whole per-line extraction
    pass; the default :func:`extract_line` does its own rendering of the
    single template it is given, so ``render_fn`` and ``tokenize_fn`` do not
    reach inside it.
    """

    def __init__(
        self,
        *,
        tokenize_fn: Callable[[str], List[Token]] = tokenize,
        render_fn: Callable[[Sequence[Segment], Sequence[Variable]], RenderResult] = render,
        extract_fn: Callable[[str, Sequence[Variable], str, str], LineExtraction] = extract_line,
        id_factory: Callable[[], str] = generate_id,
    ):
        self._tokenize = tokenize_fn
        self._render = render_fn
        self._extract = extract_fn
        self._id_factory = id_factory

    def sync(
        self,
        edited_preview: str,
        segments: Sequence[Segment],
        variables: Sequence[Variable],
        cursor_line_index: Optional[int] = None,
    ) -> SyncResult:
        """Structural resolution first, full reconciliation as the fallback."""
        rendered = self._render(segments, variables)
        edited_preview = str(edited_preview or "")
        if edited_preview == rendered.preview_text:
            return SyncResult(list(segments), list(variables), SyncKind.UNCHANGED)

        edited_lines = edited_preview.split("\n")
        structural = resolve_structural_edit(
            edited_lines, segments, rendered, cursor_line_index, self._id_factory,
        )
        if structural is not None:
            return SyncResult(structural, list(variables), SyncKind.STRUCTURAL)
        return self._reconcile_lines(edited_lines, segments, variables, rendered)

    def reconcile(
        self,
        edited_preview: str,
        segments: Sequence[Segment],
        variables: Sequence[Variable],
    ) -> SyncResult:
        """Full per-line reconciliation, skipping structural detection."""
        rendered = self._render(segments, variables)
        edited_lines = str(edited_preview or "").split("\n")
        return self._reconcile_lines(edited_lines, segments, variables, rendered)

    # ── Internals ──────────────────────────────────────────────────

    def _reconcile_lines(
        self,
        edited_lines: List[str],
        segments: Sequence[Segment],
        variables: Sequence[Variable],
        rendered: RenderResult,
    ) -> SyncResult:
        previous = rendered.lines
        new_segments = list(segments)
        if len(edited_lines) > len(new_segments):
            for line in edited_lines[len(new_segments):]:
                new_segments.append(Segment(id=self._id_factory(), content=line))
        elif len(edited_lines) < len(new_segments):
            del new_segments[len(edited_lines):]

        updates: Dict[str, str] = {}
        changed = 0
        for i in range(min(len(edited_lines), len(segments))):
            edited, before = edited_lines[i], previous[i]
            if edited == before:
                continue
            changed += 1
            seg = new_segments[i]
            names = {t.name for t in self._tokenize(seg.content or "") if t.is_variable}
            in_line = [v for v in variables if v.name in names]
            if not in_line:
                new_segments[i] = seg.with_content(edited)
            elif not edited.strip():
                # Blanking a line clears its template but leaves values alone
                new_segments[i] = seg.with_content("")
            else:
                result = self._extract(seg.content or "", in_line, before, edited)
                new_segments[i] = seg.with_content(result.template)
                updates.update(result.values)

        new_variables = [
            v.with_value(updates[v.id]) if v.id in updates else v
            for v in variables
        ]
        logger.debug(
            "Reconciled %d changed line(s), %d value update(s), %d -> %d segments",
            changed, len(updates), len(segments), len(new_segments),
        )
        return SyncResult(new_segments, new_variables, SyncKind.RECONCILED)


def reconcile(
    edited_preview: str,
    segments: Sequence[Segment],
    variables: Sequence[Variable],
    cursor_line_index: Optional[int] = None,
    id_factory: Callable[[], str] = generate_id,
) -> SyncResult:
    """Reconcile *edited_preview* with the default collaborators."""
    return Reconciler(id_factory=id_factory).sync(edited_preview, segments, variables, cursor_line_index)
