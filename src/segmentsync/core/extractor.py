"""Variable value extraction from an edited preview line.

When the user types straight into the flattened preview, each changed line
has to be mapped back onto its template: which characters are now a
variable's value, and which are literal text.  The mapping is heuristic.
Literal text acts as anchors that are searched for in the edited line, and
whatever lies between two anchors belongs to the variable(s) in between.

Rules, in short:

- A line with a single variable takes everything between its surrounding
  literals as the new value; literal text that moved or changed is written
  back into the template.
- On lines with several variables the template is walked token by token.
  Each literal is searched for from the current scan position, preferring
  the occurrence nearest where it used to be.  A run of adjacent variables
  with no literal between them shares its chunk in proportion to the old
  value lengths (in grapheme clusters); the last one takes the remainder.
- Variables whose old value was empty are never filled from ambiguous text
  on multi-variable lines.  Their placeholder is treated as fixed text.
- Anchors that can't be found at all turn the rest of the line into a plain
  literal edit.  Values in that stretch are left alone.

Nothing here raises.  A live keystroke must never be rejected; a wrong guess
is corrected as soon as the anchors line up again on the next edit.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from segmentsync.core.graphemes import first_grapheme, grapheme_len, graphemes, last_grapheme
from segmentsync.core.models import LineExtraction, LineMap, Segment, TokenKind, Variable
from segmentsync.core.renderer import render_line

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Internal structures
# ═══════════════════════════════════════════════════════════════════

EXACT = "exact"
DROP_FIRST = "drop_first"
DROP_LAST = "drop_last"


@dataclass
class _Unit:
    """A run of fixed text, or a group of adjacent editable variables."""

    editable: bool
    token_indices: List[int]
    template_start: int
    template_end: int
    rendered_start: int
    rendered_end: int
    variables: List[Variable] = field(default_factory=list)


@dataclass
class _Match:
    start: int
    end: int
    variant: str

    @property
    def exact(self) -> bool:
        return self.variant == EXACT


@dataclass
class _Walk:
    """Mutable state of one left-to-right pass over the edited line."""

    template: str
    edited: str
    parts: List[str] = field(default_factory=list)
    values: Dict[str, str] = field(default_factory=dict)
    pos: int = 0
    lead_trim: bool = False


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def extract_line(
    template: str,
    variables_in_line: Sequence[Variable],
    previous_line: str,
    edited_line: str,
) -> LineExtraction:
    """Infer new variable values and template for one edited line.

    *previous_line* is the line as it was rendered before the edit.  Returns
    the original template and no values when nothing changed.
    """
    template = str(template or "")
    edited_line = str(edited_line or "")
    if edited_line == previous_line:
        return LineExtraction(template=template)
    try:
        return _extract(template, variables_in_line, edited_line)
    except Exception:
        logger.warning("Value extraction failed; keeping line as literal text", exc_info=True)
        return LineExtraction(template=edited_line)


def extract_single_value(template: str, variable: Variable, edited_line: str) -> Optional[str]:
    """New value of the only variable on a line, or ``None`` if unchanged.

    Convenience wrapper over :func:`extract_line` for single-variable lines.
    """
    line_map = render_line(Segment(id="", content=template), [variable])
    result = extract_line(template, [variable], line_map.expanded, edited_line)
    return result.values.get(variable.id)


def extract_multiple_values(
    template: str,
    variables_in_line: Sequence[Variable],
    previous_line: str,
    edited_line: str,
) -> Dict[str, str]:
    """Changed values, keyed by variable id, for a line with several variables."""
    return extract_line(template, variables_in_line, previous_line, edited_line).values


def split_proportionally(chunk: str, weights: Sequence[int]) -> List[str]:
    """Partition *chunk* into ``len(weights)`` pieces by weight.

    Works in grapheme clusters.  Each share is rounded half-up and clamped to
    what is left; the last piece absorbs the remainder, so the pieces always
    concatenate back to *chunk*.
    """
    if not weights:
        return []
    clusters = graphemes(chunk)
    total = len(clusters)
    weight_sum = sum(max(0, w) for w in weights)
    if weight_sum <= 0:
        return [""] * (len(weights) - 1) + [chunk]

    shares: List[int] = []
    remaining = total
    for w in weights[:-1]:
        share = int(math.floor(total * max(0, w) / weight_sum + 0.5))
        share = max(0, min(share, remaining))
        shares.append(share)
        remaining -= share
    shares.append(remaining)

    pieces: List[str] = []
    cursor = 0
    for share in shares:
        pieces.append("".join(clusters[cursor:cursor + share]))
        cursor += share
    return pieces


# ═══════════════════════════════════════════════════════════════════
# Walk
# ═══════════════════════════════════════════════════════════════════

def _extract(template: str, variables_in_line: Sequence[Variable], edited: str) -> LineExtraction:
    line_map = render_line(Segment(id="", content=template), variables_in_line)
    previous = line_map.expanded
    if edited == previous:
        return LineExtraction(template=template)

    units = _build_units(line_map, variables_in_line)
    if not any(u.editable for u in units):
        # Nothing to infer; the line is plain text now
        return LineExtraction(template=edited)

    walk = _Walk(template=template, edited=edited)
    common_prefix = _common_prefix_len(previous, edited)
    delta = len(edited) - len(previous)

    pending: Optional[_Unit] = None
    for idx, unit in enumerate(units):
        if unit.editable:
            pending = unit
            continue

        text = previous[unit.rendered_start:unit.rendered_end]
        expected = unit.rendered_start if unit.rendered_start < common_prefix else unit.rendered_start + delta

        if pending is None:
            if edited.startswith(text, walk.pos):
                match = _Match(walk.pos, walk.pos + len(text), EXACT)
            else:
                match = _locate(edited, text, walk.pos, expected)
            if match is None:
                _unattributed(walk, units[idx:])
                return _finish(walk)
            if match.exact and match.start == walk.pos:
                walk.parts.append(template[unit.template_start:unit.template_end])
            else:
                walk.parts.append(edited[walk.pos:match.end])
            walk.lead_trim = match.variant == DROP_LAST
            walk.pos = match.end
            continue

        match = _locate(edited, text, walk.pos, expected)
        if match is None:
            _unattributed(walk, [pending] + units[idx:])
            return _finish(walk)

        chunk_end = match.start
        chunk = edited[walk.pos:chunk_end]
        if match.variant == DROP_FIRST and chunk and grapheme_len(chunk) > _old_length(pending):
            # The literal's first character was overtyped; it belongs to the literal
            chunk_end -= len(last_grapheme(chunk))
        _assign(walk, pending, edited[walk.pos:chunk_end])
        pending = None

        if match.exact and chunk_end == match.start:
            walk.parts.append(template[unit.template_start:unit.template_end])
        else:
            walk.parts.append(edited[chunk_end:match.end])
        walk.lead_trim = match.variant == DROP_LAST
        walk.pos = match.end

    if pending is not None:
        _assign(walk, pending, edited[walk.pos:])
        walk.pos = len(edited)
    elif walk.pos < len(edited):
        walk.parts.append(edited[walk.pos:])
        walk.pos = len(edited)
    return _finish(walk)


def _finish(walk: _Walk) -> LineExtraction:
    return LineExtraction(template="".join(walk.parts), values=walk.values)


def _build_units(
    line_map: LineMap,
    variables_in_line: Sequence[Variable],
) -> List[_Unit]:
    """Group tokens into fixed runs and editable variable groups.

    On a line with a single variable that variable is editable even when its
    value is empty; elsewhere empty variables are fixed placeholder text.
    """
    by_name = {v.name: v for v in variables_in_line}
    resolved = [t for t in line_map.tokens if t.kind is TokenKind.VARIABLE and t.name in by_name]
    single = len(resolved) == 1

    units: List[_Unit] = []
    for i, tok in enumerate(line_map.tokens):
        var = by_name.get(tok.name) if tok.kind is TokenKind.VARIABLE else None
        editable = var is not None and (single or bool(var.value))
        start, end = line_map.token_span(i)
        if units and units[-1].editable == editable:
            unit = units[-1]
            unit.token_indices.append(i)
            unit.template_end = tok.end
            unit.rendered_end = end
        else:
            unit = _Unit(
                editable=editable,
                token_indices=[i],
                template_start=tok.start,
                template_end=tok.end,
                rendered_start=start,
                rendered_end=end,
            )
            units.append(unit)
        if editable:
            unit.variables.append(var)
    return units


def _assign(walk: _Walk, unit: _Unit, chunk: str) -> None:
    """Attribute *chunk* to the variables of an editable group."""
    if walk.lead_trim and chunk and grapheme_len(chunk) > _old_length(unit):
        # The previous literal's last character was overtyped
        head = first_grapheme(chunk)
        walk.parts.append(head)
        chunk = chunk[len(head):]
    walk.lead_trim = False

    if len(unit.variables) == 1:
        var = unit.variables[0]
        value = chunk
        if not var.value:
            # Only reachable on single-variable lines: the placeholder was on screen
            if value == var.placeholder:
                value = ""
            else:
                value = value.replace(var.placeholder, "", 1)
        pieces = [value]
    else:
        pieces = split_proportionally(chunk, [grapheme_len(v.value) for v in unit.variables])

    for var, value in zip(unit.variables, pieces):
        if value != (var.value or "") and var.id not in walk.values:
            walk.values[var.id] = value
    walk.parts.append(walk.template[unit.template_start:unit.template_end])


def _unattributed(walk: _Walk, units: Sequence[_Unit]) -> None:
    """Treat ``edited[pos:]`` as a literal edit covering *units*.

    Variable values in the stretch stay as they were.  A placeholder is kept
    where its old value can still be found; otherwise the user deleted it
    and it is dropped from the template.
    """
    tail = walk.edited[walk.pos:]
    cursor = 0
    for unit in units:
        if not unit.editable:
            continue
        for tok_index, var in zip(unit.token_indices, unit.variables):
            piece = var.value or var.placeholder
            found = tail.find(piece, cursor)
            if found < 0:
                continue
            walk.parts.append(tail[cursor:found])
            walk.parts.append(var.placeholder)
            cursor = found + len(piece)
    walk.parts.append(tail[cursor:])
    walk.pos = len(walk.edited)
    logger.debug("Unattributed literal edit: %r", tail)


# ═══════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════

def _old_length(unit: _Unit) -> int:
    return sum(grapheme_len(v.value or v.placeholder) for v in unit.variables)


def _common_prefix_len(a: str, b: str) -> int:
    n = min(len(a), len(b))
    i = 0
    while i < n and a[i] == b[i]:
        i += 1
    return i


def _occurrences(haystack: str, needle: str, start: int) -> List[int]:
    found: List[int] = []
    i = haystack.find(needle, start)
    while i >= 0:
        found.append(i)
        i = haystack.find(needle, i + 1)
    return found


def _locate(haystack: str, text: str, start: int, expected: int) -> Optional[_Match]:
    """Find *text* at or after *start*, nearest to *expected*.

    Falls back to the text minus its first grapheme, then minus its last
    one, so that a single overtyped or deleted anchor character still
    resolves.
    """
    if not text:
        return _Match(start, start, EXACT)
    head = first_grapheme(text)
    tail = last_grapheme(text)
    candidates = [(EXACT, text, expected)]
    if len(text) > len(head):
        candidates.append((DROP_FIRST, text[len(head):], expected + len(head)))
    if len(text) > len(tail):
        candidates.append((DROP_LAST, text[:-len(tail)], expected))

    for variant, needle, target in candidates:
        hits = _occurrences(haystack, needle, start)
        if hits:
            best = min(hits, key=lambda h: (abs(h - target), h))
            return _Match(best, best + len(needle), variant)
    return None
