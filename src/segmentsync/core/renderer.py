"""Preview renderer and index mapper.

Expands segments and variables into the flattened preview text and records,
for every rendered character, whether it came from literal template text or
from a variable's value.  The same maps drive safe line splitting.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from segmentsync.core.ids import generate_id
from segmentsync.core.models import (
    LineMap,
    Provenance,
    RenderResult,
    Segment,
    TokenKind,
    Variable,
)
from segmentsync.core.tokenizer import tokenize


def variables_by_name(variables: Sequence[Variable]) -> Dict[str, Variable]:
    return {str(v.name): v for v in (variables or [])}


def render_line(
    segment: Segment,
    variables: Sequence[Variable],
    segment_index: int = 0,
    *,
    lookup: Optional[Dict[str, Variable]] = None,
) -> LineMap:
    """Render one segment into a :class:`LineMap`."""
    by_name = lookup if lookup is not None else variables_by_name(variables)
    template = str(segment.content or "")
    tokens = tokenize(template)
    parts: List[str] = []
    char_map: List[Provenance] = []

    for token_index, tok in enumerate(tokens):
        if tok.kind is TokenKind.LITERAL:
            parts.append(tok.text)
            char_map.extend(
                Provenance(TokenKind.LITERAL, token_index, template_offset=tok.start + k)
                for k in range(len(tok.text))
            )
            continue

        var = by_name.get(tok.name)
        if var is None:
            # Unresolved: the placeholder itself is shown, nothing backs it
            text = tok.placeholder
            parts.append(text)
            char_map.extend(
                Provenance(
                    TokenKind.LITERAL,
                    token_index,
                    template_offset=tok.start,
                    variable_name=tok.name,
                    offset_in_value=k,
                )
                for k in range(len(text))
            )
            continue

        text = str(var.value or "") or tok.placeholder
        parts.append(text)
        char_map.extend(
            Provenance(
                TokenKind.VARIABLE,
                token_index,
                variable_id=var.id,
                variable_name=tok.name,
                offset_in_value=k,
            )
            for k in range(len(text))
        )

    return LineMap(
        segment_index=segment_index,
        tokens=tokens,
        char_map=char_map,
        expanded="".join(parts),
    )


def render(segments: Sequence[Segment], variables: Sequence[Variable]) -> RenderResult:
    """Render the full preview text plus one line map per segment."""
    lookup = variables_by_name(variables)
    line_maps = [
        render_line(seg, variables, idx, lookup=lookup)
        for idx, seg in enumerate(segments or [])
    ]
    return RenderResult(
        preview_text="\n".join(lm.expanded for lm in line_maps),
        line_maps=line_maps,
    )


# ═══════════════════════════════════════════════════════════════════
# Split offsets and structural template operations
# ═══════════════════════════════════════════════════════════════════

def compute_template_split_offset(line_map: Optional[LineMap], column: int) -> int:
    """Map a caret column in the rendered line to a safe template offset.

    Literal neighbours snap to their exact template offset.  Inside a
    variable the split moves to the nearer placeholder boundary so that a
    placeholder is never cut in two.
    """
    if line_map is None:
        return 0
    tokens = line_map.tokens
    char_map = line_map.char_map
    total = len(char_map)
    if total == 0 or column <= 0:
        return tokens[0].start if tokens else 0
    if column >= total:
        return tokens[-1].end if tokens else 0

    left = char_map[column - 1]
    right = char_map[column]
    left_tok = tokens[left.token_index]
    right_tok = tokens[right.token_index]

    if right_tok.kind is TokenKind.LITERAL:
        return right.template_offset
    if left_tok.kind is TokenKind.LITERAL:
        return left.template_offset + 1
    if left.token_index != right.token_index:
        # Between two adjacent placeholders
        return right_tok.start

    start, end = line_map.token_span(right.token_index)
    length = end - start
    if right.offset_in_value * 2 < length:
        return right_tok.start
    return right_tok.end


def apply_enter_at(
    segments: Sequence[Segment],
    line_index: int,
    column: int,
    line_maps: Sequence[LineMap],
    id_factory: Callable[[], str] = generate_id,
) -> List[Segment]:
    """Split the segment at *line_index* where Enter was pressed.

    An empty document shows as one empty line, so Enter there yields two
    empty segments.
    """
    if not segments:
        return [Segment(id=id_factory(), content=""), Segment(id=id_factory(), content="")]
    idx = max(0, min(line_index, len(segments) - 1))
    seg = segments[idx]
    line_map = line_maps[idx] if idx < len(line_maps) else None
    template = str(seg.content or "")
    offset = compute_template_split_offset(line_map, column)
    result = list(segments)
    result[idx] = seg.with_content(template[:offset])
    result.insert(idx + 1, Segment(id=id_factory(), content=template[offset:]))
    return result


def apply_backspace_at_line_start(segments: Sequence[Segment], line_index: int) -> List[Segment]:
    """Merge line *line_index* into the line above it."""
    result = list(segments or [])
    if not result:
        return result
    idx = max(0, min(line_index, len(result) - 1))
    if idx == 0:
        return result
    prev, curr = result[idx - 1], result[idx]
    result[idx - 1] = prev.with_content(str(prev.content or "") + str(curr.content or ""))
    del result[idx]
    return result


def apply_delete_at_line_end(segments: Sequence[Segment], line_index: int) -> List[Segment]:
    """Merge the line below *line_index* into it."""
    result = list(segments or [])
    if not result:
        return result
    idx = max(0, min(line_index, len(result) - 1))
    if idx >= len(result) - 1:
        return result
    curr, nxt = result[idx], result[idx + 1]
    result[idx] = curr.with_content(str(curr.content or "") + str(nxt.content or ""))
    del result[idx + 1]
    return result
