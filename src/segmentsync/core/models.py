"""Data model shared by the sync engine.

Segments and variables are the persisted document state.  Everything else
(tokens, provenance, line maps, alignments) is derived on demand and never
cached authoritatively.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple


VARIABLE_TYPES = ("text", "time", "phone")


# ═══════════════════════════════════════════════════════════════════
# Document state
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Segment:
    """One line-worth of template text."""

    id: str
    content: str = ""

    def with_content(self, content: str) -> "Segment":
        return replace(self, content=content)


@dataclass(frozen=True)
class Variable:
    """A named, typed value substituted wherever its placeholder appears."""

    id: str
    name: str
    type: str = "text"  # "text", "time", "phone"
    value: str = ""

    @property
    def placeholder(self) -> str:
        return "{{" + self.name + "}}"

    def with_value(self, value: str) -> "Variable":
        return replace(self, value=value)


# ═══════════════════════════════════════════════════════════════════
# Derived structures
# ═══════════════════════════════════════════════════════════════════

class TokenKind(str, Enum):
    LITERAL = "literal"
    VARIABLE = "variable"


@dataclass(frozen=True)
class Token:
    """A literal run or a ``{{name}}`` placeholder inside a template.

    ``start``/``end`` are offsets into the template string; ``end`` is
    exclusive.  Literal tokens carry ``text``, variable tokens ``name``.
    """

    kind: TokenKind
    start: int
    end: int
    text: str = ""
    name: str = ""

    @property
    def is_variable(self) -> bool:
        return self.kind is TokenKind.VARIABLE

    @property
    def placeholder(self) -> str:
        """Normalised placeholder text for a variable token."""
        return "{{" + self.name + "}}"


@dataclass(frozen=True)
class Provenance:
    """Where one rendered character came from."""

    kind: TokenKind
    token_index: int
    template_offset: Optional[int] = None  # literal characters only
    variable_id: Optional[str] = None
    variable_name: Optional[str] = None
    offset_in_value: Optional[int] = None


@dataclass
class LineMap:
    """Rendered line plus per-character provenance for one segment."""

    segment_index: int
    tokens: List[Token]
    char_map: List[Provenance]
    expanded: str

    def token_span(self, token_index: int) -> Tuple[int, int]:
        """Return the ``[start, end)`` range of a token in ``expanded``.

        Tokens that render to nothing yield an empty range positioned where
        the token would have been.
        """
        start = None
        end = None
        position = 0
        for i, entry in enumerate(self.char_map):
            if entry.token_index < token_index:
                position = i + 1
            elif entry.token_index == token_index:
                if start is None:
                    start = i
                end = i + 1
            else:
                break
        if start is None:
            return position, position
        return start, end


@dataclass
class RenderResult:
    """Output of :func:`segmentsync.core.renderer.render`."""

    preview_text: str
    line_maps: List[LineMap] = field(default_factory=list)

    @property
    def lines(self) -> List[str]:
        return [lm.expanded for lm in self.line_maps]


@dataclass
class DiffAlignment:
    """Line matches between a baseline list and the current list."""

    pairs: List[Tuple[int, int]] = field(default_factory=list)
    deletions: List[int] = field(default_factory=list)


@dataclass
class ChangeReport:
    """Per-line change status against a baseline."""

    statuses: List[Optional[str]] = field(default_factory=list)  # "new", "edited" or None
    deletions: List[int] = field(default_factory=list)

    @property
    def has_unsaved_changes(self) -> bool:
        return any(s in ("new", "edited") for s in self.statuses) or bool(self.deletions)


@dataclass
class LineExtraction:
    """Result of extracting one edited line.

    ``values`` maps variable ids to their inferred new value (only entries
    that differ from the old value).  ``template`` is the segment content to
    store, which equals the original template when no literal changed.
    """

    template: str
    values: Dict[str, str] = field(default_factory=dict)


class SyncKind(str, Enum):
    UNCHANGED = "unchanged"
    STRUCTURAL = "structural"
    RECONCILED = "reconciled"


@dataclass
class SyncResult:
    """Segments and variables produced by reconciling an edited preview."""

    segments: List[Segment]
    variables: List[Variable]
    kind: SyncKind = SyncKind.RECONCILED
