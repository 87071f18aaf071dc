"""TUI-side collaborators for the sync orchestrator.

:class:`TextAreaCaret` satisfies the ``CaretAccessor`` protocol from
``segmentsync.core.orchestrator`` over a Textual ``TextArea``, translating
between flat text offsets and ``(row, column)`` locations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from textual.widgets import TextArea


class TextAreaCaret:
    """CaretAccessor backed by a TextArea's cursor."""

    def __init__(self, text_area: TextArea) -> None:
        self._text_area = text_area

    def get_caret(self) -> int:
        ta = self._text_area
        return ta.document.get_index_from_location(ta.cursor_location)

    def set_caret(self, offset: int) -> None:
        ta = self._text_area
        offset = max(0, min(offset, len(ta.text)))
        ta.move_cursor(ta.document.get_location_from_index(offset))
