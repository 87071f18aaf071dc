"""Preview widget: the editable, fully rendered document."""

from __future__ import annotations

from textual.widgets import TextArea

from segmentsync.tui.callbacks import TextAreaCaret


class PreviewEditor(TextArea):
    """Shows every segment with its variables substituted, one per line.

    Edits here are handed to the sync orchestrator by the app; this widget
    only knows how to swap in new text without losing the caret.
    """

    DEFAULT_CSS = """
    PreviewEditor {
        height: 1fr;
        border: round $primary-darken-1;
    }
    """

    def __init__(self, text: str = "", **kwargs) -> None:
        super().__init__(text, soft_wrap=True, show_line_numbers=True, **kwargs)
        self.caret = TextAreaCaret(self)

    def replace_text(self, text: str) -> None:
        """Load *text*, keeping the caret at the same offset where possible."""
        if text == self.text:
            return
        offset = self.caret.get_caret()
        self.load_text(text)
        self.caret.set_caret(offset)
