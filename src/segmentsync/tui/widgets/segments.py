"""Segment list widget: templates with change markers against the baseline."""

from __future__ import annotations

from typing import Sequence

from rich.markup import escape
from textual.widgets import Static

from segmentsync.core.models import ChangeReport, Segment

_STYLES = {
    "new": ("+", "bold green"),
    "edited": ("~", "bold yellow"),
}


class SegmentList(Static):
    """Displays each segment's raw template, marked new, edited or unchanged.

    Deleted baseline lines show as a red ``-`` row at the position they
    were removed from.
    """

    DEFAULT_CSS = """
    SegmentList {
        height: auto;
        padding: 1;
        border: round $primary-darken-1;
        margin-bottom: 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("", markup=True, **kwargs)
        self.rows: list[str] = []

    def show(self, segments: Sequence[Segment], report: ChangeReport) -> None:
        rows: list[str] = []
        deletions = set(report.deletions)
        for j in range(len(segments) + 1):
            if j in deletions:
                rows.append("[bold red]-[/bold red] [dim](removed)[/dim]")
            if j == len(segments):
                break
            status = report.statuses[j] if j < len(report.statuses) else None
            marker, style = _STYLES.get(status, (" ", "dim"))
            content = escape(segments[j].content) or "[dim italic](empty)[/dim italic]"
            rows.append(f"[{style}]{marker}[/{style}] {content}")

        self.rows = rows
        if report.has_unsaved_changes:
            header = "[bold]Segments[/bold] [yellow]● unsaved[/yellow]"
        else:
            header = "[bold]Segments[/bold]"
        self.update("\n".join([header] + rows))
