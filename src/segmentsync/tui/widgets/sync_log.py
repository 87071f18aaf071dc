"""Sync log widget: what each reconciliation did."""

from __future__ import annotations

from rich.markup import escape
from textual.widgets import RichLog

from segmentsync.core.models import SyncKind


class SyncLog(RichLog):
    """Scrollable log of committed syncs, saves and errors."""

    DEFAULT_CSS = """
    SyncLog {
        height: 8;
        border: round $primary-darken-1;
        padding: 0 1;
    }
    """

    _KIND_ICONS = {
        SyncKind.STRUCTURAL: "↵",
        SyncKind.RECONCILED: "✎",
        SyncKind.UNCHANGED: "·",
    }

    def __init__(self, **kwargs) -> None:
        super().__init__(markup=True, **kwargs)

    def add_sync(self, kind: SyncKind, text: str) -> None:
        icon = self._KIND_ICONS.get(kind, "·")
        self.write(f"{icon} [bold]{kind.value}[/bold]: {escape(text[:200])}")

    def add_error(self, text: str) -> None:
        self.write(f"❌ [bold red]{escape(text)}[/bold red]")

    def add_info(self, text: str) -> None:
        self.write(f"[dim]{escape(text)}[/dim]")
