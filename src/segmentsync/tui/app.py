"""segmentsync TUI: main Textual application.

Launch with:
    segmentsync doc.json --ui
    segmentsync doc.json --ui --baseline saved.json
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.theme import Theme
from textual.widgets import Footer, Header, Input, Static, TextArea

from segmentsync.config import SyncEnvConfig
from segmentsync.core.diff import compute_change_status
from segmentsync.core.models import SyncKind, SyncResult, Variable
from segmentsync.core.orchestrator import PreviewSyncOrchestrator
from segmentsync.core.renderer import render
from segmentsync.document import Document, DocumentError
from segmentsync.tui.screens.input import VariableForm
from segmentsync.tui.widgets.preview import PreviewEditor
from segmentsync.tui.widgets.segments import SegmentList
from segmentsync.tui.widgets.sync_log import SyncLog

logger = logging.getLogger(__name__)

SEGMENTSYNC_THEME = Theme(
    name="segmentsync-slate",
    primary="#7AA2F7",
    secondary="#BB9AF7",
    accent="#2AC3DE",
    warning="#E0AF68",
    error="#F7768E",
    success="#9ECE6A",
    foreground="#C0CAF5",
    background="#1A1B26",
    surface="#1F2335",
    panel="#24283B",
    dark=True,
)


class SegmentSyncApp(App):
    """Interactive editor: edit the preview, watch segments and variables follow."""

    TITLE = "segmentsync"

    CSS = """
    #main-container {
        height: 1fr;
    }
    #left-panel {
        width: 2fr;
        min-width: 30;
    }
    #right-panel {
        width: 3fr;
    }
    .input-label {
        margin-top: 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=True),
        Binding("ctrl+s", "save", "Save", show=True),
        Binding("ctrl+l", "toggle_left_panel", "Toggle Segments", show=True),
    ]

    def __init__(
        self,
        doc_path: Path,
        config: Optional[SyncEnvConfig] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.register_theme(SEGMENTSYNC_THEME)
        self.theme = "segmentsync-slate"
        self._doc_path = Path(doc_path)
        self._config = config or SyncEnvConfig()
        self._document = Document.load(self._doc_path) if self._doc_path.exists() else Document()
        self._baseline_lines = self._load_baseline()
        self.orchestrator: Optional[PreviewSyncOrchestrator] = None

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="main-container"):
            # Left: segment templates + variable form
            with Vertical(id="left-panel"):
                with ScrollableContainer(id="left-scroll"):
                    yield SegmentList(id="segment-list")
                    yield Static("[bold]Variables[/bold]", markup=True)
                    yield VariableForm(self._document.variables, id="variable-form")

            # Right: editable preview + sync log
            with Vertical(id="right-panel"):
                yield Static(
                    f"[bold]Preview[/bold] · {self._doc_path.name}",
                    markup=True,
                    id="preview-title",
                )
                yield PreviewEditor(id="preview-editor")
                yield SyncLog(id="sync-log")

        yield Footer()

    def on_mount(self) -> None:
        editor = self.query_one("#preview-editor", PreviewEditor)
        self.orchestrator = PreviewSyncOrchestrator(
            self._document.segments,
            self._document.variables,
            defer=self.call_after_refresh,
            caret=editor.caret,
            debounce_ms=self._config.debounce_ms,
            auto_register_variables=self._config.auto_register_variables,
            on_change=self._on_sync,
        )
        editor.replace_text(self.orchestrator.preview_text)
        self._refresh_segments()

    # ── Event handlers ────────────────────────────────────────────

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.orchestrator is None or event.text_area.id != "preview-editor":
            return
        text = event.text_area.text
        # Programmatic loads echo back the orchestrator's own text
        if text == self.orchestrator.preview_text:
            return
        self.orchestrator.on_preview_input(text)

    def on_input_changed(self, event: Input.Changed) -> None:
        if self.orchestrator is None:
            return
        form = self.query_one("#variable-form", VariableForm)
        var_id = form.variable_id_for(event.input)
        if var_id is None:
            return
        current = next((v for v in self.orchestrator.variables if v.id == var_id), None)
        if current is None or current.value == event.value:
            return
        self.orchestrator.update_variable(var_id, event.value)

    # ── Actions ───────────────────────────────────────────────────

    def action_save(self) -> None:
        """Flush any pending edit and write the document (Ctrl+S)."""
        log = self.query_one("#sync-log", SyncLog)
        self.orchestrator.flush_now()
        doc = Document(self.orchestrator.segments, self.orchestrator.variables)
        try:
            doc.save(self._doc_path)
        except (OSError, DocumentError, ImportError) as exc:
            log.add_error(str(exc))
            return
        self._document = doc
        self._baseline_lines = render(doc.segments, doc.variables).lines
        self._refresh_segments()
        log.add_info(f"Saved {self._doc_path.name}")

    def action_toggle_left_panel(self) -> None:
        """Show or hide the left panel (Ctrl+L)."""
        panel = self.query_one("#left-panel")
        panel.display = not panel.display

    # ── Sync plumbing ─────────────────────────────────────────────

    def _on_sync(self, result: SyncResult) -> None:
        editor = self.query_one("#preview-editor", PreviewEditor)
        editor.replace_text(self.orchestrator.preview_text)
        self._refresh_segments()
        self.call_later(self._refresh_form, result.variables)
        if result.kind is not SyncKind.UNCHANGED:
            log = self.query_one("#sync-log", SyncLog)
            log.add_sync(result.kind, f"{len(result.segments)} segment(s), {len(result.variables)} variable(s)")

    async def _refresh_form(self, variables: List[Variable]) -> None:
        form = self.query_one("#variable-form", VariableForm)
        await form.set_variables(variables)

    def _refresh_segments(self) -> None:
        lines = self.orchestrator.rendered.lines
        report = compute_change_status(self._baseline_lines, lines, self._config.min_common_substring)
        self.query_one("#segment-list", SegmentList).show(self.orchestrator.segments, report)

    def _load_baseline(self) -> List[str]:
        """Rendered lines of the configured baseline, else of the loaded document."""
        baseline = self._config.baseline
        if baseline is not None and baseline.is_file():
            try:
                doc = Document.load(baseline)
                return render(doc.segments, doc.variables).lines
            except DocumentError as exc:
                logger.warning("Baseline %s not usable: %s", baseline, exc)
        return render(self._document.segments, self._document.variables).lines


def launch_tui(doc_path: Path, config: Optional[SyncEnvConfig] = None) -> None:
    """Entry point for --ui mode."""
    app = SegmentSyncApp(doc_path=doc_path, config=config)
    app.run()
