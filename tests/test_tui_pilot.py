"""TUI Pilot tests: drive the segmentsync editor headlessly.

Uses ``app.run_test()`` to verify that:
  - The layout mounts with the preview, segment list, variable form and log
  - Changing a variable input re-renders the preview and marks the segment
  - Typing in the preview flows back into variable values
  - Splitting a line in the preview adds a segment
  - Ctrl+S writes the document and clears the unsaved marker
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from textual.widgets import Footer, Header, Input

from segmentsync.config import SyncEnvConfig
from segmentsync.document import Document
from segmentsync.tui.app import SegmentSyncApp
from segmentsync.tui.screens.input import VariableForm
from segmentsync.tui.widgets.preview import PreviewEditor
from segmentsync.tui.widgets.segments import SegmentList
from segmentsync.tui.widgets.sync_log import SyncLog


# ═══════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════

GREETING = {
    "segments": [{"id": "s1", "content": "Hello {{name}}!"}],
    "variables": [{"id": "v1", "name": "name", "type": "text", "value": "Bob"}],
}

PLAIN = {"segments": [{"id": "s1", "content": "Hello world"}], "variables": []}


def _write_doc(tmp_path: Path, data: dict, name: str = "doc.json") -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def _make_app(doc_path: Path) -> SegmentSyncApp:
    return SegmentSyncApp(doc_path=doc_path, config=SyncEnvConfig(debounce_ms=0))


async def _settle(pilot, app) -> None:
    await pilot.pause()
    app.orchestrator.flush_now()
    await pilot.pause()


# ═══════════════════════════════════════════════════════════════════
# Tests: mounting
# ═══════════════════════════════════════════════════════════════════

class TestAppMounting:
    @pytest.mark.asyncio
    async def test_app_mounts_with_header_and_footer(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test() as pilot:
            assert app.query(Header)
            assert app.query(Footer)
            assert app.title == "segmentsync"

    @pytest.mark.asyncio
    async def test_app_has_panels(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test() as pilot:
            assert app.query_one("#left-panel")
            assert app.query_one("#right-panel")
            assert app.query_one("#segment-list", SegmentList)
            assert app.query_one("#variable-form", VariableForm)
            assert app.query_one("#sync-log", SyncLog)

    @pytest.mark.asyncio
    async def test_preview_shows_rendered_text(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            editor = app.query_one("#preview-editor", PreviewEditor)
            assert editor.text == "Hello Bob!"

    @pytest.mark.asyncio
    async def test_variable_input_prefilled(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test() as pilot:
            assert app.query_one("#var-name", Input).value == "Bob"

    @pytest.mark.asyncio
    async def test_missing_document_starts_empty(self, tmp_path):
        app = _make_app(tmp_path / "new.json")
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.query_one("#preview-editor", PreviewEditor).text == ""
            assert app.orchestrator.segments == []


# ═══════════════════════════════════════════════════════════════════
# Tests: editing
# ═══════════════════════════════════════════════════════════════════

class TestEditing:
    @pytest.mark.asyncio
    async def test_variable_change_updates_preview(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            app.query_one("#var-name", Input).value = "Alice"
            await pilot.pause()
            assert app.query_one("#preview-editor", PreviewEditor).text == "Hello Alice!"
            rows = app.query_one("#segment-list", SegmentList).rows
            assert "~" in rows[0]

    @pytest.mark.asyncio
    async def test_typing_in_preview_updates_variable(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            editor = app.query_one("#preview-editor", PreviewEditor)
            editor.insert("y", location=(0, 9))
            await _settle(pilot, app)
            assert app.orchestrator.variables[0].value == "Boby"
            assert app.orchestrator.segments[0].content == "Hello {{name}}!"

    @pytest.mark.asyncio
    async def test_splitting_a_line_adds_segment(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, PLAIN))
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            editor = app.query_one("#preview-editor", PreviewEditor)
            editor.insert("\n", location=(0, 5))
            await _settle(pilot, app)
            segments = app.orchestrator.segments
            assert [s.content for s in segments] == ["Hello", " world"]
            assert segments[0].id == "s1"


# ═══════════════════════════════════════════════════════════════════
# Tests: actions
# ═══════════════════════════════════════════════════════════════════

class TestActions:
    @pytest.mark.asyncio
    async def test_save_writes_document(self, tmp_path):
        doc_path = _write_doc(tmp_path, GREETING)
        app = _make_app(doc_path)
        async with app.run_test(size=(120, 40)) as pilot:
            await pilot.pause()
            app.query_one("#var-name", Input).value = "Alice"
            await pilot.pause()
            app.action_save()
            await pilot.pause()
            saved = Document.load(doc_path)
            assert saved.variables[0].value == "Alice"
            rows = app.query_one("#segment-list", SegmentList).rows
            assert "~" not in rows[0]

    @pytest.mark.asyncio
    async def test_toggle_left_panel(self, tmp_path):
        app = _make_app(_write_doc(tmp_path, GREETING))
        async with app.run_test() as pilot:
            panel = app.query_one("#left-panel")
            assert panel.display
            app.action_toggle_left_panel()
            await pilot.pause()
            assert not panel.display
