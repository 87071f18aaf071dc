"""Debounced preview synchronisation.

The orchestrator owns the current document state while the preview is being
edited.  Keystrokes update the preview text immediately; reconciliation runs
once typing pauses for ``debounce_ms``.  A single newline typed or removed
while idle is applied straight away as a structural edit.

Timers and the caret restore are injected so the same class drives the
Textual editor (``call_after_refresh``) and plain asyncio code or tests.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Sequence

from segmentsync.core.ids import generate_id
from segmentsync.core.models import RenderResult, Segment, SyncKind, SyncResult, Variable
from segmentsync.core.reconcile import Reconciler
from segmentsync.core.renderer import render
from segmentsync.core.structural import apply_keystroke_edit, detect_keystroke_edit
from segmentsync.core.usage import add_missing_variables

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300


class SyncState(str, Enum):
    IDLE = "idle"
    EDITING_PREVIEW = "editing_preview"


class CaretAccessor(Protocol):
    """Reads and moves the caret of the preview editor, as a text offset."""

    def get_caret(self) -> int: ...

    def set_caret(self, offset: int) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Any]
Defer = Callable[[Callable[[], None]], Any]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


def asyncio_defer(callback: Callable[[], None]) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return
    loop.call_soon(callback)


class PreviewSyncOrchestrator:
    """Two-state machine between the editable preview and the document.

    ``IDLE``: the preview equals the render of the document.
    ``EDITING_PREVIEW``: the user has typed; a reconciliation is pending.

    *scheduler* is called as ``scheduler(delay_seconds, callback)`` and must
    return a handle with ``cancel()``.  *defer* runs a callback after the
    next paint.  *on_change* receives every committed :class:`SyncResult`.
    """

    def __init__(
        self,
        segments: Sequence[Segment],
        variables: Sequence[Variable],
        *,
        renderer: Callable[[Sequence[Segment], Sequence[Variable]], RenderResult] = render,
        reconciler: Optional[Reconciler] = None,
        scheduler: Scheduler = asyncio_scheduler,
        defer: Defer = asyncio_defer,
        caret: Optional[CaretAccessor] = None,
        id_factory: Callable[[], str] = generate_id,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        auto_register_variables: bool = True,
        on_change: Optional[Callable[[SyncResult], None]] = None,
    ):
        self._render = renderer
        self._id_factory = id_factory
        self._reconciler = reconciler or Reconciler(render_fn=renderer, id_factory=id_factory)
        self._scheduler = scheduler
        self._defer = defer
        self._caret = caret
        self.debounce_ms = debounce_ms
        self.auto_register_variables = auto_register_variables
        self.on_change = on_change

        self._segments: List[Segment] = list(segments or [])
        self._variables: List[Variable] = list(variables or [])
        self._rendered = self._render(self._segments, self._variables)
        self._preview = self._rendered.preview_text
        self._state = SyncState.IDLE
        self._generation = 0
        self._timer: Any = None
        self._pending_caret: Optional[int] = None

    # ── State ──────────────────────────────────────────────────────

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def segments(self) -> List[Segment]:
        return list(self._segments)

    @property
    def variables(self) -> List[Variable]:
        return list(self._variables)

    @property
    def preview_text(self) -> str:
        """What the preview shows: typed text while editing, else the render."""
        return self._preview

    @property
    def rendered(self) -> RenderResult:
        return self._rendered

    @property
    def has_pending(self) -> bool:
        return self._timer is not None

    # ── Input ──────────────────────────────────────────────────────

    def on_preview_input(self, text: str, caret: Optional[int] = None) -> Optional[SyncResult]:
        """Handle one preview change.

        Returns the committed result when the change was applied immediately
        as a structural keystroke, else ``None`` (reconciliation pending).
        """
        text = str(text or "")
        if caret is None:
            caret = self._caret.get_caret() if self._caret is not None else len(text)

        if self._state is SyncState.IDLE:
            edit = detect_keystroke_edit(self._preview, text, caret)
            if edit is not None:
                logger.debug("Keystroke edit %s on line %d", edit.kind.value, edit.line_index)
                segments = apply_keystroke_edit(self._segments, self._variables, edit, self._id_factory)
                return self._commit(SyncResult(segments, self._variables, SyncKind.STRUCTURAL), caret)

        if text == self._preview:
            return None

        self._preview = text
        self._pending_caret = caret
        self._state = SyncState.EDITING_PREVIEW
        self._generation += 1
        self._cancel_timer()
        generation = self._generation
        self._timer = self._scheduler(self.debounce_ms / 1000.0, lambda: self._on_timer(generation))
        return None

    def flush_now(self) -> Optional[SyncResult]:
        """Reconcile the pending edit immediately (e.g. before saving)."""
        if self._state is not SyncState.EDITING_PREVIEW:
            return None
        self._cancel_timer()
        caret = self._pending_caret
        cursor_line = self._preview.count("\n", 0, caret) if caret is not None else None
        result = self._reconciler.sync(self._preview, self._segments, self._variables, cursor_line)
        return self._commit(result, caret)

    def cancel(self) -> None:
        """Drop a pending edit and show the document's render again."""
        self._cancel_timer()
        self._generation += 1
        self._state = SyncState.IDLE
        self._pending_caret = None
        self._preview = self._rendered.preview_text

    def set_document(self, segments: Sequence[Segment], variables: Sequence[Variable]) -> SyncResult:
        """Replace the document from outside the preview (form edits, loads).

        Any pending preview edit is discarded.
        """
        self.cancel()
        return self._commit(SyncResult(list(segments), list(variables), SyncKind.UNCHANGED), None)

    def update_variable(self, variable_id: str, value: str) -> SyncResult:
        """Set one variable's value, flushing a pending preview edit first."""
        self.flush_now()
        variables = [v.with_value(value) if v.id == variable_id else v for v in self._variables]
        return self._commit(SyncResult(self._segments, variables, SyncKind.UNCHANGED), None)

    # ── Internals ──────────────────────────────────────────────────

    def _on_timer(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Stale sync timer (generation %d) ignored", generation)
            return
        self._timer = None
        self.flush_now()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _commit(self, result: SyncResult, caret: Optional[int]) -> SyncResult:
        variables = result.variables
        if self.auto_register_variables:
            variables = add_missing_variables(
                [s.content for s in result.segments], variables, self._id_factory,
            )
            if variables is not result.variables:
                result = SyncResult(result.segments, variables, result.kind)

        self._segments = list(result.segments)
        self._variables = list(result.variables)
        self._rendered = self._render(self._segments, self._variables)
        self._preview = self._rendered.preview_text
        self._state = SyncState.IDLE
        self._pending_caret = None
        logger.debug("Committed %s sync: %d segments", result.kind.value, len(self._segments))

        if self.on_change is not None:
            self.on_change(result)
        if caret is not None and self._caret is not None:
            generation = self._generation
            self._defer(lambda: self._restore_caret(caret, generation))
        return result

    def _restore_caret(self, caret: int, generation: int) -> None:
        # A newer keystroke owns the caret now
        if generation != self._generation or self._state is not SyncState.IDLE:
            return
        self._caret.set_caret(max(0, min(caret, len(self._preview))))
