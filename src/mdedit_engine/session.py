"""Editing session façade combining buffer, history, coalescer, and layout."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional, Tuple, Union

from mdedit_engine.runtime import telemetry
from mdedit_engine.runtime.config import EngineConfig
from mdedit_engine.runtime.scheduler import Scheduler, TimerQueue

from .history import (
    HistoryEntry,
    HistoryStep,
    HistoryStore,
    PatchCoalescer,
    Selection,
)
from .keymaps import DEFAULT_SHORTCUTS, KeyStroke, resolve_shortcut
from .layout import (
    CaretEstimator,
    LayoutContext,
    LayoutOracle,
    MonospaceOracle,
    StyleSignature,
    Viewport,
)

SelectionLike = Union[Selection, Tuple[int, int]]


def _noop(*_args, **_kwargs) -> None:
    return None


def _as_selection(value: SelectionLike) -> Selection:
    if isinstance(value, Selection):
        return value
    start, end = value
    return Selection(start, end)


@dataclass(slots=True)
class EditorMirror:
    """Host-friendly snapshot describing the current session state."""

    text: str
    selection: Selection
    can_undo: bool
    can_redo: bool
    history_size: int
    history_index: int


class EditorSession:
    """Single-owner editing session.

    Typed input goes through :meth:`input` and is coalesced; every other edit
    is structural and commits immediately after flushing the open burst.
    After each change ``on_change`` receives the new value and
    :attr:`pending_selection` holds the selection the host should apply on
    its next paint.
    """

    def __init__(
        self,
        content: str = "",
        *,
        on_change: Optional[Callable[[str], None]] = None,
        scheduler: Optional[Scheduler] = None,
        oracle: Optional[LayoutOracle] = None,
        layout: Optional[LayoutContext] = None,
        config: Optional[EngineConfig] = None,
        shortcuts: Mapping[str, str] = DEFAULT_SHORTCUTS,
        name: str = "default",
        logger_name: Optional[str] = None,
    ) -> None:
        self.name = name
        self.config = config or EngineConfig()
        self.scheduler = scheduler or TimerQueue()
        self.shortcuts = shortcuts
        self.layout = layout or LayoutContext()
        self.history = HistoryStore(
            content, config=self.config, logger_name=logger_name
        )
        self.coalescer = PatchCoalescer(
            self.history, self.scheduler, logger_name=logger_name
        )
        self.estimator = CaretEstimator(
            oracle or MonospaceOracle(),
            pool_size=self.config.oracle_pool_size,
            logger_name=logger_name,
        )
        self._logger_name = logger_name
        self._on_change = on_change or _noop
        self._value = content
        self._selection = Selection()
        self._pending_selection: Optional[Selection] = None
        self._closed = False

    @property
    def value(self) -> str:
        return self._value

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def pending_selection(self) -> Optional[Selection]:
        return self._pending_selection

    @property
    def closed(self) -> bool:
        return self._closed

    def take_pending_selection(self) -> Optional[Selection]:
        """Return the selection to apply on the next paint and clear it."""

        pending, self._pending_selection = self._pending_selection, None
        return pending

    def set_selection(self, start: int, end: Optional[int] = None) -> Selection:
        self._selection = Selection(start, start if end is None else end).clamp(
            len(self._value)
        )
        return self._selection

    def mirror(self) -> EditorMirror:
        return EditorMirror(
            text=self._value,
            selection=self._selection,
            can_undo=self.history.can_undo() or self.coalescer.pending is not None,
            can_redo=self.history.can_redo() and self.coalescer.pending is None,
            history_size=len(self.history),
            history_index=self.history.index,
        )

    # -- typing -----------------------------------------------------------

    def input(
        self,
        new_value: str,
        selection: SelectionLike,
        *,
        before: Optional[SelectionLike] = None,
    ) -> None:
        """Accept a value the host already shows (native typing) and buffer it."""

        if self._closed:
            return
        previous = _as_selection(before) if before is not None else self._selection
        after = _as_selection(selection).clamp(len(new_value))
        self._value = new_value
        self._selection = after
        self._on_change(new_value)
        self.coalescer.schedule(new_value, after.start, after.end, before=previous)

    def type_text(self, text: str) -> None:
        start, end = self._selection.as_tuple()
        new_value = self._value[:start] + text + self._value[end:]
        self.input(new_value, Selection.caret(start + len(text)))

    # -- structural edits -------------------------------------------------

    def replace_range(
        self,
        start: int,
        end: int,
        text: str,
        *,
        selection_after: Optional[SelectionLike] = None,
    ) -> Optional[HistoryEntry]:
        length = len(self._value)
        start = min(max(start, 0), length)
        end = min(max(end, start), length)
        new_value = self._value[:start] + text + self._value[end:]
        after = (
            _as_selection(selection_after)
            if selection_after is not None
            else Selection.caret(start + len(text))
        )
        return self._commit(new_value, after)

    def insert_at_cursor(self, text: str) -> Optional[HistoryEntry]:
        start, end = self._selection.as_tuple()
        return self.replace_range(start, end, text)

    def insert_snippet(self, raw: str) -> Optional[HistoryEntry]:
        """Insert a block on its own lines, adding line breaks only where missing."""

        snippet = raw if raw.endswith("\n") else raw + "\n"
        start, end = self._selection.as_tuple()
        before = self._value[:start]
        after = self._value[end:]
        need_leading = bool(before) and not before.endswith("\n") and not snippet.startswith("\n")
        need_trailing = bool(after) and not after.startswith("\n")
        block = ("\n" if need_leading else "") + snippet + ("\n" if need_trailing else "")
        caret = start + (1 if need_leading else 0) + len(snippet)
        return self.replace_range(start, end, block, selection_after=Selection.caret(caret))

    def indent(self) -> Optional[HistoryEntry]:
        return self.insert_at_cursor(self.config.indent)

    def newline(self) -> Optional[HistoryEntry]:
        return self.insert_at_cursor("\n")

    def backspace(self) -> Optional[HistoryEntry]:
        start, end = self._selection.as_tuple()
        if end > start:
            return self.replace_range(start, end, "")
        if start == 0:
            return None
        return self.replace_range(start - 1, start, "")

    def delete_forward(self) -> Optional[HistoryEntry]:
        start, end = self._selection.as_tuple()
        if end > start:
            return self.replace_range(start, end, "")
        if start >= len(self._value):
            return None
        return self.replace_range(start, start + 1, "")

    # -- history ----------------------------------------------------------

    def undo(self) -> Optional[HistoryStep]:
        return self._step("undo", self.history.undo)

    def redo(self) -> Optional[HistoryStep]:
        return self._step("redo", self.history.redo)

    def flush(self) -> Optional[HistoryEntry]:
        return self.coalescer.flush(force=True)

    def close(self) -> None:
        """Commit any open burst. Afterwards the value is frozen: edits, undo and
        redo are ignored and no timer is armed again.
        """

        if self._closed:
            return
        self.coalescer.flush(force=True)
        self._closed = True

    def handle_key(self, stroke: KeyStroke) -> bool:
        action = resolve_shortcut(stroke, self.shortcuts)
        if action is None or self._closed:
            return False
        getattr(self, action)()
        return True

    # -- layout -----------------------------------------------------------

    def update_layout(
        self,
        *,
        signature: Optional[StyleSignature] = None,
        width: Optional[float] = None,
        viewport: Optional[Viewport] = None,
    ) -> LayoutContext:
        changes: dict[str, object] = {}
        if signature is not None:
            changes["signature"] = signature
        if width is not None:
            changes["width"] = width
        if viewport is not None:
            changes["viewport"] = viewport
        if changes:
            self.layout = replace(self.layout, **changes)  # type: ignore[arg-type]
        return self.layout

    def offset_at_y(self, relative_y: float) -> int:
        return self.estimator.offset_at_y(self._value, relative_y, self.layout)

    def caret_affordance_top(self) -> float:
        return self.estimator.pixel_position_at_offset(
            self._value, self._selection.start, self.layout
        )

    def line_top_at_offset(self, index: int) -> Optional[float]:
        return self.estimator.line_top_at_offset(self._value, index, self.layout)

    # -- internals --------------------------------------------------------

    def _commit(self, new_value: str, after: Selection) -> Optional[HistoryEntry]:
        old_value = self._value
        if self._closed or new_value == old_value:
            return None
        before = self._selection
        after = after.clamp(len(new_value))
        with telemetry.span(
            "session", "commit", logger_name=self._logger_name, session=self.name
        ):
            self.coalescer.flush(force=True)
            entry = self.history.record(old_value, new_value, before, after)
        self._apply(new_value, after)
        return entry

    def _step(
        self, label: str, move: Callable[[], Optional[HistoryStep]]
    ) -> Optional[HistoryStep]:
        if self._closed:
            return None
        with telemetry.span(
            "session", label, logger_name=self._logger_name, session=self.name
        ):
            self.coalescer.flush(force=True)
            step = move()
        if step is None:
            return None
        telemetry.record_event(
            f"history.{label}",
            data={"index": step.index, "size": len(self.history)},
            logger_name=self._logger_name,
        )
        self._apply(step.value, step.selection)
        return step

    def _apply(self, value: str, selection: Selection) -> None:
        self._value = value
        self._selection = selection
        self._pending_selection = selection
        self._on_change(value)


__all__ = ["EditorMirror", "EditorSession", "SelectionLike"]
