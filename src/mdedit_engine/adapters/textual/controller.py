"""Textual-agnostic controller wiring key events into an EditorSession."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

from mdedit_engine.keymaps import KeyStroke, resolve_shortcut
from mdedit_engine.layout import Viewport
from mdedit_engine.runtime.scheduler import TimerQueue
from mdedit_engine.session import EditorMirror, EditorSession


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class EditorUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_buffer: Callable[[EditorMirror], None]
    update_status: Callable[[str], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


_CARET_MOVES = {"left", "right", "home", "end"}
_COMMAND_MODIFIERS = {"ctrl", "meta", "alt"}


class TextualEditorAdapter:
    """Bridges Textual key names to session edits and refreshes the host."""

    def __init__(
        self,
        session: EditorSession,
        hooks: EditorUIHooks,
        *,
        timers: Optional[TimerQueue] = None,
    ) -> None:
        self.session = session
        self.hooks = hooks
        self.timers = timers
        self._refresh_buffer()

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
        composing: bool = False,
    ) -> bool:
        """Dispatch one key; returns ``True`` when the session consumed it."""

        parsed = KeyStroke.parse(key, composing=composing)
        stroke = KeyStroke(
            parsed.key, (*parsed.modifiers, *modifiers), composing=composing
        )
        self._log_state("key ->", key=stroke.token, text=text)

        action = resolve_shortcut(stroke, self.session.shortcuts)
        if action is not None:
            self.session.handle_key(stroke)
            self._after_edit(action)
            return True

        if stroke.key in _CARET_MOVES and not stroke.modifiers:
            self._move_caret(stroke.key)
            self._refresh_buffer()
            return True

        if (
            text
            and text.isprintable()
            and not _COMMAND_MODIFIERS.intersection(stroke.modifiers)
        ):
            self.session.type_text(text)
            self._after_edit("")
            return True

        return False

    def handle_paste(self, text: str) -> None:
        if text:
            self.session.insert_at_cursor(text)
            self._after_edit("paste")

    def process_timeouts(self) -> int:
        """Fire due debounce timers and refresh the host if any ran."""

        if self.timers is None:
            return 0
        fired = self.timers.run_due()
        if fired:
            self.hooks.update_status("history:flushed")
            self._log_state("timeout ->", fired=fired)
            self._refresh_buffer()
        return fired

    def resize(self, width: float, height: float) -> None:
        viewport = self.session.layout.viewport
        self.session.update_layout(
            width=width,
            viewport=Viewport(
                scroll_top=viewport.scroll_top,
                client_height=height,
                padding_top=viewport.padding_top,
                affordance_height=1,
                band_margin=0,
            ),
        )
        self._refresh_buffer()

    def _move_caret(self, key: str) -> None:
        value = self.session.value
        start, end = self.session.selection.as_tuple()
        if key == "left":
            target = start - 1 if start == end else start
        elif key == "right":
            target = end + 1 if start == end else end
        elif key == "home":
            target = value.rfind("\n", 0, start) + 1
        else:
            newline = value.find("\n", end)
            target = len(value) if newline == -1 else newline
        self.session.set_selection(target)

    def _after_edit(self, status: str) -> None:
        if status:
            self.hooks.update_status(status)
        self.session.take_pending_selection()
        self._refresh_buffer()

    def _refresh_buffer(self) -> None:
        self.hooks.update_buffer(self.session.mirror())

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        mirror = self.session.mirror()
        return {
            "session": self.session.name,
            "selection": mirror.selection.as_tuple(),
            "history": f"{mirror.history_index + 1}/{mirror.history_size}",
            "pending": self.session.coalescer.pending is not None,
        }


__all__ = ["EditorUIHooks", "TextualEditorAdapter"]
