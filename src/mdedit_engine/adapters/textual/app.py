"""Executable Textual app that hosts an editing session."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual import events
    from textual.app import App, ComposeResult
    from textual.containers import Vertical
    from textual.widgets import Footer, Header, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' extra to use mdedit_engine.adapters.textual.app"
    ) from exc

from mdedit_engine.layout import LayoutContext, MonospaceOracle, StyleSignature
from mdedit_engine.runtime import EngineConfig, TimerQueue
from mdedit_engine.session import EditorMirror, EditorSession

from .controller import EditorUIHooks, TextualEditorAdapter

CARET = "▏"
# One terminal cell per glyph and per row.
CELL_SIGNATURE = StyleSignature(font_family="terminal", font_size=1, line_height=1)


def create_session(
    content: str = "",
    *,
    config: Optional[EngineConfig] = None,
    timers: Optional[TimerQueue] = None,
) -> EditorSession:
    """Build a session measuring text in terminal cells."""

    return EditorSession(
        content,
        scheduler=timers or TimerQueue(),
        oracle=MonospaceOracle(char_width=1.0),
        layout=LayoutContext(signature=CELL_SIGNATURE, width=80),
        config=config or EngineConfig.from_env(),
        name="textual",
    )


@dataclass
class UIState:
    buffer_text: str = ""
    status_text: str = ""


class MarkdownEditorApp(App[None]):
    """Minimal Textual UI embedding the editing engine."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#buffer-view {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
		overflow: auto;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        content: str = "",
        *,
        config: Optional[EngineConfig] = None,
        tick_seconds: float = 0.05,
    ) -> None:
        super().__init__()
        self._state = UIState()
        self._content = content
        self._config = config
        self._tick_seconds = tick_seconds
        self.timers = TimerQueue()
        self.session: EditorSession | None = None
        self.adapter: TextualEditorAdapter | None = None
        self._buffer_widget: Static | None = None
        self._status_widget: Static | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="buffer-area"):
            self._buffer_widget = Static("", id="buffer-view", markup=False)
            yield self._buffer_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    async def on_mount(self) -> None:
        self.session = create_session(
            self._content, config=self._config, timers=self.timers
        )
        hooks = EditorUIHooks(
            update_buffer=self._update_buffer,
            update_status=self._update_status,
        )
        self.adapter = TextualEditorAdapter(self.session, hooks, timers=self.timers)
        self._sync_layout()
        self.set_interval(self._tick_seconds, self._process_timeouts)

    async def on_unmount(self) -> None:
        if self.session:
            self.session.close()

    def on_resize(self, event: events.Resize) -> None:
        del event
        self._sync_layout()

    def on_paste(self, event: events.Paste) -> None:
        if self.adapter:
            self.adapter.handle_paste(event.text)
        event.stop()

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter or event.key == "ctrl+q":
            return
        text = event.character if event.is_printable else None
        if self.adapter.handle_textual_key(event.key, text=text):
            event.stop()
            event.prevent_default()

    def _process_timeouts(self) -> None:
        if self.adapter:
            self.adapter.process_timeouts()

    def _sync_layout(self) -> None:
        if not self.adapter or not self._buffer_widget:
            return
        size = self._buffer_widget.content_size
        if size.width > 0:
            self.adapter.resize(size.width, size.height)

    def _update_buffer(self, mirror: EditorMirror) -> None:
        start = mirror.selection.start
        self._state.buffer_text = mirror.text[:start] + CARET + mirror.text[start:]
        if self._buffer_widget:
            self._buffer_widget.update(self._state.buffer_text)
        history = f"history {mirror.history_index + 1}/{mirror.history_size}"
        flags = "".join(
            (" undo" if mirror.can_undo else "", " redo" if mirror.can_redo else "")
        )
        self._update_status(f"{history}{flags}")

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the Markdown editing engine Textual demo."
    )
    parser.add_argument(
        "path",
        nargs="?",
        help="Optional file whose contents seed the session (never written back)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        help="Quiet period before a typing burst is committed "
        "(default: MDEDIT_ENGINE_DEBOUNCE_MS or 500)",
    )
    parser.add_argument(
        "--max-history",
        type=int,
        default=None,
        help="Maximum number of history entries kept",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    config = EngineConfig.from_env(os.environ)
    overrides = {
        name: value
        for name, value in (
            ("debounce_ms", args.debounce_ms),
            ("max_history", args.max_history),
        )
        if value is not None
    }
    if overrides:
        config = config.with_overrides(**overrides)
    content = Path(args.path).read_text(encoding="utf-8") if args.path else ""
    MarkdownEditorApp(content, config=config).run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
