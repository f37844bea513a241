from __future__ import annotations

from typing import List

from mdedit_engine.adapters.textual import EditorUIHooks, TextualEditorAdapter
from mdedit_engine.session import EditorMirror, EditorSession


def make_adapter(timers, content: str = ""):
    session = EditorSession(content, scheduler=timers)
    updates: List[EditorMirror] = []
    statuses: List[str] = []
    logs: List[str] = []
    hooks = EditorUIHooks(
        update_buffer=updates.append,
        update_status=statuses.append,
        log=logs.append,
    )
    adapter = TextualEditorAdapter(session, hooks, timers=timers)
    return adapter, updates, statuses, logs


def test_adapter_types_printable_keys_and_flushes_on_tick(clock, timers) -> None:
    adapter, updates, statuses, _ = make_adapter(timers)

    for char in "hi":
        assert adapter.handle_textual_key(char, text=char)
    assert updates[-1].text == "hi"
    assert len(adapter.session.history) == 1

    assert adapter.process_timeouts() == 0
    clock.advance(600)
    assert adapter.process_timeouts() == 1

    assert len(adapter.session.history) == 2
    assert "history:flushed" in statuses


def test_adapter_routes_shortcuts_to_history(timers) -> None:
    adapter, updates, statuses, _ = make_adapter(timers, "abc")
    adapter.handle_textual_key("end")

    assert adapter.handle_textual_key("enter")
    assert updates[-1].text == "abc\n"
    assert adapter.handle_textual_key("ctrl+z")
    assert updates[-1].text == "abc"
    assert updates[-1].can_redo
    assert adapter.handle_textual_key("y", modifiers=("ctrl",))
    assert updates[-1].text == "abc\n"
    assert statuses[-3:] == ["newline", "undo", "redo"]


def test_adapter_moves_caret_without_editing(timers) -> None:
    adapter, updates, _, _ = make_adapter(timers, "one\ntwo")
    session = adapter.session

    adapter.handle_textual_key("end")
    assert session.selection.start == 3
    adapter.handle_textual_key("right")
    adapter.handle_textual_key("right")
    assert session.selection.start == 5
    adapter.handle_textual_key("home")
    assert session.selection.start == 4
    adapter.handle_textual_key("left")
    assert session.selection.start == 3
    assert updates[-1].text == "one\ntwo"
    assert len(session.history) == 1


def test_adapter_ignores_unbound_command_keys(timers) -> None:
    adapter, updates, _, _ = make_adapter(timers, "x")

    assert not adapter.handle_textual_key("ctrl+k", text="k")
    assert not adapter.handle_textual_key("f5")
    assert adapter.session.value == "x"


def test_adapter_paste_is_one_history_entry(timers) -> None:
    adapter, updates, statuses, _ = make_adapter(timers)

    adapter.handle_paste("pasted\nblock")

    assert updates[-1].text == "pasted\nblock"
    assert len(adapter.session.history) == 2
    assert statuses[-1] == "paste"


def test_adapter_resize_updates_layout(timers) -> None:
    adapter, _, _, _ = make_adapter(timers)

    adapter.resize(72, 20)

    layout = adapter.session.layout
    assert layout.width == 72
    assert layout.viewport.client_height == 20


def test_adapter_emits_log_lines(timers) -> None:
    adapter, _, _, logs = make_adapter(timers)

    adapter.handle_textual_key("a", text="a")

    assert logs[0].startswith("key ->")
    assert "pending=False" in logs[0]
    assert "key='a'" in logs[0]
