from __future__ import annotations

from typing import Callable, Dict, Hashable

from mdedit_engine.history import HistoryStore, Patch, PatchCoalescer, Selection, Snapshot
from mdedit_engine.runtime import EngineConfig, TimerQueue


class StickyScheduler:
    """Scheduler whose timers survive ``cancel`` so stale callbacks can be fired."""

    def __init__(self) -> None:
        self.callbacks: Dict[int, Callable[[], None]] = {}
        self.cancelled: list[Hashable] = []

    def after(self, delay_ms: int, callback: Callable[[], None]) -> int:
        token = len(self.callbacks) + 1
        self.callbacks[token] = callback
        return token

    def cancel(self, token: Hashable) -> None:
        self.cancelled.append(token)


def make_coalescer(
    timers, initial: str = "", **overrides: object
) -> PatchCoalescer:
    store = HistoryStore(initial, config=EngineConfig().with_overrides(**overrides))
    return PatchCoalescer(store, timers)


def type_burst(coalescer: PatchCoalescer, clock, text: str, *, gap_ms: int = 100) -> str:
    value = coalescer.store.current_value()
    for char in text:
        value += char
        coalescer.schedule(value, len(value), len(value))
        clock.advance(gap_ms)
    return value


def test_burst_becomes_single_patch(clock, timers: TimerQueue) -> None:
    coalescer = make_coalescer(timers)

    type_burst(coalescer, clock, "abc")
    assert len(coalescer.store) == 1

    clock.advance(600)
    assert timers.run_due() == 1

    assert len(coalescer.store) == 2
    entry = coalescer.store.entries[-1]
    assert isinstance(entry, Patch)
    assert entry.text == "abc"
    assert entry.selection_before == Selection(0, 0)
    assert entry.selection_after == Selection(3, 3)
    assert coalescer.pending is None


def test_each_keystroke_rearms_the_quiet_period(clock, timers: TimerQueue) -> None:
    coalescer = make_coalescer(timers)

    coalescer.schedule("a", 1, 1)
    clock.advance(400)
    coalescer.schedule("ab", 2, 2)
    clock.advance(400)
    assert timers.run_due() == 0
    assert coalescer.pending is not None

    clock.advance(200)
    assert timers.run_due() == 1
    assert coalescer.store.current_value() == "ab"
    assert timers.pending_count == 0


def test_burst_that_returns_to_base_is_discarded(clock, timers: TimerQueue) -> None:
    coalescer = make_coalescer(timers, "x")

    coalescer.schedule("xy", 2, 2)
    coalescer.schedule("x", 1, 1)

    assert coalescer.flush(force=True) is None
    assert len(coalescer.store) == 1
    assert coalescer.pending is None


def test_stale_timer_after_forced_flush_is_noop() -> None:
    scheduler = StickyScheduler()
    store = HistoryStore("")
    coalescer = PatchCoalescer(store, scheduler, debounce_ms=500)

    coalescer.schedule("a", 1, 1)
    coalescer.flush(force=True)
    assert len(store) == 2
    assert scheduler.cancelled == [1]

    scheduler.callbacks[1]()

    assert len(store) == 2
    assert store.current_value() == "a"


def test_flush_without_pending_burst_returns_none(timers: TimerQueue) -> None:
    coalescer = make_coalescer(timers)

    assert coalescer.flush() is None


def test_flush_snapshots_when_chain_is_full(clock, timers: TimerQueue) -> None:
    coalescer = make_coalescer(timers, max_patch_chain=2)

    for char in "xyz":
        type_burst(coalescer, clock, char)
        clock.advance(600)
        timers.run_due()

    kinds = [type(entry) for entry in coalescer.store.entries]
    assert kinds == [Snapshot, Patch, Patch, Snapshot]
    assert coalescer.store.current_value() == "xyz"


def test_cancel_drops_open_burst(clock, timers: TimerQueue) -> None:
    coalescer = make_coalescer(timers)
    coalescer.schedule("lost", 4, 4)

    coalescer.cancel()
    clock.advance(600)

    assert timers.run_due() == 0
    assert len(coalescer.store) == 1
