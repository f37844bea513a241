"""Debounced accumulation of typing bursts into single history entries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional

from mdedit_engine.runtime import telemetry
from mdedit_engine.runtime.scheduler import Scheduler

from .entries import HistoryEntry, Selection
from .store import HistoryStore


@dataclass(slots=True)
class DebounceBuffer:
    base_value: str
    latest_value: str
    selection_before: Selection
    selection_start: int
    selection_end: int
    timer: Optional[Hashable] = None

    @property
    def selection_after(self) -> Selection:
        return Selection(self.selection_start, self.selection_end)


class PatchCoalescer:
    """Buffers rapid edits and commits them once the quiet period elapses."""

    def __init__(
        self,
        store: HistoryStore,
        scheduler: Scheduler,
        *,
        debounce_ms: Optional[int] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self.store = store
        self.scheduler = scheduler
        self.debounce_ms = (
            store.config.debounce_ms if debounce_ms is None else debounce_ms
        )
        self._logger_name = logger_name
        self._pending: Optional[DebounceBuffer] = None

    @property
    def pending(self) -> Optional[DebounceBuffer]:
        return self._pending

    def schedule(
        self,
        new_value: str,
        sel_start: int,
        sel_end: int,
        *,
        before: Optional[Selection] = None,
    ) -> DebounceBuffer:
        """Record ``new_value`` as the latest state of the current burst.

        ``before`` is the selection prior to the first edit of the burst; it
        is ignored once a burst is already open.
        """

        buf = self._pending
        if buf is None:
            base = self.store.current_value()
            buf = DebounceBuffer(
                base_value=base,
                latest_value=new_value,
                selection_before=(before or Selection(sel_start, sel_end)).clamp(
                    len(base)
                ),
                selection_start=sel_start,
                selection_end=sel_end,
            )
            self._pending = buf
        else:
            buf.latest_value = new_value
            buf.selection_start = sel_start
            buf.selection_end = sel_end

        self._clear_timer(buf)
        buf.timer = self.scheduler.after(
            self.debounce_ms, lambda: self._on_timer(buf)
        )
        return buf

    def flush(self, force: bool = False) -> Optional[HistoryEntry]:
        """Commit the open burst, if any, and clear it."""

        buf = self._pending
        if buf is None:
            return None
        self._clear_timer(buf)
        self._pending = None

        if buf.base_value == buf.latest_value:
            telemetry.record_event(
                "coalescer.discard",
                data={"force": force},
                logger_name=self._logger_name,
            )
            return None

        with telemetry.span(
            "history", "flush", logger_name=self._logger_name, force=force
        ):
            entry = self.store.record(
                buf.base_value,
                buf.latest_value,
                buf.selection_before,
                buf.selection_after.clamp(len(buf.latest_value)),
            )
        telemetry.record_event(
            "coalescer.flush",
            data={"force": force, "kind": type(entry).__name__},
            logger_name=self._logger_name,
        )
        return entry

    def cancel(self) -> None:
        """Drop the open burst without committing it."""

        if self._pending is not None:
            self._clear_timer(self._pending)
            self._pending = None

    def _on_timer(self, buf: DebounceBuffer) -> None:
        # A forced flush may already have consumed this burst.
        if self._pending is not buf:
            return
        buf.timer = None
        self.flush()

    def _clear_timer(self, buf: DebounceBuffer) -> None:
        if buf.timer is not None:
            self.scheduler.cancel(buf.timer)
            buf.timer = None


__all__ = ["DebounceBuffer", "PatchCoalescer"]
