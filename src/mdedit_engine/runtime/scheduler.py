"""Cancellable one-shot timers injected into the patch coalescer."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Optional, Protocol

from . import telemetry


class Scheduler(Protocol):
    """Minimal timer capability: ``after`` returns a token accepted by ``cancel``."""

    def after(self, delay_ms: int, callback: Callable[[], None]) -> Hashable:
        ...

    def cancel(self, token: Hashable) -> None:
        ...


@dataclass
class PendingTimer:
    deadline: float
    delay_ms: int
    generation: int
    callback: Callable[[], None]


class TimerQueue:
    """Polled timer queue.

    Hosts tick ``run_due()`` from their own loop (a Textual interval, a test
    advancing a fake clock). Every ``after`` call gets a fresh generation so a
    cancelled or re-armed timer can never fire twice.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._pending: Dict[int, PendingTimer] = {}
        self._counter = 0

    def after(self, delay_ms: int, callback: Callable[[], None]) -> int:
        self._counter += 1
        self._pending[self._counter] = PendingTimer(
            deadline=self._clock() + (delay_ms / 1000.0),
            delay_ms=delay_ms,
            generation=self._counter,
            callback=callback,
        )
        return self._counter

    def cancel(self, token: Hashable) -> None:
        self._pending.pop(token, None)  # type: ignore[call-overload]

    def run_due(self) -> int:
        """Fire expired timers in deadline order and return how many ran."""

        now = self._clock()
        due = sorted(
            (timer for timer in self._pending.values() if timer.deadline <= now),
            key=lambda timer: (timer.deadline, timer.generation),
        )
        fired = 0
        for timer in due:
            # An earlier callback may have cancelled this one.
            if self._pending.pop(timer.generation, None) is None:
                continue
            timer.callback()
            fired += 1
        return fired

    @property
    def pending_count(self) -> int:
        return len(self._pending)


class AsyncioScheduler:
    """Scheduler backed by ``loop.call_later`` for hosts already on asyncio."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def after(self, delay_ms: int, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._resolve_loop().call_later(
            delay_ms / 1000.0, self._guarded, callback
        )

    def cancel(self, token: Hashable) -> None:
        if isinstance(token, asyncio.TimerHandle):
            token.cancel()

    @staticmethod
    def _guarded(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as exc:
            # The loop would only print this; keep it in the engine log instead.
            telemetry.record_event(
                "scheduler.callback_failed", level="error", data={"reason": str(exc)}
            )
            raise


__all__ = ["AsyncioScheduler", "PendingTimer", "Scheduler", "TimerQueue"]
