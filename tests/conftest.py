from __future__ import annotations

from typing import Callable, Iterator

import pytest

from mdedit_engine.runtime import EngineConfig, TimerQueue, telemetry
from mdedit_engine.session import EditorSession


class FakeClock:
    """Virtual monotonic clock advanced explicitly by tests."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture(autouse=True, scope="session")
def quiet_telemetry() -> Iterator[None]:
    telemetry.configure(preset="quiet")
    yield


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timers(clock: FakeClock) -> TimerQueue:
    return TimerQueue(clock=clock)


@pytest.fixture
def make_session(timers: TimerQueue) -> Callable[..., EditorSession]:
    def factory(content: str = "", **config_overrides: object) -> EditorSession:
        config = EngineConfig().with_overrides(**config_overrides)
        return EditorSession(content, scheduler=timers, config=config)

    return factory
