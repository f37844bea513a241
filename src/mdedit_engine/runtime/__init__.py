"""Runtime services: telemetry, configuration, and timers."""

from .config import EngineConfig, EngineConfigError
from .scheduler import AsyncioScheduler, Scheduler, TimerQueue

__all__ = [
    "AsyncioScheduler",
    "EngineConfig",
    "EngineConfigError",
    "Scheduler",
    "TimerQueue",
]
