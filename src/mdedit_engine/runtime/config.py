"""Engine limits and timings, overridable from the environment."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Mapping, Optional

from .telemetry import ENV_PREFIX


class EngineConfigError(ValueError):
    """Raised when a configuration value would break history invariants."""

    def __init__(self, message: str, *, field_name: str | None = None) -> None:
        super().__init__(message)
        self.field_name = field_name


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Bounds for the history log, the debounce window, and the oracle pool."""

    max_history: int = 200
    max_patch_chain: int = 30
    max_patch_size_before_snapshot: int = 2048
    debounce_ms: int = 500
    oracle_pool_size: int = 10
    indent: str = "  "

    def __post_init__(self) -> None:
        if self.max_history < 2:
            raise EngineConfigError(
                "max_history must keep at least two entries",
                field_name="max_history",
            )
        for name in (
            "max_patch_chain",
            "max_patch_size_before_snapshot",
            "oracle_pool_size",
        ):
            if getattr(self, name) < 1:
                raise EngineConfigError(f"{name} must be positive", field_name=name)
        if self.debounce_ms < 0:
            raise EngineConfigError(
                "debounce_ms cannot be negative", field_name="debounce_ms"
            )
        if not self.indent:
            raise EngineConfigError("indent cannot be empty", field_name="indent")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from ``MDEDIT_ENGINE_*`` variables, e.g. ``MDEDIT_ENGINE_DEBOUNCE_MS``."""

        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for name, default in asdict(cls()).items():
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            if isinstance(default, int):
                try:
                    overrides[name] = int(raw)
                except ValueError as exc:
                    raise EngineConfigError(
                        f"{ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}",
                        field_name=name,
                    ) from exc
            else:
                overrides[name] = raw
        return cls(**overrides)  # type: ignore[arg-type]

    def with_overrides(self, **changes: object) -> "EngineConfig":
        return replace(self, **changes)  # type: ignore[arg-type]


__all__ = ["EngineConfig", "EngineConfigError"]
