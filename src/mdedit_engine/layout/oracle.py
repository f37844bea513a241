"""Layout oracle contract and the pooled probe adapters built on it."""

from __future__ import annotations

import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

from mdedit_engine.runtime import telemetry


@dataclass(frozen=True, slots=True)
class StyleSignature:
    """Typography that affects wrapping; two equal signatures measure alike."""

    font_family: str = "monospace"
    font_size: float = 16.0
    font_weight: str = "400"
    line_height: Optional[float] = None
    letter_spacing: float = 0.0

    @property
    def resolved_line_height(self) -> float:
        if self.line_height and self.line_height > 0:
            return self.line_height
        return (self.font_size or 16.0) * 1.4

    @property
    def token(self) -> str:
        return ":".join(
            str(part)
            for part in (
                self.font_family,
                self.font_size,
                self.font_weight,
                self.line_height,
                self.letter_spacing,
            )
        )


class LayoutOracle(Protocol):
    """Answers "where does the line holding the end of ``prefix_text`` start?"."""

    def measure_top(
        self, prefix_text: str, signature: StyleSignature, width: float
    ) -> float:
        ...


class OracleAdapter:
    """Reusable probe surface bound to one signature and width.

    ``measure_top`` returns ``None`` instead of raising when the oracle fails
    or reports a non-finite value.
    """

    def __init__(
        self,
        oracle: LayoutOracle,
        signature: StyleSignature,
        width: float,
        *,
        logger_name: Optional[str] = None,
    ) -> None:
        self.oracle = oracle
        self.signature = signature
        self.width = width
        self.probes = 0
        self._logger_name = logger_name

    @property
    def key(self) -> Tuple[StyleSignature, float]:
        return (self.signature, self.width)

    def measure_top(self, text: str, index: int) -> Optional[float]:
        index = min(max(index, 0), len(text))
        self.probes += 1
        try:
            top = float(self.oracle.measure_top(text[:index], self.signature, self.width))
        except Exception as exc:
            self._report_failure(index, str(exc))
            return None
        if not math.isfinite(top):
            self._report_failure(index, f"non-finite top {top!r}")
            return None
        return top

    def _report_failure(self, index: int, reason: str) -> None:
        telemetry.record_event(
            "layout.probe_failed",
            level="warning",
            data={"index": index, "reason": reason, "signature": self.signature.token},
            logger_name=self._logger_name,
        )


class OracleAdapterPool:
    """Least-recently-used pool of adapters keyed by ``(signature, width)``."""

    def __init__(
        self,
        oracle: LayoutOracle,
        *,
        capacity: int = 10,
        logger_name: Optional[str] = None,
    ) -> None:
        self.oracle = oracle
        self.capacity = max(1, capacity)
        self._logger_name = logger_name
        self._adapters: "OrderedDict[Tuple[StyleSignature, float], OracleAdapter]" = (
            OrderedDict()
        )
        self._current: Optional[OracleAdapter] = None

    def acquire(self, signature: StyleSignature, width: float) -> OracleAdapter:
        current = self._current
        if current is not None and current.key == (signature, width):
            return current

        key = (signature, width)
        adapter = self._adapters.get(key)
        if adapter is None:
            adapter = OracleAdapter(
                self.oracle, signature, width, logger_name=self._logger_name
            )
            self._adapters[key] = adapter
            while len(self._adapters) > self.capacity:
                evicted_key, _ = self._adapters.popitem(last=False)
                telemetry.record_event(
                    "layout.pool_evict",
                    data={"signature": evicted_key[0].token, "width": evicted_key[1]},
                    logger_name=self._logger_name,
                )
        else:
            self._adapters.move_to_end(key)

        self._current = adapter
        return adapter

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, key: object) -> bool:
        return key in self._adapters

    def clear(self) -> None:
        self._adapters.clear()
        self._current = None


__all__ = ["LayoutOracle", "OracleAdapter", "OracleAdapterPool", "StyleSignature"]
