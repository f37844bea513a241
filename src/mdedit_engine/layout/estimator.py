"""Pixel <-> character offset estimation over wrapped text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from mdedit_engine.runtime import telemetry

from .oracle import LayoutOracle, OracleAdapterPool, StyleSignature


@dataclass(frozen=True, slots=True)
class Viewport:
    """Visible band of the editing surface, in the oracle's units."""

    scroll_top: float = 0.0
    client_height: Optional[float] = None
    padding_top: float = 0.0
    affordance_height: float = 24.0
    band_margin: float = 4.0

    def band(self) -> Tuple[float, float]:
        low = self.band_margin
        if self.client_height is None:
            return (low, float("inf"))
        high = self.client_height - self.affordance_height - self.band_margin
        return (low, max(low, high))


@dataclass(frozen=True, slots=True)
class LayoutContext:
    signature: StyleSignature = field(default_factory=StyleSignature)
    width: float = 0.0
    viewport: Viewport = field(default_factory=Viewport)


class CaretEstimator:
    """Resolves y coordinates to offsets by binary-searching the layout oracle."""

    def __init__(
        self,
        oracle: LayoutOracle,
        *,
        pool_size: int = 10,
        logger_name: Optional[str] = None,
    ) -> None:
        self.pool = OracleAdapterPool(
            oracle, capacity=pool_size, logger_name=logger_name
        )
        self._logger_name = logger_name

    def offset_at_y(self, text: str, relative_y: float, layout: LayoutContext) -> int:
        """Largest offset whose line top is at or above ``relative_y``.

        ``relative_y`` is measured from the top of the visible text area; the
        current scroll offset is added before comparing.
        """

        if not text:
            return 0
        adapter = self.pool.acquire(layout.signature, layout.width)
        target = relative_y + layout.viewport.scroll_top
        lo, hi, best = 0, len(text), 0
        while lo <= hi:
            mid = (lo + hi) // 2
            top = adapter.measure_top(text, mid)
            if top is None:
                break
            if top <= target:
                best = mid
                lo = mid + 1
            else:
                hi = mid - 1
        return best

    def pixel_position_at_offset(
        self, text: str, index: int, layout: LayoutContext
    ) -> float:
        """Top of a floating affordance centred on the line holding ``index``."""

        viewport = layout.viewport
        low, high = viewport.band()
        adapter = self.pool.acquire(layout.signature, layout.width)
        top = adapter.measure_top(text, index)
        if top is None:
            return low
        line_height = layout.signature.resolved_line_height
        relative = (
            top - viewport.scroll_top + line_height / 2 - viewport.affordance_height / 2
        )
        return min(max(relative, low), high)

    def line_top_at_offset(
        self, text: str, index: int, layout: LayoutContext
    ) -> Optional[float]:
        """Visible top of the line holding ``index``, or ``None`` if unmeasurable."""

        adapter = self.pool.acquire(layout.signature, layout.width)
        top = adapter.measure_top(text, index)
        if top is None:
            telemetry.record_event(
                "layout.indicator_hidden",
                data={"index": index},
                logger_name=self._logger_name,
            )
            return None
        return top - layout.viewport.scroll_top + layout.viewport.padding_top


__all__ = ["CaretEstimator", "LayoutContext", "Viewport"]
