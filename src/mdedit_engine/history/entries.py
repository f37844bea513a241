"""Selection and history entry types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class Selection:
    """Character offsets into the buffer, ``start <= end``."""

    start: int = 0
    end: int = 0

    @classmethod
    def caret(cls, offset: int) -> "Selection":
        return cls(offset, offset)

    @property
    def collapsed(self) -> bool:
        return self.start == self.end

    def clamp(self, length: int) -> "Selection":
        start = min(max(self.start, 0), length)
        end = min(max(self.end, 0), length)
        if start > end:
            start, end = end, start
        return Selection(start, end)

    def as_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Complete buffer value.

    ``selection_after`` is the selection on arrival at this state; initial and
    re-base snapshots carry the same selection on both sides.
    """

    value: str
    selection_before: Selection
    selection_after: Optional[Selection] = None

    @property
    def arrival_selection(self) -> Selection:
        return self.selection_after or self.selection_before


@dataclass(frozen=True, slots=True)
class Patch:
    """Replace ``value[start:end]`` of the previous state with ``text``."""

    start: int
    end: int
    text: str
    selection_before: Selection
    selection_after: Selection

    @property
    def arrival_selection(self) -> Selection:
        return self.selection_after


HistoryEntry = Union[Snapshot, Patch]


@dataclass(frozen=True, slots=True)
class HistoryStep:
    """Value and selection the host should show after an undo or redo."""

    value: str
    selection: Selection
    entry: HistoryEntry
    index: int


__all__ = ["HistoryEntry", "HistoryStep", "Patch", "Selection", "Snapshot"]
