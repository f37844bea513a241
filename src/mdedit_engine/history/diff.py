"""Common-prefix / common-suffix text diff."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class TextPatch:
    """``new == old[:start] + text + old[end:]``."""

    start: int
    end: int
    text: str

    @property
    def is_empty(self) -> bool:
        return self.start == self.end and not self.text


def diff(old: str, new: str) -> TextPatch:
    """Return the single replaced span turning ``old`` into ``new``.

    Linear scan from both ends. Moved blocks produce one wide replacement
    rather than the shortest edit script.
    """

    limit = min(len(old), len(new))
    start = 0
    while start < limit and old[start] == new[start]:
        start += 1

    end_old = len(old)
    end_new = len(new)
    while end_old > start and end_new > start and old[end_old - 1] == new[end_new - 1]:
        end_old -= 1
        end_new -= 1

    return TextPatch(start=start, end=end_old, text=new[start:end_new])


class SpanEdit(Protocol):
    start: int
    end: int
    text: str


def apply_patch(value: str, patch: SpanEdit) -> str:
    """Splice ``patch.text`` into ``value``; offsets are clamped into range."""

    length = len(value)
    start = min(max(patch.start, 0), length)
    end = min(max(patch.end, start), length)
    return value[:start] + patch.text + value[end:]


__all__ = ["SpanEdit", "TextPatch", "apply_patch", "diff"]
