"""Undo/redo history built from snapshots and patches."""

from .coalescer import DebounceBuffer, PatchCoalescer
from .diff import TextPatch, apply_patch, diff
from .entries import HistoryEntry, HistoryStep, Patch, Selection, Snapshot
from .store import HistoryStore

__all__ = [
    "DebounceBuffer",
    "HistoryEntry",
    "HistoryStep",
    "HistoryStore",
    "Patch",
    "PatchCoalescer",
    "Selection",
    "Snapshot",
    "TextPatch",
    "apply_patch",
    "diff",
]
