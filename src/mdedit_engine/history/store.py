"""Snapshot + patch undo log with a cursor."""

from __future__ import annotations

from typing import List, Optional, Sequence

from mdedit_engine.runtime import telemetry
from mdedit_engine.runtime.config import EngineConfig

from .diff import apply_patch, diff
from .entries import HistoryEntry, HistoryStep, Patch, Selection, Snapshot


class HistoryStore:
    """Linear undo/redo log that stores partial diffs instead of full copies.

    Entry 0 is always a :class:`Snapshot`. Any other value is rebuilt by
    replaying patches from the nearest snapshot at or before the requested
    index. The log is capped at ``max_history`` entries and a fresh snapshot
    is forced whenever the patch chain or a single replacement gets too long,
    which bounds replay cost.
    """

    def __init__(
        self,
        initial: str = "",
        *,
        selection: Optional[Selection] = None,
        config: Optional[EngineConfig] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._logger_name = logger_name
        self._entries: List[HistoryEntry] = []
        self._index: int = -1
        start = (selection or Selection()).clamp(len(initial))
        self.push_snapshot(initial, start)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> Sequence[HistoryEntry]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def push_snapshot(
        self,
        value: str,
        selection_before: Selection,
        selection_after: Optional[Selection] = None,
    ) -> Snapshot:
        entry = Snapshot(
            value=value,
            selection_before=selection_before,
            selection_after=selection_after,
        )
        self._append(entry)
        return entry

    def push_patch(self, patch: Patch) -> Patch:
        self._append(patch)
        return patch

    def record(
        self,
        old: str,
        new: str,
        selection_before: Selection,
        selection_after: Selection,
    ) -> Optional[HistoryEntry]:
        """Diff ``old`` against ``new`` and push a patch or a snapshot.

        Returns ``None`` when the two values are equal.
        """

        change = diff(old, new)
        if change.is_empty:
            return None

        reason = self._snapshot_reason(old, len(change.text))
        if reason is not None:
            telemetry.record_event(
                "history.snapshot_forced",
                data={"reason": reason, "length": len(new)},
                logger_name=self._logger_name,
            )
            return self.push_snapshot(new, selection_before, selection_after)

        return self.push_patch(
            Patch(
                start=change.start,
                end=change.end,
                text=change.text,
                selection_before=selection_before,
                selection_after=selection_after,
            )
        )

    def chain_length(self, index: Optional[int] = None) -> int:
        """Number of consecutive patches ending at ``index`` (default: cursor)."""

        position = self._clamp_index(self._index if index is None else index)
        count = 0
        while position > 0 and isinstance(self._entries[position], Patch):
            count += 1
            position -= 1
        return count

    def reconstruct(self, index: int) -> str:
        """Rebuild the buffer value represented by entry ``index``."""

        if not self._entries:
            return ""
        index = self._clamp_index(index)
        base = index
        while base > 0 and not isinstance(self._entries[base], Snapshot):
            base -= 1
        anchor = self._entries[base]
        value = anchor.value if isinstance(anchor, Snapshot) else ""
        for entry in self._entries[base + 1 : index + 1]:
            if isinstance(entry, Patch):
                value = apply_patch(value, entry)
        return value

    def current_value(self) -> str:
        return self.reconstruct(self._index)

    def undo(self) -> Optional[HistoryStep]:
        """Step back one entry; the selection is the one recorded before the undone edit."""

        if not self.can_undo():
            return None
        departed = self._entries[self._index]
        self._index -= 1
        value = self.reconstruct(self._index)
        return HistoryStep(
            value=value,
            selection=departed.selection_before.clamp(len(value)),
            entry=self._entries[self._index],
            index=self._index,
        )

    def redo(self) -> Optional[HistoryStep]:
        """Step forward one entry; the selection is the entry's arrival selection."""

        if not self.can_redo():
            return None
        self._index += 1
        entry = self._entries[self._index]
        value = self.reconstruct(self._index)
        return HistoryStep(
            value=value,
            selection=entry.arrival_selection.clamp(len(value)),
            entry=entry,
            index=self._index,
        )

    def _snapshot_reason(self, old: str, replaced: int) -> Optional[str]:
        if replaced >= self.config.max_patch_size_before_snapshot:
            return "patch_size"
        if self.chain_length() >= self.config.max_patch_chain:
            return "patch_chain"
        if old != self.current_value():
            # The caller's base drifted from the log; a patch would not replay.
            return "base_mismatch"
        return None

    def _append(self, entry: HistoryEntry) -> None:
        if self._index < len(self._entries) - 1:
            del self._entries[self._index + 1 :]
        self._entries.append(entry)
        self._enforce_max()
        self._index = len(self._entries) - 1

    def _enforce_max(self) -> None:
        limit = self.config.max_history
        if len(self._entries) <= limit:
            return
        cut = len(self._entries) - limit
        value = self.reconstruct(cut)
        selection = self._entries[cut].arrival_selection.clamp(len(value))
        base = Snapshot(value=value, selection_before=selection, selection_after=selection)
        self._entries = [base, *self._entries[cut + 1 :]]
        telemetry.record_event(
            "history.rebase",
            data={"dropped": cut, "kept": len(self._entries)},
            logger_name=self._logger_name,
        )

    def _clamp_index(self, index: int) -> int:
        return min(max(index, 0), len(self._entries) - 1)


__all__ = ["HistoryStore"]
