"""Per-frame before/after records handed to the undo store."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from keytrack.core.frame_store import FrameStore, read_key_info
from keytrack.core.handles import Handle, KeyInfo


@dataclass(frozen=True)
class UndoEntry:
    index: int
    value: float
    is_key: bool
    handle: Handle | None = None

    @property
    def key_info(self) -> KeyInfo:
        return KeyInfo(self.is_key, self.handle)

    def with_value(self, value: float) -> "UndoEntry":
        """Same frame with *value*; handle values follow the change."""

        handle = self.handle
        if handle is not None and math.isfinite(self.value) and math.isfinite(value):
            handle = handle.shifted(value - self.value)
        return UndoEntry(self.index, float(value), self.is_key, handle)


def capture_entries(
    value_getter: Callable[[int], float | None],
    key_getter: Callable[[int], KeyInfo | None],
    start: int,
    end: int,
) -> list[UndoEntry]:
    entries = []
    for index in range(start, end + 1):
        info = key_getter(index)
        value = value_getter(index)
        is_key = bool(info is not None and info.is_key)
        entries.append(
            UndoEntry(
                index=index,
                value=float(value) if value is not None else float("nan"),
                is_key=is_key,
                handle=info.handle if is_key else None,
            )
        )
    return entries


def capture_store_entries(store: FrameStore, field: str, start: int, end: int) -> list[UndoEntry]:
    return capture_entries(
        lambda index: store.get_value(field, index),
        lambda index: read_key_info(store, field, index),
        start,
        end,
    )


def entry_changed(before: UndoEntry, after: UndoEntry) -> bool:
    """True when value, key flag or handle differ.

    A frame that stays unkeyed never has a handle difference; a frame losing
    its key counts as a handle change only if it had a handle.
    """

    if not _same_value(before.value, after.value):
        return True
    if before.is_key != after.is_key:
        return True
    if after.is_key:
        return before.handle != after.handle
    return before.is_key and before.handle is not None


def _same_value(a: float, b: float) -> bool:
    return a == b or (math.isnan(a) and math.isnan(b))


def filter_changed(
    before: Sequence[UndoEntry], after: Sequence[UndoEntry]
) -> tuple[list[UndoEntry], list[UndoEntry]]:
    """Keep only the index pairs whose state actually changed."""

    kept_before: list[UndoEntry] = []
    kept_after: list[UndoEntry] = []
    for old, new in zip(before, after):
        if entry_changed(old, new):
            kept_before.append(old)
            kept_after.append(new)
    return kept_before, kept_after


def entries_span(entries: Iterable[UndoEntry]) -> tuple[int, int] | None:
    indices = [entry.index for entry in entries]
    if not indices:
        return None
    return min(indices), max(indices)
