"""Relocation of a contiguous frame block to another position of the series.

Moving ``[range_start, range_end]`` to ``target`` is a block rotation over the
union of source and destination: the block lands at the destination and the
frames in between slide by the block length to fill the gap it left.
Nothing is written here; the returned getters are read-only views over the
captured series.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from keytrack.core.handles import KeyInfo


ValueGetter = Callable[[int], float]
KeyGetter = Callable[[int], KeyInfo]


@dataclass(frozen=True)
class MovedState:
    applied: bool
    dest_start: int
    dest_end: int
    affected_start: int
    affected_end: int
    value_getter: ValueGetter
    key_getter: KeyGetter

    def with_value_offset(self, offset: float) -> "MovedState":
        """Return a view whose values (and handle values) are shifted by *offset*."""

        if not offset:
            return self
        base_value = self.value_getter
        base_key = self.key_getter

        def key_getter(index: int) -> KeyInfo:
            info = base_key(index)
            if info.handle is None:
                return info
            return KeyInfo(info.is_key, info.handle.shifted(offset))

        return MovedState(
            applied=self.applied,
            dest_start=self.dest_start,
            dest_end=self.dest_end,
            affected_start=self.affected_start,
            affected_end=self.affected_end,
            value_getter=lambda index: base_value(index) + offset,
            key_getter=key_getter,
        )


def clamp_target(target: int, total: int) -> int:
    return max(0, min(max(0, total - 1), int(target)))


def is_pass_through(range_start: int, range_end: int, target: int) -> bool:
    """A drop inside the block or right after it leaves the block in place."""

    return range_start <= target <= range_end + 1


def remap_index(index: int, range_start: int, length: int, dest_start: int) -> int:
    """Source index read by *index* after moving the block to *dest_start*."""

    if dest_start == range_start:
        return index
    if dest_start > range_start:
        if range_start <= index < dest_start:
            return index + length
        if dest_start <= index < dest_start + length:
            return range_start + (index - dest_start)
    else:
        if dest_start <= index < dest_start + length:
            return range_start + (index - dest_start)
        if dest_start + length <= index < range_start + length:
            return index - length
    return index


def get_moved_state(
    values: Sequence[float],
    key_info: Sequence[KeyInfo],
    range_start: int,
    range_end: int,
    target: int,
    total: int | None = None,
) -> MovedState:
    if total is None:
        total = len(values)
    if range_end < range_start:
        range_start, range_end = range_end, range_start
    target = clamp_target(target, total)

    if is_pass_through(range_start, range_end, target):
        return MovedState(
            applied=False,
            dest_start=range_start,
            dest_end=range_end,
            affected_start=range_start,
            affected_end=range_end,
            value_getter=lambda index: values[index],
            key_getter=lambda index: key_info[index],
        )

    length = range_end - range_start + 1
    insert_index = target - length if target > range_start else target
    dest_start = insert_index
    dest_end = insert_index + length - 1

    def source(index: int) -> int:
        return remap_index(index, range_start, length, dest_start)

    return MovedState(
        applied=True,
        dest_start=dest_start,
        dest_end=dest_end,
        affected_start=min(range_start, dest_start),
        affected_end=max(range_end, dest_end),
        value_getter=lambda index: values[source(index)],
        key_getter=lambda index: key_info[source(index)],
    )
