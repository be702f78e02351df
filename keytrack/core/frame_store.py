"""Frame data access: the store protocol the engine consumes and an in-memory store."""

from __future__ import annotations

import bisect
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Protocol

from keytrack.core import curve
from keytrack.core.handles import (
    Handle,
    HandlePoint,
    HandleSide,
    HandleType,
    KeyInfo,
    UNKEYED,
    neighbour_keyframes,
)

if TYPE_CHECKING:
    from keytrack.core.events import EventBus


logger = logging.getLogger(__name__)

Limit = tuple[float, float]


class FrameStore(Protocol):
    """Per-field values, keyframe flags and handles, indexed by frame."""

    def get_frame_count(self) -> int: ...

    def has_field(self, field: str) -> bool: ...

    def get_value(self, field: str, index: int) -> float | None: ...

    def get_values(self, field: str) -> list[float]: ...

    def set_value(self, field: str, index: int, value: float) -> None: ...

    def is_keyframe(self, field: str, index: int) -> bool: ...

    def keyframe_indices(self, field: str) -> list[int]: ...

    def toggle_keyframe(self, field: str, index: int) -> bool: ...

    def add_keyframe(self, field: str, index: int) -> None: ...

    def remove_keyframe(self, field: str, index: int) -> None: ...

    def get_handle(self, field: str, index: int) -> Handle | None: ...

    def set_handle(self, field: str, index: int, handle: Handle) -> None: ...

    def set_handle_type(self, field: str, index: int, handle_type: HandleType) -> None: ...

    def update_handle_point(
        self,
        field: str,
        index: int,
        side: HandleSide,
        frame: float,
        value: float,
        handle_type: HandleType | None = None,
    ) -> None: ...

    def recompute_auto_tangents(self, field: str, frames: Iterable[int]) -> None: ...

    def apply_segment_between(self, field: str, start: int | None, end: int | None) -> None: ...

    def get_limit(self, field: str) -> Limit | None: ...


def read_key_info(store: FrameStore, field: str, index: int) -> KeyInfo:
    if not store.is_keyframe(field, index):
        return UNKEYED
    return KeyInfo(True, store.get_handle(field, index))


class InMemoryFrameStore:
    """Reference :class:`FrameStore` keeping every field as a Python list.

    ``add_keyframe``/``remove_keyframe``/``set_value`` only change the
    addressed frame. ``toggle_keyframe`` and the handle operations also
    re-evaluate the Hermite segments next to the keyframe.

    Automatic handles are not stored; they are computed from the series on
    read, so they always follow the current neighbours.
    """

    def __init__(
        self,
        fields: Mapping[str, Sequence[float]] | None = None,
        keyframes: Mapping[str, Iterable[int]] | None = None,
        limits: Mapping[str, Limit] | None = None,
        events: "EventBus | None" = None,
    ):
        self._values: dict[str, list[float]] = {}
        self._keys: dict[str, list[int]] = {}
        self._handles: dict[str, dict[int, Handle]] = {}
        self._limits: dict[str, Limit] = {}
        self.events = events
        self._suspended = 0

        for name, values in (fields or {}).items():
            self.add_field(name, values)
        for name, frames in (keyframes or {}).items():
            for frame in frames:
                self.add_keyframe(name, frame)
        for name, limit in (limits or {}).items():
            self.set_limit(name, *limit)

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------
    def add_field(self, name: str, values: Sequence[float]) -> None:
        self._values[name] = [float(value) for value in values]
        self._keys[name] = []
        self._handles[name] = {}

    def field_names(self) -> list[str]:
        return list(self._values)

    def has_field(self, field: str) -> bool:
        return field in self._values

    def get_frame_count(self) -> int:
        if not self._values:
            return 0
        return max(len(values) for values in self._values.values())

    def get_limit(self, field: str) -> Limit | None:
        return self._limits.get(field)

    def set_limit(self, field: str, lower: float, upper: float) -> None:
        if lower > upper:
            lower, upper = upper, lower
        self._limits[field] = (float(lower), float(upper))

    def clear_limit(self, field: str) -> None:
        self._limits.pop(field, None)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    @property
    def notifications_suspended(self) -> bool:
        return self._suspended > 0

    @contextmanager
    def suspend_notifications(self):
        self._suspended += 1
        try:
            yield
        finally:
            self._suspended -= 1

    def _notify(self, field: str, start: int, end: int) -> None:
        if self.events is None or self._suspended:
            return
        self.events.field_changed.emit(field, int(start), int(end))

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------
    def _in_range(self, field: str, index: int) -> bool:
        values = self._values.get(field)
        return values is not None and 0 <= index < len(values)

    def get_value(self, field: str, index: int) -> float | None:
        if not self._in_range(field, index):
            return None
        return self._values[field][index]

    def get_values(self, field: str) -> list[float]:
        return list(self._values.get(field, ()))

    def set_value(self, field: str, index: int, value: float) -> None:
        if not self._in_range(field, index):
            return
        try:
            value = float(value)
        except (TypeError, ValueError):
            return
        if not math.isfinite(value):
            return
        self._values[field][index] = value
        self._notify(field, index, index)

    # ------------------------------------------------------------------
    # Keyframes
    # ------------------------------------------------------------------
    def is_keyframe(self, field: str, index: int) -> bool:
        keys = self._keys.get(field)
        if keys is None:
            return False
        position = bisect.bisect_left(keys, index)
        return position < len(keys) and keys[position] == index

    def keyframe_indices(self, field: str) -> list[int]:
        return list(self._keys.get(field, ()))

    def add_keyframe(self, field: str, index: int) -> None:
        if not self._in_range(field, index) or self.is_keyframe(field, index):
            return
        bisect.insort(self._keys[field], int(index))
        self._notify(field, index, index)

    def remove_keyframe(self, field: str, index: int) -> None:
        if not self.is_keyframe(field, index):
            return
        self._keys[field].remove(index)
        self._handles[field].pop(index, None)
        self._notify(field, index, index)

    def toggle_keyframe(self, field: str, index: int) -> bool:
        """Flip the keyed state and re-evaluate the touching segments.

        Returns the new keyed state.
        """

        if not self._in_range(field, index):
            return False
        if self.is_keyframe(field, index):
            prev_frame, next_frame = neighbour_keyframes(self._keys[field], index)
            self.remove_keyframe(field, index)
            self.apply_segment_between(field, prev_frame, next_frame)
            return False
        self.add_keyframe(field, index)
        self.apply_segments_around(field, index)
        return True

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------
    def get_handle(self, field: str, index: int) -> Handle | None:
        if not self.is_keyframe(field, index):
            return None
        stored = self._handles[field].get(index)
        if stored is not None:
            return stored
        prev_frame, next_frame = neighbour_keyframes(self._keys[field], index)
        return curve.auto_handle(self._values[field], index, prev_frame, next_frame)

    def set_handle(self, field: str, index: int, handle: Handle) -> None:
        """Store *handle* verbatim; ``auto`` handles are dropped so they are
        recomputed on the next read.

        Points past the timeline edges are kept as given and clamped only when
        a segment is evaluated or drawn.
        """

        if not self.is_keyframe(field, index):
            return
        if handle.type is HandleType.AUTO:
            self._handles[field].pop(index, None)
            return
        current = self._values[field][index]
        self._handles[field][index] = Handle(
            in_=handle.in_ or HandlePoint(-curve.HANDLE_DEFAULT_SPAN, current),
            out=handle.out or HandlePoint(curve.HANDLE_DEFAULT_SPAN, current),
            type=handle.type,
        )

    def set_handle_type(self, field: str, index: int, handle_type: HandleType) -> None:
        if not self.is_keyframe(field, index):
            return
        handle_type = HandleType(handle_type)
        if handle_type is HandleType.AUTO:
            self._handles[field].pop(index, None)
        elif handle_type is HandleType.AUTO_CLAMPED:
            prev_frame, next_frame = neighbour_keyframes(self._keys[field], index)
            clamped = curve.auto_handle(
                self._values[field], index, prev_frame, next_frame, clamped=True
            )
            if clamped is None:
                return
            self._handles[field][index] = clamped
        else:
            current = self.get_handle(field, index)
            if current is None:
                return
            self.set_handle(field, index, current.with_type(handle_type))
        self.apply_segments_around(field, index)

    def update_handle_point(
        self,
        field: str,
        index: int,
        side: HandleSide,
        frame: float,
        value: float,
        handle_type: HandleType | None = None,
    ) -> None:
        """Move one control point to absolute ``(frame, value)``.

        Without an explicit *handle_type* automatic handles become ``free``.
        ``aligned`` mirrors the opposite point, ``vector`` aims both points at
        the neighbouring keyframes.
        """

        if not self.is_keyframe(field, index):
            return
        if not (math.isfinite(frame) and math.isfinite(value)):
            return
        side = HandleSide(side)
        handle = self.get_handle(field, index)
        if handle is None:
            return
        values = self._values[field]
        total = len(values)
        current = values[index]
        point = curve.clamp_handle_point(
            HandlePoint.from_absolute(index, frame, value), side, index, total
        )
        if handle_type is None:
            handle_type = HandleType.FREE if handle.type.is_automatic else handle.type
        handle_type = HandleType(handle_type)
        handle = handle.with_point(side, point)

        if handle_type is HandleType.ALIGNED:
            mirror = curve.mirror_point(point, current)
            handle = handle.with_point(
                side.opposite, curve.clamp_handle_point(mirror, side.opposite, index, total)
            )
        elif handle_type is HandleType.VECTOR:
            prev_frame, next_frame = neighbour_keyframes(self._keys[field], index)
            if side is HandleSide.OUT:
                target = next_frame if next_frame is not None else index + 1
            else:
                target = prev_frame if prev_frame is not None else index - 1
            if 0 <= target < total:
                dragged, opposite = curve.vector_points(side, index, current, target, values[target])
                handle = handle.with_point(
                    side, curve.clamp_handle_point(dragged, side, index, total)
                ).with_point(
                    side.opposite, curve.clamp_handle_point(opposite, side.opposite, index, total)
                )

        self._handles[field][index] = handle.with_type(handle_type)
        prev_frame, next_frame = neighbour_keyframes(self._keys[field], index)
        if handle_type in (HandleType.ALIGNED, HandleType.VECTOR):
            self.apply_segment_between(field, prev_frame, index)
            self.apply_segment_between(field, index, next_frame)
        elif side is HandleSide.IN:
            self.apply_segment_between(field, prev_frame, index)
        else:
            self.apply_segment_between(field, index, next_frame)

    def recompute_auto_tangents(self, field: str, frames: Iterable[int]) -> None:
        """Reset the handles of the keyed *frames* to ``auto`` and re-evaluate."""

        keyed = sorted({frame for frame in frames if self.is_keyframe(field, frame)})
        for frame in keyed:
            self._handles[field].pop(frame, None)
        for frame in keyed:
            self.apply_segments_around(field, frame)

    # ------------------------------------------------------------------
    # Interpolation
    # ------------------------------------------------------------------
    def apply_segments_around(self, field: str, index: int) -> None:
        prev_frame, next_frame = neighbour_keyframes(self._keys.get(field, []), index)
        self.apply_segment_between(field, prev_frame, index)
        self.apply_segment_between(field, index, next_frame)

    def apply_segment_between(self, field: str, start: int | None, end: int | None) -> None:
        """Rewrite the frames strictly between two keyframes from their handles."""

        if start is None or end is None:
            return
        values = self._values.get(field)
        if values is None or start < 0 or end >= len(values) or end - start <= 1:
            return
        start_value = values[start]
        end_value = values[end]
        if not (math.isfinite(start_value) and math.isfinite(end_value)):
            return
        span = end - start
        linear = (end_value - start_value) / span
        total = len(values)
        start_handle = self.get_handle(field, start)
        end_handle = self.get_handle(field, end)
        if start_handle is not None:
            start_handle = curve.clamp_handle(start_handle, start, total)
        if end_handle is not None:
            end_handle = curve.clamp_handle(end_handle, end, total)
        start_slope = linear
        if start_handle is not None and start_handle.out is not None:
            start_slope = curve.handle_slope(start_handle.out, HandleSide.OUT, start_value)
        end_slope = linear
        if end_handle is not None and end_handle.in_ is not None:
            end_slope = curve.handle_slope(end_handle.in_, HandleSide.IN, end_value)
        interior = curve.hermite_segment(start_value, end_value, start_slope, end_slope, span)
        values[start + 1:end] = interior.tolist()
        self._notify(field, start + 1, end - 1)
