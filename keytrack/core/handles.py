"""Keyframe handle data and neighbour lookups."""

from __future__ import annotations

import bisect
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum


class HandleType(str, Enum):
    AUTO = "auto"
    AUTO_CLAMPED = "auto_clamped"
    FREE = "free"
    ALIGNED = "aligned"
    VECTOR = "vector"

    def next(self) -> "HandleType":
        index = HANDLE_CYCLE.index(self)
        return HANDLE_CYCLE[(index + 1) % len(HANDLE_CYCLE)]

    @property
    def is_automatic(self) -> bool:
        return self in (HandleType.AUTO, HandleType.AUTO_CLAMPED)


HANDLE_CYCLE = (
    HandleType.AUTO,
    HandleType.AUTO_CLAMPED,
    HandleType.FREE,
    HandleType.ALIGNED,
    HandleType.VECTOR,
)


class HandleSide(str, Enum):
    IN = "in"
    OUT = "out"

    @property
    def opposite(self) -> "HandleSide":
        return HandleSide.OUT if self is HandleSide.IN else HandleSide.IN


@dataclass(frozen=True)
class HandlePoint:
    """Control point stored as ``dx`` frames from its keyframe and an absolute value."""

    dx: float
    value: float

    @classmethod
    def from_absolute(cls, keyframe: int, frame: float, value: float) -> "HandlePoint":
        return cls(float(frame) - keyframe, float(value))

    def frame_at(self, keyframe: int) -> float:
        return keyframe + self.dx

    def shifted(self, delta_value: float) -> "HandlePoint":
        return HandlePoint(self.dx, self.value + delta_value)


@dataclass(frozen=True)
class Handle:
    in_: HandlePoint | None = None
    out: HandlePoint | None = None
    type: HandleType = HandleType.AUTO

    def point(self, side: HandleSide) -> HandlePoint | None:
        return self.in_ if side is HandleSide.IN else self.out

    def with_point(self, side: HandleSide, point: HandlePoint | None) -> "Handle":
        if side is HandleSide.IN:
            return replace(self, in_=point)
        return replace(self, out=point)

    def with_type(self, handle_type: HandleType) -> "Handle":
        return replace(self, type=HandleType(handle_type))

    def shifted(self, delta_value: float) -> "Handle":
        """Return a copy with both control point values offset by *delta_value*."""

        if not delta_value:
            return self
        return replace(
            self,
            in_=self.in_.shifted(delta_value) if self.in_ is not None else None,
            out=self.out.shifted(delta_value) if self.out is not None else None,
        )


@dataclass(frozen=True)
class KeyInfo:
    """Key state of one frame; an unkeyed frame never carries a handle."""

    is_key: bool = False
    handle: Handle | None = None

    def __post_init__(self):
        if not self.is_key and self.handle is not None:
            object.__setattr__(self, "handle", None)


UNKEYED = KeyInfo()


# ----------------------------------------------------------------------
# Neighbour helpers
# ----------------------------------------------------------------------
def neighbour_keyframes(keyframes: Sequence[int], frame: int) -> tuple[int | None, int | None]:
    """Return the keyed frames immediately before and after *frame*.

    *keyframes* must be sorted. *frame* itself is never returned.
    """

    left = bisect.bisect_left(keyframes, frame)
    right = bisect.bisect_right(keyframes, frame)
    prev_frame = keyframes[left - 1] if left > 0 else None
    next_frame = keyframes[right] if right < len(keyframes) else None
    return prev_frame, next_frame


def handle_recompute_range(keyframes: Sequence[int], frame: int, total: int) -> tuple[int, int]:
    """Frame span whose interpolation depends on the handles of *frame*."""

    prev_frame, next_frame = neighbour_keyframes(keyframes, frame)
    start = (prev_frame if prev_frame is not None else frame) - 2
    end = (next_frame if next_frame is not None else frame) + 1
    last = max(0, int(total) - 1)
    return max(0, start), min(last, end)


def union_recompute_range(
    keyframes: Sequence[int], frames: Sequence[int], total: int
) -> tuple[int, int] | None:
    start: int | None = None
    end: int | None = None
    for frame in frames:
        lo, hi = handle_recompute_range(keyframes, frame, total)
        start = lo if start is None else min(start, lo)
        end = hi if end is None else max(end, hi)
    if start is None or end is None:
        return None
    return start, end
