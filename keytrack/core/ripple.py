"""Ripple propagation of a single-frame edit across its neighbours.

The edited frame moves by the full delta. Frames before and after it follow
with a weight given by independent spread policies: ``FULL`` carries the
delta unattenuated to the slice boundary, ``DECAY(n)`` ramps it linearly to
zero over ``n`` frames and ``NONE`` leaves the neighbours untouched.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np


class SpreadMode(str, Enum):
    FULL = "full"
    DECAY = "decay"
    NONE = "none"


@dataclass(frozen=True)
class SpreadPolicy:
    mode: SpreadMode = SpreadMode.NONE
    radius: int = 0

    @classmethod
    def full(cls) -> "SpreadPolicy":
        return cls(SpreadMode.FULL, -1)

    @classmethod
    def none(cls) -> "SpreadPolicy":
        return cls(SpreadMode.NONE, 0)

    @classmethod
    def decay(cls, radius: int) -> "SpreadPolicy":
        radius = int(radius)
        if radius <= 0:
            return cls.none()
        return cls(SpreadMode.DECAY, radius)

    @classmethod
    def from_radius(cls, radius: int) -> "SpreadPolicy":
        """``-1`` is full spread, ``0`` none, anything positive decays."""
        if radius < 0:
            return cls.full()
        return cls.decay(radius)

    @classmethod
    def from_settings(cls, mode: SpreadMode, radius: int) -> "SpreadPolicy":
        mode = SpreadMode(mode)
        if mode is SpreadMode.FULL:
            return cls.full()
        if mode is SpreadMode.NONE:
            return cls.none()
        return cls.decay(radius)

    @property
    def spread_radius(self) -> int:
        if self.mode is SpreadMode.FULL:
            return -1
        if self.mode is SpreadMode.NONE:
            return 0
        return self.radius

    def weights(self, distances: np.ndarray) -> np.ndarray:
        """Weight for each (positive) distance from the anchor."""

        if self.mode is SpreadMode.FULL:
            return np.ones_like(distances, dtype=float)
        if self.mode is SpreadMode.NONE or self.radius <= 0:
            return np.zeros_like(distances, dtype=float)
        return np.clip(1.0 - distances / float(self.radius), 0.0, 1.0)


def ripple_adjust(
    values: Sequence[float],
    anchor: int,
    delta: float,
    before: SpreadPolicy,
    after: SpreadPolicy,
) -> list[float]:
    """Return ``values`` with ``delta`` spread around ``anchor``.

    Non-finite samples pass through unchanged. An anchor outside the slice or
    a non-finite delta returns an unchanged copy.
    """

    data = np.asarray(values, dtype=float)
    if data.size == 0 or not 0 <= anchor < data.size or not math.isfinite(delta) or delta == 0:
        return data.tolist()

    weights = np.zeros(data.size, dtype=float)
    weights[anchor] = 1.0
    if anchor > 0:
        distances = anchor - np.arange(0, anchor, dtype=float)
        weights[:anchor] = before.weights(distances)
    if anchor < data.size - 1:
        distances = np.arange(anchor + 1, data.size, dtype=float) - anchor
        weights[anchor + 1:] = after.weights(distances)

    adjusted = data + delta * weights
    return np.where(np.isfinite(data), adjusted, data).tolist()


def clamp_to_limit(values: Sequence[float], limit: tuple[float, float] | None) -> list[float]:
    """Clamp finite values into ``limit``; ``None`` disables clamping."""

    data = np.asarray(values, dtype=float)
    if limit is None:
        return data.tolist()
    lower, upper = limit
    clamped = np.clip(data, lower, upper)
    return np.where(np.isfinite(data), clamped, data).tolist()


def clamp_value(value: float, limit: tuple[float, float] | None) -> float:
    if limit is None or not math.isfinite(value):
        return value
    lower, upper = limit
    return min(max(value, lower), upper)


def ripple_slice_bounds(
    anchor_frame: int, total: int, before: SpreadPolicy, after: SpreadPolicy
) -> tuple[int, int]:
    """Inclusive ``[start, end]`` of the series a ripple edit can touch."""

    before_count = before.spread_radius
    after_count = after.spread_radius
    start = anchor_frame - (anchor_frame if before_count == -1 else before_count)
    end = anchor_frame + (total - 1 - anchor_frame if after_count == -1 else after_count)
    return max(0, start), min(total - 1, end)
