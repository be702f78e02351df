"""Value-space window of the track chart."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, replace

from PySide6.QtCore import QObject, Signal


MIN_HALF_RANGE = 1e-4
FIT_PADDING = 0.1
WHEEL_PAN_RATIO = 0.2
WHEEL_ZOOM_IN = 0.85
WHEEL_ZOOM_OUT = 1.15


def finite_values(values: Iterable[float | None]) -> list[float]:
    result = []
    for value in values:
        if value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            result.append(number)
    return result


@dataclass(frozen=True)
class YAxisRange:
    center: float = 0.0
    half_range: float = 1.0
    initialized: bool = False
    user_override: bool = False

    @property
    def minimum(self) -> float:
        return self.center - self.half_range

    @property
    def maximum(self) -> float:
        return self.center + self.half_range


class YAxisController(QObject):
    """``(center, half_range)`` window with auto-fit until the user takes over."""

    range_changed = Signal(float, float)

    def __init__(self, min_half_range: float = MIN_HALF_RANGE, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.min_half_range = float(min_half_range)
        self._state = YAxisRange()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def state(self) -> YAxisRange:
        return self._state

    @property
    def center(self) -> float:
        return self._state.center

    @property
    def half_range(self) -> float:
        return self._state.half_range

    @property
    def initialized(self) -> bool:
        return self._state.initialized

    @property
    def user_override(self) -> bool:
        return self._state.user_override

    def restore(self, state: YAxisRange) -> None:
        self._set(state)

    def reset(self) -> None:
        self._set(YAxisRange())

    def needs_fit(self) -> bool:
        return not self._state.initialized or not self._state.user_override

    def get_range(self) -> tuple[float, float]:
        return self._state.minimum, self._state.maximum

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def fit(self, values: Iterable[float | None]) -> None:
        numeric = finite_values(values)
        if not numeric:
            center, half = 0.0, 1.0
        else:
            low, high = min(numeric), max(numeric)
            if low == high:
                center = low
                half = max(self.min_half_range, abs(low) * FIT_PADDING or 1.0)
            else:
                span = high - low
                center = (high + low) / 2
                half = max(self.min_half_range, span / 2 + span * FIT_PADDING / 2)
        self._set(YAxisRange(center, half, initialized=True, user_override=False))

    def ensure_initialized(self, values: Iterable[float | None]) -> None:
        if not self._state.initialized:
            self.fit(values)

    def zoom(self, multiplier: float, anchor_value: float | None = None) -> bool:
        if not math.isfinite(multiplier) or multiplier <= 0:
            return False
        current_half = self._state.half_range or self.min_half_range
        next_half = max(self.min_half_range, current_half * multiplier)
        anchor = self._state.center
        if anchor_value is not None and math.isfinite(anchor_value):
            anchor = anchor_value
        normalized = (anchor - self._state.center) / current_half
        self._set(
            YAxisRange(anchor - normalized * next_half, next_half, initialized=True, user_override=True)
        )
        return True

    def pan(self, delta: float) -> bool:
        if not math.isfinite(delta) or delta == 0:
            return False
        self._set(
            replace(self._state, center=self._state.center + delta, initialized=True, user_override=True)
        )
        return True

    def wheel_pan(self, delta: float) -> bool:
        ratio = delta / 120 if math.isfinite(delta) else 0.0
        if ratio == 0:
            return False
        span = max(self._state.half_range or self.min_half_range, self.min_half_range)
        return self.pan(ratio * span * WHEEL_PAN_RATIO)

    def wheel_zoom(self, delta: float, anchor_value: float | None = None) -> bool:
        if not math.isfinite(delta) or delta == 0:
            return False
        return self.zoom(WHEEL_ZOOM_OUT if delta > 0 else WHEEL_ZOOM_IN, anchor_value)

    def pan_pixels(self, dy: float, chart_height: float, *, y_flipped: bool = False) -> bool:
        """Pan by a vertical drag of *dy* pixels, content following the cursor."""

        if chart_height <= 0 or not dy:
            return False
        value_per_pixel = 2 * self._state.half_range / chart_height
        delta = dy * value_per_pixel
        return self.pan(-delta if y_flipped else delta)

    def _set(self, state: YAxisRange) -> None:
        if state == self._state:
            return
        self._state = state
        self.range_changed.emit(state.minimum, state.maximum)
