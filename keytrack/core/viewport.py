"""Visible frame window of a track and the chart's screen mapping."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from PySide6.QtCore import QObject, Signal


logger = logging.getLogger(__name__)

MIN_DISPLAY_FRAMES = 30
MAX_DISPLAY_FRAMES = 2000

WHEEL_NOTCH = 120
WHEEL_ZOOM_STEP = 0.2
WHEEL_PAN_RATIO = 0.15
KEYBOARD_PAN_RATIO = 0.2
KEYBOARD_ZOOM_FACTOR = 1.2


def clamp_display_size(
    size: float,
    total: int,
    min_frames: int = MIN_DISPLAY_FRAMES,
    max_frames: int = MAX_DISPLAY_FRAMES,
) -> int:
    max_size = min(max_frames, max(0, int(total)))
    min_size = min(min_frames, max_size)
    normalized = round(size) if math.isfinite(size) else max_size
    return max(min_size, min(max_size, int(normalized)))


def clamp_window(
    start: float,
    size: float,
    total: int,
    min_frames: int = MIN_DISPLAY_FRAMES,
    max_frames: int = MAX_DISPLAY_FRAMES,
) -> tuple[int, int]:
    """Return ``(start, size)`` satisfying the window invariant for *total* frames."""

    clamped_size = clamp_display_size(size, total, min_frames, max_frames)
    max_start = max(0, int(total) - clamped_size)
    normalized_start = int(round(start)) if math.isfinite(start) else 0
    return min(max(0, normalized_start), max_start), clamped_size


@dataclass
class _EdgeDrag:
    left: bool
    end_index: int
    start_index: int


class WindowController(QObject):
    """Integer ``(start, size)`` window over ``total`` frames.

    Every mutator returns whether the window changed and emits
    ``window_changed`` only in that case.
    """

    window_changed = Signal(int, int)

    def __init__(
        self,
        total: int = 0,
        *,
        min_frames: int = MIN_DISPLAY_FRAMES,
        max_frames: int = MAX_DISPLAY_FRAMES,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.min_frames = int(min_frames)
        self.max_frames = int(max_frames)
        self._total = max(0, int(total))
        self._start = 0
        self._size = clamp_display_size(self._total, self._total, self.min_frames, self.max_frames)
        self._edge_drag: _EdgeDrag | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def start(self) -> int:
        return self._start

    @property
    def size(self) -> int:
        return self._size

    @property
    def end(self) -> int:
        """Last visible frame (inclusive)."""
        return self._start + self._size - 1

    @property
    def total(self) -> int:
        return self._total

    def contains(self, frame: int) -> bool:
        return self._start <= frame <= self.end

    def is_full_display(self) -> bool:
        return self._start == 0 and self._size == self._total

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------
    def set_window(self, start: float, size: float) -> bool:
        start, size = clamp_window(start, size, self._total, self.min_frames, self.max_frames)
        return self._apply(start, size)

    def set_total(self, total: int) -> bool:
        self._total = max(0, int(total))
        return self.set_window(self._start, self._size)

    def reset(self) -> bool:
        """Show the whole (clamped) timeline."""
        return self.set_window(0, self._total)

    to_default = reset

    def zoom(self, factor: float, anchor_frame: float) -> bool:
        if not math.isfinite(factor) or factor <= 0:
            return False
        current_size = self._size
        next_size = clamp_display_size(
            round(current_size * factor), self._total, self.min_frames, self.max_frames
        )
        anchor = self._clamp_anchor(anchor_frame)
        ratio = 0.0 if current_size == 0 else (anchor - self._start) / current_size
        next_start = round(anchor - ratio * next_size)
        max_start = max(0, self._total - next_size)
        next_start = min(max(0, next_start), max_start)
        return self._apply(next_start, next_size)

    def pan(self, delta_frames: float) -> bool:
        if not math.isfinite(delta_frames):
            return False
        max_start = max(0, self._total - self._size)
        next_start = min(max(0, self._start + int(round(delta_frames))), max_start)
        return self._apply(next_start, self._size)

    def wheel_zoom(self, delta: float, anchor_frame: float) -> bool:
        if not math.isfinite(delta) or delta == 0:
            return False
        magnitude = min(5.0, abs(delta) / (2 * WHEEL_NOTCH))
        base = 1 + magnitude * WHEEL_ZOOM_STEP
        factor = base if delta > 0 else 1 / base
        return self.zoom(factor, anchor_frame)

    def wheel_pan(self, delta: float) -> bool:
        if not math.isfinite(delta) or delta == 0:
            return False
        direction = 1 if delta > 0 else -1
        magnitude = min(4.0, abs(delta) / WHEEL_NOTCH)
        base_step = max(1, round(self._size * WHEEL_PAN_RATIO))
        return self.pan(max(1, round(base_step * magnitude)) * direction)

    def keyboard_pan(self, direction: int) -> bool:
        if not direction or not math.isfinite(direction):
            return False
        step = max(1, round(self._size * KEYBOARD_PAN_RATIO))
        return self.pan(step * (1 if direction > 0 else -1))

    def keyboard_zoom(self, direction: int, anchor_frame: float) -> bool:
        if not direction or not math.isfinite(direction):
            return False
        factor = KEYBOARD_ZOOM_FACTOR if direction > 0 else 1 / KEYBOARD_ZOOM_FACTOR
        return self.zoom(factor, anchor_frame)

    def focus_frames(self, first: int, last: int) -> bool:
        """Frame ``[first, last]`` with 10% padding (at least 2 frames)."""

        if self._total <= 0:
            return False
        first, last = sorted((int(first), int(last)))
        span = max(1, last - first + 1)
        padding = max(2, span // 10)
        start = max(0, first - padding)
        size = max(1, min(self._total, span + padding * 2))
        min_window = min(self.min_frames, self._total)
        if size < min_window:
            start = max(0, start - (min_window - size) // 2)
            size = min_window
        size = clamp_display_size(size, self._total, self.min_frames, self.max_frames)
        if last - start + 1 > size:
            start = max(0, last - size + 1)
        return self.set_window(start, size)

    # ------------------------------------------------------------------
    # Edge resize
    # ------------------------------------------------------------------
    def begin_edge_drag(self, left: bool) -> None:
        self._edge_drag = _EdgeDrag(left=bool(left), end_index=self.end, start_index=self._start)

    def drag_edge(self, delta_frames: int) -> bool:
        """Move the dragged edge by *delta_frames*; the other edge stays put."""

        drag = self._edge_drag
        if drag is None or not delta_frames:
            return False
        delta_frames = int(delta_frames)
        if drag.left:
            to_start = self._start + delta_frames
            to_size = drag.end_index - to_start + 1
            if to_start < 0 or to_size < self.min_frames:
                return False
            limited = clamp_display_size(to_size, self._total, self.min_frames, self.max_frames)
            next_start = max(max(0, drag.end_index - limited + 1), to_start)
            next_size = clamp_display_size(
                drag.end_index - next_start + 1, self._total, self.min_frames, self.max_frames
            )
            return self._apply(next_start, next_size)

        to_size = self._size + delta_frames
        if to_size < self.min_frames:
            return False
        available = max(0, self._total - drag.start_index)
        limited = clamp_display_size(
            to_size, available or self._total, self.min_frames, self.max_frames
        )
        next_size = min(limited, available)
        if next_size <= 0:
            return False
        return self._apply(drag.start_index, next_size)

    def drag_edge_pixels(self, delta_px: float, track_px: float) -> bool:
        if track_px <= 0 or not delta_px:
            return False
        return self.drag_edge(_pixel_step(delta_px / track_px * self._total))

    def end_edge_drag(self) -> None:
        self._edge_drag = None

    @property
    def edge_dragging(self) -> bool:
        return self._edge_drag is not None

    # ------------------------------------------------------------------
    # Scrollbar
    # ------------------------------------------------------------------
    def scroll_size_ratio(self) -> float:
        if self._total <= 0:
            return 1.0
        return self._size / self._total

    def scroll_ratio(self) -> float:
        movable = self._total - self._size
        if movable <= 0:
            return 0.0
        return self._start / movable

    def scroll_offset(self, track_px: float) -> float:
        """Left offset in pixels of the scrollbar thumb."""
        return track_px * (1 - self.scroll_size_ratio()) * self.scroll_ratio()

    def drag_scrollbar(self, delta_px: float, track_px: float) -> bool:
        if not delta_px:
            return False
        space = track_px * (1 - self.scroll_size_ratio())
        if space <= 0:
            return False
        movable = self._total - self._size
        return self.pan(_pixel_step(movable * delta_px / space))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _clamp_anchor(self, anchor_frame: float) -> int:
        last = max(0, self._total - 1)
        if not math.isfinite(anchor_frame):
            return self._start + self._size // 2
        return min(max(0, int(round(anchor_frame))), last)

    def _apply(self, start: int, size: int) -> bool:
        if start == self._start and size == self._size:
            return False
        self._start = int(start)
        self._size = int(size)
        self.window_changed.emit(self._start, self._size)
        return True


def _pixel_step(frames: float) -> int:
    """Truncate toward zero but move at least one frame."""

    if frames > 0:
        return max(1, int(frames))
    return min(-1, int(frames))


@dataclass
class ChartGeometry:
    """Pixel <-> frame/value mapping for a chart drawing ``size`` samples
    edge to edge between its paddings."""

    width: float
    height: float
    padding_left: float = 0.0
    padding_right: float = 0.0
    padding_top: float = 0.0
    padding_bottom: float = 0.0
    y_flipped: bool = False

    @property
    def plot_width(self) -> float:
        return max(1.0, self.width - self.padding_left - self.padding_right)

    @property
    def plot_height(self) -> float:
        return max(1.0, self.height - self.padding_top - self.padding_bottom)

    def frames_per_pixel(self, window_size: int) -> float:
        return max(1, window_size - 1) / self.plot_width

    def pixel_to_frame(self, x: float, window_start: int, window_size: int) -> float:
        return window_start + (x - self.padding_left) * self.frames_per_pixel(window_size)

    def frame_to_pixel(self, frame: float, window_start: int, window_size: int) -> float:
        return self.padding_left + (frame - window_start) / self.frames_per_pixel(window_size)

    def pixel_to_value(self, y: float, y_range: tuple[float, float]) -> float:
        low, high = y_range
        ratio = (y - self.padding_top) / self.plot_height
        if self.y_flipped:
            return low + ratio * (high - low)
        return high - ratio * (high - low)

    def value_to_pixel(self, value: float, y_range: tuple[float, float]) -> float:
        low, high = y_range
        span = high - low
        if span == 0:
            return self.padding_top + self.plot_height / 2
        ratio = (value - low) / span
        if self.y_flipped:
            return self.padding_top + ratio * self.plot_height
        return self.padding_top + (1 - ratio) * self.plot_height

    def value_per_pixel(self, y_range: tuple[float, float]) -> float:
        low, high = y_range
        return (high - low) / self.plot_height
