"""Curve evaluation used by the in-memory frame store.

Segments between two keyframes are cubic Hermite splines whose end slopes
come from the keyframes' handles. Automatic handles follow the local slope of
the series, ``auto_clamped`` additionally keeps control values between the
neighbouring keyframes so the curve never overshoots.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from keytrack.core.handles import Handle, HandlePoint, HandleSide, HandleType


HANDLE_MIN_DELTA = 1e-3
HANDLE_DEFAULT_SPAN = 1.0 / 3.0
DEFAULT_SMOOTH_FACTOR = 0.4


def clamp_handle_point(point: HandlePoint, side: HandleSide, frame: int, total: int) -> HandlePoint:
    """Keep an ``in`` point left of its keyframe, an ``out`` point right of it,
    and both inside the timeline."""

    absolute = frame + point.dx
    last = max(0, total - 1)
    absolute = min(max(absolute, 0.0), float(last))
    if side is HandleSide.IN and absolute > frame - HANDLE_MIN_DELTA:
        absolute = frame - HANDLE_MIN_DELTA
    if side is HandleSide.OUT and absolute < frame + HANDLE_MIN_DELTA:
        absolute = frame + HANDLE_MIN_DELTA
    return HandlePoint(absolute - frame, point.value)


def clamp_handle(handle: Handle, frame: int, total: int) -> Handle:
    """Both control points of *handle* clamped for evaluation and display."""

    return Handle(
        in_=None if handle.in_ is None else clamp_handle_point(handle.in_, HandleSide.IN, frame, total),
        out=None if handle.out is None else clamp_handle_point(handle.out, HandleSide.OUT, frame, total),
        type=handle.type,
    )


def estimate_slope(values: Sequence[float], frame: int) -> float | None:
    count = len(values)
    if count == 0:
        return None
    prev_index = max(0, frame - 1)
    next_index = min(count - 1, frame + 1)
    if prev_index == next_index:
        return None
    prev_value = values[prev_index]
    next_value = values[next_index]
    if not (math.isfinite(prev_value) and math.isfinite(next_value)):
        return None
    return (next_value - prev_value) / (next_index - prev_index)


def auto_handle(
    values: Sequence[float],
    frame: int,
    prev_frame: int | None,
    next_frame: int | None,
    *,
    clamped: bool = False,
) -> Handle | None:
    """Compute the automatic handle of the keyframe at *frame*."""

    total = len(values)
    if not 0 <= frame < total:
        return None
    current = values[frame]
    if not math.isfinite(current):
        return None

    slope = estimate_slope(values, frame)
    if slope is None:
        slope = 0.0
        if prev_frame is not None and next_frame is not None:
            slope = (values[next_frame] - values[prev_frame]) / ((next_frame - prev_frame) or 1)
        elif prev_frame is not None:
            slope = (current - values[prev_frame]) / ((frame - prev_frame) or 1)
        elif next_frame is not None:
            slope = (values[next_frame] - current) / ((next_frame - frame) or 1)

    if next_frame is not None:
        span = max(HANDLE_MIN_DELTA, (next_frame - frame) / 3 or HANDLE_DEFAULT_SPAN)
        out_point = HandlePoint(span, current + slope * span)
    else:
        out_point = HandlePoint(HANDLE_DEFAULT_SPAN, current)
    if prev_frame is not None:
        span = max(HANDLE_MIN_DELTA, (frame - prev_frame) / 3 or HANDLE_DEFAULT_SPAN)
        in_point = HandlePoint(-span, current - slope * span)
    else:
        in_point = HandlePoint(-HANDLE_DEFAULT_SPAN, current)

    handle_type = HandleType.AUTO
    if clamped:
        handle_type = HandleType.AUTO_CLAMPED
        if prev_frame is not None:
            in_point = _clamp_value_between(in_point, current, values[prev_frame])
        if next_frame is not None:
            out_point = _clamp_value_between(out_point, current, values[next_frame])

    return Handle(
        in_=clamp_handle_point(in_point, HandleSide.IN, frame, total),
        out=clamp_handle_point(out_point, HandleSide.OUT, frame, total),
        type=handle_type,
    )


def _clamp_value_between(point: HandlePoint, a: float, b: float) -> HandlePoint:
    low, high = min(a, b), max(a, b)
    return HandlePoint(point.dx, min(max(point.value, low), high))


def mirror_point(point: HandlePoint, current: float) -> HandlePoint:
    """Reflect *point* through the keyframe, used by ``aligned`` handles."""

    return HandlePoint(-point.dx, current - (point.value - current))


def vector_points(
    side: HandleSide,
    frame: int,
    current: float,
    target_frame: int,
    target_value: float,
) -> tuple[HandlePoint, HandlePoint]:
    """Return ``(dragged, opposite)`` points aiming at a neighbouring keyframe."""

    if side is HandleSide.OUT:
        dx = max(HANDLE_MIN_DELTA, target_frame - frame)
    else:
        dx = max(HANDLE_MIN_DELTA, frame - target_frame)
    dy = target_value - current
    if side is HandleSide.OUT:
        return HandlePoint(dx, current + dy), HandlePoint(-dx, current - dy)
    return HandlePoint(-dx, current + dy), HandlePoint(dx, current - dy)


def handle_slope(point: HandlePoint, side: HandleSide, value: float) -> float:
    if side is HandleSide.OUT:
        dx = max(HANDLE_MIN_DELTA, point.dx)
        return (point.value - value) / dx
    dx = max(HANDLE_MIN_DELTA, -point.dx)
    return (value - point.value) / dx


def hermite_segment(
    start_value: float,
    end_value: float,
    start_slope: float,
    end_slope: float,
    span: int,
) -> np.ndarray:
    """Interior samples ``1 .. span-1`` of a cubic Hermite segment."""

    if span <= 1:
        return np.empty(0, dtype=float)
    t = np.arange(1, span, dtype=float) / span
    t2 = t * t
    t3 = t2 * t
    h00 = 2 * t3 - 3 * t2 + 1
    h10 = t3 - 2 * t2 + t
    h01 = -2 * t3 + 3 * t2
    h11 = t3 - t2
    return (
        h00 * start_value
        + h10 * start_slope * span
        + h01 * end_value
        + h11 * end_slope * span
    )


def smooth_values(values: Sequence[float], factor: float = DEFAULT_SMOOTH_FACTOR) -> list[float]:
    """Blend every interior sample toward the mean of its neighbours.

    Endpoints are kept so the smoothed span still joins the untouched frames
    around it. Non-finite samples are left alone and do not contribute.
    """

    data = np.asarray(values, dtype=float)
    if data.size < 3:
        return data.tolist()
    factor = min(max(float(factor), 0.0), 1.0)
    result = data.copy()
    neighbour_mean = (data[:-2] + data[2:]) / 2.0
    interior = (1.0 - factor) * data[1:-1] + factor * neighbour_mean
    finite = np.isfinite(interior)
    result[1:-1] = np.where(finite, interior, data[1:-1])
    return result.tolist()
