import math
import random
from unittest.mock import MagicMock

import pytest

from keytrack.core.viewport import (
    ChartGeometry,
    WindowController,
    clamp_display_size,
    clamp_window,
)


def _assert_window_invariant(window: WindowController):
    max_size = min(window.max_frames, window.total)
    assert min(window.min_frames, max_size) <= window.size <= max_size
    assert 0 <= window.start <= window.total - window.size


def test_clamp_window_rounds_and_clamps():
    assert clamp_window(10.4, 49.6, 100) == (10, 50)
    assert clamp_window(-5, 10, 100) == (0, 30)
    assert clamp_window(90, 50, 100) == (50, 50)
    assert clamp_window(math.nan, math.inf, 100) == (0, 100)


def test_clamp_display_size_short_timeline():
    assert clamp_display_size(5, 12) == 12
    assert clamp_display_size(500, 0) == 0
    assert clamp_display_size(5000, 3000) == 2000


def test_zoom_preserves_anchor_ratio(qapp):
    window = WindowController(100)
    assert (window.start, window.size) == (0, 100)

    assert window.zoom(0.5, 50) is True

    assert window.size == 50
    assert window.start == 25


def test_zoom_without_change_does_not_notify(qapp):
    window = WindowController(100)
    listener = MagicMock()
    window.window_changed.connect(listener)

    assert window.zoom(2.0, 50) is False
    assert window.zoom(math.nan, 50) is False
    listener.assert_not_called()


def test_window_invariant_holds_for_random_operations(qapp):
    rng = random.Random(7)
    window = WindowController(250)
    for _ in range(500):
        choice = rng.randrange(6)
        if choice == 0:
            window.zoom(rng.uniform(0.1, 3.0), rng.uniform(-50, 300))
        elif choice == 1:
            window.pan(rng.uniform(-300, 300))
        elif choice == 2:
            window.wheel_zoom(rng.choice([-360, -120, 120, 600]), rng.uniform(0, 250))
        elif choice == 3:
            window.wheel_pan(rng.choice([-480, -120, 120, 960]))
        elif choice == 4:
            window.begin_edge_drag(rng.random() < 0.5)
            window.drag_edge(rng.randint(-40, 40))
            window.end_edge_drag()
        else:
            window.drag_scrollbar(rng.uniform(-80, 80), 400)
        _assert_window_invariant(window)


def test_pan_clamps_to_timeline(qapp):
    window = WindowController(100)
    window.set_window(0, 40)

    window.pan(1000)
    assert window.start == 60

    window.pan(-1000)
    assert window.start == 0


def test_wheel_pan_moves_at_least_one_frame(qapp):
    window = WindowController(100)
    window.set_window(10, 30)

    window.wheel_pan(1)

    assert window.start == 11


def test_keyboard_pan_steps_twenty_percent(qapp):
    window = WindowController(200)
    window.set_window(50, 50)

    window.keyboard_pan(1)
    assert window.start == 60
    window.keyboard_pan(-1)
    assert window.start == 50


def test_left_edge_drag_keeps_end_fixed(qapp):
    window = WindowController(100)
    window.set_window(20, 40)
    window.begin_edge_drag(left=True)

    assert window.drag_edge(5) is True
    assert (window.start, window.end) == (25, 59)

    # would shrink below the minimum display size
    assert window.drag_edge(10) is False
    assert (window.start, window.size) == (25, 35)


def test_left_edge_drag_rejects_negative_start(qapp):
    window = WindowController(100)
    window.set_window(2, 40)
    window.begin_edge_drag(left=True)

    assert window.drag_edge(-5) is False
    assert window.start == 2


def test_right_edge_drag_limited_by_available_frames(qapp):
    window = WindowController(100)
    window.set_window(20, 40)
    window.begin_edge_drag(left=False)

    assert window.drag_edge(-5) is True
    assert (window.start, window.size) == (20, 35)

    window.drag_edge(500)
    assert (window.start, window.size) == (20, 80)
    window.end_edge_drag()
    assert not window.edge_dragging


def test_drag_scrollbar_minimum_step(qapp):
    window = WindowController(100)
    window.set_window(0, 50)

    assert window.scroll_size_ratio() == pytest.approx(0.5)
    window.drag_scrollbar(10, 200)
    assert window.start == 5

    window.drag_scrollbar(0.1, 200)
    assert window.start == 6
    assert window.scroll_ratio() == pytest.approx(6 / 50)


def test_focus_frames_pads_selection(qapp):
    window = WindowController(500)

    window.focus_frames(100, 200)

    assert window.start <= 100
    assert window.end >= 200
    _assert_window_invariant(window)


def test_set_total_reclamps_window(qapp):
    window = WindowController(500)
    window.set_window(400, 100)

    window.set_total(120)

    assert (window.start, window.size) == (20, 100)


def test_chart_geometry_round_trip():
    geometry = ChartGeometry(width=110, height=100, padding_left=10)

    assert geometry.pixel_to_frame(60, 0, 101) == pytest.approx(50)
    assert geometry.frame_to_pixel(50, 0, 101) == pytest.approx(60)
    assert geometry.pixel_to_value(0, (0.0, 10.0)) == pytest.approx(10)
    assert geometry.pixel_to_value(100, (0.0, 10.0)) == pytest.approx(0)
    assert geometry.value_to_pixel(2.5, (0.0, 10.0)) == pytest.approx(75)


def test_chart_geometry_flipped_axis():
    geometry = ChartGeometry(width=100, height=100, y_flipped=True)

    assert geometry.pixel_to_value(0, (0.0, 10.0)) == pytest.approx(0)
    assert geometry.value_to_pixel(10, (0.0, 10.0)) == pytest.approx(100)
