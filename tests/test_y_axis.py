import math
from unittest.mock import MagicMock

import pytest

from keytrack.core.y_axis import MIN_HALF_RANGE, YAxisController, finite_values


def test_fit_constant_values_keeps_center(qapp):
    axis = YAxisController()

    axis.fit([5, 5, 5])

    assert axis.center == 5
    assert axis.half_range >= MIN_HALF_RANGE
    assert axis.half_range == pytest.approx(0.5)


def test_fit_zero_values_uses_unit_half_range(qapp):
    axis = YAxisController()

    axis.fit([0.0, 0.0])

    assert (axis.center, axis.half_range) == (0.0, 1.0)


def test_fit_empty_and_non_finite(qapp):
    axis = YAxisController()

    axis.fit([None, math.nan, math.inf])
    assert axis.get_range() == (-1.0, 1.0)

    axis.fit([math.nan, None, 3.0])
    assert axis.center == 3.0
    assert axis.half_range == pytest.approx(0.3)


def test_fit_pads_span(qapp):
    axis = YAxisController()

    axis.fit([0, 10])

    assert axis.center == 5
    assert axis.half_range == pytest.approx(5.5)
    assert axis.initialized
    assert not axis.user_override


def test_zoom_keeps_anchor_offset(qapp):
    axis = YAxisController()
    axis.fit([0, 10])

    assert axis.zoom(2.0, anchor_value=10) is True

    assert axis.half_range == pytest.approx(11)
    assert axis.center == pytest.approx(0)
    assert axis.user_override
    assert not axis.needs_fit()


def test_zoom_rejects_bad_multiplier(qapp):
    axis = YAxisController()
    listener = MagicMock()
    axis.range_changed.connect(listener)

    assert axis.zoom(0) is False
    assert axis.zoom(-1) is False
    assert axis.zoom(math.nan) is False
    listener.assert_not_called()


def test_zoom_respects_minimum_half_range(qapp):
    axis = YAxisController(min_half_range=0.5)
    axis.fit([0, 1])

    axis.zoom(1e-9)

    assert axis.half_range == 0.5


def test_pan_sets_override_and_rejects_zero(qapp):
    axis = YAxisController()
    axis.fit([0, 10])

    assert axis.pan(0) is False
    assert axis.pan(math.inf) is False
    assert axis.pan(2.5) is True
    assert axis.center == pytest.approx(7.5)
    assert axis.user_override


def test_wheel_pan_and_zoom(qapp):
    axis = YAxisController()
    axis.fit([-1, 1])
    half = axis.half_range

    axis.wheel_pan(120)
    assert axis.center == pytest.approx(half * 0.2)

    axis.wheel_zoom(-120)
    assert axis.half_range == pytest.approx(half * 0.85)


def test_pan_pixels_follows_cursor(qapp):
    axis = YAxisController()
    axis.fit([0, 10])
    center = axis.center

    axis.pan_pixels(10, 110)
    assert axis.center == pytest.approx(center + 1.0)

    axis.pan_pixels(10, 110, y_flipped=True)
    assert axis.center == pytest.approx(center)


def test_needs_fit_until_user_override(qapp):
    axis = YAxisController()
    assert axis.needs_fit()

    axis.ensure_initialized([1, 2])
    assert axis.initialized
    assert axis.needs_fit()

    axis.pan(1)
    assert not axis.needs_fit()

    axis.reset()
    assert not axis.initialized


def test_finite_values_filters_garbage():
    assert finite_values([1, None, "x", math.nan, "2.5", -math.inf]) == [1.0, 2.5]
