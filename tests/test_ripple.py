import math

import pytest

from keytrack.core.ripple import (
    SpreadMode,
    SpreadPolicy,
    clamp_to_limit,
    clamp_value,
    ripple_adjust,
    ripple_slice_bounds,
)


def test_ripple_linear_decay_scenario():
    adjusted = ripple_adjust(
        [0, 0, 0, 0, 0], 2, 10, SpreadPolicy.decay(2), SpreadPolicy.decay(2)
    )

    assert adjusted == pytest.approx([0, 5, 10, 5, 0])


def test_ripple_zero_delta_is_identity():
    values = [1.0, -2.0, 3.5, math.nan, 4.0]

    adjusted = ripple_adjust(values, 1, 0.0, SpreadPolicy.full(), SpreadPolicy.decay(3))

    assert adjusted[:3] == values[:3]
    assert math.isnan(adjusted[3])
    assert adjusted[4] == values[4]


def test_ripple_decay_boundary_untouched():
    values = [0.0] * 11

    adjusted = ripple_adjust(values, 5, 4.0, SpreadPolicy.decay(3), SpreadPolicy.decay(3))

    for index, value in enumerate(adjusted):
        if abs(index - 5) >= 3:
            assert value == 0.0
    assert adjusted[5] == 4.0


def test_ripple_full_and_none_policies():
    adjusted = ripple_adjust([1, 1, 1, 1], 1, 2, SpreadPolicy.full(), SpreadPolicy.none())

    assert adjusted == [3, 3, 1, 1]


def test_ripple_non_finite_samples_pass_through():
    adjusted = ripple_adjust([0, math.nan, 0], 0, 1, SpreadPolicy.none(), SpreadPolicy.full())

    assert adjusted[0] == 1
    assert math.isnan(adjusted[1])
    assert adjusted[2] == 1


def test_ripple_bad_anchor_or_delta_returns_copy():
    values = [1.0, 2.0]

    assert ripple_adjust(values, 5, 1.0, SpreadPolicy.full(), SpreadPolicy.full()) == values
    assert ripple_adjust(values, 0, math.nan, SpreadPolicy.full(), SpreadPolicy.full()) == values


def test_clamp_to_limit():
    assert clamp_to_limit([-5, 0, 5, math.inf], (-1, 1))[:3] == [-1, 0, 1]
    assert clamp_to_limit([-5, 5], None) == [-5, 5]
    assert clamp_value(3.0, (0.0, 2.0)) == 2.0
    assert clamp_value(3.0, None) == 3.0


def test_policy_constructors():
    assert SpreadPolicy.from_radius(-1).spread_radius == -1
    assert SpreadPolicy.from_radius(0).mode is SpreadMode.NONE
    assert SpreadPolicy.from_radius(4) == SpreadPolicy(SpreadMode.DECAY, 4)
    assert SpreadPolicy.from_settings("full", 3) == SpreadPolicy.full()
    assert SpreadPolicy.from_settings(SpreadMode.DECAY, 0) == SpreadPolicy.none()


def test_slice_bounds():
    decay = SpreadPolicy.decay(3)

    assert ripple_slice_bounds(10, 100, decay, decay) == (7, 13)
    assert ripple_slice_bounds(1, 100, decay, SpreadPolicy.none()) == (0, 1)
    assert ripple_slice_bounds(50, 100, SpreadPolicy.full(), SpreadPolicy.full()) == (0, 99)
