import pytest

from keytrack.core.handles import Handle, HandlePoint, HandleType, KeyInfo, UNKEYED
from keytrack.core.range_move import (
    get_moved_state,
    is_pass_through,
    remap_index,
)


def _series(total=100, keys=None):
    keys = keys or {}
    values = [float(index) for index in range(total)]
    infos = [UNKEYED] * total
    for frame, value in keys.items():
        values[frame] = value
        infos[frame] = KeyInfo(True, Handle(HandlePoint(-1, value), HandlePoint(1, value), HandleType.FREE))
    return values, infos


def test_move_range_forward_scenario():
    values, infos = _series(keys={10: 0.0, 30: 90.0})

    state = get_moved_state(values, infos, 10, 30, 50)

    assert state.applied
    assert (state.dest_start, state.dest_end) == (29, 49)
    assert (state.affected_start, state.affected_end) == (10, 49)
    assert state.key_getter(29).is_key and state.value_getter(29) == 0.0
    assert state.key_getter(49).is_key and state.value_getter(49) == 90.0
    assert not state.key_getter(10).is_key
    assert not state.key_getter(30).is_key
    # frames between the block and the drop slide back to fill the gap
    assert state.value_getter(10) == 31.0
    assert state.value_getter(28) == 49.0


def test_move_range_backward():
    values, infos = _series(total=60)

    state = get_moved_state(values, infos, 40, 44, 10)

    assert (state.dest_start, state.dest_end) == (10, 14)
    assert [state.value_getter(index) for index in range(10, 15)] == [40, 41, 42, 43, 44]
    assert state.value_getter(15) == 10
    assert state.value_getter(44) == 39
    assert (state.affected_start, state.affected_end) == (10, 44)


@pytest.mark.parametrize("target", [10, 20, 30, 31])
def test_drop_inside_or_after_block_passes_through(target):
    values, infos = _series()

    state = get_moved_state(values, infos, 10, 30, target)

    assert not state.applied
    assert (state.dest_start, state.dest_end) == (10, 30)
    assert state.value_getter(15) == 15.0
    assert is_pass_through(10, 30, target)


def test_target_is_clamped_to_timeline():
    values, infos = _series(total=50)

    state = get_moved_state(values, infos, 0, 4, 500)

    assert (state.dest_start, state.dest_end) == (44, 48)


def test_round_trip_restores_series():
    values, infos = _series(keys={10: 0.0, 30: 90.0, 70: -3.0})
    first = get_moved_state(values, infos, 10, 30, 50)
    moved_values = [first.value_getter(index) for index in range(len(values))]
    moved_infos = [first.key_getter(index) for index in range(len(values))]

    back = get_moved_state(moved_values, moved_infos, first.dest_start, first.dest_end, 10)

    assert [back.value_getter(index) for index in range(len(values))] == values
    assert [back.key_getter(index) for index in range(len(values))] == infos


def test_remap_index_outside_affected_span_is_identity():
    assert remap_index(5, 10, 21, 29) == 5
    assert remap_index(60, 10, 21, 29) == 60


def test_value_offset_shifts_values_and_handles():
    values, infos = _series(keys={10: 0.0})
    state = get_moved_state(values, infos, 10, 12, 11).with_value_offset(2.5)

    assert state.value_getter(10) == 2.5
    handle = state.key_getter(10).handle
    assert handle.in_.value == 2.5
    assert handle.out.value == 2.5
    assert state.key_getter(11) == UNKEYED
