from unittest.mock import MagicMock

import pytest

from keytrack.core.handles import HandleType
from keytrack.core.keyframes import MAX_STEP_UNIT, MIN_STEP_UNIT, contiguous_segments


def _spiked(editor, frame=20, value=10.0):
    store = editor.store
    store.add_field("spike", [0.0] * 100)
    for key in (10, 20, 30):
        store.add_keyframe("spike", key)
    store.set_value("spike", frame, value)
    editor.load_field("spike")
    return store


def test_contiguous_segments():
    assert contiguous_segments([7, 3, 4, 5, 9, 10]) == [(3, 5), (7, 7), (9, 10)]
    assert contiguous_segments([]) == []


def test_toggle_keyframe_selects_and_undoes(editor, scheduler):
    recompute = MagicMock()
    editor.events.recompute_requested.connect(recompute)

    assert editor.keyframes.toggle_keyframe(15) is True

    assert editor.store.is_keyframe("hip", 15)
    assert editor.selection.keyframes == [15]
    scheduler.advance(editor.settings.recompute_delay_ms)
    recompute.assert_called_once_with("hip", 8, 21)

    editor.undo()
    assert not editor.store.is_keyframe("hip", 15)


def test_toggle_off_deselects(editor):
    editor.selection.select_single(20)

    assert editor.keyframes.toggle_keyframe(20) is False

    assert editor.selection.keyframes == []
    assert editor.store.keyframe_indices("hip") == [10, 30]


def test_toggle_out_of_range(editor):
    assert editor.keyframes.toggle_keyframe(500) is None


def test_smooth_delete_reinterpolates_in_one_step(editor):
    store = _spiked(editor)
    recompute = MagicMock()
    editor.events.recompute_requested.connect(recompute)
    editor.selection.set_keyframes([20])
    depth = len(editor.undo_store.undo_manager.undo_stack)

    assert editor.keyframes.smooth_delete() is True

    assert not store.is_keyframe("spike", 20)
    assert store.get_value("spike", 20) == pytest.approx(0.0)
    assert editor.selection.is_empty()
    assert len(editor.undo_store.undo_manager.undo_stack) == depth + 1
    recompute.assert_called_once_with("spike", 8, 31)

    editor.undo()
    assert store.is_keyframe("spike", 20)
    assert store.get_value("spike", 20) == 10.0


def test_smooth_delete_range_selection(editor):
    store = _spiked(editor)
    editor.selection.set_range(19, 21)

    assert editor.keyframes.smooth_delete() is True

    assert store.keyframe_indices("spike") == [10, 30]


def test_smooth_delete_nothing_keyed(editor):
    editor.set_current_frame(5)

    assert editor.keyframes.smooth_delete() is False


def test_set_handle_type_on_focused_keyframe(editor):
    editor.selection.select_single(20)

    assert editor.keyframes.set_handle_type(HandleType.FREE) is True

    assert editor.store.get_handle("hip", 20).type is HandleType.FREE
    assert editor.keyframes.current_handle_type() is HandleType.FREE

    editor.undo()
    assert editor.keyframes.current_handle_type() is HandleType.AUTO


def test_set_handle_type_ignores_unkeyed_targets(editor):
    assert editor.keyframes.set_handle_type(HandleType.VECTOR, [5, 6]) is False


def test_cycle_handle_type(editor):
    editor.selection.select_single(10)

    assert editor.keyframes.cycle_handle_type() is HandleType.AUTO_CLAMPED
    assert editor.keyframes.cycle_handle_type() is HandleType.FREE

    editor.selection.clear()
    assert editor.keyframes.cycle_handle_type() is None


def test_current_value_only_editable_on_keyframes(editor):
    editor.set_current_frame(5)
    assert not editor.keyframes.is_current_editable()
    assert editor.keyframes.set_current_value(3.0) is False

    editor.set_current_frame(10)
    assert editor.keyframes.set_current_value(3.5) is True
    assert editor.store.get_value("hip", 10) == 3.5
    assert editor.keyframes.set_current_value(float("nan")) is False

    editor.undo()
    assert editor.store.get_value("hip", 10) == 10.0


def test_step_current_value(editor):
    editor.set_current_frame(10)
    editor.keyframes.step_unit = 0.5

    assert editor.keyframes.step_current_value(-1) is True
    assert editor.keyframes.current_value() == 9.5
    assert editor.keyframes.step_current_value(0) is False


def test_step_unit_is_clamped(editor):
    controller = editor.keyframes
    controller.step_unit = 100
    assert controller.step_unit == MAX_STEP_UNIT
    controller.step_unit = 0
    assert controller.step_unit == MIN_STEP_UNIT
    controller.step_unit = float("nan")
    assert controller.step_unit == MIN_STEP_UNIT
