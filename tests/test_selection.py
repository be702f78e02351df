from unittest.mock import MagicMock

import pytest

from keytrack.core.selection import SelectionModel


@pytest.fixture
def selection(qapp):
    return SelectionModel()


def test_select_single_replaces_range(selection):
    selection.set_range(20, 10)
    assert selection.range == (10, 20)

    selection.select_single(5)

    assert selection.range is None
    assert selection.keyframes == [5]
    assert selection.focused == 5


def test_set_range_clears_keyframes(selection):
    selection.set_keyframes([1, 2, 3])

    selection.set_range(4, 8)

    assert selection.keyframes == []
    assert selection.focused is None
    assert not selection.is_empty()


def test_toggle_moves_focus(selection):
    assert selection.toggle(4) is True
    assert selection.toggle(9) is True
    assert selection.focused == 9

    assert selection.toggle(9) is False
    assert selection.keyframes == [4]
    assert selection.focused == 4


def test_set_keyframes_keeps_requested_focus(selection):
    selection.set_keyframes([3, 7, 11], focused=7)
    assert selection.focused == 7

    selection.set_keyframes([3, 11])
    assert selection.focused == 11

    selection.set_keyframes([3, 11], focused=40)
    assert selection.focused == 11


def test_clear_focus_keeps_set(selection):
    selection.set_keyframes([2, 6])

    selection.clear_focus()

    assert selection.focused is None
    assert selection.keyframes == [2, 6]


def test_signals_only_on_change(selection):
    listener = MagicMock()
    selection.selection_changed.connect(listener)

    selection.clear()
    selection.clear_range()
    selection.clear_focus()
    assert listener.call_count == 0

    selection.select_single(1)
    selection.deselect(1)
    selection.deselect(1)
    assert listener.call_count == 2
    assert selection.is_empty()
