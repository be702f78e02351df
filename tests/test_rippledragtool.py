import pytest

from keytrack.core.ripple import SpreadPolicy
from keytrack.tools.rippledragtool import RippleDragTool


@pytest.fixture
def tool(editor):
    return RippleDragTool(editor)


def test_policies_come_from_settings(editor, tool):
    assert tool.before == SpreadPolicy.decay(10)
    assert tool.after == SpreadPolicy.decay(10)


def test_move_spreads_with_decay(editor, tool, scheduler):
    assert tool.start(50) is True
    assert tool.bounds == (40, 60)

    tool.move_to(60.0)
    assert editor.store.get_value("hip", 50) == 50.0
    scheduler.advance(editor.settings.ripple_apply_delay_ms)

    values = editor.store.get_values("hip")
    assert values[50] == pytest.approx(60.0)
    assert values[45] == pytest.approx(50.0)
    assert values[55] == pytest.approx(60.0)
    assert values[40] == pytest.approx(40.0)
    assert values[39] == 39.0


def test_moves_restart_the_write_delay(editor, tool, scheduler):
    tool.start(50)

    tool.move_to(55.0)
    scheduler.advance(20)
    tool.move_to(60.0)
    scheduler.advance(20)
    assert editor.store.get_value("hip", 50) == 50.0

    scheduler.advance(10)
    assert editor.store.get_value("hip", 50) == pytest.approx(60.0)


def test_end_records_one_undo_step(editor, tool):
    tool.start(50)
    tool.move_to(55.0)
    tool.move_to(60.0)

    command = tool.end()

    assert command.name == "Ripple edit"
    assert not tool.active
    assert editor.store.get_value("hip", 50) == pytest.approx(60.0)

    editor.undo()
    assert editor.store.get_values("hip")[40:61] == [float(index) for index in range(40, 61)]


def test_full_and_none_policies(editor, tool):
    tool.set_policies(SpreadPolicy.full(), SpreadPolicy.none())
    tool.start(50)
    tool.move_to(52.0)
    tool.end()

    values = editor.store.get_values("hip")
    assert values[0] == pytest.approx(2.0)
    assert values[50] == pytest.approx(52.0)
    assert values[51] == 51.0


def test_ripple_is_clamped_to_limit(editor, tool):
    editor.load_field("knee")

    tool.start(40)
    tool.move_to(5.0)
    tool.end()

    assert editor.store.get_value("knee", 40) == 1.0
    assert editor.store.get_value("knee", 45) == pytest.approx(1.0)


def test_cancel_restores_values(editor, tool, scheduler):
    tool.start(50)
    tool.move_to(70.0)
    scheduler.advance(editor.settings.ripple_apply_delay_ms)

    tool.cancel()

    assert editor.store.get_value("hip", 50) == 50.0
    assert not editor.undo_store.can_undo


def test_move_without_session(tool):
    assert tool.move_to(3.0) is False
    assert tool.end() is None
