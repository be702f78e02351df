import pytest

from keytrack.core.interaction import PointerEvent
from keytrack.tools.clickedittool import ClickEditTool


@pytest.fixture
def tool(editor):
    return ClickEditTool(editor)


def test_click_keyframe_selects_it(editor, tool):
    assert tool.mousePressEvent(PointerEvent(20.2, 5.0)) is True

    assert editor.selection.keyframes == [20]
    assert editor.current_frame == 20


def test_ctrl_click_toggles(editor, tool):
    tool.mousePressEvent(PointerEvent(20, 0.0))
    tool.mousePressEvent(PointerEvent(10, 0.0, ctrl=True))

    assert editor.selection.keyframes == [10, 20]
    assert editor.selection.focused == 10

    tool.mousePressEvent(PointerEvent(10, 0.0, ctrl=True))
    assert editor.selection.keyframes == [20]


def test_click_selected_keyframe_refocuses(editor, tool):
    editor.selection.set_keyframes([10, 20], focused=10)

    tool.mousePressEvent(PointerEvent(20, 0.0))

    assert editor.selection.keyframes == [10, 20]
    assert editor.selection.focused == 20


def test_click_blank_clears_focus_only(editor, tool):
    editor.selection.set_keyframes([10, 20])

    tool.mousePressEvent(PointerEvent(50, 0.0))

    assert editor.selection.focused is None
    assert editor.selection.keyframes == [10, 20]
    assert editor.current_frame == 50


def test_click_after_handle_drag_is_swallowed(editor, tool, scheduler):
    editor.click_guard.arm()

    assert tool.mousePressEvent(PointerEvent(20, 0.0)) is True
    assert editor.selection.is_empty()
    assert editor.current_frame == 0

    scheduler.advance(editor.settings.click_guard_ms)
    tool.mousePressEvent(PointerEvent(20, 0.0))
    assert editor.selection.keyframes == [20]
