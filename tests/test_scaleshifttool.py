import pytest

from keytrack.core.interaction import PointerEvent
from keytrack.core.viewport import ChartGeometry
from keytrack.tools.scaleshifttool import ScaleShiftMode, ScaleShiftTool


def test_scale_by_pixel_drag(editor):
    editor.set_chart_geometry(ChartGeometry(400, 200))
    editor.selection.set_range(40, 44)
    tool = ScaleShiftTool(editor, ScaleShiftMode.SCALE)

    tool.mousePressEvent(PointerEvent(42, 0.0, client_x=50, client_y=150))
    tool.mouseMoveEvent(PointerEvent(42, 0.0, client_x=50, client_y=50))

    assert tool.ratio == 1.0
    assert editor.preview.value_at(40, None) == 80.0
    assert editor.store.get_value("hip", 40) == 40.0

    tool.mouseReleaseEvent(PointerEvent(42, 0.0, client_x=50, client_y=-400))
    editor.flush_pending_commit()

    assert editor.store.get_values("hip")[39:46] == [39.0, 80.0, 82.0, 84.0, 86.0, 88.0, 45.0]
    assert editor.undo_store.undo_manager.undo_stack[-1].name == "Scale"


def test_scale_down_by_value_drag(editor):
    editor.selection.set_range(40, 41)
    tool = ScaleShiftTool(editor)
    half_range = editor.y_axis.half_range

    tool.mousePressEvent(PointerEvent(40, 10.0))
    tool.mouseReleaseEvent(PointerEvent(40, 10.0 - 3 * half_range))
    editor.flush_pending_commit()

    assert editor.store.get_values("hip")[40:42] == pytest.approx([20.0, 20.5])


def test_shift_uses_limit_side(editor):
    editor.load_field("knee")
    editor.selection.set_range(10, 12)
    tool = ScaleShiftTool(editor, ScaleShiftMode.SHIFT)
    half_range = editor.y_axis.half_range

    tool.mousePressEvent(PointerEvent(11, 0.0))
    tool.mouseReleaseEvent(PointerEvent(11, half_range / 2))
    editor.flush_pending_commit()

    assert editor.store.get_values("knee")[10:13] == pytest.approx([0.5, 0.5, 0.5])
    assert editor.undo_store.undo_manager.undo_stack[-1].name == "Shift"

    tool.mousePressEvent(PointerEvent(11, 0.0))
    tool.mouseReleaseEvent(PointerEvent(11, -half_range))
    editor.flush_pending_commit()

    assert editor.store.get_values("knee")[10:13] == pytest.approx([-0.5, -0.5, -0.5])


def test_shift_flipped_axis_inverts_pixel_drag(editor):
    editor.set_chart_geometry(ChartGeometry(400, 200))
    editor.set_y_flipped(True)
    editor.selection.set_range(40, 40)
    tool = ScaleShiftTool(editor, ScaleShiftMode.SHIFT)

    tool.mousePressEvent(PointerEvent(40, 0.0, client_x=0, client_y=100))
    tool.mouseMoveEvent(PointerEvent(40, 0.0, client_x=0, client_y=50))

    assert tool.ratio == -0.5


def test_release_without_drag_commits_nothing(editor):
    editor.selection.set_range(40, 44)
    tool = ScaleShiftTool(editor)

    tool.mousePressEvent(PointerEvent(42, 3.0))
    tool.mouseReleaseEvent(PointerEvent(42, 3.0))

    assert not editor.has_pending_commit
    assert not editor.preview.is_active


def test_requires_range_selection(editor):
    tool = ScaleShiftTool(editor)

    assert tool.mousePressEvent(PointerEvent(42, 3.0)) is False
