from unittest.mock import MagicMock

import pytest

from keytrack.core.interaction import InteractionArbiter, PointerEvent


def _tool(name):
    tool = MagicMock()
    tool.name = name
    return tool


def test_pointer_event_helpers():
    event = PointerEvent(4.6, 1.0)
    assert event.frame_index == 5
    assert not event.has_modifiers
    assert not event.has_client_position

    event = PointerEvent(4.4, None, client_x=10, client_y=12, alt=True)
    assert event.frame_index == 4
    assert event.has_modifiers
    assert event.has_client_position


@pytest.mark.usefixtures("qapp")
class TestInteractionArbiter:
    def test_begin_cancels_previous_tool(self):
        before_begin = MagicMock()
        arbiter = InteractionArbiter(before_begin=before_begin)
        drag, ripple = _tool("Keyframe drag"), _tool("Ripple")

        arbiter.begin(drag)
        arbiter.begin(ripple)

        assert before_begin.call_count == 2
        drag.cancel.assert_called_once()
        ripple.cancel.assert_not_called()
        assert arbiter.active is ripple
        assert arbiter.is_active(ripple)

    def test_begin_same_tool_is_not_cancelled(self):
        arbiter = InteractionArbiter()
        tool = _tool("Draw")

        arbiter.begin(tool)
        arbiter.begin(tool)

        tool.cancel.assert_not_called()

    def test_end_only_releases_owner(self):
        arbiter = InteractionArbiter()
        listener = MagicMock()
        arbiter.active_changed.connect(listener)
        owner, other = _tool("Range"), _tool("Draw")
        arbiter.begin(owner)

        arbiter.end(other)
        assert arbiter.active is owner

        arbiter.end(owner)
        assert arbiter.active is None
        assert listener.call_count == 2

    def test_cancel_active(self):
        arbiter = InteractionArbiter()
        tool = _tool("Handle")
        arbiter.begin(tool)

        arbiter.cancel_active()
        arbiter.cancel_active()

        tool.cancel.assert_called_once()
        assert arbiter.active is None
