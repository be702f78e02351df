from unittest.mock import MagicMock

import pytest

from keytrack.core.handles import KeyInfo, UNKEYED
from keytrack.core.keyframe_moves import GhostPoint
from keytrack.core.preview import INACTIVE, PreviewSlot


@pytest.mark.usefixtures("qapp")
class TestPreviewSlot:
    def test_overlay_only_covers_affected_range(self):
        slot = PreviewSlot()
        slot.show_overlay("Move range", 12, 10, lambda index: index * 10.0)

        assert slot.owner == "Move range"
        assert slot.value_at(9, 1.0) == 1.0
        assert slot.value_at(10, 1.0) == 100.0
        assert slot.value_at(12, 1.0) == 120.0
        assert slot.value_at(13, 1.0) == 1.0
        assert slot.key_at(11, UNKEYED) is UNKEYED

    def test_overlay_getter_none_falls_back(self):
        slot = PreviewSlot()
        key = KeyInfo(True, None)
        slot.show_overlay("Scale/Shift", 0, 5, lambda index: None, lambda index: key)

        assert slot.value_at(2, 7.0) == 7.0
        assert slot.key_at(2, UNKEYED) == key

    def test_new_preview_replaces_old(self):
        slot = PreviewSlot()
        slot.show_overlay("Move range", 0, 5, lambda index: 0.0)
        slot.show_ghosts("Keyframe drag", [GhostPoint(3, 1.5)])

        assert slot.overlay is None
        assert slot.ghosts == (GhostPoint(3, 1.5),)
        assert slot.value_at(2, 4.0) == 4.0

    def test_clear_respects_owner(self):
        slot = PreviewSlot()
        listener = MagicMock()
        slot.changed.connect(listener)
        slot.show_ghosts("Keyframe drag", [])

        assert slot.clear("Move range") is False
        assert slot.is_active
        assert slot.clear("Keyframe drag") is True
        assert slot.state is INACTIVE
        assert slot.clear() is False
        assert listener.call_count == 2
