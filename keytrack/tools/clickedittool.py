from __future__ import annotations

import logging

from keytrack.core.interaction import PointerEvent
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)


class ClickEditTool(BaseTool):
    """Single clicks on the chart: playhead placement and keyframe picking.

    Clicking a keyframe selects it alone, Ctrl toggles it in the selection.
    Clicking blank space only drops the focus; the selection set stays.
    """

    name = "Select"
    shortcut = "s"
    category = "select"
    priority = 30

    def mousePressEvent(self, event: PointerEvent) -> bool:
        editor = self.editor
        if editor.field is None:
            return False
        if editor.click_guard.consume():
            logger.debug("Click suppressed right after a handle drag")
            return True
        total = editor.total_frames
        frame = max(0, min(total - 1, event.frame_index))
        selection = editor.selection
        if editor.key_info(frame).is_key:
            if event.ctrl:
                selection.toggle(frame)
            elif selection.is_selected(frame):
                selection.set_keyframes(selection.keyframes, focused=frame)
            else:
                selection.select_single(frame)
        else:
            selection.clear_focus()
        editor.set_current_frame(frame)
        return True
