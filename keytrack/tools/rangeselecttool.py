from __future__ import annotations

from keytrack.core.interaction import PointerEvent
from keytrack.tools.basetool import BaseTool


class RangeSelectTool(BaseTool):
    """Drag across the timeline to select ``[start, end]``; committed on release."""

    name = "Range"
    shortcut = "r"
    category = "select"

    def __init__(self, editor):
        super().__init__(editor)
        self._anchor: int | None = None
        self._current: int | None = None

    def _clamp(self, event: PointerEvent) -> int:
        return max(0, min(self.editor.total_frames - 1, event.frame_index))

    def mousePressEvent(self, event: PointerEvent) -> bool:
        if self.editor.field is None or self.editor.total_frames <= 0:
            return False
        self.begin()
        self._anchor = self._current = self._clamp(event)
        return True

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        if self._anchor is None:
            return False
        frame = self._clamp(event)
        if frame != self._current:
            self._current = frame
            self.editor.request_refresh()
        return True

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if self._anchor is None:
            return False
        self.mouseMoveEvent(event)
        anchor, current = self._anchor, self._current
        self._anchor = self._current = None
        self.finish()
        if anchor == current:
            self.editor.selection.clear_range()
        else:
            self.editor.selection.set_range(anchor, current)
        return True

    def cancel(self):
        self._anchor = self._current = None
        self.editor.request_refresh()
        super().cancel()

    def display_selection_range(self) -> tuple[int, int] | None:
        if self._anchor is None or self._anchor == self._current:
            return None
        return tuple(sorted((self._anchor, self._current)))
