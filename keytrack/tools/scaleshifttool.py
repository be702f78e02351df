from __future__ import annotations

import logging
import math
from enum import Enum

from keytrack.core.entries import capture_store_entries
from keytrack.core.interaction import PointerEvent
from keytrack.core.ripple import clamp_value
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)


class ScaleShiftMode(str, Enum):
    SCALE = "scale"
    SHIFT = "shift"


class ScaleShiftTool(BaseTool):
    """Vertical drag over the range selection that scales or shifts its values.

    The drag is normalised to a ratio in ``[-1, 1]``: half the chart height
    up is ``+1``. SCALE multiplies by ``2 ** ratio``; SHIFT moves by the
    ratio of the joint limit on the side being approached.
    """

    name = "Scale/Shift"
    shortcut = "t"
    category = "edit"

    def __init__(self, editor, mode: ScaleShiftMode = ScaleShiftMode.SCALE):
        super().__init__(editor)
        self.mode = ScaleShiftMode(mode)
        self._range: tuple[int, int] | None = None
        self._field: str | None = None
        self._start: PointerEvent | None = None
        self._original: dict[int, float] = {}
        self._ratio = 0.0

    @property
    def ratio(self) -> float:
        return self._ratio

    def mousePressEvent(self, event: PointerEvent) -> bool:
        editor = self.editor
        editor.flush_pending_commit()
        selection_range = editor.selection.range
        if editor.field is None or selection_range is None:
            return False
        self.begin()
        self._field = editor.field
        self._range = selection_range
        self._start = event
        start, end = selection_range
        self._original = {index: editor.value_at(index) for index in range(start, end + 1)}
        self._ratio = 0.0
        return True

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        if self._range is None:
            return False
        ratio = self._drag_ratio(event)
        if ratio is None:
            return True
        self._ratio = ratio
        start, end = self._range
        self.editor.preview.show_overlay(
            self.name,
            start,
            end,
            lambda index: self.transformed(self._original.get(index), ratio),
            None,
            selection=(start, end),
        )
        return True

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if self._range is None:
            return False
        self.mouseMoveEvent(event)
        ratio, field, (start, end) = self._ratio, self._field, self._range
        original = self._original
        self._reset()
        self.finish()
        if not ratio:
            self.editor.preview.clear(self.name)
            return True
        label = "Scaling values" if self.mode is ScaleShiftMode.SCALE else "Shifting values"
        self.editor.schedule_commit(
            label, lambda: self._commit(field, start, end, original, ratio)
        )
        return True

    def cancel(self):
        self._reset()
        super().cancel()

    def _reset(self) -> None:
        self._range = None
        self._field = None
        self._start = None
        self._original = {}
        self._ratio = 0.0

    def _drag_ratio(self, event: PointerEvent) -> float | None:
        start = self._start
        geometry = self.editor.geometry
        if geometry is not None and start.has_client_position and event.has_client_position:
            half_height = geometry.plot_height / 2
            position = max(-half_height, min(half_height, event.client_y - start.client_y))
            ratio = position / -half_height
            if self.mode is ScaleShiftMode.SHIFT and self.editor.y_flipped:
                ratio = -ratio
            return ratio
        if event.value is None or start.value is None:
            return None
        half_range = self.editor.y_axis.half_range
        ratio = (event.value - start.value) / half_range
        if not math.isfinite(ratio):
            return None
        return max(-1.0, min(1.0, ratio))

    def transformed(self, value: float | None, ratio: float) -> float | None:
        if value is None or not math.isfinite(value):
            return value
        limit = self.editor.limit
        if self.mode is ScaleShiftMode.SCALE:
            return clamp_value(value * 2 ** ratio, limit)
        if limit is None:
            offset = ratio * self.editor.y_axis.half_range
        else:
            lower, upper = limit
            offset = ratio * upper if ratio > 0 else ratio * abs(lower)
        return clamp_value(value + offset, limit)

    def _commit(self, field, start, end, original, ratio) -> None:
        editor = self.editor
        editor.preview.clear(self.name)
        before = capture_store_entries(editor.store, field, start, end)
        after = []
        for entry in before:
            value = self.transformed(original.get(entry.index, entry.value), ratio)
            if value is None or not math.isfinite(value):
                after.append(entry)
                continue
            after.append(entry.with_value(value))
        command = editor.commit_entries(before, after, self.mode.value.capitalize(), field=field)
        if command is not None:
            logger.debug("%s of %s:%d..%d by %.3f", self.mode.value, field, start, end, ratio)
            editor.request_recompute(start, end)
        self.emit_command(command)
