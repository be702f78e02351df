from __future__ import annotations

import logging
import math

from keytrack.core.curve import DEFAULT_SMOOTH_FACTOR, smooth_values
from keytrack.core.entries import UndoEntry, capture_store_entries, filter_changed
from keytrack.core.interaction import PointerEvent
from keytrack.core.ripple import clamp_value
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)


class DrawTool(BaseTool):
    """Freehand drawing of values, smoothed over the drawn span on release."""

    name = "Draw"
    shortcut = "d"
    category = "edit"

    def __init__(self, editor):
        super().__init__(editor)
        self.smooth_factor = DEFAULT_SMOOTH_FACTOR
        self._field: str | None = None
        self._last: tuple[int, float] | None = None
        self._before: dict[int, UndoEntry] = {}

    @property
    def drawing(self) -> bool:
        return self._last is not None

    def mousePressEvent(self, event: PointerEvent) -> bool:
        editor = self.editor
        if editor.field is None or event.value is None or not math.isfinite(event.value):
            return False
        total = editor.total_frames
        frame = event.frame_index
        if not 0 <= frame < total:
            return False
        self.begin()
        self._field = editor.field
        self._before = {}
        self._write(frame, event.value)
        self._last = (frame, event.value)
        return True

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        if not self.drawing or event.value is None or not math.isfinite(event.value):
            return False
        total = self.editor.total_frames
        frame = max(0, min(total - 1, event.frame_index))
        last_frame, last_value = self._last
        if frame == last_frame:
            self._write(frame, event.value)
        else:
            # fill skipped frames on a straight line from the previous sample
            step = 1 if frame > last_frame else -1
            span = frame - last_frame
            for index in range(last_frame + step, frame + step, step):
                ratio = (index - last_frame) / span
                self._write(index, last_value + (event.value - last_value) * ratio)
        self._last = (frame, event.value)
        return True

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if not self.drawing:
            return False
        if event.value is not None and math.isfinite(event.value):
            self.mouseMoveEvent(event)
        command = self._commit()
        self._reset()
        self.finish()
        self.emit_command(command)
        return True

    def cancel(self):
        if self._field is not None and self._before:
            self.editor.undo_store.apply_entries(self._field, list(self._before.values()))
        self._reset()
        super().cancel()

    def _reset(self) -> None:
        self._field = None
        self._last = None
        self._before = {}

    def _write(self, index: int, value: float) -> None:
        store = self.editor.store
        field = self._field
        if index not in self._before:
            self._before[index] = capture_store_entries(store, field, index, index)[0]
        # per-frame write; the editor coalesces the refreshes it triggers
        store.set_value(field, index, clamp_value(float(value), self.editor.limit))

    def _commit(self):
        field = self._field
        if field is None or not self._before:
            return None
        editor = self.editor
        store = editor.store
        total = editor.total_frames
        start, end = min(self._before), max(self._before)

        slice_start, slice_end = max(0, start - 1), min(total - 1, end + 1)
        current = [store.get_value(field, index) for index in range(slice_start, slice_end + 1)]
        smoothed = smooth_values(current, self.smooth_factor)
        limit = editor.limit

        def write():
            for offset, value in enumerate(smoothed):
                index = slice_start + offset
                if start <= index <= end and math.isfinite(value):
                    store.set_value(field, index, clamp_value(value, limit))

        editor.undo_store.run_without_record(write)
        before = [self._before[index] for index in range(start, end + 1)]
        after = capture_store_entries(store, field, start, end)
        before, after = filter_changed(before, after)
        editor.events.field_changed.emit(field, start, end)
        if not after:
            return None
        logger.debug("Drew %d frames of %s in %d..%d", len(after), field, start, end)
        editor.request_recompute(start, end)
        return editor.undo_store.push_entries(field, before, after, name="Draw")
