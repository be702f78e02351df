from __future__ import annotations

import logging
import math

from keytrack.core.entries import capture_entries, filter_changed
from keytrack.core.frame_store import read_key_info
from keytrack.core.interaction import PointerEvent
from keytrack.core.range_move import MovedState, get_moved_state
from keytrack.core.ripple import clamp_value
from keytrack.core.scheduler import ANIMATION_FRAME_MS, Debouncer
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)


class RangeMoveTool(BaseTool):
    """Drag the committed range selection to another position of the track.

    The drop frame under the cursor is the insertion target; the vertical
    cursor travel adds a value offset. Dropping inside the block (or right
    after it) with a vertical offset shifts the block in place.
    """

    name = "Move range"
    shortcut = "g"
    category = "edit"

    def __init__(self, editor):
        super().__init__(editor)
        self._hover = Debouncer(editor.scheduler, ANIMATION_FRAME_MS, self._update)
        self._field: str | None = None
        self._range: tuple[int, int] | None = None
        self._values: list[float] = []
        self._keys = []
        self._start_value: float | None = None
        self._state: MovedState | None = None

    @property
    def moving(self) -> bool:
        return self._range is not None

    @property
    def state(self) -> MovedState | None:
        return self._state

    def mousePressEvent(self, event: PointerEvent) -> bool:
        editor = self.editor
        selection_range = editor.selection.range
        if editor.field is None or selection_range is None:
            return False
        self.begin()
        field = editor.field
        total = editor.total_frames
        self._field = field
        self._range = selection_range
        self._values = list(editor.values())
        self._keys = [read_key_info(editor.store, field, index) for index in range(total)]
        self._start_value = event.value
        self._state = None
        return True

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        if not self.moving:
            return False
        # one preview update per animation frame
        self._hover.request(event)
        return True

    def mouseHoverEvent(self, event: PointerEvent) -> bool:
        return self.mouseMoveEvent(event)

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if not self.moving:
            return False
        self._hover.request(event)
        self._hover.flush()
        state = self._state
        field, (range_start, range_end) = self._field, self._range
        values, keys = self._values, self._keys
        self._reset()
        self.finish()
        if state is None:
            self.editor.preview.clear(self.name)
            return True
        self.editor.schedule_commit(
            "Moving range",
            lambda: self._commit(field, range_start, range_end, values, keys, state),
        )
        return True

    def cancel(self):
        self._hover.cancel()
        self._reset()
        super().cancel()

    def _reset(self) -> None:
        self._field = None
        self._range = None
        self._values = []
        self._keys = []
        self._start_value = None
        self._state = None

    def _offset(self, event: PointerEvent) -> float:
        if self._start_value is None or event.value is None:
            return 0.0
        offset = event.value - self._start_value
        return offset if math.isfinite(offset) else 0.0

    def _update(self, event: PointerEvent) -> None:
        if not self.moving:
            return
        range_start, range_end = self._range
        total = len(self._values)
        state = get_moved_state(
            self._values, self._keys, range_start, range_end, event.frame_index, total
        )
        offset = self._offset(event)
        if not state.applied and not offset:
            self._state = None
            self.editor.preview.clear(self.name)
            return
        self._state = state.with_value_offset(offset)
        limit = self.editor.limit
        getter = self._state.value_getter
        self.editor.preview.show_overlay(
            self.name,
            self._state.affected_start,
            self._state.affected_end,
            lambda index: clamp_value(getter(index), limit),
            self._state.key_getter,
            selection=(self._state.dest_start, self._state.dest_end),
        )

    def _commit(self, field, range_start, range_end, values, keys, state: MovedState) -> None:
        editor = self.editor
        editor.preview.clear(self.name)
        start, end = state.affected_start, state.affected_end
        limit = editor.store.get_limit(field)
        before = capture_entries(lambda index: values[index], lambda index: keys[index], start, end)
        after = capture_entries(
            lambda index: clamp_value(state.value_getter(index), limit),
            state.key_getter,
            start,
            end,
        )
        before, after = filter_changed(before, after)
        if not after:
            logger.debug("Range move of %s changed nothing", field)
            return
        editor.undo_store.apply_entries(field, after)
        command = editor.undo_store.push_range_move(
            field,
            range_start,
            range_end,
            state.dest_start,
            start,
            end,
            before,
            after,
        )
        editor.selection.set_range(state.dest_start, state.dest_end)
        editor.request_recompute(start, end)
        self.emit_command(command)
