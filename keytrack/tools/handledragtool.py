from __future__ import annotations

import logging
import math

from keytrack.core.curve import clamp_handle
from keytrack.core.entries import capture_store_entries, filter_changed
from keytrack.core.handles import HandleSide, handle_recompute_range, neighbour_keyframes
from keytrack.core.interaction import PointerEvent
from keytrack.core.scheduler import Debouncer
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)

HIT_RADIUS_PX = 6.0
HIT_RADIUS_FRAMES = 0.5
HIT_RADIUS_VALUE_RATIO = 0.05


class HandleDragTool(BaseTool):
    """Dragging one bezier control point of a keyframe.

    Store writes are coalesced to one per animation frame. The whole drag is
    recorded as a single undo step covering the neighbouring segments.
    """

    name = "Handle"
    shortcut = "h"
    category = "edit"
    priority = 10

    def __init__(self, editor):
        super().__init__(editor)
        self._apply = Debouncer(
            editor.scheduler, editor.settings.handle_drag_delay_ms, self._write_point
        )
        self._target: tuple[int, HandleSide] | None = None
        self._field: str | None = None
        self._span: tuple[int, int] | None = None
        self._before = []

    @property
    def target(self) -> tuple[int, HandleSide] | None:
        return self._target

    def hit_test(self, event: PointerEvent) -> tuple[int, HandleSide] | None:
        """Control point under the pointer, as ``(keyframe, side)``."""

        editor = self.editor
        if editor.field is None or event.value is None:
            return None
        geometry = editor.geometry
        y_range = editor.y_axis.get_range()
        window = editor.window
        best = None
        best_distance = math.inf
        for keyframe in editor.keyframe_indices():
            if not window.contains(keyframe):
                continue
            handle = editor.key_info(keyframe).handle
            if handle is None:
                continue
            handle = clamp_handle(handle, keyframe, editor.total_frames)
            for side in HandleSide:
                point = handle.point(side)
                if point is None:
                    continue
                frame = point.frame_at(keyframe)
                if geometry is not None and event.has_client_position:
                    dx = geometry.frame_to_pixel(frame, window.start, window.size) - event.client_x
                    dy = geometry.value_to_pixel(point.value, y_range) - event.client_y
                    distance = math.hypot(dx, dy)
                    if distance > HIT_RADIUS_PX:
                        continue
                else:
                    value_radius = (y_range[1] - y_range[0]) * HIT_RADIUS_VALUE_RATIO
                    dx = abs(frame - event.frame)
                    dy = abs(point.value - event.value)
                    if dx > HIT_RADIUS_FRAMES or dy > value_radius:
                        continue
                    distance = dx / HIT_RADIUS_FRAMES + dy / max(value_radius, 1e-12)
                if distance < best_distance:
                    best, best_distance = (keyframe, side), distance
        return best

    def mousePressEvent(self, event: PointerEvent) -> bool:
        hit = self.hit_test(event)
        if hit is None:
            return False
        return self.start_drag(*hit)

    def start_drag(self, keyframe: int, side: HandleSide) -> bool:
        editor = self.editor
        field = editor.field
        if field is None or not editor.store.is_keyframe(field, keyframe):
            return False
        self.begin()
        keys = editor.keyframe_indices()
        prev_frame, next_frame = neighbour_keyframes(keys, keyframe)
        start = prev_frame if prev_frame is not None else keyframe
        end = next_frame if next_frame is not None else keyframe
        self._field = field
        self._target = (keyframe, HandleSide(side))
        self._span = (start, end)
        self._before = capture_store_entries(editor.store, field, start, end)
        editor.selection.select_single(keyframe)
        return True

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        if self._target is None or event.value is None:
            return False
        if not (math.isfinite(event.frame) and math.isfinite(event.value)):
            return True
        self._apply.request(event.frame, event.value)
        return True

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if self._target is None:
            return False
        if event.value is not None:
            self.mouseMoveEvent(event)
        self._apply.flush()
        command = self._commit()
        self.editor.click_guard.arm()
        self._reset()
        self.finish()
        self.emit_command(command)
        return True

    def cancel(self):
        self._apply.cancel()
        if self._field is not None and self._before:
            self.editor.undo_store.apply_entries(self._field, self._before)
        self._reset()
        super().cancel()

    def _reset(self) -> None:
        self._target = None
        self._field = None
        self._span = None
        self._before = []

    def _write_point(self, frame: float, value: float) -> None:
        if self._target is None:
            return
        keyframe, side = self._target
        self.editor.store.update_handle_point(self._field, keyframe, side, frame, value)

    def _commit(self):
        editor = self.editor
        field = self._field
        start, end = self._span
        after = capture_store_entries(editor.store, field, start, end)
        before, after = filter_changed(self._before, after)
        if not after:
            return None
        keyframe, side = self._target
        logger.debug("Handle %s of %s:%d moved", side.value, field, keyframe)
        editor.request_recompute(
            *handle_recompute_range(editor.keyframe_indices(), keyframe, editor.total_frames)
        )
        return editor.undo_store.push_entries(field, before, after, name="Move handle")
