from __future__ import annotations

import logging
import math
from enum import Enum

from keytrack.core.handles import union_recompute_range
from keytrack.core.interaction import PointerEvent
from keytrack.core.keyframe_moves import (
    KeyframeMove,
    build_move_entries,
    drag_offsets,
    ghost_points,
    snapshot_origins,
)
from keytrack.core.ripple import clamp_value
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)

FRAME_THRESHOLD = 0.1
VALUE_THRESHOLD = 1e-4


class DragState(Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"
    COMMITTING = "committing"


class KeyframeDragTool(BaseTool):
    """Move every selected keyframe by the same frame/value offset.

    While dragging only ghost points are shown; the track itself changes when
    the drag is committed.
    """

    name = "Keyframe drag"
    shortcut = "k"
    category = "edit"
    priority = 20

    def __init__(self, editor):
        super().__init__(editor)
        self.state = DragState.IDLE
        self._field: str | None = None
        self._start: PointerEvent | None = None
        self._origin_values: dict = {}
        self._origin_keys: dict = {}
        self._move: KeyframeMove | None = None

    @property
    def move(self) -> KeyframeMove | None:
        return self._move

    def mousePressEvent(self, event: PointerEvent) -> bool:
        editor = self.editor
        editor.flush_pending_commit()
        if self.state is not DragState.IDLE or editor.field is None:
            return False
        if event.has_modifiers or event.value is None:
            return False
        frame = event.frame_index
        if not 0 <= frame < editor.total_frames or not editor.key_info(frame).is_key:
            return False
        if not editor.selection.is_selected(frame):
            editor.selection.select_single(frame)
        self.begin()
        self._field = editor.field
        self._start = event
        self._origin_values, self._origin_keys = snapshot_origins(
            editor.selection.keyframes, editor.value_at, editor.key_info
        )
        self.state = DragState.ARMED
        return True

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        if self.state is DragState.ARMED:
            if not self._passed_threshold(event):
                return True
            self.state = DragState.DRAGGING
            logger.debug("Dragging %d keyframes of %s", len(self._origin_values), self._field)
        if self.state is not DragState.DRAGGING or event.value is None:
            return self.state is not DragState.IDLE
        self._update(event)
        return True

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if self.state is DragState.IDLE:
            return False
        if self.state is DragState.ARMED:
            self._reset()
            self.finish()
            return True
        if self.state is DragState.DRAGGING:
            if event.value is not None:
                self._update(event)
            move = self._move
            if move is None or move.is_noop:
                self.editor.preview.clear(self.name)
                self._reset()
                self.finish()
                return True
            self.state = DragState.COMMITTING
            field = self._field
            origin_values, origin_keys = self._origin_values, self._origin_keys
            self.finish()
            self.editor.schedule_commit(
                "Moving keyframes",
                lambda: self._commit(field, move, origin_values, origin_keys),
            )
        return True

    def cancel(self):
        self._reset()
        super().cancel()

    def display_selected_keyframes(self) -> list[int] | None:
        if self.state is not DragState.DRAGGING or self._move is None:
            return None
        return self._move.targets

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self._field = None
        self._start = None
        self._origin_values = {}
        self._origin_keys = {}
        self._move = None

    def _passed_threshold(self, event: PointerEvent) -> bool:
        start = self._start
        if start.has_client_position and event.has_client_position:
            distance = math.hypot(event.client_x - start.client_x, event.client_y - start.client_y)
            return distance >= self.editor.settings.drag_threshold_px
        if abs(event.frame - start.frame) > FRAME_THRESHOLD:
            return True
        if event.value is not None and abs(event.value - start.value) > VALUE_THRESHOLD:
            return True
        return False

    def _update(self, event: PointerEvent) -> None:
        editor = self.editor
        start = self._start
        delta_frame, delta_value = drag_offsets(start.frame, start.value, event.frame, event.value)
        if not math.isfinite(delta_value):
            return
        self._move = KeyframeMove(
            tuple(self._origin_values), delta_frame, delta_value, editor.total_frames
        )
        editor.preview.show_ghosts(self.name, ghost_points(self._move, self._origin_values))

        current = editor.current_frame
        origin = self._move.target_map.get(current)
        if origin is not None:
            editor.preview_pose(self._origin_values[origin] + delta_value)
        else:
            value = editor.value_at(current)
            if value is not None:
                editor.preview_pose(value)

    def _commit(self, field, move: KeyframeMove, origin_values, origin_keys) -> None:
        editor = self.editor
        self._reset()
        editor.preview.clear(self.name)
        store = editor.store
        limit = store.get_limit(field)
        before, after = build_move_entries(
            move,
            origin_values,
            origin_keys,
            lambda index: store.get_value(field, index),
            editor.key_info,
        )
        after = [entry.with_value(clamp_value(entry.value, limit)) for entry in after]
        focused = editor.selection.focused
        command = editor.commit_entries(before, after, "Move keyframes", field=field)
        if command is None:
            return
        targets = move.targets
        editor.selection.set_keyframes(
            targets, focused=move.target_of(focused) if focused is not None else None
        )
        span = union_recompute_range(
            editor.keyframe_indices(), list(move.origins) + targets, editor.total_frames
        )
        if span is not None:
            editor.request_recompute(*span)
        self.emit_command(command)
