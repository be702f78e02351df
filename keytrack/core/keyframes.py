"""Keyframe toggling, handle types and the current-frame value control."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import TYPE_CHECKING

from keytrack.core.entries import capture_store_entries, filter_changed
from keytrack.core.handles import (
    HandleType,
    handle_recompute_range,
    neighbour_keyframes,
    union_recompute_range,
)

if TYPE_CHECKING:
    from keytrack.core.editor import TrackEditor


logger = logging.getLogger(__name__)

MIN_STEP_UNIT = 1e-4
MAX_STEP_UNIT = 10.0


def contiguous_segments(frames: Iterable[int]) -> list[tuple[int, int]]:
    """Group sorted unique *frames* into inclusive runs of consecutive indices."""

    segments: list[tuple[int, int]] = []
    for frame in sorted(set(frames)):
        if segments and frame == segments[-1][1] + 1:
            segments[-1] = (segments[-1][0], frame)
        else:
            segments.append((frame, frame))
    return segments


class KeyframeController:
    """Keyframe edits of the editor's active field, each one undoable."""

    def __init__(self, editor: TrackEditor):
        self.editor = editor
        self._step_unit = MIN_STEP_UNIT

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @property
    def _store(self):
        return self.editor.store

    def _neighbour_span(self, field: str, first: int, last: int) -> tuple[int, int]:
        keys = self._store.keyframe_indices(field)
        prev_frame, _ = neighbour_keyframes(keys, first)
        _, next_frame = neighbour_keyframes(keys, last)
        start = prev_frame if prev_frame is not None else first
        end = next_frame if next_frame is not None else last
        return min(start, first), max(end, last)

    def _commit_store_edit(self, field: str, start: int, end: int, edit, name: str):
        """Run *edit* silently and record the diff over ``[start, end]``."""

        undo_store = self.editor.undo_store
        before = capture_store_entries(self._store, field, start, end)
        undo_store.run_without_record(edit)
        after = capture_store_entries(self._store, field, start, end)
        before, after = filter_changed(before, after)
        if not after:
            return None
        command = undo_store.push_entries(field, before, after, name=name)
        self.editor.events.field_changed.emit(field, start, end)
        logger.debug("%s on %s: %d frames changed in %d..%d", name, field, len(after), start, end)
        return command

    # ------------------------------------------------------------------
    # Keyframes
    # ------------------------------------------------------------------
    def toggle_keyframe(self, frame: int | None = None) -> bool | None:
        """Flip the keyed state of *frame* (default: current frame).

        Returns the new keyed state, or None when there is nothing to toggle.
        """

        editor = self.editor
        field = editor.field
        if field is None:
            return None
        total = editor.total_frames
        if frame is None:
            frame = editor.current_frame
        if not 0 <= frame < total:
            return None

        start, end = self._neighbour_span(field, frame, frame)
        self._commit_store_edit(
            field, start, end, lambda: self._store.toggle_keyframe(field, frame), "Toggle keyframe"
        )
        keyed = self._store.is_keyframe(field, frame)
        if keyed:
            editor.selection.select_single(frame)
        else:
            editor.selection.deselect(frame)
        keys = self._store.keyframe_indices(field)
        editor.request_recompute(*handle_recompute_range(keys, frame, total))
        return keyed

    def smooth_delete(self) -> bool:
        """Unkey the selected keyframes, else the range selection, else the
        current frame, and re-interpolate across the gaps in one undo step."""

        editor = self.editor
        field = editor.field
        total = editor.total_frames
        if field is None or total <= 0:
            return False

        segments = contiguous_segments(editor.selection.keyframes)
        if not segments and editor.selection.range is not None:
            segments = [editor.selection.range]
        if not segments:
            segments = [(editor.current_frame, editor.current_frame)]

        changed = False
        recompute_start = recompute_end = None
        with editor.undo_store.batch("Smooth delete"):
            for first, last in segments:
                first, last = max(0, first), min(total - 1, last)
                if first > last:
                    continue
                span_start, span_end = self._neighbour_span(field, first, last)
                keys = self._store.keyframe_indices(field)
                prev_frame, _ = neighbour_keyframes(keys, first)
                _, next_frame = neighbour_keyframes(keys, last)

                def edit(first=first, last=last, prev_frame=prev_frame, next_frame=next_frame):
                    for index in range(first, last + 1):
                        self._store.remove_keyframe(field, index)
                    self._store.apply_segment_between(field, prev_frame, next_frame)

                if self._commit_store_edit(field, span_start, span_end, edit, "Smooth delete"):
                    changed = True
                    recompute_start = span_start if recompute_start is None else min(recompute_start, span_start)
                    recompute_end = span_end if recompute_end is None else max(recompute_end, span_end)

        if not changed:
            return False
        editor.selection.clear()
        editor.request_recompute(
            max(0, recompute_start - 2), min(total - 1, recompute_end + 1), immediate=True
        )
        return True

    # ------------------------------------------------------------------
    # Handle types
    # ------------------------------------------------------------------
    def _handle_targets(self, targets: Iterable[int] | None) -> list[int]:
        editor = self.editor
        if targets is None:
            targets = editor.selection.keyframes
            if not targets and editor.selection.focused is not None:
                targets = [editor.selection.focused]
        field = editor.field
        return sorted({frame for frame in targets if self._store.is_keyframe(field, frame)})

    def set_handle_type(self, handle_type: HandleType, targets: Iterable[int] | None = None) -> bool:
        editor = self.editor
        field = editor.field
        if field is None:
            return False
        handle_type = HandleType(handle_type)
        frames = self._handle_targets(targets)
        if not frames:
            return False

        start, end = self._neighbour_span(field, frames[0], frames[-1])

        def edit():
            if handle_type is HandleType.AUTO:
                self._store.recompute_auto_tangents(field, frames)
                return
            for frame in frames:
                self._store.set_handle_type(field, frame, handle_type)

        self._commit_store_edit(field, start, end, edit, f"Handle type: {handle_type.value}")
        span = union_recompute_range(self._store.keyframe_indices(field), frames, editor.total_frames)
        if span is not None:
            editor.request_recompute(*span)
        return True

    def current_handle_type(self) -> HandleType:
        editor = self.editor
        field = editor.field
        if field is None:
            return HandleType.AUTO
        frame = editor.selection.focused
        if frame is None and editor.selection.keyframes:
            frame = editor.selection.keyframes[0]
        if frame is None:
            return HandleType.AUTO
        handle = self._store.get_handle(field, frame)
        return handle.type if handle is not None else HandleType.AUTO

    def cycle_handle_type(self) -> HandleType | None:
        focused = self.editor.selection.focused
        if focused is None:
            return None
        next_type = self.current_handle_type().next()
        if not self.set_handle_type(next_type, [focused]):
            return None
        return next_type

    # ------------------------------------------------------------------
    # Current frame value
    # ------------------------------------------------------------------
    @property
    def step_unit(self) -> float:
        return self._step_unit

    @step_unit.setter
    def step_unit(self, value: float) -> None:
        if not math.isfinite(value):
            return
        self._step_unit = min(MAX_STEP_UNIT, max(MIN_STEP_UNIT, float(value)))

    def current_value(self) -> float:
        editor = self.editor
        if editor.field is None:
            return 0.0
        value = self._store.get_value(editor.field, editor.current_frame)
        return value if value is not None and math.isfinite(value) else 0.0

    def is_current_editable(self) -> bool:
        editor = self.editor
        return editor.field is not None and self._store.is_keyframe(editor.field, editor.current_frame)

    def set_current_value(self, value: float) -> bool:
        """Set the value of the current frame; only keyframes are editable."""

        editor = self.editor
        field = editor.field
        if not self.is_current_editable():
            return False
        if value is None or not math.isfinite(value):
            return False
        frame = editor.current_frame
        command = self._commit_store_edit(
            field,
            frame,
            frame,
            lambda: self._store.set_value(field, frame, float(value)),
            "Set value",
        )
        if command is None:
            return False
        keys = self._store.keyframe_indices(field)
        editor.request_recompute(*handle_recompute_range(keys, frame, editor.total_frames))
        return True

    def step_current_value(self, direction: int) -> bool:
        if not direction:
            return False
        step = self._step_unit if direction > 0 else -self._step_unit
        return self.set_current_value(self.current_value() + step)
