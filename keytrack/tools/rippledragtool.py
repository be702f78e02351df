from __future__ import annotations

import logging
import math

from keytrack.core.entries import capture_store_entries, filter_changed
from keytrack.core.interaction import PointerEvent
from keytrack.core.ripple import (
    SpreadPolicy,
    clamp_to_limit,
    ripple_adjust,
    ripple_slice_bounds,
)
from keytrack.core.scheduler import Debouncer
from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)


class RippleDragTool(BaseTool):
    """Joint drag that spreads the change of one frame over its neighbours.

    Used from the 3D view (``start``/``move_to``/``end``) as well as from the
    chart through the mouse handlers. Writes are debounced; each new move
    pushes the pending write back.
    """

    name = "Ripple"
    shortcut = "p"
    category = "edit"

    def __init__(self, editor):
        super().__init__(editor)
        settings = editor.settings
        self.before = SpreadPolicy.from_settings(
            settings.ripple_before_mode, settings.ripple_before_radius
        )
        self.after = SpreadPolicy.from_settings(
            settings.ripple_after_mode, settings.ripple_after_radius
        )
        self._apply = Debouncer(
            editor.scheduler, settings.ripple_apply_delay_ms, self._write, restart=True
        )
        self._field: str | None = None
        self._anchor: int | None = None
        self._bounds: tuple[int, int] | None = None
        self._before = []

    @property
    def active(self) -> bool:
        return self._anchor is not None

    @property
    def bounds(self) -> tuple[int, int] | None:
        return self._bounds

    def set_policies(self, before: SpreadPolicy, after: SpreadPolicy) -> None:
        self.before = before
        self.after = after

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def start(self, frame: int | None = None) -> bool:
        editor = self.editor
        field = editor.field
        total = editor.total_frames
        if field is None or total <= 0:
            return False
        if frame is None:
            frame = editor.current_frame
        if not 0 <= frame < total:
            return False
        self.begin()
        self._field = field
        self._anchor = int(frame)
        self._bounds = ripple_slice_bounds(self._anchor, total, self.before, self.after)
        self._before = capture_store_entries(editor.store, field, *self._bounds)
        return True

    def move_to(self, value: float) -> bool:
        """Propose *value* for the anchor frame; the neighbours follow."""

        if not self.active or value is None or not math.isfinite(value):
            return False
        start, _ = self._bounds
        original = [entry.value for entry in self._before]
        anchor_value = original[self._anchor - start]
        if not math.isfinite(anchor_value):
            return False
        adjusted = ripple_adjust(
            original, self._anchor - start, value - anchor_value, self.before, self.after
        )
        self._apply.request(clamp_to_limit(adjusted, self.editor.limit))
        return True

    def end(self):
        """Flush the pending write and record the session as one undo step."""

        if not self.active:
            return None
        self._apply.flush()
        editor = self.editor
        field = self._field
        start, end = self._bounds
        after = capture_store_entries(editor.store, field, start, end)
        before, after = filter_changed(self._before, after)
        command = None
        if after:
            command = editor.undo_store.push_entries(field, before, after, name="Ripple edit")
            editor.request_recompute(start, end)
            logger.debug("Ripple on %s:%d changed %d frames", field, self._anchor, len(after))
        self._reset()
        self.finish()
        self.emit_command(command)
        return command

    def cancel(self):
        self._apply.cancel()
        if self._field is not None and self._before:
            self.editor.undo_store.apply_entries(self._field, self._before)
        self._reset()
        super().cancel()

    def _reset(self) -> None:
        self._field = None
        self._anchor = None
        self._bounds = None
        self._before = []

    def _write(self, values: list[float]) -> None:
        if not self.active:
            return
        entries = [
            entry.with_value(value) if math.isfinite(value) else entry
            for entry, value in zip(self._before, values)
        ]
        self.editor.undo_store.apply_entries(self._field, entries)

    # ------------------------------------------------------------------
    # Mouse
    # ------------------------------------------------------------------
    def mousePressEvent(self, event: PointerEvent) -> bool:
        return self.start(event.frame_index)

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        return self.move_to(event.value)

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        if not self.active:
            return False
        if event.value is not None:
            self.move_to(event.value)
        self.end()
        return True
