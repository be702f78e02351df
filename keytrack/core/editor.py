"""Engine facade wiring the viewport, selection, preview and undo of one track."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import replace

from PySide6.QtCore import QObject

from keytrack.core.curve import clamp_handle
from keytrack.core.entries import UndoEntry, filter_changed
from keytrack.core.events import EventBus
from keytrack.core.frame_store import FrameStore, read_key_info
from keytrack.core.handles import HandleSide, KeyInfo, UNKEYED
from keytrack.core.interaction import InteractionArbiter
from keytrack.core.keyframes import KeyframeController
from keytrack.core.preview import PreviewSlot
from keytrack.core.render import DisplayOptions, HandleDisplay, NullRenderSink, RenderSink
from keytrack.core.scheduler import (
    ANIMATION_FRAME_MS,
    ClickGuard,
    Debouncer,
    QtScheduler,
    RangeThrottler,
    Scheduler,
    TimerHandle,
)
from keytrack.core.selection import SelectionModel
from keytrack.core.settings_controller import EditorSettings
from keytrack.core.undo import UndoStore
from keytrack.core.view_state import ViewStateCache
from keytrack.core.viewport import ChartGeometry, WindowController
from keytrack.core.y_axis import YAxisController


logger = logging.getLogger(__name__)


class TrackEditor(QObject):
    """Owns the per-track editing state and is passed to every tool.

    Only one field is active at a time. The editor keeps a read-only
    snapshot of its values, invalidated on every ``field_changed``.
    """

    def __init__(
        self,
        store: FrameStore,
        *,
        undo_store: UndoStore | None = None,
        settings: EditorSettings | None = None,
        scheduler: Scheduler | None = None,
        events: EventBus | None = None,
        render: RenderSink | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.store = store
        self.settings = settings if settings is not None else EditorSettings()
        self.events = events or getattr(store, "events", None) or EventBus(self)
        if hasattr(store, "events") and store.events is None:
            # per-write notifications of an unbound store go to this editor
            store.events = self.events
        self.scheduler = scheduler or QtScheduler(self)
        self.undo_store = undo_store or UndoStore(store, self.events)
        self.render = render or NullRenderSink()

        self.window = WindowController(
            store.get_frame_count(),
            min_frames=self.settings.min_display_frames,
            max_frames=self.settings.max_display_frames,
        )
        self.y_axis = YAxisController(self.settings.min_half_range)
        self.y_flipped = False
        self.geometry: ChartGeometry | None = None
        self.view_states = ViewStateCache()
        self.selection = SelectionModel()
        self.preview = PreviewSlot()
        self.arbiter = InteractionArbiter(before_begin=self.flush_pending_commit)
        self.keyframes = KeyframeController(self)

        # 3D pose preview of the current frame while a tool previews values
        self.pose_preview: Callable[[str, float], None] | None = None

        self._field: str | None = None
        self._current_frame = 0
        self._values_cache: list[float] | None = None
        self._pending_commit: tuple[TimerHandle, str, Callable[[], None]] | None = None

        self._recompute = RangeThrottler(
            self.scheduler, self.settings.recompute_delay_ms, self._emit_recompute
        )
        self._refresh_debouncer = Debouncer(self.scheduler, ANIMATION_FRAME_MS, self.refresh)
        self.click_guard = ClickGuard(self.scheduler, self.settings.click_guard_ms)

        self.events.field_changed.connect(self._on_field_changed)
        self.window.window_changed.connect(self._on_window_changed)
        self.y_axis.range_changed.connect(self._on_y_axis_changed)
        self.selection.selection_changed.connect(self._on_selection_changed)
        self.preview.changed.connect(self.request_refresh)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------
    @property
    def field(self) -> str | None:
        return self._field

    @property
    def total_frames(self) -> int:
        return self.store.get_frame_count()

    @property
    def limit(self) -> tuple[float, float] | None:
        if self._field is None:
            return None
        return self.store.get_limit(self._field)

    def limit_lines(self) -> tuple[float, ...]:
        limit = self.limit
        return tuple(limit) if limit is not None else ()

    def values(self) -> list[float]:
        """Snapshot of the active field's committed values."""

        if self._field is None:
            return []
        if self._values_cache is None:
            self._values_cache = list(self.store.get_values(self._field))
        return self._values_cache

    def value_at(self, index: int) -> float | None:
        values = self.values()
        if not 0 <= index < len(values):
            return None
        return values[index]

    def key_info(self, index: int) -> KeyInfo:
        if self._field is None or not 0 <= index < self.total_frames:
            return UNKEYED
        return read_key_info(self.store, self._field, index)

    def keyframe_indices(self) -> list[int]:
        if self._field is None:
            return []
        return self.store.keyframe_indices(self._field)

    def load_field(self, field: str) -> bool:
        """Make *field* active, restoring its cached viewport when revisited."""

        if not self.store.has_field(field):
            logger.warning("Cannot load unknown field %r", field)
            return False
        if field == self._field:
            return True
        self.flush_pending_commit()
        self.arbiter.cancel_active()
        self.preview.clear()
        self.view_states.save(self._field, self.window, self.y_axis)

        self._field = field
        self._values_cache = None
        self.selection.clear()
        self.window.set_total(self.total_frames)
        if not self.view_states.restore(field, self.window, self.y_axis):
            self.window.reset()
            self.y_axis.reset()
            self.y_axis.fit(list(self.values()) + list(self.limit_lines()))
        logger.info("Loaded field %s (%d frames)", field, self.total_frames)
        self.events.active_field_changed.emit(field)
        self.refresh()
        return True

    def unload_field(self) -> None:
        if self._field is None:
            return
        self.flush_pending_commit()
        self.arbiter.cancel_active()
        self.preview.clear()
        self.view_states.save(self._field, self.window, self.y_axis)
        logger.info("Unloaded field %s", self._field)
        self._field = None
        self._values_cache = None
        self.selection.clear()
        self._refresh_debouncer.cancel()
        self.render.set_ghost_points(None)
        self.render.set_keyframes([])
        self.render.set_selection_range(None)
        self.events.active_field_changed.emit(None)

    # ------------------------------------------------------------------
    # Current frame
    # ------------------------------------------------------------------
    @property
    def current_frame(self) -> int:
        return self._current_frame

    def set_current_frame(self, frame: int) -> bool:
        total = self.total_frames
        if total <= 0:
            return False
        frame = max(0, min(total - 1, int(frame)))
        if frame == self._current_frame:
            return False
        self._current_frame = frame
        self.events.current_frame_changed.emit(frame)
        self.request_refresh()
        return True

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    def set_chart_geometry(self, geometry: ChartGeometry | None) -> None:
        self.geometry = geometry

    def set_y_flipped(self, flipped: bool) -> None:
        self.y_flipped = bool(flipped)
        if self.geometry is not None:
            self.geometry.y_flipped = self.y_flipped
        self.request_refresh()

    def fit_y_axis(self) -> None:
        """Drop any user zoom/pan of the y axis and refit to the data."""

        self.y_axis.fit(list(self.values()) + list(self.limit_lines()))
        self.request_refresh()

    def focus_selection(self) -> bool:
        keys = self.selection.keyframes
        if keys:
            return self.window.focus_frames(keys[0], keys[-1])
        if self.selection.range is not None:
            return self.window.focus_frames(*self.selection.range)
        return False

    def request_refresh(self) -> None:
        self._refresh_debouncer.request()

    def refresh(self) -> None:
        """Push the display state of the active field to the render sink."""

        self._refresh_debouncer.cancel()
        field = self._field
        if field is None:
            return
        self.window.set_total(self.total_frames)
        start, size = self.window.start, self.window.size
        end = start + size - 1
        committed = self.values()
        preview = self.preview

        data: list[float | None] = []
        for index in range(start, end + 1):
            value = committed[index] if index < len(committed) else None
            value = preview.value_at(index, value)
            data.append(value if value is not None and math.isfinite(value) else None)

        if self.y_axis.needs_fit():
            self.y_axis.fit(list(committed) + list(self.limit_lines()))
        y_min, y_max = self.y_axis.get_range()
        self.render.apply_options(
            DisplayOptions(
                y_min=y_min,
                y_max=y_max,
                data=data,
                x_labels=[index + 1 for index in range(start, end + 1)],
                limit_lines=self.limit_lines(),
            )
        )
        current = self._current_frame
        self.render.set_marker(current + 1 if self.window.contains(current) else None)

        keyed: list[int] = []
        handles: dict[int, HandleDisplay] = {}
        for index in range(start, end + 1):
            info = preview.key_at(index, self.key_info(index))
            if not info.is_key:
                continue
            relative = index - start
            keyed.append(relative)
            if info.handle is None:
                continue
            handle = clamp_handle(info.handle, index, self.total_frames)
            points = {}
            for side in HandleSide:
                point = handle.point(side)
                if point is not None:
                    points[side] = (point.frame_at(index) - start, point.value)
            handles[relative] = HandleDisplay(points.get(HandleSide.IN), points.get(HandleSide.OUT))
        self.render.set_keyframes(keyed)
        self.render.set_handles(handles)

        selected = self._displayed_selection()
        self.render.set_selected_keyframes([frame - start for frame in selected if start <= frame <= end])
        self.render.set_selection_range(self._displayed_range(start, end))

        ghosts = preview.ghosts
        if ghosts is None:
            self.render.set_ghost_points(None)
        else:
            self.render.set_ghost_points(
                [replace(point, frame=point.frame - start) for point in ghosts]
            )

    def _displayed_selection(self) -> list[int]:
        tool = self.arbiter.active
        if tool is not None:
            frames = tool.display_selected_keyframes()
            if frames is not None:
                return list(frames)
        return self.selection.keyframes

    def _displayed_range(self, start: int, end: int) -> tuple[int, int] | None:
        overlay = self.preview.overlay
        selection = overlay.selection if overlay is not None and overlay.selection else None
        if selection is None:
            tool = self.arbiter.active
            selection = tool.display_selection_range() if tool is not None else None
        if selection is None:
            selection = self.selection.range
        if selection is None:
            return None
        first, last = max(start, selection[0]), min(end, selection[1])
        if first > last:
            return None
        return first - start, last - start

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------
    def commit_entries(
        self,
        before: Sequence[UndoEntry],
        after: Sequence[UndoEntry],
        name: str,
        *,
        field: str | None = None,
    ):
        """Filter, apply and record one undoable edit; returns the command."""

        field = field or self._field
        if field is None:
            return None
        before, after = filter_changed(before, after)
        if not after:
            logger.debug("%s on %s changed nothing", name, field)
            return None
        self.undo_store.apply_entries(field, after)
        return self.undo_store.push_entries(field, before, after, name=name)

    def schedule_commit(self, label: str, commit: Callable[[], None]) -> None:
        """Run *commit* after the busy delay, announcing *label* meanwhile."""

        self.flush_pending_commit()
        delay = self.settings.commit_delay_ms
        if delay <= 0:
            self._run_commit(label, commit)
            return
        self.events.busy_changed.emit(label)
        handle = self.scheduler.call_later(delay, self._run_pending_commit)
        self._pending_commit = (handle, label, commit)

    @property
    def has_pending_commit(self) -> bool:
        return self._pending_commit is not None

    def flush_pending_commit(self) -> None:
        pending = self._pending_commit
        if pending is None:
            return
        self.scheduler.cancel(pending[0])
        self._run_pending_commit()

    def _run_pending_commit(self) -> None:
        pending, self._pending_commit = self._pending_commit, None
        if pending is None:
            return
        _, label, commit = pending
        try:
            self._run_commit(label, commit)
        finally:
            self.events.busy_changed.emit("")

    def _run_commit(self, label: str, commit: Callable[[], None]) -> None:
        logger.debug("Committing %s", label)
        commit()
        self.refresh()

    def request_recompute(self, start: int, end: int, *, immediate: bool = False) -> None:
        total = self.total_frames
        if self._field is None or total <= 0:
            return
        start = max(0, min(total - 1, int(start)))
        end = max(0, min(total - 1, int(end)))
        self._recompute.request(start, end, immediate=immediate)

    def flush_recompute(self) -> None:
        self._recompute.flush()

    def _emit_recompute(self, start: int, end: int) -> None:
        if self._field is not None:
            self.events.recompute_requested.emit(self._field, start, end)

    def preview_pose(self, value: float) -> None:
        if self.pose_preview is None or self._field is None:
            return
        try:
            self.pose_preview(self._field, value)
        except Exception:
            logger.exception("Pose preview failed for %s", self._field)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def undo(self) -> bool:
        self.flush_pending_commit()
        self.arbiter.cancel_active()
        command = self.undo_store.undo()
        self.refresh()
        return command is not None

    def redo(self) -> bool:
        self.flush_pending_commit()
        self.arbiter.cancel_active()
        command = self.undo_store.redo()
        self.refresh()
        return command is not None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def _on_field_changed(self, field: str, start: int, end: int) -> None:
        if field != self._field:
            return
        self._values_cache = None
        self.request_refresh()

    def _on_window_changed(self, start: int, size: int) -> None:
        self.view_states.save(self._field, self.window, self.y_axis)
        if self._field is not None:
            self.events.window_changed.emit(self._field, start, size)
        self.request_refresh()

    def _on_y_axis_changed(self, minimum: float, maximum: float) -> None:
        self.view_states.save(self._field, self.window, self.y_axis)
        if self._field is not None:
            self.events.y_axis_changed.emit(self._field, minimum, maximum)

    def _on_selection_changed(self) -> None:
        if self._field is not None:
            self.events.selection_changed.emit(self._field)
        self.request_refresh()
