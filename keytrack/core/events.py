"""Explicit change notifications shared by the editor and its collaborators."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal


class EventBus(QObject):
    """Editor-wide notifications.

    Committed edits emit ``field_changed`` once for their whole span; only
    writes made outside a no-record batch announce themselves one by one.

    ``field_changed`` carries ``(field, start, end)`` of the rewritten span.
    ``recompute_requested`` asks whoever owns derived geometry (3D position
    lines, robot pose) to rebuild ``[start, end]`` of ``field``.
    """

    field_changed = Signal(str, int, int)
    selection_changed = Signal(str)
    window_changed = Signal(str, int, int)
    y_axis_changed = Signal(str, float, float)
    current_frame_changed = Signal(int)
    recompute_requested = Signal(str, int, int)
    busy_changed = Signal(str)
    active_field_changed = Signal(object)

