"""Keyframe and range selection of the active field."""

from __future__ import annotations

from collections.abc import Iterable

from PySide6.QtCore import QObject, Signal


class SelectionModel(QObject):
    """Selected keyframes, or a committed frame range, never both.

    The focused keyframe is the one that handle-type edits and the value
    control address when nothing else is selected.
    """

    selection_changed = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._keyframes: set[int] = set()
        self._focused: int | None = None
        self._range: tuple[int, int] | None = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def keyframes(self) -> list[int]:
        return sorted(self._keyframes)

    @property
    def count(self) -> int:
        return len(self._keyframes)

    @property
    def focused(self) -> int | None:
        return self._focused

    @property
    def range(self) -> tuple[int, int] | None:
        return self._range

    def is_selected(self, frame: int) -> bool:
        return frame in self._keyframes

    def is_empty(self) -> bool:
        return not self._keyframes and self._range is None

    # ------------------------------------------------------------------
    # Keyframe selection
    # ------------------------------------------------------------------
    def select_single(self, frame: int) -> None:
        self._range = None
        self._keyframes = {int(frame)}
        self._focused = int(frame)
        self.selection_changed.emit()

    def toggle(self, frame: int) -> bool:
        """Flip *frame* in the set; returns whether it is selected afterwards."""

        frame = int(frame)
        self._range = None
        if frame in self._keyframes:
            self._keyframes.discard(frame)
            if self._focused == frame:
                self._focused = max(self._keyframes) if self._keyframes else None
            selected = False
        else:
            self._keyframes.add(frame)
            self._focused = frame
            selected = True
        self.selection_changed.emit()
        return selected

    def set_keyframes(self, frames: Iterable[int], focused: int | None = None) -> None:
        self._range = None
        self._keyframes = {int(frame) for frame in frames}
        if focused is not None and focused in self._keyframes:
            self._focused = int(focused)
        elif self._focused not in self._keyframes:
            self._focused = max(self._keyframes) if self._keyframes else None
        self.selection_changed.emit()

    def deselect(self, frame: int) -> None:
        if frame not in self._keyframes and self._focused != frame:
            return
        self._keyframes.discard(frame)
        if self._focused == frame:
            self._focused = None
        self.selection_changed.emit()

    def clear_focus(self) -> None:
        if self._focused is None:
            return
        self._focused = None
        self.selection_changed.emit()

    def clear_keyframes(self) -> None:
        if not self._keyframes and self._focused is None:
            return
        self._keyframes.clear()
        self._focused = None
        self.selection_changed.emit()

    # ------------------------------------------------------------------
    # Range selection
    # ------------------------------------------------------------------
    def set_range(self, start: int, end: int) -> None:
        start, end = sorted((int(start), int(end)))
        self._keyframes.clear()
        self._focused = None
        self._range = (start, end)
        self.selection_changed.emit()

    def clear_range(self) -> None:
        if self._range is None:
            return
        self._range = None
        self.selection_changed.emit()

    def clear(self) -> None:
        if self.is_empty() and self._focused is None:
            return
        self._keyframes.clear()
        self._focused = None
        self._range = None
        self.selection_changed.emit()
