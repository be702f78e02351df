"""Per-field cache of the viewport and y-axis state."""

from __future__ import annotations

from dataclasses import dataclass

from keytrack.core.viewport import WindowController
from keytrack.core.y_axis import YAxisController, YAxisRange


@dataclass(frozen=True)
class FieldViewState:
    start: int
    size: int
    y_axis: YAxisRange


class ViewStateCache:
    """Window and axis state keyed by field name, kept after a field is deselected."""

    def __init__(self):
        self._states: dict[str, FieldViewState] = {}

    def __contains__(self, field: str) -> bool:
        return field in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, field: str) -> FieldViewState | None:
        return self._states.get(field)

    def save(self, field: str | None, window: WindowController, y_axis: YAxisController) -> None:
        if not field:
            return
        self._states[field] = FieldViewState(window.start, window.size, y_axis.state)

    def restore(self, field: str | None, window: WindowController, y_axis: YAxisController) -> bool:
        """Apply the cached state of *field*; returns False when none is cached."""

        state = self._states.get(field) if field else None
        if state is None:
            return False
        window.set_window(state.start, state.size)
        y_axis.restore(state.y_axis)
        return True

    def forget(self, field: str) -> None:
        self._states.pop(field, None)

    def clear(self) -> None:
        self._states.clear()
