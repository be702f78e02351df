"""Boundary towards whatever draws the track chart."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from keytrack.core.keyframe_moves import GhostPoint


@dataclass(frozen=True)
class HandleDisplay:
    """Control points relative to the window start: ``(frame, value)`` pairs."""

    in_: tuple[float, float] | None = None
    out: tuple[float, float] | None = None


@dataclass(frozen=True)
class DisplayOptions:
    y_min: float
    y_max: float
    data: list[float | None]
    x_labels: list[int]
    limit_lines: tuple[float, ...] = field(default_factory=tuple)


class RenderSink(Protocol):
    """Receives display state; all frame indices are relative to the window start."""

    def apply_options(self, options: DisplayOptions) -> None: ...

    def set_marker(self, label: int | None) -> None: ...

    def set_keyframes(self, indices: Sequence[int]) -> None: ...

    def set_handles(self, handles: dict[int, HandleDisplay]) -> None: ...

    def set_selected_keyframes(self, indices: Sequence[int]) -> None: ...

    def set_selection_range(self, selection: tuple[int, int] | None) -> None: ...

    def set_ghost_points(self, points: Sequence[GhostPoint] | None) -> None: ...


class NullRenderSink:
    """Sink that drops everything, used when no chart is attached."""

    def apply_options(self, options: DisplayOptions) -> None:
        pass

    def set_marker(self, label: int | None) -> None:
        pass

    def set_keyframes(self, indices: Sequence[int]) -> None:
        pass

    def set_handles(self, handles: dict[int, HandleDisplay]) -> None:
        pass

    def set_selected_keyframes(self, indices: Sequence[int]) -> None:
        pass

    def set_selection_range(self, selection: tuple[int, int] | None) -> None:
        pass

    def set_ghost_points(self, points: Sequence[GhostPoint] | None) -> None:
        pass
