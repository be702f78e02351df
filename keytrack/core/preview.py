"""Shared slot for the single non-committed preview of a track."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Union

from PySide6.QtCore import QObject, Signal

from keytrack.core.handles import KeyInfo
from keytrack.core.keyframe_moves import GhostPoint


@dataclass(frozen=True)
class Inactive:
    pass


@dataclass(frozen=True)
class OverlayPreview:
    """Getter overlay valid only inside ``[affected_start, affected_end]``."""

    owner: str
    affected_start: int
    affected_end: int
    value_getter: Callable[[int], float | None]
    key_getter: Callable[[int], KeyInfo | None] | None = None
    selection: tuple[int, int] | None = None

    def covers(self, index: int) -> bool:
        return self.affected_start <= index <= self.affected_end


@dataclass(frozen=True)
class GhostPreview:
    owner: str
    points: tuple[GhostPoint, ...]


PreviewState = Union[Inactive, OverlayPreview, GhostPreview]

INACTIVE = Inactive()


class PreviewSlot(QObject):
    """Holds at most one preview; writing a new one replaces the old."""

    changed = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._state: PreviewState = INACTIVE

    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def is_active(self) -> bool:
        return not isinstance(self._state, Inactive)

    @property
    def owner(self) -> str | None:
        if isinstance(self._state, Inactive):
            return None
        return self._state.owner

    @property
    def overlay(self) -> OverlayPreview | None:
        return self._state if isinstance(self._state, OverlayPreview) else None

    @property
    def ghosts(self) -> tuple[GhostPoint, ...] | None:
        return self._state.points if isinstance(self._state, GhostPreview) else None

    def show_overlay(
        self,
        owner: str,
        affected_start: int,
        affected_end: int,
        value_getter: Callable[[int], float | None],
        key_getter: Callable[[int], KeyInfo | None] | None = None,
        selection: tuple[int, int] | None = None,
    ) -> None:
        if affected_end < affected_start:
            affected_start, affected_end = affected_end, affected_start
        self._set(
            OverlayPreview(
                owner,
                int(affected_start),
                int(affected_end),
                value_getter,
                key_getter,
                selection,
            )
        )

    def show_ghosts(self, owner: str, points: Sequence[GhostPoint]) -> None:
        self._set(GhostPreview(owner, tuple(points)))

    def clear(self, owner: str | None = None) -> bool:
        """Clear the slot; with *owner*, only when that owner holds it."""

        if not self.is_active:
            return False
        if owner is not None and self.owner != owner:
            return False
        self._set(INACTIVE)
        return True

    def value_at(self, index: int, fallback: float | None) -> float | None:
        overlay = self.overlay
        if overlay is None or not overlay.covers(index):
            return fallback
        value = overlay.value_getter(index)
        return fallback if value is None else value

    def key_at(self, index: int, fallback: KeyInfo) -> KeyInfo:
        overlay = self.overlay
        if overlay is None or overlay.key_getter is None or not overlay.covers(index):
            return fallback
        info = overlay.key_getter(index)
        return fallback if info is None else info

    def _set(self, state: PreviewState) -> None:
        self._state = state
        self.changed.emit()
