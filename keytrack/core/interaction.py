"""Pointer input in chart coordinates and the one-active-tool rule."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

if TYPE_CHECKING:
    from keytrack.tools.basetool import BaseTool


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointerEvent:
    """Pointer position already mapped into frame/value space.

    ``frame`` is the fractional 0-based frame under the cursor and ``value``
    the value under it. ``client_x``/``client_y`` are screen pixels when the
    host knows them; drag thresholds fall back to logical units otherwise.
    """

    frame: float
    value: float | None = None
    client_x: float | None = None
    client_y: float | None = None
    ctrl: bool = False
    alt: bool = False
    shift: bool = False

    @property
    def has_modifiers(self) -> bool:
        return self.ctrl or self.alt or self.shift

    @property
    def frame_index(self) -> int:
        return int(round(self.frame))

    @property
    def has_client_position(self) -> bool:
        return self.client_x is not None and self.client_y is not None


class InteractionArbiter(QObject):
    """Grants the pointer to exactly one tool at a time."""

    active_changed = Signal(object)

    def __init__(self, before_begin: Callable[[], None] | None = None, parent: QObject | None = None):
        super().__init__(parent)
        self._active: BaseTool | None = None
        self._before_begin = before_begin

    @property
    def active(self) -> "BaseTool | None":
        return self._active

    def is_active(self, tool: "BaseTool") -> bool:
        return self._active is tool

    def begin(self, tool: "BaseTool") -> None:
        """Make *tool* the active one, cancelling whichever tool held the pointer."""

        if self._before_begin is not None:
            self._before_begin()
        previous = self._active
        if previous is tool:
            return
        if previous is not None:
            logger.debug("Cancelling %s for %s", previous.name, tool.name)
            self._active = None
            previous.cancel()
        self._active = tool
        self.active_changed.emit(tool)

    def end(self, tool: "BaseTool") -> None:
        if self._active is not tool:
            return
        self._active = None
        self.active_changed.emit(None)

    def cancel_active(self) -> None:
        tool = self._active
        if tool is None:
            return
        self._active = None
        tool.cancel()
        self.active_changed.emit(None)
