from __future__ import annotations

from typing import TYPE_CHECKING

from PySide6.QtCore import QObject, Signal

from keytrack.core.interaction import PointerEvent

if TYPE_CHECKING:
    from keytrack.core.editor import TrackEditor


class BaseTool(QObject):
    """Abstract base class for all track tools.

    Mouse handlers return True when the tool consumed the event. A tool that
    needs the pointer for more than one event calls :meth:`begin`, which
    cancels whichever tool held it before.
    """

    name = None
    shortcut = None
    category = None
    # lower values are offered a press first
    priority = 50
    command_generated = Signal(object)

    def __init__(self, editor: TrackEditor):
        super().__init__()
        self.editor = editor

    def mousePressEvent(self, event: PointerEvent) -> bool:
        return False

    def mouseMoveEvent(self, event: PointerEvent) -> bool:
        return False

    def mouseReleaseEvent(self, event: PointerEvent) -> bool:
        return False

    def mouseHoverEvent(self, event: PointerEvent) -> bool:
        return False

    def activate(self):
        """Called when the tool becomes the host's current tool."""
        pass

    def deactivate(self):
        """Called when the tool is switched."""
        if self.is_active:
            self.editor.arbiter.cancel_active()

    def cancel(self):
        """Drop any in-flight interaction and its preview without committing."""
        self.editor.preview.clear(self.name)

    # Interaction helpers -------------------------------------------------
    @property
    def is_active(self) -> bool:
        return self.editor.arbiter.is_active(self)

    def begin(self) -> None:
        self.editor.arbiter.begin(self)

    def finish(self) -> None:
        self.editor.arbiter.end(self)

    def emit_command(self, command) -> None:
        if command is not None:
            self.command_generated.emit(command)

    # Display hooks -------------------------------------------------------
    def display_selected_keyframes(self) -> list[int] | None:
        """Keyframes to draw as selected while the tool is active."""
        return None

    def display_selection_range(self) -> tuple[int, int] | None:
        return None
