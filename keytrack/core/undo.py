from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from contextlib import contextmanager, nullcontext
from typing import TypeVar

from PySide6.QtCore import QObject, Signal

from keytrack.core.command import ApplyEntriesCommand, Command, CompositeCommand, RangeMoveCommand
from keytrack.core.entries import UndoEntry, entries_span
from keytrack.core.events import EventBus
from keytrack.core.frame_store import FrameStore


logger = logging.getLogger(__name__)

T = TypeVar("T")


class UndoManager:
    def __init__(self):
        self.undo_stack: list[Command] = []
        self.redo_stack: list[Command] = []

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()

    def add_command(self, command: Command):
        """
        Adds a command to the undo stack.
        This is called after a command has been executed.
        """
        self.undo_stack.append(command)
        self.redo_stack.clear()

    def undo(self):
        """
        Undoes the last command.
        """
        if not self.undo_stack:
            return None
        command = self.undo_stack.pop()
        command.undo()
        self.redo_stack.append(command)
        return command

    def redo(self):
        """
        Redoes the last undone command.
        """
        if not self.redo_stack:
            return None
        command = self.redo_stack.pop()
        command.execute()
        self.undo_stack.append(command)
        return command


class UndoStore(QObject):
    """Commits entry lists to a frame store and records them as undoable commands.

    ``run_without_record`` suspends the store's per-write notifications; each
    commit then announces itself with one ``field_changed`` covering its span.
    """

    undo_stack_changed = Signal()

    def __init__(
        self,
        store: FrameStore,
        events: EventBus | None = None,
        undo_manager: UndoManager | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.store = store
        self.events = events
        self.undo_manager = undo_manager or UndoManager()
        self.is_recording = False
        self.recorded_commands: list[Command] = []
        self._silent_depth = 0

    # ------------------------------------------------------------------
    # Batching
    # ------------------------------------------------------------------
    @property
    def recording_suppressed(self) -> bool:
        return self._silent_depth > 0

    def run_without_record(self, fn: Callable[[], T]) -> T:
        suspend = getattr(self.store, "suspend_notifications", None)
        self._silent_depth += 1
        try:
            with suspend() if suspend is not None else nullcontext():
                return fn()
        finally:
            self._silent_depth -= 1

    @contextmanager
    def batch(self, name: str = "Composite"):
        """Collect every command pushed inside the block into one undo step."""

        if self.is_recording:
            yield
            return
        self.is_recording = True
        self.recorded_commands = []
        try:
            yield
        finally:
            self.is_recording = False
            commands, self.recorded_commands = self.recorded_commands, []
            if commands:
                self._add(CompositeCommand(commands, name=name))

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------
    def apply_entries(self, field: str, entries: Sequence[UndoEntry]) -> None:
        """Write value, key flag and handle of every entry in one silent batch."""

        if not entries:
            return
        store = self.store

        def write() -> None:
            for entry in entries:
                store.set_value(field, entry.index, entry.value)
                if entry.is_key:
                    store.add_keyframe(field, entry.index)
                    if entry.handle is not None:
                        store.set_handle(field, entry.index, entry.handle)
                else:
                    store.remove_keyframe(field, entry.index)

        self.run_without_record(write)
        span = entries_span(entries)
        logger.debug("Applied %d entries to %s over %s", len(entries), field, span)
        if self.events is not None and span is not None:
            self.events.field_changed.emit(field, span[0], span[1])

    def push_entries(
        self,
        field: str,
        before: Sequence[UndoEntry],
        after: Sequence[UndoEntry],
        name: str = "Edit frames",
    ) -> Command | None:
        """Record an already applied edit. Empty edits are not recorded."""

        if not before and not after:
            return None
        command = ApplyEntriesCommand(self, field, before, after, name=name)
        self._add(command)
        return command

    def push_range_move(
        self,
        field: str,
        src_start: int,
        src_end: int,
        dest_start: int,
        affected_start: int,
        affected_end: int,
        before: Sequence[UndoEntry],
        after: Sequence[UndoEntry],
    ) -> Command | None:
        if not before and not after:
            return None
        command = RangeMoveCommand(
            self,
            field,
            src_start,
            src_end,
            dest_start,
            affected_start,
            affected_end,
            before,
            after,
        )
        self._add(command)
        return command

    def execute_command(self, command: Command) -> None:
        command.execute()
        self._add(command)

    def _add(self, command: Command) -> None:
        if self.is_recording:
            self.recorded_commands.append(command)
            return
        self.undo_manager.add_command(command)
        self.undo_stack_changed.emit()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    @property
    def can_undo(self) -> bool:
        return bool(self.undo_manager.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.undo_manager.redo_stack)

    def undo(self) -> Command | None:
        command = self.undo_manager.undo()
        if command is not None:
            self.undo_stack_changed.emit()
        return command

    def redo(self) -> Command | None:
        command = self.undo_manager.redo()
        if command is not None:
            self.undo_stack_changed.emit()
        return command

    def clear(self) -> None:
        self.undo_manager.clear()
        self.undo_stack_changed.emit()
