from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

from keytrack.core.entries import UndoEntry

if TYPE_CHECKING:
    from keytrack.core.undo import UndoStore


class Command(ABC):
    """
    Abstract base class for all commands.
    """

    name = "Command"

    @abstractmethod
    def execute(self):
        """
        Executes the command.
        """
        raise NotImplementedError

    @abstractmethod
    def undo(self):
        """
        Undoes the command.
        """
        raise NotImplementedError


class CompositeCommand(Command):
    """A command that is composed of other commands."""
    def __init__(self, commands: list[Command], name: str = "Composite"):
        self.commands = commands
        self.name = name

    def execute(self):
        for command in self.commands:
            command.execute()

    def undo(self):
        for command in reversed(self.commands):
            command.undo()


class ApplyEntriesCommand(Command):
    """Swap a field between two captured entry lists."""

    def __init__(
        self,
        undo_store: UndoStore,
        field: str,
        before: Sequence[UndoEntry],
        after: Sequence[UndoEntry],
        name: str = "Edit frames",
    ):
        self.undo_store = undo_store
        self.field = field
        self.before = list(before)
        self.after = list(after)
        self.name = name

    def execute(self):
        self.undo_store.apply_entries(self.field, self.after)

    def undo(self):
        self.undo_store.apply_entries(self.field, self.before)


class RangeMoveCommand(ApplyEntriesCommand):
    """Block move of ``[src_start, src_end]`` to ``dest_start``."""

    def __init__(
        self,
        undo_store: UndoStore,
        field: str,
        src_start: int,
        src_end: int,
        dest_start: int,
        affected_start: int,
        affected_end: int,
        before: Sequence[UndoEntry],
        after: Sequence[UndoEntry],
    ):
        super().__init__(
            undo_store,
            field,
            before,
            after,
            name="Shift range" if dest_start == src_start else "Move range",
        )
        self.src_start = src_start
        self.src_end = src_end
        self.dest_start = dest_start
        self.affected_start = affected_start
        self.affected_end = affected_end
