from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Dict, List, Optional, Type

from .basetool import BaseTool


logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "keytrack.tools"


@dataclass(frozen=True)
class ToolEntry:
    tool_cls: Type[BaseTool]
    name: str
    shortcut: Optional[str]
    category: Optional[str]
    priority: int


class ToolRegistry:
    """Track tools known to an editor host, kept in pointer dispatch order.

    Tools with a lower ``priority`` get the first chance at a press, so a
    control point under the cursor wins over the keyframe it belongs to,
    which in turn wins over a plain click on the timeline.
    """

    def __init__(self) -> None:
        self._entries: List[ToolEntry] = []

    # ------------------------------------------------------------------
    def register_tool(self, tool_cls: Type[BaseTool]) -> Optional[ToolEntry]:
        """Register a :class:`BaseTool` subclass and return its entry.

        Classes without a ``name`` and classes already registered are skipped.
        A shortcut that clashes with a registered tool is dropped.
        """

        if not isinstance(tool_cls, type) or not issubclass(tool_cls, BaseTool):
            raise TypeError("tool_cls must be a subclass of BaseTool")
        if tool_cls is BaseTool or not tool_cls.name:
            return None
        if any(entry.tool_cls is tool_cls for entry in self._entries):
            return None

        shortcut = tool_cls.shortcut
        if shortcut and self.find_by_shortcut(shortcut) is not None:
            logger.warning(
                "Shortcut %r of %s already taken by %s",
                shortcut,
                tool_cls.name,
                self.find_by_shortcut(shortcut).name,
            )
            shortcut = None

        entry = ToolEntry(
            tool_cls=tool_cls,
            name=tool_cls.name,
            shortcut=shortcut,
            category=tool_cls.category,
            priority=int(tool_cls.priority),
        )
        self._entries.append(entry)
        # stable: equal priorities keep registration order
        self._entries.sort(key=lambda item: item.priority)
        return entry

    # ------------------------------------------------------------------
    def get_tools(self) -> List[ToolEntry]:
        """Registered tools in dispatch order."""

        return list(self._entries)

    def find_by_shortcut(self, shortcut: str) -> Optional[ToolEntry]:
        shortcut = shortcut.lower()
        for entry in self._entries:
            if entry.shortcut and entry.shortcut.lower() == shortcut:
                return entry
        return None

    def tools_in_category(self, category: str) -> List[ToolEntry]:
        return [entry for entry in self._entries if entry.category == category]

    def create_tools(self, editor) -> Dict[str, BaseTool]:
        """One instance of every tool bound to *editor*, in dispatch order."""

        return {entry.name: entry.tool_cls(editor) for entry in self._entries}

    # ------------------------------------------------------------------
    def load_builtin_tools(self) -> None:
        """Register the tools defined by the ``*tool`` modules of this package."""

        package = importlib.import_module(__package__)
        for module_info in sorted(pkgutil.iter_modules(package.__path__), key=lambda info: info.name):
            if not module_info.name.endswith("tool") or module_info.name == "basetool":
                continue
            module = importlib.import_module(f"{__package__}.{module_info.name}")
            for _, attr in inspect.getmembers(module, inspect.isclass):
                if issubclass(attr, BaseTool) and attr.__module__ == module.__name__:
                    self.register_tool(attr)

    # ------------------------------------------------------------------
    def load_external_tools(self) -> None:
        """Load tools provided by external packages via entry points."""

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                tool_cls = ep.load()
                self.register_tool(tool_cls)
            except Exception:
                logger.exception("Ignoring badly defined tool entry point %s", ep.name)


__all__ = ["ENTRY_POINT_GROUP", "ToolEntry", "ToolRegistry"]
