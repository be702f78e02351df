"""Moving a set of keyframes by a uniform (frame, value) offset."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field

from keytrack.core.entries import UndoEntry, capture_entries
from keytrack.core.handles import KeyInfo, UNKEYED


@dataclass(frozen=True)
class GhostPoint:
    frame: int
    value: float
    selected: bool = True


@dataclass(frozen=True)
class KeyframeMove:
    """Selected keyframes *origins* shifted by ``delta_frame``/``delta_value``.

    Targets are clamped into the timeline. When two origins clamp onto the
    same target the later origin wins.
    """

    origins: tuple[int, ...]
    delta_frame: int
    delta_value: float
    total: int
    target_map: dict[int, int] = field(init=False, compare=False)

    def __post_init__(self):
        origins = tuple(sorted(set(int(frame) for frame in self.origins)))
        object.__setattr__(self, "origins", origins)
        mapping: dict[int, int] = {}
        for origin in origins:
            mapping[self.target_of(origin)] = origin
        object.__setattr__(self, "target_map", mapping)

    def target_of(self, origin: int) -> int:
        return max(0, min(self.total - 1, origin + self.delta_frame))

    @property
    def targets(self) -> list[int]:
        return sorted(self.target_map)

    @property
    def is_noop(self) -> bool:
        return self.delta_frame == 0 and abs(self.delta_value) < 1e-9

    @property
    def affected_range(self) -> tuple[int, int] | None:
        if not self.origins:
            return None
        targets = self.targets
        return min(self.origins[0], targets[0]), max(self.origins[-1], targets[-1])


def drag_offsets(
    start_frame: float, start_value: float, current_frame: float, current_value: float
) -> tuple[int, float]:
    return int(round(current_frame - start_frame)), current_value - start_value


def ghost_points(move: KeyframeMove, origin_values: Mapping[int, float]) -> list[GhostPoint]:
    return [
        GhostPoint(move.target_of(origin), origin_values.get(origin, 0.0) + move.delta_value)
        for origin in move.origins
    ]


def moved_key_getter(
    move: KeyframeMove,
    origin_keys: Mapping[int, KeyInfo],
    current_key: Callable[[int], KeyInfo],
) -> Callable[[int], KeyInfo]:
    moved_from = set(move.origins)

    def key_getter(index: int) -> KeyInfo:
        origin = move.target_map.get(index)
        if origin is not None:
            info = origin_keys.get(origin)
            if info is None:
                return KeyInfo(True, None)
            handle = info.handle.shifted(move.delta_value) if info.handle is not None else None
            return KeyInfo(info.is_key, handle)
        if move.delta_frame != 0 and index in moved_from:
            return UNKEYED
        return current_key(index)

    return key_getter


def moved_value_getter(
    move: KeyframeMove,
    origin_values: Mapping[int, float],
    current_value: Callable[[int], float | None],
) -> Callable[[int], float | None]:
    def value_getter(index: int) -> float | None:
        origin = move.target_map.get(index)
        if origin is not None:
            return origin_values.get(origin, 0.0) + move.delta_value
        return current_value(index)

    return value_getter


def build_move_entries(
    move: KeyframeMove,
    origin_values: Mapping[int, float],
    origin_keys: Mapping[int, KeyInfo],
    current_value: Callable[[int], float | None],
    current_key: Callable[[int], KeyInfo],
) -> tuple[list[UndoEntry], list[UndoEntry]]:
    """Before/after entries over the affected range of *move* (unfiltered)."""

    span = move.affected_range
    if span is None:
        return [], []
    start, end = span
    before = capture_entries(current_value, current_key, start, end)
    after = capture_entries(
        moved_value_getter(move, origin_values, current_value),
        moved_key_getter(move, origin_keys, current_key),
        start,
        end,
    )
    return before, after


def snapshot_origins(
    frames: Iterable[int],
    value_of: Callable[[int], float | None],
    key_of: Callable[[int], KeyInfo],
) -> tuple[dict[int, float], dict[int, KeyInfo]]:
    values: dict[int, float] = {}
    keys: dict[int, KeyInfo] = {}
    for frame in frames:
        value = value_of(frame)
        values[frame] = float(value) if value is not None else 0.0
        keys[frame] = key_of(frame)
    return values, keys
