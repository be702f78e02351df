"""Timer scheduling used for debounced and throttled editor work."""

from __future__ import annotations

import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field

from PySide6.QtCore import QElapsedTimer, QObject, QTimer


logger = logging.getLogger(__name__)

ANIMATION_FRAME_MS = 16


@dataclass(eq=False)
class TimerHandle:
    """Opaque handle returned by :meth:`Scheduler.call_later`."""

    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)


class Scheduler(ABC):
    """Single-threaded timer source."""

    @abstractmethod
    def now(self) -> float:
        """Return the current time in milliseconds."""
        raise NotImplementedError

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        handle.cancelled = True


class ManualScheduler(Scheduler):
    """Virtual clock with a priority timer queue.

    Nothing fires until :meth:`advance` is called, which makes debounced
    behaviour reproducible in tests.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        delay = max(0.0, float(delay_ms))
        handle = TimerHandle(due=self._now + delay, callback=callback)
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    def pending_count(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.pending)

    def advance(self, ms: float = 0.0) -> int:
        """Move the clock forward by *ms* and run every timer that came due.

        Timers scheduled by callbacks run too when they fall inside the
        window. Returns the number of callbacks executed.
        """

        target = self._now + max(0.0, float(ms))
        executed = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if not handle.pending:
                continue
            self._now = max(self._now, due)
            handle.fired = True
            handle.callback()
            executed += 1
        self._now = target
        return executed

    def run_all(self) -> int:
        executed = 0
        while any(handle.pending for _, _, handle in self._queue):
            due = min(handle.due for _, _, handle in self._queue if handle.pending)
            executed += self.advance(max(0.0, due - self._now))
        return executed


class QtScheduler(Scheduler):
    """Scheduler backed by single-shot :class:`QTimer` objects."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent
        self._elapsed = QElapsedTimer()
        self._elapsed.start()
        self._timers: dict[int, QTimer] = {}

    def now(self) -> float:
        return float(self._elapsed.elapsed())

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(due=self.now() + max(0.0, float(delay_ms)), callback=callback)
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        key = id(handle)

        def fire() -> None:
            self._timers.pop(key, None)
            if not handle.pending:
                return
            handle.fired = True
            callback()

        timer.timeout.connect(fire)
        self._timers[key] = timer
        timer.start(max(0, int(round(delay_ms))))
        return handle

    def cancel(self, handle: TimerHandle | None) -> None:
        if handle is None:
            return
        super().cancel(handle)
        timer = self._timers.pop(id(handle), None)
        if timer is not None:
            timer.stop()


class Debouncer:
    """Trailing-edge coalescing of repeated requests.

    The first request arms a timer; further requests before it fires only
    replace the pending payload, or also push the deadline back when
    *restart* is set. :meth:`flush` runs the pending work at once.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay_ms: float,
        callback: Callable[..., None],
        *,
        restart: bool = False,
    ) -> None:
        self._scheduler = scheduler
        self.delay_ms = float(delay_ms)
        self._callback = callback
        self.restart = restart
        self._handle: TimerHandle | None = None
        self._pending_args: tuple | None = None

    @property
    def pending(self) -> bool:
        return self._pending_args is not None

    def request(self, *args) -> None:
        self._pending_args = args
        if self._handle is not None and self._handle.pending:
            if not self.restart:
                return
            self._scheduler.cancel(self._handle)
        self._handle = self._scheduler.call_later(self.delay_ms, self._fire)

    def flush(self) -> None:
        self._scheduler.cancel(self._handle)
        self._handle = None
        self._fire()

    def cancel(self) -> None:
        self._scheduler.cancel(self._handle)
        self._handle = None
        self._pending_args = None

    def _fire(self) -> None:
        self._handle = None
        args = self._pending_args
        if args is None:
            return
        self._pending_args = None
        self._callback(*args)


@dataclass
class _PendingRange:
    start: int
    end: int

    def merge(self, start: int, end: int) -> None:
        self.start = min(self.start, start)
        self.end = max(self.end, end)


class RangeThrottler:
    """Merge requested frame ranges and run *callback* once per interval."""

    def __init__(
        self,
        scheduler: Scheduler,
        interval_ms: float,
        callback: Callable[[int, int], None],
    ) -> None:
        self._scheduler = scheduler
        self.interval_ms = float(interval_ms)
        self._callback = callback
        self._handle: TimerHandle | None = None
        self._pending: _PendingRange | None = None

    @property
    def pending_range(self) -> tuple[int, int] | None:
        if self._pending is None:
            return None
        return self._pending.start, self._pending.end

    def request(self, start: int, end: int, *, immediate: bool = False) -> None:
        start, end = int(start), int(end)
        if end < start:
            start, end = end, start
        if self._pending is None:
            self._pending = _PendingRange(start, end)
        else:
            self._pending.merge(start, end)
        if immediate:
            self.flush()
            return
        if self._handle is not None and self._handle.pending:
            return
        self._handle = self._scheduler.call_later(self.interval_ms, self._run)

    def flush(self) -> None:
        self._scheduler.cancel(self._handle)
        self._handle = None
        self._run()

    def _run(self) -> None:
        self._handle = None
        pending = self._pending
        if pending is None:
            return
        self._pending = None
        try:
            self._callback(pending.start, pending.end)
        except Exception:
            logger.exception("Range recompute callback failed for %s..%s", pending.start, pending.end)


@dataclass
class ClickGuard:
    """Reject a click arriving within *window_ms* of the last :meth:`arm`."""

    scheduler: Scheduler
    window_ms: float = 150.0
    _armed_at: float | None = field(default=None, init=False)

    def arm(self) -> None:
        self._armed_at = self.scheduler.now()

    def consume(self) -> bool:
        """Return True when a click should be suppressed (and disarm)."""

        armed_at = self._armed_at
        if armed_at is None:
            return False
        if self.scheduler.now() - armed_at < self.window_ms:
            self._armed_at = None
            return True
        self._armed_at = None
        return False
