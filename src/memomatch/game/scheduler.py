"""Deterministic scheduler and round-scoped task groups.

``ManualScheduler`` keeps virtual time that only moves when
:meth:`ManualScheduler.advance` is called, which makes every timing window
in a round reproducible in tests and headless simulations.
"""

from __future__ import annotations

import heapq
import logging

from memomatch.game.interfaces import Callback, IScheduler, ITaskHandle

_LOGGER = logging.getLogger(__name__)


class _ManualTask(ITaskHandle):
    __slots__ = ("deadline", "interval", "callback", "_active")

    def __init__(self, deadline: float, interval: float | None, callback: Callback) -> None:
        self.deadline = deadline
        self.interval = interval
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class ManualScheduler(IScheduler):
    """Virtual-time scheduler. Callbacks run inside :meth:`advance`.

    Tasks due at the same instant run in the order they were scheduled.
    """

    __slots__ = ("_now", "_queue", "_seq")

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, _ManualTask]] = []
        self._seq = 0

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> ITaskHandle:
        if delay < 0:
            raise ValueError(f"delay must not be negative, got {delay}")
        return self._push(_ManualTask(self._now + delay, None, callback))

    def call_every(self, interval: float, callback: Callback) -> ITaskHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        return self._push(_ManualTask(self._now + interval, interval, callback))

    # ── Driving time ─────────────────────────────────────────────────────

    def advance(self, seconds: float) -> None:
        """Move time forward by *seconds*, firing every task that comes due."""
        if seconds < 0:
            raise ValueError("time cannot move backwards")
        self.advance_to(self._now + seconds)

    def advance_to(self, target: float) -> None:
        while self._queue and self._queue[0][0] <= target:
            deadline, _, task = heapq.heappop(self._queue)
            if not task.active:
                continue
            self._now = deadline
            if task.interval is None:
                task.cancel()
            else:
                task.deadline = deadline + task.interval
                self._push(task)
            task.callback()
        self._now = max(self._now, target)

    def pending(self) -> int:
        """Number of tasks that may still fire."""
        return sum(1 for _, _, task in self._queue if task.active)

    # ── Internal ─────────────────────────────────────────────────────────

    def _push(self, task: _ManualTask) -> _ManualTask:
        heapq.heappush(self._queue, (task.deadline, self._seq, task))
        self._seq += 1
        return task


class RoundTasks:
    """Every callback scheduled on behalf of one round.

    The whole group is cancelled at once when the round ends or resets, so
    no timer can outlive the round that created it.
    """

    __slots__ = ("_scheduler", "_handles")

    def __init__(self, scheduler: IScheduler) -> None:
        self._scheduler = scheduler
        self._handles: list[ITaskHandle] = []

    def call_later(self, delay: float, callback: Callback) -> ITaskHandle:
        return self._track(self._scheduler.call_later(delay, callback))

    def call_every(self, interval: float, callback: Callback) -> ITaskHandle:
        return self._track(self._scheduler.call_every(interval, callback))

    def cancel_all(self) -> int:
        """Cancel every pending task; returns how many were still active."""
        cancelled = 0
        for handle in self._handles:
            if handle.active:
                handle.cancel()
                cancelled += 1
        self._handles.clear()
        if cancelled:
            _LOGGER.debug("Cancelled %d pending round task(s)", cancelled)
        return cancelled

    def __len__(self) -> int:
        return sum(1 for handle in self._handles if handle.active)

    def _track(self, handle: ITaskHandle) -> ITaskHandle:
        self._handles = [h for h in self._handles if h.active]
        self._handles.append(handle)
        return handle
