"""Scheduler backed by ``QTimer`` for front-ends running a Qt event loop."""

from __future__ import annotations

import time

from PyQt6.QtCore import QObject, QTimer

from memomatch.game.interfaces import Callback, IScheduler, ITaskHandle


class _QtTask(ITaskHandle):
    __slots__ = ("_owner", "_timer", "_callback", "_single_shot")

    def __init__(
        self,
        owner: QtScheduler,
        timer: QTimer,
        callback: Callback,
        single_shot: bool,
    ) -> None:
        self._owner = owner
        self._timer = timer
        self._callback = callback
        self._single_shot = single_shot
        timer.timeout.connect(self._fire)

    @property
    def active(self) -> bool:
        return self._timer is not None

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._release()

    def _fire(self) -> None:
        if self._timer is None:
            return
        if self._single_shot:
            self._release()
        self._callback()

    def _release(self) -> None:
        timer = self._timer
        self._timer = None
        self._owner._forget(self)
        if timer is not None:
            timer.deleteLater()


class QtScheduler(IScheduler):
    """Runs round timers on the Qt event loop.

    Must be used from the thread that owns the ``QApplication``. Time is
    read from :func:`time.monotonic`. Every timer is parented to a QObject
    so Qt owns it, and released with ``deleteLater``.
    """

    __slots__ = ("_parent", "_tasks")

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent if parent is not None else QObject()
        self._tasks: set[_QtTask] = set()

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callback) -> ITaskHandle:
        if delay < 0:
            raise ValueError(f"delay must not be negative, got {delay}")
        return self._start(delay, callback, single_shot=True)

    def call_every(self, interval: float, callback: Callback) -> ITaskHandle:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        return self._start(interval, callback, single_shot=False)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    # ── Internal ─────────────────────────────────────────────────────────

    def _start(self, seconds: float, callback: Callback, single_shot: bool) -> _QtTask:
        timer = QTimer(self._parent)
        timer.setSingleShot(single_shot)
        task = _QtTask(self, timer, callback, single_shot)
        self._tasks.add(task)
        timer.start(round(seconds * 1000))
        return task

    def _forget(self, task: _QtTask) -> None:
        self._tasks.discard(task)
