"""Round countdown clock with penalty support."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

from memomatch.game.interfaces import IClock


@dataclass(frozen=True, slots=True)
class ClockSnapshot:
    """Point-in-time reading of the round clock."""

    remaining: float
    elapsed: int
    penalty: float
    is_running: bool


class RoundClock(IClock):
    """Countdown for a single round.

    Remaining time is ``time_limit - floor(elapsed) - penalties``: elapsed
    time is counted in whole seconds while penalties apply immediately and
    persist across ticks.

    Args:
        time_limit: Round length in seconds.
        time_source: Monotonic seconds, usually ``scheduler.now``.
    """

    __slots__ = (
        "_time_limit",
        "_time_source",
        "_started_at",
        "_stopped_at",
        "_penalty",
    )

    def __init__(self, time_limit: float, time_source: Callable[[], float]) -> None:
        self._time_limit = time_limit
        self._time_source = time_source
        self._started_at: float | None = None
        self._stopped_at: float | None = None
        self._penalty = 0.0

    # ── IClock implementation ────────────────────────────────────────────

    def start(self) -> None:
        self._started_at = self._time_source()
        self._stopped_at = None

    def stop(self) -> None:
        if self.is_running:
            self._stopped_at = self._time_source()

    def penalize(self, seconds: float) -> None:
        self._penalty += seconds

    def remaining(self) -> float:
        return max(0.0, self._time_limit - self.elapsed() - self._penalty)

    def is_expired(self) -> bool:
        return self.remaining() <= 0.0

    # ── Extra helpers ────────────────────────────────────────────────────

    @property
    def time_limit(self) -> float:
        return self._time_limit

    @property
    def is_running(self) -> bool:
        return self._started_at is not None and self._stopped_at is None

    @property
    def started_at(self) -> float | None:
        return self._started_at

    @property
    def penalty(self) -> float:
        return self._penalty

    def elapsed(self) -> int:
        """Whole seconds since :meth:`start` (frozen once stopped)."""
        if self._started_at is None:
            return 0
        end = self._stopped_at if self._stopped_at is not None else self._time_source()
        # Tolerate float drift so exactly-N-second readings floor to N.
        return max(0, math.floor(end - self._started_at + 1e-9))

    def snapshot(self) -> ClockSnapshot:
        return ClockSnapshot(
            remaining=self.remaining(),
            elapsed=self.elapsed(),
            penalty=self._penalty,
            is_running=self.is_running,
        )
