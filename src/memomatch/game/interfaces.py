"""Abstract interfaces for the game layer: scheduling, clock, controller."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memomatch.core.card import Card
    from memomatch.core.difficulty import Difficulty

Callback = Callable[[], None]


class ITaskHandle(ABC):
    """A scheduled callback that can be cancelled."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True while the callback may still fire."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent any further invocation. Safe to call repeatedly."""


class IScheduler(ABC):
    """Cooperative, single-threaded source of time and delayed callbacks."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds (monotonic, arbitrary origin)."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callback) -> ITaskHandle:
        """Run *callback* once after *delay* seconds."""

    @abstractmethod
    def call_every(self, interval: float, callback: Callback) -> ITaskHandle:
        """Run *callback* every *interval* seconds until cancelled."""


class IClock(ABC):
    """Countdown clock for one round."""

    @abstractmethod
    def start(self) -> None:
        """Start counting down from the time limit."""

    @abstractmethod
    def stop(self) -> None:
        """Freeze the clock."""

    @abstractmethod
    def penalize(self, seconds: float) -> None:
        """Remove *seconds* from the remaining time."""

    @abstractmethod
    def remaining(self) -> float:
        """Seconds left, never negative."""

    @abstractmethod
    def is_expired(self) -> bool:
        """Has the round run out of time?"""


class IGameController(ABC):
    """Interface for the round orchestrator."""

    @abstractmethod
    def start_round(self, difficulty: Difficulty, theme: str | None = None) -> None:
        """Validate *difficulty*, deal a deck and begin preview or play."""

    @abstractmethod
    def handle_card_activation(self, card: Card) -> bool:
        """Player clicked *card*. Returns True if the click was accepted."""

    @abstractmethod
    def reset_round(self) -> None:
        """Cancel every pending timer and return to the start phase."""

    @abstractmethod
    def select_difficulty(self) -> None:
        """Move to the difficulty selection phase."""

    @abstractmethod
    def retry(self) -> None:
        """Start a fresh round with the previous difficulty and theme."""
