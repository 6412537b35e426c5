"""Outward notifications — a closed vocabulary of events plus the bus.

Every event is a frozen dataclass tagged with an :class:`EventKind`.
Renderers, sound players and UI panels subscribe to the kinds they care
about; a failing listener is logged and isolated so the round and the
other listeners carry on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

from memomatch.core.errors import ListenerError

if TYPE_CHECKING:
    from memomatch.core.card import Card
    from memomatch.core.difficulty import Difficulty
    from memomatch.core.enums import EndReason, GamePhase
    from memomatch.game.state import ResultStats

_LOGGER = logging.getLogger(__name__)


class EventKind(Enum):
    CARD_FLIPPED = "card:flip"
    MATCH_SUCCEEDED = "match:success"
    MATCH_FAILED = "match:fail"
    HEART_LOST = "heart:lost"
    TIMER_TICK = "timer:update"
    ROUND_INITIALIZED = "game:init"
    PREVIEW_STARTED = "game:preview:start"
    PREVIEW_TICK = "game:preview:update"
    PREVIEW_ENDED = "game:preview:end"
    PLAYING_STARTED = "game:playing:start"
    PHASE_CHANGED = "game:phase"
    BONUS_REVEALED = "bonus:reveal"
    BONUS_CONCEALED = "bonus:conceal"
    BOMB_TRIGGERED = "bomb:trigger"
    CARDS_SHUFFLED = "cards:shuffle"
    ROUND_COMPLETE = "game:complete"
    ROUND_OVER = "game:over"
    ROUND_RESET = "game:reset"
    ERROR = "error"


# ── Event definitions ────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CardFlipped:
    kind: ClassVar[EventKind] = EventKind.CARD_FLIPPED

    card: Card
    face_up: bool


@dataclass(frozen=True, slots=True)
class MatchSucceeded:
    kind: ClassVar[EventKind] = EventKind.MATCH_SUCCEEDED

    cards: tuple[Card, ...]
    points: int
    combo: int
    hidden: bool = False
    bonus: bool = False


@dataclass(frozen=True, slots=True)
class MatchFailed:
    kind: ClassVar[EventKind] = EventKind.MATCH_FAILED

    cards: tuple[Card, ...]
    penalty: float


@dataclass(frozen=True, slots=True)
class HeartLost:
    kind: ClassVar[EventKind] = EventKind.HEART_LOST

    remaining: int
    max: int


@dataclass(frozen=True, slots=True)
class TimerTick:
    kind: ClassVar[EventKind] = EventKind.TIMER_TICK

    remaining: float
    elapsed: int


@dataclass(frozen=True, slots=True)
class RoundInitialized:
    kind: ClassVar[EventKind] = EventKind.ROUND_INITIALIZED

    difficulty: Difficulty
    card_count: int
    theme: str


@dataclass(frozen=True, slots=True)
class PreviewStarted:
    kind: ClassVar[EventKind] = EventKind.PREVIEW_STARTED

    duration: float


@dataclass(frozen=True, slots=True)
class PreviewTick:
    kind: ClassVar[EventKind] = EventKind.PREVIEW_TICK

    remaining: float


@dataclass(frozen=True, slots=True)
class PreviewEnded:
    kind: ClassVar[EventKind] = EventKind.PREVIEW_ENDED


@dataclass(frozen=True, slots=True)
class PlayingStarted:
    kind: ClassVar[EventKind] = EventKind.PLAYING_STARTED

    time_limit: float


@dataclass(frozen=True, slots=True)
class PhaseChanged:
    kind: ClassVar[EventKind] = EventKind.PHASE_CHANGED

    phase: GamePhase


@dataclass(frozen=True, slots=True)
class BonusRevealed:
    kind: ClassVar[EventKind] = EventKind.BONUS_REVEALED

    cards: tuple[Card, ...]


@dataclass(frozen=True, slots=True)
class BonusConcealed:
    kind: ClassVar[EventKind] = EventKind.BONUS_CONCEALED

    cards: tuple[Card, ...]


@dataclass(frozen=True, slots=True)
class BombTriggered:
    kind: ClassVar[EventKind] = EventKind.BOMB_TRIGGERED

    card: Card
    instant_death: bool
    shuffled: bool
    penalty: float


@dataclass(frozen=True, slots=True)
class CardsShuffled:
    kind: ClassVar[EventKind] = EventKind.CARDS_SHUFFLED

    cards: tuple[Card, ...]


@dataclass(frozen=True, slots=True)
class RoundComplete:
    kind: ClassVar[EventKind] = EventKind.ROUND_COMPLETE

    stats: ResultStats


@dataclass(frozen=True, slots=True)
class RoundOver:
    kind: ClassVar[EventKind] = EventKind.ROUND_OVER

    reason: EndReason
    stats: ResultStats


@dataclass(frozen=True, slots=True)
class RoundReset:
    kind: ClassVar[EventKind] = EventKind.ROUND_RESET


@dataclass(frozen=True, slots=True)
class ErrorOccurred:
    kind: ClassVar[EventKind] = EventKind.ERROR

    method: str
    error: BaseException


GameEvent = (
    CardFlipped
    | MatchSucceeded
    | MatchFailed
    | HeartLost
    | TimerTick
    | RoundInitialized
    | PreviewStarted
    | PreviewTick
    | PreviewEnded
    | PlayingStarted
    | PhaseChanged
    | BonusRevealed
    | BonusConcealed
    | BombTriggered
    | CardsShuffled
    | RoundComplete
    | RoundOver
    | RoundReset
    | ErrorOccurred
)

Listener = Callable[[GameEvent], None]


# ── Bus ──────────────────────────────────────────────────────────────────────


class EventBus:
    """Observable event hub. Multiple listeners per kind.

    Listeners subscribed with ``kind=None`` receive every event.
    """

    __slots__ = ("_listeners", "_wildcard")

    def __init__(self) -> None:
        self._listeners: dict[EventKind, list[Listener]] = {}
        self._wildcard: list[Listener] = []

    def subscribe(
        self, kind: EventKind | None, listener: Listener
    ) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        if not callable(listener):
            raise TypeError(f"listener must be callable, got {listener!r}")
        bucket = self._wildcard if kind is None else self._listeners.setdefault(kind, [])
        bucket.append(listener)

        def unsubscribe() -> None:
            if listener in bucket:
                bucket.remove(listener)

        return unsubscribe

    def publish(self, event: GameEvent) -> list[ListenerError]:
        """Deliver *event* to its listeners; returns the failures, if any."""
        failures: list[ListenerError] = []
        listeners = [*self._listeners.get(event.kind, ()), *self._wildcard]
        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                error = ListenerError(listener, event, exc)
                _LOGGER.error("%s", error, exc_info=exc)
                failures.append(error)
        return failures

    def listener_count(self, kind: EventKind | None = None) -> int:
        if kind is None:
            return len(self._wildcard)
        return len(self._listeners.get(kind, ()))

    def clear(self) -> None:
        self._listeners.clear()
        self._wildcard.clear()
