"""GameController — the round orchestrator.

Coordinates: GameState, MatchRules, RoundClock, DeckBuilder and the
scheduler. Emits events through an :class:`EventBus` so renderers, sound
and tests can subscribe.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from typing import TypeVar

from memomatch.core.card import Card
from memomatch.core.deck import DeckBuilder, shuffle_positions
from memomatch.core.difficulty import Difficulty
from memomatch.core.enums import CardKind, EndReason, GamePhase
from memomatch.core.errors import ConfigurationError, InvalidTransitionError
from memomatch.game.clock import RoundClock
from memomatch.game.events import (
    BombTriggered,
    BonusConcealed,
    BonusRevealed,
    CardFlipped,
    CardsShuffled,
    ErrorOccurred,
    EventBus,
    GameEvent,
    HeartLost,
    MatchFailed,
    MatchSucceeded,
    PhaseChanged,
    PlayingStarted,
    PreviewEnded,
    PreviewStarted,
    PreviewTick,
    RoundComplete,
    RoundInitialized,
    RoundOver,
    RoundReset,
    TimerTick,
)
from memomatch.game.interfaces import Callback, IGameController, IScheduler, ITaskHandle
from memomatch.game.rules import (
    BonusAwarded,
    Conceal,
    HiddenRevealed,
    MatchAwarded,
    MatchOutcome,
    MatchRules,
    TimePenalty,
)
from memomatch.game.scheduler import ManualScheduler, RoundTasks
from memomatch.game.settings import EngineSettings
from memomatch.game.state import GameInfo, GameState

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class GameController(IGameController):
    """Drives a round: preview, clicks, comparisons, clock and endings.

    Every delayed callback belongs to the current round. Ending or
    resetting the round cancels them as a group and bumps the round
    token, so a callback that was already queued finds a newer token and
    does nothing.

    A listener may also restart or reset the round while an event is being
    delivered; the step that published it stops there and schedules nothing.

    Thread-safety: single-threaded. Call every method from the thread that
    drives the scheduler.
    """

    __slots__ = (
        "_settings",
        "_scheduler",
        "_rng",
        "_deck_builder",
        "_state",
        "_rules",
        "_clock",
        "_tasks",
        "_round_token",
        "_ticker",
        "_preview_ticker",
        "_difficulty",
        "_theme",
        "events",
    )

    def __init__(
        self,
        settings: EngineSettings | None = None,
        scheduler: IScheduler | None = None,
        rng: random.Random | None = None,
        events: EventBus | None = None,
    ) -> None:
        self._settings = (settings or EngineSettings()).validate()
        self._scheduler = scheduler or ManualScheduler()
        self._rng = rng or random.Random()
        self._deck_builder = DeckBuilder(self._settings.layout, self._rng)
        self._state = GameState()
        self._rules: MatchRules | None = None
        self._clock: RoundClock | None = None
        self._tasks = RoundTasks(self._scheduler)
        self._round_token = 0
        self._ticker: ITaskHandle | None = None
        self._preview_ticker: ITaskHandle | None = None
        self._difficulty: Difficulty | None = None
        self._theme: str | None = None
        self.events = events or EventBus()

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def scheduler(self) -> IScheduler:
        return self._scheduler

    @property
    def clock(self) -> RoundClock | None:
        return self._clock

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def info(self) -> GameInfo:
        return self._state.info()

    # ── IGameController impl ─────────────────────────────────────────────

    def start_round(self, difficulty: Difficulty, theme: str | None = None) -> None:
        if not isinstance(difficulty, Difficulty):
            raise ConfigurationError(f"Expected a Difficulty, got {difficulty!r}")
        theme = theme or self._settings.default_theme
        # Validates the difficulty and theme before anything is touched.
        cards = self._deck_builder.build(difficulty, theme)

        self._teardown()
        self._difficulty = difficulty
        self._theme = theme
        self._rules = MatchRules(difficulty, self._settings)
        self._clock = RoundClock(difficulty.time_limit, self._scheduler.now)
        self._state.setup(difficulty, cards)

        _LOGGER.info(
            "Round started: %s, %d cards, preview %gs",
            difficulty.name,
            len(cards),
            difficulty.preview_seconds,
        )
        if not self._emit(RoundInitialized(difficulty, len(cards), theme)):
            return

        if difficulty.has_preview:
            self._start_preview(difficulty.preview_seconds)
        else:
            self._start_playing()

    def handle_card_activation(self, card: Card) -> bool:
        state = self._state
        if state.phase is not GamePhase.PLAYING:
            return False
        if not any(candidate is card for candidate in state.cards):
            _LOGGER.warning("Ignoring click on a card outside this round: %r", card)
            return False
        if not state.can_act or not card.can_flip():
            return False
        return bool(self._guarded("handle_card_activation", lambda: self._activate(card)))

    def reset_round(self) -> None:
        self._teardown()
        for card in self._state.cards:
            card.reset()
        self._state.reset()
        self._clock = None
        self._rules = None
        _LOGGER.info("Round reset")
        self._emit(RoundReset())
        self._emit(PhaseChanged(GamePhase.START))

    def select_difficulty(self) -> None:
        if self._state.phase in (GamePhase.PREVIEW, GamePhase.PLAYING):
            raise InvalidTransitionError(
                f"Cannot pick a difficulty during {self._state.phase}"
            )
        self._teardown()
        self._state.reset(GamePhase.DIFFICULTY_SELECT)
        self._emit(PhaseChanged(GamePhase.DIFFICULTY_SELECT))

    def retry(self) -> None:
        if self._difficulty is None:
            raise InvalidTransitionError("No previous round to retry")
        self.start_round(self._difficulty, self._theme)

    # ── Preview ──────────────────────────────────────────────────────────

    def _start_preview(self, duration: float) -> None:
        self._state.begin_preview(duration)
        for card in self._state.cards:
            card.set_face_up(True)
        if not (
            self._emit(PhaseChanged(GamePhase.PREVIEW))
            and self._emit(PreviewStarted(duration))
        ):
            return

        self._preview_ticker = self._every(
            self._settings.tick_interval, "preview_tick", self._on_preview_tick
        )
        self._later(duration, "end_preview", self._end_preview)

    def _on_preview_tick(self) -> None:
        state = self._state
        state.preview_remaining = max(
            0.0, state.preview_remaining - self._settings.tick_interval
        )
        self._emit(PreviewTick(state.preview_remaining))

    def _end_preview(self) -> None:
        if self._preview_ticker is not None:
            self._preview_ticker.cancel()
            self._preview_ticker = None
        for card in self._state.cards:
            if not card.matched:
                card.set_face_up(False)
        if self._emit(PreviewEnded()):
            self._start_playing()

    # ── Playing ──────────────────────────────────────────────────────────

    def _start_playing(self) -> None:
        assert self._clock is not None and self._difficulty is not None
        self._state.begin_playing(self._scheduler.now())
        self._clock.start()
        if not (
            self._emit(PhaseChanged(GamePhase.PLAYING))
            and self._emit(PlayingStarted(self._difficulty.time_limit))
        ):
            return

        self._ticker = self._every(self._settings.tick_interval, "tick", self._on_tick)
        if self._difficulty.bonus_pairs:
            self._later(
                self._settings.bonus_reveal_delay, "reveal_bonus", self._reveal_bonus
            )

    def _on_tick(self) -> None:
        assert self._clock is not None
        remaining = self._clock.remaining()
        elapsed = self._clock.elapsed()
        self._state.update_time(remaining, elapsed)
        _LOGGER.debug("Tick: %gs left, %ds elapsed", remaining, elapsed)
        if self._emit(TimerTick(remaining, elapsed)) and self._clock.is_expired():
            self._end_round(EndReason.TIME)

    def _activate(self, card: Card) -> bool:
        if card.is_bomb:
            self._trigger_bomb(card)
            return True

        card.flip()
        _LOGGER.debug("Flipped %r", card)
        if not self._emit(CardFlipped(card, card.face_up)):
            return True

        if self._state.select(card):
            self._state.lock_for_comparison()
            self._later(self._settings.match_delay, "check_match", self._check_match)
        return True

    def _check_match(self) -> None:
        assert self._rules is not None
        selection = tuple(self._state.selection)
        outcome = self._rules.evaluate(selection, self._state.combo)
        if outcome.is_match:
            self._apply_match(outcome)
        else:
            self._apply_mismatch(outcome)

    def _apply_match(self, outcome: MatchOutcome) -> None:
        state = self._state
        award = outcome.find(MatchAwarded)
        bonus = outcome.find(BonusAwarded)
        assert award is not None

        state.record_match(
            award.base + (bonus.points if bonus else 0), award.combo_bonus
        )
        state.clear_selection()
        published = self._emit(
            MatchSucceeded(
                cards=outcome.cards,
                points=outcome.points,
                combo=state.combo,
                hidden=outcome.find(HiddenRevealed) is not None,
                bonus=bonus is not None,
            )
        )
        if published and state.is_all_matched:
            self._complete_round()

    def _apply_mismatch(self, outcome: MatchOutcome) -> None:
        assert self._clock is not None
        state = self._state
        penalty = outcome.find(TimePenalty)
        conceal = outcome.find(Conceal)
        seconds = penalty.seconds if penalty else 0.0

        state.record_mismatch()
        self._clock.penalize(seconds)
        state.update_time(self._clock.remaining())
        if not (
            self._emit(MatchFailed(outcome.cards, seconds))
            and self._emit(HeartLost(state.hearts, state.max_hearts))
        ):
            return

        cards = conceal.cards if conceal else ()
        for card in cards:
            card.set_animating(True)
        self._later(
            self._settings.mismatch_delay,
            "finish_mismatch",
            lambda: self._finish_mismatch(cards),
        )

    def _finish_mismatch(self, cards: tuple[Card, ...]) -> None:
        assert self._clock is not None
        for card in cards:
            card.set_animating(False)
        if not self._conceal(cards):
            return
        self._state.clear_selection()
        if self._state.is_hearts_empty:
            self._end_round(EndReason.HEARTS)
        elif self._clock.is_expired():
            self._end_round(EndReason.TIME)

    # ── Special cards ────────────────────────────────────────────────────

    def _trigger_bomb(self, card: Card) -> None:
        assert self._rules is not None and self._clock is not None
        state = self._state

        card.flip()
        if not self._emit(CardFlipped(card, card.face_up)):
            return
        state.lock()
        state.record_bomb()

        outcome = self._rules.resolve_bomb(self._rng)
        _LOGGER.info("Bomb triggered: %s", outcome)
        if not self._emit(
            BombTriggered(card, outcome.instant_death, outcome.shuffled, outcome.penalty)
        ):
            return
        if outcome.instant_death:
            self._end_round(EndReason.BOMB)
            return

        if not self._conceal(tuple(state.clear_selection(release=False))):
            return

        if outcome.shuffled:
            movable = [c for c in state.cards if not c.matched and not c.is_bomb]
            shuffle_positions(movable, self._rng)
            if not self._emit(CardsShuffled(tuple(movable))):
                return

        self._clock.penalize(outcome.penalty)
        state.update_time(self._clock.remaining())
        if self._clock.is_expired():
            self._end_round(EndReason.TIME)
            return

        self._later(self._settings.bomb_pause, "bomb_recover", state.release)

    def _reveal_bonus(self) -> None:
        revealed = tuple(
            card
            for card in self._state.cards
            if card.kind is CardKind.BONUS and not card.matched and not card.face_up
        )
        if not revealed:
            return
        for card in revealed:
            card.set_face_up(True)
        if not self._emit(BonusRevealed(revealed)):
            return
        self._later(
            self._settings.bonus_reveal_duration,
            "conceal_bonus",
            lambda: self._conceal_bonus(revealed),
        )

    def _conceal_bonus(self, revealed: tuple[Card, ...]) -> None:
        selected = self._state.selection
        hidden = tuple(
            card
            for card in revealed
            if card.face_up
            and not card.matched
            and not any(s is card for s in selected)
        )
        for card in hidden:
            card.set_face_up(False)
        self._emit(BonusConcealed(hidden))

    def _conceal(self, cards: tuple[Card, ...]) -> bool:
        for card in cards:
            if card.face_up and not card.matched:
                card.set_face_up(False)
                if not self._emit(CardFlipped(card, False)):
                    return False
        return True

    # ── Round end ────────────────────────────────────────────────────────

    def _complete_round(self) -> None:
        self._halt()
        self._state.finish_win(
            self._settings.time_bonus_per_second,
            self._settings.heart_bonus_per_heart,
        )
        stats = self._state.result_stats()
        _LOGGER.info("Round complete: %s", stats)
        if self._emit(PhaseChanged(GamePhase.RESULT)):
            self._emit(RoundComplete(stats))

    def _end_round(self, reason: EndReason) -> None:
        self._halt()
        self._state.finish_loss(reason)
        stats = self._state.result_stats()
        _LOGGER.info("Round over (%s): %s", reason, stats)
        if self._emit(PhaseChanged(GamePhase.RESULT)):
            self._emit(RoundOver(reason, stats))

    def _halt(self) -> None:
        """Stop the clock and drop every pending callback of this round."""
        if self._clock is not None:
            self._clock.stop()
            self._state.update_time(self._clock.remaining(), self._clock.elapsed())
        for card in self._state.cards:
            card.set_animating(False)
        self._teardown()

    def _teardown(self) -> None:
        self._tasks.cancel_all()
        self._ticker = None
        self._preview_ticker = None
        self._round_token += 1

    # ── Scheduling helpers ───────────────────────────────────────────────

    def _later(self, delay: float, name: str, callback: Callback) -> ITaskHandle:
        return self._tasks.call_later(delay, self._bind(name, callback))

    def _every(self, interval: float, name: str, callback: Callback) -> ITaskHandle:
        return self._tasks.call_every(interval, self._bind(name, callback))

    def _bind(self, name: str, callback: Callback) -> Callback:
        token = self._round_token

        def run() -> None:
            if token != self._round_token:
                _LOGGER.debug("Dropping stale callback %s", name)
                return
            self._guarded(name, callback)

        return run

    def _guarded(self, method: str, action: Callable[[], T]) -> T | None:
        """Run *action*; on failure log, report and reset the round."""
        try:
            return action()
        except ConfigurationError:
            raise
        except Exception as exc:
            _LOGGER.exception("Recovering from error in %s", method)
            self._emit(ErrorOccurred(method, exc))
            self.reset_round()
            return None

    def _emit(self, event: GameEvent) -> bool:
        """Publish *event*; False if a listener replaced or reset the round."""
        token = self._round_token
        self.events.publish(event)
        return token == self._round_token
