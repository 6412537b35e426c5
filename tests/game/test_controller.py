"""Tests for GameController — the round orchestrator."""

from __future__ import annotations

import random
from dataclasses import replace

import pytest

from memomatch.core.card import Card
from memomatch.core.deck import group_by_id
from memomatch.core.difficulty import Difficulty
from memomatch.core.enums import CardKind, EndReason, GamePhase
from memomatch.core.errors import ConfigurationError, InvalidTransitionError
from memomatch.game.controller import GameController
from memomatch.game.events import EventKind, GameEvent
from memomatch.game.rules import MatchRules
from memomatch.game.scheduler import ManualScheduler
from memomatch.game.settings import EngineSettings


class _FixedRandom(random.Random):
    value = 0.0

    def random(self) -> float:
        return self.value


def _fixed(value: float) -> _FixedRandom:
    rng = _FixedRandom(0)
    rng.value = value
    return rng


def _tiny(**overrides: object) -> Difficulty:
    base = Difficulty(
        name="Tiny",
        key="TINY",
        sets=2,
        grid_cols=2,
        grid_rows=2,
        time_limit=60,
        points_per_match=10,
        time_penalty=5,
    )
    return replace(base, **overrides)


class _Harness:
    """Controller on virtual time with every event recorded."""

    def __init__(
        self, rng: random.Random | None = None, **settings: object
    ) -> None:
        self.sched = ManualScheduler()
        self.ctrl = GameController(
            EngineSettings(**settings),  # type: ignore[arg-type]
            scheduler=self.sched,
            rng=rng or random.Random(99),
        )
        self.events: list[GameEvent] = []
        self.ctrl.events.subscribe(None, self.events.append)

    def start(self, difficulty: Difficulty) -> _Harness:
        self.ctrl.start_round(difficulty)
        return self

    def sets(self) -> list[list[Card]]:
        groups = group_by_id(c for c in self.ctrl.state.cards if not c.is_bomb)
        return [groups[key] for key in sorted(groups)]

    def bombs(self) -> list[Card]:
        return [c for c in self.ctrl.state.cards if c.is_bomb]

    def click(self, *cards: Card) -> list[bool]:
        return [self.ctrl.handle_card_activation(card) for card in cards]

    def of(self, kind: EventKind) -> list[GameEvent]:
        return [e for e in self.events if e.kind is kind]


# ── Scenarios ────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_easy_match(self) -> None:
        h = _Harness().start(Difficulty.easy())
        h.sched.advance(5)  # preview
        pair = h.sets()[0]
        assert h.click(*pair) == [True, True]
        h.sched.advance(0.5)

        (event,) = h.of(EventKind.MATCH_SUCCEEDED)
        assert event.points == 10  # type: ignore[union-attr]
        assert event.combo == 1  # type: ignore[union-attr]
        assert h.ctrl.state.matched_sets == 1
        assert all(card.matched for card in pair)

    def test_easy_mismatch(self) -> None:
        h = _Harness().start(Difficulty.easy())
        h.sched.advance(5)
        first, second = h.sets()[:2]
        h.click(first[0], second[0])
        h.sched.advance(0.5)

        state = h.ctrl.state
        assert state.time_remaining == 180 - 5
        assert state.hearts == 4
        assert state.combo == 0
        (failed,) = h.of(EventKind.MATCH_FAILED)
        assert failed.penalty == 5  # type: ignore[union-attr]
        (lost,) = h.of(EventKind.HEART_LOST)
        assert (lost.remaining, lost.max) == (4, 5)  # type: ignore[union-attr]

        # Cards stay visible for the reveal delay, then flip back.
        assert first[0].face_up and not state.can_act
        h.sched.advance(1.0)
        assert not first[0].face_up and not second[0].face_up
        assert state.can_act

    def test_hell_last_heart(self) -> None:
        h = _Harness().start(replace(Difficulty.hell(), hearts=1))
        h.sched.advance(5)
        first, second = h.sets()[:2]
        h.click(first[0], first[1], second[0])
        h.sched.advance(1.5)

        stats = h.ctrl.state.result_stats()
        assert stats.end_reason is EndReason.HEARTS
        assert h.ctrl.state.phase is GamePhase.RESULT
        assert not stats.is_win

    def test_win_bonuses(self) -> None:
        h = _Harness().start(_tiny(hearts=15))
        first, second = h.sets()
        h.click(*first)
        h.sched.advance(0.5)
        h.sched.advance(29.0)
        h.click(*second)
        h.sched.advance(0.5)

        stats = h.ctrl.state.result_stats()
        assert stats.is_win
        assert stats.time_remaining == 30
        assert stats.hearts == 15
        assert stats.score - (stats.base_score + stats.combo_bonus) == 30 * 2 + 15 * 10
        assert stats.score == 20 + 5 + 210
        (complete,) = h.of(EventKind.ROUND_COMPLETE)
        assert complete.stats == stats  # type: ignore[union-attr]

    def test_bomb_instant_death(self) -> None:
        h = _Harness(rng=_fixed(0.0)).start(
            _tiny(bombs=1, grid_cols=3, instant_death_chance=0.01)
        )
        (bomb,) = h.bombs()
        assert h.click(bomb) == [True]

        (over,) = h.of(EventKind.ROUND_OVER)
        assert over.reason is EndReason.BOMB  # type: ignore[union-attr]
        assert h.ctrl.state.time_remaining == 60
        assert h.ctrl.clock is not None and h.ctrl.clock.penalty == 0
        (triggered,) = h.of(EventKind.BOMB_TRIGGERED)
        assert triggered.instant_death  # type: ignore[union-attr]


# ── Start / preview ──────────────────────────────────────────────────────────


class TestStartRound:
    def test_preview_shows_cards_and_blocks_input(self) -> None:
        h = _Harness().start(Difficulty.easy())
        state = h.ctrl.state
        assert state.phase is GamePhase.PREVIEW
        assert all(card.face_up for card in state.cards)
        assert h.click(state.cards[0]) == [False]

        h.sched.advance(5)
        assert state.phase is GamePhase.PLAYING
        assert not any(card.face_up for card in state.cards)
        assert len(h.of(EventKind.PREVIEW_TICK)) == 4
        assert len(h.of(EventKind.PREVIEW_ENDED)) == 1

    def test_without_preview_play_starts_at_once(self) -> None:
        h = _Harness().start(_tiny())
        assert h.ctrl.state.phase is GamePhase.PLAYING
        kinds = [e.kind for e in h.events]
        assert kinds[0] is EventKind.ROUND_INITIALIZED
        assert EventKind.PLAYING_STARTED in kinds
        assert EventKind.PREVIEW_STARTED not in kinds

    def test_timer_ticks(self) -> None:
        h = _Harness().start(_tiny())
        h.sched.advance(3)
        remaining = [e.remaining for e in h.of(EventKind.TIMER_TICK)]  # type: ignore[union-attr]
        assert remaining == [59, 58, 57]

    def test_invalid_difficulty_leaves_state_untouched(self) -> None:
        h = _Harness()
        with pytest.raises(ConfigurationError):
            h.ctrl.start_round(_tiny(sets=0))
        with pytest.raises(ConfigurationError):
            h.ctrl.start_round("EASY")  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            h.ctrl.start_round(_tiny(), theme="planets")
        assert h.ctrl.state.phase is GamePhase.START
        assert h.events == []

    def test_restart_cancels_previous_round(self) -> None:
        h = _Harness().start(_tiny())
        h.click(*h.sets()[0])
        h.sched.advance(0.2)
        h.ctrl.start_round(_tiny())
        h.sched.advance(2)
        assert h.of(EventKind.MATCH_SUCCEEDED) == []
        assert h.ctrl.state.attempts == 0


# ── Card activation ──────────────────────────────────────────────────────────


class TestActivation:
    def test_ignored_while_comparing(self) -> None:
        h = _Harness().start(_tiny())
        first, second = h.sets()
        h.click(first[0], second[0])
        assert h.click(first[1]) == [False]
        assert not first[1].face_up

    def test_face_up_card_ignored(self) -> None:
        h = _Harness().start(_tiny())
        card = h.sets()[0][0]
        h.click(card)
        assert h.click(card) == [False]
        assert h.ctrl.state.selection == [card]

    def test_foreign_card_ignored(self) -> None:
        h = _Harness().start(_tiny())
        assert h.click(Card(0)) == [False]

    def test_ignored_before_start(self) -> None:
        assert _Harness().click(Card(0)) == [False]

    def test_three_card_sets(self) -> None:
        h = _Harness().start(_tiny(arity=3, grid_cols=3))
        triple = h.sets()[0]
        h.click(*triple[:2])
        assert h.ctrl.state.attempts == 0
        h.click(triple[2])
        h.sched.advance(0.5)
        assert all(card.matched for card in triple)

    def test_hidden_set_match(self) -> None:
        h = _Harness().start(_tiny(hidden_card=True))
        hidden = [c for c in h.ctrl.state.cards if c.kind is CardKind.HIDDEN]
        h.click(*hidden)
        h.sched.advance(0.5)
        (event,) = h.of(EventKind.MATCH_SUCCEEDED)
        assert event.hidden  # type: ignore[union-attr]

    def test_combo_grows_and_resets(self) -> None:
        h = _Harness().start(_tiny(sets=3, grid_cols=3))
        a, b, c = h.sets()
        h.click(*a)
        h.sched.advance(0.5)
        h.click(b[0], c[0])
        h.sched.advance(1.5)
        h.click(*b)
        h.sched.advance(0.5)
        combos = [e.combo for e in h.of(EventKind.MATCH_SUCCEEDED)]  # type: ignore[union-attr]
        assert combos == [1, 1]
        assert h.ctrl.state.combo_bonus == 0


# ── Special cards ────────────────────────────────────────────────────────────


class TestBomb:
    def _harness(self, **overrides: object) -> _Harness:
        difficulty = _tiny(bombs=1, grid_cols=3, **overrides)
        return _Harness(rng=_fixed(0.5)).start(difficulty)

    def test_penalty_and_pause(self) -> None:
        h = self._harness()
        (bomb,) = h.bombs()
        h.click(bomb)
        state = h.ctrl.state
        assert state.time_remaining == 60 - 7.5
        assert bomb.face_up
        assert not state.can_act
        h.sched.advance(1.0)
        assert state.can_act
        assert h.click(bomb) == [False]

    def test_bomb_resets_combo(self) -> None:
        h = self._harness()
        h.click(*h.sets()[0])
        h.sched.advance(0.5)
        assert h.ctrl.state.combo == 1
        h.click(*h.bombs())
        assert h.ctrl.state.combo == 0

    def test_bomb_drops_pending_selection(self) -> None:
        h = self._harness()
        card = h.sets()[0][0]
        h.click(card)
        h.click(*h.bombs())
        assert h.ctrl.state.selection == []
        assert not card.face_up

    def test_shuffle_redeals_unmatched_cards(self) -> None:
        h = self._harness(shuffle_chance=1.0)
        first, second = h.sets()
        h.click(*first)
        h.sched.advance(0.5)
        matched_spots = [card.position for card in first]
        movable = {card.position for card in second}

        h.click(*h.bombs())
        (shuffled,) = h.of(EventKind.CARDS_SHUFFLED)
        assert set(shuffled.cards) == set(second)  # type: ignore[union-attr]
        assert {card.position for card in second} == movable
        assert [card.position for card in first] == matched_spots

    def test_penalty_can_run_out_the_clock(self) -> None:
        h = self._harness(time_limit=5)
        h.click(*h.bombs())
        (over,) = h.of(EventKind.ROUND_OVER)
        assert over.reason is EndReason.TIME  # type: ignore[union-attr]


class TestBonus:
    def test_reveal_then_conceal(self) -> None:
        h = _Harness().start(_tiny(bonus_pairs=1, grid_cols=3))
        bonus = [c for c in h.ctrl.state.cards if c.kind is CardKind.BONUS]
        h.sched.advance(3)
        assert all(card.face_up for card in bonus)
        assert len(h.of(EventKind.BONUS_REVEALED)) == 1
        h.sched.advance(2)
        assert not any(card.face_up for card in bonus)
        assert len(h.of(EventKind.BONUS_CONCEALED)) == 1

    def test_bonus_match_points(self) -> None:
        h = _Harness().start(_tiny(bonus_pairs=1, grid_cols=3))
        bonus = [c for c in h.ctrl.state.cards if c.kind is CardKind.BONUS]
        h.click(*bonus)
        h.sched.advance(0.5)
        (event,) = h.of(EventKind.MATCH_SUCCEEDED)
        assert event.bonus  # type: ignore[union-attr]
        assert event.points == 10 + 50  # type: ignore[union-attr]
        h.sched.advance(5)
        assert h.of(EventKind.BONUS_REVEALED) == []


# ── Round end ────────────────────────────────────────────────────────────────


class TestRoundEnd:
    def test_time_runs_out(self) -> None:
        h = _Harness().start(_tiny(time_limit=3))
        h.sched.advance(3)
        (over,) = h.of(EventKind.ROUND_OVER)
        assert over.reason is EndReason.TIME  # type: ignore[union-attr]
        assert h.ctrl.pending_tasks == 0

    def test_hearts_checked_before_time(self) -> None:
        h = _Harness(mismatch_delay=0.2).start(
            _tiny(hearts=1, time_limit=10, time_penalty=10)
        )
        first, second = h.sets()
        h.click(first[0], second[0])
        h.sched.advance(0.9)  # reveal window ends before the next tick
        (over,) = h.of(EventKind.ROUND_OVER)
        assert over.reason is EndReason.HEARTS  # type: ignore[union-attr]

    def test_mismatch_penalty_expires_clock(self) -> None:
        h = _Harness().start(_tiny(time_limit=5, time_penalty=5))
        first, second = h.sets()
        h.click(first[0], second[0])
        h.sched.advance(2)
        (over,) = h.of(EventKind.ROUND_OVER)
        assert over.reason is EndReason.TIME  # type: ignore[union-attr]

    def test_single_terminal_event(self) -> None:
        h = _Harness().start(_tiny(time_limit=2))
        h.sched.advance(10)
        terminal = h.of(EventKind.ROUND_OVER) + h.of(EventKind.ROUND_COMPLETE)
        assert len(terminal) == 1
        count = len(h.events)
        h.sched.advance(10)
        assert len(h.events) == count

    def test_score_never_decreases(self) -> None:
        h = _Harness().start(_tiny(sets=3, grid_cols=3))
        scores: list[int] = []
        h.ctrl.events.subscribe(None, lambda _e: scores.append(h.ctrl.state.score))
        a, b, c = h.sets()
        for pick in ((a[0], b[0]), tuple(a), (b[0], c[0]), tuple(b), tuple(c)):
            h.click(*pick)
            h.sched.advance(1.5)
        assert h.ctrl.state.is_win
        assert scores == sorted(scores)


# ── Reset / navigation ───────────────────────────────────────────────────────


class TestNavigation:
    def test_reset_is_idempotent(self) -> None:
        h = _Harness().start(_tiny())
        h.click(*h.sets()[0])
        h.ctrl.reset_round()
        h.ctrl.reset_round()
        assert h.ctrl.state.phase is GamePhase.START
        assert h.ctrl.pending_tasks == 0
        count = len(h.events)
        h.sched.advance(10)
        assert len(h.events) == count

    def test_select_difficulty(self) -> None:
        h = _Harness()
        h.ctrl.select_difficulty()
        assert h.ctrl.state.phase is GamePhase.DIFFICULTY_SELECT
        h.start(_tiny())
        with pytest.raises(InvalidTransitionError):
            h.ctrl.select_difficulty()

    def test_retry(self) -> None:
        h = _Harness()
        with pytest.raises(InvalidTransitionError):
            h.ctrl.retry()
        h.start(_tiny(time_limit=1))
        h.sched.advance(1)
        assert h.ctrl.state.is_over
        h.ctrl.retry()
        assert h.ctrl.state.phase is GamePhase.PLAYING
        assert h.ctrl.state.difficulty == _tiny(time_limit=1)


class TestErrorRecovery:
    def test_failure_in_callback_resets_round(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def boom(self: MatchRules, selection: object, combo: int) -> None:
            raise RuntimeError("rules exploded")

        monkeypatch.setattr(MatchRules, "evaluate", boom)
        h = _Harness().start(_tiny())
        h.click(*h.sets()[0])
        h.sched.advance(0.5)

        (error,) = h.of(EventKind.ERROR)
        assert error.method == "check_match"  # type: ignore[union-attr]
        assert isinstance(error.error, RuntimeError)  # type: ignore[union-attr]
        assert h.ctrl.state.phase is GamePhase.START
        assert h.ctrl.pending_tasks == 0

    def test_failing_listener_does_not_stop_round(self) -> None:
        h = _Harness()

        def broken(_event: GameEvent) -> None:
            raise RuntimeError("listener")

        h.ctrl.events.subscribe(EventKind.CARD_FLIPPED, broken)
        h.start(_tiny())
        h.click(*h.sets()[0])
        h.sched.advance(0.5)
        assert h.ctrl.state.matched_sets == 1


class TestMismatchReveal:
    def test_cards_animate_until_concealed(self) -> None:
        h = _Harness().start(_tiny())
        first, second = h.sets()
        h.click(first[0], second[0])
        h.sched.advance(0.5)
        assert first[0].animating and second[0].animating
        assert not first[0].can_flip()

        h.sched.advance(1.0)
        assert not first[0].animating and not second[0].animating
        assert not first[0].face_up and not second[0].face_up

    def test_round_end_clears_animating(self) -> None:
        h = _Harness().start(_tiny(time_limit=10, time_penalty=10))
        first, second = h.sets()
        h.click(first[0], second[0])
        h.sched.advance(0.5)
        assert first[0].animating
        h.sched.advance(0.6)  # next tick finds the clock expired
        (over,) = h.of(EventKind.ROUND_OVER)
        assert over.reason is EndReason.TIME  # type: ignore[union-attr]
        assert not any(card.animating for card in h.ctrl.state.cards)


class TestReentrantListeners:
    def test_restart_from_match_failed(self) -> None:
        h = _Harness().start(_tiny())
        restarts: list[int] = []

        def restart(_event: GameEvent) -> None:
            if not restarts:
                restarts.append(1)
                h.ctrl.start_round(_tiny())

        h.ctrl.events.subscribe(EventKind.MATCH_FAILED, restart)
        first, second = h.sets()
        h.click(first[0], second[0])
        h.sched.advance(0.5)
        assert restarts == [1]
        assert h.of(EventKind.HEART_LOST) == []

        card = h.sets()[0][0]
        assert h.click(card) == [True]
        h.sched.advance(1.0)
        state = h.ctrl.state
        assert state.selection == [card]
        assert card.face_up
        assert state.can_act
        assert state.hearts == state.max_hearts

    def test_reset_from_card_flipped(self) -> None:
        h = _Harness().start(_tiny())
        h.ctrl.events.subscribe(
            EventKind.CARD_FLIPPED, lambda _e: h.ctrl.reset_round()
        )
        first, second = h.sets()[0]
        assert h.click(first, second) == [True, False]
        assert h.ctrl.state.phase is GamePhase.START
        assert h.ctrl.pending_tasks == 0
        assert not first.face_up

    def test_restart_from_bonus_revealed(self) -> None:
        h = _Harness().start(_tiny(bonus_pairs=1, grid_cols=3))
        restarts: list[int] = []

        def restart(_event: GameEvent) -> None:
            if not restarts:
                restarts.append(1)
                h.ctrl.start_round(_tiny(bonus_pairs=1, grid_cols=3))

        h.ctrl.events.subscribe(EventKind.BONUS_REVEALED, restart)
        h.sched.advance(3)
        assert restarts == [1]
        h.sched.advance(2.5)
        assert h.of(EventKind.BONUS_CONCEALED) == []
        assert h.ctrl.state.phase is GamePhase.PLAYING
