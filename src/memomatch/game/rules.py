"""Match rule engine: decides what a full selection or a bomb click means."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

from memomatch.core.card import Card
from memomatch.core.difficulty import Difficulty
from memomatch.core.enums import CardKind
from memomatch.core.errors import InvalidTransitionError
from memomatch.game.settings import EngineSettings

# ── Effects ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class MatchAwarded:
    """Points for a successful match: base points plus the combo increment."""

    base: int
    combo_bonus: int

    @property
    def points(self) -> int:
        return self.base + self.combo_bonus


@dataclass(frozen=True, slots=True)
class BonusAwarded:
    points: int


@dataclass(frozen=True, slots=True)
class HiddenRevealed:
    pass


@dataclass(frozen=True, slots=True)
class TimePenalty:
    seconds: float


@dataclass(frozen=True, slots=True)
class LoseHeart:
    pass


@dataclass(frozen=True, slots=True)
class Conceal:
    """Cards to turn face-down once the reveal delay has passed."""

    cards: tuple[Card, ...]


Effect = MatchAwarded | BonusAwarded | HiddenRevealed | TimePenalty | LoseHeart | Conceal

E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class MatchOutcome:
    is_match: bool
    cards: tuple[Card, ...]
    effects: tuple[Effect, ...]

    def find(self, effect_type: type[E]) -> E | None:
        for effect in self.effects:
            if isinstance(effect, effect_type):
                return effect
        return None

    @property
    def kind(self) -> CardKind:
        return self.cards[0].kind

    @property
    def points(self) -> int:
        award = self.find(MatchAwarded)
        bonus = self.find(BonusAwarded)
        return (award.points if award else 0) + (bonus.points if bonus else 0)


@dataclass(frozen=True, slots=True)
class BombOutcome:
    instant_death: bool
    shuffled: bool
    penalty: float


# ── Rules ────────────────────────────────────────────────────────────────────


class MatchRules:
    """Evaluates selections against one difficulty's rules.

    Match: every selected card shares an id. A 3-card selection where only
    two cards agree is a plain mismatch; there is no partial credit.
    """

    __slots__ = ("_difficulty", "_settings")

    def __init__(
        self, difficulty: Difficulty, settings: EngineSettings | None = None
    ) -> None:
        self._difficulty = difficulty
        self._settings = settings or EngineSettings()

    @property
    def arity(self) -> int:
        return self._difficulty.arity

    @property
    def bomb_penalty(self) -> float:
        return self._difficulty.time_penalty * self._settings.bomb_penalty_factor

    def is_match(self, selection: Sequence[Card]) -> bool:
        first = selection[0]
        return all(first.matches(card) for card in selection[1:])

    def evaluate(self, selection: Sequence[Card], combo: int) -> MatchOutcome:
        """Resolve a full selection.

        On a match every card becomes matched. *combo* is the streak before
        this attempt; the combo bonus is ``combo * combo_step``.
        """
        self._check_selection(selection)
        cards = tuple(selection)

        if not self.is_match(cards):
            return MatchOutcome(
                is_match=False,
                cards=cards,
                effects=(
                    TimePenalty(self._difficulty.time_penalty),
                    LoseHeart(),
                    Conceal(tuple(card for card in cards if not card.matched)),
                ),
            )

        for card in cards:
            card.mark_matched()

        effects: list[Effect] = [
            MatchAwarded(
                base=self._difficulty.points_per_match,
                combo_bonus=combo * self._settings.combo_step,
            )
        ]
        kind = cards[0].kind
        if kind is CardKind.BONUS:
            effects.append(BonusAwarded(self._settings.bonus_points))
        elif kind is CardKind.HIDDEN:
            effects.append(HiddenRevealed())
        return MatchOutcome(is_match=True, cards=cards, effects=tuple(effects))

    def resolve_bomb(self, rng: random.Random) -> BombOutcome:
        """Draw the bomb's fate. Instant death pre-empts shuffle and penalty."""
        if _draw(rng, self._difficulty.instant_death_chance):
            return BombOutcome(instant_death=True, shuffled=False, penalty=0.0)
        return BombOutcome(
            instant_death=False,
            shuffled=_draw(rng, self._difficulty.shuffle_chance),
            penalty=self.bomb_penalty,
        )

    # ── Internal ─────────────────────────────────────────────────────────

    def _check_selection(self, selection: Sequence[Card]) -> None:
        if len(selection) != self.arity:
            raise InvalidTransitionError(
                f"Expected {self.arity} selected cards, got {len(selection)}"
            )
        if any(card.is_bomb for card in selection):
            raise InvalidTransitionError("Bomb cards never enter a comparison")
        if len({id(card) for card in selection}) != len(selection):
            raise InvalidTransitionError("A card cannot be selected twice")


def _draw(rng: random.Random, chance: float) -> bool:
    return chance > 0 and rng.random() < chance
