"""Deck construction: sets, special cards, shuffling and grid placement."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from collections.abc import Iterable, MutableSequence
from typing import TypeVar

from memomatch.core.card import Card
from memomatch.core.difficulty import BONUS_ARITY, Difficulty
from memomatch.core.enums import CardKind
from memomatch.core.errors import ConfigurationError
from memomatch.core.layout import GridLayout

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

THEMES = ("fruit", "animal", "instrument")
DEFAULT_THEME = THEMES[0]

# Bonus ids start this far above the last normal id.
BONUS_ID_OFFSET = 1000


def fisher_yates(items: MutableSequence[T], rng: random.Random) -> MutableSequence[T]:
    """Shuffle *items* in place with an unbiased Fisher–Yates pass."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
    return items


def shuffle_positions(cards: list[Card], rng: random.Random) -> None:
    """Re-deal the positions of *cards* among themselves.

    Identities never change; only which slot each card occupies.
    """
    positions = [card.position for card in cards]
    fisher_yates(positions, rng)
    for card, position in zip(cards, positions):
        card.move_to(position)


def group_by_id(cards: Iterable[Card]) -> dict[int, list[Card]]:
    groups: dict[int, list[Card]] = defaultdict(list)
    for card in cards:
        groups[card.id].append(card)
    return dict(groups)


class DeckBuilder:
    """Builds the shuffled, positioned card list for a difficulty."""

    __slots__ = ("_layout", "_rng")

    def __init__(
        self, layout: GridLayout | None = None, rng: random.Random | None = None
    ) -> None:
        self._layout = layout or GridLayout()
        self._rng = rng or random.Random()

    @property
    def layout(self) -> GridLayout:
        return self._layout

    def build(self, difficulty: Difficulty, theme: str | None = None) -> list[Card]:
        theme = theme or DEFAULT_THEME
        if theme not in THEMES:
            raise ConfigurationError(f"Unknown card theme: {theme!r}")
        difficulty.validate()

        cards = self._normal_sets(difficulty, theme)
        cards.extend(self._bonus_sets(difficulty))
        cards.extend(self._bombs(difficulty))

        fisher_yates(cards, self._rng)

        positions = self._layout.positions(
            len(cards), difficulty.grid_cols, difficulty.grid_rows
        )
        for card, position in zip(cards, positions):
            card.move_to(position)

        _LOGGER.debug(
            "Built %d cards for %s (%d sets of %d)",
            len(cards),
            difficulty.name,
            difficulty.total_sets,
            difficulty.arity,
        )
        return cards

    # ── Internal ─────────────────────────────────────────────────────────

    @staticmethod
    def _normal_sets(difficulty: Difficulty, theme: str) -> list[Card]:
        cards: list[Card] = []
        hidden_id = difficulty.sets - 1 if difficulty.hidden_card else None
        for set_id in range(difficulty.sets):
            if set_id == hidden_id:
                kind, face = CardKind.HIDDEN, "hidden"
            else:
                kind, face = CardKind.NORMAL, f"{theme}/{set_id}"
            cards.extend(Card(set_id, kind, face) for _ in range(difficulty.arity))
        return cards

    @staticmethod
    def _bonus_sets(difficulty: Difficulty) -> list[Card]:
        first = difficulty.sets + BONUS_ID_OFFSET
        return [
            Card(first + i, CardKind.BONUS, "bonus")
            for i in range(difficulty.bonus_pairs)
            for _ in range(BONUS_ARITY)
        ]

    @staticmethod
    def _bombs(difficulty: Difficulty) -> list[Card]:
        return [Card(-(i + 1), CardKind.BOMB, "bomb") for i in range(difficulty.bombs)]
