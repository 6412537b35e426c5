"""Core domain layer — cards, difficulties and deck building, no Qt.

Quick start::

    import random

    from memomatch.core import DeckBuilder, Difficulty

    deck = DeckBuilder(rng=random.Random(7)).build(Difficulty.easy())
    for card in deck:
        print(card)
"""

from memomatch.core.card import Card, Point
from memomatch.core.deck import (
    THEMES,
    DeckBuilder,
    fisher_yates,
    group_by_id,
    shuffle_positions,
)
from memomatch.core.difficulty import PRESETS, Difficulty, preset
from memomatch.core.enums import CardKind, EndReason, GamePhase
from memomatch.core.errors import (
    ConfigurationError,
    InvalidTransitionError,
    ListenerError,
    MemoMatchError,
)
from memomatch.core.layout import GridGeometry, GridLayout

__all__ = [
    # Enums
    "CardKind",
    "EndReason",
    "GamePhase",
    # Errors
    "ConfigurationError",
    "InvalidTransitionError",
    "ListenerError",
    "MemoMatchError",
    # Domain objects
    "Card",
    "Difficulty",
    "GridGeometry",
    "GridLayout",
    "Point",
    "PRESETS",
    "THEMES",
    "preset",
    # Deck
    "DeckBuilder",
    "fisher_yates",
    "group_by_id",
    "shuffle_positions",
]
