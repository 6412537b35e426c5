"""Core enumerations for the memory-matching domain."""

from __future__ import annotations

from enum import Enum, IntEnum


class CardKind(IntEnum):
    """Closed set of card variants. A card is exactly one of these."""

    NORMAL = 0
    BONUS = 1
    BOMB = 2
    HIDDEN = 3

    @property
    def is_special(self) -> bool:
        return self is not CardKind.NORMAL

    def __str__(self) -> str:
        return self.name.lower()


class GamePhase(Enum):
    """Round lifecycle phases."""

    START = "start"
    DIFFICULTY_SELECT = "difficulty"
    PREVIEW = "preview"
    PLAYING = "playing"
    RESULT = "result"

    def __str__(self) -> str:
        return self.value


class EndReason(Enum):
    """Why a round reached ``RESULT``."""

    COMPLETE = "complete"
    HEARTS = "hearts"
    TIME = "time"
    BOMB = "bomb"

    def __str__(self) -> str:
        return self.value
