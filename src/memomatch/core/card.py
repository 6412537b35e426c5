"""Card — one physical slot on the board."""

from __future__ import annotations

from dataclasses import dataclass

from memomatch.core.enums import CardKind
from memomatch.core.errors import InvalidTransitionError


@dataclass(frozen=True, slots=True)
class Point:
    """Top-left canvas coordinate of a card."""

    x: float
    y: float


ORIGIN = Point(0.0, 0.0)


class Card:
    """Identity plus flip/match state for a single card.

    Cards sharing a non-negative ``id`` form a match set. Bomb cards carry
    negative ids and never match anything, each other included.

    Invariant: ``matched`` implies ``face_up``; once matched a card stays
    matched until the round is discarded with :meth:`reset`.
    """

    __slots__ = (
        "_id",
        "_kind",
        "_face",
        "_position",
        "_face_up",
        "_matched",
        "_animating",
        "_flip_count",
    )

    def __init__(
        self,
        card_id: int,
        kind: CardKind = CardKind.NORMAL,
        face: str = "",
        position: Point = ORIGIN,
    ) -> None:
        if kind is CardKind.BOMB and card_id >= 0:
            raise ValueError(f"Bomb cards need a negative id, got {card_id}")
        if kind is not CardKind.BOMB and card_id < 0:
            raise ValueError(f"Negative ids are reserved for bombs, got {card_id}")
        self._id = card_id
        self._kind = kind
        self._face = face
        self._position = position
        self._face_up = False
        self._matched = False
        self._animating = False
        self._flip_count = 0

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def id(self) -> int:
        return self._id

    @property
    def kind(self) -> CardKind:
        return self._kind

    @property
    def face(self) -> str:
        """Asset key the renderer uses for the card front."""
        return self._face

    @property
    def position(self) -> Point:
        return self._position

    @property
    def face_up(self) -> bool:
        return self._face_up

    @property
    def matched(self) -> bool:
        return self._matched

    @property
    def animating(self) -> bool:
        return self._animating

    @property
    def flip_count(self) -> int:
        return self._flip_count

    @property
    def is_bomb(self) -> bool:
        return self._kind is CardKind.BOMB

    # ── State changes ────────────────────────────────────────────────────

    def can_flip(self) -> bool:
        return not self._matched and not self._animating and not self._face_up

    def flip(self) -> None:
        """Toggle the card face."""
        if self._matched:
            raise InvalidTransitionError(f"Card {self._id} is already matched")
        if self._animating:
            raise InvalidTransitionError(f"Card {self._id} is animating")
        self._face_up = not self._face_up
        self._flip_count += 1

    def set_face_up(self, face_up: bool) -> None:
        if self._matched and not face_up:
            raise InvalidTransitionError(f"Card {self._id} is matched; it stays face up")
        self._face_up = face_up

    def set_animating(self, animating: bool) -> None:
        """Block clicks while the card is mid-transition.

        The controller holds this over the mismatch reveal window; renderers
        may also set it for the length of a flip animation.
        """
        self._animating = animating

    def mark_matched(self) -> None:
        if self._kind is CardKind.BOMB:
            raise InvalidTransitionError("Bomb cards can never be matched")
        self._matched = True
        self._face_up = True
        self._animating = False

    def move_to(self, position: Point) -> None:
        self._position = position

    def reset(self) -> None:
        self._face_up = False
        self._matched = False
        self._animating = False
        self._flip_count = 0

    # ── Comparison ───────────────────────────────────────────────────────

    def matches(self, other: Card) -> bool:
        if self.is_bomb or other.is_bomb:
            return False
        return self._id == other._id

    def __repr__(self) -> str:
        if self._matched:
            state = "matched"
        elif self._face_up:
            state = "face-up"
        else:
            state = "face-down"
        return (
            f"Card(id={self._id}, kind={self._kind}, {state}, "
            f"pos=({self._position.x:g},{self._position.y:g}))"
        )
