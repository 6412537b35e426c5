"""Game state — the single mutable record of one round."""

from __future__ import annotations

from dataclasses import dataclass, field

from memomatch.core.card import Card
from memomatch.core.difficulty import Difficulty
from memomatch.core.enums import EndReason, GamePhase
from memomatch.core.errors import InvalidTransitionError


@dataclass(frozen=True, slots=True)
class GameInfo:
    """Read-only projection of the state for HUD display."""

    phase: GamePhase
    difficulty: str | None
    score: int
    hearts: int
    max_hearts: int
    time_remaining: float
    matched_sets: int
    total_sets: int
    remaining_sets: int
    attempts: int
    accuracy: int
    combo: int


@dataclass(frozen=True, slots=True)
class ResultStats:
    """Final statistics reported when a round ends."""

    difficulty: str | None
    difficulty_key: str | None
    is_win: bool
    end_reason: EndReason | None
    score: int
    base_score: int
    combo_bonus: int
    time_bonus: int
    heart_bonus: int
    matched_sets: int
    total_sets: int
    attempts: int
    success_count: int
    fail_count: int
    accuracy: int
    max_combo: int
    hearts: int
    max_hearts: int
    time_remaining: float
    elapsed_seconds: int


@dataclass
class GameState:
    """Phase, cards, selection, hearts, score and statistics of a round.

    Pure data/logic — no timers, no events. Once the round reaches
    ``RESULT`` every mutator except :meth:`reset` raises
    :class:`InvalidTransitionError`.
    """

    phase: GamePhase = field(default=GamePhase.START, init=False)
    difficulty: Difficulty | None = field(default=None, init=False)
    cards: list[Card] = field(default_factory=list, init=False)
    selection: list[Card] = field(default_factory=list, init=False)
    can_act: bool = field(default=True, init=False)

    matched_sets: int = field(default=0, init=False)
    hearts: int = field(default=0, init=False)
    max_hearts: int = field(default=0, init=False)

    base_score: int = field(default=0, init=False)
    combo_bonus: int = field(default=0, init=False)
    time_bonus: int = field(default=0, init=False)
    heart_bonus: int = field(default=0, init=False)

    time_remaining: float = field(default=0.0, init=False)
    time_limit: float = field(default=0.0, init=False)
    started_at: float | None = field(default=None, init=False)
    elapsed_seconds: int = field(default=0, init=False)
    preview_remaining: float = field(default=0.0, init=False)

    attempts: int = field(default=0, init=False)
    success_count: int = field(default=0, init=False)
    fail_count: int = field(default=0, init=False)
    combo: int = field(default=0, init=False)
    max_combo: int = field(default=0, init=False)

    is_win: bool = field(default=False, init=False)
    end_reason: EndReason | None = field(default=None, init=False)

    # ── Initialisation ───────────────────────────────────────────────────

    def reset(self, phase: GamePhase = GamePhase.START) -> None:
        """Discard the round and return to *phase*."""
        for name, default in _DEFAULTS.items():
            setattr(self, name, default() if callable(default) else default)
        self.phase = phase

    def setup(self, difficulty: Difficulty, cards: list[Card]) -> None:
        """Load a freshly dealt round."""
        self.reset(GamePhase.DIFFICULTY_SELECT)
        self.difficulty = difficulty
        self.cards = cards
        self.time_limit = difficulty.time_limit
        self.time_remaining = difficulty.time_limit
        self.max_hearts = difficulty.hearts
        self.hearts = difficulty.hearts

    # ── Phase transitions ────────────────────────────────────────────────

    def begin_preview(self, seconds: float) -> None:
        self._require_open()
        self.phase = GamePhase.PREVIEW
        self.preview_remaining = seconds
        self.can_act = False

    def begin_playing(self, now: float) -> None:
        self._require_open()
        self.phase = GamePhase.PLAYING
        self.preview_remaining = 0.0
        self.started_at = now
        self.can_act = True

    def finish_win(self, per_second: int = 2, per_heart: int = 10) -> None:
        """Close the round as a win and grant the end-of-round bonuses."""
        self._require_open()
        self.phase = GamePhase.RESULT
        self.is_win = True
        self.end_reason = EndReason.COMPLETE
        self.can_act = False
        self.time_bonus = int(self.time_remaining * per_second)
        self.heart_bonus = self.hearts * per_heart

    def finish_loss(self, reason: EndReason) -> None:
        if reason is EndReason.COMPLETE:
            raise InvalidTransitionError("A completed round is a win")
        self._require_open()
        self.phase = GamePhase.RESULT
        self.is_win = False
        self.end_reason = reason
        self.can_act = False

    # ── Selection ────────────────────────────────────────────────────────

    def select(self, card: Card) -> bool:
        """Append *card* to the selection; True once it holds ``arity`` cards."""
        self._require_open()
        arity = self.arity
        if len(self.selection) >= arity:
            raise InvalidTransitionError("Selection is already full")
        if any(selected is card for selected in self.selection):
            raise InvalidTransitionError(f"{card!r} is already selected")
        self.selection.append(card)
        return len(self.selection) == arity

    def lock_for_comparison(self) -> None:
        self._require_open()
        self.can_act = False
        self.attempts += 1

    def lock(self) -> None:
        self.can_act = False

    def release(self) -> None:
        if self.phase is GamePhase.PLAYING:
            self.can_act = True

    def clear_selection(self, release: bool = True) -> list[Card]:
        cleared = list(self.selection)
        self.selection.clear()
        if release:
            self.release()
        return cleared

    # ── Scoring ──────────────────────────────────────────────────────────

    def record_match(self, points: int, combo_bonus: int = 0) -> None:
        self._require_open()
        if self.matched_sets >= self.total_sets:
            raise InvalidTransitionError("Every set is already matched")
        self.matched_sets += 1
        self.success_count += 1
        self.combo += 1
        self.max_combo = max(self.max_combo, self.combo)
        self.base_score += points
        self.combo_bonus += combo_bonus

    def record_mismatch(self) -> None:
        self._require_open()
        self.fail_count += 1
        self.combo = 0
        self.hearts = max(0, self.hearts - 1)

    def record_bomb(self) -> None:
        self._require_open()
        self.combo = 0

    def update_time(self, remaining: float, elapsed: int | None = None) -> None:
        self._require_open()
        self.time_remaining = max(0.0, remaining)
        if elapsed is not None:
            self.elapsed_seconds = elapsed

    # ── Query helpers ────────────────────────────────────────────────────

    @property
    def arity(self) -> int:
        return self.difficulty.arity if self.difficulty else 2

    @property
    def total_sets(self) -> int:
        return self.difficulty.total_sets if self.difficulty else 0

    @property
    def remaining_sets(self) -> int:
        return self.total_sets - self.matched_sets

    @property
    def score(self) -> int:
        return self.base_score + self.combo_bonus + self.time_bonus + self.heart_bonus

    @property
    def accuracy(self) -> int:
        """Successful attempts as a rounded percentage."""
        if self.attempts == 0:
            return 0
        return round(self.success_count / self.attempts * 100)

    @property
    def is_all_matched(self) -> bool:
        return self.total_sets > 0 and self.matched_sets == self.total_sets

    @property
    def is_playing(self) -> bool:
        return self.phase is GamePhase.PLAYING

    @property
    def is_over(self) -> bool:
        return self.phase is GamePhase.RESULT

    @property
    def is_hearts_empty(self) -> bool:
        return self.hearts <= 0

    def info(self) -> GameInfo:
        return GameInfo(
            phase=self.phase,
            difficulty=self.difficulty.name if self.difficulty else None,
            score=self.score,
            hearts=self.hearts,
            max_hearts=self.max_hearts,
            time_remaining=self.time_remaining,
            matched_sets=self.matched_sets,
            total_sets=self.total_sets,
            remaining_sets=self.remaining_sets,
            attempts=self.attempts,
            accuracy=self.accuracy,
            combo=self.combo,
        )

    def result_stats(self) -> ResultStats:
        return ResultStats(
            difficulty=self.difficulty.name if self.difficulty else None,
            difficulty_key=self.difficulty.key if self.difficulty else None,
            is_win=self.is_win,
            end_reason=self.end_reason,
            score=self.score,
            base_score=self.base_score,
            combo_bonus=self.combo_bonus,
            time_bonus=self.time_bonus,
            heart_bonus=self.heart_bonus,
            matched_sets=self.matched_sets,
            total_sets=self.total_sets,
            attempts=self.attempts,
            success_count=self.success_count,
            fail_count=self.fail_count,
            accuracy=self.accuracy,
            max_combo=self.max_combo,
            hearts=self.hearts,
            max_hearts=self.max_hearts,
            time_remaining=self.time_remaining,
            elapsed_seconds=self.elapsed_seconds,
        )

    # ── Internal ─────────────────────────────────────────────────────────

    def _require_open(self) -> None:
        if self.phase is GamePhase.RESULT:
            raise InvalidTransitionError("The round is over; state is frozen")


_DEFAULTS: dict[str, object] = {
    "difficulty": None,
    "cards": list,
    "selection": list,
    "can_act": True,
    "matched_sets": 0,
    "hearts": 0,
    "max_hearts": 0,
    "base_score": 0,
    "combo_bonus": 0,
    "time_bonus": 0,
    "heart_bonus": 0,
    "time_remaining": 0.0,
    "time_limit": 0.0,
    "started_at": None,
    "elapsed_seconds": 0,
    "preview_remaining": 0.0,
    "attempts": 0,
    "success_count": 0,
    "fail_count": 0,
    "combo": 0,
    "max_combo": 0,
    "is_win": False,
    "end_reason": None,
}
