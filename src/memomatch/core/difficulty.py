"""Difficulty configuration — immutable per-round rules and presets."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from memomatch.core.errors import ConfigurationError

DEFAULT_HEARTS = 5
DEFAULT_SHUFFLE_CHANCE = 0.5
DEFAULT_INSTANT_DEATH_CHANCE = 0.01

BONUS_ARITY = 2


@dataclass(frozen=True, slots=True)
class Difficulty:
    """Immutable difficulty definition.

    Args:
        name: Display name.
        sets: Number of normal match sets (the hidden set, if any, replaces
            one of these).
        grid_cols: Board columns.
        grid_rows: Board rows.
        time_limit: Round length in seconds.
        points_per_match: Base points for every successful match.
        time_penalty: Seconds removed from the clock on a mismatch.
        arity: Cards per set (2 or 3).
        preview_seconds: Face-up preview before play; 0 disables it.
        hearts: Mismatch budget.
        bonus_pairs: Extra 2-card Bonus sets.
        bombs: Singleton Bomb cards.
        hidden_card: Substitute one normal set with a Hidden set.
        shuffle_chance: Probability a bomb re-deals the unmatched cards.
        instant_death_chance: Probability a bomb ends the round outright.
        key: Stable identifier, e.g. for high-score storage.
    """

    name: str
    sets: int
    grid_cols: int
    grid_rows: int
    time_limit: float
    points_per_match: int
    time_penalty: float
    arity: int = 2
    preview_seconds: float = 0.0
    hearts: int = DEFAULT_HEARTS
    bonus_pairs: int = 0
    bombs: int = 0
    hidden_card: bool = False
    shuffle_chance: float = 0.0
    instant_death_chance: float = 0.0
    key: str = ""

    # ── Derived values ───────────────────────────────────────────────────

    @property
    def total_sets(self) -> int:
        """Sets the player has to clear to win (normal, hidden and bonus)."""
        return self.sets + self.bonus_pairs

    @property
    def card_count(self) -> int:
        return self.sets * self.arity + self.bonus_pairs * BONUS_ARITY + self.bombs

    @property
    def grid_capacity(self) -> int:
        return self.grid_cols * self.grid_rows

    @property
    def has_preview(self) -> bool:
        return self.preview_seconds > 0

    # ── Validation ───────────────────────────────────────────────────────

    def validate(self) -> Difficulty:
        """Raise :class:`ConfigurationError` if the rules are unusable."""
        _require_int("sets", self.sets, minimum=1)
        _require_int("grid_cols", self.grid_cols, minimum=1)
        _require_int("grid_rows", self.grid_rows, minimum=1)
        _require_int("points_per_match", self.points_per_match, minimum=0)
        _require_int("hearts", self.hearts, minimum=1)
        _require_int("bonus_pairs", self.bonus_pairs, minimum=0)
        _require_int("bombs", self.bombs, minimum=0)
        if self.arity not in (2, 3):
            raise ConfigurationError(f"arity must be 2 or 3, got {self.arity!r}")
        _require_number("time_limit", self.time_limit, minimum=0, strict=True)
        _require_number("time_penalty", self.time_penalty, minimum=0)
        _require_number("preview_seconds", self.preview_seconds, minimum=0)
        for field_name in ("shuffle_chance", "instant_death_chance"):
            value = getattr(self, field_name)
            _require_number(field_name, value, minimum=0)
            if value > 1:
                raise ConfigurationError(f"{field_name} must be within [0, 1]")
        if self.bonus_pairs and self.arity != BONUS_ARITY:
            raise ConfigurationError(
                "bonus pairs are only supported with 2-card matching"
            )
        if self.card_count > self.grid_capacity:
            raise ConfigurationError(
                f"{self.card_count} cards do not fit a "
                f"{self.grid_cols}x{self.grid_rows} grid"
            )
        return self

    # ── Construction from external data ──────────────────────────────────

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], key: str = "") -> Difficulty:
        """Build a difficulty from the browser-style config dictionary.

        Accepts ``pairs`` or ``sets``, ``matchingRule``, ``timeLimit``,
        ``gridCols``/``gridRows``, ``pointsPerMatch``, ``timePenalty``,
        ``previewTime`` (milliseconds) or ``previewDuration`` (seconds),
        ``hearts``, ``hiddenCard`` and a nested ``specialCards`` block with
        ``bonusPairs``, ``bombs``, ``shuffle``/``shuffleChance`` and
        ``instantDeath``/``instantDeathChance``.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("difficulty configuration must be a mapping")

        sets = data.get("sets", data.get("pairs"))
        if sets is None:
            raise ConfigurationError("difficulty is missing 'pairs' or 'sets'")
        for required in (
            "gridCols",
            "gridRows",
            "timeLimit",
            "pointsPerMatch",
            "timePenalty",
        ):
            if required not in data:
                raise ConfigurationError(f"difficulty is missing {required!r}")

        if "previewDuration" in data:
            preview = data["previewDuration"]
        else:
            preview = _ms_to_seconds(data.get("previewTime", 0))

        special = data.get("specialCards") or {}
        if not isinstance(special, Mapping):
            raise ConfigurationError("'specialCards' must be a mapping")

        shuffle_chance = special.get("shuffleChance")
        if shuffle_chance is None:
            shuffle_chance = DEFAULT_SHUFFLE_CHANCE if special.get("shuffle") else 0.0
        death_chance = special.get("instantDeathChance")
        if death_chance is None:
            death_chance = (
                DEFAULT_INSTANT_DEATH_CHANCE if special.get("instantDeath") else 0.0
            )

        difficulty = cls(
            name=str(data.get("name", key)),
            sets=sets,
            grid_cols=data["gridCols"],
            grid_rows=data["gridRows"],
            time_limit=data["timeLimit"],
            points_per_match=data["pointsPerMatch"],
            time_penalty=data["timePenalty"],
            arity=data.get("matchingRule", 2),
            preview_seconds=preview,
            hearts=data.get("hearts", DEFAULT_HEARTS),
            bonus_pairs=special.get("bonusPairs", 0),
            bombs=special.get("bombs", 0),
            hidden_card=bool(data.get("hiddenCard", False)),
            shuffle_chance=shuffle_chance,
            instant_death_chance=death_chance,
            key=key or str(data.get("key", "")),
        )
        return difficulty.validate()

    # ── Presets ──────────────────────────────────────────────────────────

    @classmethod
    def easy(cls) -> Difficulty:
        return cls(
            name="Easy",
            key="EASY",
            sets=4,
            grid_cols=4,
            grid_rows=2,
            time_limit=180,
            points_per_match=10,
            time_penalty=5,
            preview_seconds=5,
            hearts=5,
            hidden_card=True,
        )

    @classmethod
    def medium(cls) -> Difficulty:
        return cls(
            name="Medium",
            key="MEDIUM",
            sets=7,
            grid_cols=4,
            grid_rows=4,
            time_limit=120,
            points_per_match=15,
            time_penalty=10,
            preview_seconds=7,
            hearts=10,
            bonus_pairs=1,
            hidden_card=True,
        )

    @classmethod
    def hard(cls) -> Difficulty:
        return cls(
            name="Hard",
            key="HARD",
            sets=15,
            grid_cols=8,
            grid_rows=4,
            time_limit=90,
            points_per_match=20,
            time_penalty=15,
            hearts=20,
            bombs=2,
            hidden_card=True,
        )

    @classmethod
    def hell(cls) -> Difficulty:
        return cls(
            name="Hell",
            key="HELL",
            sets=19,
            arity=3,
            grid_cols=11,
            grid_rows=6,
            time_limit=60,
            points_per_match=30,
            time_penalty=20,
            preview_seconds=5,
            hearts=25,
            bombs=6,
            hidden_card=True,
            shuffle_chance=DEFAULT_SHUFFLE_CHANCE,
            instant_death_chance=DEFAULT_INSTANT_DEATH_CHANCE,
        )

    def __repr__(self) -> str:
        return (
            f"Difficulty({self.name!r}, {self.sets}x{self.arity}, "
            f"{self.grid_cols}x{self.grid_rows}, {self.time_limit:g}s)"
        )


PRESETS: dict[str, Difficulty] = {
    "EASY": Difficulty.easy(),
    "MEDIUM": Difficulty.medium(),
    "HARD": Difficulty.hard(),
    "HELL": Difficulty.hell(),
}


def preset(key: str) -> Difficulty:
    """Look up a built-in difficulty by key (case-insensitive)."""
    try:
        return PRESETS[key.upper()]
    except KeyError:
        raise ConfigurationError(f"Unknown difficulty: {key!r}") from None


# ── Helpers ──────────────────────────────────────────────────────────────────


def _require_int(name: str, value: object, *, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _require_number(
    name: str, value: object, *, minimum: float, strict: bool = False
) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if value < minimum or (strict and value == minimum):
        op = ">" if strict else ">="
        raise ConfigurationError(f"{name} must be {op} {minimum}, got {value}")


def _ms_to_seconds(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"previewTime must be a number, got {value!r}")
    return value / 1000
