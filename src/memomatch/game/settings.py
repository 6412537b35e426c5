"""Engine settings — timing windows, scoring constants and layout."""

from __future__ import annotations

from dataclasses import dataclass, field

from memomatch.core.deck import DEFAULT_THEME
from memomatch.core.errors import ConfigurationError
from memomatch.core.layout import GridLayout


@dataclass
class EngineSettings:
    """All tunable engine constants. Durations are in seconds."""

    # Comparison windows
    match_delay: float = 0.5
    mismatch_delay: float = 1.0
    bomb_pause: float = 1.0

    # Special cards
    bomb_penalty_factor: float = 1.5
    bonus_reveal_delay: float = 3.0
    bonus_reveal_duration: float = 2.0
    bonus_points: int = 50

    # Scoring
    combo_step: int = 5
    time_bonus_per_second: int = 2
    heart_bonus_per_heart: int = 10

    # Clock
    tick_interval: float = 1.0

    default_theme: str = DEFAULT_THEME
    layout: GridLayout = field(default_factory=GridLayout)

    def validate(self) -> EngineSettings:
        for name in (
            "match_delay",
            "mismatch_delay",
            "bomb_pause",
            "bonus_reveal_delay",
            "bonus_reveal_duration",
        ):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative")
        if self.tick_interval <= 0:
            raise ConfigurationError("tick_interval must be positive")
        if self.bomb_penalty_factor < 0:
            raise ConfigurationError("bomb_penalty_factor must not be negative")
        return self
