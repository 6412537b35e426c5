"""Game management layer — controller, state, rules, clock and scheduling.

Quick start::

    from memomatch.core import Difficulty
    from memomatch.game import EventKind, GameController, ManualScheduler

    scheduler = ManualScheduler()
    ctrl = GameController(scheduler=scheduler)
    ctrl.events.subscribe(EventKind.MATCH_SUCCEEDED, print)
    ctrl.start_round(Difficulty.easy())
    scheduler.advance(5)  # preview
    ctrl.handle_card_activation(ctrl.state.cards[0])
"""

from memomatch.game.clock import ClockSnapshot, RoundClock
from memomatch.game.controller import GameController
from memomatch.game.events import EventBus, EventKind, GameEvent
from memomatch.game.interfaces import IClock, IGameController, IScheduler, ITaskHandle
from memomatch.game.rules import BombOutcome, MatchOutcome, MatchRules
from memomatch.game.scheduler import ManualScheduler, RoundTasks
from memomatch.game.settings import EngineSettings
from memomatch.game.state import GameInfo, GameState, ResultStats

__all__ = [
    # Interfaces
    "IClock",
    "IGameController",
    "IScheduler",
    "ITaskHandle",
    # Concrete
    "BombOutcome",
    "ClockSnapshot",
    "EngineSettings",
    "EventBus",
    "EventKind",
    "GameController",
    "GameEvent",
    "GameInfo",
    "GameState",
    "ManualScheduler",
    "MatchOutcome",
    "MatchRules",
    "ResultStats",
    "RoundClock",
    "RoundTasks",
]
