"""Headless demo entry point: plays one round on the Qt event loop."""

from __future__ import annotations

import logging
import random
import sys

from PyQt6.QtCore import QCoreApplication, QObject, QTimer

from memomatch.core.difficulty import preset
from memomatch.game.controller import GameController
from memomatch.game.events import EventKind, GameEvent
from memomatch.game.qt_scheduler import QtScheduler
from memomatch.game.settings import EngineSettings

_LOGGER = logging.getLogger(__name__)


def create_qt_controller(
    settings: EngineSettings | None = None,
    rng: random.Random | None = None,
    parent: QObject | None = None,
) -> GameController:
    """Build a controller whose timers run on the Qt event loop."""
    return GameController(settings=settings, scheduler=QtScheduler(parent), rng=rng)


def _click_random_card(ctrl: GameController, rng: random.Random) -> None:
    candidates = [card for card in ctrl.state.cards if card.can_flip()]
    if candidates and ctrl.state.can_act:
        ctrl.handle_card_activation(rng.choice(candidates))


def main(argv: list[str] | None = None) -> int:
    """Play a round with random clicks and log every event."""
    args = sys.argv[1:] if argv is None else argv
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    rng = random.Random()
    ctrl = create_qt_controller(rng=rng)

    def log_event(event: GameEvent) -> None:
        _LOGGER.info("%s %s", event.kind.value, event)

    ctrl.events.subscribe(None, log_event)
    ctrl.events.subscribe(EventKind.ROUND_COMPLETE, lambda _e: app.quit())
    ctrl.events.subscribe(EventKind.ROUND_OVER, lambda _e: app.quit())

    clicker = QTimer()
    clicker.timeout.connect(lambda: _click_random_card(ctrl, rng))
    clicker.start(300)

    ctrl.start_round(preset(args[0] if args else "EASY"))
    code = app.exec()
    clicker.stop()
    _LOGGER.info("Final: %s", ctrl.state.result_stats())
    return code


if __name__ == "__main__":
    sys.exit(main())
