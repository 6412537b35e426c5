"""Tests for ManualScheduler and RoundTasks."""

import pytest

from memomatch.game.scheduler import ManualScheduler, RoundTasks


class TestManualScheduler:
    def test_call_later_fires_at_deadline(self) -> None:
        sched = ManualScheduler()
        fired: list[float] = []
        sched.call_later(1.5, lambda: fired.append(sched.now()))
        sched.advance(1.0)
        assert fired == []
        sched.advance(0.5)
        assert fired == [1.5]
        assert sched.now() == 1.5

    def test_call_every_repeats(self) -> None:
        sched = ManualScheduler()
        ticks: list[float] = []
        sched.call_every(1.0, lambda: ticks.append(sched.now()))
        sched.advance(3.5)
        assert ticks == [1.0, 2.0, 3.0]
        assert sched.now() == 3.5

    def test_same_deadline_runs_in_schedule_order(self) -> None:
        sched = ManualScheduler()
        order: list[str] = []
        sched.call_later(1.0, lambda: order.append("a"))
        sched.call_later(1.0, lambda: order.append("b"))
        sched.advance(1.0)
        assert order == ["a", "b"]

    def test_cancelled_task_does_not_fire(self) -> None:
        sched = ManualScheduler()
        fired: list[int] = []
        handle = sched.call_later(1.0, lambda: fired.append(1))
        handle.cancel()
        sched.advance(2.0)
        assert fired == []
        assert not handle.active

    def test_periodic_task_can_cancel_itself(self) -> None:
        sched = ManualScheduler()
        ticks: list[int] = []

        def tick() -> None:
            ticks.append(1)
            if len(ticks) == 2:
                handle.cancel()

        handle = sched.call_every(1.0, tick)
        sched.advance(5.0)
        assert len(ticks) == 2
        assert sched.pending() == 0

    def test_task_scheduled_from_callback(self) -> None:
        sched = ManualScheduler()
        fired: list[float] = []
        sched.call_later(1.0, lambda: sched.call_later(0.5, lambda: fired.append(sched.now())))
        sched.advance(2.0)
        assert fired == [1.5]

    def test_rejects_bad_arguments(self) -> None:
        sched = ManualScheduler()
        with pytest.raises(ValueError):
            sched.call_later(-1, lambda: None)
        with pytest.raises(ValueError):
            sched.call_every(0, lambda: None)
        with pytest.raises(ValueError):
            sched.advance(-0.1)


class TestRoundTasks:
    def test_cancel_all(self) -> None:
        sched = ManualScheduler()
        tasks = RoundTasks(sched)
        fired: list[int] = []
        tasks.call_later(1.0, lambda: fired.append(1))
        tasks.call_every(0.5, lambda: fired.append(2))
        assert len(tasks) == 2
        assert tasks.cancel_all() == 2
        sched.advance(5.0)
        assert fired == []
        assert len(tasks) == 0

    def test_finished_tasks_are_not_counted(self) -> None:
        sched = ManualScheduler()
        tasks = RoundTasks(sched)
        tasks.call_later(1.0, lambda: None)
        sched.advance(1.0)
        assert len(tasks) == 0
        assert tasks.cancel_all() == 0
