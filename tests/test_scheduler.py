"""Tests du planificateur d'exécutions de chef-client."""

from unittest.mock import MagicMock, patch

import pytest

from client_service.core import scheduler as scheduler_mod
from client_service.core.scheduler import ClientRunScheduler


@pytest.fixture
def callback():
    return MagicMock()


@pytest.fixture
def make_scheduler(callback):
    created = []

    def _make(interval=1800, splay=0, **kwargs):
        scheduler = ClientRunScheduler(interval, splay, MagicMock(), callback, **kwargs)
        created.append(scheduler)
        return scheduler

    yield _make

    for scheduler in created:
        if scheduler.is_running:
            scheduler.stop()


class TestClientRunScheduler:
    def test_schedule_configured(self, make_scheduler):
        scheduler = make_scheduler(interval="900", splay="30")

        assert scheduler.interval == 900
        assert scheduler.splay == 30
        assert len(scheduler.scheduler.jobs) == 1
        assert scheduler.scheduler.jobs[0].interval == 900

    def test_force_run(self, make_scheduler, callback):
        scheduler = make_scheduler()

        scheduler.force_run()

        callback.assert_called_once_with()
        assert scheduler.run_count == 1
        assert scheduler.get_status()["last_run"] is not None

    def test_callback_error_is_logged(self, make_scheduler, callback):
        callback.side_effect = RuntimeError("boom")
        scheduler = make_scheduler()

        scheduler.force_run()

        scheduler.logger.exception.assert_called_once()
        assert scheduler.run_count == 1

    def test_splay_delay_before_scheduled_run(self, make_scheduler, callback):
        scheduler = make_scheduler(splay=20)

        with patch.object(scheduler_mod.random, "randint", return_value=7) as randint, \
                patch.object(scheduler.stop_event, "wait", return_value=False) as wait:
            scheduler._scheduled_run()

        randint.assert_called_once_with(0, 20)
        wait.assert_called_once_with(timeout=7)
        callback.assert_called_once_with()

    def test_stop_during_splay_cancels_run(self, make_scheduler, callback):
        scheduler = make_scheduler(splay=20)
        scheduler.stop_event.set()

        with patch.object(scheduler_mod.random, "randint", return_value=5):
            scheduler._scheduled_run()

        callback.assert_not_called()

    def test_no_splay(self, make_scheduler):
        assert make_scheduler(splay=0)._splay_delay() == 0

    def test_start_and_stop(self, make_scheduler):
        scheduler = make_scheduler(poll_interval=0.01)

        scheduler.start()
        assert scheduler.get_status()["is_running"]
        assert scheduler.scheduler_thread.is_alive()

        scheduler.stop()
        assert not scheduler.is_running
        assert not scheduler.scheduler_thread.is_alive()
        assert scheduler.wait(timeout=0)

    def test_double_start_warns(self, make_scheduler):
        scheduler = make_scheduler(poll_interval=0.01)

        scheduler.start()
        scheduler.start()

        scheduler.logger.warning.assert_called_once()

    def test_status(self, make_scheduler):
        status = make_scheduler(interval=60, splay=5).get_status()

        assert status["interval"] == 60
        assert status["splay"] == 5
        assert status["run_count"] == 0
        assert status["last_run"] is None
        assert status["next_run"] is not None
