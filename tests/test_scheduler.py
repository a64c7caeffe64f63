"""Tests for the fixed-interval sync scheduler."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from quotebook.scheduler import SyncScheduler
from quotebook.types import SyncResult


def _engine(result=None):
    engine = MagicMock()
    engine.run_cycle.return_value = result or SyncResult()
    return engine


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestSyncScheduler:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            SyncScheduler(_engine(), interval=0)

    def test_trigger_runs_non_blocking_cycle(self):
        engine = _engine()
        scheduler = SyncScheduler(engine, interval=60)
        result = scheduler.trigger()
        engine.run_cycle.assert_called_once_with(blocking=False)
        assert result is engine.run_cycle.return_value
        assert scheduler.ticks == 1

    def test_skipped_ticks_counted(self):
        scheduler = SyncScheduler(_engine(SyncResult(skipped=True)), interval=60)
        scheduler.trigger()
        scheduler.trigger()
        assert scheduler.skipped_ticks == 2

    def test_on_result_called(self):
        seen = []
        scheduler = SyncScheduler(_engine(), interval=60, on_result=seen.append)
        scheduler.trigger()
        assert len(seen) == 1

    def test_background_ticks(self):
        engine = _engine()
        scheduler = SyncScheduler(engine, interval=0.05)
        scheduler.start()
        try:
            assert scheduler.running
            assert _wait_for(lambda: engine.run_cycle.call_count >= 2)
        finally:
            scheduler.stop()
        assert not scheduler.running

    def test_start_twice_is_noop(self):
        scheduler = SyncScheduler(_engine(), interval=60)
        scheduler.start()
        thread = scheduler._thread
        scheduler.start()
        assert scheduler._thread is thread
        scheduler.stop()

    def test_stop_prevents_further_ticks(self):
        engine = _engine()
        scheduler = SyncScheduler(engine, interval=0.05)
        scheduler.start()
        assert _wait_for(lambda: engine.run_cycle.call_count >= 1)
        scheduler.stop()
        count = engine.run_cycle.call_count
        time.sleep(0.2)
        assert engine.run_cycle.call_count == count

    def test_tick_exception_does_not_kill_loop(self):
        engine = MagicMock()
        calls = threading.Event()

        def flaky(blocking=False):
            if engine.run_cycle.call_count == 1:
                raise RuntimeError("boom")
            calls.set()
            return SyncResult()

        engine.run_cycle.side_effect = flaky
        scheduler = SyncScheduler(engine, interval=0.05)
        scheduler.start()
        try:
            assert calls.wait(5)
        finally:
            scheduler.stop()
