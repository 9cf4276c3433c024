"""Tests for pg_standards.timing.OperationStats."""

from __future__ import annotations

import logging
import threading

import pytest

from pg_standards.config import Config
from pg_standards.timing import OperationStats


@pytest.fixture
def stats(clock) -> OperationStats:
    return OperationStats(logger=logging.getLogger("pg_standards.test"), clock=clock)


class TestRecording:
    def test_timed_records_duration(self, stats, clock):
        with stats.timed("fix_all"):
            clock.advance(0.25)
        stat = stats.snapshot()["operations"]["fix_all"]
        assert stat.count == 1
        assert stat.total_time == pytest.approx(0.25)
        assert stat.last_time == pytest.approx(0.25)
        assert stats.last_operation_time == pytest.approx(0.25)

    def test_average(self, stats):
        stats.record("op", 1.0)
        stats.record("op", 3.0)
        stat = stats.snapshot()["operations"]["op"]
        assert stat.average_time == pytest.approx(2.0)
        assert stat.last_time == pytest.approx(3.0)

    def test_failure_recorded_and_reraised(self, stats, clock):
        with pytest.raises(RuntimeError):
            with stats.timed("fix_all"):
                clock.advance(0.1)
                raise RuntimeError("boom")
        assert stats.snapshot()["operations"]["fix_all"].count == 1

    def test_measure_returns_value(self, stats):
        assert stats.measure("add", lambda a, b: a + b, 2, 3) == 5
        assert stats.snapshot()["total_operations"] == 1

    def test_disabled_does_not_update_map(self, clock):
        stats = OperationStats(enabled=False, clock=clock)
        with stats.timed("op"):
            clock.advance(0.5)
        assert stats.snapshot() == {"total_operations": 0, "operations": {}}
        assert stats.last_operation_time == pytest.approx(0.5)

    def test_snapshot_is_a_copy(self, stats):
        stats.record("op", 1.0)
        stats.snapshot()["operations"]["op"].count = 99
        assert stats.snapshot()["operations"]["op"].count == 1

    def test_reset(self, stats):
        stats.record("op", 1.0)
        stats.reset()
        assert stats.snapshot()["total_operations"] == 0
        assert stats.last_operation_time is None

    def test_instances_are_independent(self):
        a = OperationStats()
        b = OperationStats()
        a.record("op", 1.0)
        assert b.snapshot()["operations"] == {}

    def test_concurrent_records(self):
        stats = OperationStats()

        def work():
            for _ in range(200):
                stats.record("op", 0.001)

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert stats.snapshot()["operations"]["op"].count == 1600


class TestLogging:
    def test_slow_operation_warning(self, stats, clock, caplog):
        with caplog.at_level(logging.WARNING, logger="pg_standards.test"):
            with stats.timed("fix_all", tables=["orders"]):
                clock.advance(2.0)
        assert "Slow PostgreSQL helper operation: fix_all" in caplog.text
        assert "orders" in caplog.text

    def test_fast_operation_not_logged(self, stats, clock, caplog):
        with caplog.at_level(logging.INFO, logger="pg_standards.test"):
            with stats.timed("fix_all"):
                clock.advance(0.1)
        assert caplog.records == []

    def test_slow_logging_disabled(self, clock, caplog):
        stats = OperationStats(log_slow_operations=False, clock=clock)
        with caplog.at_level(logging.WARNING):
            stats.record("op", 10.0)
        assert caplog.records == []

    def test_success_logging(self, clock, caplog):
        stats = OperationStats(
            logger=logging.getLogger("pg_standards.test"), log_success=True, clock=clock
        )
        with caplog.at_level(logging.INFO, logger="pg_standards.test"):
            stats.record("op", 0.01)
            stats.record("failed_op", 0.01, error=RuntimeError("x"))
        messages = [r.getMessage() for r in caplog.records]
        assert len(messages) == 1
        assert messages[0].startswith("PostgreSQL helper operation completed: op")

    def test_failed_slow_operation_logs_error_context(self, stats, caplog):
        with caplog.at_level(logging.WARNING, logger="pg_standards.test"):
            stats.record("op", 5.0, error=RuntimeError("boom"))
        assert "'failed': True" in caplog.text


class TestFromConfig:
    def test_threshold_in_seconds(self):
        config = Config()
        config.performance.slow_operation_threshold = 250
        config.logging.channel = "custom"
        stats = OperationStats.from_config(config)
        assert stats.slow_threshold == pytest.approx(0.25)
        assert stats.logger.name == "custom"
