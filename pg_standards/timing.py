"""Operation timing, rolling statistics and slow-operation logging."""

from __future__ import annotations

import contextlib
import dataclasses
import logging
import threading
import time
from typing import Any, Callable, Iterator

from pg_standards.models import OperationStat


class OperationStats:
    """Collects per-operation timing for one helper instance.

    Args:
        logger: Where slow and successful operations are logged.
        log_slow_operations: Log a warning when an operation exceeds slow_threshold.
        slow_threshold: Seconds.
        log_success: Log an info record for every successful operation.
        enabled: When False, durations are still measured and logged but the
            statistics map is left untouched.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        log_slow_operations: bool = True,
        slow_threshold: float = 1.0,
        log_success: bool = False,
        enabled: bool = True,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.logger = logger or logging.getLogger("pg_standards")
        self.log_slow_operations = log_slow_operations
        self.slow_threshold = slow_threshold
        self.log_success = log_success
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._stats: dict[str, OperationStat] = {}
        self._last_operation_time: float | None = None

    @classmethod
    def from_config(cls, config) -> OperationStats:
        return cls(
            logger=logging.getLogger(config.logging.channel),
            log_slow_operations=config.performance.log_slow_operations,
            slow_threshold=config.slow_threshold_seconds,
            log_success=config.logging.log_success,
            enabled=config.performance.enable_statistics,
        )

    @contextlib.contextmanager
    def timed(self, operation: str, **context: Any) -> Iterator[None]:
        """Time the enclosed block; failures are recorded and re-raised."""
        start = self._clock()
        try:
            yield
        except Exception as exc:
            self.record(operation, self._clock() - start, context, error=exc)
            raise
        self.record(operation, self._clock() - start, context)

    def measure(
        self,
        operation: str,
        func: Callable[..., Any],
        *args: Any,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        with self.timed(operation, **(context or {})):
            return func(*args, **kwargs)

    def record(
        self,
        operation: str,
        duration: float,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        context = dict(context or {})
        with self._lock:
            self._last_operation_time = duration
            if self.enabled:
                stat = self._stats.setdefault(operation, OperationStat())
                stat.count += 1
                stat.total_time += duration
                stat.average_time = stat.total_time / stat.count
                stat.last_time = duration

        if error is not None:
            context.update(error=str(error), failed=True)

        if self.log_slow_operations and duration > self.slow_threshold:
            self.logger.warning(
                "Slow PostgreSQL helper operation: %s (%.3fs) %s", operation, duration, context
            )
        if error is None and self.log_success:
            self.logger.info(
                "PostgreSQL helper operation completed: %s (%.3fs) %s",
                operation,
                duration,
                context,
            )

    @property
    def last_operation_time(self) -> float | None:
        """Duration in seconds of the most recent operation, or None."""
        return self._last_operation_time

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            operations = {name: dataclasses.replace(s) for name, s in self._stats.items()}
        return {
            "total_operations": sum(s.count for s in operations.values()),
            "operations": operations,
        }

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
            self._last_operation_time = None
