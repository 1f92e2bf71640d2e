"""Context managers that label and time the parts of a collection run."""

import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from core.logging.context import get_log_context, set_log_context
from core.logging.utilities import log_exception, log_with_context


class LogContext:
    """
    Apply run-level log context for the duration of a block.

    Fields left as None keep their current value. The previous values are
    restored on exit, including when the block raises.

    Usage:
        with LogContext(cycle_id=generate_cycle_id()):
            collector.start()
    """

    def __init__(
        self,
        cycle_id: Optional[str] = None,
        stage: Optional[str] = None,
        worker_id: Optional[str] = None,
        domain: Optional[str] = None,
    ):
        self._fields = {
            key: value
            for key, value in (
                ("cycle_id", cycle_id),
                ("stage", stage),
                ("worker_id", worker_id),
                ("domain", domain),
            )
            if value is not None
        }
        self._saved: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self._saved = get_log_context()
        set_log_context(**self._fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_log_context(**self._saved)
        return False


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


@contextmanager
def log_phase(
    logger: logging.Logger,
    phase: str,
    level: int = logging.DEBUG,
    **context: Any,
) -> Iterator[Dict[str, Any]]:
    """
    Time one phase of a run and log how it ended.

    Yields a dict; anything the block puts into it is logged with the
    completion message. A phase that raises is logged at WARNING with the
    error type and the exception is re-raised.

    Example:
        with log_phase(logger, "discover_partitions", topic=topic) as phase:
            partitions = enumerator.partitions(topic)
            phase["partition_count"] = len(partitions)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    result: Dict[str, Any] = {}
    start = time.perf_counter()
    try:
        yield result
    except Exception as e:
        log_with_context(
            logger,
            logging.WARNING,
            f"Phase failed: {phase}",
            duration_ms=_elapsed_ms(start),
            error_type=type(e).__name__,
            **context,
        )
        raise

    log_with_context(
        logger,
        level,
        f"Phase complete: {phase}",
        duration_ms=_elapsed_ms(start),
        **{**context, **result},
    )


class OperationContext:
    """
    Time a unit of work such as fetching one partition.

    Completion is logged at ``level``, promoted to INFO when the operation
    took longer than ``slow_threshold_ms``. Failures are logged through
    log_exception so the error category travels with the record.
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.DEBUG,
        slow_threshold_ms: Optional[float] = 1000.0,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.slow_threshold_ms = slow_threshold_ms
        self.context: Dict[str, Any] = dict(context, operation=operation)
        self._start: Optional[float] = None

    def __enter__(self) -> "OperationContext":
        self._start = time.perf_counter()
        return self

    def add_context(self, **kwargs: Any) -> None:
        """Attach fields learned while the operation ran (record counts, offsets)."""
        self.context.update(kwargs)

    def _completion_level(self, duration_ms: float) -> int:
        if self.slow_threshold_ms is not None and duration_ms > self.slow_threshold_ms:
            return max(self.level, logging.INFO)
        return self.level

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = _elapsed_ms(self._start)

        if exc_val is None:
            log_with_context(
                self.logger,
                self._completion_level(duration_ms),
                f"Completed: {self.operation}",
                duration_ms=duration_ms,
                **self.context,
            )
        else:
            log_exception(
                self.logger,
                exc_val,
                f"Failed: {self.operation}",
                duration_ms=duration_ms,
                **self.context,
            )
        return False
