"""
Fetch orchestration: split the sample budget, fan out one fetch job per
partition onto a bounded thread pool, and reduce the results.

The run is all-or-nothing. Every job must finish before the single
orchestration deadline and every job must succeed; otherwise the error
propagates and no result is produced.
"""

import concurrent.futures
import contextvars
import logging
from functools import reduce
from typing import Iterable, List, Optional, Sequence

from config.config import CollectorConfig
from core.errors.exceptions import FetchError, TimeoutError
from core.logging import get_logger, log_exception, log_with_context
from latency_collector.fetch_job import KafkaFetchJob
from latency_collector.histogram import Histogram
from latency_collector.types import UNLIMITED, FetchJobFactory, FetchJobResult, GlobalResult

logger = get_logger(__name__)

# Ceiling for the whole pool, not per job
DEFAULT_AWAIT_TIMEOUT_SECONDS = 30 * 60


def split_budget(sample_number: int, partition_count: int) -> List[int]:
    """
    Split a global sample budget across partitions.

    Every partition gets ``sample_number // partition_count``; the last one
    also absorbs the whole remainder. A negative budget gives every partition
    UNLIMITED.

    Example:
        >>> split_budget(100, 3)
        [33, 33, 34]
    """
    if partition_count <= 0:
        raise ValueError(f"partition_count must be > 0, got {partition_count}")

    if sample_number < 0:
        return [UNLIMITED] * partition_count

    quotient, remainder = divmod(sample_number, partition_count)
    budgets = [quotient] * partition_count
    budgets[-1] += remainder
    return budgets


def reduce_results(results: Iterable[FetchJobResult]) -> GlobalResult:
    """Combine per-partition results; order does not matter."""
    return reduce(FetchJobResult.combine, results, FetchJobResult.empty())


class FetchOrchestrator:
    """
    Run one fetch job per partition with bounded parallelism.

    Args:
        config: Collector configuration (thread_num, starting_offset, sample_number)
        histogram: Histogram shared by every job of this run
        fetch_job_factory: Builds a job from (config, topic, partition,
            starting_offset, budget, histogram); defaults to KafkaFetchJob
        await_timeout_seconds: Deadline for all jobs together
    """

    def __init__(
        self,
        config: CollectorConfig,
        histogram: Histogram,
        fetch_job_factory: Optional[FetchJobFactory] = None,
        await_timeout_seconds: float = DEFAULT_AWAIT_TIMEOUT_SECONDS,
    ):
        self.config = config
        self.histogram = histogram
        self.fetch_job_factory = fetch_job_factory or KafkaFetchJob
        self.await_timeout_seconds = await_timeout_seconds

    def run(self, topic: str, partitions: Sequence[int]) -> GlobalResult:
        """
        Fetch every partition and return the reduced result.

        Raises:
            TimeoutError: Jobs still pending or running at the deadline
            FetchError: Any job failed (the first failure in partition order)
        """
        budgets = split_budget(self.config.sample_number, len(partitions))
        jobs = [
            self.fetch_job_factory(
                self.config,
                topic,
                partition,
                self.config.starting_offset,
                budget,
                self.histogram,
            )
            for partition, budget in zip(partitions, budgets)
        ]

        log_with_context(
            logger,
            logging.DEBUG,
            "Dispatching fetch jobs",
            topic=topic,
            partition_count=len(partitions),
            thread_num=self.config.thread_num,
            sample_number=self.config.sample_number,
        )

        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.thread_num,
            thread_name_prefix="fetch-job",
        )
        # Each job runs in a copy of the caller's context so run-level log
        # context (cycle_id, stage) reaches the worker threads
        futures = [
            executor.submit(contextvars.copy_context().run, job) for job in jobs
        ]
        executor.shutdown(wait=False)

        _, not_done = concurrent.futures.wait(
            futures, timeout=self.await_timeout_seconds
        )
        if not_done:
            # Queued jobs are dropped; running jobs are abandoned, not interrupted
            for future in not_done:
                future.cancel()
            raise TimeoutError(
                f"{len(not_done)} of {len(futures)} fetch jobs did not finish "
                f"within {self.await_timeout_seconds}s",
                timeout_seconds=self.await_timeout_seconds,
                context={"topic": topic, "pending_jobs": len(not_done)},
            )

        results = [
            self._collect(topic, partition, future)
            for partition, future in zip(partitions, futures)
        ]
        return reduce_results(results)

    def _collect(
        self,
        topic: str,
        partition: int,
        future: "concurrent.futures.Future[FetchJobResult]",
    ) -> FetchJobResult:
        try:
            result = future.result()
        except FetchError as e:
            log_exception(logger, e, "Fetch job failed", topic=topic, partition=partition)
            raise
        except Exception as e:
            log_exception(logger, e, "Fetch job failed", topic=topic, partition=partition)
            raise FetchError(
                f"Fetch job for {topic}[{partition}] failed",
                partition=partition,
                cause=e,
                context={"topic": topic},
            ) from e

        log_with_context(
            logger,
            logging.DEBUG,
            "Fetch job complete",
            partition=partition,
            records_fetched=result.count,
            min_time_ms=result.min_time_ms,
            max_time_ms=result.max_time_ms,
        )
        return result
