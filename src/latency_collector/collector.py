"""
One measurement pass: discover partitions, fetch them all, write the report.
"""

import logging
from pathlib import Path
from typing import Optional

from config.config import CollectorConfig
from core.logging import get_logger, log_phase, log_with_context
from latency_collector.histogram import Histogram, create_histogram
from latency_collector.orchestrator import FetchOrchestrator
from latency_collector.partitions import PartitionEnumerator
from latency_collector.report import CsvReportWriter
from latency_collector.types import FetchJobFactory

logger = get_logger(__name__)


class LatencyCollector:
    """
    Measure end-to-end latency and throughput from a metrics topic.

    Collaborators default to the Kafka-backed implementations and can be
    replaced for tests or alternative stores.

    Usage:
        >>> collector = LatencyCollector(load_config())
        >>> collector.start()
        PosixPath('metrics/pipeline.metrics.csv')
    """

    def __init__(
        self,
        config: CollectorConfig,
        enumerator: Optional[PartitionEnumerator] = None,
        fetch_job_factory: Optional[FetchJobFactory] = None,
        writer: Optional[CsvReportWriter] = None,
        histogram: Optional[Histogram] = None,
    ):
        self.config = config
        self.topic = config.metrics_topic
        self.histogram = histogram or create_histogram(config.reservoir_size)
        self.enumerator = enumerator or PartitionEnumerator(config)
        self.orchestrator = FetchOrchestrator(config, self.histogram, fetch_job_factory)
        self.writer = writer or CsvReportWriter(config.output_dir, self.topic)

    def start(self) -> Path:
        """
        Run the measurement pass and return the report path.

        Any DiscoveryError, FetchError, TimeoutError, ThroughputUndefinedError
        or ReportIOError propagates; no row is written unless every step
        succeeded.
        """
        with log_phase(logger, "discover_partitions", topic=self.topic) as phase:
            partitions = self.enumerator.partitions(self.topic)
            phase["partition_count"] = len(partitions)

        log_with_context(
            logger,
            logging.INFO,
            f"Starting MetricsReader for kafka topic: {self.topic}",
            topic=self.topic,
            partition_count=len(partitions),
        )

        with log_phase(logger, "fetch_partitions", level=logging.INFO, topic=self.topic) as phase:
            result = self.orchestrator.run(self.topic, partitions)
            phase.update(
                record_count=result.count,
                min_time_ms=result.min_time_ms,
                max_time_ms=result.max_time_ms,
            )

        # All jobs are joined here, so the histogram has no writers left
        snapshot = self.histogram.snapshot()
        return self.writer.report(result, snapshot)
