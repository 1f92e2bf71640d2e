"""
Kafka-backed fetch job: consume one partition of the metrics topic.

Marker records are written by the downstream consumers of the pipeline under
test. Their value is UTF-8 text:

    "<send_ms>:<receive_ms>"   send and receive wall-clock times (epoch ms)
    "<send_ms>"                send time only; the broker record timestamp is
                               used as the receive time

For every record the job records ``receive_ms - send_ms`` into the shared
histogram, negative values from clock skew included, and tracks the earliest
and latest receive time for the throughput window.

Each job runs on an orchestrator worker thread and owns its own event loop
and AIOKafkaConsumer (no consumer group, no offset commits).
"""

import asyncio
import logging
from typing import Optional, Tuple

from aiokafka import AIOKafkaConsumer
from aiokafka.structs import ConsumerRecord, TopicPartition

from config.config import CollectorConfig
from core.errors.exceptions import FetchError
from core.errors.kafka_classifier import KafkaErrorClassifier
from core.logging import KafkaLogContext, OperationContext, get_logger, log_with_context
from latency_collector.histogram import Histogram
from latency_collector.types import FetchJobResult

logger = get_logger(__name__)

# Consecutive empty polls before a partition short of its end offset counts as
# exhausted (the gap is then transaction markers or compacted offsets)
MAX_EMPTY_POLLS = 3


def parse_marker(value: Optional[bytes], record_timestamp: int) -> Tuple[int, int]:
    """
    Decode a marker record value into (send_ms, receive_ms).

    Raises:
        ValueError: Empty value, too many fields, or non-integer fields
    """
    if not value:
        raise ValueError("empty marker record")

    fields = value.decode("utf-8").strip().split(":")
    if len(fields) == 1:
        return int(fields[0]), int(record_timestamp)
    if len(fields) == 2:
        return int(fields[0]), int(fields[1])
    raise ValueError(f"unexpected marker format: {value!r}")


class _PartitionWindow:
    """Running min/max receive time and record count for one partition."""

    def __init__(self):
        self.min_time_ms: Optional[int] = None
        self.max_time_ms: Optional[int] = None
        self.count = 0

    def add(self, receive_ms: int) -> None:
        if self.min_time_ms is None or receive_ms < self.min_time_ms:
            self.min_time_ms = receive_ms
        if self.max_time_ms is None or receive_ms > self.max_time_ms:
            self.max_time_ms = receive_ms
        self.count += 1

    def result(self) -> FetchJobResult:
        if self.count == 0:
            return FetchJobResult.empty()
        return FetchJobResult(self.min_time_ms, self.max_time_ms, self.count)


class KafkaFetchJob:
    """
    Fetch up to ``budget`` marker records from one partition.

    Calling the job blocks until the budget is reached, the partition's end
    offset (captured when the job starts) is reached, or MAX_EMPTY_POLLS
    consecutive polls return no records. A negative budget reads to the end
    offset.

    Usage:
        >>> job = KafkaFetchJob(config, "pipeline.metrics", 0, 0, 1000, histogram)
        >>> result = job()
        >>> result.count
        1000
    """

    def __init__(
        self,
        config: CollectorConfig,
        topic: str,
        partition: int,
        starting_offset: int,
        budget: int,
        histogram: Histogram,
        classifier: Optional[KafkaErrorClassifier] = None,
    ):
        self.config = config
        self.topic = topic
        self.partition = partition
        self.starting_offset = starting_offset
        self.budget = budget
        self.histogram = histogram
        self._classifier = classifier or KafkaErrorClassifier()

    def __call__(self) -> FetchJobResult:
        with KafkaLogContext(topic=self.topic, partition=self.partition):
            if self.budget == 0:
                log_with_context(
                    logger,
                    logging.DEBUG,
                    "Zero budget, skipping partition",
                    partition=self.partition,
                )
                return FetchJobResult.empty()

            with OperationContext(
                logger,
                "fetch_partition",
                partition=self.partition,
                budget=self.budget,
            ) as op:
                try:
                    result = asyncio.run(self._fetch())
                except FetchError:
                    raise
                except Exception as e:
                    raise FetchError(
                        f"Fetch failed for {self.topic}[{self.partition}]",
                        partition=self.partition,
                        cause=e,
                        context={"topic": self.topic},
                        category=self._classifier.classify_error(e),
                    ) from e
                op.add_context(records_fetched=result.count)
                return result

    def _create_consumer(self) -> AIOKafkaConsumer:
        return AIOKafkaConsumer(
            group_id=None,
            enable_auto_commit=False,
            client_id=f"latency-collector-{self.topic}-{self.partition}",
            **self.config.kafka_client_config(),
        )

    async def _fetch(self) -> FetchJobResult:
        tp = TopicPartition(self.topic, self.partition)
        consumer = self._create_consumer()
        await consumer.start()
        try:
            consumer.assign([tp])
            beginning = (await consumer.beginning_offsets([tp]))[tp]
            end = (await consumer.end_offsets([tp]))[tp]
            position = max(self.starting_offset, beginning)

            log_with_context(
                logger,
                logging.DEBUG,
                "Fetching partition",
                partition=self.partition,
                start_offset=position,
                end_offset=end,
                budget=self.budget,
            )

            window = _PartitionWindow()
            if position >= end:
                return window.result()

            consumer.seek(tp, position)
            empty_polls = 0
            while position < end and (self.budget < 0 or window.count < self.budget):
                max_records = self.config.max_poll_records
                if self.budget >= 0:
                    max_records = min(max_records, self.budget - window.count)

                batch = await consumer.getmany(
                    tp,
                    timeout_ms=self.config.fetch_timeout_ms,
                    max_records=max_records,
                )
                records = batch.get(tp, [])
                if not records:
                    empty_polls += 1
                    if empty_polls < MAX_EMPTY_POLLS:
                        continue
                    log_with_context(
                        logger,
                        logging.WARNING,
                        "Polls returned no records before end offset, treating partition as exhausted",
                        partition=self.partition,
                        start_offset=position,
                        end_offset=end,
                    )
                    break
                empty_polls = 0

                for record in records:
                    self._record(record, window)
                    position = record.offset + 1

            return window.result()
        finally:
            await consumer.stop()

    def _record(self, record: ConsumerRecord, window: _PartitionWindow) -> None:
        try:
            send_ms, receive_ms = parse_marker(record.value, record.timestamp)
        except (ValueError, UnicodeDecodeError) as e:
            raise FetchError(
                f"Undecodable marker record at {self.topic}[{self.partition}]@{record.offset}",
                partition=self.partition,
                cause=e,
                context={"topic": self.topic, "offset": record.offset},
            ) from e

        self.histogram.update(receive_ms - send_ms)
        window.add(receive_ms)
