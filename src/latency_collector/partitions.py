"""
Partition discovery for the metrics topic.

Discovery goes through a short-lived AIOKafkaProducer used purely for a
metadata lookup: it is started, asked for the topic's partitions, and stopped.
It never sends a record.
"""

import asyncio
import logging
from typing import List, Optional

from aiokafka import AIOKafkaProducer

from config.config import CollectorConfig
from core.errors.exceptions import DiscoveryError
from core.errors.kafka_classifier import KafkaErrorClassifier
from core.logging import get_logger, log_with_context

logger = get_logger(__name__)


class PartitionEnumerator:
    """
    Look up the partition ids of a topic.

    Usage:
        >>> enumerator = PartitionEnumerator(config)
        >>> enumerator.partitions("pipeline.metrics")
        [0, 1, 2]
    """

    def __init__(
        self,
        config: CollectorConfig,
        classifier: Optional[KafkaErrorClassifier] = None,
    ):
        self.config = config
        self._classifier = classifier or KafkaErrorClassifier()

    def partitions(self, topic: str) -> List[int]:
        """
        Return the topic's partition ids in ascending order.

        Runs its own event loop, so it must be called from synchronous code
        before any fetch jobs start.

        Raises:
            DiscoveryError: Topic unknown, topic without partitions, or
                broker unreachable
        """
        try:
            partitions = asyncio.run(self._discover(topic))
        except DiscoveryError:
            raise
        except Exception as e:
            raise DiscoveryError(
                f"Failed to discover partitions for topic '{topic}'",
                cause=e,
                context={"topic": topic, "bootstrap_servers": self.config.bootstrap_servers},
                category=self._classifier.classify_error(e),
            ) from e

        if not partitions:
            raise DiscoveryError(
                f"Topic '{topic}' has no partitions",
                context={"topic": topic},
            )

        result = sorted(partitions)
        log_with_context(
            logger,
            logging.DEBUG,
            "Discovered partitions",
            topic=topic,
            partition_count=len(result),
        )
        return result

    async def _discover(self, topic: str) -> set:
        producer = AIOKafkaProducer(
            client_id="latency-collector-metadata",
            **self.config.kafka_client_config(),
        )
        await producer.start()
        try:
            return await producer.partitions_for(topic)
        finally:
            await producer.stop()
