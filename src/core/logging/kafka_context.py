"""Kafka-specific context variables for structured logging."""

from contextvars import ContextVar
from typing import Any, Dict, Optional


_kafka_topic: ContextVar[str] = ContextVar("kafka_topic", default="")
_kafka_partition: ContextVar[int] = ContextVar("kafka_partition", default=-1)
_kafka_offset: ContextVar[int] = ContextVar("kafka_offset", default=-1)


def set_kafka_context(
    topic: Optional[str] = None,
    partition: Optional[int] = None,
    offset: Optional[int] = None,
) -> None:
    """
    Set Kafka-specific context variables for structured logging.

    Args:
        topic: Kafka topic name
        partition: Kafka partition number
        offset: Offset the fetch job is positioned at
    """
    if topic is not None:
        _kafka_topic.set(topic)
    if partition is not None:
        _kafka_partition.set(partition)
    if offset is not None:
        _kafka_offset.set(offset)


def get_kafka_context() -> Dict[str, Any]:
    """
    Get current Kafka logging context.

    Returns:
        Dictionary with kafka_topic, kafka_partition and kafka_offset
    """
    return {
        "kafka_topic": _kafka_topic.get(),
        "kafka_partition": _kafka_partition.get(),
        "kafka_offset": _kafka_offset.get(),
    }


def clear_kafka_context() -> None:
    """Clear all Kafka logging context variables."""
    _kafka_topic.set("")
    _kafka_partition.set(-1)
    _kafka_offset.set(-1)


class KafkaLogContext:
    """
    Context manager for per-partition work with automatic context setting.

    Usage:
        with KafkaLogContext(topic="metrics", partition=3):
            # All logs in this block will include Kafka context
            fetch_partition()
    """

    def __init__(
        self,
        topic: Optional[str] = None,
        partition: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.new_context = {
            "topic": topic,
            "partition": partition,
            "offset": offset,
        }
        self.old_context: Dict[str, Any] = {}

    def __enter__(self) -> "KafkaLogContext":
        self.old_context = {
            "topic": _kafka_topic.get(),
            "partition": _kafka_partition.get(),
            "offset": _kafka_offset.get(),
        }
        for key, value in self.new_context.items():
            if value is not None:
                set_kafka_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        set_kafka_context(**self.old_context)
        return False
