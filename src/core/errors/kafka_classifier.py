"""
Kafka error classification for metadata lookups and partition fetches.

Maps aiokafka exceptions onto ErrorCategory so the typed errors raised by the
collector carry a meaningful category.
"""

from typing import Optional

from core.errors.exceptions import classify_exception
from core.types import ErrorCategory


# Kafka error classifications based on aiokafka exception types
KAFKA_ERROR_MAPPINGS = {
    ErrorCategory.TRANSIENT: [
        "BrokerNotAvailableError",
        "KafkaConnectionError",
        "NodeNotReadyError",
        "LeaderNotAvailableError",
        "NotLeaderForPartitionError",
        "RequestTimedOutError",
        "KafkaTimeoutError",
        "NetworkException",
        "CorrelationIdError",
        "BrokerResponseError",
    ],
    ErrorCategory.AUTH: [
        "TopicAuthorizationFailedError",
        "ClusterAuthorizationFailedError",
        "SaslAuthenticationError",
    ],
    ErrorCategory.PERMANENT: [
        "UnknownTopicOrPartitionError",
        "InvalidTopicError",
        "UnsupportedVersionError",
        "IllegalStateError",
        "OffsetOutOfRangeError",
        "RecordTooLargeError",
    ],
}


def classify_kafka_error_type(error_type_name: str) -> Optional[ErrorCategory]:
    """
    Classify Kafka error by exception type name.

    Args:
        error_type_name: Name of the exception class

    Returns:
        Matching ErrorCategory, or None for types not in the mapping
    """
    for category, error_types in KAFKA_ERROR_MAPPINGS.items():
        if error_type_name in error_types:
            return category
    return None


class KafkaErrorClassifier:
    """
    Centralized error classification for Kafka operations.

    Checks the aiokafka exception type first, then falls back to the generic
    string-based classification in core.errors.exceptions.
    """

    def classify_error(self, error: Exception) -> ErrorCategory:
        category = classify_kafka_error_type(type(error).__name__)
        if category is not None:
            return category
        return classify_exception(error)

    def is_transient(self, error: Exception) -> bool:
        return self.classify_error(error) == ErrorCategory.TRANSIENT
