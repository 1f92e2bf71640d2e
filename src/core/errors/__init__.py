"""
Error classification and exception hierarchy.

Provides:
- ErrorCategory enum for classifying errors
- PipelineError hierarchy for typed exceptions
- Classification utilities for error handling
- Kafka error classifier for aiokafka exceptions
"""

from core.errors.exceptions import (
    AuthError,
    DiscoveryError,
    # Enums
    ErrorCategory,
    FetchError,
    PermanentError,
    # Base classes
    PipelineError,
    ReportIOError,
    ThroughputUndefinedError,
    TimeoutError,
    TransientError,
    # Classification utilities
    classify_exception,
    classify_os_error,
    is_transient_error,
    wrap_exception,
)
from core.errors.kafka_classifier import KafkaErrorClassifier

__all__ = [
    # Enums
    "ErrorCategory",
    # Base classes
    "PipelineError",
    "AuthError",
    "TransientError",
    "PermanentError",
    # Collector errors
    "DiscoveryError",
    "FetchError",
    "TimeoutError",
    "ReportIOError",
    "ThroughputUndefinedError",
    # Classification utilities
    "is_transient_error",
    "classify_exception",
    "classify_os_error",
    "wrap_exception",
    # Kafka classifier
    "KafkaErrorClassifier",
]
