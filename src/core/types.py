"""
Core types and protocols used across modules.

This module provides base types, enums, and protocol definitions that are
shared across the core library to ensure consistency and type safety.
"""

from enum import Enum
from typing import Protocol


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    The collector never retries on its own; categories tell the operator (and
    any outer scheduler) whether re-running the measurement pass may help.

    Categories:
        TRANSIENT: Temporary failures where a re-run may succeed
                   (e.g., broker timeouts, connection loss)
        AUTH: Authentication failures requiring credential changes
              (e.g., SASL rejection)
        PERMANENT: Failures that won't succeed on re-run
                   (e.g., unknown topic, read-only output directory)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class ErrorClassifier(Protocol):
    """
    Protocol for error classification implementations.

    Different modules (Kafka, filesystem) implement this protocol to classify
    domain-specific errors into standard categories.
    """

    def classify_error(self, error: Exception) -> ErrorCategory:
        """
        Classify an exception into an error category.

        Args:
            error: Exception to classify

        Returns:
            ErrorCategory indicating how to handle this error
        """
        ...


__all__ = [
    "ErrorCategory",
    "ErrorClassifier",
]
