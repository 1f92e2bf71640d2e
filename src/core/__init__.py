"""
Core library: reusable, infrastructure-agnostic components.

Modules:
    logging     - Structured JSON logging with run and Kafka context
    errors      - Error classification and exception hierarchy

Design Principles:
    - No dependencies on Kafka clients or specific storage backends
    - All modules are independently testable
    - Type hints throughout
"""

from .types import ErrorCategory, ErrorClassifier

__version__ = "0.1.0"

__all__ = [
    "ErrorCategory",
    "ErrorClassifier",
]
