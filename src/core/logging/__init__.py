"""
Structured logging module.

Provides JSON logging with run identifiers and Kafka context propagation.
"""

from core.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from core.logging.context_managers import (
    LogContext,
    OperationContext,
    log_phase,
)
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.kafka_context import (
    KafkaLogContext,
    clear_kafka_context,
    get_kafka_context,
    set_kafka_context,
)
from core.logging.setup import (
    generate_cycle_id,
    get_log_file_path,
    get_logger,
    setup_logging,
)
from core.logging.utilities import (
    detect_log_output_mode,
    log_exception,
    log_startup_banner,
    log_with_context,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    "generate_cycle_id",
    "get_log_file_path",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    # Kafka Context
    "set_kafka_context",
    "get_kafka_context",
    "clear_kafka_context",
    "KafkaLogContext",
    # Context Managers
    "LogContext",
    "OperationContext",
    "log_phase",
    # Utilities
    "log_with_context",
    "log_exception",
    "log_startup_banner",
    "detect_log_output_mode",
]
