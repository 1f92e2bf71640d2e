"""Log formatters: JSON lines for files, a compact coloured line for consoles."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Callable, Dict, Optional

from core.logging.context import get_log_context
from core.logging.kafka_context import get_kafka_context
from core.utils.json_serializers import json_serializer

# Record attributes copied into JSON output, with the type each is coerced to
# (None keeps the value as is)
STRUCTURED_FIELDS: Dict[str, Optional[Callable[[Any], Any]]] = {
    "duration_ms": float,
    "error_category": None,
    "error_message": None,
    "error_type": None,
    "rerun_may_help": None,
    # run configuration
    "topic": None,
    "bootstrap_servers": None,
    "output_dir": None,
    "thread_num": int,
    "sample_number": int,
    "reservoir_size": int,
    "starting_offset": int,
    "config_path": None,
    # partition work
    "operation": None,
    "partition": int,
    "partition_count": int,
    "budget": int,
    "start_offset": int,
    "end_offset": int,
    "records_fetched": int,
    "min_time_ms": int,
    "max_time_ms": int,
    "timeout_seconds": float,
    "pending_jobs": int,
    # report
    "record_count": int,
    "throughput": int,
    "destination_path": None,
}

_LOCATED_LEVELS = (logging.DEBUG, logging.ERROR, logging.CRITICAL)


def _coerce(field: str, value: Any) -> Any:
    convert = STRUCTURED_FIELDS.get(field)
    if convert is None:
        return value
    try:
        return convert(value)
    except (ValueError, TypeError):
        return None


def _context_fields() -> Dict[str, Any]:
    """Non-empty run and Kafka context for the current thread."""
    fields = {key: value for key, value in get_log_context().items() if value}

    kafka = get_kafka_context()
    if kafka["kafka_topic"]:
        fields["kafka_topic"] = kafka["kafka_topic"]
    if kafka["kafka_partition"] >= 0:
        fields["kafka_partition"] = kafka["kafka_partition"]
    return fields


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Carries timestamp, level, logger, thread and message, the run and Kafka
    context, any STRUCTURED_FIELDS present on the record, the source location
    for DEBUG and ERROR records, and the exception with its stacktrace.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        entry.update(_context_fields())

        if record.levelno in _LOCATED_LEVELS:
            entry["file"] = f"{record.filename}:{record.lineno}"

        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = _coerce(field, value)

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "stacktrace": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    ``time - LEVEL - [domain] - [stage] - [p:N] message`` lines.

    Level names are coloured only when stdout is a TTY.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _level(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno) if self._use_colors else None
        return f"{color}{record.levelname}{self.RESET}" if color else record.levelname

    def format(self, record: logging.LogRecord) -> str:
        context = _context_fields()

        parts = [datetime.now().strftime("%Y-%m-%d %H:%M:%S"), self._level(record)]
        parts.extend(f"[{context[key]}]" for key in ("domain", "stage") if key in context)

        message = record.getMessage()
        if "kafka_partition" in context:
            message = f"[p:{context['kafka_partition']}] {message}"
        parts.append(message)

        line = " - ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
