"""Helpers for emitting structured log records."""

import logging
from typing import Any, Dict

# LogRecord attributes; passing any of these in ``extra`` makes logging raise
_RESERVED_LOG_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "asctime",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)

MAX_ERROR_MESSAGE_LENGTH = 500


def _extra(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if k not in _RESERVED_LOG_KEYS}


def _error_fields(exc: BaseException) -> Dict[str, Any]:
    """error_category (for PipelineError), error_message and error_type of an exception."""
    fields: Dict[str, Any] = {"error_type": type(exc).__name__}

    category = getattr(exc, "category", None)
    if category is not None:
        fields["error_category"] = getattr(category, "value", str(category))

    message = str(exc)
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        message = message[:MAX_ERROR_MESSAGE_LENGTH] + "..."
    fields["error_message"] = message
    return fields


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log ``msg`` with keyword arguments attached as record attributes.

    The formatters pick known attributes (partition, records_fetched,
    duration_ms, ...) out of the record. ``exc_info`` is forwarded to the
    logger instead of being attached.

    Example:
        log_with_context(
            logger, logging.INFO, "Partition fetch complete",
            partition=3,
            records_fetched=250,
        )
    """
    exc_info = kwargs.pop("exc_info", None)
    logger.log(level, msg, exc_info=exc_info, extra=_extra(kwargs))


def log_exception(
    logger: logging.Logger,
    exc: BaseException,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log a failure together with its error fields.

    Adds error_type, a truncated error_message and, for PipelineError
    subclasses, error_category. Fields passed by the caller win.

    Example:
        try:
            collector.start()
        except PipelineError as e:
            log_exception(logger, e, "Collection run failed", topic=topic)
    """
    fields = {**_error_fields(exc), **kwargs}
    logger.log(
        level,
        msg,
        exc_info=exc if include_traceback else None,
        extra=_extra(fields),
    )


def detect_log_output_mode() -> str:
    """
    Describe the installed root handlers for the startup banner.

    Returns:
        "file+stdout" when a file handler is installed, "stdout" for a
        single stream handler, otherwise "console"
    """
    handlers = logging.getLogger().handlers
    if any(isinstance(h, logging.FileHandler) for h in handlers):
        return "file+stdout"
    return "stdout" if len(handlers) == 1 else "console"


_BANNER_FIELDS: list[tuple[str, str]] = [
    ("cycle_id", "Run:          {}"),
    ("topic", "Topic:        {}"),
    ("bootstrap_servers", "Brokers:      {}"),
    ("output_dir", "Output Dir:   {}"),
    ("thread_num", "Threads:      {}"),
    ("sample_number", "Samples:      {}"),
    ("reservoir_size", "Reservoir:    {}"),
    ("log_output_mode", "Log Output:   {}"),
]


def log_startup_banner(
    logger: logging.Logger,
    title: str,
    **kwargs: Any,
) -> None:
    """
    Log a boxed summary of the run configuration at INFO.

    Recognised fields: version, plus those in _BANNER_FIELDS. Missing or
    empty values are left out.
    """
    separator = "=" * 50
    lines = ["", separator, title]
    if kwargs.get("version"):
        lines.append(f"Version: {kwargs['version']}")
    lines.append(separator)

    for field_name, fmt in _BANNER_FIELDS:
        value = kwargs.get(field_name)
        if value is not None and value != "":
            lines.append(fmt.format(value))

    lines.extend([separator, ""])
    logger.info("\n".join(lines))
