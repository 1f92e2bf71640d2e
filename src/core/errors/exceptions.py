"""
Unified exception hierarchy for the latency collector.

Provides typed exceptions with error classification so every failure that
aborts a measurement pass reaches the caller with a category and context.
"""

import errno

# Import ErrorCategory from canonical source to avoid duplicate enum issues
# (comparing enums from different classes always returns False)
from core.types import ErrorCategory


class PipelineError(Exception):
    """
    Base exception for all collector errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for re-run decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
        category: ErrorCategory | None = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        if category is not None:
            self.category = category
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        return self.category in (
            ErrorCategory.TRANSIENT,
            ErrorCategory.AUTH,
            ErrorCategory.UNKNOWN,
        )

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Base Categories
# =============================================================================


class AuthError(PipelineError):
    """Base class for authentication errors."""

    category = ErrorCategory.AUTH


class TransientError(PipelineError):
    """Base class for transient errors (a re-run may succeed)."""

    category = ErrorCategory.TRANSIENT


class PermanentError(PipelineError):
    """Base class for permanent errors (a re-run won't help)."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Domain-Specific Errors
# =============================================================================


class DiscoveryError(PermanentError):
    """Partition metadata for the metrics topic is unavailable."""

    pass


class FetchError(TransientError):
    """A single partition's fetch job failed; fatal to the whole run."""

    def __init__(
        self,
        message: str,
        partition: int | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
        category: ErrorCategory | None = None,
    ):
        context = context or {}
        if partition is not None:
            context.setdefault("partition", partition)
        super().__init__(message, cause, context, category)
        self.partition = partition


class TimeoutError(TransientError):
    """Fetch jobs did not finish before the orchestration deadline."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float | None = None,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, cause, context)
        self.timeout_seconds = timeout_seconds


class ReportIOError(PipelineError):
    """The CSV report could not be created or written."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        context: dict | None = None,
    ):
        category = (
            classify_os_error(cause) if isinstance(cause, OSError) else None
        )
        super().__init__(message, cause, context, category)


class ThroughputUndefinedError(PermanentError):
    """Observed time window is empty, so throughput cannot be computed."""

    pass


# =============================================================================
# Error Classification Utilities
# =============================================================================


def is_transient_error(exc: Exception) -> bool:
    """
    Check if exception is transient.

    Returns True if re-running the measurement pass may succeed.
    """
    if isinstance(exc, PipelineError):
        return exc.category == ErrorCategory.TRANSIENT
    return classify_exception(exc) == ErrorCategory.TRANSIENT


def classify_os_error(error: OSError) -> ErrorCategory:
    """
    Classify OSError by errno into error category.

    Conservative classification: only mark as PERMANENT if certain.
    Disk full (ENOSPC), read-only filesystem (EROFS), permission denied (EACCES/EPERM).
    """
    permanent_errnos = (errno.ENOSPC, errno.EROFS, errno.EACCES, errno.EPERM)
    return ErrorCategory.PERMANENT if error.errno in permanent_errnos else ErrorCategory.TRANSIENT


# Checked in order against the lowercased type name and message
_MESSAGE_MARKERS: tuple[tuple[ErrorCategory, tuple[str, ...]], ...] = (
    (
        ErrorCategory.TRANSIENT,
        (
            "connectionerror",
            "connection refused",
            "connection reset",
            "connection aborted",
            "no route to host",
            "network unreachable",
            "name resolution",
            "socket",
            "broken pipe",
            "timeout",
        ),
    ),
    (ErrorCategory.AUTH, ("unauthorized", "authentication", "authorization", "sasl")),
    (ErrorCategory.PERMANENT, ("not found", "unknown topic")),
)


def classify_exception(exc: Exception) -> ErrorCategory:
    """
    Classify an exception into an error category.

    PipelineErrors keep their own category and OSErrors with an errno go
    through classify_os_error. Anything else is matched on its type name and
    message; unmatched exceptions are UNKNOWN.
    """
    if isinstance(exc, PipelineError):
        return exc.category

    if isinstance(exc, OSError) and exc.errno is not None:
        return classify_os_error(exc)

    haystack = f"{type(exc).__name__} {exc}".lower()
    for category, markers in _MESSAGE_MARKERS:
        if any(marker in haystack for marker in markers):
            return category
    return ErrorCategory.UNKNOWN


def wrap_exception(
    exc: Exception,
    default_class: type = PipelineError,
    context: dict | None = None,
) -> PipelineError:
    """Wrap a generic exception in appropriate PipelineError subclass."""
    if isinstance(exc, PipelineError):
        if context:
            exc.context.update(context)
        return exc

    category = classify_exception(exc)
    context = context or {}
    context.setdefault("error_type", type(exc).__name__)

    if category == ErrorCategory.AUTH:
        return AuthError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.TRANSIENT:
        return TransientError(str(exc), cause=exc, context=context)

    if category == ErrorCategory.PERMANENT:
        return PermanentError(str(exc), cause=exc, context=context)

    return default_class(str(exc), cause=exc, context=context)
