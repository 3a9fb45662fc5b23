"""
Exception hierarchy for LinguaLevel.

Two families share one base, `LinguaError`:

- infrastructure failures (this module): the progress store is unreachable,
  a config key is missing, a listener cannot be registered
- domain failures (`lingualevel.modules.shared.exceptions`): bad XP amounts,
  out-of-range accuracy, prestige below level 200

Every error carries a stable `error_code`, a `details` dict for structured
logging, a `severity` and an `is_retryable` flag. Callers branch on those
through `is_transient_error`, `get_error_severity` and `should_alert` rather
than on concrete classes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    DEBUG = "debug"
    INFO = "info"  # expected, e.g. rejected input
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"  # the process cannot do useful work


class LinguaError(Exception):
    """
    Base for every LinguaLevel error.

    Subclasses set DEFAULT_SEVERITY and DEFAULT_RETRYABLE; both can be
    overridden per instance.
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.severity = severity or self.DEFAULT_SEVERITY
        self.is_retryable = self.DEFAULT_RETRYABLE if is_retryable is None else is_retryable
        self.error_code = error_code or type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, error_code={self.error_code!r})"


class LinguaInfrastructureException(LinguaError):
    """Failure outside the learning domain: storage, configuration, events."""


class ConfigurationError(LinguaInfrastructureException):
    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key},
            error_code="CONFIG_ERROR",
        )


class StorageError(LinguaInfrastructureException):
    """
    The progress store could not load, save or delete a document.

    Retryable: Redis timeouts and dropped connections are usually transient.

    Args:
        operation: "load", "save" or "delete"
        key: Store key involved
        original_error: Backend exception, kept for logging
    """

    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        operation: str,
        key: str,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.original_error = original_error
        reason = str(original_error) if original_error else "unknown failure"
        super().__init__(
            f"Progress store {operation} failed for '{key}': {reason}",
            details={
                "operation": operation,
                "key": key,
                "error_type": type(original_error).__name__ if original_error else None,
            },
            error_code="STORAGE_ERROR",
        )


class EventBusError(LinguaInfrastructureException):
    def __init__(self, operation: str, event_type: str, reason: str) -> None:
        self.operation = operation
        self.event_type = event_type
        super().__init__(
            f"Cannot {operation} listener for '{event_type}': {reason}",
            details={"operation": operation, "event_type": event_type},
            error_code="EVENT_BUS_ERROR",
        )


# ============================================================================
# HANDLING HELPERS
# ============================================================================


def is_transient_error(exc: BaseException) -> bool:
    """True for LinguaLevel errors marked retryable."""
    return isinstance(exc, LinguaError) and exc.is_retryable


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """Severity of a LinguaLevel error; anything unexpected counts as ERROR."""
    return exc.severity if isinstance(exc, LinguaError) else ErrorSeverity.ERROR


def should_alert(exc: BaseException) -> bool:
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
