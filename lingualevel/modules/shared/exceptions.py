"""
Domain exceptions for LinguaLevel.

Raised by validators, the Learner aggregate and the services when a
progression rule is broken. The pure XP curve and snapshot code never raise;
invalid input there degrades to level 1 and zero progress instead.

Both domain errors are INFO severity and not retryable: repeating the same
call with the same input fails the same way.
"""

from __future__ import annotations

from lingualevel.core.exceptions import (
    ErrorSeverity,
    LinguaError,
    get_error_severity,
    is_transient_error,
    should_alert,
)

__all__ = [
    "InvalidOperationError",
    "LinguaDomainException",
    "ValidationError",
    "get_error_severity",
    "is_transient_error",
    "should_alert",
]


class LinguaDomainException(LinguaError):
    """Base for learning-domain rule violations."""

    DEFAULT_SEVERITY = ErrorSeverity.INFO


class ValidationError(LinguaDomainException):
    """
    An input value is out of range or of the wrong type.

    `field` names the offending argument (e.g. "accuracy", "base_amount") and
    is folded into the error code: VALIDATION_ACCURACY.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(
            f"Invalid {field}: {message}",
            details={"field": field},
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidOperationError(LinguaDomainException):
    """
    A learner action is not allowed in the learner's current state.

    Example:
        >>> raise InvalidOperationError("prestige", "requires level 200, learner is level 57")
    """

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Cannot {action}: {reason}",
            details={"action": action, "reason": reason},
            error_code=f"INVALID_{action.upper()}",
        )
