"""
Domain models for LinguaLevel.

The Learner aggregate carries progression rules; services load it from the
progress store, call its methods and publish the events it raises.
"""

from .base import (
    AggregateRoot,
    DomainEvent,
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
    validate_range,
)
from .learner import Learner, LevelMilestone, LevelStats

__all__ = [
    "AggregateRoot",
    "DomainEvent",
    "DomainValidationError",
    "Learner",
    "LevelMilestone",
    "LevelStats",
    "validate_non_negative",
    "validate_not_empty",
    "validate_range",
]
