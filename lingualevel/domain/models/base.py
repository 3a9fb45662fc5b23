"""
Building blocks for the LinguaLevel domain model.

An aggregate (the Learner) owns its invariants and records what happened to
it as `DomainEvent`s. It never publishes them itself: the service saves the
aggregate, drains the events with `clear_domain_events()` and hands them to
the event bus. Value objects are frozen dataclasses that check themselves in
`__post_init__` with the `validate_*` helpers below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from lingualevel.modules.shared.exceptions import ValidationError


@dataclass(frozen=True)
class DomainEvent:
    """Something that happened to an aggregate, e.g. "learner.leveled_up"."""

    event_name: str
    payload: Dict[str, Any]
    aggregate_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AggregateRoot:
    """
    Identity plus a buffer of pending domain events.

    Aggregates compare equal when their ids match.
    """

    def __init__(self, aggregate_id: str) -> None:
        self._id = aggregate_id
        self._pending_events: List[DomainEvent] = []

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        return isinstance(other, type(self)) and other.id == self.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._id))

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        self._pending_events.append(DomainEvent(event_name, payload, aggregate_id=self._id))

    def get_pending_events(self) -> List[DomainEvent]:
        return list(self._pending_events)

    def clear_domain_events(self) -> List[DomainEvent]:
        """Return the pending events in the order raised and empty the buffer."""
        events, self._pending_events = self._pending_events, []
        return events


# ============================================================================
# INVARIANT CHECKS
# ============================================================================


class DomainValidationError(ValidationError):
    """An invariant of a domain object was violated."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(field or "value", message)


def validate_non_negative(value: float, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(f"{field_name} must be >= 0, got {value}", field=field_name)


def validate_range(value: float, min_val: float, max_val: float, field_name: str) -> None:
    """Inclusive on both ends."""
    if not min_val <= value <= max_val:
        raise DomainValidationError(
            f"{field_name} must be in [{min_val}, {max_val}], got {value}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    if not value or not value.strip():
        raise DomainValidationError(f"{field_name} must not be blank", field=field_name)
