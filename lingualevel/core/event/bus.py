"""
LinguaLevel EventBus: async pub/sub for progression events.

Purpose
-------
Decouple the leveling services from whatever reacts to progression
(notifications, analytics, achievements). Services publish
`learner.leveled_up` and friends; listeners subscribe by exact name or
by `prefix.*` wildcard.

Responsibilities
----------------
- Register/unregister listeners with priorities
- Publish events to all matching listeners (exact + wildcard)
- Execute listeners sequentially in priority order
- Error isolation (one failing listener never blocks others)
- Metrics collection and introspection

Design Decisions
----------------
- **Instance-based**: each service graph owns its bus (tests build their own)
- **Sequential execution**: listener order is deterministic by priority,
  then registration order
- **Sync callbacks**: run in the default executor to avoid blocking the loop
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from lingualevel.core.exceptions import EventBusError
from lingualevel.core.logging.logger import get_logger

logger = get_logger(__name__)

EventPayload = Dict[str, Any]

CallbackType = Union[
    Callable[[EventPayload], Any],
    Callable[[EventPayload], Awaitable[Any]],
]


class ListenerPriority(Enum):
    """Execution order of listeners (lower runs first)."""

    CRITICAL = 0
    HIGH = 10
    NORMAL = 50
    LOW = 100


@dataclass(frozen=True)
class EventListener:
    callback: CallbackType
    priority: ListenerPriority
    identifier: str
    once: bool = False


@dataclass
class EventMetrics:
    """Counters for bus operations."""

    events_published: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    listener_errors: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    total_listeners: int = 0

    def record_publish(self, event_name: str) -> None:
        self.events_published[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self.listener_errors[event_name] += 1

    def get_summary(self) -> Dict[str, Any]:
        published = sum(self.events_published.values())
        errors = sum(self.listener_errors.values())
        return {
            "total_events_published": published,
            "events_by_type": dict(self.events_published),
            "total_errors": errors,
            "errors_by_event": dict(self.listener_errors),
            "total_listeners": self.total_listeners,
            "error_rate": errors / max(1, published) * 100,
        }


class EventBus:
    """
    Async pub/sub event bus.

    Usage:
        bus = EventBus()
        bus.subscribe("learner.leveled_up", handle_level_up)
        bus.subscribe("learner.*", audit_learner_events)
        await bus.publish("learner.leveled_up", {"learner_id": "u-1", "new_level": 5})
    """

    def __init__(self, enable_metrics: bool = True) -> None:
        self._listeners: Dict[str, List[EventListener]] = {}
        self._wildcard_listeners: List[Tuple[str, EventListener]] = []
        self._metrics: Optional[EventMetrics] = EventMetrics() if enable_metrics else None

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        priority: ListenerPriority = ListenerPriority.NORMAL,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """
        Subscribe a callback to an event.

        Args:
            event_name: Event to subscribe to (supports a trailing '*')
            callback: Async or sync function called with the event payload
            priority: Execution priority (lower values execute first)
            identifier: Unique identifier for this listener (derived if None)
            once: If True, unsubscribe after the first execution

        Returns:
            Listener identifier for later unsubscription

        Raises:
            EventBusError: If callback is not callable
        """
        if not callable(callback):
            raise EventBusError("subscribe", event_name, "callback is not callable")

        if identifier is None:
            name = getattr(callback, "__qualname__", type(callback).__name__)
            identifier = f"{getattr(callback, '__module__', 'unknown')}.{name}@{event_name}"

        listener = EventListener(
            callback=callback,
            priority=priority,
            identifier=identifier,
            once=once,
        )

        if "*" in event_name:
            if any(
                pattern == event_name and existing.identifier == identifier
                for pattern, existing in self._wildcard_listeners
            ):
                logger.warning(
                    "Duplicate listener prevented",
                    extra={"event_name": event_name, "listener_id": identifier},
                )
                return identifier
            self._wildcard_listeners.append((event_name, listener))
            self._wildcard_listeners.sort(key=lambda pair: pair[1].priority.value)
        else:
            existing = self._listeners.setdefault(event_name, [])
            if any(item.identifier == identifier for item in existing):
                logger.warning(
                    "Duplicate listener prevented",
                    extra={"event_name": event_name, "listener_id": identifier},
                )
                return identifier
            existing.append(listener)
            existing.sort(key=lambda item: item.priority.value)

        if self._metrics:
            self._metrics.total_listeners += 1

        logger.debug(
            f"Subscribed {identifier} to {event_name} with priority {priority.name}"
        )
        return identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        """Remove a listener; returns True if one was found."""
        if event_name in self._listeners:
            before = len(self._listeners[event_name])
            self._listeners[event_name] = [
                item for item in self._listeners[event_name] if item.identifier != identifier
            ]
            if len(self._listeners[event_name]) < before:
                if self._metrics:
                    self._metrics.total_listeners -= 1
                return True

        before = len(self._wildcard_listeners)
        self._wildcard_listeners = [
            (pattern, item)
            for pattern, item in self._wildcard_listeners
            if not (pattern == event_name and item.identifier == identifier)
        ]
        if len(self._wildcard_listeners) < before:
            if self._metrics:
                self._metrics.total_listeners -= 1
            return True

        return False

    def clear(self) -> None:
        self._listeners.clear()
        self._wildcard_listeners.clear()
        if self._metrics:
            self._metrics.total_listeners = 0

    async def publish(self, event_name: str, data: EventPayload) -> List[Any]:
        """
        Publish an event to all subscribed listeners.

        Returns:
            Return values of the listeners in execution order; a listener
            that raised contributes None.
        """
        if self._metrics:
            self._metrics.record_publish(event_name)

        matched: List[Tuple[str, EventListener]] = [
            (event_name, item) for item in self._listeners.get(event_name, [])
        ]
        matched.extend(
            (pattern, item)
            for pattern, item in self._wildcard_listeners
            if self._matches_wildcard(event_name, pattern)
        )
        matched.sort(key=lambda pair: pair[1].priority.value)

        if not matched:
            logger.debug(f"No listeners for event: {event_name}")
            return []

        results: List[Any] = []
        for registered_name, listener in matched:
            if listener.once:
                self.unsubscribe(registered_name, listener.identifier)
            results.append(await self._execute_listener(event_name, data, listener))

        return results

    async def _execute_listener(
        self,
        event_name: str,
        data: EventPayload,
        listener: EventListener,
    ) -> Any:
        try:
            if inspect.iscoroutinefunction(listener.callback):
                return await listener.callback(data)
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(None, listener.callback, data)
            if inspect.isawaitable(result):
                return await result
            return result
        except Exception as e:
            if self._metrics:
                self._metrics.record_error(event_name)
            logger.error(
                f"Error in listener {listener.identifier} for event {event_name}: {e}",
                exc_info=True,
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "error_type": type(e).__name__,
                },
            )
            return None

    @staticmethod
    def _matches_wildcard(event_name: str, pattern: str) -> bool:
        if pattern == "*":
            return True
        if "*" not in pattern:
            return event_name == pattern

        parts = pattern.split("*")
        return event_name.startswith(parts[0]) and event_name.endswith(parts[-1])

    def get_metrics_summary(self) -> Dict[str, Any]:
        if self._metrics:
            return self._metrics.get_summary()
        return {}

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        if event_name:
            count = len(self._listeners.get(event_name, []))
            count += sum(
                1
                for pattern, _ in self._wildcard_listeners
                if self._matches_wildcard(event_name, pattern)
            )
            return count
        return sum(len(items) for items in self._listeners.values()) + len(
            self._wildcard_listeners
        )
