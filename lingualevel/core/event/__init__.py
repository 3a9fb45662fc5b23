"""
Event system for LinguaLevel.

Exports the async EventBus and its listener types.
"""

from lingualevel.core.event.bus import (
    EventBus,
    EventListener,
    EventMetrics,
    EventPayload,
    ListenerPriority,
)

__all__ = [
    "EventBus",
    "EventListener",
    "EventMetrics",
    "EventPayload",
    "ListenerPriority",
]
