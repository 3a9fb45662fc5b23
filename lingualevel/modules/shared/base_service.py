"""
Common plumbing for LinguaLevel services.

A service gets its collaborators injected (config, event bus, logger, plus
whatever store it needs) and owns no learner state between calls. This base
class covers the parts every service repeats: config lookups, publishing
aggregate events and structured operation logs.

Usage
-----
    class AccuracyService(BaseService):
        def __init__(self, store, config, event_bus, logger):
            super().__init__(config, event_bus, logger)
            self._store = store
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

from lingualevel.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from logging import Logger

    from lingualevel.core.event.bus import EventBus
    from lingualevel.domain.models.base import DomainEvent


class BaseService:
    """
    Args:
        config: Anything with get(key, default), normally the Config class
        event_bus: Bus that receives learner.* and accuracy.* events
        logger: Logger for this service
    """

    def __init__(self, config: Any, event_bus: EventBus, logger: Logger) -> None:
        self._config = config
        self._events = event_bus
        self.log = logger

    def get_config(self, key: str, default: Optional[Any] = None, required: bool = False) -> Any:
        """
        Config value for key, or default.

        Raises:
            ConfigurationError: If required and the value is None
        """
        value = self._config.get(key, default)
        if required and value is None:
            raise ConfigurationError(key, "required by " + type(self).__name__)
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        await self._events.publish(event_type, {**data, **(context or {})})

    async def publish_domain_events(self, events: Iterable[DomainEvent]) -> None:
        """Publish drained aggregate events in the order they were raised."""
        for event in events:
            await self.emit_event(
                event.event_name,
                event.payload,
                {"occurred_at": event.occurred_at.isoformat()},
            )

    def log_operation(self, operation: str, **context: Any) -> None:
        self.log.info(f"{type(self).__name__}.{operation}", extra={"operation": operation, **context})

    def log_error(self, operation: str, error: Exception, **context: Any) -> None:
        self.log.error(
            f"{type(self).__name__}.{operation} failed: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_code": getattr(error, "error_code", None),
                **context,
            },
        )
