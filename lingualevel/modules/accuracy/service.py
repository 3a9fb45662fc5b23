"""
Accuracy history service.

Purpose
-------
Record per-message accuracy results for a learner and answer statistics
queries over them. History is persisted through the progress store under
the `accuracy` kind.

Public Methods
--------------
- record() -> Append a result, newest first
- latest() -> Most recent record
- history() -> Full history
- clear() -> Drop the history
- get_statistics() -> Average accuracy, total XP, consistency score
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from lingualevel.core.logging.logger import LogContext
from lingualevel.modules.accuracy.models import AccuracyHistory, AccuracyRecord
from lingualevel.modules.progression.store import KIND_ACCURACY
from lingualevel.modules.shared.base_service import BaseService
from lingualevel.modules.shared.validators import validate_accuracy, validate_xp

if TYPE_CHECKING:
    from logging import Logger

    from lingualevel.core.event.bus import EventBus
    from lingualevel.modules.progression.store import ProgressStore


class AccuracyService(BaseService):
    """
    Service for a learner's accuracy history.

    Dependencies
    ------------
    - ProgressStore: Loads and saves the history document
    - Config: ACCURACY_HISTORY_SIZE caps the history length
    - EventBus: Receives `accuracy.recorded`
    - Logger: Structured logging
    """

    def __init__(
        self,
        store: ProgressStore,
        config: Any,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config, event_bus, logger)
        self._store = store
        self._history_size = int(self.get_config("ACCURACY_HISTORY_SIZE", 50))

    async def _load(self, learner_id: str) -> AccuracyHistory:
        data = await self._store.load(learner_id, KIND_ACCURACY)
        if data is None:
            return AccuracyHistory(max_size=self._history_size)
        return AccuracyHistory.from_dict(data, max_size=self._history_size)

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def record(
        self,
        learner_id: str,
        overall: float,
        xp_gained: int = 0,
        weighted_overall: Optional[float] = None,
        at: Optional[datetime] = None,
    ) -> AccuracyRecord:
        """
        Add one accuracy result to the learner's history.

        Args:
            learner_id: Learner identifier
            overall: Overall accuracy, 0-100
            xp_gained: XP awarded for the message
            weighted_overall: Optional weighted accuracy, 0-100
            at: When the message was scored; now when omitted

        Returns:
            The stored AccuracyRecord

        Raises:
            ValidationError: If an accuracy or XP value is out of range
        """
        validate_accuracy(overall)
        if weighted_overall is not None:
            validate_accuracy(weighted_overall)
        validate_xp(xp_gained, field="xp_gained")

        async with LogContext(learner_id=learner_id, operation="record_accuracy"):
            history = await self._load(learner_id)
            record = AccuracyRecord(
                overall,
                xp_gained,
                at or datetime.now(timezone.utc),
                weighted_overall,
            )
            history.add(record)
            await self._store.save(learner_id, KIND_ACCURACY, history.to_dict())

            self.log_operation(
                "record_accuracy",
                learner_id=learner_id,
                accuracy=record.effective_score,
                history_size=len(history),
            )
            await self.emit_event(
                "accuracy.recorded",
                {
                    "learner_id": learner_id,
                    "accuracy": record.effective_score,
                    "xp_gained": xp_gained,
                },
            )
            return record

    async def clear(self, learner_id: str) -> None:
        await self._store.delete(learner_id, KIND_ACCURACY)
        self.log_operation("clear_accuracy", learner_id=learner_id)

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def latest(self, learner_id: str) -> Optional[AccuracyRecord]:
        return (await self._load(learner_id)).latest

    async def history(self, learner_id: str) -> List[AccuracyRecord]:
        """All stored records, newest first."""
        return (await self._load(learner_id)).records

    async def average_accuracy(self, learner_id: str) -> float:
        return (await self._load(learner_id)).average_accuracy()

    async def consistency_score(self, learner_id: str) -> float:
        return (await self._load(learner_id)).consistency_score()

    async def get_statistics(self, learner_id: str) -> Dict[str, Any]:
        """
        Summary statistics over the stored history.

        Example:
            >>> await accuracy_service.get_statistics("learner-42")
            {'records': 3, 'average_accuracy': 88.33, 'total_xp': 420, 'consistency_score': 93.2}
        """
        history = await self._load(learner_id)
        return {
            "records": len(history),
            "average_accuracy": history.average_accuracy(),
            "total_xp": history.total_xp(),
            "consistency_score": history.consistency_score(),
        }
