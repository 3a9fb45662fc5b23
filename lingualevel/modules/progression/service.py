"""
Leveling Service

Purpose
-------
Orchestrate learner progression: award XP through the multiplier chain,
apply it to the Learner aggregate, persist the result and publish the
domain events it raised.

Domain
------
- XP awards with accuracy, streak, momentum, prestige and event multipliers
- Raw XP grants without multipliers
- Message statistics (streaks, running accuracy, consistency)
- Prestige cycles and full progress resets
- Read-only snapshot and next-milestone queries

Design Notes
------------
- The Learner is loaded, mutated and saved within a single call; no learner
  state is cached on the service
- Stats and milestones are stored as separate documents so either can be
  inspected or cleared on its own
- Events are published only after the save succeeds
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from lingualevel.core.logging.logger import LogContext
from lingualevel.domain.models.learner import LevelMilestone, LevelStats, Learner
from lingualevel.modules.progression.snapshot import NormalizedXpSnapshot
from lingualevel.modules.progression.store import KIND_MILESTONES, KIND_STATS
from lingualevel.modules.progression.xp_calculator import (
    MomentumState,
    XpCalculationParams,
    XpCalculationResult,
    calculate_total_xp,
)
from lingualevel.modules.shared.base_service import BaseService
from lingualevel.modules.shared.exceptions import InvalidOperationError
from lingualevel.modules.shared.validators import (
    sanitize_xp_gain,
    validate_accuracy,
    validate_multiplier,
    validate_streak,
    validate_xp,
)

if TYPE_CHECKING:
    from logging import Logger

    from lingualevel.core.event.bus import EventBus
    from lingualevel.modules.accuracy.service import AccuracyService
    from lingualevel.modules.progression.store import ProgressStore


@dataclass(frozen=True)
class XpAward:
    """Outcome of one XP award."""

    earned: int
    old_level: int
    new_level: int
    levels_gained: int
    leveled_up: bool
    milestone: Optional[LevelMilestone]
    snapshot: NormalizedXpSnapshot
    calculation: Optional[XpCalculationResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "earned": self.earned,
            "old_level": self.old_level,
            "new_level": self.new_level,
            "levels_gained": self.levels_gained,
            "leveled_up": self.leveled_up,
            "milestone": self.milestone.to_dict() if self.milestone else None,
            "snapshot": self.snapshot.to_dict(),
        }


class LevelingService(BaseService):
    """
    Service for learner leveling and progression statistics.

    Dependencies
    ------------
    - ProgressStore: Persists stats and milestones per learner
    - Config: Service configuration
    - EventBus: Receives learner.* domain events
    - Logger: Structured logging
    - AccuracyService (optional): Supplies the consistency score for
      update_stats and records accuracy for awards

    Public Methods
    --------------
    - load() -> Learner aggregate, fresh when nothing is stored
    - award_xp() -> Multiplied XP award with level-up handling
    - add_xp() -> Raw XP without multipliers
    - update_stats() -> Fold a scored message into statistics
    - prestige() -> Start a new prestige cycle
    - reset_progress() -> Wipe all progress
    - get_snapshot() -> Current NormalizedXpSnapshot
    - get_next_milestone() -> Upcoming milestone or None
    """

    def __init__(
        self,
        store: ProgressStore,
        config: Any,
        event_bus: EventBus,
        logger: Logger,
        accuracy_service: Optional[AccuracyService] = None,
    ) -> None:
        super().__init__(config, event_bus, logger)
        self._store = store
        self._accuracy = accuracy_service

    # ========================================================================
    # PERSISTENCE
    # ========================================================================

    async def load(self, learner_id: str) -> Learner:
        """
        Load a learner's progress.

        Returns a fresh learner at level 1 when nothing is stored.
        """
        stats = await self._store.load(learner_id, KIND_STATS)
        milestones = await self._store.load(learner_id, KIND_MILESTONES)
        return Learner.from_dict(
            {
                "learner_id": learner_id,
                "stats": stats or {},
                "milestones": (milestones or {}).get("milestones", []),
            }
        )

    async def _save(self, learner: Learner) -> None:
        data = learner.to_dict()
        await self._store.save(learner.id, KIND_STATS, data["stats"])
        await self._store.save(
            learner.id, KIND_MILESTONES, {"milestones": data["milestones"]}
        )

    async def _commit(self, learner: Learner) -> None:
        await self._save(learner)
        await self.publish_domain_events(learner.clear_domain_events())

    # ========================================================================
    # PUBLIC API - Write Operations (XP & Leveling)
    # ========================================================================

    async def award_xp(
        self,
        learner_id: str,
        base_amount: float,
        accuracy: Optional[float] = None,
        is_perfect_message: bool = False,
        streak_days: Optional[int] = None,
        tier_multiplier: float = 1.0,
        adaptive_multiplier: float = 1.0,
        event_multiplier: float = 1.0,
        decay_factor: float = 1.0,
        momentum: Optional[MomentumState] = None,
        now: Optional[datetime] = None,
    ) -> XpAward:
        """
        Award XP for a learner action, applying every multiplier.

        Args:
            learner_id: Learner identifier
            base_amount: Base XP before multipliers
            accuracy: Message accuracy 0-100, or None for a neutral multiplier
            is_perfect_message: Apply the perfect-message bonus
            streak_days: Streak used for the streak bonus; defaults to the
                learner's current streak
            tier_multiplier: Proficiency tier multiplier
            adaptive_multiplier: Adaptive difficulty multiplier
            event_multiplier: Live event multiplier
            decay_factor: Inactivity decay factor (0-1]
            momentum: Active momentum bonus, if any
            now: Timestamp for the award; now (UTC) when omitted

        Returns:
            XpAward describing XP earned, level change and new snapshot

        Raises:
            ValidationError: If an input is out of range

        Example:
            >>> award = await leveling_service.award_xp("learner-42", 100, accuracy=96)
            >>> award.earned
            150
        """
        validate_xp(base_amount, field="base_amount")
        if accuracy is not None:
            validate_accuracy(accuracy)
        if streak_days is not None:
            validate_streak(streak_days)
        validate_multiplier(tier_multiplier, field="tier_multiplier")
        validate_multiplier(adaptive_multiplier, field="adaptive_multiplier")
        validate_multiplier(event_multiplier, field="event_multiplier")
        validate_multiplier(decay_factor, field="decay_factor")

        now = now or datetime.now(timezone.utc)

        async with LogContext(learner_id=learner_id, operation="award_xp"):
            learner = await self.load(learner_id)
            old_level = learner.level

            calculation = calculate_total_xp(
                XpCalculationParams(
                    base_amount=base_amount,
                    accuracy=accuracy,
                    streak_days=(
                        learner.stats.current_streak if streak_days is None else streak_days
                    ),
                    tier_multiplier=tier_multiplier,
                    adaptive_multiplier=adaptive_multiplier,
                    decay_factor=decay_factor,
                    momentum=momentum,
                    prestige_level=learner.prestige_level,
                    event_multiplier=event_multiplier,
                    is_perfect_message=is_perfect_message,
                ),
                now=now,
            )
            earned = sanitize_xp_gain(calculation.total_xp)

            unlocked = learner.add_experience(earned, at=now)
            await self._commit(learner)

            if self._accuracy is not None and accuracy is not None:
                await self._accuracy.record(learner_id, accuracy, xp_gained=earned, at=now)

            award = XpAward(
                earned=earned,
                old_level=old_level,
                new_level=learner.level,
                levels_gained=learner.level - old_level,
                leveled_up=learner.level > old_level,
                milestone=unlocked[-1] if unlocked else None,
                snapshot=learner.snapshot,
                calculation=calculation,
            )

            self.log_operation(
                "award_xp",
                learner_id=learner_id,
                base_amount=base_amount,
                earned=earned,
                multiplier=round(calculation.multipliers.total, 4),
                old_level=old_level,
                new_level=award.new_level,
            )
            if award.leveled_up:
                self.log.info(
                    f"Learner leveled up: {old_level} -> {award.new_level}",
                    extra={
                        "learner_id": learner_id,
                        "old_level": old_level,
                        "new_level": award.new_level,
                        "milestone_level": award.milestone.level if award.milestone else None,
                    },
                )
            return award

    async def add_xp(self, learner_id: str, amount: float) -> XpAward:
        """
        Grant raw XP with no multipliers.

        Raises:
            ValidationError: If amount is negative or not a finite number
        """
        validate_xp(amount, field="amount")
        earned = sanitize_xp_gain(amount)

        async with LogContext(learner_id=learner_id, operation="add_xp"):
            learner = await self.load(learner_id)
            old_level = learner.level
            unlocked = learner.add_experience(earned)
            await self._commit(learner)

            self.log_operation(
                "add_xp", learner_id=learner_id, earned=earned, new_level=learner.level
            )
            return XpAward(
                earned=earned,
                old_level=old_level,
                new_level=learner.level,
                levels_gained=learner.level - old_level,
                leveled_up=learner.level > old_level,
                milestone=unlocked[-1] if unlocked else None,
                snapshot=learner.snapshot,
            )

    async def update_stats(
        self,
        learner_id: str,
        accuracy: float,
        is_perfect: bool = False,
        at: Optional[datetime] = None,
    ) -> LevelStats:
        """
        Fold one scored message into the learner's statistics.

        The consistency score comes from the accuracy service when one is
        configured; otherwise the stored score is kept.

        Raises:
            ValidationError: If accuracy is out of range
        """
        validate_accuracy(accuracy)

        async with LogContext(learner_id=learner_id, operation="update_stats"):
            learner = await self.load(learner_id)
            consistency = (
                await self._accuracy.consistency_score(learner_id)
                if self._accuracy is not None
                else None
            )
            learner.record_message(
                accuracy, is_perfect=is_perfect, at=at, consistency_score=consistency
            )
            await self._commit(learner)

            stats = learner.stats
            self.log_operation(
                "update_stats",
                learner_id=learner_id,
                total_messages=stats.total_messages,
                current_streak=stats.current_streak,
                average_accuracy=stats.average_accuracy,
            )
            return stats

    async def prestige(self, learner_id: str) -> int:
        """
        Start a new prestige cycle.

        Returns:
            The new prestige level

        Raises:
            InvalidOperationError: Below level 200 or at maximum prestige
        """
        async with LogContext(learner_id=learner_id, operation="prestige"):
            learner = await self.load(learner_id)
            try:
                new_prestige = learner.prestige()
            except InvalidOperationError as e:
                self.log_error("prestige", e, learner_id=learner_id, level=learner.level)
                raise
            await self._commit(learner)
            self.log_operation("prestige", learner_id=learner_id, prestige_level=new_prestige)
            return new_prestige

    async def reset_progress(self, learner_id: str) -> None:
        """Wipe stats, milestones and accuracy history."""
        async with LogContext(learner_id=learner_id, operation="reset_progress"):
            learner = await self.load(learner_id)
            learner.reset()
            await self._store.delete_all(learner_id)
            await self.publish_domain_events(learner.clear_domain_events())
            self.log.warning(
                "Learner progress reset",
                extra={"learner_id": learner_id, "operation": "reset_progress"},
            )

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def get_snapshot(self, learner_id: str) -> NormalizedXpSnapshot:
        return (await self.load(learner_id)).snapshot

    async def get_next_milestone(self, learner_id: str) -> Optional[LevelMilestone]:
        return (await self.load(learner_id)).next_milestone()
