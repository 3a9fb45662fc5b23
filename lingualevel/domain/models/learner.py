"""
Learner Domain Model for LinguaLevel.

Purpose
-------
Rich domain model holding one learner's progression state: total XP,
prestige, message statistics, streaks and unlocked milestones. The level is
never stored; it is always derived from total XP on the cumulative curve,
so it cannot drift from the XP it is based on.

Responsibilities
----------------
- Apply XP gains and detect level-ups and milestone unlocks
- Track message statistics (streaks, running accuracy, perfect messages)
- Enforce prestige rules
- Emit domain events for important changes
- Convert to and from plain dicts for the progress store

Non-Responsibilities
--------------------
- XP award math (handled by xp_calculator)
- Persistence (handled by the progress store)
- Publishing events (handled by services)

Usage Example
-------------
>>> learner = Learner("learner-42")
>>> unlocked = learner.add_experience(1400)
>>> learner.level
3
>>> for event in learner.clear_domain_events():
...     await event_bus.publish(event.event_name, event.payload)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from lingualevel.domain.models.base import (
    AggregateRoot,
    DomainValidationError,
    validate_non_negative,
    validate_not_empty,
    validate_range,
)
from lingualevel.modules.progression.level_calculator import (
    ProficiencyLevel,
    get_proficiency_level,
)
from lingualevel.modules.progression.snapshot import (
    NormalizedXpSnapshot,
    compute_level_snapshot,
)
from lingualevel.modules.shared.constants import (
    MAX_ACCURACY,
    MAX_PRESTIGE_LEVEL,
    MILESTONE_REWARDS,
    MIN_ACCURACY,
    PRESTIGE_MIN_LEVEL,
    STREAK_WINDOW_HOURS,
)
from lingualevel.modules.shared.exceptions import InvalidOperationError
from lingualevel.modules.shared.formulas import (
    cumulative_xp_for_level,
    level_from_total_xp,
)
from lingualevel.modules.shared.validators import can_prestige, is_max_prestige


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return _as_utc(datetime.fromisoformat(value)) if value else None


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ============================================================================
# VALUE OBJECTS
# ============================================================================


@dataclass(frozen=True)
class LevelStats:
    """
    Immutable value object with a learner's progression statistics.

    Attributes
    ----------
    total_xp : int
        XP earned in the current prestige cycle
    total_messages : int
        Messages scored so far
    average_accuracy : float
        Running mean accuracy over all messages, two decimals
    consistency_score : float
        Latest consistency score from the accuracy history (0-100)
    current_streak : int
        Consecutive messages sent within the streak window of each other
    longest_streak : int
        Best streak ever reached
    perfect_messages : int
        Messages scored as perfect
    last_message_at : Optional[datetime]
        Timestamp of the most recent message
    prestige_level : int
        Completed prestige cycles
    """

    total_xp: int = 0
    total_messages: int = 0
    average_accuracy: float = 0.0
    consistency_score: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    perfect_messages: int = 0
    last_message_at: Optional[datetime] = None
    prestige_level: int = 0

    def __post_init__(self) -> None:
        """Validate stats on creation."""
        validate_non_negative(self.total_xp, "total_xp")
        validate_non_negative(self.total_messages, "total_messages")
        validate_range(self.average_accuracy, MIN_ACCURACY, MAX_ACCURACY, "average_accuracy")
        validate_range(self.consistency_score, 0, 100, "consistency_score")
        validate_non_negative(self.current_streak, "current_streak")
        validate_non_negative(self.perfect_messages, "perfect_messages")
        validate_range(self.prestige_level, 0, MAX_PRESTIGE_LEVEL, "prestige_level")
        if self.longest_streak < self.current_streak:
            raise DomainValidationError(
                "longest_streak cannot be below current_streak",
                field="longest_streak",
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_xp": self.total_xp,
            "total_messages": self.total_messages,
            "average_accuracy": self.average_accuracy,
            "consistency_score": self.consistency_score,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "perfect_messages": self.perfect_messages,
            "last_message_at": _format_datetime(self.last_message_at),
            "prestige_level": self.prestige_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LevelStats:
        return cls(
            total_xp=int(data.get("total_xp", 0)),
            total_messages=int(data.get("total_messages", 0)),
            average_accuracy=float(data.get("average_accuracy", 0.0)),
            consistency_score=float(data.get("consistency_score", 0.0)),
            current_streak=int(data.get("current_streak", 0)),
            longest_streak=int(data.get("longest_streak", 0)),
            perfect_messages=int(data.get("perfect_messages", 0)),
            last_message_at=_parse_datetime(data.get("last_message_at")),
            prestige_level=int(data.get("prestige_level", 0)),
        )


@dataclass(frozen=True)
class LevelMilestone:
    """
    A milestone level and the rewards attached to it.

    unlocked_at is None for a milestone that has not been reached yet.
    """

    level: int
    name: str
    proficiency: ProficiencyLevel
    xp_required: int
    rewards: Tuple[str, ...] = field(default_factory=tuple)
    unlocked_at: Optional[datetime] = None
    prestige_level: int = 0

    @classmethod
    def for_level(
        cls,
        level: int,
        prestige_level: int = 0,
        unlocked_at: Optional[datetime] = None,
    ) -> LevelMilestone:
        return cls(
            level=level,
            name=f"Level {level} Milestone",
            proficiency=get_proficiency_level(level),
            xp_required=cumulative_xp_for_level(level, prestige_level),
            rewards=tuple(MILESTONE_REWARDS.get(level, ())),
            unlocked_at=unlocked_at,
            prestige_level=prestige_level,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "name": self.name,
            "proficiency": self.proficiency.value,
            "xp_required": self.xp_required,
            "rewards": list(self.rewards),
            "unlocked_at": _format_datetime(self.unlocked_at),
            "prestige_level": self.prestige_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LevelMilestone:
        return cls(
            level=int(data["level"]),
            name=data["name"],
            proficiency=ProficiencyLevel(data["proficiency"]),
            xp_required=int(data["xp_required"]),
            rewards=tuple(data.get("rewards", ())),
            unlocked_at=_parse_datetime(data.get("unlocked_at")),
            prestige_level=int(data.get("prestige_level", 0)),
        )


# ============================================================================
# LEARNER AGGREGATE ROOT
# ============================================================================


class Learner(AggregateRoot):
    """
    Learner aggregate root with progression rules.

    Business Rules
    --------------
    - Level is derived from total XP and prestige, never set directly
    - Each milestone level unlocks once per prestige cycle
    - A streak survives while messages are at most 24 hours apart
    - Prestige needs level 200 and resets XP for the next cycle

    Domain Events
    -------------
    - learner.experience_gained: XP was added
    - learner.leveled_up: The derived level increased
    - learner.milestone_unlocked: A milestone level was reached
    - learner.prestiged: A new prestige cycle started
    - learner.progress_reset: All progress was wiped
    """

    def __init__(
        self,
        learner_id: str,
        stats: Optional[LevelStats] = None,
        milestones: Optional[List[LevelMilestone]] = None,
    ) -> None:
        validate_not_empty(learner_id, "learner_id")
        super().__init__(learner_id)
        self._stats = stats or LevelStats()
        self._milestones: List[LevelMilestone] = list(milestones or [])

    # ========================================================================
    # PROPERTIES
    # ========================================================================

    @property
    def stats(self) -> LevelStats:
        return self._stats

    @property
    def milestones(self) -> List[LevelMilestone]:
        return list(self._milestones)

    @property
    def total_xp(self) -> int:
        return self._stats.total_xp

    @property
    def prestige_level(self) -> int:
        return self._stats.prestige_level

    @property
    def level(self) -> int:
        return level_from_total_xp(self._stats.total_xp, self._stats.prestige_level)

    @property
    def proficiency(self) -> ProficiencyLevel:
        return get_proficiency_level(self.level)

    @property
    def snapshot(self) -> NormalizedXpSnapshot:
        """Current position on the XP curve."""
        return compute_level_snapshot(self._stats.total_xp, self._stats.prestige_level)

    # ========================================================================
    # BUSINESS LOGIC - EXPERIENCE
    # ========================================================================

    def add_experience(
        self, amount: int, at: Optional[datetime] = None
    ) -> List[LevelMilestone]:
        """
        Add XP and record any level-ups and milestone unlocks.

        A single gain may cross several levels; every milestone level crossed
        is unlocked, not only the final one.

        Parameters
        ----------
        amount : int
            XP to add (must be non-negative; zero is a no-op)
        at : Optional[datetime]
            Unlock timestamp for milestones, defaults to now (UTC)

        Returns
        -------
        List[LevelMilestone]
            Milestones unlocked by this gain, lowest level first
        """
        validate_non_negative(amount, "amount")
        if amount == 0:
            return []

        at = _as_utc(at) or datetime.now(timezone.utc)
        old_level = self.level
        self._stats = replace(self._stats, total_xp=self._stats.total_xp + amount)
        new_level = self.level

        self.add_domain_event(
            "learner.experience_gained",
            {
                "learner_id": self.id,
                "amount": amount,
                "new_total": self._stats.total_xp,
            },
        )

        if new_level <= old_level:
            return []

        self.add_domain_event(
            "learner.leveled_up",
            {
                "learner_id": self.id,
                "old_level": old_level,
                "new_level": new_level,
                "levels_gained": new_level - old_level,
                "proficiency": get_proficiency_level(new_level).value,
            },
        )

        unlocked: List[LevelMilestone] = []
        for level in sorted(MILESTONE_REWARDS):
            if old_level < level <= new_level and not self._has_milestone(level):
                milestone = LevelMilestone.for_level(level, self.prestige_level, at)
                self._milestones.append(milestone)
                unlocked.append(milestone)
                self.add_domain_event(
                    "learner.milestone_unlocked",
                    {
                        "learner_id": self.id,
                        "level": level,
                        "rewards": list(milestone.rewards),
                        "prestige_level": self.prestige_level,
                    },
                )
        return unlocked

    def _has_milestone(self, level: int) -> bool:
        return any(
            m.level == level and m.prestige_level == self.prestige_level
            for m in self._milestones
        )

    def next_milestone(self) -> Optional[LevelMilestone]:
        """The first milestone level above the current level, or None past the last one."""
        current = self.level
        upcoming = next((level for level in sorted(MILESTONE_REWARDS) if level > current), None)
        if upcoming is None:
            return None
        return LevelMilestone.for_level(upcoming, self.prestige_level)

    # ========================================================================
    # BUSINESS LOGIC - MESSAGE STATISTICS
    # ========================================================================

    def record_message(
        self,
        accuracy: float,
        is_perfect: bool = False,
        at: Optional[datetime] = None,
        consistency_score: Optional[float] = None,
    ) -> None:
        """
        Fold one scored message into the statistics.

        Parameters
        ----------
        accuracy : float
            Message accuracy, 0-100
        is_perfect : bool
            Whether the message was perfect
        at : Optional[datetime]
            When the message was sent, defaults to now (UTC)
        consistency_score : Optional[float]
            Fresh consistency score; the previous one is kept when None
        """
        validate_range(accuracy, MIN_ACCURACY, MAX_ACCURACY, "accuracy")
        at = _as_utc(at) or datetime.now(timezone.utc)
        stats = self._stats

        last = _as_utc(stats.last_message_at)
        if last is not None and at - last <= timedelta(hours=STREAK_WINDOW_HOURS):
            streak = stats.current_streak + 1
        else:
            streak = 1

        messages = stats.total_messages + 1
        average = (stats.average_accuracy * stats.total_messages + accuracy) / messages

        self._stats = replace(
            stats,
            total_messages=messages,
            average_accuracy=round(average, 2),
            consistency_score=(
                stats.consistency_score if consistency_score is None else consistency_score
            ),
            current_streak=streak,
            longest_streak=max(stats.longest_streak, streak),
            perfect_messages=stats.perfect_messages + (1 if is_perfect else 0),
            last_message_at=at,
        )

    # ========================================================================
    # BUSINESS LOGIC - PRESTIGE & RESET
    # ========================================================================

    def prestige(self) -> int:
        """
        Start a new prestige cycle.

        Returns
        -------
        int
            The new prestige level

        Raises
        ------
        InvalidOperationError
            Below level 200 or already at the maximum prestige
        """
        level = self.level
        if not can_prestige(level):
            raise InvalidOperationError(
                "prestige", f"requires level {PRESTIGE_MIN_LEVEL}, learner is level {level}"
            )
        if is_max_prestige(self.prestige_level):
            raise InvalidOperationError(
                "prestige", f"already at maximum prestige {MAX_PRESTIGE_LEVEL}"
            )

        new_prestige = self.prestige_level + 1
        self._stats = replace(self._stats, total_xp=0, prestige_level=new_prestige)
        self.add_domain_event(
            "learner.prestiged",
            {
                "learner_id": self.id,
                "prestige_level": new_prestige,
                "level_before": level,
            },
        )
        return new_prestige

    def reset(self) -> None:
        """Wipe all progress, prestige and milestones included."""
        self._stats = LevelStats()
        self._milestones.clear()
        self.add_domain_event("learner.progress_reset", {"learner_id": self.id})

    # ========================================================================
    # SERIALIZATION
    # ========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "learner_id": self.id,
            "stats": self._stats.to_dict(),
            "milestones": [m.to_dict() for m in self._milestones],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Learner:
        return cls(
            data["learner_id"],
            stats=LevelStats.from_dict(data.get("stats", {})),
            milestones=[LevelMilestone.from_dict(m) for m in data.get("milestones", [])],
        )
