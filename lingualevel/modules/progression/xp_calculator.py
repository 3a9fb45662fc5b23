"""
XP award calculation.

Purpose
-------
Compute how much XP a single learner action is worth. A base amount is
scaled by a chain of multipliers (accuracy tier, streak, proficiency tier,
adaptive difficulty, momentum, prestige, live events, perfect-message bonus,
inactivity decay) and the result is returned with an itemised breakdown.

Also hosts the small forecasting helpers that work in XP-per-day terms.

Design Notes
------------
- Pure functions; "now" is always a parameter with a UTC default
- Nothing here persists or raises; services validate inputs first
- Multiplier tables live in lingualevel.modules.shared.constants
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Mapping, Optional, Sequence

from lingualevel.modules.shared.constants import (
    ACCURACY_FALLBACK_MULTIPLIER,
    ACCURACY_MULTIPLIERS,
    ADAPTIVE_MAX_MULTIPLIER,
    ADAPTIVE_MIN_MULTIPLIER,
    DECAY_GRACE_PERIOD_DAYS,
    DECAY_MAX_PERCENTAGE,
    DECAY_RATE_PER_DAY,
    DEFAULT_SKILL_CATEGORIES,
    MOMENTUM_MAX_LEVEL,
    PERFECT_MESSAGE_BONUS,
    PRESTIGE_XP_BONUS_PER_LEVEL,
    STREAK_BONUSES,
)
from lingualevel.modules.shared.formulas import prestige_xp_multiplier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# TYPES
# ============================================================================


@dataclass(frozen=True)
class MomentumState:
    """Temporary XP boost earned by a run of high-accuracy sessions."""

    bonus_active: bool = False
    multiplier: float = 1.0
    momentum_level: int = 0
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class XpSource:
    """One line of an XP award breakdown."""

    source_type: str  # base, accuracy, streak, momentum, perfect, event
    amount: float
    multiplier: float
    description: str
    timestamp: datetime


@dataclass(frozen=True)
class XpMultipliers:
    accuracy: float = 1.0
    streak: float = 1.0
    tier: float = 1.0
    adaptive: float = 1.0
    momentum: float = 1.0
    prestige: float = 1.0
    event: float = 1.0
    perfect: float = 1.0
    decay: float = 1.0
    total: float = 1.0


@dataclass(frozen=True)
class XpCalculationParams:
    """
    Inputs to calculate_total_xp.

    accuracy=None means the action carried no accuracy signal and the
    accuracy multiplier is neutral.
    """

    base_amount: float
    accuracy: Optional[float] = None
    streak_days: int = 0
    tier_multiplier: float = 1.0
    adaptive_multiplier: float = 1.0
    decay_factor: float = 1.0
    momentum: Optional[MomentumState] = None
    prestige_level: int = 0
    event_multiplier: float = 1.0
    is_perfect_message: bool = False


@dataclass(frozen=True)
class XpCalculationResult:
    base_xp: float
    bonus_xp: int
    total_xp: int
    multipliers: XpMultipliers
    breakdown: List[XpSource] = field(default_factory=list)


# ============================================================================
# MULTIPLIERS
# ============================================================================


def get_accuracy_multiplier(accuracy: float) -> float:
    """
    Multiplier for an accuracy percentage.

    Example:
        >>> get_accuracy_multiplier(96)
        1.5
        >>> get_accuracy_multiplier(80)
        1.0
        >>> get_accuracy_multiplier(40)
        0.8
    """
    for threshold, multiplier, _label in ACCURACY_MULTIPLIERS:
        if accuracy >= threshold:
            return multiplier
    return ACCURACY_FALLBACK_MULTIPLIER


def get_streak_multiplier(streak_days: int) -> float:
    """
    Multiplier for a daily practice streak.

    Example:
        >>> get_streak_multiplier(30)
        1.5
        >>> get_streak_multiplier(2)
        1.0
    """
    for days, multiplier, _label in STREAK_BONUSES:
        if streak_days >= days:
            return multiplier
    return 1.0


def calculate_momentum_multiplier(
    momentum: MomentumState, now: Optional[datetime] = None
) -> float:
    """Momentum multiplier, 1.0 when inactive or expired."""
    if not momentum.bonus_active:
        return 1.0
    now = now or _utcnow()
    if momentum.expires_at is not None and now > momentum.expires_at:
        return 1.0
    return momentum.multiplier


def calculate_adaptive_difficulty(
    recent_accuracy_trend: float,
    consistency_score: float,
    improvement_rate: float,
) -> float:
    """
    Adaptive multiplier from recent performance.

    Trend contributes up to +/-0.2, consistency up to +0.15 and improvement
    up to +0.2; the result is clamped to 0.5-2.0.

    Args:
        recent_accuracy_trend: Accuracy change in percentage points
        consistency_score: Consistency score, 0-100
        improvement_rate: Improvement rate in percentage points

    Example:
        >>> calculate_adaptive_difficulty(0, 0, 0)
        1.0
        >>> calculate_adaptive_difficulty(100, 100, 50)
        1.55
    """
    multiplier = 1.0
    multiplier += max(-0.2, min(0.2, recent_accuracy_trend / 100 * 0.5))
    multiplier += consistency_score / 100 * 0.15
    multiplier += max(0.0, min(0.2, improvement_rate / 50))
    return round(max(ADAPTIVE_MIN_MULTIPLIER, min(ADAPTIVE_MAX_MULTIPLIER, multiplier)), 4)


def calculate_decay(
    last_active: datetime,
    now: Optional[datetime] = None,
    grace_period_days: int = DECAY_GRACE_PERIOD_DAYS,
    decay_rate_per_day: float = DECAY_RATE_PER_DAY,
    max_decay_percentage: float = DECAY_MAX_PERCENTAGE,
) -> float:
    """
    XP multiplier after a period of inactivity.

    Full XP inside the grace period, then a linear penalty per extra day,
    capped at max_decay_percentage.

    Example:
        >>> start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> calculate_decay(start, start + timedelta(days=2))
        1.0
        >>> calculate_decay(start, start + timedelta(days=8))
        0.9
    """
    now = now or _utcnow()
    days_inactive = math.floor((now - last_active).total_seconds() / 86_400)

    if days_inactive <= grace_period_days:
        return 1.0

    decay_days = days_inactive - grace_period_days
    total_decay = min(decay_days * decay_rate_per_day, max_decay_percentage / 100)
    return round(1.0 - total_decay, 4)


# ============================================================================
# TOTAL XP
# ============================================================================


def calculate_total_xp(
    params: XpCalculationParams, now: Optional[datetime] = None
) -> XpCalculationResult:
    """
    Apply every multiplier to a base XP amount.

    Args:
        params: Award inputs
        now: Timestamp for breakdown entries and momentum expiry

    Returns:
        XpCalculationResult with the floored total, bonus over base, the
        multiplier set and an itemised breakdown

    Example:
        >>> result = calculate_total_xp(XpCalculationParams(base_amount=100, accuracy=96))
        >>> result.total_xp, result.bonus_xp
        (150, 50)
    """
    now = now or _utcnow()
    base = params.base_amount

    accuracy_mult = (
        get_accuracy_multiplier(params.accuracy) if params.accuracy is not None else 1.0
    )
    streak_mult = get_streak_multiplier(params.streak_days)
    momentum_mult = (
        calculate_momentum_multiplier(params.momentum, now) if params.momentum else 1.0
    )
    prestige_mult = prestige_xp_multiplier(params.prestige_level, PRESTIGE_XP_BONUS_PER_LEVEL)
    perfect_mult = PERFECT_MESSAGE_BONUS if params.is_perfect_message else 1.0

    total_mult = (
        accuracy_mult
        * streak_mult
        * params.tier_multiplier
        * params.adaptive_multiplier
        * momentum_mult
        * prestige_mult
        * params.event_multiplier
        * perfect_mult
        * params.decay_factor
    )

    breakdown: List[XpSource] = [XpSource("base", base, 1.0, "Base XP", now)]

    if accuracy_mult > 1.0:
        breakdown.append(
            XpSource(
                "accuracy",
                base * (accuracy_mult - 1.0),
                accuracy_mult,
                f"Accuracy Bonus ({params.accuracy}%)",
                now,
            )
        )
    if streak_mult > 1.0:
        breakdown.append(
            XpSource(
                "streak",
                base * (streak_mult - 1.0),
                streak_mult,
                f"{params.streak_days}-Day Streak Bonus",
                now,
            )
        )
    if momentum_mult > 1.0:
        level = params.momentum.momentum_level if params.momentum else 0
        breakdown.append(
            XpSource(
                "momentum",
                base * (momentum_mult - 1.0),
                momentum_mult,
                f"Momentum Bonus ({level}/{MOMENTUM_MAX_LEVEL})",
                now,
            )
        )
    if params.is_perfect_message:
        breakdown.append(
            XpSource(
                "perfect",
                base * (perfect_mult - 1.0),
                perfect_mult,
                "Perfect Message!",
                now,
            )
        )
    if params.event_multiplier > 1.0:
        breakdown.append(
            XpSource(
                "event",
                base * (params.event_multiplier - 1.0),
                params.event_multiplier,
                "Event Bonus Active!",
                now,
            )
        )

    total_xp = int(math.floor(base * total_mult))

    return XpCalculationResult(
        base_xp=base,
        bonus_xp=int(total_xp - base),
        total_xp=total_xp,
        multipliers=XpMultipliers(
            accuracy=accuracy_mult,
            streak=streak_mult,
            tier=params.tier_multiplier,
            adaptive=params.adaptive_multiplier,
            momentum=momentum_mult,
            prestige=prestige_mult,
            event=params.event_multiplier,
            perfect=perfect_mult,
            decay=params.decay_factor,
            total=total_mult,
        ),
        breakdown=breakdown,
    )


# ============================================================================
# SKILL DISTRIBUTION
# ============================================================================


def distribute_skill_xp(
    total_xp: int, skill_breakdown: Optional[Mapping[str, float]] = None
) -> Dict[str, int]:
    """
    Split an award across skill categories.

    With no breakdown the XP is split evenly across grammar, vocabulary,
    spelling and fluency. Otherwise each skill gets its weight's share.
    Shares are floored, so the parts may sum to slightly less than the whole.

    Example:
        >>> distribute_skill_xp(100)
        {'grammar': 25, 'vocabulary': 25, 'spelling': 25, 'fluency': 25}
        >>> distribute_skill_xp(100, {"grammar": 3, "fluency": 1})
        {'grammar': 75, 'fluency': 25}
    """
    if not skill_breakdown:
        per_skill = total_xp // len(DEFAULT_SKILL_CATEGORIES)
        return {skill: per_skill for skill in DEFAULT_SKILL_CATEGORIES}

    weight_total = sum(weight or 0 for weight in skill_breakdown.values())
    if weight_total <= 0:
        return {}

    return {
        skill: int(math.floor(weight / weight_total * total_xp))
        for skill, weight in skill_breakdown.items()
        if weight
    }


# ============================================================================
# FORECAST & ANALYTICS
# ============================================================================


def forecast_level_up(
    xp_to_next_level: int,
    avg_xp_per_day: float,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Projected level-up date, or None when the learner is not earning XP."""
    if avg_xp_per_day <= 0:
        return None
    days = math.ceil(xp_to_next_level / avg_xp_per_day)
    return (now or _utcnow()) + timedelta(days=days)


def calculate_average_xp_per_day(total_xp: float, active_days: int) -> float:
    if active_days <= 0:
        return 0.0
    return total_xp / active_days


def calculate_xp_velocity(recent_xp: Sequence[float], window_days: int = 7) -> float:
    """
    Mean daily XP over the trailing window.

    Fewer than two samples give 0.

    Example:
        >>> calculate_xp_velocity([100, 200, 300])
        200.0
    """
    if len(recent_xp) < 2:
        return 0.0
    recent = list(recent_xp)[-window_days:]
    return sum(recent) / len(recent)
