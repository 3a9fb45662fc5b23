"""
Level analytics.

Purpose
-------
Everything that interprets a level number: proficiency bands and the tier
inside a band, milestone levels, badges, unlocked features, difficulty
ratings, comparisons and percentiles. Also provides progress helpers that
read from the snapshot module, so they always agree with the cumulative
XP curve.

Design Notes
------------
- Pure functions over constants; nothing raises
- Master is open-ended; tier and band progress measure it up to the level
  search cap
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence

from lingualevel.modules.shared.constants import (
    BADGE_MILESTONES,
    FEATURE_UNLOCKS,
    LEVEL_BADGES,
    LEVEL_DIFFICULTY_BANDS,
    MAX_LEVEL_DIFFICULTY,
    MILESTONE_INTERVAL,
    PROFICIENCY_THRESHOLDS,
    PROFICIENCY_TIERS,
)
from lingualevel.modules.shared.formulas import level_from_total_xp
from lingualevel.modules.progression.snapshot import compute_level_snapshot


class ProficiencyLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"
    MASTER = "Master"


_PROFICIENCY_ORDER: List[ProficiencyLevel] = list(ProficiencyLevel)

_PROFICIENCY_BOUNDS: Dict[ProficiencyLevel, tuple] = {
    ProficiencyLevel(name): (low, high) for name, low, high in PROFICIENCY_THRESHOLDS
}


@dataclass(frozen=True)
class LevelUpResult:
    new_level: int
    levels_gained: int


@dataclass(frozen=True)
class LevelComparison:
    level_difference: int
    proficiency_difference: int
    description: str


@dataclass(frozen=True)
class BadgeMilestone:
    level: int
    badge: str
    levels_remaining: int


# ============================================================================
# PROFICIENCY
# ============================================================================


def get_proficiency_level(level: int) -> ProficiencyLevel:
    """
    Proficiency band for a level.

    Example:
        >>> get_proficiency_level(20)
        <ProficiencyLevel.BEGINNER: 'Beginner'>
        >>> get_proficiency_level(21)
        <ProficiencyLevel.INTERMEDIATE: 'Intermediate'>
    """
    for proficiency in reversed(_PROFICIENCY_ORDER):
        if level >= _PROFICIENCY_BOUNDS[proficiency][0]:
            return proficiency
    return ProficiencyLevel.BEGINNER


def get_tier_within_proficiency(level: int) -> int:
    """
    Tier 1-10 inside the learner's proficiency band.

    Example:
        >>> get_tier_within_proficiency(1), get_tier_within_proficiency(20)
        (1, 10)
    """
    low, high = _PROFICIENCY_BOUNDS[get_proficiency_level(level)]
    tier_size = math.ceil((high - low + 1) / PROFICIENCY_TIERS)
    return max(1, min(PROFICIENCY_TIERS, math.ceil((level - low + 1) / tier_size)))


def get_proficiency_progress(level: int) -> float:
    """Percentage through the current proficiency band (0-100)."""
    low, high = _PROFICIENCY_BOUNDS[get_proficiency_level(level)]
    levels_in_band = high - low + 1
    return max(0.0, min(100.0, (level - low) / levels_in_band * 100))


# ============================================================================
# MILESTONES & LEVEL-UPS
# ============================================================================


def is_milestone_level(level: int) -> bool:
    return level % MILESTONE_INTERVAL == 0


def get_next_milestone_level(current_level: int) -> int:
    """
    The next multiple of 10 at or above current_level.

    Example:
        >>> get_next_milestone_level(7), get_next_milestone_level(10)
        (10, 10)
    """
    return math.ceil(current_level / MILESTONE_INTERVAL) * MILESTONE_INTERVAL


def calculate_level_progress(total_xp: int, prestige_level: int = 0) -> int:
    """Percent progress through the current level, measured on the cumulative curve."""
    return compute_level_snapshot(total_xp, prestige_level).progress_percentage


def get_xp_to_next_level(total_xp: int, prestige_level: int = 0) -> int:
    return compute_level_snapshot(total_xp, prestige_level).xp_remaining_to_next_level


def can_level_up(total_xp: int, current_level: int, prestige_level: int = 0) -> bool:
    """True when total_xp already reaches a level above current_level."""
    return level_from_total_xp(total_xp, prestige_level) > current_level


def process_level_up(
    total_xp: int, current_level: int, prestige_level: int = 0
) -> LevelUpResult:
    """
    Level reached by total_xp and how many levels that is above current_level.

    Example:
        >>> process_level_up(0, 1)
        LevelUpResult(new_level=1, levels_gained=0)
    """
    new_level = level_from_total_xp(total_xp, prestige_level)
    return LevelUpResult(new_level=new_level, levels_gained=new_level - current_level)


# ============================================================================
# ANALYTICS
# ============================================================================


def calculate_level_velocity(levels_gained: int, days_active: int) -> float:
    if days_active <= 0:
        return 0.0
    return levels_gained / days_active


def estimate_days_to_level(
    current_level: int, target_level: int, avg_levels_per_day: float
) -> float:
    """Whole days to reach target_level; math.inf when not progressing."""
    if avg_levels_per_day <= 0:
        return math.inf
    return math.ceil((target_level - current_level) / avg_levels_per_day)


def get_level_difficulty(level: int) -> int:
    """
    Difficulty rating 1-10; higher levels are slower to progress.

    Example:
        >>> get_level_difficulty(10), get_level_difficulty(11), get_level_difficulty(401)
        (1, 2, 10)
    """
    for upper_bound, rating in LEVEL_DIFFICULTY_BANDS:
        if level <= upper_bound:
            return rating
    return MAX_LEVEL_DIFFICULTY


def compare_levels(level_1: int, level_2: int) -> LevelComparison:
    """
    Describe level_2 relative to level_1.

    Example:
        >>> compare_levels(10, 25).description
        '15 levels ahead (1 proficiency tier higher)'
        >>> compare_levels(5, 4).description
        '1 level behind'
    """
    diff = level_2 - level_1
    proficiency_diff = _PROFICIENCY_ORDER.index(
        get_proficiency_level(level_2)
    ) - _PROFICIENCY_ORDER.index(get_proficiency_level(level_1))

    if diff > 0:
        description = f"{diff} level{'s' if diff > 1 else ''} ahead"
    elif diff < 0:
        description = f"{abs(diff)} level{'s' if abs(diff) > 1 else ''} behind"
    else:
        description = "Same level"

    if proficiency_diff != 0:
        tiers = abs(proficiency_diff)
        direction = "higher" if proficiency_diff > 0 else "lower"
        description += f" ({tiers} proficiency tier{'s' if tiers > 1 else ''} {direction})"

    return LevelComparison(
        level_difference=diff,
        proficiency_difference=proficiency_diff,
        description=description,
    )


def calculate_percentile(user_level: int, all_user_levels: Sequence[int]) -> float:
    """Share of learners strictly below user_level, as a percentage."""
    if not all_user_levels:
        return 0.0
    lower = sum(1 for level in all_user_levels if level < user_level)
    return lower / len(all_user_levels) * 100


# ============================================================================
# BADGES & FEATURES
# ============================================================================


def get_level_badge(level: int) -> str:
    for minimum, badge in LEVEL_BADGES:
        if level >= minimum:
            return badge
    return LEVEL_BADGES[-1][1]


def get_next_badge_milestone(current_level: int) -> BadgeMilestone:
    """
    Next badge threshold above current_level.

    Past the last threshold the last one is reported, with a
    non-positive levels_remaining.
    """
    next_level = next(
        (milestone for milestone in BADGE_MILESTONES if milestone > current_level),
        BADGE_MILESTONES[-1],
    )
    return BadgeMilestone(
        level=next_level,
        badge=get_level_badge(next_level),
        levels_remaining=next_level - current_level,
    )


def get_unlocked_features(level: int) -> List[str]:
    return [feature for required, feature in FEATURE_UNLOCKS if level >= required]


def get_newly_unlocked_features(new_level: int, previous_level: int) -> List[str]:
    """
    Features unlocked by moving from previous_level to new_level.

    Example:
        >>> get_newly_unlocked_features(12, 4)
        ['Progress Chart', 'Streak Tracker']
    """
    previously = set(get_unlocked_features(previous_level))
    return [feature for feature in get_unlocked_features(new_level) if feature not in previously]
