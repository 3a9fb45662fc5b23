"""
LinguaLevel Domain Constants

Purpose
-------
Provide domain-level constants for learner progression: the XP cost curve,
award multipliers, proficiency bands, milestones, prestige rules and input
bounds.

IMPORTANT:
This module contains PROGRESSION constants only. Infrastructure concerns
(Redis URL, key prefix, TTLs, logging) belong in lingualevel.core.config.

Design Notes
------------
- Values are annotated with typing.Final to signal immutability
- Grouped by progression system (curve, awards, proficiency, etc.)
- The curve tuning values (level-2 floor, milestone and prestige
  multipliers) are game-design parameters carried over unchanged; changing
  them shifts every stored learner's derived level
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Dict, Final, List, Tuple

# ============================================================================
# XP CURVE
# ============================================================================


@dataclass(frozen=True)
class XpCurveConfig:
    """Tuning parameters of the per-level XP cost curve."""

    BASE_XP: int = 220  # base per-level cost scale
    EXPONENT: float = 1.1  # superlinear growth with level
    MULTIPLIER: float = 1.08  # per-level geometric growth
    MILESTONE_BONUS: float = 1.25  # cost multiplier every 10th level
    PRESTIGE_SCALING: float = 1.15  # cost multiplier per prestige tier


XP_CURVE: Final[XpCurveConfig] = XpCurveConfig()

LEVEL_TWO_MIN_COST: Final[int] = 500  # floor on the cost of reaching level 2
MILESTONE_INTERVAL: Final[int] = 10  # every 10th level carries MILESTONE_BONUS
LEVEL_SEARCH_CAP: Final[int] = 999  # termination bound for level search
XP_COST_CEILING: Final[int] = int(sys.float_info.max)  # saturation value for a single level cost

# ============================================================================
# XP AWARD MULTIPLIERS
# ============================================================================

# (minimum accuracy %, multiplier, label), checked top-down
ACCURACY_MULTIPLIERS: Final[Tuple[Tuple[float, float, str], ...]] = (
    (95, 1.5, "Excellent!"),
    (85, 1.2, "Good"),
    (75, 1.0, "Normal"),
    (0, 0.8, "Needs Improvement"),
)
ACCURACY_FALLBACK_MULTIPLIER: Final[float] = 0.8

# (minimum streak days, multiplier, label), checked top-down
STREAK_BONUSES: Final[Tuple[Tuple[int, float, str], ...]] = (
    (30, 1.5, "Legendary!"),
    (14, 1.2, "Amazing!"),
    (7, 1.1, "Great!"),
    (3, 1.05, "Good!"),
)

PERFECT_MESSAGE_BONUS: Final[float] = 1.5

ADAPTIVE_MIN_MULTIPLIER: Final[float] = 0.5
ADAPTIVE_MAX_MULTIPLIER: Final[float] = 2.0

DEFAULT_SKILL_CATEGORIES: Final[Tuple[str, ...]] = (
    "grammar",
    "vocabulary",
    "spelling",
    "fluency",
)

# ============================================================================
# DECAY & MOMENTUM
# ============================================================================

DECAY_GRACE_PERIOD_DAYS: Final[int] = 3
DECAY_RATE_PER_DAY: Final[float] = 0.02  # 2% per day after grace period
DECAY_MAX_PERCENTAGE: Final[float] = 20  # never decay more than 20%

MOMENTUM_MAX_LEVEL: Final[int] = 5

# ============================================================================
# PROFICIENCY
# ============================================================================

# (name, min level, max level); Master is open-ended and measured up to
# LEVEL_SEARCH_CAP for tier and progress purposes
PROFICIENCY_THRESHOLDS: Final[Tuple[Tuple[str, int, int], ...]] = (
    ("Beginner", 1, 20),
    ("Intermediate", 21, 50),
    ("Advanced", 51, 100),
    ("Expert", 101, 200),
    ("Master", 201, LEVEL_SEARCH_CAP),
)
PROFICIENCY_TIERS: Final[int] = 10

# (upper level bound inclusive, difficulty rating)
LEVEL_DIFFICULTY_BANDS: Final[Tuple[Tuple[int, int], ...]] = (
    (10, 1),
    (30, 2),
    (50, 3),
    (75, 4),
    (100, 5),
    (150, 6),
    (200, 7),
    (300, 8),
    (400, 9),
)
MAX_LEVEL_DIFFICULTY: Final[int] = 10

# ============================================================================
# BADGES & FEATURES
# ============================================================================

# (minimum level, badge), checked top-down
LEVEL_BADGES: Final[Tuple[Tuple[int, str], ...]] = (
    (500, "Grandmaster"),
    (400, "Legend"),
    (300, "Elite"),
    (200, "Master"),
    (150, "Expert"),
    (100, "Advanced"),
    (50, "Intermediate"),
    (20, "Apprentice"),
    (0, "Novice"),
)
BADGE_MILESTONES: Final[Tuple[int, ...]] = (20, 50, 100, 150, 200, 300, 400, 500)

# (level required, feature name), in unlock order
FEATURE_UNLOCKS: Final[Tuple[Tuple[int, str], ...]] = (
    (5, "Progress Chart"),
    (10, "Streak Tracker"),
    (20, "Advanced Analytics"),
    (30, "Custom Goals"),
    (50, "AI Insights Plus"),
    (75, "Leaderboards"),
    (100, "Master Class Access"),
    (150, "Mentor Mode"),
    (200, "Prestige System"),
    (300, "Legacy Rewards"),
)

# ============================================================================
# MILESTONES
# ============================================================================

MILESTONE_REWARDS: Final[Dict[int, List[str]]] = {
    5: ["First Steps Badge", "Progress Chart Unlocked"],
    10: ["Streak Tracker", "Bronze Star Badge"],
    20: ["Intermediate Badge", "Advanced Analytics"],
    30: ["Premium Preview", "Achievement Board"],
    50: ["Advanced Badge", "AI Insights Plus"],
    75: ["Gold Star", "Custom Learning Path"],
    100: ["Expert Badge", "Master Class Access"],
    150: ["Platinum Badge", "Exclusive Rewards"],
    200: ["Master Badge", "Mentor Status", "Prestige Unlock"],
    250: ["Diamond Badge", "Super Boost"],
    300: ["Rainbow Master", "Custom Themes"],
    400: ["Legendary Status", "Hall of Fame"],
    500: ["Ultimate Master", "Eternal Glory"],
}

# ============================================================================
# PRESTIGE
# ============================================================================

PRESTIGE_MIN_LEVEL: Final[int] = 200
PRESTIGE_XP_BONUS_PER_LEVEL: Final[float] = 0.1  # +10% XP per prestige
MAX_PRESTIGE_LEVEL: Final[int] = 10

# ============================================================================
# LEARNER ACTIVITY
# ============================================================================

STREAK_WINDOW_HOURS: Final[int] = 24  # max gap between messages to keep a streak
CONSISTENCY_MIN_RECORDS: Final[int] = 3
CONSISTENCY_WINDOW: Final[int] = 10
CONSISTENCY_STDDEV_WEIGHT: Final[float] = 2.0

# ============================================================================
# INPUT BOUNDS
# ============================================================================

MIN_LEVEL: Final[int] = 1
MAX_LEVEL: Final[int] = 999
MIN_XP: Final[int] = 0
MAX_XP_GAIN: Final[int] = 10_000
MIN_ACCURACY: Final[float] = 0
MAX_ACCURACY: Final[float] = 100
MAX_STREAK: Final[int] = 10_000
MAX_MULTIPLIER: Final[float] = 10
