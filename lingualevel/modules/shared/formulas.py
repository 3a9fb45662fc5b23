"""
LinguaLevel Progression Formulas

Purpose
-------
Pure calculation functions for the XP cost curve: the cost of a single
level, the cumulative XP needed to reach a level, and the inverse (level
from a total XP count).

Design Notes
------------
All formulas:
- Accept parameters explicitly
- Return calculated values
- Never raise; invalid input degrades to level 1 / zero cost, and a cost
  too large for a float saturates at XP_COST_CEILING
- Read their tuning values from XP_CURVE only

The inverse is a forward search rather than a closed form so it stays
exactly consistent with cumulative_xp_for_level. The search is inclusive
at the threshold: a total equal to cumulative_xp_for_level(L) is level L.

Usage
-----
    from lingualevel.modules.shared.formulas import level_from_total_xp

    level = level_from_total_xp(12_500)
    cost = xp_cost_for_level(10, prestige_level=1)
"""

from __future__ import annotations

import math
from typing import Any

from .constants import (
    LEVEL_SEARCH_CAP,
    LEVEL_TWO_MIN_COST,
    MILESTONE_INTERVAL,
    XP_COST_CEILING,
    XP_CURVE,
)
from .validators import coerce_number


def xp_cost_for_level(level: int, prestige_level: int = 0) -> int:
    """
    XP needed to advance from level - 1 to level.

    cost = BASE_XP * MULTIPLIER^(level-1) * level^EXPONENT, with the
    level-2 floor, the milestone bonus on every 10th level and prestige
    scaling applied in that order, then floored.

    Args:
        level: Target level
        prestige_level: Prestige tier (each tier scales cost by PRESTIGE_SCALING)

    Returns:
        Integer XP cost; 0 for level 1 and below

    Example:
        >>> xp_cost_for_level(1)
        0
        >>> xp_cost_for_level(2)
        509
        >>> xp_cost_for_level(5, prestige_level=1) > xp_cost_for_level(5)
        True
    """
    numeric_level = coerce_number(level)
    if numeric_level is None or numeric_level <= 1:
        return 0

    try:
        cost = (
            XP_CURVE.BASE_XP
            * XP_CURVE.MULTIPLIER ** (numeric_level - 1)
            * numeric_level**XP_CURVE.EXPONENT
        )

        if numeric_level == 2:
            cost = max(LEVEL_TWO_MIN_COST, cost)

        if numeric_level % MILESTONE_INTERVAL == 0:
            cost *= XP_CURVE.MILESTONE_BONUS

        prestige = coerce_number(prestige_level)
        if prestige is not None and prestige > 0:
            cost *= XP_CURVE.PRESTIGE_SCALING**prestige
    except OverflowError:
        return XP_COST_CEILING

    if not math.isfinite(cost):
        return XP_COST_CEILING
    return min(XP_COST_CEILING, int(math.floor(cost)))


def cumulative_xp_for_level(level: int, prestige_level: int = 0) -> int:
    """
    Total XP needed to reach a level starting from level 1.

    Sum of xp_cost_for_level(i) for i in 2..level; level 1 is 0.

    Example:
        >>> cumulative_xp_for_level(1)
        0
        >>> cumulative_xp_for_level(2) == xp_cost_for_level(2)
        True
    """
    numeric_level = coerce_number(level)
    if numeric_level is None or numeric_level < 2:
        return 0

    top = int(math.floor(numeric_level))
    total = 0
    for i in range(2, top + 1):
        cost = xp_cost_for_level(i, prestige_level)
        if cost == XP_COST_CEILING and i % MILESTONE_INTERVAL != 0:
            # non-milestone costs grow with level, so every later level saturates too
            return total + cost * (top - i + 1)
        total += cost
    return total


def level_from_total_xp(total_xp: Any, prestige_level: int = 0) -> int:
    """
    Level reached with a given total XP.

    Walks the curve from level 1 while the running cumulative total stays
    at or below total_xp. The walk stops at LEVEL_SEARCH_CAP.

    Args:
        total_xp: Total XP accumulated (non-numeric or non-positive is level 1)
        prestige_level: Prestige tier used to scale the curve

    Returns:
        Level, at least 1

    Example:
        >>> level_from_total_xp(0)
        1
        >>> level_from_total_xp(cumulative_xp_for_level(10))
        10
        >>> level_from_total_xp(cumulative_xp_for_level(10) - 1)
        9
    """
    total = coerce_number(total_xp)
    if total is None or total <= 0:
        return 1

    level = 1
    cumulative = 0
    while cumulative <= total:
        level += 1
        cumulative += xp_cost_for_level(level, prestige_level)
        if level > LEVEL_SEARCH_CAP:
            break

    return max(1, level - 1)


def prestige_xp_multiplier(prestige_level: int, bonus_per_level: float) -> float:
    """
    Permanent XP award multiplier earned through prestige.

    Example:
        >>> prestige_xp_multiplier(2, 0.1)
        1.2
    """
    prestige = coerce_number(prestige_level)
    if prestige is None or prestige <= 0:
        return 1.0
    return round(1.0 + prestige * bonus_per_level, 4)
