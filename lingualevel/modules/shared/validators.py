"""
LinguaLevel Domain Validators

Purpose
-------
Bounds checking for progression inputs (levels, XP, accuracy, streaks,
prestige tiers, multipliers). Three flavours per quantity:

- `is_valid_*`: boolean check, never raises
- `clamp_*`: coerce into range, never raises
- `validate_*`: raise `ValidationError` on failure (raise-on-error pattern)

The pure calculator only uses the non-raising helpers; services use the
raising ones at their boundaries.

Usage
-----
    from lingualevel.modules.shared.validators import validate_accuracy

    validate_accuracy(87.5)
    # OK if within 0-100, raises ValidationError if not

    amount = sanitize_xp_gain(raw_amount)
"""

from __future__ import annotations

import math
from numbers import Integral, Real
from typing import Any, Optional

from .constants import (
    MAX_ACCURACY,
    MAX_LEVEL,
    MAX_MULTIPLIER,
    MAX_PRESTIGE_LEVEL,
    MAX_STREAK,
    MAX_XP_GAIN,
    MIN_ACCURACY,
    MIN_LEVEL,
    MIN_XP,
    PRESTIGE_MIN_LEVEL,
)

MIN_PRESTIGE = 0
MIN_STREAK = 0


# ============================================================================
# Coercion
# ============================================================================


def coerce_number(value: Any) -> Optional[float]:
    """
    Return value as a finite number, or None if it is not one.

    Booleans, strings, None, NaN and infinities are all rejected.

    Example:
        >>> coerce_number(12)
        12
        >>> coerce_number("12") is None
        True
        >>> coerce_number(float("nan")) is None
        True
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    if isinstance(value, Integral):
        return value
    if not math.isfinite(value):
        return None
    return value


def _is_integral(value: Any) -> bool:
    number = coerce_number(value)
    if isinstance(number, Integral):
        return True
    return number is not None and float(number).is_integer()


# ============================================================================
# Level
# ============================================================================


def is_valid_level(level: Any) -> bool:
    return _is_integral(level) and MIN_LEVEL <= level <= MAX_LEVEL


def clamp_level(level: float) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, int(math.floor(level))))


def validate_level(level: Any) -> None:
    """
    Validate that a level is an integer within 1-999.

    Raises:
        ValidationError: If level is not an integer or out of range
    """
    from .exceptions import ValidationError

    if not is_valid_level(level):
        raise ValidationError(
            "level",
            f"Level must be an integer between {MIN_LEVEL} and {MAX_LEVEL}, got {level}",
        )


# ============================================================================
# XP
# ============================================================================


def is_valid_xp(xp: Any) -> bool:
    number = coerce_number(xp)
    return number is not None and number >= MIN_XP


def clamp_xp(xp: float) -> int:
    return max(MIN_XP, int(math.floor(xp)))


def validate_xp(xp: Any, field: str = "xp") -> None:
    """
    Validate that an XP amount is a finite, non-negative number.

    Raises:
        ValidationError: If xp is negative or not a finite number
    """
    from .exceptions import ValidationError

    if not is_valid_xp(xp):
        raise ValidationError(field, f"XP must be a non-negative number, got {xp}")


# ============================================================================
# Accuracy
# ============================================================================


def is_valid_accuracy(accuracy: Any) -> bool:
    number = coerce_number(accuracy)
    return number is not None and MIN_ACCURACY <= number <= MAX_ACCURACY


def clamp_accuracy(accuracy: float) -> float:
    return max(MIN_ACCURACY, min(MAX_ACCURACY, accuracy))


def validate_accuracy(accuracy: Any) -> None:
    """
    Validate that an accuracy percentage is within 0-100.

    Raises:
        ValidationError: If accuracy is out of range or not a finite number
    """
    from .exceptions import ValidationError

    if not is_valid_accuracy(accuracy):
        raise ValidationError(
            "accuracy",
            f"Accuracy must be between {MIN_ACCURACY} and {MAX_ACCURACY}, got {accuracy}",
        )


# ============================================================================
# Streak
# ============================================================================


def is_valid_streak(streak: Any) -> bool:
    return _is_integral(streak) and MIN_STREAK <= streak <= MAX_STREAK


def clamp_streak(streak: float) -> int:
    return max(MIN_STREAK, min(MAX_STREAK, int(math.floor(streak))))


def validate_streak(streak: Any) -> None:
    from .exceptions import ValidationError

    if not is_valid_streak(streak):
        raise ValidationError(
            "streak",
            f"Streak must be an integer between {MIN_STREAK} and {MAX_STREAK}, got {streak}",
        )


# ============================================================================
# Prestige
# ============================================================================


def is_valid_prestige(prestige: Any) -> bool:
    return _is_integral(prestige) and MIN_PRESTIGE <= prestige <= MAX_PRESTIGE_LEVEL


def clamp_prestige(prestige: float) -> int:
    return max(MIN_PRESTIGE, min(MAX_PRESTIGE_LEVEL, int(math.floor(prestige))))


def validate_prestige(prestige: Any) -> None:
    from .exceptions import ValidationError

    if not is_valid_prestige(prestige):
        raise ValidationError(
            "prestige",
            f"Prestige must be an integer between {MIN_PRESTIGE} and "
            f"{MAX_PRESTIGE_LEVEL}, got {prestige}",
        )


# ============================================================================
# Multiplier
# ============================================================================


def is_valid_multiplier(multiplier: Any) -> bool:
    number = coerce_number(multiplier)
    return number is not None and 0 < number <= MAX_MULTIPLIER


def clamp_multiplier(
    multiplier: float, min_val: float = 0.1, max_val: float = MAX_MULTIPLIER
) -> float:
    return max(min_val, min(max_val, multiplier))


def validate_multiplier(multiplier: Any, field: str = "multiplier") -> None:
    from .exceptions import ValidationError

    if not is_valid_multiplier(multiplier):
        raise ValidationError(
            field,
            f"Multiplier must be a positive number <= {MAX_MULTIPLIER}, got {multiplier}",
        )


# ============================================================================
# Percentages & sanitization
# ============================================================================


def clamp_percentage(percentage: float) -> float:
    return max(0.0, min(100.0, percentage))


def safe_percentage(value: Any, total: Any) -> float:
    """
    value / total as a 0-100 percentage, 0 when undefined.

    Example:
        >>> safe_percentage(25, 200)
        12.5
        >>> safe_percentage(5, 0)
        0.0
    """
    numerator = coerce_number(value)
    denominator = coerce_number(total)
    if numerator is None or denominator is None or denominator == 0:
        return 0.0
    return clamp_percentage(numerator / denominator * 100)


def sanitize_xp_gain(amount: Any) -> int:
    """
    Coerce a single XP gain into 0-MAX_XP_GAIN, floored.

    Example:
        >>> sanitize_xp_gain(12.9)
        12
        >>> sanitize_xp_gain(-5)
        0
        >>> sanitize_xp_gain(50_000)
        10000
    """
    number = coerce_number(amount)
    if number is None or number < 0:
        return 0
    if number > MAX_XP_GAIN:
        return MAX_XP_GAIN
    return int(math.floor(number))


# ============================================================================
# Boundary checks
# ============================================================================


def is_max_level(level: int) -> bool:
    return level >= MAX_LEVEL


def can_prestige(level: int) -> bool:
    return level >= PRESTIGE_MIN_LEVEL


def is_max_prestige(prestige: int) -> bool:
    return prestige >= MAX_PRESTIGE_LEVEL
