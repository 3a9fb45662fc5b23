"""
LinguaLevel Shared Module

Purpose
-------
Provides domain-level foundations for the feature modules:
- Domain exceptions and error handling
- Base service pattern
- Progression constants and the XP curve
- Domain validation utilities

Usage
-----
    from lingualevel.modules.shared import (
        BaseService,
        ValidationError,
        level_from_total_xp,
        validate_accuracy,
    )
"""

from .base_service import BaseService
from .exceptions import (
    InvalidOperationError,
    LinguaDomainException,
    ValidationError,
)
from .formulas import (
    cumulative_xp_for_level,
    level_from_total_xp,
    prestige_xp_multiplier,
    xp_cost_for_level,
)
from .validators import (
    can_prestige,
    sanitize_xp_gain,
    validate_accuracy,
    validate_level,
    validate_multiplier,
    validate_prestige,
    validate_streak,
    validate_xp,
)

__all__ = [
    "BaseService",
    "InvalidOperationError",
    "LinguaDomainException",
    "ValidationError",
    "can_prestige",
    "cumulative_xp_for_level",
    "level_from_total_xp",
    "prestige_xp_multiplier",
    "sanitize_xp_gain",
    "validate_accuracy",
    "validate_level",
    "validate_multiplier",
    "validate_prestige",
    "validate_streak",
    "validate_xp",
    "xp_cost_for_level",
]
