"""
XP snapshot reconciliation.

Purpose
-------
Turn a possibly partial, possibly inconsistent progress payload (some fields
from a backend, some missing, some stale) into a fully self-consistent
`NormalizedXpSnapshot` suitable for display.

Precedence Policy
-----------------
Every derived field follows one rule, `prefer_override`: a caller-supplied
value wins when it is present and numeric, otherwise the value computed from
the XP curve is used. Caller values are sanitised first (clamped, floored)
by `SnapshotOverrides.from_raw`; non-numeric values count as absent.

After resolution one repair step runs: if the parts of the level do not add
up (into + remaining != required), remaining is recomputed from into, since
into is tied more directly to the total.

Failure Semantics
-----------------
Nothing here raises. Garbage input degrades to level 1 with zero progress.
`normalize_xp_snapshot(s.to_raw()) == s` for any normalized snapshot `s`.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional, TypeVar

from lingualevel.modules.shared.constants import MAX_LEVEL
from lingualevel.modules.shared.formulas import (
    cumulative_xp_for_level,
    level_from_total_xp,
)
from lingualevel.modules.shared.validators import coerce_number

T = TypeVar("T")

# snake_case field -> accepted payload keys (backend payloads are camelCase)
_PAYLOAD_ALIASES: Dict[str, tuple] = {
    "total_xp": ("total_xp", "totalXp", "totalXP"),
    "current_level": ("current_level", "currentLevel"),
    "prestige_level": ("prestige_level", "prestigeLevel"),
    "current_level_xp": ("current_level_xp", "currentLevelXp", "currentLevelXP"),
    "xp_to_next_level": ("xp_to_next_level", "xpToNextLevel"),
    "xp_required_for_level": ("xp_required_for_level", "xpRequiredForLevel"),
    "progress_percentage": ("progress_percentage", "progressPercentage"),
    "cumulative_xp_for_current_level": (
        "cumulative_xp_for_current_level",
        "cumulativeXpForCurrentLevel",
        "cumulativeXPForCurrentLevel",
    ),
    "cumulative_xp_for_next_level": (
        "cumulative_xp_for_next_level",
        "cumulativeXpForNextLevel",
        "cumulativeXPForNextLevel",
    ),
}

_CAMEL_CASE_KEYS: Dict[str, str] = {
    "level": "level",
    "prestige_level": "prestigeLevel",
    "total_xp": "totalXp",
    "xp_into_level": "xpIntoLevel",
    "xp_remaining_to_next_level": "xpRemainingToNextLevel",
    "xp_required_for_level": "xpRequiredForLevel",
    "progress_percentage": "progressPercentage",
    "cumulative_xp_for_current_level": "cumulativeXpForCurrentLevel",
    "cumulative_xp_for_next_level": "cumulativeXpForNextLevel",
}


# ============================================================================
# DATA MODEL
# ============================================================================


@dataclass(frozen=True)
class RawXpSnapshot:
    """
    Externally supplied progress values, any subset of which may be present.

    Field values are kept exactly as received; sanitising happens during
    normalization.
    """

    total_xp: Any = 0
    current_level: Any = None
    prestige_level: Any = None
    current_level_xp: Any = None
    xp_to_next_level: Any = None
    xp_required_for_level: Any = None
    progress_percentage: Any = None
    cumulative_xp_for_current_level: Any = None
    cumulative_xp_for_next_level: Any = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> RawXpSnapshot:
        """
        Build from a mapping using either snake_case or camelCase keys.

        Example:
            >>> raw = RawXpSnapshot.from_payload({"totalXp": 1200, "currentLevel": 3})
            >>> raw.total_xp, raw.current_level
            (1200, 3)
        """
        values: Dict[str, Any] = {}
        for field_name, aliases in _PAYLOAD_ALIASES.items():
            for alias in aliases:
                if alias in payload:
                    values[field_name] = payload[alias]
                    break
        return cls(**values)


@dataclass(frozen=True)
class NormalizedXpSnapshot:
    """Fully consistent view of a learner's position on the XP curve."""

    level: int
    prestige_level: int
    total_xp: int
    xp_into_level: int
    xp_remaining_to_next_level: int
    xp_required_for_level: int
    progress_percentage: int
    cumulative_xp_for_current_level: int
    cumulative_xp_for_next_level: int

    def to_dict(self, camel_case: bool = False) -> Dict[str, int]:
        data = asdict(self)
        if camel_case:
            return {_CAMEL_CASE_KEYS[key]: value for key, value in data.items()}
        return data

    def to_raw(self) -> RawXpSnapshot:
        """Express this snapshot as raw input, every field supplied."""
        return RawXpSnapshot(
            total_xp=self.total_xp,
            current_level=self.level,
            prestige_level=self.prestige_level,
            current_level_xp=self.xp_into_level,
            xp_to_next_level=self.xp_remaining_to_next_level,
            xp_required_for_level=self.xp_required_for_level,
            progress_percentage=self.progress_percentage,
            cumulative_xp_for_current_level=self.cumulative_xp_for_current_level,
            cumulative_xp_for_next_level=self.cumulative_xp_for_next_level,
        )


# ============================================================================
# PRECEDENCE POLICY
# ============================================================================


def prefer_override(override: Optional[T], computed: T) -> T:
    """
    Caller-supplied value wins when present; otherwise the computed default.

    Example:
        >>> prefer_override(None, 40)
        40
        >>> prefer_override(0, 40)
        0
    """
    return computed if override is None else override


def _floor_int(value: float) -> int:
    return int(math.floor(value))


@dataclass(frozen=True)
class SnapshotOverrides:
    """
    Sanitised caller-supplied values taken from a RawXpSnapshot.

    None means "not supplied"; every present value is already a finite
    number. Level-independent clamps (>= 0, floor) are applied here; clamps
    that depend on other resolved fields happen during normalization.
    """

    current_level: Optional[int] = None
    cumulative_xp_for_current_level: Optional[int] = None
    cumulative_xp_for_next_level: Optional[int] = None
    xp_required_for_level: Optional[int] = None
    current_level_xp: Optional[int] = None
    xp_to_next_level: Optional[int] = None
    progress_percentage: Optional[float] = None

    @classmethod
    def from_raw(cls, raw: RawXpSnapshot) -> SnapshotOverrides:
        def non_negative(value: Any) -> Optional[int]:
            number = coerce_number(value)
            return None if number is None else max(0, _floor_int(number))

        def floored(value: Any) -> Optional[int]:
            number = coerce_number(value)
            return None if number is None else _floor_int(number)

        level_hint = floored(raw.current_level)
        if level_hint is not None and level_hint < 1:
            level_hint = None
        elif level_hint is not None:
            level_hint = min(level_hint, MAX_LEVEL)

        return cls(
            current_level=level_hint,
            cumulative_xp_for_current_level=non_negative(raw.cumulative_xp_for_current_level),
            cumulative_xp_for_next_level=floored(raw.cumulative_xp_for_next_level),
            xp_required_for_level=floored(raw.xp_required_for_level),
            current_level_xp=non_negative(raw.current_level_xp),
            xp_to_next_level=non_negative(raw.xp_to_next_level),
            progress_percentage=coerce_number(raw.progress_percentage),
        )


# ============================================================================
# OPERATIONS
# ============================================================================


def normalize_xp_snapshot(raw: RawXpSnapshot) -> NormalizedXpSnapshot:
    """
    Reconcile a raw snapshot into a self-consistent one.

    Resolution order: total, prestige, level, cumulative current/next,
    required, into, remaining, repair, progress. Each step may use the
    values resolved before it.

    Example:
        >>> snap = normalize_xp_snapshot(RawXpSnapshot(
        ...     total_xp=5000, current_level_xp=90, xp_to_next_level=90,
        ...     xp_required_for_level=100,
        ... ))
        >>> snap.xp_into_level, snap.xp_remaining_to_next_level
        (90, 10)
    """
    overrides = SnapshotOverrides.from_raw(raw)

    total_xp = max(0, _floor_int(coerce_number(raw.total_xp) or 0))
    prestige_level = max(0, _floor_int(coerce_number(raw.prestige_level) or 0))

    if overrides.current_level is not None:
        level = overrides.current_level
    else:
        level = level_from_total_xp(total_xp, prestige_level)

    cumulative_current = prefer_override(
        overrides.cumulative_xp_for_current_level,
        cumulative_xp_for_level(level, prestige_level),
    )

    # next threshold is never below the current one, whichever source wins
    cumulative_next = max(
        cumulative_current,
        prefer_override(
            overrides.cumulative_xp_for_next_level,
            cumulative_xp_for_level(level + 1, prestige_level),
        ),
    )

    xp_required = max(
        1,
        prefer_override(
            overrides.xp_required_for_level,
            cumulative_next - cumulative_current,
        ),
    )

    xp_into_level = prefer_override(
        overrides.current_level_xp,
        max(0, total_xp - cumulative_current),
    )
    xp_into_level = min(xp_into_level, xp_required)

    xp_remaining = prefer_override(
        overrides.xp_to_next_level,
        max(0, cumulative_next - total_xp),
    )
    xp_remaining = min(xp_remaining, xp_required)

    if xp_into_level + xp_remaining != xp_required:
        xp_remaining = xp_required - xp_into_level

    progress = prefer_override(
        overrides.progress_percentage,
        xp_into_level / xp_required * 100,
    )
    progress = max(0.0, min(100.0, progress))

    return NormalizedXpSnapshot(
        level=level,
        prestige_level=prestige_level,
        total_xp=total_xp,
        xp_into_level=xp_into_level,
        xp_remaining_to_next_level=xp_remaining,
        xp_required_for_level=xp_required,
        # half-up rounding
        progress_percentage=_floor_int(progress + 0.5),
        cumulative_xp_for_current_level=cumulative_current,
        cumulative_xp_for_next_level=cumulative_next,
    )


def compute_level_snapshot(
    total_xp: Any,
    prestige_level: Any = 0,
    level_hint: Any = None,
) -> NormalizedXpSnapshot:
    """
    Snapshot derived from a total XP count alone.

    Example:
        >>> snap = compute_level_snapshot(0)
        >>> snap.level, snap.xp_into_level, snap.progress_percentage
        (1, 0, 0)
    """
    return normalize_xp_snapshot(
        RawXpSnapshot(
            total_xp=total_xp,
            prestige_level=prestige_level,
            current_level=level_hint,
        )
    )
