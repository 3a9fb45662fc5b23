"""
Progression module.

Pure calculators live here: the snapshot normalizer, XP award math and
level analytics. The store and LevelingService are imported from their own
modules (`progression.store`, `progression.service`) since they depend on
the domain layer, which itself builds on these calculators.
"""

from .snapshot import (
    NormalizedXpSnapshot,
    RawXpSnapshot,
    SnapshotOverrides,
    compute_level_snapshot,
    normalize_xp_snapshot,
    prefer_override,
)

__all__ = [
    "NormalizedXpSnapshot",
    "RawXpSnapshot",
    "SnapshotOverrides",
    "compute_level_snapshot",
    "normalize_xp_snapshot",
    "prefer_override",
]
