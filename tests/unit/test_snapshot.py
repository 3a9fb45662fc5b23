"""
Unit tests for XP snapshot reconciliation.

Covers the override precedence policy, the consistency repair, progress
clamping and idempotence of normalization.
"""

import pytest

from lingualevel.modules.progression.snapshot import (
    NormalizedXpSnapshot,
    RawXpSnapshot,
    SnapshotOverrides,
    compute_level_snapshot,
    normalize_xp_snapshot,
    prefer_override,
)
from lingualevel.modules.shared.constants import MAX_LEVEL
from lingualevel.modules.shared.formulas import cumulative_xp_for_level, xp_cost_for_level


def assert_consistent(snapshot: NormalizedXpSnapshot) -> None:
    assert (
        snapshot.xp_into_level + snapshot.xp_remaining_to_next_level
        == snapshot.xp_required_for_level
    )
    assert snapshot.xp_required_for_level >= 1
    assert snapshot.level >= 1
    assert 0 <= snapshot.progress_percentage <= 100
    assert isinstance(snapshot.progress_percentage, int)


@pytest.mark.unit
@pytest.mark.domain
class TestPreferOverride:
    """Test the precedence policy."""

    def test_missing_override_uses_computed(self):
        assert prefer_override(None, 40) == 40

    def test_present_override_wins(self):
        assert prefer_override(12, 40) == 12

    def test_zero_override_still_wins(self):
        """Zero is a real value, not an absent one."""
        assert prefer_override(0, 40) == 0


@pytest.mark.unit
@pytest.mark.domain
class TestSnapshotOverrides:
    """Test sanitising of caller-supplied values."""

    def test_non_numeric_values_are_absent(self):
        # Arrange
        raw = RawXpSnapshot(
            total_xp=100,
            current_level_xp="ninety",
            xp_to_next_level=float("nan"),
            progress_percentage=True,
        )

        # Act
        overrides = SnapshotOverrides.from_raw(raw)

        # Assert
        assert overrides.current_level_xp is None
        assert overrides.xp_to_next_level is None
        assert overrides.progress_percentage is None

    def test_negative_values_clamped_and_floored(self):
        raw = RawXpSnapshot(current_level_xp=-4, cumulative_xp_for_current_level=12.7)

        overrides = SnapshotOverrides.from_raw(raw)

        assert overrides.current_level_xp == 0
        assert overrides.cumulative_xp_for_current_level == 12

    def test_non_positive_level_hint_ignored(self):
        assert SnapshotOverrides.from_raw(RawXpSnapshot(current_level=0)).current_level is None
        assert SnapshotOverrides.from_raw(RawXpSnapshot(current_level=-3)).current_level is None
        assert SnapshotOverrides.from_raw(RawXpSnapshot(current_level=4.9)).current_level == 4


@pytest.mark.unit
@pytest.mark.domain
class TestComputeLevelSnapshot:
    """Test snapshots derived from total XP only."""

    def test_zero_xp(self):
        """A brand-new learner sits at level 1 with no progress."""
        # Act
        snapshot = compute_level_snapshot(0)

        # Assert
        assert snapshot.level == 1
        assert snapshot.xp_into_level == 0
        assert snapshot.xp_required_for_level == xp_cost_for_level(2)
        assert snapshot.progress_percentage == 0
        assert snapshot.cumulative_xp_for_current_level == 0
        assert_consistent(snapshot)

    def test_exactly_on_milestone_boundary(self):
        """Reaching level 10's threshold exactly is level 10 with no progress."""
        snapshot = compute_level_snapshot(cumulative_xp_for_level(10))

        assert snapshot.level == 10
        assert snapshot.xp_into_level == 0
        assert snapshot.progress_percentage == 0
        assert snapshot.xp_required_for_level == xp_cost_for_level(11)

    def test_mid_level_progress(self):
        """Halfway through level 2 reports 50%."""
        # Arrange
        half = xp_cost_for_level(3) // 2
        total = cumulative_xp_for_level(2) + half

        # Act
        snapshot = compute_level_snapshot(total)

        # Assert
        assert snapshot.level == 2
        assert snapshot.xp_into_level == half
        assert snapshot.progress_percentage == 50
        assert_consistent(snapshot)

    def test_cumulative_current_never_exceeds_total_when_derived(self):
        for total in (0, 1, 508, 509, 510, 5_000, 123_456, 9_999_999):
            snapshot = compute_level_snapshot(total)
            assert snapshot.cumulative_xp_for_current_level <= snapshot.total_xp

    def test_garbage_total_degrades_to_level_one(self):
        for garbage in (None, "x", float("nan"), -50):
            snapshot = compute_level_snapshot(garbage)
            assert snapshot.level == 1
            assert snapshot.total_xp == 0
            assert snapshot.progress_percentage == 0

    def test_prestige_is_floored_and_clamped(self):
        assert compute_level_snapshot(1000, prestige_level=2.8).prestige_level == 2
        assert compute_level_snapshot(1000, prestige_level=-1).prestige_level == 0

    def test_level_hint_is_trusted(self):
        """A server-supplied level wins over the derived one."""
        snapshot = compute_level_snapshot(0, level_hint=5)

        assert snapshot.level == 5
        assert snapshot.cumulative_xp_for_current_level == cumulative_xp_for_level(5)
        assert snapshot.xp_into_level == 0
        assert_consistent(snapshot)

    def test_level_hint_capped_at_max_level(self):
        snapshot = compute_level_snapshot(0, level_hint=10_000)

        assert snapshot.level == MAX_LEVEL
        assert snapshot.cumulative_xp_for_next_level == cumulative_xp_for_level(MAX_LEVEL + 1)
        assert_consistent(snapshot)

    @pytest.mark.parametrize(
        "total_xp, prestige_level, level_hint",
        [
            (1e300, 0, None),
            (10**400, 0, None),
            (100, 10_000, None),
            (0, 0, 10**400),
            (5_000, 10_000, 10_000),
        ],
    )
    def test_huge_inputs_never_raise(self, total_xp, prestige_level, level_hint):
        """Values past float range still give a consistent snapshot."""
        snapshot = compute_level_snapshot(total_xp, prestige_level, level_hint)

        assert 1 <= snapshot.level <= MAX_LEVEL
        assert_consistent(snapshot)


@pytest.mark.unit
@pytest.mark.domain
class TestNormalizeXpSnapshot:
    """Test reconciliation of partial and inconsistent input."""

    def test_repair_prefers_into_level(self):
        """into 90 + remaining 90 != 100, so remaining is recomputed to 10."""
        # Arrange
        raw = RawXpSnapshot(
            total_xp=5000,
            current_level_xp=90,
            xp_to_next_level=90,
            xp_required_for_level=100,
        )

        # Act
        snapshot = normalize_xp_snapshot(raw)

        # Assert
        assert snapshot.xp_into_level == 90
        assert snapshot.xp_remaining_to_next_level == 10
        assert snapshot.xp_required_for_level == 100
        assert snapshot.progress_percentage == 90

    @pytest.mark.parametrize("progress, expected", [(150, 100), (-20, 0)])
    def test_progress_override_is_clamped(self, progress, expected):
        raw = RawXpSnapshot(total_xp=1000, progress_percentage=progress)

        snapshot = normalize_xp_snapshot(raw)

        assert snapshot.progress_percentage == expected

    def test_progress_rounds_half_up(self):
        assert normalize_xp_snapshot(RawXpSnapshot(progress_percentage=12.5)).progress_percentage == 13
        assert normalize_xp_snapshot(RawXpSnapshot(progress_percentage=12.49)).progress_percentage == 12

    def test_next_threshold_clamped_to_current(self):
        """A next-level threshold below the current one is raised to it."""
        raw = RawXpSnapshot(
            total_xp=2000,
            cumulative_xp_for_current_level=1500,
            cumulative_xp_for_next_level=900,
        )

        snapshot = normalize_xp_snapshot(raw)

        assert snapshot.cumulative_xp_for_next_level == 1500
        assert snapshot.xp_required_for_level == 1
        assert_consistent(snapshot)

    def test_required_override_zero_becomes_one(self):
        snapshot = normalize_xp_snapshot(RawXpSnapshot(total_xp=10, xp_required_for_level=0))

        assert snapshot.xp_required_for_level == 1
        assert_consistent(snapshot)

    def test_into_level_clamped_to_required(self):
        raw = RawXpSnapshot(total_xp=100, current_level_xp=500, xp_required_for_level=200)

        snapshot = normalize_xp_snapshot(raw)

        assert snapshot.xp_into_level == 200
        assert snapshot.xp_remaining_to_next_level == 0
        assert snapshot.progress_percentage == 100

    def test_invariant_holds_for_inconsistent_inputs(self):
        raws = [
            RawXpSnapshot(total_xp=50, current_level=30),
            RawXpSnapshot(total_xp=10**7, current_level=2, xp_to_next_level=10**9),
            RawXpSnapshot(total_xp=300, current_level_xp=7, xp_to_next_level=-4),
            RawXpSnapshot(total_xp="abc", cumulative_xp_for_next_level="def"),
            RawXpSnapshot(total_xp=1234.9, prestige_level=1, xp_required_for_level=3.7),
        ]
        for raw in raws:
            assert_consistent(normalize_xp_snapshot(raw))

    @pytest.mark.parametrize(
        "raw",
        [
            RawXpSnapshot(total_xp=0),
            RawXpSnapshot(total_xp=77_777, prestige_level=2),
            RawXpSnapshot(total_xp=5000, current_level_xp=90, xp_to_next_level=90, xp_required_for_level=100),
            RawXpSnapshot(total_xp=2000, cumulative_xp_for_current_level=1500, cumulative_xp_for_next_level=900),
            RawXpSnapshot(total_xp=10, current_level=12, progress_percentage=33.3),
        ],
    )
    def test_normalization_is_idempotent(self, raw):
        """Feeding a normalized snapshot back in changes nothing."""
        once = normalize_xp_snapshot(raw)

        twice = normalize_xp_snapshot(once.to_raw())

        assert twice == once


@pytest.mark.unit
class TestPayloadMapping:
    """Test payload parsing and dict output."""

    def test_from_camel_case_payload(self):
        raw = RawXpSnapshot.from_payload(
            {"totalXp": 1200, "currentLevel": 3, "currentLevelXP": 40, "xpToNextLevel": 60}
        )

        assert raw.total_xp == 1200
        assert raw.current_level == 3
        assert raw.current_level_xp == 40
        assert raw.xp_to_next_level == 60

    def test_from_snake_case_payload(self):
        raw = RawXpSnapshot.from_payload({"total_xp": 10, "prestige_level": 1})

        assert raw.total_xp == 10
        assert raw.prestige_level == 1

    def test_to_dict_camel_case(self):
        data = compute_level_snapshot(0).to_dict(camel_case=True)

        assert data["level"] == 1
        assert data["xpIntoLevel"] == 0
        assert "xp_into_level" not in data
