"""
Unit Tests for the Learner Domain Model
=======================================

Purpose
-------
Test the progression rules in the Learner aggregate without a store or bus.

Test Coverage
-------------
- LevelStats and LevelMilestone value objects
- Experience gain, level-ups and milestone unlocks
- Message statistics and streaks
- Prestige rules and resets
- Dict conversion

Testing Strategy
----------------
- Pure domain tests (no I/O)
- AAA pattern (Arrange, Act, Assert)
"""

from datetime import datetime, timedelta, timezone

import pytest

from lingualevel.domain.models import Learner, LevelMilestone, LevelStats
from lingualevel.domain.models.base import DomainValidationError
from lingualevel.modules.progression.level_calculator import ProficiencyLevel
from lingualevel.modules.shared.exceptions import InvalidOperationError
from lingualevel.modules.shared.formulas import cumulative_xp_for_level
from tests.conftest import assert_domain_event_emitted, get_domain_event_payload

NOW = datetime(2024, 4, 2, 8, 30, tzinfo=timezone.utc)


def learner_at_level(level, prestige_level=0):
    return Learner(
        "learner-1",
        stats=LevelStats(
            total_xp=cumulative_xp_for_level(level, prestige_level),
            prestige_level=prestige_level,
        ),
    )


# ============================================================================
# VALUE OBJECT TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestLevelStats:
    """Test LevelStats value object."""

    def test_defaults(self):
        stats = LevelStats()

        assert stats.total_xp == 0
        assert stats.last_message_at is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"total_xp": -1},
            {"average_accuracy": 100.5},
            {"consistency_score": -2},
            {"prestige_level": 11},
            {"current_streak": 4, "longest_streak": 3},
        ],
    )
    def test_invalid_stats_rejected(self, kwargs):
        with pytest.raises(DomainValidationError):
            LevelStats(**kwargs)

    def test_dict_round_trip(self):
        stats = LevelStats(
            total_xp=900,
            total_messages=12,
            average_accuracy=87.25,
            current_streak=3,
            longest_streak=8,
            last_message_at=NOW,
            prestige_level=2,
        )

        assert LevelStats.from_dict(stats.to_dict()) == stats


@pytest.mark.unit
@pytest.mark.domain
class TestLevelMilestone:
    """Test LevelMilestone construction."""

    def test_for_level(self):
        milestone = LevelMilestone.for_level(20)

        assert milestone.name == "Level 20 Milestone"
        assert milestone.proficiency == ProficiencyLevel.BEGINNER
        assert milestone.xp_required == cumulative_xp_for_level(20)
        assert "Intermediate Badge" in milestone.rewards
        assert milestone.unlocked_at is None

    def test_dict_round_trip(self):
        milestone = LevelMilestone.for_level(50, prestige_level=1, unlocked_at=NOW)

        assert LevelMilestone.from_dict(milestone.to_dict()) == milestone


# ============================================================================
# EXPERIENCE TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestExperience:
    """Test XP gains on the Learner aggregate."""

    def test_new_learner_is_level_one(self):
        learner = Learner("learner-1")

        assert learner.level == 1
        assert learner.proficiency == ProficiencyLevel.BEGINNER
        assert learner.snapshot.total_xp == 0

    def test_empty_id_rejected(self):
        with pytest.raises(DomainValidationError):
            Learner("   ")

    def test_gain_below_threshold(self):
        # Arrange
        learner = Learner("learner-1")

        # Act
        unlocked = learner.add_experience(cumulative_xp_for_level(2) - 1)

        # Assert
        assert unlocked == []
        assert learner.level == 1
        assert assert_domain_event_emitted(learner, "learner.experience_gained")
        assert not assert_domain_event_emitted(learner, "learner.leveled_up")

    def test_threshold_is_inclusive(self):
        learner = Learner("learner-1")

        learner.add_experience(cumulative_xp_for_level(2))

        assert learner.level == 2
        payload = get_domain_event_payload(learner, "learner.leveled_up")
        assert payload["old_level"] == 1
        assert payload["new_level"] == 2

    def test_multi_level_gain_unlocks_each_milestone(self):
        """Jumping from 1 to 12 unlocks both the level 5 and level 10 milestones."""
        # Arrange
        learner = Learner("learner-1")

        # Act
        unlocked = learner.add_experience(cumulative_xp_for_level(12), at=NOW)

        # Assert
        assert [m.level for m in unlocked] == [5, 10]
        assert all(m.unlocked_at == NOW for m in unlocked)
        payload = get_domain_event_payload(learner, "learner.leveled_up")
        assert payload["levels_gained"] == 11
        unlock_events = [
            e for e in learner.get_pending_events() if e.event_name == "learner.milestone_unlocked"
        ]
        assert len(unlock_events) == 2

    def test_milestone_unlocks_once_per_cycle(self):
        learner = Learner(
            "learner-1",
            milestones=[LevelMilestone.for_level(5, unlocked_at=NOW)],
        )

        unlocked = learner.add_experience(cumulative_xp_for_level(6))

        assert unlocked == []
        assert len(learner.milestones) == 1

    def test_zero_gain_is_no_op(self):
        learner = Learner("learner-1")

        assert learner.add_experience(0) == []
        assert learner.get_pending_events() == []

    def test_negative_gain_rejected(self):
        with pytest.raises(DomainValidationError):
            Learner("learner-1").add_experience(-5)

    def test_next_milestone(self):
        learner = learner_at_level(7)

        milestone = learner.next_milestone()

        assert milestone.level == 10
        assert milestone.unlocked_at is None

    def test_no_milestone_past_the_last(self):
        assert learner_at_level(500).next_milestone() is None


# ============================================================================
# MESSAGE STATISTICS TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestMessageStats:
    """Test record_message."""

    def test_first_message(self):
        learner = Learner("learner-1")

        learner.record_message(92.5, is_perfect=True, at=NOW)

        stats = learner.stats
        assert stats.total_messages == 1
        assert stats.average_accuracy == 92.5
        assert stats.current_streak == 1
        assert stats.perfect_messages == 1
        assert stats.last_message_at == NOW

    def test_streak_kept_at_exactly_24_hours(self):
        learner = Learner("learner-1")
        learner.record_message(80, at=NOW)

        learner.record_message(80, at=NOW + timedelta(hours=24))

        assert learner.stats.current_streak == 2

    def test_streak_broken_after_24_hours(self):
        # Arrange
        learner = Learner("learner-1")
        learner.record_message(80, at=NOW)
        learner.record_message(80, at=NOW + timedelta(hours=2))

        # Act
        learner.record_message(80, at=NOW + timedelta(hours=27))

        # Assert
        assert learner.stats.current_streak == 1
        assert learner.stats.longest_streak == 2

    def test_naive_timestamp_after_aware_one_is_utc(self):
        """A naive timestamp is read as UTC and compared with the stored one."""
        # Arrange
        learner = Learner("learner-1")
        learner.record_message(80, at=NOW)

        # Act
        learner.record_message(90, at=(NOW + timedelta(hours=3)).replace(tzinfo=None))

        # Assert
        assert learner.stats.current_streak == 2
        assert learner.stats.last_message_at == NOW + timedelta(hours=3)
        assert learner.stats.last_message_at.tzinfo is not None

    def test_aware_timestamp_after_naive_stored_one(self):
        # Arrange
        learner = Learner(
            "learner-1",
            stats=LevelStats(
                current_streak=4,
                longest_streak=4,
                last_message_at=datetime(2024, 4, 1, 12),
            ),
        )
        later = datetime(2024, 4, 2, 1, tzinfo=timezone(timedelta(hours=-2)))

        # Act
        learner.record_message(85, at=later)

        # Assert
        assert learner.stats.current_streak == 5
        assert learner.stats.last_message_at == datetime(2024, 4, 2, 3, tzinfo=timezone.utc)

    def test_naive_stored_timestamp_parsed_as_utc(self):
        stats = LevelStats.from_dict({**LevelStats().to_dict(), "last_message_at": "2024-04-01T12:00:00"})

        assert stats.last_message_at == datetime(2024, 4, 1, 12, tzinfo=timezone.utc)

    def test_running_average(self):
        learner = Learner("learner-1")

        for accuracy in (70, 80, 81):
            learner.record_message(accuracy, at=NOW)

        assert learner.stats.average_accuracy == 77.0

    def test_consistency_kept_when_not_supplied(self):
        learner = Learner("learner-1")
        learner.record_message(80, at=NOW, consistency_score=64.5)

        learner.record_message(90, at=NOW)

        assert learner.stats.consistency_score == 64.5

    def test_accuracy_out_of_range(self):
        with pytest.raises(DomainValidationError):
            Learner("learner-1").record_message(101)


# ============================================================================
# PRESTIGE & RESET TESTS
# ============================================================================


@pytest.mark.unit
@pytest.mark.domain
class TestPrestige:
    """Test prestige and reset rules."""

    def test_prestige_requires_level_200(self):
        learner = learner_at_level(199)

        with pytest.raises(InvalidOperationError):
            learner.prestige()

    def test_prestige_starts_new_cycle(self):
        # Arrange
        learner = learner_at_level(200)

        # Act
        new_prestige = learner.prestige()

        # Assert
        assert new_prestige == 1
        assert learner.total_xp == 0
        assert learner.level == 1
        payload = get_domain_event_payload(learner, "learner.prestiged")
        assert payload["level_before"] == 200

    def test_prestige_capped(self):
        learner = learner_at_level(200, prestige_level=10)

        with pytest.raises(InvalidOperationError):
            learner.prestige()

    def test_milestones_unlock_again_after_prestige(self):
        learner = learner_at_level(200)
        learner.prestige()

        unlocked = learner.add_experience(cumulative_xp_for_level(5, 1))

        assert [m.level for m in unlocked] == [5]
        assert unlocked[0].prestige_level == 1

    def test_reset(self):
        learner = learner_at_level(12)
        learner.record_message(90, at=NOW)

        learner.reset()

        assert learner.stats == LevelStats()
        assert learner.milestones == []
        assert assert_domain_event_emitted(learner, "learner.progress_reset")


@pytest.mark.unit
@pytest.mark.domain
class TestLearnerSerialization:
    """Test Learner dict conversion."""

    def test_round_trip(self):
        learner = Learner("learner-1")
        learner.add_experience(cumulative_xp_for_level(11), at=NOW)
        learner.record_message(88, at=NOW)

        restored = Learner.from_dict(learner.to_dict())

        assert restored.id == "learner-1"
        assert restored.stats == learner.stats
        assert restored.milestones == learner.milestones
        assert restored.level == 11
        assert restored.get_pending_events() == []
