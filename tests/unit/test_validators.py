"""
Unit tests for domain validators and exception helpers.
"""

import pytest

from lingualevel.core.exceptions import ErrorSeverity, StorageError
from lingualevel.modules.shared.exceptions import (
    InvalidOperationError,
    ValidationError,
    get_error_severity,
    is_transient_error,
    should_alert,
)
from lingualevel.modules.shared.validators import (
    can_prestige,
    clamp_accuracy,
    clamp_level,
    clamp_multiplier,
    clamp_prestige,
    clamp_streak,
    coerce_number,
    is_max_level,
    is_max_prestige,
    is_valid_accuracy,
    is_valid_level,
    is_valid_multiplier,
    is_valid_xp,
    safe_percentage,
    sanitize_xp_gain,
    validate_accuracy,
    validate_level,
    validate_multiplier,
    validate_prestige,
    validate_streak,
    validate_xp,
)


@pytest.mark.unit
class TestCoercion:
    """Test numeric coercion."""

    def test_accepts_finite_numbers(self):
        assert coerce_number(3) == 3
        assert coerce_number(2.5) == 2.5

    def test_accepts_ints_beyond_float_range(self):
        assert coerce_number(10**400) == 10**400

    @pytest.mark.parametrize("value", [None, "7", True, False, float("nan"), float("inf"), [1]])
    def test_rejects_everything_else(self, value):
        assert coerce_number(value) is None


@pytest.mark.unit
class TestBoundChecks:
    """Test is_valid_* and clamp_* helpers."""

    def test_level(self):
        assert is_valid_level(1)
        assert is_valid_level(999)
        assert not is_valid_level(0)
        assert not is_valid_level(1000)
        assert not is_valid_level(2.5)
        assert clamp_level(0) == 1
        assert clamp_level(1500) == 999
        assert clamp_level(7.9) == 7

    def test_xp(self):
        assert is_valid_xp(0)
        assert is_valid_xp(12.5)
        assert not is_valid_xp(-1)
        assert not is_valid_xp("100")

    def test_accuracy(self):
        assert is_valid_accuracy(0)
        assert is_valid_accuracy(100)
        assert not is_valid_accuracy(100.1)
        assert clamp_accuracy(-3) == 0
        assert clamp_accuracy(140) == 100

    def test_streak_and_prestige(self):
        assert clamp_streak(-1) == 0
        assert clamp_streak(20_000) == 10_000
        assert clamp_prestige(11) == 10
        assert clamp_prestige(-2) == 0

    def test_multiplier(self):
        assert is_valid_multiplier(0.5)
        assert is_valid_multiplier(10)
        assert not is_valid_multiplier(0)
        assert not is_valid_multiplier(10.5)
        assert clamp_multiplier(0) == 0.1
        assert clamp_multiplier(50) == 10

    def test_boundaries(self):
        assert is_max_level(999)
        assert not is_max_level(998)
        assert can_prestige(200)
        assert not can_prestige(199)
        assert is_max_prestige(10)
        assert not is_max_prestige(9)


@pytest.mark.unit
class TestRaisingValidators:
    """Test validate_* raise ValidationError with the right field."""

    def test_valid_values_pass(self):
        validate_level(50)
        validate_xp(0)
        validate_accuracy(87.5)
        validate_streak(3)
        validate_prestige(2)
        validate_multiplier(1.5)

    @pytest.mark.parametrize(
        "validator, value, field",
        [
            (validate_level, 0, "level"),
            (validate_xp, -5, "xp"),
            (validate_accuracy, 101, "accuracy"),
            (validate_streak, -1, "streak"),
            (validate_prestige, 11, "prestige"),
            (validate_multiplier, 0, "multiplier"),
        ],
    )
    def test_invalid_values_raise(self, validator, value, field):
        with pytest.raises(ValidationError) as exc_info:
            validator(value)

        assert exc_info.value.field == field
        assert exc_info.value.error_code == f"VALIDATION_{field.upper()}"

    def test_custom_field_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_xp(-1, field="base_amount")

        assert exc_info.value.field == "base_amount"


@pytest.mark.unit
class TestSanitizers:
    """Test XP gain sanitising and safe percentages."""

    @pytest.mark.parametrize(
        "amount, expected",
        [(12.9, 12), (-5, 0), (50_000, 10_000), (float("nan"), 0), ("10", 0), (0, 0)],
    )
    def test_sanitize_xp_gain(self, amount, expected):
        assert sanitize_xp_gain(amount) == expected

    def test_safe_percentage(self):
        assert safe_percentage(25, 200) == 12.5
        assert safe_percentage(5, 0) == 0.0
        assert safe_percentage(300, 100) == 100.0
        assert safe_percentage("a", 100) == 0.0


@pytest.mark.unit
class TestExceptionHelpers:
    """Test exception metadata and helpers."""

    def test_validation_error_is_info_and_not_retryable(self):
        error = ValidationError("accuracy", "out of range")

        assert get_error_severity(error) == ErrorSeverity.INFO
        assert not is_transient_error(error)
        assert not should_alert(error)
        assert error.to_dict()["details"]["field"] == "accuracy"

    def test_invalid_operation_error_code(self):
        error = InvalidOperationError("prestige", "Level 200 required")

        assert error.error_code == "INVALID_PRESTIGE"
        assert "Level 200 required" in str(error)

    def test_unknown_exceptions_alert(self):
        assert should_alert(RuntimeError("boom"))

    def test_storage_error_is_retryable(self):
        error = StorageError("save", "k", ConnectionError("down"))

        assert error.is_retryable
        assert error.details["error_type"] == "ConnectionError"
