"""Tests for validate_entry, assert_not_negative and validation results."""

from decimal import Decimal

import pytest

from balance_ledger.entry import LedgerEntry
from balance_ledger.exceptions import BalanceRangeError, LedgerTypeError
from balance_ledger.validation import (
    VALID,
    InvalidAt,
    Valid,
    assert_not_negative,
    validate_entry,
)

TIMESTAMP_1 = "2018-01-01T00:00:00.000Z"
TIMESTAMP_2 = "2018-01-01T00:00:00.001Z"


class TestValidationResult:
    """Tests for the tagged Valid / InvalidAt result."""

    def test_valid(self):
        assert VALID.ok
        assert VALID.index is None
        assert bool(VALID)
        assert VALID == Valid()

    def test_invalid_at_zero_is_not_success(self):
        """Index 0 is a failure position, never confused with success."""
        result = InvalidAt(0)
        assert not result.ok
        assert not result
        assert result.index == 0
        assert result != VALID

    def test_invalid_at_equality(self):
        assert InvalidAt(3) == InvalidAt(3)
        assert InvalidAt(3) != InvalidAt(4)


class TestValidateEntry:
    """Tests for the single-entry consistency predicate."""

    def test_consistent_entry(self):
        entry = LedgerEntry(5, -2.5, 2.5, TIMESTAMP_2)
        assert validate_entry(entry, 5, TIMESTAMP_1) is True

    def test_previous_balance_mismatch(self):
        entry = LedgerEntry(0, -2.5, 2.5, TIMESTAMP_2)
        assert validate_entry(entry, 5, TIMESTAMP_1) is False

    def test_current_mismatch(self):
        entry = LedgerEntry(5, -2.5, 3, TIMESTAMP_2)
        assert validate_entry(entry, 5, TIMESTAMP_1) is False

    def test_exact_decimal_comparison(self):
        """0.00005 + 0.00005 == 0.0001 with no tolerance needed."""
        entry = LedgerEntry(0.00005, 0.00005, 0.0001, TIMESTAMP_1)
        assert validate_entry(entry, 0.00005, TIMESTAMP_1)

    def test_float_sums_do_not_drift(self):
        entry = LedgerEntry(0.1, 0.2, 0.3, TIMESTAMP_1)
        assert validate_entry(entry, Decimal("0.1"), TIMESTAMP_1)

    def test_amounts_of_extreme_scale_fail_without_raising(self):
        """Operands too far apart to add exactly make the entry not match."""
        entry = {
            "timestamp": TIMESTAMP_1,
            "previous": "1e999999999999999",
            "change": "1e-999999999999999",
            "current": "1",
        }

        assert validate_entry(entry, "1e999999999999999", TIMESTAMP_1) is False

    def test_equal_timestamps_pass(self):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_1)
        assert validate_entry(entry, 0, TIMESTAMP_1)

    def test_previous_timestamp_later_fails(self):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_1)
        assert not validate_entry(entry, 0, TIMESTAMP_2)

    def test_later_timestamp_ignored_without_verification(self):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_1)
        assert validate_entry(entry, 0, TIMESTAMP_2, verify_timestamp=False)

    def test_missing_previous_timestamp_is_contract_error(self):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_1)
        with pytest.raises(LedgerTypeError, match="Previous timestamp"):
            validate_entry(entry, 0)

    def test_missing_previous_timestamp_allowed_without_verification(self):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_1)
        assert validate_entry(entry, 0, verify_timestamp=False)

    @pytest.mark.parametrize("previous_timestamp", ["", "not a date", float("nan"), object()])
    def test_unreadable_previous_timestamp_fails(self, previous_timestamp):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_1)
        assert validate_entry(entry, 0, previous_timestamp) is False

    def test_previous_timestamp_accepts_any_input_form(self):
        entry = LedgerEntry(0, 0, 0, TIMESTAMP_2)
        assert validate_entry(entry, 0, 1514764800000)

    def test_mapping_entry(self):
        entry = {"timestamp": TIMESTAMP_2, "previous": 5, "change": -2.5, "current": 2.5}
        assert validate_entry(entry, 5, TIMESTAMP_1)

    def test_unreadable_entry_timestamp_fails_without_raising(self):
        entry = {"timestamp": "garbage", "previous": 0, "change": 0, "current": 0}
        assert validate_entry(entry, 0, TIMESTAMP_1) is False
        assert validate_entry(entry, 0, TIMESTAMP_1, verify_timestamp=False) is True

    def test_malformed_amounts_fail_without_raising(self):
        entry = {"timestamp": TIMESTAMP_1, "previous": "zero", "change": 0, "current": 0}
        assert validate_entry(entry, 0, TIMESTAMP_1) is False

    def test_missing_fields_fail_without_raising(self):
        assert validate_entry({"timestamp": TIMESTAMP_1}, 0, TIMESTAMP_1) is False

    def test_non_finite_amounts_fail(self):
        entry = {
            "timestamp": TIMESTAMP_1,
            "previous": "Infinity",
            "change": "-Infinity",
            "current": "NaN",
        }
        assert validate_entry(entry, "Infinity", TIMESTAMP_1) is False


class TestAssertNotNegative:
    """Tests for the balance guard."""

    @pytest.mark.parametrize("value", [0, "-0", 0.00001, Decimal("100")])
    def test_accepts_non_negative(self, value):
        assert_not_negative(value)

    def test_rejects_negative_by_default(self):
        with pytest.raises(BalanceRangeError, match="negative balance") as exc_info:
            assert_not_negative(-0.01)
        assert exc_info.value.balance == Decimal("-0.01")

    def test_negative_allowed(self):
        assert_not_negative(-5, allow_negative=True)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), "-Infinity"])
    @pytest.mark.parametrize("allow_negative", [False, True])
    def test_non_finite_always_rejected(self, value, allow_negative):
        with pytest.raises(BalanceRangeError, match="invalid balance"):
            assert_not_negative(value, allow_negative)
