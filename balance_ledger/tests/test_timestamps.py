"""Tests for timestamp normalization."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
import re

import pytest

from balance_ledger.exceptions import LedgerTypeError, TimestampFormatError
from balance_ledger.timestamps import (
    format_timestamp,
    normalize_timestamp,
    parse_timestamp,
    utc_now,
)

CANONICAL = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")


class TestNormalizeTimestamp:
    """Tests for normalize_timestamp."""

    def test_epoch_milliseconds(self):
        assert normalize_timestamp(0) == "1970-01-01T00:00:00.000Z"
        assert normalize_timestamp(1514764800001) == "2018-01-01T00:00:00.001Z"

    def test_fractional_milliseconds_truncate(self):
        assert normalize_timestamp(1.9) == "1970-01-01T00:00:00.001Z"
        assert normalize_timestamp(Decimal("2.5")) == "1970-01-01T00:00:00.002Z"

    def test_negative_epoch(self):
        assert normalize_timestamp(-1000) == "1969-12-31T23:59:59.000Z"

    @pytest.mark.parametrize(
        "value", [float("nan"), float("inf"), float("-inf"), Decimal("NaN"), 1e20]
    )
    def test_invalid_numbers_raise(self, value):
        with pytest.raises(TimestampFormatError):
            normalize_timestamp(value)

    def test_utc_string(self):
        assert normalize_timestamp("2018-01-01T00:00:00Z") == "2018-01-01T00:00:00.000Z"

    def test_offset_string_converts_to_utc(self):
        assert normalize_timestamp("2018-01-01T01:00:00+01:00") == "2018-01-01T00:00:00.000Z"

    def test_naive_string_is_utc(self):
        assert normalize_timestamp("2018-01-01T00:00:00") == "2018-01-01T00:00:00.000Z"

    def test_date_only_string(self):
        assert normalize_timestamp("2018-01-01") == "2018-01-01T00:00:00.000Z"

    def test_microseconds_truncate(self):
        assert normalize_timestamp("2018-01-01T00:00:00.123999Z") == "2018-01-01T00:00:00.123Z"

    @pytest.mark.parametrize("value", ["", "not a date", "2018-13-01"])
    def test_unreadable_strings_raise(self, value):
        with pytest.raises(TimestampFormatError, match="not readable"):
            normalize_timestamp(value)

    def test_aware_datetime(self):
        value = datetime(2018, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
        assert normalize_timestamp(value) == "2018-01-01T00:00:00.000Z"

    def test_naive_datetime_is_utc(self):
        assert normalize_timestamp(datetime(2018, 1, 1, 0, 0, 0, 1500)) == (
            "2018-01-01T00:00:00.001Z"
        )

    def test_date_is_midnight_utc(self):
        assert normalize_timestamp(date(2018, 1, 1)) == "2018-01-01T00:00:00.000Z"

    @pytest.mark.parametrize("value", [True, [2018], object()])
    def test_unsupported_types_raise(self, value):
        with pytest.raises(LedgerTypeError, match="Invalid type of date input"):
            normalize_timestamp(value)

    def test_none_means_now(self):
        before = utc_now() - timedelta(seconds=1)
        value = normalize_timestamp()
        assert CANONICAL.match(value)
        assert parse_timestamp(value) >= before.replace(microsecond=0)

    def test_canonical_input_is_unchanged(self):
        value = "2018-06-30T12:34:56.789Z"
        assert normalize_timestamp(value) == value


class TestParseTimestamp:
    """Tests for the non-raising parser used by validation."""

    def test_readable_values(self):
        expected = datetime(2018, 1, 1, tzinfo=timezone.utc)
        assert parse_timestamp("2018-01-01T00:00:00.000Z") == expected
        assert parse_timestamp(1514764800000) == expected

    @pytest.mark.parametrize("value", [None, "", "garbage", float("nan"), object(), True])
    def test_unreadable_values_return_none(self, value):
        assert parse_timestamp(value) is None


def test_format_timestamp():
    value = datetime(2018, 1, 1, 0, 0, 0, 7000, tzinfo=timezone.utc)
    assert format_timestamp(value) == "2018-01-01T00:00:00.007Z"
