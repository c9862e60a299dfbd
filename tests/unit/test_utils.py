"""
Unit Tests for Time and Number Formatting Utilities

Run with:
    pytest tests/unit/test_utils.py -v
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from core.utils.format import format_fiat, format_input_value, format_token
from core.utils.time import current_utc_datetime, parse_timestamp, to_utc_datetime


# ============================================
# Tests for Time Utilities
# ============================================

class TestParseTimestamp:
    """Tests for parse_timestamp"""

    def test_iso_string_with_z(self):
        assert parse_timestamp("2023-08-29T07:10:52.000Z") == datetime(2023, 8, 29, 7, 10, 52, tzinfo=timezone.utc)

    def test_date_only_is_utc_midnight(self):
        assert parse_timestamp("2024-01-02") == datetime(2024, 1, 2, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        assert parse_timestamp("2024-01-02T09:00:00+02:00") == datetime(2024, 1, 2, 7, tzinfo=timezone.utc)

    def test_epoch_seconds_and_milliseconds(self):
        expected = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

        assert parse_timestamp(1704110400) == expected
        assert parse_timestamp(1704110400000) == expected

    def test_naive_datetime_is_utc(self):
        assert parse_timestamp(datetime(2024, 1, 2)).tzinfo == timezone.utc

    def test_aware_datetime_is_converted(self):
        value = datetime(2024, 1, 2, 3, tzinfo=timezone(timedelta(hours=3)))
        assert parse_timestamp(value) == datetime(2024, 1, 2, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "   ", "not a date", True, None, [2024]])
    def test_invalid_values(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_negative_epoch_is_rejected(self):
        with pytest.raises(ValueError):
            to_utc_datetime(-1)

    def test_current_time_is_aware(self):
        assert current_utc_datetime().tzinfo == timezone.utc


# ============================================
# Tests for Number Formatting
# ============================================

class TestFormatToken:
    """Tests for format_token"""

    @pytest.mark.parametrize("value, digits, expected", [
        (1234.5, 6, "1,234.5"),
        (0.05250001, 4, "0.0525"),
        (2100, 6, "2,100"),
        (0.00001, 4, "0"),
        (1.23455, 4, "1.2346"),
        (-0.00001, 2, "0"),
    ])
    def test_format(self, value, digits, expected):
        assert format_token(value, digits) == expected

    def test_non_finite(self):
        assert format_token(math.nan) == "NaN"
        assert format_token(math.inf) == "∞"


class TestFormatFiat:
    """Tests for format_fiat"""

    def test_whole_dollars(self):
        assert format_fiat(2100) == "$2,100"

    def test_cents_are_rounded(self):
        assert format_fiat(1645.9337) == "$1,645.93"

    def test_negative(self):
        assert format_fiat(-12.345) == "-$12.35"

    def test_more_digits(self):
        assert format_fiat(0.20811525, 6) == "$0.208115"


class TestFormatInputValue:
    """Tests for format_input_value"""

    @pytest.mark.parametrize("value, expected", [
        (12.5, "12.5"),
        (100, "100"),
        (1234567.25, "1234567.25"),
        (1.23456789, "1.234568"),
        (0.0000001, "0"),
        (0.0, "0"),
        (-0.0, "0"),
    ])
    def test_format(self, value, expected):
        assert format_input_value(value) == expected

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_is_empty(self, value):
        assert format_input_value(value) == ""


class TestLargeValues:
    """Amounts beyond the default 28-digit decimal precision"""

    def test_format_token_huge_amount(self):
        assert format_token(1e25) == "10,000,000,000,000,000,000,000,000"
        assert format_token(1e22, 4) == "10,000,000,000,000,000,000,000"

    def test_format_input_value_huge_amount(self):
        assert format_input_value(1e25) == "1" + "0" * 25

    def test_format_fiat_huge_amount(self):
        assert format_fiat(-1e22) == "-$10,000,000,000,000,000,000,000"
