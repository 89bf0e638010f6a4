"""
Tests for timestamp helpers
"""
from datetime import datetime, timedelta, timezone

import pytest

from hemisphere.core.exceptions import NaiveDatetimeError, PreconditionError
from hemisphere.core.timestamps import days_between, ensure_aware, format_timestamp, parse_timestamp


class TestFormatTimestamp:

    def test_millisecond_precision(self):
        value = datetime(2025, 3, 4, 5, 6, 7, 891234, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-03-04T05:06:07.891Z"

    def test_converted_to_utc(self):
        value = datetime(2025, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2024-12-31T23:00:00.000Z"

    def test_naive_rejected(self):
        with pytest.raises(NaiveDatetimeError):
            format_timestamp(datetime(2025, 1, 1))


class TestParseTimestamp:

    def test_trailing_z(self):
        assert parse_timestamp("2025-01-01T00:00:00.000Z") == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_none(self):
        assert parse_timestamp(None) is None

    def test_naive_string_rejected(self):
        with pytest.raises(NaiveDatetimeError):
            parse_timestamp("2025-01-01T00:00:00")

    def test_datetime_passthrough(self, now):
        assert parse_timestamp(now) is now


class TestDaysBetween:

    def test_fractional(self, now):
        assert days_between(now, now + timedelta(hours=6)) == pytest.approx(0.25)

    def test_negative(self, now):
        assert days_between(now, now - timedelta(days=2)) == pytest.approx(-2.0)


def test_precondition_errors_are_value_errors():
    with pytest.raises(ValueError):
        ensure_aware(datetime(2025, 1, 1))
    assert issubclass(NaiveDatetimeError, PreconditionError)
