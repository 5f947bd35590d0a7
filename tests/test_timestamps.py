"""Unit tests for timestamp utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from resume_matcher.utils.timestamps import (
    ensure_utc,
    format_timestamp,
    parse_timestamp,
    utc_now,
)


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        now = utc_now()

        assert now.tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_ensure_utc_with_none(self):
        assert ensure_utc(None) is None

    def test_naive_datetime_treated_as_utc(self):
        result = ensure_utc(datetime(2025, 12, 20, 9, 0))

        assert result == datetime(2025, 12, 20, 9, 0, tzinfo=timezone.utc)

    def test_aware_datetime_converted(self):
        """Test that a +07:00 timestamp is shifted into UTC."""
        ict = timezone(timedelta(hours=7))
        result = ensure_utc(datetime(2025, 12, 20, 16, 0, tzinfo=ict))

        assert result == datetime(2025, 12, 20, 9, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc


class TestFormatTimestamp:
    """Tests for format_timestamp function."""

    def test_format_storage_string(self):
        dt = datetime(2025, 12, 20, 9, 0, 0, 1500, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2025-12-20T09:00:00.001500Z"

    def test_format_none(self):
        assert format_timestamp(None) is None


class TestParseTimestamp:
    """Tests for parse_timestamp function."""

    @pytest.mark.parametrize(
        "value",
        [
            "2025-12-20T09:00:00Z",
            "2025-12-20T09:00:00+00:00",
            "2025-12-20T09:00:00",
            "2025-12-20T16:00:00+07:00",
            "2025-12-20T09:00:00.000000Z",
        ],
    )
    def test_parse_equivalent_forms(self, value):
        assert parse_timestamp(value) == datetime(2025, 12, 20, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date"])
    def test_parse_invalid_returns_none(self, value):
        assert parse_timestamp(value) is None

    def test_round_trip_through_storage_format(self):
        dt = datetime(2025, 12, 20, 9, 30, 15, 250000, tzinfo=timezone.utc)

        assert parse_timestamp(format_timestamp(dt)) == dt
