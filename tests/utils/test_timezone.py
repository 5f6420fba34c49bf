"""Tests for UTC time helpers."""

from datetime import date, datetime, timedelta, timezone

import pytest


class TestNowUtc:
    def test_is_timezone_aware_utc(self):
        """now_utc returns an aware datetime with zero offset."""
        from utils.timezone import now_utc

        now = now_utc()

        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)


class TestToUtc:
    def test_converts_offset_datetime(self):
        """A -05:00 time is shifted to UTC."""
        from utils.timezone import to_utc

        eastern = timezone(timedelta(hours=-5))
        dt = datetime(2026, 3, 1, 9, 0, tzinfo=eastern)

        result = to_utc(dt)

        assert result == datetime(2026, 3, 1, 14, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc

    def test_naive_datetime_rejected(self):
        """Naive datetimes raise ValueError."""
        from utils.timezone import to_utc

        with pytest.raises(ValueError, match="naive"):
            to_utc(datetime(2026, 3, 1, 9, 0))


class TestTodayUtc:
    def test_returns_date_of_now_utc(self):
        from utils.timezone import now_utc, today_utc

        result = today_utc()

        assert isinstance(result, date)
        assert not isinstance(result, datetime)
        assert result in {now_utc().date(), (now_utc() - timedelta(seconds=5)).date()}
