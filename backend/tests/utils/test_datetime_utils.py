"""
Tests for datetime utilities module.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.core.datetime_utils import (
    ensure_timezone_aware,
    from_epoch_seconds,
    to_epoch_millis,
    utc_now,
)


class TestEnsureTimezoneAware:
    """Tests for ensure_timezone_aware function."""

    def test_naive_datetime_becomes_utc(self):
        """SQLite hands back naive values for aware columns."""
        result = ensure_timezone_aware(datetime(2024, 1, 15, 12, 30, 45))

        assert result.tzinfo == timezone.utc
        assert (result.hour, result.minute, result.second) == (12, 30, 45)

    def test_aware_datetime_unchanged(self):
        tz_plus_5 = timezone(timedelta(hours=5))
        aware_dt = datetime(2024, 1, 15, 12, 30, 45, tzinfo=tz_plus_5)

        assert ensure_timezone_aware(aware_dt) is aware_dt

    def test_none_rejected(self):
        with pytest.raises(ValueError):
            ensure_timezone_aware(None)


class TestEpochConversions:
    def test_epoch_millis(self):
        dt = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert to_epoch_millis(dt) == 1704067200000

    def test_naive_treated_as_utc(self):
        assert to_epoch_millis(datetime(2024, 1, 1)) == 1704067200000

    def test_from_epoch_seconds_is_aware(self):
        result = from_epoch_seconds(1704067200.5)

        assert result.tzinfo == timezone.utc
        assert result.microsecond == 500000


def test_utc_now_is_aware():
    assert utc_now().tzinfo == timezone.utc
