"""Tests for utils/timezone.py - UTC-everywhere time handling."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from utils.timezone import now_utc, to_utc, parse_iso, epoch_millis


class TestNowUtc:
    """Tests for now_utc()."""

    def test_returns_timezone_aware(self):
        """Result must have tzinfo set (not naive)."""
        assert now_utc().tzinfo is not None

    def test_is_utc(self):
        assert now_utc().tzinfo == timezone.utc


class TestToUtc:
    """Tests for to_utc()."""

    def test_raises_on_naive(self):
        """Naive datetime must raise ValueError."""
        with pytest.raises(ValueError, match="naive"):
            to_utc(datetime(2024, 1, 1, 12, 0, 0))

    def test_converts_other_timezone(self):
        """Chicago 12:00 in January should become UTC 18:00."""
        chicago = datetime(2024, 1, 1, 12, 0, 0, tzinfo=ZoneInfo("America/Chicago"))
        result = to_utc(chicago)
        assert result.tzinfo == timezone.utc
        assert result.hour == 18


class TestParseIso:
    """Tests for parse_iso()."""

    def test_parses_offset(self):
        result = parse_iso("2024-06-01T10:00:00+02:00")
        assert result == datetime(2024, 6, 1, 8, 0, 0, tzinfo=timezone.utc)

    def test_parses_trailing_z(self):
        result = parse_iso("2024-06-01T10:00:00Z")
        assert result == datetime(2024, 6, 1, 10, 0, 0, tzinfo=timezone.utc)

    def test_rejects_naive_string(self):
        with pytest.raises(ValueError, match="naive"):
            parse_iso("2024-06-01T10:00:00")


class TestEpochMillis:
    """Tests for epoch_millis()."""

    def test_known_instant(self):
        dt = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)
        assert epoch_millis(dt) == 1704067200000

    def test_defaults_to_now(self):
        before = int(now_utc().timestamp() * 1000)
        result = epoch_millis()
        after = int(now_utc().timestamp() * 1000)
        assert before <= result <= after

    def test_rejects_naive(self):
        with pytest.raises(ValueError):
            epoch_millis(datetime(2024, 1, 1))
