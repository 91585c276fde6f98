"""Unit tests for timestamp and number utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from aqmonitor.utils.numbers import format_number, is_finite_number, round_half_away_from_zero
from aqmonitor.utils.timestamps import (
    ensure_utc,
    format_for_display,
    format_timestamp,
    milliseconds,
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

    def test_ensure_utc_with_naive_datetime(self):
        """Naive datetimes are treated as UTC."""
        result = ensure_utc(datetime(2026, 10, 19, 12, 0, 0))

        assert result == datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

    def test_ensure_utc_converts_other_timezone(self):
        plus_two = timezone(timedelta(hours=2))

        result = ensure_utc(datetime(2026, 10, 19, 14, 0, 0, tzinfo=plus_two))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestStorageFormat:
    """Tests for format_timestamp/parse_timestamp."""

    def test_format_timestamp(self):
        dt = datetime(2026, 10, 19, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2026-10-19T12:00:00.123456Z"

    def test_format_timestamp_none(self):
        assert format_timestamp(None) is None

    @pytest.mark.parametrize(
        "value",
        [
            "2026-10-19T12:00:00Z",
            "2026-10-19T12:00:00.000000Z",
            "2026-10-19T14:00:00+02:00",
        ],
    )
    def test_parse_timestamp_variants(self, value):
        assert parse_timestamp(value) == datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_parse_timestamp_empty(self, value):
        assert parse_timestamp(value) is None

    def test_parse_timestamp_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestDisplayFormat:
    def test_format_for_display(self):
        dt = datetime(2026, 10, 19, 14, 3, 9, tzinfo=timezone.utc)

        assert format_for_display(dt) == "2026-10-19 14:03:09 UTC"

    def test_format_for_display_converts_to_utc(self):
        dt = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert format_for_display(dt) == "2026-10-19 14:00:00 UTC"

    def test_milliseconds(self):
        assert milliseconds(1500) == timedelta(seconds=1, milliseconds=500)


class TestRounding:
    """Readings are shown rounded half away from zero."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (42, 42),
            (42.4, 42),
            (42.5, 43),
            (2.5, 3),
            (0.5, 1),
            (-2.5, -3),
            (150.49, 150),
            (2.4999999, 2),
        ],
    )
    def test_round_half_away_from_zero(self, value, expected):
        assert round_half_away_from_zero(value) == expected

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_round_rejects_non_finite(self, value):
        with pytest.raises(ValueError):
            round_half_away_from_zero(value)

    @pytest.mark.parametrize(
        "value, expected",
        [(50.0, "50"), (42.5, "42.5"), (100, "100"), (0.25, "0.25")],
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1, True),
            (1.5, True),
            (float("nan"), False),
            (float("inf"), False),
            (True, False),
            ("42", False),
            (None, False),
        ],
    )
    def test_is_finite_number(self, value, expected):
        assert is_finite_number(value) is expected
