"""
Tests for timestamp parsing and day/hour arithmetic.
"""

from datetime import UTC, date, datetime, timedelta, timezone

from anticipation.intelligence.temporal import (
    day_bounds,
    days_between,
    format_hhmm,
    hours_between,
    minutes_until,
    parse_date,
    parse_datetime,
    to_iso,
    weekday_name,
)
from tests.fixtures import FIXED_NOW


class TestParsing:
    def test_zulu_and_offset(self):
        assert parse_datetime("2026-03-14T09:00:00Z") == FIXED_NOW
        assert parse_datetime("2026-03-14T11:00:00+02:00") == FIXED_NOW

    def test_naive_is_utc(self):
        assert parse_datetime("2026-03-14T09:00:00") == FIXED_NOW

    def test_date_only_is_midnight(self):
        assert parse_datetime("2026-03-14") == datetime(2026, 3, 14, tzinfo=UTC)
        assert parse_datetime(date(2026, 3, 14)) == datetime(2026, 3, 14, tzinfo=UTC)

    def test_invalid(self):
        assert parse_datetime("soon") is None
        assert parse_datetime("") is None
        assert parse_datetime(None) is None

    def test_aware_datetime_normalized(self):
        tz = timezone(timedelta(hours=-5))
        assert parse_datetime(datetime(2026, 3, 14, 4, 0, tzinfo=tz)) == FIXED_NOW

    def test_parse_date(self):
        assert parse_date("2026-03-14T23:30:00Z") == date(2026, 3, 14)
        assert parse_date(date(2026, 1, 1)) == date(2026, 1, 1)
        assert parse_date("nope") is None


class TestArithmetic:
    def test_hours_between(self):
        assert hours_between(FIXED_NOW - timedelta(minutes=90), FIXED_NOW) == 1.5

    def test_days_between(self):
        assert days_between(date(2026, 3, 14), date(2026, 3, 11)) == -3

    def test_minutes_until_floors(self):
        assert minutes_until(FIXED_NOW, FIXED_NOW + timedelta(minutes=5, seconds=59)) == 5

    def test_day_bounds(self):
        start, end = day_bounds(date(2026, 3, 14))
        assert start == datetime(2026, 3, 14, tzinfo=UTC)
        assert end - start == timedelta(days=1)

    def test_formatting(self):
        assert format_hhmm(FIXED_NOW) == "09:00"
        assert to_iso(datetime(2026, 3, 14, 9, 0)) == "2026-03-14T09:00:00+00:00"
        assert weekday_name(date(2026, 3, 14)) == "Saturday"
