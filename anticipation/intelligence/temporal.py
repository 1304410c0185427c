"""
Temporal helpers: one place for timestamp parsing and day/hour arithmetic.

All detector math runs against the context's evaluation instant, never
the wall clock. Timestamps are ISO 8601 strings on the wire; naive values
are read as UTC. Date-only strings ("2026-03-14") are midnight UTC.
"""

from datetime import UTC, date, datetime, timedelta

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_datetime(value: str | datetime | date | None) -> datetime | None:
    """Parse an ISO timestamp or date into an aware UTC datetime. None on failure."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_date(value: str | datetime | date | None) -> date | None:
    """Calendar date of an ISO date/timestamp (the UTC date for timestamps)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    dt = parse_datetime(value)
    return dt.date() if dt else None


def to_iso(dt: datetime) -> str:
    """ISO 8601 with an explicit UTC offset."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)."""
    return (end - start).days


def minutes_until(now: datetime, then: datetime) -> int:
    """Whole minutes from now until then, floored (negative when in the past)."""
    return int((then - now).total_seconds() // 60)


def format_hhmm(dt: datetime) -> str:
    """HH:MM in UTC."""
    return dt.astimezone(UTC).strftime("%H:%M")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a UTC calendar day."""
    start = datetime(day.year, day.month, day.day, tzinfo=UTC)
    return start, start + timedelta(days=1)


def weekday_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]
