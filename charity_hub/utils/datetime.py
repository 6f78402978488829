"""UTC datetime utilities and wall-clock helpers for shift times."""

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(timezone.utc)


def at_utc(day: date, clock: time) -> datetime:
    """
    Combine a shift date and wall-clock time into an aware UTC datetime.

    Shift times are stored as plain dates and times and are interpreted as UTC.
    """
    return datetime.combine(day, clock.replace(tzinfo=None), tzinfo=timezone.utc)


def parse_clock(value: str) -> time:
    """
    Parse an HH:MM string.

    Raises:
        ValueError: If the value is not a valid 24h HH:MM time
    """
    return datetime.strptime(value.strip(), "%H:%M").time()


def parse_day(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def hours_between(start: time, end: time) -> float:
    """Length in hours of a same-day wall-clock range."""
    anchor = date(2000, 1, 1)
    return (datetime.combine(anchor, end) - datetime.combine(anchor, start)).total_seconds() / 3600


def format_clock(clock: time) -> str:
    return clock.strftime("%H:%M")
