"""Shared dates and instants for the shift kernel tests."""

from datetime import date, datetime, time, timedelta, timezone

# Tuesday; with the default Sunday week start the week is 03-08 .. 03-14.
TODAY = date(2026, 3, 10)
YESTERDAY = TODAY - timedelta(days=1)
SUNDAY = date(2026, 3, 8)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """UTC instant on ``day``."""
    return datetime.combine(day, time(hour, minute), tzinfo=timezone.utc)
