"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that scheduling, attendance and
    validation code never call ``datetime.now()`` or ``date.today()``
    directly.  Every tolerance window (check-in lateness, overtime,
    self-correction, auto-validation "yesterday") is measured against an
    injected Clock, which keeps those thresholds deterministic under test.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Failure modes:
    - ``require_clock`` raises ConfigurationError when no clock is wired,
      so a missing clock fails at service construction, not per request.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

from shift_kernel.exceptions import ConfigurationError


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need current time must receive a Clock instance
        via constructor injection.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``now_utc()`` returns a UTC-normalized ``datetime``.
        - ``today_utc()`` returns the UTC calendar date of ``now_utc()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    @abstractmethod
    def now_utc(self) -> datetime:
        """Get the current UTC time."""
        ...

    def today_utc(self) -> date:
        """Get the current UTC calendar date."""
        return self.now_utc().date()


class SystemClock(Clock):
    """Production clock that returns actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()`` or ``set_time()`` is called.
        - Naive datetimes passed in are interpreted as UTC.
    """

    def __init__(self, fixed_time: datetime | None = None):
        """
        Initialize with optional fixed time.

        Args:
            fixed_time: If provided, clock returns this time until moved.
                       If None, uses a default epoch time.
        """
        self._fixed_time = _as_utc(
            fixed_time or datetime(2026, 3, 10, 8, 0, 0, tzinfo=timezone.utc)
        )
        self._offset = timedelta(0)

    def now(self) -> datetime:
        return self._fixed_time + self._offset

    def now_utc(self) -> datetime:
        return self.now().astimezone(timezone.utc)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = _as_utc(time)
        self._offset = timedelta(0)

    def advance(self, seconds: int = 0, *, minutes: int = 0, hours: int = 0) -> None:
        """Advance the clock."""
        self._offset += timedelta(seconds=seconds, minutes=minutes, hours=hours)


def require_clock(clock: Clock | None) -> Clock:
    """Return ``clock`` or fail fast when none was wired."""
    if clock is None:
        raise ConfigurationError("clock", "a Clock instance must be injected")
    if not isinstance(clock, Clock):
        raise ConfigurationError(
            "clock", f"expected a Clock, got {type(clock).__name__}"
        )
    return clock


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
