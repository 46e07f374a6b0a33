"""
Interval arithmetic for shifts -- pure functions, zero I/O.

Responsibility:
    Minute/hour arithmetic over scheduled time-of-day intervals (including
    shifts that cross midnight), overlap detection, calendar windows for
    weekly and monthly caps, and working-hour limit evaluation.

Architecture position:
    Kernel > Domain.  Used by the rules service, the scheduler and the
    attendance state machine.  MUST NOT import from db/, models/,
    services/, or selectors/.

Invariants enforced:
    - Overlap is half-open: ``start1 < end2 and end1 > start2``.  Intervals
      that only share an endpoint never overlap.
    - A scheduled interval whose end is before its start crosses
      midnight; its duration is taken modulo 24h.
    - Minute differences truncate toward zero.
    - Hour quantities are Decimal, quantized to two places.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from shift_kernel.domain.values import LimitKind

MINUTES_PER_DAY = 24 * 60
HOURS_QUANTUM = Decimal("0.01")


# =========================================================================
# Minutes and hours
# =========================================================================


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def crosses_midnight(start: time, end: time) -> bool:
    return end < start


def interval_minutes(start: time, end: time) -> int:
    """
    Length of a time-of-day interval in minutes.

    A negative raw difference means the interval crosses midnight, so 24h
    is added.
    """
    raw = minutes_of_day(end) - minutes_of_day(start)
    if raw < 0:
        raw += MINUTES_PER_DAY
    return raw


def scheduled_minutes(start: time, end: time, break_minutes: int = 0) -> int:
    """Planned working minutes: interval length minus the planned break."""
    return interval_minutes(start, end) - break_minutes


def minutes_to_hours(minutes: int) -> Decimal:
    return (Decimal(minutes) / Decimal(60)).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def day_span(start: time, end: time) -> tuple[int, int]:
    """
    Minute offsets of an interval measured from midnight of its own date.

    Midnight-crossing intervals extend past 24:00 (end offset > 1440).
    """
    begin = minutes_of_day(start)
    return begin, begin + interval_minutes(start, end)


def scheduled_bounds(shift_date: date, start: time, end: time) -> tuple[datetime, datetime]:
    """UTC instants of the scheduled start and end of a shift."""
    begin = datetime.combine(shift_date, start, tzinfo=timezone.utc)
    return begin, begin + timedelta(minutes=interval_minutes(start, end))


# =========================================================================
# Overlap
# =========================================================================


def intervals_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open overlap test on comparable endpoints."""
    return start1 < end2 and end1 > start2


def times_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Overlap test for two intervals scheduled on the same date."""
    a_start, a_end = day_span(start1, end1)
    b_start, b_end = day_span(start2, end2)
    return intervals_overlap(a_start, a_end, b_start, b_end)


# =========================================================================
# Calendar windows
# =========================================================================


def week_bounds(reference: date, week_start_day: int = 6) -> tuple[date, date]:
    """
    Calendar week containing ``reference`` as ``[start, end)``.

    ``week_start_day`` uses Python's weekday numbering (Monday=0).
    """
    offset = (reference.weekday() - week_start_day) % 7
    start = reference - timedelta(days=offset)
    return start, start + timedelta(days=7)


def month_bounds(reference: date) -> tuple[date, date]:
    """Calendar month containing ``reference`` as ``[start, end)``."""
    start = reference.replace(day=1)
    days = calendar.monthrange(reference.year, reference.month)[1]
    return start, start + timedelta(days=days)


def previous_month_bounds(reference: date) -> tuple[date, date]:
    start, _ = month_bounds(reference)
    return month_bounds(start - timedelta(days=1))


def iter_dates(start: date, end: date) -> Iterable[date]:
    """Dates from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


# =========================================================================
# Working-hour limits
# =========================================================================


@dataclass(frozen=True)
class LimitCaps:
    """The caps of one working-hours limit that scheduling enforces."""

    max_hours_per_day: Decimal | None = None
    max_hours_per_week: Decimal | None = None
    max_hours_per_month: Decimal | None = None


@dataclass(frozen=True)
class LimitBreach:
    kind: LimitKind
    cap_hours: Decimal
    projected_hours: Decimal


def evaluate_limit(
    caps: LimitCaps | None,
    candidate_hours: Decimal,
    week_hours: Decimal = Decimal("0"),
    month_hours: Decimal = Decimal("0"),
) -> LimitBreach | None:
    """
    First cap breached by adding ``candidate_hours``, or None.

    The daily cap is compared against the candidate alone; weekly and
    monthly caps against the candidate plus hours already scheduled in the
    same window.  No caps means nothing is ever exceeded.
    """
    if caps is None:
        return None

    if caps.max_hours_per_day is not None and candidate_hours > caps.max_hours_per_day:
        return LimitBreach(LimitKind.DAILY, caps.max_hours_per_day, candidate_hours)

    projected_week = week_hours + candidate_hours
    if caps.max_hours_per_week is not None and projected_week > caps.max_hours_per_week:
        return LimitBreach(LimitKind.WEEKLY, caps.max_hours_per_week, projected_week)

    projected_month = month_hours + candidate_hours
    if caps.max_hours_per_month is not None and projected_month > caps.max_hours_per_month:
        return LimitBreach(LimitKind.MONTHLY, caps.max_hours_per_month, projected_month)

    return None
