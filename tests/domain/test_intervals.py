"""
Interval arithmetic and working-hour limit evaluation.

Covers:
- Half-open overlap: symmetric, back-to-back never conflicts
- Midnight-crossing intervals
- Calendar windows with a configurable week start
- Daily / weekly / monthly cap evaluation
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from shift_kernel.domain.intervals import (
    LimitCaps,
    crosses_midnight,
    evaluate_limit,
    interval_minutes,
    iter_dates,
    minutes_between,
    minutes_to_hours,
    month_bounds,
    previous_month_bounds,
    scheduled_bounds,
    scheduled_minutes,
    times_overlap,
    week_bounds,
)
from shift_kernel.domain.values import LimitKind

minute_of_day = st.integers(min_value=0, max_value=24 * 60 - 1)


def _t(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


# ============================================================================
# Overlap
# ============================================================================


class TestOverlap:

    @given(minute_of_day, minute_of_day, minute_of_day, minute_of_day)
    def test_overlap_is_symmetric(self, a, b, c, d):
        assert times_overlap(_t(a), _t(b), _t(c), _t(d)) == times_overlap(
            _t(c), _t(d), _t(a), _t(b)
        )

    @given(
        st.integers(min_value=0, max_value=1000),
        st.integers(min_value=1, max_value=200),
        st.integers(min_value=1, max_value=200),
    )
    def test_back_to_back_intervals_never_conflict(self, start, first_len, second_len):
        middle = start + first_len
        end = middle + second_len
        if end >= 24 * 60:
            end = 24 * 60 - 1
        if middle >= end:
            return
        assert not times_overlap(_t(start), _t(middle), _t(middle), _t(end))

    @given(
        st.integers(min_value=0, max_value=400),
        st.integers(min_value=1, max_value=250),
        st.integers(min_value=1, max_value=250),
    )
    def test_disjoint_intervals_never_conflict(self, start, length, gap):
        first_end = start + length
        second_start = first_end + gap
        second_end = second_start + length
        assert not times_overlap(
            _t(start), _t(first_end), _t(second_start), _t(second_end)
        )

    def test_nested_interval_conflicts(self):
        assert times_overlap(time(9), time(17), time(12), time(13))

    def test_partial_overlap_conflicts(self):
        assert times_overlap(time(9), time(13), time(12), time(18))

    def test_night_shift_extends_past_midnight(self):
        assert times_overlap(time(22), time(6), time(23), time(23, 30))
        assert not times_overlap(time(22), time(6), time(8), time(12))

    def test_night_shift_against_late_evening(self):
        assert times_overlap(time(22), time(6), time(18), time(22, 30))
        assert not times_overlap(time(22), time(6), time(18), time(22))


# ============================================================================
# Durations
# ============================================================================


class TestDurations:

    def test_interval_minutes_same_day(self):
        assert interval_minutes(time(9), time(17)) == 480

    def test_interval_minutes_crosses_midnight(self):
        assert crosses_midnight(time(22), time(6))
        assert interval_minutes(time(22), time(6)) == 480

    def test_scheduled_minutes_subtracts_break(self):
        assert scheduled_minutes(time(9), time(17), 60) == 420

    def test_minutes_between_truncates(self):
        start = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)
        end = datetime(2026, 3, 10, 9, 20, 59, tzinfo=timezone.utc)
        assert minutes_between(start, end) == 20
        assert minutes_between(end, start) == -20

    def test_minutes_to_hours(self):
        assert minutes_to_hours(465) == Decimal("7.75")
        assert minutes_to_hours(20) == Decimal("0.33")

    def test_scheduled_bounds_for_night_shift(self):
        start, end = scheduled_bounds(date(2026, 3, 10), time(22), time(6))
        assert start == datetime(2026, 3, 10, 22, tzinfo=timezone.utc)
        assert end == datetime(2026, 3, 11, 6, tzinfo=timezone.utc)


# ============================================================================
# Calendar windows
# ============================================================================


class TestCalendarWindows:

    def test_week_starts_on_sunday_by_default(self):
        start, end = week_bounds(date(2026, 3, 10))
        assert start == date(2026, 3, 8)
        assert end == date(2026, 3, 15)

    def test_sunday_is_first_day_of_its_own_week(self):
        assert week_bounds(date(2026, 3, 8))[0] == date(2026, 3, 8)

    def test_week_can_start_on_monday(self):
        start, end = week_bounds(date(2026, 3, 8), week_start_day=0)
        assert start == date(2026, 3, 2)
        assert end == date(2026, 3, 9)

    def test_month_bounds(self):
        assert month_bounds(date(2026, 2, 14)) == (date(2026, 2, 1), date(2026, 3, 1))

    def test_previous_month_crosses_year(self):
        assert previous_month_bounds(date(2026, 1, 5)) == (
            date(2025, 12, 1),
            date(2026, 1, 1),
        )

    def test_iter_dates_is_inclusive(self):
        days = list(iter_dates(date(2026, 3, 8), date(2026, 3, 10)))
        assert days == [date(2026, 3, 8), date(2026, 3, 9), date(2026, 3, 10)]


# ============================================================================
# Limits
# ============================================================================


class TestEvaluateLimit:

    def test_no_caps_never_exceeds(self):
        assert evaluate_limit(None, Decimal("24")) is None
        assert evaluate_limit(LimitCaps(), Decimal("24"), Decimal("100")) is None

    def test_daily_cap_uses_candidate_alone(self):
        caps = LimitCaps(max_hours_per_day=Decimal("8"))
        assert evaluate_limit(caps, Decimal("8"), Decimal("39")) is None
        breach = evaluate_limit(caps, Decimal("9"))
        assert breach.kind is LimitKind.DAILY
        assert breach.projected_hours == Decimal("9")

    def test_weekly_cap_adds_existing_hours(self):
        caps = LimitCaps(max_hours_per_week=Decimal("40"))
        breach = evaluate_limit(caps, Decimal("5"), week_hours=Decimal("38"))
        assert breach.kind is LimitKind.WEEKLY
        assert breach.cap_hours == Decimal("40")
        assert breach.projected_hours == Decimal("43")

    def test_reaching_the_cap_exactly_is_allowed(self):
        caps = LimitCaps(max_hours_per_week=Decimal("40"))
        assert evaluate_limit(caps, Decimal("2"), week_hours=Decimal("38")) is None

    def test_monthly_cap(self):
        caps = LimitCaps(max_hours_per_month=Decimal("160"))
        breach = evaluate_limit(caps, Decimal("8"), month_hours=Decimal("155"))
        assert breach.kind is LimitKind.MONTHLY
