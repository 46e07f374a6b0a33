"""
Pure attendance rules: check-in lateness, check-out overtime, waivers and
status suggestions.
"""

from datetime import time, timedelta

import pytest

from shift_kernel.domain.attendance import (
    assess_check_in,
    assess_check_out,
    attendance_state,
    requires_merchant_review,
    review_waived,
    suggest_break_time,
    suggested_action,
    within_tolerance,
)
from shift_kernel.domain.policy import DEFAULT_POLICY, AttendancePolicy
from shift_kernel.domain.values import (
    AnomalyReason,
    AnomalyType,
    AttendanceState,
    ValidationStatus,
)
from tests.helpers import TODAY, at

SCHEDULED_START = at(TODAY, 9)


# ============================================================================
# Check-in
# ============================================================================


class TestAssessCheckIn:

    @pytest.mark.parametrize("offset", [-15, -1, 0, 1, 15])
    def test_within_tolerance_has_no_anomaly(self, offset):
        result = assess_check_in(
            SCHEDULED_START, SCHEDULED_START + timedelta(minutes=offset), DEFAULT_POLICY
        )
        assert result.anomaly_type is None
        assert result.minutes_difference == offset

    def test_twenty_minutes_late_is_severity_two(self):
        result = assess_check_in(SCHEDULED_START, at(TODAY, 9, 20), DEFAULT_POLICY)
        assert result.anomaly_type is AnomalyType.LATE_CHECK_IN
        assert result.severity == 2
        assert "20 minutes" in result.message

    def test_thirty_minutes_late_is_still_severity_two(self):
        result = assess_check_in(SCHEDULED_START, at(TODAY, 9, 30), DEFAULT_POLICY)
        assert result.severity == 2

    def test_more_than_thirty_minutes_late_is_severity_three(self):
        result = assess_check_in(SCHEDULED_START, at(TODAY, 9, 31), DEFAULT_POLICY)
        assert result.anomaly_type is AnomalyType.LATE_CHECK_IN
        assert result.severity == 3

    def test_early_arrival_is_severity_one(self):
        result = assess_check_in(SCHEDULED_START, at(TODAY, 8, 40), DEFAULT_POLICY)
        assert result.anomaly_type is AnomalyType.EARLY_CHECK_IN
        assert result.severity == 1
        assert result.minutes_difference == -20

    def test_tolerance_is_configurable(self):
        strict = AttendancePolicy(tolerance_minutes=5)
        result = assess_check_in(SCHEDULED_START, at(TODAY, 9, 10), strict)
        assert result.anomaly_type is AnomalyType.LATE_CHECK_IN


# ============================================================================
# Check-out
# ============================================================================


class TestAssessCheckOut:

    def test_short_day_within_tolerance_is_auto_approved(self):
        result = assess_check_out(
            at(TODAY, 9, 20), at(TODAY, 17, 5), 480, 60, 0, DEFAULT_POLICY
        )
        assert result.overtime_minutes == -15
        assert result.validation_status is ValidationStatus.AUTO_APPROVED
        assert not result.creates_overtime
        assert result.anomaly_type is None
        assert result.worked_minutes == 465
        assert result.expected_minutes == 420

    def test_forty_minutes_over_requires_review(self):
        result = assess_check_out(
            at(TODAY, 9), at(TODAY, 17, 40), 480, 60, 0, DEFAULT_POLICY
        )
        assert result.overtime_minutes == 40
        assert result.validation_status is ValidationStatus.REQUIRES_REVIEW
        assert result.creates_overtime
        assert result.anomaly_type is AnomalyType.LATE_CHECK_OUT
        assert result.severity == 2

    def test_overtime_between_tolerance_and_anomaly_threshold(self):
        result = assess_check_out(
            at(TODAY, 9), at(TODAY, 17, 20), 480, 60, 0, DEFAULT_POLICY
        )
        assert result.overtime_minutes == 20
        assert result.creates_overtime
        assert result.anomaly_type is None
        assert result.validation_status is ValidationStatus.REQUIRES_REVIEW

    def test_leaving_an_hour_early_is_an_early_check_out(self):
        result = assess_check_out(
            at(TODAY, 9), at(TODAY, 16), 480, 60, 0, DEFAULT_POLICY
        )
        assert result.overtime_minutes == -60
        assert result.anomaly_type is AnomalyType.EARLY_CHECK_OUT
        assert not result.creates_overtime

    def test_recorded_breaks_longer_than_planned_are_deducted(self):
        result = assess_check_out(
            at(TODAY, 9), at(TODAY, 17, 30), 480, 60, 90, DEFAULT_POLICY
        )
        assert result.overtime_minutes == 0
        assert result.worked_minutes == 420

    def test_planned_break_counts_when_breaks_were_shorter(self):
        result = assess_check_out(
            at(TODAY, 9), at(TODAY, 17), 480, 60, 20, DEFAULT_POLICY
        )
        assert result.overtime_minutes == 0
        assert result.worked_minutes == 460


# ============================================================================
# Review and waivers
# ============================================================================


class TestReview:

    def test_only_critical_severity_requires_review(self):
        assert not requires_merchant_review(2, DEFAULT_POLICY)
        assert requires_merchant_review(3, DEFAULT_POLICY)

    def test_waiver_reasons(self):
        assert review_waived(AnomalyReason.TRAFFIC, 3, DEFAULT_POLICY)
        assert review_waived(AnomalyReason.TECHNICAL_ISSUE, 2, DEFAULT_POLICY)
        assert not review_waived(AnomalyReason.FORGOTTEN, 2, DEFAULT_POLICY)

    def test_critical_anomalies_can_be_excluded_from_waiver(self):
        policy = AttendancePolicy(waive_critical_anomalies=False)
        assert review_waived(AnomalyReason.TRAFFIC, 2, policy)
        assert not review_waived(AnomalyReason.TRAFFIC, 3, policy)

    def test_within_tolerance_is_inclusive(self):
        assert within_tolerance(SCHEDULED_START, at(TODAY, 9, 15), DEFAULT_POLICY)
        assert not within_tolerance(SCHEDULED_START, at(TODAY, 9, 16), DEFAULT_POLICY)


# ============================================================================
# Suggestions
# ============================================================================


class TestSuggestions:

    def test_break_suggested_at_shift_midpoint(self):
        assert suggest_break_time(time(9), time(17), DEFAULT_POLICY) == time(13)

    def test_no_break_suggested_for_short_shift(self):
        assert suggest_break_time(time(9), time(13), DEFAULT_POLICY) is None

    def test_night_shift_midpoint_wraps(self):
        assert suggest_break_time(time(22), time(6), DEFAULT_POLICY) == time(2)

    def test_attendance_state(self):
        assert attendance_state(False, False, False) is AttendanceState.NOT_STARTED
        assert attendance_state(True, False, False) is AttendanceState.CHECKED_IN
        assert attendance_state(True, False, True) is AttendanceState.ON_BREAK
        assert attendance_state(True, True, False) is AttendanceState.CHECKED_OUT

    def test_break_prompt_after_four_hours_without_break(self):
        action = suggested_action(AttendanceState.CHECKED_IN, 241, 0, DEFAULT_POLICY)
        assert "break" in action
        assert suggested_action(AttendanceState.CHECKED_IN, 241, 1, DEFAULT_POLICY) == "Keep it up!"
        assert suggested_action(AttendanceState.CHECKED_IN, 239, 0, DEFAULT_POLICY) == "Keep it up!"

    def test_break_prompt_starts_at_exactly_four_hours(self):
        action = suggested_action(AttendanceState.CHECKED_IN, 240, 0, DEFAULT_POLICY)
        assert action == "Maybe it is time for a break?"
