"""
Attendance state machine: check-in, breaks, check-out and the status line.

Covers:
- Late arrival with a short day (auto-approved, anomaly on check-in)
- On-time arrival with a long day (overtime record, review required)
- Illegal transitions and foreign shifts
- Breaks: one open break at a time, short-break flag, closing at check-out
- Current status and today's shift selection
"""

from datetime import time, timedelta
from decimal import Decimal

import pytest

from shift_kernel.domain.attendance import NO_SHIFT_ACTION, NO_SHIFT_STATUS
from shift_kernel.domain.values import (
    AnomalyReason,
    AnomalyType,
    AttendanceState,
    BreakCategory,
    OvertimeType,
    ValidationStatus,
)
from shift_kernel.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    BreakAlreadyEndedError,
    BreakAlreadyOpenError,
    BreakNotFoundError,
    NotCheckedInError,
    ShiftInactiveError,
    ShiftNotFoundError,
)
from tests.helpers import TODAY, at


# ============================================================================
# Check-in / check-out scenarios
# ============================================================================


class TestLateArrivalShortDay:
    """Arrive 20 minutes late, leave at 17:05: anomaly on entry, auto-approved."""

    def test_check_in_records_late_anomaly(self, make_shift, attendance_service, clock, employee_id):
        shift = make_shift()
        clock.set_time(at(TODAY, 9, 20))

        result = attendance_service.check_in(employee_id, shift.id, location="front door")

        assert result.minutes_difference == 20
        assert result.anomaly.anomaly_type is AnomalyType.LATE_CHECK_IN
        assert result.anomaly.severity == 2
        assert "20 minutes" in result.anomaly.message
        assert not result.anomaly.requires_merchant_review
        assert result.planned_hours == Decimal("7")
        assert result.message == "Checked in at 09:20. Planned day 7.00h, break planned 60min."
        assert result.suggested_break_time == time(13)
        assert {o.reason for o in result.quick_resolution_options} >= {
            AnomalyReason.TRAFFIC,
            AnomalyReason.OTHER,
        }
        assert result.shift.is_checked_in
        assert result.shift.check_in_at == at(TODAY, 9, 20)
        assert result.shift.check_in_location == "front door"
        assert result.shift.version == 2

    def test_check_out_is_auto_approved(self, make_shift, work_shift):
        shift = make_shift()

        result = work_shift(shift, at(TODAY, 9, 20), at(TODAY, 17, 5))

        assert result.overtime_minutes == -15
        assert result.validation_status is ValidationStatus.AUTO_APPROVED
        assert result.worked_minutes == 465
        assert result.worked_hours == Decimal("7.75")
        assert result.expected_hours == Decimal("7")
        assert result.message == "Checked out at 17:05. Worked 7.75h."
        assert result.overtime is None
        assert result.anomaly is None
        assert result.overtime_prompt is None
        assert result.shift.validation_status is ValidationStatus.AUTO_APPROVED
        assert result.shift.validated_at == at(TODAY, 17, 5)
        assert result.shift.validated_by_id is None
        assert result.shift.version == 3


class TestOnTimeLongDay:
    """Arrive on time, leave at 17:40: 40 minutes of overtime to review."""

    def test_on_time_check_in_has_no_anomaly(self, make_shift, attendance_service, clock, employee_id):
        shift = make_shift()
        clock.set_time(at(TODAY, 9))

        result = attendance_service.check_in(employee_id, shift.id)

        assert result.anomaly is None
        assert result.quick_resolution_options == ()
        assert result.message == "Checked in at 09:00. Planned day 7.00h, break planned 60min."

    def test_check_out_creates_overtime_and_anomaly(self, make_shift, work_shift, attendance_service):
        shift = make_shift()

        result = work_shift(shift, at(TODAY, 9), at(TODAY, 17, 40))

        assert result.overtime_minutes == 40
        assert result.validation_status is ValidationStatus.REQUIRES_REVIEW
        assert result.overtime.minutes == 40
        assert result.overtime.overtime_type is OvertimeType.PENDING
        assert result.overtime.is_auto_detected
        assert not result.overtime.is_approved
        assert result.overtime.shift_date == TODAY
        assert "40 minutes" in result.overtime_prompt
        assert result.anomaly.anomaly_type is AnomalyType.LATE_CHECK_OUT
        assert result.anomaly.severity == 2
        assert result.shift.validated_at is None

        assert [o.id for o in attendance_service.list_overtime(shift.id)] == [result.overtime.id]
        assert [a.id for a in attendance_service.list_anomalies(shift.id)] == [result.anomaly.id]

    def test_severely_late_arrival_requires_review(self, make_shift, attendance_service, clock, employee_id):
        shift = make_shift()
        clock.set_time(at(TODAY, 9, 45))

        result = attendance_service.check_in(employee_id, shift.id)

        assert result.anomaly.severity == 3
        assert result.anomaly.requires_merchant_review

    def test_early_arrival_is_informational(self, make_shift, attendance_service, clock, employee_id):
        shift = make_shift()
        clock.set_time(at(TODAY, 8, 30))

        result = attendance_service.check_in(employee_id, shift.id)

        assert result.anomaly.anomaly_type is AnomalyType.EARLY_CHECK_IN
        assert result.anomaly.severity == 1
        assert result.minutes_difference == -30


class TestIllegalTransitions:

    def test_second_check_in_rejected(self, make_shift, attendance_service, clock, employee_id):
        shift = make_shift()
        clock.set_time(at(TODAY, 9))
        attendance_service.check_in(employee_id, shift.id)

        with pytest.raises(AlreadyCheckedInError) as exc_info:
            attendance_service.check_in(employee_id, shift.id)
        assert exc_info.value.shift_id == str(shift.id)
        assert len(attendance_service.list_anomalies(shift.id)) == 0

    def test_check_out_before_check_in_rejected(self, make_shift, attendance_service, employee_id):
        shift = make_shift()
        with pytest.raises(NotCheckedInError):
            attendance_service.check_out(employee_id, shift.id)

    def test_second_check_out_rejected(self, make_shift, work_shift, attendance_service, employee_id):
        shift = make_shift()
        work_shift(shift, at(TODAY, 9), at(TODAY, 17))

        with pytest.raises(AlreadyCheckedOutError):
            attendance_service.check_out(employee_id, shift.id)

    def test_foreign_shift_is_not_found(self, make_shift, attendance_service, other_employee_id):
        shift = make_shift()
        with pytest.raises(ShiftNotFoundError):
            attendance_service.check_in(other_employee_id, shift.id)

    def test_cancelled_shift_cannot_be_checked_in(
        self, make_shift, shift_service, attendance_service, business_id, actor_id, employee_id
    ):
        shift = make_shift()
        shift_service.delete_shift(shift.id, business_id, actor_id)
        with pytest.raises(ShiftInactiveError):
            attendance_service.check_in(employee_id, shift.id)

    def test_rejections_are_logged(self, make_shift, attendance_service, employee_id, captured_logs):
        shift = make_shift()
        with pytest.raises(NotCheckedInError):
            attendance_service.check_out(employee_id, shift.id)
        warnings = [r for r in captured_logs() if r["level"] == "WARNING"]
        assert warnings[0]["message"] == "check_out_rejected_not_checked_in"


# ============================================================================
# Breaks
# ============================================================================


@pytest.fixture
def checked_in_shift(make_shift, attendance_service, clock, employee_id):
    shift = make_shift()
    clock.set_time(at(TODAY, 9))
    attendance_service.check_in(employee_id, shift.id)
    return shift


class TestBreaks:

    def test_break_before_check_in_rejected(self, make_shift, attendance_service, employee_id):
        shift = make_shift()
        with pytest.raises(NotCheckedInError):
            attendance_service.start_break(employee_id, shift.id)

    def test_short_break(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 12))
        started = attendance_service.start_break(employee_id, checked_in_shift.id, BreakCategory.MEAL)
        assert started.is_open
        assert started.category is BreakCategory.MEAL

        clock.set_time(at(TODAY, 12, 10))
        ended = attendance_service.end_break(employee_id, started.id)

        assert ended.ended_at == at(TODAY, 12, 10)
        assert ended.duration_minutes == 10
        assert ended.is_short_break

    def test_full_break_is_not_short(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 12))
        started = attendance_service.start_break(employee_id, checked_in_shift.id)
        clock.set_time(at(TODAY, 12, 15))
        assert not attendance_service.end_break(employee_id, started.id).is_short_break

    def test_only_one_open_break(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 12))
        first = attendance_service.start_break(employee_id, checked_in_shift.id)

        with pytest.raises(BreakAlreadyOpenError) as exc_info:
            attendance_service.start_break(employee_id, checked_in_shift.id)
        assert exc_info.value.open_break_id == str(first.id)

    def test_ending_twice_rejected(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 12))
        started = attendance_service.start_break(employee_id, checked_in_shift.id)
        clock.advance(minutes=20)
        attendance_service.end_break(employee_id, started.id)

        with pytest.raises(BreakAlreadyEndedError):
            attendance_service.end_break(employee_id, started.id)

    def test_foreign_break_not_found(self, checked_in_shift, attendance_service, clock, employee_id, other_employee_id):
        clock.set_time(at(TODAY, 12))
        started = attendance_service.start_break(employee_id, checked_in_shift.id)
        with pytest.raises(BreakNotFoundError):
            attendance_service.end_break(other_employee_id, started.id)

    def test_new_break_after_previous_ended(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 11))
        first = attendance_service.start_break(employee_id, checked_in_shift.id)
        clock.set_time(at(TODAY, 11, 10))
        attendance_service.end_break(employee_id, first.id)
        clock.set_time(at(TODAY, 13))
        attendance_service.start_break(employee_id, checked_in_shift.id)

        assert len(attendance_service.list_breaks(checked_in_shift.id)) == 2

    def test_open_break_closed_at_check_out(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 16))
        started = attendance_service.start_break(employee_id, checked_in_shift.id)

        clock.set_time(at(TODAY, 17))
        attendance_service.check_out(employee_id, checked_in_shift.id)

        closed = attendance_service.list_breaks(checked_in_shift.id)[0]
        assert closed.id == started.id
        assert closed.ended_at == at(TODAY, 17)
        assert closed.duration_minutes == 60

    def test_long_recorded_break_is_deducted(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 12))
        started = attendance_service.start_break(employee_id, checked_in_shift.id)
        clock.set_time(at(TODAY, 13, 30))
        attendance_service.end_break(employee_id, started.id)

        clock.set_time(at(TODAY, 17, 30))
        result = attendance_service.check_out(employee_id, checked_in_shift.id)

        assert result.overtime_minutes == 0
        assert result.worked_minutes == 420
        assert result.validation_status is ValidationStatus.AUTO_APPROVED

    def test_no_break_after_check_out(self, make_shift, work_shift, attendance_service, employee_id):
        shift = make_shift()
        work_shift(shift, at(TODAY, 9), at(TODAY, 17))
        with pytest.raises(AlreadyCheckedOutError):
            attendance_service.start_break(employee_id, shift.id)


# ============================================================================
# Status
# ============================================================================


class TestCurrentStatus:

    def test_no_shift_today(self, attendance_service, employee_id):
        status = attendance_service.get_current_status(employee_id)
        assert status.state is AttendanceState.NOT_STARTED
        assert status.status_line == NO_SHIFT_STATUS
        assert status.suggested_action == NO_SHIFT_ACTION
        assert status.shift is None

    def test_not_started(self, make_shift, attendance_service, employee_id):
        shift = make_shift()
        status = attendance_service.get_current_status(employee_id)
        assert status.state is AttendanceState.NOT_STARTED
        assert status.shift.id == shift.id
        assert status.suggested_action == "Remember to check in when you arrive"

    def test_prompts_for_break_after_four_hours(self, checked_in_shift, attendance_service, clock, employee_id):
        clock.set_time(at(TODAY, 13, 30))
        status = attendance_service.get_current_status(employee_id)
        assert status.state is AttendanceState.CHECKED_IN
        assert status.is_checked_in
        assert status.worked_minutes_today == 270
        assert status.suggested_action == "Maybe it is time for a break?"

    def test_open_break_time_not_counted(
        self, checked_in_shift, completed_shift, attendance_service, clock, employee_id
    ):
        completed_shift()
        clock.set_time(at(TODAY, 13, 30))
        attendance_service.start_break(employee_id, checked_in_shift.id)
        clock.set_time(at(TODAY, 13, 45))

        status = attendance_service.get_current_status(employee_id)

        assert status.state is AttendanceState.ON_BREAK
        assert status.is_on_break
        assert status.open_break is not None
        assert status.worked_minutes_today == 270
        assert status.week_worked_hours == Decimal("12.5")
        assert status.suggested_action == "Enjoy your break!"

    def test_finished_shift(self, make_shift, work_shift, attendance_service, employee_id):
        shift = make_shift()
        work_shift(shift, at(TODAY, 9), at(TODAY, 17))
        status = attendance_service.get_current_status(employee_id)
        assert status.state is AttendanceState.CHECKED_OUT
        assert status.worked_minutes_today == 480
        assert status.week_worked_hours == Decimal("8")

    def test_today_shift_prefers_unfinished(self, make_shift, work_shift, attendance_service, employee_id):
        early = make_shift(start_time=time(6), end_time=time(8), break_minutes=0)
        main = make_shift()

        assert attendance_service.get_today_shift(employee_id).id == early.id
        work_shift(early, at(TODAY, 6), at(TODAY, 8))
        assert attendance_service.get_today_shift(employee_id).id == main.id
        work_shift(main, at(TODAY, 9), at(TODAY, 17) + timedelta(minutes=5))
        assert attendance_service.get_today_shift(employee_id).id == main.id
