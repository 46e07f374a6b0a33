"""
Attendance rules -- pure evaluation of check-in and check-out events.

Responsibility:
    Classifies a check-in against the scheduled start and a check-out
    against the expected working time, producing anomaly, overtime and
    validation decisions together with the employee-facing messages.
    Also derives the status line and suggested next action shown while a
    shift is in progress.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.  The attendance service
    persists whatever these functions decide.

Invariants enforced:
    - Deviations within ``tolerance_minutes`` (inclusive) never raise an
      anomaly.
    - LateCheckIn severity is 2, or 3 above ``severe_late_minutes``.
      EarlyCheckIn is always severity 1.
    - Overtime above ``tolerance_minutes`` yields a pending overtime record.
      ``abs(overtime)`` above ``checkout_anomaly_minutes`` yields a
      LateCheckOut or EarlyCheckOut anomaly of severity 2.
    - A check-out within tolerance is AutoApproved, otherwise RequiresReview.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from shift_kernel.domain.dtos import ResolutionOption
from shift_kernel.domain.intervals import (
    interval_minutes,
    minutes_between,
    minutes_of_day,
)
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.domain.values import (
    AnomalyReason,
    AnomalyType,
    AttendanceState,
    ValidationStatus,
)

CHECKOUT_ANOMALY_SEVERITY = 2


@dataclass(frozen=True)
class CheckInAssessment:
    minutes_difference: int
    anomaly_type: AnomalyType | None = None
    severity: int | None = None
    message: str | None = None


@dataclass(frozen=True)
class CheckOutAssessment:
    gross_minutes: int
    worked_minutes: int
    expected_minutes: int
    overtime_minutes: int
    validation_status: ValidationStatus
    creates_overtime: bool
    anomaly_type: AnomalyType | None = None
    severity: int | None = None
    message: str | None = None


QUICK_RESOLUTION_OPTIONS: tuple[ResolutionOption, ...] = (
    ResolutionOption(AnomalyReason.TRAFFIC, "Traffic"),
    ResolutionOption(AnomalyReason.AUTHORIZED_LEAVE, "Authorized leave"),
    ResolutionOption(AnomalyReason.TIME_RECOVERY, "Recovering hours"),
    ResolutionOption(AnomalyReason.OTHER, "Other"),
)


def assess_check_in(
    scheduled_start: datetime,
    checked_in_at: datetime,
    policy: AttendancePolicy,
) -> CheckInAssessment:
    """Compare a check-in with the scheduled start."""
    difference = minutes_between(scheduled_start, checked_in_at)

    if abs(difference) <= policy.tolerance_minutes:
        return CheckInAssessment(minutes_difference=difference)

    if difference < 0:
        return CheckInAssessment(
            minutes_difference=difference,
            anomaly_type=AnomalyType.EARLY_CHECK_IN,
            severity=1,
            message=(
                f"You arrived {-difference} minutes earlier than planned. "
                "Thanks for being on time!"
            ),
        )

    severity = 3 if difference > policy.severe_late_minutes else 2
    return CheckInAssessment(
        minutes_difference=difference,
        anomaly_type=AnomalyType.LATE_CHECK_IN,
        severity=severity,
        message=(
            f"Looks like you arrived {difference} minutes later than planned "
            "today. Did something come up? Let us know."
        ),
    )


def assess_check_out(
    checked_in_at: datetime,
    checked_out_at: datetime,
    scheduled_interval_minutes: int,
    planned_break_minutes: int,
    recorded_break_minutes: int,
    policy: AttendancePolicy,
) -> CheckOutAssessment:
    """
    Compare actual working time with the expected working time.

    The break deducted for the overtime computation is the larger of the
    recorded breaks and the planned break, so a planned break nobody
    clocked still counts.  The worked time reported to the employee only
    subtracts recorded breaks.
    """
    gross = minutes_between(checked_in_at, checked_out_at)
    expected = scheduled_interval_minutes - planned_break_minutes
    deducted = max(recorded_break_minutes, planned_break_minutes)
    overtime = (gross - deducted) - expected

    within_tolerance = abs(overtime) <= policy.tolerance_minutes
    status = (
        ValidationStatus.AUTO_APPROVED
        if within_tolerance
        else ValidationStatus.REQUIRES_REVIEW
    )

    anomaly_type = None
    severity = None
    message = None
    if abs(overtime) > policy.checkout_anomaly_minutes:
        severity = CHECKOUT_ANOMALY_SEVERITY
        if overtime > 0:
            anomaly_type = AnomalyType.LATE_CHECK_OUT
            message = (
                "You are putting in a lot of hours. Is everything okay? "
                "Remember to look after yourself!"
            )
        else:
            anomaly_type = AnomalyType.EARLY_CHECK_OUT
            message = "Looks like you finished earlier today. All good?"

    return CheckOutAssessment(
        gross_minutes=gross,
        worked_minutes=gross - recorded_break_minutes,
        expected_minutes=expected,
        overtime_minutes=overtime,
        validation_status=status,
        creates_overtime=overtime > policy.tolerance_minutes,
        anomaly_type=anomaly_type,
        severity=severity,
        message=message,
    )


def within_tolerance(scheduled: datetime, actual: datetime, policy: AttendancePolicy) -> bool:
    return abs(minutes_between(scheduled, actual)) <= policy.tolerance_minutes


def requires_merchant_review(severity: int, policy: AttendancePolicy) -> bool:
    return severity >= policy.critical_severity


def review_waived(reason: AnomalyReason, severity: int, policy: AttendancePolicy) -> bool:
    """True if ``reason`` clears the merchant-review requirement."""
    if reason not in policy.review_waiver_reasons:
        return False
    if severity >= policy.critical_severity and not policy.waive_critical_anomalies:
        return False
    return True


def suggest_break_time(start: time, end: time, policy: AttendancePolicy) -> time | None:
    """Midpoint of the shift for shifts long enough to need a break."""
    length = interval_minutes(start, end)
    if length < policy.break_suggestion_min_hours * 60:
        return None
    midpoint = (minutes_of_day(start) + length // 2) % (24 * 60)
    return time(midpoint // 60, midpoint % 60)


def overtime_prompt(overtime_minutes: int) -> str:
    return f"Overtime of {overtime_minutes} minutes detected. How would you like to handle it?"


# =========================================================================
# Status line
# =========================================================================


def attendance_state(is_checked_in: bool, is_checked_out: bool, on_break: bool) -> AttendanceState:
    if not is_checked_in:
        return AttendanceState.NOT_STARTED
    if is_checked_out:
        return AttendanceState.CHECKED_OUT
    if on_break:
        return AttendanceState.ON_BREAK
    return AttendanceState.CHECKED_IN


STATUS_LINES: dict[AttendanceState, str] = {
    AttendanceState.NOT_STARTED: "You have not checked in yet",
    AttendanceState.CHECKED_IN: "You are at work",
    AttendanceState.ON_BREAK: "You are on a break",
    AttendanceState.CHECKED_OUT: "You have completed your shift",
}

NO_SHIFT_STATUS = "No shift today"
NO_SHIFT_ACTION = "Enjoy your day off!"


def suggested_action(
    state: AttendanceState,
    net_worked_minutes: int,
    breaks_taken: int,
    policy: AttendancePolicy,
) -> str:
    if state is AttendanceState.NOT_STARTED:
        return "Remember to check in when you arrive"
    if state is AttendanceState.ON_BREAK:
        return "Enjoy your break!"
    if state is AttendanceState.CHECKED_OUT:
        return "Have a good rest!"
    if net_worked_minutes >= policy.break_prompt_after_minutes and breaks_taken == 0:
        return "Maybe it is time for a break?"
    return "Keep it up!"


def wellbeing_message(week_hours) -> str:
    return (
        f"You are working a lot of hours this week ({week_hours:.1f}h). "
        "Remember to take care of yourself!"
    )


def open_duration_minutes(started_at: datetime, now: datetime) -> int:
    return max(0, minutes_between(started_at, now))
