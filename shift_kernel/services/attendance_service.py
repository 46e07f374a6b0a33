"""
AttendanceService -- the check-in / break / check-out state machine.

Responsibility:
    Owns the attendance transitions of a single shift and everything they
    emit: anomalies for check-ins outside the tolerance window, overtime
    records and check-out anomalies for working time away from the
    expected hours, and the validation decision taken at check-out.  Also
    answers "where am I today" for the employee.

Architecture position:
    Kernel > Services -- imperative shell.  Decisions come from the pure
    rules in ``domain/attendance``; this service loads, persists and logs.

State machine:
    NotStarted -> CheckedIn -> (OnBreak <-> CheckedIn) -> CheckedOut

Invariants enforced:
    - Check-in and check-out are single conditional UPDATEs keyed on the
      pre-transition flags.  Two concurrent check-ins cannot both succeed;
      the loser gets AlreadyCheckedInError.
    - At most one open break per shift (service check plus partial unique
      index).
    - A break can only start while checked in and not checked out.
    - An employee only ever sees their own shifts; anything else is
      reported as not found.

Failure modes:
    - ShiftNotFoundError / BreakNotFoundError for unknown or foreign ids.
    - AlreadyCheckedInError, NotCheckedInError, AlreadyCheckedOutError,
      ShiftInactiveError, BreakAlreadyOpenError, BreakAlreadyEndedError.
    - OptimisticLockError when a transition lost a race but the re-read
      state would still have allowed it.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shift_kernel.domain.attendance import (
    NO_SHIFT_ACTION,
    NO_SHIFT_STATUS,
    QUICK_RESOLUTION_OPTIONS,
    STATUS_LINES,
    assess_check_in,
    assess_check_out,
    attendance_state,
    open_duration_minutes,
    overtime_prompt,
    requires_merchant_review,
    suggest_break_time,
    suggested_action,
)
from shift_kernel.domain.clock import Clock
from shift_kernel.domain.dtos import (
    AnomalyInfo,
    BreakInfo,
    CheckInResult,
    CheckOutResult,
    CorrectionInfo,
    CurrentStatus,
    OvertimeInfo,
    ShiftInfo,
)
from shift_kernel.domain.intervals import (
    interval_minutes,
    minutes_between,
    minutes_to_hours,
    scheduled_bounds,
    week_bounds,
)
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.domain.values import (
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
    OptimisticLockError,
    ShiftInactiveError,
    ShiftNotFoundError,
)
from shift_kernel.logging_config import get_logger
from shift_kernel.models.attendance import OvertimeRecord, ShiftAnomaly
from shift_kernel.models.shift import Shift, ShiftBreak
from shift_kernel.selectors.attendance_selector import AttendanceSelector
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.base import BaseService

logger = get_logger("services.attendance")


class AttendanceService(BaseService[Shift]):
    """
    Attendance state machine for employee-owned shifts.

    Contract:
        Every public method takes the calling employee's id and only acts
        on shifts assigned to that employee.  Results are frozen DTOs.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: AttendancePolicy | None = None,
    ):
        super().__init__(session, clock, policy)
        self._shifts = ShiftSelector(session)
        self._facts = AttendanceSelector(session)

    # ------------------------------------------------------------------
    # Check-in
    # ------------------------------------------------------------------

    def check_in(
        self,
        employee_id: UUID,
        shift_id: UUID,
        location: str | None = None,
    ) -> CheckInResult:
        """
        Record the employee's arrival.

        A check-in more than ``tolerance_minutes`` away from the scheduled
        start raises an anomaly: EarlyCheckIn (severity 1) or LateCheckIn
        (severity 2, or 3 when later than ``severe_late_minutes``).

        Raises:
            ShiftNotFoundError: Unknown shift or not the employee's.
            ShiftInactiveError: Shift was cancelled.
            AlreadyCheckedInError: Shift already checked in.
        """
        shift = self._owned_shift(employee_id, shift_id)
        if not shift.is_active:
            raise ShiftInactiveError(str(shift_id))
        if shift.is_checked_in:
            logger.warning("check_in_rejected_already_checked_in", extra={"shift_id": str(shift_id)})
            raise AlreadyCheckedInError(str(shift_id))

        now = self._clock.now_utc()
        scheduled_start, _ = scheduled_bounds(shift.shift_date, shift.start_time, shift.end_time)
        assessment = assess_check_in(scheduled_start, now, self._policy)

        applied = self._transition(
            Shift,
            shift.id,
            (
                Shift.is_checked_in.is_(False),
                Shift.is_active.is_(True),
                Shift.employee_id == employee_id,
            ),
            {
                "is_checked_in": True,
                "check_in_at": now,
                "check_in_location": location,
                "version": Shift.version + 1,
                "updated_by_id": employee_id,
            },
        )
        if not applied:
            self._raise_lost_check_in(employee_id, shift_id)

        anomaly = None
        if assessment.anomaly_type is not None:
            anomaly = self._record_anomaly(
                shift, assessment.anomaly_type, assessment.severity, assessment.message, now
            )

        logger.info(
            "check_in_recorded",
            extra={
                "shift_id": str(shift_id),
                "employee_id": str(employee_id),
                "minutes_difference": assessment.minutes_difference,
                "anomaly_type": assessment.anomaly_type.value if assessment.anomaly_type else None,
            },
        )

        info = shift.to_dto()
        return CheckInResult(
            shift=info,
            minutes_difference=assessment.minutes_difference,
            planned_hours=info.scheduled_hours,
            message=self._check_in_message(now, info),
            anomaly=anomaly,
            suggested_break_time=suggest_break_time(shift.start_time, shift.end_time, self._policy),
            quick_resolution_options=QUICK_RESOLUTION_OPTIONS if anomaly is not None else (),
        )

    # ------------------------------------------------------------------
    # Check-out
    # ------------------------------------------------------------------

    def check_out(
        self,
        employee_id: UUID,
        shift_id: UUID,
        location: str | None = None,
    ) -> CheckOutResult:
        """
        Record the employee's departure and take the validation decision.

        A break still open at check-out is closed at the check-out instant.

        Raises:
            ShiftNotFoundError: Unknown shift or not the employee's.
            NotCheckedInError: Shift not checked in.
            AlreadyCheckedOutError: Shift already checked out.
        """
        shift = self._owned_shift(employee_id, shift_id)
        if not shift.is_checked_in:
            logger.warning("check_out_rejected_not_checked_in", extra={"shift_id": str(shift_id)})
            raise NotCheckedInError(str(shift_id))
        if shift.is_checked_out:
            logger.warning("check_out_rejected_already_checked_out", extra={"shift_id": str(shift_id)})
            raise AlreadyCheckedOutError(str(shift_id))

        now = self._clock.now_utc()
        open_break = self._shifts.open_break(shift.id)
        if open_break is not None:
            self._close_break(open_break.id, open_break.started_at, now)

        recorded_breaks = self._shifts.completed_break_minutes(shift.id)
        assessment = assess_check_out(
            shift.check_in_at,
            now,
            interval_minutes(shift.start_time, shift.end_time),
            shift.break_minutes,
            recorded_breaks,
            self._policy,
        )

        values = {
            "is_checked_out": True,
            "check_out_at": now,
            "check_out_location": location,
            "validation_status": assessment.validation_status.value,
            "version": Shift.version + 1,
            "updated_by_id": employee_id,
        }
        if assessment.validation_status is ValidationStatus.AUTO_APPROVED:
            values["validated_at"] = now
            values["validated_by_id"] = None

        applied = self._transition(
            Shift,
            shift.id,
            (
                Shift.is_checked_in.is_(True),
                Shift.is_checked_out.is_(False),
                Shift.employee_id == employee_id,
            ),
            values,
        )
        if not applied:
            self._raise_lost_check_out(employee_id, shift_id)

        overtime = None
        if assessment.creates_overtime:
            overtime = self._record_overtime(shift, assessment.overtime_minutes)

        anomaly = None
        if assessment.anomaly_type is not None:
            anomaly = self._record_anomaly(
                shift, assessment.anomaly_type, assessment.severity, assessment.message, now
            )

        logger.info(
            "check_out_recorded",
            extra={
                "shift_id": str(shift_id),
                "employee_id": str(employee_id),
                "worked_minutes": assessment.worked_minutes,
                "overtime_minutes": assessment.overtime_minutes,
                "validation_status": assessment.validation_status.value,
            },
        )

        worked_hours = minutes_to_hours(assessment.worked_minutes)
        return CheckOutResult(
            shift=shift.to_dto(),
            worked_minutes=assessment.worked_minutes,
            worked_hours=worked_hours,
            expected_hours=minutes_to_hours(assessment.expected_minutes),
            overtime_minutes=assessment.overtime_minutes,
            validation_status=assessment.validation_status,
            message=f"Checked out at {now:%H:%M}. Worked {worked_hours}h.",
            overtime=overtime,
            anomaly=anomaly,
            overtime_prompt=overtime_prompt(overtime.minutes) if overtime else None,
        )

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    def start_break(
        self,
        employee_id: UUID,
        shift_id: UUID,
        category: BreakCategory = BreakCategory.REST,
    ) -> BreakInfo:
        """
        Open a break on a checked-in shift.

        Raises:
            NotCheckedInError / AlreadyCheckedOutError: Shift not in progress.
            BreakAlreadyOpenError: Another break is still open.
        """
        shift = self._owned_shift(employee_id, shift_id)
        if not shift.is_active:
            raise ShiftInactiveError(str(shift_id))
        if not shift.is_checked_in:
            raise NotCheckedInError(str(shift_id))
        if shift.is_checked_out:
            raise AlreadyCheckedOutError(str(shift_id))

        open_break = self._shifts.open_break(shift.id)
        if open_break is not None:
            logger.warning(
                "break_rejected_already_open",
                extra={"shift_id": str(shift_id), "break_id": str(open_break.id)},
            )
            raise BreakAlreadyOpenError(str(shift_id), str(open_break.id))

        shift_break = ShiftBreak(
            shift_id=shift.id,
            started_at=self._clock.now_utc(),
            category=BreakCategory(category).value,
            is_short_break=False,
            created_by_id=employee_id,
        )
        self.session.add(shift_break)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # A concurrent start_break won the partial unique index.
            logger.warning("break_rejected_concurrent_open", extra={"shift_id": str(shift_id)})
            raise BreakAlreadyOpenError(str(shift_id)) from exc

        logger.info(
            "break_started",
            extra={"shift_id": str(shift_id), "break_id": str(shift_break.id)},
        )
        return shift_break.to_dto()

    def end_break(self, employee_id: UUID, break_id: UUID) -> BreakInfo:
        """
        Close an open break, recording its whole-minute duration.

        Raises:
            BreakNotFoundError: Unknown break or not on the employee's shift.
            BreakAlreadyEndedError: Break already closed.
        """
        shift_break = self.session.get(ShiftBreak, break_id)
        if shift_break is None:
            raise BreakNotFoundError(str(break_id))
        shift = self.session.get(Shift, shift_break.shift_id)
        if shift is None or shift.employee_id != employee_id:
            raise BreakNotFoundError(str(break_id))
        if shift_break.ended_at is not None:
            raise BreakAlreadyEndedError(str(break_id))

        now = self._clock.now_utc()
        if not self._close_break(shift_break.id, shift_break.started_at, now):
            raise BreakAlreadyEndedError(str(break_id))

        logger.info(
            "break_ended",
            extra={
                "shift_id": str(shift.id),
                "break_id": str(break_id),
                "duration_minutes": shift_break.duration_minutes,
                "is_short_break": shift_break.is_short_break,
            },
        )
        return shift_break.to_dto()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def get_today_shift(self, employee_id: UUID) -> ShiftInfo | None:
        """
        The shift the employee is working on today.

        The earliest shift not yet checked out, or the last one of the
        day when all are finished.
        """
        shifts = self._shifts.on_date(employee_id, self._clock.today_utc())
        if not shifts:
            return None
        for shift in shifts:
            if not shift.is_checked_out:
                return shift
        return shifts[-1]

    def get_current_status(self, employee_id: UUID) -> CurrentStatus:
        now = self._clock.now_utc()
        today = now.date()
        week_start, week_end = week_bounds(today, self._policy.week_start_day)
        finished_week_minutes = self._shifts.worked_minutes_between(
            employee_id, week_start, week_end
        )

        shift = self.get_today_shift(employee_id)
        if shift is None:
            return CurrentStatus(
                state=AttendanceState.NOT_STARTED,
                status_line=NO_SHIFT_STATUS,
                suggested_action=NO_SHIFT_ACTION,
                week_worked_hours=minutes_to_hours(finished_week_minutes),
            )

        breaks = self._shifts.breaks_for_shift(shift.id)
        open_break = next((b for b in breaks if b.is_open), None)
        completed = sum(b.duration_minutes or 0 for b in breaks if not b.is_open)

        worked = 0
        in_progress = 0
        if shift.is_checked_in and shift.check_in_at is not None:
            end = shift.check_out_at if shift.is_checked_out else now
            worked = minutes_between(shift.check_in_at, end) - completed
            if open_break is not None:
                worked -= open_duration_minutes(open_break.started_at, now)
            worked = max(0, worked)
            if not shift.is_checked_out:
                in_progress = worked

        state = attendance_state(shift.is_checked_in, shift.is_checked_out, open_break is not None)
        return CurrentStatus(
            state=state,
            status_line=STATUS_LINES[state],
            suggested_action=suggested_action(state, worked, len(breaks), self._policy),
            shift=shift,
            open_break=open_break,
            worked_minutes_today=worked,
            worked_hours_today=minutes_to_hours(worked),
            week_worked_hours=minutes_to_hours(finished_week_minutes + in_progress),
        )

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def list_breaks(self, shift_id: UUID) -> list[BreakInfo]:
        return self._shifts.breaks_for_shift(shift_id)

    def list_anomalies(self, shift_id: UUID) -> list[AnomalyInfo]:
        return self._facts.anomalies_for_shift(shift_id)

    def list_overtime(self, shift_id: UUID) -> list[OvertimeInfo]:
        return self._facts.overtime_for_shift(shift_id)

    def list_corrections(self, shift_id: UUID) -> list[CorrectionInfo]:
        return self._facts.corrections_for_shift(shift_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _owned_shift(self, employee_id: UUID, shift_id: UUID) -> Shift:
        shift = self.session.execute(
            select(Shift).where(Shift.id == shift_id)
        ).scalar_one_or_none()
        if shift is None or shift.employee_id != employee_id:
            raise ShiftNotFoundError(str(shift_id))
        return shift

    def _raise_lost_check_in(self, employee_id: UUID, shift_id: UUID) -> None:
        current = self._reload(Shift, shift_id)
        if current is None or current.employee_id != employee_id:
            raise ShiftNotFoundError(str(shift_id))
        if not current.is_active:
            raise ShiftInactiveError(str(shift_id))
        if current.is_checked_in:
            logger.warning("check_in_lost_race", extra={"shift_id": str(shift_id)})
            raise AlreadyCheckedInError(str(shift_id))
        raise OptimisticLockError("Shift", str(shift_id))

    def _raise_lost_check_out(self, employee_id: UUID, shift_id: UUID) -> None:
        current = self._reload(Shift, shift_id)
        if current is None or current.employee_id != employee_id:
            raise ShiftNotFoundError(str(shift_id))
        if not current.is_checked_in:
            raise NotCheckedInError(str(shift_id))
        if current.is_checked_out:
            logger.warning("check_out_lost_race", extra={"shift_id": str(shift_id)})
            raise AlreadyCheckedOutError(str(shift_id))
        raise OptimisticLockError("Shift", str(shift_id))

    def _close_break(self, break_id: UUID, started_at: datetime, now: datetime) -> bool:
        duration = open_duration_minutes(started_at, now)
        return self._transition(
            ShiftBreak,
            break_id,
            (ShiftBreak.ended_at.is_(None),),
            {
                "ended_at": now,
                "duration_minutes": duration,
                "is_short_break": duration < self._policy.short_break_minutes,
            },
        )

    def _record_anomaly(
        self,
        shift: Shift,
        anomaly_type: AnomalyType,
        severity: int,
        message: str,
        now: datetime,
    ) -> AnomalyInfo:
        anomaly = ShiftAnomaly(
            shift_id=shift.id,
            business_id=shift.business_id,
            employee_id=shift.employee_id,
            anomaly_type=anomaly_type.value,
            severity=severity,
            message=message,
            detected_at=now,
            is_resolved=False,
            requires_merchant_review=requires_merchant_review(severity, self._policy),
            created_by_id=shift.employee_id,
        )
        self.session.add(anomaly)
        self.session.flush()

        logger.info(
            "anomaly_detected",
            extra={
                "shift_id": str(shift.id),
                "anomaly_id": str(anomaly.id),
                "anomaly_type": anomaly_type.value,
                "severity": severity,
            },
        )
        return anomaly.to_dto()

    def _record_overtime(self, shift: Shift, minutes: int) -> OvertimeInfo:
        record = OvertimeRecord(
            shift_id=shift.id,
            business_id=shift.business_id,
            employee_id=shift.employee_id,
            shift_date=shift.shift_date,
            minutes=minutes,
            overtime_type=OvertimeType.PENDING.value,
            is_auto_detected=True,
            is_approved=False,
            created_by_id=shift.employee_id,
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "overtime_detected",
            extra={
                "shift_id": str(shift.id),
                "overtime_id": str(record.id),
                "overtime_minutes": minutes,
            },
        )
        return record.to_dto()

    @staticmethod
    def _check_in_message(now: datetime, shift: ShiftInfo) -> str:
        message = f"Checked in at {now:%H:%M}. Planned day {shift.scheduled_hours}h"
        if shift.break_minutes:
            message += f", break planned {shift.break_minutes}min"
        return message + "."
