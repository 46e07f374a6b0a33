"""
ShiftService -- the shift scheduler.

Responsibility:
    Creates, updates, assigns and soft-deletes shifts, and serves the
    merchant and employee calendar queries plus per-employee scheduling
    statistics.  Every write that leaves a shift assigned to an employee
    goes through ``SchedulingRules.ensure_schedulable()`` first.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - A shift is never persisted assigned to an employee if it overlaps
      another active shift of that employee on the same date, or if its
      hours breach the employee's active limit.
    - ``start_time != end_time`` and the planned break is shorter than the
      scheduled interval.
    - Deletion is a soft deactivation; history is never removed.
    - Merchant operations only see shifts of their own business; anything
      else is reported as not found.

Failure modes:
    - ShiftNotFoundError: unknown shift, or owned by another business.
    - ShiftConflictError / LimitExceededError from the evaluator.
    - ValidationError: malformed schedule.
"""

from datetime import date, time, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from shift_kernel.domain.clock import Clock
from shift_kernel.domain.dtos import EmployeeShiftStats, ShiftInfo
from shift_kernel.domain.intervals import (
    interval_minutes,
    minutes_to_hours,
    month_bounds,
    previous_month_bounds,
    week_bounds,
)
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.domain.values import ShiftType
from shift_kernel.exceptions import ShiftNotFoundError, ValidationError
from shift_kernel.logging_config import get_logger
from shift_kernel.models.shift import Shift
from shift_kernel.selectors.limit_selector import LimitSelector
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.base import BaseService
from shift_kernel.services.rules_service import SchedulingRules

logger = get_logger("services.shift")

ZERO_HOURS = Decimal("0.00")
_ONE_DAY = timedelta(days=1)


def validate_schedule(start_time: time, end_time: time, break_minutes: int) -> None:
    """Raise ValidationError for a schedule no shift can have."""
    if start_time == end_time:
        raise ValidationError("end_time", "must differ from start_time")
    if break_minutes < 0:
        raise ValidationError("break_minutes", "must not be negative")
    if break_minutes >= interval_minutes(start_time, end_time):
        raise ValidationError("break_minutes", "must be shorter than the shift")


class ShiftService(BaseService[Shift]):
    """
    Scheduler for shifts.

    Contract:
        Accepts identifiers and schedule values, returns frozen
        ``ShiftInfo`` DTOs.  Raises typed exceptions; never returns None
        for a missing shift.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: AttendancePolicy | None = None,
    ):
        super().__init__(session, clock, policy)
        self._rules = SchedulingRules(session, self._policy)
        self._shifts = ShiftSelector(session)
        self._limits = LimitSelector(session)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_shift(
        self,
        business_id: UUID,
        actor_id: UUID,
        shift_date: date,
        start_time: time,
        end_time: time,
        break_minutes: int = 0,
        employee_id: UUID | None = None,
        shift_type: ShiftType = ShiftType.CUSTOM,
        color: str | None = None,
        notes: str | None = None,
        template_id: UUID | None = None,
        is_confirmed: bool = False,
    ) -> ShiftInfo:
        """
        Create a shift, optionally assigned.

        Raises:
            ValidationError: Malformed schedule.
            ShiftConflictError: Overlaps another shift of the employee.
            LimitExceededError: Breaches the employee's active limit.
        """
        validate_schedule(start_time, end_time, break_minutes)
        if employee_id is not None:
            self._rules.ensure_schedulable(
                employee_id, shift_date, start_time, end_time, break_minutes
            )

        shift = Shift(
            business_id=business_id,
            employee_id=employee_id,
            template_id=template_id,
            shift_date=shift_date,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            shift_type=ShiftType(shift_type).value,
            color=color,
            notes=notes,
            is_confirmed=is_confirmed,
            is_active=True,
            version=1,
            created_by_id=actor_id,
        )
        self.session.add(shift)
        self.session.flush()

        logger.info(
            "shift_created",
            extra={
                "shift_id": str(shift.id),
                "business_id": str(business_id),
                "employee_id": str(employee_id) if employee_id else None,
                "shift_date": shift_date.isoformat(),
            },
        )
        return shift.to_dto()

    def update_shift(
        self,
        shift_id: UUID,
        business_id: UUID,
        actor_id: UUID,
        *,
        shift_date: date | None = None,
        start_time: time | None = None,
        end_time: time | None = None,
        break_minutes: int | None = None,
        shift_type: ShiftType | None = None,
        color: str | None = None,
        notes: str | None = None,
        is_confirmed: bool | None = None,
    ) -> ShiftInfo:
        """
        Change the schedule or presentation of a shift.

        Arguments left as None keep their current value.  When the shift
        is assigned, the new interval is re-evaluated with the shift
        itself excluded from conflicts and hour sums.
        """
        shift = self._get_owned(shift_id, business_id)

        new_date = shift_date or shift.shift_date
        new_start = start_time or shift.start_time
        new_end = end_time or shift.end_time
        new_break = shift.break_minutes if break_minutes is None else break_minutes

        validate_schedule(new_start, new_end, new_break)
        if shift.employee_id is not None:
            self._rules.ensure_schedulable(
                shift.employee_id,
                new_date,
                new_start,
                new_end,
                new_break,
                exclude_shift_id=shift.id,
            )

        shift.shift_date = new_date
        shift.start_time = new_start
        shift.end_time = new_end
        shift.break_minutes = new_break
        if shift_type is not None:
            shift.shift_type = ShiftType(shift_type).value
        if color is not None:
            shift.color = color
        if notes is not None:
            shift.notes = notes
        if is_confirmed is not None:
            shift.is_confirmed = is_confirmed
        shift.version += 1
        shift.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "shift_updated",
            extra={"shift_id": str(shift_id), "version": shift.version},
        )
        return shift.to_dto()

    def assign_shift(
        self,
        shift_id: UUID,
        business_id: UUID,
        actor_id: UUID,
        employee_id: UUID | None,
        notes: str | None = None,
    ) -> ShiftInfo:
        """Assign the shift to ``employee_id``, or unassign it with None."""
        shift = self._get_owned(shift_id, business_id)

        if employee_id is not None:
            self._rules.ensure_schedulable(
                employee_id,
                shift.shift_date,
                shift.start_time,
                shift.end_time,
                shift.break_minutes,
                exclude_shift_id=shift.id,
            )

        previous = shift.employee_id
        shift.employee_id = employee_id
        if notes:
            shift.notes = notes
        shift.version += 1
        shift.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "shift_assigned",
            extra={
                "shift_id": str(shift_id),
                "employee_id": str(employee_id) if employee_id else None,
                "previous_employee_id": str(previous) if previous else None,
            },
        )
        return shift.to_dto()

    def delete_shift(self, shift_id: UUID, business_id: UUID, actor_id: UUID) -> ShiftInfo:
        """Soft-deactivate a shift.  Deleting twice is harmless."""
        shift = self._get_owned(shift_id, business_id)
        if shift.is_active:
            shift.is_active = False
            shift.version += 1
            shift.updated_by_id = actor_id
            self.session.flush()
            logger.info("shift_deactivated", extra={"shift_id": str(shift_id)})
        return shift.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_shift(
        self,
        shift_id: UUID,
        business_id: UUID | None = None,
        employee_id: UUID | None = None,
    ) -> ShiftInfo:
        """
        A shift by id, scoped to the caller when a business or employee
        is given.
        """
        found = self._shifts.get(shift_id)
        if found is None:
            raise ShiftNotFoundError(str(shift_id))
        if business_id is not None and found.business_id != business_id:
            raise ShiftNotFoundError(str(shift_id))
        if employee_id is not None and found.employee_id != employee_id:
            raise ShiftNotFoundError(str(shift_id))
        return found

    def get_merchant_shifts(
        self,
        business_id: UUID,
        start_date: date,
        end_date: date,
        employee_id: UUID | None = None,
    ) -> list[ShiftInfo]:
        return self._shifts.list_for_business(business_id, start_date, end_date, employee_id)

    def get_employee_shifts(
        self,
        employee_id: UUID,
        start_date: date,
        end_date: date,
    ) -> list[ShiftInfo]:
        return self._shifts.list_for_employee(employee_id, start_date, end_date)

    def has_shift_conflict(
        self,
        employee_id: UUID,
        shift_date: date,
        start_time: time,
        end_time: time,
        exclude_shift_id: UUID | None = None,
    ) -> bool:
        return self._rules.has_conflict(
            employee_id, shift_date, start_time, end_time, exclude_shift_id
        )

    def exceeds_working_hours_limit(
        self,
        employee_id: UUID,
        shift_date: date,
        hours: Decimal,
    ) -> bool:
        return self._rules.exceeds_limit(employee_id, shift_date, hours)

    def get_employee_shift_stats(
        self,
        employee_id: UUID,
        reference: date | None = None,
    ) -> EmployeeShiftStats:
        """Scheduled hours and counts for this week, this month and last month."""
        today = reference or self._clock.today_utc()
        week_start, week_end = week_bounds(today, self._policy.week_start_day)
        month_start, month_end = month_bounds(today)
        last_start, last_end = previous_month_bounds(today)

        def window(start: date, end: date) -> tuple[Decimal, int]:
            shifts = self._shifts.list_for_employee(employee_id, start, end - _ONE_DAY)
            minutes = sum(s.scheduled_minutes for s in shifts)
            return minutes_to_hours(minutes), len(shifts)

        week_hours, week_count = window(week_start, week_end)
        month_hours, month_count = window(month_start, month_end)
        last_hours, last_count = window(last_start, last_end)

        average = (
            (month_hours / month_count).quantize(Decimal("0.01"))
            if month_count
            else ZERO_HOURS
        )

        limit = self._limits.active_for(employee_id, today)
        max_week = limit.max_hours_per_week if limit else None
        max_month = limit.max_hours_per_month if limit else None
        remaining_week = max(ZERO_HOURS, max_week - week_hours) if max_week is not None else None
        remaining_month = (
            max(ZERO_HOURS, max_month - month_hours) if max_month is not None else None
        )
        over_limit = (max_week is not None and week_hours > max_week) or (
            max_month is not None and month_hours > max_month
        )

        return EmployeeShiftStats(
            employee_id=employee_id,
            reference_date=today,
            hours_this_week=week_hours,
            shifts_this_week=week_count,
            hours_this_month=month_hours,
            shifts_this_month=month_count,
            hours_last_month=last_hours,
            shifts_last_month=last_count,
            average_hours_per_shift=average,
            max_hours_per_week=max_week,
            max_hours_per_month=max_month,
            remaining_hours_this_week=remaining_week,
            remaining_hours_this_month=remaining_month,
            is_over_limit=over_limit,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_owned(self, shift_id: UUID, business_id: UUID) -> Shift:
        shift = self.session.get(Shift, shift_id)
        if shift is None or shift.business_id != business_id:
            raise ShiftNotFoundError(str(shift_id))
        return shift

