"""
SchedulingRules -- conflict and working-hour limit evaluation.

Responsibility:
    Answers the two questions every scheduling write must ask before it
    assigns an employee: does the candidate interval overlap another
    active shift of the employee on that date, and would its hours push
    the employee past the daily, weekly or monthly cap of the limit active
    on that date.  ``ensure_schedulable()`` turns either answer into the
    typed failure.

Architecture position:
    Kernel > Services.  Read-only: issues queries through the selectors
    and never flushes.  Arithmetic lives in ``domain/intervals``.

Invariants enforced:
    - Overlap is half-open; back-to-back shifts never conflict.
    - Midnight-crossing shifts extend past 24:00 on their own date.
    - The shift being updated is excluded from both the conflict set and
      the scheduled-hour sums.
    - No active limit means no cap is ever exceeded.

Failure modes:
    - ShiftConflictError carrying every overlapping interval.
    - LimitExceededError naming the breached cap.
"""

from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from shift_kernel.domain.dtos import ConflictingInterval
from shift_kernel.domain.intervals import (
    LimitBreach,
    LimitCaps,
    evaluate_limit,
    minutes_to_hours,
    month_bounds,
    scheduled_minutes,
    times_overlap,
    week_bounds,
)
from shift_kernel.domain.policy import DEFAULT_POLICY, AttendancePolicy
from shift_kernel.exceptions import LimitExceededError, ShiftConflictError
from shift_kernel.logging_config import get_logger
from shift_kernel.selectors.limit_selector import LimitSelector
from shift_kernel.selectors.shift_selector import ShiftSelector

logger = get_logger("services.rules")


class SchedulingRules:
    """
    Conflict and limit evaluator.

    Contract:
        Pure decisions over the employee's persisted shifts and limits.
        Nothing is written.
    """

    def __init__(self, session: Session, policy: AttendancePolicy | None = None):
        self._shifts = ShiftSelector(session)
        self._limits = LimitSelector(session)
        self._policy = policy or DEFAULT_POLICY

    # ------------------------------------------------------------------
    # Conflicts
    # ------------------------------------------------------------------

    def find_conflicts(
        self,
        employee_id: UUID,
        shift_date: date,
        start_time: time,
        end_time: time,
        exclude_shift_id: UUID | None = None,
    ) -> list[ConflictingInterval]:
        """Active shifts of the employee on ``shift_date`` overlapping the candidate."""
        return [
            ConflictingInterval(
                shift_id=existing.id,
                shift_date=existing.shift_date,
                start_time=existing.start_time,
                end_time=existing.end_time,
            )
            for existing in self._shifts.on_date(employee_id, shift_date, exclude_shift_id)
            if times_overlap(start_time, end_time, existing.start_time, existing.end_time)
        ]

    def has_conflict(
        self,
        employee_id: UUID,
        shift_date: date,
        start_time: time,
        end_time: time,
        exclude_shift_id: UUID | None = None,
    ) -> bool:
        return bool(
            self.find_conflicts(employee_id, shift_date, start_time, end_time, exclude_shift_id)
        )

    # ------------------------------------------------------------------
    # Limits
    # ------------------------------------------------------------------

    def check_limit(
        self,
        employee_id: UUID,
        shift_date: date,
        candidate_hours: Decimal,
        exclude_shift_id: UUID | None = None,
    ) -> LimitBreach | None:
        """The cap breached by adding ``candidate_hours`` on ``shift_date``, if any."""
        limit = self._limits.active_for(employee_id, shift_date)
        if limit is None:
            return None

        week_start, week_end = week_bounds(shift_date, self._policy.week_start_day)
        month_start, month_end = month_bounds(shift_date)
        week_hours = minutes_to_hours(
            self._shifts.scheduled_minutes_between(
                employee_id, week_start, week_end, exclude_shift_id
            )
        )
        month_hours = minutes_to_hours(
            self._shifts.scheduled_minutes_between(
                employee_id, month_start, month_end, exclude_shift_id
            )
        )

        caps = LimitCaps(
            max_hours_per_day=limit.max_hours_per_day,
            max_hours_per_week=limit.max_hours_per_week,
            max_hours_per_month=limit.max_hours_per_month,
        )
        return evaluate_limit(caps, candidate_hours, week_hours, month_hours)

    def exceeds_limit(
        self,
        employee_id: UUID,
        shift_date: date,
        candidate_hours: Decimal,
        exclude_shift_id: UUID | None = None,
    ) -> bool:
        return self.check_limit(employee_id, shift_date, candidate_hours, exclude_shift_id) is not None

    # ------------------------------------------------------------------
    # Combined gate
    # ------------------------------------------------------------------

    def ensure_schedulable(
        self,
        employee_id: UUID,
        shift_date: date,
        start_time: time,
        end_time: time,
        break_minutes: int,
        exclude_shift_id: UUID | None = None,
        check_limits: bool = True,
    ) -> None:
        """
        Raise if the employee cannot take the candidate interval.

        Raises:
            ShiftConflictError: The interval overlaps another active shift.
            LimitExceededError: The hours breach a cap of the active limit.
        """
        conflicts = self.find_conflicts(
            employee_id, shift_date, start_time, end_time, exclude_shift_id
        )
        if conflicts:
            logger.warning(
                "shift_conflict_detected",
                extra={
                    "employee_id": str(employee_id),
                    "shift_date": shift_date.isoformat(),
                    "conflict_count": len(conflicts),
                },
            )
            raise ShiftConflictError(str(employee_id), shift_date, conflicts)

        if not check_limits:
            return

        hours = minutes_to_hours(scheduled_minutes(start_time, end_time, break_minutes))
        breach = self.check_limit(employee_id, shift_date, hours, exclude_shift_id)
        if breach is not None:
            logger.warning(
                "working_hours_limit_exceeded",
                extra={
                    "employee_id": str(employee_id),
                    "shift_date": shift_date.isoformat(),
                    "limit_kind": breach.kind.value,
                    "cap_hours": str(breach.cap_hours),
                    "projected_hours": str(breach.projected_hours),
                },
            )
            raise LimitExceededError(
                str(employee_id),
                breach.kind.value,
                breach.cap_hours,
                breach.projected_hours,
            )
