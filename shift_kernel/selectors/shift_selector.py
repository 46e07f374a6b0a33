"""
Module: shift_kernel.selectors.shift_selector
Responsibility: Read-only queries over shifts and their breaks: calendar
    listings for merchants and employees, same-day lookups used by conflict
    detection, scheduled-hour sums used by limit evaluation, and worked-hour
    sums used by status and wellbeing reporting.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Only active shifts count toward conflicts and scheduled-hour sums.
    - Worked minutes of a finished shift are check-out minus check-in minus
      completed breaks; unfinished shifts contribute nothing.
"""

from collections import defaultdict
from datetime import date
from uuid import UUID

from sqlalchemy import select

from shift_kernel.domain.dtos import BreakInfo, ShiftInfo
from shift_kernel.domain.intervals import minutes_between, scheduled_minutes
from shift_kernel.domain.values import ValidationStatus
from shift_kernel.models.shift import Shift, ShiftBreak
from shift_kernel.selectors.base import BaseSelector


class ShiftSelector(BaseSelector[Shift]):
    """Read-only access to shifts and breaks."""

    def get(self, shift_id: UUID) -> ShiftInfo | None:
        return self._get_dto(Shift, shift_id)

    def list_for_business(
        self,
        business_id: UUID,
        start_date: date,
        end_date: date,
        employee_id: UUID | None = None,
        include_inactive: bool = False,
    ) -> list[ShiftInfo]:
        """Shifts of a business in ``[start_date, end_date]``, calendar order."""
        stmt = select(Shift).where(
            Shift.business_id == business_id,
            Shift.shift_date >= start_date,
            Shift.shift_date <= end_date,
        )
        if employee_id is not None:
            stmt = stmt.where(Shift.employee_id == employee_id)
        if not include_inactive:
            stmt = stmt.where(Shift.is_active.is_(True))
        stmt = stmt.order_by(Shift.shift_date, Shift.start_time)
        return self._all(stmt)

    def list_for_employee(
        self,
        employee_id: UUID,
        start_date: date,
        end_date: date,
    ) -> list[ShiftInfo]:
        """Active shifts assigned to an employee in ``[start_date, end_date]``."""
        stmt = (
            select(Shift)
            .where(
                Shift.employee_id == employee_id,
                Shift.shift_date >= start_date,
                Shift.shift_date <= end_date,
                Shift.is_active.is_(True),
            )
            .order_by(Shift.shift_date, Shift.start_time)
        )
        return self._all(stmt)

    def on_date(
        self,
        employee_id: UUID,
        shift_date: date,
        exclude_shift_id: UUID | None = None,
    ) -> list[ShiftInfo]:
        """Active shifts of an employee on one date, earliest first."""
        stmt = select(Shift).where(
            Shift.employee_id == employee_id,
            Shift.shift_date == shift_date,
            Shift.is_active.is_(True),
        )
        if exclude_shift_id is not None:
            stmt = stmt.where(Shift.id != exclude_shift_id)
        stmt = stmt.order_by(Shift.start_time)
        return self._all(stmt)

    def scheduled_minutes_between(
        self,
        employee_id: UUID,
        start_date: date,
        end_date: date,
        exclude_shift_id: UUID | None = None,
    ) -> int:
        """Planned working minutes of active shifts in ``[start_date, end_date)``."""
        stmt = select(Shift).where(
            Shift.employee_id == employee_id,
            Shift.shift_date >= start_date,
            Shift.shift_date < end_date,
            Shift.is_active.is_(True),
        )
        if exclude_shift_id is not None:
            stmt = stmt.where(Shift.id != exclude_shift_id)
        return sum(
            scheduled_minutes(s.start_time, s.end_time, s.break_minutes)
            for s in self.session.scalars(stmt)
        )

    def requiring_review(
        self,
        business_id: UUID,
        shift_date: date | None = None,
    ) -> list[ShiftInfo]:
        stmt = select(Shift).where(
            Shift.business_id == business_id,
            Shift.validation_status == ValidationStatus.REQUIRES_REVIEW.value,
            Shift.is_active.is_(True),
        )
        if shift_date is not None:
            stmt = stmt.where(Shift.shift_date == shift_date)
        stmt = stmt.order_by(Shift.shift_date, Shift.start_time)
        return self._all(stmt)

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    def breaks_for_shift(self, shift_id: UUID) -> list[BreakInfo]:
        stmt = (
            select(ShiftBreak)
            .where(ShiftBreak.shift_id == shift_id)
            .order_by(ShiftBreak.started_at)
        )
        return self._all(stmt)

    def open_break(self, shift_id: UUID) -> BreakInfo | None:
        stmt = select(ShiftBreak).where(
            ShiftBreak.shift_id == shift_id,
            ShiftBreak.ended_at.is_(None),
        )
        return self._first(stmt)

    def completed_break_minutes(self, shift_id: UUID) -> int:
        return sum(
            b.duration_minutes or 0
            for b in self.breaks_for_shift(shift_id)
            if not b.is_open
        )

    # ------------------------------------------------------------------
    # Worked time
    # ------------------------------------------------------------------

    def worked_minutes_between(
        self,
        employee_id: UUID,
        start_date: date,
        end_date: date,
    ) -> int:
        """Net worked minutes of finished shifts in ``[start_date, end_date)``."""
        stmt = select(Shift).where(
            Shift.employee_id == employee_id,
            Shift.shift_date >= start_date,
            Shift.shift_date < end_date,
            Shift.is_checked_in.is_(True),
            Shift.is_checked_out.is_(True),
        )
        shifts = list(self.session.scalars(stmt))
        if not shifts:
            return 0

        break_minutes: dict[UUID, int] = defaultdict(int)
        break_stmt = select(ShiftBreak).where(
            ShiftBreak.shift_id.in_([s.id for s in shifts]),
            ShiftBreak.ended_at.is_not(None),
        )
        for shift_break in self.session.scalars(break_stmt):
            break_minutes[shift_break.shift_id] += shift_break.duration_minutes or 0

        return sum(
            minutes_between(s.check_in_at, s.check_out_at) - break_minutes[s.id]
            for s in shifts
        )
