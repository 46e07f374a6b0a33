"""
Module: shift_kernel.selectors.limit_selector
Responsibility: Read-only queries over employee working-hour limits,
    including resolution of the limit active on a given date.
Architecture position: Kernel > Selectors.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import or_, select

from shift_kernel.domain.dtos import LimitInfo
from shift_kernel.models.limits import EmployeeWorkingHoursLimit
from shift_kernel.selectors.base import BaseSelector


class LimitSelector(BaseSelector[EmployeeWorkingHoursLimit]):

    def get(self, limit_id: UUID) -> LimitInfo | None:
        return self._get_dto(EmployeeWorkingHoursLimit, limit_id)

    def list_for_employee(
        self,
        business_id: UUID,
        employee_id: UUID,
        include_inactive: bool = False,
    ) -> list[LimitInfo]:
        stmt = select(EmployeeWorkingHoursLimit).where(
            EmployeeWorkingHoursLimit.business_id == business_id,
            EmployeeWorkingHoursLimit.employee_id == employee_id,
        )
        if not include_inactive:
            stmt = stmt.where(EmployeeWorkingHoursLimit.is_active.is_(True))
        stmt = stmt.order_by(EmployeeWorkingHoursLimit.valid_from.desc())
        return self._all(stmt)

    def active_for(self, employee_id: UUID, reference: date) -> LimitInfo | None:
        """
        The limit in force on ``reference``.

        Among active limits whose ``[valid_from, valid_to)`` contains the
        date, the one with the most recent ``valid_from`` wins.
        """
        stmt = (
            select(EmployeeWorkingHoursLimit)
            .where(
                EmployeeWorkingHoursLimit.employee_id == employee_id,
                EmployeeWorkingHoursLimit.is_active.is_(True),
                EmployeeWorkingHoursLimit.valid_from <= reference,
                or_(
                    EmployeeWorkingHoursLimit.valid_to.is_(None),
                    EmployeeWorkingHoursLimit.valid_to > reference,
                ),
            )
            .order_by(EmployeeWorkingHoursLimit.valid_from.desc())
            .limit(1)
        )
        return self._first(stmt)
