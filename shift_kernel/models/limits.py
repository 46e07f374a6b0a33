"""
Module: shift_kernel.models.limits
Responsibility: ORM persistence for per-employee working-hour limits.
Architecture position: Kernel > Models.  May import from db/ and
    domain/dtos only.

Invariants enforced:
    - Validity is half-open ``[valid_from, valid_to)``.
    - The active limit for a date is the active row whose validity contains
      the date, most recent ``valid_from`` first (resolved by the limit
      selector, not here).
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from shift_kernel.db.base import TrackedBase
from shift_kernel.db.types import UUIDString
from shift_kernel.domain.dtos import LimitInfo


class EmployeeWorkingHoursLimit(TrackedBase):
    """Daily/weekly/monthly caps on an employee's scheduled hours."""

    __tablename__ = "employee_working_hours_limits"

    __table_args__ = (
        CheckConstraint(
            "valid_to IS NULL OR valid_to > valid_from",
            name="ck_working_hours_limits_validity",
        ),
        Index("idx_working_hours_limits_employee", "employee_id", "valid_from"),
    )

    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    max_hours_per_day: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_hours_per_week: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_hours_per_month: Mapped[Decimal | None] = mapped_column(nullable=True)
    min_hours_per_week: Mapped[Decimal | None] = mapped_column(nullable=True)
    min_hours_per_month: Mapped[Decimal | None] = mapped_column(nullable=True)

    allow_overtime: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_overtime_hours_per_week: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_overtime_hours_per_month: Mapped[Decimal | None] = mapped_column(nullable=True)

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<EmployeeWorkingHoursLimit employee={self.employee_id} "
            f"from={self.valid_from} to={self.valid_to}>"
        )

    def to_dto(self) -> LimitInfo:
        return LimitInfo(
            id=self.id,
            business_id=self.business_id,
            employee_id=self.employee_id,
            max_hours_per_day=self.max_hours_per_day,
            max_hours_per_week=self.max_hours_per_week,
            max_hours_per_month=self.max_hours_per_month,
            min_hours_per_week=self.min_hours_per_week,
            min_hours_per_month=self.min_hours_per_month,
            allow_overtime=self.allow_overtime,
            max_overtime_hours_per_week=self.max_overtime_hours_per_week,
            max_overtime_hours_per_month=self.max_overtime_hours_per_month,
            valid_from=self.valid_from,
            valid_to=self.valid_to,
            is_active=self.is_active,
            notes=self.notes,
        )
