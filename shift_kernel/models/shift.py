"""
Module: shift_kernel.models.shift
Responsibility: ORM persistence for scheduled shifts, the breaks taken during
    them, and the reusable templates shifts are stamped from.
Architecture position: Kernel > Models.  May import from db/ and
    domain/dtos + domain/values only.  MUST NOT import from services/ or
    selectors/.

Invariants enforced:
    - checked-out implies checked-in (ck_shifts_checkout_requires_checkin).
    - At most one open break per shift: partial unique index on
      shift_breaks(shift_id) WHERE ended_at IS NULL.
    - Every attendance transition bumps ``version``; services issue
      conditional UPDATEs keyed on the pre-transition state and version.
    - Shifts are soft-deleted via ``is_active``; rows with attendance
      history are never removed.

Failure modes:
    - IntegrityError on a second open break (mapped to BreakAlreadyOpenError
      by the attendance service).
"""

from __future__ import annotations

from datetime import date, datetime, time
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from shift_kernel.db.base import TrackedBase
from shift_kernel.db.types import UUIDString
from shift_kernel.domain.dtos import BreakInfo, ShiftInfo, TemplateInfo
from shift_kernel.domain.values import (
    BreakCategory,
    ShiftType,
    ValidationStatus,
)


class Shift(TrackedBase):
    """
    A scheduled work interval for a business, optionally assigned.

    Guarantees:
        - ``start_time``/``end_time`` are times of day on ``shift_date``; an
          end before the start means the shift crosses midnight.
        - ``version`` starts at 1 and increases on every transition.
    """

    __tablename__ = "shifts"

    __table_args__ = (
        CheckConstraint(
            "NOT is_checked_out OR is_checked_in",
            name="ck_shifts_checkout_requires_checkin",
        ),
        CheckConstraint("break_minutes >= 0", name="ck_shifts_break_non_negative"),
        CheckConstraint(
            "validation_status IN ('pending', 'auto_approved', 'requires_review', "
            "'manually_approved', 'self_corrected')",
            name="ck_shifts_valid_validation_status",
        ),
        Index("idx_shifts_employee_date", "employee_id", "shift_date"),
        Index("idx_shifts_business_date", "business_id", "shift_date"),
    )

    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    template_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("shift_templates.id"),
        nullable=True,
    )

    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    shift_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ShiftType.CUSTOM.value,
    )
    color: Mapped[str | None] = mapped_column(String(9), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Attendance facts
    is_checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    check_in_at: Mapped[datetime | None] = mapped_column(nullable=True)
    check_in_location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_checked_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    check_out_at: Mapped[datetime | None] = mapped_column(nullable=True)
    check_out_location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    validation_status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ValidationStatus.PENDING.value,
    )
    validated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    validated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return (
            f"<Shift {self.id} {self.shift_date} "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M} "
            f"employee={self.employee_id}>"
        )

    def to_dto(self) -> ShiftInfo:
        """Convert ORM model to frozen domain DTO."""
        return ShiftInfo(
            id=self.id,
            business_id=self.business_id,
            employee_id=self.employee_id,
            shift_date=self.shift_date,
            start_time=self.start_time,
            end_time=self.end_time,
            break_minutes=self.break_minutes,
            shift_type=ShiftType(self.shift_type),
            color=self.color,
            notes=self.notes,
            template_id=self.template_id,
            is_confirmed=self.is_confirmed,
            is_checked_in=self.is_checked_in,
            check_in_at=self.check_in_at,
            check_in_location=self.check_in_location,
            is_checked_out=self.is_checked_out,
            check_out_at=self.check_out_at,
            check_out_location=self.check_out_location,
            validation_status=ValidationStatus(self.validation_status),
            validated_by_id=self.validated_by_id,
            validated_at=self.validated_at,
            is_active=self.is_active,
            version=self.version,
        )


class ShiftBreak(TrackedBase):
    """
    A break taken during a checked-in shift.

    ``ended_at`` is NULL while the break is open.
    """

    __tablename__ = "shift_breaks"

    __table_args__ = (
        Index(
            "uq_shift_breaks_one_open",
            "shift_id",
            unique=True,
            sqlite_where=text("ended_at IS NULL"),
            postgresql_where=text("ended_at IS NULL"),
        ),
        Index("idx_shift_breaks_shift", "shift_id", "started_at"),
    )

    shift_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("shifts.id"),
        nullable=False,
    )
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(nullable=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BreakCategory.REST.value,
    )
    is_short_break: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ShiftBreak {self.id} shift={self.shift_id} open={self.ended_at is None}>"

    def to_dto(self) -> BreakInfo:
        return BreakInfo(
            id=self.id,
            shift_id=self.shift_id,
            started_at=self.started_at,
            ended_at=self.ended_at,
            duration_minutes=self.duration_minutes,
            category=BreakCategory(self.category),
            is_short_break=self.is_short_break,
        )


class ShiftTemplate(TrackedBase):
    """Reusable shift pattern a merchant stamps onto a date range."""

    __tablename__ = "shift_templates"

    __table_args__ = (
        CheckConstraint("break_minutes >= 0", name="ck_shift_templates_break_non_negative"),
        Index("idx_shift_templates_business", "business_id", "is_active"),
    )

    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    shift_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ShiftType.CUSTOM.value,
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    color: Mapped[str | None] = mapped_column(String(9), nullable=True)
    # Comma-separated weekday numbers, Monday=0
    default_weekdays: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def weekdays(self) -> tuple[int, ...]:
        if not self.default_weekdays:
            return ()
        return tuple(int(day) for day in self.default_weekdays.split(","))

    def __repr__(self) -> str:
        return f"<ShiftTemplate {self.name} {self.start_time:%H:%M}-{self.end_time:%H:%M}>"

    def to_dto(self) -> TemplateInfo:
        return TemplateInfo(
            id=self.id,
            business_id=self.business_id,
            name=self.name,
            shift_type=ShiftType(self.shift_type),
            start_time=self.start_time,
            end_time=self.end_time,
            break_minutes=self.break_minutes,
            color=self.color,
            default_weekdays=self.weekdays,
            is_active=self.is_active,
        )
