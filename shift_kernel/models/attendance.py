"""
Module: shift_kernel.models.attendance
Responsibility: ORM persistence for the facts derived from attendance:
    anomalies, overtime records and employee corrections.
Architecture position: Kernel > Models.  May import from db/ and
    domain/dtos + domain/values only.

Invariants enforced:
    - Each record is created once per triggering event and afterwards only
      mutated to record resolution, classification or approval.
    - Anomaly severity is 1..3 (ck_shift_anomalies_severity).
    - Overtime minutes are positive (ck_overtime_records_positive).
"""

from __future__ import annotations

from datetime import date, datetime
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
)
from sqlalchemy.orm import Mapped, mapped_column

from shift_kernel.db.base import TrackedBase
from shift_kernel.db.types import UUIDString
from shift_kernel.domain.dtos import AnomalyInfo, CorrectionInfo, OvertimeInfo
from shift_kernel.domain.values import (
    AnomalyReason,
    AnomalyType,
    CorrectableField,
    CorrectionStatus,
    OvertimeType,
    ResolutionMethod,
)


class ShiftAnomaly(TrackedBase):
    """Deviation between scheduled and actual check-in or check-out."""

    __tablename__ = "shift_anomalies"

    __table_args__ = (
        CheckConstraint("severity BETWEEN 1 AND 3", name="ck_shift_anomalies_severity"),
        Index("idx_shift_anomalies_shift", "shift_id"),
        Index("idx_shift_anomalies_business_review", "business_id", "requires_merchant_review"),
    )

    shift_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("shifts.id"), nullable=False,
    )
    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    anomaly_type: Mapped[str] = mapped_column(String(30), nullable=False)
    severity: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    detected_at: Mapped[datetime] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(String(30), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resolution_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    requires_merchant_review: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    def __repr__(self) -> str:
        return f"<ShiftAnomaly {self.anomaly_type} severity={self.severity} shift={self.shift_id}>"

    def to_dto(self) -> AnomalyInfo:
        return AnomalyInfo(
            id=self.id,
            shift_id=self.shift_id,
            business_id=self.business_id,
            employee_id=self.employee_id,
            anomaly_type=AnomalyType(self.anomaly_type),
            severity=self.severity,
            message=self.message,
            reason=AnomalyReason(self.reason) if self.reason else None,
            notes=self.notes,
            is_resolved=self.is_resolved,
            resolution_method=(
                ResolutionMethod(self.resolution_method) if self.resolution_method else None
            ),
            resolved_at=self.resolved_at,
            requires_merchant_review=self.requires_merchant_review,
            detected_at=self.detected_at,
        )


class OvertimeRecord(TrackedBase):
    """Worked time beyond the expected hours of a shift."""

    __tablename__ = "overtime_records"

    __table_args__ = (
        CheckConstraint("minutes > 0", name="ck_overtime_records_positive"),
        Index("idx_overtime_records_shift", "shift_id"),
        Index("idx_overtime_records_employee_date", "employee_id", "shift_date"),
    )

    shift_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("shifts.id"), nullable=False,
    )
    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    overtime_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OvertimeType.PENDING.value,
    )
    is_auto_detected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<OvertimeRecord {self.minutes}min {self.overtime_type} shift={self.shift_id}>"

    def to_dto(self) -> OvertimeInfo:
        return OvertimeInfo(
            id=self.id,
            shift_id=self.shift_id,
            business_id=self.business_id,
            employee_id=self.employee_id,
            shift_date=self.shift_date,
            minutes=self.minutes,
            overtime_type=OvertimeType(self.overtime_type),
            is_auto_detected=self.is_auto_detected,
            is_approved=self.is_approved,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
            notes=self.notes,
        )


class ShiftCorrection(TrackedBase):
    """
    Employee request to change a recorded attendance fact.

    ``original_value`` snapshots the field at request time, whichever path
    (immediate or pending approval) the correction takes.
    """

    __tablename__ = "shift_corrections"

    __table_args__ = (
        CheckConstraint(
            "status IN ('applied', 'pending_approval', 'approved', 'rejected')",
            name="ck_shift_corrections_valid_status",
        ),
        Index("idx_shift_corrections_shift_field", "shift_id", "field"),
        Index("idx_shift_corrections_business_status", "business_id", "status"),
    )

    shift_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("shifts.id"), nullable=False,
    )
    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    field: Mapped[str] = mapped_column(String(30), nullable=False)
    original_value: Mapped[str | None] = mapped_column(String(64), nullable=True)
    new_value: Mapped[str] = mapped_column(String(64), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    within_window: Mapped[bool] = mapped_column(Boolean, nullable=False)
    requires_merchant_approval: Mapped[bool] = mapped_column(Boolean, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    reviewed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<ShiftCorrection {self.field} {self.status} shift={self.shift_id}>"

    def to_dto(self) -> CorrectionInfo:
        return CorrectionInfo(
            id=self.id,
            shift_id=self.shift_id,
            business_id=self.business_id,
            employee_id=self.employee_id,
            field=CorrectableField(self.field),
            original_value=self.original_value,
            new_value=self.new_value,
            reason=self.reason,
            within_window=self.within_window,
            requires_merchant_approval=self.requires_merchant_approval,
            status=CorrectionStatus(self.status),
            reviewed_by_id=self.reviewed_by_id,
            reviewed_at=self.reviewed_at,
        )
