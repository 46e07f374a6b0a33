"""
Module: shift_kernel.selectors.attendance_selector
Responsibility: Read-only queries over anomalies, overtime records and
    corrections.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select

from shift_kernel.domain.dtos import AnomalyInfo, CorrectionInfo, OvertimeInfo
from shift_kernel.domain.values import CorrectionStatus
from shift_kernel.models.attendance import OvertimeRecord, ShiftAnomaly, ShiftCorrection
from shift_kernel.selectors.base import BaseSelector


class AttendanceSelector(BaseSelector[ShiftAnomaly]):
    """Read-only access to attendance facts derived from shifts."""

    def get_anomaly(self, anomaly_id: UUID) -> AnomalyInfo | None:
        return self._get_dto(ShiftAnomaly, anomaly_id)

    def anomalies_for_shift(self, shift_id: UUID) -> list[AnomalyInfo]:
        stmt = (
            select(ShiftAnomaly)
            .where(ShiftAnomaly.shift_id == shift_id)
            .order_by(ShiftAnomaly.detected_at)
        )
        return self._all(stmt)

    def anomalies_requiring_review(self, business_id: UUID) -> list[AnomalyInfo]:
        stmt = (
            select(ShiftAnomaly)
            .where(
                ShiftAnomaly.business_id == business_id,
                ShiftAnomaly.requires_merchant_review.is_(True),
            )
            .order_by(ShiftAnomaly.detected_at)
        )
        return self._all(stmt)

    def get_overtime(self, overtime_id: UUID) -> OvertimeInfo | None:
        return self._get_dto(OvertimeRecord, overtime_id)

    def overtime_for_shift(self, shift_id: UUID) -> list[OvertimeInfo]:
        stmt = select(OvertimeRecord).where(OvertimeRecord.shift_id == shift_id)
        return self._all(stmt)

    def overtime_minutes_between(
        self,
        employee_id: UUID,
        start_date: date,
        end_date: date,
    ) -> int:
        """Recorded overtime minutes for shifts dated in ``[start_date, end_date)``."""
        stmt = select(func.coalesce(func.sum(OvertimeRecord.minutes), 0)).where(
            OvertimeRecord.employee_id == employee_id,
            OvertimeRecord.shift_date >= start_date,
            OvertimeRecord.shift_date < end_date,
        )
        return int(self.session.scalar(stmt) or 0)

    def get_correction(self, correction_id: UUID) -> CorrectionInfo | None:
        return self._get_dto(ShiftCorrection, correction_id)

    def corrections_for_shift(self, shift_id: UUID) -> list[CorrectionInfo]:
        stmt = (
            select(ShiftCorrection)
            .where(ShiftCorrection.shift_id == shift_id)
            .order_by(ShiftCorrection.created_at)
        )
        return self._all(stmt)

    def pending_corrections(self, business_id: UUID) -> list[CorrectionInfo]:
        stmt = select(ShiftCorrection).where(
            ShiftCorrection.business_id == business_id,
            ShiftCorrection.status == CorrectionStatus.PENDING_APPROVAL.value,
        )
        return self._all(stmt)
