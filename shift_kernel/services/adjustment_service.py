"""
AdjustmentService -- after-the-fact changes to recorded attendance.

Responsibility:
    - Anomaly resolution: the employee explains an anomaly; low-risk reasons
      clear the merchant-review requirement.
    - Overtime classification and approval.
    - Self-correction of check-in/check-out instants, applied immediately
      inside the self-correction window and queued for merchant approval
      outside it; plus the merchant's approve/reject of queued corrections.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - A correction record is created for every accepted request, with the
      original value snapshotted, whichever path it takes.
    - Applying a correction is a conditional UPDATE keyed on the shift
      version, so it cannot silently overwrite a concurrent check-out,
      validation sweep or another correction.
    - A corrected pair keeps check-out strictly after check-in.
    - Applying a check-out closes a break left open on the shift, at the
      corrected instant or now, whichever is earlier.
    - Re-submitting identical values is harmless; a different value while a
      correction for the same field is pending is rejected.
    - Approved overtime is frozen.

Failure modes:
    - AnomalyNotFoundError, OvertimeNotFoundError, CorrectionNotFoundError,
      ShiftNotFoundError for unknown or foreign ids.
    - ValidationError for malformed correction input.
    - ConflictingCorrectionError, CorrectionAlreadyResolvedError,
      OvertimeAlreadyApprovedError, OptimisticLockError.
"""

from datetime import UTC, datetime, time, timedelta
from uuid import UUID

from sqlalchemy import select

from shift_kernel.domain.attendance import (
    open_duration_minutes,
    requires_merchant_review,
    review_waived,
)
from shift_kernel.domain.dtos import AnomalyInfo, CorrectionInfo, OvertimeInfo
from shift_kernel.domain.values import (
    AnomalyReason,
    CorrectableField,
    CorrectionStatus,
    OvertimeType,
    ResolutionMethod,
    ValidationStatus,
)
from shift_kernel.exceptions import (
    AnomalyNotFoundError,
    ConflictingCorrectionError,
    CorrectionAlreadyResolvedError,
    CorrectionNotFoundError,
    OptimisticLockError,
    OvertimeAlreadyApprovedError,
    OvertimeNotFoundError,
    ShiftNotFoundError,
    ValidationError,
)
from shift_kernel.logging_config import get_logger
from shift_kernel.models.attendance import OvertimeRecord, ShiftAnomaly, ShiftCorrection
from shift_kernel.models.shift import Shift, ShiftBreak
from shift_kernel.selectors.attendance_selector import AttendanceSelector
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.base import BaseService

logger = get_logger("services.adjustment")

_FLAG_FOR_FIELD = {
    CorrectableField.CHECK_IN_AT: "is_checked_in",
    CorrectableField.CHECK_OUT_AT: "is_checked_out",
}


def parse_instant(value: datetime | str) -> datetime:
    """
    Normalise a correction value to an aware UTC datetime.

    Accepts a datetime or an ISO-8601 string.  Naive values are taken as
    UTC.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError("new_value", f"not an ISO-8601 instant: {value!r}") from None
    if not isinstance(value, datetime):
        raise ValidationError("new_value", "must be a datetime or ISO-8601 string")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class AdjustmentService(BaseService[Shift]):
    """
    Post-hoc adjustments: anomaly resolution, overtime and corrections.

    Employee-facing methods take the employee id and only touch that
    employee's records; merchant-facing methods take the business id.
    """

    # ------------------------------------------------------------------
    # Anomalies
    # ------------------------------------------------------------------

    def resolve_anomaly(
        self,
        anomaly_id: UUID,
        employee_id: UUID,
        reason: AnomalyReason,
        notes: str | None = None,
    ) -> AnomalyInfo:
        """
        Record the employee's explanation and mark the anomaly resolved.

        Reasons in the policy's waiver set clear the merchant-review
        requirement (for critical anomalies only when the policy allows
        it); any other reason leaves the requirement as computed from the
        severity.
        """
        anomaly = self.session.get(ShiftAnomaly, anomaly_id)
        if anomaly is None or anomaly.employee_id != employee_id:
            raise AnomalyNotFoundError(str(anomaly_id))

        reason = AnomalyReason(reason)
        waived = review_waived(reason, anomaly.severity, self._policy)

        anomaly.reason = reason.value
        anomaly.notes = notes
        anomaly.is_resolved = True
        anomaly.resolved_at = self._clock.now_utc()
        anomaly.resolution_method = (
            ResolutionMethod.AUTO_WAIVED if waived else ResolutionMethod.EMPLOYEE_EXPLANATION
        ).value
        anomaly.requires_merchant_review = (
            False if waived else requires_merchant_review(anomaly.severity, self._policy)
        )
        anomaly.updated_by_id = employee_id
        self.session.flush()

        logger.info(
            "anomaly_resolved",
            extra={
                "anomaly_id": str(anomaly_id),
                "reason": reason.value,
                "review_waived": waived,
            },
        )
        return anomaly.to_dto()

    def get_anomaly(self, anomaly_id: UUID, business_id: UUID) -> AnomalyInfo:
        found = AttendanceSelector(self.session).get_anomaly(anomaly_id)
        if found is None or found.business_id != business_id:
            raise AnomalyNotFoundError(str(anomaly_id))
        return found

    def list_anomalies_requiring_review(self, business_id: UUID) -> list[AnomalyInfo]:
        return AttendanceSelector(self.session).anomalies_requiring_review(business_id)

    # ------------------------------------------------------------------
    # Overtime
    # ------------------------------------------------------------------

    def classify_overtime(
        self,
        overtime_id: UUID,
        employee_id: UUID,
        overtime_type: OvertimeType,
        notes: str | None = None,
    ) -> OvertimeInfo:
        """
        Set how an overtime record is compensated.  Minutes are untouched.

        Raises:
            OvertimeAlreadyApprovedError: The record was approved and the
                requested values differ from the stored ones.
        """
        record = self.session.get(OvertimeRecord, overtime_id)
        if record is None or record.employee_id != employee_id:
            raise OvertimeNotFoundError(str(overtime_id))

        overtime_type = OvertimeType(overtime_type)
        if record.overtime_type == overtime_type.value and record.notes == notes:
            return record.to_dto()
        if record.is_approved:
            raise OvertimeAlreadyApprovedError(str(overtime_id))

        applied = self._transition(
            OvertimeRecord,
            record.id,
            (OvertimeRecord.is_approved.is_(False),),
            {
                "overtime_type": overtime_type.value,
                "notes": notes,
                "updated_by_id": employee_id,
            },
        )
        if not applied:
            raise OvertimeAlreadyApprovedError(str(overtime_id))

        logger.info(
            "overtime_classified",
            extra={"overtime_id": str(overtime_id), "overtime_type": overtime_type.value},
        )
        return record.to_dto()

    def approve_overtime(
        self,
        overtime_id: UUID,
        business_id: UUID,
        approver_id: UUID,
    ) -> OvertimeInfo:
        """Stamp merchant approval.  Approving twice keeps the first stamp."""
        record = self.session.get(OvertimeRecord, overtime_id)
        if record is None or record.business_id != business_id:
            raise OvertimeNotFoundError(str(overtime_id))
        if record.is_approved:
            return record.to_dto()

        applied = self._transition(
            OvertimeRecord,
            record.id,
            (OvertimeRecord.is_approved.is_(False),),
            {
                "is_approved": True,
                "approved_by_id": approver_id,
                "approved_at": self._clock.now_utc(),
                "updated_by_id": approver_id,
            },
        )
        if not applied:
            self._reload(OvertimeRecord, record.id)
            return record.to_dto()

        logger.info(
            "overtime_approved",
            extra={"overtime_id": str(overtime_id), "approver_id": str(approver_id)},
        )
        return record.to_dto()

    def get_overtime(self, overtime_id: UUID, business_id: UUID) -> OvertimeInfo:
        found = AttendanceSelector(self.session).get_overtime(overtime_id)
        if found is None or found.business_id != business_id:
            raise OvertimeNotFoundError(str(overtime_id))
        return found

    # ------------------------------------------------------------------
    # Corrections
    # ------------------------------------------------------------------

    def correct_shift(
        self,
        employee_id: UUID,
        shift_id: UUID,
        field: CorrectableField,
        new_value: datetime | str,
        reason: str,
    ) -> CorrectionInfo:
        """
        Request a change to the shift's check-in or check-out instant.

        Inside the self-correction window (measured from midnight UTC of
        the shift date) the change is applied at once and the shift becomes
        ``self_corrected``.  Outside it the request waits for merchant
        approval and the shift is not touched.
        """
        shift = self.session.execute(
            select(Shift).where(Shift.id == shift_id)
        ).scalar_one_or_none()
        if shift is None or shift.employee_id != employee_id:
            raise ShiftNotFoundError(str(shift_id))

        try:
            field = CorrectableField(field)
        except ValueError:
            raise ValidationError("field", f"{field!r} cannot be corrected") from None
        if not reason or not reason.strip():
            raise ValidationError("reason", "must not be empty")

        instant = parse_instant(new_value)
        encoded = instant.isoformat()
        self._check_pair(shift, field, instant)

        pending = self._pending_for(shift.id, field)
        if pending is not None:
            if pending.new_value == encoded:
                return pending.to_dto()
            logger.warning(
                "correction_rejected_conflicting_pending",
                extra={"shift_id": str(shift_id), "field": field.value},
            )
            raise ConflictingCorrectionError(str(shift_id), field.value, str(pending.id))

        current = getattr(shift, field.value)
        if current is not None and current == instant:
            previous = self._latest_applied(shift.id, field, encoded)
            if previous is not None:
                return previous.to_dto()

        now = self._clock.now_utc()
        window_start = datetime.combine(shift.shift_date, time.min, tzinfo=UTC)
        within_window = now - window_start <= timedelta(
            hours=self._policy.self_correction_window_hours
        )

        correction = ShiftCorrection(
            shift_id=shift.id,
            business_id=shift.business_id,
            employee_id=employee_id,
            field=field.value,
            original_value=current.isoformat() if current is not None else None,
            new_value=encoded,
            reason=reason.strip(),
            within_window=within_window,
            requires_merchant_approval=not within_window,
            status=(
                CorrectionStatus.APPLIED if within_window else CorrectionStatus.PENDING_APPROVAL
            ).value,
            created_by_id=employee_id,
        )

        if within_window:
            self._apply(
                shift,
                field,
                instant,
                {
                    "validation_status": ValidationStatus.SELF_CORRECTED.value,
                    "updated_by_id": employee_id,
                },
            )

        self.session.add(correction)
        self.session.flush()

        logger.info(
            "shift_correction_recorded",
            extra={
                "shift_id": str(shift_id),
                "correction_id": str(correction.id),
                "field": field.value,
                "within_window": within_window,
                "status": correction.status,
            },
        )
        return correction.to_dto()

    def approve_correction(
        self,
        correction_id: UUID,
        business_id: UUID,
        reviewer_id: UUID,
    ) -> CorrectionInfo:
        """Apply a pending correction; the shift becomes ``manually_approved``."""
        correction = self._get_for_business(correction_id, business_id)
        self._ensure_pending(correction)

        shift = self.session.get(Shift, correction.shift_id)
        field = CorrectableField(correction.field)
        instant = parse_instant(correction.new_value)
        self._check_pair(shift, field, instant)

        now = self._clock.now_utc()
        self._close_correction(correction, CorrectionStatus.APPROVED, reviewer_id, now)
        self._apply(
            shift,
            field,
            instant,
            {
                "validation_status": ValidationStatus.MANUALLY_APPROVED.value,
                "validated_by_id": reviewer_id,
                "validated_at": now,
                "updated_by_id": reviewer_id,
            },
        )

        logger.info(
            "shift_correction_approved",
            extra={"correction_id": str(correction_id), "reviewer_id": str(reviewer_id)},
        )
        return correction.to_dto()

    def reject_correction(
        self,
        correction_id: UUID,
        business_id: UUID,
        reviewer_id: UUID,
    ) -> CorrectionInfo:
        correction = self._get_for_business(correction_id, business_id)
        self._ensure_pending(correction)
        self._close_correction(
            correction, CorrectionStatus.REJECTED, reviewer_id, self._clock.now_utc()
        )

        logger.info(
            "shift_correction_rejected",
            extra={"correction_id": str(correction_id), "reviewer_id": str(reviewer_id)},
        )
        return correction.to_dto()

    def get_correction(self, correction_id: UUID, business_id: UUID) -> CorrectionInfo:
        found = AttendanceSelector(self.session).get_correction(correction_id)
        if found is None or found.business_id != business_id:
            raise CorrectionNotFoundError(str(correction_id))
        return found

    def list_pending_corrections(self, business_id: UUID) -> list[CorrectionInfo]:
        return AttendanceSelector(self.session).pending_corrections(business_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _check_pair(shift: Shift, field: CorrectableField, instant: datetime) -> None:
        if field is CorrectableField.CHECK_IN_AT:
            check_in, check_out = instant, shift.check_out_at
        else:
            if shift.check_in_at is None:
                raise ValidationError(
                    "field", "check-out cannot be corrected before a check-in exists"
                )
            check_in, check_out = shift.check_in_at, instant
        if check_out is not None and check_out <= check_in:
            raise ValidationError("new_value", "check-out must be after check-in")

    def _apply(
        self,
        shift: Shift,
        field: CorrectableField,
        instant: datetime,
        extra_values: dict,
    ) -> None:
        values = {
            field.value: instant,
            _FLAG_FOR_FIELD[field]: True,
            "version": Shift.version + 1,
            **extra_values,
        }
        expected_version = shift.version
        if not self._transition(Shift, shift.id, (Shift.version == expected_version,), values):
            logger.warning("correction_lost_race", extra={"shift_id": str(shift.id)})
            raise OptimisticLockError("Shift", str(shift.id))
        if field is CorrectableField.CHECK_OUT_AT:
            self._close_open_break(shift.id, instant)

    def _close_open_break(self, shift_id: UUID, check_out_at: datetime) -> None:
        open_break = ShiftSelector(self.session).open_break(shift_id)
        if open_break is None:
            return
        ended_at = max(open_break.started_at, min(self._clock.now_utc(), check_out_at))
        duration = open_duration_minutes(open_break.started_at, ended_at)
        closed = self._transition(
            ShiftBreak,
            open_break.id,
            (ShiftBreak.ended_at.is_(None),),
            {
                "ended_at": ended_at,
                "duration_minutes": duration,
                "is_short_break": duration < self._policy.short_break_minutes,
            },
        )
        if closed:
            logger.info(
                "break_closed_by_correction",
                extra={"shift_id": str(shift_id), "break_id": str(open_break.id)},
            )

    def _pending_for(self, shift_id: UUID, field: CorrectableField) -> ShiftCorrection | None:
        return self.session.scalars(
            select(ShiftCorrection).where(
                ShiftCorrection.shift_id == shift_id,
                ShiftCorrection.field == field.value,
                ShiftCorrection.status == CorrectionStatus.PENDING_APPROVAL.value,
            )
        ).first()

    def _latest_applied(
        self,
        shift_id: UUID,
        field: CorrectableField,
        encoded: str,
    ) -> ShiftCorrection | None:
        return self.session.scalars(
            select(ShiftCorrection)
            .where(
                ShiftCorrection.shift_id == shift_id,
                ShiftCorrection.field == field.value,
                ShiftCorrection.new_value == encoded,
                ShiftCorrection.status.in_(
                    (CorrectionStatus.APPLIED.value, CorrectionStatus.APPROVED.value)
                ),
            )
            .order_by(ShiftCorrection.created_at.desc())
        ).first()

    def _get_for_business(self, correction_id: UUID, business_id: UUID) -> ShiftCorrection:
        correction = self.session.get(ShiftCorrection, correction_id)
        if correction is None or correction.business_id != business_id:
            raise CorrectionNotFoundError(str(correction_id))
        return correction

    @staticmethod
    def _ensure_pending(correction: ShiftCorrection) -> None:
        if correction.status != CorrectionStatus.PENDING_APPROVAL.value:
            raise CorrectionAlreadyResolvedError(str(correction.id), correction.status)

    def _close_correction(
        self,
        correction: ShiftCorrection,
        status: CorrectionStatus,
        reviewer_id: UUID,
        now: datetime,
    ) -> None:
        applied = self._transition(
            ShiftCorrection,
            correction.id,
            (ShiftCorrection.status == CorrectionStatus.PENDING_APPROVAL.value,),
            {
                "status": status.value,
                "reviewed_by_id": reviewer_id,
                "reviewed_at": now,
                "updated_by_id": reviewer_id,
            },
        )
        if not applied:
            current = self._reload(ShiftCorrection, correction.id)
            raise CorrectionAlreadyResolvedError(str(correction.id), current.status)
