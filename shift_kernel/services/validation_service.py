"""
ValidationService -- auto-validation sweep and batch approval.

Responsibility:
    Finalises the validation status of completed shifts.  The sweep
    auto-approves shifts whose check-in and check-out both landed within
    the tolerance window; the batch operation lets a merchant approve a
    selection of shifts by hand.

Architecture position:
    Kernel > Services -- imperative shell.  Triggered by an external
    scheduler per business and date; never runs in the background.

Invariants enforced:
    - The sweep only moves ``pending`` shifts and never touches
      ``requires_review``; each move is a conditional UPDATE keyed on
      ``validation_status = 'pending'`` so it cannot overwrite a
      concurrent correction or manual approval.
    - Batch approval ignores ids that do not exist or belong to another
      business.

Failure modes:
    - None per item.  Ineligible shifts are skipped and counted out.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select, update

from shift_kernel.domain.attendance import within_tolerance
from shift_kernel.domain.dtos import ShiftInfo
from shift_kernel.domain.intervals import scheduled_bounds
from shift_kernel.domain.values import ValidationStatus
from shift_kernel.logging_config import get_logger
from shift_kernel.models.shift import Shift
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.base import BaseService

logger = get_logger("services.validation")


class ValidationService(BaseService[Shift]):
    """Validation decisions taken after the shift is over."""

    def auto_validate_shifts(self, business_id: UUID, target_date: date | None = None) -> int:
        """
        Auto-approve the business's completed pending shifts on a date.

        Args:
            business_id: Business to sweep.
            target_date: Shift date to sweep; yesterday (UTC) when omitted.

        Returns:
            Number of shifts moved to ``auto_approved``.
        """
        target = target_date or (self._clock.today_utc() - timedelta(days=1))
        candidates = self.session.scalars(
            select(Shift).where(
                Shift.business_id == business_id,
                Shift.shift_date == target,
                Shift.is_active.is_(True),
                Shift.is_checked_in.is_(True),
                Shift.is_checked_out.is_(True),
                Shift.validation_status == ValidationStatus.PENDING.value,
            )
        ).all()

        now = self._clock.now_utc()
        validated = 0
        left_pending = 0
        for shift in candidates:
            start, end = scheduled_bounds(shift.shift_date, shift.start_time, shift.end_time)
            if not (
                within_tolerance(start, shift.check_in_at, self._policy)
                and within_tolerance(end, shift.check_out_at, self._policy)
            ):
                left_pending += 1
                continue

            applied = self._transition(
                Shift,
                shift.id,
                (Shift.validation_status == ValidationStatus.PENDING.value,),
                {
                    "validation_status": ValidationStatus.AUTO_APPROVED.value,
                    "validated_at": now,
                    "validated_by_id": None,
                    "version": Shift.version + 1,
                },
            )
            if applied:
                validated += 1
            else:
                logger.warning(
                    "auto_validation_skipped_concurrent_change",
                    extra={"shift_id": str(shift.id)},
                )

        logger.info(
            "auto_validation_completed",
            extra={
                "business_id": str(business_id),
                "target_date": target.isoformat(),
                "candidate_count": len(candidates),
                "validated_count": validated,
                "left_pending_count": left_pending,
            },
        )
        return validated

    def batch_approve_shifts(
        self,
        business_id: UUID,
        shift_ids: Iterable[UUID],
        approver_id: UUID,
    ) -> int:
        """
        Mark the given shifts ``manually_approved``.

        Returns the number of shifts found and approved; unknown ids and
        shifts of other businesses are ignored.
        """
        ids = list(dict.fromkeys(shift_ids))
        if not ids:
            return 0

        now = self._clock.now_utc()
        result = self.session.execute(
            update(Shift)
            .where(Shift.business_id == business_id, Shift.id.in_(ids))
            .values(
                validation_status=ValidationStatus.MANUALLY_APPROVED.value,
                validated_by_id=approver_id,
                validated_at=now,
                version=Shift.version + 1,
                updated_by_id=approver_id,
            )
            .execution_options(synchronize_session=False)
        )
        approved = result.rowcount
        for shift in self.session.scalars(select(Shift).where(Shift.id.in_(ids))):
            self.session.refresh(shift)

        logger.info(
            "shifts_batch_approved",
            extra={
                "business_id": str(business_id),
                "requested_count": len(ids),
                "approved_count": approved,
                "approver_id": str(approver_id),
            },
        )
        return approved

    def list_requiring_review(
        self,
        business_id: UUID,
        shift_date: date | None = None,
    ) -> list[ShiftInfo]:
        return ShiftSelector(self.session).requiring_review(business_id, shift_date)
