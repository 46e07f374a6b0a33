"""
Auto-validation sweep and merchant batch approval.
"""

from uuid import uuid4

from shift_kernel.domain.values import ValidationStatus
from tests.helpers import TODAY, YESTERDAY, at


class TestAutoValidation:

    def test_punctual_shift_is_auto_approved(
        self, completed_shift, validation_service, shift_service, clock, captured_logs, business_id
    ):
        shift = completed_shift(
            check_in_at=at(YESTERDAY, 9, 10),
            check_out_at=at(YESTERDAY, 16, 50),
        )

        assert validation_service.auto_validate_shifts(business_id) == 1

        found = shift_service.get_shift(shift.id)
        assert found.validation_status is ValidationStatus.AUTO_APPROVED
        assert found.validated_at == clock.now_utc()
        assert found.validated_by_id is None
        assert found.version == 2

        summary = [r for r in captured_logs() if r["message"] == "auto_validation_completed"][0]
        assert summary["validated_count"] == 1
        assert summary["target_date"] == YESTERDAY.isoformat()

    def test_late_shift_left_pending(self, completed_shift, validation_service, shift_service, business_id):
        late_in = completed_shift(check_in_at=at(YESTERDAY, 9, 20))
        late_out = completed_shift(
            start_time=at(YESTERDAY, 18).time(),
            end_time=at(YESTERDAY, 22).time(),
            check_in_at=at(YESTERDAY, 18),
            check_out_at=at(YESTERDAY, 22, 30),
        )

        assert validation_service.auto_validate_shifts(business_id) == 0
        for shift in (late_in, late_out):
            assert shift_service.get_shift(shift.id).validation_status is ValidationStatus.PENDING

    def test_only_pending_shifts_of_the_business_on_the_date(
        self, completed_shift, make_shift, validation_service, business_id, other_business_id
    ):
        completed_shift(validation_status=ValidationStatus.REQUIRES_REVIEW)
        completed_shift(business_id=other_business_id)
        completed_shift(shift_date=TODAY)
        make_shift(shift_date=YESTERDAY)

        assert validation_service.auto_validate_shifts(business_id) == 0

    def test_explicit_target_date(self, completed_shift, validation_service, business_id):
        completed_shift(shift_date=TODAY)
        assert validation_service.auto_validate_shifts(business_id, target_date=TODAY) == 1

    def test_sweep_is_idempotent(self, completed_shift, validation_service, business_id):
        completed_shift()
        assert validation_service.auto_validate_shifts(business_id) == 1
        assert validation_service.auto_validate_shifts(business_id) == 0


class TestBatchApproval:

    def test_approves_only_own_business(
        self, completed_shift, validation_service, shift_service, business_id, other_business_id, actor_id, clock
    ):
        mine = completed_shift(validation_status=ValidationStatus.REQUIRES_REVIEW)
        theirs = completed_shift(business_id=other_business_id)

        approved = validation_service.batch_approve_shifts(
            business_id, [mine.id, theirs.id, uuid4(), mine.id], actor_id
        )

        assert approved == 1
        found = shift_service.get_shift(mine.id)
        assert found.validation_status is ValidationStatus.MANUALLY_APPROVED
        assert found.validated_by_id == actor_id
        assert found.validated_at == clock.now_utc()
        assert shift_service.get_shift(theirs.id).validation_status is ValidationStatus.PENDING

    def test_empty_batch(self, validation_service, business_id, actor_id):
        assert validation_service.batch_approve_shifts(business_id, [], actor_id) == 0

    def test_review_queue(self, make_shift, work_shift, validation_service, business_id, actor_id):
        shift = make_shift()
        work_shift(shift, at(TODAY, 9), at(TODAY, 17, 40))

        queue = validation_service.list_requiring_review(business_id)
        assert [s.id for s in queue] == [shift.id]
        assert validation_service.list_requiring_review(business_id, YESTERDAY) == []

        validation_service.batch_approve_shifts(business_id, [shift.id], actor_id)
        assert validation_service.list_requiring_review(business_id) == []
