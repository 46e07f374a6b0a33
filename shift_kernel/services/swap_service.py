"""
ShiftSwapService -- shift-swap negotiation between employees.

Responsibility:
    An employee offers one of their shifts, optionally to a named colleague
    and optionally in exchange for one of the colleague's shifts.  The
    counterpart or merchant approves or rejects; the requester may cancel
    while the request is pending.  Approving an exchange swaps the two
    shifts' employees.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only; the status change
    and both reassignments land in the caller's single transaction.

Invariants enforced:
    - Lifecycle: pending -> approved | rejected | cancelled, all terminal.
      Every status change is a conditional UPDATE keyed on ``pending``, so
      a request is answered exactly once.
    - Only the shift's owner may offer it; only the requester may cancel.
    - Before an exchange is applied both shifts must still belong to the
      expected employees and neither employee may end up with an
      overlapping interval.  Otherwise nothing is changed.

Failure modes:
    - ShiftNotFoundError / SwapRequestNotFoundError.
    - SwapRequestNotPendingError on a second answer or late cancellation.
    - ValidationError for malformed requests or unsupported responses.
    - ShiftConflictError when the exchange would overlap another shift.
    - OptimisticLockError when a shift changed hands mid-swap.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from shift_kernel.domain.clock import Clock
from shift_kernel.domain.dtos import SwapRequestInfo
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.domain.values import SWAP_RESPONSE_STATUSES, SwapStatus
from shift_kernel.exceptions import (
    OptimisticLockError,
    ShiftConflictError,
    ShiftNotFoundError,
    SwapRequestNotFoundError,
    SwapRequestNotPendingError,
    ValidationError,
)
from shift_kernel.logging_config import get_logger
from shift_kernel.models.shift import Shift
from shift_kernel.models.swap import ShiftSwapRequest
from shift_kernel.selectors.swap_selector import SwapSelector
from shift_kernel.services.base import BaseService
from shift_kernel.services.rules_service import SchedulingRules

logger = get_logger("services.swap")


class ShiftSwapService(BaseService[ShiftSwapRequest]):
    """Swap request state machine."""

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: AttendancePolicy | None = None,
    ):
        super().__init__(session, clock, policy)
        self._rules = SchedulingRules(session, self._policy)
        self._selector = SwapSelector(session)

    def create_swap_request(
        self,
        employee_id: UUID,
        shift_id: UUID,
        target_employee_id: UUID | None = None,
        offered_shift_id: UUID | None = None,
        message: str | None = None,
        requires_merchant_approval: bool = True,
    ) -> SwapRequestInfo:
        """
        Offer ``shift_id`` for swapping.

        Raises:
            ShiftNotFoundError: The shift is unknown, inactive or not the
                requester's, or the offered shift is unknown or belongs to
                another business.
            ValidationError: Offering a shift without naming its owner, or
                targeting oneself.
        """
        shift = self.session.get(Shift, shift_id)
        if shift is None or shift.employee_id != employee_id or not shift.is_active:
            raise ShiftNotFoundError(str(shift_id))

        if target_employee_id is not None and target_employee_id == employee_id:
            raise ValidationError("target_employee_id", "cannot swap with yourself")

        if offered_shift_id is not None:
            if target_employee_id is None:
                raise ValidationError("offered_shift_id", "requires a target employee")
            if offered_shift_id == shift_id:
                raise ValidationError("offered_shift_id", "must differ from the requested shift")
            offered = self.session.get(Shift, offered_shift_id)
            if offered is None or offered.business_id != shift.business_id or not offered.is_active:
                raise ShiftNotFoundError(str(offered_shift_id))
            if offered.employee_id != target_employee_id:
                raise ValidationError("offered_shift_id", "must belong to the target employee")

        request = ShiftSwapRequest(
            business_id=shift.business_id,
            shift_id=shift.id,
            requesting_employee_id=employee_id,
            target_employee_id=target_employee_id,
            offered_shift_id=offered_shift_id,
            message=message,
            status=SwapStatus.PENDING.value,
            requires_merchant_approval=requires_merchant_approval,
            created_by_id=employee_id,
        )
        self.session.add(request)
        self.session.flush()

        logger.info(
            "shift_swap_requested",
            extra={
                "swap_request_id": str(request.id),
                "shift_id": str(shift_id),
                "target_employee_id": str(target_employee_id) if target_employee_id else None,
                "offered_shift_id": str(offered_shift_id) if offered_shift_id else None,
            },
        )
        return request.to_dto()

    def respond_to_swap_request(
        self,
        swap_request_id: UUID,
        business_id: UUID,
        responder_id: UUID,
        status: SwapStatus,
        response_message: str | None = None,
    ) -> SwapRequestInfo:
        """
        Approve or reject a pending request.

        Approving a request that names both a target employee and an
        offered shift exchanges the two shifts' employees.
        """
        request = self._get_for_business(swap_request_id, business_id)
        status = SwapStatus(status)
        if status not in SWAP_RESPONSE_STATUSES:
            raise ValidationError("status", f"cannot respond with {status.value}")
        self._ensure_pending(request)

        exchange = None
        if (
            status is SwapStatus.APPROVED
            and request.target_employee_id is not None
            and request.offered_shift_id is not None
        ):
            exchange = self._prepare_exchange(request)

        now = self._clock.now_utc()
        values = {
            "status": status.value,
            "response_message": response_message,
            "responded_at": now,
            "updated_by_id": responder_id,
        }
        if status is SwapStatus.APPROVED:
            values["approved_by_id"] = responder_id
        self._move(request, values)

        if exchange is not None:
            shift, offered = exchange
            self._reassign(shift, request.requesting_employee_id, request.target_employee_id, responder_id)
            self._reassign(offered, request.target_employee_id, request.requesting_employee_id, responder_id)

        logger.info(
            f"shift_swap_{status.value}",
            extra={
                "swap_request_id": str(swap_request_id),
                "responder_id": str(responder_id),
                "shifts_exchanged": exchange is not None,
            },
        )
        return request.to_dto()

    def cancel_swap_request(self, swap_request_id: UUID, employee_id: UUID) -> SwapRequestInfo:
        request = self.session.get(ShiftSwapRequest, swap_request_id)
        if request is None or request.requesting_employee_id != employee_id:
            raise SwapRequestNotFoundError(str(swap_request_id))
        self._ensure_pending(request)

        self._move(
            request,
            {
                "status": SwapStatus.CANCELLED.value,
                "responded_at": self._clock.now_utc(),
                "updated_by_id": employee_id,
            },
        )
        logger.info("shift_swap_cancelled", extra={"swap_request_id": str(swap_request_id)})
        return request.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_swap_request(
        self,
        swap_request_id: UUID,
        business_id: UUID | None = None,
        employee_id: UUID | None = None,
    ) -> SwapRequestInfo:
        """A request by id, visible to its business and to both employees."""
        found = self._selector.get(swap_request_id)
        if found is None:
            raise SwapRequestNotFoundError(str(swap_request_id))
        if business_id is not None and found.business_id != business_id:
            raise SwapRequestNotFoundError(str(swap_request_id))
        if employee_id is not None and employee_id not in (
            found.requesting_employee_id,
            found.target_employee_id,
        ):
            raise SwapRequestNotFoundError(str(swap_request_id))
        return found

    def list_swap_requests(
        self,
        business_id: UUID,
        status: SwapStatus | None = None,
    ) -> list[SwapRequestInfo]:
        return self._selector.list_for_business(business_id, status)

    def list_sent_requests(self, employee_id: UUID) -> list[SwapRequestInfo]:
        return self._selector.sent_by(employee_id)

    def list_received_requests(self, employee_id: UUID) -> list[SwapRequestInfo]:
        return self._selector.received_by(employee_id)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get_for_business(self, swap_request_id: UUID, business_id: UUID) -> ShiftSwapRequest:
        request = self.session.get(ShiftSwapRequest, swap_request_id)
        if request is None or request.business_id != business_id:
            raise SwapRequestNotFoundError(str(swap_request_id))
        return request

    @staticmethod
    def _ensure_pending(request: ShiftSwapRequest) -> None:
        if request.status != SwapStatus.PENDING.value:
            logger.warning(
                "shift_swap_rejected_not_pending",
                extra={"swap_request_id": str(request.id), "status": request.status},
            )
            raise SwapRequestNotPendingError(str(request.id), request.status)

    def _move(self, request: ShiftSwapRequest, values: dict) -> None:
        applied = self._transition(
            ShiftSwapRequest,
            request.id,
            (ShiftSwapRequest.status == SwapStatus.PENDING.value,),
            values,
        )
        if not applied:
            current = self._reload(ShiftSwapRequest, request.id)
            raise SwapRequestNotPendingError(str(request.id), current.status)

    def _prepare_exchange(self, request: ShiftSwapRequest) -> tuple[Shift, Shift]:
        shift = self.session.get(Shift, request.shift_id)
        offered = self.session.get(Shift, request.offered_shift_id)
        if shift.employee_id != request.requesting_employee_id or not shift.is_active:
            raise ValidationError(
                "shift_id", "no longer assigned to the requesting employee"
            )
        if offered.employee_id != request.target_employee_id or not offered.is_active:
            raise ValidationError(
                "offered_shift_id", "no longer assigned to the target employee"
            )

        self._ensure_free(request.target_employee_id, shift, offered.id)
        self._ensure_free(request.requesting_employee_id, offered, shift.id)
        return shift, offered

    def _ensure_free(self, employee_id: UUID, incoming: Shift, outgoing_id: UUID) -> None:
        conflicts = [
            c
            for c in self._rules.find_conflicts(
                employee_id,
                incoming.shift_date,
                incoming.start_time,
                incoming.end_time,
                exclude_shift_id=incoming.id,
            )
            if c.shift_id != outgoing_id
        ]
        if conflicts:
            logger.warning(
                "shift_swap_conflict_detected",
                extra={"employee_id": str(employee_id), "shift_id": str(incoming.id)},
            )
            raise ShiftConflictError(str(employee_id), incoming.shift_date, conflicts)

    def _reassign(self, shift: Shift, from_id: UUID, to_id: UUID, actor_id: UUID) -> None:
        applied = self._transition(
            Shift,
            shift.id,
            (Shift.employee_id == from_id,),
            {"employee_id": to_id, "version": Shift.version + 1, "updated_by_id": actor_id},
        )
        if not applied:
            raise OptimisticLockError("Shift", str(shift.id))
