"""
Module: shift_kernel.selectors.swap_selector
Responsibility: Read-only queries over shift swap requests: by id, by
    business, sent by an employee and received by an employee.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from shift_kernel.domain.dtos import SwapRequestInfo
from shift_kernel.domain.values import SwapStatus
from shift_kernel.models.swap import ShiftSwapRequest
from shift_kernel.selectors.base import BaseSelector


class SwapSelector(BaseSelector[ShiftSwapRequest]):

    def get(self, swap_request_id: UUID) -> SwapRequestInfo | None:
        return self._get_dto(ShiftSwapRequest, swap_request_id)

    def list_for_business(
        self,
        business_id: UUID,
        status: SwapStatus | None = None,
    ) -> list[SwapRequestInfo]:
        stmt = select(ShiftSwapRequest).where(ShiftSwapRequest.business_id == business_id)
        if status is not None:
            stmt = stmt.where(ShiftSwapRequest.status == status.value)
        stmt = stmt.order_by(ShiftSwapRequest.created_at.desc())
        return self._all(stmt)

    def sent_by(self, employee_id: UUID) -> list[SwapRequestInfo]:
        stmt = (
            select(ShiftSwapRequest)
            .where(ShiftSwapRequest.requesting_employee_id == employee_id)
            .order_by(ShiftSwapRequest.created_at.desc())
        )
        return self._all(stmt)

    def received_by(self, employee_id: UUID) -> list[SwapRequestInfo]:
        stmt = (
            select(ShiftSwapRequest)
            .where(ShiftSwapRequest.target_employee_id == employee_id)
            .order_by(ShiftSwapRequest.created_at.desc())
        )
        return self._all(stmt)
