"""
Module: shift_kernel.models.swap
Responsibility: ORM persistence for shift swap requests between employees.
Architecture position: Kernel > Models.  May import from db/ and
    domain/dtos + domain/values only.

Invariants enforced:
    - Status follows ``SWAP_TRANSITIONS``: pending, then exactly one of
      approved / rejected / cancelled.  Terminal states never change.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shift_kernel.db.base import TrackedBase
from shift_kernel.db.types import UUIDString
from shift_kernel.domain.dtos import SwapRequestInfo
from shift_kernel.domain.values import SwapStatus


class ShiftSwapRequest(TrackedBase):
    """Request to hand over (or exchange) a shift."""

    __tablename__ = "shift_swap_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled')",
            name="ck_shift_swap_requests_valid_status",
        ),
        Index("idx_shift_swap_requests_business", "business_id", "status"),
        Index("idx_shift_swap_requests_requester", "requesting_employee_id"),
        Index("idx_shift_swap_requests_target", "target_employee_id"),
    )

    business_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    shift_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("shifts.id"), nullable=False,
    )
    requesting_employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    target_employee_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    offered_shift_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("shifts.id"), nullable=True,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SwapStatus.PENDING.value,
    )
    response_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    requires_merchant_approval: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<ShiftSwapRequest {self.id} shift={self.shift_id} status={self.status}>"

    def to_dto(self) -> SwapRequestInfo:
        return SwapRequestInfo(
            id=self.id,
            business_id=self.business_id,
            shift_id=self.shift_id,
            requesting_employee_id=self.requesting_employee_id,
            target_employee_id=self.target_employee_id,
            offered_shift_id=self.offered_shift_id,
            message=self.message,
            status=SwapStatus(self.status),
            response_message=self.response_message,
            requires_merchant_approval=self.requires_merchant_approval,
            approved_by_id=self.approved_by_id,
            responded_at=self.responded_at,
        )
