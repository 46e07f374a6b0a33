"""
Module: shift_kernel.selectors.template_selector
Responsibility: Read-only queries over shift templates.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from shift_kernel.domain.dtos import TemplateInfo
from shift_kernel.models.shift import ShiftTemplate
from shift_kernel.selectors.base import BaseSelector


class TemplateSelector(BaseSelector[ShiftTemplate]):

    def get(self, template_id: UUID) -> TemplateInfo | None:
        return self._get_dto(ShiftTemplate, template_id)

    def list_for_business(
        self,
        business_id: UUID,
        include_inactive: bool = False,
    ) -> list[TemplateInfo]:
        stmt = select(ShiftTemplate).where(ShiftTemplate.business_id == business_id)
        if not include_inactive:
            stmt = stmt.where(ShiftTemplate.is_active.is_(True))
        stmt = stmt.order_by(ShiftTemplate.name)
        return self._all(stmt)
