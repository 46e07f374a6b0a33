"""
ShiftTemplateService -- reusable shift patterns and bulk creation.

Responsibility:
    Manages shift templates and stamps them onto a date range.  Bulk
    creation never fails as a whole because of one day: days that would
    conflict with an existing shift of the employee, or breach their
    working-hour limit, are skipped and reported back.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.  Creates shifts
    through ShiftService so every created shift passes the same gate as a
    hand-made one.

Invariants enforced:
    - Weekday filter: explicit argument, else the template's default
      weekdays, else every day in the range.
    - A skipped day leaves nothing behind in the session.

Failure modes:
    - ShiftTemplateNotFoundError: unknown template, or another business's.
    - ValidationError: malformed template schedule, weekdays outside 0..6,
      or an empty/inverted date range.
"""

from collections.abc import Iterable
from datetime import date, time
from uuid import UUID

from sqlalchemy.orm import Session

from shift_kernel.domain.clock import Clock
from shift_kernel.domain.dtos import SkippedDate, TemplateExpansionResult, TemplateInfo
from shift_kernel.domain.intervals import iter_dates
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.domain.values import ShiftType
from shift_kernel.exceptions import (
    LimitExceededError,
    ShiftConflictError,
    ShiftTemplateNotFoundError,
    ValidationError,
)
from shift_kernel.logging_config import get_logger
from shift_kernel.models.shift import ShiftTemplate
from shift_kernel.selectors.template_selector import TemplateSelector
from shift_kernel.services.base import BaseService
from shift_kernel.services.shift_service import ShiftService, validate_schedule

logger = get_logger("services.template")

SKIP_CONFLICT = "conflict"
SKIP_LIMIT = "limit"


def _encode_weekdays(weekdays: Iterable[int] | None) -> str:
    days = sorted(set(weekdays or ()))
    for day in days:
        if not 0 <= day <= 6:
            raise ValidationError("weekdays", f"{day} is not a weekday number (Monday=0)")
    return ",".join(str(day) for day in days)


class ShiftTemplateService(BaseService[ShiftTemplate]):

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: AttendancePolicy | None = None,
    ):
        super().__init__(session, clock, policy)
        self._templates = TemplateSelector(session)
        self._shift_service = ShiftService(session, clock, self._policy)

    def create_template(
        self,
        business_id: UUID,
        actor_id: UUID,
        name: str,
        start_time: time,
        end_time: time,
        break_minutes: int = 0,
        shift_type: ShiftType = ShiftType.CUSTOM,
        color: str | None = None,
        default_weekdays: Iterable[int] | None = None,
    ) -> TemplateInfo:
        if not name or not name.strip():
            raise ValidationError("name", "must not be empty")
        validate_schedule(start_time, end_time, break_minutes)

        template = ShiftTemplate(
            business_id=business_id,
            name=name.strip(),
            shift_type=ShiftType(shift_type).value,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            color=color,
            default_weekdays=_encode_weekdays(default_weekdays),
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(template)
        self.session.flush()

        logger.info(
            "shift_template_created",
            extra={"template_id": str(template.id), "business_id": str(business_id)},
        )
        return template.to_dto()

    def update_template(
        self,
        template_id: UUID,
        business_id: UUID,
        actor_id: UUID,
        *,
        name: str | None = None,
        start_time: time | None = None,
        end_time: time | None = None,
        break_minutes: int | None = None,
        shift_type: ShiftType | None = None,
        color: str | None = None,
        default_weekdays: Iterable[int] | None = None,
    ) -> TemplateInfo:
        """Change a template.  Shifts already created from it are untouched."""
        template = self._get_owned(template_id, business_id)

        new_start = start_time or template.start_time
        new_end = end_time or template.end_time
        new_break = template.break_minutes if break_minutes is None else break_minutes
        validate_schedule(new_start, new_end, new_break)

        if name is not None:
            if not name.strip():
                raise ValidationError("name", "must not be empty")
            template.name = name.strip()
        template.start_time = new_start
        template.end_time = new_end
        template.break_minutes = new_break
        if shift_type is not None:
            template.shift_type = ShiftType(shift_type).value
        if color is not None:
            template.color = color
        if default_weekdays is not None:
            template.default_weekdays = _encode_weekdays(default_weekdays)
        template.updated_by_id = actor_id
        self.session.flush()

        logger.info("shift_template_updated", extra={"template_id": str(template_id)})
        return template.to_dto()

    def deactivate_template(
        self,
        template_id: UUID,
        business_id: UUID,
        actor_id: UUID,
    ) -> TemplateInfo:
        template = self._get_owned(template_id, business_id)
        template.is_active = False
        template.updated_by_id = actor_id
        self.session.flush()

        logger.info("shift_template_deactivated", extra={"template_id": str(template_id)})
        return template.to_dto()

    def get_template(self, template_id: UUID, business_id: UUID) -> TemplateInfo:
        found = self._templates.get(template_id)
        if found is None or found.business_id != business_id:
            raise ShiftTemplateNotFoundError(str(template_id))
        return found

    def list_templates(self, business_id: UUID, include_inactive: bool = False) -> list[TemplateInfo]:
        return self._templates.list_for_business(business_id, include_inactive)

    def create_shifts_from_template(
        self,
        template_id: UUID,
        business_id: UUID,
        actor_id: UUID,
        start_date: date,
        end_date: date,
        weekdays: Iterable[int] | None = None,
        employee_id: UUID | None = None,
    ) -> TemplateExpansionResult:
        """
        Create one shift per selected day in ``[start_date, end_date]``.

        Days that would conflict or breach a limit are skipped, not fatal.
        """
        if end_date < start_date:
            raise ValidationError("end_date", "must not be before start_date")

        template = self.get_template(template_id, business_id)
        if not template.is_active:
            raise ShiftTemplateNotFoundError(str(template_id))

        if weekdays is not None:
            selected = {int(day) for day in _encode_weekdays(weekdays).split(",") if day}
        elif template.default_weekdays:
            selected = set(template.default_weekdays)
        else:
            selected = set(range(7))

        created = []
        skipped = []
        for day in iter_dates(start_date, end_date):
            if day.weekday() not in selected:
                continue
            try:
                shift = self._shift_service.create_shift(
                    business_id=business_id,
                    actor_id=actor_id,
                    shift_date=day,
                    start_time=template.start_time,
                    end_time=template.end_time,
                    break_minutes=template.break_minutes,
                    employee_id=employee_id,
                    shift_type=template.shift_type,
                    color=template.color,
                    template_id=template.id,
                )
            except ShiftConflictError as exc:
                skipped.append(SkippedDate(day, SKIP_CONFLICT, str(exc)))
                continue
            except LimitExceededError as exc:
                skipped.append(SkippedDate(day, SKIP_LIMIT, str(exc)))
                continue
            created.append(shift)

        logger.info(
            "shifts_created_from_template",
            extra={
                "template_id": str(template_id),
                "created_count": len(created),
                "skipped_count": len(skipped),
            },
        )
        return TemplateExpansionResult(created=tuple(created), skipped=tuple(skipped))

    def _get_owned(self, template_id: UUID, business_id: UUID) -> ShiftTemplate:
        template = self.session.get(ShiftTemplate, template_id)
        if template is None or template.business_id != business_id:
            raise ShiftTemplateNotFoundError(str(template_id))
        return template
