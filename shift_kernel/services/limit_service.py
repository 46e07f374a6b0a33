"""
WorkingHoursLimitService -- per-employee working-hour caps.

Responsibility:
    Creates, updates, deactivates and resolves the working-hour limits the
    scheduler enforces.  Validation of the caps happens here so that the
    rules service can trust every persisted limit.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - Caps, where set, are strictly positive.
    - ``min <= max`` for the weekly and monthly pairs where both are set.
    - Validity is half-open ``[valid_from, valid_to)`` with
      ``valid_to > valid_from``.

Failure modes:
    - ValidationError for any invalid cap or validity window.
    - WorkingHoursLimitNotFoundError for unknown ids and for limits of
      another business.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from shift_kernel.domain.clock import Clock
from shift_kernel.domain.dtos import LimitInfo
from shift_kernel.exceptions import ValidationError, WorkingHoursLimitNotFoundError
from shift_kernel.logging_config import get_logger
from shift_kernel.models.limits import EmployeeWorkingHoursLimit
from shift_kernel.selectors.limit_selector import LimitSelector
from shift_kernel.services.base import BaseService

logger = get_logger("services.limits")

_CAP_FIELDS = (
    "max_hours_per_day",
    "max_hours_per_week",
    "max_hours_per_month",
    "min_hours_per_week",
    "min_hours_per_month",
    "max_overtime_hours_per_week",
    "max_overtime_hours_per_month",
)

_MUTABLE_FIELDS = _CAP_FIELDS + ("allow_overtime", "valid_from", "valid_to", "notes")


class WorkingHoursLimitService(BaseService[EmployeeWorkingHoursLimit]):
    """Manage EmployeeWorkingHoursLimit rows."""

    def __init__(self, session: Session, clock: Clock, policy=None):
        super().__init__(session, clock, policy)
        self._selector = LimitSelector(session)

    def create_limit(
        self,
        business_id: UUID,
        employee_id: UUID,
        actor_id: UUID,
        valid_from: date,
        valid_to: date | None = None,
        max_hours_per_day: Decimal | None = None,
        max_hours_per_week: Decimal | None = None,
        max_hours_per_month: Decimal | None = None,
        min_hours_per_week: Decimal | None = None,
        min_hours_per_month: Decimal | None = None,
        allow_overtime: bool = True,
        max_overtime_hours_per_week: Decimal | None = None,
        max_overtime_hours_per_month: Decimal | None = None,
        notes: str | None = None,
    ) -> LimitInfo:
        limit = EmployeeWorkingHoursLimit(
            business_id=business_id,
            employee_id=employee_id,
            valid_from=valid_from,
            valid_to=valid_to,
            max_hours_per_day=max_hours_per_day,
            max_hours_per_week=max_hours_per_week,
            max_hours_per_month=max_hours_per_month,
            min_hours_per_week=min_hours_per_week,
            min_hours_per_month=min_hours_per_month,
            allow_overtime=allow_overtime,
            max_overtime_hours_per_week=max_overtime_hours_per_week,
            max_overtime_hours_per_month=max_overtime_hours_per_month,
            notes=notes,
            is_active=True,
            created_by_id=actor_id,
        )
        _validate({name: getattr(limit, name) for name in _MUTABLE_FIELDS})

        self.session.add(limit)
        self.session.flush()

        logger.info(
            "working_hours_limit_created",
            extra={
                "limit_id": str(limit.id),
                "employee_id": str(employee_id),
                "valid_from": valid_from.isoformat(),
            },
        )
        return limit.to_dto()

    def update_limit(
        self,
        limit_id: UUID,
        business_id: UUID,
        actor_id: UUID,
        **changes,
    ) -> LimitInfo:
        """
        Change caps, validity or notes of a limit.

        Only keys present in ``changes`` are touched; passing ``None``
        clears a cap.  A rejected update leaves the row as it was.
        """
        unknown = set(changes) - set(_MUTABLE_FIELDS)
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), "not an updatable field")

        limit = self._get_limit(limit_id, business_id)
        candidate = {name: getattr(limit, name) for name in _MUTABLE_FIELDS}
        candidate.update(changes)
        _validate(candidate)

        for name, value in changes.items():
            setattr(limit, name, value)
        limit.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "working_hours_limit_updated",
            extra={"limit_id": str(limit_id), "fields": sorted(changes)},
        )
        return limit.to_dto()

    def deactivate_limit(self, limit_id: UUID, business_id: UUID, actor_id: UUID) -> LimitInfo:
        limit = self._get_limit(limit_id, business_id)
        limit.is_active = False
        limit.updated_by_id = actor_id
        self.session.flush()

        logger.info("working_hours_limit_deactivated", extra={"limit_id": str(limit_id)})
        return limit.to_dto()

    def get_limit(self, limit_id: UUID, business_id: UUID) -> LimitInfo:
        found = self._selector.get(limit_id)
        if found is None or found.business_id != business_id:
            raise WorkingHoursLimitNotFoundError(str(limit_id))
        return found

    def list_limits(
        self,
        business_id: UUID,
        employee_id: UUID,
        include_inactive: bool = False,
    ) -> list[LimitInfo]:
        return self._selector.list_for_employee(business_id, employee_id, include_inactive)

    def get_active_limit(self, employee_id: UUID, reference: date | None = None) -> LimitInfo | None:
        """The limit in force on ``reference`` (default: today)."""
        return self._selector.active_for(employee_id, reference or self._clock.today_utc())

    def _get_limit(self, limit_id: UUID, business_id: UUID) -> EmployeeWorkingHoursLimit:
        limit = self.session.get(EmployeeWorkingHoursLimit, limit_id)
        if limit is None or limit.business_id != business_id:
            raise WorkingHoursLimitNotFoundError(str(limit_id))
        return limit


def _validate(values: dict) -> None:
    """Check a complete set of limit fields before any of them reaches a row."""
    for name in _CAP_FIELDS:
        value = values[name]
        if value is not None and value <= 0:
            raise ValidationError(name, "must be positive when set")

    pairs = (
        ("min_hours_per_week", "max_hours_per_week"),
        ("min_hours_per_month", "max_hours_per_month"),
    )
    for low_name, high_name in pairs:
        low = values[low_name]
        high = values[high_name]
        if low is not None and high is not None and low > high:
            raise ValidationError(low_name, f"cannot exceed {high_name}")

    if values["valid_from"] is None:
        raise ValidationError("valid_from", "is required")
    if values["valid_to"] is not None and values["valid_to"] <= values["valid_from"]:
        raise ValidationError("valid_to", "must be after valid_from")
