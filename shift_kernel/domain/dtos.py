"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable data structures returned by every selector and service:
    snapshots of shifts, breaks, anomalies, overtime, corrections, limits,
    templates and swap requests, plus the composite results of check-in,
    check-out, status, statistics and template expansion.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies.  Models convert themselves with ``to_dto()``;
    domain logic never sees ORM entities.

Invariants enforced:
    - Hours at this boundary are Decimal quantized to 0.01.
    - Collections are tuples so DTOs stay hashable and immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from shift_kernel.domain.intervals import minutes_to_hours, scheduled_minutes
from shift_kernel.domain.values import (
    AnomalyReason,
    AnomalyType,
    AttendanceState,
    BreakCategory,
    CorrectableField,
    CorrectionStatus,
    OvertimeType,
    ResolutionMethod,
    ShiftType,
    SwapStatus,
    ValidationStatus,
)


# =========================================================================
# Entity snapshots
# =========================================================================


@dataclass(frozen=True)
class ConflictingInterval:
    """An existing shift that overlaps a candidate interval."""

    shift_id: UUID
    shift_date: date
    start_time: time
    end_time: time


@dataclass(frozen=True)
class ShiftInfo:
    id: UUID
    business_id: UUID
    employee_id: UUID | None
    shift_date: date
    start_time: time
    end_time: time
    break_minutes: int
    shift_type: ShiftType
    color: str | None
    notes: str | None
    template_id: UUID | None
    is_confirmed: bool
    is_checked_in: bool
    check_in_at: datetime | None
    check_in_location: str | None
    is_checked_out: bool
    check_out_at: datetime | None
    check_out_location: str | None
    validation_status: ValidationStatus
    validated_by_id: UUID | None
    validated_at: datetime | None
    is_active: bool
    version: int

    @property
    def scheduled_minutes(self) -> int:
        return scheduled_minutes(self.start_time, self.end_time, self.break_minutes)

    @property
    def scheduled_hours(self) -> Decimal:
        return minutes_to_hours(self.scheduled_minutes)


@dataclass(frozen=True)
class BreakInfo:
    id: UUID
    shift_id: UUID
    started_at: datetime
    ended_at: datetime | None
    duration_minutes: int | None
    category: BreakCategory
    is_short_break: bool

    @property
    def is_open(self) -> bool:
        return self.ended_at is None


@dataclass(frozen=True)
class AnomalyInfo:
    id: UUID
    shift_id: UUID
    business_id: UUID
    employee_id: UUID
    anomaly_type: AnomalyType
    severity: int
    message: str
    reason: AnomalyReason | None
    notes: str | None
    is_resolved: bool
    resolution_method: ResolutionMethod | None
    resolved_at: datetime | None
    requires_merchant_review: bool
    detected_at: datetime


@dataclass(frozen=True)
class OvertimeInfo:
    id: UUID
    shift_id: UUID
    business_id: UUID
    employee_id: UUID
    shift_date: date
    minutes: int
    overtime_type: OvertimeType
    is_auto_detected: bool
    is_approved: bool
    approved_by_id: UUID | None
    approved_at: datetime | None
    notes: str | None

    @property
    def hours(self) -> Decimal:
        return minutes_to_hours(self.minutes)


@dataclass(frozen=True)
class CorrectionInfo:
    id: UUID
    shift_id: UUID
    business_id: UUID
    employee_id: UUID
    field: CorrectableField
    original_value: str | None
    new_value: str
    reason: str
    within_window: bool
    requires_merchant_approval: bool
    status: CorrectionStatus
    reviewed_by_id: UUID | None
    reviewed_at: datetime | None

    @property
    def is_applied(self) -> bool:
        return self.status in (CorrectionStatus.APPLIED, CorrectionStatus.APPROVED)


@dataclass(frozen=True)
class LimitInfo:
    id: UUID
    business_id: UUID
    employee_id: UUID
    max_hours_per_day: Decimal | None
    max_hours_per_week: Decimal | None
    max_hours_per_month: Decimal | None
    min_hours_per_week: Decimal | None
    min_hours_per_month: Decimal | None
    allow_overtime: bool
    max_overtime_hours_per_week: Decimal | None
    max_overtime_hours_per_month: Decimal | None
    valid_from: date
    valid_to: date | None
    is_active: bool
    notes: str | None

    def covers(self, reference: date) -> bool:
        """True if ``reference`` is inside ``[valid_from, valid_to)``."""
        if reference < self.valid_from:
            return False
        return self.valid_to is None or reference < self.valid_to


@dataclass(frozen=True)
class TemplateInfo:
    id: UUID
    business_id: UUID
    name: str
    shift_type: ShiftType
    start_time: time
    end_time: time
    break_minutes: int
    color: str | None
    default_weekdays: tuple[int, ...]
    is_active: bool


@dataclass(frozen=True)
class SwapRequestInfo:
    id: UUID
    business_id: UUID
    shift_id: UUID
    requesting_employee_id: UUID
    target_employee_id: UUID | None
    offered_shift_id: UUID | None
    message: str | None
    status: SwapStatus
    response_message: str | None
    requires_merchant_approval: bool
    approved_by_id: UUID | None
    responded_at: datetime | None


# =========================================================================
# Operation results
# =========================================================================


@dataclass(frozen=True)
class ResolutionOption:
    reason: AnomalyReason
    label: str


@dataclass(frozen=True)
class CheckInResult:
    shift: ShiftInfo
    minutes_difference: int
    planned_hours: Decimal
    message: str
    anomaly: AnomalyInfo | None = None
    suggested_break_time: time | None = None
    quick_resolution_options: tuple[ResolutionOption, ...] = ()


@dataclass(frozen=True)
class CheckOutResult:
    shift: ShiftInfo
    worked_minutes: int
    worked_hours: Decimal
    expected_hours: Decimal
    overtime_minutes: int
    validation_status: ValidationStatus
    message: str
    overtime: OvertimeInfo | None = None
    anomaly: AnomalyInfo | None = None
    overtime_prompt: str | None = None


@dataclass(frozen=True)
class CurrentStatus:
    state: AttendanceState
    status_line: str
    suggested_action: str
    shift: ShiftInfo | None = None
    open_break: BreakInfo | None = None
    worked_minutes_today: int = 0
    worked_hours_today: Decimal = Decimal("0.00")
    week_worked_hours: Decimal = Decimal("0.00")

    @property
    def is_checked_in(self) -> bool:
        return self.state in (AttendanceState.CHECKED_IN, AttendanceState.ON_BREAK)

    @property
    def is_on_break(self) -> bool:
        return self.state is AttendanceState.ON_BREAK


@dataclass(frozen=True)
class WellbeingStats:
    employee_id: UUID
    week_start: date
    month_start: date
    hours_this_week: Decimal
    hours_this_month: Decimal
    overtime_hours_this_week: Decimal
    overtime_hours_this_month: Decimal
    has_alert: bool
    message: str | None = None


@dataclass(frozen=True)
class EmployeeShiftStats:
    employee_id: UUID
    reference_date: date
    hours_this_week: Decimal
    shifts_this_week: int
    hours_this_month: Decimal
    shifts_this_month: int
    hours_last_month: Decimal
    shifts_last_month: int
    average_hours_per_shift: Decimal
    max_hours_per_week: Decimal | None
    max_hours_per_month: Decimal | None
    remaining_hours_this_week: Decimal | None
    remaining_hours_this_month: Decimal | None
    is_over_limit: bool


@dataclass(frozen=True)
class SkippedDate:
    """A template day that was not created, and why."""

    shift_date: date
    reason: str
    detail: str


@dataclass(frozen=True)
class TemplateExpansionResult:
    created: tuple[ShiftInfo, ...]
    skipped: tuple[SkippedDate, ...]

    @property
    def created_count(self) -> int:
        return len(self.created)
