"""
Typed Exception Hierarchy for the Shift Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure an operation can produce is a typed class with a static,
machine-readable ``code`` and structured attributes.  The (external)
controller layer catches by type and maps to a response without parsing
message strings:

    try:
        attendance.check_in(employee_id, shift_id)
    except AlreadyCheckedInError as e:
        api_response(409, code=e.code, shift_id=e.shift_id)
    except NotFoundError as e:
        api_response(404, code=e.code)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ShiftKernelError (base)
    |
    +-- NotFoundError
    |   +-- ShiftNotFoundError
    |   +-- BreakNotFoundError
    |   +-- AnomalyNotFoundError
    |   +-- OvertimeNotFoundError
    |   +-- CorrectionNotFoundError
    |   +-- WorkingHoursLimitNotFoundError
    |   +-- SwapRequestNotFoundError
    |   +-- ShiftTemplateNotFoundError
    |
    +-- InvalidStateError
    |   +-- AlreadyCheckedInError
    |   +-- NotCheckedInError
    |   +-- AlreadyCheckedOutError
    |   +-- ShiftInactiveError
    |   +-- BreakAlreadyOpenError
    |   +-- BreakAlreadyEndedError
    |   +-- SwapRequestNotPendingError
    |   +-- CorrectionAlreadyResolvedError
    |   +-- ConflictingCorrectionError
    |   +-- OvertimeAlreadyApprovedError
    |
    +-- ConflictError
    |   +-- ShiftConflictError
    |
    +-- ValidationError
    |   +-- LimitExceededError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Not found       | SHIFT_NOT_FOUND               | Unknown shift, or not owned by caller
                | BREAK_NOT_FOUND               | Unknown break, or not owned by caller
                | ANOMALY_NOT_FOUND             | Unknown anomaly
                | OVERTIME_NOT_FOUND            | Unknown overtime record
                | CORRECTION_NOT_FOUND          | Unknown correction
                | WORKING_HOURS_LIMIT_NOT_FOUND | Unknown limit
                | SWAP_REQUEST_NOT_FOUND        | Unknown swap request
                | SHIFT_TEMPLATE_NOT_FOUND      | Unknown template
----------------|-------------------------------|---------------------------------------
Invalid state   | ALREADY_CHECKED_IN            | Double check-in
                | NOT_CHECKED_IN                | Check-out / break without check-in
                | ALREADY_CHECKED_OUT           | Double check-out / break after it
                | SHIFT_INACTIVE                | Operating on a cancelled shift
                | BREAK_ALREADY_OPEN            | Second open break on a shift
                | BREAK_ALREADY_ENDED           | Ending a closed break
                | SWAP_REQUEST_NOT_PENDING      | Responding to / cancelling a closed swap
                | CORRECTION_ALREADY_RESOLVED   | Approving a resolved correction
                | CONFLICTING_CORRECTION        | Different value while one is pending
                | OVERTIME_ALREADY_APPROVED     | Reclassifying approved overtime
----------------|-------------------------------|---------------------------------------
Conflict        | SHIFT_CONFLICT                | Overlapping interval for the employee
----------------|-------------------------------|---------------------------------------
Validation      | VALIDATION_ERROR              | Malformed input
                | LIMIT_EXCEEDED                | Daily / weekly / monthly cap breach
----------------|-------------------------------|---------------------------------------
Concurrency     | OPTIMISTIC_LOCK_CONFLICT      | Concurrent modification detected
----------------|-------------------------------|---------------------------------------
Configuration   | CONFIGURATION_ERROR           | Missing clock, invalid policy file

===============================================================================
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shift_kernel.domain.dtos import ConflictingInterval


class ShiftKernelError(Exception):
    """
    Base exception for all shift kernel errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "SHIFT_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(ShiftKernelError):
    """Base exception for lookups that found nothing visible to the caller."""

    code: str = "NOT_FOUND"
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class ShiftNotFoundError(NotFoundError):
    code: str = "SHIFT_NOT_FOUND"
    entity_type = "Shift"


class BreakNotFoundError(NotFoundError):
    code: str = "BREAK_NOT_FOUND"
    entity_type = "ShiftBreak"


class AnomalyNotFoundError(NotFoundError):
    code: str = "ANOMALY_NOT_FOUND"
    entity_type = "ShiftAnomaly"


class OvertimeNotFoundError(NotFoundError):
    code: str = "OVERTIME_NOT_FOUND"
    entity_type = "OvertimeRecord"


class CorrectionNotFoundError(NotFoundError):
    code: str = "CORRECTION_NOT_FOUND"
    entity_type = "ShiftCorrection"


class WorkingHoursLimitNotFoundError(NotFoundError):
    code: str = "WORKING_HOURS_LIMIT_NOT_FOUND"
    entity_type = "EmployeeWorkingHoursLimit"


class SwapRequestNotFoundError(NotFoundError):
    code: str = "SWAP_REQUEST_NOT_FOUND"
    entity_type = "ShiftSwapRequest"


class ShiftTemplateNotFoundError(NotFoundError):
    code: str = "SHIFT_TEMPLATE_NOT_FOUND"
    entity_type = "ShiftTemplate"


# Invalid-state exceptions


class InvalidStateError(ShiftKernelError):
    """Base exception for transitions not allowed from the current state."""

    code: str = "INVALID_STATE"


class AlreadyCheckedInError(InvalidStateError):
    """Check-in attempted on a shift that is already checked in."""

    code: str = "ALREADY_CHECKED_IN"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} is already checked in")


class NotCheckedInError(InvalidStateError):
    """Operation requires a checked-in shift."""

    code: str = "NOT_CHECKED_IN"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} has not been checked in")


class AlreadyCheckedOutError(InvalidStateError):
    """Operation not allowed once the shift is checked out."""

    code: str = "ALREADY_CHECKED_OUT"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} is already checked out")


class ShiftInactiveError(InvalidStateError):
    """Shift has been cancelled (soft-deleted)."""

    code: str = "SHIFT_INACTIVE"

    def __init__(self, shift_id: str):
        self.shift_id = shift_id
        super().__init__(f"Shift {shift_id} is no longer active")


class BreakAlreadyOpenError(InvalidStateError):
    """A shift may have only one open break at a time."""

    code: str = "BREAK_ALREADY_OPEN"

    def __init__(self, shift_id: str, open_break_id: str | None = None):
        self.shift_id = shift_id
        self.open_break_id = open_break_id
        super().__init__(f"Shift {shift_id} already has an open break")


class BreakAlreadyEndedError(InvalidStateError):
    code: str = "BREAK_ALREADY_ENDED"

    def __init__(self, break_id: str):
        self.break_id = break_id
        super().__init__(f"Break {break_id} has already ended")


class SwapRequestNotPendingError(InvalidStateError):
    """Swap requests can only be answered or cancelled while pending."""

    code: str = "SWAP_REQUEST_NOT_PENDING"

    def __init__(self, swap_request_id: str, current_status: str):
        self.swap_request_id = swap_request_id
        self.current_status = current_status
        super().__init__(
            f"Swap request {swap_request_id} is {current_status}, not pending"
        )


class CorrectionAlreadyResolvedError(InvalidStateError):
    code: str = "CORRECTION_ALREADY_RESOLVED"

    def __init__(self, correction_id: str, current_status: str):
        self.correction_id = correction_id
        self.current_status = current_status
        super().__init__(
            f"Correction {correction_id} is already {current_status}"
        )


class ConflictingCorrectionError(InvalidStateError):
    """A different correction for the same field is still awaiting approval."""

    code: str = "CONFLICTING_CORRECTION"

    def __init__(self, shift_id: str, field: str, pending_correction_id: str):
        self.shift_id = shift_id
        self.field = field
        self.pending_correction_id = pending_correction_id
        super().__init__(
            f"Correction {pending_correction_id} for {field} on shift "
            f"{shift_id} is still pending approval"
        )


class OvertimeAlreadyApprovedError(InvalidStateError):
    code: str = "OVERTIME_ALREADY_APPROVED"

    def __init__(self, overtime_id: str):
        self.overtime_id = overtime_id
        super().__init__(
            f"Overtime record {overtime_id} is approved and cannot be reclassified"
        )


# Conflict exceptions


class ConflictError(ShiftKernelError):
    code: str = "CONFLICT"


class ShiftConflictError(ConflictError):
    """
    Candidate interval overlaps an existing active shift of the employee.

    ``conflicts`` holds the overlapping intervals so the caller can show them.
    """

    code: str = "SHIFT_CONFLICT"

    def __init__(
        self,
        employee_id: str,
        shift_date: date,
        conflicts: Sequence[ConflictingInterval],
    ):
        self.employee_id = employee_id
        self.shift_date = shift_date
        self.conflicts = tuple(conflicts)
        windows = ", ".join(
            f"{c.start_time:%H:%M}-{c.end_time:%H:%M}" for c in self.conflicts
        )
        super().__init__(
            f"Shift conflicts with existing shifts of employee {employee_id} "
            f"on {shift_date.isoformat()}: {windows}"
        )


# Validation exceptions


class ValidationError(ShiftKernelError):
    """Malformed or semantically invalid input."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class LimitExceededError(ValidationError):
    """Candidate hours would breach a configured working-hours cap."""

    code: str = "LIMIT_EXCEEDED"

    def __init__(
        self,
        employee_id: str,
        limit_kind: str,
        cap_hours: Decimal,
        projected_hours: Decimal,
    ):
        self.employee_id = employee_id
        self.limit_kind = limit_kind
        self.cap_hours = cap_hours
        self.projected_hours = projected_hours
        ShiftKernelError.__init__(
            self,
            f"Employee {employee_id} would reach {projected_hours}h against a "
            f"{limit_kind} cap of {cap_hours}h",
        )
        self.field = "hours"
        self.reason = f"{limit_kind} cap exceeded"


# Concurrency exceptions


class ConcurrencyError(ShiftKernelError):
    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Configuration exceptions


class ConfigurationError(ShiftKernelError):
    """Required configuration is missing or invalid. Raised at startup."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration for {setting}: {reason}")
