"""
Shift domain values (``shift_kernel.domain.values``).

Responsibility
--------------
Closed enumerations for every status, type and reason code carried by
shifts, breaks, anomalies, overtime, corrections, limits and swap
requests, plus the swap-request lifecycle transition map.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``services/``, ``selectors/``, or outer layers.
"""

from __future__ import annotations

from enum import Enum


# =========================================================================
# Shift
# =========================================================================


class ShiftType(str, Enum):
    """Shift category, used for calendar grouping and colour defaults."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    FULL_DAY = "full_day"
    CUSTOM = "custom"


class ValidationStatus(str, Enum):
    """Attendance validation axis of a shift."""

    PENDING = "pending"
    AUTO_APPROVED = "auto_approved"
    REQUIRES_REVIEW = "requires_review"
    MANUALLY_APPROVED = "manually_approved"
    SELF_CORRECTED = "self_corrected"


class AttendanceState(str, Enum):
    """Derived check-in/break/check-out position of a shift."""

    NOT_STARTED = "not_started"
    CHECKED_IN = "checked_in"
    ON_BREAK = "on_break"
    CHECKED_OUT = "checked_out"


class BreakCategory(str, Enum):
    MEAL = "meal"
    REST = "rest"
    PERSONAL = "personal"
    OTHER = "other"


# =========================================================================
# Anomalies
# =========================================================================


class AnomalyType(str, Enum):
    EARLY_CHECK_IN = "early_check_in"
    LATE_CHECK_IN = "late_check_in"
    EARLY_CHECK_OUT = "early_check_out"
    LATE_CHECK_OUT = "late_check_out"
    MISSING_CHECK_IN = "missing_check_in"


class AnomalyReason(str, Enum):
    """Reasons an employee can give when explaining an anomaly."""

    TRAFFIC = "traffic"
    AUTHORIZED_LEAVE = "authorized_leave"
    TIME_RECOVERY = "time_recovery"
    PERSONAL_EMERGENCY = "personal_emergency"
    FORGOTTEN = "forgotten"
    TECHNICAL_ISSUE = "technical_issue"
    SMART_WORKING = "smart_working"
    OTHER = "other"
    NOT_SPECIFIED = "not_specified"


class ResolutionMethod(str, Enum):
    """How an anomaly was closed."""

    EMPLOYEE_EXPLANATION = "employee_explanation"
    AUTO_WAIVED = "auto_waived"


# =========================================================================
# Overtime
# =========================================================================


class OvertimeType(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    BANKED_HOURS = "banked_hours"
    RECOVERY = "recovery"
    VOLUNTARY = "voluntary"


# =========================================================================
# Corrections
# =========================================================================


class CorrectableField(str, Enum):
    """Attendance facts an employee may self-correct."""

    CHECK_IN_AT = "check_in_at"
    CHECK_OUT_AT = "check_out_at"


class CorrectionStatus(str, Enum):
    APPLIED = "applied"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"


# =========================================================================
# Working-hour limits
# =========================================================================


class LimitKind(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# =========================================================================
# Shift swaps
# =========================================================================


class SwapStatus(str, Enum):
    """Shift swap request lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


SWAP_TRANSITIONS: dict[SwapStatus, frozenset[SwapStatus]] = {
    SwapStatus.PENDING: frozenset({
        SwapStatus.APPROVED,
        SwapStatus.REJECTED,
        SwapStatus.CANCELLED,
    }),
    SwapStatus.APPROVED: frozenset(),
    SwapStatus.REJECTED: frozenset(),
    SwapStatus.CANCELLED: frozenset(),
}

TERMINAL_SWAP_STATUSES: frozenset[SwapStatus] = frozenset({
    SwapStatus.APPROVED,
    SwapStatus.REJECTED,
    SwapStatus.CANCELLED,
})

# Statuses a counterpart or merchant may answer with.  Cancellation is the
# requester's own action.
SWAP_RESPONSE_STATUSES: frozenset[SwapStatus] = frozenset({
    SwapStatus.APPROVED,
    SwapStatus.REJECTED,
})


def can_transition(current: SwapStatus, target: SwapStatus) -> bool:
    """True if the swap lifecycle allows ``current -> target``."""
    return target in SWAP_TRANSITIONS.get(current, frozenset())
