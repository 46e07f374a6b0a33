"""
Pure domain layer.

This module contains enums, frozen DTOs, the attendance policy and the
interval/attendance rules with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (except SystemClock)

All domain objects are immutable and deterministic.
"""

from shift_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from shift_kernel.domain.policy import DEFAULT_POLICY, AttendancePolicy
from shift_kernel.domain.values import (
    AnomalyReason,
    AnomalyType,
    AttendanceState,
    BreakCategory,
    CorrectableField,
    CorrectionStatus,
    LimitKind,
    OvertimeType,
    ResolutionMethod,
    ShiftType,
    SwapStatus,
    ValidationStatus,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "AttendancePolicy",
    "DEFAULT_POLICY",
    "AnomalyReason",
    "AnomalyType",
    "AttendanceState",
    "BreakCategory",
    "CorrectableField",
    "CorrectionStatus",
    "LimitKind",
    "OvertimeType",
    "ResolutionMethod",
    "ShiftType",
    "SwapStatus",
    "ValidationStatus",
]
