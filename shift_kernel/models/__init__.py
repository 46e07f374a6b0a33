"""ORM models for the shift kernel."""

from shift_kernel.models.attendance import OvertimeRecord, ShiftAnomaly, ShiftCorrection
from shift_kernel.models.limits import EmployeeWorkingHoursLimit
from shift_kernel.models.shift import Shift, ShiftBreak, ShiftTemplate
from shift_kernel.models.swap import ShiftSwapRequest

__all__ = [
    "Shift",
    "ShiftBreak",
    "ShiftTemplate",
    "ShiftAnomaly",
    "OvertimeRecord",
    "ShiftCorrection",
    "EmployeeWorkingHoursLimit",
    "ShiftSwapRequest",
]
