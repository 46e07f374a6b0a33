"""Services for the shift kernel (write side)."""

from shift_kernel.services.adjustment_service import AdjustmentService
from shift_kernel.services.attendance_service import AttendanceService
from shift_kernel.services.container import ShiftKernelServices
from shift_kernel.services.limit_service import WorkingHoursLimitService
from shift_kernel.services.rules_service import SchedulingRules
from shift_kernel.services.shift_service import ShiftService
from shift_kernel.services.swap_service import ShiftSwapService
from shift_kernel.services.template_service import ShiftTemplateService
from shift_kernel.services.validation_service import ValidationService
from shift_kernel.services.wellbeing_service import WellbeingService

__all__ = [
    "AdjustmentService",
    "AttendanceService",
    "SchedulingRules",
    "ShiftKernelServices",
    "ShiftService",
    "ShiftSwapService",
    "ShiftTemplateService",
    "ValidationService",
    "WellbeingService",
    "WorkingHoursLimitService",
]
