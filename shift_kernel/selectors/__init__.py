"""Read-only query selectors."""

from shift_kernel.selectors.attendance_selector import AttendanceSelector
from shift_kernel.selectors.base import BaseSelector
from shift_kernel.selectors.limit_selector import LimitSelector
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.selectors.swap_selector import SwapSelector
from shift_kernel.selectors.template_selector import TemplateSelector

__all__ = [
    "BaseSelector",
    "ShiftSelector",
    "AttendanceSelector",
    "LimitSelector",
    "SwapSelector",
    "TemplateSelector",
]
