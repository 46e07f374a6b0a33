"""
WellbeingService -- advisory aggregates of worked hours.

Sums net worked hours (check-out minus check-in minus completed breaks) and
recorded overtime for the current week and month, and raises a soft alert
once the week reaches ``wellbeing_alert_hours``.  The alert never blocks
anything.
"""

from datetime import date
from uuid import UUID

from shift_kernel.domain.attendance import wellbeing_message
from shift_kernel.domain.dtos import WellbeingStats
from shift_kernel.domain.intervals import minutes_to_hours, month_bounds, week_bounds
from shift_kernel.logging_config import get_logger
from shift_kernel.models.shift import Shift
from shift_kernel.selectors.attendance_selector import AttendanceSelector
from shift_kernel.selectors.shift_selector import ShiftSelector
from shift_kernel.services.base import BaseService

logger = get_logger("services.wellbeing")


class WellbeingService(BaseService[Shift]):

    def get_wellbeing_stats(self, employee_id: UUID, reference: date | None = None) -> WellbeingStats:
        today = reference or self._clock.today_utc()
        week_start, week_end = week_bounds(today, self._policy.week_start_day)
        month_start, month_end = month_bounds(today)

        shifts = ShiftSelector(self.session)
        facts = AttendanceSelector(self.session)

        week_hours = minutes_to_hours(
            shifts.worked_minutes_between(employee_id, week_start, week_end)
        )
        month_hours = minutes_to_hours(
            shifts.worked_minutes_between(employee_id, month_start, month_end)
        )
        overtime_week = minutes_to_hours(
            facts.overtime_minutes_between(employee_id, week_start, week_end)
        )
        overtime_month = minutes_to_hours(
            facts.overtime_minutes_between(employee_id, month_start, month_end)
        )

        has_alert = week_hours >= self._policy.wellbeing_alert_hours
        if has_alert:
            logger.info(
                "wellbeing_alert_raised",
                extra={"employee_id": str(employee_id), "week_hours": str(week_hours)},
            )

        return WellbeingStats(
            employee_id=employee_id,
            week_start=week_start,
            month_start=month_start,
            hours_this_week=week_hours,
            hours_this_month=month_hours,
            overtime_hours_this_week=overtime_week,
            overtime_hours_this_month=overtime_month,
            has_alert=has_alert,
            message=wellbeing_message(week_hours) if has_alert else None,
        )
