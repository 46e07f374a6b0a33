"""
shift_kernel.services.container -- Central wiring of the kernel services.

Responsibility:
    Creates every kernel service exactly once for one session and exposes
    them as attributes.  Services never construct their siblings through
    this container; it is the entrypoint for callers (controllers, jobs,
    tests).

Invariants enforced:
    - All services share the same Session, Clock and AttendancePolicy.
    - A missing clock or an invalid policy fails at construction, never
      per request.

Failure modes:
    - ConfigurationError when ``clock`` is None or the policy is invalid.

Usage:
    with session_scope() as session:
        services = ShiftKernelServices(session, clock=SystemClock())
        services.attendance.check_in(employee_id, shift_id)
"""

from sqlalchemy.orm import Session

from shift_kernel.domain.clock import Clock, require_clock
from shift_kernel.domain.policy import DEFAULT_POLICY, AttendancePolicy
from shift_kernel.logging_config import get_logger
from shift_kernel.services.adjustment_service import AdjustmentService
from shift_kernel.services.attendance_service import AttendanceService
from shift_kernel.services.limit_service import WorkingHoursLimitService
from shift_kernel.services.rules_service import SchedulingRules
from shift_kernel.services.shift_service import ShiftService
from shift_kernel.services.swap_service import ShiftSwapService
from shift_kernel.services.template_service import ShiftTemplateService
from shift_kernel.services.validation_service import ValidationService
from shift_kernel.services.wellbeing_service import WellbeingService

logger = get_logger("services.container")


class ShiftKernelServices:
    """
    One instance of every kernel service bound to a session.

    Non-goals:
        - Does NOT manage transaction boundaries (caller's responsibility).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: AttendancePolicy | None = None,
    ):
        self.session = session
        self.clock = require_clock(clock)
        self.policy = (policy or DEFAULT_POLICY).validate()

        self.rules = SchedulingRules(session, self.policy)
        self.shifts = ShiftService(session, self.clock, self.policy)
        self.templates = ShiftTemplateService(session, self.clock, self.policy)
        self.limits = WorkingHoursLimitService(session, self.clock, self.policy)
        self.attendance = AttendanceService(session, self.clock, self.policy)
        self.validation = ValidationService(session, self.clock, self.policy)
        self.adjustments = AdjustmentService(session, self.clock, self.policy)
        self.swaps = ShiftSwapService(session, self.clock, self.policy)
        self.wellbeing = WellbeingService(session, self.clock, self.policy)

        logger.debug(
            "shift_kernel_services_built",
            extra={"clock": type(self.clock).__name__},
        )
