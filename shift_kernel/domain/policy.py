"""
AttendancePolicy -- runtime thresholds for the attendance engine.

Responsibility:
    Holds every tolerance, window and threshold the scheduling and
    attendance rules consult.  Services receive one instance at
    construction; the defaults here are the production defaults and match
    ``shift_config/sets/default.yaml``.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.  ``shift_config``
    parses YAML into this type; the kernel never reads configuration
    files itself.

Failure modes:
    - ``validate()`` raises ConfigurationError for out-of-range values.
"""

from __future__ import annotations

from dataclasses import dataclass

from shift_kernel.domain.values import AnomalyReason
from shift_kernel.exceptions import ConfigurationError


@dataclass(frozen=True)
class AttendancePolicy:
    """Tolerances and thresholds for attendance evaluation."""

    tolerance_minutes: int = 15
    severe_late_minutes: int = 30
    checkout_anomaly_minutes: int = 30
    short_break_minutes: int = 15
    break_suggestion_min_hours: int = 6
    break_prompt_after_minutes: int = 240
    self_correction_window_hours: int = 24
    wellbeing_alert_hours: int = 50
    week_start_day: int = 6  # Monday=0, so 6 is Sunday
    review_waiver_reasons: frozenset[AnomalyReason] = frozenset({
        AnomalyReason.TRAFFIC,
        AnomalyReason.TECHNICAL_ISSUE,
        AnomalyReason.SMART_WORKING,
    })
    waive_critical_anomalies: bool = True
    critical_severity: int = 3

    def validate(self) -> AttendancePolicy:
        """Return self, or raise ConfigurationError naming the bad setting."""
        non_negative = (
            "tolerance_minutes",
            "severe_late_minutes",
            "checkout_anomaly_minutes",
            "short_break_minutes",
            "break_suggestion_min_hours",
        )
        for name in non_negative:
            if getattr(self, name) < 0:
                raise ConfigurationError(name, "must not be negative")

        positive = (
            "break_prompt_after_minutes",
            "self_correction_window_hours",
            "wellbeing_alert_hours",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                raise ConfigurationError(name, "must be positive")

        if self.severe_late_minutes < self.tolerance_minutes:
            raise ConfigurationError(
                "severe_late_minutes", "must be at least tolerance_minutes"
            )
        if not 0 <= self.week_start_day <= 6:
            raise ConfigurationError(
                "week_start_day", "must be 0 (Monday) through 6 (Sunday)"
            )
        if not 1 <= self.critical_severity <= 3:
            raise ConfigurationError("critical_severity", "must be 1 through 3")
        for reason in self.review_waiver_reasons:
            if not isinstance(reason, AnomalyReason):
                raise ConfigurationError(
                    "review_waiver_reasons", f"unknown reason {reason!r}"
                )
        return self


DEFAULT_POLICY = AttendancePolicy()
