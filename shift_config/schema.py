"""
AttendanceConfigurationSet schema.

The human-authored, reviewable source artifact for attendance
configuration.  YAML files are parsed into this type by the loader; the
kernel only ever sees the ``AttendancePolicy`` it carries.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from shift_kernel.domain.policy import AttendancePolicy


@dataclass(frozen=True)
class AttendanceConfigurationSet:
    """A named, versioned attendance policy."""

    config_id: str
    version: int
    policy: AttendancePolicy
    description: str = ""
    source_path: Path | None = None
