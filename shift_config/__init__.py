"""
shift_config -- single public entrypoint for attendance configuration.

Responsibility:
    Provides the only way to obtain the runtime ``AttendancePolicy``:
    ``get_attendance_policy()``.  YAML loading is internal tooling.

Architecture position:
    Configuration -- sits above ``shift_kernel``.  The kernel MUST NEVER
    import from ``shift_config``; services receive the parsed policy.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ConfigurationError`` -- malformed YAML, unknown keys or invalid
      values.
"""

from __future__ import annotations

import logging
from pathlib import Path

from shift_config.loader import load_configuration_set
from shift_config.schema import AttendanceConfigurationSet
from shift_kernel.domain.policy import AttendancePolicy

_logger = logging.getLogger("shift_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_attendance_configuration(path: Path | None = None) -> AttendanceConfigurationSet:
    """Load and validate a configuration set (default: ``sets/default.yaml``)."""
    config_set = load_configuration_set(Path(path) if path else DEFAULT_CONFIG_PATH)

    _logger.info(
        "SHIFT_CONFIG_TRACE",
        extra={
            "trace_type": "SHIFT_CONFIG_TRACE",
            "config_set_id": config_set.config_id,
            "config_set_version": config_set.version,
            "source_path": str(config_set.source_path),
        },
    )
    return config_set


def get_attendance_policy(path: Path | None = None) -> AttendancePolicy:
    """The ONLY public configuration entrypoint for services."""
    return get_attendance_configuration(path).policy


__all__ = [
    "AttendanceConfigurationSet",
    "DEFAULT_CONFIG_PATH",
    "get_attendance_configuration",
    "get_attendance_policy",
]
