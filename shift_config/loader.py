"""
Configuration Loader (``shift_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into an
``AttendanceConfigurationSet``.  Callers use
``shift_config.get_attendance_policy()``; this module is its internal
tooling.

Invariants enforced
-------------------
* Unknown keys are rejected, never ignored.
* Every value is type-checked and the resulting policy passes
  ``AttendancePolicy.validate()``.
* Anomaly reasons are mapped to ``AnomalyReason`` members.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``ConfigurationError`` wrapping the parser message.
* Unknown key, wrong type or out-of-range value  -> ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from shift_config.schema import AttendanceConfigurationSet
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.domain.values import AnomalyReason
from shift_kernel.exceptions import ConfigurationError

_TOP_LEVEL_KEYS = frozenset({"config_id", "version", "description", "attendance"})

_INT_SETTINGS = frozenset(
    f.name
    for f in fields(AttendancePolicy)
    if f.name not in ("review_waiver_reasons", "waive_critical_anomalies")
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_reasons(value: Any) -> frozenset[AnomalyReason]:
    if not isinstance(value, list):
        raise ConfigurationError("review_waiver_reasons", "must be a list")
    reasons = set()
    for item in value:
        try:
            reasons.add(AnomalyReason(item))
        except ValueError:
            raise ConfigurationError(
                "review_waiver_reasons", f"unknown reason {item!r}"
            ) from None
    return frozenset(reasons)


def parse_policy(data: dict[str, Any]) -> AttendancePolicy:
    """Parse the ``attendance`` mapping.  Missing keys keep their defaults."""
    unknown = set(data) - _INT_SETTINGS - {"review_waiver_reasons", "waive_critical_anomalies"}
    if unknown:
        raise ConfigurationError(", ".join(sorted(unknown)), "unknown setting")

    kwargs: dict[str, Any] = {}
    for name, value in data.items():
        if name == "review_waiver_reasons":
            kwargs[name] = parse_reasons(value)
        elif name == "waive_critical_anomalies":
            if not isinstance(value, bool):
                raise ConfigurationError(name, "must be true or false")
            kwargs[name] = value
        else:
            # bool is an int subclass; "true" is never a valid minute count
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(name, "must be an integer")
            kwargs[name] = value

    return AttendancePolicy(**kwargs).validate()


def load_configuration_set(path: Path) -> AttendanceConfigurationSet:
    data = load_yaml_file(path)

    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ConfigurationError(", ".join(sorted(unknown)), "unknown top-level key")
    if "config_id" not in data:
        raise ConfigurationError("config_id", "is required")

    attendance = data.get("attendance") or {}
    if not isinstance(attendance, dict):
        raise ConfigurationError("attendance", "must be a mapping")

    version = data.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigurationError("version", "must be an integer")

    return AttendanceConfigurationSet(
        config_id=str(data["config_id"]),
        version=version,
        description=str(data.get("description") or ""),
        policy=parse_policy(attendance),
        source_path=path,
    )
