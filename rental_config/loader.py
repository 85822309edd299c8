"""
Configuration Loader (``rental_config.loader``).

Responsibility
--------------
Loads YAML configuration sets and parses them into the frozen dataclasses
of ``rental_config.schema``.  Runtime callers go through
``rental_config.get_active_settings()``.

Invariants enforced
-------------------
* Unknown keys under ``settings`` are rejected, so a misspelled threshold
  never silently falls back to its default.
* Integer thresholds are non-negative; ``expiring_window_days`` is
  positive; ``late_fee_daily_rate`` is a non-negative Decimal.
* ``compute_checksum`` is deterministic for the same parsed content.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``InvalidSettingError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from rental_config.schema import EngineConfigurationSet, EngineSettings
from rental_kernel.exceptions import InvalidSettingError

_INT_FIELDS = (
    "payment_due_days",
    "expiring_window_days",
    "expiry_warning_days",
    "critical_postponement_days",
    "setting_cache_ttl_seconds",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _parse_int(key: str, value: Any) -> int:
    # bool is an int subclass; "true" is never a valid day count
    if isinstance(value, bool):
        raise InvalidSettingError(key, value, "must be an integer")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise InvalidSettingError(key, value, "must be an integer") from None
    if parsed < 0:
        raise InvalidSettingError(key, value, "cannot be negative")
    return parsed


def _parse_rate(key: str, value: Any) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except InvalidOperation:
        raise InvalidSettingError(key, value, "must be a decimal number") from None
    if not parsed.is_finite() or parsed < 0:
        raise InvalidSettingError(key, value, "must be a non-negative number")
    return parsed


def parse_engine_settings(data: dict[str, Any]) -> EngineSettings:
    """
    Parse the ``settings`` mapping of a configuration set.

    Missing keys take the dataclass defaults; unknown keys raise.
    """
    known = {f.name for f in fields(EngineSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidSettingError(unknown[0], data[unknown[0]], "unknown setting")

    values: dict[str, Any] = {}
    for key in _INT_FIELDS:
        if key in data:
            values[key] = _parse_int(key, data[key])
    if "late_fee_daily_rate" in data:
        values["late_fee_daily_rate"] = _parse_rate("late_fee_daily_rate", data["late_fee_daily_rate"])

    settings = EngineSettings(**values)
    if settings.expiring_window_days == 0:
        raise InvalidSettingError("expiring_window_days", 0, "must be positive")
    return settings


def compute_checksum(settings: EngineSettings) -> str:
    """SHA-256 over the canonical JSON form of the parsed settings."""
    canonical = json.dumps(asdict(settings), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_configuration_set(data: dict[str, Any]) -> EngineConfigurationSet:
    settings = parse_engine_settings(data.get("settings") or {})
    return EngineConfigurationSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        settings=settings,
        checksum=compute_checksum(settings),
        description=data.get("description", ""),
    )


def load_configuration_set(path: Path) -> EngineConfigurationSet:
    return parse_configuration_set(load_yaml_file(path))
