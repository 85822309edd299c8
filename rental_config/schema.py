"""
Configuration Schema (``rental_config.schema``).

Frozen dataclasses describing an engine configuration set.  Parsing and
validation live in ``rental_config.loader``; nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class EngineSettings:
    """Thresholds consumed by the classifiers, services and batch jobs."""

    payment_due_days: int = 7
    expiring_window_days: int = 30
    expiry_warning_days: int = 7
    late_fee_daily_rate: Decimal = Decimal("0.05")
    critical_postponement_days: int = 30
    setting_cache_ttl_seconds: int = 3600


@dataclass(frozen=True)
class EngineConfigurationSet:
    """A versioned, checksummed configuration set loaded from YAML."""

    config_id: str
    version: int
    settings: EngineSettings
    checksum: str
    description: str = ""
