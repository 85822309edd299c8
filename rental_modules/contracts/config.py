"""
Contract Module Configuration Schema.

Thresholds used by the lifecycle classifier and the expiry batch.
"""

from dataclasses import dataclass
from typing import Self

from rental_kernel.exceptions import InvalidSettingError
from rental_kernel.logging_config import get_logger

logger = get_logger("modules.contracts.config")


@dataclass(frozen=True)
class ContractConfig:
    """Configuration schema for the contracts module."""

    # Active contracts ending within this many days display "expiring soon"
    expiring_window_days: int = 30

    # The expiry batch warns about contracts ending within this many days
    expiry_warning_days: int = 7

    def __post_init__(self):
        if self.expiring_window_days <= 0:
            raise InvalidSettingError(
                "expiring_window_days", self.expiring_window_days, "must be positive"
            )
        if self.expiry_warning_days < 0:
            raise InvalidSettingError(
                "expiry_warning_days", self.expiry_warning_days, "cannot be negative"
            )

        logger.debug(
            "contract_config_initialized",
            extra={
                "expiring_window_days": self.expiring_window_days,
                "expiry_warning_days": self.expiry_warning_days,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_settings(cls, settings, store=None) -> Self:
        """Build from ``EngineSettings`` with optional ``SettingsService`` overrides."""
        window = settings.expiring_window_days
        warning = settings.expiry_warning_days
        if store is not None:
            window = store.get_int("expiring_window_days", window)
            warning = store.get_int("expiry_warning_days", warning)
        return cls(expiring_window_days=window, expiry_warning_days=warning)
