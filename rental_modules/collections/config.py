"""
Collection Module Configuration Schema.

Grace period, late-fee rate and escalation threshold for rent
installments.  Built from ``EngineSettings`` plus database overrides and
passed explicitly into the classifiers.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from rental_kernel.exceptions import InvalidSettingError
from rental_kernel.logging_config import get_logger

logger = get_logger("modules.collections.config")


@dataclass(frozen=True)
class CollectionConfig:
    """Configuration schema for the collections module."""

    # Days after due_date_start before an unpaid installment is overdue
    grace_days: int = 7

    # Late fee in percent of the installment amount, per day
    late_fee_daily_rate: Decimal = Decimal("0.05")

    # Postponements older or longer than this are critical
    critical_postponement_days: int = 30

    def __post_init__(self):
        if self.grace_days < 0:
            raise InvalidSettingError("payment_due_days", self.grace_days, "cannot be negative")
        if self.late_fee_daily_rate < 0:
            raise InvalidSettingError(
                "late_fee_daily_rate", self.late_fee_daily_rate, "cannot be negative"
            )
        if self.critical_postponement_days < 0:
            raise InvalidSettingError(
                "critical_postponement_days", self.critical_postponement_days, "cannot be negative"
            )

        logger.debug(
            "collection_config_initialized",
            extra={
                "grace_days": self.grace_days,
                "late_fee_daily_rate": str(self.late_fee_daily_rate),
                "critical_postponement_days": self.critical_postponement_days,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_settings(cls, settings, store=None) -> Self:
        """
        Build from ``EngineSettings``; ``store`` (a ``SettingsService``)
        overrides individual keys when it holds a row for them.
        """
        grace = settings.payment_due_days
        rate = settings.late_fee_daily_rate
        critical = settings.critical_postponement_days
        if store is not None:
            grace = store.get_int("payment_due_days", grace)
            rate = store.get_decimal("late_fee_daily_rate", rate)
            critical = store.get_int("critical_postponement_days", critical)
        return cls(grace_days=grace, late_fee_daily_rate=rate, critical_postponement_days=critical)
