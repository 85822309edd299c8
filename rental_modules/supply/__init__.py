"""Owner payouts of supply contracts (``rental_modules.supply``)."""

from rental_modules.supply.models import (
    ConfirmationCheck,
    SupplyAmounts,
    SupplyConfirmation,
    SupplyPayment,
    SupplyStatus,
)

__all__ = [
    "ConfirmationCheck",
    "SupplyAmounts",
    "SupplyConfirmation",
    "SupplyPayment",
    "SupplyStatus",
]
