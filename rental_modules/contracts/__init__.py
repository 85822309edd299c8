"""
Contracts Module (``rental_modules.contracts``).

Rental contracts bind a tenant to a unit; supply contracts bind an owner's
property to the office.  This package derives end dates, installment
counts and schedules, and the display status of a contract from its
stored status and dates.  ``ContractService`` (``.service``) is the
transaction-owning entry point.
"""

from rental_modules.contracts.config import ContractConfig
from rental_modules.contracts.models import (
    ContractDisplayStatus,
    ContractKind,
    ContractLifecycle,
    ContractStatus,
    ContractSummary,
    Installment,
    PaymentFrequency,
)

__all__ = [
    "ContractConfig",
    "ContractDisplayStatus",
    "ContractKind",
    "ContractLifecycle",
    "ContractStatus",
    "ContractSummary",
    "Installment",
    "PaymentFrequency",
]
