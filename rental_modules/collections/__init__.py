"""
Rent Collections Module (``rental_modules.collections``).

Derives the status of rent installments (collected, postponed, overdue,
due, upcoming), computes late fees, and records collections and
postponements through ``CollectionService`` (``.service``).
"""

from rental_modules.collections.config import CollectionConfig
from rental_modules.collections.models import (
    CollectionPayment,
    PaymentReport,
    PaymentStatus,
    TenantPaymentSummary,
)

__all__ = [
    "CollectionConfig",
    "CollectionPayment",
    "PaymentReport",
    "PaymentStatus",
    "TenantPaymentSummary",
]
