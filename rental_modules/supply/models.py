"""
Owner Payout Domain Models (``rental_modules.supply.models``).

The derived ``SupplyStatus`` of an owner payout and the value objects
returned by ``SupplyPaymentService``.  Pure data, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class SupplyStatus(Enum):
    """Derived status of an owner payout.  There is no grace period."""
    PENDING = "pending"
    WORTH_COLLECTING = "worth_collecting"
    COLLECTED = "collected"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def color(self) -> str:
        return _COLORS[self]


_LABELS = {
    SupplyStatus.PENDING: "Pending",
    SupplyStatus.WORTH_COLLECTING: "Ready for payout",
    SupplyStatus.COLLECTED: "Paid out",
}

_COLORS = {
    SupplyStatus.PENDING: "warning",
    SupplyStatus.WORTH_COLLECTING: "info",
    SupplyStatus.COLLECTED: "success",
}


@dataclass(frozen=True)
class SupplyPayment:
    """Snapshot of an owner payout with its status as of ``evaluated_on``."""
    id: UUID
    property_contract_id: UUID
    payment_number: str
    owner_id: UUID
    property_id: UUID
    due_date: date
    period_start: date
    period_end: date
    month_year: str
    commission_rate: Decimal
    gross_amount: Decimal
    commission_amount: Decimal
    maintenance_deduction: Decimal
    other_deductions: Decimal
    net_amount: Decimal
    status: SupplyStatus
    evaluated_on: date
    paid_date: date | None = None


@dataclass(frozen=True)
class SupplyAmounts:
    """Payout breakdown for one period."""
    gross_amount: Decimal
    commission_amount: Decimal
    maintenance_deduction: Decimal
    other_deductions: Decimal
    net_amount: Decimal
    collections_count: int
    period_start: date
    period_end: date

    @property
    def is_settlement(self) -> bool:
        """Nothing (or less than nothing) is owed to the owner."""
        return self.net_amount <= 0


@dataclass(frozen=True)
class ConfirmationCheck:
    can_confirm: bool
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class SupplyConfirmation:
    """Result of ``SupplyPaymentService.confirm_payment``."""
    payment: SupplyPayment
    amounts: SupplyAmounts

    @property
    def is_settlement(self) -> bool:
        return self.amounts.is_settlement

    @property
    def owner_debt(self) -> Decimal:
        """Amount the owner owes the office when deductions exceed collections."""
        return max(Decimal("0"), -self.amounts.net_amount)
