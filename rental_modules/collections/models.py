"""
Rent Collection Domain Models (``rental_modules.collections.models``).

Responsibility
--------------
The derived ``PaymentStatus`` of a rent installment and the frozen value
objects returned by the collection service (payment snapshot, report,
tenant summary).

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* ``PaymentStatus`` is never stored; it is derived on every read.
* All monetary fields use ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentStatus(Enum):
    """Derived status of a rent installment."""
    COLLECTED = "collected"
    DUE = "due"
    POSTPONED = "postponed"
    OVERDUE = "overdue"
    UPCOMING = "upcoming"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @classmethod
    def options(cls) -> dict[str, str]:
        """value -> label, for filter widgets."""
        return {status.value: status.label for status in cls}

    @classmethod
    def from_label(cls, label: str) -> PaymentStatus | None:
        for status in cls:
            if status.label == label:
                return status
        return None


_LABELS = {
    PaymentStatus.COLLECTED: "Collected",
    PaymentStatus.DUE: "Due",
    PaymentStatus.POSTPONED: "Postponed",
    PaymentStatus.OVERDUE: "Overdue",
    PaymentStatus.UPCOMING: "Upcoming",
}

_COLORS = {
    PaymentStatus.COLLECTED: "success",
    PaymentStatus.DUE: "warning",
    PaymentStatus.POSTPONED: "info",
    PaymentStatus.OVERDUE: "danger",
    PaymentStatus.UPCOMING: "gray",
}

_ICONS = {
    PaymentStatus.COLLECTED: "heroicon-o-check-circle",
    PaymentStatus.DUE: "heroicon-o-clock",
    PaymentStatus.POSTPONED: "heroicon-o-pause-circle",
    PaymentStatus.OVERDUE: "heroicon-o-exclamation-circle",
    PaymentStatus.UPCOMING: "heroicon-o-calendar",
}


@dataclass(frozen=True)
class CollectionPayment:
    """Snapshot of a rent installment with its status as of ``evaluated_on``."""
    id: UUID
    unit_contract_id: UUID
    payment_number: str
    tenant_id: UUID
    unit_id: UUID
    property_id: UUID
    amount: Decimal
    late_fee: Decimal
    total_amount: Decimal
    due_date_start: date
    due_date_end: date
    month_year: str
    status: PaymentStatus
    evaluated_on: date
    collection_date: date | None = None
    paid_date: date | None = None
    delay_duration: int | None = None
    delay_reason: str | None = None
    receipt_number: str | None = None


@dataclass(frozen=True)
class PaymentReport:
    """Totals over a filtered set of rent installments, per derived status."""
    total_payments: int
    total_amount: Decimal
    amount_by_status: dict[PaymentStatus, Decimal] = field(default_factory=dict)
    count_by_status: dict[PaymentStatus, int] = field(default_factory=dict)

    def amount_for(self, status: PaymentStatus) -> Decimal:
        return self.amount_by_status.get(status, Decimal("0"))

    def count_for(self, status: PaymentStatus) -> int:
        return self.count_by_status.get(status, 0)


@dataclass(frozen=True)
class TenantPaymentSummary:
    tenant_id: UUID
    total_payments: int
    total_amount: Decimal
    collected_amount: Decimal
    pending_amount: Decimal
    overdue_count: int
