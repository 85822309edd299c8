"""
Contract Domain Models (``rental_modules.contracts.models``).

Responsibility
--------------
Enums and frozen dataclass value objects for rental (unit) and supply
(property) contracts: stored status, payment frequency, the derived
display status, and installment schedule lines.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Rental contracts never carry ``suspended``; supply contracts never carry
  ``renewed``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PaymentFrequency(Enum):
    """How often an installment falls due."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"

    @property
    def months_per_installment(self) -> int:
        return _MONTHS_PER_INSTALLMENT[self]

    @property
    def label(self) -> str:
        return _FREQUENCY_LABELS[self]


_MONTHS_PER_INSTALLMENT = {
    PaymentFrequency.MONTHLY: 1,
    PaymentFrequency.QUARTERLY: 3,
    PaymentFrequency.SEMI_ANNUALLY: 6,
    PaymentFrequency.ANNUALLY: 12,
}

_FREQUENCY_LABELS = {
    PaymentFrequency.MONTHLY: "Monthly",
    PaymentFrequency.QUARTERLY: "Quarterly (3 months)",
    PaymentFrequency.SEMI_ANNUALLY: "Semi-annually (6 months)",
    PaymentFrequency.ANNUALLY: "Annually (12 months)",
}


class ContractKind(Enum):
    """Rental contracts bind a tenant to a unit; supply contracts bind an
    owner's property to the office for payouts."""
    RENTAL = "rental"
    SUPPLY = "supply"


class ContractStatus(Enum):
    """Stored contract status (advanced by people and the expiry batch)."""
    DRAFT = "draft"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    EXPIRED = "expired"
    TERMINATED = "terminated"
    RENEWED = "renewed"


RENTAL_STATUSES: tuple[ContractStatus, ...] = (
    ContractStatus.DRAFT,
    ContractStatus.ACTIVE,
    ContractStatus.EXPIRED,
    ContractStatus.TERMINATED,
    ContractStatus.RENEWED,
)

SUPPLY_STATUSES: tuple[ContractStatus, ...] = (
    ContractStatus.DRAFT,
    ContractStatus.ACTIVE,
    ContractStatus.SUSPENDED,
    ContractStatus.EXPIRED,
    ContractStatus.TERMINATED,
)

STATUSES_BY_KIND: dict[ContractKind, tuple[ContractStatus, ...]] = {
    ContractKind.RENTAL: RENTAL_STATUSES,
    ContractKind.SUPPLY: SUPPLY_STATUSES,
}

# Statuses that still occupy the unit / property for overlap checks
BOOKING_STATUSES: tuple[ContractStatus, ...] = (
    ContractStatus.DRAFT,
    ContractStatus.ACTIVE,
    ContractStatus.RENEWED,
)


class ContractDisplayStatus(Enum):
    """Status shown to operators, derived at read time from stored fields."""
    DRAFT = "draft"
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    TERMINATED = "terminated"
    RENEWED = "renewed"
    SUSPENDED = "suspended"

    @property
    def label(self) -> str:
        return _DISPLAY_LABELS[self]

    @property
    def color(self) -> str:
        return _DISPLAY_COLORS[self]


_DISPLAY_LABELS = {
    ContractDisplayStatus.DRAFT: "Draft",
    ContractDisplayStatus.NOT_STARTED: "Active (not started)",
    ContractDisplayStatus.ACTIVE: "Active",
    ContractDisplayStatus.EXPIRING_SOON: "Active, expiring soon",
    ContractDisplayStatus.EXPIRED: "Expired",
    ContractDisplayStatus.TERMINATED: "Terminated",
    ContractDisplayStatus.RENEWED: "Renewed",
    ContractDisplayStatus.SUSPENDED: "Suspended",
}

_DISPLAY_COLORS = {
    ContractDisplayStatus.DRAFT: "gray",
    ContractDisplayStatus.NOT_STARTED: "info",
    ContractDisplayStatus.ACTIVE: "success",
    ContractDisplayStatus.EXPIRING_SOON: "warning",
    ContractDisplayStatus.EXPIRED: "danger",
    ContractDisplayStatus.TERMINATED: "danger",
    ContractDisplayStatus.RENEWED: "info",
    ContractDisplayStatus.SUSPENDED: "gray",
}


@dataclass(frozen=True)
class ContractLifecycle:
    """Result of classifying a contract against "today"."""
    display_status: ContractDisplayStatus
    remaining_days: int
    is_active: bool
    has_expired: bool

    @property
    def label(self) -> str:
        return self.display_status.label

    @property
    def color(self) -> str:
        return self.display_status.color


@dataclass(frozen=True)
class Installment:
    """One line of a contract's installment schedule."""
    sequence: int
    period_start: date
    period_end: date
    amount: Decimal
    month_year: str


@dataclass(frozen=True)
class ContractSummary:
    """Read model returned by ``ContractService.describe``."""
    id: UUID
    contract_number: str
    kind: ContractKind
    stored_status: ContractStatus
    start_date: date
    end_date: date
    duration_months: int
    payment_frequency: PaymentFrequency
    payments_count: int
    lifecycle: ContractLifecycle
