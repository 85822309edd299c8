"""
Module: rental_modules.contracts.orm
Responsibility:
    SQLAlchemy ORM persistence models for rental (unit) and supply
    (property) contracts.

Architecture position:
    **Modules layer** -- ORM models inheriting from ``TrackedBase``.

Invariants enforced:
    - ``contract_status`` and ``payment_frequency`` are stored as strings and
      parsed strictly on every read (``parse_contract_status`` /
      ``parse_payment_frequency``).
    - ``end_date`` is derived from ``start_date`` and ``duration_months``
      on insert, and re-derived when either changes (listeners in
      ``rental_kernel.db.immutability``).
    - No status column other than ``contract_status`` is stored: the display
      status is always recomputed.

Failure modes:
    - IntegrityError on duplicate ``contract_number``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase, UUIDString
from rental_modules.contracts.calculations import (
    parse_contract_status,
    parse_payment_frequency,
    resolve_payments_count,
)
from rental_modules.contracts.models import (
    ContractKind,
    ContractStatus,
    PaymentFrequency,
)


class _ContractColumns:
    """Columns and parsed accessors shared by both contract tables."""

    contract_number: Mapped[str] = mapped_column(String(64), nullable=False)
    property_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    duration_months: Mapped[int] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date] = mapped_column(nullable=False)
    contract_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ContractStatus.DRAFT.value
    )
    payment_frequency: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentFrequency.MONTHLY.value
    )
    payments_count: Mapped[int | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    terminated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    terminated_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def status(self) -> ContractStatus:
        return parse_contract_status(self.contract_status, self.kind)

    @property
    def frequency(self) -> PaymentFrequency:
        return parse_payment_frequency(self.payment_frequency)

    @property
    def effective_payments_count(self) -> int:
        return resolve_payments_count(
            self.payments_count, self.duration_months, self.payment_frequency
        )


# =============================================================================
# Rental contract
# =============================================================================


class UnitContractModel(_ContractColumns, TrackedBase):
    """
    A tenant's rental contract on a unit.

    Guarantees:
        - ``contract_number`` is unique (uq_unit_contract_number).
        - ``contract_status`` is one of: draft, active, expired, terminated, renewed.
        - ``monthly_rent`` and ``security_deposit`` are Decimal.
    """

    __tablename__ = "unit_contracts"

    __table_args__ = (
        UniqueConstraint("contract_number", name="uq_unit_contract_number"),
        Index("idx_unit_contract_unit", "unit_id"),
        Index("idx_unit_contract_tenant", "tenant_id"),
        Index("idx_unit_contract_status_end", "contract_status", "end_date"),
    )

    kind = ContractKind.RENTAL

    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    unit_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    monthly_rent: Mapped[Decimal] = mapped_column(nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    renewed_from_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<UnitContractModel {self.contract_number} {self.contract_status}>"


# =============================================================================
# Supply contract
# =============================================================================


class PropertyContractModel(_ContractColumns, TrackedBase):
    """
    An owner's supply contract on a property.

    Guarantees:
        - ``contract_number`` is unique (uq_property_contract_number).
        - ``contract_status`` is one of: draft, active, suspended, expired, terminated.
        - ``commission_rate`` is a percentage (e.g. 5.00 for 5 %).
    """

    __tablename__ = "property_contracts"

    __table_args__ = (
        UniqueConstraint("contract_number", name="uq_property_contract_number"),
        Index("idx_property_contract_property", "property_id"),
        Index("idx_property_contract_owner", "owner_id"),
        Index("idx_property_contract_status_end", "contract_status", "end_date"),
    )

    kind = ContractKind.SUPPLY

    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    commission_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    payment_day: Mapped[int | None] = mapped_column(nullable=True)
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<PropertyContractModel {self.contract_number} {self.contract_status}>"
