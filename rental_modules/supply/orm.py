"""
Module: rental_modules.supply.orm
Responsibility:
    SQLAlchemy ORM persistence model for owner payouts.

Invariants enforced:
    - No status column: ``SupplyStatus`` is derived from ``due_date`` and
      ``paid_date``.
    - ``commission_rate`` is snapshotted from the contract when the payout
      is scheduled, so later contract edits do not rewrite history.
    - Amounts stay zero until the payout is confirmed.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase, UUIDString


class SupplyPaymentModel(TrackedBase):
    """One scheduled payout of a property (supply) contract."""

    __tablename__ = "supply_payments"

    __table_args__ = (
        UniqueConstraint("payment_number", name="uq_supply_payment_number"),
        Index("idx_supply_contract", "property_contract_id"),
        Index("idx_supply_owner", "owner_id"),
        Index("idx_supply_due", "due_date"),
    )

    payment_number: Mapped[str] = mapped_column(String(32), nullable=False)
    property_contract_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("property_contracts.id"), nullable=False
    )
    owner_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    property_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    due_date: Mapped[date] = mapped_column(nullable=False)
    period_start: Mapped[date] = mapped_column(nullable=False)
    period_end: Mapped[date] = mapped_column(nullable=False)
    month_year: Mapped[str] = mapped_column(String(7), nullable=False)
    paid_date: Mapped[date | None] = mapped_column(nullable=True)
    collected_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    commission_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    gross_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    commission_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    maintenance_deduction: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    other_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    net_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    bank_transfer_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self, status, evaluated_on: date):
        from rental_modules.supply.models import SupplyPayment

        return SupplyPayment(
            id=self.id,
            property_contract_id=self.property_contract_id,
            payment_number=self.payment_number,
            owner_id=self.owner_id,
            property_id=self.property_id,
            due_date=self.due_date,
            period_start=self.period_start,
            period_end=self.period_end,
            month_year=self.month_year,
            commission_rate=self.commission_rate,
            gross_amount=self.gross_amount,
            commission_amount=self.commission_amount,
            maintenance_deduction=self.maintenance_deduction,
            other_deductions=self.other_deductions,
            net_amount=self.net_amount,
            status=status,
            evaluated_on=evaluated_on,
            paid_date=self.paid_date,
        )

    def __repr__(self) -> str:
        return f"<SupplyPaymentModel {self.payment_number} due={self.due_date}>"
