"""
Module: rental_modules.collections.orm
Responsibility:
    SQLAlchemy ORM persistence model for rent installments.

Architecture position:
    **Modules layer** -- ORM model inheriting from ``TrackedBase``.

Invariants enforced:
    - No status column: ``PaymentStatus`` is derived from the stored dates
      and delay on every read.
    - ``total_amount = amount + late_fee`` and ``month_year`` are derived on
      insert and update (listeners in ``rental_kernel.db.immutability``).
    - Rows are never deleted (``before_delete`` guard).

Failure modes:
    - IntegrityError on duplicate ``payment_number`` or ``receipt_number``.
    - RecordDeletionForbiddenError on any delete attempt.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rental_kernel.db.base import TrackedBase, UUIDString


class CollectionPaymentModel(TrackedBase):
    """
    One rent installment of a unit contract.

    Guarantees:
        - ``due_date_start <= due_date_end`` for generated rows.
        - ``collection_date`` set means the installment is collected.
        - ``delay_duration > 0`` means the installment is postponed.
    """

    __tablename__ = "collection_payments"

    __table_args__ = (
        UniqueConstraint("payment_number", name="uq_collection_payment_number"),
        UniqueConstraint("receipt_number", name="uq_collection_receipt_number"),
        Index("idx_collection_contract", "unit_contract_id"),
        Index("idx_collection_tenant", "tenant_id"),
        Index("idx_collection_property", "property_id"),
        Index("idx_collection_due_start", "due_date_start"),
        Index("idx_collection_month", "month_year"),
    )

    payment_number: Mapped[str] = mapped_column(String(32), nullable=False)
    unit_contract_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("unit_contracts.id"), nullable=False
    )
    tenant_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    unit_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    property_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)
    late_fee: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    due_date_start: Mapped[date] = mapped_column(nullable=False)
    due_date_end: Mapped[date] = mapped_column(nullable=False)
    month_year: Mapped[str] = mapped_column(String(7), nullable=False, default="")

    paid_date: Mapped[date | None] = mapped_column(nullable=True)
    collection_date: Mapped[date | None] = mapped_column(nullable=True)
    collected_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    delay_duration: Mapped[int | None] = mapped_column(nullable=True)
    delay_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    postponed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    late_payment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receipt_number: Mapped[str | None] = mapped_column(String(32), nullable=True)

    def to_dto(self, status, evaluated_on: date):
        from rental_modules.collections.models import CollectionPayment

        return CollectionPayment(
            id=self.id,
            unit_contract_id=self.unit_contract_id,
            payment_number=self.payment_number,
            tenant_id=self.tenant_id,
            unit_id=self.unit_id,
            property_id=self.property_id,
            amount=self.amount,
            late_fee=self.late_fee,
            total_amount=self.total_amount,
            due_date_start=self.due_date_start,
            due_date_end=self.due_date_end,
            month_year=self.month_year,
            status=status,
            evaluated_on=evaluated_on,
            collection_date=self.collection_date,
            paid_date=self.paid_date,
            delay_duration=self.delay_duration,
            delay_reason=self.delay_reason,
            receipt_number=self.receipt_number,
        )

    def __repr__(self) -> str:
        return f"<CollectionPaymentModel {self.payment_number} {self.due_date_start}>"
