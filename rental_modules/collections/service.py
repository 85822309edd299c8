"""
Rent Collection Service (``rental_modules.collections.service``).

Responsibility
--------------
Records collections and postponements of rent installments, refreshes
late fees, and produces status-aware reports.  Status is always derived
through ``classify_collection_payment`` with the injected clock and
``CollectionConfig``; nothing here stores a status.

Architecture position
---------------------
**Modules layer** -- ``CollectionService`` composes the pure functions of
``collections.calculations`` with ``CollectionPaymentSelector``.

Invariants enforced
-------------------
* Each state-changing method owns the transaction (``commit`` on success,
  ``rollback`` and re-raise on failure).
* A collected installment is never collected or postponed again.
* A postponed installment is never postponed a second time.

Failure modes
-------------
* ``RecordNotFoundError``           -- unknown payment id.
* ``PaymentAlreadyCollectedError``  -- collect / postpone on a paid row.
* ``PaymentNotPostponableError``    -- postpone on an already postponed row.
* ``ValueError``                    -- non-positive postponement.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.exceptions import (
    PaymentAlreadyCollectedError,
    PaymentNotPostponableError,
    RecordNotFoundError,
)
from rental_kernel.logging_config import LogContext, get_logger
from rental_modules.collections.calculations import (
    calculate_late_fee,
    calculate_total_amount,
    can_be_collected,
    classify_installment,
    days_overdue,
    format_receipt_number,
)
from rental_modules.collections.config import CollectionConfig
from rental_modules.collections.models import (
    CollectionPayment,
    PaymentReport,
    PaymentStatus,
    TenantPaymentSummary,
)
from rental_modules.collections.orm import CollectionPaymentModel
from rental_modules.collections.selectors import CollectionPaymentSelector

logger = get_logger("modules.collections.service")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class BulkCollectionResult:
    """Outcome of one row in ``collect_many``."""
    payment_id: UUID
    success: bool
    receipt_number: str | None = None
    error_code: str | None = None
    error_message: str | None = None


class CollectionService:
    """
    Collection desk operations on rent installments.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * Grace days and the late-fee rate come from ``CollectionConfig``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: CollectionConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or CollectionConfig.with_defaults()
        self._selector = CollectionPaymentSelector(session, self._clock, self._config)

    # =========================================================================
    # Reads
    # =========================================================================

    def _get(self, payment_id: UUID) -> CollectionPaymentModel:
        payment = self._selector.get(payment_id)
        if payment is None:
            raise RecordNotFoundError("collection_payment", str(payment_id))
        return payment

    def _status(self, payment: CollectionPaymentModel, today: date) -> PaymentStatus:
        return classify_installment(payment, today, self._config.grace_days)

    def _dto(self, payment: CollectionPaymentModel, today: date) -> CollectionPayment:
        return payment.to_dto(self._status(payment, today), today)

    def status_of(self, payment_id: UUID) -> CollectionPayment:
        """Snapshot of one installment with its status as of today."""
        today = self._clock.today()
        return self._dto(self._get(payment_id), today)

    def list_by_status(
        self, status: PaymentStatus, property_id: UUID | None = None
    ) -> list[CollectionPayment]:
        today = self._clock.today()
        rows = self._selector.by_status(status, today)
        if property_id is not None:
            rows = [r for r in rows if r.property_id == property_id]
        return [self._dto(r, today) for r in rows]

    def due_for_collection(self, property_id: UUID | None = None) -> list[CollectionPayment]:
        """The collection desk work list: due and overdue installments."""
        today = self._clock.today()
        return [self._dto(r, today) for r in self._selector.due_for_collection(today, property_id)]

    def critical_postponed(self) -> list[CollectionPayment]:
        today = self._clock.today()
        return [self._dto(r, today) for r in self._selector.critical_postponed(today)]

    # =========================================================================
    # Collection
    # =========================================================================

    def _next_receipt_number(self, year: int) -> str:
        return format_receipt_number(year, self._selector.last_receipt_sequence(year) + 1)

    def _apply_collection(
        self,
        payment: CollectionPaymentModel,
        actor_id: UUID | None,
        paid_date: date | None,
        payment_reference: str | None,
    ) -> None:
        if not can_be_collected(payment.collection_date):
            raise PaymentAlreadyCollectedError(str(payment.id), payment.collection_date)

        today = self._clock.today()
        payment.collection_date = today
        payment.paid_date = paid_date or today
        payment.collected_by_id = actor_id
        payment.payment_reference = payment_reference
        payment.receipt_number = self._next_receipt_number(today.year)
        payment.updated_by_id = actor_id
        self._session.flush()

    def collect(
        self,
        payment_id: UUID,
        actor_id: UUID | None = None,
        paid_date: date | None = None,
        payment_reference: str | None = None,
    ) -> CollectionPayment:
        """
        Mark an installment as collected today and issue a receipt number.

        ``paid_date`` records when the tenant actually paid when it differs
        from the collection day.
        """
        with LogContext.bind(payment_id=payment_id, actor_id=actor_id):
            try:
                payment = self._get(payment_id)
                self._apply_collection(payment, actor_id, paid_date, payment_reference)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "payment_collected",
                extra={
                    "payment_number": payment.payment_number,
                    "receipt_number": payment.receipt_number,
                    "total_amount": str(payment.total_amount),
                },
            )
            return self._dto(payment, self._clock.today())

    def collect_many(
        self,
        payment_ids: Iterable[UUID],
        actor_id: UUID | None = None,
        paid_date: date | None = None,
    ) -> list[BulkCollectionResult]:
        """
        Collect several installments; one failure does not stop the rest.

        Each installment is committed on its own.
        """
        results: list[BulkCollectionResult] = []
        for payment_id in payment_ids:
            try:
                dto = self.collect(payment_id, actor_id=actor_id, paid_date=paid_date)
            except (RecordNotFoundError, PaymentAlreadyCollectedError) as exc:
                logger.warning(
                    "bulk_collection_item_failed",
                    extra={"payment_id": str(payment_id), "error_code": exc.code},
                )
                results.append(
                    BulkCollectionResult(
                        payment_id=payment_id,
                        success=False,
                        error_code=exc.code,
                        error_message=str(exc),
                    )
                )
            else:
                results.append(
                    BulkCollectionResult(
                        payment_id=payment_id,
                        success=True,
                        receipt_number=dto.receipt_number,
                    )
                )
        logger.info(
            "bulk_collection_completed",
            extra={
                "requested": len(results),
                "succeeded": sum(1 for r in results if r.success),
            },
        )
        return results

    # =========================================================================
    # Postponement
    # =========================================================================

    def postpone(
        self,
        payment_id: UUID,
        days: int,
        reason: str,
        actor_id: UUID | None = None,
    ) -> CollectionPayment:
        """Postpone an open installment by ``days`` (> 0)."""
        if days <= 0:
            raise ValueError("Postponement must be at least one day")

        with LogContext.bind(payment_id=payment_id, actor_id=actor_id):
            try:
                payment = self._get(payment_id)
                if payment.collection_date is not None:
                    raise PaymentAlreadyCollectedError(str(payment.id), payment.collection_date)
                if payment.delay_duration is not None and payment.delay_duration > 0:
                    raise PaymentNotPostponableError(str(payment.id), payment.delay_duration)

                payment.delay_duration = days
                payment.delay_reason = reason
                payment.postponed_at = self._clock.now()
                payment.updated_by_id = actor_id
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "payment_postponed",
                extra={"payment_number": payment.payment_number, "delay_duration": days},
            )
            return self._dto(payment, self._clock.today())

    # =========================================================================
    # Late fees
    # =========================================================================

    def update_late_fees(self) -> int:
        """
        Recompute the late fee of every overdue installment.

        The fee accrues per day past ``due_date_end``; installments still
        inside their period carry no fee.  Returns the number of rows touched.
        """
        today = self._clock.today()
        rate = self._config.late_fee_daily_rate
        updated = 0
        try:
            for payment in self._selector.overdue(today):
                fee = calculate_late_fee(
                    payment.amount,
                    days_overdue(today, payment.due_date_end, payment.collection_date),
                    rate,
                )
                payment.late_fee = fee
                payment.total_amount = calculate_total_amount(payment.amount, fee)
                updated += 1
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "late_fees_updated",
            extra={"updated_count": updated, "late_fee_daily_rate": str(rate)},
        )
        return updated

    # =========================================================================
    # Reports
    # =========================================================================

    def payment_report(
        self,
        *,
        property_id: UUID | None = None,
        tenant_id: UUID | None = None,
        unit_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        month_year: str | None = None,
        status: PaymentStatus | None = None,
    ) -> PaymentReport:
        """Totals of ``total_amount`` per derived status over the filtered rows."""
        today = self._clock.today()
        rows = self._selector.filtered(
            property_id=property_id,
            tenant_id=tenant_id,
            unit_id=unit_id,
            date_from=date_from,
            date_to=date_to,
            month_year=month_year,
            statuses=[status] if status is not None else None,
            today=today,
        )

        amounts = {s: _ZERO for s in PaymentStatus}
        counts = {s: 0 for s in PaymentStatus}
        total = _ZERO
        for row in rows:
            row_status = self._status(row, today)
            amounts[row_status] += row.total_amount
            counts[row_status] += 1
            total += row.total_amount

        return PaymentReport(
            total_payments=len(rows),
            total_amount=total,
            amount_by_status=amounts,
            count_by_status=counts,
        )

    def tenant_summary(self, tenant_id: UUID) -> TenantPaymentSummary:
        today = self._clock.today()
        rows = self._selector.for_tenant(tenant_id)
        statuses = [self._status(r, today) for r in rows]
        return TenantPaymentSummary(
            tenant_id=tenant_id,
            total_payments=len(rows),
            total_amount=sum((r.total_amount for r in rows), _ZERO),
            collected_amount=sum(
                (r.total_amount for r, s in zip(rows, statuses) if s is PaymentStatus.COLLECTED),
                _ZERO,
            ),
            pending_amount=sum(
                (r.total_amount for r in rows if r.collection_date is None), _ZERO
            ),
            overdue_count=sum(1 for s in statuses if s is PaymentStatus.OVERDUE),
        )
