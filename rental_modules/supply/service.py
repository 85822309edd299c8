"""
Owner Payout Service (``rental_modules.supply.service``).

Responsibility
--------------
Derives payout status and confirms payouts to property owners.  On
confirmation the payout amounts are computed from the rent actually
collected on the property during the payout period, less the office
commission and any deductions.

Invariants enforced
-------------------
* A payout is confirmed only when it is due (calendar day), unpaid, and
  no earlier payout of the same contract is still open.
* ``confirm_payment`` owns the transaction (``commit`` on success,
  ``rollback`` and re-raise on failure).

Failure modes
-------------
* ``RecordNotFoundError``         -- unknown payout id.
* ``PaymentNotConfirmableError``  -- carries every blocking reason.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.exceptions import PaymentNotConfirmableError, RecordNotFoundError
from rental_kernel.logging_config import LogContext, get_logger
from rental_modules.collections.selectors import CollectionPaymentSelector
from rental_modules.supply.calculations import (
    calculate_commission,
    calculate_net_amount,
    classify_supply_payment,
    confirmation_blockers,
)
from rental_modules.supply.models import (
    ConfirmationCheck,
    SupplyAmounts,
    SupplyConfirmation,
    SupplyPayment,
)
from rental_modules.supply.orm import SupplyPaymentModel
from rental_modules.supply.selectors import SupplyPaymentSelector

logger = get_logger("modules.supply.service")

_ZERO = Decimal("0")


class SupplyPaymentService:
    """Payout desk operations for supply contracts."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._selector = SupplyPaymentSelector(session, self._clock)
        self._collections = CollectionPaymentSelector(session, self._clock)

    def _get(self, payment_id: UUID) -> SupplyPaymentModel:
        payment = self._selector.get(payment_id)
        if payment is None:
            raise RecordNotFoundError("supply_payment", str(payment_id))
        return payment

    def _dto(self, payment: SupplyPaymentModel) -> SupplyPayment:
        today = self._clock.today()
        status = classify_supply_payment(today, payment.due_date, payment.paid_date)
        return payment.to_dto(status, today)

    def status_of(self, payment_id: UUID) -> SupplyPayment:
        return self._dto(self._get(payment_id))

    def worth_collecting(self) -> list[SupplyPayment]:
        return [self._dto(p) for p in self._selector.worth_collecting()]

    # =========================================================================
    # Amounts
    # =========================================================================

    def calculate_amounts(
        self,
        payment_id: UUID,
        maintenance_deduction: Decimal = _ZERO,
        other_deductions: Decimal = _ZERO,
    ) -> SupplyAmounts:
        """Breakdown of the payout from rent collected during its period."""
        return self._amounts(self._get(payment_id), maintenance_deduction, other_deductions)

    def _amounts(
        self,
        payment: SupplyPaymentModel,
        maintenance_deduction: Decimal,
        other_deductions: Decimal,
    ) -> SupplyAmounts:
        collected = self._collections.collected_for_property(
            payment.property_id, payment.period_start, payment.period_end
        )
        gross = sum((c.total_amount for c in collected), _ZERO)
        commission = calculate_commission(gross, payment.commission_rate)
        return SupplyAmounts(
            gross_amount=gross,
            commission_amount=commission,
            maintenance_deduction=maintenance_deduction,
            other_deductions=other_deductions,
            net_amount=calculate_net_amount(
                gross, payment.commission_rate, maintenance_deduction, other_deductions
            ),
            collections_count=len(collected),
            period_start=payment.period_start,
            period_end=payment.period_end,
        )

    # =========================================================================
    # Confirmation
    # =========================================================================

    def can_confirm(self, payment_id: UUID) -> ConfirmationCheck:
        payment = self._get(payment_id)
        reasons = self._blockers(payment)
        return ConfirmationCheck(can_confirm=not reasons, reasons=reasons)

    def _blockers(self, payment: SupplyPaymentModel) -> tuple[str, ...]:
        return confirmation_blockers(
            self._clock.today(),
            payment.due_date,
            payment.paid_date,
            len(self._selector.pending_previous(payment)),
        )

    def confirm_payment(
        self,
        payment_id: UUID,
        actor_id: UUID | None = None,
        maintenance_deduction: Decimal = _ZERO,
        other_deductions: Decimal = _ZERO,
        bank_transfer_reference: str | None = None,
    ) -> SupplyConfirmation:
        """
        Pay out (or settle) one period to the owner.

        A non-positive net amount still confirms the payout as a
        settlement; a negative net is a debt of the owner.
        """
        with LogContext.bind(payment_id=payment_id, actor_id=actor_id):
            try:
                payment = self._get(payment_id)
                reasons = self._blockers(payment)
                if reasons:
                    raise PaymentNotConfirmableError(str(payment.id), reasons)

                amounts = self._amounts(payment, maintenance_deduction, other_deductions)
                payment.gross_amount = amounts.gross_amount
                payment.commission_amount = amounts.commission_amount
                payment.maintenance_deduction = amounts.maintenance_deduction
                payment.other_deductions = amounts.other_deductions
                payment.net_amount = amounts.net_amount
                payment.paid_date = self._clock.today()
                payment.collected_by_id = actor_id
                payment.updated_by_id = actor_id
                payment.bank_transfer_reference = bank_transfer_reference
                self._session.commit()
            except PaymentNotConfirmableError as exc:
                self._session.rollback()
                logger.warning(
                    "supply_payment_confirmation_blocked",
                    extra={"reasons": list(exc.reasons)},
                )
                raise
            except Exception:
                self._session.rollback()
                raise

            result = SupplyConfirmation(payment=self._dto(payment), amounts=amounts)
            logger.info(
                "supply_payment_confirmed",
                extra={
                    "payment_number": payment.payment_number,
                    "net_amount": str(amounts.net_amount),
                    "is_settlement": result.is_settlement,
                },
            )
            return result
