"""Owner payout selectors (read side)."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import and_, func, select

from rental_kernel.selectors.base import BaseSelector, last_issued_sequence
from rental_modules.supply.orm import SupplyPaymentModel

_S = SupplyPaymentModel


class SupplyPaymentSelector(BaseSelector[SupplyPaymentModel]):
    """Read-only queries over owner payouts.  Filters mirror ``classify_supply_payment``."""

    def _today(self, today: date | None) -> date:
        return today if today is not None else self.clock.today()

    def _fetch(self, *criteria) -> list[SupplyPaymentModel]:
        stmt = select(_S).where(*criteria).order_by(_S.due_date, _S.payment_number)
        return list(self.session.execute(stmt).scalars())

    def get(self, payment_id: UUID) -> SupplyPaymentModel | None:
        return self.session.get(_S, payment_id)

    def for_contract(self, property_contract_id: UUID) -> list[SupplyPaymentModel]:
        return self._fetch(_S.property_contract_id == property_contract_id)

    def count_for_contract(self, property_contract_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(_S)
            .where(_S.property_contract_id == property_contract_id)
        )
        return self.session.execute(stmt).scalar_one()

    def for_owner(self, owner_id: UUID) -> list[SupplyPaymentModel]:
        return self._fetch(_S.owner_id == owner_id)

    def pending(self, today: date | None = None) -> list[SupplyPaymentModel]:
        return self._fetch(and_(_S.paid_date.is_(None), _S.due_date > self._today(today)))

    def worth_collecting(self, today: date | None = None) -> list[SupplyPaymentModel]:
        return self._fetch(and_(_S.paid_date.is_(None), _S.due_date <= self._today(today)))

    def collected(self) -> list[SupplyPaymentModel]:
        return self._fetch(_S.paid_date.is_not(None))

    def pending_previous(self, payment: SupplyPaymentModel) -> list[SupplyPaymentModel]:
        """Unpaid payouts of the same contract that fall due earlier."""
        return self._fetch(
            _S.property_contract_id == payment.property_contract_id,
            _S.due_date < payment.due_date,
            _S.paid_date.is_(None),
        )

    def last_payment_sequence(self, prefix: str, year: int) -> int:
        return last_issued_sequence(self.session, _S.payment_number, prefix, year)
