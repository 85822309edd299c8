"""
Rent installment selectors (read side).

SQL renditions of the set filters in ``collections.calculations``.  Each
``*_clause`` function returns a boolean expression that selects exactly the
rows the in-memory filter of the same name would keep, so reports built in
SQL and statuses shown per row never disagree.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import and_, false, func, or_, select
from sqlalchemy.sql.elements import ColumnElement

from rental_kernel.selectors.base import BaseSelector, last_issued_sequence
from rental_modules.collections.calculations import overdue_cutoff
from rental_modules.collections.config import CollectionConfig
from rental_modules.collections.models import PaymentStatus
from rental_modules.collections.orm import CollectionPaymentModel

_P = CollectionPaymentModel


# =============================================================================
# Clauses
# =============================================================================


def collected_clause() -> ColumnElement[bool]:
    return _P.collection_date.is_not(None)


def postponed_clause() -> ColumnElement[bool]:
    return and_(_P.collection_date.is_(None), _P.delay_duration > 0)


def open_clause() -> ColumnElement[bool]:
    """Not collected and not postponed."""
    return and_(
        _P.collection_date.is_(None),
        or_(_P.delay_duration.is_(None), _P.delay_duration <= 0),
    )


def due_for_collection_clause(today: date) -> ColumnElement[bool]:
    """Work list: every open installment that has started, overdue included."""
    return and_(open_clause(), _P.due_date_start <= today)


def overdue_clause(today: date, grace_days: int) -> ColumnElement[bool]:
    return and_(open_clause(), _P.due_date_start < overdue_cutoff(today, grace_days))


def upcoming_clause(today: date) -> ColumnElement[bool]:
    return and_(open_clause(), _P.due_date_start > today)


def critical_postponed_clause(today: date, threshold_days: int) -> ColumnElement[bool]:
    return and_(
        postponed_clause(),
        or_(
            _P.delay_duration > threshold_days,
            _P.due_date_end < today - timedelta(days=threshold_days),
        ),
    )


def status_clause(status: PaymentStatus, today: date, grace_days: int) -> ColumnElement[bool]:
    """Rows the classifier labels ``status`` on ``today``."""
    if status is PaymentStatus.COLLECTED:
        return collected_clause()
    if status is PaymentStatus.POSTPONED:
        return postponed_clause()
    if status is PaymentStatus.OVERDUE:
        return overdue_clause(today, grace_days)
    if status is PaymentStatus.DUE:
        return and_(
            due_for_collection_clause(today),
            _P.due_date_start >= overdue_cutoff(today, grace_days),
        )
    return upcoming_clause(today)


def statuses_clause(
    statuses: Iterable[PaymentStatus], today: date, grace_days: int
) -> ColumnElement[bool]:
    clauses = [status_clause(s, today, grace_days) for s in statuses]
    if not clauses:
        return false()
    return or_(*clauses)


# =============================================================================
# Selector
# =============================================================================


class CollectionPaymentSelector(BaseSelector[CollectionPaymentModel]):
    """Read-only queries over rent installments."""

    def __init__(self, session, clock=None, config: CollectionConfig | None = None):
        super().__init__(session, clock)
        self.config = config or CollectionConfig.with_defaults()

    def _today(self, today: date | None) -> date:
        return today if today is not None else self.clock.today()

    def _fetch(self, *criteria, property_id: UUID | None = None) -> list[CollectionPaymentModel]:
        stmt = select(_P).where(*criteria)
        if property_id is not None:
            stmt = stmt.where(_P.property_id == property_id)
        stmt = stmt.order_by(_P.due_date_start, _P.payment_number)
        return list(self.session.execute(stmt).scalars())

    def get(self, payment_id: UUID) -> CollectionPaymentModel | None:
        return self.session.get(_P, payment_id)

    def for_contract(self, unit_contract_id: UUID) -> list[CollectionPaymentModel]:
        return self._fetch(_P.unit_contract_id == unit_contract_id)

    def count_for_contract(self, unit_contract_id: UUID) -> int:
        stmt = select(func.count()).select_from(_P).where(_P.unit_contract_id == unit_contract_id)
        return self.session.execute(stmt).scalar_one()

    def for_tenant(self, tenant_id: UUID) -> list[CollectionPaymentModel]:
        return self._fetch(_P.tenant_id == tenant_id)

    def collected(self, property_id: UUID | None = None) -> list[CollectionPaymentModel]:
        return self._fetch(collected_clause(), property_id=property_id)

    def postponed(self, property_id: UUID | None = None) -> list[CollectionPaymentModel]:
        return self._fetch(postponed_clause(), property_id=property_id)

    def due_for_collection(
        self, today: date | None = None, property_id: UUID | None = None
    ) -> list[CollectionPaymentModel]:
        return self._fetch(due_for_collection_clause(self._today(today)), property_id=property_id)

    def overdue(
        self, today: date | None = None, property_id: UUID | None = None
    ) -> list[CollectionPaymentModel]:
        return self._fetch(
            overdue_clause(self._today(today), self.config.grace_days), property_id=property_id
        )

    def upcoming(
        self, today: date | None = None, property_id: UUID | None = None
    ) -> list[CollectionPaymentModel]:
        return self._fetch(upcoming_clause(self._today(today)), property_id=property_id)

    def critical_postponed(self, today: date | None = None) -> list[CollectionPaymentModel]:
        return self._fetch(
            critical_postponed_clause(self._today(today), self.config.critical_postponement_days)
        )

    def by_status(
        self, status: PaymentStatus, today: date | None = None
    ) -> list[CollectionPaymentModel]:
        return self._fetch(status_clause(status, self._today(today), self.config.grace_days))

    def by_statuses(
        self, statuses: Iterable[PaymentStatus], today: date | None = None
    ) -> list[CollectionPaymentModel]:
        return self._fetch(statuses_clause(statuses, self._today(today), self.config.grace_days))

    def filtered(
        self,
        *,
        property_id: UUID | None = None,
        tenant_id: UUID | None = None,
        unit_id: UUID | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        month_year: str | None = None,
        statuses: Sequence[PaymentStatus] | None = None,
        today: date | None = None,
    ) -> list[CollectionPaymentModel]:
        """Report query; ``date_from``/``date_to`` bound ``due_date_end`` and apply only as a pair."""
        criteria = []
        if property_id is not None:
            criteria.append(_P.property_id == property_id)
        if tenant_id is not None:
            criteria.append(_P.tenant_id == tenant_id)
        if unit_id is not None:
            criteria.append(_P.unit_id == unit_id)
        if date_from is not None and date_to is not None:
            criteria.append(_P.due_date_end.between(date_from, date_to))
        if month_year is not None:
            criteria.append(_P.month_year == month_year)
        if statuses:
            criteria.append(statuses_clause(statuses, self._today(today), self.config.grace_days))
        return self._fetch(*criteria)

    def collected_for_property(
        self, property_id: UUID, period_start: date, period_end: date
    ) -> list[CollectionPaymentModel]:
        """Installments collected on the property during the period."""
        return self._fetch(
            _P.property_id == property_id,
            _P.collection_date.between(period_start, period_end),
        )

    def last_payment_sequence(self, prefix: str, year: int) -> int:
        return last_issued_sequence(self.session, _P.payment_number, prefix, year)

    def last_receipt_sequence(self, year: int) -> int:
        return last_issued_sequence(self.session, _P.receipt_number, "REC", year)

