"""
Contract selectors (read side).

Scopes over rental and supply contracts.  One selector class serves both
tables; ``subject`` is the column that a contract books (``unit_id`` for
rental contracts, ``property_id`` for supply contracts).
"""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import and_, or_, select

from rental_kernel.selectors.base import BaseSelector, last_issued_sequence
from rental_modules.contracts.models import BOOKING_STATUSES, ContractStatus
from rental_modules.contracts.orm import PropertyContractModel, UnitContractModel

ContractModel = UnitContractModel | PropertyContractModel

_ACTIVE = ContractStatus.ACTIVE.value


class ContractSelector(BaseSelector):
    """Read-only queries over one contract table."""

    def __init__(self, session, model: type[ContractModel] = UnitContractModel, clock=None):
        super().__init__(session, clock)
        self.model = model

    @property
    def subject(self):
        if self.model is UnitContractModel:
            return UnitContractModel.unit_id
        return PropertyContractModel.property_id

    def _today(self, today: date | None) -> date:
        return today if today is not None else self.clock.today()

    def _fetch(self, *criteria) -> list[ContractModel]:
        m = self.model
        stmt = select(m).where(*criteria).order_by(m.end_date, m.contract_number)
        return list(self.session.execute(stmt).scalars())

    def get(self, contract_id: UUID) -> ContractModel | None:
        return self.session.get(self.model, contract_id)

    def with_status(self, status: ContractStatus) -> list[ContractModel]:
        return self._fetch(self.model.contract_status == status.value)

    def draft(self) -> list[ContractModel]:
        return self.with_status(ContractStatus.DRAFT)

    def terminated(self) -> list[ContractModel]:
        return self.with_status(ContractStatus.TERMINATED)

    def renewed(self) -> list[ContractModel]:
        return self.with_status(ContractStatus.RENEWED)

    def active(self, today: date | None = None) -> list[ContractModel]:
        """Stored active and today within ``[start_date, end_date]``."""
        m, day = self.model, self._today(today)
        return self._fetch(m.contract_status == _ACTIVE, m.start_date <= day, m.end_date >= day)

    def expired(self, today: date | None = None) -> list[ContractModel]:
        """Stored expired, plus active contracts whose end date has passed."""
        m, day = self.model, self._today(today)
        return self._fetch(
            or_(
                m.contract_status == ContractStatus.EXPIRED.value,
                and_(m.contract_status == _ACTIVE, m.end_date < day),
            )
        )

    def stale_active(self, as_of: date | None = None) -> list[ContractModel]:
        """Active contracts the expiry job should flip to expired."""
        m = self.model
        return self._fetch(m.contract_status == _ACTIVE, m.end_date < self._today(as_of))

    def expiring_soon(self, days: int = 30, today: date | None = None) -> list[ContractModel]:
        """Running active contracts ending within ``days`` (both ends inclusive)."""
        m, day = self.model, self._today(today)
        return self._fetch(
            m.contract_status == _ACTIVE,
            m.start_date <= day,
            m.end_date.between(day, day + timedelta(days=days)),
        )

    def overlapping(
        self,
        subject_id: UUID,
        start_date: date,
        end_date: date,
        exclude_id: UUID | None = None,
    ) -> list[ContractModel]:
        """Booking contracts on the same unit / property whose period intersects."""
        m = self.model
        criteria = [
            self.subject == subject_id,
            m.contract_status.in_([s.value for s in BOOKING_STATUSES]),
            m.start_date <= end_date,
            m.end_date >= start_date,
        ]
        if exclude_id is not None:
            criteria.append(m.id != exclude_id)
        return self._fetch(*criteria)

    def last_contract_sequence(self, prefix: str, year: int) -> int:
        return last_issued_sequence(self.session, self.model.contract_number, prefix, year)
