"""
Contract Service (``rental_modules.contracts.service``).

Responsibility
--------------
Creates rental and supply contracts, moves them through their stored
lifecycle (activate, suspend, resume, terminate, renew), generates their
installment schedules, and describes them with the derived display status.

Architecture position
---------------------
**Modules layer** -- composes ``contracts.calculations`` (end dates,
schedule gate, lifecycle classification), ``contracts.workflows`` (allowed
transitions) and the selectors of all three modules.

Invariants enforced
-------------------
* Each state-changing method owns the transaction (``commit`` on success,
  ``rollback`` and re-raise on failure).
* ``end_date`` is always ``start_date + duration_months - 1 day``.
* Installments are generated only for duration / frequency combinations
  that split into whole installments, and only once per contract.
* No two booking contracts (draft, active, renewed) on the same unit or
  property overlap.

Failure modes
-------------
* ``RecordNotFoundError``                -- unknown contract id.
* ``InvalidContractTransitionError``     -- action not allowed from status.
* ``UnitUnavailableError``               -- overlapping booking.
* ``InvalidScheduleConfigurationError``  -- non-divisible schedule.
* ``PaymentsAlreadyGeneratedError``      -- schedule exists already.
* ``UnrecognizedEnumValueError``         -- unknown frequency / status.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from rental_kernel.domain.clock import Clock, SystemClock
from rental_kernel.domain.workflow import Transition
from rental_kernel.exceptions import (
    IncompleteRecordError,
    InvalidContractTransitionError,
    PaymentsAlreadyGeneratedError,
    RecordNotFoundError,
    UnitUnavailableError,
)
from rental_kernel.logging_config import LogContext, get_logger
from rental_modules.collections.calculations import (
    classify_installment,
    format_payment_number,
)
from rental_modules.collections.config import CollectionConfig
from rental_modules.collections.models import CollectionPayment
from rental_modules.collections.orm import CollectionPaymentModel
from rental_modules.collections.selectors import CollectionPaymentSelector
from rental_modules.contracts.calculations import (
    build_installment_schedule,
    classify_contract,
    derive_end_date,
    format_contract_number,
    installment_amount,
    parse_payment_frequency,
    require_valid_schedule,
    resolve_payments_count,
)
from rental_modules.contracts.config import ContractConfig
from rental_modules.contracts.models import (
    ContractKind,
    ContractLifecycle,
    ContractStatus,
    ContractSummary,
    PaymentFrequency,
)
from rental_modules.contracts.orm import PropertyContractModel, UnitContractModel
from rental_modules.contracts.selectors import ContractModel, ContractSelector
from rental_modules.contracts.workflows import (
    HAS_END_DATE,
    PERIOD_AVAILABLE,
    RENTAL_CONTRACT_LIFECYCLE,
    SUPPLY_CONTRACT_LIFECYCLE,
)
from rental_modules.supply.calculations import classify_supply_payment, payout_due_date
from rental_modules.supply.models import SupplyPayment
from rental_modules.supply.orm import SupplyPaymentModel
from rental_modules.supply.selectors import SupplyPaymentSelector

logger = get_logger("modules.contracts.service")

_MODELS = {
    ContractKind.RENTAL: UnitContractModel,
    ContractKind.SUPPLY: PropertyContractModel,
}

_WORKFLOWS = {
    ContractKind.RENTAL: RENTAL_CONTRACT_LIFECYCLE,
    ContractKind.SUPPLY: SUPPLY_CONTRACT_LIFECYCLE,
}

_NUMBER_PREFIX = {
    ContractKind.RENTAL: "UC",
    ContractKind.SUPPLY: "PC",
}

COLLECTION_PAYMENT_PREFIX = "COL"
SUPPLY_PAYMENT_PREFIX = "SUP"


class ContractService:
    """
    Lifecycle and schedule operations for rental and supply contracts.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * The display status is computed by ``classify_contract`` with the
      window from ``ContractConfig``; it is never stored.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ContractConfig | None = None,
        collection_config: CollectionConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ContractConfig.with_defaults()
        self._collection_config = collection_config or CollectionConfig.with_defaults()
        self._collections = CollectionPaymentSelector(
            session, self._clock, self._collection_config
        )
        self._supply = SupplyPaymentSelector(session, self._clock)

    def _selector(self, kind: ContractKind) -> ContractSelector:
        return ContractSelector(self._session, _MODELS[kind], self._clock)

    def _get(self, contract_id: UUID, kind: ContractKind) -> ContractModel:
        contract = self._selector(kind).get(contract_id)
        if contract is None:
            raise RecordNotFoundError(f"{kind.value}_contract", str(contract_id))
        return contract

    def _next_contract_number(self, kind: ContractKind) -> str:
        year = self._clock.today().year
        prefix = _NUMBER_PREFIX[kind]
        sequence = self._selector(kind).last_contract_sequence(prefix, year) + 1
        return format_contract_number(prefix, year, sequence)

    def _ensure_available(
        self,
        kind: ContractKind,
        subject_id: UUID,
        start_date: date,
        end_date: date,
        exclude_id: UUID | None = None,
    ) -> None:
        conflicts = self._selector(kind).overlapping(subject_id, start_date, end_date, exclude_id)
        if conflicts:
            first = conflicts[0]
            raise UnitUnavailableError(
                subject_id=str(subject_id),
                conflicting_contract_number=first.contract_number,
                conflict_start=first.start_date,
                conflict_end=first.end_date,
            )

    def _check_guard(self, transition: Transition, kind: ContractKind, contract: ContractModel) -> None:
        guard = transition.guard
        if guard is None:
            return
        if guard is PERIOD_AVAILABLE:
            self._ensure_available(
                kind,
                getattr(contract, self._selector(kind).subject.key),
                contract.start_date,
                contract.end_date,
                exclude_id=contract.id,
            )
        elif guard is HAS_END_DATE:
            if contract.end_date is None:
                raise IncompleteRecordError(f"{kind.value}_contract", "end_date", str(contract.id))
        else:
            raise ValueError(f"No check registered for workflow guard '{guard.name}'")

    # =========================================================================
    # Creation
    # =========================================================================

    def create_unit_contract(
        self,
        *,
        tenant_id: UUID,
        unit_id: UUID,
        property_id: UUID,
        monthly_rent: Decimal,
        start_date: date,
        duration_months: int,
        payment_frequency: PaymentFrequency | str = PaymentFrequency.MONTHLY,
        security_deposit: Decimal = Decimal("0"),
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> ContractSummary:
        """Create a draft rental contract on a unit."""
        if monthly_rent <= 0:
            raise ValueError("monthly_rent must be positive")
        frequency = parse_payment_frequency(payment_frequency)
        require_valid_schedule(duration_months, frequency)
        end_date = derive_end_date(start_date, duration_months)

        with LogContext.bind(actor_id=actor_id):
            try:
                self._ensure_available(ContractKind.RENTAL, unit_id, start_date, end_date)
                contract = UnitContractModel(
                    contract_number=self._next_contract_number(ContractKind.RENTAL),
                    tenant_id=tenant_id,
                    unit_id=unit_id,
                    property_id=property_id,
                    monthly_rent=monthly_rent,
                    security_deposit=security_deposit,
                    duration_months=duration_months,
                    start_date=start_date,
                    end_date=end_date,
                    contract_status=ContractStatus.DRAFT.value,
                    payment_frequency=frequency.value,
                    payments_count=resolve_payments_count(None, duration_months, frequency),
                    notes=notes,
                    created_by_id=actor_id,
                )
                self._session.add(contract)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "unit_contract_created",
                extra={
                    "contract_number": contract.contract_number,
                    "unit_id": str(unit_id),
                    "start_date": start_date.isoformat(),
                    "end_date": end_date.isoformat(),
                    "payment_frequency": frequency.value,
                },
            )
            return self._summary(contract)

    def create_property_contract(
        self,
        *,
        owner_id: UUID,
        property_id: UUID,
        commission_rate: Decimal,
        start_date: date,
        duration_months: int,
        payment_frequency: PaymentFrequency | str = PaymentFrequency.MONTHLY,
        payment_day: int | None = None,
        auto_renew: bool = False,
        notes: str | None = None,
        actor_id: UUID | None = None,
    ) -> ContractSummary:
        """Create a draft supply contract on a property."""
        if not Decimal("0") <= commission_rate <= Decimal("100"):
            raise ValueError("commission_rate must be a percentage between 0 and 100")
        frequency = parse_payment_frequency(payment_frequency)
        require_valid_schedule(duration_months, frequency)
        end_date = derive_end_date(start_date, duration_months)

        with LogContext.bind(actor_id=actor_id):
            try:
                self._ensure_available(ContractKind.SUPPLY, property_id, start_date, end_date)
                contract = PropertyContractModel(
                    contract_number=self._next_contract_number(ContractKind.SUPPLY),
                    owner_id=owner_id,
                    property_id=property_id,
                    commission_rate=commission_rate,
                    duration_months=duration_months,
                    start_date=start_date,
                    end_date=end_date,
                    contract_status=ContractStatus.DRAFT.value,
                    payment_frequency=frequency.value,
                    payments_count=resolve_payments_count(None, duration_months, frequency),
                    payment_day=payment_day,
                    auto_renew=auto_renew,
                    notes=notes,
                    created_by_id=actor_id,
                )
                self._session.add(contract)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "property_contract_created",
                extra={
                    "contract_number": contract.contract_number,
                    "property_id": str(property_id),
                    "commission_rate": str(commission_rate),
                },
            )
            return self._summary(contract)

    # =========================================================================
    # Stored lifecycle
    # =========================================================================

    def _transition(
        self,
        contract_id: UUID,
        kind: ContractKind,
        action: str,
        actor_id: UUID | None,
        **changes,
    ) -> ContractSummary:
        with LogContext.bind(contract_id=contract_id, actor_id=actor_id):
            try:
                contract = self._get(contract_id, kind)
                current = contract.status
                transition = _WORKFLOWS[kind].transition_for(current.value, action)
                if transition is None:
                    raise InvalidContractTransitionError(str(contract_id), current.value, action)
                self._check_guard(transition, kind, contract)

                contract.contract_status = transition.to_state
                contract.updated_by_id = actor_id
                for field_name, value in changes.items():
                    setattr(contract, field_name, value)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "contract_status_changed",
                extra={
                    "contract_number": contract.contract_number,
                    "action": action,
                    "from_status": current.value,
                    "to_status": transition.to_state,
                },
            )
            return self._summary(contract)

    def activate(
        self,
        contract_id: UUID,
        kind: ContractKind = ContractKind.RENTAL,
        actor_id: UUID | None = None,
    ) -> ContractSummary:
        """Approve a draft contract."""
        return self._transition(
            contract_id, kind, "activate", actor_id, approved_at=self._clock.now()
        )

    def terminate(
        self,
        contract_id: UUID,
        reason: str,
        kind: ContractKind = ContractKind.RENTAL,
        actor_id: UUID | None = None,
    ) -> ContractSummary:
        """End an active contract early."""
        return self._transition(
            contract_id,
            kind,
            "terminate",
            actor_id,
            terminated_reason=reason,
            terminated_at=self._clock.now(),
        )

    def suspend(self, contract_id: UUID, actor_id: UUID | None = None) -> ContractSummary:
        """Pause an active supply contract."""
        return self._transition(contract_id, ContractKind.SUPPLY, "suspend", actor_id)

    def resume(self, contract_id: UUID, actor_id: UUID | None = None) -> ContractSummary:
        return self._transition(contract_id, ContractKind.SUPPLY, "resume", actor_id)

    def expire(
        self,
        contract_id: UUID,
        kind: ContractKind = ContractKind.RENTAL,
        actor_id: UUID | None = None,
    ) -> ContractSummary:
        return self._transition(contract_id, kind, "expire", actor_id)

    def renew(
        self,
        contract_id: UUID,
        duration_months: int | None = None,
        monthly_rent: Decimal | None = None,
        payment_frequency: PaymentFrequency | str | None = None,
        actor_id: UUID | None = None,
    ) -> ContractSummary:
        """
        Renew an active rental contract.

        The successor starts the day after the old end date, is active
        immediately and inherits any term not overridden.  The old contract
        becomes ``renewed``.  Returns the successor.
        """
        with LogContext.bind(contract_id=contract_id, actor_id=actor_id):
            try:
                old = self._get(contract_id, ContractKind.RENTAL)
                current = old.status
                transition = RENTAL_CONTRACT_LIFECYCLE.transition_for(current.value, "renew")
                if transition is None:
                    raise InvalidContractTransitionError(str(contract_id), current.value, "renew")
                self._check_guard(transition, ContractKind.RENTAL, old)

                duration = old.duration_months if duration_months is None else duration_months
                frequency = parse_payment_frequency(payment_frequency or old.payment_frequency)
                require_valid_schedule(duration, frequency)
                start = old.end_date + timedelta(days=1)
                end = derive_end_date(start, duration)
                self._ensure_available(ContractKind.RENTAL, old.unit_id, start, end, exclude_id=old.id)

                successor = UnitContractModel(
                    contract_number=self._next_contract_number(ContractKind.RENTAL),
                    tenant_id=old.tenant_id,
                    unit_id=old.unit_id,
                    property_id=old.property_id,
                    monthly_rent=monthly_rent if monthly_rent is not None else old.monthly_rent,
                    security_deposit=old.security_deposit,
                    duration_months=duration,
                    start_date=start,
                    end_date=end,
                    contract_status=ContractStatus.ACTIVE.value,
                    payment_frequency=frequency.value,
                    payments_count=resolve_payments_count(None, duration, frequency),
                    approved_at=self._clock.now(),
                    renewed_from_id=old.id,
                    created_by_id=actor_id,
                )
                self._session.add(successor)
                self._session.flush()

                old.contract_status = ContractStatus.RENEWED.value
                old.updated_by_id = actor_id
                note = f"Renewed with contract: {successor.contract_number}"
                old.notes = f"{old.notes}\n\n{note}" if old.notes else note
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "unit_contract_renewed",
                extra={
                    "old_contract_number": old.contract_number,
                    "new_contract_number": successor.contract_number,
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                },
            )
            return self._summary(successor)

    # =========================================================================
    # Installment schedules
    # =========================================================================

    def generate_collection_payments(
        self,
        contract_id: UUID,
        actor_id: UUID | None = None,
    ) -> list[CollectionPayment]:
        """
        Create the rent installments of an active rental contract.

        Raises:
            InvalidContractTransitionError: contract is not active.
            PaymentsAlreadyGeneratedError: installments exist already.
            InvalidScheduleConfigurationError: duration not divisible.
        """
        with LogContext.bind(contract_id=contract_id, actor_id=actor_id):
            try:
                contract = self._get(contract_id, ContractKind.RENTAL)
                if contract.status is not ContractStatus.ACTIVE:
                    raise InvalidContractTransitionError(
                        str(contract_id), contract.contract_status, "generate_payments"
                    )
                existing = self._collections.count_for_contract(contract.id)
                if existing:
                    raise PaymentsAlreadyGeneratedError(str(contract_id), existing)

                frequency = contract.frequency
                schedule = build_installment_schedule(
                    contract.start_date,
                    contract.end_date,
                    contract.duration_months,
                    frequency,
                    installment_amount(contract.monthly_rent, frequency),
                )

                year = self._clock.today().year
                sequence = self._collections.last_payment_sequence(COLLECTION_PAYMENT_PREFIX, year)
                rows = []
                for line in schedule:
                    sequence += 1
                    row = CollectionPaymentModel(
                        payment_number=format_payment_number(
                            COLLECTION_PAYMENT_PREFIX, year, sequence
                        ),
                        unit_contract_id=contract.id,
                        tenant_id=contract.tenant_id,
                        unit_id=contract.unit_id,
                        property_id=contract.property_id,
                        amount=line.amount,
                        late_fee=Decimal("0"),
                        total_amount=line.amount,
                        due_date_start=line.period_start,
                        due_date_end=line.period_end,
                        month_year=line.month_year,
                        created_by_id=actor_id,
                    )
                    self._session.add(row)
                    rows.append(row)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "collection_payments_generated",
                extra={
                    "contract_number": contract.contract_number,
                    "payments_count": len(rows),
                    "payment_frequency": frequency.value,
                },
            )
            today = self._clock.today()
            grace = self._collection_config.grace_days
            return [r.to_dto(classify_installment(r, today, grace), today) for r in rows]

    def generate_supply_payments(
        self,
        contract_id: UUID,
        actor_id: UUID | None = None,
    ) -> list[SupplyPayment]:
        """
        Schedule the owner payouts of a supply contract, one per period.

        Amounts stay zero until each payout is confirmed.
        """
        with LogContext.bind(contract_id=contract_id, actor_id=actor_id):
            try:
                contract = self._get(contract_id, ContractKind.SUPPLY)
                if contract.status not in (ContractStatus.DRAFT, ContractStatus.ACTIVE):
                    raise InvalidContractTransitionError(
                        str(contract_id), contract.contract_status, "generate_payments"
                    )
                existing = self._supply.count_for_contract(contract.id)
                if existing:
                    raise PaymentsAlreadyGeneratedError(str(contract_id), existing)

                frequency = contract.frequency
                schedule = build_installment_schedule(
                    contract.start_date,
                    contract.end_date,
                    contract.duration_months,
                    frequency,
                    Decimal("0"),
                )

                year = self._clock.today().year
                sequence = self._supply.last_payment_sequence(SUPPLY_PAYMENT_PREFIX, year)
                rows = []
                for line in schedule:
                    sequence += 1
                    row = SupplyPaymentModel(
                        payment_number=format_payment_number(SUPPLY_PAYMENT_PREFIX, year, sequence),
                        property_contract_id=contract.id,
                        owner_id=contract.owner_id,
                        property_id=contract.property_id,
                        due_date=payout_due_date(line.period_end, contract.payment_day),
                        period_start=line.period_start,
                        period_end=line.period_end,
                        month_year=line.month_year,
                        commission_rate=contract.commission_rate,
                        created_by_id=actor_id,
                    )
                    self._session.add(row)
                    rows.append(row)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise

            logger.info(
                "supply_payments_generated",
                extra={
                    "contract_number": contract.contract_number,
                    "payments_count": len(rows),
                },
            )
            today = self._clock.today()
            return [
                r.to_dto(classify_supply_payment(today, r.due_date, r.paid_date), today)
                for r in rows
            ]

    # =========================================================================
    # Display
    # =========================================================================

    def lifecycle(self, contract: ContractModel) -> ContractLifecycle:
        return classify_contract(
            contract.contract_status,
            contract.start_date,
            contract.end_date,
            self._clock.now(),
            kind=contract.kind,
            expiring_window_days=self._config.expiring_window_days,
        )

    def _summary(self, contract: ContractModel) -> ContractSummary:
        return ContractSummary(
            id=contract.id,
            contract_number=contract.contract_number,
            kind=contract.kind,
            stored_status=contract.status,
            start_date=contract.start_date,
            end_date=contract.end_date,
            duration_months=contract.duration_months,
            payment_frequency=contract.frequency,
            payments_count=contract.effective_payments_count,
            lifecycle=self.lifecycle(contract),
        )

    def describe(
        self,
        contract_id: UUID,
        kind: ContractKind = ContractKind.RENTAL,
    ) -> ContractSummary:
        """Stored fields plus the display status as of the clock's today."""
        return self._summary(self._get(contract_id, kind))

    def expiring_soon(
        self,
        kind: ContractKind = ContractKind.RENTAL,
        days: int | None = None,
    ) -> list[ContractSummary]:
        window = self._config.expiring_window_days if days is None else days
        return [self._summary(c) for c in self._selector(kind).expiring_soon(window)]
