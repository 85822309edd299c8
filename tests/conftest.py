"""
Pytest fixtures for the rental status engine test suite.

Provides:
- Structured logging configured once per session, ``captured_logs``
- A ``DeterministicClock`` pinned to a known day
- An in-memory SQLite session with every table created and the ORM
  guards registered
- Factories for contracts and payments
"""

import json
import logging
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from rental_kernel.db.engine import drop_tables, get_session, init_engine_from_url, reset_engine
from rental_kernel.db.immutability import unregister_delete_guards
from rental_kernel.domain.clock import DeterministicClock
from rental_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from rental_modules._orm_registry import create_all_tables
from rental_modules.collections.orm import CollectionPaymentModel
from rental_modules.contracts.calculations import derive_end_date
from rental_modules.contracts.orm import PropertyContractModel, UnitContractModel
from rental_modules.supply.orm import SupplyPaymentModel

TEST_ACTOR_ID = uuid4()

# Every clock-dependent test runs "today" = 2025-03-15 unless it says otherwise
TODAY = date(2025, 3, 15)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture rental_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, collection_service):
            collection_service.collect(payment_id)
            logs = captured_logs()
            assert any(r["message"] == "payment_collected" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("rental_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock.on(TODAY)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session():
    """Fresh in-memory database per test, guards registered."""
    init_engine_from_url("sqlite:///:memory:")
    create_all_tables()
    db = get_session()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        unregister_delete_guards()
        drop_tables()
        reset_engine()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_unit_contract(session):
    """Insert a rental contract directly (bypassing the service)."""
    counter = iter(range(1, 10_000))

    def _make(
        start_date: date = TODAY - timedelta(days=60),
        duration_months: int = 12,
        contract_status: str = "active",
        payment_frequency: str = "monthly",
        monthly_rent: Decimal = Decimal("1000.00"),
        unit_id=None,
        **overrides,
    ) -> UnitContractModel:
        contract = UnitContractModel(
            contract_number=f"UC-{start_date.year}-{next(counter):04d}",
            tenant_id=overrides.pop("tenant_id", uuid4()),
            unit_id=unit_id or uuid4(),
            property_id=overrides.pop("property_id", uuid4()),
            monthly_rent=monthly_rent,
            duration_months=duration_months,
            start_date=start_date,
            end_date=overrides.pop("end_date", derive_end_date(start_date, duration_months)),
            contract_status=contract_status,
            payment_frequency=payment_frequency,
            **overrides,
        )
        session.add(contract)
        session.commit()
        return contract

    return _make


@pytest.fixture
def make_property_contract(session):
    """Insert a supply contract directly (bypassing the service)."""
    counter = iter(range(1, 10_000))

    def _make(
        start_date: date = TODAY - timedelta(days=60),
        duration_months: int = 12,
        contract_status: str = "active",
        payment_frequency: str = "monthly",
        commission_rate: Decimal = Decimal("10.00"),
        property_id=None,
        **overrides,
    ) -> PropertyContractModel:
        contract = PropertyContractModel(
            contract_number=f"PC-{start_date.year}-{next(counter):04d}",
            owner_id=overrides.pop("owner_id", uuid4()),
            property_id=property_id or uuid4(),
            commission_rate=commission_rate,
            duration_months=duration_months,
            start_date=start_date,
            end_date=overrides.pop("end_date", derive_end_date(start_date, duration_months)),
            contract_status=contract_status,
            payment_frequency=payment_frequency,
            **overrides,
        )
        session.add(contract)
        session.commit()
        return contract

    return _make


@pytest.fixture
def make_collection_payment(session, make_unit_contract):
    """Insert one rent installment; a contract is created when none is given."""
    counter = iter(range(1, 10_000))

    def _make(
        due_date_start: date = TODAY,
        due_date_end: date | None = None,
        amount: Decimal = Decimal("1000.00"),
        contract: UnitContractModel | None = None,
        **overrides,
    ) -> CollectionPaymentModel:
        contract = contract or make_unit_contract()
        payment = CollectionPaymentModel(
            payment_number=f"COL-{due_date_start.year}-{next(counter):06d}",
            unit_contract_id=contract.id,
            tenant_id=contract.tenant_id,
            unit_id=contract.unit_id,
            property_id=overrides.pop("property_id", contract.property_id),
            amount=amount,
            due_date_start=due_date_start,
            due_date_end=due_date_end or due_date_start + timedelta(days=30),
            **overrides,
        )
        session.add(payment)
        session.commit()
        return payment

    return _make


@pytest.fixture
def make_supply_payment(session, make_property_contract):
    """Insert one owner payout; a contract is created when none is given."""
    counter = iter(range(1, 10_000))

    def _make(
        due_date: date = TODAY,
        period_start: date | None = None,
        period_end: date | None = None,
        contract: PropertyContractModel | None = None,
        **overrides,
    ) -> SupplyPaymentModel:
        contract = contract or make_property_contract()
        start = period_start or due_date - timedelta(days=30)
        payment = SupplyPaymentModel(
            payment_number=f"SUP-{due_date.year}-{next(counter):06d}",
            property_contract_id=contract.id,
            owner_id=contract.owner_id,
            property_id=contract.property_id,
            due_date=due_date,
            period_start=start,
            period_end=period_end or due_date,
            month_year=start.strftime("%Y-%m"),
            commission_rate=contract.commission_rate,
            **overrides,
        )
        session.add(payment)
        session.commit()
        return payment

    return _make


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID
