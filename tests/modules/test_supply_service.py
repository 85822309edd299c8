"""Tests for SupplyPaymentService: payout status, amounts and confirmation."""

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from rental_kernel.exceptions import PaymentNotConfirmableError, RecordNotFoundError
from rental_modules.supply.calculations import REASON_ALREADY_PAID, REASON_NOT_YET_DUE
from rental_modules.supply.models import SupplyStatus
from rental_modules.supply.service import SupplyPaymentService

TODAY = date(2025, 3, 15)
PERIOD_START = date(2025, 2, 1)
PERIOD_END = date(2025, 2, 28)


@pytest.fixture
def service(session, deterministic_clock):
    return SupplyPaymentService(session, deterministic_clock)


@pytest.fixture
def property_id():
    return uuid4()


@pytest.fixture
def payout(make_property_contract, make_supply_payment, property_id):
    contract = make_property_contract(property_id=property_id, commission_rate=Decimal("10.00"))
    return make_supply_payment(
        due_date=PERIOD_END,
        period_start=PERIOD_START,
        period_end=PERIOD_END,
        contract=contract,
    )


@pytest.fixture
def collected_rent(make_unit_contract, make_collection_payment, property_id):
    """Two installments collected during the payout period, one outside it."""
    contract = make_unit_contract(property_id=property_id)
    make_collection_payment(
        due_date_start=date(2025, 2, 1), contract=contract, collection_date=date(2025, 2, 3)
    )
    make_collection_payment(
        due_date_start=date(2025, 2, 1),
        contract=contract,
        amount=Decimal("500.00"),
        collection_date=date(2025, 2, 20),
    )
    make_collection_payment(
        due_date_start=date(2025, 3, 1), contract=contract, collection_date=date(2025, 3, 2)
    )


class TestStatus:

    def test_due_payout_is_worth_collecting(self, service, payout):
        assert service.status_of(payout.id).status is SupplyStatus.WORTH_COLLECTING
        assert [p.id for p in service.worth_collecting()] == [payout.id]

    def test_future_payout_is_pending(self, service, make_supply_payment):
        future = make_supply_payment(due_date=TODAY + timedelta(days=1))
        assert service.status_of(future.id).status is SupplyStatus.PENDING

    def test_unknown_payout(self, service):
        with pytest.raises(RecordNotFoundError):
            service.status_of(uuid4())


class TestAmounts:

    def test_gross_is_rent_collected_in_period(self, service, payout, collected_rent):
        amounts = service.calculate_amounts(payout.id)

        assert amounts.collections_count == 2
        assert amounts.gross_amount == Decimal("1500.00")
        assert amounts.commission_amount == Decimal("150.00")
        assert amounts.net_amount == Decimal("1350.00")

    def test_deductions_reduce_net(self, service, payout, collected_rent):
        amounts = service.calculate_amounts(
            payout.id, maintenance_deduction=Decimal("300.00"), other_deductions=Decimal("50.00")
        )
        assert amounts.net_amount == Decimal("1000.00")


class TestConfirm:

    def test_confirm_due_payout(self, service, payout, collected_rent, test_actor_id):
        result = service.confirm_payment(
            payout.id, actor_id=test_actor_id, bank_transfer_reference="BT-9"
        )

        assert result.payment.status is SupplyStatus.COLLECTED
        assert result.payment.paid_date == TODAY
        assert result.payment.net_amount == Decimal("1350.00")
        assert not result.is_settlement

    def test_confirm_twice_rejected(self, service, payout):
        service.confirm_payment(payout.id)
        with pytest.raises(PaymentNotConfirmableError) as exc_info:
            service.confirm_payment(payout.id)
        assert REASON_ALREADY_PAID in exc_info.value.reasons

    def test_future_payout_not_confirmable(self, service, make_supply_payment):
        future = make_supply_payment(due_date=TODAY + timedelta(days=5))
        check = service.can_confirm(future.id)
        assert not check.can_confirm
        assert check.reasons == (REASON_NOT_YET_DUE,)
        with pytest.raises(PaymentNotConfirmableError):
            service.confirm_payment(future.id)

    def test_earlier_open_payout_blocks(self, service, make_property_contract, make_supply_payment):
        contract = make_property_contract()
        make_supply_payment(due_date=TODAY - timedelta(days=30), contract=contract)
        later = make_supply_payment(due_date=TODAY, contract=contract)

        check = service.can_confirm(later.id)
        assert check.reasons == ("1 earlier payout(s) still open",)

    def test_deductions_above_collections_settle_with_owner_debt(self, service, payout):
        result = service.confirm_payment(payout.id, maintenance_deduction=Decimal("200.00"))

        assert result.is_settlement
        assert result.owner_debt == Decimal("200.00")
        assert result.payment.status is SupplyStatus.COLLECTED

    def test_blocked_confirmation_is_logged(self, service, make_supply_payment, captured_logs):
        future = make_supply_payment(due_date=TODAY + timedelta(days=5))
        with pytest.raises(PaymentNotConfirmableError):
            service.confirm_payment(future.id)

        records = [r for r in captured_logs() if r["message"] == "supply_payment_confirmation_blocked"]
        assert records[0]["level"] == "WARNING"
        assert records[0]["reasons"] == [REASON_NOT_YET_DUE]
