"""
Tests for the contract duration / payment-count calculator.

The count is lenient (floor division) so that screens can display it for
any stored contract; schedule generation goes through the strict gate.
"""

from datetime import date
from decimal import Decimal

import pytest

from rental_kernel.exceptions import (
    InvalidScheduleConfigurationError,
    UnrecognizedEnumValueError,
)
from rental_modules.contracts.calculations import (
    build_installment_schedule,
    calculate_payments_count,
    derive_end_date,
    installment_amount,
    is_valid_duration_for_frequency,
    months_per_installment,
    require_valid_schedule,
    resolve_payments_count,
)
from rental_modules.contracts.models import PaymentFrequency


class TestMonthsPerInstallment:

    def test_each_frequency(self):
        assert months_per_installment("monthly") == 1
        assert months_per_installment("quarterly") == 3
        assert months_per_installment("semi_annually") == 6
        assert months_per_installment("annually") == 12

    def test_accepts_enum_members(self):
        assert months_per_installment(PaymentFrequency.QUARTERLY) == 3

    def test_unknown_frequency_raises_instead_of_defaulting(self):
        with pytest.raises(UnrecognizedEnumValueError) as exc_info:
            months_per_installment("weekly")
        assert exc_info.value.value == "weekly"
        assert "monthly" in exc_info.value.allowed

    def test_none_frequency_raises(self):
        with pytest.raises(UnrecognizedEnumValueError):
            months_per_installment(None)


class TestPaymentsCount:
    """Twelve months split per frequency."""

    @pytest.mark.parametrize(
        "frequency, expected",
        [("monthly", 12), ("quarterly", 4), ("semi_annually", 2), ("annually", 1)],
    )
    def test_twelve_months(self, frequency, expected):
        assert calculate_payments_count(12, frequency) == expected
        assert is_valid_duration_for_frequency(12, frequency)

    def test_seven_months_quarterly_floors_but_is_invalid(self):
        assert calculate_payments_count(7, "quarterly") == 2
        assert not is_valid_duration_for_frequency(7, "quarterly")

    def test_shorter_than_one_installment_counts_zero(self):
        assert calculate_payments_count(5, "semi_annually") == 0

    def test_stored_count_wins(self):
        assert resolve_payments_count(3, 12, "monthly") == 3
        assert resolve_payments_count(None, 12, "monthly") == 12


class TestScheduleGate:

    def test_valid_combination_passes(self):
        require_valid_schedule(24, "semi_annually")

    def test_non_divisible_combination_raises(self):
        with pytest.raises(InvalidScheduleConfigurationError) as exc_info:
            require_valid_schedule(7, "quarterly")
        err = exc_info.value
        assert err.code == "INVALID_SCHEDULE_CONFIGURATION"
        assert err.duration_months == 7
        assert err.frequency == "quarterly"
        assert err.months_per_installment == 3

    def test_zero_duration_raises(self):
        with pytest.raises(InvalidScheduleConfigurationError):
            require_valid_schedule(0, "monthly")

    def test_schedule_builder_refuses_non_divisible(self):
        with pytest.raises(InvalidScheduleConfigurationError):
            build_installment_schedule(
                date(2025, 1, 1), date(2025, 7, 31), 7, "quarterly", Decimal("300")
            )


class TestEndDate:

    def test_one_year_from_first_of_month(self):
        assert derive_end_date(date(2025, 1, 1), 12) == date(2025, 12, 31)

    def test_month_end_start_clamps(self):
        # Jan 31 + 1 month lands on Feb 28, minus one day
        assert derive_end_date(date(2025, 1, 31), 1) == date(2025, 2, 27)

    def test_mid_month_start(self):
        assert derive_end_date(date(2025, 3, 15), 6) == date(2025, 9, 14)

    def test_non_positive_duration_rejected(self):
        with pytest.raises(ValueError):
            derive_end_date(date(2025, 1, 1), 0)


class TestInstallmentSchedule:

    def test_quarterly_schedule_covers_contract(self):
        start = date(2025, 1, 1)
        end = derive_end_date(start, 12)
        schedule = build_installment_schedule(start, end, 12, "quarterly", Decimal("3000.00"))

        assert [i.sequence for i in schedule] == [1, 2, 3, 4]
        assert schedule[0].period_start == date(2025, 1, 1)
        assert schedule[0].period_end == date(2025, 3, 31)
        assert schedule[-1].period_start == date(2025, 10, 1)
        assert schedule[-1].period_end == end
        assert [i.month_year for i in schedule] == ["2025-01", "2025-04", "2025-07", "2025-10"]

    def test_periods_are_contiguous(self):
        start = date(2025, 1, 31)
        end = derive_end_date(start, 6)
        schedule = build_installment_schedule(start, end, 6, "monthly", Decimal("100"))

        assert len(schedule) == 6
        for previous, current in zip(schedule, schedule[1:]):
            assert (current.period_start - previous.period_end).days == 1

    def test_installment_amount_multiplies_monthly_rent(self):
        assert installment_amount(Decimal("1250.50"), "quarterly") == Decimal("3751.50")
        assert installment_amount(Decimal("1000"), "annually") == Decimal("12000.00")
