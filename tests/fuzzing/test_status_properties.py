"""
Property-based tests for the status classifiers and schedule builder.

Properties checked:
- Every rent installment lands in exactly one status, and the set filters
  agree with the classifier on every generated input.
- Installment schedules tile the contract period with no gaps or overlaps.
- The contract lifecycle never reports negative remaining days and only
  reports EXPIRING_SOON inside the window.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from rental_modules.collections.calculations import (
    classify_installment,
    filter_due_for_collection,
    filter_overdue,
    filter_postponed,
    filter_upcoming,
    select_by_status,
)
from rental_modules.collections.models import PaymentStatus
from rental_modules.contracts.calculations import (
    build_installment_schedule,
    calculate_payments_count,
    classify_contract,
    derive_end_date,
    months_per_installment,
)
from rental_modules.contracts.models import ContractDisplayStatus, PaymentFrequency

TODAY = date(2025, 3, 15)


@dataclass(frozen=True)
class Row:
    due_date_start: date
    due_date_end: date
    collection_date: date | None
    delay_duration: int | None


@st.composite
def rows(draw):
    start = TODAY + timedelta(days=draw(st.integers(min_value=-120, max_value=120)))
    collected = draw(st.booleans())
    return Row(
        due_date_start=start,
        due_date_end=start + timedelta(days=30),
        collection_date=TODAY if collected else None,
        delay_duration=draw(st.one_of(st.none(), st.integers(min_value=-5, max_value=60))),
    )


@st.composite
def contract_terms(draw):
    frequency = draw(st.sampled_from(list(PaymentFrequency)))
    installments = draw(st.integers(min_value=1, max_value=8))
    start = date(2024, 1, 1) + timedelta(days=draw(st.integers(min_value=0, max_value=730)))
    return start, installments * months_per_installment(frequency), frequency


class TestCollectionStatusProperties:

    @given(st.lists(rows(), max_size=25), st.integers(min_value=0, max_value=30))
    @settings(max_examples=200, deadline=None)
    def test_statuses_partition_installments(self, installments, grace):
        buckets = [select_by_status(installments, s, TODAY, grace) for s in PaymentStatus]
        assert sum(len(b) for b in buckets) == len(installments)

    @given(st.lists(rows(), max_size=25), st.integers(min_value=0, max_value=30))
    @settings(max_examples=200, deadline=None)
    def test_filters_agree_with_classifier(self, installments, grace):
        def labelled(*statuses):
            return [p for p in installments if classify_installment(p, TODAY, grace) in statuses]

        assert filter_overdue(installments, TODAY, grace) == labelled(PaymentStatus.OVERDUE)
        assert filter_postponed(installments) == labelled(PaymentStatus.POSTPONED)
        assert filter_upcoming(installments, TODAY) == labelled(PaymentStatus.UPCOMING)
        assert filter_due_for_collection(installments, TODAY) == labelled(
            PaymentStatus.DUE, PaymentStatus.OVERDUE
        )


class TestScheduleProperties:

    @given(contract_terms())
    @settings(max_examples=200, deadline=None)
    def test_schedule_tiles_contract_period(self, terms):
        start, duration, frequency = terms
        end = derive_end_date(start, duration)
        schedule = build_installment_schedule(start, end, duration, frequency, Decimal("100.00"))

        assert len(schedule) == calculate_payments_count(duration, frequency)
        assert schedule[0].period_start == start
        assert schedule[-1].period_end == end
        for prev, nxt in zip(schedule, schedule[1:]):
            assert nxt.period_start == prev.period_end + timedelta(days=1)


class TestLifecycleProperties:

    @given(
        st.integers(min_value=-400, max_value=400),
        st.integers(min_value=1, max_value=800),
        st.integers(min_value=1, max_value=90),
    )
    @settings(max_examples=300, deadline=None)
    def test_remaining_days_and_window(self, start_offset, length, window):
        start = TODAY + timedelta(days=start_offset)
        end = start + timedelta(days=length)
        result = classify_contract("active", start, end, TODAY, expiring_window_days=window)

        assert result.remaining_days >= 0
        if result.display_status is ContractDisplayStatus.EXPIRING_SOON:
            assert start <= TODAY <= end
            assert (end - TODAY).days <= window
        assert result.is_active == (start <= TODAY <= end)
