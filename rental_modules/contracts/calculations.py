"""
Contract Pure Calculation Functions.

Domain math for rental and supply contracts:
- Payments count per frequency (lenient) and the strict validity gate
- End date derivation from duration
- Installment schedule building
- Lifecycle classification (display status, remaining days)

Every function is pure: "now" is always an argument.  Comparisons run at
calendar-day granularity.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from rental_kernel.domain.clock import as_calendar_day
from rental_kernel.domain.enums import parse_enum
from rental_kernel.exceptions import (
    IncompleteRecordError,
    InvalidScheduleConfigurationError,
)
from rental_modules.contracts.models import (
    STATUSES_BY_KIND,
    ContractDisplayStatus,
    ContractKind,
    ContractLifecycle,
    ContractStatus,
    Installment,
    PaymentFrequency,
)

DEFAULT_EXPIRING_WINDOW_DAYS = 30


# =============================================================================
# Parsing
# =============================================================================


def parse_payment_frequency(value: PaymentFrequency | str | None) -> PaymentFrequency:
    """Resolve a stored frequency; unknown values raise, never default to monthly."""
    return parse_enum(PaymentFrequency, value)


def parse_contract_status(
    value: ContractStatus | str | None,
    kind: ContractKind = ContractKind.RENTAL,
) -> ContractStatus:
    """Resolve a stored status against the statuses valid for ``kind``."""
    return parse_enum(ContractStatus, value, STATUSES_BY_KIND[kind])


# =============================================================================
# Payments count
# =============================================================================


def months_per_installment(frequency: PaymentFrequency | str) -> int:
    """Months covered by one installment: 1, 3, 6 or 12."""
    return parse_payment_frequency(frequency).months_per_installment


def calculate_payments_count(duration_months: int, frequency: PaymentFrequency | str) -> int:
    """
    Number of installments for a contract.

    Floor division: 7 months paid quarterly yields 2.  This is the lenient
    display value; schedule generation must pass ``require_valid_schedule``
    first.
    """
    return duration_months // months_per_installment(frequency)


def is_valid_duration_for_frequency(duration_months: int, frequency: PaymentFrequency | str) -> bool:
    """True iff the duration splits into whole installments."""
    return duration_months % months_per_installment(frequency) == 0


def require_valid_schedule(duration_months: int, frequency: PaymentFrequency | str) -> None:
    """
    Gate for schedule generation.

    Raises:
        InvalidScheduleConfigurationError: non-positive duration, or a
            duration not evenly divisible by the frequency.
    """
    freq = parse_payment_frequency(frequency)
    if duration_months <= 0 or not is_valid_duration_for_frequency(duration_months, freq):
        raise InvalidScheduleConfigurationError(
            duration_months=duration_months,
            frequency=freq.value,
            months_per_installment=freq.months_per_installment,
        )


def resolve_payments_count(
    stored_count: int | None,
    duration_months: int,
    frequency: PaymentFrequency | str,
) -> int:
    """Stored count wins when present; otherwise recompute."""
    if stored_count is not None:
        return stored_count
    return calculate_payments_count(duration_months, frequency)


# =============================================================================
# Dates and schedules
# =============================================================================


def derive_end_date(start_date: date, duration_months: int) -> date:
    """Last covered day: ``start + N months - 1 day``."""
    if duration_months <= 0:
        raise ValueError("duration_months must be positive")
    return start_date + relativedelta(months=duration_months) - timedelta(days=1)


def installment_amount(monthly_rent: Decimal, frequency: PaymentFrequency | str) -> Decimal:
    """Rent due per installment."""
    months = months_per_installment(frequency)
    return (monthly_rent * months).quantize(Decimal("0.01"))


def build_installment_schedule(
    start_date: date,
    end_date: date,
    duration_months: int,
    frequency: PaymentFrequency | str,
    amount: Decimal,
) -> list[Installment]:
    """
    Build the installment schedule of a contract.

    Period boundaries are offsets from ``start_date`` (not chained), so a
    contract starting on the 31st keeps landing on month ends.  The last
    period is clamped to ``end_date``.

    Raises:
        InvalidScheduleConfigurationError: via ``require_valid_schedule``.
    """
    freq = parse_payment_frequency(frequency)
    require_valid_schedule(duration_months, freq)

    step = freq.months_per_installment
    schedule: list[Installment] = []
    for sequence in range(1, calculate_payments_count(duration_months, freq) + 1):
        period_start = start_date + relativedelta(months=step * (sequence - 1))
        if period_start > end_date:
            break
        period_end = start_date + relativedelta(months=step * sequence) - timedelta(days=1)
        schedule.append(
            Installment(
                sequence=sequence,
                period_start=period_start,
                period_end=min(period_end, end_date),
                amount=amount,
                month_year=period_start.strftime("%Y-%m"),
            )
        )
    return schedule


def periods_overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> bool:
    """Inclusive date-range overlap."""
    return start_a <= end_b and end_a >= start_b


# =============================================================================
# Lifecycle classification
# =============================================================================


def _require_dates(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    if start_date is None:
        raise IncompleteRecordError("contract", "start_date")
    if end_date is None:
        raise IncompleteRecordError("contract", "end_date")
    return start_date, end_date


def is_contract_active(
    contract_status: ContractStatus | str,
    start_date: date | None,
    end_date: date | None,
    now: date | datetime,
    kind: ContractKind = ContractKind.RENTAL,
) -> bool:
    """Stored as active AND today lies within ``[start_date, end_date]``."""
    if parse_contract_status(contract_status, kind) is not ContractStatus.ACTIVE:
        return False
    start, end = _require_dates(start_date, end_date)
    today = as_calendar_day(now)
    return start <= today <= end


def has_contract_expired(
    contract_status: ContractStatus | str,
    end_date: date | None,
    now: date | datetime,
    kind: ContractKind = ContractKind.RENTAL,
) -> bool:
    """Stored as expired, or stored as active with an end date in the past."""
    status = parse_contract_status(contract_status, kind)
    if status is ContractStatus.EXPIRED:
        return True
    if status is not ContractStatus.ACTIVE:
        return False
    if end_date is None:
        raise IncompleteRecordError("contract", "end_date")
    return end_date < as_calendar_day(now)


def contract_remaining_days(
    contract_status: ContractStatus | str,
    end_date: date | None,
    now: date | datetime,
    kind: ContractKind = ContractKind.RENTAL,
) -> int:
    """Days until ``end_date`` for active contracts; 0 otherwise."""
    if parse_contract_status(contract_status, kind) is not ContractStatus.ACTIVE:
        return 0
    if end_date is None:
        raise IncompleteRecordError("contract", "end_date")
    return max(0, (end_date - as_calendar_day(now)).days)


_NON_ACTIVE_DISPLAY = {
    ContractStatus.DRAFT: ContractDisplayStatus.DRAFT,
    ContractStatus.EXPIRED: ContractDisplayStatus.EXPIRED,
    ContractStatus.TERMINATED: ContractDisplayStatus.TERMINATED,
    ContractStatus.RENEWED: ContractDisplayStatus.RENEWED,
    ContractStatus.SUSPENDED: ContractDisplayStatus.SUSPENDED,
}


def classify_contract(
    contract_status: ContractStatus | str,
    start_date: date | None,
    end_date: date | None,
    now: date | datetime,
    kind: ContractKind = ContractKind.RENTAL,
    expiring_window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> ContractLifecycle:
    """
    Derive the display status of a contract.

    Non-active stored statuses map one-to-one with zero remaining days.
    For stored ``active``:

    1. start date in the future  -> NOT_STARTED (``is_active`` False)
    2. end date in the past      -> EXPIRED (stale flag, ``has_expired`` True)
    3. remaining <= window days  -> EXPIRING_SOON (boundary day included)
    4. otherwise                 -> ACTIVE
    """
    status = parse_contract_status(contract_status, kind)

    if status is not ContractStatus.ACTIVE:
        return ContractLifecycle(
            display_status=_NON_ACTIVE_DISPLAY[status],
            remaining_days=0,
            is_active=False,
            has_expired=status is ContractStatus.EXPIRED,
        )

    start, end = _require_dates(start_date, end_date)
    today = as_calendar_day(now)

    if start > today:
        return ContractLifecycle(
            display_status=ContractDisplayStatus.NOT_STARTED,
            remaining_days=max(0, (end - today).days),
            is_active=False,
            has_expired=False,
        )
    if end < today:
        return ContractLifecycle(
            display_status=ContractDisplayStatus.EXPIRED,
            remaining_days=0,
            is_active=False,
            has_expired=True,
        )

    remaining = (end - today).days
    display = (
        ContractDisplayStatus.EXPIRING_SOON
        if remaining <= expiring_window_days
        else ContractDisplayStatus.ACTIVE
    )
    return ContractLifecycle(
        display_status=display,
        remaining_days=remaining,
        is_active=True,
        has_expired=False,
    )


def format_contract_number(prefix: str, year: int, sequence: int) -> str:
    """UC-2025-0001 (rental) / PC-2025-0001 (supply)"""
    return f"{prefix}-{year}-{sequence:04d}"
