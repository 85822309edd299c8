"""
Rent Collection Pure Calculation Functions.

- Status classification of a rent installment
- Postpone / collect eligibility
- Days overdue and late fees
- In-memory set filters that agree with the classifier

"now" is always an argument and is reduced to its calendar day.  Grace
days come from ``CollectionConfig`` (``payment_due_days``); no function
here reads settings.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, TypeVar

from rental_kernel.domain.clock import as_calendar_day
from rental_kernel.exceptions import IncompleteRecordError, InvalidSettingError
from rental_modules.collections.models import PaymentStatus

DEFAULT_GRACE_DAYS = 7
DEFAULT_CRITICAL_POSTPONEMENT_DAYS = 30

_CENT = Decimal("0.01")


class RentInstallment(Protocol):
    """Anything shaped like a rent installment: ORM rows, DTOs, test doubles."""
    due_date_start: date | None
    due_date_end: date | None
    collection_date: date | None
    delay_duration: int | None


R = TypeVar("R", bound=RentInstallment)


# =============================================================================
# Classification
# =============================================================================


def is_postponed(delay_duration: int | None) -> bool:
    """A positive delay marks a postponement; zero or None does not."""
    return delay_duration is not None and delay_duration > 0


def overdue_cutoff(now: date | datetime, grace_days: int = DEFAULT_GRACE_DAYS) -> date:
    """Installments starting strictly before this day are overdue."""
    if grace_days < 0:
        raise InvalidSettingError("payment_due_days", grace_days, "cannot be negative")
    return as_calendar_day(now) - timedelta(days=grace_days)


def classify_collection_payment(
    now: date | datetime,
    due_date_start: date | None,
    collection_date: date | None = None,
    delay_duration: int | None = None,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> PaymentStatus:
    """
    Derive the status of a rent installment.  First match wins:

    1. COLLECTED  -- a collection date is recorded
    2. POSTPONED  -- delay_duration > 0
    3. OVERDUE    -- due_date_start < today - grace_days
    4. DUE        -- due_date_start <= today
    5. UPCOMING

    With the default 7 grace days, an installment starting 7 days ago is
    still DUE; one starting 8 days ago is OVERDUE.

    Raises:
        IncompleteRecordError: an unpaid, unpostponed installment has no
            ``due_date_start``.
        InvalidSettingError: ``grace_days`` is negative.
    """
    if collection_date is not None:
        return PaymentStatus.COLLECTED
    if is_postponed(delay_duration):
        return PaymentStatus.POSTPONED
    if due_date_start is None:
        raise IncompleteRecordError("collection_payment", "due_date_start")

    cutoff = overdue_cutoff(now, grace_days)
    if due_date_start < cutoff:
        return PaymentStatus.OVERDUE
    if due_date_start <= as_calendar_day(now):
        return PaymentStatus.DUE
    return PaymentStatus.UPCOMING


def classify_installment(
    payment: RentInstallment,
    now: date | datetime,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> PaymentStatus:
    return classify_collection_payment(
        now,
        payment.due_date_start,
        payment.collection_date,
        payment.delay_duration,
        grace_days,
    )


def can_be_postponed(collection_date: date | None, delay_duration: int | None) -> bool:
    """Only unpaid installments that are not already postponed."""
    return collection_date is None and not is_postponed(delay_duration)


def can_be_collected(collection_date: date | None) -> bool:
    return collection_date is None


# =============================================================================
# Late fees
# =============================================================================


def is_past_due_end(
    now: date | datetime,
    due_date_end: date | None,
    collection_date: date | None,
) -> bool:
    """Unpaid and the installment period has fully elapsed."""
    if collection_date is not None or due_date_end is None:
        return False
    return due_date_end < as_calendar_day(now)


def days_overdue(
    now: date | datetime,
    due_date_end: date | None,
    collection_date: date | None,
) -> int:
    """Whole days elapsed since the end of the installment period; 0 when not past."""
    if not is_past_due_end(now, due_date_end, collection_date):
        return 0
    return (as_calendar_day(now) - due_date_end).days


def calculate_late_fee(amount: Decimal, overdue_days: int, daily_rate_percent: Decimal) -> Decimal:
    """
    ``amount * rate / 100 * days``, rounded half-up to cents.

    ``daily_rate_percent`` is a percentage: 0.05 means 0.05 % per day.
    """
    if overdue_days <= 0:
        return Decimal("0.00")
    fee = amount * (daily_rate_percent / Decimal("100")) * overdue_days
    return fee.quantize(_CENT, rounding=ROUND_HALF_UP)


def calculate_total_amount(amount: Decimal | None, late_fee: Decimal | None) -> Decimal:
    return (amount or Decimal("0")) + (late_fee or Decimal("0"))


def format_receipt_number(year: int, sequence: int) -> str:
    """REC-2025-000001"""
    return f"REC-{year}-{sequence:06d}"


def format_payment_number(prefix: str, year: int, sequence: int) -> str:
    """COL-2025-000042 / SUP-2025-000007"""
    return f"{prefix}-{year}-{sequence:06d}"


# =============================================================================
# In-memory set filters
# =============================================================================
#
# Each filter selects exactly the installments the classifier puts in the
# corresponding bucket, except ``filter_due_for_collection`` which is the
# wider "anything unpaid and started" work list (DUE plus OVERDUE).
# =============================================================================


def _open(p: RentInstallment) -> bool:
    return p.collection_date is None and not is_postponed(p.delay_duration)


def _start(p: RentInstallment) -> date:
    if p.due_date_start is None:
        raise IncompleteRecordError("collection_payment", "due_date_start")
    return p.due_date_start


def filter_collected(payments: Iterable[R]) -> list[R]:
    return [p for p in payments if p.collection_date is not None]


def filter_postponed(payments: Iterable[R]) -> list[R]:
    return [p for p in payments if p.collection_date is None and is_postponed(p.delay_duration)]


def filter_due_for_collection(payments: Iterable[R], now: date | datetime) -> list[R]:
    today = as_calendar_day(now)
    return [p for p in payments if _open(p) and _start(p) <= today]


def filter_overdue(
    payments: Iterable[R],
    now: date | datetime,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> list[R]:
    cutoff = overdue_cutoff(now, grace_days)
    return [p for p in payments if _open(p) and _start(p) < cutoff]


def filter_upcoming(payments: Iterable[R], now: date | datetime) -> list[R]:
    today = as_calendar_day(now)
    return [p for p in payments if _open(p) and _start(p) > today]


def filter_critical_postponed(
    payments: Iterable[R],
    now: date | datetime,
    threshold_days: int = DEFAULT_CRITICAL_POSTPONEMENT_DAYS,
) -> list[R]:
    """Postponed by more than the threshold, or whose period ended that long ago."""
    limit = as_calendar_day(now) - timedelta(days=threshold_days)
    return [
        p for p in filter_postponed(payments)
        if p.delay_duration > threshold_days
        or (p.due_date_end is not None and p.due_date_end < limit)
    ]


def select_by_status(
    payments: Iterable[R],
    status: PaymentStatus,
    now: date | datetime,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> list[R]:
    """Installments the classifier labels with ``status``."""
    return [p for p in payments if classify_installment(p, now, grace_days) is status]


def select_by_statuses(
    payments: Iterable[R],
    statuses: Iterable[PaymentStatus],
    now: date | datetime,
    grace_days: int = DEFAULT_GRACE_DAYS,
) -> list[R]:
    """Union of ``select_by_status`` over ``statuses``, input order preserved."""
    wanted = frozenset(statuses)
    return [p for p in payments if classify_installment(p, now, grace_days) in wanted]
