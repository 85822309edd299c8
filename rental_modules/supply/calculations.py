"""
Owner Payout Pure Calculation Functions.

- Status classification of a payout (no grace period, unlike rent)
- Commission and net amount
- Confirmation eligibility
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta

from rental_kernel.domain.clock import as_calendar_day
from rental_kernel.exceptions import IncompleteRecordError
from rental_modules.supply.models import SupplyStatus

_CENT = Decimal("0.01")
_ZERO = Decimal("0")

REASON_ALREADY_PAID = "already paid out"
REASON_NO_DUE_DATE = "no due date recorded"
REASON_NOT_YET_DUE = "not yet due"


def classify_supply_payment(
    now: date | datetime,
    due_date: date | None,
    paid_date: date | None = None,
) -> SupplyStatus:
    """
    COLLECTED when paid; WORTH_COLLECTING once the due date is today or
    past; PENDING otherwise.  A payout due today is already WORTH_COLLECTING.

    Raises:
        IncompleteRecordError: unpaid payout without a due date.
    """
    if paid_date is not None:
        return SupplyStatus.COLLECTED
    if due_date is None:
        raise IncompleteRecordError("supply_payment", "due_date")
    if due_date <= as_calendar_day(now):
        return SupplyStatus.WORTH_COLLECTING
    return SupplyStatus.PENDING


def calculate_commission(gross_amount: Decimal, commission_rate: Decimal) -> Decimal:
    """``gross * rate / 100`` rounded half-up to cents; ``rate`` is a percentage."""
    return (gross_amount * commission_rate / Decimal("100")).quantize(_CENT, rounding=ROUND_HALF_UP)


def calculate_net_amount(
    gross_amount: Decimal,
    commission_rate: Decimal,
    maintenance_deduction: Decimal = _ZERO,
    other_deductions: Decimal = _ZERO,
) -> Decimal:
    """Owner's share after commission and deductions.  May be negative."""
    commission = calculate_commission(gross_amount, commission_rate)
    return gross_amount - commission - maintenance_deduction - other_deductions


def confirmation_blockers(
    now: date | datetime,
    due_date: date | None,
    paid_date: date | None,
    pending_previous_count: int = 0,
) -> tuple[str, ...]:
    """Every reason the payout cannot be confirmed; empty when it can."""
    reasons: list[str] = []
    if paid_date is not None:
        reasons.append(REASON_ALREADY_PAID)
    if due_date is None:
        reasons.append(REASON_NO_DUE_DATE)
    elif due_date > as_calendar_day(now):
        reasons.append(REASON_NOT_YET_DUE)
    if pending_previous_count > 0:
        reasons.append(f"{pending_previous_count} earlier payout(s) still open")
    return tuple(reasons)


def payout_due_date(period_end: date, payment_day: int | None = None) -> date:
    """
    Day the owner payout for a period falls due.

    Without a contractual payment day the payout is due on the last day of
    the period.  Otherwise it is the first ``payment_day`` after the period
    ends, clamped to short months (day 31 becomes the 30th or 28th/29th).
    """
    if payment_day is None:
        return period_end
    if not 1 <= payment_day <= 31:
        raise ValueError("payment_day must be between 1 and 31")

    first = period_end + timedelta(days=1)
    candidate = first + relativedelta(day=payment_day)
    if candidate < first:
        candidate = first + relativedelta(months=+1, day=payment_day)
    return candidate
