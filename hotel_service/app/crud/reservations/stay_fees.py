"""Suggested fees for the check-in and check-out desks.

Pure functions of the booked dates and the current time. Staff see these
amounts before confirming; the check-in and check-out operations only apply
what is submitted.
"""
import math
from dataclasses import dataclass
from datetime import datetime, time
from decimal import Decimal

from .pricing import ZERO, balance_due, quantize

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


@dataclass(frozen=True)
class CheckInTiming:
    is_early_check_in: bool
    is_late_check_in: bool
    early_check_in_fee: Decimal
    late_check_in_fee: Decimal


@dataclass(frozen=True)
class CheckOutSettlement:
    late_checkout_fee: Decimal
    actual_stay_days: int
    updated_total_amount: Decimal
    final_balance_amount: Decimal


def check_in_timing(
    check_in_date: datetime,
    now: datetime,
    early_fee_per_hour: Decimal,
    late_fee_per_day: Decimal,
) -> CheckInTiming:
    """Early arrivals pay per started hour; arrivals more than a day late pay per extra day."""
    seconds_early = (check_in_date - now).total_seconds()
    seconds_late = -seconds_early

    is_early = seconds_early > 0
    is_late = seconds_late > SECONDS_PER_DAY

    early_fee = ZERO
    if is_early:
        early_fee = quantize(math.ceil(seconds_early / SECONDS_PER_HOUR) * early_fee_per_hour)

    late_fee = ZERO
    if is_late:
        # the first day is the grace period
        days_late = math.ceil(seconds_late / SECONDS_PER_DAY) - 1
        late_fee = quantize(days_late * late_fee_per_day)

    return CheckInTiming(
        is_early_check_in=is_early,
        is_late_check_in=is_late,
        early_check_in_fee=early_fee,
        late_check_in_fee=late_fee,
    )


def actual_stay_days(check_in_date: datetime, now: datetime) -> int:
    seconds = (now - check_in_date).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def late_checkout_fee(
    check_out_date: datetime,
    now: datetime,
    standard_check_out: time,
    fee_per_hour: Decimal,
) -> Decimal:
    deadline = datetime.combine(check_out_date.date(), standard_check_out)
    if now <= deadline:
        return ZERO
    hours_late = math.ceil((now - deadline).total_seconds() / SECONDS_PER_HOUR)
    return quantize(hours_late * fee_per_hour)


def check_out_settlement(
    check_in_date: datetime,
    check_out_date: datetime,
    total_amount: Decimal,
    advance_amount: Decimal,
    now: datetime,
    standard_check_out: time,
    late_fee_per_hour: Decimal,
) -> CheckOutSettlement:
    fee = late_checkout_fee(check_out_date, now, standard_check_out, late_fee_per_hour)
    updated_total = quantize(total_amount + fee)
    return CheckOutSettlement(
        late_checkout_fee=fee,
        actual_stay_days=actual_stay_days(check_in_date, now),
        updated_total_amount=updated_total,
        final_balance_amount=balance_due(updated_total, advance_amount),
    )
