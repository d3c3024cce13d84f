"""Reservation pricing.

Pure arithmetic over Decimal amounts. Nothing here touches the database, so the
same functions serve reservation creation, edits, check-in and check-out.

    total_room_charge = base_room_rate * number_of_nights
    subtotal          = total_room_charge + extra_charges
    discount_amount   = subtotal * value / 100   (PERCENTAGE)
                      = value                    (FIXED_AMOUNT)
                      = 0                        (NONE / absent)
    total_amount      = subtotal - discount_amount + service_charge + tax
    balance_amount    = max(0, total_amount - advance_amount)
"""
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union

from ...enum.reservation_enum import DiscountType, PaymentStatus

MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Numeric(12, 2) columns hold at most ten integer digits
MAX_AMOUNT = Decimal("9999999999.99")
SECONDS_PER_DAY = 24 * 60 * 60


class InvalidArgument(ValueError):
    """Raised for pricing inputs that cannot produce a meaningful bill."""


@dataclass(frozen=True)
class PricingInput:
    base_room_rate: Decimal
    number_of_nights: int
    extra_charges: Decimal = ZERO
    discount_type: Optional[DiscountType] = None
    discount_value: Decimal = ZERO
    service_charge: Decimal = ZERO
    tax: Decimal = ZERO
    advance_amount: Decimal = ZERO


@dataclass(frozen=True)
class PricingResult:
    total_room_charge: Decimal
    subtotal: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    balance_amount: Decimal
    payment_status: PaymentStatus


def to_money(value: Any, field: str = "amount") -> Decimal:
    if value is None:
        return ZERO
    try:
        # str() first so 0.1 stays 0.1 instead of its binary expansion
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidArgument(f"{field} must be a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidArgument(f"{field} must be a finite number")
    return amount


def ensure_storable(amount: Decimal, field: str = "amount") -> Decimal:
    if abs(amount) > MAX_AMOUNT:
        raise InvalidArgument(f"{field} must not exceed {MAX_AMOUNT}")
    return amount


def quantize(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def normalize_discount_type(value: Union[DiscountType, str, None]) -> Optional[DiscountType]:
    if value is None or value == "":
        return None
    try:
        discount_type = DiscountType(value)
    except ValueError:
        raise InvalidArgument(f"Unknown discount type {value!r}")
    return None if discount_type == DiscountType.NONE else discount_type


def calculate_nights(check_in: datetime, check_out: datetime) -> int:
    """Whole nights between two instants, rounded up, never less than one."""
    seconds = (check_out - check_in).total_seconds()
    return max(1, math.ceil(seconds / SECONDS_PER_DAY))


def derive_payment_status(advance_amount: Decimal, total_amount: Decimal) -> PaymentStatus:
    if advance_amount >= total_amount:
        return PaymentStatus.PAID
    if advance_amount > ZERO:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def balance_due(total_amount: Decimal, advance_amount: Decimal) -> Decimal:
    return quantize(max(ZERO, total_amount - advance_amount))


def _validate(pricing: PricingInput, discount_type: Optional[DiscountType]):
    if pricing.number_of_nights < 0:
        raise InvalidArgument("number_of_nights must not be negative")

    monetary = {
        "base_room_rate": pricing.base_room_rate,
        "extra_charges": pricing.extra_charges,
        "discount_value": pricing.discount_value,
        "service_charge": pricing.service_charge,
        "tax": pricing.tax,
        "advance_amount": pricing.advance_amount,
    }
    for field, value in monetary.items():
        amount = to_money(value, field)
        if amount < ZERO:
            raise InvalidArgument(f"{field} must not be negative")
        ensure_storable(amount, field)

    if discount_type == DiscountType.PERCENTAGE and to_money(pricing.discount_value) > HUNDRED:
        raise InvalidArgument("Percentage discount must be between 0 and 100")


def calculate_pricing(pricing: PricingInput) -> PricingResult:
    discount_type = normalize_discount_type(pricing.discount_type)
    _validate(pricing, discount_type)

    base_room_rate = to_money(pricing.base_room_rate, "base_room_rate")
    extra_charges = to_money(pricing.extra_charges, "extra_charges")
    discount_value = to_money(pricing.discount_value, "discount_value")
    service_charge = to_money(pricing.service_charge, "service_charge")
    tax = to_money(pricing.tax, "tax")
    advance_amount = to_money(pricing.advance_amount, "advance_amount")

    total_room_charge = ensure_storable(
        quantize(base_room_rate * pricing.number_of_nights), "total_room_charge")
    subtotal = total_room_charge + extra_charges

    if discount_type == DiscountType.PERCENTAGE:
        discount_amount = quantize(subtotal * discount_value / HUNDRED)
    elif discount_type == DiscountType.FIXED_AMOUNT:
        discount_amount = quantize(discount_value)
    else:
        discount_amount = ZERO

    total_amount = ensure_storable(
        quantize(subtotal - discount_amount + service_charge + tax), "total_amount")

    return PricingResult(
        total_room_charge=total_room_charge,
        subtotal=quantize(subtotal),
        discount_amount=quantize(discount_amount),
        total_amount=total_amount,
        balance_amount=balance_due(total_amount, advance_amount),
        payment_status=derive_payment_status(advance_amount, total_amount),
    )
