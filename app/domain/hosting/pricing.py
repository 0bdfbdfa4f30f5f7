"""
Hosting price calculation.

Pure functions only: no database access, no clock. Given a host's pricing
policy, the pet's size, the stay window and the requested add-ons, produce
an itemized price. All money is computed in Decimal and rounded to cents
(half-up) when the breakdown is built.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Union

CENTS = Decimal("0.01")

WEEKLY_THRESHOLD_DAYS = 7
MONTHLY_THRESHOLD_DAYS = 30

# Add-on identifier -> (charge basis, amount)
ADDON_FEES = {
    "medication_administration": ("per_day", Decimal("5.00")),
    "grooming": ("flat", Decimal("20.00")),
    "training": ("per_day", Decimal("15.00")),
}


@dataclass(frozen=True)
class PriceBreakdown:
    """Itemized quote, frozen onto a booking when it is created"""

    duration_days: int
    base_price: Decimal
    size_multiplier: float
    duration_discount: float
    additional_services_fee: Decimal
    total_price: Decimal

    def as_booking_fields(self) -> dict:
        return {
            "base_price": self.base_price,
            "size_multiplier": self.size_multiplier,
            "duration_discount": self.duration_discount,
            "additional_services_fee": self.additional_services_fee,
            "total_price": self.total_price,
        }


def _to_decimal(value) -> Decimal:
    # str() first so binary floats like 0.1 stay exact
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def stay_length_days(
    check_in: Union[date, datetime], check_out: Union[date, datetime]
) -> int:
    """Whole days between check-in and check-out, rounded up"""
    if isinstance(check_in, datetime) or isinstance(check_out, datetime):
        seconds = (check_out - check_in).total_seconds()
        return math.ceil(seconds / 86400)
    return (check_out - check_in).days


def size_multiplier_for(
    size_pricing_tiers: Optional[Mapping[str, float]], pet_size: Optional[str]
) -> Decimal:
    """Multiplier for the pet's size, 1.0 when the size is unset or not priced"""
    if not pet_size or not size_pricing_tiers:
        return Decimal("1")
    multiplier = size_pricing_tiers.get(str(pet_size))
    if multiplier is None:
        return Decimal("1")
    return _to_decimal(multiplier)


def duration_discount_for(
    duration_discounts: Optional[Mapping[str, float]], duration_days: int
) -> Decimal:
    """
    Discount fraction for the stay length.

    Monthly applies from 30 days and takes precedence over weekly, which
    applies from 7 days. A stay of 30+ days on a host without a monthly rate
    still earns the weekly rate.
    """
    if not duration_discounts:
        return Decimal("0")

    monthly = duration_discounts.get("monthly")
    weekly = duration_discounts.get("weekly")

    if duration_days >= MONTHLY_THRESHOLD_DAYS and monthly:
        return _to_decimal(monthly)
    if duration_days >= WEEKLY_THRESHOLD_DAYS and weekly:
        return _to_decimal(weekly)
    return Decimal("0")


def additional_services_fee_for(
    additional_services: Optional[Iterable[str]], duration_days: int
) -> Decimal:
    """Sum of add-on fees. Unknown identifiers cost nothing; repeats count once."""
    fee = Decimal("0")
    for service in set(additional_services or []):
        pricing = ADDON_FEES.get(service)
        if pricing is None:
            continue
        basis, amount = pricing
        fee += amount * duration_days if basis == "per_day" else amount
    return fee


def calculate_price(
    base_daily_rate,
    size_pricing_tiers: Optional[Mapping[str, float]],
    duration_discounts: Optional[Mapping[str, float]],
    pet_size: Optional[str],
    check_in: Union[date, datetime],
    check_out: Union[date, datetime],
    additional_services: Optional[Iterable[str]] = None,
) -> PriceBreakdown:
    """
    Price a stay.

    base_price       = rate x days x size multiplier
    discounted_price = base_price x (1 - duration discount)
    total_price      = discounted_price + add-on fees
    """
    duration_days = stay_length_days(check_in, check_out)
    rate = _to_decimal(base_daily_rate)

    size_multiplier = size_multiplier_for(size_pricing_tiers, pet_size)
    base_price = rate * duration_days * size_multiplier

    duration_discount = duration_discount_for(duration_discounts, duration_days)
    discounted_price = base_price * (1 - duration_discount)

    addon_fee = additional_services_fee_for(additional_services, duration_days)
    total_price = discounted_price + addon_fee

    return PriceBreakdown(
        duration_days=duration_days,
        base_price=_quantize(base_price),
        size_multiplier=float(size_multiplier),
        duration_discount=float(duration_discount),
        additional_services_fee=_quantize(addon_fee),
        total_price=_quantize(total_price),
    )
