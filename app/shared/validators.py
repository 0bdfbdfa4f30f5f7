"""Shared validation utilities"""

from typing import Optional

from ..models_hosting import PetSize

PET_SIZES = {size.value for size in PetSize}
DISCOUNT_KEYS = {"weekly", "monthly"}


def validate_latitude(value: Optional[float]) -> Optional[float]:
    """Latitude in degrees, -90 to 90"""
    if value is None:
        return value
    if not -90 <= value <= 90:
        raise ValueError("Latitude must be between -90 and 90")
    return value


def validate_longitude(value: Optional[float]) -> Optional[float]:
    """Longitude in degrees, -180 to 180"""
    if value is None:
        return value
    if not -180 <= value <= 180:
        raise ValueError("Longitude must be between -180 and 180")
    return value


def validate_size_pricing_tiers(tiers: Optional[dict]) -> Optional[dict]:
    """
    Validate a size multiplier table.

    Args:
        tiers: Mapping of pet size category to price multiplier

    Returns:
        The table with keys lowercased

    Raises:
        ValueError: If a key is not a pet size or a multiplier is negative
    """
    if tiers is None:
        return tiers

    normalized = {}
    for size, multiplier in tiers.items():
        key = str(size).strip().lower()
        if key not in PET_SIZES:
            raise ValueError(f"Unknown pet size '{size}'. Expected one of: {', '.join(sorted(PET_SIZES))}")
        if multiplier < 0:
            raise ValueError(f"Size multiplier for '{key}' cannot be negative")
        normalized[key] = multiplier
    return normalized


def validate_duration_discounts(discounts: Optional[dict]) -> Optional[dict]:
    """
    Validate a duration discount table.

    Args:
        discounts: Mapping with optional "weekly" and "monthly" fractions

    Returns:
        The table unchanged

    Raises:
        ValueError: If a key is unknown, a fraction is outside [0, 1], or the
            monthly discount is smaller than the weekly one
    """
    if discounts is None:
        return discounts

    for key, fraction in discounts.items():
        if key not in DISCOUNT_KEYS:
            raise ValueError(f"Unknown discount '{key}'. Expected weekly or monthly")
        if not 0 <= fraction <= 1:
            raise ValueError(f"Discount '{key}' must be between 0 and 1")

    weekly = discounts.get("weekly")
    monthly = discounts.get("monthly")
    # Longer stays never get a smaller discount
    if weekly is not None and monthly is not None and monthly < weekly:
        raise ValueError("Monthly discount cannot be smaller than the weekly discount")
    return discounts
