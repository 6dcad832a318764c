"""Input validation for odds and stakes.

Bad prices and stakes are rejected here before any arithmetic happens, so
the engine only ever divides by finite numbers above 1.0.
"""

from __future__ import annotations

import math
from typing import Any


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


class InvalidPriceError(ValidationError):
    """A quote whose decimal price is not a legitimate odds value."""
    pass


class InvalidStakeError(ValidationError):
    """The total stake handed to the engine is not a positive amount."""
    pass


class InsufficientMarketError(ValueError):
    """Fewer than two distinct outcomes carry a valid price."""
    pass


def _as_number(value: Any) -> float | None:
    # bool is an int subclass; True is not a price
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def validate_price(price: Any, label: str = "price") -> float:
    """Validate a decimal odds value.

    Args:
        price: The decimal price to validate
        label: Label for error messages

    Returns:
        The price as a float

    Raises:
        InvalidPriceError: If the price is not a finite number above 1.0
    """
    value = _as_number(price)
    if value is None:
        raise InvalidPriceError(f"{label} must be a finite number, got {price!r}")
    if value <= 1.0:
        raise InvalidPriceError(f"{label} must be greater than 1.0, got {value}")
    return value


def validate_stake(stake: Any, label: str = "total_stake") -> float:
    """Validate a stake amount.

    Args:
        stake: The stake to validate
        label: Label for error messages

    Returns:
        The stake as a float

    Raises:
        InvalidStakeError: If the stake is not a finite number above zero
    """
    value = _as_number(stake)
    if value is None:
        raise InvalidStakeError(f"{label} must be a finite number, got {stake!r}")
    if value <= 0:
        raise InvalidStakeError(f"{label} must be positive, got {value}")
    return value


def validate_american_odds(odds: Any, label: str = "american odds") -> float:
    value = _as_number(odds)
    if value is None:
        raise InvalidPriceError(f"{label} must be a finite number, got {odds!r}")
    if -100 < value < 100:
        raise InvalidPriceError(f"{label} must be <= -100 or >= +100, got {value}")
    return value
