"""Odds conversions and stake helpers used by the calculators."""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from arbdash.utils.validation import (
    ValidationError,
    validate_american_odds,
    validate_price,
    validate_stake,
)


def american_to_decimal(american: float) -> float:
    odds = validate_american_odds(american)
    if odds > 0:
        return 1.0 + odds / 100.0
    return 1.0 + 100.0 / -odds


def decimal_to_american(price: float) -> float:
    price = validate_price(price)
    if price >= 2.0:
        return (price - 1.0) * 100.0
    return -100.0 / (price - 1.0)


def implied_probability(price: float) -> float:
    return 1.0 / validate_price(price)


def format_odds(price: float) -> Tuple[str, str]:
    """Render a decimal price as ("2.10", "+110") for display."""
    american = decimal_to_american(price)
    sign = "+" if american > 0 else "-"
    return f"{price:.2f}", f"{sign}{abs(american):.0f}"


def two_way_split(price_1: float, price_2: float, total_stake: float) -> Tuple[float, float]:
    """Equal-payout split of `total_stake` across a two-outcome market.

    The familiar head-to-head formula: the stake on one side is proportional
    to the other side's price.
    """
    price_1 = validate_price(price_1, "price_1")
    price_2 = validate_price(price_2, "price_2")
    total_stake = validate_stake(total_stake)
    stake_1 = total_stake * price_2 / (price_1 + price_2)
    return stake_1, total_stake - stake_1


def hedge_profits(prices: Sequence[float], stakes: Sequence[float]) -> List[float]:
    """Profit for each outcome if it wins, given arbitrary stakes.

    Args:
        prices: Decimal price per outcome
        stakes: Amount staked per outcome, same order as `prices`

    Returns:
        `stake_i * price_i - sum(stakes)` for each outcome
    """
    if len(prices) != len(stakes):
        raise ValidationError(f"got {len(prices)} prices but {len(stakes)} stakes")
    checked = [validate_price(p, f"price #{i}") for i, p in enumerate(prices)]
    for i, s in enumerate(stakes):
        if isinstance(s, bool) or not isinstance(s, (int, float)) or not math.isfinite(s) or s < 0:
            raise ValidationError(f"stake #{i} must be a finite non-negative number, got {s!r}")
    total = float(sum(stakes))
    return [s * p - total for p, s in zip(checked, stakes)]
