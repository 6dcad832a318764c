"""Arbitrage detection and stake allocation.

This module is the single place where arbitrage math lives. It includes:
- Best-quote selection per outcome across bookmakers
- Arbitrage detection (sum of implied probabilities < 1.0)
- Equal-payout stake allocation for a given total stake

Everything here is a pure function of its inputs: no I/O, no shared state.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Union

from arbdash.core.models import (
    INSUFFICIENT_OUTCOMES,
    NO_EDGE,
    Allocation,
    BestQuote,
    Market,
    NoArbitrage,
    Opportunity,
)
from arbdash.utils.logging import get_logger
from arbdash.utils.validation import (
    InsufficientMarketError,
    InvalidPriceError,
    validate_price,
    validate_stake,
)


logger = get_logger("arb")

MIN_OUTCOMES = 2


def find_best_quotes(
    market: Market, rejected: Optional[List[InvalidPriceError]] = None
) -> Dict[str, BestQuote]:
    """Pick the highest price per outcome name.

    Quotes are scanned in input order and a later quote only replaces the
    current best when strictly higher, so ties go to the first bookmaker seen.
    The returned dict is ordered by first appearance of each name.

    Quotes with an invalid price are skipped and logged as warnings. When a
    `rejected` list is passed, the corresponding errors are appended to it.

    Raises:
        InsufficientMarketError: If fewer than two distinct names have a
            valid price.
    """
    best: Dict[str, BestQuote] = {}
    for idx, outcome in enumerate(market.outcomes):
        try:
            price = validate_price(outcome.price, label=f"price of {outcome.name!r} at {outcome.bookmaker!r}")
        except InvalidPriceError as exc:
            logger.warning("Skipping quote #%d: %s", idx, exc)
            if rejected is not None:
                rejected.append(exc)
            continue
        current = best.get(outcome.name)
        if current is None or price > current.price:
            best[outcome.name] = BestQuote(outcome_name=outcome.name, price=price, bookmaker=outcome.bookmaker)

    if len(best) < MIN_OUTCOMES:
        raise InsufficientMarketError(
            f"need at least {MIN_OUTCOMES} priced outcomes, got {len(best)} "
            f"from {len(market.outcomes)} quotes"
        )
    return best


def implied_margin(quotes: Dict[str, BestQuote]) -> float:
    return math.fsum(1.0 / q.price for q in quotes.values())


def evaluate(market: Market, total_stake: float) -> Union[Opportunity, NoArbitrage]:
    """Decide whether `market` holds an arbitrage and size the bets.

    Each outcome gets `stake_i = (total_stake / price_i) / margin`, which makes
    `stake_i * price_i` the same for every outcome and the stakes add up to
    `total_stake`. Any floating-point residue in that sum is added to the
    first outcome in input order.

    Raises:
        InvalidStakeError: If `total_stake` is not a positive number.
        InsufficientMarketError: If fewer than two outcomes carry a valid price.
    """
    total_stake = validate_stake(total_stake)
    quotes = find_best_quotes(market)
    if len(quotes) < MIN_OUTCOMES:
        return NoArbitrage(reason=INSUFFICIENT_OUTCOMES)

    margin = implied_margin(quotes)
    if margin >= 1.0:
        return NoArbitrage(reason=NO_EDGE, implied_margin=margin)

    best = list(quotes.values())
    stakes = [(total_stake / q.price) / margin for q in best]
    stakes[0] += total_stake - math.fsum(stakes)

    guaranteed_return = total_stake / margin
    profit = guaranteed_return - total_stake
    return Opportunity(
        total_stake=total_stake,
        implied_margin=margin,
        allocations=tuple(
            Allocation(outcome_name=q.outcome_name, bookmaker=q.bookmaker, price=q.price, stake=s)
            for q, s in zip(best, stakes)
        ),
        guaranteed_return=guaranteed_return,
        profit=profit,
        roi_percent=profit / total_stake * 100.0,
    )
