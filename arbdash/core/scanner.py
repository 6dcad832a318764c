"""Run the arbitrage engine over a batch of games.

The scanner is the bridge between the connectors and the dashboard: it
evaluates each game's head-to-head market, tags every opportunity with a
confidence tier and offers the filters and orderings the UI exposes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List

from arbdash.config.constants import H2H_MARKET, HIGH_CONFIDENCE_ROI, MEDIUM_CONFIDENCE_ROI
from arbdash.core.arb import evaluate
from arbdash.core.models import Confidence, EventOpportunity, Game, NoArbitrage
from arbdash.core.normalize import market_from_game
from arbdash.core.odds import format_odds
from arbdash.utils.logging import get_logger
from arbdash.utils.validation import InsufficientMarketError, validate_stake


logger = get_logger("scanner")

_CONFIDENCE_RANK = {"high": 3, "medium": 2, "low": 1}
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


@dataclass
class ScanResult:
    opportunities: List[EventOpportunity] = field(default_factory=list)
    evaluated: int = 0
    no_edge: int = 0
    insufficient: int = 0


def confidence_for(roi_percent: float) -> Confidence:
    if roi_percent >= HIGH_CONFIDENCE_ROI:
        return "high"
    if roi_percent >= MEDIUM_CONFIDENCE_ROI:
        return "medium"
    return "low"


def scan_games(games: Iterable[Game], total_stake: float, market_key: str = H2H_MARKET) -> ScanResult:
    """Evaluate every game and collect the ones with an arbitrage.

    Games without two priced outcomes are counted and skipped. An invalid
    `total_stake` is checked once up front and raised to the caller.
    """
    total_stake = validate_stake(total_stake)
    result = ScanResult()
    for game in games:
        result.evaluated += 1
        try:
            outcome = evaluate(market_from_game(game, market_key), total_stake)
        except InsufficientMarketError as exc:
            logger.debug("Skipping %s (%s vs %s): %s", game.id, game.home_team, game.away_team, exc)
            result.insufficient += 1
            continue
        if isinstance(outcome, NoArbitrage):
            result.no_edge += 1
            continue
        result.opportunities.append(
            EventOpportunity(game=game, opportunity=outcome, confidence=confidence_for(outcome.roi_percent))
        )
    logger.info(
        "Scanned %d games: %d opportunities, %d without edge, %d insufficient",
        result.evaluated,
        len(result.opportunities),
        result.no_edge,
        result.insufficient,
    )
    return result


def filter_min_return(opps: Iterable[EventOpportunity], min_roi_percent: float) -> List[EventOpportunity]:
    return [o for o in opps if o.opportunity.roi_percent >= min_roi_percent]


def sort_opportunities(opps: Iterable[EventOpportunity], sort_by: str = "confidence") -> List[EventOpportunity]:
    """Order opportunities for display.

    `confidence` sorts by tier, then ROI, both descending. `date` puts the
    soonest kick-off first and games without a start time last.
    """
    opps = list(opps)
    if sort_by == "confidence":
        return sorted(
            opps,
            key=lambda o: (_CONFIDENCE_RANK[o.confidence], o.opportunity.roi_percent),
            reverse=True,
        )
    if sort_by == "return":
        return sorted(opps, key=lambda o: o.opportunity.roi_percent, reverse=True)
    if sort_by == "profit":
        return sorted(opps, key=lambda o: o.opportunity.profit, reverse=True)
    if sort_by == "stake":
        return sorted(opps, key=lambda o: o.opportunity.total_stake, reverse=True)
    if sort_by == "date":
        return sorted(opps, key=lambda o: o.game.commence_time or _FAR_FUTURE)
    raise ValueError(f"unknown sort option: {sort_by!r}")


def format_opportunity_text(opp: EventOpportunity) -> str:
    """Plain-text summary suitable for pasting into a bet slip or chat."""
    game = opp.game
    start = game.commence_time.strftime("%Y-%m-%d %H:%M UTC") if game.commence_time else "TBD"
    lines = [
        f"{game.home_team} vs {game.away_team}",
        f"{game.sport_title} - {start}",
        f"Return: {opp.opportunity.roi_percent:.2f}%",
    ]
    for idx, alloc in enumerate(opp.opportunity.allocations, start=1):
        decimal, american = format_odds(alloc.price)
        lines += [
            "",
            f"Bet {idx}: {alloc.outcome_name}",
            alloc.bookmaker,
            f"Stake: ${alloc.stake:.2f}",
            f"Odds: {decimal} ({american})",
        ]
    return "\n".join(lines)


def describe_no_arbitrage(result: NoArbitrage) -> str:
    if result.implied_margin is None:
        return f"No arbitrage: {result.reason}."
    return f"No arbitrage: implied margin {result.implied_margin * 100:.2f}% (must be under 100%)."
