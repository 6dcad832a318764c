"""Core data models for odds, markets and arbitrage opportunities.

This module defines the immutable values passed between the odds connectors,
the arbitrage engine and the dashboard. The engine itself only needs
`Outcome` and `Market`; the remaining types describe what the connectors
fetch and what the scanner hands to the UI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Tuple

Confidence = Literal["high", "medium", "low"]

NO_EDGE = "no edge"
INSUFFICIENT_OUTCOMES = "insufficient outcomes"


@dataclass(frozen=True)
class Outcome:
    """One result of an event as priced by one bookmaker."""
    name: str
    price: float  # decimal odds, valid only when > 1.0
    bookmaker: str


@dataclass(frozen=True)
class Market:
    """Every quote for one event, across one or more bookmakers.

    Several outcomes may share a `name` (competing quotes). Order matters:
    it decides tie-breaks between equal prices.
    """

    outcomes: Tuple[Outcome, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "outcomes", tuple(self.outcomes))

    def names(self) -> Tuple[str, ...]:
        seen: dict[str, None] = {}
        for o in self.outcomes:
            seen.setdefault(o.name, None)
        return tuple(seen)


@dataclass(frozen=True)
class BestQuote:
    outcome_name: str
    price: float
    bookmaker: str


@dataclass(frozen=True)
class Allocation:
    outcome_name: str
    bookmaker: str
    price: float
    stake: float

    @property
    def payout(self) -> float:
        return self.stake * self.price


@dataclass(frozen=True)
class Opportunity:
    """A priced arbitrage: stakes per outcome that pay the same whichever wins."""

    total_stake: float
    implied_margin: float
    allocations: Tuple[Allocation, ...]
    guaranteed_return: float
    profit: float
    roi_percent: float

    @property
    def bookmakers(self) -> Tuple[str, ...]:
        seen: dict[str, None] = {}
        for a in self.allocations:
            seen.setdefault(a.bookmaker, None)
        return tuple(seen)


@dataclass(frozen=True)
class NoArbitrage:
    """Returned when a market has no edge. Not an error."""

    reason: str
    implied_margin: Optional[float] = None


@dataclass(frozen=True)
class BookmakerOdds:
    """One bookmaker's quotes for one market type (e.g. h2h) of a game."""
    key: str
    title: str
    market_key: str
    outcomes: Tuple[Outcome, ...] = ()
    last_update: Optional[datetime] = None


@dataclass(frozen=True)
class Game:
    """A sporting event normalized from either odds provider."""
    id: str
    source: str
    sport_key: str
    sport_title: str
    home_team: str
    away_team: str
    commence_time: Optional[datetime] = None
    bookmakers: Tuple[BookmakerOdds, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EventOpportunity:
    game: Game
    opportunity: Opportunity
    confidence: Confidence
