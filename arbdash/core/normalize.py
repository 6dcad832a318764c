"""Turn provider-shaped games into engine markets."""

from __future__ import annotations

from typing import Iterable, List

from arbdash.config.constants import H2H_MARKET
from arbdash.core.models import Game, Market


def market_from_game(game: Game, market_key: str = H2H_MARKET) -> Market:
    """Flatten every bookmaker's quotes for `market_key` into one Market.

    Bookmakers keep the order the provider returned them in, which is what
    the engine uses to break ties between equal prices.
    """
    outcomes = []
    for book in game.bookmakers:
        if book.market_key != market_key:
            continue
        outcomes.extend(book.outcomes)
    return Market(outcomes=tuple(outcomes))


def dedupe_games(games: Iterable[Game]) -> List[Game]:
    """Drop repeated game ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique: List[Game] = []
    for g in games:
        if g.id in seen:
            continue
        seen.add(g.id)
        unique.append(g)
    return unique
