from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from arbdash.config.constants import H2H_MARKET
from arbdash.connectors.base import OddsSource
from arbdash.core.models import BookmakerOdds, Game, Outcome


FIXTURES = [
    ("basketball_nba", "NBA", "Boston Celtics", "Miami Heat", False),
    ("basketball_nba", "NBA", "Denver Nuggets", "Phoenix Suns", False),
    ("americanfootball_nfl", "NFL", "Kansas City Chiefs", "Buffalo Bills", False),
    ("icehockey_nhl", "NHL", "Toronto Maple Leafs", "Boston Bruins", False),
    ("baseball_mlb", "MLB", "New York Yankees", "Houston Astros", False),
    ("soccer_epl", "EPL", "Arsenal", "Chelsea", True),
    ("soccer_epl", "EPL", "Liverpool", "Manchester City", True),
    ("soccer_spain_la_liga", "La Liga", "Real Madrid", "Barcelona", True),
]

BOOKMAKERS = ["DraftKings", "FanDuel", "BetMGM", "Caesars", "Bovada", "PointsBet"]


def _price(prob: float, overround: float) -> float:
    return max(1.01, round(1.0 / (prob * overround), 2))


class DemoSource(OddsSource):
    """Randomized games for running the dashboard without API keys.

    Roughly `arb_rate` of the games get one bookmaker quoting an outlier
    price on one outcome, which is usually enough to open an arbitrage.
    """

    name = "Demo"

    def __init__(self, seed: Optional[int] = None, arb_rate: float = 0.35):
        self._rng = random.Random(seed)
        self.arb_rate = arb_rate

    def _probabilities(self, three_way: bool) -> Sequence[float]:
        rng = self._rng
        if three_way:
            draw = rng.uniform(0.22, 0.30)
            home = rng.uniform(0.25, 0.75 - draw)
            return (home, draw, 1.0 - home - draw)
        home = rng.uniform(0.3, 0.7)
        return (home, 1.0 - home)

    def generate(self) -> List[Game]:
        rng = self._rng
        now = datetime.now(timezone.utc).replace(second=0, microsecond=0)
        games: List[Game] = []
        for idx, (sport_key, sport_title, home, away, three_way) in enumerate(FIXTURES):
            names = (home, "Draw", away) if three_way else (home, away)
            probs = self._probabilities(three_way)
            books = rng.sample(BOOKMAKERS, k=rng.randint(3, len(BOOKMAKERS)))
            boosted = rng.randrange(len(names)) if rng.random() < self.arb_rate else None
            lines: List[BookmakerOdds] = []
            for b_idx, book in enumerate(books):
                overround = rng.uniform(1.02, 1.07)
                outcomes = []
                for o_idx, (name, p) in enumerate(zip(names, probs)):
                    price = _price(p, overround)
                    if boosted == o_idx and b_idx == 0:
                        price = round(price * rng.uniform(1.12, 1.25), 2)
                    outcomes.append(Outcome(name=name, price=price, bookmaker=book))
                lines.append(
                    BookmakerOdds(key=book.lower(), title=book, market_key=H2H_MARKET, outcomes=tuple(outcomes), last_update=now)
                )
            games.append(
                Game(
                    id=f"demo_{idx}",
                    source=self.name,
                    sport_key=sport_key,
                    sport_title=sport_title,
                    home_team=home,
                    away_team=away,
                    commence_time=now + timedelta(hours=rng.randint(2, 96)),
                    bookmakers=tuple(lines),
                )
            )
        return games

    async def fetch_games(self) -> List[Game]:
        return self.generate()
