from __future__ import annotations

from typing import Iterable, List, Optional

import httpx

from arbdash.config.constants import H2H_MARKET, ODDS_API_ID_PREFIX, ODDS_FORMAT
from arbdash.config.settings import settings
from arbdash.connectors.base import HttpOddsSource, parse_price, parse_timestamp
from arbdash.core.models import BookmakerOdds, Game, Outcome
from arbdash.utils.logging import get_logger


logger = get_logger("the_odds_api")


class TheOddsApiClient(HttpOddsSource):
    name = "Odds API"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        sports: Iterable[str] | None = None,
        regions: str | None = None,
        market: str = H2H_MARKET,
        client: Optional[httpx.AsyncClient] = None,
        **http_options,
    ):
        super().__init__(client=client, **http_options)
        self.api_key = api_key or settings.odds_api.api_key or ""
        self.base_url = (base_url or settings.odds_api.base_url or "").rstrip("/")
        self.sports = list(sports) if sports is not None else list(settings.sports)
        self.regions = regions or settings.regions
        self.market = market
        if not self.api_key:
            logger.warning("Odds API key is not set; set THE_ODDS_API_KEY to fetch live odds.")

    async def get_sports(self) -> List[dict]:
        data = await self._get_json(f"{self.base_url}/sports", params={"apiKey": self.api_key})
        return data if isinstance(data, list) else []

    async def get_odds(self, sport_key: str) -> List[dict]:
        params = {
            "apiKey": self.api_key,
            "regions": self.regions,
            "markets": self.market,
            "oddsFormat": ODDS_FORMAT,
        }
        data = await self._get_json(f"{self.base_url}/sports/{sport_key}/odds", params=params)
        return data if isinstance(data, list) else []

    async def fetch_games(self) -> List[Game]:
        """Fetch odds for every configured sport.

        A sport that fails is logged and skipped. If every sport fails, the
        last error is raised so the caller can report the source as down.
        """
        games: List[Game] = []
        last_error: Exception | None = None
        failures = 0
        for sport in self.sports:
            try:
                items = await self.get_odds(sport)
            except httpx.HTTPError as exc:
                logger.warning("Failed to fetch odds for %s: %s", sport, exc)
                last_error = exc
                failures += 1
                continue
            games.extend(self.parse_game(item) for item in items)
        if self.sports and failures == len(self.sports) and last_error is not None:
            raise last_error
        return games

    @staticmethod
    def parse_game(item: dict) -> Game:
        books: List[BookmakerOdds] = []
        for bm in item.get("bookmakers") or []:
            title = bm.get("title") or bm.get("key") or ""
            for market in bm.get("markets") or []:
                outcomes = []
                for o in market.get("outcomes") or []:
                    price = parse_price(o.get("price"))
                    if price is None:
                        continue
                    outcomes.append(Outcome(name=str(o.get("name", "")), price=price, bookmaker=title))
                books.append(
                    BookmakerOdds(
                        key=bm.get("key") or title,
                        title=title,
                        market_key=market.get("key") or "",
                        outcomes=tuple(outcomes),
                        last_update=parse_timestamp(market.get("last_update") or bm.get("last_update")),
                    )
                )
        return Game(
            id=f"{ODDS_API_ID_PREFIX}{item.get('id', '')}",
            source=TheOddsApiClient.name,
            sport_key=item.get("sport_key") or "",
            sport_title=item.get("sport_title") or item.get("sport_key") or "",
            home_team=item.get("home_team") or "",
            away_team=item.get("away_team") or "",
            commence_time=parse_timestamp(item.get("commence_time")),
            bookmakers=tuple(books),
        )
