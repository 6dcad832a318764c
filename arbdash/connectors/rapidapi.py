from __future__ import annotations

from typing import Dict, List, Optional

import httpx

from arbdash.config.constants import (
    H2H_MARKET,
    RAPID_API_ID_PREFIX,
    RAPID_EVENT_BATCH_SIZE,
    RAPID_FULL_MATCH_SEGMENT,
    RAPID_MONEYLINE_TYPE,
)
from arbdash.config.settings import settings
from arbdash.connectors.base import HttpOddsSource, parse_price, parse_timestamp
from arbdash.core.models import BookmakerOdds, Game, Outcome
from arbdash.utils.logging import get_logger


logger = get_logger("rapidapi")


class RapidApiClient(HttpOddsSource):
    """Client for the RapidAPI sportsbook-api2 service.

    Odds are reached in three hops: competitions, then the events of each
    competition, then the events' markets in batches. Each bookmaker appears
    as a "source" key inside a market's outcomes.
    """

    name = "RapidAPI"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        host: str | None = None,
        client: Optional[httpx.AsyncClient] = None,
        **http_options,
    ):
        super().__init__(client=client, **http_options)
        self.api_key = api_key or settings.rapid_api.api_key or ""
        self.base_url = (base_url or settings.rapid_api.base_url or "").rstrip("/")
        self.host = host or settings.rapid_api.host or ""
        if not self.api_key:
            logger.warning("RapidAPI key is not set; set RAPID_API_KEY to fetch live odds.")

    @property
    def headers(self) -> Dict[str, str]:
        return {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": self.host}

    async def get_competitions(self) -> List[dict]:
        data = await self._get_json(f"{self.base_url}/v0/competitions", headers=self.headers)
        return (data or {}).get("competitions") or []

    async def get_events(self, competition_key: str) -> List[dict]:
        data = await self._get_json(f"{self.base_url}/v0/competitions/{competition_key}/events", headers=self.headers)
        return (data or {}).get("events") or []

    async def get_events_with_odds(self, event_keys: List[str]) -> List[dict]:
        events: List[dict] = []
        for i in range(0, len(event_keys), RAPID_EVENT_BATCH_SIZE):
            batch = event_keys[i : i + RAPID_EVENT_BATCH_SIZE]
            params = [("eventKeys", k) for k in batch]
            data = await self._get_json(f"{self.base_url}/v0/events", params=params, headers=self.headers)
            events.extend((data or {}).get("events") or [])
        return events

    async def fetch_games(self) -> List[Game]:
        competitions = await self.get_competitions()
        event_keys: List[str] = []
        for comp in competitions:
            key = comp.get("key")
            if not key:
                continue
            try:
                events = await self.get_events(key)
            except httpx.HTTPError as exc:
                logger.warning("Failed to fetch events for competition %s: %s", key, exc)
                continue
            event_keys.extend(e["key"] for e in events if e.get("key"))
        logger.debug("RapidAPI: %d competitions, %d events", len(competitions), len(event_keys))

        games: List[Game] = []
        for event in await self.get_events_with_odds(event_keys):
            game = self.transform_event(event)
            if game is not None:
                games.append(game)
        return games

    @staticmethod
    def transform_event(event: dict) -> Game | None:
        """Build a Game from the event's full-match moneyline, if it has one."""
        moneyline = next(
            (
                m
                for m in event.get("markets") or []
                if m.get("type") == RAPID_MONEYLINE_TYPE and m.get("segment") == RAPID_FULL_MATCH_SEGMENT
            ),
            None,
        )
        if moneyline is None:
            return None

        books: List[BookmakerOdds] = []
        for source, quotes in (moneyline.get("outcomes") or {}).items():
            outcomes = []
            seen_at = []
            for q in quotes or []:
                price = parse_price(q.get("payout"))
                name = (q.get("participant") or {}).get("name")
                if price is None or not name:
                    continue
                outcomes.append(Outcome(name=name, price=price, bookmaker=source))
                ts = parse_timestamp(q.get("lastFoundAt"))
                if ts is not None:
                    seen_at.append(ts)
            books.append(
                BookmakerOdds(
                    key=source,
                    title=source,
                    market_key=H2H_MARKET,
                    outcomes=tuple(outcomes),
                    last_update=max(seen_at) if seen_at else None,
                )
            )

        participants = event.get("participants") or []
        home_key = event.get("homeParticipantKey")
        home = next((p for p in participants if p.get("key") == home_key), None)
        away = next((p for p in participants if p.get("key") != home_key), None)
        sport = participants[0].get("sport", "") if participants else ""
        return Game(
            id=f"{RAPID_API_ID_PREFIX}{event.get('key', '')}",
            source=RapidApiClient.name,
            sport_key=sport,
            sport_title=sport,
            home_team=(home or {}).get("name", ""),
            away_team=(away or {}).get("name", ""),
            commence_time=parse_timestamp(event.get("startTime")),
            bookmakers=tuple(books),
        )
