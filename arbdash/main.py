from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from arbdash.config.settings import settings
from arbdash.connectors.base import OddsSource
from arbdash.connectors.demo import DemoSource
from arbdash.core.models import Game
from arbdash.core.normalize import dedupe_games
from arbdash.core.scanner import filter_min_return, format_opportunity_text, scan_games, sort_opportunities
from arbdash.utils.logging import get_logger
from arbdash.utils.notifications import Notifier


logger = get_logger("main")


@dataclass
class SourceStatus:
    name: str
    ok: bool
    count: int = 0
    error: Optional[str] = None
    fetched_at: Optional[datetime] = None


def build_sources(live: bool) -> List[OddsSource]:
    if not live:
        return [DemoSource()]
    # Lazy import so demo mode never builds HTTP clients
    from arbdash.connectors.rapidapi import RapidApiClient
    from arbdash.connectors.the_odds_api import TheOddsApiClient

    return [TheOddsApiClient(), RapidApiClient()]


async def _fetch(source: OddsSource) -> Tuple[List[Game], SourceStatus]:
    try:
        games = await source.fetch_games()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to fetch from %s: %s", source.name, exc)
        return [], SourceStatus(name=source.name, ok=False, error=str(exc) or type(exc).__name__)
    return games, SourceStatus(
        name=source.name, ok=True, count=len(games), fetched_at=datetime.now(timezone.utc)
    )


async def load_games(sources: Sequence[OddsSource]) -> Tuple[List[Game], List[SourceStatus]]:
    """Fetch every source concurrently; one failing source never hides the others."""
    results = await asyncio.gather(*(_fetch(s) for s in sources))
    games: List[Game] = []
    statuses: List[SourceStatus] = []
    for source_games, status in results:
        games.extend(source_games)
        statuses.append(status)
    return dedupe_games(games), statuses


async def run_once(
    sources: Optional[Sequence[OddsSource]] = None,
    total_stake: Optional[float] = None,
    notifier: Optional[Notifier] = None,
) -> int:
    owned = sources is None
    sources = build_sources(live=False) if owned else sources
    try:
        games, _ = await load_games(sources)
    finally:
        if owned:
            for s in sources:
                await s.close()

    stake = settings.staking.total_stake if total_stake is None else total_stake
    result = scan_games(games, stake)
    opps = sort_opportunities(filter_min_return(result.opportunities, settings.staking.min_roi_percent))
    if not opps:
        logger.info("No opportunities found.")
        return 0

    logger.info("Found %d opportunities", len(opps))
    for opp in opps:
        logger.info("%s\n%s", opp.confidence.upper(), format_opportunity_text(opp))
        if notifier is not None:
            notifier.notify_opportunity(opp)
    return len(opps)


async def run_live_once(notifier: Optional[Notifier] = None) -> int:
    sources = build_sources(live=True)
    try:
        return await run_once(sources=sources, notifier=notifier)
    finally:
        for s in sources:
            await s.close()


def cli():
    notifier = Notifier()
    try:
        if settings.live:
            asyncio.run(run_live_once(notifier))
        else:
            asyncio.run(run_once(notifier=notifier))
    finally:
        notifier.close()


if __name__ == "__main__":
    cli()
