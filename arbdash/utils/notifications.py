"""Opportunity alerts.

`Notifier` is created by whoever owns the session (the dashboard keeps one
per Streamlit session, the CLI one per run) and handed to the code that
needs it. Delivery goes through a `sink` callable, so the same service can
log, pop a browser toast or be captured in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Set

from arbdash.core.models import EventOpportunity
from arbdash.utils.logging import get_logger


logger = get_logger("notifications")

OPPORTUNITY_TITLE = "New Arbitrage Opportunity!"


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    tag: str


def _log_sink(note: Notification) -> None:
    logger.info("%s | %s", note.title, note.body.replace("\n", " | "))


class Notifier:
    def __init__(self, sink: Optional[Callable[[Notification], None]] = None, enabled: bool = True):
        self.sink = sink or _log_sink
        self.enabled = enabled
        self._sent_tags: Set[str] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self, title: str, body: str, tag: str) -> bool:
        if self._closed:
            logger.debug("Notifier closed; dropping %r", tag)
            return False
        if not self.enabled:
            logger.warning("Notifications are disabled; not sending %r", tag)
            return False
        self.sink(Notification(title=title, body=body, tag=tag))
        self._sent_tags.add(tag)
        return True

    def notify_opportunity(self, opp: EventOpportunity) -> bool:
        """Alert on an opportunity unless one for the same game was already sent."""
        game = opp.game
        tag = f"{game.home_team}-{game.away_team}"
        if tag in self._sent_tags:
            return False
        body = (
            f"{game.home_team} vs {game.away_team}\n"
            f"Expected Return: {opp.opportunity.roi_percent:.2f}%\n"
            f"Bookmakers: {', '.join(opp.opportunity.bookmakers)}"
        )
        return self.notify(OPPORTUNITY_TITLE, body, tag)

    def reset(self) -> None:
        self._sent_tags.clear()

    def close(self) -> None:
        self._closed = True
        self._sent_tags.clear()
