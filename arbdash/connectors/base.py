from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Tuple, Union

import httpx

from arbdash.config.constants import API_TIMEOUT_SECONDS
from arbdash.config.settings import settings
from arbdash.core.models import Game
from arbdash.utils.logging import get_logger
from arbdash.utils.retry import retry_with_backoff


logger = get_logger("connectors")

Params = Union[Mapping[str, Any], Sequence[Tuple[str, Any]], None]


class OddsSource(ABC):
    name: str

    @abstractmethod
    async def fetch_games(self) -> List[Game]:
        raise NotImplementedError

    async def close(self) -> None:
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""
    if not value or not isinstance(value, str):
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_price(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class HttpOddsSource(OddsSource):
    """Shared plumbing for the HTTP odds providers.

    Requests are spaced at least `rate_limit_delay` seconds apart per client
    and transport errors are retried with backoff. HTTP error statuses are
    raised to the caller as `httpx.HTTPStatusError`.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        rate_limit_delay: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client or httpx.AsyncClient(timeout=API_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self.rate_limit_delay = settings.polling.rate_limit_delay if rate_limit_delay is None else rate_limit_delay
        self.max_retries = settings.polling.max_retries if max_retries is None else max_retries
        self.retry_delay = settings.polling.retry_delay if retry_delay is None else retry_delay
        self._clock = clock
        self._sleep = sleep
        self._last_request: Optional[float] = None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _wait_for_slot(self) -> None:
        if self._last_request is not None:
            wait = self.rate_limit_delay - (self._clock() - self._last_request)
            if wait > 0:
                await self._sleep(wait)
        self._last_request = self._clock()

    async def _request(self, url: str, params: Params, headers: Optional[Mapping[str, str]]) -> Any:
        await self._wait_for_slot()
        resp = await self._client.get(url, params=params, headers=headers)
        if resp.is_error:
            logger.warning("%s answered %d for %s: %s", self.name, resp.status_code, url, resp.text[:200])
        resp.raise_for_status()
        return resp.json()

    async def _get_json(
        self, url: str, params: Params = None, headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        return await retry_with_backoff(
            self._request,
            url,
            params,
            headers,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            exceptions=(httpx.TransportError,),
        )
