from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from arbdash.config import constants


@dataclass
class ApiAuth:
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    host: Optional[str] = None


@dataclass
class Staking:
    total_stake: float = constants.DEFAULT_TOTAL_STAKE
    min_roi_percent: float = 0.0


@dataclass
class Polling:
    rate_limit_delay: float = constants.RATE_LIMIT_DELAY_SECONDS
    max_retries: int = constants.MAX_RETRIES
    retry_delay: float = constants.RETRY_DELAY_SECONDS
    refresh_seconds: int = 60


@dataclass
class Settings:
    odds_api: ApiAuth = field(default_factory=lambda: ApiAuth(base_url=constants.THE_ODDS_API_URL))
    rapid_api: ApiAuth = field(
        default_factory=lambda: ApiAuth(base_url=constants.RAPID_API_URL, host=constants.RAPID_API_HOST)
    )
    staking: Staking = field(default_factory=Staking)
    polling: Polling = field(default_factory=Polling)
    sports: List[str] = field(default_factory=lambda: list(constants.DEFAULT_SPORTS))
    regions: str = constants.DEFAULT_REGIONS
    env: str = "dev"
    live: bool = False


def _float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    s = Settings()
    s.odds_api.api_key = env.get("THE_ODDS_API_KEY") or env.get("ODDS_API_KEY") or None
    s.odds_api.base_url = env.get("ODDS_API_BASE_URL") or s.odds_api.base_url
    s.rapid_api.api_key = env.get("RAPID_API_KEY") or None
    s.rapid_api.base_url = env.get("RAPID_API_BASE_URL") or s.rapid_api.base_url
    s.staking.total_stake = _float(env, "ARBDASH_TOTAL_STAKE", s.staking.total_stake)
    s.staking.min_roi_percent = _float(env, "ARBDASH_MIN_ROI", s.staking.min_roi_percent)
    sports = env.get("ARBDASH_SPORTS")
    if sports:
        s.sports = [k.strip() for k in sports.split(",") if k.strip()]
    s.regions = env.get("ARBDASH_REGIONS") or s.regions
    s.env = env.get("ARBDASH_ENV") or s.env
    s.live = env.get("LIVE", "0").strip().lower() in {"1", "true", "yes"}
    return s


settings = load_settings()
