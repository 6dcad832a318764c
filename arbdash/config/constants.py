"""Constants used throughout the application.

This module centralizes upstream endpoints, sport keys and tuning values
shared by the connectors, the scanner and the dashboard.
"""

# The Odds API
THE_ODDS_API_URL = "https://api.the-odds-api.com/v4"
DEFAULT_REGIONS = "us"
H2H_MARKET = "h2h"
ODDS_FORMAT = "decimal"

# RapidAPI sportsbook-api2
RAPID_API_URL = "https://sportsbook-api2.p.rapidapi.com"
RAPID_API_HOST = "sportsbook-api2.p.rapidapi.com"
RAPID_EVENT_BATCH_SIZE = 50
RAPID_MONEYLINE_TYPE = "MONEYLINE"
RAPID_FULL_MATCH_SEGMENT = "FULL_MATCH"

# Id prefixes keep the two sources apart when deduplicating
ODDS_API_ID_PREFIX = "odds_"
RAPID_API_ID_PREFIX = "rapid_"

# HTTP
API_TIMEOUT_SECONDS = 15
RATE_LIMIT_DELAY_SECONDS = 1.0
MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 5.0

# Confidence tiers by ROI percent
HIGH_CONFIDENCE_ROI = 5.0
MEDIUM_CONFIDENCE_ROI = 2.0

DEFAULT_TOTAL_STAKE = 1000.0
STAKE_TOLERANCE = 1e-6

DEFAULT_SPORTS = (
    "americanfootball_nfl",
    "basketball_nba",
    "baseball_mlb",
    "icehockey_nhl",
    "soccer_epl",
    "soccer_uefa_champs_league",
)

SORT_OPTIONS = ("confidence", "return", "profit", "stake", "date")
