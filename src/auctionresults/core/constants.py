"""
Shared Constants for the Auction Results Tracker

Contains all constant values used across the application.
"""

from typing import Dict, Tuple

# Australian states and territories (the closed set of state codes)
STATES: Tuple[str, ...] = ("NSW", "VIC", "QLD", "WA", "SA", "TAS", "ACT", "NT")

STATE_NAMES: Dict[str, str] = {
    "NEW SOUTH WALES": "NSW",
    "VICTORIA": "VIC",
    "QUEENSLAND": "QLD",
    "WESTERN AUSTRALIA": "WA",
    "SOUTH AUSTRALIA": "SA",
    "TASMANIA": "TAS",
    "AUSTRALIAN CAPITAL TERRITORY": "ACT",
    "NORTHERN TERRITORY": "NT",
}

# Capital city results pages map onto their state
CITY_STATES: Dict[str, str] = {
    "sydney": "NSW",
    "melbourne": "VIC",
    "brisbane": "QLD",
    "perth": "WA",
    "adelaide": "SA",
    "canberra": "ACT",
    "hobart": "TAS",
    "darwin": "NT",
}

# Sources
SOURCE_DOMAIN: str = "domain"
SOURCE_REA: str = "rea"
SOURCES: Tuple[str, ...] = (SOURCE_DOMAIN, SOURCE_REA)

DOMAIN_BASE_URL: str = "https://www.domain.com.au"
DOMAIN_AUCTION_RESULTS_URL: str = f"{DOMAIN_BASE_URL}/auction-results/"
REA_BASE_URL: str = "https://www.realestate.com.au"
REA_AUCTION_RESULTS_URL: str = f"{REA_BASE_URL}/auction-results/"

# Auction result values
RESULT_SOLD: str = "sold"
RESULT_PASSED_IN: str = "passed_in"
RESULT_WITHDRAWN: str = "withdrawn"
RESULTS: Tuple[str, ...] = (RESULT_SOLD, RESULT_PASSED_IN, RESULT_WITHDRAWN)

# Scrape run status values
RUN_SUCCESS: str = "success"
RUN_FAILED: str = "failed"

# Database table names
TABLE_AUCTIONS: str = "auctions"
TABLE_SUBURB_STATS: str = "suburb_stats"
TABLE_SCRAPE_LOGS: str = "scrape_logs"

# Default values
DEFAULT_PROPERTY_TYPE: str = "House"
DEFAULT_BATCH_SIZE: int = 100

# Plausible text length of a single result container
MIN_CONTAINER_TEXT: int = 20
MAX_CONTAINER_TEXT: int = 2000

# Feature counts above this are parse noise (street numbers, prices)
MAX_FEATURE_COUNT: int = 20

# Transient error substrings that are worth retrying
RECOVERABLE_ERROR_PATTERNS: Tuple[str, ...] = (
    "timeout",
    "network",
    "navigation",
    "element not found",
)

# Phrases served by anti-bot interstitials instead of real content
CHALLENGE_PHRASES: Tuple[str, ...] = (
    "verify you are human",
    "are you a robot",
    "captcha",
    "access denied",
    "attention required",
    "pardon our interruption",
    "request unsuccessful",
    "temporarily blocked",
    "checking your browser",
)
