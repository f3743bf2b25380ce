"""
Core modules for the Auction Results Tracker.

Contains database helpers, data models, storage, statistics and shared constants.
"""

from auctionresults.core.constants import (
    STATES,
    SOURCES,
    RESULTS,
)
from auctionresults.core.database import (
    get_connection,
    init_schema,
    fetch_all,
    fetch_one,
    execute,
)
from auctionresults.core.models import (
    AuctionRecord,
    SuburbStatistic,
    RunLog,
    ScrapeResult,
    ScrapeContext,
)

__all__ = [
    "STATES",
    "SOURCES",
    "RESULTS",
    "get_connection",
    "init_schema",
    "fetch_all",
    "fetch_one",
    "execute",
    "AuctionRecord",
    "SuburbStatistic",
    "RunLog",
    "ScrapeResult",
    "ScrapeContext",
]
