"""
Auction results scrapers for Domain and realestate.com.au.

Handles navigating the results pages, locating and extracting auction
results, normalizing them and persisting them with suburb statistics.

The browser and HTTP navigators live in ``auctionresults.scraper.navigator``
and are imported on demand.
"""

from auctionresults.scraper.persistence import PersistSummary, persist_records
from auctionresults.scraper.pipeline import AuctionScraper, RunState
from auctionresults.scraper.retry import is_recoverable_error, safe_operation
from auctionresults.scraper.service import ScraperService
from auctionresults.scraper.sites import DOMAIN_SITE, REA_SITE, SiteConfig, get_site

__all__ = [
    "AuctionScraper",
    "RunState",
    "ScraperService",
    "PersistSummary",
    "persist_records",
    "is_recoverable_error",
    "safe_operation",
    "SiteConfig",
    "DOMAIN_SITE",
    "REA_SITE",
    "get_site",
]
