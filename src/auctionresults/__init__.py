"""
Australian Auction Results Tracker

Scrapes weekly residential auction results from Domain.com.au and
realestate.com.au, stores them in SQLite, derives per-suburb clearance
statistics, and serves them through a JSON API.

Main components:
- scraper: Navigation, container location, field extraction and run orchestration
- core: Models, storage, statistics and dashboard queries
- api: Flask REST API (scrape trigger + listings)
- cli: Command-line interfaces

Usage:
    from auctionresults import get_config
    from auctionresults.scraper import ScraperService
"""

__version__ = "1.0.0"

from auctionresults.config import get_config
from auctionresults.logging_config import setup_logging

__all__ = [
    "__version__",
    "get_config",
    "setup_logging",
]
