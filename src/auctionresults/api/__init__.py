"""
Flask REST API for the auction results tracker.

Provides endpoints for:
- Triggering scrapes and reading scrape run history
- Auction result and suburb statistic queries
- Weekly clearance and price trends
"""

from auctionresults.api.server import create_app
from auctionresults.api.routes import register_routes

__all__ = [
    "create_app",
    "register_routes",
]
