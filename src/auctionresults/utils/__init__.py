"""
Utility modules for the Auction Results Tracker.

Provides unified implementations for common parsing operations.
"""

from auctionresults.utils.date_parser import (
    parse_date,
    parse_iso_date,
)
from auctionresults.utils.price_parser import (
    parse_price_text,
    find_price_text,
)
from auctionresults.utils.property_types import (
    normalize_property_type,
    find_property_type,
    PROPERTY_TYPE_MAP,
)

__all__ = [
    "parse_date",
    "parse_iso_date",
    "parse_price_text",
    "find_price_text",
    "normalize_property_type",
    "find_property_type",
    "PROPERTY_TYPE_MAP",
]
