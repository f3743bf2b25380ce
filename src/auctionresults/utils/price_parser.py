"""
Price Parsing Utilities

Turns the price text found in auction result cards into whole-dollar
integers.
"""

import re
from typing import Optional, Union

from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

# First dollar amount in a block of text, with optional cents
PRICE_PATTERN = re.compile(r"\$[\d,]+(?:\.\d{2})?")

# Markers that a sale price was deliberately not published
UNDISCLOSED_MARKERS = ("undisclosed", "withheld", "not disclosed")


def is_undisclosed(text: Union[str, None]) -> bool:
    """Check whether text says the price was kept private."""
    if not text:
        return False
    lower = text.lower()
    return any(marker in lower for marker in UNDISCLOSED_MARKERS)


def find_price_text(text: Union[str, None]) -> Optional[str]:
    """Return the first ``$`` amount in text, e.g. ``"$1,250,000"``.

    Example:
        >>> find_price_text("Sold $1,250,000 by Ray White")
        "$1,250,000"
    """
    if not text:
        return None
    match = PRICE_PATTERN.search(text)
    return match.group(0) if match else None


def parse_price_text(price_str: Union[str, None]) -> Optional[int]:
    """Extract a whole-dollar price from price text.

    Handles:
    - "$1,250,000"       -> 1250000
    - "$850,000.50"      -> 850000 (cents dropped)
    - "Sold $1,250,000"  -> 1250000
    - "Undisclosed"      -> None
    - "$0"               -> None

    Args:
        price_str: Price text to parse.

    Returns:
        Positive integer price or None.
    """
    if not price_str:
        return None

    price_str = str(price_str).strip()
    if not price_str or is_undisclosed(price_str):
        return None

    amount = find_price_text(price_str)
    if amount is None:
        # Bare numbers such as "1250000" from embedded JSON
        bare = re.fullmatch(r"[\d,]+(?:\.\d+)?", price_str)
        if not bare:
            logger.debug("Could not extract price from: %s", price_str)
            return None
        amount = bare.group(0)

    dollars = amount.lstrip("$").split(".")[0].replace(",", "")
    if not dollars:
        return None

    value = int(dollars)
    return value if value > 0 else None
