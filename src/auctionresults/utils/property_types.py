"""
Property Type Utilities

Maps the property type words found on result cards (and the slugs used in
embedded listing data) onto the labels stored with each auction record.
"""

import re
from typing import Optional

from auctionresults.core.constants import DEFAULT_PROPERTY_TYPE
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

# Words recognised in free text, in the order they are searched for
PROPERTY_TYPE_PATTERN = re.compile(
    r"\b(house|apartment|unit|townhouse|villa|duplex)\b", re.IGNORECASE
)

PROPERTY_TYPE_MAP = {
    "house": "House",
    "free-standing": "House",
    "semi-detached": "House",
    "terrace": "House",
    "apartment": "Apartment",
    "apartment-unit-flat": "Apartment",
    "flat": "Apartment",
    "studio": "Apartment",
    "pent-house": "Apartment",
    "penthouse": "Apartment",
    "unit": "Unit",
    "townhouse": "Townhouse",
    "town-house": "Townhouse",
    "villa": "Villa",
    "duplex": "Duplex",
}


def normalize_property_type(prop_type: Optional[str]) -> str:
    """Map a raw property type to its stored label.

    Example:
        >>> normalize_property_type("apartment-unit-flat")
        "Apartment"
        >>> normalize_property_type("TOWNHOUSE")
        "Townhouse"
        >>> normalize_property_type(None)
        "House"
    """
    if not prop_type:
        return DEFAULT_PROPERTY_TYPE

    key = str(prop_type).lower().strip()
    label = PROPERTY_TYPE_MAP.get(key)
    if label is None:
        logger.debug("Unknown property type %r, defaulting to %s", prop_type, DEFAULT_PROPERTY_TYPE)
        return DEFAULT_PROPERTY_TYPE
    return label


def find_property_type(text: Optional[str]) -> str:
    """First property type word in free text, else the default label.

    Example:
        >>> find_property_type("3 bed townhouse, sold under the hammer")
        "Townhouse"
    """
    if not text:
        return DEFAULT_PROPERTY_TYPE
    match = PROPERTY_TYPE_PATTERN.search(text)
    return normalize_property_type(match.group(1)) if match else DEFAULT_PROPERTY_TYPE
