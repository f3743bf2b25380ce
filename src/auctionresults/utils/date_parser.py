"""
Date Parsing Utilities

Parses the date formats that show up in auction pages, API query strings
and the database.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from auctionresults.exceptions import ValidationError
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

# Common date format patterns
DATE_PATTERNS = [
    # ISO format: 2024-01-15
    (r"^\d{4}-\d{2}-\d{2}$", "%Y-%m-%d"),
    # Australian format: 15/01/2024
    (r"^\d{2}/\d{2}/\d{4}$", "%d/%m/%Y"),
    # Results page format: 15 Jan 2024
    (r"^\d{1,2}\s+[A-Za-z]{3}\s+\d{4}$", "%d %b %Y"),
    # Full month: 15 January 2024
    (r"^\d{1,2}\s+[A-Za-z]+\s+\d{4}$", "%d %B %Y"),
    # Weekday prefix: Saturday 15 June 2024
    (r"^[A-Za-z]+\s+\d{1,2}\s+[A-Za-z]+\s+\d{4}$", "%A %d %B %Y"),
]


def parse_date(date_str: Union[str, None]) -> Optional[datetime]:
    """Parse a date string into a datetime object.

    Handles:
    - ISO format: 2024-01-15, 2024-01-15T10:30:00
    - Australian format: 15/01/2024
    - Results page format: 15 Jan 2024, 15 January 2024
    - Weekday prefix: Saturday 15 June 2024

    Args:
        date_str: Date string to parse.

    Returns:
        datetime object or None if parsing fails.
    """
    if not date_str:
        return None

    date_str = str(date_str).strip()
    if not date_str:
        return None

    # Handle ISO format with time component
    if "T" in date_str:
        date_str = date_str.split("T")[0]

    for pattern, fmt in DATE_PATTERNS:
        if re.match(pattern, date_str, re.IGNORECASE):
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue

    logger.debug("Could not parse date: %s", date_str)
    return None


def parse_iso_date(value: Union[str, date, None], field: str = "date") -> Optional[date]:
    """Strictly parse an ISO date supplied by a caller (API body, CLI flag).

    Args:
        value: ISO date string (a trailing time part is ignored), a date, or None.
        field: Field name reported in the validation error.

    Returns:
        date, or None when no value was supplied.

    Raises:
        ValidationError: If the value is not an ISO date.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip().split("T")[0]
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(f"Invalid ISO date: {value}", field, value) from e
