"""
Normalizer

Maps the loosely-typed values pulled out of result containers onto the
canonical AuctionRecord fields: result enum, whole-dollar price, state code,
title-cased suburb and property type label.
"""

import re
from typing import Any, Dict, Optional

from auctionresults.core.constants import (
    RESULT_PASSED_IN,
    RESULT_SOLD,
    RESULT_WITHDRAWN,
    STATE_NAMES,
    STATES,
)
from auctionresults.core.models import AuctionRecord, ScrapeContext
from auctionresults.exceptions import ValidationError
from auctionresults.utils.price_parser import parse_price_text
from auctionresults.utils.property_types import normalize_property_type


def normalize_result(keyword: Optional[str], price: Optional[int] = None) -> str:
    """Map a result keyword onto sold / passed_in / withdrawn.

    An explicit keyword always wins. Without one, a positive price is read
    as an implicit sale because results pages only print a price next to
    sold properties. That inference is a heuristic carried over from the
    existing scrapers, not a documented site rule.

    Example:
        >>> normalize_result("Sold prior")
        "sold"
        >>> normalize_result("", 1250000)
        "sold"
        >>> normalize_result("cancelled")
        "withdrawn"
    """
    lower = (keyword or "").lower()
    if "sold" in lower:
        return RESULT_SOLD
    if "withdrawn" in lower or "cancelled" in lower:
        return RESULT_WITHDRAWN
    if "pass" in lower:
        return RESULT_PASSED_IN
    if price is not None and price > 0:
        return RESULT_SOLD
    return RESULT_PASSED_IN


def normalize_state(text: Optional[str]) -> Optional[str]:
    """State code from a code or a full state name; None if unrecognised.

    Example:
        >>> normalize_state("Victoria")
        "VIC"
        >>> normalize_state("nsw")
        "NSW"
    """
    if not text:
        return None
    key = " ".join(str(text).split()).upper()
    if key in STATES:
        return key
    return STATE_NAMES.get(key)


def title_case_suburb(name: Optional[str]) -> str:
    """Title-case a suburb name, normalising slug separators and spacing.

    Example:
        >>> title_case_suburb("CASTLE HILL")
        "Castle Hill"
        >>> title_case_suburb("st-kilda-east")
        "St Kilda East"
    """
    if not name:
        return ""
    words = re.split(r"[\s\-_]+", str(name).strip())
    return " ".join(word.capitalize() for word in words if word)


def clean_text(value: Any) -> Optional[str]:
    """Collapse whitespace; empty strings become None."""
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def _to_count(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    return count if count >= 0 else None


def build_record(raw: Dict[str, Any], context: ScrapeContext) -> AuctionRecord:
    """Turn extracted raw fields plus page context into an AuctionRecord.

    Context location (from the suburb link) takes precedence over location
    found in container text.

    Args:
        raw: Output of the field extractor. Keys: address, price_text or
             price, result_text, property_type, bedrooms, bathrooms,
             car_spaces, agent_name, agency_name, listing_url, suburb,
             state, postcode.
        context: Page context.

    Raises:
        ValidationError: If the raw data cannot form a valid record.
    """
    address = clean_text(raw.get("address"))
    if not address:
        raise ValidationError("Container has no address", "address", None)

    price = raw.get("price")
    if price is None:
        price = parse_price_text(raw.get("price_text"))
    elif not isinstance(price, int):
        price = parse_price_text(str(price))

    result = normalize_result(raw.get("result_text"), price)

    state = normalize_state(context.state) or normalize_state(raw.get("state"))
    if state is None:
        raise ValidationError(f"No state for {address}", "state", raw.get("state"))

    suburb = title_case_suburb(context.suburb or raw.get("suburb"))
    if not suburb:
        raise ValidationError(f"No suburb for {address}", "suburb", None)

    return AuctionRecord(
        address=address,
        suburb=suburb,
        state=state,
        postcode=context.postcode or raw.get("postcode") or "",
        price=price if result == RESULT_SOLD else None,
        result=result,
        auction_date=context.auction_date,
        source=context.source,
        property_type=normalize_property_type(raw.get("property_type")),
        bedrooms=_to_count(raw.get("bedrooms")),
        bathrooms=_to_count(raw.get("bathrooms")),
        car_spaces=_to_count(raw.get("car_spaces")),
        agent_name=clean_text(raw.get("agent_name")),
        agency_name=clean_text(raw.get("agency_name")),
        listing_url=raw.get("listing_url") or None,
    )
