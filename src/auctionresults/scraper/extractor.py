"""
Field Extractor

Pulls raw auction fields out of located result containers and hands them
to the normalizer. Two passes are available:

- DOM pass: site selectors first, then regular expressions over the
  container's visible text, one line per text node.
- Embedded-data pass: JSON that the sites ship inside ``__NEXT_DATA__`` or
  ``window.__INITIAL_STATE__`` scripts, walked for listing-shaped objects.
  Used when the DOM pass finds nothing.
"""

import json
import re
from typing import Any, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from auctionresults.core.constants import MAX_FEATURE_COUNT, STATES
from auctionresults.core.models import AuctionRecord, ScrapeContext
from auctionresults.exceptions import ValidationError
from auctionresults.logging_config import get_logger
from auctionresults.scraper.locator import ADDRESS_PATTERN, container_text, locate_containers
from auctionresults.scraper.normalizer import build_record, clean_text
from auctionresults.scraper.sites import SiteConfig, absolute_url
from auctionresults.utils.price_parser import find_price_text, is_undisclosed
from auctionresults.utils.property_types import PROPERTY_TYPE_PATTERN, find_property_type

logger = get_logger(__name__)

RESULT_PATTERN = re.compile(r"\b(sold|passed|withdrawn|cancelled)\b", re.IGNORECASE)

FEATURE_PATTERNS = {
    "bedrooms": re.compile(r"(\d+)\s*bed", re.IGNORECASE),
    "bathrooms": re.compile(r"(\d+)\s*bath", re.IGNORECASE),
    "car_spaces": re.compile(r"(\d+)\s*car", re.IGNORECASE),
}

AGENT_PATTERN = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+$")
AGENCY_PATTERN = re.compile(r"real estate|realty|properties|property|group|ltd|pty", re.IGNORECASE)

STATE_CODES = "|".join(STATES)
# "..., Castle Hill NSW 2154"
LOCATION_PATTERN = re.compile(
    rf",\s*([A-Za-z' \-]+?)\s+({STATE_CODES})\b(?:\s+(\d{{4}}))?"
)
STATE_PATTERN = re.compile(rf"\b({STATE_CODES})\b")
POSTCODE_AFTER_STATE = re.compile(rf"\b(?:{STATE_CODES})\s+(\d{{4}})\b")

INITIAL_STATE_PATTERN = re.compile(
    r"window\.__INITIAL_STATE__\s*=\s*(\{.*\})\s*;?\s*$", re.DOTALL
)

ADDRESS_KEYS = ("address", "displayAddress", "streetAddress", "fullAddress")


def _select_text(container: Tag, selectors) -> Optional[str]:
    """Text of the first selector match that has any."""
    for selector in selectors:
        element = container.select_one(selector)
        if element is None:
            continue
        text = element.get_text(" ", strip=True)
        if text:
            return text
    return None


def _lines(container: Tag) -> List[str]:
    return [line for line in container_text(container).split("\n") if line.strip()]


def extract_address(container: Tag, lines: List[str], site: SiteConfig) -> Optional[str]:
    """Address from a site selector, an address-shaped line, or the first line."""
    for selector in site.address_selectors:
        for element in container.select(selector):
            text = element.get_text(" ", strip=True)
            if text and ADDRESS_PATTERN.search(text):
                return text

    for line in lines:
        if ADDRESS_PATTERN.search(line):
            return line

    return lines[0] if lines else None


def extract_price_text(container: Tag, text: str, site: SiteConfig) -> Optional[str]:
    if is_undisclosed(text):
        return None
    selected = _select_text(container, site.price_selectors)
    if selected and find_price_text(selected):
        return find_price_text(selected)
    return find_price_text(text)


def extract_result_text(container: Tag, text: str, site: SiteConfig) -> Optional[str]:
    selected = _select_text(container, site.result_selectors)
    for candidate in (selected, text):
        if candidate:
            match = RESULT_PATTERN.search(candidate)
            if match:
                return match.group(1).lower()
    return None


def extract_features(container: Tag, text: str, site: SiteConfig) -> Dict[str, Optional[int]]:
    """Bed, bath and car counts; counts above the plausible range are dropped."""
    source = _select_text(container, site.feature_selectors) or text
    counts = {}
    for name, pattern in FEATURE_PATTERNS.items():
        match = pattern.search(source)
        value = int(match.group(1)) if match else None
        counts[name] = value if value is not None and value <= MAX_FEATURE_COUNT else None
    return counts


def _is_agent_line(line: str, suburb: Optional[str]) -> bool:
    if not AGENT_PATTERN.match(line):
        return False
    if AGENCY_PATTERN.search(line) or RESULT_PATTERN.search(line) or PROPERTY_TYPE_PATTERN.search(line):
        return False
    return not (suburb and line.lower() == suburb.lower())


def extract_agent(container: Tag, lines: List[str], site: SiteConfig,
                  suburb: Optional[str] = None) -> Optional[str]:
    selected = _select_text(container, site.agent_selectors)
    if selected:
        return selected
    for line in lines:
        if _is_agent_line(line, suburb):
            return line
    return None


def extract_agency(container: Tag, lines: List[str], site: SiteConfig) -> Optional[str]:
    selected = _select_text(container, site.agency_selectors)
    if selected:
        return selected
    for line in lines:
        if AGENCY_PATTERN.search(line) and not ADDRESS_PATTERN.search(line) and "$" not in line:
            return line
    return None


def extract_listing_url(container: Tag, site: SiteConfig) -> Optional[str]:
    for anchor in container.find_all("a", href=True):
        href = anchor["href"]
        if any(keyword in href for keyword in site.listing_path_keywords):
            return absolute_url(href, site.base_url)
    return None


def extract_location(text: str, address: Optional[str]) -> Dict[str, Optional[str]]:
    """Suburb, state and postcode recoverable from the container text."""
    location = {"suburb": None, "state": None, "postcode": None}

    match = LOCATION_PATTERN.search(address or "")
    if match:
        location["suburb"] = match.group(1).strip()
        location["state"] = match.group(2)
        location["postcode"] = match.group(3)

    if location["state"] is None:
        state = STATE_PATTERN.search(text)
        location["state"] = state.group(1) if state else None
    if location["postcode"] is None:
        postcode = POSTCODE_AFTER_STATE.search(text)
        location["postcode"] = postcode.group(1) if postcode else None

    return location


def extract_fields(container: Tag, site: SiteConfig,
                   context: Optional[ScrapeContext] = None) -> Dict[str, Any]:
    """Raw field dictionary for one result container."""
    text = container_text(container)
    lines = _lines(container)
    address = extract_address(container, lines, site)
    suburb = context.suburb if context else None

    raw = {
        "address": address,
        "price_text": extract_price_text(container, text, site),
        "result_text": extract_result_text(container, text, site),
        "property_type": find_property_type(text),
        "agent_name": extract_agent(container, lines, site, suburb),
        "agency_name": extract_agency(container, lines, site),
        "listing_url": extract_listing_url(container, site),
    }
    raw.update(extract_features(container, text, site))
    raw.update(extract_location(text, address))
    return raw


def extract_containers(containers: List[Tag], site: SiteConfig,
                       context: ScrapeContext) -> List[AuctionRecord]:
    """Build records from containers; a bad container never sinks the page."""
    records = []
    for index, container in enumerate(containers):
        try:
            raw = extract_fields(container, site, context)
            if not raw.get("address"):
                logger.debug("Container %d has no address, skipped", index)
                continue
            records.append(build_record(raw, context))
        except ValidationError as e:
            logger.debug("Container %d dropped: %s", index, e.message)
        except Exception as e:
            logger.warning("Container %d on %s failed: %s", index, context.page_url, e)
    return records


# =============================================================================
# Embedded data
# =============================================================================

def _load_embedded_json(soup: BeautifulSoup) -> List[Any]:
    """Parsed JSON payloads from known data scripts."""
    payloads = []

    script = soup.find("script", id="__NEXT_DATA__")
    if script is not None:
        try:
            payloads.append(json.loads(script.get_text()))
        except ValueError as e:
            logger.warning("Could not parse __NEXT_DATA__: %s", e)

    for script in soup.find_all("script"):
        body = script.get_text()
        if "__INITIAL_STATE__" not in body:
            continue
        match = INITIAL_STATE_PATTERN.search(body.strip())
        if not match:
            continue
        try:
            payloads.append(json.loads(match.group(1)))
        except ValueError as e:
            logger.warning("Could not parse __INITIAL_STATE__: %s", e)

    return payloads


def _is_listing(node: Dict[str, Any]) -> bool:
    return any(isinstance(node.get(key), (str, dict)) and node.get(key) for key in ADDRESS_KEYS)


def _walk_listings(node: Any) -> Iterator[Dict[str, Any]]:
    """Depth-first walk yielding listing-shaped objects (not their children)."""
    if isinstance(node, dict):
        if _is_listing(node):
            yield node
            return
        for value in node.values():
            yield from _walk_listings(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk_listings(item)


def _compose_address(address: Dict[str, Any]) -> Optional[str]:
    """Street address from an address object, e.g. ``3/12 Smith Street``."""
    street = str(address.get("street") or "")
    if len(street) < 3:
        return address.get("displayAddress") or address.get("fullAddress") or None
    unit = address.get("unitNumber") or ""
    number = address.get("streetNumber") or ""
    parts = [f"{unit}/" if unit else "", str(number), street]
    return " ".join(filter(None, parts)).replace("/ ", "/")


def listing_to_raw(item: Dict[str, Any], site: SiteConfig) -> Dict[str, Any]:
    """Raw field dictionary for one embedded listing object."""
    model = item.get("listingModel") or item
    address_obj = model.get("address") if isinstance(model.get("address"), dict) else {}

    address = None
    if address_obj:
        address = _compose_address(address_obj)
    if not address:
        for key in ADDRESS_KEYS:
            if isinstance(model.get(key), str) and model.get(key):
                address = model[key]
                break

    features = model.get("features") if isinstance(model.get("features"), dict) else {}
    branding = model.get("branding") if isinstance(model.get("branding"), dict) else {}
    tags = model.get("tags") if isinstance(model.get("tags"), dict) else {}
    url = model.get("url") or model.get("seoUrl") or item.get("seoUrl")

    return {
        "address": clean_text(address),
        "price": model.get("price") or model.get("soldPrice"),
        "result_text": model.get("result") or model.get("auctionResult") or tags.get("tagText"),
        "property_type": model.get("propertyType") or find_property_type(model.get("headline")),
        "bedrooms": features.get("beds", model.get("bedrooms")),
        "bathrooms": features.get("baths", model.get("bathrooms")),
        "car_spaces": features.get("parking", model.get("carspaces")),
        "agent_name": branding.get("agentName") or model.get("agentName"),
        "agency_name": branding.get("brandName") or model.get("agencyName"),
        "listing_url": absolute_url(url, site.base_url) or None,
        "suburb": address_obj.get("suburb"),
        "state": address_obj.get("state"),
        "postcode": address_obj.get("postcode"),
    }


def extract_embedded(soup: BeautifulSoup, site: SiteConfig,
                     context: ScrapeContext) -> List[AuctionRecord]:
    """Records from embedded page data; empty when the page carries none."""
    records = []
    for payload in _load_embedded_json(soup):
        for item in _walk_listings(payload):
            try:
                records.append(build_record(listing_to_raw(item, site), context))
            except ValidationError as e:
                logger.debug("Embedded listing dropped: %s", e.message)
            except Exception as e:
                logger.warning("Embedded listing on %s failed: %s", context.page_url, e)
    return records


def extract_page(html: str, site: SiteConfig, context: ScrapeContext) -> List[AuctionRecord]:
    """All auction records on one results page.

    Embedded data is only consulted when the DOM pass yields nothing.
    """
    soup = BeautifulSoup(html, "html.parser")
    containers = locate_containers(soup, site)
    records = extract_containers(containers, site, context)
    if records:
        return records

    embedded = extract_embedded(soup, site, context)
    if embedded:
        logger.debug("Recovered %d records from embedded data on %s", len(embedded), context.page_url)
    return embedded
