"""
Per-site scraper configuration and sub-navigation.

Both sources publish the same kind of page (a list of auction results per
suburb) behind a region level (Domain: capital city pages, REA: state
pages). A ``SiteConfig`` holds everything that differs between them so a
single scraper can drive either site.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from auctionresults.core.constants import (
    CITY_STATES,
    DOMAIN_AUCTION_RESULTS_URL,
    DOMAIN_BASE_URL,
    REA_AUCTION_RESULTS_URL,
    REA_BASE_URL,
    SOURCE_DOMAIN,
    SOURCE_REA,
)
from auctionresults.exceptions import ConfigurationError
from auctionresults.scraper.normalizer import normalize_state

STATE_SLUGS = "nsw|vic|qld|wa|sa|tas|act|nt"

# "<suburb>-<state>-<postcode>" at the end of a results URL
SUBURB_SLUG_PATTERN = re.compile(
    rf"/([a-z0-9-]+?)-({STATE_SLUGS})-(\d{{4}})/?(?:[?#].*)?$", re.IGNORECASE
)

POSTCODE_PATTERN = re.compile(r"\b\d{4}\b")


@dataclass(frozen=True)
class SiteConfig:
    """Selectors, URLs and patterns for one auction results site."""

    source: str
    base_url: str
    # Region pages are either listed up front or discovered from an index page
    region_urls: Tuple[str, ...] = ()
    index_url: Optional[str] = None
    region_link_selector: str = 'a[href*="auction-results"]'
    region_href_pattern: str = rf"/auction-results/({STATE_SLUGS})/?$"
    suburb_link_selector: str = 'a[href*="auction-results"]'
    suburb_href_pattern: str = r"/auction-results/[^/]+/[^/?#]+"
    region_wait_selector: str = "main, nav, ul"
    results_wait_selector: str = "main, article"
    next_page_selector: str = 'a[rel="next"]'
    container_selectors: Tuple[str, ...] = ()
    address_selectors: Tuple[str, ...] = ()
    price_selectors: Tuple[str, ...] = ()
    result_selectors: Tuple[str, ...] = ()
    feature_selectors: Tuple[str, ...] = ()
    agent_selectors: Tuple[str, ...] = ()
    agency_selectors: Tuple[str, ...] = ()
    listing_path_keywords: Tuple[str, ...] = ("/property/",)


@dataclass(frozen=True)
class RegionLink:
    url: str
    state: Optional[str]
    name: str = ""


@dataclass(frozen=True)
class SuburbLink:
    url: str
    suburb: str
    state: Optional[str]
    postcode: str = ""


DOMAIN_SITE = SiteConfig(
    source=SOURCE_DOMAIN,
    base_url=DOMAIN_BASE_URL,
    region_urls=tuple(
        f"{DOMAIN_AUCTION_RESULTS_URL}{city}/"
        for city in ("sydney", "melbourne", "brisbane", "adelaide", "canberra", "perth")
    ),
    region_link_selector='a[href*="/auction-results/"]',
    suburb_link_selector='.suburb-results__suburb-item a, a[href*="/auction-results/"]',
    suburb_href_pattern=rf"/auction-results/[^/]+/[a-z0-9-]+-({STATE_SLUGS})-\d{{4}}",
    region_wait_selector='.suburb-results__suburb-item a, a[href*="/auction-results/"]',
    results_wait_selector=(
        'article[data-testid="listing-card"], div[data-testid="property-card"], '
        ".auction-results__property, .property-listing, main"
    ),
    next_page_selector='a[rel="next"], a[data-testid="paginator-navigation-button"][aria-label*="next" i]',
    container_selectors=(
        'article[data-testid="listing-card"]',
        'div[data-testid="property-card"]',
        '[data-testid*="auction"]',
        '[data-testid*="result"]',
        ".auction-results__property",
        ".property-listing",
        ".auction-result",
        'div[class*="property"][class*="card"]',
        'article[class*="listing"]',
    ),
    address_selectors=(
        '[data-testid="address"]',
        ".property-address",
        ".listing-address",
        "h2",
        "h3",
        'a[href*="/property/"]',
    ),
    price_selectors=('[data-testid="price"]', ".property-price", ".listing-price", ".price"),
    result_selectors=('[data-testid="status"]', ".property-status", ".listing-status", ".result", ".tag"),
    feature_selectors=('[data-testid="property-features"]', ".property-features", ".listing-features", ".features"),
    agent_selectors=('[data-testid="agent-name"]', ".agent-name", ".listing-agent"),
    agency_selectors=('[data-testid="agency-name"]', ".agency-name", ".listing-agency"),
    listing_path_keywords=("/property/", "/sale/", "/sold/"),
)

REA_SITE = SiteConfig(
    source=SOURCE_REA,
    base_url=REA_BASE_URL,
    index_url=REA_AUCTION_RESULTS_URL,
    region_wait_selector='main, [role="main"], .auction-results',
    results_wait_selector='main, [role="main"], .auction-results-list, article, .property',
    container_selectors=(
        '[data-testid*="auction-result"]',
        ".auction-results-list li",
        'article[class*="result"]',
    ),
    address_selectors=('[data-testid*="address"]', ".address", "h2", "h3"),
    price_selectors=('[data-testid*="price"]', ".price"),
    result_selectors=('[data-testid*="result"]', ".result"),
    feature_selectors=('[data-testid*="features"]', ".features"),
    agent_selectors=('[data-testid*="agent"]', ".agent", ".agent-name"),
    agency_selectors=('[data-testid*="agency"]', ".agency", ".agency-name"),
    listing_path_keywords=("/property/", "/sold/", "/buy/"),
)

SITES: Dict[str, SiteConfig] = {
    SOURCE_DOMAIN: DOMAIN_SITE,
    SOURCE_REA: REA_SITE,
}


def get_site(source: str) -> SiteConfig:
    """Look up the site configuration for a source name."""
    try:
        return SITES[source]
    except KeyError:
        raise ConfigurationError(f"No site configuration for source: {source}") from None


def absolute_url(href: Optional[str], base_url: str) -> str:
    """Anchor an href on the site's domain.

    Example:
        >>> absolute_url("/auction-results/sydney/", "https://www.domain.com.au")
        "https://www.domain.com.au/auction-results/sydney/"
    """
    if not href:
        return ""
    href = href.strip()
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("//"):
        return "https:" + href
    if href.startswith("/"):
        return base_url.rstrip("/") + href
    return base_url.rstrip("/") + "/" + href


def parse_suburb_href(href: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Split a ``<suburb>-<state>-<postcode>`` results URL.

    Returns:
        (suburb words, state code, postcode), each None when absent.

    Example:
        >>> parse_suburb_href("/auction-results/sydney/castle-hill-nsw-2154")
        ("castle hill", "NSW", "2154")
    """
    match = SUBURB_SLUG_PATTERN.search(href or "")
    if not match:
        return None, None, None
    return match.group(1).replace("-", " "), match.group(2).upper(), match.group(3)


def city_from_url(url: str) -> Tuple[Optional[str], Optional[str]]:
    """City name and state for a ``/auction-results/<city>/`` URL.

    Unknown cities fall back to NSW.
    """
    parts = [p for p in urlparse(url).path.split("/") if p]
    if "auction-results" not in parts:
        return None, None
    index = parts.index("auction-results") + 1
    if index >= len(parts):
        return None, None
    city = parts[index].replace("-", " ")
    return city, CITY_STATES.get(city.lower(), "NSW")


def find_region_links(html: str, site: SiteConfig) -> List[RegionLink]:
    """Region (state) pages linked from the site's index page."""
    soup = BeautifulSoup(html, "html.parser")
    pattern = re.compile(site.region_href_pattern, re.IGNORECASE)
    links: Dict[str, RegionLink] = {}

    for anchor in soup.select(site.region_link_selector):
        href = anchor.get("href")
        text = anchor.get_text(" ", strip=True)
        if not href or not text:
            continue
        state = normalize_state(text)
        slug_match = pattern.search(href)
        if state is None and slug_match:
            state = slug_match.group(1).upper()
        if state is None:
            continue
        url = absolute_url(href, site.base_url)
        links.setdefault(url, RegionLink(url=url, state=state, name=text))

    return list(links.values())


def find_suburb_links(html: str, site: SiteConfig, region_state: Optional[str] = None) -> List[SuburbLink]:
    """Suburb results pages linked from a region page, in page order."""
    soup = BeautifulSoup(html, "html.parser")
    pattern = re.compile(site.suburb_href_pattern, re.IGNORECASE)
    links: Dict[str, SuburbLink] = {}

    for anchor in soup.select(site.suburb_link_selector):
        href = anchor.get("href")
        if not href or not pattern.search(href):
            continue

        text = anchor.get_text(" ", strip=True)
        suburb, state, postcode = parse_suburb_href(href)
        if suburb is None:
            suburb = POSTCODE_PATTERN.sub("", text).strip(" ,")
        if not suburb:
            continue
        if postcode is None:
            found = POSTCODE_PATTERN.search(text) or POSTCODE_PATTERN.search(href)
            postcode = found.group(0) if found else ""

        url = absolute_url(href, site.base_url)
        links.setdefault(url, SuburbLink(
            url=url,
            suburb=suburb,
            state=state or region_state,
            postcode=postcode,
        ))

    return list(links.values())


def find_next_page(html: str, site: SiteConfig) -> Optional[str]:
    """Absolute URL of the next results page, if the page links one."""
    soup = BeautifulSoup(html, "html.parser")
    anchor = soup.select_one(site.next_page_selector)
    if anchor is None or not anchor.get("href"):
        return None
    return absolute_url(anchor["href"], site.base_url)
