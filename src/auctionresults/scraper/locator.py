"""
Container Locator

Finds the DOM elements on a results page that each hold one auction result.

Strategies are tried in order: first the site's own selectors, then a
generic pass that scores every ``div/article/section/li`` by how many
auction signals its text carries. Every strategy's output goes through the
same plausibility window on text length so navigation chrome and whole-page
wrappers are dropped even when a selector matched them.
"""

import re
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from auctionresults.core.constants import (
    CHALLENGE_PHRASES,
    MAX_CONTAINER_TEXT,
    MIN_CONTAINER_TEXT,
)
from auctionresults.logging_config import get_logger
from auctionresults.scraper.sites import SiteConfig

logger = get_logger(__name__)

Strategy = Callable[[BeautifulSoup], List[Tag]]

STREET_SUFFIXES = (
    "street|st|road|rd|avenue|ave|drive|dr|lane|ln|court|ct|place|pl|way|"
    "crescent|cres|parade|pde|boulevard|blvd|close|cl|terrace|tce|highway|hwy|grove|gr"
)
ADDRESS_PATTERN = re.compile(rf"\d+.*\b({STREET_SUFFIXES})\b", re.IGNORECASE)

SIGNAL_PATTERNS: Dict[str, re.Pattern] = {
    "price": re.compile(r"\$[\d,]+"),
    "postcode": re.compile(r"\b\d{4}\b"),
    "result": re.compile(r"\b(sold|passed|withdrawn)\b", re.IGNORECASE),
    "features": re.compile(r"\d+\s*(bed|bath|car)", re.IGNORECASE),
    "address": ADDRESS_PATTERN,
}

MIN_SIGNALS = 2

GENERIC_TAGS = ["div", "article", "section", "li"]


def container_text(element: Tag) -> str:
    """Visible text of an element, one line per text node."""
    return element.get_text("\n", strip=True)


def count_signals(text: str) -> int:
    """Number of distinct auction signals present in text (0-5)."""
    return sum(1 for pattern in SIGNAL_PATTERNS.values() if pattern.search(text))


def looks_like_auction_result(text: str) -> bool:
    return count_signals(text) >= MIN_SIGNALS


def within_text_window(element: Tag) -> bool:
    """Reject elements too small to be a result or too big to be just one."""
    length = len(container_text(element))
    return MIN_CONTAINER_TEXT <= length <= MAX_CONTAINER_TEXT


def selector_strategy(selector: str) -> Strategy:
    """Strategy returning whatever a site-specific CSS selector matches."""

    def strategy(soup: BeautifulSoup) -> List[Tag]:
        return soup.select(selector)

    strategy.__name__ = f"selector[{selector}]"
    return strategy


def _innermost(elements: List[Tag]) -> List[Tag]:
    """Drop every element that contains another element of the list."""
    ancestors = set()
    for element in elements:
        for parent in element.parents:
            ancestors.add(id(parent))
    return [el for el in elements if id(el) not in ancestors]


def generic_strategy(soup: BeautifulSoup) -> List[Tag]:
    """Score every block element by auction signals, keep plausible ones."""
    candidates = []
    for element in soup.find_all(GENERIC_TAGS):
        if not within_text_window(element):
            continue
        if looks_like_auction_result(container_text(element)):
            candidates.append(element)
    return _innermost(candidates)


def build_strategies(site: SiteConfig) -> List[Strategy]:
    """Site selectors first, generic scoring last."""
    strategies = [selector_strategy(selector) for selector in site.container_selectors]
    strategies.append(generic_strategy)
    return strategies


def locate_containers(soup: BeautifulSoup, site: SiteConfig) -> List[Tag]:
    """Candidate result containers from the first strategy that finds any.

    An empty list is a normal outcome (a suburb with no results, or markup
    none of the strategies recognise) and is not treated as an error.
    """
    for strategy in build_strategies(site):
        found = strategy(soup)
        candidates = [el for el in found if within_text_window(el)]
        if candidates:
            logger.debug(
                "Strategy %s: %d matched, %d plausible",
                strategy.__name__, len(found), len(candidates),
            )
            return candidates
        if found:
            logger.debug("Strategy %s: %d matched, none plausible", strategy.__name__, len(found))

    logger.debug("No auction containers found")
    return []


def detect_challenge(html: str) -> Optional[str]:
    """Return the anti-bot phrase shown on the page, if any.

    Only visible text is checked; pages routinely load captcha scripts
    without actually challenging the visitor.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    text = soup.get_text(" ", strip=True).lower()
    for phrase in CHALLENGE_PHRASES:
        if phrase in text:
            return phrase
    return None
