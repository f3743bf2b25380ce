"""
Scrape pipeline for one auction results site.

Flow per run:
    region pages (listed up front or discovered from an index page)
      -> suburb links on each region page (capped per region)
        -> results pages per suburb (following "next" links)
          -> containers -> raw fields -> AuctionRecord

Regions are worked concurrently, bounded by ``max_concurrency``; suburbs
inside a region are worked one after another with a pause between them.
A failing suburb or region is logged and skipped; only a failure before any
region work starts (e.g. the index page never loads) fails the run.
"""

import asyncio
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

from bs4 import BeautifulSoup

from auctionresults.config import ScraperConfig, get_config
from auctionresults.core.models import AuctionRecord, ScrapeContext, ScrapeResult
from auctionresults.exceptions import ElementNotFoundError
from auctionresults.logging_config import get_source_logger
from auctionresults.scraper.extractor import extract_page
from auctionresults.scraper.locator import detect_challenge
from auctionresults.scraper.normalizer import title_case_suburb
from auctionresults.scraper.retry import safe_operation
from auctionresults.scraper.sites import (
    RegionLink,
    SiteConfig,
    SuburbLink,
    city_from_url,
    find_next_page,
    find_region_links,
    find_suburb_links,
    parse_suburb_href,
)

if TYPE_CHECKING:
    from auctionresults.scraper.navigator import Navigator, PageSession

Sleep = Callable[[float], Awaitable[None]]


class RunState(Enum):
    """Where a scrape run currently is.

    A run goes idle -> navigating -> extracting -> persisting -> logged -> idle,
    returning to navigating for every page it loads.
    """

    IDLE = "idle"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    PERSISTING = "persisting"
    LOGGED = "logged"


class AuctionScraper:
    """Scrapes every region of one site for a single auction date."""

    def __init__(
        self,
        site: SiteConfig,
        navigator: "Navigator",
        config: Optional[ScraperConfig] = None,
        auction_date: Optional[date] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.site = site
        self.navigator = navigator
        self.config = config or get_config().scraper
        self.auction_date = auction_date or date.today()
        self.state = RunState.IDLE
        self.history: List[RunState] = []
        self.records: List[AuctionRecord] = []
        self.errors: List[str] = []
        self._sleep = sleep
        self.logger = get_source_logger(__name__, site.source)

    # -------------------------------------------------------------------------
    # Page loading
    # -------------------------------------------------------------------------

    def _enter(self, state: RunState) -> None:
        if state is not self.state:
            self.state = state
            self.history.append(state)

    async def _retry(self, operation, name: str):
        return await safe_operation(
            operation,
            name,
            max_retries=self.config.retry_attempts,
            base_delay=self.config.retry_delay,
            sleep=self._sleep,
        )

    async def load(self, page: "PageSession", url: str, wait_selector: Optional[str]) -> Optional[str]:
        """Load a page, waiting for its content and backing off challenges.

        Returns:
            Page HTML, or None when the site keeps serving an anti-bot page.
        """
        self._enter(RunState.NAVIGATING)

        async def attempt() -> str:
            html = await page.goto(url)
            if detect_challenge(html) is None and wait_selector:
                soup = BeautifulSoup(html, "html.parser")
                if soup.select_one(wait_selector) is None:
                    raise ElementNotFoundError(wait_selector, url)
            return html

        html = await self._retry(attempt, f"Load {url}")
        phrase = detect_challenge(html)
        if phrase is None:
            return html

        self.logger.warning(
            "Challenge page (%r) at %s, backing off %.0fs",
            phrase, url, self.config.challenge_backoff,
        )
        await self._sleep(self.config.challenge_backoff)
        html = await self._retry(attempt, f"Reload {url}")
        if detect_challenge(html) is not None:
            self.logger.warning("Still challenged at %s, skipping page", url)
            return None
        return html

    # -------------------------------------------------------------------------
    # Navigation levels
    # -------------------------------------------------------------------------

    async def region_links(self) -> List[RegionLink]:
        """Region pages to work through for this site."""
        if self.site.region_urls:
            regions = []
            for url in self.site.region_urls:
                city, state = city_from_url(url)
                regions.append(RegionLink(url=url, state=state, name=city or url))
            return regions

        if not self.site.index_url:
            return []

        async with self.navigator.page() as page:
            html = await self.load(page, self.site.index_url, self.site.region_wait_selector)
        if html is None:
            return []

        regions = find_region_links(html, self.site)
        self.logger.info("Found %d region pages", len(regions))
        return regions

    async def scrape_region(self, region: RegionLink) -> None:
        """Scrape up to ``max_suburbs_per_city`` suburbs of one region."""
        async with self.navigator.page() as page:
            try:
                html = await self.load(page, region.url, self.site.region_wait_selector)
            except Exception as e:
                self._record_error(f"Region {region.name} failed: {e}")
                return
            if html is None:
                return

            suburbs = find_suburb_links(html, self.site, region.state)
            suburbs = suburbs[:self.config.max_suburbs_per_city]
            self.logger.info("Region %s: processing %d suburbs", region.name, len(suburbs))

            for index, suburb in enumerate(suburbs):
                try:
                    found = await self.scrape_suburb(page, suburb)
                    self.records.extend(found)
                    self.logger.debug("Suburb %s: %d records", suburb.suburb, len(found))
                except Exception as e:
                    self._record_error(f"Suburb {suburb.suburb} failed: {e}")

                if index < len(suburbs) - 1:
                    await self._sleep(self.config.suburb_delay)

    async def scrape_suburb(self, page: "PageSession", suburb: SuburbLink) -> List[AuctionRecord]:
        """All records on a suburb's results pages, following pagination."""
        records: List[AuctionRecord] = []
        url: Optional[str] = suburb.url
        pages = 0

        while url and pages < self.config.max_pages:
            html = await self.load(page, url, self.site.results_wait_selector)
            if html is None:
                break
            pages += 1

            self._enter(RunState.EXTRACTING)
            context = ScrapeContext(
                source=self.site.source,
                auction_date=self.auction_date,
                page_url=url,
                suburb=title_case_suburb(suburb.suburb),
                state=suburb.state,
                postcode=suburb.postcode or None,
            )
            page_records = extract_page(html, self.site, context)
            records.extend(page_records)

            next_url = find_next_page(html, self.site)
            if not page_records or next_url == url:
                break
            url = next_url

        return records

    def _record_error(self, message: str) -> None:
        self.errors.append(message)
        self.logger.warning(message)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    async def scrape(self) -> ScrapeResult:
        """Run the full site scrape.

        Returns:
            ScrapeResult with every record found. ``success`` is False only
            when the run failed before region work could start.
        """
        self.records = []
        self.errors = []
        self.history = []
        self._enter(RunState.NAVIGATING)

        try:
            regions = await self.region_links()
            self.logger.info("Starting scrape of %d regions for %s", len(regions), self.auction_date)

            semaphore = asyncio.Semaphore(self.config.max_concurrency)

            async def bounded(region: RegionLink) -> None:
                async with semaphore:
                    await self.scrape_region(region)

            await asyncio.gather(*(bounded(region) for region in regions))
        except Exception as e:
            self.logger.error("Scrape failed: %s", e)
            return ScrapeResult(success=False, records=list(self.records), error=str(e))
        finally:
            self._enter(RunState.IDLE)

        self.logger.info(
            "Scrape completed: %d records, %d errors", len(self.records), len(self.errors)
        )
        return ScrapeResult(success=True, records=list(self.records))

    async def scrape_url(self, url: str) -> ScrapeResult:
        """Scrape a single suburb results page (and its follow-on pages)."""
        words, state, postcode = parse_suburb_href(url)
        if words is None:
            _, state = city_from_url(url)
        link = SuburbLink(url=url, suburb=words or "", state=state, postcode=postcode or "")

        self.history = []
        self._enter(RunState.NAVIGATING)
        try:
            async with self.navigator.page() as page:
                records = await self.scrape_suburb(page, link)
        except Exception as e:
            self.logger.error("Scrape of %s failed: %s", url, e)
            return ScrapeResult(success=False, error=str(e))
        finally:
            self._enter(RunState.IDLE)

        return ScrapeResult(success=True, records=records)
