"""
Scraper Service

Runs a full scrape for one or both sources: navigate and extract, persist
and refresh statistics, then write exactly one run log per source, even
when the run blew up before producing a single record.

Usage:
    service = ScraperService()
    log = asyncio.run(service.run_source("domain"))
    logs = asyncio.run(service.run_all())
"""

import asyncio
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from auctionresults.config import Config, ScraperConfig, get_config
from auctionresults.core.constants import RUN_FAILED, RUN_SUCCESS, SOURCES
from auctionresults.core.models import RunLog
from auctionresults.core.storage import SQLiteStorage, StoragePort
from auctionresults.exceptions import ConfigurationError
from auctionresults.logging_config import get_logger, get_source_logger
from auctionresults.scraper.persistence import persist_records
from auctionresults.scraper.pipeline import AuctionScraper, RunState
from auctionresults.scraper.sites import get_site

if TYPE_CHECKING:
    from auctionresults.scraper.navigator import Navigator

logger = get_logger(__name__)

NavigatorFactory = Callable[[ScraperConfig], "Navigator"]


def default_navigator_factory(config: ScraperConfig) -> "Navigator":
    """Navigator selected by ``AUCTIONRESULTS_NAVIGATOR``."""
    from auctionresults.scraper.navigator import NAVIGATORS

    try:
        navigator_class = NAVIGATORS[config.navigator]
    except KeyError:
        raise ConfigurationError(f"Unknown navigator: {config.navigator}") from None
    return navigator_class(config)


class ScraperService:
    """Coordinates scraper runs, persistence and run logging."""

    def __init__(
        self,
        storage: Optional[StoragePort] = None,
        config: Optional[Config] = None,
        navigator_factory: Optional[NavigatorFactory] = None,
        sleep=asyncio.sleep,
    ):
        self.config = config or get_config()
        self.storage = storage or SQLiteStorage(self.config.database.path)
        self.navigator_factory = navigator_factory or default_navigator_factory
        self.states: Dict[str, RunState] = {source: RunState.IDLE for source in SOURCES}
        self.history: Dict[str, List[RunState]] = {source: [] for source in SOURCES}
        self._sleep = sleep

    def _enter(self, source: str, state: RunState) -> None:
        if self.states.get(source) is not state:
            self.states[source] = state
            self.history.setdefault(source, []).append(state)

    async def run_source(self, source: str, auction_date: Optional[date] = None,
                         url: Optional[str] = None) -> RunLog:
        """Scrape one source and log the run.

        Args:
            source: "domain" or "rea".
            auction_date: Date recorded on every scraped result; today if None.
            url: Scrape only this suburb results page instead of every region.

        Returns:
            The RunLog that was written.
        """
        run_logger = get_source_logger(__name__, source)
        start_time = datetime.now()
        status = RUN_FAILED
        record_count = 0
        error_log = None

        try:
            site = get_site(source)
            self.history[source] = []
            self._enter(source, RunState.NAVIGATING)
            run_logger.info("Starting scrape")

            async with self.navigator_factory(self.config.scraper) as navigator:
                scraper = AuctionScraper(
                    site,
                    navigator,
                    config=self.config.scraper,
                    auction_date=auction_date,
                    sleep=self._sleep,
                )
                result = await (scraper.scrape_url(url) if url else scraper.scrape())

            if result.success:
                self._enter(source, RunState.PERSISTING)
                summary = persist_records(
                    self.storage, result.records, self.config.scraper.batch_size
                )
                status = RUN_SUCCESS
                record_count = result.record_count
                problems = scraper.errors + summary.errors
                error_log = "\n".join(problems) if problems else None
                run_logger.info(
                    "Scraped %d records (%d new, %d updated)",
                    record_count, summary.inserted, summary.updated,
                )
            else:
                error_log = result.error
                run_logger.error("Scrape failed: %s", result.error)
        except Exception as e:
            error_log = str(e) or e.__class__.__name__
            run_logger.exception("Scraper error")

        log = RunLog(
            source=source,
            status=status,
            start_time=start_time,
            end_time=datetime.now(),
            record_count=record_count,
            error_log=error_log,
        )
        try:
            self.storage.append_run_log(log)
            self._enter(source, RunState.LOGGED)
        except Exception as e:
            run_logger.error("Could not write run log: %s", e)
        finally:
            self._enter(source, RunState.IDLE)

        return log

    async def run_all(self, auction_date: Optional[date] = None) -> List[RunLog]:
        """Scrape every source concurrently."""
        logger.info("Running all scrapers")
        logs = await asyncio.gather(*(self.run_source(source, auction_date) for source in SOURCES))
        logger.info("All scrapers completed")
        return list(logs)

    async def run(self, source: str, auction_date: Optional[date] = None) -> List[RunLog]:
        """Run "domain", "rea" or "all"."""
        if source == "all":
            return await self.run_all(auction_date)
        if source not in SOURCES:
            raise ConfigurationError(f"Invalid source specified: {source}")
        return [await self.run_source(source, auction_date)]
