"""
Background scrape jobs for the API.

``POST /api/scrape`` returns as soon as the run is queued; the run itself
happens on a small thread pool, each worker driving its own asyncio event
loop. Outcomes land in the scrape_logs table, readable through
``GET /api/scrape-logs``.

A source runs at most once at a time, whether queued or run inline; "all"
holds both sources.
"""

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Set, Tuple

from auctionresults.core.constants import SOURCES
from auctionresults.core.models import RunLog
from auctionresults.logging_config import get_logger

if TYPE_CHECKING:
    from auctionresults.scraper.service import ScraperService

logger = get_logger(__name__)

_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="scrape_worker")

_running: Set[str] = set()
_running_lock = threading.Lock()


class ScrapeAlreadyRunning(ValueError):
    """Raised when a scrape for the same source is still in progress."""


def _sources_for(source: str) -> Tuple[str, ...]:
    return SOURCES if source == "all" else (source,)


def _claim(source: str) -> Tuple[str, ...]:
    """Mark the sources behind ``source`` as running, or refuse if any already is."""
    sources = _sources_for(source)
    with _running_lock:
        busy = [name for name in sources if name in _running]
        if busy:
            raise ScrapeAlreadyRunning(f"{busy[0]} scraper is already running")
        _running.update(sources)
    return sources


def _release(sources: Tuple[str, ...]) -> None:
    with _running_lock:
        _running.difference_update(sources)


def is_running(source: str) -> bool:
    with _running_lock:
        return any(name in _running for name in _sources_for(source))


def _execute(service: "ScraperService", source: str, auction_date: Optional[date]) -> List[RunLog]:
    return asyncio.run(service.run(source, auction_date))


def run_scrape(service: "ScraperService", source: str,
               auction_date: Optional[date] = None) -> List[RunLog]:
    """Run a scrape to completion on the calling thread.

    Raises:
        ScrapeAlreadyRunning: If the same source is already being scraped.
    """
    sources = _claim(source)
    try:
        return _execute(service, source, auction_date)
    finally:
        _release(sources)


def _run_in_background(service: "ScraperService", source: str, auction_date: Optional[date],
                       sources: Tuple[str, ...]) -> None:
    try:
        logs = _execute(service, source, auction_date)
        for log in logs:
            logger.info("Background %s scrape finished: %s (%d records)",
                        log.source, log.status, log.record_count)
    except Exception as e:
        # Run logs are written by the service; this only catches setup failures
        logger.exception("Background %s scrape crashed: %s", source, e)
    finally:
        _release(sources)


def start_scrape(service: "ScraperService", source: str,
                 auction_date: Optional[date] = None) -> Future:
    """Queue a scrape and return immediately.

    Raises:
        ScrapeAlreadyRunning: If the same source is already being scraped.
    """
    sources = _claim(source)

    try:
        future = _executor.submit(_run_in_background, service, source, auction_date, sources)
    except Exception:
        _release(sources)
        raise

    logger.info("Queued %s scrape for %s", source, auction_date or "today")
    return future
