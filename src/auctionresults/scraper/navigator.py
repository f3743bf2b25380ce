"""
Page Navigator

Loads results pages and hands back their HTML. ``BrowserNavigator`` drives a
headless browser through crawl4ai so client-rendered pages arrive fully
populated; ``HttpNavigator`` is a plain httpx fetch for pages that render
server side.

One navigator is shared by a whole scrape run. Work on a single region is
scoped with ``page()``, which binds a browser session and always releases
it, even when extraction fails half way.

Usage:
    async with BrowserNavigator(config.scraper) as navigator:
        async with navigator.page() as page:
            html = await page.goto(url)
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from auctionresults.config import ScraperConfig, get_config
from auctionresults.exceptions import NetworkError
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)


class PageSession:
    """A page bound to one navigator session; remembers the last load."""

    def __init__(self, navigator: "Navigator", session_id: str):
        self.navigator = navigator
        self.session_id = session_id
        self.url: Optional[str] = None
        self.html: str = ""

    async def goto(self, url: str) -> str:
        """Navigate to url and return the page HTML."""
        self.html = await self.navigator.fetch(url, session_id=self.session_id)
        self.url = url
        return self.html


class Navigator(ABC):
    """Shared page loader for one scrape run."""

    def __init__(self, config: Optional[ScraperConfig] = None):
        self.config = config or get_config().scraper

    async def __aenter__(self) -> "Navigator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    async def fetch(self, url: str, session_id: Optional[str] = None) -> str:
        """Load url and return its HTML.

        Raises:
            NetworkError: On timeout or an unsuccessful load.
        """

    async def release(self, session_id: str) -> None:
        """Free whatever a page session holds."""

    @asynccontextmanager
    async def page(self) -> AsyncIterator[PageSession]:
        session_id = f"auction-{uuid.uuid4().hex[:12]}"
        try:
            yield PageSession(self, session_id)
        finally:
            await self.release(session_id)

    def _timeout_error(self, url: str) -> NetworkError:
        return NetworkError(
            f"Navigation timeout of {self.config.timeout_ms}ms exceeded", url=url
        )


class BrowserNavigator(Navigator):
    """crawl4ai-backed navigator sharing one headless browser per run."""

    def __init__(self, config: Optional[ScraperConfig] = None):
        super().__init__(config)
        self.browser_config = BrowserConfig(
            headless=self.config.headless,
            user_agent=self.config.user_agent,
            extra_args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        self._crawler: Optional[AsyncWebCrawler] = None

    async def start(self) -> None:
        if self._crawler is None:
            self._crawler = AsyncWebCrawler(config=self.browser_config)
            await self._crawler.start()
            logger.debug("Browser started (headless=%s)", self.config.headless)

    async def close(self) -> None:
        if self._crawler is not None:
            await self._crawler.close()
            self._crawler = None
            logger.debug("Browser closed")

    def run_config(self, session_id: Optional[str] = None) -> CrawlerRunConfig:
        return CrawlerRunConfig(
            cache_mode=CacheMode.BYPASS,
            magic=True,
            wait_until="networkidle",
            page_timeout=self.config.timeout_ms,
            delay_before_return_html=self.config.settle_delay,
            session_id=session_id,
        )

    async def fetch(self, url: str, session_id: Optional[str] = None) -> str:
        await self.start()
        # Settle delay runs inside the crawl, so it extends the overall timeout
        deadline = self.config.timeout + self.config.settle_delay
        try:
            result = await asyncio.wait_for(
                self._crawler.arun(url, config=self.run_config(session_id)),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            raise self._timeout_error(url) from None

        if not result.success:
            raise NetworkError(
                f"Navigation failed: {result.error_message or 'unknown error'}",
                url=url,
                status_code=result.status_code,
            )
        return result.html or ""

    async def release(self, session_id: str) -> None:
        if self._crawler is None:
            return
        try:
            await self._crawler.crawler_strategy.kill_session(session_id)
        except Exception as e:
            logger.warning("Could not release browser session %s: %s", session_id, e)


class HttpNavigator(Navigator):
    """httpx-backed navigator for server-rendered pages."""

    def __init__(self, config: Optional[ScraperConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "en-AU,en;q=0.9",
                    "Accept-Encoding": "gzip, deflate",
                },
                follow_redirects=True,
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, session_id: Optional[str] = None) -> str:
        await self.start()
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException:
            raise self._timeout_error(url) from None
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error: {e}", url=url) from e

        if response.status_code == 429 or response.status_code >= 500:
            raise NetworkError(
                f"Navigation failed: HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise NetworkError(
                f"HTTP {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
            )
        return response.text


NAVIGATORS = {
    "browser": BrowserNavigator,
    "http": HttpNavigator,
}
