"""
Pytest Configuration and Fixtures

Provides shared fixtures for all tests.
"""

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import Dict, Generator, List, Union

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from auctionresults.config import ScraperConfig  # noqa: E402
from auctionresults.core.database import get_connection, init_schema  # noqa: E402
from auctionresults.core.models import AuctionRecord  # noqa: E402


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="function")
def temp_db() -> Generator[str, None, None]:
    """Create a temporary test database with the full schema.

    Yields:
        Path to temporary database file.
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    with get_connection(db_path) as conn:
        init_schema(conn)

    yield db_path

    # Cleanup
    try:
        os.unlink(db_path)
    except (OSError, PermissionError):
        pass


@pytest.fixture(scope="function")
def test_config(temp_db: str, monkeypatch):
    """Create test configuration with temp database.

    Args:
        temp_db: Path to temporary database.
        monkeypatch: pytest monkeypatch fixture.

    Yields:
        Config object configured for testing.
    """
    # Set environment variables
    monkeypatch.setenv("AUCTIONRESULTS_DB_PATH", temp_db)
    monkeypatch.setenv("AUCTIONRESULTS_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("AUCTIONRESULTS_ENV", "development")

    # Reset config singleton
    from auctionresults.config import reset_config, get_config
    reset_config()

    config = get_config()
    yield config

    # Cleanup
    reset_config()


@pytest.fixture(scope="function")
def scraper_config() -> ScraperConfig:
    """Scraper settings with the production delays, for asserting on them."""
    return ScraperConfig(
        max_concurrency=3,
        retry_attempts=3,
        retry_delay=2.0,
        timeout=30.0,
        max_suburbs_per_city=10,
        max_pages=3,
        suburb_delay=1.0,
        settle_delay=2.0,
        challenge_backoff=30.0,
        batch_size=100,
    )


@pytest.fixture(scope="function")
def make_record():
    """Factory for valid auction records; keyword overrides win."""

    def _make(**overrides) -> AuctionRecord:
        data = {
            "address": "12 Smith Street",
            "suburb": "Castle Hill",
            "state": "NSW",
            "postcode": "2154",
            "result": "sold",
            "auction_date": date(2024, 6, 15),
            "source": "domain",
            "price": 1250000,
        }
        data.update(overrides)
        return AuctionRecord(**data)

    return _make


@pytest.fixture(scope="function")
def melbourne_records(make_record) -> List[AuctionRecord]:
    """Four Richmond results: three sales and one pass-in."""
    common = {"suburb": "Richmond", "state": "VIC", "postcode": "3121",
              "auction_date": date(2024, 6, 15)}
    return [
        make_record(address="1 Swan Street", price=850000, **common),
        make_record(address="2 Church Street", price=1200000, **common),
        make_record(address="3 Bridge Road", price=1800000, **common),
        make_record(address="4 Lennox Street", result="passed_in", price=None, **common),
    ]


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture(scope="function")
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


Response = Union[str, Exception, List[Union[str, Exception]]]


class FakePage:
    def __init__(self, navigator: "FakeNavigator", session_id: str):
        self.navigator = navigator
        self.session_id = session_id
        self.url = None
        self.html = ""

    async def goto(self, url: str) -> str:
        self.html = await self.navigator.fetch(url, session_id=self.session_id)
        self.url = url
        return self.html


class FakeNavigator:
    """In-memory navigator serving canned HTML per URL.

    A response may be a string, an exception to raise, or a list consumed
    one item per fetch (the last item repeats).
    """

    def __init__(self, pages: Dict[str, Response], default: Response = None):
        self.pages = dict(pages)
        self.default = default
        self.fetched: List[str] = []
        self.opened: List[str] = []
        self.released: List[str] = []
        self.active = 0
        self.max_active = 0
        self.started = False
        self.closed = False

    async def __aenter__(self):
        self.started = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def fetch(self, url: str, session_id=None) -> str:
        self.fetched.append(url)
        await asyncio.sleep(0)
        response = self.pages.get(url, self.default)
        if isinstance(response, list):
            item = response.pop(0) if len(response) > 1 else response[0]
            response = item
        if response is None:
            raise KeyError(f"No canned page for {url}")
        if isinstance(response, Exception):
            raise response
        return response

    @asynccontextmanager
    async def page(self):
        session_id = f"fake-{len(self.opened)}"
        self.opened.append(session_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            yield FakePage(self, session_id)
        finally:
            self.active -= 1
            self.released.append(session_id)


@pytest.fixture(scope="function")
def fake_navigator():
    """The FakeNavigator class, for building navigators with canned pages."""
    return FakeNavigator


# =============================================================================
# HTML fixtures
# =============================================================================

SYDNEY_URL = "https://www.domain.com.au/auction-results/sydney/"
CASTLE_HILL_URL = "https://www.domain.com.au/auction-results/sydney/castle-hill-nsw-2154"
BAULKHAM_HILLS_URL = "https://www.domain.com.au/auction-results/sydney/baulkham-hills-nsw-2153"

DOMAIN_REGION_HTML = """
<html><body><main>
  <ul class="suburb-results">
    <li class="suburb-results__suburb-item">
      <a href="/auction-results/sydney/castle-hill-nsw-2154">Castle Hill</a>
    </li>
    <li class="suburb-results__suburb-item">
      <a href="/auction-results/sydney/baulkham-hills-nsw-2153">Baulkham Hills</a>
    </li>
  </ul>
</main></body></html>
"""

DOMAIN_RESULTS_HTML = """
<html><body><main>
  <article data-testid="listing-card">
    <h3><a href="/property/12-smith-street-castle-hill-nsw-2154">12 Smith Street, Castle Hill NSW 2154</a></h3>
    <span data-testid="status">Sold</span>
    <span data-testid="price">$1,250,000</span>
    <div data-testid="property-features">4 Beds 2 Baths 2 Cars</div>
    <span>House</span>
    <span data-testid="agent-name">Jane Citizen</span>
    <span data-testid="agency-name">Ray White Castle Hill</span>
  </article>
  <article data-testid="listing-card">
    <h3>7 Jones Road, Castle Hill NSW 2154</h3>
    <span data-testid="status">Passed in</span>
    <div data-testid="property-features">3 Beds 1 Bath 1 Car</div>
    <span>Townhouse</span>
  </article>
</main></body></html>
"""

CHALLENGE_HTML = """
<html><head><title>Attention Required</title></head>
<body><h1>Please verify you are human</h1></body></html>
"""


@pytest.fixture(scope="function")
def domain_pages() -> Dict[str, str]:
    """Canned Domain pages: one Sydney region with two suburbs."""
    return {
        SYDNEY_URL: DOMAIN_REGION_HTML,
        CASTLE_HILL_URL: DOMAIN_RESULTS_HTML,
        BAULKHAM_HILLS_URL: "<html><body><main><p>No results this week</p></main></body></html>",
    }


@pytest.fixture(scope="function")
def results_html() -> str:
    return DOMAIN_RESULTS_HTML


@pytest.fixture(scope="function")
def challenge_html() -> str:
    return CHALLENGE_HTML
