"""
Data Models for the Auction Results Tracker

Dataclass definitions for auction records, suburb statistics, and scrape runs.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from auctionresults.core.constants import (
    DEFAULT_PROPERTY_TYPE,
    RESULT_SOLD,
    RESULTS,
    RUN_FAILED,
    RUN_SUCCESS,
    SOURCES,
    STATES,
)
from auctionresults.exceptions import ValidationError


@dataclass
class AuctionRecord:
    """A single auction result as scraped from one source."""

    address: str
    suburb: str
    state: str
    postcode: str
    result: str  # "sold", "passed_in" or "withdrawn"
    auction_date: date
    source: str  # "domain" or "rea"
    price: Optional[int] = None
    property_type: str = DEFAULT_PROPERTY_TYPE
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    car_spaces: Optional[int] = None
    agent_name: Optional[str] = None
    agency_name: Optional[str] = None
    listing_url: Optional[str] = None

    def __post_init__(self):
        if not self.address or not self.address.strip():
            raise ValidationError("Auction record requires an address", "address", self.address)
        if self.state not in STATES:
            raise ValidationError(f"Unknown state: {self.state}", "state", self.state)
        if self.result not in RESULTS:
            raise ValidationError(f"Unknown result: {self.result}", "result", self.result)
        if self.source not in SOURCES:
            raise ValidationError(f"Unknown source: {self.source}", "source", self.source)
        if isinstance(self.auction_date, datetime):
            self.auction_date = self.auction_date.date()
        if self.price is not None and self.price <= 0:
            raise ValidationError("Price must be positive", "price", self.price)
        # Only a sale carries a price
        if self.result != RESULT_SOLD:
            self.price = None
        if not self.property_type:
            self.property_type = DEFAULT_PROPERTY_TYPE

    @property
    def identity_key(self) -> Tuple[str, date, str]:
        """Deduplication key: one record per address, date and source."""
        return (self.address, self.auction_date, self.source)

    @property
    def stats_key(self) -> Tuple[str, str, date]:
        """Key of the suburb statistic this record contributes to."""
        return (self.suburb, self.state, self.auction_date)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["auction_date"] = self.auction_date.isoformat()
        return data


@dataclass
class SuburbStatistic:
    """Derived per-suburb, per-date auction statistics."""

    suburb: str
    state: str
    date: date
    total_auctions: int = 0
    sold_count: int = 0
    passed_in_count: int = 0
    withdrawn_count: int = 0
    clearance_rate: float = 0.0
    average_price: Optional[float] = None  # None means no sold-with-price data
    median_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass(frozen=True)
class RunLog:
    """Outcome of one scrape invocation. Immutable once written."""

    source: str
    status: str  # "success" or "failed"
    start_time: datetime
    end_time: datetime
    record_count: int = 0
    error_log: Optional[str] = None

    def __post_init__(self):
        if self.status not in (RUN_SUCCESS, RUN_FAILED):
            raise ValidationError(f"Unknown run status: {self.status}", "status", self.status)

    @property
    def succeeded(self) -> bool:
        return self.status == RUN_SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        data["start_time"] = self.start_time.isoformat()
        data["end_time"] = self.end_time.isoformat()
        return data


@dataclass
class ScrapeResult:
    """What a scraper hands back to the service layer."""

    success: bool
    records: List[AuctionRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def record_count(self) -> int:
        return len(self.records)


@dataclass
class ScrapeContext:
    """Location hints for the page currently being extracted.

    Filled from the suburb link that led to the page; fields left empty are
    recovered from container text where possible.
    """

    source: str
    auction_date: date
    page_url: str = ""
    suburb: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
