"""
Unit tests for data models.
"""

import dataclasses
from datetime import date, datetime

import pytest

from auctionresults.core.models import AuctionRecord, RunLog, ScrapeResult
from auctionresults.exceptions import ValidationError


class TestAuctionRecord:
    """Tests for AuctionRecord validation."""

    def test_valid_record(self, make_record):
        record = make_record()
        assert record.identity_key == ("12 Smith Street", date(2024, 6, 15), "domain")
        assert record.stats_key == ("Castle Hill", "NSW", date(2024, 6, 15))

    def test_price_dropped_unless_sold(self, make_record):
        assert make_record(result="passed_in", price=900000).price is None
        assert make_record(result="withdrawn", price=900000).price is None

    @pytest.mark.parametrize("field,value", [
        ("state", "XYZ"),
        ("result", "unknown"),
        ("source", "allhomes"),
        ("address", "   "),
        ("price", 0),
    ])
    def test_invalid_fields(self, make_record, field, value):
        with pytest.raises(ValidationError) as exc_info:
            make_record(**{field: value})
        assert exc_info.value.field == field

    def test_datetime_auction_date_truncated(self, make_record):
        record = make_record(auction_date=datetime(2024, 6, 15, 18, 30))
        assert record.auction_date == date(2024, 6, 15)

    def test_empty_property_type_defaults(self, make_record):
        assert make_record(property_type="").property_type == "House"

    def test_to_dict(self, make_record):
        data = make_record().to_dict()
        assert data["auction_date"] == "2024-06-15"
        assert data["price"] == 1250000


class TestRunLog:
    """Tests for RunLog."""

    def test_immutable(self):
        log = RunLog(
            source="domain",
            status="success",
            start_time=datetime(2024, 6, 15, 10, 0),
            end_time=datetime(2024, 6, 15, 10, 5),
            record_count=12,
        )
        assert log.succeeded
        with pytest.raises(dataclasses.FrozenInstanceError):
            log.record_count = 13

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            RunLog(source="domain", status="partial",
                   start_time=datetime(2024, 6, 15), end_time=datetime(2024, 6, 15))

    def test_to_dict(self):
        log = RunLog(source="rea", status="failed",
                     start_time=datetime(2024, 6, 15, 10, 0),
                     end_time=datetime(2024, 6, 15, 10, 1),
                     error_log="Navigation failed")
        data = log.to_dict()
        assert data["start_time"] == "2024-06-15T10:00:00"
        assert data["error_log"] == "Navigation failed"


class TestScrapeResult:
    def test_record_count(self, make_record):
        result = ScrapeResult(success=True, records=[make_record(), make_record(address="1 A Street")])
        assert result.record_count == 2
