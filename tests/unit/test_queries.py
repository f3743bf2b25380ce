"""
Unit tests for the read-side queries behind the API.
"""

from datetime import date, datetime

import pytest

from auctionresults.core.database import get_connection
from auctionresults.core.models import RunLog
from auctionresults.core.queries import (
    list_auctions,
    list_suburb_statistics,
    paginate,
    period_start,
    recent_run_logs,
    suburb_detail,
    trends,
)
from auctionresults.core.storage import SQLiteStorage
from auctionresults.exceptions import ValidationError
from auctionresults.scraper.persistence import persist_records


@pytest.fixture
def seeded_db(temp_db, melbourne_records, make_record):
    records = melbourne_records + [
        make_record(auction_date=date(2024, 6, 22), agency_name="Ray White Castle Hill",
                    agent_name="Jane Citizen", property_type="Townhouse"),
    ]
    persist_records(SQLiteStorage(temp_db), records)
    return temp_db


class TestHelpers:
    """Tests for pagination and period helpers."""

    def test_paginate_defaults(self):
        assert paginate(None, None) == (1, 20, 0)

    def test_paginate_clamps(self):
        assert paginate(0, 1000) == (1, 100, 0)
        assert paginate(3, 2) == (3, 2, 4)

    @pytest.mark.parametrize("period,today,expected", [
        ("4weeks", date(2024, 6, 29), date(2024, 6, 1)),
        ("12weeks", date(2024, 6, 29), date(2024, 4, 6)),
        ("6months", date(2024, 8, 31), date(2024, 2, 29)),
        ("1year", date(2024, 2, 29), date(2023, 2, 28)),
    ])
    def test_period_start(self, period, today, expected):
        assert period_start(period, today) == expected

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            period_start("fortnight", date(2024, 6, 29))


class TestListAuctions:
    """Tests for list_auctions function."""

    def query(self, db_path, **kwargs):
        with get_connection(db_path) as conn:
            return list_auctions(conn, **kwargs)

    def test_default_newest_first(self, seeded_db):
        result = self.query(seeded_db)
        assert result["pagination"] == {"total": 5, "page": 1, "limit": 20, "total_pages": 1}
        assert result["data"][0]["suburb"] == "Castle Hill"

    def test_search_covers_agency(self, seeded_db):
        result = self.query(seeded_db, search="RAY WHITE")
        assert [row["address"] for row in result["data"]] == ["12 Smith Street"]

    def test_search_address(self, seeded_db):
        assert self.query(seeded_db, search="lennox")["pagination"]["total"] == 1

    def test_filters(self, seeded_db):
        assert self.query(seeded_db, state="vic")["pagination"]["total"] == 4
        assert self.query(seeded_db, result="passed_in")["pagination"]["total"] == 1
        assert self.query(seeded_db, suburb="RICHMOND")["pagination"]["total"] == 4
        assert self.query(seeded_db, property_type="town")["pagination"]["total"] == 1
        assert self.query(seeded_db, min_price=1000000)["pagination"]["total"] == 3
        assert self.query(seeded_db, max_price=900000)["pagination"]["total"] == 1

    def test_date_range_inclusive(self, seeded_db):
        result = self.query(seeded_db, date_from="2024-06-15", date_to="2024-06-15")
        assert result["pagination"]["total"] == 4

    def test_sort_by_price(self, seeded_db):
        result = self.query(seeded_db, sort_by="price", sort_order="desc")
        assert result["data"][0]["price"] == 1800000

    def test_unknown_sort_column_uses_default(self, seeded_db):
        result = self.query(seeded_db, sort_by="price; DROP TABLE auctions", sort_order="asc")
        assert result["data"][0]["suburb"] == "Castle Hill"
        assert self.query(seeded_db)["pagination"]["total"] == 5

    def test_pagination(self, seeded_db):
        result = self.query(seeded_db, page=3, limit=2)
        assert len(result["data"]) == 1
        assert result["pagination"]["total_pages"] == 3

    def test_empty(self, temp_db):
        result = self.query(temp_db)
        assert result["data"] == []
        assert result["pagination"]["total_pages"] == 0


class TestSuburbQueries:
    """Tests for suburb statistics listing and detail."""

    def test_alphabetical_by_default(self, seeded_db):
        with get_connection(seeded_db) as conn:
            result = list_suburb_statistics(conn)
        assert [row["suburb"] for row in result["data"]] == ["Castle Hill", "Richmond"]

    def test_sort_by_clearance(self, seeded_db):
        with get_connection(seeded_db) as conn:
            result = list_suburb_statistics(conn, sort_by="clearance_rate", sort_order="asc")
        assert [row["clearance_rate"] for row in result["data"]] == [75.0, 100.0]

    def test_filters(self, seeded_db):
        with get_connection(seeded_db) as conn:
            assert list_suburb_statistics(conn, state="NSW")["pagination"]["total"] == 1
            assert list_suburb_statistics(conn, on_date="2024-06-15")["pagination"]["total"] == 1
            assert list_suburb_statistics(conn, search="rich")["pagination"]["total"] == 1

    def test_detail(self, seeded_db):
        with get_connection(seeded_db) as conn:
            detail = suburb_detail(conn, "richmond")
        assert detail["current_stats"]["total_auctions"] == 4
        assert len(detail["recent_auctions"]) == 4
        assert len(detail["historical_stats"]) == 1

    def test_detail_unknown(self, seeded_db):
        with get_connection(seeded_db) as conn:
            assert suburb_detail(conn, "Atlantis") is None


class TestTrends:
    def test_weekly_buckets(self, seeded_db):
        with get_connection(seeded_db) as conn:
            data = trends(conn, period="4weeks", today=date(2024, 6, 30))

        assert data["period"] == "4weeks"
        assert [bucket["week"] for bucket in data["trends"]] == ["2024-06-10", "2024-06-17"]
        assert data["overall_stats"]["total_auctions"] == 5
        assert data["overall_stats"]["total_sold"] == 4
        assert data["overall_stats"]["overall_clearance_rate"] == 80.0

    def test_window_excludes_old_rows(self, seeded_db):
        with get_connection(seeded_db) as conn:
            data = trends(conn, period="4weeks", today=date(2024, 8, 30))
        assert data["trends"] == []
        assert data["overall_stats"]["total_auctions"] == 0

    def test_suburb_filter(self, seeded_db):
        with get_connection(seeded_db) as conn:
            data = trends(conn, suburb="castle hill", today=date(2024, 6, 30))
        assert data["period"] == "12weeks"
        assert data["overall_stats"]["total_auctions"] == 1


class TestRecentRunLogs:
    def test_newest_first_and_filtered(self, temp_db):
        storage = SQLiteStorage(temp_db)
        for hour, source in ((9, "domain"), (10, "rea"), (11, "domain")):
            storage.append_run_log(RunLog(
                source=source, status="success",
                start_time=datetime(2024, 6, 15, hour), end_time=datetime(2024, 6, 15, hour, 5),
            ))

        with get_connection(temp_db) as conn:
            logs = recent_run_logs(conn)
            domain_logs = recent_run_logs(conn, source="domain", limit=1)

        assert [log["start_time"] for log in logs] == [
            "2024-06-15T11:00:00", "2024-06-15T10:00:00", "2024-06-15T09:00:00",
        ]
        assert len(domain_logs) == 1
        assert domain_logs[0]["start_time"] == "2024-06-15T11:00:00"
