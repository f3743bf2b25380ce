"""
Storage Port

The scraper pipeline only ever talks to storage through ``StoragePort``:
upsert an auction record by identity key, look up where a stored record
currently counts, read back the records for a statistics key, upsert or
delete a suburb statistic, append a run log.

``SQLiteStorage`` is the production implementation on top of
``auctionresults.core.database``; tests can substitute any object with the
same methods.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional, Tuple

from auctionresults.core.constants import (
    TABLE_AUCTIONS,
    TABLE_SCRAPE_LOGS,
    TABLE_SUBURB_STATS,
)
from auctionresults.core.database import (
    execute,
    fetch_all,
    fetch_one,
    get_connection,
    init_schema,
)
from auctionresults.core.models import AuctionRecord, RunLog, SuburbStatistic
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

StatsKey = Tuple[str, str, date]


class StoragePort(ABC):
    """Persistence operations the scraper pipeline depends on."""

    @abstractmethod
    def upsert_auction(self, record: AuctionRecord) -> bool:
        """Insert or update by (address, auction_date, source).

        Returns:
            True if a new row was inserted, False if an existing one was updated.
        """

    @abstractmethod
    def stored_stats_key(self, record: AuctionRecord) -> Optional[StatsKey]:
        """Statistics key of the stored row with the record's identity key, if any."""

    @abstractmethod
    def auctions_for_key(self, suburb: str, state: str, on_date: date) -> List[AuctionRecord]:
        """All stored records for a (suburb, state, date) key."""

    @abstractmethod
    def upsert_suburb_statistic(self, stat: SuburbStatistic) -> None:
        """Insert or replace the statistic for its (suburb, state, date) key."""

    @abstractmethod
    def delete_suburb_statistic(self, suburb: str, state: str, on_date: date) -> None:
        """Remove the statistic for a key that no longer has any records."""

    @abstractmethod
    def append_run_log(self, log: RunLog) -> None:
        """Record a finished scrape run."""


def _row_to_record(row: dict) -> AuctionRecord:
    return AuctionRecord(
        address=row["address"],
        suburb=row["suburb"],
        state=row["state"],
        postcode=row["postcode"] or "",
        price=row["price"],
        result=row["result"],
        auction_date=date.fromisoformat(row["auction_date"]),
        source=row["source"],
        property_type=row["property_type"],
        bedrooms=row["bedrooms"],
        bathrooms=row["bathrooms"],
        car_spaces=row["car_spaces"],
        agent_name=row["agent_name"],
        agency_name=row["agency_name"],
        listing_url=row["listing_url"],
    )


class SQLiteStorage(StoragePort):
    """StoragePort backed by the project SQLite database."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        with get_connection(self.db_path) as conn:
            init_schema(conn)

    def upsert_auction(self, record: AuctionRecord) -> bool:
        now = datetime.now().isoformat()
        auction_date = record.auction_date.isoformat()

        with get_connection(self.db_path) as conn:
            existing = fetch_one(conn, f"""
                SELECT id FROM {TABLE_AUCTIONS}
                WHERE address = ? AND auction_date = ? AND source = ?
            """, (record.address, auction_date, record.source))

            if existing:
                execute(conn, f"""
                    UPDATE {TABLE_AUCTIONS}
                    SET suburb = ?, state = ?, postcode = ?,
                        price = ?, result = ?, property_type = ?,
                        bedrooms = ?, bathrooms = ?, car_spaces = ?,
                        agent_name = ?, agency_name = ?, listing_url = ?,
                        updated_at = ?
                    WHERE id = ?
                """, (
                    record.suburb, record.state, record.postcode,
                    record.price, record.result, record.property_type,
                    record.bedrooms, record.bathrooms, record.car_spaces,
                    record.agent_name, record.agency_name, record.listing_url,
                    now, existing["id"],
                ))
                return False

            execute(conn, f"""
                INSERT INTO {TABLE_AUCTIONS} (
                    address, suburb, state, postcode, price, result,
                    auction_date, source, property_type, bedrooms, bathrooms,
                    car_spaces, agent_name, agency_name, listing_url,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                record.address, record.suburb, record.state, record.postcode,
                record.price, record.result, auction_date, record.source,
                record.property_type, record.bedrooms, record.bathrooms,
                record.car_spaces, record.agent_name, record.agency_name,
                record.listing_url, now, now,
            ))
            return True

    def stored_stats_key(self, record: AuctionRecord) -> Optional[StatsKey]:
        with get_connection(self.db_path) as conn:
            row = fetch_one(conn, f"""
                SELECT suburb, state FROM {TABLE_AUCTIONS}
                WHERE address = ? AND auction_date = ? AND source = ?
            """, (record.address, record.auction_date.isoformat(), record.source))
        if row is None:
            return None
        return (row["suburb"], row["state"], record.auction_date)

    def auctions_for_key(self, suburb: str, state: str, on_date: date) -> List[AuctionRecord]:
        with get_connection(self.db_path) as conn:
            rows = fetch_all(conn, f"""
                SELECT * FROM {TABLE_AUCTIONS}
                WHERE suburb = ? AND state = ? AND auction_date = ?
            """, (suburb, state, on_date.isoformat()))
        return [_row_to_record(row) for row in rows]

    def upsert_suburb_statistic(self, stat: SuburbStatistic) -> None:
        now = datetime.now().isoformat()
        with get_connection(self.db_path) as conn:
            execute(conn, f"""
                INSERT INTO {TABLE_SUBURB_STATS} (
                    suburb, state, date, total_auctions, sold_count,
                    passed_in_count, withdrawn_count, clearance_rate,
                    average_price, median_price, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (suburb, state, date) DO UPDATE SET
                    total_auctions = excluded.total_auctions,
                    sold_count = excluded.sold_count,
                    passed_in_count = excluded.passed_in_count,
                    withdrawn_count = excluded.withdrawn_count,
                    clearance_rate = excluded.clearance_rate,
                    average_price = excluded.average_price,
                    median_price = excluded.median_price,
                    updated_at = excluded.updated_at
            """, (
                stat.suburb, stat.state, stat.date.isoformat(),
                stat.total_auctions, stat.sold_count, stat.passed_in_count,
                stat.withdrawn_count, stat.clearance_rate,
                stat.average_price, stat.median_price, now, now,
            ))

    def delete_suburb_statistic(self, suburb: str, state: str, on_date: date) -> None:
        with get_connection(self.db_path) as conn:
            execute(conn, f"""
                DELETE FROM {TABLE_SUBURB_STATS}
                WHERE suburb = ? AND state = ? AND date = ?
            """, (suburb, state, on_date.isoformat()))

    def append_run_log(self, log: RunLog) -> None:
        with get_connection(self.db_path) as conn:
            execute(conn, f"""
                INSERT INTO {TABLE_SCRAPE_LOGS} (
                    source, status, start_time, end_time, record_count, error_log
                ) VALUES (?, ?, ?, ?, ?, ?)
            """, (
                log.source, log.status, log.start_time.isoformat(),
                log.end_time.isoformat(), log.record_count, log.error_log,
            ))
        logger.debug("Run log written for %s (%s)", log.source, log.status)
