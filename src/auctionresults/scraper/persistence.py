"""
Record persistence and statistics refresh.

Records are written in batches. Each record is upserted on its own so one
bad row never loses the rest of the batch; after every batch the suburb
statistics for each (suburb, state, date) key the batch touched are
recomputed from everything stored under that key. An update that moves a
record to another suburb or state touches both its old and new key; a key
left with no records loses its statistic.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Set

from auctionresults.core.constants import DEFAULT_BATCH_SIZE
from auctionresults.core.models import AuctionRecord
from auctionresults.core.statistics import compute_suburb_statistic
from auctionresults.core.storage import StatsKey, StoragePort
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class PersistSummary:
    """Counts from one ``persist_records`` call."""

    inserted: int = 0
    updated: int = 0
    failed: int = 0
    stats_updated: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def saved(self) -> int:
        return self.inserted + self.updated


def refresh_statistics(storage: StoragePort, keys: Set[StatsKey]) -> int:
    """Recompute and store the statistic for each key; returns how many were written."""
    written = 0
    for suburb, state, on_date in sorted(keys):
        try:
            records = storage.auctions_for_key(suburb, state, on_date)
            if records:
                storage.upsert_suburb_statistic(
                    compute_suburb_statistic(records, suburb, state, on_date)
                )
            else:
                storage.delete_suburb_statistic(suburb, state, on_date)
            written += 1
        except Exception as e:
            logger.error("Statistics refresh failed for %s %s %s: %s", suburb, state, on_date, e)
    return written


def persist_records(
    storage: StoragePort,
    records: Sequence[AuctionRecord],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> PersistSummary:
    """Upsert records and refresh the statistics they affect.

    Within one call a later record with the same identity key overwrites an
    earlier one.

    Args:
        storage: Storage implementation.
        records: Records to save.
        batch_size: Records per batch.

    Returns:
        PersistSummary with inserted/updated/failed counts.
    """
    summary = PersistSummary()
    batch_size = max(1, batch_size)

    for start in range(0, len(records), batch_size):
        batch = records[start:start + batch_size]
        touched: Set[StatsKey] = set()

        for record in batch:
            try:
                previous = storage.stored_stats_key(record)
                if storage.upsert_auction(record):
                    summary.inserted += 1
                else:
                    summary.updated += 1
                touched.add(record.stats_key)
                if previous is not None:
                    touched.add(previous)
            except Exception as e:
                summary.failed += 1
                summary.errors.append(f"{record.address}: {e}")
                logger.error("Failed to save %s (%s): %s", record.address, record.source, e)

        summary.stats_updated += refresh_statistics(storage, touched)
        logger.debug(
            "Batch %d: %d records, %d statistics keys",
            start // batch_size + 1, len(batch), len(touched),
        )

    logger.info(
        "Persisted %d records (%d new, %d updated, %d failed)",
        summary.saved, summary.inserted, summary.updated, summary.failed,
    )
    return summary
