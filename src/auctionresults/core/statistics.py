"""
Suburb Statistics

Pure aggregation over auction records: per-suburb-per-date counts, clearance
rate and sold price summaries, plus the weekly trend roll-ups the dashboard
API serves.

Statistics are always recomputed from the complete set of records for a
(suburb, state, date) key, never adjusted incrementally.
"""

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from auctionresults.core.constants import (
    RESULT_PASSED_IN,
    RESULT_SOLD,
    RESULT_WITHDRAWN,
)
from auctionresults.core.models import AuctionRecord, SuburbStatistic
from auctionresults.utils.date_parser import parse_date

Number = Union[int, float]


def calculate_median(values: Sequence[Number]) -> Optional[float]:
    """Median using the midpoint rule for even-length input.

    Example:
        >>> calculate_median([850000, 1200000, 1800000])
        1200000
        >>> calculate_median([1, 2, 3, 4])
        2.5
    """
    if not values:
        return None

    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def clearance_rate(sold_count: int, total: int) -> float:
    """Percentage of auctions that sold; 0 when there were none."""
    if total == 0:
        return 0.0
    return sold_count / total * 100


def compute_suburb_statistic(
    records: Iterable[AuctionRecord],
    suburb: str,
    state: str,
    on_date: date,
) -> SuburbStatistic:
    """Aggregate the records sharing a (suburb, state, date) key.

    Args:
        records: Every stored record for the key.
        suburb: Suburb name of the key.
        state: State code of the key.
        on_date: Auction date of the key.

    Returns:
        SuburbStatistic with average/median left as None when no sold
        record carries a price.
    """
    records = list(records)
    total = len(records)
    sold = sum(1 for r in records if r.result == RESULT_SOLD)
    passed_in = sum(1 for r in records if r.result == RESULT_PASSED_IN)
    withdrawn = sum(1 for r in records if r.result == RESULT_WITHDRAWN)

    sold_prices = [r.price for r in records if r.result == RESULT_SOLD and r.price]

    average = sum(sold_prices) / len(sold_prices) if sold_prices else None

    return SuburbStatistic(
        suburb=suburb,
        state=state,
        date=on_date,
        total_auctions=total,
        sold_count=sold,
        passed_in_count=passed_in,
        withdrawn_count=withdrawn,
        clearance_rate=clearance_rate(sold, total),
        average_price=average,
        median_price=calculate_median(sold_prices),
    )


def week_start(value: Union[date, str]) -> date:
    """Monday of the week containing ``value``."""
    if isinstance(value, str):
        value = parse_date(value).date()
    return value - timedelta(days=value.weekday())


def group_trends_by_week(stats: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Roll suburb statistic rows up into weekly buckets.

    Each row needs ``date``, ``total_auctions``, ``sold_count`` and
    ``average_price``. The weekly average price is weighted by sold count.
    """
    weeks: Dict[date, Dict[str, Any]] = {}

    for row in stats:
        key = week_start(row["date"])
        bucket = weeks.setdefault(key, {
            "week": key.isoformat(),
            "date": row["date"],
            "total_auctions": 0,
            "sold_count": 0,
            "_total_value": 0.0,
            "_priced_sold": 0,
        })
        bucket["total_auctions"] += row["total_auctions"]
        bucket["sold_count"] += row["sold_count"]
        if row.get("average_price"):
            bucket["_total_value"] += row["average_price"] * row["sold_count"]
            bucket["_priced_sold"] += row["sold_count"]

    trends = []
    for key in sorted(weeks):
        bucket = weeks[key]
        priced = bucket.pop("_priced_sold")
        total_value = bucket.pop("_total_value")
        bucket["clearance_rate"] = clearance_rate(bucket["sold_count"], bucket["total_auctions"])
        bucket["average_price"] = total_value / priced if priced else None
        trends.append(bucket)
    return trends


def overall_stats(stats: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals across all statistic rows in a trend window."""
    total = sum(row["total_auctions"] for row in stats)
    sold = sum(row["sold_count"] for row in stats)

    priced = [row for row in stats if row.get("average_price") and row["sold_count"] > 0]
    total_value = sum(row["average_price"] * row["sold_count"] for row in priced)
    priced_sold = sum(row["sold_count"] for row in priced)

    return {
        "total_auctions": total,
        "total_sold": sold,
        "overall_clearance_rate": clearance_rate(sold, total),
        "average_price": total_value / priced_sold if priced_sold else None,
    }
