"""
Read-side Queries

SQL behind the dashboard API: filtered and paginated auction and suburb
statistic listings, a suburb detail view, weekly trends and recent scrape
runs. Every function takes an open connection from ``get_connection`` and
returns plain dictionaries ready for ``jsonify``.

Sort columns are only ever taken from a whitelist; anything else falls back
to the listing's default order.
"""

import calendar
import math
import sqlite3
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from auctionresults.core.constants import (
    TABLE_AUCTIONS,
    TABLE_SCRAPE_LOGS,
    TABLE_SUBURB_STATS,
)
from auctionresults.core.database import fetch_all, fetch_one
from auctionresults.core.statistics import group_trends_by_week, overall_stats
from auctionresults.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

RECENT_AUCTIONS_LIMIT = 20
HISTORICAL_STATS_LIMIT = 12

AUCTION_SORT_COLUMNS = (
    "address", "suburb", "state", "postcode", "price", "result",
    "auction_date", "source", "property_type", "bedrooms", "bathrooms",
    "car_spaces", "agent_name", "agency_name", "created_at", "updated_at",
)

SUBURB_SORT_COLUMNS = (
    "suburb", "state", "date", "total_auctions", "sold_count",
    "passed_in_count", "withdrawn_count", "clearance_rate",
    "average_price", "median_price",
)

TREND_PERIODS = ("4weeks", "12weeks", "6months", "1year")
DEFAULT_TREND_PERIOD = "12weeks"


def _months_ago(today: date, months: int) -> date:
    year, month = divmod(today.month - 1 - months, 12)
    year += today.year
    month += 1
    day = min(today.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def period_start(period: str, today: Optional[date] = None) -> date:
    """First date included in a trend period.

    Example:
        >>> period_start("4weeks", date(2024, 6, 29))
        datetime.date(2024, 6, 1)
    """
    today = today or date.today()
    if period == "4weeks":
        return today - timedelta(days=28)
    if period == "12weeks":
        return today - timedelta(days=84)
    if period == "6months":
        return _months_ago(today, 6)
    if period == "1year":
        return _months_ago(today, 12)
    raise ValidationError(
        f"Invalid period: {period}. Use one of {', '.join(TREND_PERIODS)}",
        "period", period,
    )


def paginate(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
    """Clamp page/limit and return (page, limit, offset)."""
    page = max(1, page or 1)
    limit = min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE))
    return page, limit, (page - 1) * limit


def order_clause(sort_by: Optional[str], sort_order: Optional[str],
                 allowed: Sequence[str], default: str, default_order: str) -> str:
    column = sort_by if sort_by in allowed else default
    if sort_by in allowed:
        direction = "ASC" if (sort_order or "").lower() == "asc" else "DESC"
    else:
        direction = default_order
    return f"ORDER BY {column} {direction}, id ASC"


def _where(conditions: List[str]) -> str:
    return ("WHERE " + " AND ".join(conditions)) if conditions else ""


def _page_response(rows: List[Dict[str, Any]], total: int, page: int, limit: int) -> Dict[str, Any]:
    return {
        "data": rows,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }


def list_auctions(
    conn: sqlite3.Connection,
    search: Optional[str] = None,
    suburb: Optional[str] = None,
    state: Optional[str] = None,
    result: Optional[str] = None,
    property_type: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Filtered, sorted, paginated auction records.

    ``search`` is a case-insensitive substring match over address, suburb,
    agent and agency; ``property_type`` matches partially. Dates are ISO
    strings and both bounds are inclusive. Default order is newest auction
    first.
    """
    conditions: List[str] = []
    params: List[Any] = []

    if search:
        term = f"%{search.lower()}%"
        conditions.append(
            "(LOWER(address) LIKE ? OR LOWER(suburb) LIKE ? "
            "OR LOWER(COALESCE(agent_name, '')) LIKE ? "
            "OR LOWER(COALESCE(agency_name, '')) LIKE ?)"
        )
        params.extend([term] * 4)
    if suburb:
        conditions.append("suburb = ? COLLATE NOCASE")
        params.append(suburb)
    if state:
        conditions.append("state = ?")
        params.append(state.upper())
    if result:
        conditions.append("result = ?")
        params.append(result)
    if property_type:
        conditions.append("LOWER(property_type) LIKE ?")
        params.append(f"%{property_type.lower()}%")
    if date_from:
        conditions.append("auction_date >= ?")
        params.append(date_from)
    if date_to:
        conditions.append("auction_date <= ?")
        params.append(date_to)
    if min_price is not None:
        conditions.append("price >= ?")
        params.append(min_price)
    if max_price is not None:
        conditions.append("price <= ?")
        params.append(max_price)

    page, limit, offset = paginate(page, limit)
    where = _where(conditions)
    order = order_clause(sort_by, sort_order, AUCTION_SORT_COLUMNS, "auction_date", "DESC")

    total = fetch_one(conn, f"SELECT COUNT(*) AS count FROM {TABLE_AUCTIONS} {where}", tuple(params))
    rows = fetch_all(
        conn,
        f"SELECT * FROM {TABLE_AUCTIONS} {where} {order} LIMIT ? OFFSET ?",
        tuple(params) + (limit, offset),
    )
    return _page_response(rows, total["count"] if total else 0, page, limit)


def list_suburb_statistics(
    conn: sqlite3.Connection,
    state: Optional[str] = None,
    on_date: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Paginated suburb statistics, alphabetical by suburb by default."""
    conditions: List[str] = []
    params: List[Any] = []

    if state:
        conditions.append("state = ?")
        params.append(state.upper())
    if on_date:
        conditions.append("date = ?")
        params.append(on_date)
    if search:
        conditions.append("LOWER(suburb) LIKE ?")
        params.append(f"%{search.lower()}%")

    page, limit, offset = paginate(page, limit)
    where = _where(conditions)
    order = order_clause(sort_by, sort_order, SUBURB_SORT_COLUMNS, "suburb", "ASC")

    total = fetch_one(conn, f"SELECT COUNT(*) AS count FROM {TABLE_SUBURB_STATS} {where}", tuple(params))
    rows = fetch_all(
        conn,
        f"SELECT * FROM {TABLE_SUBURB_STATS} {where} {order} LIMIT ? OFFSET ?",
        tuple(params) + (limit, offset),
    )
    return _page_response(rows, total["count"] if total else 0, page, limit)


def suburb_detail(conn: sqlite3.Connection, suburb: str,
                  state: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Latest statistics, recent auctions and statistic history for a suburb.

    Returns:
        None if the suburb has no statistics at all.
    """
    conditions = ["suburb = ? COLLATE NOCASE"]
    params: List[Any] = [suburb]
    if state:
        conditions.append("state = ?")
        params.append(state.upper())
    where = _where(conditions)

    current = fetch_one(
        conn,
        f"SELECT * FROM {TABLE_SUBURB_STATS} {where} ORDER BY date DESC LIMIT 1",
        tuple(params),
    )
    if current is None:
        return None

    recent = fetch_all(
        conn,
        f"SELECT * FROM {TABLE_AUCTIONS} {where} ORDER BY auction_date DESC, id DESC LIMIT ?",
        tuple(params) + (RECENT_AUCTIONS_LIMIT,),
    )
    history = fetch_all(
        conn,
        f"SELECT * FROM {TABLE_SUBURB_STATS} {where} ORDER BY date DESC LIMIT ?",
        tuple(params) + (HISTORICAL_STATS_LIMIT,),
    )
    return {
        "current_stats": current,
        "recent_auctions": recent,
        "historical_stats": history,
    }


def trends(conn: sqlite3.Connection, suburb: Optional[str] = None,
           state: Optional[str] = None, period: Optional[str] = None,
           today: Optional[date] = None) -> Dict[str, Any]:
    """Weekly trend buckets and overall totals for a period.

    Raises:
        ValidationError: If ``period`` is not one of TREND_PERIODS.
    """
    period = period or DEFAULT_TREND_PERIOD
    today = today or date.today()
    start = period_start(period, today)

    conditions = ["date >= ?", "date <= ?"]
    params: List[Any] = [start.isoformat(), today.isoformat()]
    if suburb:
        conditions.append("suburb = ? COLLATE NOCASE")
        params.append(suburb)
    if state:
        conditions.append("state = ?")
        params.append(state.upper())

    rows = fetch_all(conn, f"""
        SELECT suburb, state, date, total_auctions, sold_count,
               clearance_rate, average_price, median_price
        FROM {TABLE_SUBURB_STATS}
        {_where(conditions)}
        ORDER BY date ASC
    """, tuple(params))

    return {
        "trends": group_trends_by_week(rows),
        "overall_stats": overall_stats(rows),
        "period": period,
    }


def recent_run_logs(conn: sqlite3.Connection, source: Optional[str] = None,
                    limit: int = 20) -> List[Dict[str, Any]]:
    """Most recent scrape runs, newest first."""
    limit = min(MAX_PAGE_SIZE, max(1, limit))
    if source:
        return fetch_all(conn, f"""
            SELECT * FROM {TABLE_SCRAPE_LOGS}
            WHERE source = ?
            ORDER BY start_time DESC, id DESC
            LIMIT ?
        """, (source, limit))
    return fetch_all(conn, f"""
        SELECT * FROM {TABLE_SCRAPE_LOGS}
        ORDER BY start_time DESC, id DESC
        LIMIT ?
    """, (limit,))
