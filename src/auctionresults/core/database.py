"""
Database Helper Functions

Provides context managers and helper functions for SQLite database operations,
plus the schema for auctions, suburb statistics and scrape logs.

Usage:
    from auctionresults.core.database import get_connection, fetch_all

    with get_connection() as conn:
        results = fetch_all(conn, "SELECT * FROM auctions")
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple, Union

from auctionresults.config import get_config
from auctionresults.core.constants import (
    TABLE_AUCTIONS,
    TABLE_SCRAPE_LOGS,
    TABLE_SUBURB_STATS,
)
from auctionresults.exceptions import DatabaseConnectionError, DatabaseError
from auctionresults.logging_config import get_logger

logger = get_logger(__name__)

# Type aliases
Row = Dict[str, Any]
Params = Union[Tuple, Dict[str, Any], None]

SCHEMA = (
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_AUCTIONS} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        address TEXT NOT NULL,
        suburb TEXT NOT NULL,
        state TEXT NOT NULL,
        postcode TEXT,
        price INTEGER,
        result TEXT NOT NULL,
        auction_date TEXT NOT NULL,
        source TEXT NOT NULL,
        property_type TEXT NOT NULL DEFAULT 'House',
        bedrooms INTEGER,
        bathrooms INTEGER,
        car_spaces INTEGER,
        agent_name TEXT,
        agency_name TEXT,
        listing_url TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (address, auction_date, source)
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS idx_auctions_stats_key
    ON {TABLE_AUCTIONS} (suburb, state, auction_date)
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_SUBURB_STATS} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        suburb TEXT NOT NULL,
        state TEXT NOT NULL,
        date TEXT NOT NULL,
        total_auctions INTEGER NOT NULL,
        sold_count INTEGER NOT NULL,
        passed_in_count INTEGER NOT NULL,
        withdrawn_count INTEGER NOT NULL,
        clearance_rate REAL NOT NULL,
        average_price REAL,
        median_price REAL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (suburb, state, date)
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_SCRAPE_LOGS} (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        source TEXT NOT NULL,
        status TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        record_count INTEGER NOT NULL DEFAULT 0,
        error_log TEXT
    )
    """,
)


def dict_factory(cursor: sqlite3.Cursor, row: tuple) -> Dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


@contextmanager
def get_connection(
    db_path: Optional[str] = None,
    as_dict: bool = True,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    Args:
        db_path: Path to database file. Uses config default if not specified.
        as_dict: If True, rows are returned as dictionaries.

    Yields:
        SQLite connection object.

    Raises:
        DatabaseConnectionError: If unable to connect to the database.
    """
    if db_path is None:
        db_path = get_config().database.path

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = None
    try:
        conn = sqlite3.connect(db_path)
    except sqlite3.Error as e:
        logger.error("Database connection error: %s", e)
        raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e

    try:
        conn.row_factory = dict_factory if as_dict else sqlite3.Row
        logger.debug("Connected to database: %s", db_path)
        yield conn
    finally:
        conn.close()
        logger.debug("Closed database connection")


def init_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes if they do not exist yet."""
    try:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()
    except sqlite3.Error as e:
        logger.error("Schema initialisation failed: %s", e)
        raise DatabaseError(f"Schema initialisation failed: {e}") from e


def fetch_all(
    conn: sqlite3.Connection,
    query: str,
    params: Params = None,
) -> List[Row]:
    """Execute a query and fetch all results.

    Raises:
        DatabaseError: If query execution fails.
    """
    try:
        cursor = conn.cursor()
        if params:
            cursor.execute(query, params)
        else:
            cursor.execute(query)
        return cursor.fetchall()
    except sqlite3.Error as e:
        logger.error("Query failed: %s - Error: %s", query[:100], e)
        raise DatabaseError(f"Query failed: {e}") from e


def fetch_one(
    conn: sqlite3.Connection,
    query: str,
    params: Params = None,
) -> Optional[Row]:
    """Execute a query and fetch one result, or None if there is none.

    Raises:
        DatabaseError: If query execution fails.
    """
    try:
        cursor = conn.cursor()
        if params:
            cursor.execute(query, params)
        else:
            cursor.execute(query)
        return cursor.fetchone()
    except sqlite3.Error as e:
        logger.error("Query failed: %s - Error: %s", query[:100], e)
        raise DatabaseError(f"Query failed: {e}") from e


def execute(
    conn: sqlite3.Connection,
    query: str,
    params: Params = None,
    commit: bool = True,
) -> int:
    """Execute a query (INSERT, UPDATE, DELETE).

    Returns:
        Number of rows affected.

    Raises:
        DatabaseError: If query execution fails.
    """
    try:
        cursor = conn.cursor()
        if params:
            cursor.execute(query, params)
        else:
            cursor.execute(query)
        if commit:
            conn.commit()
        return cursor.rowcount
    except sqlite3.Error as e:
        logger.error("Execute failed: %s - Error: %s", query[:100], e)
        raise DatabaseError(f"Execute failed: {e}") from e
