"""Database connection management."""
import sqlite3
import os
from contextlib import contextmanager
from typing import Iterator, Optional

from ..config import DB_PATH


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Create and return a database connection."""
    conn = sqlite3.connect(db_path or DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_cursor(db_path: Optional[str] = None) -> Iterator[sqlite3.Cursor]:
    """Context manager for database operations."""
    conn = get_connection(db_path)
    try:
        cursor = conn.cursor()
        yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def ensure_db_exists(db_path: Optional[str] = None) -> None:
    """Ensure database directory and tables exist."""
    path = db_path or DB_PATH
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with get_cursor(path) as cur:
        # Today's ledger, keyed by application
        cur.execute("""
            CREATE TABLE IF NOT EXISTS today_usage (
                app_name TEXT PRIMARY KEY,
                seconds REAL NOT NULL
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS tracker_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        # Archived days
        cur.execute("""
            CREATE TABLE IF NOT EXISTS history_days (
                day TEXT PRIMARY KEY,
                total_seconds REAL NOT NULL
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS history_usage (
                day TEXT NOT NULL,
                app_name TEXT NOT NULL,
                seconds REAL NOT NULL,
                PRIMARY KEY (day, app_name)
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS notification_rules (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                app_name TEXT NOT NULL,
                time_limit REAL NOT NULL,
                enabled INTEGER NOT NULL DEFAULT 1,
                custom_message TEXT
            )
        """)
