"""SQLite-backed keyed counters with a fixed TTL window.

Used to throttle contact and error-report submissions per client IP. State
lives in a database file so several processes can share it, and the clock is
injectable so tests control time.
"""

import logging
import sqlite3
import time
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "rate_limits.db"


class RateLimitStore:
    """Counts hits per key inside a window that starts at the first hit."""

    def __init__(self, db_path: Optional[str] = None, clock: Callable[[], float] = time.time):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.clock = clock
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=10)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self):
        conn = self._get_conn()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS rate_limits (
                    key TEXT PRIMARY KEY,
                    count INTEGER NOT NULL,
                    reset_at REAL NOT NULL
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def hit(self, key: str, limit: int, window_seconds: float) -> bool:
        """Record one attempt for `key`. False once the key exceeds `limit` in its window."""
        now = self.clock()
        conn = self._get_conn()
        try:
            with conn:
                row = conn.execute(
                    "SELECT count, reset_at FROM rate_limits WHERE key = ?", (key,)
                ).fetchone()
                if row is None or now > row[1]:
                    conn.execute(
                        "INSERT OR REPLACE INTO rate_limits (key, count, reset_at) VALUES (?, 1, ?)",
                        (key, now + window_seconds),
                    )
                    return True
                if row[0] >= limit:
                    logger.info("Rate limit reached for %s", key)
                    return False
                conn.execute("UPDATE rate_limits SET count = count + 1 WHERE key = ?", (key,))
                return True
        finally:
            conn.close()

    def purge_expired(self) -> int:
        conn = self._get_conn()
        try:
            with conn:
                cursor = conn.execute("DELETE FROM rate_limits WHERE reset_at < ?", (self.clock(),))
                return cursor.rowcount
        finally:
            conn.close()
