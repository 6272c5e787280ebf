"""Sliding-window rate limiting for the chat endpoint, backed by SQLite."""

import hashlib
import logging
import sqlite3
import threading
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
DEFAULT_WINDOW_SECONDS = 60


class RateLimiter:
    """Counts requests per caller over a sliding time window.

    Callers are keyed by a SHA-256 digest of their token so that bearer
    tokens are never written to disk.

    Attributes:
        limit: Requests allowed per window
        window: Length of the sliding window
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        limit: int = DEFAULT_LIMIT,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
    ) -> None:
        self.db_path = db_path
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the rate limit table."""
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS rate_limits (
                    caller TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
            """)
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_rate_limits_caller "
                "ON rate_limits (caller, timestamp)"
            )
            self._conn.commit()
        logger.info(f"Rate limit database initialized at {self.db_path}")

    @staticmethod
    def _key(caller: str) -> str:
        return hashlib.sha256(caller.encode("utf-8")).hexdigest()

    def get_request_count(self, caller: str, now: datetime | None = None) -> int:
        """Get the number of requests a caller made inside the window.

        Args:
            caller: Caller identity (bearer token)
            now: Reference time, defaults to the current time

        Returns:
            Number of requests in the window
        """
        cutoff = (now or datetime.now()) - self.window
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM rate_limits WHERE caller = ? AND timestamp > ?",
                (self._key(caller), cutoff.isoformat()),
            ).fetchone()
        return row[0]

    def allow(self, caller: str, now: datetime | None = None) -> bool:
        """Record a request if the caller is under the limit.

        Records that fell out of the window are pruned first.

        Args:
            caller: Caller identity (bearer token)
            now: Reference time, defaults to the current time

        Returns:
            True if the request is allowed, False if the limit is reached
        """
        now = now or datetime.now()
        self.cleanup_old_records(now)
        count = self.get_request_count(caller, now)
        if count >= self.limit:
            logger.warning(f"Rate limit exceeded ({count}/{self.limit} per window)")
            return False

        with self._lock:
            self._conn.execute(
                "INSERT INTO rate_limits (caller, timestamp) VALUES (?, ?)",
                (self._key(caller), now.isoformat()),
            )
            self._conn.commit()
        return True

    def cleanup_old_records(self, now: datetime | None = None) -> int:
        """Delete records that fell out of the window.

        Returns:
            Number of deleted records
        """
        cutoff = (now or datetime.now()) - self.window
        with self._lock:
            cursor = self._conn.execute(
                "DELETE FROM rate_limits WHERE timestamp <= ?", (cutoff.isoformat(),)
            )
            self._conn.commit()
        if cursor.rowcount > 0:
            logger.info(f"Cleaned up {cursor.rowcount} old rate limit records")
        return cursor.rowcount

    def close(self) -> None:
        with self._lock:
            self._conn.close()
