"""SQLite-backed storage for booking records."""

import logging
import sqlite3
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from ecoagent.errors import BookingNotFoundError
from ecoagent.models import BookingRecord, BookingStatus

logger = logging.getLogger(__name__)

BOOKING_COLUMNS = (
    "customer_name",
    "phone_number",
    "email",
    "address",
    "cleaning_size",
    "bedrooms",
    "bathrooms",
    "cleaning_frequency",
    "schedule_date",
    "notes",
)


class BookingStore(Protocol):
    """Durable storage for booking records."""

    def insert(self, fields: dict[str, Any]) -> str: ...

    def update(self, booking_id: str, fields: dict[str, Any]) -> None: ...

    def get(self, booking_id: str) -> BookingRecord | None: ...


class SQLiteBookingStore:
    """Booking store backed by a single SQLite database file.

    One connection is kept per store so that ``:memory:`` databases survive
    between calls. Access is serialized with a lock because the connection is
    shared across threads.
    """

    def __init__(self, db_path: str | Path = "bookings.db") -> None:
        self.db_path = str(db_path)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self) -> None:
        """Create the bookings table if it does not exist."""
        with self._lock:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS bookings (
                    id TEXT PRIMARY KEY,
                    customer_name TEXT,
                    phone_number TEXT,
                    email TEXT,
                    address TEXT,
                    cleaning_size TEXT,
                    bedrooms INTEGER,
                    bathrooms INTEGER,
                    cleaning_frequency TEXT,
                    schedule_date TEXT,
                    notes TEXT,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.commit()
        logger.info(f"Booking database initialized at {self.db_path}")

    @staticmethod
    def _columns(fields: dict[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - set(BOOKING_COLUMNS)
        if unknown:
            msg = f"Unknown booking columns: {sorted(unknown)}"
            raise ValueError(msg)
        return dict(fields)

    def insert(self, fields: dict[str, Any]) -> str:
        """Insert a new booking.

        Args:
            fields: Column values keyed by column name

        Returns:
            The generated booking id
        """
        values = self._columns(fields)
        booking_id = str(uuid.uuid4())
        now = datetime.now().isoformat()
        values.update(
            id=booking_id,
            status=BookingStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

        names = ", ".join(values)
        placeholders = ", ".join(f":{name}" for name in values)
        with self._lock:
            self._conn.execute(
                f"INSERT INTO bookings ({names}) VALUES ({placeholders})", values
            )
            self._conn.commit()

        logger.info(f"Created booking {booking_id}")
        return booking_id

    def update(self, booking_id: str, fields: dict[str, Any]) -> None:
        """Update columns of an existing booking.

        Args:
            booking_id: Booking identifier
            fields: Column values to write; columns not given are left alone

        Raises:
            BookingNotFoundError: If no booking has this id
        """
        values = self._columns(fields)
        values["updated_at"] = datetime.now().isoformat()

        assignments = ", ".join(f"{name} = :{name}" for name in values)
        with self._lock:
            cursor = self._conn.execute(
                f"UPDATE bookings SET {assignments} WHERE id = :id",
                {**values, "id": booking_id},
            )
            self._conn.commit()

        if cursor.rowcount == 0:
            msg = f"Booking {booking_id} not found"
            raise BookingNotFoundError(msg)

        logger.debug(f"Updated booking {booking_id}: {sorted(fields)}")

    def get(self, booking_id: str) -> BookingRecord | None:
        """Get a booking by id.

        Args:
            booking_id: Booking identifier

        Returns:
            BookingRecord or None if not found
        """
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM bookings WHERE id = ?", (booking_id,)
            ).fetchone()

        if row is None:
            return None
        return BookingRecord(**dict(row))

    def count(self) -> int:
        """Return the number of stored bookings."""
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM bookings").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._conn.close()
