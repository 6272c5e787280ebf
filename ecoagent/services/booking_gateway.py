"""Reconciles booking drafts into the booking store.

A conversation creates at most one booking: the first reconcile inserts a
record and every later reconcile updates that same record. Values are
sanitized before they are written and invalid values are dropped from the
write instead of failing it.
"""

import logging
import math
import re
from typing import Any

from ecoagent.errors import BookingPersistenceError
from ecoagent.models import BookingDraft
from ecoagent.services.booking_store import BookingStore
from ecoagent.services.notifications import BookingNotifier

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"<[^>]*>")
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
NON_DIGIT_PATTERN = re.compile(r"\D")

MAX_LENGTHS = {
    "customer_name": 100,
    "address": 200,
    "cleaning_size": 50,
    "cleaning_frequency": 50,
    "schedule_date": 50,
    "notes": 1000,
}
MAX_EMAIL_LENGTH = 255
MAX_PHONE_LENGTH = 20
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15
MIN_ROOMS = 0
MAX_ROOMS = 50


def sanitize_string(value: Any, max_length: int) -> str | None:
    """Strip markup tags, trim and cap a free-text value.

    Args:
        value: Raw value
        max_length: Maximum number of characters kept

    Returns:
        Sanitized string or None if nothing usable remains
    """
    if not isinstance(value, str):
        return None
    sanitized = TAG_PATTERN.sub("", value).strip()
    return sanitized[:max_length] if sanitized else None


def validate_email(value: Any) -> str | None:
    """Normalize an email address, returning None if it is not valid."""
    if not isinstance(value, str):
        return None
    sanitized = value.strip().lower()[:MAX_EMAIL_LENGTH]
    return sanitized if EMAIL_PATTERN.match(sanitized) else None


def validate_phone(value: Any) -> str | None:
    """Accept a phone number with 10 to 15 digits in any separator format.

    The original formatting is kept; only surrounding whitespace is trimmed.
    """
    if not isinstance(value, str):
        return None
    digits = NON_DIGIT_PATTERN.sub("", value)
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        return None
    return value.strip()[:MAX_PHONE_LENGTH]


def validate_count(value: Any, minimum: int = MIN_ROOMS, maximum: int = MAX_ROOMS) -> int | None:
    """Bounds-check a room count and truncate it to an integer."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or value < minimum or value > maximum:
        return None
    return math.floor(value)


def sanitize_booking(draft: BookingDraft) -> dict[str, Any]:
    """Convert a draft into store columns, dropping invalid values.

    Args:
        draft: Booking draft to persist

    Returns:
        Column values for every field that passed validation
    """
    values = draft.model_dump()
    columns: dict[str, Any] = {
        name: sanitize_string(values[name], max_length)
        for name, max_length in MAX_LENGTHS.items()
    }
    columns["email"] = validate_email(values["email"])
    columns["phone_number"] = validate_phone(values["phone_number"])
    columns["bedrooms"] = validate_count(values["bedrooms"])
    columns["bathrooms"] = validate_count(values["bathrooms"])

    for name, raw in values.items():
        if raw is not None and columns.get(name) is None:
            logger.debug("Dropping invalid booking field %s", name)

    return {name: value for name, value in columns.items() if value is not None}


class BookingGateway:
    """Create-once, update-many persistence of booking drafts."""

    def __init__(self, store: BookingStore, notifier: BookingNotifier | None = None) -> None:
        self.store = store
        self.notifier = notifier

    async def reconcile(self, current_id: str | None, draft: BookingDraft) -> str | None:
        """Persist a draft, creating the booking on first call.

        Args:
            current_id: Booking id cached by the conversation, None before the
                first successful insert
            draft: Accumulated booking draft

        Returns:
            The booking id, or None when nothing valid was available to insert

        Raises:
            BookingPersistenceError: If the store rejected the write
        """
        fields = sanitize_booking(draft)

        if current_id is not None:
            try:
                self.store.update(current_id, fields)
            except BookingPersistenceError:
                logger.exception("Error updating booking %s", current_id)
                raise
            except Exception as e:
                logger.exception("Error updating booking %s", current_id)
                msg = f"Failed to update booking: {e}"
                raise BookingPersistenceError(msg) from e
            return current_id

        if not fields:
            logger.debug("No valid booking fields yet, skipping insert")
            return None

        try:
            booking_id = self.store.insert(fields)
        except Exception as e:
            logger.exception("Error creating booking")
            msg = f"Failed to create booking: {e}"
            raise BookingPersistenceError(msg) from e

        if self.notifier is not None:
            await self.notifier.notify_created(booking_id, fields)

        return booking_id
