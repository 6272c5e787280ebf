"""Per-conversation booking state shared by the text and voice sessions."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from ecoagent.errors import BookingPersistenceError
from ecoagent.models import BookingDraft
from ecoagent.services.booking_gateway import BookingGateway

logger = logging.getLogger(__name__)

BookingListener = Callable[[BookingDraft], None]


class BookingSession:
    """Holds the booking draft and the cached booking id of one conversation.

    The first successful persist caches the store id; every later persist
    updates that record, so repeated extraction never creates duplicates.

    Attributes:
        gateway: Gateway used to write the draft
        draft: Accumulated booking details
        booking_id: Id of the booking created for this conversation, if any
    """

    def __init__(self, gateway: BookingGateway) -> None:
        self.gateway = gateway
        self.draft = BookingDraft()
        self.booking_id: str | None = None
        self._listeners: list[BookingListener] = []
        # Serializes writes so a second persist sees the id cached by the first
        self._persist_lock = asyncio.Lock()
        self._generation = 0
        self._writes: set[asyncio.Task] = set()

    def add_listener(self, listener: BookingListener) -> None:
        """Register a callback invoked with the draft after every change."""
        self._listeners.append(listener)

    def merge(self, fields: BookingDraft | dict[str, Any]) -> list[str]:
        """Merge new values into the draft without erasing existing ones.

        Args:
            fields: Partial draft or loosely typed field values

        Returns:
            Names of the fields that changed
        """
        if not isinstance(fields, BookingDraft):
            fields = BookingDraft.from_partial(fields)

        changed = self.draft.merge(fields)
        if changed:
            logger.info("Booking draft updated: %s", ", ".join(changed))
            for listener in self._listeners:
                try:
                    listener(self.draft)
                except Exception:
                    logger.exception("Booking listener failed")
        return changed

    async def persist(self) -> str | None:
        """Write the draft through the gateway.

        Persistence failures are logged and do not interrupt the conversation.

        Returns:
            The booking id after the write, or the previous id on failure
        """
        # A cancelled caller must not lose the id of a record already inserted
        task = asyncio.create_task(self._persist())
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)
        return await asyncio.shield(task)

    async def _persist(self) -> str | None:
        async with self._persist_lock:
            generation = self._generation
            try:
                booking_id = await self.gateway.reconcile(self.booking_id, self.draft)
            except BookingPersistenceError:
                logger.warning("Booking could not be saved, continuing conversation")
                return self.booking_id

            if generation != self._generation:
                logger.debug("Conversation was reset during persist, dropping id")
                return None
            if booking_id and self.booking_id is None:
                self.booking_id = booking_id
                logger.info("Conversation linked to booking %s", booking_id)
            return self.booking_id

    async def apply(self, fields: BookingDraft | dict[str, Any]) -> list[str]:
        """Merge new values and persist the draft if anything changed."""
        changed = self.merge(fields)
        if changed:
            await self.persist()
        return changed

    def reset(self) -> None:
        """Discard the draft and forget the booking id.

        The stored booking is not touched.
        """
        self.draft = BookingDraft()
        self.booking_id = None
        self._generation += 1
