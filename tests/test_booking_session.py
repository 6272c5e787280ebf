"""Tests for per-conversation booking state."""

import asyncio

import pytest

from ecoagent.models import BookingDraft
from ecoagent.services.booking_gateway import BookingGateway
from ecoagent.sessions.booking_session import BookingSession


class SlowStore:
    """Store double that yields to the event loop on every write."""

    def __init__(self, store):
        self.store = store
        self.inserts = 0

    def insert(self, fields):
        self.inserts += 1
        return self.store.insert(fields)

    def update(self, booking_id, fields):
        self.store.update(booking_id, fields)

    def get(self, booking_id):
        return self.store.get(booking_id)


class SlowNotifier:
    async def notify_created(self, booking_id, fields):
        await asyncio.sleep(0.01)
        return True


class TestBookingSession:
    """Test merging and create-once persistence."""

    async def test_apply_creates_then_updates(self, booking, store, notifier):
        """Test a two-turn conversation."""
        await booking.apply({"customerName": "Sarah Jones", "phoneNumber": "204-555-1234"})
        first_id = booking.booking_id

        await booking.apply(BookingDraft(bedrooms=3, bathrooms=2))

        assert first_id is not None
        assert booking.booking_id == first_id
        assert store.count() == 1
        assert len(notifier.notifications) == 1
        record = store.get(first_id)
        assert record.customer_name == "Sarah Jones"
        assert record.bathrooms == 2

    async def test_apply_without_change_does_not_persist(self, booking, store):
        await booking.apply({"address": "123 Main St"})
        await booking.apply({"address": "123 Main St", "email": ""})

        assert store.count() == 1

    async def test_persistence_failure_is_swallowed(self, booking, store):
        """Test that a failed write keeps the conversation going."""
        await booking.apply({"customer_name": "Sarah"})
        booking.booking_id = "not-in-store"

        result = await booking.persist()

        assert result == "not-in-store"
        assert booking.draft.customer_name == "Sarah"

    async def test_concurrent_persists_insert_once(self, store):
        """Test that overlapping persists still create a single record."""
        slow_store = SlowStore(store)
        session = BookingSession(BookingGateway(slow_store, SlowNotifier()))
        session.merge({"customer_name": "Sarah"})

        ids = await asyncio.gather(session.persist(), session.persist(), session.persist())

        assert slow_store.inserts == 1
        assert len(set(ids)) == 1
        assert store.count() == 1

    async def test_cancelled_persist_keeps_booking_id(self, store, gated_notifier):
        """Test that cancelling a write mid-notification still links the record."""
        session = BookingSession(BookingGateway(store, gated_notifier))
        first = asyncio.create_task(session.apply({"customer_name": "Jane Doe"}))
        while store.count() == 0:
            await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        gated_notifier.release.set()
        await session.apply({"phone_number": "204-555-1234"})

        assert store.count() == 1
        record = store.get(session.booking_id)
        assert record.customer_name == "Jane Doe"
        assert record.phone_number == "204-555-1234"
        assert len(gated_notifier.notifications) == 1

    async def test_reset_forgets_draft_and_id(self, booking, store):
        """Test that a reset starts a new booking but keeps the stored one."""
        await booking.apply({"customer_name": "Sarah"})
        old_id = booking.booking_id

        booking.reset()
        await booking.apply({"customer_name": "Tom"})

        assert booking.booking_id != old_id
        assert store.count() == 2
        assert store.get(old_id).customer_name == "Sarah"

    def test_listeners_see_every_change(self, booking):
        seen = []
        booking.add_listener(lambda draft: seen.append(draft.provided_fields()))

        booking.merge({"customer_name": "Sarah"})
        booking.merge({"customer_name": "Sarah"})
        booking.merge({"bedrooms": 2})

        assert seen == [
            {"customer_name": "Sarah"},
            {"customer_name": "Sarah", "bedrooms": 2},
        ]

    def test_failing_listener_does_not_break_merge(self, booking):
        def broken(draft):
            raise RuntimeError("display gone")

        booking.add_listener(broken)

        assert booking.merge({"email": "a@b.co"}) == ["email"]
