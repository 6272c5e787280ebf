"""Shared fixtures for the booking assistant tests."""

import asyncio

import pytest

from ecoagent.config import Config
from ecoagent.services.booking_gateway import BookingGateway
from ecoagent.services.booking_store import SQLiteBookingStore
from ecoagent.sessions.booking_session import BookingSession


class RecordingNotifier:
    """Notifier double that records every dispatched notification."""

    def __init__(self) -> None:
        self.notifications: list[tuple[str, dict]] = []

    async def notify_created(self, booking_id: str, fields: dict) -> bool:
        self.notifications.append((booking_id, dict(fields)))
        return True


@pytest.fixture
def config():
    """Configuration isolated from the environment and any .env file."""
    return Config(
        _env_file=None,
        openai_api_key="sk-test",
        api_base_url="http://assistant.test",
        api_token="test-token",
        api_tokens=["test-token"],
        rate_limit_per_minute=3,
        booking_db_path=":memory:",
        notification_url="http://notify.test/booking",
        notification_secret="s3cret",
        resend_api_key=None,
    )


@pytest.fixture
def store():
    """In-memory booking store."""
    booking_store = SQLiteBookingStore(":memory:")
    yield booking_store
    booking_store.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def gateway(store, notifier):
    return BookingGateway(store, notifier)


@pytest.fixture
def booking(gateway):
    """Booking session of one conversation."""
    return BookingSession(gateway)


class GatedNotifier(RecordingNotifier):
    """Notifier double that holds every notification until released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def notify_created(self, booking_id: str, fields: dict) -> bool:
        await self.release.wait()
        return await super().notify_created(booking_id, fields)


@pytest.fixture
def gated_notifier():
    return GatedNotifier()
