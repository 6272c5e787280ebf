"""Services for the booking assistant."""

from ecoagent.services.booking_gateway import BookingGateway, sanitize_booking
from ecoagent.services.booking_store import BookingStore, SQLiteBookingStore
from ecoagent.services.chat_client import ChatClient
from ecoagent.services.extractor import extract_booking_details
from ecoagent.services.live_config import LiveConfigClient, LiveCredential
from ecoagent.services.notifications import BookingNotifier, EmailSender

__all__ = [
    "BookingGateway",
    "BookingNotifier",
    "BookingStore",
    "ChatClient",
    "EmailSender",
    "LiveConfigClient",
    "LiveCredential",
    "SQLiteBookingStore",
    "extract_booking_details",
    "sanitize_booking",
]
