"""Agent dialog: open/close lifecycle and voice/text mode arbitration."""

import logging
from enum import Enum

from ecoagent.agents import booking_instructions
from ecoagent.config import Config, get_config
from ecoagent.services.audio_devices import AudioBackend, SoundDeviceBackend
from ecoagent.services.booking_gateway import BookingGateway
from ecoagent.services.booking_store import SQLiteBookingStore
from ecoagent.services.chat_client import ChatClient
from ecoagent.services.live_config import LiveConfigClient
from ecoagent.services.notifications import BookingNotifier
from ecoagent.sessions.booking_session import BookingSession
from ecoagent.sessions.realtime_transport import RealtimeVoiceTransport
from ecoagent.sessions.text_session import TextSessionController
from ecoagent.sessions.voice_session import TransportFactory, VoiceSessionController

logger = logging.getLogger(__name__)

DETAIL_LABELS = {
    "customer_name": "Name",
    "phone_number": "Phone",
    "email": "Email",
    "address": "Address",
    "cleaning_size": "Size",
    "bedrooms": "Bedrooms",
    "bathrooms": "Bathrooms",
    "cleaning_frequency": "Frequency",
    "schedule_date": "Date",
    "notes": "Notes",
}


class DialogMode(str, Enum):
    VOICE = "voice"
    TEXT = "text"


class AgentDialog:
    """Top-level assistant surface composing the voice and text sessions.

    Both sessions share one :class:`BookingSession`; only the session of the
    active mode mutates it. Leaving voice mode or closing the dialog always
    disconnects the voice session first.

    Attributes:
        voice: Voice session controller
        text: Text session controller
        booking: Booking state shared by both modes
        mode: Active mode
        is_open: Whether the dialog is visible
    """

    def __init__(
        self,
        voice: VoiceSessionController,
        text: TextSessionController,
        booking: BookingSession,
    ) -> None:
        self.voice = voice
        self.text = text
        self.booking = booking
        self.mode = DialogMode.VOICE
        self.is_open = False

    @property
    def status(self) -> str:
        return "Live" if self.voice.connected else "Offline"

    @property
    def booking_details(self) -> list[tuple[str, str]]:
        """Rows of the booking details panel, in display order."""
        provided = self.booking.draft.provided_fields()
        return [
            (label, str(provided[name]))
            for name, label in DETAIL_LABELS.items()
            if name in provided
        ]

    async def open(self) -> None:
        """Show the dialog. A fresh open starts a new conversation."""
        if self.is_open:
            return
        self.booking.reset()
        self.text.reset()
        self.mode = DialogMode.VOICE
        self.is_open = True
        logger.info("Assistant dialog opened")

    async def close(self) -> None:
        """Disconnect any live voice session, then hide the dialog."""
        await self.voice.disconnect()
        self.is_open = False
        logger.info("Assistant dialog closed")

    async def set_mode(self, mode: DialogMode) -> None:
        """Switch between voice and text mode."""
        if mode == self.mode:
            return
        if self.mode == DialogMode.VOICE:
            await self.voice.disconnect()
        self.mode = mode
        logger.info(f"Assistant dialog switched to {mode.value} mode")

    async def toggle_call(self) -> bool:
        """Start or end the live voice call.

        Returns:
            True if a call is live afterwards
        """
        if self.mode != DialogMode.VOICE:
            await self.set_mode(DialogMode.VOICE)

        if self.voice.connected:
            await self.voice.disconnect()
            return False
        return await self.voice.connect()

    async def send_message(self, text: str) -> bool:
        """Send a chat message; only valid in text mode."""
        if self.mode != DialogMode.TEXT:
            logger.debug("Ignoring chat message outside text mode")
            return False
        return await self.text.send_message(text)


def build_dialog(
    config: Config | None = None,
    audio: AudioBackend | None = None,
    transport_factory: TransportFactory | None = None,
) -> AgentDialog:
    """Wire the production collaborators into an :class:`AgentDialog`.

    Args:
        config: Application configuration
        audio: Audio backend, sounddevice by default
        transport_factory: Voice transport factory, the OpenAI realtime
            transport by default

    Returns:
        Ready-to-open dialog
    """
    config = config or get_config()
    transport_factory = transport_factory or RealtimeVoiceTransport.open
    instructions = booking_instructions()
    store = SQLiteBookingStore(config.booking_db_path)
    booking = BookingSession(BookingGateway(store, BookingNotifier(config)))

    text = TextSessionController(ChatClient(config), booking, instructions)
    voice = VoiceSessionController(
        LiveConfigClient(config),
        transport_factory,
        audio or SoundDeviceBackend(),
        booking,
        instructions,
    )
    return AgentDialog(voice, text, booking)
