"""Conversation sessions for the booking assistant."""

from ecoagent.sessions.booking_session import BookingSession
from ecoagent.sessions.text_session import TextSessionController, TextState
from ecoagent.sessions.voice_session import (
    VoiceSessionController,
    VoiceSessionSettings,
    VoiceState,
)

__all__ = [
    "BookingSession",
    "TextSessionController",
    "TextState",
    "VoiceSessionController",
    "VoiceSessionSettings",
    "VoiceState",
]
