"""Agents for the booking assistant."""

from ecoagent.agents.chat_agent import BookingChatAgent, booking_instructions
from ecoagent.agents.tools import (
    BOOKING_TOOL_DESCRIPTION,
    BOOKING_TOOL_NAME,
    BOOKING_TOOL_RESULT,
    UNKNOWN_TOOL_RESULT,
    build_booking_tool,
)
from ecoagent.agents.voice_agent import BookingVoiceAgent

__all__ = [
    "BOOKING_TOOL_DESCRIPTION",
    "BOOKING_TOOL_NAME",
    "BOOKING_TOOL_RESULT",
    "UNKNOWN_TOOL_RESULT",
    "BookingChatAgent",
    "BookingVoiceAgent",
    "booking_instructions",
    "build_booking_tool",
]
