"""Data models for the Ecocleans booking assistant."""

from ecoagent.models.booking import BookingDraft, BookingRecord, BookingStatus
from ecoagent.models.chat import ChatMessage, HistoryTurn, Speaker

__all__ = [
    "BookingDraft",
    "BookingRecord",
    "BookingStatus",
    "ChatMessage",
    "HistoryTurn",
    "Speaker",
]
