"""Data models for conversation transcripts."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Speaker(str, Enum):
    """Who produced a transcript entry."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """One utterance in a conversation transcript.

    SYSTEM entries are synthesized locally for error notices and are never
    sent to the model.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Speaker = Field(..., description="Speaker of the utterance")
    text: str = Field(..., description="Utterance text")
    timestamp: datetime = Field(default_factory=datetime.now)
    is_final: bool = Field(default=True, description="False for partial transcripts")


class HistoryTurn(BaseModel):
    """Wire form of a transcript entry sent to the model text endpoint."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    text: str

    @classmethod
    def from_message(cls, message: ChatMessage) -> "HistoryTurn":
        role = "user" if message.role == Speaker.USER else "assistant"
        return cls(role=role, text=message.text)
