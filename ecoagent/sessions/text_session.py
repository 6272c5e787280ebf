"""Text chat session: transcript, turn sending and booking extraction."""

import logging
from enum import Enum

from ecoagent.errors import ChatServiceError, RateLimitedError
from ecoagent.models import ChatMessage, HistoryTurn, Speaker
from ecoagent.services.chat_client import ChatClient
from ecoagent.services.extractor import extract_booking_details
from ecoagent.sessions.booking_session import BookingSession

logger = logging.getLogger(__name__)

RATE_LIMITED_NOTICE = "The assistant is busy right now. Please try again shortly."
FAILURE_NOTICE = "Error: Could not reach Ecocleans agent."


class TextState(str, Enum):
    """Lifecycle of a single text turn."""

    IDLE = "idle"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    ERRORED = "errored"


class TextSessionController:
    """Drives a text conversation with the assistant.

    Only one turn is in flight at a time. Booking details are recovered from
    each exchange with the extractor and merged into the shared
    :class:`BookingSession`.

    Attributes:
        client: Client for the model text endpoint
        booking: Booking state of the conversation
        system_instruction: Instruction sent with every turn
        error: Last user-facing error, if any
    """

    def __init__(
        self,
        client: ChatClient,
        booking: BookingSession,
        system_instruction: str,
    ) -> None:
        self.client = client
        self.booking = booking
        self.system_instruction = system_instruction
        self.state = TextState.IDLE
        self.error: str | None = None
        self._messages: list[ChatMessage] = []

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def loading(self) -> bool:
        return self.state in (TextState.SENDING, TextState.AWAITING_RESPONSE)

    def _history(self) -> list[HistoryTurn]:
        return [
            HistoryTurn.from_message(message)
            for message in self._messages
            if message.role != Speaker.SYSTEM
        ]

    async def send_message(self, text: str) -> bool:
        """Send a user message and record the reply.

        Args:
            text: Message typed by the user

        Returns:
            True if the model replied, False if the message was ignored or failed
        """
        text = text.strip() if text else ""
        if not text or self.loading:
            return False

        self.state = TextState.SENDING
        history = self._history()
        self._messages.append(ChatMessage(role=Speaker.USER, text=text))

        try:
            self.state = TextState.AWAITING_RESPONSE
            reply = await self.client.send(history, text, self.system_instruction)
        except RateLimitedError:
            logger.warning("Chat turn rate limited")
            self._fail(RATE_LIMITED_NOTICE)
            return False
        except ChatServiceError as e:
            logger.error(f"Chat turn failed: {e}")
            self._fail(FAILURE_NOTICE)
            return False

        self._messages.append(ChatMessage(role=Speaker.MODEL, text=reply))
        self.error = None
        self.state = TextState.IDLE

        details = extract_booking_details(f"{text} {reply}")
        if details.model_fields_set:
            await self.booking.apply(details)

        return True

    def _fail(self, notice: str) -> None:
        self.error = "Failed to send message."
        self._messages.append(ChatMessage(role=Speaker.SYSTEM, text=notice))
        self.state = TextState.ERRORED

    def reset(self) -> None:
        """Clear the transcript and any error."""
        self._messages.clear()
        self.error = None
        self.state = TextState.IDLE
