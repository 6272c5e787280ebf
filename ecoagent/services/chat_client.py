"""HTTP client for the assistant's model text endpoint."""

import logging

import httpx

from ecoagent.config import Config, get_config
from ecoagent.errors import ChatServiceError, RateLimitedError, UnauthorizedError
from ecoagent.models import HistoryTurn

logger = logging.getLogger(__name__)


class ChatClient:
    """Sends one chat turn to the model text endpoint.

    The client never retries; a rate-limited turn is reported to the caller
    as :class:`RateLimitedError`.
    """

    def __init__(
        self,
        config: Config | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self._client = client

    async def send(
        self,
        history: list[HistoryTurn],
        message: str,
        system_instruction: str,
    ) -> str:
        """Request the model's reply to a new message.

        Args:
            history: Prior turns of the conversation, oldest first
            message: The new user message
            system_instruction: Instruction that frames the assistant

        Returns:
            The model's reply text

        Raises:
            UnauthorizedError: If no token is configured or it was rejected
            RateLimitedError: If the endpoint rejected the request with 429
            ChatServiceError: On any other transport or response failure
        """
        if not self.config.api_token:
            msg = "API_TOKEN not configured"
            raise UnauthorizedError(msg)

        body = {
            "history": [turn.model_dump() for turn in history],
            "newMessage": message,
            "systemInstruction": system_instruction,
        }
        headers = {"Authorization": f"Bearer {self.config.api_token}"}

        try:
            if self._client is not None:
                response = await self._client.post(self.config.chat_url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
                    response = await client.post(self.config.chat_url, json=body, headers=headers)
        except httpx.HTTPError as e:
            msg = f"Chat request failed: {e}"
            raise ChatServiceError(msg) from e

        if response.status_code == 429:
            raise RateLimitedError("Chat endpoint rate limit exceeded")
        if response.status_code in (401, 403):
            msg = f"Chat endpoint rejected credentials ({response.status_code})"
            raise UnauthorizedError(msg)
        if response.is_error:
            msg = f"Chat endpoint returned {response.status_code}"
            raise ChatServiceError(msg)

        try:
            reply = response.json()["responseText"]
        except (ValueError, KeyError, TypeError) as e:
            msg = "Chat endpoint returned a malformed body"
            raise ChatServiceError(msg) from e

        if not isinstance(reply, str):
            msg = "Chat endpoint returned a non-text reply"
            raise ChatServiceError(msg)

        logger.debug(f"Received reply of {len(reply)} chars")
        return reply
