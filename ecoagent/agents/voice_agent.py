"""Realtime voice agent for the booking assistant using OpenAI Realtime API."""

import logging

from agents import FunctionTool
from agents.realtime import RealtimeAgent

logger = logging.getLogger(__name__)


class BookingVoiceAgent:
    """Voice agent that holds a full-duplex booking conversation.

    Attributes:
        instructions: System instruction for the session
        tools: Tools the model may call during the session
        _agent: The underlying RealtimeAgent instance (created lazily)
    """

    def __init__(self, instructions: str, tools: list[FunctionTool]) -> None:
        self.instructions = instructions
        self.tools = tools
        self._agent: RealtimeAgent | None = None

    def create(self) -> RealtimeAgent:
        """Create and return the configured RealtimeAgent.

        Returns:
            Configured RealtimeAgent

        Note:
            Voice, modalities and transcription are configured on the
            RealtimeRunner, not on the agent.
        """
        if self._agent is None:
            self._agent = RealtimeAgent(
                name="Ecocleans Voice Assistant",
                instructions=self.instructions,
                tools=self.tools,
            )
            logger.info(
                "Realtime voice agent created with tools: %s",
                ", ".join(tool.name for tool in self.tools),
            )

        return self._agent

    @property
    def agent(self) -> RealtimeAgent:
        """Get the agent instance (creates it if needed)."""
        return self.create()
