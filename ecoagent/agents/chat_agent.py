"""Text chat agent for the booking assistant using OpenAI Agents SDK."""

import logging
from datetime import datetime

from agents import Agent

from ecoagent.agents.prompts import load_prompt
from ecoagent.config import Config, get_config
from ecoagent.guardrails import chat_input_guardrail

logger = logging.getLogger(__name__)


def booking_instructions() -> str:
    """Return the bundled system instruction with today's date filled in."""
    current_date = datetime.now().strftime("%A, %B %d, %Y")
    return load_prompt("booking_assistant", current_date=current_date)


class BookingChatAgent:
    """Agent answering text chat turns for the booking assistant.

    Text turns carry no tools; booking details are recovered from the
    transcript on the client.

    Attributes:
        instructions: System instruction used for the agent
        config: Application configuration
        _agent: The underlying Agent instance (created lazily)
    """

    def __init__(self, instructions: str | None = None, config: Config | None = None) -> None:
        """Initialize the chat agent.

        Args:
            instructions: System instruction; the bundled prompt when omitted
            config: Application configuration
        """
        self.instructions = instructions or booking_instructions()
        self.config = config or get_config()
        self._agent: Agent | None = None

    def create(self) -> Agent:
        """Create and return the configured chat agent.

        Returns:
            Configured chat agent
        """
        if self._agent is None:
            self._agent = Agent(
                name="Ecocleans Booking Assistant",
                model=self.config.chat_model,
                instructions=self.instructions,
                input_guardrails=[chat_input_guardrail],
            )
            logger.info("Chat agent created with model %s", self.config.chat_model)

        return self._agent

    @property
    def agent(self) -> Agent:
        """Get the agent instance (creates it if needed)."""
        return self.create()
