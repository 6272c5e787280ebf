"""Input validation for chat messages."""

import logging
import re

from agents import (
    Agent,
    GuardrailFunctionOutput,
    RunContextWrapper,
    TResponseInputItem,
    input_guardrail,
)

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 5000

# Patterns that indicate markup or script injection
BLOCKED_PATTERNS = [
    r"<script",
    r"javascript:",
    r"onclick",
    r"onerror",
    r"eval\(",
    r"exec\(",
]


def validate_chat_input(text: str | None) -> str | None:
    """Check a chat message before it reaches the model.

    Args:
        text: The new user message

    Returns:
        A user-facing reason when the message is rejected, None when it passes
    """
    if not text or not text.strip():
        logger.warning("Chat input rejected: empty message")
        return "Message cannot be empty."

    if len(text) > MAX_MESSAGE_LENGTH:
        logger.warning(
            f"Chat input rejected: too long ({len(text)} > {MAX_MESSAGE_LENGTH} chars)"
        )
        return f"Message too long (max {MAX_MESSAGE_LENGTH} characters)."

    lowered = text.lower()
    for pattern in BLOCKED_PATTERNS:
        if re.search(pattern, lowered):
            logger.warning(f"Chat input rejected: suspicious pattern ({pattern})")
            return "Message contains suspicious content. Please rephrase."

    return None


def latest_user_text(input: str | list[TResponseInputItem]) -> str:
    """Return the most recent user message of an agent input."""
    if not isinstance(input, list):
        return str(input)

    for item in reversed(input):
        if isinstance(item, dict) and item.get("role") == "user":
            return str(item.get("content", ""))
    return ""


@input_guardrail(name="chat_input_guardrail")
async def chat_input_guardrail(
    context: RunContextWrapper[None],
    agent: Agent,
    input: str | list[TResponseInputItem],
) -> GuardrailFunctionOutput:
    """Reject empty, oversized or suspicious chat messages.

    Only the latest user message is checked; earlier turns were validated
    when they were sent.

    Args:
        context: The guardrail context
        agent: The agent being run
        input: Agent input (string or list of input items)

    Returns:
        GuardrailFunctionOutput indicating if validation passed
    """
    reason = validate_chat_input(latest_user_text(input))
    return GuardrailFunctionOutput(
        output_info=reason or "Input validation passed",
        tripwire_triggered=reason is not None,
    )
