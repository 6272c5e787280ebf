"""Guardrails for the booking assistant API."""

from ecoagent.guardrails.input_validator import (
    chat_input_guardrail,
    validate_chat_input,
)
from ecoagent.guardrails.rate_limiter import RateLimiter

__all__ = [
    "RateLimiter",
    "chat_input_guardrail",
    "validate_chat_input",
]
