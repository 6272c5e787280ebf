"""Pattern-based extraction of booking details from chat text.

Used in text mode only. Voice sessions receive structured tool-call arguments
from the model and skip this step.
"""

import logging
import re

from ecoagent.models import BookingDraft

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"(?<![\d(])(\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4})(?!\d)")

EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

BEDROOM_PATTERN = re.compile(r"\b(\d+)[\s-]*bed(?:room)?s?\b", re.IGNORECASE)

BATHROOM_PATTERN = re.compile(r"\b(\d+)[\s-]*bath(?:room)?s?\b", re.IGNORECASE)

# The phrase is case-insensitive, the name itself must be capitalized
NAME_PATTERN = re.compile(
    r"(?i:\b(?:my name is|i['’]m|i am|this is))\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"
)

ADDRESS_PATTERN = re.compile(
    r"\b(?:address is|live at|located at|at)\s+"
    r"(\d+[^,.\n]*?\b(?:street|st|avenue|ave|road|rd|drive|dr|lane|ln|way|"
    r"boulevard|blvd)\b[^,.\n]*)",
    re.IGNORECASE,
)

FREQUENCY_PATTERN = re.compile(
    r"\b(one[- ]?time|bi[- ]?weekly|weekly|monthly|"
    r"every\s+(?:other\s+|two\s+|\d+\s+)?(?:day|week|month)s?)\b",
    re.IGNORECASE,
)


def extract_booking_details(text: str) -> BookingDraft:
    """Extract booking details from free conversation text.

    Each category is matched independently. A category without a match is
    simply left unset; the assistant will ask for it again.

    Args:
        text: Conversation text (user turn followed by the assistant turn)

    Returns:
        BookingDraft with only the fields that were found set
    """
    found: dict[str, str | int] = {}
    if not text:
        return BookingDraft()

    match = PHONE_PATTERN.search(text)
    if match:
        found["phone_number"] = match.group(1)

    match = EMAIL_PATTERN.search(text)
    if match:
        found["email"] = match.group(1)

    match = BEDROOM_PATTERN.search(text)
    if match:
        found["bedrooms"] = int(match.group(1))

    match = BATHROOM_PATTERN.search(text)
    if match:
        found["bathrooms"] = int(match.group(1))

    match = NAME_PATTERN.search(text)
    if match:
        found["customer_name"] = match.group(1)

    match = ADDRESS_PATTERN.search(text)
    if match:
        found["address"] = match.group(1).strip()

    match = FREQUENCY_PATTERN.search(text)
    if match:
        found["cleaning_frequency"] = match.group(1)

    if found:
        logger.debug("Extracted booking fields: %s", sorted(found))

    return BookingDraft.from_partial(found)
