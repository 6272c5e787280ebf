"""Function tools exposed to the booking assistant models."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from agents import FunctionTool, function_tool
from agents.tool_context import ToolContext

logger = logging.getLogger(__name__)

BOOKING_TOOL_NAME = "update_booking_details"
BOOKING_TOOL_DESCRIPTION = (
    "Update the customer's booking details in the database. Call this whenever "
    "new information is provided or confirmed by the user."
)
BOOKING_TOOL_RESULT = "Booking details updated successfully."
UNKNOWN_TOOL_RESULT = "Unknown tool"

# Receives the tool call id and the arguments the model supplied
BookingToolHandler = Callable[[str, dict[str, Any]], Awaitable[str]]


def build_booking_tool(handler: BookingToolHandler) -> FunctionTool:
    """Create the ``update_booking_details`` tool bound to a handler.

    Every parameter is optional so that the model can send details one at a
    time as the customer provides them.

    Args:
        handler: Coroutine called with the tool call id and the supplied
            arguments; its return value is the tool output

    Returns:
        FunctionTool for an Agents SDK agent
    """

    @function_tool(
        name_override=BOOKING_TOOL_NAME,
        description_override=BOOKING_TOOL_DESCRIPTION,
        strict_mode=False,
    )
    async def update_booking_details(
        ctx: ToolContext,
        customer_name: str | None = None,
        phone_number: str | None = None,
        email: str | None = None,
        address: str | None = None,
        cleaning_size: str | None = None,
        bedrooms: int | None = None,
        bathrooms: int | None = None,
        schedule_date: str | None = None,
        cleaning_frequency: str | None = None,
    ) -> str:
        """Update the customer's booking details.

        Args:
            customer_name: Customer's full name
            phone_number: Customer's phone number
            email: Customer's email address
            address: Service address
            cleaning_size: Approximate size of the cleaning area (sq ft, small/medium/large)
            bedrooms: Number of bedrooms
            bathrooms: Number of bathrooms
            schedule_date: Preferred date and time for the service
            cleaning_frequency: One-time, Weekly, Bi-weekly, Monthly, etc.
        """
        arguments = {
            "customer_name": customer_name,
            "phone_number": phone_number,
            "email": email,
            "address": address,
            "cleaning_size": cleaning_size,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "schedule_date": schedule_date,
            "cleaning_frequency": cleaning_frequency,
        }
        supplied = {name: value for name, value in arguments.items() if value is not None}
        logger.info(f"Booking tool called with fields: {sorted(supplied)}")
        return await handler(ctx.tool_call_id, supplied)

    return update_booking_details
