"""Booking notifications: client-side dispatch and server-side email delivery."""

import logging
from typing import Any

import httpx

from ecoagent.config import Config, get_config

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Notification-Secret"

FIELD_LABELS = {
    "customer_name": "Name",
    "phone_number": "Phone",
    "email": "Email",
    "address": "Address",
    "cleaning_size": "Home size",
    "bedrooms": "Bedrooms",
    "bathrooms": "Bathrooms",
    "cleaning_frequency": "Frequency",
    "schedule_date": "Preferred date",
    "notes": "Notes",
}


async def _post_json(
    client: httpx.AsyncClient | None,
    url: str,
    body: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
) -> httpx.Response:
    if client is not None:
        response = await client.post(url, json=body, headers=headers)
    else:
        async with httpx.AsyncClient(timeout=timeout) as own_client:
            response = await own_client.post(url, json=body, headers=headers)
    response.raise_for_status()
    return response


class BookingNotifier:
    """Dispatches a "booking created" notification to the notification endpoint.

    Dispatch never raises: a missing configuration or a failed request is
    logged and the booking flow carries on.
    """

    def __init__(
        self,
        config: Config | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self._client = client

    def is_configured(self) -> bool:
        return self.config.has_notification_config()

    async def notify_created(self, booking_id: str, fields: dict[str, Any]) -> bool:
        """Send the notification for a newly created booking.

        Args:
            booking_id: Identifier of the created booking
            fields: Full stored field set

        Returns:
            True if the endpoint accepted the notification
        """
        if not self.is_configured():
            logger.info("Notifications not configured, skipping booking %s", booking_id)
            return False

        try:
            await _post_json(
                self._client,
                self.config.notification_url,
                {"id": booking_id, **fields},
                {SECRET_HEADER: self.config.notification_secret},
                self.config.request_timeout,
            )
        except httpx.HTTPError:
            logger.exception("Failed to dispatch notification for booking %s", booking_id)
            return False

        logger.info("Notification dispatched for booking %s", booking_id)
        return True


def format_booking_summary(fields: dict[str, Any]) -> str:
    """Render a plain-text summary of booking fields for the notification email."""
    lines = ["New booking request", ""]
    for name, label in FIELD_LABELS.items():
        value = fields.get(name)
        lines.append(f"{label}: {value if value not in (None, '') else 'Not provided'}")
    lines.extend(["", "Please follow up with this customer as soon as possible."])
    return "\n".join(lines)


class EmailSender:
    """Delivers booking notifications by email through the Resend HTTP API."""

    RESEND_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        config: Config | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.config.resend_api_key)

    async def send_booking_email(self, fields: dict[str, Any]) -> bool:
        """Email the booking summary to the administrator.

        Args:
            fields: Booking field values

        Returns:
            True if the email was accepted by the provider
        """
        if not self.is_configured():
            logger.info("RESEND_API_KEY not configured, skipping email notification")
            return False

        customer = fields.get("customer_name") or "New Customer"
        date = fields.get("schedule_date") or "Date TBD"
        body = {
            "from": self.config.notification_from,
            "to": [self.config.admin_email],
            "subject": f"New Booking: {customer} - {date}",
            "text": format_booking_summary(fields),
        }

        try:
            await _post_json(
                self._client,
                self.RESEND_URL,
                body,
                {"Authorization": f"Bearer {self.config.resend_api_key}"},
                self.config.request_timeout,
            )
        except httpx.HTTPError:
            logger.exception("Failed to send booking email")
            return False

        logger.info("Email notification sent successfully")
        return True
