"""Data models for cleaning bookings."""

import logging
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """Status of a stored booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class BookingDraft(BaseModel):
    """Booking details collected progressively during one conversation.

    Every field is optional until the customer confirms it. Field names are
    snake_case; camelCase aliases are accepted so that tool arguments produced
    by the model validate in either style.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    customer_name: str | None = Field(None, description="Customer's full name")
    phone_number: str | None = Field(None, description="Customer's phone number")
    email: str | None = Field(None, description="Customer's email address")
    address: str | None = Field(None, description="Service address")
    cleaning_size: str | None = Field(
        None, description="Approximate size of the area (sq ft, small/medium/large)"
    )
    bedrooms: int | None = Field(None, ge=0, description="Number of bedrooms")
    bathrooms: int | None = Field(None, ge=0, description="Number of bathrooms")
    schedule_date: str | None = Field(
        None, description="Preferred date and time for the service"
    )
    cleaning_frequency: str | None = Field(
        None, description="One-time, Weekly, Bi-weekly, Monthly or free text"
    )
    notes: str | None = Field(None, description="Additional notes")

    @classmethod
    def from_partial(cls, data: dict[str, Any] | None) -> "BookingDraft":
        """Build a draft from loosely typed data, dropping invalid fields.

        Unknown keys are ignored and a value that fails validation is left
        out instead of rejecting the whole payload.

        Args:
            data: Field values keyed by snake_case or camelCase name

        Returns:
            BookingDraft with only the valid, non-empty fields set
        """
        accepted: dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = cls._field_name(key)
            if name is None or not _has_value(value):
                continue
            try:
                cls.model_validate({name: value})
            except ValidationError:
                logger.debug("Dropping invalid booking field %s", name)
                continue
            accepted[name] = value
        return cls.model_validate(accepted)

    @classmethod
    def _field_name(cls, key: str) -> str | None:
        if key in cls.model_fields:
            return key
        for name, field in cls.model_fields.items():
            if field.alias == key:
                return name
        return None

    def provided_fields(self) -> dict[str, Any]:
        """Return the fields that currently hold a non-empty value."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if _has_value(value)
        }

    def is_empty(self) -> bool:
        return not self.provided_fields()

    def merge(self, other: "BookingDraft") -> list[str]:
        """Merge another draft into this one without clobbering.

        Only non-empty values of ``other`` are copied; a field that is absent
        or blank in ``other`` never erases a value already held here.

        Args:
            other: Partial draft with newly extracted values

        Returns:
            Names of the fields whose value changed
        """
        changed = []
        for name, value in other.provided_fields().items():
            if getattr(self, name) != value:
                setattr(self, name, value)
                changed.append(name)
        return changed


class BookingRecord(BookingDraft):
    """A booking as persisted in the booking store."""

    id: str = Field(..., description="Store-assigned booking identifier")
    status: BookingStatus = Field(
        default=BookingStatus.PENDING, description="Booking status"
    )
    created_at: datetime = Field(..., description="When the record was created")
    updated_at: datetime = Field(..., description="When the record last changed")
