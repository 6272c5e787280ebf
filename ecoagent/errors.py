"""Exception types shared across the booking assistant."""


class EcoAgentError(Exception):
    """Base class for all booking assistant errors."""


class ConfigurationUnavailableError(EcoAgentError):
    """A credential or API key needed by a feature is not available."""


class ChatServiceError(EcoAgentError):
    """The model text endpoint could not produce a response."""


class RateLimitedError(ChatServiceError):
    """The model text endpoint rejected the request with a rate limit."""


class UnauthorizedError(ChatServiceError):
    """The caller identity was missing or rejected."""


class BookingPersistenceError(EcoAgentError):
    """A booking could not be written to the store."""


class BookingNotFoundError(BookingPersistenceError):
    """An update targeted a booking id the store does not know."""
