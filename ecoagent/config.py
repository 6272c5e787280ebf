"""Configuration management for the Ecocleans booking assistant using Pydantic."""

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # OpenAI Configuration
    openai_api_key: str | None = Field(None, description="OpenAI API key")
    chat_model: str = Field(default="gpt-4o", description="Model for text chat")
    realtime_model: str = Field(
        default="gpt-4o-realtime-preview",
        description="OpenAI Realtime model for voice sessions",
    )
    realtime_voice: str = Field(
        default="shimmer",
        description="Voice for the realtime agent (alloy, echo, shimmer, ...)",
    )
    realtime_secret_url: str = Field(
        default="https://api.openai.com/v1/realtime/sessions",
        description="Endpoint used to mint ephemeral realtime credentials",
    )

    # Assistant API (client side)
    api_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the assistant API used by the client",
    )
    api_token: str | None = Field(
        None, description="Bearer token the client presents to the assistant API"
    )
    request_timeout: float = Field(
        default=30.0, description="Timeout in seconds for outbound HTTP requests"
    )

    # Assistant API (server side)
    api_tokens: list[str] = Field(
        default_factory=list, description="Bearer tokens accepted by the server"
    )
    rate_limit_per_minute: int = Field(
        default=20, description="Chat requests allowed per token per minute"
    )
    rate_limit_db_path: str = Field(
        default=":memory:", description="SQLite database for rate limit records"
    )

    # Bookings
    booking_db_path: str = Field(
        default="bookings.db", description="SQLite database for bookings"
    )

    # Notifications
    notification_url: str | None = Field(
        None, description="Endpoint notified when a booking is created"
    )
    notification_secret: str | None = Field(
        None, description="Shared secret for the notification endpoint"
    )
    resend_api_key: str | None = Field(None, description="Resend API key")
    notification_from: str = Field(
        default="EcoCleans <onboarding@resend.dev>",
        description="Sender address for booking notifications",
    )
    admin_email: str = Field(
        default="info@ecocleans.ca", description="Recipient of booking notifications"
    )

    # Server Configuration
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, description="Server port")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def chat_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/chat"

    @property
    def live_config_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/live-config"

    def has_notification_config(self) -> bool:
        """Check if booking notifications can be dispatched."""
        return bool(self.notification_url and self.notification_secret)

    def model_post_init(self, __context) -> None:
        """Validate configuration after initialization."""
        if not self.openai_api_key:
            logger.warning("OPENAI_API_KEY not set - model features disabled")

        if not self.has_notification_config():
            logger.warning(
                "NOTIFICATION_URL/NOTIFICATION_SECRET not set - "
                "booking notifications disabled"
            )


# Global config instance
config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global config
    if config is None:
        config = Config()
    return config


def setup_logging(cfg: Config | None = None) -> None:
    """Configure logging for the application."""
    if cfg is None:
        cfg = get_config()

    log_level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from external libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("openai.agents").setLevel(logging.WARNING)
