"""Ephemeral credentials for live voice sessions."""

import logging
from dataclasses import dataclass

import httpx

from ecoagent.config import Config, get_config
from ecoagent.errors import ConfigurationUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveCredential:
    """Short-lived credential for opening one realtime session."""

    api_key: str
    model: str
    voice: str


class LiveConfigClient:
    """Fetches a live voice credential from the credential endpoint.

    A missing credential is an expected outcome (voice is simply not
    available), so every failure is logged and reported as None.
    """

    def __init__(
        self,
        config: Config | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or get_config()
        self._client = client

    async def fetch(self) -> LiveCredential | None:
        """Request a credential.

        Returns:
            LiveCredential, or None when voice is unavailable
        """
        if not self.config.api_token:
            logger.warning("API_TOKEN not configured - live voice unavailable")
            return None

        headers = {"Authorization": f"Bearer {self.config.api_token}"}
        try:
            if self._client is not None:
                response = await self._client.post(self.config.live_config_url, json={}, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.config.request_timeout) as client:
                    response = await client.post(self.config.live_config_url, json={}, headers=headers)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Live voice credential unavailable: {e}")
            return None

        api_key = data.get("apiKey") if isinstance(data, dict) else None
        if not api_key:
            logger.warning("Credential endpoint returned no key")
            return None

        return LiveCredential(
            api_key=api_key,
            model=data.get("model") or self.config.realtime_model,
            voice=data.get("voice") or self.config.realtime_voice,
        )


async def mint_realtime_secret(
    config: Config | None = None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Create an ephemeral realtime client secret with the server's OpenAI key.

    Args:
        config: Application configuration
        client: Optional HTTP client

    Returns:
        The ephemeral secret value

    Raises:
        ConfigurationUnavailableError: If the key is missing or minting failed
    """
    config = config or get_config()
    if not config.openai_api_key:
        msg = "OPENAI_API_KEY not configured"
        raise ConfigurationUnavailableError(msg)

    body = {"model": config.realtime_model, "voice": config.realtime_voice}
    headers = {"Authorization": f"Bearer {config.openai_api_key}"}
    try:
        if client is not None:
            response = await client.post(config.realtime_secret_url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=config.request_timeout) as own_client:
                response = await own_client.post(config.realtime_secret_url, json=body, headers=headers)
        response.raise_for_status()
        secret = response.json()["client_secret"]["value"]
    except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
        msg = f"Failed to mint realtime secret: {e}"
        raise ConfigurationUnavailableError(msg) from e

    logger.info("Minted ephemeral realtime credential")
    return secret
