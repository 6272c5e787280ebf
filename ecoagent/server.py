"""FastAPI server for the booking assistant: chat, live voice credentials and bookings."""

import hmac
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from agents import Runner
from agents.exceptions import AgentsException, InputGuardrailTripwireTriggered
from fastapi import Body, Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import OpenAIError
from pydantic import BaseModel, ConfigDict, Field

from ecoagent.agents import BookingChatAgent
from ecoagent.config import Config, get_config, setup_logging
from ecoagent.errors import (
    BookingNotFoundError,
    BookingPersistenceError,
    ConfigurationUnavailableError,
)
from ecoagent.guardrails import RateLimiter, validate_chat_input
from ecoagent.models import BookingDraft, HistoryTurn
from ecoagent.services.booking_gateway import BookingGateway, sanitize_booking
from ecoagent.services.booking_store import SQLiteBookingStore
from ecoagent.services.live_config import mint_realtime_secret
from ecoagent.services.notifications import SECRET_HEADER, BookingNotifier, EmailSender

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("customer_name", "email", "phone_number")


class ChatRequest(BaseModel):
    """Body of a chat turn."""

    model_config = ConfigDict(populate_by_name=True)

    history: list[HistoryTurn] = Field(default_factory=list)
    new_message: str = Field(..., alias="newMessage")
    system_instruction: str | None = Field(None, alias="systemInstruction")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan manager."""
    config: Config = _app.state.config or get_config()
    _app.state.config = config
    logger.info(f"Starting Ecocleans assistant API on {config.server_host}:{config.server_port}")

    # The Agents SDK reads the key from the environment
    if config.openai_api_key and "OPENAI_API_KEY" not in os.environ:
        os.environ["OPENAI_API_KEY"] = config.openai_api_key
        logger.info("OpenAI API key loaded into environment")

    if not config.api_tokens:
        logger.warning("API_TOKENS not set - every authenticated endpoint will reject requests")

    store = SQLiteBookingStore(config.booking_db_path)
    _app.state.booking_store = store
    _app.state.gateway = BookingGateway(store, BookingNotifier(config))
    _app.state.email_sender = EmailSender(config)
    _app.state.rate_limiter = RateLimiter(
        config.rate_limit_db_path, limit=config.rate_limit_per_minute
    )

    yield

    logger.info("Shutting down Ecocleans assistant API")
    _app.state.rate_limiter.close()
    store.close()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def require_token(request: Request, authorization: str | None = Header(None)) -> str:
    """Dependency that checks the bearer token against the configured tokens.

    Returns:
        The caller's token

    Raises:
        HTTPException: 401 if the token is missing or unknown
    """
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    allowed = request.app.state.config.api_tokens
    if not any(hmac.compare_digest(token.encode(), candidate.encode()) for candidate in allowed):
        raise HTTPException(status_code=401, detail="Invalid bearer token")
    return token


def create_app(config: Config | None = None) -> FastAPI:
    """Build the API application.

    Args:
        config: Configuration to use; the global configuration when omitted

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Ecocleans Booking Assistant API",
        description="Chat, live voice credentials and booking persistence",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(HTTPException)
    async def http_error(_request: Request, exc: HTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug(f"Rejected malformed request: {exc.errors()}")
        return _error(400, "Invalid request body")

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring."""
        return {"status": "healthy", "service": "ecoagent-api"}

    @app.post("/chat")
    async def chat(body: ChatRequest, request: Request, token: str = Depends(require_token)):
        """Answer one chat turn.

        Request body:
            {"history": [{"role": "user", "text": "..."}], "newMessage": "...",
             "systemInstruction": "..."}

        Returns:
            {"responseText": "..."}
        """
        state = request.app.state
        if not state.rate_limiter.allow(token):
            return _error(429, "Too many requests. Please try again shortly.")

        reason = validate_chat_input(body.new_message)
        if reason:
            return _error(400, reason)

        agent = BookingChatAgent(body.system_instruction, state.config).create()
        input_items: list[Any] = [
            {"role": turn.role, "content": turn.text} for turn in body.history
        ]
        input_items.append({"role": "user", "content": body.new_message})

        logger.info(f"Processing chat turn ({len(body.history)} prior turns)")
        try:
            result = await Runner.run(agent, input_items)
        except InputGuardrailTripwireTriggered:
            logger.warning("Chat input rejected by guardrail")
            return _error(400, "Message rejected. Please rephrase.")
        except (AgentsException, OpenAIError):
            logger.exception("Model failed to answer chat turn")
            return _error(502, "Failed to get AI response")

        return {"responseText": str(result.final_output or "")}

    @app.post("/live-config")
    async def live_config(request: Request, _token: str = Depends(require_token)):
        """Mint a short-lived credential for a live voice session.

        Returns:
            {"apiKey": "...", "model": "...", "voice": "..."}
        """
        config: Config = request.app.state.config
        try:
            secret = await mint_realtime_secret(config)
        except ConfigurationUnavailableError as e:
            logger.warning(f"Live voice unavailable: {e}")
            return _error(503, "Live voice is unavailable")

        return {"apiKey": secret, "model": config.realtime_model, "voice": config.realtime_voice}

    @app.post("/bookings")
    async def save_booking(
        request: Request,
        payload: dict[str, Any] = Body(...),
        _token: str = Depends(require_token),
    ):
        """Create a booking, or update it when ``id`` is given.

        Invalid field values are dropped rather than rejected. A new booking
        needs at least a name, email or phone number.

        Returns:
            {"id": "...", "success": true}
        """
        booking_id = payload.pop("id", None)
        if booking_id is not None:
            try:
                booking_id = str(uuid.UUID(str(booking_id)))
            except ValueError:
                return _error(400, "Invalid booking id")

        draft = BookingDraft.from_partial(payload)
        gateway: BookingGateway = request.app.state.gateway

        if booking_id is None:
            if not any(name in sanitize_booking(draft) for name in CONTACT_FIELDS):
                return _error(400, "At least customer name, email, or phone number is required")

        try:
            saved_id = await gateway.reconcile(booking_id, draft)
        except BookingNotFoundError:
            return _error(404, "Booking not found")
        except BookingPersistenceError:
            return _error(500, "Failed to save booking")

        return {"id": saved_id, "success": True}

    @app.post("/notifications/booking")
    async def booking_notification(
        request: Request,
        payload: dict[str, Any] = Body(...),
        notification_secret: str | None = Header(None, alias=SECRET_HEADER),
    ):
        """Email the administrator about a newly created booking."""
        config: Config = request.app.state.config
        expected = config.notification_secret
        if not expected or not notification_secret or not hmac.compare_digest(
            notification_secret.encode(), expected.encode()
        ):
            return _error(401, "Unauthorized")

        booking_id = payload.get("id", "unknown")
        sent = await request.app.state.email_sender.send_booking_email(payload)
        logger.info(f"Notification for booking {booking_id} handled (email sent: {sent})")
        return {"success": True, "emailSent": sent}

    return app


app = create_app()


def run_server():
    """Run the FastAPI server using uvicorn.

    This is the main entry point for the server.
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "ecoagent.server:app",
        host=config.server_host,
        port=config.server_port,
        log_level=config.log_level.lower(),
        reload=False,
    )


if __name__ == "__main__":
    run_server()
