"""Live voice session: lifecycle, audio streaming and booking tool calls.

The controller is transport-agnostic. A transport opens the remote
streaming session, accepts PCM16 audio and tool responses, and yields the
events defined in this module.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import numpy as np

from ecoagent.agents.tools import BOOKING_TOOL_NAME, BOOKING_TOOL_RESULT, UNKNOWN_TOOL_RESULT
from ecoagent.models import BookingDraft, ChatMessage, Speaker
from ecoagent.services.audio_converter import (
    PLAYBACK_SAMPLE_RATE,
    PlaybackScheduler,
    VolumeMeter,
    decode_pcm16,
    encode_capture_frame,
)
from ecoagent.services.audio_devices import AudioBackend, AudioStream, CaptureOptions
from ecoagent.services.live_config import LiveConfigClient
from ecoagent.sessions.booking_session import BookingSession

logger = logging.getLogger(__name__)

UNAVAILABLE_ERROR = "Live voice feature is currently unavailable. Please use the chat interface."
CONNECTION_ERROR = "Connection error detected."


class VoiceState(str, Enum):
    """Lifecycle of a live voice session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class AudioChunk:
    """PCM16 audio from the model."""

    data: bytes


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolCallRequest:
    """One or more function calls the model is waiting on."""

    calls: tuple[ToolCall, ...]


@dataclass(frozen=True)
class Interrupted:
    """The user started speaking over the assistant."""


@dataclass(frozen=True)
class TranscriptFragment:
    role: Speaker
    text: str
    is_final: bool = True


@dataclass(frozen=True)
class SessionError:
    message: str


@dataclass(frozen=True)
class SessionClosed:
    """The remote side closed the session."""


VoiceEvent = AudioChunk | ToolCallRequest | Interrupted | TranscriptFragment | SessionError | SessionClosed


@dataclass(frozen=True)
class ToolResponse:
    id: str
    name: str
    result: str


@dataclass(frozen=True)
class VoiceSessionSettings:
    """Everything a transport needs to open the streaming session."""

    api_key: str
    model: str
    voice: str
    instructions: str
    response_modality: str = "audio"
    tools: tuple[str, ...] = (BOOKING_TOOL_NAME,)
    input_transcription: bool = True
    output_transcription: bool = True


class VoiceTransport(Protocol):
    """An open streaming session with the model."""

    async def send_audio(self, data: bytes) -> None: ...

    async def send_tool_responses(self, responses: list[ToolResponse]) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[VoiceEvent]: ...


TransportFactory = Callable[[VoiceSessionSettings], Awaitable[VoiceTransport]]


class VoiceSessionController:
    """Owns one live voice session with the model.

    Microphone frames arrive on the audio thread and are handed to the event
    loop, where they are metered, encoded and sent without waiting. Model
    audio is decoded and placed on the playback scheduler that the speaker
    stream reads from. Booking tool calls are merged straight into the
    :class:`BookingSession`.

    Attributes:
        state: Current lifecycle state
        error: Last user-facing error, if any
        transcript: Final transcript entries of the session
        scheduler: Playback queue read by the speaker stream
        meter: Microphone level meter
    """

    def __init__(
        self,
        live_config: LiveConfigClient,
        transport_factory: TransportFactory,
        audio: AudioBackend,
        booking: BookingSession,
        system_instruction: str,
        capture_options: CaptureOptions | None = None,
    ) -> None:
        self.live_config = live_config
        self.transport_factory = transport_factory
        self.audio = audio
        self.booking = booking
        self.system_instruction = system_instruction
        self.capture_options = capture_options or CaptureOptions()

        self.state = VoiceState.DISCONNECTED
        self.error: str | None = None
        self.transcript: list[ChatMessage] = []
        self.scheduler = PlaybackScheduler(PLAYBACK_SAMPLE_RATE)
        self.meter = VolumeMeter()

        self._transport: VoiceTransport | None = None
        self._microphone: AudioStream | None = None
        self._speaker: AudioStream | None = None
        self._receive_task: asyncio.Task | None = None
        self._send_tasks: set[asyncio.Task] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def connected(self) -> bool:
        return self.state == VoiceState.CONNECTED

    @property
    def volume(self) -> float:
        return self.meter.level

    async def connect(self) -> bool:
        """Open the live session.

        Does nothing while a session is connecting or connected. When no
        credential is available the microphone is never opened.

        Returns:
            True if the session is now connected
        """
        if self.state in (VoiceState.CONNECTING, VoiceState.CONNECTED):
            return False

        self.error = None
        self.state = VoiceState.CONNECTING

        credential = await self.live_config.fetch()
        if credential is None:
            self.error = UNAVAILABLE_ERROR
            self.state = VoiceState.DISCONNECTED
            return False

        if self.state != VoiceState.CONNECTING:
            logger.info("Voice session cancelled while fetching credentials")
            return False

        try:
            self._loop = asyncio.get_running_loop()
            self._speaker = self.audio.open_speaker(PLAYBACK_SAMPLE_RATE, self.scheduler.render)
            self._microphone = self.audio.open_microphone(self.capture_options, self._on_capture_frame)
            settings = VoiceSessionSettings(
                api_key=credential.api_key,
                model=credential.model,
                voice=credential.voice,
                instructions=self.system_instruction,
            )
            self._transport = await self.transport_factory(settings)
        except Exception as e:
            logger.exception("Failed to start voice session")
            self.error = str(e) or "Failed to connect"
            await self._teardown()
            self.state = VoiceState.ERROR
            return False

        if self.state != VoiceState.CONNECTING:
            await self._teardown()
            return False

        self.state = VoiceState.CONNECTED
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("Voice session connected (model=%s, voice=%s)", credential.model, credential.voice)
        return True

    async def disconnect(self) -> None:
        """Tear the session down. Safe to call repeatedly and from any state."""
        if self.state == VoiceState.DISCONNECTED and self._transport is None and self._microphone is None:
            self.meter.reset()
            return

        await self._teardown()
        self.state = VoiceState.DISCONNECTED
        logger.info("Voice session disconnected")

    def _on_capture_frame(self, frame: np.ndarray) -> None:
        # Audio thread: hand the frame to the event loop and return
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(self._handle_capture_frame, frame)

    def _handle_capture_frame(self, frame: np.ndarray) -> None:
        if self._microphone is None:
            return
        self.meter.update(frame)
        if self.state != VoiceState.CONNECTED or self._transport is None:
            return

        task = asyncio.create_task(self._send_audio(encode_capture_frame(frame)))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)

    async def _send_audio(self, data: bytes) -> None:
        transport = self._transport
        if transport is None:
            return
        try:
            await transport.send_audio(data)
        except Exception as e:
            logger.warning(f"Failed to send audio chunk: {e}")

    async def _receive_loop(self) -> None:
        transport = self._transport
        if transport is None:
            return

        try:
            async for event in transport:
                await self.handle_event(event)
                if self.state != VoiceState.CONNECTED:
                    return
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Voice session receive loop failed")
            await self._fail(CONNECTION_ERROR)
            return

        if self.state == VoiceState.CONNECTED:
            logger.info("Voice session ended by the server")
            await self._teardown()
            self.state = VoiceState.DISCONNECTED

    async def handle_event(self, event: VoiceEvent) -> None:
        """Apply one event from the transport."""
        if isinstance(event, AudioChunk):
            samples = decode_pcm16(event.data)
            if samples.size:
                self.scheduler.schedule(samples)
        elif isinstance(event, ToolCallRequest):
            await self._handle_tool_calls(event)
        elif isinstance(event, Interrupted):
            self.scheduler.interrupt()
        elif isinstance(event, TranscriptFragment):
            if event.is_final and event.text.strip():
                self.transcript.append(ChatMessage(role=event.role, text=event.text.strip()))
        elif isinstance(event, SessionError):
            logger.error(f"Voice session error: {event.message}")
            await self._fail(CONNECTION_ERROR)
        elif isinstance(event, SessionClosed):
            await self._teardown()
            self.state = VoiceState.DISCONNECTED

    async def _handle_tool_calls(self, request: ToolCallRequest) -> None:
        responses = []
        changed: list[str] = []
        for call in request.calls:
            if call.name == BOOKING_TOOL_NAME:
                changed.extend(self.booking.merge(BookingDraft.from_partial(call.arguments)))
                responses.append(ToolResponse(call.id, call.name, BOOKING_TOOL_RESULT))
            else:
                logger.warning(f"Model called unknown tool {call.name}")
                responses.append(ToolResponse(call.id, call.name, UNKNOWN_TOOL_RESULT))

        transport = self._transport
        if transport is not None:
            try:
                await transport.send_tool_responses(responses)
            except Exception as e:
                logger.error(f"Failed to send tool responses: {e}")

        if changed:
            await self.booking.persist()

    async def _fail(self, message: str) -> None:
        self.error = message
        await self._teardown()
        self.state = VoiceState.ERROR

    async def _teardown(self) -> None:
        task, self._receive_task = self._receive_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        for send_task in list(self._send_tasks):
            send_task.cancel()
        self._send_tasks.clear()

        transport, self._transport = self._transport, None
        if transport is not None:
            try:
                await transport.close()
            except Exception as e:
                logger.warning(f"Error closing voice transport: {e}")

        for name in ("_microphone", "_speaker"):
            stream = getattr(self, name)
            setattr(self, name, None)
            if stream is not None:
                try:
                    stream.close()
                except Exception as e:
                    logger.warning(f"Error closing audio stream: {e}")

        self._loop = None
        self.scheduler.stop()
        self.meter.reset()
