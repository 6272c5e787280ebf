"""Voice transport backed by the OpenAI Agents SDK realtime session."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from agents.realtime import RealtimeRunner, RealtimeSession, RealtimeSessionEvent

from ecoagent.agents import BOOKING_TOOL_NAME, BookingVoiceAgent, build_booking_tool
from ecoagent.models import Speaker
from ecoagent.sessions.voice_session import (
    AudioChunk,
    Interrupted,
    SessionClosed,
    SessionError,
    ToolCall,
    ToolCallRequest,
    ToolResponse,
    TranscriptFragment,
    VoiceEvent,
    VoiceSessionSettings,
)

logger = logging.getLogger(__name__)

TRANSCRIPTION_MODEL = "whisper-1"


def build_model_settings(settings: VoiceSessionSettings) -> dict[str, Any]:
    """Translate session settings into realtime model settings.

    The realtime API reports output transcripts through the text modality,
    so output transcription adds ``text`` next to ``audio``.
    """
    modalities = [settings.response_modality]
    if settings.output_transcription and "text" not in modalities:
        modalities.append("text")

    model_settings: dict[str, Any] = {
        "model_name": settings.model,
        "voice": settings.voice,
        "modalities": modalities,
        "input_audio_format": "pcm16",
        "output_audio_format": "pcm16",
        "turn_detection": {
            "type": "server_vad",
            "threshold": 0.5,
            "prefix_padding_ms": 300,
            "silence_duration_ms": 500,
        },
    }
    if settings.input_transcription:
        model_settings["input_audio_transcription"] = {"model": TRANSCRIPTION_MODEL}
    return model_settings


def _item_text(item: Any) -> str:
    parts = []
    for content in getattr(item, "content", None) or []:
        text = getattr(content, "text", None) or getattr(content, "transcript", None)
        if text:
            parts.append(text)
    return " ".join(parts)


class RealtimeVoiceTransport:
    """Adapts a :class:`RealtimeSession` to the voice controller's events.

    The SDK runs declared tools itself. The booking tool declared here
    forwards each call to the controller as a :class:`ToolCallRequest` and
    returns the result the controller sends back through
    :meth:`send_tool_responses`.
    """

    def __init__(self) -> None:
        self._session: RealtimeSession | None = None
        self._events: asyncio.Queue[VoiceEvent] = asyncio.Queue()
        self._pending: dict[str, asyncio.Future[str]] = {}
        self._emitted: set[str] = set()
        self._pump_task: asyncio.Task | None = None
        self._closed = False

    @classmethod
    async def open(cls, settings: VoiceSessionSettings) -> "RealtimeVoiceTransport":
        """Open a realtime session for the given settings.

        Args:
            settings: Session settings including the ephemeral credential

        Returns:
            Connected transport
        """
        transport = cls()
        tools = [build_booking_tool(transport._forward_tool_call)] if BOOKING_TOOL_NAME in settings.tools else []
        agent = BookingVoiceAgent(settings.instructions, tools).create()

        runner = RealtimeRunner(agent)
        session = await runner.run(
            model_config={
                "api_key": settings.api_key,
                "initial_model_settings": build_model_settings(settings),
            }
        )
        await session.enter()
        logger.info("Realtime session started")

        transport._start(session)
        return transport

    def _start(self, session: RealtimeSession) -> None:
        self._session = session
        self._pump_task = asyncio.create_task(self._pump())

    async def _forward_tool_call(self, call_id: str, arguments: dict[str, Any]) -> str:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._pending[call_id] = future
        self._events.put_nowait(ToolCallRequest(calls=(ToolCall(call_id, BOOKING_TOOL_NAME, arguments),)))
        try:
            return await future
        finally:
            self._pending.pop(call_id, None)

    async def _pump(self) -> None:
        assert self._session is not None
        try:
            async for event in self._session:
                for translated in self.translate(event):
                    self._events.put_nowait(translated)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Error in realtime session loop")
            self._events.put_nowait(SessionError(str(e)))
        self._events.put_nowait(SessionClosed())

    def translate(self, event: RealtimeSessionEvent) -> list[VoiceEvent]:
        """Map one SDK event to zero or more controller events."""
        if event.type == "audio":
            return [AudioChunk(event.audio.data)]
        if event.type == "audio_interrupted":
            return [Interrupted()]
        if event.type == "error":
            return [SessionError(str(event.error))]
        if event.type == "history_added":
            return self._transcripts([event.item])
        if event.type == "history_updated":
            return self._transcripts(event.history)
        return []

    def _transcripts(self, items: list[Any]) -> list[VoiceEvent]:
        fragments: list[VoiceEvent] = []
        for item in items:
            if getattr(item, "type", None) != "message" or item.item_id in self._emitted:
                continue
            if getattr(item, "status", None) == "in_progress":
                continue
            role = getattr(item, "role", None)
            if role not in ("user", "assistant"):
                continue
            text = _item_text(item)
            if not text:
                continue
            self._emitted.add(item.item_id)
            speaker = Speaker.USER if role == "user" else Speaker.MODEL
            fragments.append(TranscriptFragment(speaker, text))
        return fragments

    async def send_audio(self, data: bytes) -> None:
        if self._session is None or self._closed:
            return
        await self._session.send_audio(data)

    async def send_tool_responses(self, responses: list[ToolResponse]) -> None:
        for response in responses:
            future = self._pending.get(response.id)
            if future is not None and not future.done():
                future.set_result(response.result)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        for future in self._pending.values():
            if not future.done():
                future.cancel()
        self._pending.clear()

        if self._pump_task is not None and self._pump_task is not asyncio.current_task():
            self._pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._pump_task

        if self._session is not None:
            await self._session.close()
        logger.info("Realtime session closed")

    async def __aiter__(self) -> AsyncIterator[VoiceEvent]:
        while True:
            event = await self._events.get()
            yield event
            if isinstance(event, SessionClosed):
                return
