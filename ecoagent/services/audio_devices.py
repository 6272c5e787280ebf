"""Microphone and speaker access for live voice sessions."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from ecoagent.services.audio_converter import (
    CAPTURE_FRAME_SIZE,
    CAPTURE_SAMPLE_RATE,
    PLAYBACK_SAMPLE_RATE,
)

logger = logging.getLogger(__name__)

FrameCallback = Callable[[np.ndarray], None]
RenderCallback = Callable[[int], np.ndarray]


@dataclass(frozen=True)
class CaptureOptions:
    """Microphone capture settings."""

    sample_rate: int = CAPTURE_SAMPLE_RATE
    frame_size: int = CAPTURE_FRAME_SIZE
    channels: int = 1
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True


class AudioStream(Protocol):
    """An open device stream."""

    def close(self) -> None: ...


class AudioBackend(Protocol):
    """Opens capture and playback streams.

    Callbacks run on the audio thread and must not block.
    """

    def open_microphone(self, options: CaptureOptions, on_frame: FrameCallback) -> AudioStream: ...

    def open_speaker(self, sample_rate: int, render: RenderCallback) -> AudioStream: ...


class SoundDeviceStream:
    """Wraps a started sounddevice stream."""

    def __init__(self, stream) -> None:
        self._stream = stream
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream.stop()
        self._stream.close()


class SoundDeviceBackend:
    """Audio backend using PortAudio through ``sounddevice``.

    ``sounddevice`` is imported when a stream is opened, so the package can
    be imported on hosts without PortAudio (the text mode still works).
    Echo cancellation, noise suppression and gain control are left to the
    operating system's audio stack; PortAudio does not expose them.
    """

    def __init__(self, input_device: int | str | None = None, output_device: int | str | None = None) -> None:
        self.input_device = input_device
        self.output_device = output_device

    def open_microphone(self, options: CaptureOptions, on_frame: FrameCallback) -> SoundDeviceStream:
        """Open and start the microphone.

        Args:
            options: Capture settings
            on_frame: Called with a copy of each mono float32 frame

        Returns:
            The started stream
        """
        import sounddevice as sd

        def on_audio_in(indata, frames, time_info, status) -> None:
            if status:
                logger.debug(f"Input stream status: {status}")
            on_frame(np.array(indata[:, 0], dtype=np.float32))

        logger.info(
            "Opening microphone at %d Hz (echo_cancellation=%s, noise_suppression=%s, auto_gain=%s)",
            options.sample_rate,
            options.echo_cancellation,
            options.noise_suppression,
            options.auto_gain_control,
        )
        stream = sd.InputStream(
            samplerate=options.sample_rate,
            channels=options.channels,
            dtype="float32",
            blocksize=options.frame_size,
            device=self.input_device,
            latency="low",
            callback=on_audio_in,
        )
        stream.start()
        return SoundDeviceStream(stream)

    def open_speaker(self, sample_rate: int, render: RenderCallback) -> SoundDeviceStream:
        """Open and start the speaker.

        Args:
            sample_rate: Output sample rate
            render: Called with the number of frames needed, returns float32 samples

        Returns:
            The started stream
        """
        import sounddevice as sd

        def on_audio_out(outdata, frames, time_info, status) -> None:
            if status:
                logger.debug(f"Output stream status: {status}")
            outdata[:, 0] = render(frames)

        logger.info("Opening speaker at %d Hz", sample_rate)
        stream = sd.OutputStream(
            samplerate=sample_rate or PLAYBACK_SAMPLE_RATE,
            channels=1,
            dtype="float32",
            device=self.output_device,
            latency="low",
            callback=on_audio_out,
        )
        stream.start()
        return SoundDeviceStream(stream)
