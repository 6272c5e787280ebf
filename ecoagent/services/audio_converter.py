"""Audio conversion and playback scheduling for realtime voice sessions.

Handles conversion between:
- Microphone: 16kHz mono float32 frames
- OpenAI Realtime API: 24kHz PCM16 audio (both directions)
- Speaker: 24kHz mono float32 buffers
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from scipy import signal

logger = logging.getLogger(__name__)

CAPTURE_SAMPLE_RATE = 16000
CAPTURE_FRAME_SIZE = 2048
PLAYBACK_SAMPLE_RATE = 24000
WIRE_SAMPLE_RATE = 24000

PCM16_MAX = 32767
PCM16_SCALE = 32768.0


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Convert float samples in [-1, 1] to int16, clipping out-of-range values."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    return np.clip(clipped * PCM16_SCALE, -PCM16_SCALE, PCM16_MAX).astype(np.int16)


def resample(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Resample a mono buffer between sample rates.

    Args:
        samples: Mono audio samples
        source_rate: Sample rate of ``samples``
        target_rate: Desired sample rate

    Returns:
        Resampled float32 samples (the input unchanged if the rates match)
    """
    if source_rate == target_rate or len(samples) == 0:
        return np.asarray(samples, dtype=np.float32)

    num_samples = int(round(len(samples) * target_rate / source_rate))
    return signal.resample(samples, num_samples).astype(np.float32)


def encode_capture_frame(
    frame: np.ndarray,
    source_rate: int = CAPTURE_SAMPLE_RATE,
    target_rate: int = WIRE_SAMPLE_RATE,
) -> bytes:
    """Convert a microphone frame to the PCM16 wire format.

    Args:
        frame: Float32 microphone samples in [-1, 1]
        source_rate: Microphone sample rate
        target_rate: Sample rate the realtime API expects

    Returns:
        Little-endian PCM16 bytes at ``target_rate``
    """
    samples = np.asarray(frame, dtype=np.float32).reshape(-1)
    if samples.size == 0:
        return b""

    resampled = resample(samples, source_rate, target_rate)
    return float_to_pcm16(resampled).astype("<i2").tobytes()


def decode_pcm16(data: bytes) -> np.ndarray:
    """Decode PCM16 wire audio into float32 samples in [-1, 1).

    A trailing odd byte is ignored.

    Args:
        data: Little-endian PCM16 bytes

    Returns:
        Float32 samples
    """
    usable = len(data) - (len(data) % 2)
    if usable <= 0:
        return np.zeros(0, dtype=np.float32)

    pcm = np.frombuffer(data[:usable], dtype="<i2")
    return (pcm.astype(np.float32) / PCM16_SCALE).astype(np.float32)


class VolumeMeter:
    """Throttled RMS level of microphone frames for a visual indicator.

    The RMS is computed over every ``stride``-th sample and at most once per
    ``min_interval`` seconds.
    """

    def __init__(
        self,
        min_interval: float = 0.1,
        stride: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval = min_interval
        self.stride = max(1, stride)
        self._clock = clock
        self._last_update: float | None = None
        self.level = 0.0

    def update(self, frame: np.ndarray) -> float | None:
        """Measure a frame if the throttle interval has elapsed.

        Args:
            frame: Float32 microphone samples

        Returns:
            The new level, or None when the measurement was skipped
        """
        now = self._clock()
        if self._last_update is not None and now - self._last_update < self.min_interval:
            return None

        sampled = np.asarray(frame, dtype=np.float32).reshape(-1)[:: self.stride]
        self.level = float(np.sqrt(np.mean(np.square(sampled)))) if sampled.size else 0.0
        self._last_update = now
        return self.level

    def reset(self) -> None:
        self.level = 0.0
        self._last_update = None


@dataclass
class ScheduledSegment:
    """A decoded audio buffer placed on the playback timeline.

    Positions are in samples from the start of playback.
    """

    start: int
    samples: np.ndarray
    sample_rate: int

    @property
    def end(self) -> int:
        return self.start + len(self.samples)

    @property
    def start_time(self) -> float:
        return self.start / self.sample_rate

    @property
    def end_time(self) -> float:
        return self.end / self.sample_rate

    @property
    def duration(self) -> float:
        return len(self.samples) / self.sample_rate


class PlaybackScheduler:
    """Gapless, non-overlapping playback queue for streamed audio chunks.

    Each chunk starts at ``max(clock, next_start)`` and moves ``next_start``
    forward by its length, so chunks play back to back in arrival order
    whatever the network jitter. The clock advances as the speaker pulls
    samples through :meth:`render`, which runs on the audio thread.
    """

    def __init__(self, sample_rate: int = PLAYBACK_SAMPLE_RATE) -> None:
        self.sample_rate = sample_rate
        self._lock = threading.Lock()
        self._clock = 0
        self._next_start = 0
        self._segments: list[ScheduledSegment] = []

    @property
    def current_time(self) -> float:
        with self._lock:
            return self._clock / self.sample_rate

    @property
    def next_start_time(self) -> float:
        with self._lock:
            return max(self._clock, self._next_start) / self.sample_rate

    @property
    def pending(self) -> list[ScheduledSegment]:
        """Segments that are scheduled or currently playing."""
        with self._lock:
            return list(self._segments)

    def schedule(self, samples: np.ndarray) -> ScheduledSegment:
        """Queue a decoded chunk right after everything already scheduled.

        Args:
            samples: Float32 samples at the scheduler's sample rate

        Returns:
            The scheduled segment
        """
        buffer = np.asarray(samples, dtype=np.float32).reshape(-1)
        with self._lock:
            start = max(self._clock, self._next_start)
            segment = ScheduledSegment(start, buffer, self.sample_rate)
            self._next_start = segment.end
            if len(buffer):
                self._segments.append(segment)
        return segment

    def render(self, frames: int) -> np.ndarray:
        """Produce the next ``frames`` samples of output and advance the clock.

        Args:
            frames: Number of samples the output device requests

        Returns:
            Float32 buffer of length ``frames`` (silence where nothing plays)
        """
        out = np.zeros(frames, dtype=np.float32)
        with self._lock:
            window_start = self._clock
            window_end = window_start + frames
            for segment in self._segments:
                if segment.start >= window_end:
                    break
                lo = max(segment.start, window_start)
                hi = min(segment.end, window_end)
                if hi > lo:
                    out[lo - window_start : hi - window_start] = segment.samples[
                        lo - segment.start : hi - segment.start
                    ]
            self._clock = window_end
            self._segments = [s for s in self._segments if s.end > window_end]
        return out

    def interrupt(self) -> int:
        """Drop every scheduled segment and restart scheduling at the clock.

        Returns:
            Number of segments discarded
        """
        with self._lock:
            dropped = len(self._segments)
            self._segments.clear()
            self._next_start = self._clock
        if dropped:
            logger.info("Playback interrupted, discarded %d segment(s)", dropped)
        return dropped

    def stop(self) -> None:
        """Discard all playback state, including the clock."""
        with self._lock:
            self._segments.clear()
            self._clock = 0
            self._next_start = 0
