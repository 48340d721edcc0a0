"""Microphone recorder used by the buffered capture strategy."""

from __future__ import annotations

import io
import logging
import time
import wave
from typing import Any, List

from errors import PERMISSION_DENIED, CaptureError
from models import AudioClip, AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


def frames_to_wav(
    frames: List[AudioFrame],
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> bytes:
    """Concatenate PCM frames into a single WAV payload."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        for frame in frames:
            wf.writeframes(frame.pcm16_bytes)
    return buf.getvalue()


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        device: Any = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.device = device
        self._stream: Any = None
        self._running = False
        self._frames: List[AudioFrame] = []

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        if sd is None:
            raise CaptureError(PERMISSION_DENIED, "sounddevice is not installed")
        self._frames = []
        blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
        try:
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                device=self.device,
                callback=self._on_audio,
            )
            self._stream.start()
        except Exception as exc:
            self._release()
            raise CaptureError(PERMISSION_DENIED, f"microphone unavailable: {exc}") from exc
        self._running = True
        logger.debug("microphone open at %d Hz", self.sample_rate)

    async def stop(self) -> AudioClip:
        self._running = False
        try:
            self._release()
        except Exception as exc:
            logger.warning("failed to close input stream: %s", exc)
        frames, self._frames = self._frames, []
        logger.debug("microphone closed, %d chunks buffered", len(frames))
        return AudioClip(
            data=frames_to_wav(frames, self.sample_rate, self.channels),
            media_type="audio/wav",
            sample_rate=self.sample_rate,
            channels=self.channels,
            chunks=len(frames),
        )

    def _release(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or np is None:
            return
        if status:
            logger.debug("input status: %s", status)
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        # list.append is atomic; the loop thread only reads after the stream is closed
        self._frames.append(
            AudioFrame(
                pcm16_bytes=payload,
                sample_rate=self.sample_rate,
                channels=self.channels,
                timestamp_ms=int(time.time() * 1000),
            )
        )
