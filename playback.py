"""Speech playback: one shared output, newest request wins."""

from __future__ import annotations

import io
import logging
from typing import Any, Optional

from errors import ApiError
from interfaces import AudioOutput, Synthesizer
from models import PlaybackRequest

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

try:
    import soundfile as sf
except Exception:  # pragma: no cover
    sf = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceOutput:
    """Reusable audio output. Binding a new source stops the previous one."""

    def __init__(self, device: Any = None) -> None:
        self.device = device
        self.bound = False

    def bind(self, audio: bytes) -> None:
        if sd is None or sf is None:
            raise RuntimeError("sounddevice/soundfile is not installed")
        data, sample_rate = sf.read(io.BytesIO(audio), dtype="float32")
        self.stop()
        sd.play(data, sample_rate, device=self.device, blocking=False)
        self.bound = True

    def stop(self) -> None:
        if sd is not None and self.bound:
            sd.stop()
        self.bound = False


class PlaybackSequencer:
    def __init__(self, synthesizer: Synthesizer, output: AudioOutput) -> None:
        self._synthesizer = synthesizer
        self._output = output
        self._generation = 0
        self.current: Optional[PlaybackRequest] = None

    async def play(self, text: str) -> bool:
        """Synthesize and play ``text``; returns True if audio started."""
        if not text.strip():
            return False
        self._generation += 1
        request = PlaybackRequest(source_text=text, generation=self._generation)
        try:
            audio = await self._synthesizer.synthesize(text)
        except ApiError as exc:
            logger.error("speech synthesis failed: %s", exc)
            return False
        if request.generation != self._generation:
            logger.debug("dropping superseded playback %d", request.generation)
            return False
        try:
            self._output.bind(audio)
        except Exception as exc:
            logger.error("audio playback failed: %s", exc)
            return False
        self.current = request
        return True

    def stop(self) -> None:
        self._generation += 1
        self.current = None
        self._output.stop()
