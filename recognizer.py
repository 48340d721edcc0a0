"""On-device speech recognizer adapter using Vosk.

Audio arrives on the PortAudio callback thread, is fed straight into a
``KaldiRecognizer`` and every result is handed to the event loop with
``call_soon_threadsafe``.  ``fragments()`` exposes those results as a lazy
async iterator that only ends once ``stop()`` has flushed the final result.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, AsyncIterator, Dict, Optional

from errors import RECOGNITION_ERROR, CaptureError
from models import RecognitionOptions, TranscriptFragment

try:
    import vosk
except Exception:  # pragma: no cover
    vosk = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

_STOP = object()
_MODELS: Dict[str, Any] = {}


def is_live_recognition_supported(model_path: str) -> bool:
    """Return True when on-device recognition can run here.

    Pure environment query: checks the imported libraries and that the
    model directory exists. Nothing is loaded or opened.
    """
    if vosk is None or sd is None:
        return False
    return bool(model_path) and os.path.isdir(model_path)


def _parse_result(raw: str, key: str) -> str:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        return ""
    if not isinstance(payload, dict):
        return ""
    return str(payload.get(key, "")).strip()


class VoskRecognizer:
    def __init__(
        self,
        model_path: str,
        options: Optional[RecognitionOptions] = None,
        sample_rate: int = 16000,
        chunk_ms: int = 100,
        device: Any = None,
    ) -> None:
        self._model_path = model_path
        self.options = options or RecognitionOptions()
        self.sample_rate = sample_rate
        self.chunk_ms = chunk_ms
        self.device = device
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._stream: Any = None
        self._recognizer: Any = None
        self._running = False
        self._last_partial = ""

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            return
        if vosk is None or sd is None:
            raise CaptureError(RECOGNITION_ERROR, "vosk or sounddevice is not installed")
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._last_partial = ""
        try:
            model = await self._loop.run_in_executor(None, self._load_model)
            self._recognizer = vosk.KaldiRecognizer(model, self.sample_rate)
            self._stream = sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="int16",
                blocksize=int(self.sample_rate * (self.chunk_ms / 1000.0)),
                device=self.device,
                callback=self._on_audio,
            )
            self._running = True
            self._stream.start()
        except Exception as exc:
            self._running = False
            self._close_stream()
            self._recognizer = None
            raise CaptureError(RECOGNITION_ERROR, f"recognition start failed: {exc}") from exc
        logger.debug(
            "live recognition started (language=%s continuous=%s interim=%s)",
            self.options.language,
            self.options.continuous,
            self.options.interim_results,
        )

    async def fragments(self) -> AsyncIterator[TranscriptFragment]:
        queue = self._queue
        if queue is None:
            return
        while True:
            item = await queue.get()
            if item is _STOP:
                return
            if isinstance(item, BaseException):
                raise CaptureError(RECOGNITION_ERROR, str(item)) from item
            yield item

    async def stop(self) -> None:
        if self._loop is None or self._queue is None:
            return
        was_running, self._running = self._running, False
        self._close_stream()
        if was_running and self._recognizer is not None:
            text = _parse_result(self._recognizer.FinalResult(), "text")
            if text:
                self._loop.call_soon(self._queue.put_nowait, TranscriptFragment(text, is_final=True))
        self._recognizer = None
        # Queued after any fragment the audio thread already scheduled.
        self._loop.call_soon(self._queue.put_nowait, _STOP)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _load_model(self) -> Any:
        model = _MODELS.get(self._model_path)
        if model is None:
            model = vosk.Model(self._model_path)
            _MODELS[self._model_path] = model
        return model

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or self._recognizer is None:
            return
        try:
            fragment = self._recognize(bytes(indata))
        except Exception as exc:
            self._running = False
            self._emit(exc)
            return
        if fragment is not None:
            self._emit(fragment)

    def _recognize(self, data: bytes) -> Optional[TranscriptFragment]:
        if self._recognizer.AcceptWaveform(data):
            self._last_partial = ""
            text = _parse_result(self._recognizer.Result(), "text")
            if not text:
                return None
            if not self.options.continuous:
                self._running = False
                self._emit(TranscriptFragment(text, is_final=True))
                self._emit(_STOP)
                return None
            return TranscriptFragment(text, is_final=True)
        if not self.options.interim_results:
            return None
        partial = _parse_result(self._recognizer.PartialResult(), "partial")
        if not partial or partial == self._last_partial:
            return None
        self._last_partial = partial
        return TranscriptFragment(partial, is_final=False)

    def _emit(self, item: object) -> None:
        if self._loop is None or self._queue is None:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
