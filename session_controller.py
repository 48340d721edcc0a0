"""State-machine based recording session orchestration."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Set, Union

from capture import CaptureStrategySelector
from errors import ERROR_MESSAGES, RECOGNITION_ERROR, ApiError, CaptureError
from interfaces import LiveRecognizer, Recorder, Transcriber
from models import AudioClip, CaptureStrategy, ChatState, SessionStatus
from transcript import InputBuffer, TranscriptAccumulator

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionStatus, SessionStatus], None]
PreviewCallback = Callable[[str], None]
ErrorCallback = Callable[[str, str], None]


class RecordingSession:
    """One press-to-talk interaction bound to a single capture strategy."""

    def __init__(
        self,
        strategy: CaptureStrategy,
        capture: Union[LiveRecognizer, Recorder],
        input_buffer: InputBuffer,
        on_preview: Optional[PreviewCallback] = None,
        on_ended: Optional[Callable[["RecordingSession"], None]] = None,
    ) -> None:
        self._strategy = strategy
        self._capture = capture
        self._input = input_buffer
        self._on_preview = on_preview
        self._on_ended = on_ended
        self._accumulator = TranscriptAccumulator()
        self._pump: Optional[asyncio.Task] = None
        self.status = SessionStatus.IDLE
        self.error: Optional[CaptureError] = None

    @property
    def strategy(self) -> CaptureStrategy:
        return self._strategy

    @property
    def accumulated_text(self) -> str:
        return self._accumulator.committed

    async def start(self) -> bool:
        if self.status != SessionStatus.IDLE:
            return self.status == SessionStatus.ACTIVE
        try:
            await self._capture.start()
        except CaptureError as exc:
            logger.error("%s capture failed to start: %s", self._strategy.value, exc)
            self.error = exc
            self.status = SessionStatus.STOPPED
            await self._release()
            return False
        self.status = SessionStatus.ACTIVE
        if self._strategy == CaptureStrategy.LIVE:
            self._pump = asyncio.create_task(self._consume())
        return True

    async def stop(self) -> Optional[AudioClip]:
        """Conclude the session; buffered sessions return the recorded clip."""
        if self.status != SessionStatus.ACTIVE:
            return None
        self.status = SessionStatus.STOPPING
        try:
            if self._strategy == CaptureStrategy.LIVE:
                await self._finish_live()
                return None
            return await self._capture.stop()
        finally:
            self.status = SessionStatus.STOPPED

    async def abort(self) -> None:
        """Release the device without committing any text."""
        if self.status == SessionStatus.STOPPED:
            return
        self.status = SessionStatus.STOPPED
        await self._release()
        if self._pump is not None and self._pump is not asyncio.current_task():
            self._pump.cancel()
        self._input.clear_preview()

    async def _consume(self) -> None:
        try:
            async for fragment in self._capture.fragments():
                self._accumulator.add(fragment)
                self._input.set_preview(self._accumulator.preview)
                self._notify_preview()
        except CaptureError as exc:
            logger.warning("live recognition failed mid-session: %s", exc)
            self.error = exc
        if self.status != SessionStatus.ACTIVE:
            return
        # Stream ended on its own: the session ends with what it has.
        self.status = SessionStatus.STOPPING
        await self._finish_live()
        self.status = SessionStatus.STOPPED
        if self._on_ended:
            self._on_ended(self)

    async def _finish_live(self) -> None:
        await self._release()
        pump = self._pump
        if pump is not None and pump is not asyncio.current_task():
            await pump
        self._input.clear_preview()
        self._input.append(self._accumulator.committed.rstrip())
        self._accumulator.reset()
        self._notify_preview()

    async def _release(self) -> None:
        try:
            await self._capture.stop()
        except Exception as exc:
            logger.warning("failed to release %s capture: %s", self._strategy.value, exc)

    def _notify_preview(self) -> None:
        if self._on_preview:
            self._on_preview(self._input.display)


class SessionController:
    def __init__(
        self,
        selector: CaptureStrategySelector,
        recognizer_factory: Callable[[], LiveRecognizer],
        recorder_factory: Callable[[], Recorder],
        transcriber: Transcriber,
        state: Optional[ChatState] = None,
        block_start_while_transcribing: bool = False,
        on_state_change: Optional[StateCallback] = None,
        on_preview: Optional[PreviewCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._selector = selector
        self._recognizer_factory = recognizer_factory
        self._recorder_factory = recorder_factory
        self._transcriber = transcriber
        self._state = state or ChatState()
        self._block_start_while_transcribing = block_start_while_transcribing
        self._on_state_change = on_state_change
        self._on_preview = on_preview
        self._on_error = on_error

        self._session: Optional[RecordingSession] = None
        self._status = SessionStatus.IDLE
        self._transcriptions: Set[asyncio.Task] = set()

    @property
    def state(self) -> SessionStatus:
        return self._status

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    async def start_session(self) -> None:
        if self._session is not None:
            return
        if self._block_start_while_transcribing and self._transcriptions:
            logger.info("start ignored, a transcription is still pending")
            return

        strategy = self._selector.strategy
        session = self._new_session(strategy)
        self._session = session
        started = await session.start()
        if not started and strategy == CaptureStrategy.LIVE:
            logger.warning("falling back to buffered capture: %s", session.error)
            session = self._new_session(CaptureStrategy.BUFFERED)
            self._session = session
            started = await session.start()
        if not started:
            self._session = None
            error = session.error
            if error is not None:
                self._emit_error(error.code, error.message)
            return

        self._state.recording = True
        self._transition(SessionStatus.ACTIVE)

    async def stop_session(self) -> None:
        session = self._session
        if session is None or session.status != SessionStatus.ACTIVE:
            return
        self._transition(SessionStatus.STOPPING)
        try:
            clip = await session.stop()
        finally:
            self._end(session)
        if clip is not None:
            self._submit_transcription(clip)

    async def toggle(self) -> None:
        if self._session is None:
            await self.start_session()
        else:
            await self.stop_session()

    async def cancel_session(self) -> None:
        session = self._session
        if session is None:
            return
        await session.abort()
        self._end(session)

    async def drain(self) -> None:
        """Wait for outstanding transcription requests."""
        if self._transcriptions:
            await asyncio.gather(*self._transcriptions, return_exceptions=True)

    async def close(self) -> None:
        await self.cancel_session()
        for task in list(self._transcriptions):
            task.cancel()
        await self.drain()

    def _new_session(self, strategy: CaptureStrategy) -> RecordingSession:
        if strategy == CaptureStrategy.LIVE:
            capture: Union[LiveRecognizer, Recorder] = self._recognizer_factory()
        else:
            capture = self._recorder_factory()
        return RecordingSession(
            strategy,
            capture,
            self._state.input,
            on_preview=self._on_preview,
            on_ended=self._handle_session_ended,
        )

    def _handle_session_ended(self, session: RecordingSession) -> None:
        self._end(session)
        if session.error is not None:
            self._emit_error(session.error.code or RECOGNITION_ERROR, session.error.message)

    def _end(self, session: RecordingSession) -> None:
        if self._session is not session:
            return
        self._session = None
        self._state.recording = False
        self._transition(SessionStatus.IDLE)

    def _submit_transcription(self, clip: AudioClip) -> None:
        if clip.is_empty:
            logger.debug("nothing recorded, skipping transcription")
            return
        task = asyncio.create_task(self._transcribe(clip))
        self._transcriptions.add(task)
        task.add_done_callback(self._transcriptions.discard)
        self._state.transcribing = True

    async def _transcribe(self, clip: AudioClip) -> None:
        try:
            text = await self._transcriber.transcribe(clip)
        except ApiError as exc:
            logger.error("transcription failed: %s", exc)
            self._emit_error(exc.code, exc.message or ERROR_MESSAGES.get(exc.code, ""))
            return
        finally:
            current = asyncio.current_task()
            self._state.transcribing = any(
                task is not current and not task.done() for task in self._transcriptions
            )
        self._state.input.append(text)
        if self._on_preview:
            self._on_preview(self._state.input.display)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: SessionStatus) -> None:
        from_state = self._status
        if from_state == to_state:
            return
        self._status = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
