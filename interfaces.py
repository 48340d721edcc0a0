"""Protocol interfaces used by the session and conversation controllers."""

from __future__ import annotations

from typing import AsyncIterator, List, Protocol

from models import AudioClip, ChatReply, TranscriptFragment


class Recorder(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> AudioClip: ...


class LiveRecognizer(Protocol):
    async def start(self) -> None: ...

    def fragments(self) -> AsyncIterator[TranscriptFragment]: ...

    async def stop(self) -> None: ...


class Transcriber(Protocol):
    async def transcribe(self, clip: AudioClip) -> str: ...


class Synthesizer(Protocol):
    async def synthesize(self, text: str) -> bytes: ...


class ReasoningClient(Protocol):
    async def chat(self, messages: List[dict]) -> ChatReply: ...


class AudioOutput(Protocol):
    def bind(self, audio: bytes) -> None: ...

    def stop(self) -> None: ...


class ConfigStore(Protocol):
    def get_api_url(self) -> str: ...

    def set_api_url(self, url: str) -> None: ...

    def get_auth_token(self) -> str: ...

    def set_auth_token(self, token: str) -> None: ...

    def get_model_path(self) -> str: ...

    def get_language(self) -> str: ...

    def get_force_buffered(self) -> bool: ...

    def get_block_start_while_transcribing(self) -> bool: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...
