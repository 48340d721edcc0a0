"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from transcript import InputBuffer


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class CaptureStrategy(str, Enum):
    LIVE = "live"
    BUFFERED = "buffered"


class SessionStatus(str, Enum):
    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    thought: Optional[str] = None

    def to_payload(self) -> dict:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class TranscriptFragment:
    text: str
    is_final: bool = False


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class AudioClip:
    data: bytes
    media_type: str = "audio/wav"
    sample_rate: int = 16000
    channels: int = 1
    chunks: int = 0

    @property
    def is_empty(self) -> bool:
        return self.chunks == 0

    @property
    def filename(self) -> str:
        return "recording." + self.media_type.split("/")[-1]


@dataclass(frozen=True)
class PlaybackRequest:
    source_text: str
    generation: int = 0


@dataclass(frozen=True)
class RecognitionOptions:
    language: str = "en-US"
    continuous: bool = True
    interim_results: bool = True


@dataclass
class ChatState:
    """State shared by the session and conversation controllers.

    Each field has one writer. The session controller owns ``recording``,
    ``transcribing`` and the input preview; the conversation controller owns
    ``messages``, ``awaiting_reply`` and ``limit_reached``.
    """

    input: InputBuffer = field(default_factory=InputBuffer)
    messages: List[Message] = field(default_factory=list)
    recording: bool = False
    transcribing: bool = False
    awaiting_reply: bool = False
    limit_reached: bool = False

    @property
    def is_loading(self) -> bool:
        return self.transcribing or self.awaiting_reply


@dataclass(frozen=True)
class ChatReply:
    content: str
    thought: Optional[str] = None
