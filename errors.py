"""Shared error codes, user-facing messages and exception types."""

from __future__ import annotations

LIMIT_REACHED = "LIMIT_REACHED"
NETWORK_ERROR = "NETWORK_ERROR"
REMOTE_ERROR = "REMOTE_ERROR"
PERMISSION_DENIED = "PERMISSION_DENIED"
RECOGNITION_ERROR = "RECOGNITION_ERROR"

ERROR_MESSAGES = {
    LIMIT_REACHED: "You've hit the free message limit. Sign in to keep chatting.",
    NETWORK_ERROR: "Network failed, please retry.",
    REMOTE_ERROR: "The server could not handle the request.",
    PERMISSION_DENIED: "Microphone is unavailable or access was denied.",
    RECOGNITION_ERROR: "Speech recognition stopped unexpectedly.",
}


class ApiError(Exception):
    """Non-success answer (or no answer) from one of the remote endpoints."""

    def __init__(self, status: int, code: str = REMOTE_ERROR, message: str = "") -> None:
        super().__init__(message or code)
        self.status = status
        self.code = code
        self.message = message

    @property
    def is_limit(self) -> bool:
        return self.code == LIMIT_REACHED


class CaptureError(Exception):
    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message
