"""HTTP client for the chat, transcription and speech synthesis endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from errors import NETWORK_ERROR, REMOTE_ERROR, ApiError
from models import AudioClip, ChatReply

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
TRANSCRIBE_PATH = "/api/transcribe"
TTS_PATH = "/api/tts"


def _error_payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text}
    return payload if isinstance(payload, dict) else {"message": str(payload)}


def _json_body(response: httpx.Response, path: str) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ApiError(response.status_code, REMOTE_ERROR, f"{path}: response is not JSON") from exc
    if not isinstance(payload, dict):
        raise ApiError(response.status_code, REMOTE_ERROR, f"{path}: unexpected response shape")
    return payload


class AssistantApiClient:
    def __init__(
        self,
        base_url: str,
        auth_token: str = "",
        timeout_s: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_s, connect=10.0),
            transport=transport,
        )
        self.set_auth_token(auth_token)

    def set_auth_token(self, token: str) -> None:
        if token:
            self._client.headers["Authorization"] = f"Bearer {token}"
        else:
            self._client.headers.pop("Authorization", None)

    async def chat(self, messages: List[dict]) -> ChatReply:
        response = await self._post(CHAT_PATH, json={"messages": messages})
        data = _json_body(response, CHAT_PATH)
        content = data.get("content") or ""
        thought = data.get("thought")
        return ChatReply(content=str(content), thought=str(thought) if thought else None)

    async def transcribe(self, clip: AudioClip) -> str:
        files = {"file": (clip.filename, clip.data, clip.media_type)}
        response = await self._post(
            TRANSCRIBE_PATH,
            files=files,
            data={"mimeType": clip.media_type},
        )
        return str(_json_body(response, TRANSCRIBE_PATH).get("text") or "").strip()

    async def synthesize(self, text: str) -> bytes:
        response = await self._post(TTS_PATH, json={"text": text})
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.post(path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(0, NETWORK_ERROR, f"{path}: {exc}") from exc
        if response.is_success:
            return response
        payload = _error_payload(response)
        code = str(payload.get("error") or REMOTE_ERROR)
        message = str(payload.get("message") or response.reason_phrase or "")
        logger.debug("POST %s -> %s %s", path, response.status_code, code)
        raise ApiError(response.status_code, code, message)
