"""Simple JSON-based config store with environment overrides."""

from __future__ import annotations

import json
import os
from pathlib import Path

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_MODEL_PATH = str(Path.home() / ".cache" / "vosk" / "vosk-model-small-en-us-0.15")


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "voicechat" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_url(self) -> str:
        env = os.getenv("VOICECHAT_API_URL", "")
        if env:
            return env.rstrip("/")
        return str(self._read_all().get("api_url", DEFAULT_API_URL)).rstrip("/")

    def set_api_url(self, url: str) -> None:
        self._set("api_url", url)

    def get_auth_token(self) -> str:
        return os.getenv("VOICECHAT_TOKEN", "") or str(self._read_all().get("auth_token", ""))

    def set_auth_token(self, token: str) -> None:
        self._set("auth_token", token)

    def get_model_path(self) -> str:
        env = os.getenv("VOSK_MODEL_PATH", "")
        if env:
            return env
        return str(self._read_all().get("model_path", DEFAULT_MODEL_PATH))

    def set_model_path(self, path: str) -> None:
        self._set("model_path", path)

    def get_language(self) -> str:
        return str(self._read_all().get("language", "en-US"))

    def get_hotkey(self) -> str:
        return str(self._read_all().get("hotkey", "Key.alt_l"))

    def set_hotkey(self, hotkey: str) -> None:
        self._set("hotkey", hotkey)

    def get_force_buffered(self) -> bool:
        return bool(self._read_all().get("force_buffered", False))

    def get_block_start_while_transcribing(self) -> bool:
        return bool(self._read_all().get("block_start_while_transcribing", False))

    def _set(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
