"""Application entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from api_client import AssistantApiClient
from capture import CaptureStrategySelector
from config import JsonConfigStore
from conversation import ConversationController
from hotkey import PushToTalkHotkey
from interfaces import ConfigStore
from models import ChatState, Message, RecognitionOptions, Role, SessionStatus
from playback import PlaybackSequencer, SoundDeviceOutput
from recognizer import VoskRecognizer, is_live_recognition_supported
from recorder import SoundDeviceRecorder
from session_controller import SessionController

logger = logging.getLogger(__name__)

HELP = "Type a message and press Enter. Commands: /record /new /replay N /login TOKEN /quit"


def _read_line() -> Optional[str]:
    try:
        return input()
    except EOFError:
        return None


class App:
    def __init__(self, config_store: Optional[ConfigStore] = None) -> None:
        self.config_store: ConfigStore = config_store or JsonConfigStore()
        self.state = ChatState()

        token = self.config_store.get_auth_token()
        self.client = AssistantApiClient(self.config_store.get_api_url(), auth_token=token)
        self.playback = PlaybackSequencer(self.client, SoundDeviceOutput())
        self.conversation = ConversationController(
            client=self.client,
            playback=self.playback,
            state=self.state,
            on_message=self._on_message,
        )
        if token:
            self.conversation.set_authenticated(True)

        model_path = self.config_store.get_model_path()
        options = RecognitionOptions(language=self.config_store.get_language())
        selector = CaptureStrategySelector(
            lambda: is_live_recognition_supported(model_path),
            force_buffered=self.config_store.get_force_buffered(),
        )
        self.sessions = SessionController(
            selector=selector,
            recognizer_factory=lambda: VoskRecognizer(model_path, options),
            recorder_factory=SoundDeviceRecorder,
            transcriber=self.client,
            state=self.state,
            block_start_while_transcribing=self.config_store.get_block_start_while_transcribing(),
            on_state_change=self._on_state_change,
            on_preview=self._on_preview,
            on_error=self._on_error,
        )
        self.hotkey = PushToTalkHotkey(hotkey_name=self.config_store.get_hotkey())
        logger.info("capture strategy: %s", selector.strategy.value)

    # ------------------------------------------------------------------
    # Callbacks (all invoked on the event loop)
    # ------------------------------------------------------------------

    def _on_message(self, message: Message) -> None:
        speaker = "you" if message.role == Role.USER else "assistant"
        print(f"[{speaker}] {message.content}")

    def _on_state_change(self, from_state: SessionStatus, to_state: SessionStatus) -> None:
        if to_state == SessionStatus.ACTIVE:
            print("(listening... press the hotkey or /record again to stop)")
        elif to_state == SessionStatus.STOPPING:
            print("\n(stopped)")

    def _on_preview(self, text: str) -> None:
        print(f"\r> {text}", end="", flush=True)

    def _on_error(self, code: str, message: str) -> None:
        print(f"\n! {code}: {message}")

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    async def handle_line(self, line: str) -> bool:
        """Handle one typed line; returns False when the user quits."""
        command, _, arg = line.strip().partition(" ")
        if command == "/quit":
            return False
        if command == "/record":
            await self.sessions.toggle()
        elif command == "/new":
            self.playback.stop()
            self.conversation.new_chat()
        elif command == "/replay":
            try:
                index = int(arg)
            except ValueError:
                print(HELP)
                return True
            if not await self.conversation.replay(index):
                print(f"! nothing to replay at {index}")
        elif command == "/login":
            self.client.set_auth_token(arg.strip())
            self.config_store.set_auth_token(arg.strip())
            self.conversation.set_authenticated(bool(arg.strip()))
        elif self.state.is_loading:
            self.state.input.append(line)
            print("(busy, message kept in the input buffer)")
        else:
            self.state.input.append(line)
            await self.conversation.submit()
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> int:
        loop = asyncio.get_running_loop()
        try:
            self.hotkey.start(loop, on_press=self.sessions.toggle)
        except RuntimeError as exc:
            logger.warning("hotkey disabled: %s", exc)
        print(HELP)
        try:
            while True:
                line = await loop.run_in_executor(None, _read_line)
                if line is None or not await self.handle_line(line):
                    break
        finally:
            await self.close()
        return 0

    async def close(self) -> None:
        self.hotkey.stop()
        self.playback.stop()
        await self.sessions.close()
        await self.client.aclose()


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Voice chat client")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    app = App()
    try:
        return asyncio.run(app.run())
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
