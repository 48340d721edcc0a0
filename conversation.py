"""Message submission and reply handling."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from errors import ERROR_MESSAGES, LIMIT_REACHED, ApiError
from interfaces import ReasoningClient
from models import ChatState, Message, Role
from playback import PlaybackSequencer

logger = logging.getLogger(__name__)

GREETING = "Hi! I'm your English grammar assistant. Ask me anything about grammar, usage or slang."

MessageCallback = Callable[[Message], None]


class ConversationController:
    def __init__(
        self,
        client: ReasoningClient,
        playback: PlaybackSequencer,
        state: Optional[ChatState] = None,
        greeting: str = GREETING,
        limit_notice: str = ERROR_MESSAGES[LIMIT_REACHED],
        on_message: Optional[MessageCallback] = None,
    ) -> None:
        self._client = client
        self._playback = playback
        self._state = state or ChatState()
        self._greeting = greeting
        self._limit_notice = limit_notice
        self._on_message = on_message
        if not self._state.messages:
            self.new_chat()

    @property
    def messages(self) -> List[Message]:
        return list(self._state.messages)

    @property
    def limit_reached(self) -> bool:
        return self._state.limit_reached

    @property
    def loading(self) -> bool:
        return self._state.awaiting_reply

    def new_chat(self) -> None:
        self._state.messages.clear()
        if self._greeting:
            self._append(Message(Role.ASSISTANT, self._greeting))

    def set_authenticated(self, signed_in: bool) -> None:
        if signed_in:
            self._state.limit_reached = False

    async def submit(self, text: Optional[str] = None) -> None:
        if text is None:
            text = self._state.input.text
        if not text.strip() or self._state.limit_reached:
            return

        self._append(Message(Role.USER, text))
        self._state.input.clear()
        self._state.awaiting_reply = True
        history = [message.to_payload() for message in self._state.messages]
        try:
            try:
                reply = await self._client.chat(history)
            except ApiError as exc:
                if exc.is_limit:
                    logger.info("message limit reached")
                    self._state.limit_reached = True
                    self._append(Message(Role.ASSISTANT, self._limit_notice))
                    return
                logger.error("failed to send message: %s", exc)
                return
            if not reply.content:
                return
            self._append(Message(Role.ASSISTANT, reply.content, thought=reply.thought))
            await self._playback.play(reply.content)
        finally:
            self._state.awaiting_reply = False

    async def replay(self, index: int) -> bool:
        """Play a past assistant message again."""
        try:
            message = self._state.messages[index]
        except IndexError:
            return False
        if message.role != Role.ASSISTANT:
            return False
        return await self._playback.play(message.content)

    def _append(self, message: Message) -> None:
        self._state.messages.append(message)
        if self._on_message:
            self._on_message(message)
