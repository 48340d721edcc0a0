"""Push-to-talk hotkey based on pynput, dispatching onto the asyncio loop."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from typing import Awaitable, Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

logger = logging.getLogger(__name__)

Gesture = Callable[[], Awaitable[None]]


class PushToTalkHotkey:
    def __init__(self, hotkey_name: str = "Key.alt_l") -> None:
        self._hotkey_name = hotkey_name
        self._listener: Optional[object] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pressed = False
        self._lock = threading.Lock()

    def start(
        self,
        loop: asyncio.AbstractEventLoop,
        on_press: Gesture,
        on_release: Optional[Gesture] = None,
    ) -> None:
        """Listen for the hotkey; gestures run as coroutines on ``loop``."""
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._loop = loop

        def _on_press(key: object) -> None:
            if str(key) != self._hotkey_name:
                return
            with self._lock:
                if self._pressed:
                    return
                self._pressed = True
            self._dispatch(on_press)

        def _on_release(key: object) -> None:
            if str(key) != self._hotkey_name:
                return
            with self._lock:
                if not self._pressed:
                    return
                self._pressed = False
            if on_release is not None:
                self._dispatch(on_release)

        self._listener = keyboard.Listener(on_press=_on_press, on_release=_on_release)
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def _dispatch(self, gesture: Gesture) -> None:
        # Called on the pynput thread.
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        future = asyncio.run_coroutine_threadsafe(gesture(), loop)
        future.add_done_callback(_log_failure)


def _log_failure(future: concurrent.futures.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("hotkey gesture failed: %s", exc)
